from dataclasses import dataclass, field
from enum import Enum


class Decision(str, Enum):
    PASS = "PASS"
    FLAG = "FLAG"
    REJECT = "REJECT"


@dataclass
class Verdict:
    decision: Decision
    confidence: float            # 0.0–1.0
    reasons: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "decision": self.decision.value,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
        }


REJECT_THRESHOLD = 0.8           # high confidence violations
FLAG_THRESHOLD = 0.5             # medium confidence, needs review

REJECT_CATEGORIES = [
    "Explicit Nudity",
    "Violence",
    "Visually Disturbing",
    "Rude Gestures",
]

FLAG_CATEGORIES = [
    "Suggestive",
    "Hate Symbols",
    "Gambling",
    "Drugs",
    "Tobacco",
    "Alcohol",
]
