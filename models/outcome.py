from dataclasses import dataclass
from typing import Any

from .verdict import Verdict
from .video import ModerationStatus


@dataclass
class SideEffectOutcome:
    """Result of a best-effort step (publication, indexing) that never raises."""

    ok: bool
    value: Any = None
    warning: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> "SideEffectOutcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, warning: str) -> "SideEffectOutcome":
        return cls(ok=False, warning=warning)

    @classmethod
    def skipped(cls, reason: str) -> "SideEffectOutcome":
        return cls(ok=True, warning=reason)


@dataclass
class ModerationOutcome:
    video_id: str
    status: ModerationStatus
    verdict: Verdict | None = None
    publication: SideEffectOutcome | None = None
    indexing: SideEffectOutcome | None = None
    notified: bool = False

    @property
    def warnings(self) -> list[str]:
        return [
            o.warning
            for o in (self.publication, self.indexing)
            if o is not None and o.warning
        ]
