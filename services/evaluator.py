"""Turn moderation labels into a PASS / FLAG / REJECT verdict."""

from __future__ import annotations

from collections.abc import Sequence

from models.verdict import Decision, Verdict
from models.video import ModerationLabel
from services.settings import ModerationPolicy

DEFAULT_POLICY = ModerationPolicy()


def _matches(label: ModerationLabel, categories: Sequence[str]) -> bool:
    return label.name in categories or label.parent_category in categories


def evaluate_labels(
    labels: Sequence[ModerationLabel],
    policy: ModerationPolicy = DEFAULT_POLICY,
) -> Verdict:
    """
    Classify a label list against the policy thresholds.

    A reject-category label at or above the reject threshold returns at once
    with that label as the only reason, even if reasons were already
    collected from earlier labels. Otherwise reasons are accumulated and the
    decision is taken from the maximum confidence seen.
    """
    if not labels:
        return Verdict(Decision.PASS, 1.0, [])

    max_confidence = 0.0
    reasons: list[str] = []

    for label in labels:
        confidence = label.confidence or 0.0
        max_confidence = max(max_confidence, confidence)

        if _matches(label, policy.reject_categories):
            if confidence >= policy.reject_threshold:
                return Verdict(
                    Decision.REJECT,
                    confidence,
                    [f"High confidence violation detected: {label.name} ({confidence:.2f})"],
                )
            if confidence >= policy.flag_threshold:
                reasons.append(f"Potential violation: {label.name} ({confidence:.2f})")

        if _matches(label, policy.flag_categories) and confidence >= policy.flag_threshold:
            reasons.append(f"Content flagged: {label.name} ({confidence:.2f})")

    if max_confidence >= policy.reject_threshold and reasons:
        return Verdict(Decision.REJECT, max_confidence, reasons)
    if max_confidence >= policy.flag_threshold or reasons:
        return Verdict(Decision.FLAG, max_confidence, reasons)
    return Verdict(Decision.PASS, max_confidence, [])
