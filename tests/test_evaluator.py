from __future__ import annotations

import pytest

from models import Decision, ModerationLabel
from services.evaluator import evaluate_labels
from services.settings import ModerationPolicy


def _label(name: str, confidence: float, parent: str | None = None) -> ModerationLabel:
    return ModerationLabel(name=name, parent_category=parent if parent is not None else name, confidence=confidence)


def test_empty_labels_pass_with_full_confidence() -> None:
    verdict = evaluate_labels([])
    assert verdict.decision is Decision.PASS
    assert verdict.confidence == 1.0
    assert verdict.reasons == []


def test_high_confidence_reject_category_rejects() -> None:
    verdict = evaluate_labels([_label("Explicit Nudity", 0.9)])
    assert verdict.decision is Decision.REJECT
    assert verdict.confidence == 0.9
    assert verdict.reasons == ["High confidence violation detected: Explicit Nudity (0.90)"]


def test_flag_category_above_flag_threshold_flags() -> None:
    verdict = evaluate_labels([_label("Alcohol", 0.6)])
    assert verdict.decision is Decision.FLAG
    assert verdict.reasons == ["Content flagged: Alcohol (0.60)"]


def test_reject_category_between_thresholds_flags_not_rejects() -> None:
    verdict = evaluate_labels([_label("Violence", 0.6)])
    assert verdict.decision is Decision.FLAG
    assert verdict.confidence == 0.6
    assert verdict.reasons == ["Potential violation: Violence (0.60)"]


def test_parent_category_match_counts() -> None:
    verdict = evaluate_labels([_label("Graphic Violence Or Gore", 0.85, parent="Violence")])
    assert verdict.decision is Decision.REJECT
    assert verdict.reasons[0].startswith("High confidence violation detected: Graphic Violence Or Gore")


@pytest.mark.parametrize(
    ("labels", "expected"),
    [
        ([_label("Violence", 0.8)], Decision.REJECT),
        ([_label("Violence", 0.79)], Decision.FLAG),
        ([_label("Gambling", 0.5)], Decision.FLAG),
        ([_label("Gambling", 0.49)], Decision.PASS),
    ],
)
def test_threshold_boundaries_are_inclusive(labels: list[ModerationLabel], expected: Decision) -> None:
    assert evaluate_labels(labels).decision is expected


def test_confident_reject_short_circuits_and_discards_earlier_reasons() -> None:
    labels = [
        _label("Violence", 0.6),
        _label("Alcohol", 0.7),
        _label("Explicit Nudity", 0.95),
    ]
    verdict = evaluate_labels(labels)
    assert verdict.decision is Decision.REJECT
    assert verdict.confidence == 0.95
    assert verdict.reasons == ["High confidence violation detected: Explicit Nudity (0.95)"]


def test_order_changes_reason_but_not_decision() -> None:
    first = evaluate_labels([_label("Violence", 0.9), _label("Visually Disturbing", 0.95)])
    second = evaluate_labels([_label("Visually Disturbing", 0.95), _label("Violence", 0.9)])
    assert first.decision is second.decision is Decision.REJECT
    assert first.reasons != second.reasons


def test_confident_flag_category_aggregates_to_reject() -> None:
    verdict = evaluate_labels([_label("Alcohol", 0.9)])
    assert verdict.decision is Decision.REJECT
    assert verdict.confidence == 0.9
    assert verdict.reasons == ["Content flagged: Alcohol (0.90)"]


def test_uncategorised_confident_label_flags_without_reasons() -> None:
    verdict = evaluate_labels([_label("Weapons", 0.92)])
    assert verdict.decision is Decision.FLAG
    assert verdict.reasons == []


def test_low_confidence_labels_pass_with_max_confidence() -> None:
    verdict = evaluate_labels([_label("Suggestive", 0.2), _label("Tobacco", 0.35)])
    assert verdict.decision is Decision.PASS
    assert verdict.confidence == 0.35
    assert verdict.reasons == []


def test_evaluation_is_pure() -> None:
    labels = [_label("Violence", 0.6), _label("Drugs", 0.7)]
    snapshot = [ModerationLabel(**vars(label)) for label in labels]
    assert evaluate_labels(labels) == evaluate_labels(labels)
    assert labels == snapshot


def test_custom_policy_thresholds_and_categories() -> None:
    policy = ModerationPolicy(
        reject_threshold=0.95,
        flag_threshold=0.3,
        reject_categories=("Weapons",),
        flag_categories=(),
    )
    assert evaluate_labels([_label("Weapons", 0.9)], policy).decision is Decision.FLAG
    assert evaluate_labels([_label("Weapons", 0.96)], policy).decision is Decision.REJECT
    assert evaluate_labels([_label("Alcohol", 0.2)], policy).decision is Decision.PASS
