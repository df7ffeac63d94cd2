from datetime import datetime

from models import (
    Decision,
    ModerationOutcome,
    ModerationStatus,
    SideEffectOutcome,
    Verdict,
    Video,
)


def test_video_defaults() -> None:
    video = Video(id="vid1", user_id="u1", title="Sunset")
    assert video.moderation_status is ModerationStatus.PENDING
    assert isinstance(video.created_at, datetime)
    assert video.created_at.tzinfo is not None
    assert video.moderation_job_id is None
    assert video.moderation_result is None
    assert video.embedding is None
    assert video.delivery_url is None


def test_terminal_statuses() -> None:
    assert not ModerationStatus.PENDING.is_terminal
    assert ModerationStatus.APPROVED.is_terminal
    assert ModerationStatus.FLAGGED.is_terminal
    assert ModerationStatus.REJECTED.is_terminal
    assert ModerationStatus("flagged") is ModerationStatus.FLAGGED


def test_verdict_as_dict() -> None:
    verdict = Verdict(Decision.FLAG, 0.6, ["Content flagged: Alcohol (0.60)"])
    assert verdict.as_dict() == {
        "decision": "FLAG",
        "confidence": 0.6,
        "reasons": ["Content flagged: Alcohol (0.60)"],
    }


def test_side_effect_outcome_constructors() -> None:
    assert SideEffectOutcome.success("url") == SideEffectOutcome(ok=True, value="url")
    failed = SideEffectOutcome.failure("boom")
    assert failed.ok is False and failed.warning == "boom"
    skipped = SideEffectOutcome.skipped("disabled")
    assert skipped.ok is True and skipped.warning == "disabled"


def test_moderation_outcome_collects_warnings() -> None:
    outcome = ModerationOutcome(
        "vid1",
        ModerationStatus.APPROVED,
        publication=SideEffectOutcome.success("https://cdn/x"),
        indexing=SideEffectOutcome.failure("indexing failed: timeout"),
    )
    assert outcome.warnings == ["indexing failed: timeout"]
    assert ModerationOutcome("vid2", ModerationStatus.REJECTED).warnings == []
