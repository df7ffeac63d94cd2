from .outcome import ModerationOutcome, SideEffectOutcome
from .verdict import (
    FLAG_CATEGORIES,
    FLAG_THRESHOLD,
    REJECT_CATEGORIES,
    REJECT_THRESHOLD,
    Decision,
    Verdict,
)
from .video import ModerationLabel, ModerationStatus, Video

__all__ = [
    "Video",
    "ModerationStatus",
    "ModerationLabel",
    "Decision",
    "Verdict",
    "REJECT_THRESHOLD",
    "FLAG_THRESHOLD",
    "REJECT_CATEGORIES",
    "FLAG_CATEGORIES",
    "SideEffectOutcome",
    "ModerationOutcome",
]
