from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ModerationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    FLAGGED = "flagged"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ModerationStatus.PENDING


@dataclass
class ModerationLabel:
    name: str
    parent_category: str = ""
    confidence: float = 0.0      # 0.0–1.0


@dataclass
class Video:
    id: str
    user_id: str
    title: str
    description: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    storage_key: str | None = None          # private staging object (moderation input)
    publication_id: str | None = None       # delivery-storage object name
    temporary_url: str | None = None        # signed URL, valid before promotion
    moderation_job_id: str | None = None
    submitted_at: datetime | None = None
    moderation_status: ModerationStatus = ModerationStatus.PENDING
    moderation_result: dict[str, Any] | None = None
    embedding: list[float] | None = None
    delivery_url: str | None = None
