"""In-memory video metadata store. Keyed by video ID.

Stands in for the durable metadata store: the pipeline only depends on the
methods below, so a database-backed implementation can replace it at startup.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from models.video import ModerationStatus, Video
from services.errors import StatusTransitionError

logger = logging.getLogger(__name__)


class VideoStore:
    def __init__(self) -> None:
        self._videos: dict[str, Video] = {}

    def __contains__(self, video_id: str) -> bool:
        return video_id in self._videos

    def __len__(self) -> int:
        return len(self._videos)

    def get(self, video_id: str) -> Video | None:
        return self._videos.get(video_id)

    def add(self, video: Video) -> Video:
        if video.id in self._videos:
            raise ValueError(f"video {video.id!r} already exists")
        self._videos[video.id] = video
        return video

    def delete(self, video_id: str) -> None:
        self._videos.pop(video_id, None)

    def clear(self) -> None:
        self._videos.clear()

    def list_pending(self, limit: int) -> list[Video]:
        """Pending videos that have a moderation job, oldest first."""
        pending = [
            v
            for v in self._videos.values()
            if v.moderation_status is ModerationStatus.PENDING and v.moderation_job_id
        ]
        pending.sort(key=lambda v: v.created_at)
        return pending[:limit]

    def list_by_status(self, statuses: Iterable[ModerationStatus], limit: int = 50) -> list[Video]:
        """Videos in any of the given statuses, newest first."""
        wanted = set(statuses)
        matches = [v for v in self._videos.values() if v.moderation_status in wanted]
        matches.sort(key=lambda v: v.created_at, reverse=True)
        return matches[:limit]

    def mark_submitted(self, video_id: str, job_id: str, *, now: datetime | None = None) -> Video:
        video = self._require(video_id)
        if video.moderation_job_id:
            raise StatusTransitionError(f"video {video_id} already has moderation job {video.moderation_job_id}")
        video.moderation_job_id = job_id
        video.submitted_at = now or datetime.now(timezone.utc)
        video.moderation_status = ModerationStatus.PENDING
        return video

    def transition(
        self,
        video_id: str,
        status: ModerationStatus,
        result: dict[str, Any],
        *,
        embedding: list[float] | None = None,
        delivery_url: str | None = None,
    ) -> Video:
        """Move a pending video to a terminal status, writing the result in the same step."""
        if not status.is_terminal:
            raise ValueError("transition target must be a terminal status")
        video = self._require(video_id)
        if video.moderation_status.is_terminal:
            raise StatusTransitionError(
                f"video {video_id} is already {video.moderation_status.value}; refusing {status.value}"
            )
        video.moderation_status = status
        video.moderation_result = result
        if embedding is not None:
            video.embedding = embedding
        if delivery_url is not None:
            video.delivery_url = delivery_url
        logger.info("[store] video=%s -> %s", video_id, status.value)
        return video

    def _require(self, video_id: str) -> Video:
        video = self._videos.get(video_id)
        if video is None:
            raise KeyError(f"video {video_id!r} not found")
        return video
