from __future__ import annotations

import asyncio
import logging
from typing import Callable

from models.outcome import SideEffectOutcome
from models.video import Video
from services import gcs

logger = logging.getLogger(__name__)


class Publisher:
    """
    Promote approved videos from private to public delivery.

    Promotion is best-effort: a failure leaves the video on its temporary URL
    and is reported as a warning, never as an exception.
    """

    def __init__(
        self,
        *,
        bucket_name: str | None = None,
        make_public: Callable[..., str] = gcs.make_public,
    ) -> None:
        self._bucket_name = bucket_name
        self._make_public = make_public

    async def promote(self, video: Video) -> SideEffectOutcome:
        fallback = video.temporary_url or video.delivery_url
        if not video.publication_id:
            return SideEffectOutcome(ok=True, value=fallback, warning="no publication id; kept existing URL")
        try:
            public_url = await asyncio.to_thread(
                self._make_public, video.publication_id, bucket_name=self._bucket_name
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "[publisher] make_public FAILED video=%s object=%s: %s",
                video.id,
                video.publication_id,
                exc,
                exc_info=True,
            )
            return SideEffectOutcome(ok=False, value=fallback, warning=f"publication failed: {exc}")
        if not public_url:
            return SideEffectOutcome(ok=False, value=fallback, warning="publication returned no URL")
        logger.info("[publisher] Video made public: %s -> %s", video.id, public_url)
        return SideEffectOutcome.success(public_url)
