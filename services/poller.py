"""Background driver that moves pending videos through moderation to a terminal status."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable

from models.outcome import ModerationOutcome, SideEffectOutcome
from models.verdict import Decision, Verdict
from models.video import ModerationStatus, Video
from services.dispatcher import NotificationDispatcher
from services.embedding import EMBEDDING_SIZE, generate_embedding, is_zero_vector
from services.evaluator import DEFAULT_POLICY, evaluate_labels
from services.moderation_client import FAILED, SUCCEEDED, JobStatus
from services.publisher import Publisher
from services.settings import ModerationPolicy
from services.store import VideoStore
from services.vector_index import QdrantVideoIndex

logger = logging.getLogger(__name__)

_DECISION_STATUS = {
    Decision.PASS: ModerationStatus.APPROVED,
    Decision.FLAG: ModerationStatus.FLAGGED,
    Decision.REJECT: ModerationStatus.REJECTED,
}


class ModerationPoller:
    """
    Poll the moderation service for every pending video on a fixed interval.

    Videos in a batch are handled one after another (with a short delay
    between them) to keep the request rate on the external services low.
    A failure while handling one video rejects that video and the batch
    carries on.
    """

    def __init__(
        self,
        *,
        store: VideoStore,
        client: Any,
        dispatcher: NotificationDispatcher,
        publisher: Publisher,
        index: QdrantVideoIndex,
        policy: ModerationPolicy = DEFAULT_POLICY,
        embedding_size: int = EMBEDDING_SIZE,
        interval_seconds: float = 30.0,
        batch_size: int = 10,
        item_delay_seconds: float = 1.0,
        max_pending_seconds: float = 0.0,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._dispatcher = dispatcher
        self._publisher = publisher
        self._index = index
        self._policy = policy
        self._embedding_size = embedding_size
        self._interval = interval_seconds
        self._batch_size = batch_size
        self._item_delay = item_delay_seconds
        self._max_pending = max_pending_seconds
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="moderation-poller")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("[poller] Stopped.")

    async def run_forever(self) -> None:
        logger.info("[poller] Starting moderation polling every %.1fs", self._interval)
        while True:
            try:
                await self.run_once()
            except Exception as exc:  # noqa: BLE001
                logger.error("[poller] Error processing pending moderation jobs: %s", exc, exc_info=True)
            await asyncio.sleep(self._interval)

    async def run_once(self) -> list[ModerationOutcome]:
        videos = self._store.list_pending(self._batch_size)
        if videos:
            logger.info("[poller] Processing %d pending moderation jobs", len(videos))
        outcomes: list[ModerationOutcome] = []
        for position, video in enumerate(videos):
            if position and self._item_delay > 0:
                await asyncio.sleep(self._item_delay)
            outcome = await self.process_video(video.id)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    async def process_video(self, video_id: str) -> ModerationOutcome | None:
        video = self._store.get(video_id)
        if video is None:
            logger.warning("[poller] Video not found: %s", video_id)
            return None
        if video.moderation_status is not ModerationStatus.PENDING or not video.moderation_job_id:
            return None

        try:
            job: JobStatus = await asyncio.to_thread(self._client.get_job_status, video.moderation_job_id)
            if job.status == FAILED:
                logger.error("[poller] Moderation job failed for video %s: %s", video.id, job.status_message)
                self._store.transition(
                    video.id,
                    ModerationStatus.REJECTED,
                    {"error": "moderation job failed", "status": job.status},
                )
                outcome = ModerationOutcome(video.id, ModerationStatus.REJECTED)
            elif job.status == SUCCEEDED:
                outcome = await self._apply_verdict(video, job)
            else:
                return self._handle_in_progress(video, job)
        except Exception as exc:  # noqa: BLE001
            logger.error("[poller] Error processing moderation job for video %s: %s", video.id, exc, exc_info=True)
            outcome = self._force_reject(video, exc)
            if outcome is None:
                return None

        outcome.notified = self._dispatcher.notify_moderation_result(video)
        logger.info("[poller] Moderation completed for video %s: %s", video.id, outcome.status.value)
        for warning in outcome.warnings:
            logger.warning("[poller] video=%s side effect warning: %s", video.id, warning)
        return outcome

    def _handle_in_progress(self, video: Video, job: JobStatus) -> ModerationOutcome:
        if self._max_pending > 0 and video.submitted_at is not None:
            waited = (self._now() - video.submitted_at).total_seconds()
            if waited > self._max_pending:
                logger.warning(
                    "[poller] video=%s pending for %.0fs (limit %.0fs); escalating to review",
                    video.id,
                    waited,
                    self._max_pending,
                )
                self._store.transition(
                    video.id,
                    ModerationStatus.FLAGGED,
                    {"error": "moderation job timed out", "status": job.status},
                )
                outcome = ModerationOutcome(video.id, ModerationStatus.FLAGGED)
                outcome.notified = self._dispatcher.notify_moderation_result(video)
                return outcome
        logger.debug("[poller] Moderation job still in progress for video: %s", video.id)
        return ModerationOutcome(video.id, ModerationStatus.PENDING)

    async def _apply_verdict(self, video: Video, job: JobStatus) -> ModerationOutcome:
        verdict: Verdict = evaluate_labels(job.labels, self._policy)
        status = _DECISION_STATUS[verdict.decision]
        result: dict[str, Any] = {
            "status": job.status,
            "labels": [asdict(label) for label in job.labels],
            "evaluation": verdict.as_dict(),
            "reasons": list(verdict.reasons),
            "videoMetadata": job.video_metadata,
        }
        outcome = ModerationOutcome(video.id, status, verdict=verdict)

        if status is not ModerationStatus.APPROVED:
            self._store.transition(video.id, status, result)
            return outcome

        outcome.publication = await self._publisher.promote(video)
        embedding: list[float] | None = None
        if job.labels:
            vector = generate_embedding(job.labels, size=self._embedding_size)
            if not is_zero_vector(vector):
                embedding = vector
        if embedding is not None:
            outcome.indexing = await asyncio.to_thread(self._index.upsert, video, embedding)
        else:
            outcome.indexing = SideEffectOutcome.skipped("no labels to embed")

        if outcome.warnings:
            result["warnings"] = outcome.warnings
        self._store.transition(
            video.id,
            ModerationStatus.APPROVED,
            result,
            embedding=embedding,
            delivery_url=outcome.publication.value,
        )
        return outcome

    def _force_reject(self, video: Video, exc: Exception) -> ModerationOutcome | None:
        try:
            self._store.transition(video.id, ModerationStatus.REJECTED, {"error": str(exc)})
        except Exception as update_exc:  # noqa: BLE001
            logger.error(
                "[poller] Error updating video status for %s: %s", video.id, update_exc, exc_info=True
            )
            return None
        return ModerationOutcome(video.id, ModerationStatus.REJECTED)
