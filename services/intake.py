"""Upload hand-off: stage privately, create the pending record, start moderation."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import secrets
from typing import Any, Callable

from models.outcome import SideEffectOutcome
from models.video import ModerationStatus, Video
from services import gcs
from services.errors import SubmissionError
from services.stager import S3ObjectStager
from services.store import VideoStore

logger = logging.getLogger(__name__)


def _generate_video_id() -> str:
    return secrets.token_hex(12)


def _extension(content_type: str) -> str:
    return mimetypes.guess_extension(content_type) or ".bin"


async def submit_for_moderation(store: VideoStore, client: Any, video: Video) -> str:
    """
    Start a moderation job for a staged video and record it as pending.

    The job id is written only after the service accepted the job; a
    refusal raises SubmissionError and leaves the record untouched. Only the
    SDK call leaves the event loop; the store is updated on it.
    """
    if not video.storage_key:
        raise SubmissionError(f"video {video.id} has no staged object to moderate")
    if video.moderation_status is not ModerationStatus.PENDING:
        raise SubmissionError(f"video {video.id} is already {video.moderation_status.value}")
    job_id = await asyncio.to_thread(client.start_job, video.storage_key)
    store.mark_submitted(video.id, job_id)
    logger.info("[intake] video=%s submitted for moderation job=%s", video.id, job_id)
    return job_id


class UploadIntake:
    def __init__(
        self,
        *,
        store: VideoStore,
        stager: S3ObjectStager,
        client: Any,
        delivery_bucket: str | None = None,
        url_expiration_seconds: int = gcs.TEMPORARY_URL_EXPIRATION_SECONDS,
        upload_blob: Callable[..., str] = gcs.upload_blob,
        sign_url: Callable[..., str] = gcs.generate_signed_url,
        delete_blob: Callable[..., None] = gcs.delete_blob,
        id_factory: Callable[[], str] = _generate_video_id,
    ) -> None:
        self._store = store
        self._stager = stager
        self._client = client
        self._delivery_bucket = delivery_bucket
        self._url_expiration = url_expiration_seconds
        self._upload_blob = upload_blob
        self._sign_url = sign_url
        self._delete_blob = delete_blob
        self._id_factory = id_factory

    async def ingest(
        self,
        *,
        user_id: str,
        data: bytes,
        content_type: str,
        title: str,
        description: str = "",
    ) -> Video:
        """
        Take a finished upload through staging and job submission.

        On a submission failure the new record and both stored copies are
        removed and the error is re-raised, so nothing is left pending
        without a job.
        """
        video_id = self._id_factory()
        ext = _extension(content_type)
        storage_key = f"{user_id}/{video_id}{ext}"
        publication_id = f"videos/{user_id}/{video_id}{ext}"

        await asyncio.to_thread(self._stager.put, data, content_type, storage_key)
        await asyncio.to_thread(
            self._upload_blob,
            publication_id,
            data,
            content_type=content_type,
            bucket_name=self._delivery_bucket,
        )
        temporary_url = await asyncio.to_thread(
            self._sign_url,
            publication_id,
            bucket_name=self._delivery_bucket,
            expiration_seconds=self._url_expiration,
        )

        video = self._store.add(
            Video(
                id=video_id,
                user_id=user_id,
                title=title,
                description=description,
                storage_key=storage_key,
                publication_id=publication_id,
                temporary_url=temporary_url,
                delivery_url=temporary_url,
            )
        )
        try:
            await submit_for_moderation(self._store, self._client, video)
        except SubmissionError:
            self._store.delete(video.id)
            await self.discard_objects(video)
            logger.error("[intake] moderation submission failed; discarded video=%s", video.id)
            raise
        return video

    async def discard_objects(self, video: Video) -> list[SideEffectOutcome]:
        """Best-effort removal of the staged object and the delivery blob."""
        outcomes: list[SideEffectOutcome] = []
        if video.storage_key:
            outcomes.append(
                await self._best_effort_delete("staged object", self._stager.delete, video.storage_key)
            )
        if video.publication_id:
            outcomes.append(
                await self._best_effort_delete(
                    "delivery blob",
                    self._delete_blob,
                    video.publication_id,
                    bucket_name=self._delivery_bucket,
                )
            )
        return outcomes

    async def _best_effort_delete(
        self, what: str, delete: Callable[..., Any], name: str, **kwargs: Any
    ) -> SideEffectOutcome:
        try:
            await asyncio.to_thread(delete, name, **kwargs)
        except Exception as exc:  # noqa: BLE001
            logger.warning("[intake] could not delete %s %s: %s", what, name, exc, exc_info=True)
            return SideEffectOutcome.failure(f"{what} delete failed: {exc}")
        return SideEffectOutcome.success(name)
