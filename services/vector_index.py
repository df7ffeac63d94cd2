"""
Qdrant index of approved-video embeddings, namespaced by moderation status.

Every write is best-effort: the index is a derived view, so failures come
back as SideEffectOutcome warnings and search errors as an empty result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from models.outcome import SideEffectOutcome
from models.video import ModerationStatus, Video
from services.embedding import stable_hash

logger = logging.getLogger(__name__)


@dataclass
class SimilarVideo:
    video_id: str
    score: float
    title: str = ""
    description: str = ""


def point_id(video_id: str) -> int:
    return stable_hash(video_id)


class QdrantVideoIndex:
    def __init__(
        self,
        *,
        url: str = "",
        api_key: str = "",
        collection: str = "videos",
        dimensions: int = 128,
        client: Any | None = None,
    ) -> None:
        self._collection = collection
        self._dimensions = dimensions
        self._client = client
        if self._client is None and url:
            self._client = QdrantClient(url=url, api_key=api_key or None, timeout=30)
        if self._client is None:
            logger.warning("[vector_index] QDRANT_URL not set; similarity indexing disabled.")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def collection(self) -> str:
        return self._collection

    def ensure_collection(self) -> None:
        """Create the collection if it doesn't exist. Errors are logged, not raised."""
        if self._client is None:
            return
        try:
            if self._client.collection_exists(self._collection):
                logger.info("[vector_index] Collection %r already exists", self._collection)
                return
            self._client.create_collection(
                collection_name=self._collection,
                vectors_config=VectorParams(size=self._dimensions, distance=Distance.COSINE),
            )
            logger.info("[vector_index] Created collection %r (dim=%d)", self._collection, self._dimensions)
        except Exception as exc:  # noqa: BLE001
            logger.error("[vector_index] ensure_collection failed: %s", exc, exc_info=True)

    def upsert(
        self,
        video: Video,
        embedding: list[float],
        *,
        moderation_status: ModerationStatus = ModerationStatus.APPROVED,
    ) -> SideEffectOutcome:
        if self._client is None:
            return SideEffectOutcome.skipped("vector index disabled")
        if len(embedding) != self._dimensions:
            return SideEffectOutcome.failure(
                f"embedding has {len(embedding)} dimensions, index expects {self._dimensions}"
            )
        pid = point_id(video.id)
        payload = {
            "videoId": video.id,
            "title": video.title or "",
            "description": video.description or "",
            "userId": video.user_id,
            "createdAt": video.created_at.isoformat(),
            "moderationStatus": moderation_status.value,
        }
        try:
            self._client.upsert(
                collection_name=self._collection,
                points=[PointStruct(id=pid, vector=embedding, payload=payload)],
                wait=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("[vector_index] upsert failed video=%s: %s", video.id, exc, exc_info=True)
            return SideEffectOutcome.failure(f"indexing failed: {exc}")
        logger.info("[vector_index] Upserted video=%s point=%d", video.id, pid)
        return SideEffectOutcome.success(pid)

    def search(
        self,
        vector: list[float],
        *,
        limit: int = 10,
        moderation_status: ModerationStatus | None = ModerationStatus.APPROVED,
        exclude_user_id: str | None = None,
    ) -> list[SimilarVideo]:
        if self._client is None:
            return []
        must = []
        must_not = []
        if moderation_status is not None:
            must.append(FieldCondition(key="moderationStatus", match=MatchValue(value=moderation_status.value)))
        if exclude_user_id:
            must_not.append(FieldCondition(key="userId", match=MatchValue(value=exclude_user_id)))
        query_filter = Filter(must=must or None, must_not=must_not or None) if (must or must_not) else None
        try:
            response = self._client.query_points(
                collection_name=self._collection,
                query=vector,
                limit=limit,
                query_filter=query_filter,
                with_payload=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("[vector_index] search failed: %s", exc, exc_info=True)
            return []
        hits: list[SimilarVideo] = []
        for point in response.points:
            payload = point.payload or {}
            hits.append(
                SimilarVideo(
                    video_id=str(payload.get("videoId", "")),
                    score=float(point.score),
                    title=payload.get("title", ""),
                    description=payload.get("description", ""),
                )
            )
        return hits

    def delete(self, video_id: str) -> SideEffectOutcome:
        if self._client is None:
            return SideEffectOutcome.skipped("vector index disabled")
        try:
            self._client.delete(
                collection_name=self._collection,
                points_selector=PointIdsList(points=[point_id(video_id)]),
                wait=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("[vector_index] delete failed video=%s: %s", video_id, exc, exc_info=True)
            return SideEffectOutcome.failure(f"delete failed: {exc}")
        return SideEffectOutcome.success()
