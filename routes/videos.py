"""Video REST API: upload hand-off, status lookup and delete, similarity search and the review queue."""

import asyncio
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response
from pydantic import BaseModel

from app.wiring import AppServices, get_services
from models.video import ModerationStatus, Video
from services.auth_token import bearer_token, verify_access_token
from services.errors import InvalidAccessToken, StagingError, SubmissionError

router = APIRouter(tags=["videos"])
logger = logging.getLogger(__name__)

MAX_SIMILAR = 50
REVIEW_STATUSES = (ModerationStatus.FLAGGED, ModerationStatus.REJECTED)


class VideoResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    created_at: datetime
    moderation_status: ModerationStatus
    delivery_url: str | None = None
    moderation_result: dict | None = None

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            created_at=video.created_at,
            moderation_status=video.moderation_status,
            delivery_url=video.delivery_url,
            moderation_result=video.moderation_result,
        )


class SimilarVideoResponse(BaseModel):
    video_id: str
    score: float
    title: str
    description: str


class ModerationQueueResponse(BaseModel):
    total: int
    videos: list[VideoResponse]


class OnlineUsersResponse(BaseModel):
    user_ids: list[str]


def _authenticated_user(authorization: str | None, services: AppServices) -> str:
    try:
        return verify_access_token(bearer_token(authorization), services.settings.jwt_secret)
    except InvalidAccessToken as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def _require_video(services: AppServices, video_id: str) -> Video:
    video = services.store.get(video_id)
    if video is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


@router.post("/videos", response_model=VideoResponse, status_code=201)
async def upload_video(
    request: Request,
    title: str = Query(..., min_length=1),
    description: str = Query(""),
    authorization: str | None = Header(default=None),
    services: AppServices = Depends(get_services),
) -> VideoResponse:
    """Accept a raw video body, stage it and start moderation. The video stays pending until the poller decides."""
    user_id = _authenticated_user(authorization, services)
    content_type = (request.headers.get("content-type") or "").split(";")[0].strip().lower()
    if not content_type.startswith("video/"):
        raise HTTPException(status_code=415, detail="Body must be a video/* upload")
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    if services.intake is None:
        raise HTTPException(status_code=503, detail="Uploads are not configured")

    logger.info("[videos] POST /api/videos user=%s bytes=%d type=%s", user_id, len(data), content_type)
    try:
        video = await services.intake.ingest(
            user_id=user_id,
            data=data,
            content_type=content_type,
            title=title,
            description=description,
        )
    except (SubmissionError, StagingError) as exc:
        logger.error("[videos] upload hand-off failed user=%s: %s", user_id, exc)
        raise HTTPException(status_code=502, detail=f"Moderation could not be started: {exc}") from exc
    return VideoResponse.from_video(video)


@router.get("/videos/{video_id}", response_model=VideoResponse)
def get_video(video_id: str, services: AppServices = Depends(get_services)) -> VideoResponse:
    return VideoResponse.from_video(_require_video(services, video_id))


@router.delete("/videos/{video_id}", status_code=204, response_class=Response)
async def delete_video(
    video_id: str,
    authorization: str | None = Header(default=None),
    services: AppServices = Depends(get_services),
) -> Response:
    """
    Owner-only delete. The record goes first; storage and index cleanup are
    best-effort and only logged when they fail.
    """
    user_id = _authenticated_user(authorization, services)
    video = _require_video(services, video_id)
    if video.user_id != user_id:
        raise HTTPException(status_code=403, detail="Only the owner can delete this video")

    services.store.delete(video.id)
    outcomes = []
    if services.intake is not None:
        outcomes.extend(await services.intake.discard_objects(video))
    outcomes.append(await asyncio.to_thread(services.index.delete, video.id))
    for outcome in outcomes:
        if outcome.warning:
            logger.warning("[videos] delete video=%s: %s", video.id, outcome.warning)
    logger.info("[videos] DELETE /api/videos/%s user=%s", video.id, user_id)
    return Response(status_code=204)


@router.get("/videos/{video_id}/similar", response_model=list[SimilarVideoResponse])
async def similar_videos(
    video_id: str,
    limit: int = Query(10, ge=1, le=MAX_SIMILAR),
    services: AppServices = Depends(get_services),
) -> list[SimilarVideoResponse]:
    """Approved videos from other users whose label embeddings are closest to this one."""
    video = _require_video(services, video_id)
    if video.moderation_status is not ModerationStatus.APPROVED or not video.embedding:
        raise HTTPException(status_code=409, detail="Video has no similarity embedding")
    hits = await asyncio.to_thread(
        services.index.search,
        video.embedding,
        limit=limit + 1,
        moderation_status=ModerationStatus.APPROVED,
        exclude_user_id=video.user_id,
    )
    return [
        SimilarVideoResponse(video_id=h.video_id, score=h.score, title=h.title, description=h.description)
        for h in hits
        if h.video_id != video.id
    ][:limit]


@router.get("/moderation/queue", response_model=ModerationQueueResponse)
def moderation_queue(
    status: ModerationStatus | None = Query(default=None),
    limit: int = Query(50, ge=1, le=200),
    services: AppServices = Depends(get_services),
) -> ModerationQueueResponse:
    """Videos awaiting human review (flagged and rejected by default)."""
    statuses = (status,) if status is not None else REVIEW_STATUSES
    videos = services.store.list_by_status(statuses, limit=limit)
    return ModerationQueueResponse(
        total=len(videos),
        videos=[VideoResponse.from_video(v) for v in videos],
    )


@router.get("/online-users", response_model=OnlineUsersResponse)
def online_users(services: AppServices = Depends(get_services)) -> OnlineUsersResponse:
    return OnlineUsersResponse(user_ids=services.registry.online_user_ids())
