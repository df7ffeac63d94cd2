"""Build the pipeline's collaborators from Settings and hold them for the app's lifetime."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from services.dispatcher import NotificationDispatcher
from services.intake import UploadIntake
from services.moderation_client import RekognitionModerationClient
from services.poller import ModerationPoller
from services.publisher import Publisher
from services.session_registry import SessionRegistry
from services.settings import Settings
from services.stager import S3ObjectStager
from services.store import VideoStore
from services.vector_index import QdrantVideoIndex


@dataclass
class AppServices:
    settings: Settings
    store: VideoStore
    registry: SessionRegistry
    dispatcher: NotificationDispatcher
    index: QdrantVideoIndex
    publisher: Publisher
    poller: ModerationPoller | None = None
    intake: UploadIntake | None = None


def build_services(settings: Settings) -> AppServices:
    store = VideoStore()
    registry = SessionRegistry()
    dispatcher = NotificationDispatcher(registry)
    index = QdrantVideoIndex(
        url=settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        collection=settings.qdrant_collection,
        dimensions=settings.embedding_dimensions,
    )
    publisher = Publisher(bucket_name=settings.gcs_bucket)
    client = RekognitionModerationClient(bucket=settings.s3_bucket, region=settings.aws_region)
    stager = S3ObjectStager(bucket=settings.s3_bucket, region=settings.aws_region)
    intake = UploadIntake(
        store=store,
        stager=stager,
        client=client,
        delivery_bucket=settings.gcs_bucket,
        url_expiration_seconds=settings.delivery_url_expiration_seconds,
    )
    poller = ModerationPoller(
        store=store,
        client=client,
        dispatcher=dispatcher,
        publisher=publisher,
        index=index,
        policy=settings.policy,
        embedding_size=settings.embedding_dimensions,
        interval_seconds=settings.poll_interval_seconds,
        batch_size=settings.batch_size,
        item_delay_seconds=settings.item_delay_seconds,
        max_pending_seconds=settings.max_pending_seconds,
    )
    return AppServices(
        settings=settings,
        store=store,
        registry=registry,
        dispatcher=dispatcher,
        index=index,
        publisher=publisher,
        poller=poller,
        intake=intake,
    )


def get_services(request: Request) -> AppServices:
    services = request.app.state.services
    if services is None:
        raise RuntimeError("app services are not initialised (lifespan has not run)")
    return services
