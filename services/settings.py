"""Runtime configuration read from the environment (and backend .env via python-dotenv)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from models.verdict import FLAG_CATEGORIES, FLAG_THRESHOLD, REJECT_CATEGORIES, REJECT_THRESHOLD

DEFAULT_S3_BUCKET = "moderation-staging"
DEFAULT_GCS_BUCKET = "video-delivery"
DEFAULT_QDRANT_COLLECTION = "videos"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class ModerationPolicy:
    reject_threshold: float = REJECT_THRESHOLD
    flag_threshold: float = FLAG_THRESHOLD
    reject_categories: tuple[str, ...] = tuple(REJECT_CATEGORIES)
    flag_categories: tuple[str, ...] = tuple(FLAG_CATEGORIES)

    def __post_init__(self) -> None:
        if not 0.0 <= self.flag_threshold <= self.reject_threshold <= 1.0:
            raise ValueError(
                "thresholds must satisfy 0 <= flag_threshold <= reject_threshold <= 1 "
                f"(got flag={self.flag_threshold}, reject={self.reject_threshold})"
            )


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = ""
    jwt_expiration_seconds: int = 7 * 24 * 3600
    aws_region: str = "ap-southeast-2"
    s3_bucket: str = DEFAULT_S3_BUCKET
    gcs_bucket: str = DEFAULT_GCS_BUCKET
    delivery_url_expiration_seconds: int = 48 * 3600
    qdrant_url: str = ""
    qdrant_api_key: str = ""
    qdrant_collection: str = DEFAULT_QDRANT_COLLECTION
    embedding_dimensions: int = 128
    poll_interval_seconds: float = 30.0
    batch_size: int = 10
    item_delay_seconds: float = 1.0
    max_pending_seconds: float = 0.0          # 0 disables the stale-job escalation
    poller_enabled: bool = True
    policy: ModerationPolicy = field(default_factory=ModerationPolicy)

    @classmethod
    def from_env(cls) -> Settings:
        policy = ModerationPolicy(
            reject_threshold=_env_float("MODERATION_REJECT_THRESHOLD", REJECT_THRESHOLD),
            flag_threshold=_env_float("MODERATION_FLAG_THRESHOLD", FLAG_THRESHOLD),
            reject_categories=tuple(_env_list("MODERATION_REJECT_CATEGORIES", REJECT_CATEGORIES)),
            flag_categories=tuple(_env_list("MODERATION_FLAG_CATEGORIES", FLAG_CATEGORIES)),
        )
        settings = cls(
            jwt_secret=_env_str("JWT_SECRET"),
            jwt_expiration_seconds=_env_int("JWT_EXPIRATION_SECONDS", cls.jwt_expiration_seconds),
            aws_region=_env_str("AWS_REGION", cls.aws_region),
            s3_bucket=_env_str("AWS_S3_BUCKET", DEFAULT_S3_BUCKET),
            gcs_bucket=_env_str("GCS_BUCKET", DEFAULT_GCS_BUCKET),
            delivery_url_expiration_seconds=_env_int(
                "DELIVERY_URL_EXPIRATION_SECONDS", cls.delivery_url_expiration_seconds
            ),
            qdrant_url=_env_str("QDRANT_URL"),
            qdrant_api_key=_env_str("QDRANT_API_KEY"),
            qdrant_collection=_env_str("QDRANT_COLLECTION", DEFAULT_QDRANT_COLLECTION),
            embedding_dimensions=_env_int("EMBEDDING_DIMENSIONS", cls.embedding_dimensions),
            poll_interval_seconds=_env_float("MODERATION_POLL_INTERVAL_SECONDS", cls.poll_interval_seconds),
            batch_size=_env_int("MODERATION_BATCH_SIZE", cls.batch_size),
            item_delay_seconds=_env_float("MODERATION_ITEM_DELAY_SECONDS", cls.item_delay_seconds),
            max_pending_seconds=_env_float("MODERATION_MAX_PENDING_SECONDS", cls.max_pending_seconds),
            poller_enabled=_env_bool("MODERATION_POLLER_ENABLED", cls.poller_enabled),
            policy=policy,
        )
        if settings.embedding_dimensions <= 0:
            raise ValueError("EMBEDDING_DIMENSIONS must be positive")
        if settings.batch_size <= 0:
            raise ValueError("MODERATION_BATCH_SIZE must be positive")
        return settings
