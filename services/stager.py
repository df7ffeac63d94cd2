"""Private S3 staging for raw uploads; Rekognition Video reads its input from here."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from services.errors import StagingError

logger = logging.getLogger(__name__)


class S3ObjectStager:
    def __init__(self, *, bucket: str, region: str, client: Any | None = None) -> None:
        self._bucket = bucket
        self._region = region
        self._client = client

    @property
    def bucket(self) -> str:
        return self._bucket

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    def put(self, data: bytes, content_type: str, key: str) -> str:
        """Store bytes privately (no ACL) and return the storage key."""
        if not data:
            raise StagingError("refusing to stage an empty upload")
        try:
            self._ensure_client().put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("[stager] put failed bucket=%s key=%s: %s", self._bucket, key, exc)
            raise StagingError(f"could not stage {key}: {exc}") from exc
        logger.info("[stager] Staged %d bytes to s3://%s/%s", len(data), self._bucket, key)
        return key

    def delete(self, key: str) -> None:
        self._ensure_client().delete_object(Bucket=self._bucket, Key=key)
        logger.info("[stager] Deleted s3://%s/%s", self._bucket, key)
