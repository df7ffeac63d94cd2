"""AWS Rekognition Video content-moderation client (start job / fetch status)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from models.video import ModerationLabel
from services.errors import SubmissionError

logger = logging.getLogger(__name__)

IN_PROGRESS = "IN_PROGRESS"
SUCCEEDED = "SUCCEEDED"
FAILED = "FAILED"


@dataclass
class JobStatus:
    status: str
    labels: list[ModerationLabel] = field(default_factory=list)
    video_metadata: dict[str, Any] | None = None
    status_message: str | None = None


def parse_moderation_label(item: dict[str, Any]) -> ModerationLabel:
    """Convert one Rekognition ModerationLabels entry; confidence 0–100 becomes 0–1."""
    raw = item.get("ModerationLabel") or {}
    confidence = float(raw.get("Confidence") or 0.0) / 100.0
    return ModerationLabel(
        name=raw.get("Name") or "",
        parent_category=raw.get("ParentName") or "",
        confidence=max(0.0, min(confidence, 1.0)),
    )


class RekognitionModerationClient:
    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        client: Any | None = None,
        min_confidence: float = 50.0,
    ) -> None:
        self._bucket = bucket
        self._region = region
        self._client = client
        self._min_confidence = min_confidence

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("rekognition", region_name=self._region)
        return self._client

    def start_job(self, storage_key: str) -> str:
        try:
            response = self._ensure_client().start_content_moderation(
                Video={"S3Object": {"Bucket": self._bucket, "Name": storage_key}},
                MinConfidence=self._min_confidence,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("[rekognition] start_content_moderation failed key=%s: %s", storage_key, exc)
            raise SubmissionError(f"could not start moderation for {storage_key}: {exc}") from exc
        job_id = response.get("JobId")
        if not job_id:
            raise SubmissionError(f"moderation service returned no JobId for {storage_key}")
        logger.info("[rekognition] Content moderation job started: %s (key=%s)", job_id, storage_key)
        return job_id

    def get_job_status(self, job_id: str) -> JobStatus:
        """Fetch job state; on success, collect labels across every result page."""
        client = self._ensure_client()
        labels: list[ModerationLabel] = []
        next_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {"JobId": job_id, "SortBy": "TIMESTAMP"}
            if next_token:
                kwargs["NextToken"] = next_token
            response = client.get_content_moderation(**kwargs)
            status = (response.get("JobStatus") or "").strip().upper()
            if status != SUCCEEDED:
                return JobStatus(
                    status=status or IN_PROGRESS,
                    status_message=response.get("StatusMessage"),
                )
            labels.extend(parse_moderation_label(item) for item in response.get("ModerationLabels") or [])
            next_token = response.get("NextToken")
            if not next_token:
                return JobStatus(
                    status=SUCCEEDED,
                    labels=labels,
                    video_metadata=response.get("VideoMetadata"),
                )
