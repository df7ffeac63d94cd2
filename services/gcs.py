"""GCS delivery storage: private uploads, temporary signed URLs, and promotion to public."""

import os
from datetime import datetime, timedelta, timezone

DEFAULT_BUCKET = "video-delivery"
TEMPORARY_URL_EXPIRATION_SECONDS = 48 * 3600  # 48 hours


def get_bucket_name() -> str:
    """Delivery bucket from GCS_BUCKET, else the default."""
    return os.environ.get("GCS_BUCKET", "").strip() or DEFAULT_BUCKET


def _blob(blob_name: str, bucket_name: str | None):
    from google.cloud import storage

    client = storage.Client()
    return client.bucket(bucket_name or get_bucket_name()).blob(blob_name)


def upload_blob(
    blob_name: str,
    data: bytes,
    *,
    content_type: str = "video/mp4",
    bucket_name: str | None = None,
) -> str:
    """
    Copy an upload into delivery storage, still private, and return its
    publication id (the object name).

    Nothing is readable without a signed URL until moderation approves the
    video and make_public() runs.
    """
    _blob(blob_name, bucket_name).upload_from_string(data, content_type=content_type)
    return blob_name


def generate_signed_url(
    blob_name: str,
    *,
    bucket_name: str | None = None,
    expiration_seconds: int = TEMPORARY_URL_EXPIRATION_SECONDS,
    method: str = "GET",
) -> str:
    """
    Temporary delivery URL for a video that has not been approved yet.

    V4 signature, default credentials (GOOGLE_APPLICATION_CREDENTIALS or
    ADC). The owner can play the video back through it while moderation is
    pending; after approval the public URL replaces it.
    """
    expiration = datetime.now(timezone.utc) + timedelta(seconds=expiration_seconds)
    return _blob(blob_name, bucket_name).generate_signed_url(
        expiration=expiration,
        method=method,
        version="v4",
    )


def make_public(blob_name: str, *, bucket_name: str | None = None) -> str:
    """
    Grant public read on an approved video and return its public URL.

    Requires a bucket without uniform bucket-level access; the google client
    raises if the ACL update is refused.
    """
    blob = _blob(blob_name, bucket_name)
    blob.make_public()
    return blob.public_url


def delete_blob(blob_name: str, *, bucket_name: str | None = None) -> None:
    """Remove a video's delivery object (rolled-back upload or deleted video)."""
    _blob(blob_name, bucket_name).delete()
