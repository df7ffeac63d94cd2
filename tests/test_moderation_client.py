from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from services.errors import SubmissionError
from services.moderation_client import (
    FAILED,
    IN_PROGRESS,
    SUCCEEDED,
    RekognitionModerationClient,
    parse_moderation_label,
)


def _client(mock: MagicMock) -> RekognitionModerationClient:
    return RekognitionModerationClient(bucket="staging", region="ap-southeast-2", client=mock)


def _label(name: str, confidence: float, parent: str = "") -> dict:
    return {"Timestamp": 0, "ModerationLabel": {"Name": name, "ParentName": parent, "Confidence": confidence}}


def test_start_job_points_at_staged_object() -> None:
    mock = MagicMock()
    mock.start_content_moderation.return_value = {"JobId": "job-123"}

    assert _client(mock).start_job("u1/vid.mp4") == "job-123"
    mock.start_content_moderation.assert_called_once_with(
        Video={"S3Object": {"Bucket": "staging", "Name": "u1/vid.mp4"}},
        MinConfidence=50.0,
    )


def test_start_job_wraps_service_errors() -> None:
    mock = MagicMock()
    mock.start_content_moderation.side_effect = ClientError(
        {"Error": {"Code": "AccessDeniedException", "Message": "denied"}},
        "StartContentModeration",
    )
    with pytest.raises(SubmissionError):
        _client(mock).start_job("u1/vid.mp4")


def test_start_job_without_job_id_raises() -> None:
    mock = MagicMock()
    mock.start_content_moderation.return_value = {}
    with pytest.raises(SubmissionError):
        _client(mock).start_job("u1/vid.mp4")


def test_in_progress_status() -> None:
    mock = MagicMock()
    mock.get_content_moderation.return_value = {"JobStatus": "IN_PROGRESS"}

    status = _client(mock).get_job_status("job-1")

    assert status.status == IN_PROGRESS
    assert status.labels == []
    mock.get_content_moderation.assert_called_once_with(JobId="job-1", SortBy="TIMESTAMP")


def test_failed_status_carries_message() -> None:
    mock = MagicMock()
    mock.get_content_moderation.return_value = {"JobStatus": "FAILED", "StatusMessage": "Unsupported codec"}

    status = _client(mock).get_job_status("job-1")

    assert status.status == FAILED
    assert status.status_message == "Unsupported codec"


def test_succeeded_collects_labels_across_pages() -> None:
    mock = MagicMock()
    mock.get_content_moderation.side_effect = [
        {
            "JobStatus": "SUCCEEDED",
            "ModerationLabels": [_label("Alcohol", 61.5, "Alcohol")],
            "NextToken": "page-2",
            "VideoMetadata": {"DurationMillis": 1000},
        },
        {
            "JobStatus": "SUCCEEDED",
            "ModerationLabels": [_label("Smoking", 80.0, "Tobacco")],
            "VideoMetadata": {"DurationMillis": 1000, "Format": "QuickTime / MOV"},
        },
    ]

    status = _client(mock).get_job_status("job-1")

    assert status.status == SUCCEEDED
    assert [(l.name, l.parent_category) for l in status.labels] == [("Alcohol", "Alcohol"), ("Smoking", "Tobacco")]
    assert status.labels[0].confidence == pytest.approx(0.615)
    assert status.video_metadata == {"DurationMillis": 1000, "Format": "QuickTime / MOV"}
    second_call = mock.get_content_moderation.call_args_list[1]
    assert second_call.kwargs == {"JobId": "job-1", "SortBy": "TIMESTAMP", "NextToken": "page-2"}


def test_parse_moderation_label_normalises_and_clamps() -> None:
    assert parse_moderation_label(_label("Violence", 100.0)).confidence == 1.0
    assert parse_moderation_label(_label("Violence", 150.0)).confidence == 1.0
    missing = parse_moderation_label({})
    assert missing.name == ""
    assert missing.confidence == 0.0
