"""
Tests for the MediaConvert frame-capture job builder and client.
"""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from lawrepo.services import mediaconvert_client
from lawrepo.services.mediaconvert_client import MediaConvertError


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(
        mediaconvert_client.settings,
        "MEDIACONVERT_ROLE_ARN",
        "arn:aws:iam::123456789012:role/MediaConvert\n",
    )
    monkeypatch.setattr(
        mediaconvert_client.settings,
        "MEDIACONVERT_ENDPOINT",
        "https://abc.mediaconvert.us-east-1.amazonaws.com",
    )


class TestJobDefinition:
    def test_not_configured_by_default(self):
        assert mediaconvert_client.is_configured() is False

    def test_expected_key(self):
        key = mediaconvert_client.expected_thumbnail_key("talk_1700_abc")
        assert key == "thumbnails/talk_1700_abc_thumb_talk_1700_abc.0000001.jpg"

    def test_build_job(self, configured):
        job = mediaconvert_client.build_thumbnail_job(
            "videos/1-a.mp4", "vid-1", "talk_1700_vid-1", metadata={"title": "Torts"}
        )

        assert job["Role"] == "arn:aws:iam::123456789012:role/MediaConvert"
        settings = job["Settings"]
        video_input = settings["Inputs"][0]
        assert video_input["FileInput"] == "s3://test-bucket/videos/1-a.mp4"
        assert video_input["InputClippings"][0]["StartTimecode"] == "00:00:10:00"

        group = settings["OutputGroups"][0]
        destination = group["OutputGroupSettings"]["FileGroupSettings"]["Destination"]
        assert destination == "s3://test-bucket/thumbnails/"
        output = group["Outputs"][0]
        assert output["NameModifier"] == "_thumb_talk_1700_vid-1"
        codec = output["VideoDescription"]["CodecSettings"]
        assert codec["Codec"] == "FRAME_CAPTURE"
        assert codec["FrameCaptureSettings"]["MaxCaptures"] == 1
        assert output["VideoDescription"]["Width"] == 1920

        assert job["UserMetadata"]["video-id"] == "vid-1"
        assert job["UserMetadata"]["thumbnail-basename"] == "talk_1700_vid-1"
        assert job["UserMetadata"]["title"] == "Torts"


class TestClient:
    def test_create_job_requires_role(self):
        with pytest.raises(MediaConvertError):
            mediaconvert_client.create_thumbnail_job("videos/1-a.mp4", "vid-1", "base")

    def test_create_job(self, configured):
        client = MagicMock()
        client.create_job.return_value = {"Job": {"Id": "job-42"}}
        with patch.object(mediaconvert_client, "get_client", return_value=client):
            job_id = mediaconvert_client.create_thumbnail_job("videos/1-a.mp4", "vid-1", "base")

        assert job_id == "job-42"
        assert client.create_job.call_args.kwargs["Settings"]["Inputs"][0]["FileInput"].endswith(
            "videos/1-a.mp4"
        )

    def test_create_job_without_id(self, configured):
        client = MagicMock()
        client.create_job.return_value = {"Job": {}}
        with patch.object(mediaconvert_client, "get_client", return_value=client):
            with pytest.raises(MediaConvertError):
                mediaconvert_client.create_thumbnail_job("videos/1-a.mp4", "vid-1", "base")

    def test_get_job_error(self, configured):
        client = MagicMock()
        client.get_job.side_effect = ClientError(
            {"Error": {"Code": "NotFoundException", "Message": "no job"}}, "GetJob"
        )
        with patch.object(mediaconvert_client, "get_client", return_value=client):
            with pytest.raises(MediaConvertError):
                mediaconvert_client.get_job("job-missing")

    def test_configured_endpoint_skips_discovery(self, configured):
        with patch.object(mediaconvert_client.boto3, "client") as boto_client:
            endpoint = mediaconvert_client.discover_endpoint()
        assert endpoint == "https://abc.mediaconvert.us-east-1.amazonaws.com"
        boto_client.assert_not_called()

    def test_endpoint_discovery_is_cached(self, monkeypatch):
        discovery = MagicMock()
        discovery.describe_endpoints.return_value = {
            "Endpoints": [{"Url": "https://xyz.mediaconvert.us-east-1.amazonaws.com"}]
        }
        with patch.object(mediaconvert_client.boto3, "client", return_value=discovery):
            first = mediaconvert_client.discover_endpoint()
            second = mediaconvert_client.discover_endpoint()
        assert first == second == "https://xyz.mediaconvert.us-east-1.amazonaws.com"
        discovery.describe_endpoints.assert_called_once()
