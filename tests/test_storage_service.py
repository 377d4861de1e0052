"""
Tests for S3 key layout, presigned uploads and multipart uploads.
"""

import pytest
from botocore.exceptions import ClientError

from lawrepo.services import storage_service
from lawrepo.services.storage_service import (
    GB,
    MB,
    StorageError,
    UploadValidationError,
)


class TestKeysAndUrls:
    """Object key generation and URL helpers."""

    def test_video_key_layout(self):
        key = storage_service.generate_video_key("Lecture One.MP4")
        assert key.startswith("videos/")
        assert key.endswith(".mp4")
        stamp, rest = key[len("videos/"):].split("-", 1)
        assert stamp.isdigit()
        assert len(rest.split(".")[0]) == 13

    def test_keys_are_unique(self):
        keys = {storage_service.generate_video_key("a.mov") for _ in range(50)}
        assert len(keys) == 50

    def test_extension_defaults_to_bin(self):
        assert storage_service.file_extension("README") == "bin"

    def test_public_url(self):
        url = storage_service.public_url("videos/1-abc.mp4")
        assert url == "https://test-bucket.s3.us-east-1.amazonaws.com/videos/1-abc.mp4"

    def test_delivery_url_without_cdn_is_public_url(self):
        assert storage_service.cdn_url("thumbnails/x.jpg") is None
        assert storage_service.delivery_url("thumbnails/x.jpg") == storage_service.public_url(
            "thumbnails/x.jpg"
        )

    def test_delivery_url_prefers_cdn(self, monkeypatch):
        monkeypatch.setattr(storage_service.settings, "CLOUDFRONT_DOMAIN", "cdn.example.org")
        assert storage_service.delivery_url("thumbnails/x.jpg") == "https://cdn.example.org/thumbnails/x.jpg"

    def test_key_from_url(self):
        url = storage_service.public_url("thumbnails/abc_client_1.jpg")
        assert storage_service.key_from_url(url) == "thumbnails/abc_client_1.jpg"
        assert storage_service.key_from_url("https://image.mux.com/p/thumbnail.jpg") is None
        assert storage_service.key_from_url("/api/videos/thumbnail/1") is None
        assert storage_service.key_from_url(None) is None

    def test_sanitize_credential_strips_control_characters(self):
        assert storage_service.sanitize_credential(" AKIA\n") == "AKIA"
        assert storage_service.sanitize_credential("ab\tc\r\n") == "abc"
        assert storage_service.sanitize_credential("\n") is None
        assert storage_service.sanitize_credential(None) is None


class TestPresignedUpload:
    """Single-part presigned PUT URLs."""

    def test_presigned_upload(self, s3_client):
        result = storage_service.create_presigned_upload("talk.mp4", "video/mp4", 10 * MB)

        assert result["presignedUrl"] == "https://test-bucket.s3.amazonaws.com/signed"
        assert result["s3Key"].startswith("videos/")
        assert result["publicUrl"].endswith(result["s3Key"])
        assert result["expiresIn"] == 3600

        args, kwargs = s3_client.generate_presigned_url.call_args
        assert args[0] == "put_object"
        params = kwargs["Params"]
        assert params["Bucket"] == "test-bucket"
        assert params["ContentType"] == "video/mp4"
        assert params["Metadata"]["original-filename"] == "talk.mp4"
        assert params["Metadata"]["file-size"] == str(10 * MB)

    def test_video_over_5gb_rejected(self, s3_client):
        with pytest.raises(UploadValidationError):
            storage_service.create_presigned_upload("big.mp4", "video/mp4", 5 * GB + 1)
        s3_client.generate_presigned_url.assert_not_called()

    def test_non_video_over_100mb_rejected(self, s3_client):
        with pytest.raises(UploadValidationError):
            storage_service.create_presigned_upload("notes.pdf", "application/pdf", 100 * MB + 1)

    def test_video_at_limit_allowed(self, s3_client):
        result = storage_service.create_presigned_upload("ok.mp4", "video/mp4", 5 * GB)
        assert result["s3Key"].endswith(".mp4")

    def test_client_error_becomes_storage_error(self, s3_client):
        s3_client.generate_presigned_url.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        with pytest.raises(StorageError):
            storage_service.create_presigned_upload("talk.mp4", "video/mp4")


class TestMultipartUpload:
    """Multipart upload lifecycle."""

    @pytest.mark.parametrize(
        "size,expected",
        [(None, 100 * MB), (500 * MB, 100 * MB), (2 * GB, 500 * MB), (20 * GB, 1 * GB)],
    )
    def test_part_size(self, size, expected):
        assert storage_service.choose_part_size(size) == expected

    def test_init(self, s3_client):
        result = storage_service.init_multipart_upload("long.mp4", "video/mp4", 2 * GB)

        assert result["uploadId"] == "upload-123"
        assert result["partSize"] == 500 * MB
        assert result["totalParts"] == 5
        assert result["cloudFrontUrl"] is None
        kwargs = s3_client.create_multipart_upload.call_args.kwargs
        assert kwargs["Key"] == result["s3Key"]

    def test_init_rejects_over_5tb(self, s3_client):
        with pytest.raises(UploadValidationError):
            storage_service.init_multipart_upload("huge.mp4", "video/mp4", 5 * 1024 * GB + 1)

    def test_init_without_upload_id(self, s3_client):
        s3_client.create_multipart_upload.return_value = {}
        with pytest.raises(StorageError):
            storage_service.init_multipart_upload("long.mp4", "video/mp4")

    def test_presign_part(self, s3_client):
        result = storage_service.presign_upload_part("upload-123", "videos/1-a.mp4", 3)
        assert result == {
            "presignedUrl": "https://test-bucket.s3.amazonaws.com/signed",
            "partNumber": 3,
            "expiresIn": 3600,
        }
        args, kwargs = s3_client.generate_presigned_url.call_args
        assert args[0] == "upload_part"
        assert kwargs["Params"]["PartNumber"] == 3

    def test_complete_sorts_parts(self, s3_client):
        parts = [
            {"partNumber": 2, "etag": '"b"'},
            {"partNumber": 1, "etag": '"a"'},
        ]
        result = storage_service.complete_multipart_upload("upload-123", "videos/1-a.mp4", parts)

        sent = s3_client.complete_multipart_upload.call_args.kwargs["MultipartUpload"]["Parts"]
        assert [p["PartNumber"] for p in sent] == [1, 2]
        assert sent[0]["ETag"] == '"a"'
        assert result["location"] == "https://test-bucket.s3.amazonaws.com/videos/x.mp4"

    def test_abort(self, s3_client):
        storage_service.abort_multipart_upload("upload-123", "videos/1-a.mp4")
        s3_client.abort_multipart_upload.assert_called_once_with(
            Bucket="test-bucket", Key="videos/1-a.mp4", UploadId="upload-123"
        )


class TestServerSideWrites:
    def test_upload_bytes(self, s3_client):
        result = storage_service.upload_bytes(b"jpeg", "thumbnails/a.jpg", "image/jpeg")
        assert result["Key"] == "thumbnails/a.jpg"
        assert result["ETag"] == '"etag-1"'
        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["Body"] == b"jpeg"
        assert kwargs["ContentType"] == "image/jpeg"

    def test_delete_object_failure(self, s3_client):
        s3_client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "gone"}}, "DeleteObject"
        )
        with pytest.raises(StorageError):
            storage_service.delete_object("videos/1-a.mp4")
