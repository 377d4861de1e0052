"""
Tests for Mux direct uploads: creating the upload URL and polling its status.
"""

import json

import httpx

from lawrepo.services import mux_webhook_service

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def upload_api(upload=None, asset=None, asset_status=200):
    """Handler answering /uploads and /assets calls with canned Mux objects."""
    seen = []

    def handler(request: httpx.Request):
        seen.append((request.method, request.url.path, request.content))
        if request.url.path.startswith("/video/v1/uploads"):
            if upload is None:
                return httpx.Response(404, json={"error": {"type": "not_found"}})
            return httpx.Response(201 if request.method == "POST" else 200, json={"data": upload})
        if asset_status != 200:
            return httpx.Response(asset_status, json={"error": {"type": "server_error"}})
        return httpx.Response(200, json={"data": asset or {}})

    handler.seen = seen
    return handler


class TestCreateUpload:
    def test_requires_video_id(self, client, mux_api):
        response = client.post("/api/mux/create-upload", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required videoId"}

    def test_unknown_video(self, client, mux_api):
        response = client.post("/api/mux/create-upload", json={"videoId": MISSING_ID})
        assert response.status_code == 404

    def test_mux_not_configured(self, client, video):
        response = client.post("/api/mux/create-upload", json={"videoId": str(video.id)})
        assert response.status_code == 500
        assert response.json()["error"] == "Mux is not configured"

    def test_creates_upload_bound_to_video(self, client, db_session, video, mux_api):
        handler = upload_api(upload={"id": "up-1", "url": "https://storage.mux.com/up-1", "status": "waiting"})
        mux_api(handler)

        response = client.post(
            "/api/mux/create-upload",
            json={"videoId": str(video.id), "corsOrigin": "https://repo.law.edu", "mp4Support": "standard"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["uploadId"] == "up-1"
        assert body["endpoint"] == "https://storage.mux.com/up-1"

        method, path, content = handler.seen[0]
        assert (method, path) == ("POST", "/video/v1/uploads")
        sent = json.loads(content)
        assert sent["new_asset_settings"]["passthrough"] == str(video.id)
        assert sent["new_asset_settings"]["mp4_support"] == "standard"
        assert sent["cors_origin"] == "https://repo.law.edu"

        db_session.refresh(video)
        assert video.mux_upload_id == "up-1"
        assert video.mux_status == "waiting_for_upload"

    def test_mux_failure_leaves_video_untouched(self, client, db_session, video, mux_api):
        mux_api(lambda request: httpx.Response(401, json={"error": {"type": "unauthorized"}}))

        response = client.post("/api/mux/create-upload", json={"videoId": str(video.id)})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to create Mux upload"
        db_session.refresh(video)
        assert video.mux_upload_id is None

    def test_upload_without_url_is_an_error(self, client, db_session, video, mux_api):
        mux_api(upload_api(upload={"id": "up-2", "status": "waiting"}))
        response = client.post("/api/mux/create-upload", json={"videoId": str(video.id)})
        assert response.status_code == 500
        db_session.refresh(video)
        assert video.mux_upload_id is None

    def test_webhook_completes_direct_upload(self, client, db_session, video, mux_api):
        mux_api(upload_api(upload={"id": "up-3", "url": "https://storage.mux.com/up-3", "status": "waiting"}))
        client.post("/api/mux/create-upload", json={"videoId": str(video.id)})

        event = {
            "type": "video.upload.asset_created",
            "object": {"type": "upload", "id": "up-3"},
            "data": {"id": "up-3", "asset_id": "asset-3", "passthrough": str(video.id)},
        }
        result = mux_webhook_service.process_event(db_session, event)

        assert result["success"] is True
        db_session.refresh(video)
        assert video.mux_upload_id == "up-3"
        assert video.mux_asset_id == "asset-3"
        assert video.mux_status == "preparing"


class TestUploadStatus:
    def test_mux_not_configured(self, client):
        assert client.get("/api/mux/upload-status/up-1").status_code == 500

    def test_waiting_for_upload(self, client, mux_api):
        mux_api(upload_api(upload={"id": "up-1", "status": "waiting"}))

        body = client.get("/api/mux/upload-status/up-1").json()

        assert body["success"] is True
        assert body["status"]["status"] == "waiting_for_upload"
        assert body["status"]["assetId"] is None
        assert body["urls"] == {}
        assert body["message"] == "Upload status: waiting_for_upload"

    def test_ready_asset_includes_playback_urls(self, client, mux_api):
        mux_api(
            upload_api(
                upload={"id": "up-1", "status": "asset_created", "asset_id": "asset-1"},
                asset={"id": "asset-1", "status": "ready", "playback_ids": [{"id": "pb-1"}]},
            )
        )

        body = client.get("/api/mux/upload-status/up-1").json()

        assert body["status"] == {
            "uploadId": "up-1",
            "status": "ready",
            "assetId": "asset-1",
            "playbackId": "pb-1",
            "error": None,
        }
        assert body["urls"]["streaming"] == "https://stream.mux.com/pb-1.m3u8"
        assert body["urls"]["thumbnail"] == "https://image.mux.com/pb-1/thumbnail.jpg?time=10"
        assert body["urls"]["thumbnails"]["small"].endswith("&width=320&height=180")
        assert body["urls"]["mp4"]["low"] == "https://stream.mux.com/pb-1/low.mp4"

    def test_preparing_asset(self, client, mux_api):
        mux_api(
            upload_api(
                upload={"id": "up-1", "status": "asset_created", "asset_id": "asset-1"},
                asset={"id": "asset-1", "status": "preparing"},
            )
        )
        body = client.get("/api/mux/upload-status/up-1").json()
        assert body["status"]["status"] == "preparing"
        assert body["urls"] == {}

    def test_asset_lookup_failure_keeps_upload_status(self, client, mux_api):
        mux_api(
            upload_api(
                upload={"id": "up-1", "status": "asset_created", "asset_id": "asset-1"},
                asset_status=500,
            )
        )
        body = client.get("/api/mux/upload-status/up-1").json()
        assert body["status"]["status"] == "asset_created"
        assert body["status"]["assetId"] == "asset-1"

    def test_errored_upload(self, client, mux_api):
        mux_api(
            upload_api(
                upload={"id": "up-1", "status": "errored", "error": {"type": "invalid_input", "message": "bad file"}}
            )
        )
        body = client.get("/api/mux/upload-status/up-1").json()
        assert body["status"]["status"] == "errored"
        assert body["status"]["error"] == "bad file"

    def test_unknown_upload(self, client, mux_api):
        mux_api(upload_api(upload=None))
        response = client.get("/api/mux/upload-status/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Upload not found"}
