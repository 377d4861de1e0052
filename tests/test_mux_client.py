"""
Tests for the Mux REST client, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from lawrepo.services import mux_client
from lawrepo.services.mux_client import MuxAPIError, MuxClient
from tests.utils import make_mux_client


class TestUrlHelpers:
    def test_urls(self):
        assert mux_client.thumbnail_url("pb1") == "https://image.mux.com/pb1/thumbnail.jpg?time=10"
        assert mux_client.thumbnail_url("pb1", 42) == "https://image.mux.com/pb1/thumbnail.jpg?time=42"
        assert mux_client.streaming_url("pb1") == "https://stream.mux.com/pb1.m3u8"
        assert mux_client.mp4_url("pb1") == "https://stream.mux.com/pb1/high.mp4"

    def test_first_playback_id(self):
        assert mux_client.first_playback_id({"playback_ids": [{"id": "a"}, {"id": "b"}]}) == "a"
        assert mux_client.first_playback_id({"playback_ids": []}) is None
        assert mux_client.first_playback_id({}) is None
        assert mux_client.first_playback_id({"playback_ids": "pb1"}) is None
        assert mux_client.first_playback_id({"playback_ids": ["pb1"]}) is None

    def test_not_configured_by_default(self):
        assert mux_client.is_configured() is False
        with pytest.raises(MuxAPIError):
            MuxClient.from_settings()


class TestMuxClient:
    def test_create_asset(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                201, json={"data": {"id": "asset-1", "status": "preparing", "playback_ids": [{"id": "pb1"}]}}
            )

        with make_mux_client(handler) as client:
            asset = client.create_asset_from_url(
                "https://test-bucket.s3.us-east-1.amazonaws.com/videos/1-a.mp4",
                passthrough="vid-1",
            )

        assert asset["id"] == "asset-1"
        assert seen["method"] == "POST"
        assert seen["path"] == "/video/v1/assets"
        assert seen["auth"].startswith("Basic ")
        assert seen["body"]["input"] == [{"url": "https://test-bucket.s3.us-east-1.amazonaws.com/videos/1-a.mp4"}]
        assert seen["body"]["passthrough"] == "vid-1"
        assert seen["body"]["playback_policy"] == ["public"]
        assert "mp4_support" not in seen["body"]

    def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"type": "unauthorized"}})

        with make_mux_client(handler) as client:
            with pytest.raises(MuxAPIError) as excinfo:
                client.get_asset("asset-1")
        assert excinfo.value.status_code == 401
        assert "unauthorized" in excinfo.value.response_body

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with make_mux_client(handler) as client:
            with pytest.raises(MuxAPIError):
                client.get_asset("asset-1")

    def test_delete_asset(self):
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path))
            return httpx.Response(204)

        with make_mux_client(handler) as client:
            client.delete_asset("asset-1")
        assert calls == [("DELETE", "/video/v1/assets/asset-1")]

    def test_non_json_body_raises(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        with make_mux_client(handler) as client:
            with pytest.raises(MuxAPIError) as excinfo:
                client.create_asset_from_url("https://example.com/v.mp4")
        assert excinfo.value.status_code == 200
        assert excinfo.value.response_body == "<html>gateway</html>"

    def test_create_direct_upload(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                201,
                json={"data": {"id": "up-1", "url": "https://storage.mux.com/up-1", "status": "waiting"}},
            )

        with make_mux_client(handler) as client:
            upload = client.create_direct_upload(passthrough="vid-1", mp4_support="standard")

        assert upload["id"] == "up-1"
        assert seen["path"] == "/video/v1/uploads"
        assert seen["body"]["new_asset_settings"] == {
            "playback_policy": ["public"],
            "passthrough": "vid-1",
            "mp4_support": "standard",
        }
        assert seen["body"]["cors_origin"] == "*"
        assert seen["body"]["timeout"] == 3600

    def test_get_upload(self):
        def handler(request):
            assert request.url.path == "/video/v1/uploads/up-1"
            return httpx.Response(200, json={"data": {"id": "up-1", "status": "asset_created", "asset_id": "a-1"}})

        with make_mux_client(handler) as client:
            assert client.get_upload("up-1")["asset_id"] == "a-1"
