# lawrepo/services/mux_client.py
"""
Small synchronous client for the Mux Video REST API.

Only the calls the repository needs: assets created from files we already
host on S3, plus direct uploads from the browser.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from lawrepo.core.config import settings
from lawrepo.services.storage_service import sanitize_credential

logger = logging.getLogger(__name__)

IMAGE_BASE = "https://image.mux.com"
STREAM_BASE = "https://stream.mux.com"
DEFAULT_THUMBNAIL_TIME = 10
DIRECT_UPLOAD_TIMEOUT_SECONDS = 3600


class MuxAPIError(Exception):
    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


def thumbnail_url(playback_id: str, time: int | float = DEFAULT_THUMBNAIL_TIME) -> str:
    return f"{IMAGE_BASE}/{playback_id}/thumbnail.jpg?time={time}"


def streaming_url(playback_id: str) -> str:
    return f"{STREAM_BASE}/{playback_id}.m3u8"


def mp4_url(playback_id: str) -> str:
    return f"{STREAM_BASE}/{playback_id}/high.mp4"


def first_playback_id(asset: Dict[str, Any]) -> str | None:
    playback_ids = asset.get("playback_ids") or []
    if not isinstance(playback_ids, list) or not playback_ids:
        return None
    first = playback_ids[0]
    return first.get("id") if isinstance(first, dict) else None


def is_configured() -> bool:
    return bool(
        sanitize_credential(settings.MUX_TOKEN_ID)
        and sanitize_credential(settings.MUX_TOKEN_SECRET)
    )


class MuxClient:
    """HTTP client for https://api.mux.com/video/v1."""

    def __init__(
        self,
        token_id: str,
        token_secret: str,
        api_url: str = "https://api.mux.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._client = httpx.Client(
            base_url=f"{self.api_url}/video/v1",
            auth=(token_id, token_secret),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls) -> "MuxClient":
        token_id = sanitize_credential(settings.MUX_TOKEN_ID)
        token_secret = sanitize_credential(settings.MUX_TOKEN_SECRET)
        if not token_id or not token_secret:
            raise MuxAPIError("Mux credentials not configured (MUX_TOKEN_ID / MUX_TOKEN_SECRET)")
        return cls(token_id, token_secret, api_url=settings.MUX_API_URL)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "MuxClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise MuxAPIError(f"Mux request {method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise MuxAPIError(
                f"Mux API returned {response.status_code} for {method} {path}",
                status_code=response.status_code,
                response_body=response.text,
            )
        if response.status_code == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise MuxAPIError(
                f"Mux API returned a non-JSON body for {method} {path}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e
        if not isinstance(body, dict):
            raise MuxAPIError(
                f"Mux API returned an unexpected body for {method} {path}",
                status_code=response.status_code,
                response_body=response.text,
            )
        return body.get("data") or {}

    def create_asset_from_url(
        self,
        input_url: str,
        *,
        passthrough: str | None = None,
        playback_policy: str = "public",
        mp4_support: str = "none",
        normalize_audio: bool = True,
        test: bool = False,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "input": [{"url": input_url}],
            "playback_policy": [playback_policy],
            "normalize_audio": normalize_audio,
            "test": test,
        }
        if passthrough:
            payload["passthrough"] = passthrough
        if mp4_support and mp4_support != "none":
            payload["mp4_support"] = mp4_support

        logger.debug(f"Creating Mux asset: url={input_url} passthrough={passthrough}")
        asset = self._request("POST", "/assets", json=payload)
        logger.info(f"Created Mux asset: id={asset.get('id')} status={asset.get('status')}")
        return asset

    def get_asset(self, asset_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/assets/{asset_id}")

    def delete_asset(self, asset_id: str) -> None:
        self._request("DELETE", f"/assets/{asset_id}")
        logger.info(f"Deleted Mux asset: id={asset_id}")

    def create_direct_upload(
        self,
        *,
        passthrough: str,
        cors_origin: str = "*",
        playback_policy: str = "public",
        mp4_support: str = "none",
        timeout: int = DIRECT_UPLOAD_TIMEOUT_SECONDS,
        test: bool = False,
    ) -> Dict[str, Any]:
        """
        Create a direct upload URL the browser can PUT the file to. The asset
        Mux creates from it carries `passthrough`, so webhooks find the video.
        """
        new_asset_settings: Dict[str, Any] = {
            "playback_policy": [playback_policy],
            "passthrough": passthrough,
        }
        if mp4_support and mp4_support != "none":
            new_asset_settings["mp4_support"] = mp4_support

        payload = {
            "new_asset_settings": new_asset_settings,
            "cors_origin": cors_origin,
            "timeout": timeout,
            "test": test,
        }
        upload = self._request("POST", "/uploads", json=payload)
        logger.info(f"Created Mux direct upload: id={upload.get('id')} passthrough={passthrough}")
        return upload

    def get_upload(self, upload_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/uploads/{upload_id}")
