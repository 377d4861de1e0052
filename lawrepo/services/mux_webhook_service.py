# lawrepo/services/mux_webhook_service.py
import hashlib
import hmac
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lawrepo.db.types import is_valid_uuid
from lawrepo.models.mux_webhook_event import MuxWebhookEvent
from lawrepo.services import mux_client, video_service

logger = logging.getLogger(__name__)

SIGNATURE_TOLERANCE_SECONDS = 300


class WebhookSignatureError(Exception):
    pass


def parse_signature_header(header: str) -> tuple[str, str]:
    """
    `t=1700000000,v1=abcdef...` -> ("1700000000", "abcdef...")
    """
    parts: Dict[str, str] = {}
    for element in header.split(","):
        if "=" not in element:
            continue
        key, value = element.split("=", 1)
        parts[key.strip()] = value.strip()
    if "t" not in parts or "v1" not in parts:
        raise WebhookSignatureError("malformed mux-signature header")
    return parts["t"], parts["v1"]


def compute_signature(secret: str, timestamp: str, raw_body: bytes) -> str:
    signed_payload = timestamp.encode("utf-8") + b"." + raw_body
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def verify_signature(
    raw_body: bytes,
    header: str,
    secret: str | None,
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
    now: float | None = None,
) -> None:
    """
    Raise WebhookSignatureError unless `header` signs `raw_body` with `secret`
    and its timestamp is within `tolerance` seconds.
    """
    if not secret:
        raise WebhookSignatureError("MUX_WEBHOOK_SECRET is not configured")

    timestamp, received = parse_signature_header(header)
    try:
        sent_at = int(timestamp)
    except ValueError:
        raise WebhookSignatureError("signature timestamp is not an integer")

    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance:
        raise WebhookSignatureError("signature timestamp outside tolerance")

    expected = compute_signature(secret, timestamp, raw_body)
    if not hmac.compare_digest(expected, received):
        raise WebhookSignatureError("signature mismatch")


def _result(success: bool, action: str, started: float, **extra: Any) -> Dict[str, Any]:
    result = {
        "success": success,
        "action": action,
        "processingTime": int((time.monotonic() - started) * 1000),
    }
    result.update({k: v for k, v in extra.items() if v is not None})
    return result


def _apply(
    db: Session,
    prefix: str,
    video_id: str | None,
    started: float,
    fields: Dict[str, Any],
    status: str | None = None,
) -> Dict[str, Any]:
    if not video_id:
        logger.info(f"Mux {prefix} event without passthrough video id, nothing to update")
        return _result(True, f"{prefix}_no_video_id", started)

    video = video_service.update_mux_asset(db, video_id=video_id, **fields)
    if video is None:
        logger.warning(f"Mux {prefix} event for unknown video {video_id}")
        return _result(
            False,
            f"{prefix}_video_not_found",
            started,
            video_id=video_id,
            error="Video not found in database",
        )
    return _result(True, prefix, started, video_id=video_id, status=status)


def handle_asset_created(db: Session, asset_id: str, video_id: str | None, data: Dict[str, Any], started: float):
    fields = {
        "mux_asset_id": asset_id,
        "mux_status": "preparing",
        "mux_created_at": datetime.now(timezone.utc),
    }
    return _apply(db, "asset_created", video_id, started, fields, status="preparing")


def _duration_seconds(data: Dict[str, Any]) -> Optional[int]:
    duration = data.get("duration")
    if duration is None:
        return None
    try:
        return int(round(float(duration)))
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparseable Mux duration {duration!r}")
        return None


def handle_asset_ready(db: Session, asset_id: str, video_id: str | None, data: Dict[str, Any], started: float):
    playback_id = mux_client.first_playback_id(data)
    thumb = mux_client.thumbnail_url(playback_id) if playback_id else None
    mp4 = None
    if playback_id and data.get("mp4_support") != "none":
        mp4 = mux_client.mp4_url(playback_id)

    fields = {
        "mux_asset_id": asset_id,
        "mux_playback_id": playback_id,
        "mux_status": "ready",
        "mux_thumbnail_url": thumb,
        "mux_streaming_url": mux_client.streaming_url(playback_id) if playback_id else None,
        "mux_mp4_url": mp4,
        "mux_duration_seconds": _duration_seconds(data),
        "mux_aspect_ratio": data.get("aspect_ratio"),
        "mux_ready_at": datetime.now(timezone.utc),
        "thumbnail_path": thumb,
        "thumbnail_method": "mux" if thumb else None,
    }
    return _apply(db, "asset_ready", video_id, started, fields, status="ready")


def handle_asset_errored(db: Session, asset_id: str, video_id: str | None, data: Dict[str, Any], started: float):
    errors = data.get("errors") or {}
    if errors:
        logger.warning(f"Mux asset {asset_id} errored: {errors}")
    return _apply(db, "asset_errored", video_id, started, {"mux_status": "errored"}, status="errored")


def handle_upload_asset_created(db: Session, upload_id: str, video_id: str | None, data: Dict[str, Any], started: float):
    asset_id = data.get("asset_id")
    if not video_id or not asset_id:
        return _result(True, "upload_completed_missing_ids", started)
    fields = {
        "mux_asset_id": asset_id,
        "mux_upload_id": upload_id,
        "mux_status": "preparing",
    }
    return _apply(db, "upload_completed", video_id, started, fields, status="preparing")


def handle_asset_updated(db: Session, asset_id: str, video_id: str | None, data: Dict[str, Any], started: float):
    playback_id = mux_client.first_playback_id(data)
    fields: Dict[str, Any] = {
        "mux_status": data.get("status"),
        "mux_duration_seconds": _duration_seconds(data),
        "mux_aspect_ratio": data.get("aspect_ratio"),
    }
    if playback_id:
        thumb = mux_client.thumbnail_url(playback_id)
        fields.update(
            mux_playback_id=playback_id,
            mux_thumbnail_url=thumb,
            mux_streaming_url=mux_client.streaming_url(playback_id),
            thumbnail_path=thumb,
        )
    return _apply(db, "asset_updated", video_id, started, fields, status=data.get("status"))


HANDLERS: Dict[str, Callable[..., Dict[str, Any]]] = {
    "video.asset.created": handle_asset_created,
    "video.asset.ready": handle_asset_ready,
    "video.asset.errored": handle_asset_errored,
    "video.upload.asset_created": handle_upload_asset_created,
    "video.asset.updated": handle_asset_updated,
}

_ERROR_PREFIX = {
    "video.asset.created": "asset_created",
    "video.asset.ready": "asset_ready",
    "video.asset.errored": "asset_errored",
    "video.upload.asset_created": "upload_completed",
    "video.asset.updated": "asset_updated",
}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def record_event(
    db: Session,
    payload: Dict[str, Any],
    video_id: str | None,
) -> MuxWebhookEvent:
    data = _as_dict(payload.get("data"))
    event_type = str(payload.get("type") or "unknown")
    event = MuxWebhookEvent(
        event_type=event_type,
        mux_asset_id=data.get("asset_id") if event_type.startswith("video.upload") else data.get("id"),
        mux_upload_id=data.get("id") if event_type.startswith("video.upload") else data.get("upload_id"),
        video_id=video_id if is_valid_uuid(video_id) else None,
        event_data=payload,
        processed=False,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def mark_processed(db: Session, event: MuxWebhookEvent) -> None:
    event.processed = True
    event.processed_at = datetime.now(timezone.utc)
    db.add(event)
    db.commit()


def process_event(db: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Dispatch one Mux webhook payload. Never raises for database errors; the
    returned dict carries `success` and an `action` describing what happened.
    """
    started = time.monotonic()
    event_type = str(payload.get("type") or "unknown")
    data = _as_dict(payload.get("data"))
    object_id = _as_dict(payload.get("object")).get("id") or data.get("id")
    video_id = data.get("passthrough") or None
    if video_id is not None and not isinstance(video_id, str):
        video_id = str(video_id)

    logger.info(f"Mux webhook {event_type} for object {object_id} (video {video_id})")

    try:
        event = record_event(db, payload, video_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record Mux webhook event {event_type}: {e}")
        event = None

    handler = HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled Mux webhook event type {event_type}")
        result = _result(True, "unhandled", started)
    else:
        try:
            result = handler(db, object_id, video_id, data, started)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Mux webhook {event_type} failed for video {video_id}: {e}", exc_info=True)
            result = _result(
                False,
                f"{_ERROR_PREFIX[event_type]}_error",
                started,
                video_id=video_id,
                error=str(e),
            )

    if event is not None and result["success"]:
        try:
            mark_processed(db, event)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to mark Mux webhook event {event.id} processed: {e}")

    return result
