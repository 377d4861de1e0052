# lawrepo/api/v1/endpoints/mux_webhook.py
import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from lawrepo.core.config import settings
from lawrepo.db.session import get_db
from lawrepo.services import mux_webhook_service
from lawrepo.services.mux_webhook_service import WebhookSignatureError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mux", tags=["mux"])


@router.post("/webhook")
async def receive_webhook(request: Request, db: Session = Depends(get_db)):
    raw_body = await request.body()
    signature = request.headers.get("mux-signature")

    if signature:
        try:
            mux_webhook_service.verify_signature(raw_body, signature, settings.MUX_WEBHOOK_SECRET)
        except WebhookSignatureError as e:
            logger.warning(f"Rejected Mux webhook: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid webhook signature",
            )
    else:
        logger.warning("Mux webhook without signature, verification skipped")

    try:
        payload = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

    result = await run_in_threadpool(mux_webhook_service.process_event, db, payload)

    body = {
        "success": result["success"],
        "action": result["action"],
        "processingTime": result["processingTime"],
    }
    if result["success"]:
        return body

    body["error"] = result.get("error")
    code = (
        status.HTTP_404_NOT_FOUND
        if result["action"].endswith("_video_not_found")
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(status_code=code, content=body)


@router.get("/webhook")
def webhook_status(challenge: str | None = None):
    if challenge:
        return PlainTextResponse(challenge)
    return {
        "status": "active",
        "endpoint": "/api/mux/webhook",
        "methods": ["POST"],
        "signatureVerification": bool(settings.MUX_WEBHOOK_SECRET),
        "lastChecked": datetime.now(timezone.utc).isoformat(),
    }
