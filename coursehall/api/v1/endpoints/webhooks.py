"""
Webhook Routes

Receives Mux video webhooks and feeds them to the video state machine.

Every delivery that passes the signature check is acknowledged with
200. Unknown event types, malformed payloads and processing failures
are logged and dropped.

A rejected signature gets 401, which Mux treats as a failed delivery and
retries with backoff, so a wrong MUX_WEBHOOK_SECRET shows up as a stream
of repeated rejections in the logs.
"""

import json
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Header, HTTPException, Request, status
from pydantic import ValidationError

from coursehall.api.deps import DbSession, Mux
from coursehall.schemas.webhook import HANDLED_EVENT_TYPES, mux_webhook_adapter
from coursehall.services import video_service

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/mux",
    summary="Mux webhook receiver",
)
async def mux_webhook(
    request: Request,
    db: DbSession,
    mux: Mux,
    mux_signature: Annotated[Optional[str], Header(alias="Mux-Signature")] = None,
) -> dict:
    """
    Apply a Mux video event to the matching lesson.

    Raises:
        HTTPException: 401 if signature verification is enabled and the
            ``Mux-Signature`` header does not match.
    """
    body = await request.body()

    if mux.webhook_verification_enabled and not mux.verify_webhook_signature(body, mux_signature):
        logger.warning("Rejected Mux webhook with invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    try:
        payload = json.loads(body)
    except ValueError:
        logger.warning("Ignoring Mux webhook with non-JSON body")
        return {"received": True}

    event_type = payload.get("type") if isinstance(payload, dict) else None
    if event_type not in HANDLED_EVENT_TYPES:
        logger.debug("Ignoring Mux webhook of type %s", event_type)
        return {"received": True}

    try:
        event = mux_webhook_adapter.validate_python(payload)
    except ValidationError as e:
        logger.warning("Ignoring malformed %s webhook: %s", event_type, e)
        return {"received": True}

    try:
        await video_service.handle_webhook(event, db, mux)
    except Exception:
        logger.exception("Failed to process %s webhook", event_type)
        await db.rollback()

    return {"received": True}
