from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import json
import logging

from rev.core.config import settings
from rev.core.security import parse_signature_header
from rev.db.session import get_db, get_session_factory
from rev.services.wave_webhook import find_user_for_signature, process_wave_event

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "Wave-Signature"


@router.post("/wave")
async def receive_wave_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Wave event receiver. The signature identifies the account; the event is
    acknowledged immediately and processed after the response.
    """
    raw_body = await request.body()
    header = request.headers.get(SIGNATURE_HEADER)
    if not parse_signature_header(header):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or malformed signature")

    user = await find_user_for_signature(db, header, raw_body)
    if user is None:
        logger.warning("Wave webhook with a signature matching no account")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event payload")

    logger.info(f"Wave webhook {event.get('type')} (id={event.get('id')}) accepted for user {user.id}")
    background_tasks.add_task(process_wave_event, session_factory, user.id, event)
    return {"received": True}


@router.get("/wave")
async def wave_webhook_status():
    return {
        "status": "ok",
        "message": "Wave webhook endpoint is up. Send signed POST requests here.",
        "webhook_url": f"{settings.SERVER_HOST}{settings.API_V1_STR}/webhooks/wave",
    }
