# api/webhooks.py

import logging
import secrets

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from modules.assistant import conversation_store
from modules.messaging.config import webhook_api_key
from modules.messaging.webhook_handler import process_webhook_event
from modules.messaging.webhook_normalizer import (InvalidPayloadError, extract_api_key,
                                                  parse_envelope)
from utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])


class ClearHistoryRequest(BaseModel):
    userPhone: str | None = None
    chatId: str | None = None


@router.get("/health")
def webhook_health():
    return {"status": "ok", "service": "webhook", "timestamp": utcnow().isoformat() + "Z"}


@router.post("/clear-history")
def clear_history(payload: ClearHistoryRequest):
    """Forget the in-memory history of one conversation"""
    if not payload.userPhone or not payload.chatId:
        return JSONResponse({"success": False, "error": "userPhone e chatId são obrigatórios"},
                            status_code=400)

    cleared = conversation_store.clear((payload.userPhone, payload.chatId))
    logger.info(f"🧹 History cleared for {payload.userPhone} ({payload.chatId}): {cleared}")
    return {"success": True, "cleared": cleared}


@router.post("")
async def evolution_webhook(request: Request, background_tasks: BackgroundTasks):
    return await _receive(request, background_tasks)


@router.post("/{event_path:path}")
async def evolution_webhook_event(event_path: str, request: Request,
                                  background_tasks: BackgroundTasks):
    return await _receive(request, background_tasks, event_path)


async def _receive(request: Request, background_tasks: BackgroundTasks,
                   event_path: str | None = None):
    """
    Evolution API webhook. Authenticates, normalizes the envelope and
    acknowledges at once; messages are processed in the background so
    business errors never trigger provider retries.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    expected = webhook_api_key()
    if expected:
        provided = extract_api_key(request.headers, body) or ""
        if not secrets.compare_digest(provided.encode(), expected.encode()):
            logger.warning(f"⚠️ Unauthorized webhook call from {request.client.host if request.client else '?'}")
            return JSONResponse({"received": False, "message": "Não autorizado"}, status_code=401)

    try:
        envelope = parse_envelope(body, event_path)
    except InvalidPayloadError as e:
        logger.warning(f"⚠️ Invalid webhook payload: {e}")
        return JSONResponse({"received": False, "error": str(e)}, status_code=400)

    try:
        background_tasks.add_task(process_webhook_event, envelope)
    except Exception as e:
        logger.error(f"❌ Webhook dispatch error: {e}", exc_info=True)
        return JSONResponse({"received": False, "error": "Erro interno"}, status_code=500)

    logger.info(f"🚀 Webhook {envelope.event} accepted")
    return {"received": True}
