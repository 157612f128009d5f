# api/orders.py

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from repos.database import AsyncSessionLocal
from modules.assistant import LLMError
from modules.assistant.orchestrator import get_llm_client
from services.order_service import OrderService, OrderValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/os", tags=["orders"])


async def get_session():
    """Database session dependency"""
    async with AsyncSessionLocal() as session:
        yield session


class CreateOrderRequest(BaseModel):
    client_name: str | None = None
    client_phone: str | None = None
    services: list[str] | str | None = None
    total_amount: float | None = None
    notes: str | None = None


class OrderFromTextRequest(BaseModel):
    text: str | None = None
    client_phone: str | None = None


class UpdateStatusRequest(BaseModel):
    status: str | None = None


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@router.get("")
async def list_orders(status: str | None = None, limit: int = 50, offset: int = 0,
                      session=Depends(get_session)):
    orders = await OrderService(session).list_orders(status, limit, offset)
    return {"success": True, "data": [order.to_dict() for order in orders]}


@router.get("/{order_id}")
async def get_order(order_id: int, session=Depends(get_session)):
    order = await OrderService(session).get_order(order_id)
    if order is None:
        return _error("OS não encontrada", 404)
    return {"success": True, "data": order.to_dict()}


@router.post("", status_code=201)
async def create_order(payload: CreateOrderRequest, session=Depends(get_session)):
    try:
        order = await OrderService(session).create_order(payload.client_name, payload.total_amount,
                                                         payload.services, payload.client_phone,
                                                         payload.notes)
    except OrderValidationError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error(f"❌ Order creation failed: {e}", exc_info=True)
        return _error("Erro ao criar OS", 500)
    return {"success": True, "data": order.to_dict()}


@router.post("/from-text", status_code=201)
async def create_order_from_text(payload: OrderFromTextRequest, session=Depends(get_session)):
    """Extract client, services and amount from a free-text request, then create the order"""
    if not payload.text or not payload.text.strip():
        return _error("text é obrigatório", 400)

    try:
        extracted = await get_llm_client().extract_order(payload.text)
    except LLMError:
        return _error("Não consegui interpretar a mensagem agora. Tente novamente.", 502)

    if extracted["total_amount"] is None:
        return _error("Não encontrei o valor total na mensagem", 400)

    try:
        order = await OrderService(session).create_order(extracted["client_name"],
                                                         extracted["total_amount"],
                                                         extracted["services"],
                                                         payload.client_phone,
                                                         extracted["notes"] or None)
    except OrderValidationError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error(f"❌ Order creation from text failed: {e}", exc_info=True)
        return _error("Erro ao criar OS", 500)
    return {"success": True, "data": order.to_dict(), "extracted": extracted}


@router.patch("/{order_id}/status")
async def update_order_status(order_id: int, payload: UpdateStatusRequest, session=Depends(get_session)):
    if not payload.status:
        return _error("status é obrigatório", 400)
    try:
        order = await OrderService(session).update_status(order_id, payload.status)
    except OrderValidationError as e:
        return _error(str(e), 400)
    if order is None:
        return _error("OS não encontrada", 404)
    return {"success": True, "data": order.to_dict()}
