# api/leads.py

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from repos.database import AsyncSessionLocal
from modules.leads import LeadService, LeadValidationError
from modules.leads.config import LEADS_RATE_LIMIT, LEADS_RATE_WINDOW_SECONDS, DEFAULT_LIST_LIMIT
from utils.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads", tags=["leads"])

rate_limiter = SlidingWindowRateLimiter(LEADS_RATE_LIMIT, LEADS_RATE_WINDOW_SECONDS)


async def get_session():
    """Database session dependency"""
    async with AsyncSessionLocal() as session:
        yield session


class LeadRequest(BaseModel):
    nome: str | None = None
    email: str | None = None
    telefone: str | None = None
    feedback: str | None = None


@router.post("/cadastrar", status_code=201)
async def register_lead(payload: LeadRequest, request: Request, session=Depends(get_session)):
    """Public landing page endpoint: stores the lead and greets it on WhatsApp"""
    client_ip = request.client.host if request.client else "unknown"
    if not rate_limiter.allow(client_ip):
        logger.warning(f"⚠️ Rate limit exceeded for IP: {client_ip}")
        return JSONResponse(
            {"success": False, "error": "Muitas requisições. Aguarde um momento e tente novamente."},
            status_code=429)

    try:
        return await LeadService(session).register(payload.nome, payload.email,
                                                    payload.telefone, payload.feedback)
    except LeadValidationError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=400)
    except Exception as e:
        logger.error(f"❌ Lead registration failed: {e}", exc_info=True)
        return JSONResponse(
            {"success": False, "error": "Erro ao processar seu cadastro. Tente novamente."},
            status_code=500)


@router.get("/estatisticas")
async def lead_statistics(session=Depends(get_session)):
    try:
        stats = await LeadService(session).statistics()
    except Exception as e:
        logger.error(f"❌ Lead statistics failed: {e}", exc_info=True)
        return JSONResponse({"success": False, "error": "Erro ao buscar estatísticas"}, status_code=500)
    return {"success": True, "estatisticas": stats}


@router.get("/listar")
async def list_leads(status: str | None = None, limite: int = DEFAULT_LIST_LIMIT, offset: int = 0,
                     session=Depends(get_session)):
    try:
        leads = await LeadService(session).list_leads(status, limite, offset)
    except Exception as e:
        logger.error(f"❌ Lead listing failed: {e}", exc_info=True)
        return JSONResponse({"success": False, "error": "Erro ao listar leads"}, status_code=500)
    return {"success": True, "total": len(leads), "leads": leads}
