# modules/leads/lead_service.py - Landing page lead capture

import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

from repos.lead_repo import LeadRepo
from modules.assistant.templates import MessageTemplates
from utils.formatting import only_digits
from utils.messaging import send_message

from .config import (MAX_NAME_LENGTH, MAX_EMAIL_LENGTH, MAX_FEEDBACK_LENGTH,
                     EMAIL_PATTERN, MIN_PHONE_DIGITS, COUNTRY_CODE, DEFAULT_LIST_LIMIT)

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(EMAIL_PATTERN)


class LeadValidationError(Exception):
    """Submitted lead data is unusable; the message is shown to the visitor."""


def validate_lead(nome, email, feedback=None) -> tuple[str, str]:
    """Return the cleaned (name, email) or raise LeadValidationError"""
    if not nome or not email:
        raise LeadValidationError("Nome e email são obrigatórios")
    if len(nome) > MAX_NAME_LENGTH or len(email) > MAX_EMAIL_LENGTH:
        raise LeadValidationError("Nome ou email muito longo")
    if feedback and len(feedback) > MAX_FEEDBACK_LENGTH:
        raise LeadValidationError("Feedback muito longo")

    nome, email = nome.strip(), email.strip().lower()
    if not nome or not _EMAIL_RE.match(email):
        raise LeadValidationError("Email inválido")
    return nome, email


def welcome_number(telefone: str | None) -> str | None:
    digits = only_digits(telefone)
    if len(digits) < MIN_PHONE_DIGITS:
        return None
    return f"{COUNTRY_CODE}{digits}"


class LeadService:

    def __init__(self, session: AsyncSession, gateway=None):
        self.session = session
        self.lead_repo = LeadRepo(session)
        self.gateway = gateway

    async def register(self, nome, email, telefone=None, feedback=None) -> dict:
        """
        Upsert the lead by email and, when it carries a usable phone, send
        the WhatsApp welcome. A failed welcome never fails the registration.
        """
        nome, email = validate_lead(nome, email, feedback)
        logger.info(f"📥 New lead: {nome} <{email}> phone={telefone or '-'}")

        lead, created = await self.lead_repo.upsert(nome, email, telefone or None, feedback or None)

        welcomed = False
        number = welcome_number(telefone)
        if telefone and number is None:
            logger.warning(f"⚠️ Invalid lead phone, welcome not sent: {telefone}")
        elif number:
            welcomed = await send_message(number, MessageTemplates.lead_welcome(nome), self.gateway)
            if welcomed:
                await self.lead_repo.mark_welcomed(lead)

        return {
            "success": True,
            "mensagem": "Cadastro realizado com sucesso!" if created else "Cadastro atualizado com sucesso!",
            "novo_lead": created,
            "mensagem_enviada": welcomed,
            "lead": {"id": lead.id, "nome": nome, "email": email},
        }

    async def statistics(self) -> dict:
        return await self.lead_repo.stats()

    async def list_leads(self, status=None, limit=DEFAULT_LIST_LIMIT, offset=0) -> list[dict]:
        leads = await self.lead_repo.list_leads(status, limit, offset)
        return [lead.to_dict() for lead in leads]
