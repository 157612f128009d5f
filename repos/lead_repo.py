# repos/lead_repo.py

from sqlalchemy import func
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Lead
from utils.clock import utcnow


class LeadRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str):
        stmt = select(Lead).where(Lead.email == email)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def upsert(self, nome: str, email: str, telefone: str | None,
                     feedback: str | None):
        """
        Insert a lead, or refresh an existing one with the same email.
        Phone and feedback keep their stored values when not provided.
        Returns (lead, created).
        """
        lead = await self.get_by_email(email)
        if lead is None:
            lead = Lead(nome=nome,
                        email=email,
                        telefone=telefone,
                        feedback=feedback,
                        origem="landing_page",
                        status="novo")
            self.session.add(lead)
            await self.session.commit()
            await self.session.refresh(lead)
            return lead, True

        lead.nome = nome
        lead.telefone = telefone or lead.telefone
        lead.feedback = feedback or lead.feedback
        await self.session.commit()
        return lead, False

    async def mark_welcomed(self, lead: Lead):
        lead.primeira_mensagem_enviada = True
        lead.data_primeira_mensagem = utcnow()
        lead.status = "contatado"
        await self.session.commit()

    async def stats(self) -> dict:
        total = (await self.session.execute(select(func.count(Lead.id)))).scalar() or 0
        by_status = await self.session.execute(
            select(Lead.status, func.count(Lead.id)).group_by(Lead.status))
        welcomed = (await self.session.execute(
            select(func.count(Lead.id)).where(
                Lead.primeira_mensagem_enviada.is_(True)))).scalar() or 0
        return {
            "total": total,
            "por_status": {status: count for status, count in by_status.all()},
            "mensagem_enviada": welcomed,
        }

    async def list_leads(self, status: str | None = None, limit: int = 50,
                         offset: int = 0):
        stmt = select(Lead)
        if status:
            stmt = stmt.where(Lead.status == status)
        stmt = stmt.order_by(Lead.created_at.desc(), Lead.id.desc()).offset(
            offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()
