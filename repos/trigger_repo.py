# repos/trigger_repo.py

from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AutomationTrigger
from utils.clock import utcnow


class TriggerRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, usuario_id: int, tipo_evento: str, tipo_acao: str,
                     condicoes: dict | None = None,
                     parametros_acao: dict | None = None) -> AutomationTrigger:
        trigger = AutomationTrigger(usuario_id=usuario_id,
                                    tipo_evento=tipo_evento,
                                    tipo_acao=tipo_acao,
                                    condicoes=condicoes or {},
                                    parametros_acao=parametros_acao or {},
                                    ativo=True)
        self.session.add(trigger)
        await self.session.commit()
        await self.session.refresh(trigger)
        return trigger

    async def get_active(self, usuario_id: int, tipo_evento: str):
        stmt = select(AutomationTrigger).where(
            AutomationTrigger.usuario_id == usuario_id,
            AutomationTrigger.tipo_evento == tipo_evento,
            AutomationTrigger.ativo.is_(True))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def mark_executed(self, trigger: AutomationTrigger):
        trigger.execucoes = (trigger.execucoes or 0) + 1
        trigger.ultima_execucao = utcnow()
        await self.session.commit()
