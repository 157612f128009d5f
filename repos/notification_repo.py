# repos/notification_repo.py

from datetime import datetime

from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ScheduledNotification


class NotificationRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **fields) -> ScheduledNotification:
        notification = ScheduledNotification(**fields)
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    async def get(self, usuario_id: int, notification_id: int):
        stmt = select(ScheduledNotification).where(
            ScheduledNotification.usuario_id == usuario_id,
            ScheduledNotification.id == notification_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_pending_for_user(self, usuario_id: int, limit: int = 50):
        stmt = (select(ScheduledNotification).where(
            ScheduledNotification.usuario_id == usuario_id,
            ScheduledNotification.status == "pendente").order_by(
                ScheduledNotification.enviar_em).limit(limit))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_due(self, now: datetime, batch_size: int = 50):
        """Pending notifications whose send time has passed, oldest first."""
        stmt = (select(ScheduledNotification).where(
            ScheduledNotification.status == "pendente",
            ScheduledNotification.enviar_em <= now).order_by(
                ScheduledNotification.enviar_em).limit(batch_size))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def save(self):
        await self.session.commit()
