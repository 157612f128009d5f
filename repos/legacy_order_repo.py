# repos/legacy_order_repo.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import LegacyOrder


class LegacyOrderRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, client_name: str, total_amount, services=None,
                     client_phone: str | None = None,
                     notes: str | None = None) -> LegacyOrder:
        order = LegacyOrder(client_name=client_name or "Cliente não informado",
                            client_phone=client_phone,
                            services=list(services or []),
                            total_amount=Decimal(str(total_amount)),
                            notes=notes,
                            status="pendente")
        self.session.add(order)
        await self.session.commit()
        await self.session.refresh(order)
        return order

    async def get(self, order_id: int):
        return await self.session.get(LegacyOrder, order_id)

    async def list_orders(self, status: str | None = None, limit: int = 50,
                          offset: int = 0):
        stmt = select(LegacyOrder)
        if status:
            stmt = stmt.where(LegacyOrder.status == status)
        stmt = stmt.order_by(LegacyOrder.created_at.desc(),
                             LegacyOrder.id.desc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def set_pdf_path(self, order: LegacyOrder, pdf_path: str):
        order.pdf_path = pdf_path
        await self.session.commit()

    async def update_status(self, order: LegacyOrder, status: str):
        order.status = status
        await self.session.commit()
        await self.session.refresh(order)
        return order

    async def balance_since(self, since: datetime) -> Decimal:
        """Sum of total_amount for orders created at or after `since`."""
        stmt = select(func.coalesce(func.sum(LegacyOrder.total_amount),
                                    0)).where(LegacyOrder.created_at >= since)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
