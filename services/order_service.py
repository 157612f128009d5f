# services/order_service.py

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from repos.legacy_order_repo import LegacyOrderRepo
from modules.documents import PDFGenerator
from utils.clock import as_utc_naive
from utils.formatting import LOCAL_TZ

logger = logging.getLogger(__name__)

ORDER_STATUSES = ("pendente", "em_andamento", "concluida")
BALANCE_PERIODS = ("day", "month")


class OrderValidationError(Exception):
    pass


def period_start(period: str, now: datetime | None = None) -> datetime:
    """Start of the local day or month as naive UTC"""
    if period not in BALANCE_PERIODS:
        raise OrderValidationError("period deve ser day ou month")
    now_local = (now or datetime.now(LOCAL_TZ)).astimezone(LOCAL_TZ)
    start = now_local.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "month":
        start = start.replace(day=1)
    return as_utc_naive(start)


class OrderService:
    """Simple orders behind the REST API, each with a stored PDF"""

    def __init__(self, session: AsyncSession):
        self.repo = LegacyOrderRepo(session)

    async def create_order(self, client_name, total_amount, services=None,
                           client_phone=None, notes=None):
        if not client_name or total_amount is None or total_amount == "":
            raise OrderValidationError("client_name e total_amount são obrigatórios")
        if isinstance(services, str):
            services = [services]

        try:
            amount = Decimal(str(total_amount))
        except ArithmeticError as e:
            raise OrderValidationError("total_amount inválido") from e
        if not amount.is_finite() or amount < 0:
            raise OrderValidationError("total_amount inválido")

        order = await self.repo.create(client_name, amount, services, client_phone, notes)

        path = PDFGenerator.write_pdf(PDFGenerator.from_legacy_order(order))
        await self.repo.set_pdf_path(order, path)
        logger.info(f"✅ Order {order.id} created for {order.client_name} (PDF: {path})")
        return order

    async def get_order(self, order_id: int):
        return await self.repo.get(order_id)

    async def list_orders(self, status=None, limit=50, offset=0):
        return await self.repo.list_orders(status, limit, offset)

    async def update_status(self, order_id: int, status: str):
        """Returns the updated order, or None when it does not exist"""
        if status not in ORDER_STATUSES:
            raise OrderValidationError(f"status deve ser um de: {', '.join(ORDER_STATUSES)}")
        order = await self.repo.get(order_id)
        if order is None:
            return None
        return await self.repo.update_status(order, status)

    async def balance(self, period: str = "day", now: datetime | None = None) -> float:
        since = period_start(period, now)
        return float(await self.repo.balance_since(since))
