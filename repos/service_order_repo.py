# repos/service_order_repo.py

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ServiceOrder, ServiceOrderPart, ServiceOrderHistory
from utils.clock import utcnow

logger = logging.getLogger(__name__)

NUMERO_OS_ATTEMPTS = 5
UPDATABLE_FIELDS = ("tecnico_responsavel", "valor_estimado", "valor_final",
                    "data_previsao", "observacoes")


class ServiceOrderRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_numero_os(self, now: datetime | None = None) -> str:
        """
        Next order number for the day: OS-YYYYMMDD-NNNNNN, where NNNNNN is a
        per-day sequence.
        """
        now = now or utcnow()
        prefix = f"OS-{now:%Y%m%d}-"
        stmt = select(func.max(ServiceOrder.numero_os)).where(
            ServiceOrder.numero_os.like(f"{prefix}%"))
        result = await self.session.execute(stmt)
        last = result.scalar()
        sequence = int(last.rsplit("-", 1)[1]) + 1 if last else 1
        return f"{prefix}{sequence:06d}"

    async def create(self, usuario_id: int, **fields) -> ServiceOrder:
        """
        Insert a new order. A concurrent insert can take the same number
        first; the unique constraint rejects ours and the next free number
        is tried.
        """
        for attempt in range(1, NUMERO_OS_ATTEMPTS + 1):
            numero_os = await self.next_numero_os()
            order = ServiceOrder(
                usuario_id=usuario_id,
                numero_os=numero_os,
                status="aberta",
                data_abertura=utcnow(),
                **fields,
            )
            self.session.add(order)
            try:
                await self.session.flush()
                break
            except IntegrityError:
                await self.session.rollback()
                if attempt == NUMERO_OS_ATTEMPTS:
                    raise
                logger.warning(f"⚠️ Order number {numero_os} taken, retrying")

        self.session.add(
            ServiceOrderHistory(ordem_servico_id=order.id,
                                usuario_id=usuario_id,
                                tipo_evento="criacao",
                                descricao=f"OS {order.numero_os} criada",
                                dados_novos={"status": "aberta"}))
        await self.session.commit()
        await self.session.refresh(order)
        return order

    async def get_by_numero(self, usuario_id: int, numero_os: str):
        stmt = select(ServiceOrder).where(
            ServiceOrder.usuario_id == usuario_id,
            ServiceOrder.numero_os == numero_os.strip().upper(),
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_id(self, usuario_id: int, order_id: int):
        stmt = select(ServiceOrder).where(
            ServiceOrder.usuario_id == usuario_id,
            ServiceOrder.id == order_id,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_orders(self,
                          usuario_id: int,
                          status: str | None = None,
                          since: datetime | None = None,
                          limit: int | None = None):
        """Orders of a user, newest first, optionally filtered."""
        stmt = select(ServiceOrder).where(ServiceOrder.usuario_id == usuario_id)
        if status:
            stmt = stmt.where(ServiceOrder.status == status)
        if since:
            stmt = stmt.where(ServiceOrder.data_abertura >= since)
        stmt = stmt.order_by(ServiceOrder.data_abertura.desc(),
                             ServiceOrder.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def search(self, usuario_id: int, termo: str, limit: int = 10):
        """Case-insensitive match on client, title, description and number."""
        pattern = f"%{termo}%"
        stmt = (select(ServiceOrder).where(
            ServiceOrder.usuario_id == usuario_id,
            or_(
                ServiceOrder.cliente_nome.ilike(pattern),
                ServiceOrder.titulo.ilike(pattern),
                ServiceOrder.descricao.ilike(pattern),
                ServiceOrder.numero_os.ilike(pattern),
            )).order_by(ServiceOrder.data_abertura.desc()).limit(limit))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update_status(self,
                            order: ServiceOrder,
                            novo_status: str,
                            observacao: str | None = None) -> str:
        """
        Change the status, stamping data_conclusao when the order is
        concluded, and record the transition in the history table.
        Returns the previous status.
        """
        anterior = order.status
        order.status = novo_status
        if novo_status == "concluida":
            order.data_conclusao = utcnow()
        if observacao:
            order.observacoes = observacao

        self.session.add(
            ServiceOrderHistory(
                ordem_servico_id=order.id,
                usuario_id=order.usuario_id,
                tipo_evento="mudanca_status",
                descricao=f"Status alterado de {anterior} para {novo_status}",
                dados_anteriores={"status": anterior},
                dados_novos={"status": novo_status},
            ))
        await self.session.commit()
        return anterior

    async def update_fields(self, order: ServiceOrder, changes: dict) -> dict:
        """Apply the whitelisted field changes; returns what actually changed."""
        applied = {k: v for k, v in changes.items()
                   if k in UPDATABLE_FIELDS and v is not None}
        if not applied:
            return applied

        anteriores = {k: getattr(order, k) for k in applied}
        for key, value in applied.items():
            setattr(order, key, value)

        self.session.add(
            ServiceOrderHistory(
                ordem_servico_id=order.id,
                usuario_id=order.usuario_id,
                tipo_evento="atualizacao",
                descricao=f"Campos atualizados: {', '.join(applied)}",
                dados_anteriores={k: str(v) if v is not None else None
                                  for k, v in anteriores.items()},
                dados_novos={k: str(v) for k, v in applied.items()},
            ))
        await self.session.commit()
        return applied

    async def add_parts(self, order: ServiceOrder, pecas: list[dict]):
        """Insert parts and add quantity x unit price to valor_pecas."""
        created = []
        total = Decimal("0")
        for peca in pecas:
            quantidade = int(peca.get("quantidade") or 1)
            valor_unitario = Decimal(str(peca.get("valor_unitario") or 0))
            part = ServiceOrderPart(ordem_servico_id=order.id,
                                    descricao=peca["descricao"],
                                    codigo=peca.get("codigo"),
                                    quantidade=quantidade,
                                    valor_unitario=valor_unitario)
            self.session.add(part)
            created.append(part)
            total += quantidade * valor_unitario

        order.valor_pecas = Decimal(str(order.valor_pecas or 0)) + total
        await self.session.commit()
        await self.session.refresh(order, attribute_names=["pecas"])
        return created
