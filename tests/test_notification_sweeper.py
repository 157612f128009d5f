"""Tests for scheduled notification delivery."""

from datetime import timedelta

import pytest
import pytest_asyncio

from modules.messaging.evolution_client import GatewayError
from modules.notifications import NotificationService
from modules.notifications.message_formatter import NotificationFormatter
from repos.service_order_repo import ServiceOrderRepo
from utils.clock import utcnow


@pytest_asyncio.fixture
async def service(session, gateway):
    return NotificationService(session, gateway)


async def schedule(service, user, minutes=-1, **fields):
    values = {"titulo": "Visita", "mensagem": "Ligar para o cliente"}
    values.update(fields)
    return await service.create_notification(usuario_id=user.id,
                                             destinatario_telefone=user.telefone,
                                             data_agendada=utcnow() + timedelta(minutes=minutes),
                                             **values)


class TestProcessDue:
    @pytest.mark.asyncio
    async def test_due_notification_is_sent(self, service, user, gateway):
        notification = await schedule(service, user)

        stats = await service.process_due()

        assert stats == {"processed": 1, "sent": 1, "retried": 0, "failed": 0}
        assert notification.status == "enviada"
        assert notification.enviada_em is not None
        to, text = gateway.texts[0]
        assert to == user.telefone
        assert "*Visita*" in text
        assert "Ligar para o cliente" in text

    @pytest.mark.asyncio
    async def test_future_notification_waits(self, service, user, gateway):
        await schedule(service, user, minutes=30)

        stats = await service.process_due()

        assert stats["processed"] == 0
        assert gateway.texts == []

    @pytest.mark.asyncio
    async def test_failure_is_retried_then_parked(self, service, user, gateway):
        notification = await schedule(service, user)
        gateway.error = GatewayError("Evolution API down")
        now = utcnow()

        stats = await service.process_due(now)
        assert stats["retried"] == 1
        assert notification.status == "pendente"
        assert notification.tentativas == 1
        assert notification.enviar_em == now + timedelta(minutes=5)
        assert notification.erro_mensagem == "Evolution API down"

        # Not due again until the retry delay has passed
        assert (await service.process_due(now + timedelta(minutes=1)))["processed"] == 0

        await service.process_due(now + timedelta(minutes=6))
        stats = await service.process_due(now + timedelta(minutes=12))
        assert stats["failed"] == 1
        assert notification.status == "erro"
        assert notification.tentativas == 3

    @pytest.mark.asyncio
    async def test_recurring_notification_is_rescheduled(self, service, user):
        notification = await schedule(service, user, recorrente=True, intervalo_dias=7)
        now = utcnow()

        await service.process_due(now)

        assert notification.status == "pendente"
        assert notification.enviar_em == now + timedelta(days=7)
        assert notification.proxima_execucao == notification.enviar_em

    @pytest.mark.asyncio
    async def test_order_pdf_is_attached(self, service, user, gateway):
        order = await ServiceOrderRepo(session=service.session).create(
            user.id, cliente_nome="João", titulo="Reparo")
        await schedule(service, user, enviar_pdf=True, ordem_servico_id=order.id)

        await service.process_due()

        assert f"#{order.numero_os}" in gateway.texts[0][1]
        assert gateway.media[0]["file_name"] == f"OS-{order.numero_os}.pdf"


class TestCancel:
    @pytest.mark.asyncio
    async def test_only_pending_can_be_cancelled(self, service, user):
        notification = await schedule(service, user)
        await service.process_due()

        assert await service.cancel(user.id, notification.id) is None

    @pytest.mark.asyncio
    async def test_other_users_cannot_cancel(self, service, user):
        notification = await schedule(service, user, minutes=60)
        assert await service.cancel(user.id + 1, notification.id) is None
        assert (await service.cancel(user.id, notification.id)).status == "cancelada"


class TestFormatter:
    def test_variables_are_substituted(self):
        text = NotificationFormatter.substitute_variables(
            "OS {{ numero_os }} de {{cliente_nome}} {{desconhecido}}",
            {"numero_os": "OS-1", "cliente_nome": "João"})
        assert text == "OS OS-1 de João "
