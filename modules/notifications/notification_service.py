# modules/notifications/notification_service.py - Scheduled notifications and automation triggers

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from repos.database import AsyncSessionLocal
from repos.notification_repo import NotificationRepo
from repos.trigger_repo import TriggerRepo
from repos.models import ScheduledNotification
from modules.documents import PDFGenerator
from modules.messaging.evolution_client import get_evolution_client
from utils.clock import utcnow, as_utc_naive
from utils.formatting import only_digits

from .config import (NOTIFICATION_BATCH_SIZE, MAX_ATTEMPTS, RETRY_DELAY_MINUTES,
                     DEFAULT_TRIGGER_TITLE)
from .message_formatter import NotificationFormatter

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates, delivers and retries scheduled WhatsApp notifications"""

    def __init__(self, session: AsyncSession, gateway=None):
        self.session = session
        self.notification_repo = NotificationRepo(session)
        self.trigger_repo = TriggerRepo(session)
        self.gateway = gateway or get_evolution_client()
        self.formatter = NotificationFormatter()

    async def create_notification(self,
                                  usuario_id: int,
                                  destinatario_telefone: str,
                                  titulo: str,
                                  mensagem: str,
                                  data_agendada,
                                  tipo: str = "custom",
                                  ordem_servico_id: int | None = None,
                                  destinatario_nome: str | None = None,
                                  enviar_pdf: bool = False,
                                  anexo_url: str | None = None,
                                  recorrente: bool = False,
                                  intervalo_dias: int | None = None,
                                  metadados: dict | None = None) -> ScheduledNotification:
        """Insert a pending notification; `data_agendada` may be aware or naive UTC"""
        send_at = as_utc_naive(data_agendada)
        next_run = None
        if recorrente and intervalo_dias:
            next_run = send_at + timedelta(days=intervalo_dias)

        notification = await self.notification_repo.create(
            usuario_id=usuario_id,
            ordem_servico_id=ordem_servico_id,
            tipo=tipo or "custom",
            destinatario_telefone=only_digits(destinatario_telefone) or destinatario_telefone,
            destinatario_nome=destinatario_nome,
            titulo=titulo,
            mensagem=mensagem,
            enviar_pdf=bool(enviar_pdf),
            anexo_url=anexo_url,
            data_agendada=send_at,
            enviar_em=send_at,
            status="pendente",
            tentativas=0,
            recorrente=bool(recorrente),
            intervalo_dias=intervalo_dias if recorrente else None,
            proxima_execucao=next_run,
            metadados=metadados or {},
        )
        logger.info(f"⏰ Notification {notification.id} scheduled for {send_at.isoformat()} UTC")
        return notification

    async def create_trigger(self, usuario_id: int, tipo_evento: str, tipo_acao: str,
                             condicoes: dict | None = None, parametros_acao: dict | None = None):
        trigger = await self.trigger_repo.create(usuario_id, tipo_evento, tipo_acao,
                                                 condicoes, parametros_acao)
        logger.info(f"⚡ Trigger {trigger.id} created: {tipo_evento} -> {tipo_acao}")
        return trigger

    async def list_pending(self, usuario_id: int):
        return await self.notification_repo.list_pending_for_user(usuario_id)

    async def cancel(self, usuario_id: int, notification_id: int):
        """
        Cancel a pending notification owned by the user.
        Returns the notification, or None when there is nothing to cancel.
        """
        notification = await self.notification_repo.get(usuario_id, notification_id)
        if notification is None or notification.status != "pendente":
            return None
        notification.status = "cancelada"
        await self.notification_repo.save()
        logger.info(f"🚫 Notification {notification_id} cancelled")
        return notification

    # --- Triggers ---

    @staticmethod
    def _conditions_match(conditions: dict, event_data: dict) -> bool:
        return all(event_data.get(key) == value for key, value in (conditions or {}).items())

    async def fire_triggers(self, usuario_id: int, tipo_evento: str, event_data: dict, order=None) -> int:
        """
        Run every active trigger of the user for this event whose conditions
        match the event data by equality. Returns how many were executed.
        """
        triggers = await self.trigger_repo.get_active(usuario_id, tipo_evento)
        executed = 0
        for trigger in triggers:
            if not self._conditions_match(trigger.condicoes, event_data):
                continue
            try:
                await self._run_trigger_action(trigger, event_data, order)
                await self.trigger_repo.mark_executed(trigger)
                executed += 1
                logger.info(f"✅ Trigger {trigger.id} executed for {tipo_evento}")
            except Exception as e:
                logger.error(f"❌ Trigger {trigger.id} failed: {e}", exc_info=True)
        return executed

    async def _run_trigger_action(self, trigger, event_data: dict, order):
        params = trigger.parametros_acao or {}
        recipient = params.get("destinatario_telefone") or event_data.get("usuario_telefone")

        if trigger.tipo_acao == "enviar_notificacao":
            await self.create_notification(
                usuario_id=trigger.usuario_id,
                ordem_servico_id=event_data.get("id"),
                tipo=params.get("tipo") or "custom",
                destinatario_telefone=recipient,
                destinatario_nome=params.get("destinatario_nome"),
                titulo=params.get("titulo") or DEFAULT_TRIGGER_TITLE,
                mensagem=self.formatter.substitute_variables(params.get("mensagem", ""), event_data),
                data_agendada=utcnow(),
                enviar_pdf=bool(params.get("enviar_pdf")),
            )
        elif trigger.tipo_acao == "enviar_pdf":
            if order is None:
                raise ValueError("enviar_pdf trigger needs a service order")
            await self.send_order_pdf(recipient, order)
        else:
            logger.warning(f"⚠️ Unknown trigger action: {trigger.tipo_acao}")

    # --- Delivery ---

    async def send_order_pdf(self, to: str, order):
        path = PDFGenerator.write_pdf(PDFGenerator.from_service_order(order))
        try:
            await self.gateway.send_media(to,
                                          file_path=path,
                                          caption=f"📋 Ordem de Serviço {order.numero_os}",
                                          file_name=f"OS-{order.numero_os}.pdf")
        finally:
            PDFGenerator.delete_file(path)

    async def deliver(self, notification: ScheduledNotification):
        """Send text, then the order PDF and attachment when requested. Raises on failure"""
        to = notification.destinatario_telefone
        await self.gateway.send_text(to, self.formatter.format_notification(notification))

        if notification.enviar_pdf and notification.ordem_servico is not None:
            await self.send_order_pdf(to, notification.ordem_servico)

        if notification.anexo_url:
            await self.gateway.send_media_url(to, notification.anexo_url, caption=notification.titulo)

    async def process_due(self, now=None) -> dict:
        """
        Deliver every due pending notification (one batch).
        Success: recurring ones are rescheduled, the rest marked 'enviada'.
        Failure: retried in 5 minutes until the third attempt, then 'erro'.
        """
        now = now or utcnow()
        due = await self.notification_repo.get_due(now, NOTIFICATION_BATCH_SIZE)
        stats = {"processed": len(due), "sent": 0, "retried": 0, "failed": 0}

        for notification in due:
            try:
                await self.deliver(notification)
            except Exception as e:
                notification.tentativas = (notification.tentativas or 0) + 1
                notification.erro_mensagem = str(e)[:500]
                if notification.tentativas >= MAX_ATTEMPTS:
                    notification.status = "erro"
                    stats["failed"] += 1
                    logger.error(f"❌ Notification {notification.id} gave up after "
                                 f"{notification.tentativas} attempts: {e}")
                else:
                    notification.status = "pendente"
                    notification.enviar_em = now + timedelta(minutes=RETRY_DELAY_MINUTES)
                    stats["retried"] += 1
                    logger.warning(f"⚠️ Notification {notification.id} failed "
                                   f"(attempt {notification.tentativas}), retrying: {e}")
            else:
                if notification.recorrente and notification.intervalo_dias:
                    notification.enviar_em = now + timedelta(days=notification.intervalo_dias)
                    notification.proxima_execucao = notification.enviar_em
                    notification.status = "pendente"
                    notification.tentativas = 0
                else:
                    notification.status = "enviada"
                    notification.enviada_em = now
                stats["sent"] += 1
                logger.info(f"📤 Notification {notification.id} delivered")

            await self.notification_repo.save()

        return stats


async def run_notification_sweep(gateway=None):
    """Scheduler entry point: one sweep with its own database session"""
    try:
        async with AsyncSessionLocal() as session:
            service = NotificationService(session, gateway)
            stats = await service.process_due()
    except Exception as e:
        logger.error(f"FATAL ERROR in notification sweep: {e}", exc_info=True)
        raise

    if stats["processed"]:
        logger.info("=" * 60)
        logger.info("NOTIFICATION SWEEP COMPLETED")
        logger.info(f"  Processed: {stats['processed']}")
        logger.info(f"  Sent: {stats['sent']}")
        logger.info(f"  Retried: {stats['retried']}")
        logger.info(f"  Failed: {stats['failed']}")
        logger.info("=" * 60)
    return stats
