# modules/messaging/webhook_handler.py

import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession

from repos.database import AsyncSessionLocal
from modules.assistant.orchestrator import AssistantOrchestrator, AssistantReply
from modules.documents import PDFGenerator

from .evolution_client import GatewayError, get_evolution_client
from .webhook_normalizer import (WebhookEnvelope, InboundMessage, InvalidPayloadError,
                                 extract_messages, parse_message, skip_reason)

logger = logging.getLogger(__name__)

# Events acknowledged but only logged
LOGGED_EVENTS = (
    "messages.update",
    "chats.update",
    "chats.upsert",
    "connection.update",
    "contacts.update",
    "contacts.upsert",
    "presence.update",
    "groups.update",
    "groups.upsert",
    "qrcode.updated",
)


class MessageWebhookHandler:
    """Handles Evolution API webhook events for one database session"""

    def __init__(self, session: AsyncSession, gateway=None, orchestrator: AssistantOrchestrator | None = None):
        self.session = session
        self.gateway = gateway or get_evolution_client()
        self.orchestrator = orchestrator or AssistantOrchestrator(session, self.gateway)

    async def handle_event(self, envelope: WebhookEnvelope) -> int:
        """Main webhook entry point. Returns how many messages were answered"""
        logger.info("=" * 50)
        logger.info(f"🔔 WEBHOOK EVENT: {envelope.event} (instance: {envelope.instance})")
        logger.info("=" * 50)

        if envelope.event == "messages.upsert":
            return await self.handle_messages_upsert(envelope.data)

        if envelope.event == "connection.update" and isinstance(envelope.data, dict):
            logger.info(f"🔌 Connection state: {envelope.data.get('state')}")
        elif envelope.event in LOGGED_EVENTS:
            logger.info(f"ℹ️ Event {envelope.event} acknowledged")
        else:
            logger.info(f"ℹ️ Unhandled event type: {envelope.event}")
        return 0

    async def handle_messages_upsert(self, data) -> int:
        answered = 0
        for raw in extract_messages(data):
            try:
                msg = parse_message(raw)
            except InvalidPayloadError as e:
                logger.warning(f"⚠️ Skipping malformed message: {e}")
                continue

            reason = skip_reason(msg)
            if reason:
                logger.info(f"  ⏭️ Skipping message {msg.message_id} from {msg.phone}: {reason}")
                continue

            if await self.process_message(msg):
                answered += 1
        return answered

    async def process_message(self, msg: InboundMessage) -> bool:
        """Run one inbound message through the assistant and send the reply"""
        logger.info(f"📨 {msg.message_type} from {msg.phone} ({msg.push_name or 'sem nome'})")

        if msg.is_audio:
            try:
                audio, mime_type = await self.gateway.download_media(msg.raw)
            except GatewayError as e:
                logger.error(f"❌ Could not download audio {msg.message_id}: {e}")
                audio, mime_type = b"", "audio/ogg"
            reply = await self.orchestrator.process_audio(audio, mime_type, msg.phone, msg.remote_jid,
                                                          msg.push_name, msg.message_id)
        else:
            reply = await self.orchestrator.handle_user_message(msg.text, msg.phone, msg.remote_jid,
                                                                msg.push_name, msg.message_id)

        return await self.send_reply(msg.remote_jid, reply)

    async def send_reply(self, to: str, reply: AssistantReply) -> bool:
        try:
            await self.gateway.send_text(to, reply.text)
        except GatewayError as e:
            logger.error(f"❌ Failed to send reply to {to}: {e}", exc_info=True)
            return False
        logger.info(f"📤 Reply sent to {to}")

        if reply.media_ref:
            await self.send_document(to, reply.media_ref)
        return True

    async def send_document(self, to: str, media_ref: str):
        """Send a generated PDF; local files are removed shortly afterwards"""
        is_local = os.path.exists(media_ref)
        try:
            if is_local:
                await self.gateway.send_media(to,
                                              file_path=media_ref,
                                              caption="📄 Ordem de Serviço",
                                              file_name=os.path.basename(media_ref))
            else:
                await self.gateway.send_media_url(to, media_ref, caption="📄 Ordem de Serviço")
            logger.info(f"📎 Document sent to {to}")
        except GatewayError as e:
            logger.error(f"❌ Failed to send document to {to}: {e}", exc_info=True)
        finally:
            if is_local:
                PDFGenerator.schedule_cleanup(media_ref)


async def process_webhook_event(envelope: WebhookEnvelope, gateway=None):
    """Background task: handle one event with its own database session"""
    try:
        async with AsyncSessionLocal() as session:
            handler = MessageWebhookHandler(session, gateway)
            await handler.handle_event(envelope)
    except Exception as e:
        logger.error(f"❌ Webhook handler error for {envelope.event}: {e}", exc_info=True)
