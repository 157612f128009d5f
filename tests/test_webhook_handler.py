"""Tests for inbound WhatsApp message handling."""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from modules.assistant.orchestrator import AssistantReply
from modules.messaging.evolution_client import GatewayError
from modules.messaging.webhook_handler import MessageWebhookHandler
from modules.messaging.webhook_normalizer import WebhookEnvelope

JID = "5511988887777@s.whatsapp.net"


def upsert(*messages):
    return WebhookEnvelope(event="messages.upsert", data={"messages": list(messages)}, instance="OSZap")


def text_message(text="oi", jid=JID, from_me=False, msg_id="ABC"):
    return {"key": {"id": msg_id, "remoteJid": jid, "fromMe": from_me},
            "pushName": "João",
            "message": {"conversation": text},
            "messageTimestamp": int(time.time())}


def audio_message():
    raw = text_message()
    raw["message"] = {"audioMessage": {"seconds": 4}}
    return raw


@pytest.fixture
def orchestrator():
    fake = MagicMock()
    fake.handle_user_message = AsyncMock(return_value=AssistantReply("Olá João!"))
    fake.process_audio = AsyncMock(return_value=AssistantReply("Ouvi seu áudio."))
    return fake


@pytest.fixture
def handler(session, gateway, orchestrator):
    return MessageWebhookHandler(session, gateway, orchestrator=orchestrator)


class TestMessagesUpsert:
    @pytest.mark.asyncio
    async def test_text_message_is_answered(self, handler, gateway, orchestrator):
        answered = await handler.handle_event(upsert(text_message("Bom dia")))

        assert answered == 1
        orchestrator.handle_user_message.assert_awaited_once_with(
            "Bom dia", "5511988887777", JID, "João", "ABC")
        assert gateway.texts == [(JID, "Olá João!")]

    @pytest.mark.asyncio
    async def test_skipped_messages(self, handler, gateway, orchestrator):
        answered = await handler.handle_event(upsert(
            text_message(from_me=True),
            text_message(jid="120363000000000000@g.us"),
            {"key": {}, "message": {"conversation": "sem jid"}},
        ))

        assert answered == 0
        orchestrator.handle_user_message.assert_not_called()
        assert gateway.texts == []

    @pytest.mark.asyncio
    async def test_audio_is_transcribed(self, handler, gateway, orchestrator):
        gateway.audio = (b"ogg", "audio/ogg; codecs=opus")

        await handler.handle_event(upsert(audio_message()))

        orchestrator.process_audio.assert_awaited_once_with(
            b"ogg", "audio/ogg; codecs=opus", "5511988887777", JID, "João", "ABC")
        assert gateway.texts == [(JID, "Ouvi seu áudio.")]

    @pytest.mark.asyncio
    async def test_audio_download_failure_still_replies(self, handler, gateway, orchestrator):
        gateway.download_media = AsyncMock(side_effect=GatewayError("no media"))

        await handler.handle_event(upsert(audio_message()))

        assert orchestrator.process_audio.await_args.args[0] == b""
        assert len(gateway.texts) == 1

    @pytest.mark.asyncio
    async def test_send_failure_is_logged(self, handler, gateway):
        gateway.error = GatewayError("down", status_code=500)
        answered = await handler.handle_event(upsert(text_message()))
        assert answered == 0


class TestDocuments:
    @pytest.mark.asyncio
    async def test_local_pdf_is_sent_and_cleaned_up(self, handler, gateway, orchestrator, tmp_path):
        pdf = tmp_path / "OS_1_123.pdf"
        pdf.write_bytes(b"%PDF")
        orchestrator.handle_user_message.return_value = AssistantReply("Segue o PDF", str(pdf))

        with patch("modules.messaging.webhook_handler.PDFGenerator.schedule_cleanup") as cleanup:
            await handler.handle_event(upsert(text_message("gera o pdf")))

        assert gateway.media[0]["file_path"] == str(pdf)
        assert gateway.media[0]["file_name"] == "OS_1_123.pdf"
        cleanup.assert_called_once_with(str(pdf))

    @pytest.mark.asyncio
    async def test_remote_pdf_is_sent_by_url(self, handler, gateway, orchestrator):
        url = "http://oszap.test/temp/OS_1_123.pdf"
        orchestrator.handle_user_message.return_value = AssistantReply("Segue o PDF", url)

        await handler.handle_event(upsert(text_message("gera o pdf")))

        assert gateway.media_urls == [{"to": JID, "url": url, "caption": "📄 Ordem de Serviço"}]


class TestOtherEvents:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("event", ["connection.update", "contacts.upsert", "something.else"])
    async def test_acknowledged_without_reply(self, handler, gateway, orchestrator, event):
        answered = await handler.handle_event(WebhookEnvelope(event=event, data={"state": "open"}))

        assert answered == 0
        assert gateway.texts == []
        orchestrator.handle_user_message.assert_not_called()
