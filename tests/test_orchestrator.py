"""Tests for the assistant orchestrator with a scripted LLM."""

import json
import os

import pytest
from sqlalchemy.future import select

from modules.assistant.conversation_store import ConversationStore
from modules.assistant.handlers import build_registry
from modules.assistant.llm_client import LLMError
from modules.assistant.orchestrator import AssistantOrchestrator, context_hint, guard_language
from modules.assistant.prompts import (ENGLISH_FALLBACK_REPLY, FORMATTED_RESULTS_HINT,
                                       SHORT_QUESTION_HINT, UNKNOWN_TOOL_ERROR)
from modules.assistant.results import PresentationHint, ToolResult
from modules.messaging.evolution_client import GatewayError
from repos.models import Message, ServiceOrder

from .helpers import assistant_message, tool_call

PHONE = "5511999990000"
CHAT = "5511999990000@s.whatsapp.net"


@pytest.fixture
def store():
    return ConversationStore()


@pytest.fixture
def orchestrator(session, gateway, llm, store):
    return AssistantOrchestrator(session, gateway, llm=llm, store=store)


def tool_payloads(messages):
    return [json.loads(m["content"]) for m in messages if m["role"] == "tool"]


class TestHelpers:
    def test_guard_language_replaces_english(self):
        assert guard_language("I'm sorry, I couldn't find it") == ENGLISH_FALLBACK_REPLY
        assert guard_language("Encontrei 2 ordens de serviço") == "Encontrei 2 ordens de serviço"

    def test_context_hint(self):
        formatted = ToolResult.ok()
        formatted.hint = PresentationHint("texto")
        assert context_hint("lista minhas OS", [formatted]) == FORMATTED_RESULTS_HINT
        assert context_hint("qual o valor?", [ToolResult.ok()]) == SHORT_QUESTION_HINT
        assert context_hint("cria uma OS para o João trocar a torneira da cozinha amanhã cedo",
                            [ToolResult.ok()]) is None


class TestTurns:
    @pytest.mark.asyncio
    async def test_direct_reply(self, orchestrator, llm, session):
        llm.completions.append(assistant_message("Olá! Como posso ajudar?"))

        reply = await orchestrator.handle_user_message("oi", PHONE, CHAT, "Carlos", "msg-1")

        assert reply.text == "Olá! Como posso ajudar?"
        assert reply.media_ref is None
        assert llm.followup_calls == []
        assert llm.complete_calls[0]["messages"][0]["role"] == "system"
        assert llm.complete_calls[0]["messages"][-1] == {"role": "user", "content": "oi"}
        assert len(llm.complete_calls[0]["tools"]) == 23

        stored = (await session.execute(select(Message).order_by(Message.id))).scalars().all()
        assert [(m.conteudo_texto, m.from_me) for m in stored] == [
            ("oi", False), ("Olá! Como posso ajudar?", True)]

    @pytest.mark.asyncio
    async def test_tool_call_round_trip(self, orchestrator, llm, session):
        llm.completions.append(assistant_message(tool_calls=[tool_call("criar_ordem_servico", {
            "cliente_nome": "João Silva", "titulo": "Troca de torneira", "valor_estimado": 150})]))
        llm.followups.append("Pronto! Criei a OS para o João.")

        reply = await orchestrator.handle_user_message(
            "cria uma OS para o João trocar a torneira, 150 reais", PHONE, CHAT)

        assert reply.text == "Pronto! Criei a OS para o João."
        order = (await session.execute(select(ServiceOrder))).scalars().one()
        assert order.cliente_nome == "João Silva"

        followup = llm.followup_calls[0]
        assert followup[-1] == {"role": "system", "content": FORMATTED_RESULTS_HINT}
        payload = tool_payloads(followup)[0]
        assert payload["success"] is True
        assert payload["numero_os"] == order.numero_os
        assert "OS Criada com Sucesso" in payload["mensagem_formatada"]

        assistant_turn = next(m for m in followup if m["role"] == "assistant")
        assert assistant_turn["tool_calls"][0]["id"] == "call_1"
        tool_turn = next(m for m in followup if m["role"] == "tool")
        assert tool_turn["tool_call_id"] == "call_1"

    @pytest.mark.asyncio
    async def test_empty_followup_falls_back_to_formatted_text(self, orchestrator, llm):
        llm.completions.append(assistant_message(tool_calls=[tool_call("criar_ordem_servico", {
            "cliente_nome": "João", "titulo": "Reparo"})]))
        llm.followups.append("")

        reply = await orchestrator.handle_user_message("cria OS do João", PHONE, CHAT)
        assert "OS Criada com Sucesso" in reply.text

    @pytest.mark.asyncio
    async def test_pdf_tool_sets_media_ref(self, orchestrator, llm, handlers_ctx):
        numero = await handlers_ctx()
        llm.completions.append(assistant_message(tool_calls=[
            tool_call("gerar_pdf_ordem_servico", {"numero_os": numero})]))
        llm.followups.append("Aqui está o PDF da sua OS.")

        reply = await orchestrator.handle_user_message("gera o pdf", PHONE, CHAT)

        assert reply.media_ref.endswith(".pdf")
        assert os.path.exists(reply.media_ref)
        os.remove(reply.media_ref)

    @pytest.mark.asyncio
    async def test_unknown_tool(self, orchestrator, llm):
        llm.completions.append(assistant_message(tool_calls=[tool_call("apagar_tudo", {})]))
        llm.followups.append("Não consegui fazer isso.")

        reply = await orchestrator.handle_user_message("apaga tudo", PHONE, CHAT)

        assert reply.text == "Não consegui fazer isso."
        payload = tool_payloads(llm.followup_calls[0])[0]
        assert payload["success"] is False
        assert payload["error"] == UNKNOWN_TOOL_ERROR

    @pytest.mark.asyncio
    async def test_invalid_arguments_are_isolated(self, orchestrator, llm):
        bad = tool_call("listar_minhas_os", {}, "call_1")
        bad.function.arguments = "{not json"
        good = tool_call("listar_contatos", {}, "call_2")
        llm.completions.append(assistant_message(tool_calls=[bad, good]))
        llm.followups.append("Feito.")

        await orchestrator.handle_user_message("lista tudo", PHONE, CHAT)

        first, second = tool_payloads(llm.followup_calls[0])
        assert first["success"] is False
        assert first["error"] == "Não consegui listar suas ordens de serviço."
        assert second["success"] is True

    @pytest.mark.asyncio
    async def test_failing_tool_does_not_break_its_siblings(self, session, gateway, llm, store,
                                                            handlers_ctx):
        numero = await handlers_ctx()

        async def fails_after_lookup(handlers, args, ctx):
            await handlers.orders.get_by_numero(ctx.user_id, args["numero_os"])
            raise RuntimeError("connection reset by peer")

        registry = build_registry()
        registry.handlers["atualizar_ordem_servico"] = fails_after_lookup
        orchestrator = AssistantOrchestrator(session, gateway, llm=llm, store=store, registry=registry)

        llm.completions.append(assistant_message(tool_calls=[
            tool_call("listar_minhas_os", {}, "call_1"),
            tool_call("atualizar_ordem_servico", {"numero_os": numero, "valor_final": 90}, "call_2"),
            tool_call("listar_contatos", {}, "call_3"),
        ]))
        llm.followups.append("Resposta final do assistente.")

        reply = await orchestrator.handle_user_message("atualiza e lista tudo", PHONE, CHAT)

        assert reply.text == "Resposta final do assistente."
        first, second, third = tool_payloads(llm.followup_calls[0])
        assert first["success"] is True
        assert first["ordens"][0]["numero"] == numero
        assert second["success"] is False
        assert second["error"] == "Não consegui atualizar a ordem de serviço. Tente novamente."
        assert third["success"] is True
        assert "connection reset" not in json.dumps(llm.followup_calls[0], ensure_ascii=False)

        stored = (await session.execute(select(Message).order_by(Message.id))).scalars().all()
        assert [m.conteudo_texto for m in stored][-1] == "Resposta final do assistente."
        assert len(store.get((PHONE, CHAT))) == 6

    @pytest.mark.asyncio
    async def test_turn_lock_is_released_after_apology(self, orchestrator, llm, store):
        llm.completions.append(LLMError("timeout"))

        await orchestrator.handle_user_message("oi", PHONE, CHAT)

        assert (PHONE, CHAT) not in store
        assert store._locks == {}

    @pytest.mark.asyncio
    async def test_gateway_failure_becomes_transport_error(self, orchestrator, llm, gateway):
        gateway.error = GatewayError("Evolution API down")
        llm.completions.append(assistant_message(tool_calls=[
            tool_call("enviar_mensagem_whatsapp", {"numero": "5511911112222", "mensagem": "Oi"})]))
        llm.followups.append("Não consegui enviar agora.")

        reply = await orchestrator.handle_user_message("manda oi pro 11911112222", PHONE, CHAT)

        assert reply.text == "Não consegui enviar agora."
        payload = tool_payloads(llm.followup_calls[0])[0]
        assert payload["error"] == "Não consegui enviar a mensagem no momento"

    @pytest.mark.asyncio
    async def test_llm_failure_returns_apology(self, orchestrator, llm):
        llm.completions.append(LLMError("timeout"))

        reply = await orchestrator.handle_user_message("oi", PHONE, CHAT)

        assert "Ops!" in reply.text
        assert reply.media_ref is None

    @pytest.mark.asyncio
    async def test_english_reply_is_replaced(self, orchestrator, llm):
        llm.completions.append(assistant_message("I'm sorry, there is no service order with that number."))

        reply = await orchestrator.handle_user_message("cadê a OS 5?", PHONE, CHAT)
        assert reply.text == ENGLISH_FALLBACK_REPLY


class TestHistory:
    @pytest.mark.asyncio
    async def test_history_is_carried_between_turns(self, orchestrator, llm, store):
        llm.completions.append(assistant_message("Oi Carlos!"))
        llm.completions.append(assistant_message("Você disse oi."))

        await orchestrator.handle_user_message("oi", PHONE, CHAT)
        await orchestrator.handle_user_message("o que eu disse?", PHONE, CHAT)

        second = llm.complete_calls[1]["messages"]
        assert [m["content"] for m in second[1:]] == ["oi", "Oi Carlos!", "o que eu disse?"]
        assert len(store.get((PHONE, CHAT))) == 4

    @pytest.mark.asyncio
    async def test_history_is_rehydrated_from_database(self, session, gateway, llm):
        first = AssistantOrchestrator(session, gateway, llm=llm, store=ConversationStore())
        llm.completions.append(assistant_message("Oi Carlos!"))
        await first.handle_user_message("oi", PHONE, CHAT)

        # A fresh store simulates a restart
        restarted = AssistantOrchestrator(session, gateway, llm=llm, store=ConversationStore())
        llm.completions.append(assistant_message("Tudo certo."))
        await restarted.handle_user_message("e aí?", PHONE, CHAT)

        messages = llm.complete_calls[1]["messages"]
        assert messages[1] == {"role": "user", "content": "oi"}
        assert messages[2] == {"role": "assistant", "content": "Oi Carlos!"}

    @pytest.mark.asyncio
    async def test_chats_are_isolated(self, orchestrator, llm):
        llm.completions.append(assistant_message("Oi!"))
        llm.completions.append(assistant_message("Olá, grupo!"))

        await orchestrator.handle_user_message("oi", PHONE, CHAT)
        await orchestrator.handle_user_message("oi grupo", PHONE, "120363000000000000@g.us")

        assert len(llm.complete_calls[1]["messages"]) == 2

    @pytest.mark.asyncio
    async def test_clear_history(self, orchestrator, llm, store):
        llm.completions.append(assistant_message("Oi!"))
        await orchestrator.handle_user_message("oi", PHONE, CHAT)

        assert orchestrator.clear_history(PHONE, CHAT) is True
        assert (PHONE, CHAT) not in store
        assert orchestrator.clear_history(PHONE, CHAT) is False


class TestAudio:
    @pytest.mark.asyncio
    async def test_transcript_is_answered(self, orchestrator, llm):
        llm.transcript = "  lista minhas OS  "
        llm.completions.append(assistant_message("Você não tem OS ainda."))

        reply = await orchestrator.process_audio(b"ogg", "audio/ogg", PHONE, CHAT)

        assert reply.text == "Você não tem OS ainda."
        assert llm.complete_calls[0]["messages"][-1]["content"] == "lista minhas OS"

    @pytest.mark.asyncio
    async def test_transcription_failure(self, orchestrator, llm):
        llm.transcript = LLMError("whisper down")

        reply = await orchestrator.process_audio(b"ogg", "audio/ogg", PHONE, CHAT)

        assert "Não consegui processar o áudio." in reply.text
        assert llm.complete_calls == []

    @pytest.mark.asyncio
    async def test_empty_transcript(self, orchestrator, llm):
        llm.transcript = ""
        reply = await orchestrator.process_audio(b"", "audio/ogg", PHONE, CHAT)
        assert "Não consegui processar o áudio." in reply.text


@pytest.fixture
def handlers_ctx(session, gateway):
    """Creates an order for the orchestrator's user and returns its number."""
    from modules.assistant.handlers import ToolHandlers
    from modules.assistant.results import ToolContext
    from repos.user_repo import UserRepo

    async def _create():
        user = await UserRepo(session).get_or_create(PHONE)
        ctx = ToolContext(user_id=user.id, user_phone=PHONE)
        result = await ToolHandlers(session, gateway).criar_ordem_servico(
            {"cliente_nome": "João", "titulo": "Reparo"}, ctx)
        return result.data["numero_os"]

    return _create
