# modules/assistant/orchestrator.py

import json
import logging
import re
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from repos.user_repo import UserRepo
from repos.conversation_repo import ConversationRepo
from repos.message_repo import MessageRepo
from modules.messaging.evolution_client import GatewayError, get_evolution_client

from .config import HISTORY_REHYDRATE_MESSAGES, SHORT_QUESTION_MAX_LENGTH, QUESTION_WORDS
from .conversation_store import ConversationStore, truncate_history
from .handlers import ToolHandlers, build_registry
from .llm_client import LLMClient, LLMError
from .prompts import (SYSTEM_PROMPT, FORMATTED_RESULTS_HINT, SHORT_QUESTION_HINT,
                      ENGLISH_MARKERS, ENGLISH_FALLBACK_REPLY, TOOL_ERROR_MESSAGES,
                      GENERIC_TOOL_ERROR, UNKNOWN_TOOL_ERROR, APOLOGY_ERROR,
                      APOLOGY_SUGGESTION, AUDIO_ERROR, AUDIO_SUGGESTION)
from .results import ToolResult, ToolContext, PresentationHint
from .templates import MessageTemplates

logger = logging.getLogger(__name__)

_ENGLISH_RE = re.compile(r"\b(" + "|".join(re.escape(m) for m in ENGLISH_MARKERS) + r")\b", re.IGNORECASE)
_QUESTION_RE = re.compile(r"\b(" + "|".join(QUESTION_WORDS) + r")\b", re.IGNORECASE)

# Process-wide state shared by every request
conversation_store = ConversationStore()
_registry = None
_llm_client = None


def get_registry():
    global _registry
    if _registry is None:
        _registry = build_registry()
    return _registry


def get_llm_client() -> LLMClient:
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


@dataclass
class AssistantReply:
    text: str
    media_ref: str | None = None


def apology_reply() -> AssistantReply:
    return AssistantReply(MessageTemplates.error(APOLOGY_ERROR, APOLOGY_SUGGESTION))


def guard_language(text: str) -> str:
    """Replace replies the model wrote in English with a Portuguese apology"""
    if text and _ENGLISH_RE.search(text):
        logger.warning(f"⚠️ English reply detected, replacing: {text[:200]}")
        return ENGLISH_FALLBACK_REPLY
    return text


def context_hint(user_text: str, results: list[ToolResult]) -> str | None:
    """Extra system message for the follow-up call, if any applies"""
    if any(r.hint for r in results):
        return FORMATTED_RESULTS_HINT
    if len(user_text) < SHORT_QUESTION_MAX_LENGTH and _QUESTION_RE.search(user_text):
        return SHORT_QUESTION_HINT
    return None


class AssistantOrchestrator:
    """
    Runs one conversational turn: history, LLM routing, tool execution,
    final reply. Tool failures are isolated per call; anything that breaks
    the turn itself ends in a fixed apology.
    """

    def __init__(self, session: AsyncSession, gateway=None, llm: LLMClient | None = None,
                 store: ConversationStore | None = None, registry=None):
        self.session = session
        self.gateway = gateway or get_evolution_client()
        self.llm = llm or get_llm_client()
        self.store = store if store is not None else conversation_store
        self.registry = registry or get_registry()

        self.user_repo = UserRepo(session)
        self.conversation_repo = ConversationRepo(session)
        self.msg_repo = MessageRepo(session)
        self.handlers = ToolHandlers(session, self.gateway)

    async def handle_user_message(self, text: str, user_phone: str, chat_id: str,
                                  user_name: str | None = None,
                                  message_id: str | None = None) -> AssistantReply:
        logger.info(f"💬 Message from {user_phone} ({chat_id}): '{text[:100]}'")
        try:
            return await self._run_turn(text, user_phone, chat_id, user_name, message_id)
        except Exception as e:
            logger.error(f"❌ Assistant turn failed for {user_phone}: {e}", exc_info=True)
            await self.session.rollback()
            return apology_reply()

    async def process_audio(self, audio: bytes, mime_type: str, user_phone: str, chat_id: str,
                            user_name: str | None = None,
                            message_id: str | None = None) -> AssistantReply:
        try:
            transcript = (await self.llm.transcribe(audio, mime_type)).strip()
        except LLMError:
            transcript = ""
        if not transcript:
            return AssistantReply(MessageTemplates.error(AUDIO_ERROR, AUDIO_SUGGESTION))
        return await self.handle_user_message(transcript, user_phone, chat_id, user_name, message_id)

    def clear_history(self, user_phone: str, chat_id: str) -> bool:
        return self.store.clear((user_phone, chat_id))

    async def _rehydrate(self, conversation_id: int) -> list[dict]:
        messages = await self.msg_repo.get_recent_messages(conversation_id, HISTORY_REHYDRATE_MESSAGES)
        return [{"role": "assistant" if m.from_me else "user", "content": m.conteudo_texto or ""}
                for m in messages]

    async def _run_turn(self, text, user_phone, chat_id, user_name, message_id) -> AssistantReply:
        key = (user_phone, chat_id)

        async with self.store.locked(key):
            # Tool failures roll the session back and expire loaded rows, so
            # only plain ids are carried across the tool loop.
            user = await self.user_repo.get_or_create(user_phone, user_name)
            user_id = user.id
            conversation_id = (await self.conversation_repo.get_or_create(user_id, chat_id)).id
            ctx = ToolContext(user_id=user_id, user_phone=user_phone, user_name=user_name)

            history = self.store.get(key)
            if history is None:
                history = await self._rehydrate(conversation_id)
            history = truncate_history(history)

            await self.msg_repo.create_message(conversation_id, text, from_me=False, message_id=message_id)

            user_turn = {"role": "user", "content": text}
            system_turn = {"role": "system", "content": SYSTEM_PROMPT}
            first = await self.llm.complete([system_turn, *history, user_turn], self.registry.catalog)

            media_ref = None
            if not first.tool_calls:
                reply = first.content or ""
                new_turns = [user_turn]
            else:
                assistant_turn = {
                    "role": "assistant",
                    "content": first.content,
                    "tool_calls": [{
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.function.name, "arguments": call.function.arguments},
                    } for call in first.tool_calls],
                }

                results, tool_turns = [], []
                for call in first.tool_calls:
                    result = await self.execute_tool(call.function.name, call.function.arguments, ctx)
                    results.append(result)
                    tool_turns.append({
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": json.dumps(result.to_payload(), ensure_ascii=False, default=str),
                    })

                followup = [system_turn, *history, user_turn, assistant_turn, *tool_turns]
                hint = context_hint(text, results)
                if hint:
                    followup.append({"role": "system", "content": hint})

                reply = await self.llm.continue_with_results(followup)
                if not reply.strip():
                    reply = "\n\n".join(r.hint.formatted_text for r in results if r.hint)
                media_ref = next((r.media_ref for r in results if r.media_ref), None)
                new_turns = [user_turn, assistant_turn, *tool_turns]

            reply = guard_language(reply)
            if not reply.strip():
                return apology_reply()

            new_turns.append({"role": "assistant", "content": reply})
            await self.msg_repo.create_message(conversation_id, reply, from_me=True)
            await self.conversation_repo.touch(conversation_id)
            self.store.put(key, history + new_turns)

        logger.info(f"✅ Reply ready for {user_phone} ({len(reply)} chars, media={bool(media_ref)})")
        return AssistantReply(reply, media_ref)

    async def execute_tool(self, name: str, arguments: str | None, ctx: ToolContext) -> ToolResult:
        """Dispatch one tool call; never raises"""
        handler = self.registry.handler_for(name)
        if handler is None:
            logger.warning(f"⚠️ Unknown tool requested: {name}")
            return ToolResult.failure("validation", UNKNOWN_TOOL_ERROR)

        user_message = TOOL_ERROR_MESSAGES.get(name, GENERIC_TOOL_ERROR)
        try:
            args = json.loads(arguments or "{}")
        except json.JSONDecodeError:
            logger.error(f"❌ Invalid arguments for {name}: {arguments}")
            return ToolResult.failure("validation", user_message)
        if not isinstance(args, dict):
            return ToolResult.failure("validation", user_message)

        logger.info(f"🔧 Executing tool {name} with {list(args)}")
        try:
            result = await handler(self.handlers, args, ctx)
        except GatewayError as e:
            logger.error(f"❌ Tool {name} could not reach WhatsApp: {e}", exc_info=True)
            await self.session.rollback()
            return ToolResult.failure("transport", user_message)
        except Exception as e:
            logger.error(f"❌ Tool {name} failed: {e}", exc_info=True)
            await self.session.rollback()
            return ToolResult.failure("unexpected", user_message)

        if result.success:
            template = self.registry.template_for(name)
            try:
                formatted = template(result.data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"⚠️ Template for {name} failed: {e}")
                formatted = None
            if formatted:
                result.hint = PresentationHint(formatted)
        else:
            logger.info(f"ℹ️ Tool {name} returned {result.error.kind}: {result.error.user_message}")
        return result
