# modules/assistant/llm_client.py

import json
import logging
import os

from openai import AsyncOpenAI, OpenAIError

from .config import (OPENAI_MODEL, OPENAI_EXTRACTION_MODEL, OPENAI_TRANSCRIPTION_MODEL,
                     OPENAI_TEMPERATURE, OPENAI_MAX_TOKENS, OPENAI_FOLLOWUP_MAX_TOKENS,
                     OPENAI_TIMEOUT_SECONDS, OPENAI_MAX_RETRIES)
from .prompts import ORDER_EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/wav": "wav",
    "audio/webm": "webm",
}


class LLMError(Exception):
    """The language model could not produce an answer."""


class LLMClient:
    """Thin async wrapper over the OpenAI calls the assistant makes."""

    def __init__(self, openai_client: AsyncOpenAI | None = None, model: str = OPENAI_MODEL):
        self.openai = openai_client or AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
            timeout=OPENAI_TIMEOUT_SECONDS,
            max_retries=OPENAI_MAX_RETRIES,
        )
        self.model = model

    async def complete(self, messages: list[dict], tools: list[dict]):
        """
        First pass: the model answers directly or asks for tool calls.
        Returns the assistant message (content and/or tool_calls).
        """
        try:
            resp = await self.openai.chat.completions.create(
                model=self.model,
                messages=messages,
                tools=tools,
                tool_choice="auto",
                temperature=OPENAI_TEMPERATURE,
                max_tokens=OPENAI_MAX_TOKENS,
            )
        except OpenAIError as e:
            logger.error(f"❌ OpenAI completion failed: {e}")
            raise LLMError(str(e)) from e
        return resp.choices[0].message

    async def continue_with_results(self, messages: list[dict]) -> str:
        """Second pass after tool execution: the final user-facing reply."""
        try:
            resp = await self.openai.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=OPENAI_TEMPERATURE,
                max_tokens=OPENAI_FOLLOWUP_MAX_TOKENS,
            )
        except OpenAIError as e:
            logger.error(f"❌ OpenAI follow-up completion failed: {e}")
            raise LLMError(str(e)) from e
        return resp.choices[0].message.content or ""

    async def transcribe(self, audio: bytes, mime_type: str = "audio/ogg") -> str:
        extension = AUDIO_EXTENSIONS.get((mime_type or "").split(";")[0].strip(), "ogg")
        try:
            resp = await self.openai.audio.transcriptions.create(
                model=OPENAI_TRANSCRIPTION_MODEL,
                file=(f"audio.{extension}", audio, mime_type),
                language="pt",
            )
        except OpenAIError as e:
            logger.error(f"❌ Audio transcription failed: {e}")
            raise LLMError(str(e)) from e
        logger.info(f"🎤 Audio transcribed ({len(resp.text)} chars)")
        return resp.text

    async def extract_order(self, text: str) -> dict:
        """
        Structured extraction of a free-text order request into
        {client_name, services, total_amount, notes}.
        """
        try:
            resp = await self.openai.chat.completions.create(
                model=OPENAI_EXTRACTION_MODEL,
                messages=[
                    {"role": "system", "content": ORDER_EXTRACTION_PROMPT},
                    {"role": "user", "content": f"Mensagem: {text}"},
                ],
                response_format={"type": "json_object"},
                temperature=0,
            )
        except OpenAIError as e:
            logger.error(f"❌ Order extraction failed: {e}")
            raise LLMError(str(e)) from e

        content = resp.choices[0].message.content or "{}"
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error: {e}")
            logger.error(f"OpenAI response: {content}")
            data = {}

        amount = data.get("total_amount")
        return {
            "client_name": data.get("client_name") if isinstance(data.get("client_name"), str)
            else "Cliente não informado",
            "services": data.get("services") if isinstance(data.get("services"), list) else [],
            "total_amount": amount if isinstance(amount, (int, float)) and not isinstance(amount, bool) else None,
            "notes": data.get("notes") if isinstance(data.get("notes"), str) else "",
        }
