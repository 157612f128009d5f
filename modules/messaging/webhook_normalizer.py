# modules/messaging/webhook_normalizer.py

"""
Turns raw Evolution API webhook bodies into something the assistant can
consume. Pure functions only: no I/O happens here.
"""

import re
import time
from dataclasses import dataclass, field

from .config import ALLOWED_PHONES, BLOCKED_PHONES, MAX_MESSAGE_AGE_SECONDS
from .phone import phone_from_jid, is_group_jid, is_broadcast_jid

API_KEY_HEADERS = ("x-evolution-apikey", "x-api-key", "apikey")


class InvalidPayloadError(Exception):
    """Raised when a webhook body has no usable shape."""


@dataclass
class WebhookEnvelope:
    event: str
    data: object
    instance: str | None = None


@dataclass
class InboundMessage:
    message_id: str | None
    remote_jid: str
    phone: str
    push_name: str | None
    from_me: bool
    timestamp: int | None
    message_type: str
    text: str | None = None
    raw: dict = field(default_factory=dict)

    @property
    def is_audio(self) -> bool:
        return self.message_type == "audioMessage"


def normalize_event_name(name: str) -> str:
    """'MESSAGES_UPSERT', '/messages-upsert' -> 'messages.upsert'"""
    normalized = re.sub(r"[^a-z0-9]+", ".", str(name or "").lower())
    normalized = re.sub(r"\.+", ".", normalized)
    return normalized.strip(".")


def parse_envelope(body: dict, path_event: str | None = None) -> WebhookEnvelope:
    """
    Event name comes from the body, falling back to the request sub-path.
    The payload lives under `data`, `payload`, or is the body itself.
    """
    if not isinstance(body, dict):
        raise InvalidPayloadError("webhook body must be a JSON object")

    event = normalize_event_name(body.get("event") or (path_event or "").lstrip("/"))
    if not event:
        raise InvalidPayloadError("missing event")

    data = body.get("data")
    if data is None:
        data = body.get("payload")
    if data is None:
        data = body

    instance = body.get("instance") or body.get("instanceName")
    if not instance and isinstance(data, dict):
        instance = data.get("instance") or data.get("instanceId") or data.get("instanceName")

    return WebhookEnvelope(event=event, data=data, instance=instance)


def extract_api_key(headers, body) -> str | None:
    """Look for the shared secret in the accepted headers, then in the body."""
    for name in API_KEY_HEADERS:
        value = headers.get(name)
        if value:
            return value.strip()

    authorization = headers.get("authorization") or ""
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip()

    if isinstance(body, dict):
        value = body.get("apikey") or body.get("apiKey")
        if value:
            return str(value).strip()
    return None


def extract_messages(data) -> list[dict]:
    """
    Messages can arrive as data.messages[], as a bare list, as a single
    message object, or nested one level deeper under data.data.
    """
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    if not isinstance(data, dict):
        return []
    if isinstance(data.get("messages"), list):
        return [item for item in data["messages"] if isinstance(item, dict)]
    if "message" in data or "key" in data:
        return [data]
    if "data" in data:
        return extract_messages(data["data"])
    return []


def _message_type(message: dict, declared: str | None) -> str:
    if declared:
        return declared
    for candidate in ("conversation", "extendedTextMessage", "audioMessage",
                      "imageMessage", "documentMessage", "videoMessage"):
        if candidate in message:
            return candidate
    return "unknown"


def parse_message(raw: dict) -> InboundMessage:
    key = raw.get("key") or {}
    remote_jid = key.get("remoteJid") or raw.get("remoteJid") or ""
    if not remote_jid:
        raise InvalidPayloadError("missing remoteJid")

    message = raw.get("message") or {}
    message_type = _message_type(message, raw.get("messageType"))

    text = None
    if message.get("conversation"):
        text = message["conversation"]
    elif isinstance(message.get("extendedTextMessage"), dict):
        text = message["extendedTextMessage"].get("text")

    timestamp = raw.get("messageTimestamp")
    try:
        timestamp = int(timestamp) if timestamp is not None else None
    except (TypeError, ValueError):
        timestamp = None

    return InboundMessage(
        message_id=key.get("id"),
        remote_jid=remote_jid,
        phone=phone_from_jid(remote_jid),
        push_name=raw.get("pushName"),
        from_me=bool(key.get("fromMe")),
        timestamp=timestamp,
        message_type=message_type,
        text=text,
        raw=raw,
    )


def skip_reason(msg: InboundMessage, now: float | None = None,
                allowed=None, blocked=None) -> str | None:
    """Why this message should be ignored, or None when it must be processed."""
    allowed = ALLOWED_PHONES if allowed is None else allowed
    blocked = BLOCKED_PHONES if blocked is None else blocked
    now = time.time() if now is None else now

    if is_group_jid(msg.remote_jid):
        return "group"
    if is_broadcast_jid(msg.remote_jid):
        return "broadcast"
    if msg.from_me:
        return "from_me"
    if msg.timestamp and now - msg.timestamp > MAX_MESSAGE_AGE_SECONDS:
        return "too_old"
    if msg.phone in blocked:
        return "blocked"
    if allowed and msg.phone not in allowed:
        return "not_allowed"
    if not msg.text and not msg.is_audio:
        return "unsupported_type"
    return None
