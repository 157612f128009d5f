# modules/messaging/config.py

import os

# Evolution API (WhatsApp gateway) configuration
EVOLUTION_API_URL = os.environ.get("EVOLUTION_API_URL", "http://localhost:8080").rstrip("/")
EVOLUTION_API_KEY = os.environ.get("EVOLUTION_API_KEY", "")
EVOLUTION_INSTANCE_NAME = os.environ.get(
    "EVOLUTION_INSTANCE_NAME", os.environ.get("INSTANCE_NAME", "OSZap"))
EVOLUTION_TIMEOUT_SECONDS = float(os.environ.get("EVOLUTION_TIMEOUT_SECONDS", "10"))


def webhook_api_key() -> str:
    """Key inbound webhooks must present; empty means authentication is off."""
    return (os.environ.get("EVOLUTION_WEBHOOK_API_KEY")
            or os.environ.get("EVOLUTION_API_KEY")
            or os.environ.get("AUTHENTICATION_API_KEY")
            or "").strip()


def _phone_list(name: str) -> set[str]:
    raw = os.environ.get(name, "")
    return {"".join(ch for ch in item if ch.isdigit()) for item in raw.split(",") if item.strip()}


# Optional comma-separated phone filters for inbound messages
ALLOWED_PHONES = _phone_list("ALLOWED_PHONES")
BLOCKED_PHONES = _phone_list("BLOCKED_PHONES")

# Inbound messages older than this are ignored (provider replays)
MAX_MESSAGE_AGE_SECONDS = 5 * 60
