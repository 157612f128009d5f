# modules/messaging/phone.py

from utils.formatting import only_digits

WHATSAPP_SUFFIX = "@s.whatsapp.net"


def to_jid(phone: str) -> str:
    """
    Decorate a phone for the gateway: digits only, Brazilian country code
    added to bare 11-digit mobiles, then the WhatsApp suffix. Values that
    already carry a JID suffix pass through unchanged.
    """
    if "@" in str(phone):
        return str(phone)
    digits = only_digits(phone)
    if len(digits) == 11 and not digits.startswith("55"):
        digits = f"55{digits}"
    return f"{digits}{WHATSAPP_SUFFIX}"


def phone_from_jid(jid: str) -> str:
    """'5511999999999@s.whatsapp.net' -> '5511999999999'"""
    return only_digits(str(jid or "").split("@", 1)[0].split(":", 1)[0])


def is_group_jid(jid: str) -> bool:
    return str(jid or "").endswith("@g.us")


def is_broadcast_jid(jid: str) -> bool:
    return "@broadcast" in str(jid or "")
