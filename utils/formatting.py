# utils/formatting.py

from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo("America/Sao_Paulo")

# Divider line used under every WhatsApp message title
SEPARATOR = "━━━━━━━━━━━━━━━━━━━━━━"

MONTHS_PT = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho", "julho",
    "agosto", "setembro", "outubro", "novembro", "dezembro"
]


def format_brl(value) -> str:
    """
    Format a monetary amount the Brazilian way: R$ 1.234,56

    None is treated as zero. Amounts are rounded to cents.
    """
    amount = Decimal(str(value or 0)).quantize(Decimal("0.01"))
    text = f"{amount:,.2f}"  # 1,234.56
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


def to_local(value: datetime) -> datetime:
    """Naive values are UTC (how the database stores them)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(LOCAL_TZ)


def format_date(value) -> str:
    """dd/mm/yyyy HH:MM in local time, accepting datetimes or ISO strings."""
    if not value:
        return "-"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return to_local(value).strftime("%d/%m/%Y %H:%M")


def format_date_long(value: datetime) -> str:
    """Long pt-BR format, e.g. '20 de outubro de 2026 às 14:00'."""
    local = to_local(value)
    return (f"{local.day} de {MONTHS_PT[local.month - 1]} de {local.year} "
            f"às {local:%H:%M}")


def only_digits(value) -> str:
    return "".join(ch for ch in str(value or "") if ch.isdigit())
