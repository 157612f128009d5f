# modules/assistant/date_parser.py

"""
Natural-language date parsing for scheduled notifications.

Parsing is split in two steps: `classify` turns the user's text into one of
the tagged variants below without looking at the clock, and `resolve`
anchors that variant to a concrete instant given `now`. `parse_datetime`
chains both and guarantees the result is strictly in the future.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from .config import ASSISTANT_TIMEZONE

logger = logging.getLogger(__name__)

DEFAULT_HOUR = 9
FALLBACK_DELTA = timedelta(hours=1)

# Index follows the Sunday-first week used in the regexes below
WEEKDAYS = (
    ("domingo", ),
    ("segunda", ),
    ("terça", "terca"),
    ("quarta", ),
    ("quinta", ),
    ("sexta", ),
    ("sábado", "sabado"),
)

_RELATIVE_RE = re.compile(r"(?:daqui|em)\s+(\d+)\s*(minuto|hora|dia)s?", re.IGNORECASE)
_HOUR_RE = re.compile(r"(\d{1,2}):?(\d{2})?h?")
_CLOCK_ONLY_RE = re.compile(r"^(\d{1,2})(?::|h)?(\d{2})?h?$")
_ISO_HINT_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class IsoInstant:
    value: datetime


@dataclass(frozen=True)
class Relative:
    unit: str  # minuto | hora | dia
    quantity: int


@dataclass(frozen=True)
class NamedDay:
    """amanhã / hoje (offset) or a weekday name (weekday, Sunday = 0)."""
    offset: int | None = None
    weekday: int | None = None
    hour: int | None = None
    minute: int = 0


@dataclass(frozen=True)
class ClockTime:
    hour: int
    minute: int


@dataclass(frozen=True)
class Fallback:
    reason: str = "unrecognized"


def _hour_minute(text: str):
    match = _HOUR_RE.search(text)
    if not match:
        return None, 0
    return int(match.group(1)), int(match.group(2) or 0)


def _valid_clock(hour, minute) -> bool:
    return hour is None or (0 <= hour < 24 and 0 <= minute < 60)


def _parse_iso(text: str, tz: ZoneInfo):
    try:
        value = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value


def classify(text: str, tz: ZoneInfo | None = None):
    """Map free text onto a date variant. Never raises."""
    tz = tz or ZoneInfo(ASSISTANT_TIMEZONE)
    raw = (text or "").strip()
    lowered = raw.lower()
    if not raw:
        return Fallback("empty")

    if "T" in raw or "Z" in raw or _ISO_HINT_RE.match(raw):
        value = _parse_iso(raw, tz)
        if value is not None:
            return IsoInstant(value)

    match = _RELATIVE_RE.search(lowered)
    if match:
        return Relative(unit=match.group(2), quantity=int(match.group(1)))

    if "amanhã" in lowered or "amanha" in lowered:
        hour, minute = _hour_minute(lowered)
        if hour is None:
            hour, minute = DEFAULT_HOUR, 0
        if not _valid_clock(hour, minute):
            return Fallback("invalid_time")
        return NamedDay(offset=1, hour=hour, minute=minute)

    if "hoje" in lowered:
        hour, minute = _hour_minute(lowered)
        if not _valid_clock(hour, minute):
            return Fallback("invalid_time")
        return NamedDay(offset=0, hour=hour, minute=minute)

    for index, names in enumerate(WEEKDAYS):
        if any(name in lowered for name in names):
            hour, minute = _hour_minute(lowered)
            if hour is None:
                hour, minute = DEFAULT_HOUR, 0
            if not _valid_clock(hour, minute):
                return Fallback("invalid_time")
            return NamedDay(weekday=index, hour=hour, minute=minute)

    match = _CLOCK_ONLY_RE.match(lowered)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2) or 0)
        if not _valid_clock(hour, minute):
            return Fallback("invalid_time")
        return ClockTime(hour=hour, minute=minute)

    return Fallback()


def _at(day: datetime, hour: int, minute: int) -> datetime:
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def resolve(variant, now: datetime) -> datetime:
    """Anchor a variant to `now` (an aware datetime in the assistant zone)."""
    if isinstance(variant, IsoInstant):
        return variant.value.astimezone(now.tzinfo)

    if isinstance(variant, Relative):
        delta = {
            "minuto": timedelta(minutes=variant.quantity),
            "hora": timedelta(hours=variant.quantity),
            "dia": timedelta(days=variant.quantity),
        }[variant.unit]
        return now + delta

    if isinstance(variant, NamedDay):
        if variant.weekday is not None:
            # Python weekday(): Monday = 0; shift to Sunday = 0
            today = (now.weekday() + 1) % 7
            days_ahead = (variant.weekday - today + 7) % 7 or 7
            return _at(now + timedelta(days=days_ahead), variant.hour, variant.minute)

        if variant.offset == 0 and variant.hour is None:
            return now + FALLBACK_DELTA

        result = _at(now + timedelta(days=variant.offset), variant.hour, variant.minute)
        if variant.offset == 0 and result <= now:
            result += timedelta(days=1)
        return result

    if isinstance(variant, ClockTime):
        result = _at(now, variant.hour, variant.minute)
        if result <= now:
            result += timedelta(days=1)
        return result

    return now + FALLBACK_DELTA


def parse_datetime(text: str, now: datetime | None = None) -> datetime:
    """
    Parse Portuguese date expressions ("amanhã 14h", "daqui 30 minutos",
    "sexta", "2026-10-20T14:00") into an aware datetime strictly after
    `now`. Anything unparseable or not in the future becomes now + 1 hour.
    """
    tz = ZoneInfo(ASSISTANT_TIMEZONE)
    now = now.astimezone(tz) if now else datetime.now(tz)

    variant = classify(text, tz)
    result = resolve(variant, now)
    if result <= now:
        logger.warning(f"⚠️ Date '{text}' resolved to the past; using now + 1h")
        result = now + FALLBACK_DELTA

    logger.info(f"📅 Parsed '{text}' as {type(variant).__name__} -> {result.isoformat()}")
    return result
