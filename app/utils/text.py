import html
import re
import unicodedata
from datetime import datetime, timezone

_NUMERIC_ENTITY_RE = re.compile(r"&#(\d+);")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace."""
    decoded = _NUMERIC_ENTITY_RE.sub(lambda m: chr(int(m.group(1))), text)
    decoded = html.unescape(decoded).lower()
    stripped = "".join(ch for ch in unicodedata.normalize("NFD", decoded) if not unicodedata.combining(ch))
    stripped = _PUNCTUATION_RE.sub("", stripped)
    return _WHITESPACE_RE.sub(" ", stripped).strip()


# (singular, plural) labels, largest unit last
_UNITS = (
    ("minuto", "minuti"),
    ("ora", "ore"),
    ("giorno", "giorni"),
    ("settimana", "settimane"),
    ("mese", "mesi"),
    ("anno", "anni"),
)


def _label(count: int, unit: int) -> str:
    singular, plural = _UNITS[unit]
    return f"{count} {singular if count == 1 else plural} fa"


def format_relative_time(timestamp: str, now: datetime | None = None) -> str | None:
    """Render an ISO-8601 timestamp as an Italian relative label ("3 giorni fa")."""
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    secs = int((now - moment).total_seconds())
    mins = secs // 60
    hours = mins // 60
    days = hours // 24

    if secs < 60:
        return "Adesso"
    if mins < 60:
        return _label(mins, 0)
    if hours < 24:
        return _label(hours, 1)
    if days < 7:
        return _label(days, 2)
    if days // 7 < 4:
        return _label(days // 7, 3)
    if days // 30 < 12:
        return _label(days // 30, 4)
    return _label(days // 365, 5)
