from __future__ import annotations

import re
import unicodedata
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from nfe.config import BRT
from nfe.services.exceptions import FormatError

_NON_DIGITS = re.compile(r"\D")
_WHITESPACE = re.compile(r"\s+")
# Characters outside the XML 1.0 Char production
_INVALID_XML = re.compile(r"[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def only_digits(value: str) -> str:
    """Strip every non-digit character."""
    return _NON_DIGITS.sub("", value)


def remove_accents(value: str) -> str:
    """Drop diacritics: 'Ação' -> 'Acao'."""
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def normalize_text(value: str | None, max_length: int, strip_accents: bool = False) -> str | None:
    """Normalize a free-text field for the NF-e layout.

    Drops characters XML cannot carry, trims, optionally removes diacritics,
    upper-cases, collapses internal whitespace and truncates to *max_length*
    characters. Empty input returns None.
    """
    if value is None:
        return None
    text = _INVALID_XML.sub("", value).strip()
    if not text:
        return None
    if strip_accents:
        text = remove_accents(text)
    text = _WHITESPACE.sub(" ", text.upper())
    return text[:max_length]


def parse_decimal(value: str | Decimal | int | None, field: str | None = None) -> Decimal:
    """Parse a wire decimal ('1234.56' or '1234,56'). Empty means zero."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip().replace(",", "."))
        except InvalidOperation:
            raise FormatError(f"{field or 'valor'}: numero invalido '{value}'", field, value) from None
    if not d.is_finite():
        raise FormatError(f"{field or 'valor'}: numero invalido '{value}'", field, value)
    return d


def round_half_up(value: Decimal, places: int = 2) -> Decimal:
    """Round half away from zero (Decimal's ROUND_HALF_UP)."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_decimal(value: str | Decimal, places: int) -> str:
    """Fixed-point string with exactly *places* decimals, never locale formatted."""
    return f"{round_half_up(parse_decimal(value), places):.{places}f}"


def format_currency(value: str | Decimal) -> str:
    return format_decimal(value, 2)


def format_datetime(dt: datetime) -> str:
    """Format as AAAA-MM-DDThh:mm:ssTZD (e.g. 2025-12-30T15:57:03-03:00)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=BRT)
    return dt.isoformat(timespec="seconds")


def now_brt() -> str:
    return format_datetime(datetime.now(BRT))


def parse_datetime(value: str) -> datetime:
    """Parse an NF-e date-time or date. Raises ValueError when unparseable."""
    return datetime.fromisoformat(value.strip())


def format_year_month(dt: datetime) -> str:
    """AAMM component of the access key."""
    return f"{dt.year % 100:02d}{dt.month:02d}"
