from __future__ import annotations

import re
from collections.abc import Collection
from decimal import Decimal

from nfe.config import GTIN_SENTINEL, state_code
from nfe.services.exceptions import BusinessRuleError, FormatError, MissingFieldError
from nfe.utils.formatters import parse_datetime, parse_decimal

_GTIN_LENGTHS = frozenset({8, 12, 13, 14})
_CFOP_FIRST_DIGITS = frozenset("123567")
_EMAIL = re.compile(r"[^@\s]+@[^@\s]+\.[A-Za-z]{2,}")


def is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require(value: str | None, field: str) -> str:
    """Return *value* or raise MissingFieldError when absent or blank."""
    if is_blank(value):
        raise MissingFieldError(f"{field}: campo obrigatorio", field, value)
    return value  # type: ignore[return-value]


def validate_digits(
    value: str,
    field: str,
    *,
    width: int | None = None,
    max_width: int | None = None,
) -> str:
    """Validate a numeric code of exactly *width* or at most *max_width* digits."""
    if not re.fullmatch(r"\d+", value):
        raise FormatError(f"{field}: deve conter apenas digitos", field, value)
    if width is not None and len(value) != width:
        raise FormatError(f"{field}: deve ter {width} digitos", field, value)
    if max_width is not None and len(value) > max_width:
        raise FormatError(f"{field}: deve ter no maximo {max_width} digitos", field, value)
    return value


def validate_choice(value: str, field: str, choices: Collection[str]) -> str:
    """Validate an enumerated code."""
    if value not in choices:
        raise FormatError(f"{field}: codigo invalido '{value}'", field, value)
    return value


def validate_max_length(value: str | None, field: str, max_length: int) -> str | None:
    if value is not None and len(value) > max_length:
        raise FormatError(f"{field}: maximo de {max_length} caracteres", field, value)
    return value


def validate_decimal(value: str | None, field: str) -> Decimal:
    """Validate an optional non-negative decimal field and return its value."""
    d = parse_decimal(value, field)
    if d < 0:
        raise FormatError(f"{field}: valor nao pode ser negativo", field, value)
    return d


def validate_monetary(value: str, field: str = "valor") -> str:
    """Validate a required monetary value and normalize it to 2 decimal places."""
    require(value, field)
    d = validate_decimal(value, field)
    return f"{d:.2f}"


def validate_cnpj(value: str, field: str = "CNPJ") -> str:
    return validate_digits(value, field, width=14)


def validate_cpf(value: str, field: str = "CPF") -> str:
    return validate_digits(value, field, width=11)


def validate_uf(value: str, field: str = "cUF") -> str:
    """Validate a state given as UF abbreviation or IBGE code; return the IBGE code."""
    code = state_code(value)
    if code is None:
        raise FormatError(f"{field}: UF desconhecida '{value}'", field, value)
    return code


def validate_ncm(value: str) -> str:
    """NCM: 8 digits, or '00' for items that are not goods."""
    if value == "00":
        return value
    return validate_digits(value, "NCM", width=8)


def validate_cfop(value: str) -> str:
    validate_digits(value, "CFOP", width=4)
    if value[0] not in _CFOP_FIRST_DIGITS:
        raise FormatError("CFOP: primeiro digito invalido", "CFOP", value)
    return value


def gtin_check_digit(partial: str) -> int:
    """GS1 check digit: weights 3,1,3,... from the rightmost digit, mod 10."""
    total = 0
    for pos, ch in enumerate(reversed(partial)):
        total += int(ch) * (3 if pos % 2 == 0 else 1)
    return (10 - total % 10) % 10


def validate_gtin(value: str | None, field: str = "cEAN") -> str:
    """Validate a GTIN-8/12/13/14 or the 'SEM GTIN' sentinel."""
    value = require(value, field).strip()
    if value.upper() == GTIN_SENTINEL:
        return GTIN_SENTINEL
    if not re.fullmatch(r"\d+", value) or len(value) not in _GTIN_LENGTHS:
        raise BusinessRuleError(f"{field}: GTIN deve ter 8, 12, 13 ou 14 digitos", field, value)
    if gtin_check_digit(value[:-1]) != int(value[-1]):
        raise BusinessRuleError(f"{field}: digito verificador do GTIN invalido", field, value)
    return value


def validate_datetime(value: str, field: str = "dhEmi") -> str:
    try:
        parse_datetime(value)
    except ValueError:
        raise FormatError(f"{field}: data/hora invalida '{value}'", field, value) from None
    return value


def validate_email(value: str, field: str = "email") -> str:
    if not _EMAIL.fullmatch(value):
        raise FormatError(f"{field}: e-mail invalido", field, value)
    return value
