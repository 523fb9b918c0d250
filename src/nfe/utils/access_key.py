from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, replace

from nfe.config import KEY_PREFIX, state_code
from nfe.services.exceptions import DerivationError
from nfe.utils.formatters import format_year_month, parse_datetime

KEY_LENGTH = 44


@dataclass(frozen=True)
class AccessKey:
    """NF-e access key and its constituent fields.

    Layout: cUF(2) + AAMM(4) + CNPJ(14) + mod(2) + serie(3) + nNF(9)
    + tpEmis(1) + cNF(8) + cDV(1) = 44 digits.
    """

    c_uf: str
    aamm: str
    cnpj: str
    mod: str
    serie: str
    n_nf: str
    tp_emis: str
    c_nf: str
    c_dv: str
    key: str

    @property
    def id(self) -> str:
        """Value of the infNFe Id attribute."""
        return f"{KEY_PREFIX}{self.key}"

    def formatted(self) -> str:
        return format_access_key(self.key)


def calculate_check_digit(digits: str) -> int:
    """Modulo-11 check digit over a 43-digit key body.

    Weights 2..9 cycle from the rightmost digit; remainder 0 or 1 gives 0.
    """
    if not re.fullmatch(r"\d+", digits):
        raise DerivationError("Chave de acesso: base deve conter apenas digitos", "chNFe", digits)
    total = 0
    weight = 2
    for ch in reversed(digits):
        total += int(ch) * weight
        weight = 2 if weight == 9 else weight + 1
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def _fixed(value: str | int, width: int, field: str) -> str:
    text = str(value).strip()
    if not re.fullmatch(r"\d+", text):
        raise DerivationError(f"{field}: deve conter apenas digitos", field, value)
    if len(text) > width:
        raise DerivationError(f"{field}: excede {width} digitos", field, value)
    return text.zfill(width)


def generate_access_key(
    c_uf: str,
    cnpj: str,
    mod: str,
    serie: str | int,
    n_nf: str | int,
    tp_emis: str | int,
    c_nf: str | int,
    dh_emi: str,
) -> AccessKey:
    """Build the 44-digit access key. Identical inputs always yield the same key.

    *cnpj* may also be an 11-digit CPF, left-padded to 14 digits.
    Raises DerivationError when a field cannot be coerced to its width.
    """
    uf = state_code(str(c_uf))
    if uf is None:
        raise DerivationError(f"cUF: UF desconhecida '{c_uf}'", "cUF", c_uf)
    try:
        issued = parse_datetime(dh_emi)
    except (TypeError, ValueError):
        raise DerivationError(f"dhEmi: data/hora invalida '{dh_emi}'", "dhEmi", dh_emi) from None

    parts = AccessKey(
        c_uf=uf,
        aamm=format_year_month(issued),
        cnpj=_fixed(cnpj, 14, "CNPJ"),
        mod=_fixed(mod, 2, "mod"),
        serie=_fixed(serie, 3, "serie"),
        n_nf=_fixed(n_nf, 9, "nNF"),
        tp_emis=_fixed(tp_emis, 1, "tpEmis"),
        c_nf=_fixed(c_nf, 8, "cNF"),
        c_dv="",
        key="",
    )
    body = "".join(
        [parts.c_uf, parts.aamm, parts.cnpj, parts.mod, parts.serie, parts.n_nf, parts.tp_emis, parts.c_nf]
    )
    c_dv = str(calculate_check_digit(body))
    key = body + c_dv
    if len(key) != KEY_LENGTH:
        raise DerivationError(f"Chave de acesso deve ter 44 digitos, obtido {len(key)}", "chNFe", key)
    return replace(parts, c_dv=c_dv, key=key)


def parse_access_key(key: str) -> AccessKey:
    """Split a 44-digit key into its fields, verifying the check digit."""
    digits = re.sub(r"\s", "", key)
    if digits.startswith(KEY_PREFIX):
        digits = digits[len(KEY_PREFIX):]
    if not re.fullmatch(r"\d{44}", digits):
        raise DerivationError("Chave de acesso: deve ter exatamente 44 digitos", "chNFe", key)
    if calculate_check_digit(digits[:43]) != int(digits[43]):
        raise DerivationError("Chave de acesso: digito verificador invalido", "chNFe", key)
    return AccessKey(
        c_uf=digits[0:2],
        aamm=digits[2:6],
        cnpj=digits[6:20],
        mod=digits[20:22],
        serie=digits[22:25],
        n_nf=digits[25:34],
        tp_emis=digits[34:35],
        c_nf=digits[35:43],
        c_dv=digits[43],
        key=digits,
    )


def is_valid_access_key(key: str) -> bool:
    try:
        parse_access_key(key)
    except DerivationError:
        return False
    return True


def format_access_key(key: str) -> str:
    """Group the key in blocks of four digits for display (DANFE style)."""
    return " ".join(key[i:i + 4] for i in range(0, len(key), 4))


def generate_random_code() -> str:
    """Random 8-digit cNF."""
    return f"{secrets.randbelow(10**8):08d}"


def random_code_collides(c_nf: str, n_nf: str | int) -> bool:
    """True when cNF equals the trailing 8 digits of the zero-padded nNF."""
    return c_nf.zfill(8) == str(n_nf).zfill(9)[-8:]
