from __future__ import annotations

from dataclasses import dataclass

# tPag codes accepted by layout 4.00
PAYMENT_TYPES = frozenset({
    "01", "02", "03", "04", "05", "10", "11", "12", "13", "15",
    "16", "17", "18", "19", "20", "90", "99",
})

MAX_PAYMENT_DETAILS = 100


@dataclass(frozen=True)
class Card:
    """Card data (card), for tPag 03/04/17."""

    tp_integra: str = "2"
    cnpj: str | None = None
    t_band: str | None = None
    c_aut: str | None = None


@dataclass(frozen=True, kw_only=True)
class PaymentDetail:
    t_pag: str
    v_pag: str
    ind_pag: str | None = None  # 0 = a vista, 1 = a prazo
    x_pag: str | None = None  # description, required for tPag 99
    card: Card | None = None


@dataclass(frozen=True)
class Payment:
    """Payment group (pag) with 1 to 100 detPag entries."""

    det_pag: tuple[PaymentDetail, ...]
    v_troco: str | None = None
