from __future__ import annotations

import logging
import threading
from dataclasses import fields
from decimal import Decimal

from nfe.models.document import Totals
from nfe.models.item import Product
from nfe.models.taxes import COFINSAliq, COFINSQtde, IPITrib, PISAliq, PISQtde, Tax
from nfe.utils.formatters import parse_decimal, round_half_up

logger = logging.getLogger(__name__)

_FIELDS = tuple(f.name for f in fields(Totals))

# ICMS variant attribute -> ICMSTot accumulator
_ICMS_CONTRIBUTIONS = {
    "v_bc": "v_bc",
    "v_icms": "v_icms",
    "v_bc_st": "v_bc_st",
    "v_icms_st": "v_st",
    "v_icms_deson": "v_icms_deson",
    "v_fcp": "v_fcp",
    "v_fcp_st": "v_fcp_st",
    "v_fcp_st_ret": "v_fcp_st_ret",
}

_PRODUCT_CONTRIBUTIONS = ("v_frete", "v_seg", "v_desc", "v_outro")


def _zero() -> dict[str, Decimal]:
    return dict.fromkeys(_FIELDS, Decimal("0"))


def grand_total(acc: dict[str, Decimal]) -> Decimal:
    """vNF = vProd - vDesc - vICMSDeson + vST + vFrete + vSeg + vOutro + vII + vIPI.

    vPIS and vCOFINS are not part of vNF.
    """
    return (
        acc["v_prod"]
        - acc["v_desc"]
        - acc["v_icms_deson"]
        + acc["v_st"]
        + acc["v_frete"]
        + acc["v_seg"]
        + acc["v_outro"]
        + acc["v_ii"]
        + acc["v_ipi"]
    )


def item_contribution(product: Product, tax: Tax) -> dict[str, Decimal]:
    """Amounts one item adds to the document totals.

    Raises FormatError when a monetary field is not a decimal number.
    """
    contrib: dict[str, Decimal] = {}

    def add(name: str, value: str | None, field: str) -> None:
        if value is None or value == "":
            return
        contrib[name] = contrib.get(name, Decimal("0")) + parse_decimal(value, field)

    if product.ind_tot == "1":
        add("v_prod", product.v_prod, "vProd")
    for name in _PRODUCT_CONTRIBUTIONS:
        add(name, getattr(product, name), name)

    if tax.icms is not None:
        for attr, name in _ICMS_CONTRIBUTIONS.items():
            add(name, getattr(tax.icms, attr, None), attr)

    if tax.ipi is not None and isinstance(tax.ipi.situation, IPITrib):
        add("v_ipi", tax.ipi.situation.v_ipi, "vIPI")

    if tax.pis is not None and isinstance(tax.pis.variant, (PISAliq, PISQtde)):
        add("v_pis", tax.pis.variant.v_pis, "vPIS")

    if tax.cofins is not None and isinstance(tax.cofins.variant, (COFINSAliq, COFINSQtde)):
        add("v_cofins", tax.cofins.variant.v_cofins, "vCOFINS")

    if tax.ii is not None:
        add("v_ii", tax.ii.v_ii, "vII")

    add("v_tot_trib", tax.v_tot_trib, "vTotTrib")
    return contrib


class Totalizer:
    """Running ICMSTot accumulators for one document.

    Contributions are parsed before the lock is taken, so a malformed item
    leaves the accumulators untouched.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._acc = _zero()

    def add_item(self, product: Product, tax: Tax) -> None:
        contrib = item_contribution(product, tax)
        with self._lock:
            for name, value in contrib.items():
                self._acc[name] += value

    def finalize(self, round_values: bool = True) -> Totals:
        """Totals with vNF derived; when *round_values*, each rounded to 2 places.

        The raw sums are kept, so rounding is applied once to the full sum no
        matter how many times finalize runs between contributions.
        """
        with self._lock:
            acc = dict(self._acc)
        if round_values:
            acc = {name: round_half_up(value) for name, value in acc.items()}
            acc["v_nf"] = round_half_up(grand_total(acc))
        else:
            acc["v_nf"] = grand_total(acc)
        totals = Totals(**acc)
        logger.debug("Totals finalized: vProd=%s vNF=%s", totals.v_prod, totals.v_nf)
        return totals

    def snapshot(self) -> Totals:
        """Unrounded running totals, vNF included."""
        with self._lock:
            acc = dict(self._acc)
        acc["v_nf"] = grand_total(acc)
        return Totals(**acc)
