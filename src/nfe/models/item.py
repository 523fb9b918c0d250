from __future__ import annotations

from dataclasses import dataclass, field

from nfe.config import GTIN_SENTINEL
from nfe.models.taxes import Tax


@dataclass(frozen=True, kw_only=True)
class Product:
    """Product attributes of a line item (prod). Values use '.' as decimal separator."""

    c_prod: str
    x_prod: str
    ncm: str
    cfop: str
    u_com: str
    q_com: str
    v_un_com: str
    v_prod: str
    c_ean: str = GTIN_SENTINEL
    c_ean_trib: str = GTIN_SENTINEL
    cest: str | None = None
    ex_tipi: str | None = None
    u_trib: str | None = None  # defaults to u_com
    q_trib: str | None = None  # defaults to q_com
    v_un_trib: str | None = None  # defaults to v_un_com
    v_frete: str | None = None
    v_seg: str | None = None
    v_desc: str | None = None
    v_outro: str | None = None
    ind_tot: str = "1"  # 1 = compoe o valor total da NF-e
    x_ped: str | None = None
    n_item_ped: str | None = None


@dataclass(frozen=True)
class Item:
    """One line item (det). ``n_item`` is assigned by the builder."""

    prod: Product
    tax: Tax = field(default_factory=Tax)
    inf_ad_prod: str | None = None
    n_item: int | None = None
