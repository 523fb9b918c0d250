from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal

from nfe.config import LAYOUT_VERSION, MODELS, TP_AMB
from nfe.models.identification import Identification
from nfe.models.item import Item
from nfe.models.parties import Issuer, Recipient
from nfe.models.payment import Payment
from nfe.models.transport import Transport
from nfe.services.exceptions import FormatError
from nfe.utils.access_key import AccessKey

_TRUE = frozenset({"1", "true", "yes", "on", "sim"})
_FALSE = frozenset({"0", "false", "no", "off", "nao"})


@dataclass(frozen=True)
class Observation:
    """Free-form field/text pair (obsCont / obsFisco)."""

    x_campo: str
    x_texto: str


@dataclass(frozen=True)
class AdditionalInfo:
    inf_ad_fisco: str | None = None
    inf_cpl: str | None = None
    obs_cont: tuple[Observation, ...] = ()
    obs_fisco: tuple[Observation, ...] = ()


@dataclass(frozen=True)
class Totals:
    """ICMSTot accumulators."""

    v_bc: Decimal = Decimal("0")
    v_icms: Decimal = Decimal("0")
    v_icms_deson: Decimal = Decimal("0")
    v_fcp: Decimal = Decimal("0")
    v_bc_st: Decimal = Decimal("0")
    v_st: Decimal = Decimal("0")
    v_fcp_st: Decimal = Decimal("0")
    v_fcp_st_ret: Decimal = Decimal("0")
    v_prod: Decimal = Decimal("0")
    v_frete: Decimal = Decimal("0")
    v_seg: Decimal = Decimal("0")
    v_desc: Decimal = Decimal("0")
    v_ii: Decimal = Decimal("0")
    v_ipi: Decimal = Decimal("0")
    v_ipi_devol: Decimal = Decimal("0")
    v_pis: Decimal = Decimal("0")
    v_cofins: Decimal = Decimal("0")
    v_outro: Decimal = Decimal("0")
    v_nf: Decimal = Decimal("0")
    v_tot_trib: Decimal = Decimal("0")

    def as_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class Document:
    """A completed NF-e. Produced only by ``NFeBuilder.build()``."""

    identification: Identification
    issuer: Issuer
    recipient: Recipient | None
    items: tuple[Item, ...]
    transport: Transport
    payments: tuple[Payment, ...]
    additional_info: AdditionalInfo | None
    totals: Totals
    access_key: AccessKey
    version: str = LAYOUT_VERSION

    @property
    def id(self) -> str:
        return self.access_key.id


def _as_bool(value: object, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise FormatError(f"{name}: valor booleano invalido '{value}'", name, value)


@dataclass(frozen=True)
class BuilderOptions:
    """Builder configuration. Each toggle affects only operations invoked after it is set."""

    environment: str = "homologacao"  # producao | homologacao
    model: str = "nfe"  # nfe (55) | nfce (65)
    version: str = LAYOUT_VERSION
    check_gtin: bool = True
    remove_accents: bool = False
    round_values: bool = True
    auto_calculate: bool = True

    def __post_init__(self) -> None:
        if self.environment not in TP_AMB:
            raise FormatError(f"ambiente invalido '{self.environment}'", "tpAmb", self.environment)
        if self.model not in MODELS:
            raise FormatError(f"modelo invalido '{self.model}'", "mod", self.model)

    @property
    def tp_amb(self) -> str:
        return TP_AMB[self.environment]

    @property
    def mod(self) -> str:
        return MODELS[self.model]

    @classmethod
    def from_dict(cls, d: dict) -> BuilderOptions:
        """Create options from a YAML/env-loaded dict; unknown keys are ignored."""
        kwargs: dict = {}
        for key in ("environment", "model", "version"):
            if d.get(key) is not None:
                kwargs[key] = str(d[key]).strip().lower() if key != "version" else str(d[key])
        for key in ("check_gtin", "remove_accents", "round_values", "auto_calculate"):
            if d.get(key) is not None:
                kwargs[key] = _as_bool(d[key], key)
        return cls(**kwargs)
