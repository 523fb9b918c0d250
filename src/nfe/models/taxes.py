"""Per-item tax records (imposto).

Each mutually-exclusive situation is its own record class; ``tag`` is the
element name it renders to. A ``Tax`` holds at most one ICMS variant, so
"exactly one variant populated" holds by construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

# -- ICMS, regime normal (CST) ------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class ICMS00:
    tag: ClassVar[str] = "ICMS00"

    orig: str
    cst: str = "00"
    mod_bc: str
    v_bc: str
    p_icms: str
    v_icms: str
    p_fcp: str | None = None
    v_fcp: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS10:
    tag: ClassVar[str] = "ICMS10"

    orig: str
    cst: str = "10"
    mod_bc: str
    v_bc: str
    p_icms: str
    v_icms: str
    v_bc_fcp: str | None = None
    p_fcp: str | None = None
    v_fcp: str | None = None
    mod_bc_st: str
    p_mva_st: str | None = None
    p_red_bc_st: str | None = None
    v_bc_st: str
    p_icms_st: str
    v_icms_st: str
    v_bc_fcp_st: str | None = None
    p_fcp_st: str | None = None
    v_fcp_st: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS20:
    tag: ClassVar[str] = "ICMS20"

    orig: str
    cst: str = "20"
    mod_bc: str
    p_red_bc: str
    v_bc: str
    p_icms: str
    v_icms: str
    v_bc_fcp: str | None = None
    p_fcp: str | None = None
    v_fcp: str | None = None
    v_icms_deson: str | None = None
    mot_des_icms: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS30:
    tag: ClassVar[str] = "ICMS30"

    orig: str
    cst: str = "30"
    mod_bc_st: str
    p_mva_st: str | None = None
    p_red_bc_st: str | None = None
    v_bc_st: str
    p_icms_st: str
    v_icms_st: str
    v_bc_fcp_st: str | None = None
    p_fcp_st: str | None = None
    v_fcp_st: str | None = None
    v_icms_deson: str | None = None
    mot_des_icms: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS40:
    """Isenta (40), nao tributada (41) or suspensao (50)."""

    tag: ClassVar[str] = "ICMS40"

    orig: str
    cst: str = "40"
    v_icms_deson: str | None = None
    mot_des_icms: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS51:
    tag: ClassVar[str] = "ICMS51"

    orig: str
    cst: str = "51"
    mod_bc: str | None = None
    p_red_bc: str | None = None
    v_bc: str | None = None
    p_icms: str | None = None
    v_icms_op: str | None = None
    p_dif: str | None = None
    v_icms_dif: str | None = None
    v_icms: str | None = None
    v_bc_fcp: str | None = None
    p_fcp: str | None = None
    v_fcp: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS60:
    """ICMS previously charged by substitution."""

    tag: ClassVar[str] = "ICMS60"

    orig: str
    cst: str = "60"
    v_bc_st_ret: str | None = None
    p_st: str | None = None
    v_icms_substituto: str | None = None
    v_icms_st_ret: str | None = None
    v_bc_fcp_st_ret: str | None = None
    p_fcp_st_ret: str | None = None
    v_fcp_st_ret: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS70:
    tag: ClassVar[str] = "ICMS70"

    orig: str
    cst: str = "70"
    mod_bc: str
    p_red_bc: str
    v_bc: str
    p_icms: str
    v_icms: str
    v_bc_fcp: str | None = None
    p_fcp: str | None = None
    v_fcp: str | None = None
    mod_bc_st: str
    p_mva_st: str | None = None
    p_red_bc_st: str | None = None
    v_bc_st: str
    p_icms_st: str
    v_icms_st: str
    v_bc_fcp_st: str | None = None
    p_fcp_st: str | None = None
    v_fcp_st: str | None = None
    v_icms_deson: str | None = None
    mot_des_icms: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMS90:
    tag: ClassVar[str] = "ICMS90"

    orig: str
    cst: str = "90"
    mod_bc: str | None = None
    v_bc: str | None = None
    p_red_bc: str | None = None
    p_icms: str | None = None
    v_icms: str | None = None
    v_bc_fcp: str | None = None
    p_fcp: str | None = None
    v_fcp: str | None = None
    mod_bc_st: str | None = None
    p_mva_st: str | None = None
    p_red_bc_st: str | None = None
    v_bc_st: str | None = None
    p_icms_st: str | None = None
    v_icms_st: str | None = None
    v_bc_fcp_st: str | None = None
    p_fcp_st: str | None = None
    v_fcp_st: str | None = None
    v_icms_deson: str | None = None
    mot_des_icms: str | None = None


# -- ICMS, Simples Nacional (CSOSN) -------------------------------------------


@dataclass(frozen=True, kw_only=True)
class ICMSSN101:
    tag: ClassVar[str] = "ICMSSN101"

    orig: str
    csosn: str = "101"
    p_cred_sn: str
    v_cred_icms_sn: str


@dataclass(frozen=True, kw_only=True)
class ICMSSN102:
    """CSOSN 102, 103, 300 or 400."""

    tag: ClassVar[str] = "ICMSSN102"

    orig: str
    csosn: str = "102"


@dataclass(frozen=True, kw_only=True)
class ICMSSN201:
    tag: ClassVar[str] = "ICMSSN201"

    orig: str
    csosn: str = "201"
    mod_bc_st: str
    p_mva_st: str | None = None
    p_red_bc_st: str | None = None
    v_bc_st: str
    p_icms_st: str
    v_icms_st: str
    v_bc_fcp_st: str | None = None
    p_fcp_st: str | None = None
    v_fcp_st: str | None = None
    p_cred_sn: str | None = None
    v_cred_icms_sn: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMSSN202:
    tag: ClassVar[str] = "ICMSSN202"

    orig: str
    csosn: str = "202"
    mod_bc_st: str
    p_mva_st: str | None = None
    p_red_bc_st: str | None = None
    v_bc_st: str
    p_icms_st: str
    v_icms_st: str
    v_bc_fcp_st: str | None = None
    p_fcp_st: str | None = None
    v_fcp_st: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMSSN500:
    tag: ClassVar[str] = "ICMSSN500"

    orig: str
    csosn: str = "500"
    v_bc_st_ret: str | None = None
    p_st: str | None = None
    v_icms_substituto: str | None = None
    v_icms_st_ret: str | None = None
    v_bc_fcp_st_ret: str | None = None
    p_fcp_st_ret: str | None = None
    v_fcp_st_ret: str | None = None


@dataclass(frozen=True, kw_only=True)
class ICMSSN900:
    tag: ClassVar[str] = "ICMSSN900"

    orig: str
    csosn: str = "900"
    mod_bc: str | None = None
    v_bc: str | None = None
    p_red_bc: str | None = None
    p_icms: str | None = None
    v_icms: str | None = None
    mod_bc_st: str | None = None
    p_mva_st: str | None = None
    p_red_bc_st: str | None = None
    v_bc_st: str | None = None
    p_icms_st: str | None = None
    v_icms_st: str | None = None
    v_bc_fcp_st: str | None = None
    p_fcp_st: str | None = None
    v_fcp_st: str | None = None
    p_cred_sn: str | None = None
    v_cred_icms_sn: str | None = None


ICMS = Union[
    ICMS00, ICMS10, ICMS20, ICMS30, ICMS40, ICMS51, ICMS60, ICMS70, ICMS90,
    ICMSSN101, ICMSSN102, ICMSSN201, ICMSSN202, ICMSSN500, ICMSSN900,
]

ICMS_VARIANTS: tuple[type, ...] = ICMS.__args__  # type: ignore[attr-defined]


# -- IPI ----------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class IPITrib:
    """Taxed IPI: either rate over base (v_bc/p_ipi) or per unit (q_unid/v_unid)."""

    tag: ClassVar[str] = "IPITrib"

    cst: str
    v_bc: str | None = None
    p_ipi: str | None = None
    q_unid: str | None = None
    v_unid: str | None = None
    v_ipi: str


@dataclass(frozen=True, kw_only=True)
class IPINT:
    tag: ClassVar[str] = "IPINT"

    cst: str


@dataclass(frozen=True, kw_only=True)
class IPI:
    c_enq: str = "999"
    situation: IPITrib | IPINT
    cnpj_prod: str | None = None
    c_selo: str | None = None
    q_selo: str | None = None


# -- Imposto de importacao ----------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class ImportTax:
    tag: ClassVar[str] = "II"

    v_bc: str
    v_desp_adu: str = "0.00"
    v_ii: str
    v_iof: str = "0.00"


# -- PIS ----------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class PISAliq:
    tag: ClassVar[str] = "PISAliq"

    cst: str
    v_bc: str
    p_pis: str
    v_pis: str


@dataclass(frozen=True, kw_only=True)
class PISQtde:
    tag: ClassVar[str] = "PISQtde"

    cst: str = "03"
    q_bc_prod: str
    v_aliq_prod: str
    v_pis: str


@dataclass(frozen=True, kw_only=True)
class PISNT:
    tag: ClassVar[str] = "PISNT"

    cst: str


@dataclass(frozen=True, kw_only=True)
class PISOutr:
    tag: ClassVar[str] = "PISOutr"

    cst: str
    v_bc: str | None = None
    p_pis: str | None = None
    q_bc_prod: str | None = None
    v_aliq_prod: str | None = None
    v_pis: str


@dataclass(frozen=True)
class PIS:
    variant: PISAliq | PISQtde | PISNT | PISOutr


# -- COFINS -------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class COFINSAliq:
    tag: ClassVar[str] = "COFINSAliq"

    cst: str
    v_bc: str
    p_cofins: str
    v_cofins: str


@dataclass(frozen=True, kw_only=True)
class COFINSQtde:
    tag: ClassVar[str] = "COFINSQtde"

    cst: str = "03"
    q_bc_prod: str
    v_aliq_prod: str
    v_cofins: str


@dataclass(frozen=True, kw_only=True)
class COFINSNT:
    tag: ClassVar[str] = "COFINSNT"

    cst: str


@dataclass(frozen=True, kw_only=True)
class COFINSOutr:
    tag: ClassVar[str] = "COFINSOutr"

    cst: str
    v_bc: str | None = None
    p_cofins: str | None = None
    q_bc_prod: str | None = None
    v_aliq_prod: str | None = None
    v_cofins: str


@dataclass(frozen=True)
class COFINS:
    variant: COFINSAliq | COFINSQtde | COFINSNT | COFINSOutr


@dataclass(frozen=True)
class Tax:
    """Tax sub-record of an item, as produced by the tax-computation collaborator."""

    icms: ICMS | None = None
    ipi: IPI | None = None
    ii: ImportTax | None = None
    pis: PIS | None = None
    cofins: COFINS | None = None
    v_tot_trib: str | None = None
