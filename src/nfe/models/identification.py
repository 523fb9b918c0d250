from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class Identification:
    """Operation metadata (ide). Fields left as None are defaulted by the builder."""

    c_uf: str  # IBGE code or UF abbreviation
    nat_op: str
    serie: str
    c_mun_fg: str
    n_nf: str | None = None  # reserved from the local counter when absent
    c_nf: str | None = None  # random code, generated when absent
    mod: str | None = None  # 55 = NF-e, 65 = NFC-e
    dh_emi: str | None = None
    dh_sai_ent: str | None = None
    tp_nf: str = "1"  # 0 = entrada, 1 = saida
    id_dest: str = "1"
    tp_imp: str = "1"
    tp_emis: str = "1"
    c_dv: str | None = None  # back-filled from the access key
    tp_amb: str | None = None
    fin_nfe: str = "1"
    ind_final: str = "0"
    ind_pres: str = "1"
    ind_intermed: str | None = None
    proc_emi: str = "0"
    ver_proc: str = "emissor-nfe_0.1.0"

    @classmethod
    def from_dict(cls, d: dict) -> Identification:
        """Create an Identification from a YAML-loaded dict; numeric values are coerced to str."""
        return cls(**{k: (str(v) if v is not None else None) for k, v in d.items()})
