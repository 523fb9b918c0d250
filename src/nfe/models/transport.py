from __future__ import annotations

from dataclasses import dataclass

# 0 = emitente, 1 = destinatario, 2 = terceiros, 3 = proprio remetente,
# 4 = proprio destinatario, 9 = sem frete
FREIGHT_MODES = frozenset({"0", "1", "2", "3", "4", "9"})


@dataclass(frozen=True)
class Carrier:
    """Transportadora (transporta)."""

    cnpj: str | None = None
    cpf: str | None = None
    x_nome: str | None = None
    ie: str | None = None
    x_ender: str | None = None
    x_mun: str | None = None
    uf: str | None = None


@dataclass(frozen=True)
class Vehicle:
    """Veiculo de tracao (veicTransp)."""

    placa: str
    uf: str | None = None
    rntc: str | None = None


@dataclass(frozen=True)
class Volume:
    q_vol: str | None = None
    esp: str | None = None
    marca: str | None = None
    n_vol: str | None = None
    peso_l: str | None = None
    peso_b: str | None = None


@dataclass(frozen=True)
class Transport:
    mod_frete: str = "9"
    transporta: Carrier | None = None
    veic_transp: Vehicle | None = None
    vol: tuple[Volume, ...] = ()
