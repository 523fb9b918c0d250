from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Address:
    """Street address (enderEmit / enderDest)."""

    x_lgr: str
    nro: str
    x_bairro: str
    c_mun: str
    x_mun: str
    uf: str
    cep: str | None = None
    x_cpl: str | None = None
    c_pais: str = "1058"
    x_pais: str = "BRASIL"
    fone: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Address:
        return cls(
            x_lgr=d["logradouro"],
            nro=str(d["numero"]),
            x_bairro=d["bairro"],
            c_mun=str(d["cod_municipio"]),
            x_mun=d["municipio"],
            uf=d["uf"],
            cep=str(d["cep"]) if d.get("cep") else None,
            x_cpl=d.get("complemento"),
            c_pais=str(d.get("cod_pais", "1058")),
            x_pais=d.get("pais", "BRASIL"),
            fone=str(d["fone"]) if d.get("fone") else None,
        )


@dataclass(frozen=True)
class Issuer:
    """Emitente (emit): the company issuing the NF-e."""

    x_nome: str
    ender_emit: Address
    ie: str
    crt: str = "3"  # 1 = Simples Nacional, 3 = regime normal
    cnpj: str | None = None
    cpf: str | None = None
    x_fant: str | None = None
    iest: str | None = None
    im: str | None = None
    cnae: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Issuer:
        """Create an Issuer from a YAML-loaded dict, applying defaults for optional fields."""
        return cls(
            x_nome=d["razao_social"],
            ender_emit=Address.from_dict(d["endereco"]),
            ie=str(d["ie"]),
            crt=str(d.get("crt", "3")),
            cnpj=str(d["cnpj"]) if d.get("cnpj") else None,
            cpf=str(d["cpf"]) if d.get("cpf") else None,
            x_fant=d.get("nome_fantasia"),
            iest=d.get("iest"),
            im=d.get("im"),
            cnae=str(d["cnae"]) if d.get("cnae") else None,
        )


@dataclass(frozen=True)
class Recipient:
    """Destinatario (dest). Optional on NFC-e (model 65)."""

    x_nome: str | None = None
    cnpj: str | None = None
    cpf: str | None = None
    id_estrangeiro: str | None = None
    ender_dest: Address | None = None
    ind_ie_dest: str = "9"  # 1 = contribuinte, 2 = isento, 9 = nao contribuinte
    ie: str | None = None
    isuf: str | None = None
    im: str | None = None
    email: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Recipient:
        endereco = d.get("endereco")
        return cls(
            x_nome=d.get("nome"),
            cnpj=str(d["cnpj"]) if d.get("cnpj") else None,
            cpf=str(d["cpf"]) if d.get("cpf") else None,
            id_estrangeiro=d.get("id_estrangeiro"),
            ender_dest=Address.from_dict(endereco) if endereco else None,
            ind_ie_dest=str(d.get("ind_ie_dest", "9")),
            ie=str(d["ie"]) if d.get("ie") else None,
            isuf=d.get("isuf"),
            im=d.get("im"),
            email=d.get("email"),
        )
