from __future__ import annotations

import pytest
from lxml import etree

from nfe.models.document import BuilderOptions
from nfe.models.identification import Identification
from nfe.models.item import Item, Product
from nfe.models.parties import Address, Issuer, Recipient
from nfe.models.payment import Payment, PaymentDetail
from nfe.models.taxes import COFINS, ICMS00, PIS, COFINSAliq, PISAliq, Tax
from nfe.models.transport import Transport
from nfe.services.nfe_builder import NFeBuilder

NS = {"n": "http://www.portalfiscal.inf.br/nfe"}

DH_EMI = "2025-12-30T15:57:03-03:00"


def xml_text(el: etree._Element, xpath: str) -> str | None:
    """Extract text from an XML element by xpath."""
    found = el.find(xpath)
    return found.text if found is not None else None


# --- Party fixtures ---


@pytest.fixture
def address_dict() -> dict:
    return {
        "logradouro": "Rua das Flores",
        "numero": "100",
        "bairro": "Centro",
        "cod_municipio": "4205407",
        "municipio": "Florianopolis",
        "uf": "SC",
        "cep": "88000-000",
        "fone": "48999999999",
    }


@pytest.fixture
def issuer_dict(address_dict: dict) -> dict:
    return {
        "cnpj": "12345678000199",
        "razao_social": "Acme Comercio Ltda",
        "nome_fantasia": "Acme",
        "ie": "123456789",
        "crt": "3",
        "endereco": address_dict,
    }


@pytest.fixture
def issuer(issuer_dict: dict) -> Issuer:
    return Issuer.from_dict(issuer_dict)


@pytest.fixture
def recipient_dict() -> dict:
    return {
        "cnpj": "98765432000110",
        "nome": "Cliente Exemplo SA",
        "ind_ie_dest": "9",
        "email": "compras@cliente.com.br",
        "endereco": {
            "logradouro": "Av Paulista",
            "numero": "1000",
            "bairro": "Bela Vista",
            "cod_municipio": "3550308",
            "municipio": "Sao Paulo",
            "uf": "SP",
            "cep": "01310100",
        },
    }


@pytest.fixture
def recipient(recipient_dict: dict) -> Recipient:
    return Recipient.from_dict(recipient_dict)


# --- Identification ---


@pytest.fixture
def identification() -> Identification:
    return Identification(
        c_uf="SC",
        c_nf="12345678",
        nat_op="Venda de mercadoria",
        serie="1",
        n_nf="42",
        dh_emi=DH_EMI,
        c_mun_fg="4205407",
    )


# --- Items ---


def make_product(**overrides) -> Product:
    values = dict(
        c_prod="P001",
        x_prod="Produto de teste",
        ncm="61091000",
        cfop="5102",
        u_com="UN",
        q_com="1.0000",
        v_un_com="100.00",
        v_prod="100.00",
    )
    values.update(overrides)
    return Product(**values)


def make_tax() -> Tax:
    return Tax(
        icms=ICMS00(orig="0", mod_bc="3", v_bc="100.00", p_icms="18.00", v_icms="18.00"),
        pis=PIS(PISAliq(cst="01", v_bc="100.00", p_pis="1.65", v_pis="1.65")),
        cofins=COFINS(COFINSAliq(cst="01", v_bc="100.00", p_cofins="7.60", v_cofins="7.60")),
    )


@pytest.fixture
def product() -> Product:
    return make_product()


@pytest.fixture
def item(product: Product) -> Item:
    return Item(prod=product, tax=make_tax())


@pytest.fixture
def transport() -> Transport:
    return Transport(mod_frete="9")


@pytest.fixture
def payment() -> Payment:
    return Payment(det_pag=(PaymentDetail(t_pag="01", v_pag="100.00"),))


# --- Builder ---


@pytest.fixture
def builder() -> NFeBuilder:
    return NFeBuilder(BuilderOptions())


@pytest.fixture
def ready_builder(builder, identification, issuer, recipient, item, transport, payment) -> NFeBuilder:
    """Builder with every required section stored, not yet built."""
    builder.set_identification(identification)
    builder.set_issuer(issuer)
    builder.set_recipient(recipient)
    builder.add_item(item)
    builder.set_transport(transport)
    builder.add_payment(payment)
    return builder


# --- Config dir fixture ---


@pytest.fixture
def config_dir(tmp_path):
    cfg = tmp_path / "config"
    cfg.mkdir()
    return cfg


@pytest.fixture(autouse=True)
def _clean_builder_env(monkeypatch):
    """Keep NFE_* overrides from the developer's shell or .env out of tests."""
    for var in (
        "NFE_AMBIENTE",
        "NFE_MODELO",
        "NFE_CHECK_GTIN",
        "NFE_REMOVE_ACCENTS",
        "NFE_ROUND_VALUES",
        "NFE_AUTO_CALCULATE",
    ):
        monkeypatch.delenv(var, raising=False)
