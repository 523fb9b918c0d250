from __future__ import annotations

import threading
from dataclasses import replace
from decimal import Decimal
from unittest.mock import patch

import pytest
from lxml import etree

from nfe.models.document import AdditionalInfo, BuilderOptions, Document, Observation
from nfe.models.item import Item
from nfe.models.parties import Recipient
from nfe.models.payment import Payment, PaymentDetail
from nfe.models.taxes import Tax
from nfe.models.transport import Carrier, Transport, Vehicle, Volume
from nfe.services.exceptions import BusinessRuleError, FormatError, MissingFieldError, SerializationError
from nfe.services.nfe_builder import NFeBuilder
from nfe.utils import sequence
from nfe.utils.access_key import generate_access_key, is_valid_access_key
from tests.conftest import make_product, make_tax


class TestConfiguration:
    def test_defaults(self):
        opts = NFeBuilder().options
        assert opts.environment == "homologacao"
        assert opts.model == "nfe"
        assert opts.check_gtin is True
        assert opts.remove_accents is False
        assert opts.round_values is True
        assert opts.auto_calculate is True

    def test_configure_returns_builder(self, builder):
        assert builder.configure(check_gtin=False) is builder
        assert builder.options.check_gtin is False

    def test_configure_invalid_model(self, builder):
        with pytest.raises(FormatError, match="modelo"):
            builder.configure(model="nfse")

    def test_from_config(self, monkeypatch, config_dir):
        (config_dir / "builder.yaml").write_text("model: nfce\nround_values: false\n")
        monkeypatch.setenv("NFE_CONFIG_DIR", str(config_dir))
        monkeypatch.setenv("NFE_AMBIENTE", "producao")
        b = NFeBuilder.from_config()
        assert b.options.model == "nfce"
        assert b.options.environment == "producao"
        assert b.options.round_values is False


class TestSetIdentification:
    def test_none_rejected(self, builder):
        with pytest.raises(MissingFieldError, match="ide"):
            builder.set_identification(None)

    def test_missing_nat_op(self, builder, identification):
        with pytest.raises(MissingFieldError, match="natOp"):
            builder.set_identification(replace(identification, nat_op="  "))

    def test_defaults_applied(self, builder, identification):
        builder.set_identification(replace(identification, dh_emi=None))
        ide = builder._identification
        assert ide.c_uf == "42"
        assert ide.mod == "55"
        assert ide.tp_amb == "2"
        assert ide.dh_emi is not None
        assert ide.nat_op == "VENDA DE MERCADORIA"

    def test_model_toggle_not_retroactive(self, builder, identification):
        builder.set_identification(identification)
        builder.configure(model="nfce", environment="producao")
        assert builder._identification.mod == "55"
        assert builder._identification.tp_amb == "2"

    def test_generates_random_code(self, builder, identification):
        builder.set_identification(replace(identification, c_nf=None))
        assert len(builder._identification.c_nf) == 8

    def test_regenerates_colliding_code(self, builder, identification):
        ide = replace(identification, c_nf="00000042", n_nf="42")
        with patch(
            "nfe.services.nfe_builder.generate_random_code",
            side_effect=["00000042", "77777777"],
        ) as gen:
            builder.set_identification(ide)
        assert gen.call_count == 2
        assert builder._identification.c_nf == "77777777"
        assert builder._identification.c_nf != builder._identification.n_nf.zfill(9)[-8:]

    def test_generated_code_collision_redrawn(self, builder, identification):
        ide = replace(identification, c_nf=None, n_nf="123456789")
        with patch(
            "nfe.services.nfe_builder.generate_random_code",
            side_effect=["23456789", "11111111"],
        ):
            builder.set_identification(ide)
        assert builder._identification.c_nf == "11111111"

    def test_bad_series(self, builder, identification):
        with pytest.raises(FormatError, match="serie"):
            builder.set_identification(replace(identification, serie="1000"))

    def test_bad_enumeration(self, builder, identification):
        with pytest.raises(FormatError, match="finNFe"):
            builder.set_identification(replace(identification, fin_nfe="7"))

    def test_failure_keeps_previous(self, builder, identification):
        builder.set_identification(identification)
        with pytest.raises(FormatError):
            builder.set_identification(replace(identification, n_nf="ABC"))
        assert builder._identification.n_nf == "42"

    def test_reserves_number_when_absent(self, builder, identification, tmp_path):
        with patch("nfe.config.get_data_dir", return_value=tmp_path):
            builder.set_identification(replace(identification, n_nf=None))
            assert builder._identification.n_nf == "1"
            builder.set_identification(replace(identification, n_nf=None))
            assert builder._identification.n_nf == "2"
            assert sequence.current_n_nf(1, "homologacao", "55") == 2
            assert sequence.current_n_nf(1, "homologacao", "65") == 0

    def test_explicit_number_not_reserved(self, builder, identification, tmp_path):
        with patch("nfe.config.get_data_dir", return_value=tmp_path):
            builder.set_identification(identification)
            assert sequence.current_n_nf(1, "homologacao", "55") == 0

    def test_rejected_ide_does_not_consume_number(self, builder, identification, tmp_path):
        with patch("nfe.config.get_data_dir", return_value=tmp_path):
            with pytest.raises(FormatError, match="finNFe"):
                builder.set_identification(replace(identification, n_nf=None, fin_nfe="7"))
            assert sequence.current_n_nf(1, "homologacao", "55") == 0


class TestSetIssuer:
    def test_normalizes_names(self, builder, issuer):
        builder.set_issuer(replace(issuer, x_nome="  acme   comercio  ", cnpj="12.345.678/0001-99"))
        assert builder._issuer.x_nome == "ACME COMERCIO"
        assert builder._issuer.cnpj == "12345678000199"

    def test_truncates_name(self, builder, issuer):
        builder.set_issuer(replace(issuer, x_nome="A" * 80))
        assert len(builder._issuer.x_nome) == 60

    def test_removes_accents_when_enabled(self, builder, issuer):
        builder.configure(remove_accents=True)
        builder.set_issuer(replace(issuer, x_nome="Comércio São João"))
        assert builder._issuer.x_nome == "COMERCIO SAO JOAO"

    def test_accent_toggle_not_retroactive(self, builder, issuer):
        builder.set_issuer(replace(issuer, x_nome="Ação"))
        builder.configure(remove_accents=True)
        assert builder._issuer.x_nome == "AÇÃO"

    def test_requires_tax_id(self, builder, issuer):
        with pytest.raises(MissingFieldError, match="CNPJ ou CPF"):
            builder.set_issuer(replace(issuer, cnpj=None, cpf=None))

    def test_rejects_both_tax_ids(self, builder, issuer):
        with pytest.raises(BusinessRuleError):
            builder.set_issuer(replace(issuer, cpf="12345678909"))

    def test_rejects_short_cnpj(self, builder, issuer):
        with pytest.raises(FormatError, match="CNPJ"):
            builder.set_issuer(replace(issuer, cnpj="1234"))

    def test_requires_ie(self, builder, issuer):
        with pytest.raises(MissingFieldError, match="IE"):
            builder.set_issuer(replace(issuer, ie=""))


class TestSetRecipient:
    def test_none_rejected_for_nfe(self, builder):
        with pytest.raises(BusinessRuleError, match="dest"):
            builder.set_recipient(None)

    def test_none_accepted_for_nfce(self):
        b = NFeBuilder(BuilderOptions(model="nfce"))
        b.set_recipient(None)
        assert b._recipient is None

    def test_requires_id_for_nfe(self, builder, recipient):
        with pytest.raises(MissingFieldError, match="idEstrangeiro"):
            builder.set_recipient(replace(recipient, cnpj=None))

    def test_foreign_recipient(self, builder, recipient):
        foreign = replace(
            recipient,
            cnpj=None,
            id_estrangeiro="AB123456",
            ender_dest=replace(recipient.ender_dest, uf="EX", c_mun="9999999", cep=None),
        )
        builder.set_recipient(foreign)
        assert builder._recipient.id_estrangeiro == "AB123456"

    def test_contribuinte_requires_ie(self, builder, recipient):
        with pytest.raises(MissingFieldError, match="IE"):
            builder.set_recipient(replace(recipient, ind_ie_dest="1", ie=None))

    def test_invalid_email(self, builder, recipient):
        with pytest.raises(FormatError, match="email"):
            builder.set_recipient(replace(recipient, email="not-an-email"))

    def test_nfce_consumer_without_address(self):
        b = NFeBuilder(BuilderOptions(model="nfce"))
        b.set_recipient(Recipient(cpf="12345678909"))
        assert b._recipient.cpf == "12345678909"
        assert b._recipient.ender_dest is None


class TestAddItem:
    def test_assigns_sequence_numbers(self, builder, item):
        first = builder.add_item(item)
        second = builder.add_item(item)
        assert (first.n_item, second.n_item) == (1, 2)
        assert [i.n_item for i in builder.items] == [1, 2]

    def test_none_rejected(self, builder):
        with pytest.raises(MissingFieldError, match="det"):
            builder.add_item(None)

    @pytest.mark.parametrize(
        "field,tag",
        [("c_prod", "cProd"), ("x_prod", "xProd"), ("ncm", "NCM"), ("cfop", "CFOP")],
    )
    def test_required_product_fields(self, builder, field, tag):
        with pytest.raises(MissingFieldError, match=tag):
            builder.add_item(Item(prod=make_product(**{field: ""})))

    def test_product_code_too_long(self, builder):
        with pytest.raises(FormatError, match="cProd: maximo de 60"):
            builder.add_item(Item(prod=make_product(c_prod="C" * 61)))

    def test_bad_cfop(self, builder):
        with pytest.raises(FormatError, match="CFOP"):
            builder.add_item(Item(prod=make_product(cfop="4102")))

    def test_invalid_gtin_rejected(self, builder):
        with pytest.raises(BusinessRuleError, match="cEAN"):
            builder.add_item(Item(prod=make_product(c_ean="7891234567890")))

    def test_valid_gtin_accepted(self, builder):
        stored = builder.add_item(Item(prod=make_product(c_ean="7891234567895")))
        assert stored.prod.c_ean == "7891234567895"

    def test_gtin_check_disabled(self, builder):
        builder.configure(check_gtin=False)
        stored = builder.add_item(Item(prod=make_product(c_ean="123")))
        assert stored.prod.c_ean == "123"

    def test_description_normalized(self, builder):
        stored = builder.add_item(Item(prod=make_product(x_prod="x" * 200), inf_ad_prod="  obs  "))
        assert stored.prod.x_prod == "X" * 120
        assert stored.inf_ad_prod == "OBS"

    def test_values_rounded_for_display(self, builder):
        stored = builder.add_item(Item(prod=make_product(v_prod="100", v_un_com="100")))
        assert stored.prod.v_prod == "100.00"
        assert stored.prod.v_un_com == "100.0000"
        assert stored.prod.v_un_trib == "100.0000"
        assert stored.prod.q_trib == "1.0000"
        assert stored.prod.u_trib == "UN"

    def test_control_characters_dropped(self, builder):
        stored = builder.add_item(Item(prod=make_product(x_prod="Parafuso\x01 sextavado\x0b")))
        assert stored.prod.x_prod == "PARAFUSO SEXTAVADO"

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_missing_gtin_becomes_sentinel(self, builder, value):
        stored = builder.add_item(Item(prod=make_product(c_ean=value, c_ean_trib=value)))
        assert stored.prod.c_ean == "SEM GTIN"
        assert stored.prod.c_ean_trib == "SEM GTIN"

    def test_comma_decimals_rewritten_without_rounding(self, builder):
        builder.configure(round_values=False)
        stored = builder.add_item(
            Item(prod=make_product(q_com="1,5", v_un_com="66,66667", v_prod="100,00", v_frete="2,5"))
        )
        assert stored.prod.q_com == "1.5"
        assert stored.prod.q_trib == "1.5"
        assert stored.prod.v_un_com == "66.66667"
        assert stored.prod.v_prod == "100.00"
        assert stored.prod.v_frete == "2.5"
        assert builder.totals.v_prod == Decimal("100.00")

    def test_comma_decimals_rounded_for_display(self, builder):
        stored = builder.add_item(Item(prod=make_product(q_com="1,5", v_prod="100,005")))
        assert stored.prod.q_com == "1.5000"
        assert stored.prod.v_prod == "100.01"
        assert builder.totals.v_prod == Decimal("100.005")

    def test_feeds_totalizer(self, builder, item):
        builder.add_item(item)
        assert builder.totals.v_prod == Decimal("100.00")
        assert builder.totals.v_icms == Decimal("18.00")

    def test_auto_calculate_off(self, builder, item):
        builder.configure(auto_calculate=False)
        builder.add_item(item)
        assert builder.totals.v_prod == Decimal("0")

    def test_failure_stores_nothing(self, builder, item):
        builder.add_item(item)
        with pytest.raises(FormatError):
            builder.add_item(Item(prod=make_product(v_prod="cem")))
        assert len(builder.items) == 1
        assert builder.totals.v_prod == Decimal("100.00")

    def test_sequence_integrity_under_threads(self, builder, issuer, transport):
        errors: list[Exception] = []

        def add_items():
            for _ in range(25):
                builder.add_item(Item(prod=make_product(), tax=make_tax()))

        def touch_sections():
            try:
                for _ in range(25):
                    builder.set_issuer(issuer)
                    builder.set_transport(transport)
                    builder.add_error("diag")
            except Exception as exc:  # pragma: no cover
                errors.append(exc)

        threads = [threading.Thread(target=add_items) for _ in range(4)]
        threads += [threading.Thread(target=touch_sections) for _ in range(2)]
        for th in threads:
            th.start()
        for th in threads:
            th.join()

        assert not errors
        assert [i.n_item for i in builder.items] == list(range(1, 101))
        assert builder.totals.v_prod == Decimal("10000.00")


class TestTransportAndPayment:
    def test_transport_required(self, builder):
        with pytest.raises(MissingFieldError, match="transp"):
            builder.set_transport(None)

    def test_invalid_freight_mode(self, builder):
        with pytest.raises(FormatError, match="modFrete"):
            builder.set_transport(Transport(mod_frete="5"))

    def test_full_transport(self, builder):
        builder.set_transport(
            Transport(
                mod_frete="0",
                transporta=Carrier(cnpj="11222333000181", x_nome="Transportes Rapidos", uf="sc"),
                veic_transp=Vehicle(placa="abc-1d23", uf="SC"),
                vol=(Volume(q_vol="2", esp="caixa", peso_l="10.5", peso_b="11"),),
            )
        )
        transp = builder._transport
        assert transp.transporta.x_nome == "TRANSPORTES RAPIDOS"
        assert transp.transporta.uf == "SC"
        assert transp.veic_transp.placa == "ABC1D23"
        assert transp.vol[0].peso_l == "10.500"
        assert transp.vol[0].peso_b == "11.000"

    def test_invalid_plate(self, builder):
        with pytest.raises(FormatError, match="placa"):
            builder.set_transport(Transport(mod_frete="0", veic_transp=Vehicle(placa="12345")))

    def test_payment_requires_details(self, builder):
        with pytest.raises(MissingFieldError, match="detPag"):
            builder.add_payment(Payment(det_pag=()))

    def test_payment_type(self, builder):
        with pytest.raises(FormatError, match="tPag"):
            builder.add_payment(Payment(det_pag=(PaymentDetail(t_pag="07", v_pag="1.00"),)))

    def test_payment_value_normalized(self, builder):
        builder.add_payment(Payment(det_pag=(PaymentDetail(t_pag="01", v_pag="10"),), v_troco="0,5"))
        pag = builder._payments[0]
        assert pag.det_pag[0].v_pag == "10.00"
        assert pag.v_troco == "0.50"

    def test_other_payment_needs_description(self, builder):
        with pytest.raises(MissingFieldError, match="xPag"):
            builder.add_payment(Payment(det_pag=(PaymentDetail(t_pag="99", v_pag="1.00"),)))

    def test_payment_detail_limit(self, builder):
        details = tuple(PaymentDetail(t_pag="01", v_pag="1.00") for _ in range(101))
        with pytest.raises(BusinessRuleError, match="detPag"):
            builder.add_payment(Payment(det_pag=details))


class TestAdditionalInfo:
    def test_normalized(self, builder):
        builder.set_additional_info(
            AdditionalInfo(inf_cpl="pedido 123", obs_cont=(Observation("campo", "texto"),))
        )
        info = builder._additional_info
        assert info.inf_cpl == "PEDIDO 123"
        assert info.obs_cont[0].x_texto == "TEXTO"

    def test_none_clears(self, builder):
        builder.set_additional_info(AdditionalInfo(inf_cpl="x"))
        builder.set_additional_info(None)
        assert builder._additional_info is None


class TestBuild:
    def test_missing_issuer_fails_then_succeeds(
        self, builder, identification, issuer, recipient, item, transport
    ):
        builder.set_identification(identification)
        builder.set_recipient(recipient)
        builder.add_item(item)
        builder.set_transport(transport)

        with pytest.raises(MissingFieldError, match="emit"):
            builder.build()
        assert builder.document is None
        assert builder.access_key is None

        builder.set_issuer(issuer)
        document = builder.build()
        assert isinstance(document, Document)
        assert builder.document is document

    def test_missing_identification(self, builder):
        with pytest.raises(MissingFieldError, match="ide"):
            builder.build()

    def test_missing_items(self, builder, identification, issuer, recipient, transport):
        builder.set_identification(identification)
        builder.set_issuer(issuer)
        builder.set_recipient(recipient)
        builder.set_transport(transport)
        with pytest.raises(MissingFieldError, match="det"):
            builder.build()

    def test_missing_transport(self, builder, identification, issuer, recipient, item):
        builder.set_identification(identification)
        builder.set_issuer(issuer)
        builder.set_recipient(recipient)
        builder.add_item(item)
        with pytest.raises(MissingFieldError, match="transp"):
            builder.build()

    def test_recipient_required_for_nfe(self, builder, identification, issuer, item, transport):
        builder.set_identification(identification)
        builder.set_issuer(issuer)
        builder.add_item(item)
        builder.set_transport(transport)
        with pytest.raises(BusinessRuleError, match="dest"):
            builder.build()

    def test_nfce_without_recipient(self, identification, issuer, item, transport):
        b = NFeBuilder(BuilderOptions(model="nfce"))
        b.set_identification(identification)
        b.set_issuer(issuer)
        b.add_item(item)
        b.set_transport(transport)
        document = b.build()
        assert document.recipient is None
        assert document.access_key.mod == "65"

    def test_access_key_derived(self, ready_builder):
        document = ready_builder.build()
        expected = generate_access_key(
            c_uf="42",
            cnpj="12345678000199",
            mod="55",
            serie="1",
            n_nf="42",
            tp_emis="1",
            c_nf="12345678",
            dh_emi="2025-12-30T15:57:03-03:00",
        )
        assert document.access_key == expected
        assert document.id == "NFe" + expected.key
        assert document.identification.c_dv == expected.c_dv
        assert is_valid_access_key(document.access_key.key)

    def test_external_access_key(self, ready_builder):
        key = "42251212345678000199550010000000421123456781"
        ready_builder.set_access_key(key)
        with patch("nfe.services.nfe_builder.generate_access_key") as gen:
            document = ready_builder.build()
        gen.assert_not_called()
        assert document.access_key.key == key

    def test_invalid_external_key(self, builder):
        with pytest.raises(ValueError):
            builder.set_access_key("42251212345678000199550010000000421123456780")

    def test_totals_finalized(self, ready_builder):
        ready_builder.add_item(Item(prod=make_product(v_desc="10.00", v_frete="5.00")))
        totals = ready_builder.build().totals
        assert totals.v_prod == Decimal("200.00")
        assert totals.v_nf == Decimal("195.00")

    def test_grand_total_95(self, builder, identification, issuer, recipient, transport):
        builder.set_identification(identification)
        builder.set_issuer(issuer)
        builder.set_recipient(recipient)
        builder.add_item(Item(prod=make_product(v_desc="10.00", v_frete="5.00"), tax=Tax()))
        builder.set_transport(transport)
        assert builder.build().totals.v_nf == Decimal("95.00")

    def test_rebuild_is_stable(self, ready_builder):
        first = ready_builder.build()
        second = ready_builder.build()
        assert first.totals == second.totals
        assert first.access_key == second.access_key

    def test_rebuild_rounds_full_sum_once(self, ready_builder):
        ready_builder.build()
        ready_builder.add_item(Item(prod=make_product(v_prod="0", v_seg="0.004")))
        assert ready_builder.build().totals.v_seg == Decimal("0.00")
        ready_builder.add_item(Item(prod=make_product(v_prod="0", v_seg="0.004")))
        assert ready_builder.build().totals.v_seg == Decimal("0.01")

    def test_derivation_failure_keeps_state(self, ready_builder):
        with patch(
            "nfe.services.nfe_builder.generate_access_key",
            side_effect=ValueError("boom"),
        ):
            with pytest.raises(ValueError, match="boom"):
                ready_builder.build()
        assert ready_builder.document is None
        assert ready_builder.access_key is None


class TestToXml:
    def test_cached_bytes_without_rederiving_key(self, ready_builder):
        ready_builder.build()
        with patch("nfe.services.nfe_builder.generate_access_key") as gen:
            first = ready_builder.to_xml()
            second = ready_builder.to_xml()
        gen.assert_not_called()
        assert first == second
        assert first is second

    def test_builds_on_demand(self, ready_builder):
        xml = ready_builder.to_xml()
        assert xml.startswith(b"<?xml")
        assert ready_builder.document is not None

    def test_cache_not_invalidated_by_mutators(self, ready_builder, item):
        xml = ready_builder.to_xml()
        ready_builder.add_item(item)
        assert ready_builder.to_xml() == xml

    def test_rebuild_refreshes_cache(self, ready_builder, item):
        xml = ready_builder.to_xml()
        ready_builder.add_item(item)
        ready_builder.build()
        assert ready_builder.to_xml() != xml

    def test_no_comma_decimals_in_xml(self, ready_builder):
        ready_builder.configure(round_values=False)
        ready_builder.add_item(Item(prod=make_product(v_prod="100,00", q_com="2,0")))
        xml = ready_builder.to_xml()
        assert b"<vProd>100.00</vProd>" in xml
        assert b"<qCom>2.0</qCom>" in xml
        assert b"," not in xml.split(b"<det ", 1)[1].split(b"<total>", 1)[0]

    def test_render_failure_is_serialization_error(self, ready_builder):
        ready_builder.add_item(Item(prod=make_product(c_prod="P\x01")))
        ready_builder.build()
        with pytest.raises(SerializationError, match="Falha ao serializar XML"):
            ready_builder.to_xml()
        assert ready_builder.document is not None

    def test_lxml_error_wrapped(self, ready_builder):
        with patch(
            "nfe.services.nfe_builder.render_nfe",
            side_effect=etree.LxmlError("bad tree"),
        ):
            with pytest.raises(SerializationError, match="bad tree"):
                ready_builder.to_xml()


class TestErrorList:
    def test_not_auto_populated(self, builder):
        with pytest.raises(MissingFieldError):
            builder.set_identification(None)
        assert builder.errors() == []
        assert not builder.has_errors()

    def test_add_and_clear(self, builder):
        try:
            builder.set_transport(None)
        except MissingFieldError as exc:
            builder.add_error(exc)
        builder.add_error("outro problema")
        assert builder.has_errors()
        assert builder.errors() == ["transp: dados de transporte obrigatorios", "outro problema"]
        builder.clear_errors()
        assert builder.errors() == []

    def test_errors_returns_copy(self, builder):
        builder.add_error("x")
        builder.errors().append("y")
        assert builder.errors() == ["x"]
