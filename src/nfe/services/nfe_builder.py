from __future__ import annotations

import logging
import re
import threading
from dataclasses import replace

from lxml import etree

from nfe.config import GTIN_SENTINEL, LAYOUT_VERSION, MODEL_NFE, MODELS, TP_AMB, load_builder_config
from nfe.models.document import AdditionalInfo, BuilderOptions, Document, Observation, Totals
from nfe.models.identification import Identification
from nfe.models.item import Item, Product
from nfe.models.parties import Address, Issuer, Recipient
from nfe.models.payment import MAX_PAYMENT_DETAILS, PAYMENT_TYPES, Card, Payment, PaymentDetail
from nfe.models.transport import FREIGHT_MODES, Carrier, Transport, Vehicle, Volume
from nfe.services.exceptions import BusinessRuleError, FormatError, MissingFieldError, SerializationError
from nfe.services.nfe_xml import render_nfe
from nfe.services.totalizer import Totalizer
from nfe.services.xml_encoder import to_xml_bytes
from nfe.utils.access_key import (
    AccessKey,
    generate_access_key,
    generate_random_code,
    parse_access_key,
    random_code_collides,
)
from nfe.utils.formatters import format_decimal, normalize_text, now_brt, only_digits
from nfe.utils.sequence import next_n_nf
from nfe.utils.validators import (
    is_blank,
    require,
    validate_cfop,
    validate_choice,
    validate_cnpj,
    validate_cpf,
    validate_datetime,
    validate_decimal,
    validate_digits,
    validate_email,
    validate_gtin,
    validate_max_length,
    validate_monetary,
    validate_ncm,
    validate_uf,
)

logger = logging.getLogger(__name__)

MAX_ITEMS = 990
MAX_OBSERVATIONS = 10
FOREIGN_UF = "EX"

_TP_NF = {"0", "1"}
_ID_DEST = {"1", "2", "3"}
_TP_IMP = {"0", "1", "2", "3", "4", "5"}
_TP_EMIS = {"1", "2", "3", "4", "5", "6", "7", "9"}
_FIN_NFE = {"1", "2", "3", "4"}
_IND_FINAL = {"0", "1"}
_IND_PRES = {"0", "1", "2", "3", "4", "5", "9"}
_IND_INTERMED = {"0", "1"}
_PROC_EMI = {"0", "1", "2", "3"}
_CRT = {"1", "2", "3", "4"}
_IND_IE_DEST = {"1", "2", "9"}
_IND_TOT = {"0", "1"}
_IND_PAG = {"0", "1"}
_TP_INTEGRA = {"1", "2"}
_CARD_PAYMENTS = {"03", "04", "17"}
_PLATE = re.compile(r"[A-Z]{3}[0-9][A-Z0-9][0-9]{2}")
_ENVIRONMENTS = {code: name for name, code in TP_AMB.items()}


class NFeBuilder:
    """Incremental NF-e assembler.

    One method per document section. Each validates and normalizes its input
    and stores it only when every check passes. ``build()`` derives the access
    key, finalizes the totals and freezes the result into a ``Document``.
    All state is guarded by one re-entrant lock.
    """

    def __init__(self, options: BuilderOptions | None = None) -> None:
        self._lock = threading.RLock()
        self._options = options or BuilderOptions()
        self._totalizer = Totalizer()
        self._identification: Identification | None = None
        self._issuer: Issuer | None = None
        self._recipient: Recipient | None = None
        self._items: list[Item] = []
        self._transport: Transport | None = None
        self._payments: list[Payment] = []
        self._additional_info: AdditionalInfo | None = None
        self._access_key: AccessKey | None = None
        self._document: Document | None = None
        self._xml: bytes | None = None
        self._errors: list[str] = []

    @classmethod
    def from_config(cls) -> NFeBuilder:
        """Create a builder with options from builder.yaml and NFE_* env vars."""
        return cls(BuilderOptions.from_dict(load_builder_config()))

    # --- configuration ---

    @property
    def options(self) -> BuilderOptions:
        with self._lock:
            return self._options

    def configure(self, **changes: object) -> NFeBuilder:
        """Replace option values. Sections already stored are not revisited."""
        with self._lock:
            self._options = replace(self._options, **changes)
            logger.debug("Builder options: %s", self._options)
        return self

    # --- helpers ---

    def _text(self, value: str | None, max_length: int) -> str | None:
        return normalize_text(value, max_length, strip_accents=self._options.remove_accents)

    def _model(self) -> str:
        if self._identification is not None and self._identification.mod:
            return self._identification.mod
        return self._options.mod

    def _address(self, addr: Address | None, field: str) -> Address:
        if addr is None:
            raise MissingFieldError(f"{field}: campo obrigatorio", field)
        require(addr.x_lgr, "xLgr")
        require(addr.nro, "nro")
        require(addr.x_bairro, "xBairro")
        require(addr.x_mun, "xMun")
        validate_digits(require(addr.c_mun, "cMun"), "cMun", width=7)
        if require(addr.uf, "UF").strip().upper() != FOREIGN_UF:
            validate_uf(addr.uf, "UF")
        cep = only_digits(addr.cep) if addr.cep else None
        if cep is not None:
            validate_digits(cep, "CEP", width=8)
        fone = only_digits(addr.fone) if addr.fone else None
        if fone:
            validate_digits(fone, "fone", max_width=14)
        return replace(
            addr,
            x_lgr=self._text(addr.x_lgr, 60),
            nro=self._text(addr.nro, 60),
            x_cpl=self._text(addr.x_cpl, 60),
            x_bairro=self._text(addr.x_bairro, 60),
            x_mun=self._text(addr.x_mun, 60),
            uf=addr.uf.strip().upper(),
            cep=cep,
            x_pais=self._text(addr.x_pais, 60),
            fone=fone or None,
        )

    def _tax_id(self, cnpj: str | None, cpf: str | None) -> tuple[str | None, str | None]:
        if cnpj and cpf:
            raise BusinessRuleError("Informe apenas CNPJ ou CPF, nao ambos", "CNPJ", cnpj)
        if cnpj:
            return validate_cnpj(only_digits(cnpj) or cnpj), None
        if cpf:
            return None, validate_cpf(only_digits(cpf) or cpf)
        return None, None

    # --- sections ---

    def set_identification(self, ide: Identification | None) -> NFeBuilder:
        """Validate and store the ide section.

        Defaults mod, tpAmb and dhEmi from the builder options and the clock,
        reserves the next nNF of the (tpAmb, mod, serie) counter when absent,
        and draws a new cNF when absent or colliding with nNF.
        """
        with self._lock:
            if ide is None:
                raise MissingFieldError("ide: dados de identificacao obrigatorios", "ide")
            c_uf = validate_uf(require(ide.c_uf, "cUF"))
            nat_op = self._text(require(ide.nat_op, "natOp"), 60)
            serie = validate_digits(require(ide.serie, "serie").strip(), "serie", max_width=3)
            n_nf = None
            if not is_blank(ide.n_nf):
                n_nf = validate_digits(ide.n_nf.strip(), "nNF", max_width=9)
                if int(n_nf) == 0:
                    raise FormatError("nNF: deve ser maior que zero", "nNF", n_nf)
            validate_digits(require(ide.c_mun_fg, "cMunFG"), "cMunFG", width=7)

            mod = ide.mod or self._options.mod
            validate_choice(mod, "mod", MODELS.values())
            tp_amb = ide.tp_amb or self._options.tp_amb
            validate_choice(tp_amb, "tpAmb", TP_AMB.values())
            dh_emi = validate_datetime(ide.dh_emi) if not is_blank(ide.dh_emi) else now_brt()
            if ide.dh_sai_ent:
                validate_datetime(ide.dh_sai_ent, "dhSaiEnt")

            validate_choice(ide.tp_nf, "tpNF", _TP_NF)
            validate_choice(ide.id_dest, "idDest", _ID_DEST)
            validate_choice(ide.tp_imp, "tpImp", _TP_IMP)
            validate_choice(ide.tp_emis, "tpEmis", _TP_EMIS)
            validate_choice(ide.fin_nfe, "finNFe", _FIN_NFE)
            validate_choice(ide.ind_final, "indFinal", _IND_FINAL)
            validate_choice(ide.ind_pres, "indPres", _IND_PRES)
            validate_choice(ide.proc_emi, "procEmi", _PROC_EMI)
            if ide.ind_intermed is not None:
                validate_choice(ide.ind_intermed, "indIntermed", _IND_INTERMED)

            c_nf = None
            if not is_blank(ide.c_nf):
                c_nf = validate_digits(ide.c_nf.strip(), "cNF", max_width=8).zfill(8)

            # Reserved last so a rejected ide does not consume a number
            if n_nf is None:
                n_nf = str(next_n_nf(serie, env=_ENVIRONMENTS[tp_amb], model=mod))
                logger.info("nNF %s reservado (serie %s, mod %s)", n_nf, serie, mod)
            if c_nf is None:
                c_nf = generate_random_code()
            while random_code_collides(c_nf, n_nf):
                logger.warning("cNF %s coincide com nNF %s; gerando novo codigo", c_nf, n_nf)
                c_nf = generate_random_code()

            self._identification = replace(
                ide,
                c_uf=c_uf,
                nat_op=nat_op,
                serie=serie,
                n_nf=n_nf,
                c_nf=c_nf,
                mod=mod,
                tp_amb=tp_amb,
                dh_emi=dh_emi,
                c_dv=None,
            )
            logger.debug("ide stored: mod=%s serie=%s nNF=%s", mod, serie, n_nf)
        return self

    def set_issuer(self, emit: Issuer | None) -> NFeBuilder:
        with self._lock:
            if emit is None:
                raise MissingFieldError("emit: dados do emitente obrigatorios", "emit")
            cnpj, cpf = self._tax_id(emit.cnpj, emit.cpf)
            if cnpj is None and cpf is None:
                raise MissingFieldError("emit: CNPJ ou CPF obrigatorio", "CNPJ")
            x_nome = self._text(require(emit.x_nome, "xNome"), 60)
            ie = require(emit.ie, "IE").strip().upper()
            if ie != "ISENTO":
                validate_digits(only_digits(ie) or ie, "IE", max_width=14)
                ie = only_digits(ie)
            validate_choice(emit.crt, "CRT", _CRT)
            if emit.cnae:
                validate_digits(emit.cnae, "CNAE", width=7)
            address = self._address(emit.ender_emit, "enderEmit")

            self._issuer = replace(
                emit,
                cnpj=cnpj,
                cpf=cpf,
                x_nome=x_nome,
                x_fant=self._text(emit.x_fant, 60),
                ie=ie,
                ender_emit=address,
            )
            logger.debug("emit stored: %s", cnpj or cpf)
        return self

    def set_recipient(self, dest: Recipient | None) -> NFeBuilder:
        """Store dest. ``None`` clears it, which only model 65 accepts."""
        with self._lock:
            model = self._model()
            if dest is None:
                if model == MODEL_NFE:
                    raise BusinessRuleError("dest: destinatario obrigatorio para NF-e modelo 55", "dest")
                self._recipient = None
                return self

            ids = [v for v in (dest.cnpj, dest.cpf, dest.id_estrangeiro) if v]
            if len(ids) > 1:
                raise BusinessRuleError("dest: informe apenas um de CNPJ, CPF ou idEstrangeiro", "CNPJ")
            if not ids and model == MODEL_NFE:
                raise MissingFieldError("dest: CNPJ, CPF ou idEstrangeiro obrigatorio", "CNPJ")
            cnpj, cpf = self._tax_id(dest.cnpj, dest.cpf)

            validate_choice(dest.ind_ie_dest, "indIEDest", _IND_IE_DEST)
            ie = dest.ie
            if dest.ind_ie_dest == "1":
                ie = only_digits(require(ie, "IE"))
                validate_digits(ie, "IE", max_width=14)
            elif dest.ind_ie_dest == "2" and ie:
                raise BusinessRuleError("IE: nao informar para destinatario isento", "IE", ie)
            if dest.email:
                validate_email(dest.email.strip())
            if model == MODEL_NFE:
                require(dest.x_nome, "xNome")
            address = (
                self._address(dest.ender_dest, "enderDest")
                if dest.ender_dest is not None or model == MODEL_NFE
                else None
            )

            self._recipient = replace(
                dest,
                cnpj=cnpj,
                cpf=cpf,
                ie=ie,
                x_nome=self._text(dest.x_nome, 60),
                email=dest.email.strip() if dest.email else None,
                ender_dest=address,
            )
            logger.debug("dest stored: %s", cnpj or cpf or dest.id_estrangeiro)
        return self

    def _number(self, value: str | None, field: str, places: int) -> str | None:
        """Dot-separated fixed-point notation; rounded to *places* when rounding is on."""
        if is_blank(value):
            return None
        d = validate_decimal(value, field)
        if self._options.round_values:
            return format_decimal(d, places)
        return f"{d:f}"

    def _product(self, prod: Product) -> tuple[Product, Product]:
        """Return (product with raw values, product with display values).

        Numbers are always rewritten in dot notation; only the display copy
        is rounded, and only when rounding is on.
        """
        c_prod = validate_max_length(require(prod.c_prod, "cProd").strip(), "cProd", 60)
        x_prod = self._text(require(prod.x_prod, "xProd"), 120)
        validate_ncm(require(prod.ncm, "NCM").strip())
        validate_cfop(require(prod.cfop, "CFOP").strip())
        if prod.cest:
            validate_digits(prod.cest, "CEST", width=7)
        u_com = require(prod.u_com, "uCom").strip()
        for name, value in (("qCom", prod.q_com), ("vUnCom", prod.v_un_com), ("vProd", prod.v_prod)):
            require(value, name)
        validate_choice(prod.ind_tot, "indTot", _IND_TOT)

        c_ean = GTIN_SENTINEL if is_blank(prod.c_ean) else prod.c_ean.strip()
        c_ean_trib = GTIN_SENTINEL if is_blank(prod.c_ean_trib) else prod.c_ean_trib.strip()
        if self._options.check_gtin:
            c_ean = validate_gtin(c_ean)
            c_ean_trib = validate_gtin(c_ean_trib, "cEANTrib")

        values = {
            "q_com": ("qCom", prod.q_com, 4),
            "v_un_com": ("vUnCom", prod.v_un_com, 4),
            "v_prod": ("vProd", prod.v_prod, 2),
            "q_trib": ("qTrib", prod.q_trib or prod.q_com, 4),
            "v_un_trib": ("vUnTrib", prod.v_un_trib or prod.v_un_com, 4),
            "v_frete": ("vFrete", prod.v_frete, 2),
            "v_seg": ("vSeg", prod.v_seg, 2),
            "v_desc": ("vDesc", prod.v_desc, 2),
            "v_outro": ("vOutro", prod.v_outro, 2),
        }
        raw = {
            attr: None if is_blank(value) else f"{validate_decimal(value, field):f}"
            for attr, (field, value, _) in values.items()
        }
        display = {attr: self._number(value, field, places) for attr, (field, value, places) in values.items()}

        normalized = replace(
            prod,
            c_prod=c_prod,
            x_prod=x_prod,
            ncm=prod.ncm.strip(),
            cfop=prod.cfop.strip(),
            u_com=u_com,
            c_ean=c_ean,
            c_ean_trib=c_ean_trib,
            u_trib=prod.u_trib or u_com,
        )
        return replace(normalized, **raw), replace(normalized, **display)

    def add_item(self, item: Item | None) -> Item:
        """Validate and append a line item; returns it with ``n_item`` assigned."""
        with self._lock:
            if item is None:
                raise MissingFieldError("det: dados do item obrigatorios", "det")
            if item.prod is None:
                raise MissingFieldError("prod: dados do produto obrigatorios", "prod")
            if len(self._items) >= MAX_ITEMS:
                raise BusinessRuleError(f"det: maximo de {MAX_ITEMS} itens por nota", "det")
            normalized, display = self._product(item.prod)

            if self._options.auto_calculate:
                self._totalizer.add_item(normalized, item.tax)
            stored = replace(
                item,
                prod=display,
                inf_ad_prod=self._text(item.inf_ad_prod, 500),
                n_item=len(self._items) + 1,
            )
            self._items.append(stored)
            logger.debug("det %d stored: %s", stored.n_item, normalized.c_prod)
            return stored

    def _carrier(self, carrier: Carrier) -> Carrier:
        cnpj, cpf = self._tax_id(carrier.cnpj, carrier.cpf)
        if carrier.uf:
            validate_uf(carrier.uf, "UF")
        return replace(
            carrier,
            cnpj=cnpj,
            cpf=cpf,
            x_nome=self._text(carrier.x_nome, 60),
            x_ender=self._text(carrier.x_ender, 60),
            x_mun=self._text(carrier.x_mun, 60),
            uf=carrier.uf.strip().upper() if carrier.uf else None,
        )

    def _vehicle(self, vehicle: Vehicle) -> Vehicle:
        placa = re.sub(r"[\s-]", "", require(vehicle.placa, "placa")).upper()
        if not _PLATE.fullmatch(placa):
            raise FormatError(f"placa: formato invalido '{vehicle.placa}'", "placa", vehicle.placa)
        if vehicle.uf:
            validate_uf(vehicle.uf, "UF")
        return replace(vehicle, placa=placa, uf=vehicle.uf.strip().upper() if vehicle.uf else None)

    def set_transport(self, transp: Transport | None) -> NFeBuilder:
        with self._lock:
            if transp is None:
                raise MissingFieldError("transp: dados de transporte obrigatorios", "transp")
            validate_choice(require(transp.mod_frete, "modFrete"), "modFrete", FREIGHT_MODES)
            carrier = self._carrier(transp.transporta) if transp.transporta else None
            vehicle = self._vehicle(transp.veic_transp) if transp.veic_transp else None
            volumes: list[Volume] = []
            for vol in transp.vol:
                if vol.q_vol:
                    validate_digits(vol.q_vol, "qVol", max_width=15)
                peso_l = format_decimal(validate_decimal(vol.peso_l, "pesoL"), 3) if vol.peso_l else None
                peso_b = format_decimal(validate_decimal(vol.peso_b, "pesoB"), 3) if vol.peso_b else None
                volumes.append(replace(
                    vol,
                    esp=self._text(vol.esp, 60),
                    marca=self._text(vol.marca, 60),
                    peso_l=peso_l,
                    peso_b=peso_b,
                ))
            self._transport = replace(transp, transporta=carrier, veic_transp=vehicle, vol=tuple(volumes))
            logger.debug("transp stored: modFrete=%s", transp.mod_frete)
        return self

    def _payment_detail(self, det: PaymentDetail) -> PaymentDetail:
        validate_choice(require(det.t_pag, "tPag"), "tPag", PAYMENT_TYPES)
        v_pag = validate_monetary(det.v_pag, "vPag")
        if det.ind_pag is not None:
            validate_choice(det.ind_pag, "indPag", _IND_PAG)
        x_pag = self._text(det.x_pag, 60)
        if det.t_pag == "99" and x_pag is None:
            raise MissingFieldError("xPag: obrigatorio para tPag 99", "xPag")
        card: Card | None = det.card
        if card is not None:
            validate_choice(card.tp_integra, "tpIntegra", _TP_INTEGRA)
            if card.cnpj:
                card = replace(card, cnpj=validate_cnpj(only_digits(card.cnpj) or card.cnpj))
        elif det.t_pag in _CARD_PAYMENTS and self._model() != MODEL_NFE:
            raise MissingFieldError("card: obrigatorio para pagamento com cartao", "card")
        return replace(det, v_pag=v_pag, x_pag=x_pag, card=card)

    def add_payment(self, pag: Payment | None) -> NFeBuilder:
        with self._lock:
            if pag is None:
                raise MissingFieldError("pag: dados de pagamento obrigatorios", "pag")
            if not pag.det_pag:
                raise MissingFieldError("detPag: ao menos um pagamento obrigatorio", "detPag")
            stored = sum(len(p.det_pag) for p in self._payments)
            if stored + len(pag.det_pag) > MAX_PAYMENT_DETAILS:
                raise BusinessRuleError(f"detPag: maximo de {MAX_PAYMENT_DETAILS} pagamentos", "detPag")
            details = tuple(self._payment_detail(det) for det in pag.det_pag)
            v_troco = validate_monetary(pag.v_troco, "vTroco") if pag.v_troco else None
            self._payments.append(replace(pag, det_pag=details, v_troco=v_troco))
            logger.debug("pag stored: %d detPag", len(details))
        return self

    def _observations(self, obs: tuple[Observation, ...], field: str) -> tuple[Observation, ...]:
        if len(obs) > MAX_OBSERVATIONS:
            raise BusinessRuleError(f"{field}: maximo de {MAX_OBSERVATIONS} observacoes", field)
        return tuple(
            Observation(
                x_campo=self._text(require(o.x_campo, "xCampo"), 20),
                x_texto=self._text(require(o.x_texto, "xTexto"), 60),
            )
            for o in obs
        )

    def set_additional_info(self, inf: AdditionalInfo | None) -> NFeBuilder:
        """Store infAdic. ``None`` clears it."""
        with self._lock:
            if inf is None:
                self._additional_info = None
                return self
            self._additional_info = AdditionalInfo(
                inf_ad_fisco=self._text(inf.inf_ad_fisco, 2000),
                inf_cpl=self._text(inf.inf_cpl, 5000),
                obs_cont=self._observations(inf.obs_cont, "obsCont"),
                obs_fisco=self._observations(inf.obs_fisco, "obsFisco"),
            )
        return self

    def set_access_key(self, key: str | AccessKey) -> NFeBuilder:
        """Adopt an already reserved access key instead of deriving one at build."""
        with self._lock:
            parsed = parse_access_key(key.key if isinstance(key, AccessKey) else key)
            self._access_key = parsed
            logger.debug("Access key set: %s", parsed.key)
        return self

    # --- build ---

    def _check_required(self) -> tuple[Identification, Issuer]:
        ide, emit = self._identification, self._issuer
        if ide is None:
            raise MissingFieldError("ide: identificacao obrigatoria", "ide")
        if emit is None:
            raise MissingFieldError("emit: emitente obrigatorio", "emit")
        if self._model() == MODEL_NFE and self._recipient is None:
            raise BusinessRuleError("dest: destinatario obrigatorio para NF-e modelo 55", "dest")
        if not self._items:
            raise MissingFieldError("det: ao menos um item obrigatorio", "det")
        if self._transport is None:
            raise MissingFieldError("transp: transporte obrigatorio", "transp")
        return ide, emit

    def build(self) -> Document:
        """Assemble the document.

        On failure nothing is committed; a previous document, if any, stays.
        """
        with self._lock:
            ide, emit = self._check_required()

            key = self._access_key
            if key is None:
                key = generate_access_key(
                    c_uf=ide.c_uf,
                    cnpj=emit.cnpj or emit.cpf or "",
                    mod=ide.mod or self._options.mod,
                    serie=ide.serie,
                    n_nf=ide.n_nf,
                    tp_emis=ide.tp_emis,
                    c_nf=ide.c_nf or "",
                    dh_emi=ide.dh_emi or now_brt(),
                )
            if self._options.auto_calculate:
                totals = self._totalizer.finalize(self._options.round_values)
            else:
                totals = self._totalizer.snapshot()
            ide = replace(ide, c_nf=key.c_nf, c_dv=key.c_dv)

            document = Document(
                identification=ide,
                issuer=emit,
                recipient=self._recipient,
                items=tuple(self._items),
                transport=self._transport,  # type: ignore[arg-type]
                payments=tuple(self._payments),
                additional_info=self._additional_info,
                totals=totals,
                access_key=key,
                version=self._options.version or LAYOUT_VERSION,
            )
            self._identification = ide
            self._access_key = key
            self._document = document
            self._xml = None
            logger.info("NF-e montada: %s (%d itens, vNF=%s)", key.key, len(document.items), totals.v_nf)
            return document

    def to_xml(self) -> bytes:
        """Serialized document. Built on first call, then cached until the next build()."""
        with self._lock:
            if self._xml is not None:
                return self._xml
            document = self._document if self._document is not None else self.build()
            try:
                element = render_nfe(document)
            except (TypeError, ValueError, etree.LxmlError) as exc:
                raise SerializationError(f"Falha ao serializar XML: {exc}") from exc
            self._xml = to_xml_bytes(element)
            return self._xml

    # --- accessors ---

    @property
    def document(self) -> Document | None:
        with self._lock:
            return self._document

    @property
    def access_key(self) -> AccessKey | None:
        with self._lock:
            return self._access_key

    @property
    def items(self) -> tuple[Item, ...]:
        with self._lock:
            return tuple(self._items)

    @property
    def totals(self) -> Totals:
        """Current accumulators (finalized values once built)."""
        with self._lock:
            if self._document is not None:
                return self._document.totals
            return self._totalizer.snapshot()

    # --- diagnostic error list ---

    def errors(self) -> list[str]:
        with self._lock:
            return list(self._errors)

    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    def add_error(self, message: str | Exception) -> None:
        with self._lock:
            self._errors.append(str(message))

    def clear_errors(self) -> None:
        with self._lock:
            self._errors.clear()
