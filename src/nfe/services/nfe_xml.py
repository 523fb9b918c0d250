from __future__ import annotations

from dataclasses import fields

from lxml import etree

from nfe.config import NFE_NS
from nfe.models.document import AdditionalInfo, Document, Totals
from nfe.models.identification import Identification
from nfe.models.item import Item
from nfe.models.parties import Address, Issuer, Recipient
from nfe.models.payment import Payment
from nfe.models.taxes import IPI, Tax
from nfe.models.transport import Transport
from nfe.utils.formatters import format_currency

NSMAP = {None: NFE_NS}

# Record attribute -> element name, for records rendered field by field
TAGS = {
    # ICMS
    "orig": "orig",
    "cst": "CST",
    "csosn": "CSOSN",
    "mod_bc": "modBC",
    "p_red_bc": "pRedBC",
    "v_bc": "vBC",
    "p_icms": "pICMS",
    "v_icms": "vICMS",
    "v_bc_fcp": "vBCFCP",
    "p_fcp": "pFCP",
    "v_fcp": "vFCP",
    "mod_bc_st": "modBCST",
    "p_mva_st": "pMVAST",
    "p_red_bc_st": "pRedBCST",
    "v_bc_st": "vBCST",
    "p_icms_st": "pICMSST",
    "v_icms_st": "vICMSST",
    "v_bc_fcp_st": "vBCFCPST",
    "p_fcp_st": "pFCPST",
    "v_fcp_st": "vFCPST",
    "v_icms_deson": "vICMSDeson",
    "mot_des_icms": "motDesICMS",
    "v_icms_op": "vICMSOp",
    "p_dif": "pDif",
    "v_icms_dif": "vICMSDif",
    "v_bc_st_ret": "vBCSTRet",
    "p_st": "pST",
    "v_icms_substituto": "vICMSSubstituto",
    "v_icms_st_ret": "vICMSSTRet",
    "v_bc_fcp_st_ret": "vBCFCPSTRet",
    "p_fcp_st_ret": "pFCPSTRet",
    "v_fcp_st_ret": "vFCPSTRet",
    "p_cred_sn": "pCredSN",
    "v_cred_icms_sn": "vCredICMSSN",
    # IPI
    "p_ipi": "pIPI",
    "q_unid": "qUnid",
    "v_unid": "vUnid",
    "v_ipi": "vIPI",
    # II
    "v_desp_adu": "vDespAdu",
    "v_ii": "vII",
    "v_iof": "vIOF",
    # PIS / COFINS
    "p_pis": "pPIS",
    "v_pis": "vPIS",
    "q_bc_prod": "qBCProd",
    "v_aliq_prod": "vAliqProd",
    "p_cofins": "pCOFINS",
    "v_cofins": "vCOFINS",
}

_IDE_TAGS = {
    "c_uf": "cUF",
    "c_nf": "cNF",
    "nat_op": "natOp",
    "mod": "mod",
    "serie": "serie",
    "n_nf": "nNF",
    "dh_emi": "dhEmi",
    "dh_sai_ent": "dhSaiEnt",
    "tp_nf": "tpNF",
    "id_dest": "idDest",
    "c_mun_fg": "cMunFG",
    "tp_imp": "tpImp",
    "tp_emis": "tpEmis",
    "c_dv": "cDV",
    "tp_amb": "tpAmb",
    "fin_nfe": "finNFe",
    "ind_final": "indFinal",
    "ind_pres": "indPres",
    "ind_intermed": "indIntermed",
    "proc_emi": "procEmi",
    "ver_proc": "verProc",
}

_PROD_TAGS = {
    "c_prod": "cProd",
    "c_ean": "cEAN",
    "x_prod": "xProd",
    "ncm": "NCM",
    "cest": "CEST",
    "ex_tipi": "EXTIPI",
    "cfop": "CFOP",
    "u_com": "uCom",
    "q_com": "qCom",
    "v_un_com": "vUnCom",
    "v_prod": "vProd",
    "c_ean_trib": "cEANTrib",
    "u_trib": "uTrib",
    "q_trib": "qTrib",
    "v_un_trib": "vUnTrib",
    "v_frete": "vFrete",
    "v_seg": "vSeg",
    "v_desc": "vDesc",
    "v_outro": "vOutro",
    "ind_tot": "indTot",
    "x_ped": "xPed",
    "n_item_ped": "nItemPed",
}

_TOTAL_TAGS = {
    "v_bc": "vBC",
    "v_icms": "vICMS",
    "v_icms_deson": "vICMSDeson",
    "v_fcp": "vFCP",
    "v_bc_st": "vBCST",
    "v_st": "vST",
    "v_fcp_st": "vFCPST",
    "v_fcp_st_ret": "vFCPSTRet",
    "v_prod": "vProd",
    "v_frete": "vFrete",
    "v_seg": "vSeg",
    "v_desc": "vDesc",
    "v_ii": "vII",
    "v_ipi": "vIPI",
    "v_ipi_devol": "vIPIDevol",
    "v_pis": "vPIS",
    "v_cofins": "vCOFINS",
    "v_outro": "vOutro",
    "v_nf": "vNF",
    "v_tot_trib": "vTotTrib",
}

# Emitted in schema order, in this element order
_PROD_ORDER = tuple(_PROD_TAGS)


def _sub(parent: etree._Element, tag: str, text: str | None = None) -> etree._Element:
    el = etree.SubElement(parent, tag)
    if text is not None:
        el.text = text
    return el


def _opt(parent: etree._Element, tag: str, text: str | None) -> None:
    """Append <tag> only when *text* is present."""
    if text:
        _sub(parent, tag, text)


def _record(parent: etree._Element, tag: str, record: object, tags: dict[str, str] = TAGS) -> etree._Element:
    """Render a dataclass record as <tag> with one child per non-empty field, in field order."""
    el = _sub(parent, tag)
    for f in fields(record):  # type: ignore[arg-type]
        value = getattr(record, f.name)
        if value is not None and value != "":
            _sub(el, tags[f.name], str(value))
    return el


def _ide(inf: etree._Element, ide: Identification) -> None:
    el = _sub(inf, "ide")
    for name in _IDE_TAGS:
        _opt(el, _IDE_TAGS[name], getattr(ide, name))


def _address(parent: etree._Element, tag: str, addr: Address) -> None:
    el = _sub(parent, tag)
    _sub(el, "xLgr", addr.x_lgr)
    _sub(el, "nro", addr.nro)
    _opt(el, "xCpl", addr.x_cpl)
    _sub(el, "xBairro", addr.x_bairro)
    _sub(el, "cMun", addr.c_mun)
    _sub(el, "xMun", addr.x_mun)
    _sub(el, "UF", addr.uf)
    _opt(el, "CEP", addr.cep)
    _opt(el, "cPais", addr.c_pais)
    _opt(el, "xPais", addr.x_pais)
    _opt(el, "fone", addr.fone)


def _emit(inf: etree._Element, emit: Issuer) -> None:
    el = _sub(inf, "emit")
    _opt(el, "CNPJ", emit.cnpj)
    _opt(el, "CPF", emit.cpf)
    _sub(el, "xNome", emit.x_nome)
    _opt(el, "xFant", emit.x_fant)
    _address(el, "enderEmit", emit.ender_emit)
    _sub(el, "IE", emit.ie)
    _opt(el, "IEST", emit.iest)
    if emit.im:
        _sub(el, "IM", emit.im)
        _opt(el, "CNAE", emit.cnae)
    _sub(el, "CRT", emit.crt)


def _dest(inf: etree._Element, dest: Recipient) -> None:
    el = _sub(inf, "dest")
    _opt(el, "CNPJ", dest.cnpj)
    _opt(el, "CPF", dest.cpf)
    if dest.id_estrangeiro is not None:
        _sub(el, "idEstrangeiro", dest.id_estrangeiro)
    _opt(el, "xNome", dest.x_nome)
    if dest.ender_dest is not None:
        _address(el, "enderDest", dest.ender_dest)
    _sub(el, "indIEDest", dest.ind_ie_dest)
    _opt(el, "IE", dest.ie)
    _opt(el, "ISUF", dest.isuf)
    _opt(el, "IM", dest.im)
    _opt(el, "email", dest.email)


def _ipi(parent: etree._Element, ipi: IPI) -> None:
    el = _sub(parent, "IPI")
    _opt(el, "CNPJProd", ipi.cnpj_prod)
    _opt(el, "cSelo", ipi.c_selo)
    _opt(el, "qSelo", ipi.q_selo)
    _sub(el, "cEnq", ipi.c_enq)
    _record(el, ipi.situation.tag, ipi.situation)


def _imposto(det: etree._Element, tax: Tax) -> None:
    el = _sub(det, "imposto")
    _opt(el, "vTotTrib", tax.v_tot_trib)
    if tax.icms is not None:
        _record(_sub(el, "ICMS"), tax.icms.tag, tax.icms)
    if tax.ipi is not None:
        _ipi(el, tax.ipi)
    if tax.ii is not None:
        _record(el, tax.ii.tag, tax.ii)
    if tax.pis is not None:
        _record(_sub(el, "PIS"), tax.pis.variant.tag, tax.pis.variant)
    if tax.cofins is not None:
        _record(_sub(el, "COFINS"), tax.cofins.variant.tag, tax.cofins.variant)


def _det(inf: etree._Element, item: Item) -> None:
    det = _sub(inf, "det")
    det.set("nItem", str(item.n_item))
    prod = _sub(det, "prod")
    for name in _PROD_ORDER:
        value = getattr(item.prod, name)
        if name in ("c_ean", "c_ean_trib") or value:
            _sub(prod, _PROD_TAGS[name], value)
    _imposto(det, item.tax)
    _opt(det, "infAdProd", item.inf_ad_prod)


def _total(inf: etree._Element, totals: Totals) -> None:
    icms_tot = _sub(_sub(inf, "total"), "ICMSTot")
    for name, value in totals.as_dict().items():
        if name == "v_tot_trib" and not value:
            continue
        _sub(icms_tot, _TOTAL_TAGS[name], format_currency(value))


def _transp(inf: etree._Element, transp: Transport) -> None:
    el = _sub(inf, "transp")
    _sub(el, "modFrete", transp.mod_frete)
    if transp.transporta is not None:
        carrier = transp.transporta
        t = _sub(el, "transporta")
        _opt(t, "CNPJ", carrier.cnpj)
        _opt(t, "CPF", carrier.cpf)
        _opt(t, "xNome", carrier.x_nome)
        _opt(t, "IE", carrier.ie)
        _opt(t, "xEnder", carrier.x_ender)
        _opt(t, "xMun", carrier.x_mun)
        _opt(t, "UF", carrier.uf)
    if transp.veic_transp is not None:
        v = _sub(el, "veicTransp")
        _sub(v, "placa", transp.veic_transp.placa)
        _opt(v, "UF", transp.veic_transp.uf)
        _opt(v, "RNTC", transp.veic_transp.rntc)
    for vol in transp.vol:
        v = _sub(el, "vol")
        _opt(v, "qVol", vol.q_vol)
        _opt(v, "esp", vol.esp)
        _opt(v, "marca", vol.marca)
        _opt(v, "nVol", vol.n_vol)
        _opt(v, "pesoL", vol.peso_l)
        _opt(v, "pesoB", vol.peso_b)


def _pag(inf: etree._Element, payments: tuple[Payment, ...]) -> None:
    """All payment groups render into the single <pag> the layout allows."""
    el = _sub(inf, "pag")
    troco = None
    for pag in payments:
        for det in pag.det_pag:
            d = _sub(el, "detPag")
            _opt(d, "indPag", det.ind_pag)
            _sub(d, "tPag", det.t_pag)
            _opt(d, "xPag", det.x_pag)
            _sub(d, "vPag", det.v_pag)
            if det.card is not None:
                c = _sub(d, "card")
                _sub(c, "tpIntegra", det.card.tp_integra)
                _opt(c, "CNPJ", det.card.cnpj)
                _opt(c, "tBand", det.card.t_band)
                _opt(c, "cAut", det.card.c_aut)
        if pag.v_troco:
            troco = pag.v_troco
    _opt(el, "vTroco", troco)


def _inf_adic(inf: etree._Element, info: AdditionalInfo) -> None:
    el = _sub(inf, "infAdic")
    _opt(el, "infAdFisco", info.inf_ad_fisco)
    _opt(el, "infCpl", info.inf_cpl)
    for tag, observations in (("obsCont", info.obs_cont), ("obsFisco", info.obs_fisco)):
        for obs in observations:
            o = _sub(el, tag)
            o.set("xCampo", obs.x_campo)
            _sub(o, "xTexto", obs.x_texto)


def render_nfe(document: Document) -> etree._Element:
    """Build the <NFe> element tree of a completed document (unsigned).

    Returns the <NFe> root element with namespace.
    """
    nfe = etree.Element("NFe", nsmap=NSMAP)  # type: ignore[arg-type]  # lxml stubs don't model None key for default ns
    inf = _sub(nfe, "infNFe")
    inf.set("Id", document.id)
    inf.set("versao", document.version)

    _ide(inf, document.identification)
    _emit(inf, document.issuer)
    if document.recipient is not None:
        _dest(inf, document.recipient)
    for item in document.items:
        _det(inf, item)
    _total(inf, document.totals)
    _transp(inf, document.transport)
    if document.payments:
        _pag(inf, document.payments)
    if document.additional_info is not None:
        _inf_adic(inf, document.additional_info)

    return nfe
