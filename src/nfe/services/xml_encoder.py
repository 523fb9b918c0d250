from __future__ import annotations

import base64
import gzip

from lxml import etree

from nfe.services.exceptions import SerializationError


def to_xml_bytes(element: etree._Element) -> bytes:
    """Serialize an NF-e tree to UTF-8 bytes with the XML declaration."""
    try:
        return etree.tostring(
            element,
            xml_declaration=True,
            encoding="utf-8",
        )
    except (TypeError, ValueError, etree.LxmlError) as exc:
        raise SerializationError(f"Falha ao serializar XML: {exc}") from exc


def encode_nfe(element: etree._Element) -> str:
    """GZip compress and Base64 encode the NF-e XML.

    Returns the Base64-encoded string used in compressed submission payloads.
    """
    compressed = gzip.compress(to_xml_bytes(element))
    return base64.b64encode(compressed).decode("ascii")
