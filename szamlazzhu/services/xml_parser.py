# szamlazzhu/services/xml_parser.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, List, Union

from lxml import etree

from szamlazzhu.errors import SzamlazzHuError

Node = Union[str, Dict[str, Any], List[Dict[str, Any]]]


class XmlParseError(SzamlazzHuError):
    """El texto recibido no es XML bien formado."""


def _make_parser() -> etree.XMLParser:
    # Un parser por llamada: los parsers de lxml no se comparten entre hilos
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        huge_tree=True,
    )


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _element_to_node(element: etree._Element) -> Node:
    children = [c for c in element if isinstance(c.tag, str)]
    if not children:
        return (element.text or "").strip()

    node: Dict[str, Any] = {}
    for child in children:
        key = _local_name(child)
        value = _element_to_node(child)
        if key in node:
            # Segunda aparición: el elemento pasa a ser una lista
            existing = node[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[key] = [existing, value]
        else:
            node[key] = value
    return node


def parse(xml_text: str | bytes) -> Dict[str, Any]:
    """
    Convierte la respuesta XML en un árbol de dicts.

    - Se descarta el elemento raíz (se devuelven sus hijos).
    - Los prefijos de namespace se reducen al nombre local.
    - Un elemento repetido se devuelve como lista; si aparece una sola vez
      queda como dict. Usar `normalize_to_sequence` en los campos repetibles.
    """
    if isinstance(xml_text, str):
        xml_text = xml_text.encode("utf-8")
    if not xml_text or not xml_text.strip():
        raise XmlParseError("Respuesta vacía.")

    try:
        root = etree.fromstring(xml_text, parser=_make_parser())
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise XmlParseError(f"No se pudo parsear el XML: {exc}") from exc

    node = _element_to_node(root)
    if isinstance(node, str):
        return {}
    return node


def normalize_to_sequence(value: Any) -> List[Any]:
    """
    Resuelve la ambigüedad uno/varios del protocolo:

    - dict -> [dict]
    - list -> sin cambios
    - None / "" -> []
    """
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]
