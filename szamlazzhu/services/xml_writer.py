# szamlazzhu/services/xml_writer.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Callable, Iterator

from lxml import etree

from szamlazzhu.conf import Credentials
from szamlazzhu.domain import to_decimal
from szamlazzhu.services.actions import Action

logger = logging.getLogger("szamlazzhu.xml")

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

THREE_PLACES = Decimal("0.001")


# =========================
# Reglas de formateo
# =========================


def format_boolean(value: Any) -> str:
    return "true" if value else "false"


def format_amount(value: Any) -> str:
    """
    Importes y cantidades: siempre 3 decimales, punto como separador y
    sin separador de miles, independiente del locale del host.

    Maneja None como 0.000.
    """
    d = to_decimal(value)
    if d is None:
        d = Decimal("0")
    # quantize necesita precisión para todos los dígitos enteros + 3 decimales
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, d.adjusted() + 4)
        return format(d.quantize(THREE_PLACES, rounding=ROUND_HALF_UP), "f")


def format_tax_rate(value: Any) -> str:
    """27 -> "27", 5.5 -> "5.5"; los códigos de exención (AAM, TAM...) pasan tal cual."""
    d = to_decimal(value)
    if d is None:
        return str(value)
    return format(d.normalize(), "f")


def format_date(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%Y-%m-%d")


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class DocumentWriter:
    """
    Escritor secuencial sobre un árbol lxml.

    Replica el modelo start/end de un XMLWriter: `section()` abre un
    elemento contenedor y los elementos siguientes se anidan dentro hasta
    que se cierra el bloque `with`.
    """

    def __init__(self, action: Action):
        self.action = action
        self.root = etree.Element(
            f"{{{action.namespace}}}{action.root}",
            nsmap={None: action.namespace, "xsi": XSI_NAMESPACE},
        )
        self.root.set(f"{{{XSI_NAMESPACE}}}schemaLocation", action.schema_location)
        self._stack = [self.root]

    @property
    def current(self) -> etree._Element:
        return self._stack[-1]

    def _sub(self, name: str) -> etree._Element:
        return etree.SubElement(self.current, f"{{{self.action.namespace}}}{name}")

    @contextmanager
    def section(self, name: str) -> Iterator[etree._Element]:
        element = self._sub(name)
        self._stack.append(element)
        try:
            yield element
        finally:
            self._stack.pop()

    def element(self, name: str, value: Any) -> None:
        self._sub(name).text = "" if value is None else str(value)

    def cdata(self, name: str, value: Any) -> None:
        text = "" if value is None else str(value)
        el = self._sub(name)
        # "]]>" no puede ir dentro de un CDATA; se escribe escapado
        el.text = etree.CDATA(text) if "]]>" not in text else text

    def boolean(self, name: str, value: Any) -> None:
        self.element(name, format_boolean(value))

    def amount(self, name: str, value: Any) -> None:
        self.element(name, format_amount(value))

    def date_element(self, name: str, value: date | datetime) -> None:
        self.element(name, format_date(value))

    def optional_element(self, name: str, value: Any) -> None:
        if not _is_empty(value):
            self.element(name, value)

    def optional_cdata(self, name: str, value: Any) -> None:
        if not _is_empty(value):
            self.cdata(name, value)

    def credentials(self, credentials: Credentials) -> None:
        """Clave de agente si existe; si no, usuario y contraseña. Nunca ambos."""
        if credentials.api_key:
            self.element("szamlaagentkulcs", credentials.api_key)
        else:
            self.element("felhasznalo", credentials.username)
            self.element("jelszo", credentials.password)

    def to_string(self) -> str:
        xml_bytes = etree.tostring(
            self.root,
            encoding="UTF-8",
            xml_declaration=True,
            pretty_print=True,
        )
        return xml_bytes.decode("utf-8")


def build_document(action: Action, write: Callable[[DocumentWriter], None]) -> str:
    """
    Construye el documento de una acción: raíz con namespace y schemaLocation,
    luego la secuencia de elementos que escribe `write`.
    """
    writer = DocumentWriter(action)
    write(writer)
    xml_str = writer.to_string()

    logger.debug(
        "Documento %s construido (%s bytes)",
        action.root,
        len(xml_str.encode("utf-8")),
    )
    return xml_str
