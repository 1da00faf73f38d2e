# szamlazzhu/services/actions.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class Action:
    """
    Operación remota: campo multipart, raíz XML, namespace y schemaLocation.

    El orden de root/namespace/schema_location es el que espera el escritor.
    """

    key: str
    field_name: str
    root: str
    namespace: str
    schema_location: str


# Anulación (storno) de facturas existentes
CANCEL_INVOICE = Action(
    key="CANCEL_INVOICE",
    field_name="action-szamla_agent_st",
    root="xmlszamlast",
    namespace="http://www.szamlazz.hu/xmlszamlast",
    schema_location="http://www.szamlazz.hu/xmlszamlast xmlszamlast.xsd",
)

# Borrado de facturas proforma (díjbekérő)
DELETE_PROFORMA_INVOICE = Action(
    key="DELETE_PROFORMA_INVOICE",
    field_name="action-szamla_agent_dijbekero_torlese",
    root="xmlszamladbkdel",
    namespace="http://www.szamlazz.hu/xmlszamladbkdel",
    schema_location=(
        "http://www.szamlazz.hu/xmlszamladbkdel "
        "http://www.szamlazz.hu/docs/xsds/szamladbkdel/xmlszamladbkdel.xsd"
    ),
)

# Consulta de facturas y proformas
GET_COMMON_INVOICE = Action(
    key="GET_COMMON_INVOICE",
    field_name="action-szamla_agent_xml",
    root="xmlszamlaxml",
    namespace="http://www.szamlazz.hu/xmlszamlaxml",
    schema_location=(
        "http://www.szamlazz.hu/xmlszamlaxml "
        "http://www.szamlazz.hu/docs/xsds/agentpdf/xmlszamlaxml.xsd"
    ),
)

# Emisión de facturas y proformas
UPLOAD_COMMON_INVOICE = Action(
    key="UPLOAD_COMMON_INVOICE",
    field_name="action-xmlagentxmlfile",
    root="xmlszamla",
    namespace="http://www.szamlazz.hu/xmlszamla",
    schema_location=(
        "http://www.szamlazz.hu/xmlszamla "
        "http://www.szamlazz.hu/docs/xsds/agent/xmlszamla.xsd"
    ),
)

UPLOAD_RECEIPT = Action(
    key="UPLOAD_RECEIPT",
    field_name="action-szamla_agent_nyugta_create",
    root="xmlnyugtacreate",
    namespace="http://www.szamlazz.hu/xmlnyugtacreate",
    schema_location=(
        "http://www.szamlazz.hu/xmlnyugtacreate "
        "http://www.szamlazz.hu/docs/xsds/nyugta/xmlnyugtacreate.xsd"
    ),
)

CANCEL_RECEIPT = Action(
    key="CANCEL_RECEIPT",
    field_name="action-szamla_agent_nyugta_storno",
    root="xmlnyugtast",
    namespace="http://www.szamlazz.hu/xmlnyugtast",
    schema_location=(
        "http://www.szamlazz.hu/xmlnyugtast "
        "http://www.szamlazz.hu/docs/xsds/nyugtast/xmlnyugtast.xsd"
    ),
)

GET_RECEIPT = Action(
    key="GET_RECEIPT",
    field_name="action-szamla_agent_nyugta_get",
    root="xmlnyugtaget",
    namespace="http://www.szamlazz.hu/xmlnyugtaget",
    schema_location=(
        "http://www.szamlazz.hu/xmlnyugtaget "
        "http://www.szamlazz.hu/docs/xsds/nyugtaget/xmlnyugtaget.xsd"
    ),
)

# Validez de un contribuyente (consulta NAV vía Számlázz.hu)
QUERY_TAX_PAYER = Action(
    key="QUERY_TAX_PAYER",
    field_name="action-szamla_agent_taxpayer",
    root="xmltaxpayer",
    namespace="http://www.szamlazz.hu/xmltaxpayer",
    schema_location=(
        "http://www.szamlazz.hu/xmltaxpayer "
        "http://www.szamlazz.hu/docs/xsds/agent/xmltaxpayer.xsd"
    ),
)


ACTIONS = MappingProxyType(
    {
        action.key: action
        for action in (
            CANCEL_INVOICE,
            DELETE_PROFORMA_INVOICE,
            GET_COMMON_INVOICE,
            UPLOAD_COMMON_INVOICE,
            UPLOAD_RECEIPT,
            CANCEL_RECEIPT,
            GET_RECEIPT,
            QUERY_TAX_PAYER,
        )
    }
)


def get_action(key: str) -> Action:
    try:
        return ACTIONS[key]
    except KeyError:
        raise ValueError(f"Acción desconocida: {key!r}") from None
