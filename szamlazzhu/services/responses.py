# szamlazzhu/services/responses.py
# -*- coding: utf-8 -*-
"""
Respuestas tipadas de las operaciones de escritura y consulta de contribuyente.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from urllib.parse import unquote_plus

from szamlazzhu.domain import to_decimal
from szamlazzhu.services.payment_methods import PaymentMethods
from szamlazzhu.services.projector import project_receipt, project_tax_payer
from szamlazzhu.services.xml_parser import XmlParseError, parse

# Cabeceras que acompañan a la creación / anulación de facturas
INVOICE_NUMBER_HEADER = "szlahu_szamlaszam"
NET_TOTAL_HEADER = "szlahu_nettovegosszeg"
GROSS_TOTAL_HEADER = "szlahu_bruttovegosszeg"
RECEIVABLES_HEADER = "szlahu_kintlevoseg"
CUSTOMER_ACCOUNT_URL_HEADER = "szlahu_vevoifiokurl"


def _parse_or_empty(response: Any) -> Dict[str, Any]:
    """Cuerpo como árbol de dicts; {} si no es XML (p. ej. un PDF o texto plano)."""
    try:
        return parse(getattr(response, "content", b"") or b"")
    except XmlParseError:
        return {}


def _value(data: Dict[str, Any], key: str, headers: Any, header: str) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value:
        return value
    header_value = headers.get(header)
    return header_value or None


@dataclass
class InvoiceCreationResponse:
    invoice_number: Optional[str]
    net_total: Optional[Decimal] = None
    gross_total: Optional[Decimal] = None
    receivables: Optional[Decimal] = None
    customer_account_url: Optional[str] = None
    pdf_base64: Optional[str] = None
    response: Any = field(default=None, repr=False)

    @classmethod
    def from_response(cls, response: Any) -> "InvoiceCreationResponse":
        data = _parse_or_empty(response)
        headers = response.headers
        url = _value(data, "vevoifiokurl", headers, CUSTOMER_ACCOUNT_URL_HEADER)

        return cls(
            invoice_number=_value(data, "szamlaszam", headers, INVOICE_NUMBER_HEADER),
            net_total=to_decimal(_value(data, "szamlanetto", headers, NET_TOTAL_HEADER)),
            gross_total=to_decimal(_value(data, "szamlabrutto", headers, GROSS_TOTAL_HEADER)),
            receivables=to_decimal(_value(data, "kintlevoseg", headers, RECEIVABLES_HEADER)),
            customer_account_url=unquote_plus(url) if url else None,
            pdf_base64=data.get("pdf") or None,
            response=response,
        )


class InvoicePreviewResponse(InvoiceCreationResponse):
    """Vista previa (elonezetpdf): solo trae el PDF, no hay número de factura."""


@dataclass
class InvoiceCancellationResponse:
    original_invoice_number: Optional[str]
    cancellation_invoice_number: Optional[str]
    net_total: Optional[Decimal] = None
    gross_total: Optional[Decimal] = None
    pdf_stored: bool = False
    # Fallo de la segunda llamada (PDF); la anulación sigue siendo válida
    pdf_error: Optional[Exception] = None
    response: Any = field(default=None, repr=False)

    @classmethod
    def from_response(cls, response: Any, original_invoice_number: Optional[str]) -> "InvoiceCancellationResponse":
        data = _parse_or_empty(response)
        headers = response.headers
        return cls(
            original_invoice_number=original_invoice_number,
            cancellation_invoice_number=_value(data, "szamlaszam", headers, INVOICE_NUMBER_HEADER),
            net_total=to_decimal(_value(data, "szamlanetto", headers, NET_TOTAL_HEADER)),
            gross_total=to_decimal(_value(data, "szamlabrutto", headers, GROSS_TOTAL_HEADER)),
            response=response,
        )


@dataclass
class ProformaInvoiceDeletionResponse:
    invoice_number: Optional[str]
    is_successful: bool = True
    response: Any = field(default=None, repr=False)

    @classmethod
    def from_response(cls, response: Any, invoice_number: Optional[str]) -> "ProformaInvoiceDeletionResponse":
        data = _parse_or_empty(response)
        return cls(
            invoice_number=invoice_number,
            is_successful=data.get("sikeres", "true") != "false",
            response=response,
        )


@dataclass
class ReceiptCreationResponse:
    receipt_number: Optional[str]
    call_id: Optional[str] = None
    created_at: Optional[date] = None
    is_cancelled: bool = False
    pdf_base64: Optional[str] = None
    response: Any = field(default=None, repr=False)

    @classmethod
    def from_response(cls, response: Any, payment_methods: PaymentMethods) -> "ReceiptCreationResponse":
        projection = project_receipt(_parse_or_empty(response), payment_methods)
        return cls(
            receipt_number=projection.head.receipt_number or None,
            call_id=projection.head.call_id,
            created_at=projection.head.created_at,
            is_cancelled=projection.head.is_cancelled,
            pdf_base64=projection.pdf,
            response=response,
        )


@dataclass
class ReceiptCancellationResponse:
    receipt_number: Optional[str]
    original_receipt_number: Optional[str]
    created_at: Optional[date] = None
    pdf_base64: Optional[str] = None
    response: Any = field(default=None, repr=False)

    @classmethod
    def from_response(
        cls,
        response: Any,
        original_receipt_number: Optional[str],
        payment_methods: PaymentMethods,
    ) -> "ReceiptCancellationResponse":
        projection = project_receipt(_parse_or_empty(response), payment_methods)
        return cls(
            receipt_number=projection.head.receipt_number or None,
            original_receipt_number=projection.head.original_receipt_number or original_receipt_number,
            created_at=projection.head.created_at,
            pdf_base64=projection.pdf,
            response=response,
        )


@dataclass
class QueryTaxPayerResponse:
    is_valid: bool
    tax_number: Optional[str] = None
    name: Optional[str] = None
    addresses: List[Dict[str, str]] = field(default_factory=list)
    response: Any = field(default=None, repr=False)

    @classmethod
    def from_response(cls, response: Any) -> "QueryTaxPayerResponse":
        projection = project_tax_payer(_parse_or_empty(response))
        return cls(
            is_valid=projection.is_valid,
            tax_number=projection.tax_number,
            name=projection.name,
            addresses=projection.addresses,
            response=response,
        )
