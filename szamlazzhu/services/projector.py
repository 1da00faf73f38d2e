# szamlazzhu/services/projector.py
# -*- coding: utf-8 -*-
"""
Proyección de respuestas (árbol de dicts normalizado) a registros tipados.

- Los textos libres se decodifican de entidades HTML una sola vez.
- Los importes pasan a Decimal; los totales de cabecera, a unidades mínimas.
- Los campos repetibles (tetel, kifizetes, direcciones) se normalizan a lista.
"""
from __future__ import annotations

import html
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.utils.dateparse import parse_date

from szamlazzhu.domain import (
    Customer,
    LineItem,
    Merchant,
    Payment,
    TaxRate,
    to_decimal,
    to_minor_units,
)
from szamlazzhu.services.payment_methods import PaymentMethods
from szamlazzhu.services.xml_parser import normalize_to_sequence

ELECTRONIC_PREFIX = "E-"
PREPAYMENT_REQUEST_PREFIX = "D-"


@dataclass
class InvoiceHead:
    invoice_number: str
    is_electronic: bool
    is_prepayment_request: bool
    created_at: Optional[date]
    fulfillment_at: Optional[date]
    payment_deadline: Optional[date]
    payment_method: Optional[str]
    currency: str
    language: str
    comment: str
    total_sum: int
    total_paid: int
    is_paid: bool
    exchange_rate_bank: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    is_kata: bool = False
    paid_at: Optional[date] = None
    pdf: Optional[str] = None
    pro_forma_invoice_number: Optional[str] = None
    order_number: Optional[str] = None


@dataclass
class InvoiceProjection:
    head: InvoiceHead
    customer: Customer
    merchant: Merchant
    items: List[LineItem] = field(default_factory=list)


@dataclass
class ReceiptHead:
    receipt_number: str
    is_cancelled: bool
    created_at: Optional[date]
    payment_method: Optional[str]
    currency: str
    call_id: Optional[str] = None
    exchange_rate_bank: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    comment: Optional[str] = None
    original_receipt_number: Optional[str] = None


@dataclass
class ReceiptProjection:
    head: ReceiptHead
    items: List[LineItem] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    pdf: Optional[str] = None


@dataclass
class TaxPayerProjection:
    is_valid: bool
    name: Optional[str] = None
    taxpayer_id: Optional[str] = None
    vat_code: Optional[str] = None
    county_code: Optional[str] = None
    addresses: List[Dict[str, str]] = field(default_factory=list)

    @property
    def tax_number(self) -> Optional[str]:
        if not (self.taxpayer_id and self.vat_code and self.county_code):
            return None
        return f"{self.taxpayer_id}-{self.vat_code}-{self.county_code}"


# =========================
# Helpers
# =========================


def decode(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return html.unescape(str(value))


def decode_optional(value: Any) -> Optional[str]:
    text = decode(value)
    return text or None


def _text(node: Dict[str, Any], key: str) -> Optional[str]:
    value = node.get(key)
    if value is None or isinstance(value, (dict, list)) or value == "":
        return None
    return str(value)


def _section(node: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = node.get(key)
    return value if isinstance(value, dict) else {}


def _date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    # "2024-01-31" o "2024-01-31T10:00:00": solo interesa la parte de fecha
    return parse_date(value[:10])


def _tax_rate(value: Any) -> TaxRate:
    d = to_decimal(value)
    return d if d is not None else decode(value)


def _decimal(value: Any) -> Decimal:
    d = to_decimal(value)
    return d if d is not None else Decimal("0")


def starts_with(value: Optional[str], prefix: str) -> bool:
    return bool(value) and value.startswith(prefix)


def total_paid(payments: Any) -> Decimal:
    """Suma de `osszeg` de todos los pagos (0 si no hay sección de pagos)."""
    return sum(
        (_decimal(p.get("osszeg")) for p in normalize_to_sequence(payments) if isinstance(p, dict)),
        Decimal("0"),
    )


def last_payment_date(payments: Any) -> Optional[date]:
    dates = [
        _date(_text(p, "datum"))
        for p in normalize_to_sequence(payments)
        if isinstance(p, dict)
    ]
    dates = [d for d in dates if d is not None]
    return max(dates) if dates else None


# =========================
# Facturas
# =========================


def project_invoice_items(items: Any) -> List[LineItem]:
    result: List[LineItem] = []
    for item in normalize_to_sequence(items):
        if not isinstance(item, dict):
            continue
        result.append(
            LineItem(
                name=decode(item.get("nev")),
                quantity=_decimal(item.get("mennyiseg")),
                quantity_unit=decode(item.get("mennyisegiegyseg")),
                net_unit_price=_decimal(item.get("nettoegysegar")),
                tax_rate=_tax_rate(item.get("afakulcs")),
                net_price=_decimal(item.get("netto")),
                tax_value=_decimal(item.get("afa")),
                gross_price=_decimal(item.get("brutto")),
                comment=decode_optional(item.get("megjegyzes")),
            )
        )
    return result


def project_invoice(data: Dict[str, Any], payment_methods: PaymentMethods) -> InvoiceProjection:
    base = _section(data, "alap")
    customer_node = _section(data, "vevo")
    customer_address = _section(customer_node, "cim")
    merchant_node = _section(data, "szallito")
    merchant_address = _section(merchant_node, "cim")
    merchant_bank = _section(merchant_node, "bank")

    payments = _section(data, "kifizetesek").get("kifizetes")
    paid = to_minor_units(total_paid(payments))
    total = to_minor_units(_section(_section(data, "osszegek"), "totalossz").get("brutto"))

    invoice_number = _text(base, "szamlaszam") or ""

    head = InvoiceHead(
        invoice_number=invoice_number,
        is_electronic=starts_with(invoice_number, ELECTRONIC_PREFIX),
        is_prepayment_request=starts_with(invoice_number, PREPAYMENT_REQUEST_PREFIX),
        created_at=_date(_text(base, "kelt")),
        fulfillment_at=_date(_text(base, "telj")),
        payment_deadline=_date(_text(base, "fizh")),
        payment_method=payment_methods.get_payment_method(decode_optional(base.get("fizmod"))),
        currency=_text(base, "devizanem") or "",
        language=_text(base, "nyelv") or "",
        exchange_rate_bank=_text(base, "devizabank"),
        exchange_rate=to_decimal(_text(base, "devizaarf")),
        comment=decode(base.get("megjegyzes")),
        is_kata=_text(base, "kata") == "true",
        total_sum=total,
        total_paid=paid,
        is_paid=total == paid,
        paid_at=last_payment_date(payments),
        pdf=_text(data, "pdf"),
        pro_forma_invoice_number=_text(base, "hivdijbekszam"),
        order_number=_text(base, "rendelesszam"),
    )

    customer = Customer(
        name=decode(customer_node.get("nev")),
        email=_text(customer_node, "email"),
        country=decode(customer_address.get("orszag")),
        zip_code=decode(customer_address.get("irsz")),
        city=decode(customer_address.get("telepules")),
        address=decode(customer_address.get("cim")),
        tax_number=decode_optional(customer_node.get("adoszam")),
        eu_tax_number=decode_optional(customer_node.get("adoszameu")),
    )

    merchant = Merchant(
        name=decode(merchant_node.get("nev")),
        country=decode(merchant_address.get("orszag")),
        zip_code=decode(merchant_address.get("irsz")),
        city=decode(merchant_address.get("telepules")),
        address=decode(merchant_address.get("cim")),
        tax_number=decode_optional(merchant_node.get("adoszam")),
        eu_tax_number=decode_optional(merchant_node.get("adoszameu")),
        bank=decode_optional(merchant_bank.get("nev")),
        bank_account_number=decode_optional(merchant_bank.get("bankszamla")),
    )

    items = project_invoice_items(_section(data, "tetelek").get("tetel"))

    return InvoiceProjection(head=head, customer=customer, merchant=merchant, items=items)


# =========================
# Recibos
# =========================


def project_receipt(data: Dict[str, Any], payment_methods: PaymentMethods) -> ReceiptProjection:
    receipt = _section(data, "nyugta")
    base = _section(receipt, "alap")

    head = ReceiptHead(
        call_id=_text(base, "hivasAzonosito"),
        receipt_number=_text(base, "nyugtaszam") or "",
        is_cancelled=_text(base, "stornozott") == "true",
        created_at=_date(_text(base, "kelt")),
        exchange_rate_bank=_text(base, "devizabank"),
        exchange_rate=to_decimal(_text(base, "devizaarf")),
        payment_method=payment_methods.get_payment_method_by_type(decode_optional(base.get("fizmod"))),
        currency=_text(base, "penznem") or "",
        comment=decode_optional(base.get("megjegyzes")),
        original_receipt_number=_text(base, "stornozottNyugtaszam"),
    )

    items = [
        LineItem(
            name=decode(item.get("megnevezes")),
            quantity=_decimal(item.get("mennyiseg")),
            quantity_unit=decode(item.get("mennyisegiEgyseg")),
            net_unit_price=_decimal(item.get("nettoEgysegar")),
            tax_rate=_tax_rate(item.get("afakulcs")),
            net_price=_decimal(item.get("netto")),
            tax_value=_decimal(item.get("afa")),
            gross_price=_decimal(item.get("brutto")),
        )
        for item in normalize_to_sequence(_section(receipt, "tetelek").get("tetel"))
        if isinstance(item, dict)
    ]

    payments = [
        Payment(
            payment_method=payment_methods.get_payment_method_by_type(
                decode_optional(payment.get("fizetoeszkoz"))
            ),
            amount=_decimal(payment.get("osszeg")),
            comment=decode_optional(payment.get("leiras")),
        )
        for payment in normalize_to_sequence(_section(receipt, "kifizetesek").get("kifizetes"))
        if isinstance(payment, dict)
    ]

    return ReceiptProjection(
        head=head,
        items=items,
        payments=payments,
        pdf=_text(data, "nyugtaPdf"),
    )


# =========================
# Contribuyentes
# =========================


def project_tax_payer(data: Dict[str, Any]) -> TaxPayerProjection:
    taxpayer = _section(data, "taxpayerData")
    detail = _section(taxpayer, "taxNumberDetail")

    addresses: List[Dict[str, str]] = []
    for item in normalize_to_sequence(_section(taxpayer, "taxpayerAddressList").get("taxpayerAddressItem")):
        if not isinstance(item, dict):
            continue
        address = _section(item, "taxpayerAddress")
        addresses.append(
            {
                "type": _text(item, "taxpayerAddressType") or "",
                "country_code": _text(address, "countryCode") or "",
                "postal_code": _text(address, "postalCode") or "",
                "city": decode(address.get("city")),
                "street_name": decode(address.get("streetName")),
                "public_place_category": decode(address.get("publicPlaceCategory")),
                "number": _text(address, "number") or "",
            }
        )

    return TaxPayerProjection(
        is_valid=_text(data, "taxpayerValidity") == "true",
        name=decode_optional(taxpayer.get("taxpayerName")),
        taxpayer_id=_text(detail, "taxpayerId"),
        vat_code=_text(detail, "vatCode"),
        county_code=_text(detail, "countyCode"),
        addresses=addresses,
    )
