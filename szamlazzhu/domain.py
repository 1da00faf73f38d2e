# szamlazzhu/domain.py
# -*- coding: utf-8 -*-
"""
Objetos de dominio (facturas, proformas, recibos, partes, líneas y pagos).

No son modelos ORM: son objetos de valor que se construyen por llamada y
se entregan al llamador, que pasa a ser su dueño.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from django.db import models

TaxRate = Union[Decimal, str]

TWO_PLACES = Decimal("0.01")


class TaxSubject(models.IntegerChoices):
    """Tipo de sujeto fiscal del comprador (campo `adoalany`)."""

    NON_EU_COMPANY = 7, "Empresa fuera de la UE"
    EU_COMPANY = 6, "Empresa de la UE"
    HUNGARIAN_TAX_ID = 1, "Con número fiscal húngaro"
    UNKNOWN = 0, "Desconocido"
    NO_TAX_ID = -1, "Sin número fiscal"


# =========================
# Helpers numéricos
# =========================


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convierte a Decimal pasando por str para no arrastrar ruido de float.

    Devuelve None si el valor no es numérico.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def round_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(value: Any) -> int:
    """Importe en unidades mínimas de la moneda (100.50 -> 10050)."""
    d = to_decimal(value)
    if d is None:
        return 0
    return int(round_money(d) * 100)


# =========================
# Líneas y pagos
# =========================


@dataclass
class LineItem:
    name: str
    quantity: Decimal
    quantity_unit: str
    net_unit_price: Decimal
    tax_rate: TaxRate
    net_price: Optional[Decimal] = None
    tax_value: Optional[Decimal] = None
    gross_price: Optional[Decimal] = None
    comment: Optional[str] = None

    def numeric_tax_rate(self) -> Decimal:
        # Los códigos de exención (AAM, TAM, EU...) cuentan como 0 %
        return to_decimal(self.tax_rate) or Decimal("0")

    def computed_net_price(self) -> Decimal:
        if self.net_price is not None:
            return to_decimal(self.net_price)
        return to_decimal(self.net_unit_price) * to_decimal(self.quantity)

    def computed_gross_price(self) -> Decimal:
        if self.gross_price is not None:
            return to_decimal(self.gross_price)
        net = self.computed_net_price()
        return round_money(net * (1 + self.numeric_tax_rate() / 100))

    def computed_tax_value(self) -> Decimal:
        if self.tax_value is not None:
            return to_decimal(self.tax_value)
        return self.computed_gross_price() - self.computed_net_price()


@dataclass
class Payment:
    payment_method: str
    amount: Decimal
    comment: Optional[str] = None


# =========================
# Partes
# =========================


@dataclass
class Customer:
    name: str
    zip_code: str = ""
    city: str = ""
    address: str = ""
    country: str = ""
    email: Optional[str] = None
    receives_email: bool = False
    tax_number: Optional[str] = None
    eu_tax_number: Optional[str] = None
    tax_subject: Optional[int] = None
    shipping_name: Optional[str] = None
    shipping_country: Optional[str] = None
    shipping_zip_code: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_address: Optional[str] = None


@dataclass
class Merchant:
    name: str = ""
    country: str = ""
    zip_code: str = ""
    city: str = ""
    address: str = ""
    tax_number: Optional[str] = None
    eu_tax_number: Optional[str] = None
    bank: Optional[str] = None
    bank_account_number: Optional[str] = None
    reply_email_address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Merchant":
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


# =========================
# Comprobantes
# =========================


@dataclass
class BaseInvoice:
    customer: Customer
    items: List[LineItem] = field(default_factory=list)
    merchant: Optional[Merchant] = None
    invoice_number: Optional[str] = None
    created_at: Optional[date] = None
    fulfillment_at: Optional[date] = None
    payment_deadline: Optional[date] = None
    payment_method: str = "transfer"
    currency: str = "HUF"
    language: str = "hu"
    comment: str = ""
    exchange_rate_bank: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    order_number: Optional[str] = None
    invoice_prefix: Optional[str] = None
    is_electronic: bool = False
    is_imprest_invoice: bool = False
    is_final_invoice: bool = False
    is_replacement_invoice: bool = False
    is_paid: bool = False
    is_preview: bool = False
    is_kata: bool = False
    pdf: Optional[str] = None
    # Solo se rellenan al consultar
    total_sum: Optional[int] = None
    total_paid: Optional[int] = None
    paid_at: Optional[date] = None
    pro_forma_invoice_number: Optional[str] = None
    cancellation_invoice_number: Optional[str] = None

    def has_merchant(self) -> bool:
        return self.merchant is not None

    def to_api_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Invoice(BaseInvoice):
    pass


@dataclass
class ProformaInvoice(BaseInvoice):
    pass


@dataclass
class Receipt:
    prefix: str = ""
    payment_method: str = "cash"
    currency: str = "HUF"
    items: List[LineItem] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    call_id: Optional[str] = None
    receipt_number: Optional[str] = None
    created_at: Optional[date] = None
    is_cancelled: bool = False
    exchange_rate_bank: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    comment: Optional[str] = None
    original_receipt_number: Optional[str] = None
    pdf: Optional[str] = None

    def fill(self, **attributes: Any) -> "Receipt":
        for name, value in attributes.items():
            setattr(self, name, value)
        return self

    def to_api_dict(self) -> Dict[str, Any]:
        return asdict(self)
