# szamlazzhu/serializers.py
# -*- coding: utf-8 -*-
"""
Conjuntos de reglas de validación (DRF) para configuración y modelos.

Cada operación mutante tiene su propio serializer; el cliente los recibe
a través de `szamlazzhu.services.validation.ModelValidator`.
"""
from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from szamlazzhu.domain import TaxSubject, to_decimal
from szamlazzhu.services.payment_methods import PAYMENT_METHOD_ALIASES

# Códigos de exención admitidos en `afakulcs`
VAT_EXEMPTION_CODES = frozenset(
    {
        "TAM", "AAM", "EU", "EUK", "MAA", "F.AFA", "K.AFA", "ÁKK",
        "TEHK", "HO", "KBAET", "EUFAD37", "EUFADE", "EUE", "ATK", "NAM",
        "EAM", "KBAUK", "ÁTHK", "TEH",
    }
)

INVOICE_LANGUAGES = ("hu", "en", "de", "it", "ro", "sk", "hr", "fr", "es", "cz", "pl")


def _optional_char(**kwargs: Any) -> serializers.CharField:
    return serializers.CharField(required=False, allow_blank=True, allow_null=True, **kwargs)


def _decimal(**kwargs: Any) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=None, decimal_places=None, **kwargs)


class TaxRateField(serializers.Field):
    """Tipo de IVA numérico (27, 5.5) o código de exención (AAM, TAM...)."""

    default_error_messages = {
        "invalid": "Tipo de IVA inválido: debe ser numérico o un código de exención.",
    }

    def to_internal_value(self, data: Any) -> Any:
        if isinstance(data, bool):
            self.fail("invalid")
        d = to_decimal(data)
        if d is not None:
            return d
        if isinstance(data, str) and data.strip() in VAT_EXEMPTION_CODES:
            return data.strip()
        self.fail("invalid")

    def to_representation(self, value: Any) -> str:
        return str(value)


# =========================
# Configuración del cliente
# =========================


class CredentialsSerializer(serializers.Serializer):
    username = _optional_char()
    password = _optional_char()
    api_key = _optional_char()

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if attrs.get("api_key"):
            return attrs

        errors: Dict[str, str] = {}
        if not attrs.get("username"):
            errors["username"] = "Obligatorio cuando no se indica api_key."
        if not attrs.get("password"):
            errors["password"] = "Obligatorio cuando no se indica api_key."
        if errors:
            errors["api_key"] = "Obligatorio cuando no se indican usuario y contraseña."
            raise serializers.ValidationError(errors)
        return attrs


class CertificateSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(default=False)
    path = _optional_char()


class StorageSerializer(serializers.Serializer):
    auto_save = serializers.BooleanField(default=False)
    disk = serializers.CharField(default="default")
    path = serializers.CharField(allow_blank=True, default="szamlazzhu")


class ClientConfigSerializer(serializers.Serializer):
    credentials = CredentialsSerializer()
    timeout = serializers.IntegerField(min_value=10, max_value=300)
    base_uri = serializers.URLField()
    certificate = CertificateSerializer(required=False)
    storage = StorageSerializer(required=False)
    merchant = serializers.DictField(required=False, allow_null=True)


# =========================
# Partes y líneas
# =========================


class LineItemSerializer(serializers.Serializer):
    name = serializers.CharField()
    quantity = _decimal()
    quantity_unit = serializers.CharField()
    net_unit_price = _decimal()
    tax_rate = TaxRateField()
    net_price = _decimal(required=False, allow_null=True)
    tax_value = _decimal(required=False, allow_null=True)
    gross_price = _decimal(required=False, allow_null=True)
    comment = _optional_char()


class PaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_ALIASES)
    amount = _decimal()
    comment = _optional_char()


class CustomerSerializer(serializers.Serializer):
    name = serializers.CharField()
    zip_code = serializers.CharField()
    city = serializers.CharField()
    address = serializers.CharField()
    country = _optional_char()
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    receives_email = serializers.BooleanField(default=False)
    tax_number = _optional_char()
    eu_tax_number = _optional_char()
    tax_subject = serializers.ChoiceField(
        choices=TaxSubject.choices, required=False, allow_null=True
    )
    shipping_name = _optional_char()
    shipping_country = _optional_char()
    shipping_zip_code = _optional_char()
    shipping_city = _optional_char()
    shipping_address = _optional_char()

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if attrs.get("receives_email") and not attrs.get("email"):
            raise serializers.ValidationError(
                {"email": "Es obligatorio si el comprador recibe la factura por email."}
            )
        return attrs


class MerchantSerializer(serializers.Serializer):
    bank = _optional_char()
    bank_account_number = _optional_char()
    reply_email_address = serializers.EmailField(
        required=False, allow_blank=True, allow_null=True
    )


# =========================
# Facturas
# =========================


class InvoiceSavingSerializer(serializers.Serializer):
    """
    Reglas para emitir facturas y proformas.
    El emisor ya viene asignado (propio o por defecto) cuando se valida.
    """

    customer = CustomerSerializer()
    merchant = MerchantSerializer()
    items = LineItemSerializer(many=True, allow_empty=False)
    created_at = serializers.DateField()
    fulfillment_at = serializers.DateField()
    payment_deadline = serializers.DateField()
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_ALIASES)
    currency = serializers.CharField(max_length=3)
    language = serializers.ChoiceField(choices=INVOICE_LANGUAGES)
    comment = _optional_char()
    exchange_rate_bank = _optional_char()
    exchange_rate = _decimal(required=False, allow_null=True)
    order_number = _optional_char()
    invoice_prefix = _optional_char()
    is_electronic = serializers.BooleanField(default=False)
    is_imprest_invoice = serializers.BooleanField(default=False)
    is_final_invoice = serializers.BooleanField(default=False)
    is_replacement_invoice = serializers.BooleanField(default=False)
    is_paid = serializers.BooleanField(default=False)
    is_preview = serializers.BooleanField(default=False)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        created_at = attrs.get("created_at")
        deadline = attrs.get("payment_deadline")
        if created_at and deadline and deadline < created_at:
            raise serializers.ValidationError(
                {"payment_deadline": "No puede ser anterior a la fecha de emisión."}
            )
        if attrs.get("exchange_rate") is not None and not attrs.get("exchange_rate_bank"):
            raise serializers.ValidationError(
                {"exchange_rate_bank": "Es obligatorio cuando se indica tipo de cambio."}
            )
        return attrs


class CancellationCustomerSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    receives_email = serializers.BooleanField(default=False)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if attrs.get("receives_email") and not attrs.get("email"):
            raise serializers.ValidationError(
                {"email": "Es obligatorio para notificar la anulación por email."}
            )
        return attrs


class InvoiceCancellationSerializer(serializers.Serializer):
    invoice_number = serializers.CharField()
    created_at = serializers.DateField()
    fulfillment_at = serializers.DateField()
    customer = CancellationCustomerSerializer()
    merchant = MerchantSerializer(required=False, allow_null=True)


class ProformaInvoiceDeletionSerializer(serializers.Serializer):
    invoice_number = serializers.CharField()


# =========================
# Recibos
# =========================


class ReceiptSavingSerializer(serializers.Serializer):
    prefix = serializers.CharField()
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_ALIASES)
    currency = serializers.CharField(max_length=3)
    items = LineItemSerializer(many=True, allow_empty=False)
    payments = PaymentSerializer(many=True, required=False)
    call_id = _optional_char(max_length=50)
    exchange_rate_bank = _optional_char()
    exchange_rate = _decimal(required=False, allow_null=True)
    comment = _optional_char()


class ReceiptCancellationSerializer(serializers.Serializer):
    receipt_number = serializers.CharField()


class ReceiptObtainingSerializer(serializers.Serializer):
    receipt_number = serializers.CharField()
