# szamlazzhu/services/xml_documents.py
# -*- coding: utf-8 -*-
"""
Documentos XML por operación.

El orden de los elementos es el del XSD de cada acción: reordenar rompe
el protocolo. Los opcionales vacíos se omiten (no se escriben vacíos).
"""
from __future__ import annotations

from typing import Optional

from szamlazzhu.conf import Credentials
from szamlazzhu.domain import BaseInvoice, Customer, LineItem, Merchant, ProformaInvoice, Receipt
from szamlazzhu.services import actions
from szamlazzhu.services.payment_methods import PaymentMethods
from szamlazzhu.services.xml_writer import (
    DocumentWriter,
    build_document,
    format_amount,
    format_tax_rate,
)

# Versión de respuesta XML de la emisión de facturas (incluye PDF en base64)
INVOICE_RESPONSE_VERSION = 2
CANCELLATION_TYPE = "SS"
TAX_PAYER_ID_LENGTH = 8


# =========================
# Bloques comunes
# =========================


def _write_item(writer: DocumentWriter, item: LineItem, net: str, tax: str, gross: str) -> None:
    writer.cdata("megnevezes", item.name)
    writer.amount("mennyiseg", item.quantity)
    writer.cdata("mennyisegiEgyseg", item.quantity_unit)
    writer.amount("nettoEgysegar", item.net_unit_price)
    writer.element("afakulcs", format_tax_rate(item.tax_rate))
    writer.element(net, format_amount(item.computed_net_price()))
    writer.element(tax, format_amount(item.computed_tax_value()))
    writer.element(gross, format_amount(item.computed_gross_price()))


def _write_merchant(
    writer: DocumentWriter,
    merchant: Merchant,
    email_subject: Optional[str],
    email_message: Optional[str],
) -> None:
    with writer.section("elado"):
        writer.optional_element("bank", merchant.bank)
        writer.optional_element("bankszamlaszam", merchant.bank_account_number)
        writer.optional_element("emailReplyto", merchant.reply_email_address)
        writer.optional_cdata("emailTargy", email_subject)
        writer.optional_cdata("emailSzoveg", email_message)


def _write_customer(writer: DocumentWriter, customer: Customer) -> None:
    with writer.section("vevo"):
        writer.cdata("nev", customer.name)
        writer.optional_cdata("orszag", customer.country)
        writer.cdata("irsz", customer.zip_code)
        writer.cdata("telepules", customer.city)
        writer.cdata("cim", customer.address)
        writer.optional_element("email", customer.email)
        writer.boolean("sendEmail", customer.receives_email)
        writer.optional_cdata("adoszam", customer.tax_number)
        writer.optional_element("adoszamEU", customer.eu_tax_number)
        if customer.tax_subject:
            writer.element("adoalany", int(customer.tax_subject))
        writer.optional_cdata("postazasiNev", customer.shipping_name)
        writer.optional_cdata("postazasiOrszag", customer.shipping_country)
        writer.optional_cdata("postazasiIrsz", customer.shipping_zip_code)
        writer.optional_cdata("postazasiTelepules", customer.shipping_city)
        writer.optional_cdata("postazasiCim", customer.shipping_address)


# =========================
# Facturas y proformas
# =========================


def build_invoice_xml(
    invoice: BaseInvoice,
    credentials: Credentials,
    payment_methods: PaymentMethods,
    without_pdf: bool = False,
    email_subject: Optional[str] = None,
    email_message: Optional[str] = None,
) -> str:
    def write(writer: DocumentWriter) -> None:
        with writer.section("beallitasok"):
            writer.credentials(credentials)
            writer.boolean("eszamla", invoice.is_electronic)
            writer.boolean("szamlaLetoltes", not without_pdf)
            writer.element("valaszVerzio", INVOICE_RESPONSE_VERSION)

        with writer.section("fejlec"):
            writer.date_element("keltDatum", invoice.created_at)
            writer.date_element("teljesitesDatum", invoice.fulfillment_at)
            writer.date_element("fizetesiHataridoDatum", invoice.payment_deadline)
            writer.element("fizmod", payment_methods.get_payment_method_by_alias(invoice.payment_method))
            writer.element("penznem", invoice.currency)
            writer.element("szamlaNyelve", invoice.language)
            writer.optional_cdata("megjegyzes", invoice.comment)
            writer.optional_element("arfolyamBank", invoice.exchange_rate_bank)
            if invoice.exchange_rate:
                writer.amount("arfolyam", invoice.exchange_rate)
            writer.optional_cdata("rendelesSzam", invoice.order_number)
            writer.boolean("elolegszamla", invoice.is_imprest_invoice)
            writer.boolean("vegszamla", invoice.is_final_invoice)
            writer.boolean("helyesbitoszamla", invoice.is_replacement_invoice)
            writer.boolean("dijbekero", isinstance(invoice, ProformaInvoice))
            writer.optional_cdata("szamlaszamElotag", invoice.invoice_prefix)
            writer.boolean("fizetve", invoice.is_paid)
            writer.boolean("elonezetpdf", invoice.is_preview)

        _write_merchant(writer, invoice.merchant or Merchant(), email_subject, email_message)
        _write_customer(writer, invoice.customer)

        with writer.section("tetelek"):
            for item in invoice.items:
                with writer.section("tetel"):
                    _write_item(writer, item, "nettoErtek", "afaErtek", "bruttoErtek")
                    writer.optional_cdata("megjegyzes", item.comment)

    return build_document(actions.UPLOAD_COMMON_INVOICE, write)


def build_invoice_cancellation_xml(
    invoice: BaseInvoice,
    credentials: Credentials,
    email_subject: Optional[str] = None,
    email_message: Optional[str] = None,
) -> str:
    """
    Anulación (storno). Los bloques de emisor/comprador solo se escriben si
    el comprador debe recibir la notificación por email.
    """
    notify = invoice.customer.receives_email

    def write(writer: DocumentWriter) -> None:
        with writer.section("beallitasok"):
            writer.credentials(credentials)
            writer.boolean("eszamla", invoice.is_electronic)
            writer.boolean("szamlaLetoltes", False)
            writer.element("szamlaLetoltesPld", 1)

        with writer.section("fejlec"):
            writer.element("szamlaszam", invoice.invoice_number)
            writer.date_element("keltDatum", invoice.created_at)
            writer.date_element("teljesitesDatum", invoice.fulfillment_at)
            writer.element("tipus", CANCELLATION_TYPE)

        if notify:
            merchant = invoice.merchant or Merchant()
            with writer.section("elado"):
                writer.optional_element("emailReplyto", merchant.reply_email_address)
                writer.optional_cdata("emailTargy", email_subject)
                writer.optional_cdata("emailSzoveg", email_message)
            with writer.section("vevo"):
                writer.element("email", invoice.customer.email)

    return build_document(actions.CANCEL_INVOICE, write)


def build_invoice_query_xml(
    credentials: Credentials,
    invoice_number: Optional[str] = None,
    order_number: Optional[str] = None,
    with_pdf: bool = True,
) -> str:
    def write(writer: DocumentWriter) -> None:
        writer.credentials(credentials)
        if order_number:
            writer.cdata("rendelesSzam", order_number)
        else:
            writer.element("szamlaszam", invoice_number)
        writer.boolean("pdf", with_pdf)

    return build_document(actions.GET_COMMON_INVOICE, write)


def build_proforma_deletion_xml(invoice: ProformaInvoice, credentials: Credentials) -> str:
    def write(writer: DocumentWriter) -> None:
        with writer.section("beallitasok"):
            writer.credentials(credentials)
        with writer.section("fejlec"):
            writer.element("szamlaszam", invoice.invoice_number)

    return build_document(actions.DELETE_PROFORMA_INVOICE, write)


# =========================
# Recibos
# =========================


def build_receipt_xml(
    receipt: Receipt,
    credentials: Credentials,
    payment_methods: PaymentMethods,
    download_pdf: bool,
) -> str:
    def write(writer: DocumentWriter) -> None:
        with writer.section("beallitasok"):
            writer.credentials(credentials)
            writer.boolean("pdfLetoltes", download_pdf)

        with writer.section("fejlec"):
            writer.optional_element("hivasAzonosito", receipt.call_id)
            writer.element("elotag", receipt.prefix)
            writer.element("fizmod", payment_methods.get_payment_method_by_alias(receipt.payment_method))
            writer.element("penznem", receipt.currency)
            writer.optional_element("devizabank", receipt.exchange_rate_bank)
            if receipt.exchange_rate:
                writer.amount("devizaarf", receipt.exchange_rate)
            writer.optional_cdata("megjegyzes", receipt.comment)

        with writer.section("tetelek"):
            for item in receipt.items:
                with writer.section("tetel"):
                    _write_item(writer, item, "netto", "afa", "brutto")

        if receipt.payments:
            with writer.section("kifizetesek"):
                for payment in receipt.payments:
                    with writer.section("kifizetes"):
                        writer.element(
                            "fizetoeszkoz",
                            payment_methods.get_payment_method_by_alias(payment.payment_method),
                        )
                        writer.amount("osszeg", payment.amount)
                        writer.optional_cdata("leiras", payment.comment)

    return build_document(actions.UPLOAD_RECEIPT, write)


def build_receipt_cancellation_xml(receipt: Receipt, credentials: Credentials, download_pdf: bool) -> str:
    def write(writer: DocumentWriter) -> None:
        with writer.section("beallitasok"):
            writer.credentials(credentials)
            writer.boolean("pdfLetoltes", download_pdf)
        with writer.section("fejlec"):
            writer.element("nyugtaszam", receipt.receipt_number)

    return build_document(actions.CANCEL_RECEIPT, write)


def build_receipt_query_xml(receipt_number: str, credentials: Credentials, download_pdf: bool) -> str:
    def write(writer: DocumentWriter) -> None:
        with writer.section("beallitasok"):
            writer.credentials(credentials)
            writer.boolean("pdfLetoltes", download_pdf)
        with writer.section("fejlec"):
            writer.element("nyugtaszam", receipt_number)

    return build_document(actions.GET_RECEIPT, write)


# =========================
# Contribuyentes
# =========================


def build_tax_payer_query_xml(tax_number: str, credentials: Credentials) -> str:
    """Solo viajan los 8 primeros caracteres (törzsszám) del número fiscal."""

    def write(writer: DocumentWriter) -> None:
        writer.credentials(credentials)
        writer.element("torzsszam", tax_number[:TAX_PAYER_ID_LENGTH])

    return build_document(actions.QUERY_TAX_PAYER, write)
