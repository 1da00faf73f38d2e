# szamlazzhu/services/client.py
# -*- coding: utf-8 -*-
"""
Cliente de alto nivel para el Agente XML de Számlázz.hu.

Cada operación sigue el mismo flujo:

    validar (local) -> construir XML -> enviar -> clasificar fallo | proyectar

La validación corta antes de tocar la red. No hay reintentos automáticos:
emitir o anular comprobantes no es idempotente.

Las consultas usan un tipo resultado en la frontera:
- find_*      -> registro o NotFound (falsy)
- get_*       -> registro o None
- *_or_fail   -> registro o excepción de "no encontrado"
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Union

import requests

from szamlazzhu.conf import ClientConfig, build_config, load_config, validate_timeout
from szamlazzhu.domain import BaseInvoice, Invoice, Merchant, ProformaInvoice, Receipt
from szamlazzhu.errors import (
    CommonResponseError,
    InvoiceNotFoundError,
    MissingMerchantError,
    ReceiptNotFoundError,
    SzamlazzHuError,
)
from szamlazzhu.services import actions, xml_documents
from szamlazzhu.services.actions import Action
from szamlazzhu.services.classifier import body_text, classify, is_failure
from szamlazzhu.services.payment_methods import PaymentMethods
from szamlazzhu.services.projector import InvoiceProjection, project_invoice, project_receipt
from szamlazzhu.services.responses import (
    InvoiceCancellationResponse,
    InvoiceCreationResponse,
    InvoicePreviewResponse,
    ProformaInvoiceDeletionResponse,
    QueryTaxPayerResponse,
    ReceiptCancellationResponse,
    ReceiptCreationResponse,
)
from szamlazzhu.services.storage import PdfStore
from szamlazzhu.services.transport import RequestsTransport, Transport
from szamlazzhu.services.validation import ModelValidator
from szamlazzhu.services.xml_parser import XmlParseError, parse

logger = logging.getLogger("szamlazzhu.client")

# Mensaje con el que Számlázz.hu responde a una factura inexistente
UNKNOWN_INVOICE_MARKER = "(ismeretlen számlaszám)."


@dataclass(frozen=True)
class NotFound:
    """
    Marcador de consulta sin resultado. Es falsy para poder escribir
    `if not result: ...`.
    """

    identifier: Optional[str] = None
    response: Any = None

    def __bool__(self) -> bool:
        return False


def _decode_pdf(pdf_base64: str) -> bytes:
    return base64.b64decode(pdf_base64)


class SzamlazzHuClient:
    """
    Orquestador de operaciones. Se puede construir:

    - sin argumentos: lee `settings.SZAMLAZZHU`;
    - con un dict de configuración (se combina con los defaults y se valida);
    - con un `ClientConfig` ya construido.

    El transporte, el validador, los métodos de pago y el almacén de PDFs
    son inyectables (tests, transportes alternativos).
    """

    def __init__(
        self,
        config: Union[ClientConfig, Mapping[str, Any], None] = None,
        transport: Optional[Transport] = None,
        merchant: Optional[Merchant] = None,
        validator: Optional[ModelValidator] = None,
        payment_methods: Optional[PaymentMethods] = None,
        pdf_store: Optional[PdfStore] = None,
    ):
        if config is None:
            config = load_config()
        elif not isinstance(config, ClientConfig):
            config = build_config(config)

        self.config = config
        self.transport = transport or RequestsTransport(config)
        self.validator = validator or ModelValidator()
        self.payment_methods = payment_methods or PaymentMethods()
        self.pdf_store = pdf_store or PdfStore()

        if merchant is None and config.merchant:
            merchant = Merchant.from_dict(dict(config.merchant))
        self.default_merchant = merchant

    # =========================
    # Infraestructura
    # =========================

    @property
    def credentials(self):
        return self.config.credentials

    def _send(self, action: Action, document: str) -> requests.Response:
        logger.info("Számlázz.hu: enviando acción '%s'", action.key)
        response = self.transport.send(action.field_name, document)

        if is_failure(response):
            classify(response)

        logger.info(
            "Számlázz.hu: acción '%s' completada (http=%s)",
            action.key,
            getattr(response, "status_code", None),
        )
        return response

    def _save_pdf(self, pdf_base64: Optional[str], number: Optional[str]) -> bool:
        """Persistencia best-effort del PDF como `<número>.pdf`."""
        if not pdf_base64 or not number or not self.config.should_save_pdf:
            return False

        storage = self.config.storage
        try:
            return self.pdf_store.store(
                storage.disk,
                storage.path,
                _decode_pdf(pdf_base64),
                f"{number}.pdf",
            )
        except Exception:  # noqa: BLE001
            logger.exception("No se pudo guardar el PDF de %s en '%s'", number, storage.disk)
            return False

    # =========================
    # Validación
    # =========================

    def validate_invoice_for_saving(self, invoice: Invoice) -> bool:
        return self.validator.validate(invoice, self.validator.saving_invoice)

    def validate_proforma_invoice_for_saving(self, invoice: ProformaInvoice) -> bool:
        return self.validator.validate(invoice, self.validator.saving_invoice)

    def validate_receipt_for_saving(self, receipt: Receipt) -> bool:
        return self.validator.validate(receipt, self.validator.saving_receipt)

    # =========================
    # Facturas y proformas: emisión
    # =========================

    def upload_invoice(
        self,
        invoice: Invoice,
        without_pdf: bool = False,
        email_subject: Optional[str] = None,
        email_message: Optional[str] = None,
    ) -> InvoiceCreationResponse:
        return self._upload_common_invoice(invoice, without_pdf, email_subject, email_message)

    def upload_proforma_invoice(
        self,
        invoice: ProformaInvoice,
        without_pdf: bool = False,
        email_subject: Optional[str] = None,
        email_message: Optional[str] = None,
    ) -> InvoiceCreationResponse:
        return self._upload_common_invoice(invoice, without_pdf, email_subject, email_message)

    def _upload_common_invoice(
        self,
        invoice: BaseInvoice,
        without_pdf: bool,
        email_subject: Optional[str],
        email_message: Optional[str],
    ) -> InvoiceCreationResponse:
        if not invoice.has_merchant():
            if self.default_merchant is None:
                raise MissingMerchantError(
                    "La factura no tiene emisor y el cliente no tiene emisor por defecto."
                )
            invoice.merchant = replace(self.default_merchant)

        self.validator.validate(invoice, self.validator.saving_invoice)

        document = xml_documents.build_invoice_xml(
            invoice,
            self.credentials,
            self.payment_methods,
            without_pdf=without_pdf,
            email_subject=email_subject,
            email_message=email_message,
        )
        raw = self._send(actions.UPLOAD_COMMON_INVOICE, document)

        response_class = InvoicePreviewResponse if invoice.is_preview else InvoiceCreationResponse
        response = response_class.from_response(raw)

        if response.invoice_number:
            invoice.invoice_number = response.invoice_number

        if response.pdf_base64:
            invoice.pdf = response.pdf_base64
            if not without_pdf and not invoice.is_preview:
                self._save_pdf(response.pdf_base64, response.invoice_number)

        return response

    # =========================
    # Facturas: anulación
    # =========================

    def cancel_invoice(
        self,
        invoice: Invoice,
        without_pdf: bool = False,
        email_subject: Optional[str] = None,
        email_message: Optional[str] = None,
    ) -> InvoiceCancellationResponse:
        """
        Emite la factura de anulación (storno).

        Si hay auto-guardado, una segunda llamada descarga el PDF de la factura
        de anulación. Un fallo en esa segunda llamada queda en `pdf_error` y
        no deshace la anulación ya confirmada.
        """
        self.validator.validate(invoice, self.validator.cancelling_invoice)

        document = xml_documents.build_invoice_cancellation_xml(
            invoice,
            self.credentials,
            email_subject=email_subject,
            email_message=email_message,
        )
        raw = self._send(actions.CANCEL_INVOICE, document)

        response = InvoiceCancellationResponse.from_response(raw, invoice.invoice_number)
        invoice.cancellation_invoice_number = response.cancellation_invoice_number

        if without_pdf or not self.config.should_save_pdf or not response.cancellation_invoice_number:
            return response

        try:
            pdf = self._fetch_invoice_pdf(response.cancellation_invoice_number)
        except (SzamlazzHuError, requests.RequestException) as exc:
            logger.warning(
                "Anulación %s confirmada pero no se pudo descargar su PDF: %s",
                response.cancellation_invoice_number,
                exc,
            )
            response.pdf_error = exc
            return response

        response.pdf_stored = self._save_pdf(pdf, response.cancellation_invoice_number)
        return response

    def _fetch_invoice_pdf(self, invoice_number: str) -> Optional[str]:
        document = xml_documents.build_invoice_query_xml(
            self.credentials, invoice_number=invoice_number, with_pdf=True
        )
        raw = self._send(actions.GET_COMMON_INVOICE, document)
        return parse(raw.content).get("pdf") or None

    # =========================
    # Proformas: borrado
    # =========================

    def delete_proforma_invoice(self, invoice: ProformaInvoice) -> ProformaInvoiceDeletionResponse:
        self.validator.validate(invoice, self.validator.deleting_proforma_invoice)

        document = xml_documents.build_proforma_deletion_xml(invoice, self.credentials)
        raw = self._send(actions.DELETE_PROFORMA_INVOICE, document)
        return ProformaInvoiceDeletionResponse.from_response(raw, invoice.invoice_number)

    # =========================
    # Facturas y proformas: consulta
    # =========================

    def _request_invoice(
        self,
        invoice_number: Optional[str] = None,
        order_number: Optional[str] = None,
    ) -> Union[InvoiceProjection, NotFound]:
        if not invoice_number and not order_number:
            raise ValueError("Se requiere número de factura o número de pedido.")

        identifier = order_number or invoice_number
        document = xml_documents.build_invoice_query_xml(
            self.credentials,
            invoice_number=invoice_number,
            order_number=order_number,
        )

        try:
            raw = self._send(actions.GET_COMMON_INVOICE, document)
        except CommonResponseError as exc:
            if UNKNOWN_INVOICE_MARKER in body_text(exc.response):
                logger.info("Factura %s no encontrada en Számlázz.hu", identifier)
                return NotFound(identifier, exc.response)
            raise

        try:
            data = parse(raw.content)
        except XmlParseError:
            logger.info("Respuesta no legible para la factura %s; se trata como inexistente", identifier)
            return NotFound(identifier, raw)

        return project_invoice(data, self.payment_methods)

    def _build_invoice(self, invoice_class: type, projection: InvoiceProjection) -> BaseInvoice:
        head = projection.head
        return invoice_class(
            customer=projection.customer,
            merchant=projection.merchant,
            items=projection.items,
            invoice_number=head.invoice_number,
            created_at=head.created_at,
            fulfillment_at=head.fulfillment_at,
            payment_deadline=head.payment_deadline,
            payment_method=head.payment_method,
            currency=head.currency,
            language=head.language,
            comment=head.comment,
            exchange_rate_bank=head.exchange_rate_bank,
            exchange_rate=head.exchange_rate,
            order_number=head.order_number,
            is_electronic=head.is_electronic,
            is_paid=head.is_paid,
            is_kata=head.is_kata,
            pdf=head.pdf,
            total_sum=head.total_sum,
            total_paid=head.total_paid,
            paid_at=head.paid_at,
            pro_forma_invoice_number=head.pro_forma_invoice_number,
        )

    @staticmethod
    def _invoice_number_of(invoice: Union[str, BaseInvoice], expected: type) -> str:
        if isinstance(invoice, str):
            return invoice
        if isinstance(invoice, expected):
            if not invoice.invoice_number:
                raise ValueError("La factura no tiene número.")
            return invoice.invoice_number
        raise ValueError(
            f"Se esperaba un número de factura o {expected.__name__}, no {type(invoice).__name__}."
        )

    def find_invoice(self, invoice: Union[str, Invoice]) -> Union[Invoice, NotFound]:
        number = self._invoice_number_of(invoice, Invoice)
        result = self._request_invoice(invoice_number=number)
        if not result:
            return result
        return self._build_invoice(Invoice, result)

    def get_invoice(self, invoice: Union[str, Invoice]) -> Optional[Invoice]:
        return self.find_invoice(invoice) or None

    def get_invoice_or_fail(self, invoice: Union[str, Invoice]) -> Invoice:
        result = self.find_invoice(invoice)
        if not result:
            raise InvoiceNotFoundError(result.identifier, result.response)
        return result

    def find_proforma_invoice(
        self, invoice: Union[str, ProformaInvoice]
    ) -> Union[ProformaInvoice, NotFound]:
        number = self._invoice_number_of(invoice, ProformaInvoice)
        result = self._request_invoice(invoice_number=number)
        if not result:
            return result
        return self._build_invoice(ProformaInvoice, result)

    def get_proforma_invoice(self, invoice: Union[str, ProformaInvoice]) -> Optional[ProformaInvoice]:
        return self.find_proforma_invoice(invoice) or None

    def get_proforma_invoice_or_fail(self, invoice: Union[str, ProformaInvoice]) -> ProformaInvoice:
        result = self.find_proforma_invoice(invoice)
        if not result:
            raise InvoiceNotFoundError(result.identifier, result.response)
        return result

    def find_invoice_by_order_number(
        self, order_number: str
    ) -> Union[Invoice, ProformaInvoice, NotFound]:
        """Una solicitud de anticipo ("D-") se devuelve como ProformaInvoice."""
        result = self._request_invoice(order_number=order_number)
        if not result:
            return result
        invoice_class = ProformaInvoice if result.head.is_prepayment_request else Invoice
        return self._build_invoice(invoice_class, result)

    def get_invoice_by_order_number(self, order_number: str) -> Union[Invoice, ProformaInvoice, None]:
        return self.find_invoice_by_order_number(order_number) or None

    def get_invoice_by_order_number_or_fail(self, order_number: str) -> Union[Invoice, ProformaInvoice]:
        result = self.find_invoice_by_order_number(order_number)
        if not result:
            raise InvoiceNotFoundError(result.identifier, result.response)
        return result

    # =========================
    # Recibos
    # =========================

    def upload_receipt(self, receipt: Receipt, without_pdf: bool = False) -> ReceiptCreationResponse:
        self.validator.validate(receipt, self.validator.saving_receipt)

        document = xml_documents.build_receipt_xml(
            receipt,
            self.credentials,
            self.payment_methods,
            download_pdf=not without_pdf or self.config.should_save_pdf,
        )
        raw = self._send(actions.UPLOAD_RECEIPT, document)

        response = ReceiptCreationResponse.from_response(raw, self.payment_methods)
        receipt.fill(
            call_id=response.call_id or receipt.call_id,
            receipt_number=response.receipt_number,
            created_at=response.created_at,
            is_cancelled=response.is_cancelled,
        )

        if response.pdf_base64:
            receipt.pdf = response.pdf_base64
            if not without_pdf:
                self._save_pdf(response.pdf_base64, response.receipt_number)

        return response

    def cancel_receipt(self, receipt: Receipt, without_pdf: bool = False) -> ReceiptCancellationResponse:
        self.validator.validate(receipt, self.validator.cancelling_receipt)

        document = xml_documents.build_receipt_cancellation_xml(
            receipt,
            self.credentials,
            download_pdf=not without_pdf or self.config.should_save_pdf,
        )
        raw = self._send(actions.CANCEL_RECEIPT, document)

        response = ReceiptCancellationResponse.from_response(
            raw, receipt.receipt_number, self.payment_methods
        )
        receipt.is_cancelled = True

        if response.pdf_base64 and not without_pdf:
            self._save_pdf(response.pdf_base64, response.receipt_number or receipt.receipt_number)

        return response

    def find_receipt_by_receipt_number(
        self, receipt_number: str, without_pdf: bool = False
    ) -> Union[Receipt, NotFound]:
        if not receipt_number:
            raise ValueError("Se requiere número de recibo.")

        document = xml_documents.build_receipt_query_xml(
            receipt_number,
            self.credentials,
            download_pdf=not without_pdf or self.config.should_save_pdf,
        )

        try:
            raw = self._send(actions.GET_RECEIPT, document)
            data = parse(raw.content)
        except ReceiptNotFoundError as exc:
            logger.info("Recibo %s no encontrado en Számlázz.hu", receipt_number)
            return NotFound(receipt_number, exc.response)
        except XmlParseError:
            logger.info("Respuesta no legible para el recibo %s; se trata como inexistente", receipt_number)
            return NotFound(receipt_number)

        projection = project_receipt(data, self.payment_methods)
        head = projection.head

        receipt = Receipt(
            prefix="",
            payment_method=head.payment_method,
            currency=head.currency,
            items=projection.items,
            payments=projection.payments,
            call_id=head.call_id,
            receipt_number=head.receipt_number or receipt_number,
            created_at=head.created_at,
            is_cancelled=head.is_cancelled,
            exchange_rate_bank=head.exchange_rate_bank,
            exchange_rate=head.exchange_rate,
            comment=head.comment,
            original_receipt_number=head.original_receipt_number,
            pdf=projection.pdf,
        )

        if projection.pdf and not without_pdf:
            self._save_pdf(projection.pdf, receipt.receipt_number)

        return receipt

    def get_receipt_by_receipt_number(self, receipt_number: str, without_pdf: bool = False) -> Optional[Receipt]:
        return self.find_receipt_by_receipt_number(receipt_number, without_pdf) or None

    def get_receipt_by_receipt_number_or_fail(self, receipt_number: str, without_pdf: bool = False) -> Receipt:
        result = self.find_receipt_by_receipt_number(receipt_number, without_pdf)
        if not result:
            raise ReceiptNotFoundError(
                result.response,
                f"Recibo no encontrado: {receipt_number}",
                receipt_number=receipt_number,
            )
        return result

    def find_receipt(self, receipt: Receipt, without_pdf: bool = False) -> Union[Receipt, NotFound]:
        self.validator.validate(receipt, self.validator.obtaining_receipt)
        return self.find_receipt_by_receipt_number(receipt.receipt_number, without_pdf)

    def get_receipt(self, receipt: Receipt, without_pdf: bool = False) -> Optional[Receipt]:
        return self.find_receipt(receipt, without_pdf) or None

    def get_receipt_or_fail(self, receipt: Receipt, without_pdf: bool = False) -> Receipt:
        self.validator.validate(receipt, self.validator.obtaining_receipt)
        return self.get_receipt_by_receipt_number_or_fail(receipt.receipt_number, without_pdf)

    # =========================
    # Contribuyentes
    # =========================

    def query_tax_payer(self, tax_number: str) -> QueryTaxPayerResponse:
        if not tax_number:
            raise ValueError("Se requiere número fiscal.")

        document = xml_documents.build_tax_payer_query_xml(tax_number, self.credentials)
        raw = self._send(actions.QUERY_TAX_PAYER, document)
        return QueryTaxPayerResponse.from_response(raw)


def get_client(
    config: Union[ClientConfig, Mapping[str, Any], None] = None,
    merchant: Optional[Merchant] = None,
    timeout: Optional[int] = None,
) -> SzamlazzHuClient:
    """
    Factory del cliente a partir de `settings.SZAMLAZZHU`.

    :param config: Opcional, dict que se combina sobre la configuración del proyecto.
    :param merchant: Opcional, emisor por defecto (sobrescribe el de settings).
    :param timeout: Opcional, sobrescribe el timeout configurado.
    """
    if isinstance(config, ClientConfig):
        if timeout is not None:
            config = replace(config, timeout=validate_timeout(timeout))
    else:
        overrides = dict(config or {})
        if timeout is not None:
            overrides["timeout"] = timeout
        config = load_config(overrides)

    return SzamlazzHuClient(config, merchant=merchant)
