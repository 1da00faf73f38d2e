# szamlazzhu/errors.py
# -*- coding: utf-8 -*-
"""
Jerarquía de errores del cliente Számlázz.hu.

- SzamlazzHuError: base de todo lo que lanza el paquete.
- InvalidClientConfigurationError: configuración incompleta o fuera de rango.
- ModelValidationError: validación local previa a cualquier llamada remota.
- CommonResponseError y subclases: errores devueltos por la API remota.
- InvoiceNotFoundError / ReceiptNotFoundError: búsquedas sin resultado.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class SzamlazzHuError(Exception):
    """Base para todos los errores del paquete."""


class InvalidClientConfigurationError(SzamlazzHuError):
    def __init__(self, errors: Dict[str, Any]):
        self.errors = errors
        super().__init__(f"Configuración de Számlázz.hu inválida: {errors}")


class MissingMerchantError(SzamlazzHuError, ValueError):
    """La factura no tiene emisor y no hay emisor por defecto configurado."""


# =========================
# Validación local (antes de red)
# =========================


class ModelValidationError(SzamlazzHuError):
    """
    El modelo no cumple el conjunto de reglas de la operación.

    `errors` conserva la estructura de `serializer.errors` (campo -> lista de mensajes).
    """

    def __init__(self, model: Any, errors: Dict[str, Any]):
        self.model = model
        self.errors = errors
        super().__init__(
            f"{model.__class__.__name__} no pasó la validación: {errors}"
        )


class InvoiceValidationError(ModelValidationError):
    pass


class ReceiptValidationError(ModelValidationError):
    pass


# =========================
# Errores remotos
# =========================


class CommonResponseError(SzamlazzHuError):
    """
    Error genérico devuelto por Számlázz.hu.

    Conserva la respuesta HTTP original para diagnóstico.
    """

    error_codes: tuple[int, ...] = ()
    default_message = "Unknown error"

    def __init__(
        self,
        response: Any = None,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
    ):
        self.response = response
        self.message = message or self.default_message
        self.status_code = status_code or getattr(response, "status_code", None) or 500
        self.code = code
        super().__init__(self.message)

    def get_response(self) -> Any:
        return self.response


class RemoteMaintenanceError(CommonResponseError):
    error_codes = (1,)
    default_message = "El sistema remoto está en mantenimiento."


class AuthenticationError(CommonResponseError):
    error_codes = (2, 3)
    default_message = "Sikertelen bejelentkezés."


class KeystoreOpeningError(CommonResponseError):
    error_codes = (49,)
    default_message = "No se pudo abrir el almacén de claves."


class NoXmlFileError(CommonResponseError):
    error_codes = (53,)
    default_message = "La petición no contenía archivo XML."


class CannotCreateInvoiceError(CommonResponseError):
    error_codes = (54,)
    default_message = "No se pudo crear la factura."


class UnsuccessfulInvoiceSignatureError(CommonResponseError):
    error_codes = (55,)
    default_message = "Falló la firma de la factura."


class InvoiceNotificationSendingError(CommonResponseError):
    error_codes = (56,)
    default_message = "No se pudo enviar la notificación de la factura."


class XmlReadingError(CommonResponseError):
    error_codes = (57,)
    default_message = "El sistema remoto no pudo leer el XML."


class InvalidInvoicePrefixError(CommonResponseError):
    error_codes = (202,)
    default_message = "Prefijo de factura inválido."


class InvalidNetPriceValueError(CommonResponseError):
    error_codes = (259, 262)
    default_message = "Valor neto inválido."


class InvalidVatRateValueError(CommonResponseError):
    error_codes = (260, 263)
    default_message = "Tipo de IVA inválido."


class InvalidGrossPriceValueError(CommonResponseError):
    error_codes = (261, 264)
    default_message = "Valor bruto inválido."


class ReceiptAlreadyExistsError(CommonResponseError):
    error_codes = (338,)
    default_message = "El recibo ya existe."


class ReceiptNotFoundError(CommonResponseError):
    error_codes = (339,)
    default_message = "Recibo no encontrado."

    def __init__(self, response: Any = None, *args: Any, receipt_number: Optional[str] = None, **kwargs: Any):
        self.receipt_number = receipt_number
        super().__init__(response, *args, **kwargs)


# =========================
# Búsquedas sin resultado (sintetizadas localmente)
# =========================


class InvoiceNotFoundError(SzamlazzHuError):
    def __init__(self, invoice_number: Optional[str] = None, response: Any = None):
        self.invoice_number = invoice_number
        self.response = response
        super().__init__(f"Factura no encontrada: {invoice_number!r}")


REMOTE_ERROR_KINDS = (
    RemoteMaintenanceError,
    AuthenticationError,
    KeystoreOpeningError,
    NoXmlFileError,
    CannotCreateInvoiceError,
    UnsuccessfulInvoiceSignatureError,
    InvoiceNotificationSendingError,
    XmlReadingError,
    InvalidInvoicePrefixError,
    InvalidNetPriceValueError,
    InvalidVatRateValueError,
    InvalidGrossPriceValueError,
    ReceiptAlreadyExistsError,
    ReceiptNotFoundError,
)
