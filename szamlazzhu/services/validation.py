# szamlazzhu/services/validation.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Any, Type

from rest_framework import serializers

from szamlazzhu import serializers as rules
from szamlazzhu.domain import BaseInvoice, Receipt
from szamlazzhu.errors import (
    InvoiceValidationError,
    ModelValidationError,
    ReceiptValidationError,
)

logger = logging.getLogger("szamlazzhu.validation")


class ModelValidator:
    """
    Valida modelos de dominio contra un conjunto de reglas (serializer DRF).

    Sin estado; expone un atajo por operación para que el cliente no
    dependa de los nombres de los serializers.
    """

    saving_invoice = rules.InvoiceSavingSerializer
    cancelling_invoice = rules.InvoiceCancellationSerializer
    deleting_proforma_invoice = rules.ProformaInvoiceDeletionSerializer
    saving_receipt = rules.ReceiptSavingSerializer
    cancelling_receipt = rules.ReceiptCancellationSerializer
    obtaining_receipt = rules.ReceiptObtainingSerializer

    def validate(self, model: Any, rule_set: Type[serializers.Serializer]) -> bool:
        serializer = rule_set(data=model.to_api_dict())
        if serializer.is_valid():
            return True

        logger.info(
            "%s no pasó %s: %s",
            model.__class__.__name__,
            rule_set.__name__,
            serializer.errors,
        )

        if isinstance(model, BaseInvoice):
            raise InvoiceValidationError(model, serializer.errors)
        if isinstance(model, Receipt):
            raise ReceiptValidationError(model, serializer.errors)
        raise ModelValidationError(model, serializer.errors)
