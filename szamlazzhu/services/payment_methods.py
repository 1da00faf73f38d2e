# szamlazzhu/services/payment_methods.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Dict, Optional

logger = logging.getLogger("szamlazzhu.payment_methods")

# alias interno -> texto que espera/devuelve Számlázz.hu
PAYMENT_METHODS: Dict[str, str] = {
    "transfer": "átutalás",
    "cash": "készpénz",
    "bankcard": "bankkártya",
    "cheque": "csekk",
    "cash_on_delivery": "utánvét",
    "paypal": "PayPal",
    "szep_card": "SZÉP kártya",
    "otp_simple": "OTP Simple",
}

PAYMENT_METHOD_ALIASES = tuple(PAYMENT_METHODS.keys())


class PaymentMethods:
    """
    Traducción entre alias de forma de pago y el texto del protocolo.

    Sin estado: se inyecta en el cliente y puede compartirse entre hilos.
    """

    def __init__(self, methods: Optional[Dict[str, str]] = None):
        self._by_alias = dict(methods or PAYMENT_METHODS)
        self._by_type = {v.casefold(): k for k, v in self._by_alias.items()}

    def get_payment_method_by_alias(self, alias: str) -> str:
        try:
            return self._by_alias[alias]
        except KeyError:
            raise ValueError(f"Forma de pago desconocida: {alias!r}") from None

    def get_payment_method(self, payment_type: Optional[str]) -> Optional[str]:
        """
        Texto remoto -> alias. Un texto desconocido se devuelve sin cambios
        para no perder el dato.
        """
        if payment_type is None:
            return None
        alias = self._by_type.get(payment_type.strip().casefold())
        if alias is None:
            logger.debug("Forma de pago sin alias conocido: %r", payment_type)
            return payment_type
        return alias

    # Los recibos usan el mismo catálogo que las facturas
    get_payment_method_by_type = get_payment_method
