# szamlazzhu/services/transport.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Optional, Protocol
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from szamlazzhu.conf import ClientConfig

logger = logging.getLogger("szamlazzhu.transport")

DOCUMENT_FILENAME = "invoice.xml"
DEFAULT_PATH = "/szamla/"


class Transport(Protocol):
    def send(
        self,
        field_name: str,
        document: str,
        path: str = DEFAULT_PATH,
        method: str = "POST",
    ) -> requests.Response:
        ...


class RequestsTransport:
    """
    Envío multipart del documento XML: una sola parte, con el nombre de
    campo de la acción y nombre de archivo fijo.

    Sin reintentos: crear o anular comprobantes no es idempotente.
    """

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self.config = config

        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": "szamlazzhu-django/1.0 (Python/requests)"})

            adapter = HTTPAdapter(max_retries=0)
            session.mount("http://", adapter)
            session.mount("https://", adapter)

            if config.certificate.enabled and config.certificate.path:
                session.verify = config.certificate.path

        self.session = session

        logger.info(
            "Inicializando transporte Számlázz.hu [base_uri=%s, timeout=%s, certificate=%s]",
            config.base_uri,
            config.timeout,
            config.certificate.enabled,
        )

    def send(
        self,
        field_name: str,
        document: str,
        path: str = DEFAULT_PATH,
        method: str = "POST",
    ) -> requests.Response:
        url = urljoin(self.config.base_uri, path)
        files = None
        if field_name and document:
            files = {
                field_name: (DOCUMENT_FILENAME, document.encode("utf-8"), "text/xml"),
            }

        logger.debug("Enviando %s a %s (%s)", field_name, url, method)

        return self.session.request(
            method,
            url,
            files=files,
            timeout=self.config.timeout,
        )
