# szamlazzhu/services/classifier.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import re
from typing import Any, Dict, NoReturn, Optional, Type

from szamlazzhu import errors
from szamlazzhu.services.xml_parser import XmlParseError, parse

logger = logging.getLogger("szamlazzhu.classifier")

ERROR_CODE_HEADER = "szlahu_error_code"
ERROR_MESSAGE_HEADER = "szlahu_error"

FAILED_LOGIN_MESSAGE = "Sikertelen bejelentkezés."
AUTHENTICATION_ERROR_CODE = 2

UNSUCCESSFUL_MARKER = b"<sikeres>false</sikeres>"
ERROR_CODE_MARKER = b"<hibakod>"

ERROR_CODE_PATTERN = re.compile(r"<hibakod>([0-9]+)</hibakod>")

# código remoto -> tipo de error
ERROR_KINDS: Dict[int, Type[errors.CommonResponseError]] = {
    code: kind for kind in errors.REMOTE_ERROR_KINDS for code in kind.error_codes
}


def body_bytes(response: Any) -> bytes:
    return getattr(response, "content", None) or b""


def body_text(response: Any) -> str:
    return body_bytes(response).decode("utf-8", errors="replace")


def is_failure(response: Any) -> bool:
    """
    El protocolo señala el fallo de forma redundante; basta con una señal:
    cabecera de código, cabecera de mensaje, <sikeres>false</sikeres> o <hibakod>.
    """
    headers = response.headers
    if ERROR_CODE_HEADER in headers or ERROR_MESSAGE_HEADER in headers:
        return True
    content = body_bytes(response)
    return UNSUCCESSFUL_MARKER in content or ERROR_CODE_MARKER in content


def is_authentication_error(response: Any) -> bool:
    try:
        data = parse(body_bytes(response))
    except XmlParseError:
        return False
    return data.get("sikeres") == "false" and data.get("hibauzenet") == FAILED_LOGIN_MESSAGE


def resolve_error_code(response: Any) -> Optional[int]:
    """
    Orden de resolución (gana el primero):

    1. cabecera szlahu_error_code
    2. login fallido en el cuerpo -> 2
    3. primer <hibakod>N</hibakod> del cuerpo
    """
    header_code = response.headers.get(ERROR_CODE_HEADER)
    if header_code is not None:
        try:
            return int(str(header_code).strip())
        except ValueError:
            logger.warning("Cabecera %s no numérica: %r", ERROR_CODE_HEADER, header_code)
            return None

    if is_authentication_error(response):
        return AUTHENTICATION_ERROR_CODE

    match = ERROR_CODE_PATTERN.search(body_text(response))
    if match:
        return int(match.group(1))

    return None


def classify(response: Any) -> NoReturn:
    """
    Convierte una respuesta fallida en la excepción correspondiente.
    Siempre lanza; un código desconocido o ausente termina en CommonResponseError.
    """
    code = resolve_error_code(response)
    message = response.headers.get(ERROR_MESSAGE_HEADER) or None
    status_code = getattr(response, "status_code", None) or 500

    kind = ERROR_KINDS.get(code) if code is not None else None

    logger.warning(
        "Respuesta fallida de Számlázz.hu: http=%s code=%s kind=%s message=%s",
        status_code,
        code,
        (kind or errors.CommonResponseError).__name__,
        message,
    )

    if kind is None:
        raise errors.CommonResponseError(
            response,
            message or "Unknown error",
            status_code,
            code=code,
        )

    raise kind(response, message, status_code, code=code)
