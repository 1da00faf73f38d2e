# szamlazzhu/conf.py
# -*- coding: utf-8 -*-
"""
Configuración del cliente Számlázz.hu.

La configuración se construye una sola vez: los valores por defecto se
combinan con los del proyecto mediante `merge_config` (función pura), se
valida de forma inmediata y el resultado es inmutable.

En settings.py del proyecto:

    SZAMLAZZHU = {
        "credentials": {"api_key": "..."},   # o {"username": ..., "password": ...}
        "timeout": 30,
        "base_uri": "https://www.szamlazz.hu/",
        "certificate": {"enabled": False, "path": None},
        "storage": {"auto_save": False, "disk": "default", "path": "szamlazzhu"},
        "merchant": {...},                   # emisor por defecto (opcional)
    }
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from django.conf import settings
from rest_framework.exceptions import ValidationError

from szamlazzhu.errors import InvalidClientConfigurationError

logger = logging.getLogger("szamlazzhu.conf")

SETTINGS_NAME = "SZAMLAZZHU"

DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        "timeout": 30,
        "base_uri": "https://www.szamlazz.hu/",
        "certificate": {
            "enabled": False,
            "path": None,
        },
        "storage": {
            "auto_save": False,
            "disk": "default",
            "path": "szamlazzhu",
        },
    }
)


@dataclass(frozen=True)
class Credentials:
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None


@dataclass(frozen=True)
class CertificateConfig:
    enabled: bool = False
    path: Optional[str] = None


@dataclass(frozen=True)
class StorageConfig:
    auto_save: bool = False
    disk: str = "default"
    path: str = "szamlazzhu"


@dataclass(frozen=True)
class ClientConfig:
    credentials: Credentials
    timeout: int = 30
    base_uri: str = "https://www.szamlazz.hu/"
    certificate: CertificateConfig = CertificateConfig()
    storage: StorageConfig = StorageConfig()
    merchant: Optional[Mapping[str, Any]] = None

    @property
    def should_save_pdf(self) -> bool:
        return self.storage.auto_save is True


def merge_config(defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Combina recursivamente `overrides` sobre `defaults` sin mutar ninguno.
    """
    merged: Dict[str, Any] = copy.deepcopy(dict(defaults))
    for key, value in (overrides or {}).items():
        base = merged.get(key)
        if isinstance(base, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config(base, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def build_config(overrides: Mapping[str, Any]) -> ClientConfig:
    """
    Aplica los defaults, valida y devuelve la configuración inmutable.

    Lanza InvalidClientConfigurationError si faltan credenciales o si
    timeout/base_uri están fuera de rango.
    """
    from szamlazzhu.serializers import ClientConfigSerializer

    merged = merge_config(DEFAULTS, overrides)

    serializer = ClientConfigSerializer(data=merged)
    if not serializer.is_valid():
        logger.error("Configuración de Számlázz.hu inválida: %s", serializer.errors)
        raise InvalidClientConfigurationError(serializer.errors)

    data = serializer.validated_data
    credentials = data.get("credentials") or {}
    certificate = data.get("certificate") or {}
    storage = data.get("storage") or {}

    return ClientConfig(
        credentials=Credentials(
            username=credentials.get("username") or None,
            password=credentials.get("password") or None,
            api_key=credentials.get("api_key") or None,
        ),
        timeout=data["timeout"],
        base_uri=data["base_uri"],
        certificate=CertificateConfig(
            enabled=certificate.get("enabled", False),
            path=certificate.get("path") or None,
        ),
        storage=StorageConfig(
            auto_save=storage.get("auto_save", False),
            disk=storage.get("disk") or "default",
            path=storage.get("path") or "",
        ),
        merchant=MappingProxyType(dict(merged["merchant"])) if merged.get("merchant") else None,
    )


def validate_timeout(timeout: Any) -> int:
    """Valida un timeout suelto con la misma regla que la configuración completa."""
    from szamlazzhu.serializers import ClientConfigSerializer

    field = ClientConfigSerializer().fields["timeout"]
    try:
        return field.run_validation(timeout)
    except ValidationError as exc:
        raise InvalidClientConfigurationError({"timeout": exc.detail})


def load_config(overrides: Optional[Mapping[str, Any]] = None) -> ClientConfig:
    """
    Lee `settings.SZAMLAZZHU` y, si se indican, aplica `overrides` encima.
    """
    project_config = getattr(settings, SETTINGS_NAME, None) or {}
    return build_config(merge_config(project_config, overrides or {}))
