# szamlazzhu/services/storage.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import posixpath

from django.core.files.base import ContentFile
from django.core.files.storage import storages

logger = logging.getLogger("szamlazzhu.storage")


class PdfStore:
    """
    Persistencia de los PDF generados por Számlázz.hu sobre un backend de
    `STORAGES` de Django (el "disk" de la configuración es el alias).

    Nunca sobrescribe: si el archivo ya existe no se escribe.
    """

    def store(self, disk: str, path: str, content: bytes, filename: str) -> bool:
        storage = storages[disk]
        full_path = posixpath.join(path, filename) if path else filename

        if storage.exists(full_path):
            logger.debug("PDF %s ya existe en '%s', no se sobrescribe.", full_path, disk)
            return False

        saved_name = storage.save(full_path, ContentFile(content))
        logger.info("PDF guardado en '%s': %s", disk, saved_name)
        return True
