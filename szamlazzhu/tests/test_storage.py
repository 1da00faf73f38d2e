# szamlazzhu/tests/test_storage.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from unittest.mock import patch

from django.core.files.storage import InMemoryStorage
from django.test import SimpleTestCase

from szamlazzhu.services.storage import PdfStore


class PdfStoreTests(SimpleTestCase):
    def setUp(self) -> None:
        self.storage = InMemoryStorage()
        patcher = patch("szamlazzhu.services.storage.storages", {"invoices": self.storage})
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_stores_under_configured_path(self):
        stored = PdfStore().store("invoices", "szamlazzhu", b"%PDF", "E-1.pdf")

        self.assertTrue(stored)
        with self.storage.open("szamlazzhu/E-1.pdf") as fh:
            self.assertEqual(fh.read(), b"%PDF")

    def test_existing_file_is_not_overwritten(self):
        PdfStore().store("invoices", "szamlazzhu", b"first", "E-1.pdf")

        stored = PdfStore().store("invoices", "szamlazzhu", b"second", "E-1.pdf")

        self.assertFalse(stored)
        with self.storage.open("szamlazzhu/E-1.pdf") as fh:
            self.assertEqual(fh.read(), b"first")

    def test_empty_path_stores_at_root(self):
        self.assertTrue(PdfStore().store("invoices", "", b"%PDF", "NY-1.pdf"))
        self.assertTrue(self.storage.exists("NY-1.pdf"))
