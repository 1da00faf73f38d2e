# szamlazzhu/tests/test_commands.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from io import StringIO
from unittest.mock import MagicMock, patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase

from szamlazzhu.errors import AuthenticationError
from szamlazzhu.services.responses import QueryTaxPayerResponse
from szamlazzhu.tests.helpers import make_invoice

COMMAND_CLIENT = "szamlazzhu.management.commands.szamlazzhu_fetch.get_client"


class FetchCommandTests(SimpleTestCase):
    @patch(COMMAND_CLIENT)
    def test_prints_invoice(self, mock_get_client):
        invoice = make_invoice(invoice_number="E-TESZT-2024-1", is_paid=True, total_sum=25400, total_paid=25400)
        mock_get_client.return_value.get_invoice.return_value = invoice
        out = StringIO()

        call_command("szamlazzhu_fetch", "--invoice", "E-TESZT-2024-1", stdout=out)

        output = out.getvalue()
        self.assertIn("E-TESZT-2024-1", output)
        self.assertIn("25400", output)
        mock_get_client.return_value.get_invoice.assert_called_once_with("E-TESZT-2024-1")

    @patch(COMMAND_CLIENT)
    def test_missing_invoice_is_command_error(self, mock_get_client):
        mock_get_client.return_value.get_invoice_by_order_number.return_value = None

        with self.assertRaises(CommandError):
            call_command("szamlazzhu_fetch", "--order-number", "ORD-404", stdout=StringIO())

    @patch(COMMAND_CLIENT)
    def test_remote_error_is_command_error(self, mock_get_client):
        mock_get_client.return_value.query_tax_payer.side_effect = AuthenticationError(MagicMock(status_code=200))

        with self.assertRaises(CommandError):
            call_command("szamlazzhu_fetch", "--tax-number", "12345678-2-41", stdout=StringIO())

    @patch(COMMAND_CLIENT)
    def test_prints_tax_payer(self, mock_get_client):
        mock_get_client.return_value.query_tax_payer.return_value = QueryTaxPayerResponse(
            is_valid=True, tax_number="12345678-2-41", name="Teszt Kft."
        )
        out = StringIO()

        call_command("szamlazzhu_fetch", "--tax-number", "12345678-2-41", stdout=out)

        self.assertIn("Teszt Kft.", out.getvalue())
