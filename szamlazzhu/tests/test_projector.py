# szamlazzhu/tests/test_projector.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import datetime
from decimal import ROUND_HALF_UP, Decimal

from django.test import SimpleTestCase

from szamlazzhu.conf import Credentials
from szamlazzhu.services import xml_documents
from szamlazzhu.services.payment_methods import PaymentMethods
from szamlazzhu.services.projector import (
    project_invoice,
    project_invoice_items,
    project_receipt,
    project_tax_payer,
)
from szamlazzhu.services.xml_parser import normalize_to_sequence, parse
from szamlazzhu.tests.helpers import invoice_xml, make_invoice, make_item, receipt_xml

FULL_PAYMENT = """
<kifizetesek>
  <kifizetes><datum>2024-05-11</datum><jogcim>átutalás</jogcim><osszeg>200.0</osszeg></kifizetes>
  <kifizetes><datum>2024-05-15</datum><jogcim>átutalás</jogcim><osszeg>54.0</osszeg></kifizetes>
</kifizetesek>
"""

PARTIAL_PAYMENT = """
<kifizetesek>
  <kifizetes><datum>2024-05-11</datum><jogcim>átutalás</jogcim><osszeg>100.0</osszeg></kifizetes>
</kifizetesek>
"""

TAX_PAYER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<QueryTaxpayerResponse xmlns="http://schemas.nav.gov.hu/OSA/3.0/api" xmlns:ns2="http://schemas.nav.gov.hu/OSA/3.0/base">
  <funcCode>OK</funcCode>
  <taxpayerValidity>true</taxpayerValidity>
  <taxpayerData>
    <taxpayerName>Teszt Kereskedelmi Kft.</taxpayerName>
    <taxNumberDetail>
      <ns2:taxpayerId>12345678</ns2:taxpayerId>
      <ns2:vatCode>2</ns2:vatCode>
      <ns2:countyCode>41</ns2:countyCode>
    </taxNumberDetail>
    <taxpayerAddressList>
      <taxpayerAddressItem>
        <taxpayerAddressType>HQ</taxpayerAddressType>
        <taxpayerAddress>
          <ns2:countryCode>HU</ns2:countryCode>
          <ns2:postalCode>1000</ns2:postalCode>
          <ns2:city>BUDAPEST</ns2:city>
          <ns2:streetName>KOSSUTH</ns2:streetName>
          <ns2:publicPlaceCategory>TÉR</ns2:publicPlaceCategory>
          <ns2:number>1</ns2:number>
        </taxpayerAddress>
      </taxpayerAddressItem>
    </taxpayerAddressList>
  </taxpayerData>
</QueryTaxpayerResponse>
"""


class ProjectInvoiceTests(SimpleTestCase):
    def _project(self, **kwargs):
        return project_invoice(parse(invoice_xml(**kwargs)), PaymentMethods())

    def test_head_fields(self):
        head = self._project().head

        self.assertEqual(head.invoice_number, "E-TESZT-2024-1")
        self.assertTrue(head.is_electronic)
        self.assertFalse(head.is_prepayment_request)
        self.assertEqual(head.created_at, datetime.date(2024, 5, 10))
        self.assertEqual(head.payment_deadline, datetime.date(2024, 5, 18))
        self.assertEqual(head.payment_method, "transfer")
        self.assertEqual(head.currency, "HUF")
        self.assertEqual(head.order_number, "ORD-1")
        self.assertTrue(head.pdf)

    def test_free_text_is_entity_decoded_once(self):
        projection = self._project()
        self.assertEqual(projection.head.comment, "Fizetés 8 napon belül")
        self.assertEqual(projection.customer.name, "Kovács János")

    def test_prepayment_request_prefix(self):
        head = self._project(number="D-TESZT-2024-3").head
        self.assertTrue(head.is_prepayment_request)
        self.assertFalse(head.is_electronic)

    def test_unpaid_without_payments(self):
        head = self._project().head

        self.assertEqual(head.total_sum, 25400)
        self.assertEqual(head.total_paid, 0)
        self.assertFalse(head.is_paid)
        self.assertIsNone(head.paid_at)

    def test_fully_paid_in_two_instalments(self):
        head = self._project(payments=FULL_PAYMENT).head

        self.assertEqual(head.total_paid, 25400)
        self.assertTrue(head.is_paid)
        self.assertEqual(head.paid_at, datetime.date(2024, 5, 15))

    def test_partially_paid(self):
        head = self._project(payments=PARTIAL_PAYMENT).head

        self.assertEqual(head.total_paid, 10000)
        self.assertFalse(head.is_paid)

    def test_items_and_parties(self):
        projection = self._project()
        item = projection.items[0]

        self.assertEqual(item.name, "Termék")
        self.assertEqual(item.quantity, Decimal("2.0"))
        self.assertEqual(item.tax_rate, Decimal("27"))
        self.assertEqual(item.gross_price, Decimal("254.0"))
        self.assertEqual(projection.merchant.bank, "OTP")
        self.assertEqual(projection.merchant.tax_number, "12345678-2-41")
        self.assertEqual(projection.customer.zip_code, "1051")

    def test_empty_tree_does_not_fail(self):
        projection = project_invoice({}, PaymentMethods())

        self.assertEqual(projection.head.invoice_number, "")
        self.assertEqual(projection.items, [])
        self.assertTrue(projection.head.is_paid)

    def test_zero_total_without_payments_is_paid(self):
        head = project_invoice({"osszegek": {"totalossz": {"brutto": "0"}}}, PaymentMethods()).head

        self.assertEqual(head.total_sum, 0)
        self.assertEqual(head.total_paid, 0)
        self.assertTrue(head.is_paid)


class InvoiceItemAmountsTests(SimpleTestCase):
    """Los importes escritos en la emisión se leen igual en la consulta."""

    # nombre en la emisión -> nombre en la respuesta de consulta
    FIELD_NAMES = {
        "megnevezes": "nev",
        "mennyiseg": "mennyiseg",
        "mennyisegiEgyseg": "mennyisegiegyseg",
        "nettoEgysegar": "nettoegysegar",
        "afakulcs": "afakulcs",
        "nettoErtek": "netto",
        "afaErtek": "afa",
        "bruttoErtek": "brutto",
    }

    def _written_items(self, invoice):
        document = xml_documents.build_invoice_xml(invoice, Credentials(api_key="agent-key"), PaymentMethods())
        written = normalize_to_sequence(parse(document)["tetelek"]["tetel"])
        return [{self.FIELD_NAMES[key]: value for key, value in item.items() if key in self.FIELD_NAMES} for item in written]

    def test_amounts_survive_writing_and_projection(self):
        invoice = make_invoice(
            items=[make_item(quantity=Decimal("3"), net_unit_price=Decimal("33.33"), tax_rate=Decimal("5"))]
        )
        item = project_invoice_items(self._written_items(invoice))[0]

        expected_gross = (item.net_price * (1 + item.tax_rate / 100)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        self.assertEqual(item.net_price, Decimal("99.99"))
        self.assertEqual(item.gross_price, expected_gross)
        self.assertEqual(item.gross_price, Decimal("104.99"))
        self.assertEqual(item.tax_value, item.gross_price - item.net_price)
        self.assertEqual(item.tax_value, Decimal("5.00"))
        self.assertEqual(item.quantity, Decimal("3"))
        self.assertEqual(item.quantity_unit, "db")


class ProjectReceiptTests(SimpleTestCase):
    def test_receipt_fields(self):
        projection = project_receipt(parse(receipt_xml(cancelled="true", original="NYGTA-2024-0")), PaymentMethods())
        head = projection.head

        self.assertEqual(head.receipt_number, "NYGTA-2024-1")
        self.assertEqual(head.call_id, "CALL-1")
        self.assertTrue(head.is_cancelled)
        self.assertEqual(head.original_receipt_number, "NYGTA-2024-0")
        self.assertEqual(head.payment_method, "cash")
        self.assertEqual(projection.items[0].name, "Kávé")
        self.assertEqual(projection.payments[0].amount, Decimal("635.0"))
        self.assertTrue(projection.pdf)


class ProjectTaxPayerTests(SimpleTestCase):
    def test_tax_payer(self):
        projection = project_tax_payer(parse(TAX_PAYER_XML))

        self.assertTrue(projection.is_valid)
        self.assertEqual(projection.name, "Teszt Kereskedelmi Kft.")
        self.assertEqual(projection.tax_number, "12345678-2-41")
        self.assertEqual(projection.addresses[0]["city"], "BUDAPEST")
        self.assertEqual(projection.addresses[0]["type"], "HQ")

    def test_non_dict_address_items_are_skipped(self):
        projection = project_tax_payer(
            {
                "taxpayerValidity": "true",
                "taxpayerData": {"taxpayerAddressList": {"taxpayerAddressItem": ["x"]}},
            }
        )

        self.assertTrue(projection.is_valid)
        self.assertEqual(projection.addresses, [])
