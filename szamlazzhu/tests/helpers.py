# szamlazzhu/tests/helpers.py
# -*- coding: utf-8 -*-
"""Fábricas compartidas por los tests (respuestas HTTP, transporte falso, modelos)."""
from __future__ import annotations

import base64
import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from requests.structures import CaseInsensitiveDict

from szamlazzhu.conf import build_config
from szamlazzhu.domain import Customer, Invoice, LineItem, Merchant, Payment, ProformaInvoice, Receipt

PDF_BYTES = b"%PDF-1.4 teszt"
PDF_BASE64 = base64.b64encode(PDF_BYTES).decode("ascii")


def make_response(
    content: Any = b"",
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = content.encode("utf-8") if isinstance(content, str) else content
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    return response


class FakeTransport:
    """Devuelve las respuestas en orden y guarda cada documento enviado."""

    def __init__(self, *responses: Any):
        self.responses: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def send(self, field_name: str, document: str, path: str = "/szamla/", method: str = "POST"):
        self.calls.append({"field_name": field_name, "document": document})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_config(**overrides: Any):
    data: Dict[str, Any] = {"credentials": {"api_key": "test-agent-key"}}
    data.update(overrides)
    return build_config(data)


def make_customer(**kwargs: Any) -> Customer:
    data = {
        "name": "Kovács János",
        "zip_code": "1051",
        "city": "Budapest",
        "address": "Fő utca 1.",
        "country": "Magyarország",
        "email": "janos@example.com",
    }
    data.update(kwargs)
    return Customer(**data)


def make_item(**kwargs: Any) -> LineItem:
    data = {
        "name": "Termék",
        "quantity": Decimal("2"),
        "quantity_unit": "db",
        "net_unit_price": Decimal("100"),
        "tax_rate": Decimal("27"),
    }
    data.update(kwargs)
    return LineItem(**data)


def make_invoice(invoice_class=Invoice, **kwargs: Any):
    today = datetime.date(2024, 5, 10)
    data = {
        "customer": make_customer(),
        "items": [make_item()],
        "merchant": Merchant(bank="OTP", bank_account_number="11111111-22222222"),
        "created_at": today,
        "fulfillment_at": today,
        "payment_deadline": today + datetime.timedelta(days=8),
    }
    data.update(kwargs)
    return invoice_class(**data)


def make_proforma_invoice(**kwargs: Any) -> ProformaInvoice:
    return make_invoice(ProformaInvoice, **kwargs)


def make_receipt(**kwargs: Any) -> Receipt:
    data = {
        "prefix": "NYGTA",
        "items": [make_item(name="Kávé", quantity=Decimal("1"), net_unit_price=Decimal("500"))],
        "payments": [Payment(payment_method="cash", amount=Decimal("635"))],
    }
    data.update(kwargs)
    return Receipt(**data)


INVOICE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<szamla xmlns="http://www.szamlazz.hu/szamla">
  <szallito>
    <nev>Teszt Kft.</nev>
    <cim><orszag>Magyarország</orszag><irsz>1000</irsz><telepules>Budapest</telepules><cim>Kossuth tér 1.</cim></cim>
    <adoszam>12345678-2-41</adoszam>
    <bank><nev>OTP</nev><bankszamla>11111111-22222222</bankszamla></bank>
  </szallito>
  <alap>
    <szamlaszam>{number}</szamlaszam>
    <kelt>2024-05-10</kelt>
    <telj>2024-05-10</telj>
    <fizh>2024-05-18</fizh>
    <fizmod>átutalás</fizmod>
    <devizanem>HUF</devizanem>
    <nyelv>hu</nyelv>
    <megjegyzes>Fizet&amp;eacute;s 8 napon bel&amp;uuml;l</megjegyzes>
    <rendelesszam>ORD-1</rendelesszam>
  </alap>
  <vevo>
    <nev>Kov&amp;aacute;cs J&amp;aacute;nos</nev>
    <cim><orszag>Magyarország</orszag><irsz>1051</irsz><telepules>Budapest</telepules><cim>Fő utca 1.</cim></cim>
    <email>janos@example.com</email>
  </vevo>
  <tetelek>
    <tetel>
      <nev>Termék</nev><mennyiseg>2.0</mennyiseg><mennyisegiegyseg>db</mennyisegiegyseg>
      <nettoegysegar>100.0</nettoegysegar><afakulcs>27</afakulcs>
      <netto>200.0</netto><afa>54.0</afa><brutto>254.0</brutto>
    </tetel>
  </tetelek>
  <osszegek><totalossz><netto>200.0</netto><afa>54.0</afa><brutto>254.0</brutto></totalossz></osszegek>
  {payments}
  <pdf>{pdf}</pdf>
</szamla>
"""


def invoice_xml(number: str = "E-TESZT-2024-1", payments: str = "", pdf: str = PDF_BASE64) -> str:
    return INVOICE_XML.format(number=number, payments=payments, pdf=pdf)


RECEIPT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<xmlnyugtavalasz xmlns="http://www.szamlazz.hu/xmlnyugtavalasz">
  <sikeres>true</sikeres>
  <nyugta>
    <alap>
      <id>1</id>
      <hivasAzonosito>{call_id}</hivasAzonosito>
      <nyugtaszam>{number}</nyugtaszam>
      <tipus>NY</tipus>
      <stornozott>{cancelled}</stornozott>
      <kelt>2024-05-10</kelt>
      <fizmod>készpénz</fizmod>
      <penznem>HUF</penznem>
      {original}
    </alap>
    <tetelek>
      <tetel>
        <megnevezes>K&amp;aacute;v&amp;eacute;</megnevezes><mennyiseg>1.0</mennyiseg><mennyisegiEgyseg>db</mennyisegiEgyseg>
        <nettoEgysegar>500.0</nettoEgysegar><afakulcs>27</afakulcs>
        <netto>500.0</netto><afa>135.0</afa><brutto>635.0</brutto>
      </tetel>
    </tetelek>
    <kifizetesek>
      <kifizetes><fizetoeszkoz>készpénz</fizetoeszkoz><osszeg>635.0</osszeg></kifizetes>
    </kifizetesek>
  </nyugta>
  <nyugtaPdf>{pdf}</nyugtaPdf>
</xmlnyugtavalasz>
"""


def receipt_xml(
    number: str = "NYGTA-2024-1",
    call_id: str = "CALL-1",
    cancelled: str = "false",
    original: str = "",
    pdf: str = PDF_BASE64,
) -> str:
    original_xml = f"<stornozottNyugtaszam>{original}</stornozottNyugtaszam>" if original else ""
    return RECEIPT_XML.format(
        number=number, call_id=call_id, cancelled=cancelled, original=original_xml, pdf=pdf
    )


def failure_xml(code: int, message: str = "Hiba") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<xmlszamlavalasz>"
        "<sikeres>false</sikeres>"
        f"<hibakod>{code}</hibakod>"
        f"<hibauzenet>{message}</hibauzenet>"
        "</xmlszamlavalasz>"
    )
