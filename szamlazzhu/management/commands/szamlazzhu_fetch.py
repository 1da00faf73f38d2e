# szamlazzhu/management/commands/szamlazzhu_fetch.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Iterable, Tuple

from django.core.management.base import BaseCommand, CommandError

from szamlazzhu.errors import SzamlazzHuError
from szamlazzhu.services.client import get_client


class Command(BaseCommand):
    help = (
        "Consulta un comprobante o contribuyente en Számlázz.hu para depurar la integración.\n"
        "Indica exactamente una de: --invoice, --order-number, --receipt, --tax-number."
    )

    def add_arguments(self, parser) -> None:
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument("--invoice", help="Número de factura (p. ej. E-ABC-2024-1)")
        group.add_argument("--order-number", dest="order_number", help="Número de pedido")
        group.add_argument("--receipt", help="Número de recibo (nyugtaszám)")
        group.add_argument("--tax-number", dest="tax_number", help="Número fiscal húngaro")

    def handle(self, *args: Any, **options: Any) -> None:
        client = get_client()

        try:
            if options.get("invoice"):
                self._print_invoice(client.get_invoice(options["invoice"]), options["invoice"])
            elif options.get("order_number"):
                number = options["order_number"]
                self._print_invoice(client.get_invoice_by_order_number(number), number)
            elif options.get("receipt"):
                self._print_receipt(client.get_receipt_by_receipt_number(options["receipt"], without_pdf=True))
            else:
                self._print_tax_payer(client.query_tax_payer(options["tax_number"]))
        except SzamlazzHuError as exc:
            raise CommandError(f"Error de Számlázz.hu: {exc}") from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _write_fields(self, fields: Iterable[Tuple[str, Any]]) -> None:
        for label, value in fields:
            self.stdout.write(f"  {label:<18}: {value!s}")

    def _print_invoice(self, invoice, identifier: str) -> None:
        if invoice is None:
            raise CommandError(f"No existe la factura {identifier!r} en Számlázz.hu")

        self.stdout.write(
            self.style.MIGRATE_HEADING(
                f"▶ {type(invoice).__name__} {invoice.invoice_number}"
            )
        )
        self._write_fields(
            [
                ("cliente", invoice.customer.name),
                ("emisión", invoice.created_at),
                ("vencimiento", invoice.payment_deadline),
                ("método de pago", invoice.payment_method),
                ("moneda", invoice.currency),
                ("total (mín.)", invoice.total_sum),
                ("pagado (mín.)", invoice.total_paid),
                ("pagada", invoice.is_paid),
                ("líneas", len(invoice.items)),
            ]
        )
        if invoice.is_paid:
            self.stdout.write(self.style.SUCCESS("  OK: factura pagada."))
        else:
            self.stdout.write(self.style.WARNING("  Factura con saldo pendiente."))

    def _print_receipt(self, receipt) -> None:
        if receipt is None:
            raise CommandError("No existe el recibo en Számlázz.hu")

        self.stdout.write(self.style.MIGRATE_HEADING(f"▶ Recibo {receipt.receipt_number}"))
        self._write_fields(
            [
                ("emisión", receipt.created_at),
                ("método de pago", receipt.payment_method),
                ("moneda", receipt.currency),
                ("anulado", receipt.is_cancelled),
                ("líneas", len(receipt.items)),
            ]
        )

    def _print_tax_payer(self, response) -> None:
        style = self.style.SUCCESS if response.is_valid else self.style.WARNING
        self.stdout.write(style(f"▶ Contribuyente válido: {response.is_valid}"))
        self._write_fields(
            [
                ("nombre", response.name),
                ("número fiscal", response.tax_number),
                ("direcciones", len(response.addresses)),
            ]
        )
