"""
Invoice document composer — printable HTML invoice and invoice email.

Amounts always come from the persisted invoice (subtotal, tax, total);
nothing here recomputes them from line items.
"""
from datetime import date
from decimal import Decimal
from html import escape
from typing import Optional, Sequence

from core.email import EmailMessage
from core.errors import DataIntegrityError
from core.models.user import UserSettings
from apps.invoicing.models import Client, Invoice, InvoiceLineItem
from apps.invoicing.totals import to_money, item_amount

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "CAD": "$", "AUD": "$", "INR": "₹"}

DOCUMENT_STYLE = """
    body { font-family: Arial, sans-serif; margin: 0; padding: 20px; }
    .header { text-align: center; margin-bottom: 30px; }
    .invoice-details { display: flex; justify-content: space-between; margin-bottom: 30px; }
    .company-info, .client-info { width: 45%; }
    .invoice-table { width: 100%; border-collapse: collapse; margin-bottom: 30px; }
    .invoice-table th, .invoice-table td { border: 1px solid #ddd; padding: 12px; text-align: left; }
    .invoice-table th { background-color: #f2f2f2; }
    .total-row { font-weight: bold; font-size: 18px; }
"""


def format_money(amount: Optional[Decimal], currency: str = "USD") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    value = f"{to_money(amount):,.2f}"
    return f"{symbol}{value}" if symbol else f"{value} {currency.upper()}"


def format_date(value: Optional[date], empty: str = "No due date") -> str:
    if value is None:
        return empty
    return value.strftime("%b %d, %Y").replace(" 0", " ")


def business_name(settings: Optional[UserSettings]) -> str:
    """Name shown as the sender: company name, then display name."""
    if settings is None:
        return "Your Business"
    return settings.company_name or settings.display_name or "Your Business"


def _text(value: Optional[str]) -> str:
    return escape(value or "")


def _line_items_table(line_items: Sequence[InvoiceLineItem], currency: str) -> str:
    if not line_items:
        return ""

    rows = "".join(
        f"<tr><td>{_text(item.description)}</td>"
        f"<td>{item.quantity.normalize():f}</td>"
        f"<td>{format_money(item.unit_price, currency)}</td>"
        f"<td>{format_money(item_amount(item), currency)}</td></tr>"
        for item in sorted(line_items, key=lambda i: i.position)
    )
    return (
        '<table class="invoice-table">'
        "<thead><tr><th>Description</th><th>Qty</th><th>Unit price</th><th>Amount</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )


def compose_invoice_html(
    invoice: Invoice,
    client: Client,
    settings: Optional[UserSettings] = None,
    line_items: Sequence[InvoiceLineItem] = ()
) -> str:
    """Printable HTML invoice. The browser's print dialog turns it into a PDF."""
    currency = settings.currency if settings else "USD"
    sender_name = (settings.display_name if settings else None) or "Your Business"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Invoice {_text(invoice.number)}</title>
  <style>{DOCUMENT_STYLE}</style>
</head>
<body>
  <div class="header">
    <h1>INVOICE</h1>
    <h2>#{_text(invoice.number)}</h2>
  </div>

  <div class="invoice-details">
    <div class="company-info">
      <h3>From:</h3>
      <p><strong>{_text(sender_name)}</strong></p>
      <p>{_text(settings.company_name if settings else None)}</p>
      <p>{_text(settings.address if settings else None)}</p>
    </div>
    <div class="client-info">
      <h3>Bill To:</h3>
      <p><strong>{_text(client.name)}</strong></p>
      <p>{_text(client.company)}</p>
      <p>{_text(client.address)}</p>
      <p>{_text(client.email)}</p>
    </div>
  </div>

  <table class="invoice-table">
    <thead><tr><th>Date Issued</th><th>Due Date</th><th>Status</th></tr></thead>
    <tbody>
      <tr>
        <td>{format_date(invoice.issue_date)}</td>
        <td>{format_date(invoice.due_date)}</td>
        <td style="text-transform: capitalize;">{invoice.status.value}</td>
      </tr>
    </tbody>
  </table>

  {_line_items_table(line_items, currency)}

  <table class="invoice-table">
    <thead><tr><th>Description</th><th>Amount</th></tr></thead>
    <tbody>
      <tr><td>Subtotal</td><td>{format_money(invoice.subtotal, currency)}</td></tr>
      <tr><td>Tax</td><td>{format_money(invoice.tax, currency)}</td></tr>
      <tr class="total-row"><td><strong>Total</strong></td><td><strong>{format_money(invoice.total, currency)}</strong></td></tr>
    </tbody>
  </table>

  <div style="margin-top: 40px; text-align: center; color: #666;">
    <p>Thank you for your business!</p>
  </div>
</body>
</html>
"""


def compose_invoice_email(
    invoice: Invoice,
    client: Client,
    settings: Optional[UserSettings] = None
) -> EmailMessage:
    """Invoice email addressed to the client. The client must have an email address."""
    if not client.email:
        raise DataIntegrityError(
            "Client has no email address",
            details={"client_id": client.id, "invoice_id": invoice.id}
        )

    currency = settings.currency if settings else "USD"
    company = business_name(settings)

    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #333; text-align: center;">Invoice from {_text(company)}</h2>

  <div style="background: #f9f9f9; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3 style="color: #333; margin-top: 0;">Invoice Details</h3>
    <p><strong>Invoice Number:</strong> {_text(invoice.number)}</p>
    <p><strong>Date Issued:</strong> {format_date(invoice.issue_date)}</p>
    <p><strong>Due Date:</strong> {format_date(invoice.due_date)}</p>
    <p><strong>Status:</strong> <span style="text-transform: capitalize;">{invoice.status.value}</span></p>
  </div>

  <div style="background: #fff; border: 2px solid #e5e5e5; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3 style="color: #333; margin-top: 0;">Amount Due</h3>
    <p>Subtotal: {format_money(invoice.subtotal, currency)}</p>
    <p>Tax: {format_money(invoice.tax, currency)}</p>
    <hr style="margin: 15px 0;">
    <p style="font-size: 18px; font-weight: bold; color: #333;">Total: {format_money(invoice.total, currency)}</p>
  </div>

  <div style="text-align: center; margin: 30px 0; color: #666;">
    <p>Thank you for your business!</p>
    <p style="font-size: 14px;">Please contact us if you have any questions about this invoice.</p>
  </div>
</div>
"""

    return EmailMessage(
        to=[client.email],
        subject=f"Invoice {invoice.number} from {company}",
        html=html,
    )


def missing_client_error(invoice: Invoice) -> DataIntegrityError:
    """The invoice's client row is gone; the document cannot be addressed."""
    return DataIntegrityError(
        "Invoice has no client",
        details={"invoice_id": invoice.id, "client_id": invoice.client_id}
    )
