"""
Invoice totals calculator.

All money is Decimal, quantized to cents with ROUND_HALF_UP. The same
rounding is applied to every derived amount (line amounts, tax, totals) so
line items and invoice totals never drift apart.

Totals are computed once when an invoice is created or edited and then
persisted; documents and emails read the stored total.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from pydantic import BaseModel

from apps.invoicing.models import LineItemCreate, InvoiceLineItem

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, str]
LineItem = Union[LineItemCreate, InvoiceLineItem]


class InvoiceTotals(BaseModel):
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def to_money(value: Optional[Number]) -> Decimal:
    """Quantize to cents. None counts as zero."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_amount(quantity: Number, unit_price: Number) -> Decimal:
    """quantity * unit_price, rounded to cents."""
    return to_money(Decimal(str(quantity)) * Decimal(str(unit_price)))


def item_amount(item: LineItem) -> Decimal:
    """The explicit override amount if set, else quantity * unit_price."""
    if item.amount is not None:
        return to_money(item.amount)
    return line_amount(item.quantity, item.unit_price)


def tax_from_rate(subtotal: Number, tax_rate: Number) -> Decimal:
    """Tax for a percentage rate (8.25 means 8.25%)."""
    return to_money(Decimal(str(subtotal)) * Decimal(str(tax_rate)) / Decimal("100"))


def totals_from_amounts(subtotal: Optional[Number], tax: Optional[Number]) -> InvoiceTotals:
    """Totals for an invoice entered as subtotal + tax, without line items."""
    subtotal_money = to_money(subtotal)
    tax_money = to_money(tax)
    return InvoiceTotals(subtotal=subtotal_money, tax=tax_money, total=subtotal_money + tax_money)


def invoice_totals(
    line_items: Iterable[LineItem],
    tax_rate: Optional[Number] = None,
    fixed_tax: Optional[Number] = None
) -> InvoiceTotals:
    """
    Subtotal, tax and total for a set of line items.

    The subtotal does not depend on item position. Pass either a percentage
    `tax_rate` or a `fixed_tax` amount, not both.
    """
    if tax_rate is not None and fixed_tax is not None:
        raise ValueError("Pass either tax_rate or fixed_tax, not both")

    subtotal = sum((item_amount(item) for item in line_items), ZERO)

    if tax_rate is not None:
        tax = tax_from_rate(subtotal, tax_rate)
    else:
        tax = to_money(fixed_tax)

    return InvoiceTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)
