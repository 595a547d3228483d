from decimal import Decimal

import pytest

from apps.invoicing.models import LineItemCreate
from apps.invoicing.totals import (
    to_money, line_amount, item_amount, tax_from_rate, totals_from_amounts, invoice_totals
)


def test_subtotal_plus_tax_is_exact_across_repeated_computations():
    results = {totals_from_amounts(Decimal("100.00"), Decimal("8.25")).total for _ in range(1000)}
    assert results == {Decimal("108.25")}


def test_float_inputs_do_not_drift():
    totals = totals_from_amounts(0.1, 0.2)
    assert totals.total == Decimal("0.30")


def test_half_cent_rounds_up():
    assert to_money("2.675") == Decimal("2.68")
    assert to_money("2.665") == Decimal("2.67")
    assert to_money(None) == Decimal("0.00")


def test_line_amount_rounds_to_cents():
    assert line_amount(3, "19.995") == Decimal("59.99")
    assert line_amount("1.5", "10") == Decimal("15.00")


def test_item_amount_prefers_explicit_override():
    item = LineItemCreate(description="Retainer", quantity=2, unit_price=100, amount="150")
    assert item_amount(item) == Decimal("150.00")


def test_tax_rate_is_a_percentage():
    assert tax_from_rate(Decimal("100.00"), Decimal("8.25")) == Decimal("8.25")
    assert tax_from_rate(Decimal("33.33"), Decimal("7.5")) == Decimal("2.50")


def test_invoice_totals_from_line_items_with_rate():
    items = [
        LineItemCreate(description="Design", quantity=2, unit_price="40.00"),
        LineItemCreate(description="Hosting", quantity=1, unit_price="20.00"),
    ]
    totals = invoice_totals(items, tax_rate="8.25")
    assert totals.subtotal == Decimal("100.00")
    assert totals.tax == Decimal("8.25")
    assert totals.total == Decimal("108.25")


def test_invoice_totals_with_fixed_tax():
    items = [LineItemCreate(description="Audit", quantity=1, unit_price="500")]
    totals = invoice_totals(items, fixed_tax="12.5")
    assert totals.tax == Decimal("12.50")
    assert totals.total == Decimal("512.50")
    assert totals.total == totals.subtotal + totals.tax


def test_subtotal_does_not_depend_on_item_order():
    items = [
        LineItemCreate(description="A", quantity="0.333", unit_price="10", position=0),
        LineItemCreate(description="B", quantity="3", unit_price="1.115", position=1),
        LineItemCreate(description="C", quantity="7", unit_price="0.99", position=2),
    ]
    assert invoice_totals(items).subtotal == invoice_totals(list(reversed(items))).subtotal


def test_no_line_items_is_zero():
    totals = invoice_totals([])
    assert totals.subtotal == totals.tax == totals.total == Decimal("0.00")


def test_rate_and_fixed_tax_are_exclusive():
    with pytest.raises(ValueError):
        invoice_totals([], tax_rate=5, fixed_tax=1)
