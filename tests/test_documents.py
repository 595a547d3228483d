from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from apps.invoicing.documents import (
    business_name, compose_invoice_email, compose_invoice_html, format_date, format_money
)
from apps.invoicing.models import Client, Invoice, InvoiceLineItem
from core.errors import DataIntegrityError
from core.models.user import UserSettings

CREATED = datetime(2025, 1, 5, tzinfo=timezone.utc)


@pytest.fixture
def invoice():
    return Invoice(
        id="i1", user_id="u1", client_id="c1", number="INV-007", status="sent",
        issue_date=date(2025, 1, 5), due_date=date(2025, 2, 4),
        subtotal="1000.00", tax="82.50", total="1082.50", created_at=CREATED,
    )


@pytest.fixture
def client():
    return Client(
        id="c1", user_id="u1", name="Acme <Corp>", email="billing@acme.test",
        company="Acme", created_at=CREATED,
    )


@pytest.fixture
def user_settings():
    return UserSettings(user_id="u1", display_name="Jo Doe", company_name="Doe Studio", currency="EUR")


def test_format_money_uses_currency_symbol():
    assert format_money(Decimal("1082.5"), "USD") == "$1,082.50"
    assert format_money(Decimal("3"), "eur") == "€3.00"
    assert format_money(Decimal("3"), "CHF") == "3.00 CHF"
    assert format_money(None) == "$0.00"


def test_format_date():
    assert format_date(date(2025, 1, 5)) == "Jan 5, 2025"
    assert format_date(date(2025, 11, 20)) == "Nov 20, 2025"
    assert format_date(None) == "No due date"


def test_business_name_fallbacks():
    assert business_name(None) == "Your Business"
    assert business_name(UserSettings(user_id="u1", display_name="Jo")) == "Jo"
    assert business_name(UserSettings(user_id="u1", display_name="Jo", company_name="Studio")) == "Studio"


def test_html_uses_persisted_totals_and_escapes_text(invoice, client, user_settings):
    items = [InvoiceLineItem(id="l1", invoice_id="i1", description="Work", quantity=1, unit_price=5)]
    html = compose_invoice_html(invoice, client, user_settings, items)

    assert "INV-007" in html
    assert "€1,082.50" in html
    assert "€5.00" in html
    assert "Acme &lt;Corp&gt;" in html
    assert "Acme <Corp>" not in html
    assert "Jo Doe" in html


def test_html_orders_line_items_by_position(invoice, client):
    items = [
        InvoiceLineItem(id="l2", invoice_id="i1", description="Second", position=1),
        InvoiceLineItem(id="l1", invoice_id="i1", description="First", position=0),
    ]
    html = compose_invoice_html(invoice, client, None, items)
    assert html.index("First") < html.index("Second")


def test_email_subject_and_recipient(invoice, client, user_settings):
    message = compose_invoice_email(invoice, client, user_settings)
    assert message.to == ["billing@acme.test"]
    assert message.subject == "Invoice INV-007 from Doe Studio"
    assert "€1,082.50" in message.html
    assert "Feb 4, 2025" in message.html


def test_email_requires_client_address(invoice, client):
    client.email = None
    with pytest.raises(DataIntegrityError):
        compose_invoice_email(invoice, client)
