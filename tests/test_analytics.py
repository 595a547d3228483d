import random
from datetime import datetime, date, timedelta, timezone
from decimal import Decimal

import pytest

from apps.invoicing.analytics import aggregate, collection_rate, is_recent
from apps.invoicing.models import Client, Invoice
from core.errors import DataIntegrityError

USER = "user-1"
AS_OF = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_client(n, created_at=AS_OF - timedelta(days=90), user_id=USER):
    return Client(id=f"c{n}", user_id=user_id, name=f"Client {n}", created_at=created_at)


def make_invoice(n, status="draft", total="0", due_date=None,
                 created_at=AS_OF - timedelta(days=90), user_id=USER):
    return Invoice(
        id=f"i{n}", user_id=user_id, client_id="c1", number=f"INV-{n}",
        status=status, issue_date=date(2025, 1, 1), due_date=due_date,
        subtotal=total, tax="0", total=total, created_at=created_at,
    )


def test_empty_inputs():
    snapshot = aggregate(USER, [], [], AS_OF)
    assert snapshot.total_revenue == Decimal("0")
    assert snapshot.collection_rate == 0
    assert snapshot.total_invoices == 0


def test_revenue_and_pending_split_by_status():
    invoices = [
        make_invoice(1, "paid", "100.10"),
        make_invoice(2, "paid", "0.20"),
        make_invoice(3, "sent", "50.00"),
        make_invoice(4, "overdue", "25.00"),
        make_invoice(5, "draft", "999.00"),
        make_invoice(6, "void", "999.00"),
    ]
    snapshot = aggregate(USER, [make_client(1)], invoices, AS_OF)
    assert snapshot.total_revenue == Decimal("100.30")
    assert snapshot.pending_revenue == Decimal("75.00")
    assert snapshot.paid_invoices == 2
    assert snapshot.total_invoices == 6
    assert snapshot.collection_rate == 33


def test_null_totals_count_as_zero():
    invoice = make_invoice(1, "paid")
    invoice.total = None
    assert aggregate(USER, [], [invoice], AS_OF).total_revenue == Decimal("0")


def test_total_revenue_ignores_input_order():
    invoices = [make_invoice(n, "paid", f"{n}.33") for n in range(1, 20)]
    shuffled = invoices[:]
    random.Random(7).shuffle(shuffled)
    assert aggregate(USER, [], invoices, AS_OF).total_revenue == \
        aggregate(USER, [], shuffled, AS_OF).total_revenue


def test_sent_invoice_past_due_is_overdue():
    yesterday = AS_OF.date() - timedelta(days=1)
    snapshot = aggregate(USER, [], [make_invoice(1, "sent", due_date=yesterday)], AS_OF)
    assert snapshot.overdue_invoices == 1


def test_invoice_already_labelled_overdue_is_not_counted():
    yesterday = AS_OF.date() - timedelta(days=1)
    snapshot = aggregate(USER, [], [make_invoice(1, "overdue", due_date=yesterday)], AS_OF)
    assert snapshot.overdue_invoices == 0


def test_draft_past_due_is_overdue_but_paid_is_not():
    past = AS_OF.date() - timedelta(days=10)
    invoices = [make_invoice(1, "draft", due_date=past), make_invoice(2, "paid", due_date=past)]
    assert aggregate(USER, [], invoices, AS_OF).overdue_invoices == 1


def test_due_today_is_overdue_after_midnight_utc():
    invoice = make_invoice(1, "sent", due_date=AS_OF.date())
    assert aggregate(USER, [], [invoice], AS_OF).overdue_invoices == 1
    midnight = datetime.combine(AS_OF.date(), datetime.min.time(), tzinfo=timezone.utc)
    assert aggregate(USER, [], [invoice], midnight).overdue_invoices == 0


def test_no_due_date_is_never_overdue():
    assert aggregate(USER, [], [make_invoice(1, "sent")], AS_OF).overdue_invoices == 0


def test_recent_window_is_thirty_days_inclusive():
    assert is_recent(AS_OF - timedelta(days=30), AS_OF)
    assert not is_recent(AS_OF - timedelta(days=30, seconds=1), AS_OF)
    assert not is_recent(AS_OF + timedelta(seconds=1), AS_OF)


def test_naive_timestamps_are_treated_as_utc():
    assert is_recent(datetime(2025, 6, 1), AS_OF)


def test_recent_counts_never_exceed_totals():
    clients = [make_client(n, created_at=AS_OF - timedelta(days=n * 7)) for n in range(10)]
    invoices = [make_invoice(n, created_at=AS_OF - timedelta(days=n * 5)) for n in range(10)]
    snapshot = aggregate(USER, clients, invoices, AS_OF)
    assert snapshot.recent_clients == 5
    assert snapshot.recent_invoices == 7
    assert snapshot.recent_clients <= snapshot.total_clients
    assert snapshot.recent_invoices <= snapshot.total_invoices


@pytest.mark.parametrize("paid,total,expected", [
    (0, 0, 0),
    (0, 5, 0),
    (5, 5, 100),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
])
def test_collection_rate(paid, total, expected):
    assert collection_rate(paid, total) == expected


def test_rows_from_another_user_abort_aggregation():
    with pytest.raises(DataIntegrityError):
        aggregate(USER, [], [make_invoice(1, user_id="someone-else")], AS_OF)
    with pytest.raises(DataIntegrityError):
        aggregate(USER, [make_client(1, user_id="someone-else")], [], AS_OF)
