"""
Analytics aggregator — revenue, pendency, overdue and activity metrics.

Pure over snapshots already fetched for one user. Input order does not
matter and rows are not deduplicated. A row owned by another user aborts
the whole aggregation.
"""
from datetime import datetime, date, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence

from core.errors import DataIntegrityError
from apps.invoicing.models import Client, Invoice, InvoiceStatus, AnalyticsSnapshot
from apps.invoicing.totals import ZERO, to_money

RECENT_WINDOW = timedelta(days=30)

PENDING_STATUSES = frozenset({InvoiceStatus.SENT, InvoiceStatus.OVERDUE})

# Invoices already labelled `overdue` are deliberately not counted here: this
# metric counts invoices past due that have not been relabelled yet.
UNLABELLED_OVERDUE_STATUSES = frozenset({InvoiceStatus.SENT, InvoiceStatus.DRAFT})


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _due_instant(due_date: date) -> datetime:
    """A due date is treated as midnight UTC at the start of that day."""
    return datetime.combine(due_date, time.min, tzinfo=timezone.utc)


def is_recent(created_at: datetime, as_of: datetime) -> bool:
    """Inside the 30-day window ending at as_of; future timestamps are excluded."""
    created = _as_utc(created_at)
    return as_of - RECENT_WINDOW <= created <= as_of


def is_unlabelled_overdue(invoice: Invoice, as_of: datetime) -> bool:
    return (
        invoice.due_date is not None
        and _due_instant(invoice.due_date) < as_of
        and invoice.status in UNLABELLED_OVERDUE_STATUSES
    )


def collection_rate(paid_count: int, total_count: int) -> int:
    """Percentage of invoices paid, rounded half-up. 0 when there are no invoices."""
    if total_count == 0:
        return 0
    rate = (Decimal(100) * paid_count / total_count).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(rate)


def _check_owner(user_id: str, rows: Iterable, kind: str) -> None:
    for row in rows:
        if row.user_id != user_id:
            raise DataIntegrityError(
                f"{kind} does not belong to the requesting user",
                details={"id": row.id}
            )


def aggregate(
    user_id: str,
    clients: Sequence[Client],
    invoices: Sequence[Invoice],
    as_of: datetime
) -> AnalyticsSnapshot:
    """Compute the analytics snapshot for one user's clients and invoices."""
    _check_owner(user_id, clients, "Client")
    _check_owner(user_id, invoices, "Invoice")

    as_of = _as_utc(as_of)

    total_revenue = ZERO
    pending_revenue = ZERO
    paid_count = 0
    recent_invoices = 0
    overdue = 0

    for invoice in invoices:
        amount = to_money(invoice.total)
        if invoice.status == InvoiceStatus.PAID:
            total_revenue += amount
            paid_count += 1
        elif invoice.status in PENDING_STATUSES:
            pending_revenue += amount

        if is_recent(invoice.created_at, as_of):
            recent_invoices += 1
        if is_unlabelled_overdue(invoice, as_of):
            overdue += 1

    recent_clients = sum(1 for client in clients if is_recent(client.created_at, as_of))

    return AnalyticsSnapshot(
        total_revenue=total_revenue,
        pending_revenue=pending_revenue,
        recent_clients=recent_clients,
        recent_invoices=recent_invoices,
        overdue_invoices=overdue,
        total_clients=len(clients),
        total_invoices=len(invoices),
        paid_invoices=paid_count,
        collection_rate=collection_rate(paid_count, len(invoices)),
    )
