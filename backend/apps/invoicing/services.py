"""
Invoicing — shared app-level helpers (store loads and cache keys).
"""
import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from core.cache import cache_get, cache_set, cache_delete
from core.models.user import UserSettings
from core.store import fetch_rows, fetch_one, fetch_children, parse_row, parse_rows
from apps.invoicing.analytics import aggregate
from apps.invoicing.documents import missing_client_error
from apps.invoicing.models import (
    Client, Invoice, InvoiceLineItem, AnalyticsSnapshot
)


def analytics_cache_key(user_id: str) -> str:
    return f"snapshot:{user_id}"


def invalidate_analytics(user_id: str):
    """Drop the cached snapshot after any client or invoice write."""
    cache_delete("invoicing", analytics_cache_key(user_id))


async def load_analytics_inputs(user_id: str) -> Tuple[List[Client], List[Invoice]]:
    """
    Fetch clients and invoices concurrently. Both must succeed: the first
    failure propagates and no partial input is returned.
    """
    client_rows, invoice_rows = await asyncio.gather(
        asyncio.to_thread(fetch_rows, "clients", user_id),
        asyncio.to_thread(fetch_rows, "invoices", user_id),
    )
    return parse_rows(Client, client_rows), parse_rows(Invoice, invoice_rows)


async def build_analytics(user_id: str, as_of: Optional[datetime] = None) -> AnalyticsSnapshot:
    """Analytics snapshot for a user, cached briefly in the invoicing pool."""
    use_cache = as_of is None
    if use_cache:
        cached = cache_get("invoicing", analytics_cache_key(user_id))
        if cached is not None:
            return cached

    clients, invoices = await load_analytics_inputs(user_id)
    snapshot = aggregate(user_id, clients, invoices, as_of or datetime.now(timezone.utc))

    if use_cache:
        cache_set("invoicing", analytics_cache_key(user_id), snapshot)
    print(f"[Analytics] {user_id}: {snapshot.total_invoices} invoices, {snapshot.total_clients} clients")
    return snapshot


def load_settings(user_id: str) -> Optional[UserSettings]:
    """User settings are optional; documents fall back to defaults."""
    cache_key = f"settings:{user_id}"
    cached = cache_get("settings", cache_key)
    if cached is not None:
        return cached

    rows = fetch_rows("user_settings", user_id, limit=1)
    if not rows:
        return None

    user_settings = parse_row(UserSettings, rows[0])
    cache_set("settings", cache_key, user_settings)
    return user_settings


def load_client(client_id: str, user_id: str) -> Optional[Client]:
    row = fetch_one("clients", client_id, user_id)
    return parse_row(Client, row) if row else None


def load_invoice(invoice_id: str, user_id: str) -> Optional[Invoice]:
    row = fetch_one("invoices", invoice_id, user_id)
    return parse_row(Invoice, row) if row else None


def load_line_items(invoice_id: str) -> List[InvoiceLineItem]:
    return parse_rows(InvoiceLineItem, fetch_children("invoice_items", "invoice_id", invoice_id))


def load_invoice_client(invoice: Invoice) -> Client:
    """The invoice's client. A dangling client_id is a data-integrity error."""
    client = load_client(invoice.client_id, invoice.user_id)
    if client is None:
        print(f"[Invoicing] Invoice {invoice.id} references missing client {invoice.client_id}")
        raise missing_client_error(invoice)
    return client
