"""
Invoicing — app-level routes.

- Client CRUD
- Invoice CRUD with line items and totals
- Invoice document (HTML, premium) and email sending (premium)
- Dashboard overview (all tiers) and analytics (premium)
- Recurring invoice templates and the due/advance hooks used by the external trigger
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from fastapi import APIRouter, Header, HTTPException, Query
from fastapi.responses import HTMLResponse

from config import settings
from core.access import get_access, require_feature
from core.auth import get_current_user
from core.database import get_supabase_admin
from core.email import send_email
from core.errors import WriteError
from core.models.billing import PremiumFeature
from core.store import execute_write, fetch_one, fetch_rows, parse_row, parse_rows

from apps.invoicing.documents import compose_invoice_html, compose_invoice_email
from apps.invoicing.models import (
    Client, ClientCreate, ClientUpdate,
    Invoice, InvoiceCreate, InvoiceUpdate, InvoiceDetail, InvoiceStatus,
    InvoiceLineItem, LineItemCreate, InvoiceSendResult,
    RecurringInvoiceTemplate, RecurringTemplateCreate, RecurringTemplateUpdate,
    AnalyticsSnapshot, InvoicingOverview
)
from apps.invoicing.recurring import is_due, mark_generated, due_templates
from apps.invoicing.services import (
    build_analytics, invalidate_analytics, load_settings,
    load_client, load_invoice, load_line_items, load_invoice_client
)
from apps.invoicing.totals import (
    InvoiceTotals, invoice_totals, totals_from_amounts, tax_from_rate, item_amount, to_money
)

router = APIRouter()


def _money(value) -> str:
    return str(to_money(value))


def _invoice_has_references(client_id: str, user_id: str) -> bool:
    rows = fetch_rows("invoices", user_id, columns="id", limit=1, filters={"client_id": client_id})
    return bool(rows)


# ─────────────────────────────────────────────────────────────────────────────
# CLIENT ENDPOINTS
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/clients")
async def list_clients(authorization: str = Header(...)) -> List[Client]:
    """List the user's clients, newest first."""
    user = get_current_user(authorization)
    rows = fetch_rows("clients", user.id, order_by="created_at", desc=True)
    return parse_rows(Client, rows)


@router.post("/clients")
async def create_client(data: ClientCreate, authorization: str = Header(...)) -> Client:
    """Create a new client."""
    user = get_current_user(authorization)
    db = get_supabase_admin()

    client_data = {
        "user_id": user.id,
        "name": data.name,
        "email": data.email or None,
        "company": data.company or None,
        "address": data.address or None,
        "notes": data.notes or None,
    }

    rows = execute_write("clients", db.table("clients").insert(client_data))
    invalidate_analytics(user.id)
    return parse_row(Client, rows[0])


@router.patch("/clients/{client_id}")
async def update_client(
    client_id: str,
    data: ClientUpdate,
    authorization: str = Header(...)
) -> Client:
    """Update a client. Invoiced clients only accept contact-field edits."""
    user = get_current_user(authorization)
    client = load_client(client_id, user.id)
    if client is None:
        raise HTTPException(404, "Client not found")

    update_data = {}
    if data.name is not None and data.name != client.name:
        if _invoice_has_references(client_id, user.id):
            raise HTTPException(409, "Client is referenced by invoices; only contact details can change")
        update_data["name"] = data.name
    if data.email is not None:
        update_data["email"] = data.email or None
    if data.company is not None:
        update_data["company"] = data.company or None
    if data.address is not None:
        update_data["address"] = data.address or None
    if data.notes is not None:
        update_data["notes"] = data.notes or None

    if not update_data:
        raise HTTPException(400, "No fields to update")

    db = get_supabase_admin()
    rows = execute_write("clients", db.table("clients").update(update_data).eq(
        "id", client_id
    ).eq("user_id", user.id))

    return parse_row(Client, rows[0])


@router.delete("/clients/{client_id}")
async def delete_client(client_id: str, authorization: str = Header(...)) -> dict:
    """Delete a client that has no invoices."""
    user = get_current_user(authorization)
    client = load_client(client_id, user.id)
    if client is None:
        raise HTTPException(404, "Client not found")

    if _invoice_has_references(client_id, user.id):
        raise HTTPException(409, "Client is referenced by invoices")

    db = get_supabase_admin()
    execute_write("clients", db.table("clients").delete().eq("id", client_id).eq("user_id", user.id))

    invalidate_analytics(user.id)
    return {"status": "deleted", "client_id": client_id}


# ─────────────────────────────────────────────────────────────────────────────
# INVOICE ENDPOINTS
# ─────────────────────────────────────────────────────────────────────────────

def _number_taken(number: str, user_id: str, exclude_id: Optional[str] = None) -> bool:
    """Invoice numbers are unique per user, not globally."""
    rows = fetch_rows("invoices", user_id, columns="id", filters={"number": number})
    return any(row["id"] != exclude_id for row in rows)


def _totals_for_create(data: InvoiceCreate) -> InvoiceTotals:
    if data.tax is not None and data.tax_rate is not None:
        raise HTTPException(400, "Pass either tax or tax_rate, not both")

    if data.line_items:
        if data.subtotal is not None:
            raise HTTPException(400, "subtotal is derived from line_items")
        return invoice_totals(data.line_items, tax_rate=data.tax_rate, fixed_tax=data.tax)

    if data.tax_rate is not None:
        return totals_from_amounts(data.subtotal, tax_from_rate(to_money(data.subtotal), data.tax_rate))
    return totals_from_amounts(data.subtotal, data.tax)


def _totals_for_update(invoice: Invoice, data: InvoiceUpdate) -> Optional[InvoiceTotals]:
    """New totals when the update touches money, else None (stored totals stay)."""
    if data.tax is not None and data.tax_rate is not None:
        raise HTTPException(400, "Pass either tax or tax_rate, not both")

    if data.line_items is not None:
        fixed_tax = data.tax if data.tax is not None else (None if data.tax_rate is not None else invoice.tax)
        return invoice_totals(data.line_items, tax_rate=data.tax_rate, fixed_tax=fixed_tax)

    if data.subtotal is None and data.tax is None and data.tax_rate is None:
        return None

    subtotal = to_money(data.subtotal if data.subtotal is not None else invoice.subtotal)
    if data.tax_rate is not None:
        tax = tax_from_rate(subtotal, data.tax_rate)
    elif data.tax is not None:
        tax = data.tax
    else:
        tax = invoice.tax
    return totals_from_amounts(subtotal, tax)


def _line_item_rows(invoice_id: str, items: List[LineItemCreate]) -> List[dict]:
    """Rows in submitted position order (ties keep list order), renumbered 0..n-1."""
    ordered = sorted(items, key=lambda item: item.position)
    return [{
        "invoice_id": invoice_id,
        "description": item.description,
        "quantity": str(item.quantity),
        "unit_price": str(item.unit_price),
        "position": index,
        "amount": _money(item_amount(item)),
    } for index, item in enumerate(ordered)]


def _stored_value(value):
    """Model field value back to the form it is written in."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return _money(value)
    return value


def _undo_invoice_update(invoice: Invoice, changed: List[str], new_item_ids: List[str]) -> None:
    """Put back the invoice fields and drop the item rows a failed update wrote."""
    db = get_supabase_admin()
    print(f"[Invoicing] Rolling back update of {invoice.number} ({invoice.id})")

    if changed:
        previous = {key: _stored_value(getattr(invoice, key)) for key in changed}
        execute_write("invoices", db.table("invoices").update(previous).eq(
            "id", invoice.id
        ).eq("user_id", invoice.user_id))
    if new_item_ids:
        execute_write("invoice_items", db.table("invoice_items").delete().in_("id", new_item_ids))


@router.get("/invoices")
async def list_invoices(
    status: Optional[InvoiceStatus] = Query(None),
    authorization: str = Header(...)
) -> List[Invoice]:
    """List the user's invoices, newest first."""
    user = get_current_user(authorization)
    rows = fetch_rows(
        "invoices", user.id,
        status=status.value if status else None,
        order_by="created_at", desc=True
    )
    return parse_rows(Invoice, rows)


@router.post("/invoices")
async def create_invoice(data: InvoiceCreate, authorization: str = Header(...)) -> InvoiceDetail:
    """Create an invoice. Totals are computed here once and persisted."""
    user = get_current_user(authorization)

    client = load_client(data.client_id, user.id)
    if client is None:
        raise HTTPException(404, "Client not found")

    if _number_taken(data.number, user.id):
        raise HTTPException(409, f"Invoice number {data.number} already exists")

    totals = _totals_for_create(data)
    db = get_supabase_admin()

    invoice_data = {
        "user_id": user.id,
        "client_id": data.client_id,
        "number": data.number,
        "status": data.status.value,
        "issue_date": (data.issue_date or datetime.now(timezone.utc).date()).isoformat(),
        "due_date": data.due_date.isoformat() if data.due_date else None,
        "notes": data.notes,
        "subtotal": _money(totals.subtotal),
        "tax": _money(totals.tax),
        "total": _money(totals.total),
    }

    rows = execute_write("invoices", db.table("invoices").insert(invoice_data))
    invoice = parse_row(Invoice, rows[0])

    line_items = []
    if data.line_items:
        try:
            item_rows = execute_write("invoice_items", db.table("invoice_items").insert(
                _line_item_rows(invoice.id, data.line_items)
            ))
        except WriteError:
            print(f"[Invoicing] Line items for {invoice.number} failed, removing invoice {invoice.id}")
            execute_write("invoices", db.table("invoices").delete().eq(
                "id", invoice.id
            ).eq("user_id", user.id))
            raise
        line_items = parse_rows(InvoiceLineItem, item_rows)

    invalidate_analytics(user.id)
    print(f"[Invoicing] Created invoice {invoice.number} for {user.id}: total={invoice.total}")
    return InvoiceDetail(invoice=invoice, client=client, line_items=line_items)


@router.get("/invoices/{invoice_id}")
async def get_invoice(invoice_id: str, authorization: str = Header(...)) -> InvoiceDetail:
    """Invoice with client and ordered line items."""
    user = get_current_user(authorization)
    invoice = load_invoice(invoice_id, user.id)
    if invoice is None:
        raise HTTPException(404, "Invoice not found")

    return InvoiceDetail(
        invoice=invoice,
        client=load_invoice_client(invoice),
        line_items=load_line_items(invoice.id)
    )


@router.patch("/invoices/{invoice_id}")
async def update_invoice(
    invoice_id: str,
    data: InvoiceUpdate,
    authorization: str = Header(...)
) -> InvoiceDetail:
    """Update an invoice. Money changes recalculate and persist totals explicitly."""
    user = get_current_user(authorization)
    invoice = load_invoice(invoice_id, user.id)
    if invoice is None:
        raise HTTPException(404, "Invoice not found")

    update_data = {}
    if data.client_id is not None and data.client_id != invoice.client_id:
        if load_client(data.client_id, user.id) is None:
            raise HTTPException(404, "Client not found")
        update_data["client_id"] = data.client_id
    if data.number is not None and data.number != invoice.number:
        if _number_taken(data.number, user.id, exclude_id=invoice_id):
            raise HTTPException(409, f"Invoice number {data.number} already exists")
        update_data["number"] = data.number
    if data.status is not None:
        update_data["status"] = data.status.value
    if data.issue_date is not None:
        update_data["issue_date"] = data.issue_date.isoformat()
    # explicit null clears these
    if "due_date" in data.model_fields_set:
        update_data["due_date"] = data.due_date.isoformat() if data.due_date else None
    if "notes" in data.model_fields_set:
        update_data["notes"] = data.notes

    totals = _totals_for_update(invoice, data)
    if totals is not None:
        update_data["subtotal"] = _money(totals.subtotal)
        update_data["tax"] = _money(totals.tax)
        update_data["total"] = _money(totals.total)

    if not update_data and data.line_items is None:
        raise HTTPException(400, "No fields to update")

    db = get_supabase_admin()

    # old items are dropped last; a failed write undoes the writes before it
    old_item_ids = []
    new_item_ids = []
    if data.line_items is not None:
        old_item_ids = [item.id for item in load_line_items(invoice_id)]
    if data.line_items:
        item_rows = execute_write("invoice_items", db.table("invoice_items").insert(
            _line_item_rows(invoice_id, data.line_items)
        ))
        new_item_ids = [row["id"] for row in item_rows]

    changed = []
    try:
        if update_data:
            rows = execute_write("invoices", db.table("invoices").update(update_data).eq(
                "id", invoice_id
            ).eq("user_id", user.id))
            changed = list(update_data)
            updated = parse_row(Invoice, rows[0])
        else:
            updated = invoice
        if old_item_ids:
            execute_write("invoice_items", db.table("invoice_items").delete().in_("id", old_item_ids))
    except WriteError:
        _undo_invoice_update(invoice, changed, new_item_ids)
        raise
    invoice = updated

    invalidate_analytics(user.id)
    return InvoiceDetail(
        invoice=invoice,
        client=load_invoice_client(invoice),
        line_items=load_line_items(invoice_id)
    )


@router.delete("/invoices/{invoice_id}")
async def delete_invoice(invoice_id: str, authorization: str = Header(...)) -> dict:
    """Delete an invoice and its line items."""
    user = get_current_user(authorization)
    invoice = load_invoice(invoice_id, user.id)
    if invoice is None:
        raise HTTPException(404, "Invoice not found")

    db = get_supabase_admin()
    execute_write("invoice_items", db.table("invoice_items").delete().eq("invoice_id", invoice_id))
    execute_write("invoices", db.table("invoices").delete().eq("id", invoice_id).eq("user_id", user.id))

    invalidate_analytics(user.id)
    return {"status": "deleted", "invoice_id": invoice_id, "number": invoice.number}


# ─────────────────────────────────────────────────────────────────────────────
# DOCUMENT & EMAIL (premium)
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/invoices/{invoice_id}/document", response_class=HTMLResponse)
async def get_invoice_document(invoice_id: str, authorization: str = Header(...)) -> HTMLResponse:
    """Printable HTML invoice (Pro). Print to save as PDF."""
    user = get_current_user(authorization)
    require_feature(user.id, PremiumFeature.PDF_EXPORT)

    invoice = load_invoice(invoice_id, user.id)
    if invoice is None:
        raise HTTPException(404, "Invoice not found")

    html = compose_invoice_html(
        invoice,
        load_invoice_client(invoice),
        load_settings(user.id),
        load_line_items(invoice.id)
    )
    return HTMLResponse(html)


@router.post("/invoices/{invoice_id}/send")
async def send_invoice(invoice_id: str, authorization: str = Header(...)) -> InvoiceSendResult:
    """Email the invoice to its client (Pro). One attempt, no retry."""
    user = get_current_user(authorization)
    require_feature(user.id, PremiumFeature.EMAIL_SENDING)

    invoice = load_invoice(invoice_id, user.id)
    if invoice is None:
        raise HTTPException(404, "Invoice not found")

    client = load_invoice_client(invoice)
    message = compose_invoice_email(invoice, client, load_settings(user.id))
    message_id = await send_email(message)

    return InvoiceSendResult(
        invoice_id=invoice.id,
        number=invoice.number,
        recipient=message.to[0],
        message_id=message_id
    )


# ─────────────────────────────────────────────────────────────────────────────
# OVERVIEW & ANALYTICS
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/overview")
async def get_overview(authorization: str = Header(...)) -> InvoicingOverview:
    """Client/invoice counts and plan status (every tier)."""
    user = get_current_user(authorization)
    access = get_access(user.id)

    clients = fetch_rows("clients", user.id, columns="id")
    invoices = fetch_rows("invoices", user.id, columns="id")

    return InvoicingOverview(
        total_clients=len(clients),
        total_invoices=len(invoices),
        tier=access.tier,
        is_pro=access.is_pro,
        upgrade_url=None if access.is_pro else settings.premium_checkout_url
    )


@router.get("/analytics")
async def get_analytics(authorization: str = Header(...)) -> AnalyticsSnapshot:
    """Revenue and activity analytics (Pro)."""
    user = get_current_user(authorization)
    require_feature(user.id, PremiumFeature.ANALYTICS)
    return await build_analytics(user.id)


# ─────────────────────────────────────────────────────────────────────────────
# RECURRING INVOICES
# ─────────────────────────────────────────────────────────────────────────────

def _load_template(template_id: str, user_id: str) -> RecurringInvoiceTemplate:
    row = fetch_one("recurring_invoices", template_id, user_id)
    if row is None:
        raise HTTPException(404, "Recurring invoice not found")
    return parse_row(RecurringInvoiceTemplate, row)


@router.get("/recurring")
async def list_recurring(authorization: str = Header(...)) -> List[RecurringInvoiceTemplate]:
    """List recurring invoice templates by next due date."""
    user = get_current_user(authorization)
    rows = fetch_rows("recurring_invoices", user.id, order_by="next_due_date")
    return parse_rows(RecurringInvoiceTemplate, rows)


@router.get("/recurring/due")
async def list_due_recurring(
    as_of: Optional[date] = Query(None),
    authorization: str = Header(...)
) -> List[RecurringInvoiceTemplate]:
    """Templates owed an invoice as of a date (default: today, UTC)."""
    user = get_current_user(authorization)
    templates = parse_rows(RecurringInvoiceTemplate, fetch_rows("recurring_invoices", user.id))
    return due_templates(templates, as_of or datetime.now(timezone.utc))


@router.post("/recurring")
async def create_recurring(
    data: RecurringTemplateCreate,
    authorization: str = Header(...)
) -> RecurringInvoiceTemplate:
    """Create a recurring invoice template."""
    user = get_current_user(authorization)
    if load_client(data.client_id, user.id) is None:
        raise HTTPException(404, "Client not found")

    totals = totals_from_amounts(data.subtotal, data.tax)
    db = get_supabase_admin()

    template_data = {
        "user_id": user.id,
        "client_id": data.client_id,
        "template_number": data.template_number,
        "frequency": data.frequency.value,
        "next_due_date": data.next_due_date.isoformat(),
        "is_active": data.is_active,
        "subtotal": _money(totals.subtotal),
        "tax": _money(totals.tax),
        "total": _money(totals.total),
        "notes": data.notes,
    }

    rows = execute_write("recurring_invoices", db.table("recurring_invoices").insert(template_data))
    return parse_row(RecurringInvoiceTemplate, rows[0])


@router.patch("/recurring/{template_id}")
async def update_recurring(
    template_id: str,
    data: RecurringTemplateUpdate,
    authorization: str = Header(...)
) -> RecurringInvoiceTemplate:
    """Update a recurring invoice template."""
    user = get_current_user(authorization)
    template = _load_template(template_id, user.id)

    update_data = {}
    if data.frequency is not None:
        update_data["frequency"] = data.frequency.value
    if data.next_due_date is not None:
        update_data["next_due_date"] = data.next_due_date.isoformat()
    if data.is_active is not None:
        update_data["is_active"] = data.is_active
    if data.notes is not None:
        update_data["notes"] = data.notes
    if data.subtotal is not None or data.tax is not None:
        totals = totals_from_amounts(
            data.subtotal if data.subtotal is not None else template.subtotal,
            data.tax if data.tax is not None else template.tax
        )
        update_data["subtotal"] = _money(totals.subtotal)
        update_data["tax"] = _money(totals.tax)
        update_data["total"] = _money(totals.total)

    if not update_data:
        raise HTTPException(400, "No fields to update")

    db = get_supabase_admin()
    rows = execute_write("recurring_invoices", db.table("recurring_invoices").update(update_data).eq(
        "id", template_id
    ).eq("user_id", user.id))

    return parse_row(RecurringInvoiceTemplate, rows[0])


@router.delete("/recurring/{template_id}")
async def delete_recurring(template_id: str, authorization: str = Header(...)) -> dict:
    """Delete a recurring invoice template."""
    user = get_current_user(authorization)
    _load_template(template_id, user.id)

    db = get_supabase_admin()
    execute_write(
        "recurring_invoices",
        db.table("recurring_invoices").delete().eq("id", template_id).eq("user_id", user.id)
    )
    return {"status": "deleted", "template_id": template_id}


@router.post("/recurring/{template_id}/advance")
async def advance_recurring(
    template_id: str,
    authorization: str = Header(...)
) -> RecurringInvoiceTemplate:
    """
    Record that the invoice for the current due date was materialized:
    last_generated_date takes the old next_due_date and next_due_date moves
    forward by one period. Only due templates can be advanced.
    """
    user = get_current_user(authorization)
    template = _load_template(template_id, user.id)

    if not is_due(template, datetime.now(timezone.utc)):
        raise HTTPException(409, "Recurring invoice is not due")

    step = mark_generated(template)
    db = get_supabase_admin()
    rows = execute_write("recurring_invoices", db.table("recurring_invoices").update({
        "last_generated_date": step.last_generated_date.isoformat(),
        "next_due_date": step.next_due_date.isoformat(),
    }).eq("id", template_id).eq("user_id", user.id))

    print(f"[Recurring] {template.template_number}: next due {step.next_due_date}")
    return parse_row(RecurringInvoiceTemplate, rows[0])
