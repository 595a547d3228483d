"""
Invoicing models — Clients, Invoices, Line Items, Recurring Templates,
Analytics.

These are app-specific models. Core models (User, Profile, Billing) live in
core.models.
"""
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field

from core.models.billing import PlanTier


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"


class RecurringFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


# ═══════════════════════════════════════════════════════════════════════════
# CLIENT MODELS
# ═══════════════════════════════════════════════════════════════════════════

class ClientCreate(BaseModel):
    """Create a new client."""
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)


class ClientUpdate(BaseModel):
    """Update a client. `name` is locked once the client is invoiced."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)


class Client(BaseModel):
    """Full client model from database."""
    id: str
    user_id: str
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ═══════════════════════════════════════════════════════════════════════════
# INVOICE MODELS
# ═══════════════════════════════════════════════════════════════════════════

class LineItemCreate(BaseModel):
    """A line item on a new or edited invoice."""
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(Decimal("1"), ge=0)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    position: int = Field(0, ge=0)  # sort key only; stored positions are renumbered 0..n-1
    amount: Optional[Decimal] = Field(None, ge=0)  # explicit override of quantity * unit_price


class InvoiceLineItem(BaseModel):
    """Line item row from database."""
    id: str
    invoice_id: str
    description: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    position: int = 0
    amount: Optional[Decimal] = None

    class Config:
        from_attributes = True


class InvoiceCreate(BaseModel):
    """
    Create an invoice. Either pass line_items (subtotal is derived) or a
    subtotal directly. Tax is a fixed amount or a percentage rate.
    """
    client_id: str
    number: str = Field(..., min_length=1, max_length=50)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)
    subtotal: Optional[Decimal] = Field(None, ge=0)
    tax: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    line_items: List[LineItemCreate] = []


class InvoiceUpdate(BaseModel):
    """
    Update an invoice. Totals are recalculated only when money fields or
    line_items are part of the update.
    """
    client_id: Optional[str] = None
    number: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[InvoiceStatus] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)
    subtotal: Optional[Decimal] = Field(None, ge=0)
    tax: Optional[Decimal] = Field(None, ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    line_items: Optional[List[LineItemCreate]] = None


class Invoice(BaseModel):
    """Full invoice model from database. Money fields may be null in old rows."""
    id: str
    user_id: str
    client_id: str
    number: str
    status: InvoiceStatus
    issue_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None
    subtotal: Optional[Decimal] = Decimal("0")
    tax: Optional[Decimal] = Decimal("0")
    total: Optional[Decimal] = Decimal("0")
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvoiceDetail(BaseModel):
    """Invoice with its client and ordered line items."""
    invoice: Invoice
    client: Optional[Client] = None
    line_items: List[InvoiceLineItem] = []


class InvoiceSendResult(BaseModel):
    """Outcome of emailing an invoice."""
    invoice_id: str
    number: str
    recipient: str
    message_id: str


# ═══════════════════════════════════════════════════════════════════════════
# RECURRING INVOICE MODELS
# ═══════════════════════════════════════════════════════════════════════════

class RecurringTemplateCreate(BaseModel):
    """Create a recurring invoice template."""
    client_id: str
    template_number: str = Field(..., min_length=1, max_length=50)
    frequency: RecurringFrequency = RecurringFrequency.MONTHLY
    next_due_date: date
    is_active: bool = True
    subtotal: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = Field(None, max_length=2000)


class RecurringTemplateUpdate(BaseModel):
    """Update a recurring invoice template."""
    frequency: Optional[RecurringFrequency] = None
    next_due_date: Optional[date] = None
    is_active: Optional[bool] = None
    subtotal: Optional[Decimal] = Field(None, ge=0)
    tax: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)


class RecurringInvoiceTemplate(BaseModel):
    """Full recurring template model from database."""
    id: str
    user_id: str
    client_id: str
    template_number: str
    frequency: RecurringFrequency
    next_due_date: date
    last_generated_date: Optional[date] = None
    is_active: bool = True
    subtotal: Optional[Decimal] = Decimal("0")
    tax: Optional[Decimal] = Decimal("0")
    total: Optional[Decimal] = Decimal("0")
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RecurringAdvance(BaseModel):
    """Field update applied to a template after an invoice is materialized."""
    last_generated_date: date
    next_due_date: date


# ═══════════════════════════════════════════════════════════════════════════
# ANALYTICS MODELS
# ═══════════════════════════════════════════════════════════════════════════

class AnalyticsSnapshot(BaseModel):
    """Revenue and activity metrics for one user."""
    total_revenue: Decimal
    pending_revenue: Decimal
    recent_clients: int
    recent_invoices: int
    overdue_invoices: int
    total_clients: int
    total_invoices: int
    paid_invoices: int
    collection_rate: int = Field(..., ge=0, le=100)


class InvoicingOverview(BaseModel):
    """Dashboard overview (available on every tier)."""
    total_clients: int
    total_invoices: int
    tier: PlanTier
    is_pro: bool
    upgrade_url: Optional[str] = None
