"""
Recurring invoice projector — due-date arithmetic for recurring templates.

Materializing the concrete invoice is done by an external trigger; this
module only answers "is one owed now" and "when is the next one due".
"""
import calendar
from datetime import datetime, date, timedelta, timezone
from typing import Iterable, List, Union

from core.errors import DataIntegrityError
from apps.invoicing.models import RecurringInvoiceTemplate, RecurringFrequency, RecurringAdvance

# Calendar months to add per frequency; weekly is handled as a fixed 7 days.
_MONTH_STEPS = {
    RecurringFrequency.MONTHLY: 1,
    RecurringFrequency.QUARTERLY: 3,
    RecurringFrequency.ANNUALLY: 12,
}


def _as_date(as_of: Union[date, datetime]) -> date:
    if isinstance(as_of, datetime):
        if as_of.tzinfo is not None:
            as_of = as_of.astimezone(timezone.utc)
        return as_of.date()
    return as_of


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def is_due(template: RecurringInvoiceTemplate, as_of: Union[date, datetime]) -> bool:
    """True when the template is active and its next due date has been reached."""
    return template.is_active and template.next_due_date <= _as_date(as_of)


def advance(template: RecurringInvoiceTemplate) -> date:
    """The due date following template.next_due_date for its frequency."""
    frequency = template.frequency
    if frequency == RecurringFrequency.WEEKLY:
        return template.next_due_date + timedelta(days=7)

    months = _MONTH_STEPS.get(frequency)
    if months is None:
        raise DataIntegrityError(
            "Unsupported recurring frequency",
            details={"id": template.id, "frequency": str(frequency)}
        )
    return add_months(template.next_due_date, months)


def mark_generated(template: RecurringInvoiceTemplate) -> RecurringAdvance:
    """Fields to persist once the invoice for next_due_date has been materialized."""
    return RecurringAdvance(
        last_generated_date=template.next_due_date,
        next_due_date=advance(template),
    )


def due_templates(
    templates: Iterable[RecurringInvoiceTemplate],
    as_of: Union[date, datetime]
) -> List[RecurringInvoiceTemplate]:
    """Templates owed an invoice at as_of, oldest due first."""
    due = [t for t in templates if is_due(t, as_of)]
    return sorted(due, key=lambda t: (t.next_due_date, t.template_number))
