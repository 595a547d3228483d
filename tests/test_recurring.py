from datetime import date, datetime, timezone

import pytest

from apps.invoicing.models import RecurringInvoiceTemplate
from apps.invoicing.recurring import add_months, advance, due_templates, is_due, mark_generated
from core.errors import DataIntegrityError


def make_template(next_due, frequency="monthly", is_active=True, number="REC-1", **extra):
    return RecurringInvoiceTemplate(
        id=f"t-{number}", user_id="user-1", client_id="c1",
        template_number=number, frequency=frequency,
        next_due_date=next_due, is_active=is_active, **extra
    )


@pytest.mark.parametrize("start,expected", [
    (date(2025, 1, 31), date(2025, 2, 28)),
    (date(2024, 1, 31), date(2024, 2, 29)),
    (date(2025, 3, 31), date(2025, 4, 30)),
    (date(2025, 12, 15), date(2026, 1, 15)),
])
def test_monthly_advance_clamps_to_month_end(start, expected):
    assert advance(make_template(start)) == expected


def test_weekly_advance_is_seven_days():
    assert advance(make_template(date(2025, 12, 29), "weekly")) == date(2026, 1, 5)


def test_quarterly_and_annual_advance():
    assert advance(make_template(date(2025, 11, 30), "quarterly")) == date(2026, 2, 28)
    assert advance(make_template(date(2024, 2, 29), "annually")) == date(2025, 2, 28)


def test_add_months_handles_year_rollover():
    assert add_months(date(2025, 10, 31), 15) == date(2027, 1, 31)


def test_inactive_template_is_never_due():
    template = make_template(date(2020, 1, 1), is_active=False)
    assert is_due(template, date(2030, 1, 1)) is False


def test_due_on_and_after_next_due_date():
    template = make_template(date(2025, 6, 15))
    assert is_due(template, date(2025, 6, 14)) is False
    assert is_due(template, date(2025, 6, 15)) is True
    assert is_due(template, date(2025, 7, 1)) is True


def test_due_check_uses_utc_date_for_timestamps():
    template = make_template(date(2025, 6, 15))
    assert is_due(template, datetime(2025, 6, 15, 0, 30, tzinfo=timezone.utc)) is True
    assert is_due(template, datetime(2025, 6, 14, 23, 59, tzinfo=timezone.utc)) is False


def test_unknown_frequency_is_a_data_integrity_error():
    template = make_template(date(2025, 1, 1))
    template.frequency = "fortnightly"
    with pytest.raises(DataIntegrityError):
        advance(template)


def test_mark_generated_moves_due_date_forward():
    step = mark_generated(make_template(date(2025, 1, 31)))
    assert step.last_generated_date == date(2025, 1, 31)
    assert step.next_due_date == date(2025, 2, 28)


def test_due_templates_sorted_oldest_first():
    templates = [
        make_template(date(2025, 6, 10), number="B"),
        make_template(date(2025, 6, 1), number="C"),
        make_template(date(2025, 6, 10), number="A"),
        make_template(date(2025, 6, 20), number="D"),
        make_template(date(2025, 5, 1), number="E", is_active=False),
    ]
    due = due_templates(templates, date(2025, 6, 15))
    assert [t.template_number for t in due] == ["C", "A", "B"]
