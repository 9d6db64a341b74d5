"""
Unit tests for transaction draft validation.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from budget.drafts import TransactionDraft
from budget.models import Recurrence, TransactionStatus


def errors_of(payload):
    with pytest.raises(ValidationError) as exc_info:
        TransactionDraft.from_payload(payload).validate()
    return exc_info.value.message_dict


def test_minimal_payload_gets_defaults():
    cleaned = TransactionDraft.from_payload(
        {"type": "EXPENSE", "amount": 12.5, "date": "2024-03-05", "category": " Food "}
    ).validate()

    assert cleaned == {
        "type": "EXPENSE",
        "amount": Decimal("12.50"),
        "date": date(2024, 3, 5),
        "category": "Food",
        "status": TransactionStatus.ACTUAL,
        "recurrence": Recurrence.NONE,
        "recurrence_end_date": None,
        "include_in_balance": True,
        "description": "",
    }


def test_unknown_keys_are_ignored():
    cleaned = TransactionDraft.from_payload(
        {
            "type": "INCOME",
            "amount": "100",
            "date": date(2024, 3, 5),
            "category": "Salary",
            "space": 999,
            "added_by": 7,
        }
    ).validate()

    assert "space" not in cleaned
    assert "added_by" not in cleaned


def test_reports_every_invalid_field_at_once():
    errors = errors_of({"type": "TRANSFER", "amount": -5, "date": "05.03.2024"})

    assert set(errors) == {"type", "amount", "date", "category"}


@pytest.mark.parametrize("amount", [0, "0", -1, "abc", "NaN", "Infinity", True, None, ""])
def test_rejects_non_positive_or_non_numeric_amounts(amount):
    errors = errors_of(
        {"type": "EXPENSE", "amount": amount, "date": "2024-03-05", "category": "Food"}
    )

    assert "amount" in errors


def test_rejects_amount_too_large_for_storage():
    errors = errors_of(
        {"type": "EXPENSE", "amount": "1000000000000", "date": "2024-03-05", "category": "Food"}
    )

    assert errors["amount"] == ["Amount is too large."]


def test_rejects_impossible_date():
    errors = errors_of(
        {"type": "EXPENSE", "amount": 1, "date": "2024-02-30", "category": "Food"}
    )

    assert "date" in errors


def test_recurring_template_requires_end_date():
    errors = errors_of(
        {
            "type": "EXPENSE",
            "amount": 1,
            "date": "2024-03-05",
            "category": "Rent",
            "recurrence": "MONTHLY",
        }
    )

    assert list(errors) == ["recurrence_end_date"]


def test_include_in_balance_must_be_boolean():
    errors = errors_of(
        {
            "type": "EXPENSE",
            "amount": 1,
            "date": "2024-03-05",
            "category": "Food",
            "include_in_balance": "yes",
        }
    )

    assert "include_in_balance" in errors


def test_payload_must_be_an_object():
    with pytest.raises(ValidationError):
        TransactionDraft.from_payload(["not", "a", "dict"])


def test_merge_overrides_known_fields_only():
    draft = TransactionDraft(
        {"type": "EXPENSE", "amount": Decimal("10.00"), "date": date(2024, 3, 5), "category": "Food"}
    )

    cleaned = draft.merge({"amount": "15", "unknown": 1}).validate()

    assert cleaned["amount"] == Decimal("15.00")
    assert cleaned["category"] == "Food"
    assert "amount" in draft.data and draft.data["amount"] == Decimal("10.00")
