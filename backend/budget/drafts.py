"""
Transaction drafts: raw input collected, merged and validated in one place.

A draft is built from a request payload (new transactions) or from an
existing row plus a patch (updates). ``validate`` reports every field error
at once instead of stopping at the first one, so a client form can mark all
invalid fields in a single round trip.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date

from .models import Recurrence, TransactionStatus, TransactionType

logger = logging.getLogger(__name__)

FIELDS = (
    "type",
    "amount",
    "date",
    "category",
    "status",
    "recurrence",
    "recurrence_end_date",
    "include_in_balance",
    "description",
)

REQUIRED_MESSAGE = "This field is required."

# Transaction.amount holds 12 integer digits
MAX_AMOUNT = Decimal("1000000000000")


def _parse_day(value):
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError
    parsed = parse_date(value.strip())
    if parsed is None:
        raise ValueError
    return parsed


class TransactionDraft:
    """Unvalidated transaction template."""

    def __init__(self, data=None):
        self.data = {key: value for key, value in (data or {}).items() if key in FIELDS}

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise ValidationError("Transaction payload must be an object.")
        return cls(payload)

    @classmethod
    def from_instance(cls, instance):
        return cls(
            {
                "type": instance.type,
                "amount": instance.amount,
                "date": instance.date,
                "category": instance.category_label,
                "status": instance.status,
                "recurrence": instance.recurrence,
                "recurrence_end_date": instance.recurrence_end_date,
                "include_in_balance": instance.include_in_balance,
                "description": instance.description,
            }
        )

    def merge(self, patch):
        """Return a new draft with the known keys of ``patch`` applied."""
        if not isinstance(patch, dict):
            raise ValidationError("Transaction patch must be an object.")
        merged = dict(self.data)
        merged.update({key: value for key, value in patch.items() if key in FIELDS})
        return TransactionDraft(merged)

    def validate(self):
        """
        Validate the draft and return the cleaned template.

        Returns:
            dict: ``type``, ``amount`` (Decimal), ``date``, ``category`` (name),
                ``status``, ``recurrence``, ``recurrence_end_date``,
                ``include_in_balance``, ``description``

        Raises:
            ValidationError: Keyed by field, carrying every failure found
        """
        errors = {}
        cleaned = {}

        transaction_type = self.data.get("type")
        if transaction_type in (None, ""):
            errors["type"] = [REQUIRED_MESSAGE]
        elif transaction_type not in TransactionType.values:
            errors["type"] = [f"'{transaction_type}' is not a valid transaction type."]
        else:
            cleaned["type"] = transaction_type

        amount = self.data.get("amount")
        if amount in (None, ""):
            errors["amount"] = [REQUIRED_MESSAGE]
        else:
            try:
                if isinstance(amount, bool):
                    raise InvalidOperation
                value = Decimal(str(amount))
                if not value.is_finite():
                    raise InvalidOperation
            except (InvalidOperation, ValueError):
                errors["amount"] = ["A valid number is required."]
            else:
                if value <= 0:
                    errors["amount"] = ["Amount must be positive."]
                elif value >= MAX_AMOUNT:
                    errors["amount"] = ["Amount is too large."]
                else:
                    cleaned["amount"] = value.quantize(Decimal("0.01"))

        category = self.data.get("category")
        if not isinstance(category, str) or not category.strip():
            errors["category"] = [REQUIRED_MESSAGE]
        else:
            cleaned["category"] = category.strip()

        day = self.data.get("date")
        if day in (None, ""):
            errors["date"] = [REQUIRED_MESSAGE]
        else:
            try:
                cleaned["date"] = _parse_day(day)
            except ValueError:
                errors["date"] = ["Date has wrong format. Use YYYY-MM-DD."]

        status = self.data.get("status") or TransactionStatus.ACTUAL
        if status not in TransactionStatus.values:
            errors["status"] = [f"'{status}' is not a valid status."]
        else:
            cleaned["status"] = status

        recurrence = self.data.get("recurrence") or Recurrence.NONE
        if recurrence not in Recurrence.values:
            errors["recurrence"] = [f"'{recurrence}' is not a valid recurrence."]
        else:
            cleaned["recurrence"] = recurrence

        end_date = self.data.get("recurrence_end_date")
        cleaned["recurrence_end_date"] = None
        if end_date not in (None, ""):
            try:
                cleaned["recurrence_end_date"] = _parse_day(end_date)
            except ValueError:
                errors["recurrence_end_date"] = [
                    "Date has wrong format. Use YYYY-MM-DD."
                ]
        elif recurrence in Recurrence.values and recurrence != Recurrence.NONE:
            errors["recurrence_end_date"] = [
                "An end date is required for recurring transactions."
            ]

        include_in_balance = self.data.get("include_in_balance", True)
        if include_in_balance is None:
            include_in_balance = True
        if not isinstance(include_in_balance, bool):
            errors["include_in_balance"] = ["Must be true or false."]
        else:
            cleaned["include_in_balance"] = include_in_balance

        description = self.data.get("description") or ""
        if not isinstance(description, str):
            errors["description"] = ["Must be a string."]
        else:
            cleaned["description"] = description.strip()

        if errors:
            logger.debug(
                "Transaction draft rejected",
                extra={
                    "error_fields": sorted(errors),
                    "action": "transaction_draft_invalid",
                    "component": "TransactionDraft",
                },
            )
            raise ValidationError(errors)

        return cleaned
