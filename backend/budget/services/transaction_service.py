"""
Service for ledger transaction operations.

This module provides the TransactionService class: recurring input is
expanded into one row per occurrence and inserted atomically, edits and
deletions honour the row ownership rules of the caller's role, and listing
supports the filters used by the client and the chat assistant.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction as db_transaction
from django.db.models import Q
from django.utils.dateparse import parse_date
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from ..drafts import TransactionDraft
from ..models import (Recurrence, SpaceMembership, Transaction,
                      TransactionStatus, TransactionType)
from ..utils.recurrence import occurrence_dates, occurs_on
from .category_service import CategoryService
from .category_storage import get_category_storage
from .membership_service import MembershipService

# Get structured logger for this module
logger = logging.getLogger(__name__)

# Values of the ``added_by`` filter meaning "rows I added"
SELF_AUTHOR_ALIASES = {"me", "mine", "я", "мои", "мои транзакции", "моё", "мое"}

ORDERINGS = {
    "asc": ("date", "id"),
    "desc": ("-date", "-id"),
}


class TransactionService:
    """
    Ledger operations scoped to a space.
    """

    membership_service = MembershipService()
    category_service = CategoryService()

    # -----------------------------------------------------------------
    # CREATE
    # -----------------------------------------------------------------

    def _validate_payloads(self, payloads):
        """Validate every template, reporting errors per position."""
        cleaned, errors, has_errors = [], [], False
        for payload in payloads:
            try:
                cleaned.append(TransactionDraft.from_payload(payload).validate())
                errors.append({})
            except DjangoValidationError as e:
                has_errors = True
                errors.append(e.message_dict if hasattr(e, "error_dict") else e.messages)
        if has_errors:
            raise ValidationError({"transactions": errors})
        return cleaned

    @db_transaction.atomic
    def add_transactions(self, user, space_id, payload):
        """
        Add one transaction template, or a batch of them.

        A recurring template is expanded into one row per occurrence; each
        row is stored with ``recurrence=NONE``. All rows of the call are
        inserted with a single ``bulk_create`` so either all exist or none.

        Args:
            user: Acting user, recorded as ``added_by``
            space_id: Target space
            payload: Template dict or list of template dicts

        Returns:
            list[Transaction]: Created rows in insertion order

        Raises:
            PermissionDenied: If the user is not a member
            ValidationError: If any template is invalid
        """
        membership = self.membership_service.require_membership(user, space_id)
        space = membership.space

        if isinstance(payload, list):
            if not payload:
                raise ValidationError({"transactions": ["At least one transaction is required."]})
            templates = self._validate_payloads(payload)
        else:
            templates = [TransactionDraft.from_payload(payload).validate()]

        storage = get_category_storage()
        rows = []
        for template in templates:
            category = self.category_service.resolve_or_create(
                space, template["category"], template["type"]
            )
            for occurrence in occurrence_dates(
                template["date"], template["recurrence_end_date"], template["recurrence"]
            ):
                row = Transaction(
                    space=space,
                    added_by=user,
                    type=template["type"],
                    amount=template["amount"],
                    date=occurrence,
                    status=template["status"],
                    recurrence=Recurrence.NONE,
                    recurrence_end_date=None,
                    include_in_balance=template["include_in_balance"],
                    description=template["description"],
                )
                storage.assign(row, category)
                rows.append(row)

        created = Transaction.objects.bulk_create(rows)

        logger.info(
            "Transactions added",
            extra={
                "user_id": user.id,
                "space_id": space.id,
                "template_count": len(templates),
                "row_count": len(created),
                "action": "transactions_added",
                "component": "TransactionService",
            },
        )
        return created

    # -----------------------------------------------------------------
    # UPDATE / DELETE
    # -----------------------------------------------------------------

    def _check_row_access(self, membership, instance, user):
        if instance.space_id != membership.space_id:
            logger.warning(
                "Transaction access denied - foreign space",
                extra={
                    "user_id": user.id,
                    "space_id": membership.space_id,
                    "transaction_id": instance.id,
                    "action": "transaction_foreign_space_denied",
                    "component": "TransactionService",
                    "severity": "high",
                },
            )
            raise PermissionDenied("Transaction belongs to another space.")

        if not membership.can_edit_all and instance.added_by_id != user.id:
            logger.warning(
                "Transaction access denied - not the author",
                extra={
                    "user_id": user.id,
                    "space_id": membership.space_id,
                    "transaction_id": instance.id,
                    "user_role": membership.role,
                    "action": "transaction_author_denied",
                    "component": "TransactionService",
                    "severity": "medium",
                },
            )
            raise PermissionDenied("You can only modify transactions you added.")

    def _get_for_write(self, user, space_id, transaction_id):
        membership = self.membership_service.require_membership(user, space_id)
        try:
            instance = Transaction.objects.select_for_update().get(pk=transaction_id)
        except Transaction.DoesNotExist:
            raise NotFound("Transaction not found.")
        self._check_row_access(membership, instance, user)
        return membership, instance

    def get_transaction(self, user, space_id, transaction_id) -> Transaction:
        self.membership_service.require_membership(user, space_id)
        try:
            instance = Transaction.objects.select_related("added_by", "category").get(
                pk=transaction_id
            )
        except Transaction.DoesNotExist:
            raise NotFound("Transaction not found.")
        if instance.space_id != int(space_id):
            raise PermissionDenied("Transaction belongs to another space.")
        return instance

    @db_transaction.atomic
    def update_transaction(self, user, space_id, transaction_id, patch) -> Transaction:
        """
        Apply a patch to one row after re-validating the merged result.

        A recurrence set through a patch is stored on the row as given; the
        row is not expanded again.

        Raises:
            NotFound: If the row does not exist
            PermissionDenied: If the row is in another space, or the caller
                is a ``member_own`` member and did not add it
            ValidationError: If the merged row is invalid
        """
        membership, instance = self._get_for_write(user, space_id, transaction_id)
        cleaned = TransactionDraft.from_instance(instance).merge(patch).validate()

        if "category" in patch or "type" in patch:
            category = self.category_service.resolve_or_create(
                membership.space, cleaned["category"], cleaned["type"]
            )
            get_category_storage().assign(instance, category)

        for field in (
            "type",
            "amount",
            "date",
            "status",
            "recurrence",
            "recurrence_end_date",
            "include_in_balance",
            "description",
        ):
            setattr(instance, field, cleaned[field])
        instance.save()

        logger.info(
            "Transaction updated",
            extra={
                "user_id": user.id,
                "space_id": membership.space_id,
                "transaction_id": instance.id,
                "patched_fields": sorted(patch),
                "action": "transaction_updated",
                "component": "TransactionService",
            },
        )
        return instance

    @db_transaction.atomic
    def delete_transaction(self, user, space_id, transaction_id):
        membership, instance = self._get_for_write(user, space_id, transaction_id)
        instance.delete()

        logger.info(
            "Transaction deleted",
            extra={
                "user_id": user.id,
                "space_id": membership.space_id,
                "transaction_id": transaction_id,
                "action": "transaction_deleted",
                "component": "TransactionService",
            },
        )

    @db_transaction.atomic
    def delete_transactions(self, user, space_id, ids) -> int:
        """
        Delete several rows at once.

        One forbidden row aborts the whole batch. Ids that no longer exist
        are skipped.

        Returns:
            int: Number of rows deleted
        """
        if not isinstance(ids, list) or not all(
            isinstance(i, int) and not isinstance(i, bool) for i in ids
        ):
            raise ValidationError({"ids": ["Expected a list of transaction ids."]})

        membership = self.membership_service.require_membership(user, space_id)
        rows = list(Transaction.objects.select_for_update().filter(pk__in=ids))
        for row in rows:
            self._check_row_access(membership, row, user)

        deleted, _ = Transaction.objects.filter(pk__in=[row.pk for row in rows]).delete()

        logger.info(
            "Transactions bulk deleted",
            extra={
                "user_id": user.id,
                "space_id": membership.space_id,
                "requested": len(ids),
                "deleted": deleted,
                "action": "transactions_bulk_deleted",
                "component": "TransactionService",
            },
        )
        return deleted

    # -----------------------------------------------------------------
    # READ
    # -----------------------------------------------------------------

    def space_queryset(self, space_id):
        return Transaction.objects.filter(space_id=space_id).select_related(
            "added_by", "category"
        )

    def _parse_filter_date(self, filters, key, errors):
        value = filters.get(key)
        if value in (None, ""):
            return None
        try:
            parsed = parse_date(value) if isinstance(value, str) else value
        except ValueError:
            parsed = None
        if parsed is None:
            errors[key] = ["Date has wrong format. Use YYYY-MM-DD."]
        return parsed

    def list_transactions(self, user, space_id, filters=None, ordering="asc"):
        """
        List rows of a space.

        Args:
            filters: Optional ``date_from``/``date_to`` (inclusive),
                ``category`` (substring, case-insensitive), ``type``,
                ``status`` and ``added_by`` (name substring, or "me" and its
                Russian forms for the caller's own rows)
            ordering: "asc" or "desc" by date, ties in insertion order

        Raises:
            ValidationError: On malformed filter values
        """
        self.membership_service.require_membership(user, space_id)
        filters = filters or {}
        errors = {}

        date_from = self._parse_filter_date(filters, "date_from", errors)
        date_to = self._parse_filter_date(filters, "date_to", errors)

        transaction_type = filters.get("type") or None
        if transaction_type and transaction_type not in TransactionType.values:
            errors["type"] = [f"'{transaction_type}' is not a valid transaction type."]
        status = filters.get("status") or None
        if status and status not in TransactionStatus.values:
            errors["status"] = [f"'{status}' is not a valid status."]
        if ordering not in ORDERINGS:
            errors["ordering"] = ["Ordering must be 'asc' or 'desc'."]
        if errors:
            raise ValidationError(errors)

        queryset = self.space_queryset(space_id)
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        if transaction_type:
            queryset = queryset.filter(type=transaction_type)
        if status:
            queryset = queryset.filter(status=status)

        category = (filters.get("category") or "").strip()
        if category:
            queryset = queryset.filter(get_category_storage().label_filter(category))

        author = (filters.get("added_by") or "").strip()
        if author:
            if author.lower() in SELF_AUTHOR_ALIASES:
                queryset = queryset.filter(added_by=user)
            else:
                queryset = queryset.filter(
                    Q(added_by__display_name__icontains=author)
                    | Q(added_by__first_name__icontains=author)
                    | Q(added_by__username__icontains=author)
                )

        return queryset.order_by(*ORDERINGS[ordering])

    def transactions_on(self, user, space_id, day):
        """
        Rows effective on ``day``.

        Materialized rows match their own date; rows that still carry a
        recurrence rule match every day the rule covers up to its end date.
        """
        self.membership_service.require_membership(user, space_id)
        candidates = self.space_queryset(space_id).filter(date__lte=day).filter(
            Q(date=day) | ~Q(recurrence=Recurrence.NONE)
        )
        return [
            row
            for row in candidates.order_by("date", "id")
            if row.date == day
            or (
                occurs_on(row.date, row.recurrence, day)
                and not (row.recurrence_end_date and day > row.recurrence_end_date)
            )
        ]

    @db_transaction.atomic
    def clear_space(self, user, space_id) -> dict:
        """
        Delete every transaction and category of a space. Owner only.

        Returns:
            dict: Deleted ``transactions`` and ``categories`` counts
        """
        membership = self.membership_service.require_membership(
            user, space_id, roles=[SpaceMembership.ROLE_OWNER]
        )
        transactions_deleted, _ = Transaction.objects.filter(
            space_id=membership.space_id
        ).delete()
        categories_deleted, _ = membership.space.categories.all().delete()

        logger.warning(
            "Space data cleared",
            extra={
                "user_id": user.id,
                "space_id": membership.space_id,
                "transactions_deleted": transactions_deleted,
                "categories_deleted": categories_deleted,
                "action": "space_cleared",
                "component": "TransactionService",
                "severity": "high",
            },
        )
        return {
            "transactions": transactions_deleted,
            "categories": categories_deleted,
        }
