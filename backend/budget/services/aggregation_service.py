"""
Aggregation service: summaries and balances over a space ledger.

Thin wrapper around ``budget.utils.summary`` that enforces membership and
loads the rows; nothing here is stored, every figure is recomputed per call.
"""

import logging

from django.utils import timezone

from ..models import Transaction
from ..utils import summary
from .membership_service import MembershipService

logger = logging.getLogger(__name__)


class AggregationService:
    membership_service = MembershipService()

    def _rows(self, space_id):
        return list(
            Transaction.objects.filter(space_id=space_id).only(
                "id", "date", "type", "amount", "status", "include_in_balance"
            )
        )

    def summarize(self, user, space_id, period_month, today=None) -> dict:
        """Summary of the month containing ``period_month``."""
        self.membership_service.require_membership(user, space_id)
        today = today or timezone.localdate()
        result = summary.summarize(self._rows(space_id), period_month, today)

        logger.debug(
            "Space summary computed",
            extra={
                "user_id": user.id,
                "space_id": space_id,
                "period_month": period_month.isoformat(),
                "has_cash_gap": result["cash_gap"] is not None,
                "action": "summary_computed",
                "component": "AggregationService",
            },
        )
        return result

    def pending_confirmations(self, user, space_id, today=None):
        """Planned rows whose date has come, full rows for display."""
        self.membership_service.require_membership(user, space_id)
        today = today or timezone.localdate()
        rows = Transaction.objects.filter(space_id=space_id).select_related(
            "added_by", "category"
        )
        return summary.pending_confirmations(rows, today)

    def balance_on(self, user, space_id, day=None):
        self.membership_service.require_membership(user, space_id)
        return summary.balance_on(self._rows(space_id), day or timezone.localdate())

    def calendar(self, user, space_id, period_month) -> list:
        """End-of-day balances for every day of a month."""
        self.membership_service.require_membership(user, space_id)
        month_start, month_end = summary.month_bounds(period_month)
        return summary.daily_balances(self._rows(space_id), month_start, month_end)
