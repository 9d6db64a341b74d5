"""
Unit tests for the AggregationService against stored rows.
"""

from datetime import date
from decimal import Decimal

import pytest
from rest_framework.exceptions import PermissionDenied

from budget.models import TransactionStatus, TransactionType
from budget.services.aggregation_service import AggregationService

service = AggregationService()


@pytest.mark.django_db
class TestAggregationService:
    @pytest.fixture
    def ledger(self, space, owner, make_transaction):
        make_transaction(space, owner, 1000, date(2024, 3, 1), type=TransactionType.INCOME)
        make_transaction(space, owner, 400, date(2024, 3, 10))
        make_transaction(space, owner, 900, date(2024, 3, 20), status=TransactionStatus.PLANNED)
        make_transaction(space, owner, 500, date(2024, 4, 1), type=TransactionType.INCOME,
                         status=TransactionStatus.PLANNED)

    def test_summary(self, space, owner, ledger):
        result = service.summarize(owner, space.pk, date(2024, 3, 1), today=date(2024, 3, 15))

        assert result["income"] == Decimal("1000.00")
        assert result["expense"] == Decimal("1300.00")
        assert result["projected_balance"] == Decimal("-300.00")
        assert result["balance"] == Decimal("200.00")
        assert result["cash_gap"] == {"date": date(2024, 3, 20), "amount": Decimal("-300.00")}

    def test_pending_confirmations(self, space, owner, ledger):
        rows = service.pending_confirmations(owner, space.pk, today=date(2024, 3, 25))

        assert [row.amount for row in rows] == [Decimal("900.00")]

    def test_balance_on(self, space, owner, ledger):
        assert service.balance_on(owner, space.pk, date(2024, 3, 10)) == Decimal("600.00")

    def test_calendar_covers_whole_month(self, space, owner, ledger):
        days = service.calendar(owner, space.pk, date(2024, 3, 1))

        assert len(days) == 31
        assert days[9]["balance"] == Decimal("600.00")
        assert days[-1]["balance"] == Decimal("-300.00")

    def test_other_space_is_not_counted(self, space, owner, other_space, outsider, make_transaction):
        make_transaction(other_space, outsider, 999, date(2024, 3, 1), type=TransactionType.INCOME)

        result = service.summarize(owner, space.pk, date(2024, 3, 1), today=date(2024, 3, 1))

        assert result["income"] == Decimal("0")

    def test_outsider_is_denied(self, space, outsider):
        with pytest.raises(PermissionDenied):
            service.summarize(outsider, space.pk, date(2024, 3, 1))
