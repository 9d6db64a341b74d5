# budget/services/__init__.py
from .aggregation_service import AggregationService
from .category_service import CategoryService
from .membership_service import MembershipService
from .space_context_service import SpaceContextService
from .transaction_service import TransactionService

__all__ = [
    "AggregationService",
    "CategoryService",
    "MembershipService",
    "SpaceContextService",
    "TransactionService",
]
