# tests/conftest.py
from datetime import date
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from budget.models import (Category, SpaceMembership, Transaction,
                           TransactionStatus, TransactionType)

from .factories import (CategoryFactory, SpaceFactory, SpaceMembershipFactory,
                        UserFactory)

# =============================================================================
# USER FIXTURES
# =============================================================================


@pytest.fixture
def owner(db):
    """Owner of the shared test space"""
    return UserFactory(first_name="Anna", last_name="Ivanova", display_name="Anna")


@pytest.fixture
def full_member(db):
    """Member allowed to edit every row"""
    return UserFactory(first_name="Boris", last_name="Petrov", display_name="Boris")


@pytest.fixture
def own_member(db):
    """Member allowed to edit only their own rows"""
    return UserFactory(first_name="Vera", last_name="Sidorova", display_name="Vera")


@pytest.fixture
def outsider(db):
    """User without any membership in the test space"""
    return UserFactory(display_name="Outsider")


# =============================================================================
# SPACE FIXTURES
# =============================================================================


@pytest.fixture
def space(db, owner):
    """Space owned by ``owner`` with no other members"""
    return SpaceFactory(name="Family", owner=owner)


@pytest.fixture
def shared_space(space, full_member, own_member):
    """Space with one member of every role"""
    SpaceMembershipFactory(
        space=space, user=full_member, role=SpaceMembership.ROLE_MEMBER_FULL
    )
    SpaceMembershipFactory(
        space=space, user=own_member, role=SpaceMembership.ROLE_MEMBER_OWN
    )
    return space


@pytest.fixture
def other_space(db, outsider):
    """Space the test users do not belong to"""
    return SpaceFactory(name="Neighbours", owner=outsider)


# =============================================================================
# LEDGER FIXTURES
# =============================================================================


@pytest.fixture
def food_category(space):
    return CategoryFactory(space=space, name="Food", type=TransactionType.EXPENSE)


@pytest.fixture
def salary_category(space):
    return CategoryFactory(space=space, name="Salary", type=TransactionType.INCOME)


@pytest.fixture
def make_transaction():
    """Build a ledger row directly, bypassing the service layer."""

    def _make(space, user, amount, day, type=TransactionType.EXPENSE, category=None, **kwargs):
        if category is None:
            category = Category.objects.filter(space=space, type=type).first()
            if category is None:
                category = CategoryFactory(space=space, type=type, name="Misc")
        return Transaction.objects.create(
            space=space,
            added_by=user,
            type=type,
            amount=Decimal(str(amount)),
            date=day,
            category=category,
            status=kwargs.pop("status", TransactionStatus.ACTUAL),
            **kwargs,
        )

    return _make


@pytest.fixture
def expense_payload():
    return {
        "type": "EXPENSE",
        "amount": "250.50",
        "date": "2024-03-05",
        "category": "Food",
        "description": "Groceries",
    }


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """API client authenticated as the given user."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture
def name_storage(settings):
    """Switch transactions to carry copies of category names."""
    settings.BUDGET_CATEGORY_STORAGE = "name"
    return settings


@pytest.fixture
def march():
    return date(2024, 3, 1)
