"""
Serializers for the budget API.

Input validation of transactions lives in ``TransactionDraft`` so that the
same rules apply to API, batch and assistant callers; serializers here shape
responses and validate the small request bodies of the space actions.
"""

import logging

from rest_framework import serializers

from users.serializers import UserProfileSerializer

from .models import Category, Space, SpaceMembership, Transaction, TransactionType

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# SPACES & MEMBERS
# -------------------------------------------------------------------


class SpaceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Space
        fields = ["id", "name", "created_at"]
        read_only_fields = fields


class SpaceMembershipSerializer(serializers.ModelSerializer):
    """A space together with the caller's role in it."""

    space = SpaceSerializer(read_only=True)

    class Meta:
        model = SpaceMembership
        fields = ["space", "role", "joined_at"]
        read_only_fields = fields


class MemberSerializer(serializers.ModelSerializer):
    """A member as listed to other members of the space."""

    user = UserProfileSerializer(read_only=True)

    class Meta:
        model = SpaceMembership
        fields = ["user", "role", "joined_at"]
        read_only_fields = fields


class JoinSpaceSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64, trim_whitespace=True)


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.CharField()


class TransferOwnershipSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()


class BulkDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


# -------------------------------------------------------------------
# CATEGORIES
# -------------------------------------------------------------------


class CategorySerializer(serializers.ModelSerializer):
    """
    Category representation and create/update input.

    ``type`` defaults to EXPENSE and ``color`` to the next palette color when
    omitted on create. Only ``name``, ``color`` and ``icon`` can be changed later.
    """

    type = serializers.ChoiceField(
        choices=TransactionType.choices, default=TransactionType.EXPENSE
    )
    color = serializers.CharField(max_length=7, required=False, allow_blank=True)

    class Meta:
        model = Category
        fields = ["id", "name", "type", "color", "icon", "created_at"]
        read_only_fields = ["id", "created_at"]
        extra_kwargs = {"icon": {"required": False}}


# -------------------------------------------------------------------
# TRANSACTIONS
# -------------------------------------------------------------------


class TransactionSerializer(serializers.ModelSerializer):
    """Read representation of a ledger row."""

    category = serializers.CharField(source="category_label", read_only=True)
    category_id = serializers.IntegerField(read_only=True)
    added_by = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            "id",
            "type",
            "amount",
            "date",
            "category",
            "category_id",
            "status",
            "recurrence",
            "recurrence_end_date",
            "include_in_balance",
            "description",
            "added_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_added_by(self, obj):
        if obj.added_by is None:
            return None
        return {"id": obj.added_by_id, "name": obj.added_by.public_name}


# -------------------------------------------------------------------
# AGGREGATES
# -------------------------------------------------------------------


class CashGapSerializer(serializers.Serializer):
    date = serializers.DateField()
    amount = serializers.DecimalField(max_digits=None, decimal_places=2)


class SummarySerializer(serializers.Serializer):
    income = serializers.DecimalField(max_digits=None, decimal_places=2)
    expense = serializers.DecimalField(max_digits=None, decimal_places=2)
    balance = serializers.DecimalField(max_digits=None, decimal_places=2)
    projected_balance = serializers.DecimalField(max_digits=None, decimal_places=2)
    cash_gap = CashGapSerializer(allow_null=True)
    avg_daily_income = serializers.DecimalField(max_digits=None, decimal_places=2)
    avg_daily_expense = serializers.DecimalField(max_digits=None, decimal_places=2)


class DailyBalanceSerializer(serializers.Serializer):
    date = serializers.DateField()
    income = serializers.DecimalField(max_digits=None, decimal_places=2)
    expense = serializers.DecimalField(max_digits=None, decimal_places=2)
    balance = serializers.DecimalField(max_digits=None, decimal_places=2)
