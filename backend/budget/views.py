"""
API views for the household budget ledger.

ViewSets stay thin: the space context mixin resolves the caller's role before
permission checks, and every business rule runs in the service layer behind
``handle_service_call``.
"""

import logging
from datetime import date

from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .mixins import ServiceExceptionHandlerMixin, SpaceContextMixin
from .models import Category, SpaceMembership
from .permissions import IsSpaceFullMember, IsSpaceMember, IsSpaceOwner
from .serializers import (BulkDeleteSerializer, CategorySerializer,
                          DailyBalanceSerializer, JoinSpaceSerializer,
                          MemberSerializer, RoleUpdateSerializer,
                          SpaceMembershipSerializer, SpaceSerializer,
                          SummarySerializer, TransactionSerializer,
                          TransferOwnershipSerializer)
from .services import (AggregationService, CategoryService, MembershipService,
                       TransactionService)

# Get structured logger for this module
logger = logging.getLogger(__name__)


def parse_month_param(value):
    """``YYYY-MM`` query value to the first day of that month; today's month if empty."""
    if not value:
        return timezone.localdate().replace(day=1)
    try:
        year, month = (int(part) for part in value.split("-"))
        return date(year, month, 1)
    except ValueError:
        raise ValidationError({"month": ["Month has wrong format. Use YYYY-MM."]})


def parse_date_param(value, name="date"):
    """``YYYY-MM-DD`` query value; today if empty."""
    if not value:
        return timezone.localdate()
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError({name: ["Date has wrong format. Use YYYY-MM-DD."]})
    return parsed


class BaseSpaceViewSet(SpaceContextMixin, ServiceExceptionHandlerMixin, viewsets.GenericViewSet):
    """
    Base ViewSet for space-scoped views.

    ``SpaceContextMixin.initial`` runs before permission checks, so the space
    permission classes see the caller's role for the space in the URL.
    """

    permission_classes = [IsAuthenticated, IsSpaceMember]
    lookup_value_regex = r"\d+"

    @property
    def space_pk(self):
        return int(self.kwargs["space_pk"])


# -------------------------------------------------------------------
# SPACES, INVITES & MEMBERS
# -------------------------------------------------------------------


class SpaceViewSet(BaseSpaceViewSet):
    """
    Spaces of the caller, invite handling and member management.
    """

    lookup_url_kwarg = "space_pk"
    serializer_class = SpaceSerializer
    membership_service = MembershipService()
    transaction_service = TransactionService()
    aggregation_service = AggregationService()

    OWNER_ACTIONS = {
        "regenerate_invite_link",
        "member_role",
        "transfer_ownership",
        "clear",
    }

    def get_permissions(self):
        if self.action in ("list", "my", "join"):
            return [IsAuthenticated()]
        if self.action in self.OWNER_ACTIONS:
            return [IsAuthenticated(), IsSpaceOwner()]
        return [IsAuthenticated(), IsSpaceMember()]

    def get_queryset(self):
        return SpaceMembership.objects.filter(user=self.request.user).select_related(
            "space"
        )

    def list(self, request):
        """All spaces the caller belongs to, with their role."""
        return Response(SpaceMembershipSerializer(self.get_queryset(), many=True).data)

    @action(detail=False, methods=["get"])
    def my(self, request):
        """Resolve (and create on first use) the caller's default space."""
        membership = self.handle_service_call(
            self.membership_service.my_default_space, request.user
        )
        return Response(SpaceMembershipSerializer(membership).data)

    @action(detail=True, methods=["post"])
    def select(self, request, space_pk=None):
        membership = self.handle_service_call(
            self.membership_service.select_active_space, request.user, self.space_pk
        )
        return Response(SpaceMembershipSerializer(membership).data)

    @action(detail=False, methods=["post"])
    def join(self, request):
        serializer = JoinSpaceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        space, role, already_member = self.handle_service_call(
            self.membership_service.join_by_token,
            serializer.validated_data["token"],
            request.user,
        )
        return Response(
            {
                "space": SpaceSerializer(space).data,
                "role": role,
                "already_member": already_member,
            },
            status=status.HTTP_200_OK if already_member else status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get"], url_path="invite-link")
    def invite_link(self, request, space_pk=None):
        link = self.handle_service_call(
            self.membership_service.generate_invite_link, request.user, self.space_pk
        )
        return Response({"invite_link": link})

    @action(detail=True, methods=["post"], url_path="invite-link/regenerate")
    def regenerate_invite_link(self, request, space_pk=None):
        link = self.handle_service_call(
            self.membership_service.regenerate_invite_token, request.user, self.space_pk
        )
        return Response({"invite_link": link})

    @action(detail=True, methods=["get"])
    def members(self, request, space_pk=None):
        memberships = self.handle_service_call(
            self.membership_service.list_members, request.user, self.space_pk
        )
        return Response(MemberSerializer(memberships, many=True).data)

    @action(detail=True, methods=["post"], url_path=r"members/(?P<user_id>\d+)/role")
    def member_role(self, request, space_pk=None, user_id=None):
        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = self.handle_service_call(
            self.membership_service.set_role,
            request.user,
            self.space_pk,
            int(user_id),
            serializer.validated_data["role"],
        )
        return Response(MemberSerializer(membership).data)

    @action(detail=True, methods=["delete"], url_path=r"members/(?P<user_id>\d+)")
    def remove_member(self, request, space_pk=None, user_id=None):
        self.handle_service_call(
            self.membership_service.remove_member,
            request.user,
            self.space_pk,
            int(user_id),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="transfer-ownership")
    def transfer_ownership(self, request, space_pk=None):
        serializer = TransferOwnershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = self.handle_service_call(
            self.membership_service.transfer_ownership,
            request.user,
            self.space_pk,
            serializer.validated_data["user_id"],
        )
        return Response(MemberSerializer(membership).data)

    @action(detail=True, methods=["delete"])
    def clear(self, request, space_pk=None):
        """Delete every transaction and category of the space."""
        deleted = self.handle_service_call(
            self.transaction_service.clear_space, request.user, self.space_pk
        )
        return Response({"deleted": deleted})

    # -----------------------------------------------------------------
    # AGGREGATES
    # -----------------------------------------------------------------

    @action(detail=True, methods=["get"])
    def summary(self, request, space_pk=None):
        period_month = parse_month_param(request.query_params.get("month"))
        result = self.handle_service_call(
            self.aggregation_service.summarize, request.user, self.space_pk, period_month
        )
        return Response(SummarySerializer(result).data)

    @action(detail=True, methods=["get"])
    def balance(self, request, space_pk=None):
        day = parse_date_param(request.query_params.get("date"))
        amount = self.handle_service_call(
            self.aggregation_service.balance_on, request.user, self.space_pk, day
        )
        return Response({"date": day.isoformat(), "balance": f"{amount:.2f}"})

    @action(detail=True, methods=["get"])
    def calendar(self, request, space_pk=None):
        period_month = parse_month_param(request.query_params.get("month"))
        days = self.handle_service_call(
            self.aggregation_service.calendar, request.user, self.space_pk, period_month
        )
        return Response(DailyBalanceSerializer(days, many=True).data)


# -------------------------------------------------------------------
# CATEGORIES
# -------------------------------------------------------------------


class CategoryViewSet(BaseSpaceViewSet):
    """
    Categories of a space. Members list and create, full members and the
    owner rename, recolor and delete.
    """

    serializer_class = CategorySerializer
    category_service = CategoryService()

    def get_permissions(self):
        if self.action in ("update", "partial_update", "destroy"):
            return [IsAuthenticated(), IsSpaceFullMember()]
        return [IsAuthenticated(), IsSpaceMember()]

    def get_queryset(self):
        return Category.objects.filter(space_id=self.space_pk)

    def list(self, request, space_pk=None):
        categories = self.handle_service_call(
            self.category_service.list_categories, request.user, self.space_pk
        )
        return Response(self.get_serializer(categories, many=True).data)

    def create(self, request, space_pk=None):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        category = self.handle_service_call(
            self.category_service.create_category,
            request.user,
            self.space_pk,
            data["name"],
            data.get("type"),
            data.get("color") or None,
            data.get("icon", ""),
        )
        return Response(self.get_serializer(category).data, status=status.HTTP_201_CREATED)

    def update(self, request, space_pk=None, pk=None):
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        category = self.handle_service_call(
            self.category_service.update_category,
            request.user,
            self.space_pk,
            int(pk),
            name=data.get("name"),
            color=data.get("color") or None,
            icon=data.get("icon"),
        )
        return Response(self.get_serializer(category).data)

    def partial_update(self, request, space_pk=None, pk=None):
        return self.update(request, space_pk=space_pk, pk=pk)

    def destroy(self, request, space_pk=None, pk=None):
        self.handle_service_call(
            self.category_service.delete_category, request.user, self.space_pk, int(pk)
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# -------------------------------------------------------------------
# TRANSACTIONS
# -------------------------------------------------------------------


class TransactionViewSet(BaseSpaceViewSet):
    """
    Ledger rows of a space.

    Create accepts one template or a list; recurring templates come back as
    one row per occurrence. Row ownership for ``member_own`` members is
    enforced by the service.
    """

    serializer_class = TransactionSerializer
    transaction_service = TransactionService()
    aggregation_service = AggregationService()

    FILTER_PARAMS = ("date_from", "date_to", "category", "type", "status", "added_by")

    def get_queryset(self):
        return self.transaction_service.space_queryset(self.space_pk)

    def list(self, request, space_pk=None):
        filters = {
            key: request.query_params.get(key)
            for key in self.FILTER_PARAMS
            if request.query_params.get(key)
        }
        ordering = request.query_params.get("ordering", "asc")
        rows = self.handle_service_call(
            self.transaction_service.list_transactions,
            request.user,
            self.space_pk,
            filters,
            ordering,
        )
        return Response(self.get_serializer(rows, many=True).data)

    def create(self, request, space_pk=None):
        rows = self.handle_service_call(
            self.transaction_service.add_transactions,
            request.user,
            self.space_pk,
            request.data,
        )
        return Response(
            self.get_serializer(rows, many=True).data, status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, space_pk=None, pk=None):
        row = self.handle_service_call(
            self.transaction_service.get_transaction, request.user, self.space_pk, int(pk)
        )
        return Response(self.get_serializer(row).data)

    def update(self, request, space_pk=None, pk=None):
        row = self.handle_service_call(
            self.transaction_service.update_transaction,
            request.user,
            self.space_pk,
            int(pk),
            request.data,
        )
        return Response(self.get_serializer(row).data)

    def partial_update(self, request, space_pk=None, pk=None):
        return self.update(request, space_pk=space_pk, pk=pk)

    def destroy(self, request, space_pk=None, pk=None):
        self.handle_service_call(
            self.transaction_service.delete_transaction,
            request.user,
            self.space_pk,
            int(pk),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="bulk-delete")
    def bulk_delete(self, request, space_pk=None):
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        deleted = self.handle_service_call(
            self.transaction_service.delete_transactions,
            request.user,
            self.space_pk,
            serializer.validated_data["ids"],
        )
        return Response({"deleted": deleted})

    @action(detail=False, methods=["get"])
    def pending(self, request, space_pk=None):
        """Planned rows dated today or earlier that await confirmation."""
        rows = self.handle_service_call(
            self.aggregation_service.pending_confirmations, request.user, self.space_pk
        )
        return Response(self.get_serializer(rows, many=True).data)

    @action(detail=False, methods=["get"], url_path="on-date")
    def on_date(self, request, space_pk=None):
        day = parse_date_param(request.query_params.get("date"))
        rows = self.handle_service_call(
            self.transaction_service.transactions_on, request.user, self.space_pk, day
        )
        return Response(self.get_serializer(rows, many=True).data)
