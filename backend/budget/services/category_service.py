"""
Category service: the per-space catalogue of transaction labels.

Direct creation never deduplicates; ``resolve_or_create`` is the write path
used by the ledger and matches names case-insensitively within a type, so
adding "food" next to an existing "Food" reuses it.
"""

import logging
import re

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from ..models import Category, Space, SpaceMembership, TransactionType
from .category_storage import get_category_storage
from .membership_service import MembershipService

logger = logging.getLogger(__name__)

PALETTE = [
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#EC4899",
    "#6366F1",
]

COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

EDITOR_ROLES = [SpaceMembership.ROLE_OWNER, SpaceMembership.ROLE_MEMBER_FULL]


def next_palette_color(space) -> str:
    """Rotate through the palette by the number of categories already present."""
    return PALETTE[Category.objects.filter(space=space).count() % len(PALETTE)]


def _clean_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValidationError({"name": ["Category name cannot be empty."]})
    name = name.strip()
    if len(name) > 100:
        raise ValidationError({"name": ["Category name is too long."]})
    return name


def _clean_color(color):
    if not isinstance(color, str) or not COLOR_PATTERN.match(color):
        raise ValidationError({"color": ["Color must be a hex value like #3B82F6."]})
    return color.upper()


def _clean_type(category_type):
    if category_type not in TransactionType.values:
        raise ValidationError(
            {"type": [f"'{category_type}' is not a valid category type."]}
        )
    return category_type


class CategoryService:
    """
    Category operations scoped to a space.
    """

    membership_service = MembershipService()

    def list_categories(self, user, space_id):
        self.membership_service.require_membership(user, space_id)
        return Category.objects.filter(space_id=space_id)

    def get_category(self, space_id, category_id) -> Category:
        try:
            return Category.objects.get(pk=category_id, space_id=space_id)
        except Category.DoesNotExist:
            raise NotFound("Category not found.")

    @transaction.atomic
    def create_category(
        self, user, space_id, name, category_type=TransactionType.EXPENSE, color=None, icon=""
    ) -> Category:
        """
        Create a category; an existing one with the same name is not reused.

        Raises:
            ValidationError: On empty name, unknown type or malformed color
        """
        membership = self.membership_service.require_membership(user, space_id)
        name = _clean_name(name)
        category_type = _clean_type(category_type or TransactionType.EXPENSE)
        color = _clean_color(color) if color else next_palette_color(membership.space)

        category = Category.objects.create(
            space=membership.space,
            name=name,
            type=category_type,
            color=color,
            icon=icon or "",
        )

        logger.info(
            "Category created",
            extra={
                "user_id": user.id,
                "space_id": space_id,
                "category_id": category.id,
                "category_type": category_type,
                "action": "category_created",
                "component": "CategoryService",
            },
        )
        return category

    def resolve_or_create(self, space, name, category_type) -> Category:
        """
        Find a category by case-insensitive name and type, creating it if absent.

        The earliest matching category wins when duplicates exist.
        """
        name = _clean_name(name)
        # Serializes concurrent first uses of the same name within a space
        Space.objects.select_for_update().filter(pk=space.pk).first()

        existing = (
            Category.objects.filter(
                space=space, type=category_type, name__iexact=name
            )
            .order_by("id")
            .first()
        )
        if existing is not None:
            return existing

        category = Category.objects.create(
            space=space,
            name=name,
            type=category_type,
            color=next_palette_color(space),
        )
        logger.info(
            "Category auto-created from transaction",
            extra={
                "space_id": space.id,
                "category_id": category.id,
                "category_type": category_type,
                "action": "category_auto_created",
                "component": "CategoryService",
            },
        )
        return category

    @transaction.atomic
    def update_category(self, user, space_id, category_id, name=None, color=None, icon=None):
        """
        Rename and/or recolor a category.

        Renaming propagates to the transactions labelled with the old name in
        the same atomic block.

        Raises:
            PermissionDenied: For ``member_own`` members
            NotFound: If the category is not in the space
        """
        self.membership_service.require_membership(user, space_id, roles=EDITOR_ROLES)
        category = self.get_category(space_id, category_id)
        changed_fields = []

        if color is not None:
            category.color = _clean_color(color)
            changed_fields.append("color")
        if icon is not None:
            category.icon = icon
            changed_fields.append("icon")

        renamed_rows = 0
        if name is not None:
            new_name = _clean_name(name)
            old_name = category.name
            if new_name != old_name:
                category.name = new_name
                changed_fields.append("name")
                renamed_rows = get_category_storage().rename(category, old_name, new_name)

        if changed_fields:
            category.save(update_fields=changed_fields)
            logger.info(
                "Category updated",
                extra={
                    "user_id": user.id,
                    "space_id": space_id,
                    "category_id": category.id,
                    "changed_fields": changed_fields,
                    "renamed_transactions": renamed_rows,
                    "action": "category_updated",
                    "component": "CategoryService",
                },
            )
        return category

    def rename_category(self, user, space_id, category_id, new_name):
        return self.update_category(user, space_id, category_id, name=new_name)

    def update_color(self, user, space_id, category_id, color):
        return self.update_category(user, space_id, category_id, color=color)

    @transaction.atomic
    def delete_category(self, user, space_id, category_id):
        """
        Delete a category; its transactions keep their label.
        """
        self.membership_service.require_membership(user, space_id, roles=EDITOR_ROLES)
        category = self.get_category(space_id, category_id)
        detached = get_category_storage().detach(category)
        category_name = category.name
        category.delete()

        logger.warning(
            "Category deleted",
            extra={
                "user_id": user.id,
                "space_id": space_id,
                "category_id": category_id,
                "category_name": category_name,
                "detached_transactions": detached,
                "action": "category_deleted",
                "component": "CategoryService",
                "severity": "medium",
            },
        )
