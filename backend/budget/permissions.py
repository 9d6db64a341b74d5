# budget/permissions.py
"""
Space-scoped permission classes.

They trust the context built by ``SpaceContextMixin``: ``request.user_permissions``
holds the caller's role in the space named by the URL.
"""

import logging

from rest_framework import permissions

from .models import SpaceMembership

logger = logging.getLogger(__name__)


class SpaceRolePermission(permissions.BasePermission):
    """
    Base class granting access when the caller's space role is in ``allowed_roles``.
    ``None`` allows every member.
    """

    allowed_roles = None
    message = "You do not have permission to perform this action in this space."

    def has_permission(self, request, view):
        permissions_data = getattr(request, "user_permissions", {})
        role = permissions_data.get("space_role")

        is_authorized = role is not None and (
            self.allowed_roles is None or role in self.allowed_roles
        )

        if not is_authorized:
            logger.warning(
                "Space permission denied",
                extra={
                    "user_id": getattr(request.user, "id", None),
                    "space_id": permissions_data.get("current_space_id"),
                    "user_role": role,
                    "required_roles": self.allowed_roles,
                    "action": "space_permission_denied",
                    "component": self.__class__.__name__,
                    "severity": "medium",
                },
            )

        return is_authorized


class IsSpaceMember(SpaceRolePermission):
    """Any member of the space: owner, member_full or member_own."""

    message = "You are not a member of this space."


class IsSpaceFullMember(SpaceRolePermission):
    """Owner or member_full: may change rows authored by others."""

    allowed_roles = [SpaceMembership.ROLE_OWNER, SpaceMembership.ROLE_MEMBER_FULL]


class IsSpaceOwner(SpaceRolePermission):
    """The owner of the space."""

    allowed_roles = [SpaceMembership.ROLE_OWNER]
    message = "Only the space owner can perform this action."
