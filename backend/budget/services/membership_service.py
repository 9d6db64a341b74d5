"""
Membership service: space resolution, invites and role management.

Every mutating operation runs inside ``transaction.atomic`` and locks the
rows its decision depends on, so concurrent first logins cannot create two
personal spaces and concurrent departures cannot leave a space ownerless.
"""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from ..exceptions import Conflict, MembershipNotFound
from ..models import Space, SpaceMembership, UserSettings, generate_invite_token

logger = logging.getLogger(__name__)
User = get_user_model()


class MembershipService:
    """
    Resolves which spaces a user may act in and manages who belongs to them.
    """

    # -----------------------------------------------------------------
    # RESOLUTION
    # -----------------------------------------------------------------

    def resolve_membership(self, user, space_id) -> SpaceMembership:
        """
        Return the membership of ``user`` in ``space_id``.

        Raises:
            MembershipNotFound: If the user is not a member of the space
        """
        try:
            return SpaceMembership.objects.select_related("space").get(
                space_id=space_id, user=user
            )
        except SpaceMembership.DoesNotExist:
            raise MembershipNotFound()

    def require_membership(self, user, space_id, roles=None) -> SpaceMembership:
        """
        Membership check for space-scoped operations.

        Args:
            user: Acting user
            space_id: Target space
            roles: Optional iterable of roles allowed to proceed

        Returns:
            SpaceMembership: Membership of the acting user

        Raises:
            NotFound: If the space does not exist
            PermissionDenied: If the user is not a member or lacks the role
        """
        try:
            membership = self.resolve_membership(user, space_id)
        except MembershipNotFound:
            if not Space.objects.filter(pk=space_id).exists():
                raise NotFound("Space not found.")
            logger.warning(
                "Space access denied - not a member",
                extra={
                    "user_id": user.id,
                    "space_id": space_id,
                    "action": "space_access_denied",
                    "component": "MembershipService",
                    "severity": "medium",
                },
            )
            raise PermissionDenied("You are not a member of this space.")

        if roles is not None and membership.role not in roles:
            logger.warning(
                "Space action denied - insufficient role",
                extra={
                    "user_id": user.id,
                    "space_id": space_id,
                    "user_role": membership.role,
                    "required_roles": list(roles),
                    "action": "space_role_denied",
                    "component": "MembershipService",
                    "severity": "medium",
                },
            )
            raise PermissionDenied("Your role does not allow this action.")

        return membership

    def _settings_for(self, user) -> UserSettings:
        user_settings, _ = UserSettings.objects.get_or_create(user=user)
        return user_settings

    @transaction.atomic
    def my_default_space(self, user) -> SpaceMembership:
        """
        Resolve the space the user works in by default, creating one if needed.

        The stored active space wins while the user is still a member of it.
        Otherwise a joined space is preferred over the user's own one, then
        the earliest membership. A user without any membership gets a new
        personal space with an owner membership. The choice is persisted.

        Returns:
            SpaceMembership: Membership in the resolved space
        """
        # Serializes concurrent first-time resolutions of the same user
        User.objects.select_for_update().filter(pk=user.pk).first()

        user_settings = self._settings_for(user)
        memberships = list(
            SpaceMembership.objects.filter(user=user)
            .select_related("space")
            .order_by("joined_at", "id")
        )

        if user_settings.active_space_id is not None:
            for membership in memberships:
                if membership.space_id == user_settings.active_space_id:
                    return membership

        if not memberships:
            space = Space.objects.create(name=f"{user.public_name} space")
            membership = SpaceMembership.objects.create(
                space=space, user=user, role=SpaceMembership.ROLE_OWNER
            )
            logger.info(
                "Personal space created",
                extra={
                    "user_id": user.id,
                    "space_id": space.id,
                    "action": "personal_space_created",
                    "component": "MembershipService",
                },
            )
        else:
            membership = next(
                (m for m in memberships if m.role != SpaceMembership.ROLE_OWNER),
                memberships[0],
            )

        user_settings.active_space = membership.space
        user_settings.save(update_fields=["active_space"])

        logger.debug(
            "Default space resolved",
            extra={
                "user_id": user.id,
                "space_id": membership.space_id,
                "role": membership.role,
                "action": "default_space_resolved",
                "component": "MembershipService",
            },
        )
        return membership

    @transaction.atomic
    def select_active_space(self, user, space_id) -> SpaceMembership:
        """Make ``space_id`` the user's active space."""
        membership = self.require_membership(user, space_id)
        user_settings = self._settings_for(user)
        user_settings.active_space = membership.space
        user_settings.save(update_fields=["active_space"])

        logger.info(
            "Active space selected",
            extra={
                "user_id": user.id,
                "space_id": space_id,
                "action": "active_space_selected",
                "component": "MembershipService",
            },
        )
        return membership

    def list_members(self, user, space_id):
        self.require_membership(user, space_id)
        return SpaceMembership.objects.filter(space_id=space_id).select_related(
            "user"
        )

    # -----------------------------------------------------------------
    # INVITES
    # -----------------------------------------------------------------

    def build_invite_link(self, space) -> str:
        return settings.BUDGET_INVITE_LINK_TEMPLATE.format(
            bot_username=settings.TELEGRAM_BOT_USERNAME,
            token=space.invite_token,
        )

    def generate_invite_link(self, user, space_id) -> str:
        """Invite link of a space; any member may share it."""
        membership = self.require_membership(user, space_id)
        return self.build_invite_link(membership.space)

    @transaction.atomic
    def regenerate_invite_token(self, user, space_id) -> str:
        """
        Rotate the invite token so previously shared links stop working.

        Returns:
            str: The new invite link
        """
        membership = self.require_membership(
            user, space_id, roles=[SpaceMembership.ROLE_OWNER]
        )
        space = Space.objects.select_for_update().get(pk=membership.space_id)
        space.invite_token = generate_invite_token()
        space.save(update_fields=["invite_token"])

        logger.warning(
            "Invite token regenerated",
            extra={
                "user_id": user.id,
                "space_id": space.id,
                "action": "invite_token_regenerated",
                "component": "MembershipService",
                "severity": "low",
            },
        )
        return self.build_invite_link(space)

    @transaction.atomic
    def join_by_token(self, token, user):
        """
        Join the space an invite token belongs to.

        Joining a space the user already belongs to changes nothing and
        reports the existing role.

        Returns:
            tuple: (space, role, already_member)

        Raises:
            NotFound: If no space carries the token
        """
        space = Space.objects.filter(invite_token=token).first() if token else None
        if space is None:
            logger.warning(
                "Join attempt with unknown invite token",
                extra={
                    "user_id": user.id,
                    "action": "space_join_invalid_token",
                    "component": "MembershipService",
                    "severity": "medium",
                },
            )
            raise NotFound("Invite link is invalid or has been revoked.")

        membership, created = SpaceMembership.objects.get_or_create(
            space=space,
            user=user,
            defaults={"role": settings.BUDGET_DEFAULT_JOIN_ROLE},
        )

        if not created:
            logger.debug(
                "User already a member of the joined space",
                extra={
                    "user_id": user.id,
                    "space_id": space.id,
                    "role": membership.role,
                    "action": "space_join_noop",
                    "component": "MembershipService",
                },
            )
            return space, membership.role, True

        user_settings = self._settings_for(user)
        user_settings.active_space = space
        user_settings.save(update_fields=["active_space"])

        logger.info(
            "User joined space",
            extra={
                "user_id": user.id,
                "space_id": space.id,
                "role": membership.role,
                "action": "space_joined",
                "component": "MembershipService",
            },
        )
        return space, membership.role, False

    # -----------------------------------------------------------------
    # ROLES
    # -----------------------------------------------------------------

    def _locked_memberships(self, space_id):
        return list(
            SpaceMembership.objects.select_for_update()
            .filter(space_id=space_id)
            .order_by("id")
        )

    @transaction.atomic
    def set_role(self, acting_user, space_id, target_user_id, new_role):
        """
        Change the role of a member.

        Raises:
            PermissionDenied: If the acting user is not the owner
            ValidationError: If ``new_role`` is not an assignable role
            NotFound: If the target is not a member
            Conflict: If the target is the owner
        """
        self.require_membership(
            acting_user, space_id, roles=[SpaceMembership.ROLE_OWNER]
        )

        if new_role not in SpaceMembership.ASSIGNABLE_ROLES:
            raise ValidationError(
                {
                    "role": [
                        "Role must be one of: "
                        + ", ".join(SpaceMembership.ASSIGNABLE_ROLES)
                    ]
                }
            )

        memberships = self._locked_memberships(space_id)
        target = next((m for m in memberships if m.user_id == target_user_id), None)
        if target is None:
            raise NotFound("User is not a member of this space.")
        if target.is_owner:
            raise Conflict("The owner's role cannot be changed.")

        old_role = target.role
        target.role = new_role
        target.save(update_fields=["role"])

        logger.info(
            "Member role updated",
            extra={
                "space_id": space_id,
                "acting_user_id": acting_user.id,
                "target_user_id": target_user_id,
                "old_role": old_role,
                "new_role": new_role,
                "action": "member_role_updated",
                "component": "MembershipService",
            },
        )
        return target

    @transaction.atomic
    def remove_member(self, acting_user, space_id, target_user_id):
        """
        Remove a member, or let a member leave.

        Members may always leave. The owner may leave only as the last
        member. Only the owner removes others, and nobody removes the owner.
        The member count is read under lock at decision time.

        Raises:
            PermissionDenied: If the acting user may not remove the target
            NotFound: If the target is not a member
            Conflict: If the owner tries to leave a space with other members
        """
        memberships = self._locked_memberships(space_id)
        acting = next((m for m in memberships if m.user_id == acting_user.id), None)
        if acting is None:
            self.require_membership(acting_user, space_id)

        target = next((m for m in memberships if m.user_id == target_user_id), None)
        if target is None:
            raise NotFound("User is not a member of this space.")

        if target.pk == acting.pk:
            if acting.is_owner and len(memberships) > 1:
                raise Conflict(
                    "Transfer ownership before leaving a space with other members."
                )
        elif target.is_owner:
            raise PermissionDenied("The space owner cannot be removed.")
        elif not acting.is_owner:
            raise PermissionDenied("Only the space owner can remove members.")

        target.delete()
        UserSettings.objects.filter(
            user_id=target_user_id, active_space_id=space_id
        ).update(active_space=None)

        logger.warning(
            "Member removed from space",
            extra={
                "space_id": space_id,
                "acting_user_id": acting_user.id,
                "target_user_id": target_user_id,
                "self_removal": target_user_id == acting_user.id,
                "remaining_members": len(memberships) - 1,
                "action": "member_removed",
                "component": "MembershipService",
                "severity": "medium",
            },
        )

    @transaction.atomic
    def transfer_ownership(self, acting_user, space_id, new_owner_id):
        """
        Hand the owner role to another member; the old owner becomes a full member.

        Raises:
            PermissionDenied: If the acting user is not the owner
            NotFound: If the new owner is not a member
            ValidationError: If the owner names themselves
        """
        self.require_membership(
            acting_user, space_id, roles=[SpaceMembership.ROLE_OWNER]
        )
        memberships = self._locked_memberships(space_id)
        current = next(m for m in memberships if m.user_id == acting_user.id)
        target = next((m for m in memberships if m.user_id == new_owner_id), None)
        if target is None:
            raise NotFound("User is not a member of this space.")
        if target.pk == current.pk:
            raise ValidationError({"user_id": ["You already own this space."]})

        # Demote first: at most one owner row may exist at any time
        current.role = SpaceMembership.ROLE_MEMBER_FULL
        current.save(update_fields=["role"])
        target.role = SpaceMembership.ROLE_OWNER
        target.save(update_fields=["role"])

        logger.warning(
            "Space ownership transferred",
            extra={
                "space_id": space_id,
                "old_owner_id": acting_user.id,
                "new_owner_id": new_owner_id,
                "action": "ownership_transferred",
                "component": "MembershipService",
                "severity": "medium",
            },
        )
        return target
