"""
Unit tests for the MembershipService.
These tests cover space resolution, invites and role management rules
without going through the API stack.
"""

import pytest
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from budget.exceptions import Conflict
from budget.models import Space, SpaceMembership, UserSettings
from budget.services.membership_service import MembershipService

from ..factories import SpaceFactory, SpaceMembershipFactory, UserFactory

service = MembershipService()


def role_of(user, space):
    return SpaceMembership.objects.get(user=user, space=space).role


@pytest.mark.django_db
class TestDefaultSpace:
    def test_first_call_creates_personal_space(self):
        user = UserFactory(display_name="Anna")

        membership = service.my_default_space(user)

        assert membership.role == SpaceMembership.ROLE_OWNER
        assert membership.space.name == "Anna space"
        assert Space.objects.count() == 1
        assert UserSettings.objects.get(user=user).active_space == membership.space

    def test_is_idempotent(self):
        user = UserFactory()

        first = service.my_default_space(user)
        second = service.my_default_space(user)

        assert first.pk == second.pk
        assert Space.objects.count() == 1

    def test_prefers_joined_space_over_own(self, owner):
        user = UserFactory()
        own = SpaceFactory(owner=user)
        joined = SpaceFactory(owner=owner)
        SpaceMembershipFactory(space=joined, user=user)

        membership = service.my_default_space(user)

        assert membership.space == joined
        assert own.pk != joined.pk

    def test_keeps_stored_active_space(self, owner):
        user = UserFactory()
        own = SpaceFactory(owner=user)
        joined = SpaceFactory(owner=owner)
        SpaceMembershipFactory(space=joined, user=user)
        service.select_active_space(user, own.pk)

        assert service.my_default_space(user).space == own

    def test_falls_back_when_active_space_was_left(self, space, full_member):
        SpaceMembershipFactory(space=space, user=full_member)
        service.select_active_space(full_member, space.pk)
        service.remove_member(full_member, space.pk, full_member.pk)

        membership = service.my_default_space(full_member)

        assert membership.space != space
        assert membership.role == SpaceMembership.ROLE_OWNER


@pytest.mark.django_db
class TestRequireMembership:
    def test_missing_space_is_not_found(self, owner):
        with pytest.raises(NotFound):
            service.require_membership(owner, 987654)

    def test_non_member_is_denied(self, space, outsider):
        with pytest.raises(PermissionDenied):
            service.require_membership(outsider, space.pk)

    def test_role_restriction(self, shared_space, own_member):
        with pytest.raises(PermissionDenied):
            service.require_membership(
                own_member, shared_space.pk, roles=[SpaceMembership.ROLE_OWNER]
            )


@pytest.mark.django_db
class TestInvites:
    def test_invite_link_contains_token(self, space, owner, settings):
        settings.TELEGRAM_BOT_USERNAME = "family_budget_bot"

        link = service.generate_invite_link(owner, space.pk)

        assert "family_budget_bot" in link
        assert space.invite_token in link

    def test_join_adds_full_member_and_activates_space(self, space, outsider):
        joined_space, role, already_member = service.join_by_token(
            space.invite_token, outsider
        )

        assert joined_space == space
        assert role == SpaceMembership.ROLE_MEMBER_FULL
        assert already_member is False
        assert outsider.settings.active_space == space

    def test_join_is_idempotent(self, shared_space, own_member):
        _, role, already_member = service.join_by_token(
            shared_space.invite_token, own_member
        )

        assert already_member is True
        assert role == SpaceMembership.ROLE_MEMBER_OWN
        assert shared_space.memberships.filter(user=own_member).count() == 1

    def test_owner_joining_own_space_keeps_owner_role(self, space, owner):
        _, role, already_member = service.join_by_token(space.invite_token, owner)

        assert already_member is True
        assert role == SpaceMembership.ROLE_OWNER

    @pytest.mark.parametrize("token", ["does-not-exist", ""])
    def test_unknown_token(self, token, outsider):
        with pytest.raises(NotFound):
            service.join_by_token(token, outsider)

    def test_regenerate_invalidates_old_token(self, space, owner, outsider):
        old_token = space.invite_token

        service.regenerate_invite_token(owner, space.pk)

        space.refresh_from_db()
        assert space.invite_token != old_token
        with pytest.raises(NotFound):
            service.join_by_token(old_token, outsider)

    def test_only_owner_regenerates(self, shared_space, full_member):
        with pytest.raises(PermissionDenied):
            service.regenerate_invite_token(full_member, shared_space.pk)


@pytest.mark.django_db
class TestSetRole:
    def test_owner_changes_member_role(self, shared_space, owner, full_member):
        service.set_role(owner, shared_space.pk, full_member.pk, SpaceMembership.ROLE_MEMBER_OWN)

        assert role_of(full_member, shared_space) == SpaceMembership.ROLE_MEMBER_OWN

    def test_cannot_assign_owner(self, shared_space, owner, full_member):
        with pytest.raises(ValidationError):
            service.set_role(owner, shared_space.pk, full_member.pk, SpaceMembership.ROLE_OWNER)

    def test_owner_role_cannot_change(self, shared_space, owner):
        with pytest.raises(Conflict):
            service.set_role(owner, shared_space.pk, owner.pk, SpaceMembership.ROLE_MEMBER_OWN)

    def test_non_owner_cannot_change_roles(self, shared_space, full_member, own_member):
        with pytest.raises(PermissionDenied):
            service.set_role(
                full_member, shared_space.pk, own_member.pk, SpaceMembership.ROLE_MEMBER_FULL
            )

    def test_target_must_be_member(self, shared_space, owner, outsider):
        with pytest.raises(NotFound):
            service.set_role(owner, shared_space.pk, outsider.pk, SpaceMembership.ROLE_MEMBER_FULL)


@pytest.mark.django_db
class TestRemoveMember:
    def test_owner_removes_member(self, shared_space, owner, own_member):
        service.select_active_space(own_member, shared_space.pk)

        service.remove_member(owner, shared_space.pk, own_member.pk)

        assert not shared_space.memberships.filter(user=own_member).exists()
        own_member.settings.refresh_from_db()
        assert own_member.settings.active_space is None

    def test_member_leaves(self, shared_space, full_member):
        service.remove_member(full_member, shared_space.pk, full_member.pk)

        assert not shared_space.memberships.filter(user=full_member).exists()

    def test_member_cannot_remove_others(self, shared_space, full_member, own_member):
        with pytest.raises(PermissionDenied):
            service.remove_member(full_member, shared_space.pk, own_member.pk)

    def test_nobody_removes_owner(self, shared_space, full_member, owner):
        with pytest.raises(PermissionDenied):
            service.remove_member(full_member, shared_space.pk, owner.pk)

    def test_owner_cannot_leave_populated_space(self, shared_space, owner):
        with pytest.raises(Conflict):
            service.remove_member(owner, shared_space.pk, owner.pk)

    def test_owner_leaves_as_last_member(self, space, owner):
        service.remove_member(owner, space.pk, owner.pk)

        assert space.memberships.count() == 0
        assert Space.objects.filter(pk=space.pk).exists()

    def test_outsider_cannot_remove(self, shared_space, outsider, own_member):
        with pytest.raises(PermissionDenied):
            service.remove_member(outsider, shared_space.pk, own_member.pk)

    def test_target_must_be_member(self, shared_space, owner, outsider):
        with pytest.raises(NotFound):
            service.remove_member(owner, shared_space.pk, outsider.pk)


@pytest.mark.django_db
class TestTransferOwnership:
    def test_transfer_swaps_roles(self, shared_space, owner, own_member):
        service.transfer_ownership(owner, shared_space.pk, own_member.pk)

        assert role_of(own_member, shared_space) == SpaceMembership.ROLE_OWNER
        assert role_of(owner, shared_space) == SpaceMembership.ROLE_MEMBER_FULL
        assert shared_space.memberships.filter(role=SpaceMembership.ROLE_OWNER).count() == 1

    def test_only_owner_transfers(self, shared_space, full_member, own_member):
        with pytest.raises(PermissionDenied):
            service.transfer_ownership(full_member, shared_space.pk, own_member.pk)

    def test_cannot_transfer_to_self(self, shared_space, owner):
        with pytest.raises(ValidationError):
            service.transfer_ownership(owner, shared_space.pk, owner.pk)

    def test_new_owner_must_be_member(self, shared_space, owner, outsider):
        with pytest.raises(NotFound):
            service.transfer_ownership(owner, shared_space.pk, outsider.pk)

    def test_former_owner_may_leave_after_transfer(self, shared_space, owner, full_member):
        service.transfer_ownership(owner, shared_space.pk, full_member.pk)

        service.remove_member(owner, shared_space.pk, owner.pk)

        assert not shared_space.memberships.filter(user=owner).exists()
