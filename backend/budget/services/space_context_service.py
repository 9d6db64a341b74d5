"""
Space context service.

Builds the request context the space permission classes read: the space id
taken from the URL and the caller's role in that space.
"""

import logging

from rest_framework.exceptions import NotFound

from ..models import Space, SpaceMembership

logger = logging.getLogger(__name__)


class SpaceContextService:
    """
    Resolves ``request.space`` and ``request.user_permissions`` for a request.
    """

    space_url_kwargs = ("space_pk", "space_id")

    def build_request_context(self, request, view_kwargs=None):
        """
        Attach space context to the request before permission checks.

        Raises:
            NotFound: If the URL names a space that does not exist
        """
        self._initialize_request_defaults(request)

        if not request.user.is_authenticated:
            return

        space_id = self._get_space_id(view_kwargs or {})
        if space_id is None:
            return

        membership = (
            SpaceMembership.objects.select_related("space")
            .filter(space_id=space_id, user=request.user)
            .first()
        )
        if membership is None:
            if not Space.objects.filter(pk=space_id).exists():
                logger.debug(
                    "Requested space does not exist",
                    extra={
                        "user_id": request.user.id,
                        "space_id": space_id,
                        "action": "space_not_found",
                        "component": "SpaceContextService",
                    },
                )
                raise NotFound("Space not found.")
            request.user_permissions.update(
                {"current_space_id": space_id, "space_exists": True}
            )
            return

        request.space = membership.space
        request.membership = membership
        request.user_permissions.update(
            {
                "current_space_id": space_id,
                "space_exists": True,
                "space_role": membership.role,
            }
        )

    def _initialize_request_defaults(self, request):
        request.space = None
        request.membership = None
        request.user_permissions = {
            "space_role": None,
            "current_space_id": None,
            "space_exists": False,
        }

    def _get_space_id(self, view_kwargs):
        for key in self.space_url_kwargs:
            value = view_kwargs.get(key)
            if value is not None:
                try:
                    return int(value)
                except (TypeError, ValueError):
                    raise NotFound("Space not found.")
        return None
