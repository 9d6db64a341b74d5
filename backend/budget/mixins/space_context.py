# budget/mixins/space_context.py
"""
Space context mixin.
Thin wrapper around the space context service; runs before permission checks.
"""

import logging

from ..services.space_context_service import SpaceContextService

logger = logging.getLogger(__name__)


class SpaceContextMixin:
    """
    Ensures ``request.user_permissions`` is populated BEFORE permission
    classes run, so they can authorize on the caller's role in the space.
    """

    context_service = SpaceContextService()

    def initial(self, request, *args, **kwargs):
        self.context_service.build_request_context(request, kwargs)

        logger.debug(
            "Space context initialized before permission checks",
            extra={
                "user_id": getattr(request.user, "id", None),
                "current_space_id": request.user_permissions.get("current_space_id"),
                "space_role": request.user_permissions.get("space_role"),
                "action": "space_context_pre_permissions",
                "component": "SpaceContextMixin",
            },
        )

        super().initial(request, *args, **kwargs)
