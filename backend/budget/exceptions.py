"""
API exceptions raised by the budget service layer.

Services raise DRF exceptions directly so views only need to propagate
them; ``ServiceExceptionHandlerMixin`` translates everything else.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, NotFound


class Conflict(APIException):
    """The request is valid but clashes with the current state of the space."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state."
    default_code = "conflict"


class MembershipNotFound(NotFound):
    """The user has no membership in the requested space."""

    default_detail = "You are not a member of this space."
    default_code = "membership_not_found"
