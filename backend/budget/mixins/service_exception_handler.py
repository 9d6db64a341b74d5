"""
Service exception handler mixin.

Views call services through ``handle_service_call`` so every failure reaches
the client as a DRF error response and leaves one structured log record.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions

logger = logging.getLogger(__name__)


def _django_error_detail(error):
    return error.message_dict if hasattr(error, "error_dict") else error.messages


class ServiceExceptionHandlerMixin:
    """
    Translates service-layer failures into DRF exceptions.

    - DRF exceptions (400, 403, 404, 409) propagate unchanged
    - Django ``ValidationError`` becomes 400 keeping its per-field messages
    - ``PermissionError`` becomes 403
    - anything else is logged with its traceback and reported as a bare 500

    Usage:
        rows = self.handle_service_call(
            self.transaction_service.add_transactions, request.user, space_pk, data
        )
    """

    def handle_service_call(self, service_call, *args, **kwargs):
        """
        Run ``service_call(*args, **kwargs)`` and return its result.

        Raises:
            APIException: The original DRF exception or its translation
        """
        request = getattr(self, "request", None)
        log_context = {
            "service_name": type(getattr(service_call, "__self__", self)).__name__,
            "method_name": getattr(service_call, "__name__", repr(service_call)),
            "user_id": getattr(getattr(request, "user", None), "id", None),
            "component": "ServiceExceptionHandlerMixin",
        }

        try:
            return service_call(*args, **kwargs)
        except exceptions.APIException as e:
            original, translated = e, e
        except DjangoValidationError as e:
            original, translated = e, exceptions.ValidationError(_django_error_detail(e))
        except PermissionError as e:
            original, translated = e, exceptions.PermissionDenied(str(e) or None)
        except Exception as e:
            logger.error(
                "Service operation failed unexpectedly",
                extra={
                    **log_context,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "action": "service_unexpected_error",
                    "severity": "critical",
                },
                exc_info=True,
            )
            # Internal details stay in the log
            raise exceptions.APIException(
                detail="Service operation failed", code="service_error"
            ) from e

        logger.warning(
            "Service request rejected",
            extra={
                **log_context,
                "error_type": type(translated).__name__,
                "error_detail": translated.detail,
                "status_code": translated.status_code,
                "action": "service_request_rejected",
                "severity": "medium",
            },
        )
        if translated is original:
            raise translated
        raise translated from original
