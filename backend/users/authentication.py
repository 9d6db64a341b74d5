"""
DRF authentication backed by Telegram Mini App init data.
"""

import logging

from django.conf import settings
from rest_framework import authentication, exceptions

from .services import get_or_create_telegram_user
from .telegram import InvalidInitData, verify_init_data

logger = logging.getLogger(__name__)


class TelegramInitDataAuthentication(authentication.BaseAuthentication):
    """
    Authenticate requests carrying an ``X-Telegram-Init-Data`` header.

    Requests without the header fall through to the next authentication
    class (SimpleJWT), a header that fails verification is rejected with 401.
    """

    header_name = "HTTP_X_TELEGRAM_INIT_DATA"
    keyword = "tma"

    def authenticate(self, request):
        init_data = request.META.get(self.header_name)
        if not init_data:
            return None

        user_payload = authenticate_init_data(init_data)
        user, _ = get_or_create_telegram_user(user_payload)
        if not user.is_active:
            raise exceptions.AuthenticationFailed("User account is disabled.")
        return user, None

    def authenticate_header(self, request):
        return self.keyword


def authenticate_init_data(init_data):
    """
    Verify init data against the configured bot token.

    Raises:
        AuthenticationFailed: If verification fails
    """
    try:
        return verify_init_data(
            init_data,
            settings.TELEGRAM_BOT_TOKEN,
            max_age=settings.TELEGRAM_AUTH_MAX_AGE,
        )
    except InvalidInitData as e:
        logger.warning(
            "Telegram init data rejected",
            extra={
                "reason": str(e),
                "action": "telegram_auth_failed",
                "component": "TelegramInitDataAuthentication",
                "severity": "medium",
            },
        )
        raise exceptions.AuthenticationFailed("Invalid Telegram init data.")
