"""
Authentication views for the Telegram Mini App.
"""

import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .authentication import TelegramInitDataAuthentication
from .serializers import TelegramAuthSerializer, UserProfileSerializer

logger = logging.getLogger(__name__)


class TelegramAuthView(APIView):
    """
    Authenticate with Telegram init data and receive JWT tokens.

    Request body: ``{"init_data": "<Telegram.WebApp.initData>"}``.
    Response: the user profile plus SimpleJWT ``access`` and ``refresh``.
    """

    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get_authenticate_header(self, request):
        # Keeps rejected init data a 401 although no authenticator runs here
        return TelegramInitDataAuthentication.keyword

    def post(self, request):
        serializer = TelegramAuthSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        created = serializer.validated_data["created"]

        refresh = RefreshToken.for_user(user)

        logger.info(
            "Telegram authentication succeeded",
            extra={
                "user_id": user.id,
                "created": created,
                "action": "telegram_auth_success",
                "component": "TelegramAuthView",
            },
        )

        return Response(
            {
                "user": UserProfileSerializer(user).data,
                "created": created,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class CurrentUserView(APIView):
    """Return the profile of the authenticated user."""

    def get(self, request):
        return Response(UserProfileSerializer(request.user).data)
