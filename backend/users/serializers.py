"""
Serializers for Telegram authentication and the user profile.
"""

import logging

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .authentication import authenticate_init_data
from .services import get_or_create_telegram_user

logger = logging.getLogger(__name__)
User = get_user_model()


class UserProfileSerializer(serializers.ModelSerializer):
    """Public profile of a user as shown to the user and to co-members."""

    name = serializers.CharField(source="public_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "telegram_id", "name", "username", "avatar_url"]
        read_only_fields = fields


class TelegramAuthSerializer(serializers.Serializer):
    """
    Exchange signed Telegram init data for a local account.

    ``validate`` verifies the signature and provisions the user; the
    resulting instance is exposed as ``validated_data["user"]``.
    """

    init_data = serializers.CharField(
        help_text="Raw Telegram.WebApp.initData query string"
    )

    def validate(self, attrs):
        user_payload = authenticate_init_data(attrs["init_data"])
        user, created = get_or_create_telegram_user(user_payload)
        if not user.is_active:
            raise serializers.ValidationError("User account is disabled.")
        attrs["user"] = user
        attrs["created"] = created
        return attrs
