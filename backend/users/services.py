"""
User provisioning for Telegram-authenticated requests.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

logger = logging.getLogger(__name__)
User = get_user_model()


def display_name_from_payload(payload):
    """First and last name joined, falling back to the Telegram username."""
    name = " ".join(
        part for part in (payload.get("first_name"), payload.get("last_name")) if part
    ).strip()
    return name or payload.get("username") or f"User {payload['id']}"


@transaction.atomic
def get_or_create_telegram_user(payload):
    """
    Return the user bound to a verified Telegram user payload.

    A first login creates the account; later logins refresh the display name
    and avatar when Telegram reports new values.

    Args:
        payload (dict): Verified ``user`` object from init data

    Returns:
        tuple: (user, created)
    """
    telegram_id = int(payload["id"])
    display_name = display_name_from_payload(payload)
    avatar_url = payload.get("photo_url") or ""

    user, created = User.objects.select_for_update().get_or_create(
        telegram_id=telegram_id,
        defaults={
            "username": f"tg_{telegram_id}",
            "first_name": (payload.get("first_name") or "")[:150],
            "last_name": (payload.get("last_name") or "")[:150],
            "display_name": display_name[:150],
            "avatar_url": avatar_url,
        },
    )

    if created:
        user.set_unusable_password()
        user.save(update_fields=["password"])
        logger.info(
            "User provisioned from Telegram identity",
            extra={
                "user_id": user.id,
                "telegram_id": telegram_id,
                "action": "telegram_user_created",
                "component": "get_or_create_telegram_user",
            },
        )
        return user, True

    changed_fields = []
    if user.display_name != display_name[:150]:
        user.display_name = display_name[:150]
        changed_fields.append("display_name")
    if user.avatar_url != avatar_url:
        user.avatar_url = avatar_url
        changed_fields.append("avatar_url")
    if changed_fields:
        user.save(update_fields=changed_fields)
        logger.debug(
            "Telegram profile refreshed",
            extra={
                "user_id": user.id,
                "changed_fields": changed_fields,
                "action": "telegram_profile_refreshed",
                "component": "get_or_create_telegram_user",
            },
        )

    return user, False
