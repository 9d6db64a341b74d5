"""
User model for the Household Budget application.

Accounts are provisioned from the Telegram Mini App identity on first
successful authentication; there is no password or e-mail sign-up flow.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Custom user model extending Django's AbstractUser.

    ``telegram_id`` is the opaque provider identifier; ``display_name`` is what
    other members of a shared space see next to the transactions this user
    adds.
    """

    telegram_id = models.BigIntegerField(
        unique=True,
        null=True,
        blank=True,
        help_text="Telegram user id, set for accounts created via the Mini App",
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Human readable name shown to other space members",
    )
    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Profile photo URL supplied by Telegram",
    )

    @property
    def public_name(self):
        """Name shown in member lists and transaction authorship."""
        return self.display_name or self.first_name or self.username

    def __str__(self):
        return self.public_name or f"User {self.id}"
