"""
Django admin configuration for the custom User model.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Default UserAdmin extended with the Telegram profile fields."""

    list_display = ("username", "display_name", "telegram_id", "is_staff")
    search_fields = ("username", "display_name", "telegram_id")

    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Telegram Profile",
            {"fields": ("telegram_id", "display_name", "avatar_url")},
        ),
    )
