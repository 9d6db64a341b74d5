"""
Database models for the household budget ledger.

This module defines shared spaces and their memberships, per-user settings,
categories and ledger transactions. Business rules that span several rows
(role changes, recurrence expansion, aggregation) live in the service layer.
"""

import logging
import secrets

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

# Get structured logger for this module
logger = logging.getLogger(__name__)


def generate_invite_token():
    """URL-safe random token used in invite links."""
    return secrets.token_urlsafe(16)


# -------------------------------------------------------------------
# SPACE & MEMBERSHIP
# -------------------------------------------------------------------
# A space is the shared ledger of one household


class Space(models.Model):
    """
    Shared ledger owned by one user and joined by others via an invite link.

    Spaces are never deleted by the application; ``clear`` wipes their
    transactions and categories instead.
    """

    name = models.CharField(max_length=100)
    invite_token = models.CharField(
        max_length=64, unique=True, default=generate_invite_token
    )
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="SpaceMembership",
        related_name="spaces",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name

    @property
    def member_count(self):
        return self.memberships.count()


class SpaceMembership(models.Model):
    """
    Role of one user inside one space.

    ``owner`` manages members, ``member_full`` edits every row of the space,
    ``member_own`` reads everything but edits only rows they added.
    """

    ROLE_OWNER = "owner"
    ROLE_MEMBER_FULL = "member_full"
    ROLE_MEMBER_OWN = "member_own"

    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_MEMBER_FULL, "Full member"),
        (ROLE_MEMBER_OWN, "Own-rows member"),
    ]
    ASSIGNABLE_ROLES = [ROLE_MEMBER_FULL, ROLE_MEMBER_OWN]

    space = models.ForeignKey(
        Space, on_delete=models.CASCADE, related_name="memberships"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="space_memberships",
    )
    role = models.CharField(
        max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER_FULL
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ["space", "user"]
        ordering = ["joined_at", "id"]
        indexes = [
            models.Index(fields=["user", "role"], name="budget_spac_user_id_3f0a7d_idx"),
            models.Index(fields=["space", "role"], name="budget_spac_space_i_8b2c41_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["space"],
                condition=models.Q(role="owner"),
                name="unique_owner_per_space",
            )
        ]

    def __str__(self):
        return f"{self.user} in {self.space.name} as {self.role}"

    @property
    def is_owner(self):
        return self.role == self.ROLE_OWNER

    @property
    def can_edit_all(self):
        """Owners and full members may modify rows authored by others."""
        return self.role in (self.ROLE_OWNER, self.ROLE_MEMBER_FULL)


# -------------------------------------------------------------------
# USER SETTINGS
# -------------------------------------------------------------------


class UserSettings(models.Model):
    """
    Per-user preferences, created automatically with the user.

    ``active_space`` is the space the client opens by default; it is set on
    first resolution, on join and on explicit selection.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="settings"
    )
    active_space = models.ForeignKey(
        Space,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        verbose_name_plural = "User settings"

    def __str__(self):
        return f"{self.user} settings"


# -------------------------------------------------------------------
# CATEGORIES
# -------------------------------------------------------------------


class TransactionType(models.TextChoices):
    INCOME = "INCOME", "Income"
    EXPENSE = "EXPENSE", "Expense"


class Category(models.Model):
    """
    Named, colored label for transactions of one type inside a space.

    Names are not unique: the store never deduplicates direct creation.
    """

    space = models.ForeignKey(
        Space, on_delete=models.CASCADE, related_name="categories"
    )
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=10, choices=TransactionType.choices)
    color = models.CharField(max_length=7)
    icon = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name", "id"]
        verbose_name_plural = "Categories"
        indexes = [
            models.Index(fields=["space", "type"], name="budget_cate_space_i_5c1e2b_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"


# -------------------------------------------------------------------
# TRANSACTIONS
# -------------------------------------------------------------------


class TransactionStatus(models.TextChoices):
    ACTUAL = "ACTUAL", "Actual"
    PLANNED = "PLANNED", "Planned"


class Recurrence(models.TextChoices):
    NONE = "NONE", "None"
    DAILY = "DAILY", "Daily"
    WEEKLY = "WEEKLY", "Weekly"
    MONTHLY = "MONTHLY", "Monthly"
    YEARLY = "YEARLY", "Yearly"


class Transaction(models.Model):
    """
    One ledger row.

    Recurring input is materialized into one row per occurrence, so stored
    rows normally carry ``recurrence=NONE``. Rows written before expansion
    existed may still hold a rule; they are matched on display only.
    """

    space = models.ForeignKey(
        Space, on_delete=models.CASCADE, related_name="transactions"
    )
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="budget_transactions",
    )
    type = models.CharField(max_length=10, choices=TransactionType.choices)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    date = models.DateField()
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    category_name = models.CharField(max_length=100, blank=True)
    status = models.CharField(
        max_length=10,
        choices=TransactionStatus.choices,
        default=TransactionStatus.ACTUAL,
    )
    recurrence = models.CharField(
        max_length=10, choices=Recurrence.choices, default=Recurrence.NONE
    )
    recurrence_end_date = models.DateField(null=True, blank=True)
    include_in_balance = models.BooleanField(default=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date", "id"]
        indexes = [
            models.Index(fields=["space", "date"], name="budget_tran_space_i_1d9e60_idx"),
            models.Index(
                fields=["space", "status", "date"], name="budget_tran_space_i_a47f12_idx"
            ),
            models.Index(
                fields=["space", "added_by"], name="budget_tran_space_i_6e3b95_idx"
            ),
            models.Index(
                fields=["space", "category_name"], name="budget_tran_space_i_c0d8f3_idx"
            ),
        ]

    def __str__(self):
        return f"{self.date} | {self.type} | {self.amount} | {self.category_label}"

    @property
    def category_label(self):
        """Effective category name, read through the FK when one is set."""
        if self.category_id is not None and self.category is not None:
            return self.category.name
        return self.category_name

    @property
    def signed_amount(self):
        return self.amount if self.type == TransactionType.INCOME else -self.amount

    def is_pending_confirmation(self, today):
        """Planned rows whose date has arrived wait for the user to confirm them."""
        return self.status == TransactionStatus.PLANNED and self.date <= today
