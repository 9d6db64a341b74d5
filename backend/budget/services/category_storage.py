"""
How transactions reference their category.

Two layouts are supported and selected with ``BUDGET_CATEGORY_STORAGE``:

* ``fk``: rows point at the Category; the name is read through the join, so
  renaming a category renames every row at once.
* ``name``: rows carry a copy of the category name; renaming cascades an
  update over rows holding the old name.

Both keep the same observable behaviour: after a rename no row reads the old
name, and deleting a category leaves its rows labelled with the last name.
"""

import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db.models import Q

from ..models import Transaction

logger = logging.getLogger(__name__)


class CategoryStorage:
    key = None

    def assign(self, instance, category):
        """Point a (possibly unsaved) transaction at ``category``."""
        raise NotImplementedError

    def rename(self, category, old_name, new_name) -> int:
        """Propagate a rename to transactions; returns the rows touched."""
        raise NotImplementedError

    def detach(self, category) -> int:
        """Prepare transactions for the deletion of ``category``."""
        raise NotImplementedError

    def label_filter(self, value) -> Q:
        """Case-insensitive substring match on the effective category name."""
        return Q(category__name__icontains=value) | Q(
            category__isnull=True, category_name__icontains=value
        )


class ForeignKeyCategoryStorage(CategoryStorage):
    key = "fk"

    def assign(self, instance, category):
        instance.category = category
        instance.category_name = ""

    def rename(self, category, old_name, new_name):
        # Linked rows read the new name through the join; only rows that
        # lost their link still carry the old name as text
        return Transaction.objects.filter(
            space_id=category.space_id, category__isnull=True, category_name=old_name
        ).update(category_name=new_name)

    def detach(self, category):
        return Transaction.objects.filter(category=category).update(
            category=None, category_name=category.name
        )


class NameCategoryStorage(CategoryStorage):
    key = "name"

    def assign(self, instance, category):
        instance.category = None
        instance.category_name = category.name

    def rename(self, category, old_name, new_name):
        return Transaction.objects.filter(
            space_id=category.space_id, category_name=old_name
        ).update(category_name=new_name)

    def detach(self, category):
        # Rows keep their copied name
        return 0


STORAGES = {
    ForeignKeyCategoryStorage.key: ForeignKeyCategoryStorage,
    NameCategoryStorage.key: NameCategoryStorage,
}


def get_category_storage() -> CategoryStorage:
    """Storage strategy configured for this deployment."""
    key = getattr(settings, "BUDGET_CATEGORY_STORAGE", ForeignKeyCategoryStorage.key)
    try:
        return STORAGES[key]()
    except KeyError:
        raise ImproperlyConfigured(
            f"BUDGET_CATEGORY_STORAGE must be one of {sorted(STORAGES)}, got {key!r}"
        )
