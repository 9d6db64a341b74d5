"""
Test factories for the budget ledger models.
"""

from datetime import date

import factory
from django.contrib.auth import get_user_model
from factory.django import DjangoModelFactory
from faker import Faker

from budget.models import (Category, Recurrence, Space, SpaceMembership,
                           Transaction, TransactionStatus, TransactionType)

fake = Faker()
User = get_user_model()


class UserFactory(DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"tg_{100000 + n}")
    telegram_id = factory.Sequence(lambda n: 100000 + n)
    first_name = factory.LazyAttribute(lambda _: fake.first_name())
    last_name = factory.LazyAttribute(lambda _: fake.last_name())
    display_name = factory.LazyAttribute(lambda o: f"{o.first_name} {o.last_name}")
    is_active = True

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Telegram users never log in with a password."""
        manager = cls._get_manager(model_class)
        return manager.create_user(*args, password=None, **kwargs)


class SpaceFactory(DjangoModelFactory):
    class Meta:
        model = Space
        skip_postgeneration_save = True

    name = factory.Sequence(lambda n: f"Household {n}")

    @factory.post_generation
    def owner(self, create, extracted, **kwargs):
        """``SpaceFactory(owner=user)`` adds the owner membership."""
        if create and extracted:
            SpaceMembershipFactory(
                space=self, user=extracted, role=SpaceMembership.ROLE_OWNER
            )


class SpaceMembershipFactory(DjangoModelFactory):
    class Meta:
        model = SpaceMembership

    space = factory.SubFactory(SpaceFactory)
    user = factory.SubFactory(UserFactory)
    role = SpaceMembership.ROLE_MEMBER_FULL


class CategoryFactory(DjangoModelFactory):
    class Meta:
        model = Category

    space = factory.SubFactory(SpaceFactory)
    name = factory.Sequence(lambda n: f"Category {n}")
    type = TransactionType.EXPENSE
    color = "#3B82F6"


class TransactionFactory(DjangoModelFactory):
    class Meta:
        model = Transaction

    space = factory.SubFactory(SpaceFactory)
    added_by = factory.SubFactory(UserFactory)
    type = TransactionType.EXPENSE
    amount = factory.LazyAttribute(
        lambda _: fake.pydecimal(left_digits=3, right_digits=2, positive=True, min_value=1)
    )
    date = factory.LazyFunction(lambda: date(2024, 3, 10))
    category = factory.SubFactory(
        CategoryFactory,
        space=factory.SelfAttribute("..space"),
        type=factory.SelfAttribute("..type"),
    )
    status = TransactionStatus.ACTUAL
    recurrence = Recurrence.NONE
    include_in_balance = True
    description = factory.LazyAttribute(lambda _: fake.sentence(nb_words=4))
