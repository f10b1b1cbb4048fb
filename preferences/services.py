"""
Preference services.

Writes keep one default per (user, category): whenever a preference is
saved as default, the user's other preferences in the same category lose
the flag inside the same transaction. Every write locks the owning user
row first, so writes of one user serialize even when the category has no
rows to lock yet.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from .models import UserTablePreference

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('visible_columns', 'sort_config', 'saved_filters', 'is_default')


def _in_category(queryset, category):
    if category is None:
        return queryset.filter(category__isnull=True)
    return queryset.filter(category=category)


def _lock_owner(user):
    get_user_model().objects.select_for_update().get(pk=user.pk)


def _find_preference(user, category, preference_name):
    return _in_category(
        UserTablePreference.objects.filter(user=user, preference_name=preference_name),
        category
    ).first()


def _unset_other_defaults(user, category, keep_id=None):
    others = _in_category(UserTablePreference.objects.filter(user=user, is_default=True), category)
    if keep_id is not None:
        others = others.exclude(pk=keep_id)
    others.update(is_default=False)


class PreferenceService:
    """Create, update and delete table preferences."""

    @staticmethod
    def save_preference(user, preference_name, category=None, **values):
        """
        Update the user's preference for (category, preference_name) or
        create it. Returns ``(preference, created)``.
        """
        values = {key: value for key, value in values.items() if key in EDITABLE_FIELDS and value is not None}
        category = category or None

        with transaction.atomic():
            _lock_owner(user)
            preference = _find_preference(user, category, preference_name)
            created = False

            if values.get('is_default'):
                _unset_other_defaults(user, category, keep_id=preference.pk if preference else None)

            if preference is None:
                try:
                    with transaction.atomic():
                        preference = UserTablePreference.objects.create(
                            user=user,
                            category=category,
                            preference_name=preference_name,
                            **values
                        )
                    created = True
                except IntegrityError:
                    # Row written by a writer that did not take the owner lock
                    logger.warning(
                        f"Preference '{preference_name}' for {user.email} already exists, updating it"
                    )
                    preference = _find_preference(user, category, preference_name)
                    if preference is None:
                        raise

            if not created:
                for key, value in values.items():
                    setattr(preference, key, value)
                preference.save()

        logger.info(
            f"Preference '{preference_name}' {'created' if created else 'updated'} "
            f"for {user.email} @ {category or 'global'}"
        )
        return preference, created

    @staticmethod
    def update_preference(preference, **values):
        """
        Apply changes to an existing preference.

        Raises ValueError when the new name clashes with another preference
        of the same user and category.
        """
        name = values.pop('preference_name', None)
        values = {key: value for key, value in values.items() if key in EDITABLE_FIELDS and value is not None}

        try:
            with transaction.atomic():
                _lock_owner(preference.user)
                if values.get('is_default'):
                    _unset_other_defaults(preference.user, preference.category, keep_id=preference.pk)

                if name:
                    preference.preference_name = name
                for key, value in values.items():
                    setattr(preference, key, value)
                preference.save()
        except IntegrityError:
            raise ValueError(f"A preference named '{name}' already exists for this category")

        return preference

    @staticmethod
    def delete_preference(preference):
        preference_id = preference.pk
        preference.delete()
        logger.info(f"Preference #{preference_id} deleted")
