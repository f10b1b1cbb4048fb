"""
Preference scope hierarchy.

A category such as ``"rpr1:survey:form123"`` expands to the scopes it
inherits from, most specific first::

    ["rpr1:survey:form123", "rpr1:survey", "rpr1", None]

``None`` is the global scope.
"""
from typing import List, Optional

from django.db.models import Q

from .models import UserTablePreference

GLOBAL_LEVEL = 'global'
DEFAULT_PREFERENCE_NAME = 'list-view-columns'


def category_levels(category: Optional[str]) -> List[Optional[str]]:
    """Scopes to check for ``category``, most specific first, ending with global."""
    if not category:
        return [None]

    parts = category.split(':')
    levels = [category]
    # Anything below the form level is kept whole in the first entry
    if len(parts) >= 3:
        levels.append(f'{parts[0]}:{parts[1]}')
    if len(parts) >= 2:
        levels.append(parts[0])
    levels.append(None)
    return levels


def hierarchy_q(category: Optional[str]) -> Q:
    """Rows of ``category``, its broader scopes and the global scope."""
    ancestors = [level for level in category_levels(category) if level is not None]
    return Q(category__in=ancestors) | Q(category__isnull=True)


def _at_level(queryset, level):
    if level is None:
        return queryset.filter(category__isnull=True)
    return queryset.filter(category=level)


def resolve_inherited_preference(user, category, preference_name=DEFAULT_PREFERENCE_NAME):
    """
    Preference that applies to ``category``.

    Walks from the most specific scope to global and returns the first one
    marked default; when no scope has a default, the newest preference of
    the most specific scope that has one. Returns ``(preference, level)``
    where level is the matching category or ``"global"``, or
    ``(None, None)`` when nothing applies.
    """
    if not category:
        return None, None

    levels = category_levels(category)
    queryset = UserTablePreference.objects.filter(user=user, preference_name=preference_name)

    for level in levels:
        preference = _at_level(queryset, level).filter(is_default=True).order_by('-created_at').first()
        if preference is not None:
            return preference, level or GLOBAL_LEVEL

    for level in levels:
        preference = _at_level(queryset, level).order_by('-created_at', '-id').first()
        if preference is not None:
            return preference, level or GLOBAL_LEVEL

    return None, None
