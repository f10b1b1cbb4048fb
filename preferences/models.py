"""
Table Preference Models
"""
from django.conf import settings
from django.db import models
from django.db.models import Q


class UserTablePreference(models.Model):
    """
    Saved view settings of one user for one scope.

    ``category`` is a colon separated scope such as ``"rpr1:survey:form123"``
    (form), ``"rpr1:survey"`` (type) or ``"rpr1"`` (station). Null means the
    preference applies everywhere.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='table_preferences',
    )

    category = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Scope as station[:type[:form]]; empty for global"
    )

    preference_name = models.CharField(
        max_length=255,
        help_text="Kind of preference, e.g. list-view-columns"
    )

    visible_columns = models.JSONField(default=list, blank=True)
    sort_config = models.JSONField(default=dict, blank=True)
    saved_filters = models.JSONField(default=dict, blank=True)

    is_default = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user_table_preferences'
        ordering = ['-is_default', '-created_at']
        verbose_name = 'Table Preference'
        verbose_name_plural = 'Table Preferences'
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'category', 'preference_name'],
                condition=Q(category__isnull=False),
                name='unique_user_category_preference'
            ),
            # NULL never equals NULL in a plain unique index
            models.UniqueConstraint(
                fields=['user', 'preference_name'],
                condition=Q(category__isnull=True),
                name='unique_user_global_preference'
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'category'], name='idx_pref_user_category'),
        ]

    def __str__(self):
        return f"{self.user} {self.preference_name} @ {self.category or 'global'}"
