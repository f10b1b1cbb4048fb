from django.contrib import admin

from .models import UserTablePreference


@admin.register(UserTablePreference)
class UserTablePreferenceAdmin(admin.ModelAdmin):
    """Admin interface for saved table preferences."""

    list_display = ['user', 'preference_name', 'category', 'is_default', 'updated_at']
    list_filter = ['preference_name', 'is_default']
    search_fields = ['user__email', 'user__username', 'category']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['user']
