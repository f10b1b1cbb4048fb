"""
Table Preference Serializers
"""
from rest_framework import serializers

from .models import UserTablePreference


class UserTablePreferenceSerializer(serializers.ModelSerializer):
    """Read representation of a preference."""

    class Meta:
        model = UserTablePreference
        fields = [
            'id',
            'category',
            'preference_name',
            'visible_columns',
            'sort_config',
            'saved_filters',
            'is_default',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PreferenceWriteSerializer(serializers.Serializer):
    """Validates preference saves."""

    category = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    preference_name = serializers.CharField(max_length=255)
    visible_columns = serializers.ListField(required=False, allow_null=True)
    sort_config = serializers.DictField(required=False, allow_null=True)
    saved_filters = serializers.DictField(required=False, allow_null=True)
    is_default = serializers.BooleanField(required=False, allow_null=True)

    def validate_category(self, value):
        return value.strip() or None if value else None


class PreferenceUpdateSerializer(PreferenceWriteSerializer):
    """Validates preference updates; the category cannot change."""

    category = None
    preference_name = serializers.CharField(max_length=255, required=False)
