"""
Contact Submission Serializers

Serializers for public intake and the staff dashboard.
"""
from rest_framework import serializers

from .models import ContactSubmission, ContactRead, SYSTEM_FIELDS


class ContactPayloadSerializer(serializers.Serializer):
    """
    Validates a public form payload.

    Any JSON object is accepted; only the system keys are checked because
    they are copied into indexed columns.
    """

    webform_id = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    submission_form = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)
    station = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    category = serializers.CharField(max_length=20, required=False, allow_null=True, allow_blank=True)

    def validate(self, attrs):
        """Reject system keys that are not strings instead of coercing them."""
        errors = {}
        for key in SYSTEM_FIELDS:
            value = self.initial_data.get(key)
            if value is not None and not isinstance(value, str):
                errors[key] = ['Must be a string.']
        if errors:
            raise serializers.ValidationError(errors)
        return attrs

    @property
    def payload(self):
        """The submitted object, untouched."""
        return dict(self.initial_data)


class ContactReadSerializer(serializers.ModelSerializer):
    """Who read a submission and when."""

    user_id = serializers.UUIDField(source='user.id', read_only=True)
    user_name = serializers.CharField(source='user.get_full_name', read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = ContactRead
        fields = ['id', 'user_id', 'user_name', 'user_email', 'read_at']
        read_only_fields = fields


class ContactSubmissionListSerializer(serializers.ModelSerializer):
    """Submission row for dashboard tables."""

    category_display = serializers.CharField(source='get_category_display', read_only=True)
    data = serializers.SerializerMethodField()
    is_read = serializers.SerializerMethodField()

    class Meta:
        model = ContactSubmission
        fields = [
            'id',
            'category',
            'category_display',
            'webform_id',
            'submission_form',
            'station',
            'data',
            'is_read',
            'created_at',
        ]
        read_only_fields = fields

    def get_data(self, obj):
        return obj.ordered_data

    def get_is_read(self, obj):
        # Annotated by the list views
        if hasattr(obj, 'is_read'):
            return obj.is_read

        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return False
        return obj.is_read_by(request.user)


class ContactSubmissionDetailSerializer(ContactSubmissionListSerializer):
    """Full submission including read history."""

    reads = ContactReadSerializer(many=True, read_only=True)

    class Meta(ContactSubmissionListSerializer.Meta):
        fields = ContactSubmissionListSerializer.Meta.fields + [
            'field_order',
            'ip_address',
            'reads',
            'updated_at',
        ]
        read_only_fields = fields
