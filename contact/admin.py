"""
Contact Submissions Django Admin Configuration
"""
import json

from django.contrib import admin
from django.utils.html import format_html

from .models import ContactRead, ContactSubmission, FieldNotification


class ContactReadInline(admin.TabularInline):
    """Read marks shown on the submission page."""
    model = ContactRead
    extra = 0
    fields = ['user', 'read_at']
    readonly_fields = ['user', 'read_at']
    can_delete = True


@admin.register(ContactSubmission)
class ContactSubmissionAdmin(admin.ModelAdmin):
    """Admin interface for stored form submissions."""

    list_display = [
        'id', 'category', 'station', 'submission_form', 'webform_id',
        'created_at', 'read_count'
    ]

    list_filter = ['category', 'submission_form', 'created_at']

    search_fields = ['webform_id', 'submission_form', 'station']

    readonly_fields = [
        'id', 'category', 'webform_id', 'submission_form', 'station',
        'payload_display', 'ip_address', 'created_at', 'updated_at'
    ]

    fieldsets = (
        ('Origin', {
            'fields': ('id', 'category', 'station', 'submission_form', 'webform_id')
        }),
        ('Payload', {
            'fields': ('payload_display',)
        }),
        ('Tracking', {
            'fields': ('ip_address', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    inlines = [ContactReadInline]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('reads')

    def has_add_permission(self, request):
        # Submissions only come in through the public endpoint
        return False

    def read_count(self, obj):
        """Number of users who read the submission."""
        return len(obj.reads.all())
    read_count.short_description = 'Reads'

    def payload_display(self, obj):
        """Payload as formatted JSON in submission order."""
        return format_html(
            '<pre>{}</pre>',
            json.dumps(obj.ordered_data, indent=2, ensure_ascii=False)
        )
    payload_display.short_description = 'Payload'


@admin.register(FieldNotification)
class FieldNotificationAdmin(admin.ModelAdmin):
    """Admin interface for new-field notifications."""

    list_display = ['webform_id', 'new_fields', 'expires_at', 'is_active']
    search_fields = ['webform_id']
    readonly_fields = ['created_at', 'updated_at']

    def is_active(self, obj):
        return not obj.is_expired
    is_active.boolean = True
    is_active.short_description = 'Active'
