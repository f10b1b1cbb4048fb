"""
Contact Submission Models

Database schema for station form submissions, per-user read marks and
new-field notifications.
"""
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


# Payload keys that describe where a submission came from rather than what
# the visitor entered.
SYSTEM_FIELDS = ('webform_id', 'submission_form', 'station', 'category')


class ContactSubmission(models.Model):
    """
    A single public form submission.

    The payload is stored verbatim; no schema is enforced. ``field_order``
    keeps the keys in the order they were received because the JSON column
    does not preserve it.
    """

    CATEGORY_CHOICES = [
        ('bigfm', 'BigFM'),
        ('rpr1', 'RPR1'),
        ('regenbogen', 'Radio Regenbogen'),
        ('rockfm', 'ROCK FM'),
        ('bigkarriere', 'BigKarriere'),
    ]

    category = models.CharField(
        max_length=20,
        choices=CATEGORY_CHOICES,
        db_index=True,
        help_text="Station endpoint the submission was posted to"
    )

    webform_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Identifier of the physical form instance"
    )

    submission_form = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Form type label shared by many webforms"
    )

    station = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        db_index=True,
        help_text="Station label (defaults to the category)"
    )

    data = models.JSONField(
        default=dict,
        help_text="Submitted payload, stored as received"
    )

    field_order = models.JSONField(
        default=list,
        blank=True,
        help_text="Payload keys in submission order"
    )

    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP address of the submitter"
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the submission was received"
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'contact_submissions'
        ordering = ['-created_at']
        verbose_name = 'Contact Submission'
        verbose_name_plural = 'Contact Submissions'
        indexes = [
            # Keep per-form and per-station sorting index-backed
            models.Index(fields=['webform_id', 'created_at'], name='idx_webform_created'),
            models.Index(fields=['station', 'created_at'], name='idx_station_created'),
        ]

    def __str__(self):
        return f"#{self.pk} {self.get_category_display()} ({self.webform_id or 'no form'})"

    @property
    def ordered_data(self):
        """Payload as a dict in submission order; keys missing from field_order go last."""
        data = self.data if isinstance(self.data, dict) else {}
        ordered = {key: data[key] for key in self.field_order or [] if key in data}
        for key, value in data.items():
            ordered.setdefault(key, value)
        return ordered

    def data_fields(self):
        """Non-system payload keys in submission order."""
        return [key for key in self.ordered_data if key not in SYSTEM_FIELDS]

    def is_read_by(self, user):
        return self.reads.filter(user=user).exists()

    def mark_as_read_by(self, user):
        """
        Record that ``user`` has read this submission.

        Idempotent: the unique (submission, user) constraint plus
        get_or_create keep concurrent duplicate requests to one row.
        """
        read, _ = ContactRead.objects.get_or_create(
            submission=self,
            user=user,
            defaults={'read_at': timezone.now()}
        )
        return read


class ContactRead(models.Model):
    """
    Read mark of one submission by one staff user.
    """

    submission = models.ForeignKey(
        ContactSubmission,
        on_delete=models.CASCADE,
        related_name='reads',
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='contact_reads',
    )

    read_at = models.DateTimeField(default=timezone.now, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'contact_reads'
        ordering = ['read_at']
        constraints = [
            models.UniqueConstraint(
                fields=['submission', 'user'],
                name='unique_contact_read_per_user'
            ),
        ]

    def __str__(self):
        return f"{self.user} read #{self.submission_id}"


class FieldNotificationQuerySet(models.QuerySet):

    def active(self):
        return self.filter(expires_at__gt=timezone.now())

    def expired(self):
        return self.filter(expires_at__lte=timezone.now())


class FieldNotification(models.Model):
    """
    Keys that showed up in a webform for the first time.

    Extended on every intake that brings new keys, read by the form views
    and cleared explicitly by the dashboard once acknowledged.
    """

    webform_id = models.CharField(max_length=255, unique=True)

    new_fields = models.JSONField(default=list)

    expires_at = models.DateTimeField(db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = FieldNotificationQuerySet.as_manager()

    class Meta:
        db_table = 'field_notifications'
        verbose_name = 'Field Notification'
        verbose_name_plural = 'Field Notifications'

    def __str__(self):
        return f"{self.webform_id}: {', '.join(self.new_fields)}"

    @property
    def is_expired(self):
        return self.expires_at <= timezone.now()

    @classmethod
    def ttl(cls):
        return timedelta(hours=getattr(settings, 'FIELD_NOTIFICATION_TTL_HOURS', 24))
