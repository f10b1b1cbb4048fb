"""
Contact services for submission intake and new-field notifications.
"""
import logging

from django.db import transaction
from django.utils import timezone

from .field_detection import sample_submissions
from .models import ContactSubmission, FieldNotification, SYSTEM_FIELDS

logger = logging.getLogger(__name__)


class FieldNotificationService:
    """Track keys that appear in a webform for the first time."""

    @staticmethod
    def known_fields(webform_id):
        """Non-system keys seen in the form's recent submissions."""
        known = set()
        for submission in sample_submissions(webform_id=webform_id):
            known.update(submission.data_fields())
        return known

    @classmethod
    def detect_new_fields(cls, webform_id, payload):
        """
        Keys of ``payload`` the form has not received before.

        Must run before the submission is stored. A form without prior
        submissions has nothing to compare against, so nothing is new.
        """
        if not webform_id:
            return []
        if not ContactSubmission.objects.filter(webform_id=webform_id).exists():
            return []

        known = cls.known_fields(webform_id)
        return [key for key in payload if key not in SYSTEM_FIELDS and key not in known]

    @staticmethod
    def record_new_fields(webform_id, new_fields):
        """Merge ``new_fields`` into the form's notification and extend its expiry."""
        if not webform_id or not new_fields:
            return None

        now = timezone.now()
        with transaction.atomic():
            notification, created = (
                FieldNotification.objects
                .select_for_update()
                .get_or_create(
                    webform_id=webform_id,
                    defaults={'new_fields': list(new_fields), 'expires_at': now + FieldNotification.ttl()},
                )
            )
            if not created:
                current = [] if notification.is_expired else list(notification.new_fields)
                notification.new_fields = current + [key for key in new_fields if key not in current]
                notification.expires_at = now + FieldNotification.ttl()
                notification.save(update_fields=['new_fields', 'expires_at', 'updated_at'])

        logger.info(f"New fields detected in webform {webform_id}: {', '.join(new_fields)}")
        return notification

    @staticmethod
    def get_new_fields(webform_id):
        """Unexpired new keys for a form."""
        notification = FieldNotification.objects.active().filter(webform_id=webform_id).first()
        return list(notification.new_fields) if notification else []

    @staticmethod
    def clear_new_fields(webform_id):
        """Drop the form's notification. Returns True when one existed."""
        deleted, _ = FieldNotification.objects.filter(webform_id=webform_id).delete()
        return deleted > 0


class SubmissionIntakeService:
    """Store public form submissions."""

    @staticmethod
    def build_submission(category, payload, ip_address=None):
        """Unsaved submission with identifiers lifted from the payload."""
        return ContactSubmission(
            category=category,
            webform_id=payload.get('webform_id'),
            submission_form=payload.get('submission_form'),
            station=payload.get('station') or category,
            data=payload,
            field_order=list(payload.keys()),
            ip_address=ip_address,
        )

    @classmethod
    def submit(cls, category, payload, ip_address=None):
        """
        Persist a submission and flag keys the form has never seen.

        Returns ``(submission, new_fields)``.
        """
        submission = cls.build_submission(category, payload, ip_address)

        # Compared against history, so detect before the row exists
        new_fields = FieldNotificationService.detect_new_fields(submission.webform_id, payload)

        with transaction.atomic():
            submission.save()
            if new_fields:
                FieldNotificationService.record_new_fields(submission.webform_id, new_fields)

        logger.info(
            f"Contact submission #{submission.pk} stored for {category} "
            f"(webform {submission.webform_id or '-'})"
        )
        return submission, new_fields
