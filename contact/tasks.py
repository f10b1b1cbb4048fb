"""
Contact Maintenance Tasks

Celery tasks for periodic cleanup of contact data.
"""
import logging

from celery import shared_task

from .models import FieldNotification

logger = logging.getLogger(__name__)


@shared_task
def purge_expired_field_notifications():
    """
    Delete new-field notifications past their expiry.

    Readers already ignore expired rows; this only keeps the table small.
    """
    deleted, _ = FieldNotification.objects.expired().delete()
    if deleted:
        logger.info(f"Purged {deleted} expired field notifications")
    return deleted
