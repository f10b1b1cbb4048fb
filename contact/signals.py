"""
Contact Submission Signals

Django signals for submission lifecycle events.
"""
import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import ContactSubmission, FieldNotification

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=ContactSubmission)
def contact_submission_post_delete(sender, instance, **kwargs):
    """
    Drop the new-field notification of a form whose last submission was
    deleted, since there is nothing left to show it on.
    """
    webform_id = instance.webform_id
    if not webform_id:
        return

    if not ContactSubmission.objects.filter(webform_id=webform_id).exists():
        deleted, _ = FieldNotification.objects.filter(webform_id=webform_id).delete()
        if deleted:
            logger.info(f"Cleared field notification of emptied webform {webform_id}")
