"""
Smart Defaults

Chooses which payload fields a dashboard shows before the user saved any
column preference. Resolution order:

1. Per-type override from ``settings.FORM_TYPE_DEFAULTS``
2. First keys of the form's most recent submission
3. Keys present in most submissions of the same type and station
4. A static fallback
"""
from collections import Counter
from typing import List, Optional

from django.conf import settings

from .models import ContactSubmission

FALLBACK_FIELDS = ['fname', 'lname', 'email', 'message_long']

FORM_FIELD_LIMIT = 4
TYPE_FIELD_LIMIT = 8
FREQUENCY_THRESHOLD = 0.8

VIEW_TYPES = ('list', 'detail')


def get_configured_defaults(submission_form: Optional[str], view_type: str = 'list') -> Optional[List[str]]:
    """Configured field list for a form type and view, if any."""
    if not submission_form:
        return None

    config = getattr(settings, 'FORM_TYPE_DEFAULTS', {}).get(submission_form)
    if not config:
        return None

    fields = config.get(f'{view_type}_view')
    return list(fields) if fields else None


def get_frequent_fields(submission_form: str, station: str) -> List[str]:
    """
    Keys found in at least 80% of the sampled submissions of a type at a
    station, most frequent first. Submissions without data are not counted.
    """
    sample_size = getattr(settings, 'FIELD_SAMPLE_SIZE', 100)
    submissions = (
        ContactSubmission.objects
        .filter(submission_form=submission_form, station=station)
        .order_by('-created_at')[:sample_size]
    )

    counts = Counter()
    sampled = 0
    for submission in submissions:
        if not submission.ordered_data:
            continue
        sampled += 1
        counts.update(submission.data_fields())

    if not sampled:
        return []

    threshold = sampled * FREQUENCY_THRESHOLD
    # Counter.most_common keeps first-seen order for equal counts
    frequent = [key for key, count in counts.most_common() if count >= threshold]
    return frequent[:TYPE_FIELD_LIMIT]


def get_defaults_for_type(
    submission_form: Optional[str],
    view_type: str = 'list',
    station: Optional[str] = None,
) -> List[str]:
    """Type level defaults: config, then frequency analysis, then fallback."""
    configured = get_configured_defaults(submission_form, view_type)
    if configured:
        return configured

    if submission_form and station:
        frequent = get_frequent_fields(submission_form, station)
        if frequent:
            return frequent

    return get_configured_defaults('default', view_type) or list(FALLBACK_FIELDS)


def get_defaults_for_form(
    webform_id: str,
    submission_form: Optional[str] = None,
    station: Optional[str] = None,
    view_type: str = 'list',
) -> List[str]:
    """
    Default visible fields for one webform.

    A type override wins; otherwise the layout of the form's latest
    submission is used, falling back to the type level when the form has
    no data yet.
    """
    if view_type not in VIEW_TYPES:
        raise ValueError(f"Unknown view type: {view_type}")

    configured = get_configured_defaults(submission_form, view_type)
    if configured:
        return configured

    # Without a webform id there is no form layout, only the type level
    if webform_id:
        sample_size = getattr(settings, 'FIELD_SAMPLE_SIZE', 100)
        recent = (
            ContactSubmission.objects
            .filter(webform_id=webform_id)
            .order_by('-created_at')[:sample_size]
        )
        for submission in recent:
            fields = submission.data_fields()
            if fields:
                return fields[:FORM_FIELD_LIMIT]

    return get_defaults_for_type(submission_form, view_type, station)
