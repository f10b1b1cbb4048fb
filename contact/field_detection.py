"""
Field Detection Service

Infers which fields a form collects by sampling stored payloads. Nothing is
cached: every call scans the latest submissions in scope, so a field added
to a form shows up on the next request.

Scope priority:
1. Form level (webform_id) - only THIS form's fields
2. Type level (submission_form + station)
3. Station level (station)
"""
import re
from typing import Dict, Iterable, List, Optional

from django.conf import settings

from .models import ContactSubmission, SYSTEM_FIELDS

ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}')

FIELD_LABELS = {
    'fname': 'First Name',
    'lname': 'Last Name',
    'first_name': 'First Name',
    'last_name': 'Last Name',
    'name': 'Name',
    'email': 'Email',
    'email_address': 'Email Address',
    'phone': 'Phone',
    'message_long': 'Message (Long)',
    'message_short': 'Message (Short)',
    'message': 'Message',
    'description': 'Description',
    'city': 'City',
    'zip': 'ZIP Code',
    'zip_code': 'ZIP Code',
    'postal_code': 'Postal Code',
    'plz': 'PLZ',
    'gender': 'Gender',
    'age': 'Age',
    'birth_year': 'Birth Year',
    'birthday': 'Birthday',
    'bday': 'Birthday',
}


def detect_field_type(value) -> str:
    """Primitive type of a payload value as shown in the dashboard."""
    if isinstance(value, str):
        return 'date' if ISO_DATE_PATTERN.match(value) else 'string'
    # bool is a subclass of int
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        return 'float'
    if isinstance(value, (list, dict)):
        return 'object'
    return 'string'


def get_field_label(key: str) -> str:
    """Human readable label for a payload key."""
    if key in FIELD_LABELS:
        return FIELD_LABELS[key]

    words = re.sub(r'(?<=[a-z0-9])(?=[A-Z])', ' ', key)
    words = re.sub(r'[_\-]+', ' ', words)
    return ' '.join(word[:1].upper() + word[1:] for word in words.split())


def infer_fields(payloads: Iterable[dict]) -> List[Dict[str, str]]:
    """
    Collect ``{key, type, label}`` for every non-system key in ``payloads``.

    The type of a key is taken from the first payload it appears in. The
    result is sorted by label.
    """
    field_types = {}

    for data in payloads:
        if not isinstance(data, dict):
            continue
        for key, value in data.items():
            if key in SYSTEM_FIELDS or key in field_types:
                continue
            field_types[key] = detect_field_type(value)

    fields = [
        {'key': key, 'type': field_type, 'label': get_field_label(key)}
        for key, field_type in field_types.items()
    ]
    return sorted(fields, key=lambda field: field['label'])


def sample_submissions(
    webform_id: Optional[str] = None,
    submission_form: Optional[str] = None,
    station: Optional[str] = None,
):
    """
    Latest submissions for the most specific scope given, or None when no
    scope was given.
    """
    queryset = ContactSubmission.objects.all()

    if webform_id:
        queryset = queryset.filter(webform_id=webform_id)
    elif submission_form and station:
        queryset = queryset.filter(submission_form=submission_form, station=station)
    elif station:
        queryset = queryset.filter(station=station)
    else:
        return None

    sample_size = getattr(settings, 'FIELD_SAMPLE_SIZE', 100)
    return queryset.order_by('-created_at')[:sample_size]


def detect_available_fields(
    webform_id: Optional[str] = None,
    submission_form: Optional[str] = None,
    station: Optional[str] = None,
) -> List[Dict[str, str]]:
    """
    Fields available at the most specific scope given.

    Returns an empty list when no scope is given or nothing was submitted.
    """
    submissions = sample_submissions(webform_id, submission_form, station)
    if submissions is None:
        return []

    return infer_fields(submission.ordered_data for submission in submissions)
