"""
Submission Query Filters

Builds ORM predicates over the JSON payload column. Every group checks a
set of synonymous keys (OR) and groups are combined by the caller (AND).
Values are cast only after a regex guard so malformed payloads never
break a query; they simply do not match.
"""
import math
from datetime import date

from django.db.models import Case, Exists, FloatField, IntegerField, OuterRef, Q, TextField, Value, When
from django.db.models.fields.json import KeyTextTransform
from django.db.models.functions import ASin, Cast, Cos, Least, Power, Radians, Sin, Sqrt, Substr

from .models import ContactRead

SEARCH_KEYS = (
    'name', 'fname', 'lname', 'first_name', 'last_name', 'full_name',
    'email', 'description', 'message', 'message_long', 'message_short',
    'phone', 'city', 'zip',
)
ZIP_KEYS = ('zip', 'zip_code', 'postal_code', 'plz')
CITY_KEYS = ('city', 'place', 'location')
GENDER_KEYS = ('gender', 'sex')
BIRTH_YEAR_KEYS = ('birth_year', 'birthYear', 'year_of_birth')
BIRTH_DATE_KEYS = ('bday', 'birthday')

GENDER_SYNONYMS = {
    'm': ['m', 'male', 'M', 'Male', 'MALE', 'masculine'],
    'f': ['f', 'female', 'F', 'Female', 'FEMALE', 'feminine'],
    'd': ['d', 'diverse', 'D', 'Diverse', 'DIVERSE', 'other'],
}

EARTH_RADIUS_KM = 6371.0

YEAR_PATTERN = r'^[0-9]{4}$'
DATE_PATTERN = r'^[0-9]{4}-'
COORDINATE_PATTERN = r'^-?[0-9]+(\.[0-9]+)?$'


def parse_int(value):
    """Integer from a query parameter, or None when it is not numeric."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_float(value):
    """Float from a query parameter, or None when it is not numeric."""
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def any_key_q(keys, lookup, value):
    """OR of ``data__<key>__<lookup>=value`` over ``keys``."""
    query = Q()
    for key in keys:
        query |= Q(**{f'data__{key}__{lookup}': value})
    return query


def search_q(term):
    """Case-insensitive substring match on the common text fields or anywhere in the payload."""
    return any_key_q(SEARCH_KEYS, 'icontains', term) | Q(payload_text__icontains=term)


def payload_text():
    """The whole payload as text, used as the search fallback."""
    return Cast('data', output_field=TextField())


def zip_code_q(value):
    return any_key_q(ZIP_KEYS, 'icontains', value)


def city_q(value):
    return any_key_q(CITY_KEYS, 'icontains', value)


def gender_synonyms(value):
    """Synonyms for a gender code; unknown codes match only themselves."""
    value = value.strip()
    return GENDER_SYNONYMS.get(value.lower(), [value])


def gender_q(value):
    """
    Match ``gender`` or ``sex`` against the synonym set, case-insensitively,
    exactly or at the start of the stored value.
    """
    query = Q()
    # Case-insensitive lookups make the casing variants redundant
    for synonym in dict.fromkeys(s.lower() for s in gender_synonyms(value)):
        query |= any_key_q(GENDER_KEYS, 'iexact', synonym)
        query |= any_key_q(GENDER_KEYS, 'istartswith', synonym)
    return query


def birth_year_expression():
    """
    Birth year of a submission as an integer, or NULL.

    Explicit year keys win over the year part of a birth date.
    """
    whens = [
        When(
            **{f'data__{key}__regex': YEAR_PATTERN},
            then=Cast(KeyTextTransform(key, 'data'), output_field=IntegerField()),
        )
        for key in BIRTH_YEAR_KEYS
    ]
    whens += [
        When(
            **{f'data__{key}__regex': DATE_PATTERN},
            then=Cast(Substr(KeyTextTransform(key, 'data'), 1, 4), output_field=IntegerField()),
        )
        for key in BIRTH_DATE_KEYS
    ]
    return Case(*whens, default=Value(None), output_field=IntegerField())


def age_to_birth_years(age_min=None, age_max=None, today=None):
    """
    Convert an age range into a birth-year range using calendar years.

    ``max_birth_year = year - age_min`` and ``min_birth_year = year - age_max``.
    """
    year = (today or date.today()).year
    min_birth_year = year - age_max if age_max is not None else None
    max_birth_year = year - age_min if age_min is not None else None
    return min_birth_year, max_birth_year


def coordinate_expression(key):
    """Numeric value of a coordinate key, or NULL when missing or malformed."""
    return Case(
        When(
            **{f'data__{key}__regex': COORDINATE_PATTERN},
            then=Cast(KeyTextTransform(key, 'data'), output_field=FloatField()),
        ),
        default=Value(None),
        output_field=FloatField(),
    )


def distance_km_expression(lat, lng):
    """Haversine distance in km from (lat, lng) to the payload coordinates."""
    lat_rad = math.radians(lat)
    lng_rad = math.radians(lng)

    row_lat = Radians(coordinate_expression('latitude'))
    row_lng = Radians(coordinate_expression('longitude'))

    half_dlat = (row_lat - Value(lat_rad)) / Value(2.0)
    half_dlng = (row_lng - Value(lng_rad)) / Value(2.0)

    a = (
        Power(Sin(half_dlat), 2)
        + Cos(row_lat) * Value(math.cos(lat_rad)) * Power(Sin(half_dlng), 2)
    )
    # Rounding can push a slightly above 1 for antipodal points
    return Value(2 * EARTH_RADIUS_KM) * ASin(Sqrt(Least(a, Value(1.0))))


def read_by_user_expression(user):
    """EXISTS subquery telling whether ``user`` has read the outer submission."""
    return Exists(ContactRead.objects.filter(submission=OuterRef('pk'), user=user))
