"""
Submission FilterSet

Turns dashboard query parameters into payload predicates. Unparseable
numbers, dates and coordinates are ignored rather than rejected so a
half-typed filter never breaks the table.
"""
import django_filters
from django.utils.dateparse import parse_date

from . import query_filters as qf
from .models import ContactSubmission

STATUS_CHOICES = ('all', 'read', 'unread')


class ContactSubmissionFilter(django_filters.FilterSet):
    """
    Filters shared by the message list and the per-form table.

    Query Parameters:
    - search: text in the common fields or anywhere in the payload
    - category, station, submission_form: exact match
    - date_from / date_to: creation date bounds, inclusive
    - age_min / age_max, birth_year_min / birth_year_max
    - zip_code, city, gender
    - radius + radius_lat + radius_lng: km around a point
    - status: all, read or unread for the current user
    """

    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.CharFilter(field_name='category')
    station = django_filters.CharFilter(field_name='station')
    submission_form = django_filters.CharFilter(field_name='submission_form')
    date_from = django_filters.CharFilter(method='filter_date_from')
    date_to = django_filters.CharFilter(method='filter_date_to')
    age_min = django_filters.CharFilter(method='filter_age_min')
    age_max = django_filters.CharFilter(method='filter_age_max')
    birth_year_min = django_filters.CharFilter(method='filter_birth_year_min')
    birth_year_max = django_filters.CharFilter(method='filter_birth_year_max')
    zip_code = django_filters.CharFilter(method='filter_zip_code')
    city = django_filters.CharFilter(method='filter_city')
    gender = django_filters.CharFilter(method='filter_gender')
    status = django_filters.CharFilter(method='filter_status')

    class Meta:
        model = ContactSubmission
        fields = []

    def filter_search(self, queryset, name, value):
        term = value.strip()
        if not term:
            return queryset
        return queryset.alias(payload_text=qf.payload_text()).filter(qf.search_q(term))

    def filter_date_from(self, queryset, name, value):
        if day := self._parse_date(value):
            return queryset.filter(created_at__date__gte=day)
        return queryset

    def filter_date_to(self, queryset, name, value):
        if day := self._parse_date(value):
            return queryset.filter(created_at__date__lte=day)
        return queryset

    def filter_age_min(self, queryset, name, value):
        age = qf.parse_int(value)
        if not age:
            return queryset
        _, max_birth_year = qf.age_to_birth_years(age_min=age)
        return self._with_birth_year(queryset).filter(birth_year_value__lte=max_birth_year)

    def filter_age_max(self, queryset, name, value):
        age = qf.parse_int(value)
        if not age:
            return queryset
        min_birth_year, _ = qf.age_to_birth_years(age_max=age)
        return self._with_birth_year(queryset).filter(birth_year_value__gte=min_birth_year)

    def filter_birth_year_min(self, queryset, name, value):
        year = qf.parse_int(value)
        if not year:
            return queryset
        return self._with_birth_year(queryset).filter(birth_year_value__gte=year)

    def filter_birth_year_max(self, queryset, name, value):
        year = qf.parse_int(value)
        if not year:
            return queryset
        return self._with_birth_year(queryset).filter(birth_year_value__lte=year)

    def filter_zip_code(self, queryset, name, value):
        value = value.strip()
        return queryset.filter(qf.zip_code_q(value)) if value else queryset

    def filter_city(self, queryset, name, value):
        value = value.strip()
        return queryset.filter(qf.city_q(value)) if value else queryset

    def filter_gender(self, queryset, name, value):
        value = value.strip()
        return queryset.filter(qf.gender_q(value)) if value else queryset

    def filter_status(self, queryset, name, value):
        value = value.strip().lower()
        user = getattr(self.request, 'user', None)
        if value not in ('read', 'unread') or user is None or not user.is_authenticated:
            return queryset

        is_read = qf.read_by_user_expression(user)
        return queryset.filter(is_read) if value == 'read' else queryset.filter(~is_read)

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        return self._filter_radius(queryset)

    def _filter_radius(self, queryset):
        """Radius needs all three parameters; submissions without coordinates never match."""
        radius = qf.parse_float(self.data.get('radius'))
        lat = qf.parse_float(self.data.get('radius_lat'))
        lng = qf.parse_float(self.data.get('radius_lng'))
        if radius is None or lat is None or lng is None or radius <= 0:
            return queryset

        return queryset.alias(
            distance_km=qf.distance_km_expression(lat, lng)
        ).filter(distance_km__lte=radius)

    @staticmethod
    def _with_birth_year(queryset):
        if 'birth_year_value' in queryset.query.annotations:
            return queryset
        return queryset.alias(birth_year_value=qf.birth_year_expression())

    @staticmethod
    def _parse_date(value):
        try:
            return parse_date(value.strip())
        except ValueError:
            return None
