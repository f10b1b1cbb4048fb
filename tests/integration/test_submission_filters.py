"""
Integration tests for payload filters on the per-form table.

Every test stores submissions for one webform and queries
GET /forms/<webform_id> with filter parameters.
"""
import math
import pytest
from datetime import date, timedelta

from django.utils import timezone

from contact.query_filters import EARTH_RADIUS_KM, age_to_birth_years, gender_synonyms


pytestmark = pytest.mark.django_db

WEBFORM = 'hoererumfrage'

MANNHEIM = (49.4875, 8.4660)
HEIDELBERG = (49.3988, 8.6724)
BERLIN = (52.5200, 13.4050)


def haversine_km(lat1, lng1, lat2, lng2):
    """Great-circle distance in km, used to cross-check the SQL expression."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(a, 1.0)))


@pytest.fixture
def form_submission(make_submission):
    def _make(created_at=None, **data):
        payload = {'webform_id': WEBFORM, 'submission_form': 'survey'}
        payload.update(data)
        return make_submission(payload, category='bigfm', created_at=created_at)
    return _make


@pytest.fixture
def query(api_client, staff_user):
    api_client.force_authenticate(user=staff_user)

    def _query(**params):
        response = api_client.get(f'/forms/{WEBFORM}', params)
        assert response.status_code == 200
        return sorted(row['data'].get('tag') for row in response.data['results'])
    return _query


class TestGenderFilter:
    """Gender codes expand to synonyms and match prefixes only."""

    def test_male_synonyms(self, form_submission, query):
        form_submission(tag='a', gender='Male')
        form_submission(tag='b', gender='MALE')
        form_submission(tag='c', gender='m')
        form_submission(tag='d', gender='masculine')
        form_submission(tag='e', sex='male')
        form_submission(tag='f', gender='female')
        form_submission(tag='g', gender='Female')
        form_submission(tag='h', gender='d')
        form_submission(tag='i')

        assert query(gender='m') == ['a', 'b', 'c', 'd', 'e']

    def test_female_synonyms(self, form_submission, query):
        form_submission(tag='a', gender='Male')
        form_submission(tag='b', gender='FEMALE')
        form_submission(tag='c', gender='f')
        form_submission(tag='d', sex='feminine')

        assert query(gender='f') == ['b', 'c', 'd']

    def test_diverse_synonyms(self, form_submission, query):
        form_submission(tag='a', gender='Diverse')
        form_submission(tag='b', gender='other')
        form_submission(tag='c', gender='female')

        assert query(gender='D') == ['a', 'b']

    def test_unknown_code_matches_itself(self, form_submission, query):
        form_submission(tag='a', gender='nonbinary')
        form_submission(tag='b', gender='male')

        assert query(gender='nonbinary') == ['a']

    def test_synonym_table(self):
        assert 'masculine' in gender_synonyms('M')
        assert 'female' not in gender_synonyms('m')


class TestAgeFilter:
    """Ages are converted to birth years with the current calendar year."""

    def test_age_min_boundary(self, form_submission, query):
        year = date.today().year
        form_submission(tag='eighteen', birth_year=year - 18)
        form_submission(tag='seventeen', birth_year=year - 17)

        assert query(age_min='18') == ['eighteen']

    def test_age_max_boundary(self, form_submission, query):
        year = date.today().year
        form_submission(tag='thirty', birth_year=year - 30)
        form_submission(tag='thirty-one', birth_year=year - 31)

        assert query(age_max='30') == ['thirty']

    def test_birth_year_keys_and_dates(self, form_submission, query):
        year = date.today().year
        form_submission(tag='int', birth_year=year - 25)
        form_submission(tag='camel', birthYear=str(year - 25))
        form_submission(tag='long', year_of_birth=str(year - 25))
        form_submission(tag='bday', bday=f'{year - 25}-03-14')
        form_submission(tag='birthday', birthday=f'{year - 25}-12-01')
        form_submission(tag='junk', birth_year='unknown')
        form_submission(tag='none')

        assert query(age_min='20', age_max='30') == ['bday', 'birthday', 'camel', 'int', 'long']

    def test_birth_year_range(self, form_submission, query):
        form_submission(tag='1980', birth_year=1980)
        form_submission(tag='1990', bday='1990-01-01')
        form_submission(tag='2000', birth_year='2000')

        assert query(birth_year_min='1985', birth_year_max='1995') == ['1990']

    def test_non_numeric_values_are_ignored(self, form_submission, query):
        form_submission(tag='a', birth_year=1980)
        form_submission(tag='b')

        assert query(age_min='abc', birth_year_max='x') == ['a', 'b']

    def test_zero_bounds_are_ignored(self, form_submission, query):
        year = date.today().year
        form_submission(tag='a', birth_year=year - 40)
        form_submission(tag='b', birth_year=year)
        form_submission(tag='c')

        assert query(age_min='0') == ['a', 'b', 'c']
        assert query(age_max='0') == ['a', 'b', 'c']
        assert query(birth_year_min='0', birth_year_max='0') == ['a', 'b', 'c']

    def test_age_to_birth_years(self):
        assert age_to_birth_years(age_min=18, age_max=30, today=date(2025, 6, 1)) == (1995, 2007)
        assert age_to_birth_years(today=date(2025, 6, 1)) == (None, None)


class TestTextFilters:
    """Search, zip code and city filters check several keys."""

    def test_search_common_fields_case_insensitive(self, form_submission, query):
        form_submission(tag='a', fname='Anna')
        form_submission(tag='b', email='ANNA@example.com')
        form_submission(tag='c', fname='Bert')

        assert query(search='anna') == ['a', 'b']

    def test_search_falls_back_to_whole_payload(self, form_submission, query):
        form_submission(tag='a', hobby='Skateboarding')
        form_submission(tag='b', hobby='Chess')

        assert query(search='skate') == ['a']

    def test_zip_code_synonyms(self, form_submission, query):
        form_submission(tag='a', zip='68159')
        form_submission(tag='b', plz='68161')
        form_submission(tag='c', postal_code='69117')
        form_submission(tag='d', zip_code='68199')

        assert query(zip_code='681') == ['a', 'b', 'd']

    def test_city_synonyms(self, form_submission, query):
        form_submission(tag='a', city='Mannheim')
        form_submission(tag='b', place='mannheim')
        form_submission(tag='c', location='Mannheim-Neckarau')
        form_submission(tag='d', city='Heidelberg')

        assert query(city='Mannheim') == ['a', 'b', 'c']


class TestRadiusFilter:
    """Radius uses great-circle distance on latitude/longitude keys."""

    def test_radius(self, form_submission, query):
        form_submission(tag='mannheim', latitude=MANNHEIM[0], longitude=MANNHEIM[1])
        form_submission(tag='heidelberg', latitude=str(HEIDELBERG[0]), longitude=str(HEIDELBERG[1]))
        form_submission(tag='berlin', latitude=BERLIN[0], longitude=BERLIN[1])
        form_submission(tag='no-coordinates', city='Mannheim')
        form_submission(tag='malformed', latitude='north', longitude='east')

        result = query(radius='25', radius_lat=str(MANNHEIM[0]), radius_lng=str(MANNHEIM[1]))

        assert result == ['heidelberg', 'mannheim']

    def test_distance_sanity(self):
        assert 15 < haversine_km(*MANNHEIM, *HEIDELBERG) < 20
        assert haversine_km(*MANNHEIM, *BERLIN) > 400

    def test_incomplete_radius_is_ignored(self, form_submission, query):
        form_submission(tag='berlin', latitude=BERLIN[0], longitude=BERLIN[1])
        form_submission(tag='none')

        assert query(radius='25', radius_lat=str(MANNHEIM[0])) == ['berlin', 'none']


class TestDateAndStatusFilters:
    """Creation date bounds and per-user read state."""

    def test_date_range_is_inclusive(self, form_submission, query):
        now = timezone.now()
        form_submission(tag='old', created_at=now - timedelta(days=10))
        form_submission(tag='recent', created_at=now - timedelta(days=2))
        form_submission(tag='today', created_at=now)

        today = timezone.localdate()
        date_from = (today - timedelta(days=5)).isoformat()

        assert query(date_from=date_from) == ['recent', 'today']
        assert query(date_to=(today - timedelta(days=2)).isoformat()) == ['old', 'recent']
        assert query(date_from='not-a-date') == ['old', 'recent', 'today']

    def test_status(self, form_submission, query, staff_user, admin_user):
        read = form_submission(tag='read')
        other = form_submission(tag='read-by-other')
        form_submission(tag='unread')
        read.mark_as_read_by(staff_user)
        other.mark_as_read_by(admin_user)

        assert query(status='read') == ['read']
        assert query(status='unread') == ['read-by-other', 'unread']
        assert query(status='all') == ['read', 'read-by-other', 'unread']

    def test_groups_are_combined(self, form_submission, query):
        year = date.today().year
        form_submission(tag='match', gender='male', city='Mannheim', birth_year=year - 40)
        form_submission(tag='wrong-city', gender='male', city='Berlin', birth_year=year - 40)
        form_submission(tag='too-young', gender='male', city='Mannheim', birth_year=year - 10)

        assert query(gender='m', city='mannheim', age_min='18') == ['match']
