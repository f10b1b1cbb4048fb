"""
Tests for Table Preferences
"""
import pytest
from unittest import mock

from rest_framework import status

from preferences.hierarchy import category_levels, resolve_inherited_preference
from preferences.models import UserTablePreference
from preferences import services
from preferences.services import PreferenceService


def make_preference(user, category=None, name='list-view-columns', **extra):
    return UserTablePreference.objects.create(
        user=user, category=category, preference_name=name, **extra
    )


class TestCategoryLevels:
    """Test scope expansion."""

    def test_form_level(self):
        assert category_levels('rpr1:survey:form123') == ['rpr1:survey:form123', 'rpr1:survey', 'rpr1', None]

    def test_type_level(self):
        assert category_levels('rpr1:survey') == ['rpr1:survey', 'rpr1', None]

    def test_station_level(self):
        assert category_levels('rpr1') == ['rpr1', None]

    def test_global(self):
        assert category_levels(None) == [None]
        assert category_levels('') == [None]


@pytest.mark.django_db
class TestInheritedPreference:
    """Test resolution through the scope hierarchy."""

    def test_station_default_satisfies_form_request(self, staff_user):
        station = make_preference(staff_user, 'rpr1', is_default=True)

        preference, level = resolve_inherited_preference(staff_user, 'rpr1:survey:form123')

        assert preference == station
        assert level == 'rpr1'

    def test_most_specific_default_wins(self, staff_user):
        make_preference(staff_user, 'rpr1', is_default=True)
        form = make_preference(staff_user, 'rpr1:survey:form123', is_default=True)

        preference, level = resolve_inherited_preference(staff_user, 'rpr1:survey:form123')

        assert preference == form
        assert level == 'rpr1:survey:form123'

    def test_default_at_broader_level_beats_non_default_at_specific(self, staff_user):
        make_preference(staff_user, 'rpr1:survey:form123', is_default=False)
        type_default = make_preference(staff_user, 'rpr1:survey', is_default=True)

        preference, level = resolve_inherited_preference(staff_user, 'rpr1:survey:form123')

        assert preference == type_default
        assert level == 'rpr1:survey'

    def test_falls_back_to_most_specific_non_default(self, staff_user):
        make_preference(staff_user, None)
        form = make_preference(staff_user, 'rpr1:survey:form123')

        preference, level = resolve_inherited_preference(staff_user, 'rpr1:survey:form123')

        assert preference == form

    def test_global_level_reported(self, staff_user):
        make_preference(staff_user, None, is_default=True)

        preference, level = resolve_inherited_preference(staff_user, 'bigfm:quiz')

        assert level == 'global'

    def test_other_users_are_ignored(self, staff_user, admin_user):
        make_preference(admin_user, 'rpr1', is_default=True)

        assert resolve_inherited_preference(staff_user, 'rpr1') == (None, None)

    def test_no_category(self, staff_user):
        make_preference(staff_user, None, is_default=True)

        assert resolve_inherited_preference(staff_user, None) == (None, None)

    def test_endpoint(self, api_client, staff_user):
        make_preference(staff_user, 'rpr1', is_default=True, visible_columns=['email'])
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/api/preferences/inherited', {'category': 'rpr1:survey:form123'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['inherited_from'] == 'rpr1'
        assert response.data['preference']['visible_columns'] == ['email']


@pytest.mark.django_db
class TestSavePreference:
    """Test update-or-create and the single default rule."""

    def test_save_creates_then_updates(self, staff_user):
        first, created = PreferenceService.save_preference(
            staff_user, 'list-view-columns', category='bigfm', visible_columns=['email']
        )
        assert created is True

        second, created = PreferenceService.save_preference(
            staff_user, 'list-view-columns', category='bigfm', visible_columns=['fname', 'email']
        )

        assert created is False
        assert second.pk == first.pk
        assert UserTablePreference.objects.count() == 1
        second.refresh_from_db()
        assert second.visible_columns == ['fname', 'email']

    def test_single_default_per_category(self, staff_user):
        PreferenceService.save_preference(staff_user, 'a', category='bigfm', is_default=True)
        PreferenceService.save_preference(staff_user, 'b', category='bigfm', is_default=True)
        PreferenceService.save_preference(staff_user, 'c', category='rpr1', is_default=True)

        defaults = UserTablePreference.objects.filter(user=staff_user, category='bigfm', is_default=True)
        assert list(defaults.values_list('preference_name', flat=True)) == ['b']
        assert UserTablePreference.objects.get(category='rpr1').is_default is True

    def test_single_default_for_global_scope(self, staff_user):
        PreferenceService.save_preference(staff_user, 'a', is_default=True)
        PreferenceService.save_preference(staff_user, 'b', category='', is_default=True)

        assert UserTablePreference.objects.filter(category__isnull=True, is_default=True).count() == 1

    def test_global_scope_is_unique_per_name(self, staff_user):
        PreferenceService.save_preference(staff_user, 'a', visible_columns=['x'])
        PreferenceService.save_preference(staff_user, 'a', visible_columns=['y'])

        assert UserTablePreference.objects.filter(category__isnull=True).count() == 1

    def test_update_unsets_other_defaults(self, staff_user):
        first = make_preference(staff_user, 'bigfm', 'a', is_default=True)
        second = make_preference(staff_user, 'bigfm', 'b')

        PreferenceService.update_preference(second, is_default=True)

        first.refresh_from_db()
        assert first.is_default is False
        assert UserTablePreference.objects.get(pk=second.pk).is_default is True

    def test_update_name_clash(self, staff_user):
        make_preference(staff_user, 'bigfm', 'a')
        second = make_preference(staff_user, 'bigfm', 'b')

        with pytest.raises(ValueError):
            PreferenceService.update_preference(second, preference_name='a')

    def test_writes_lock_the_owner(self, staff_user):
        with mock.patch('preferences.services._lock_owner', wraps=services._lock_owner) as lock:
            preference, _ = PreferenceService.save_preference(staff_user, 'a', category='bigfm', is_default=True)
            PreferenceService.update_preference(preference, visible_columns=['email'])

        assert lock.call_args_list == [mock.call(staff_user), mock.call(staff_user)]

    def test_create_race_falls_back_to_update(self, staff_user):
        # Another writer stored the row after this save looked it up
        original = make_preference(staff_user, 'bigfm', 'a', visible_columns=['x'])
        other = make_preference(staff_user, 'bigfm', 'b', is_default=True)
        find = services._find_preference
        calls = []

        def stale_first_lookup(*args):
            calls.append(args)
            return None if len(calls) == 1 else find(*args)

        with mock.patch('preferences.services._find_preference', side_effect=stale_first_lookup):
            preference, created = PreferenceService.save_preference(
                staff_user, 'a', category='bigfm', visible_columns=['y'], is_default=True
            )

        assert created is False
        assert preference.pk == original.pk
        assert UserTablePreference.objects.filter(user=staff_user, preference_name='a').count() == 1
        original.refresh_from_db()
        other.refresh_from_db()
        assert original.visible_columns == ['y']
        assert original.is_default is True
        assert other.is_default is False

    def test_race_on_global_scope_keeps_one_row(self, staff_user):
        make_preference(staff_user, None, 'a')
        find = services._find_preference
        calls = []

        def stale_first_lookup(*args):
            calls.append(args)
            return None if len(calls) == 1 else find(*args)

        with mock.patch('preferences.services._find_preference', side_effect=stale_first_lookup):
            _, created = PreferenceService.save_preference(staff_user, 'a', saved_filters={'q': 'x'})

        assert created is False
        assert UserTablePreference.objects.get(category__isnull=True).saved_filters == {'q': 'x'}


@pytest.mark.django_db
class TestPreferenceEndpoints:
    """Test the preference API."""

    def test_requires_authentication(self, api_client):
        response = api_client.get('/api/preferences/')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_save_endpoint(self, api_client, staff_user):
        api_client.force_authenticate(user=staff_user)
        payload = {
            'category': 'bigfm:quiz:w1',
            'preference_name': 'list-view-columns',
            'visible_columns': ['email', 'fname'],
            'sort_config': {'column': 'created_at', 'direction': 'asc'},
            'is_default': True,
        }

        response = api_client.post('/api/preferences/', payload, format='json')
        assert response.status_code == status.HTTP_201_CREATED

        payload['visible_columns'] = ['email']
        response = api_client.post('/api/preferences/', payload, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['preference']['visible_columns'] == ['email']
        assert UserTablePreference.objects.count() == 1

    def test_save_requires_name(self, api_client, staff_user):
        api_client.force_authenticate(user=staff_user)

        response = api_client.post('/api/preferences/', {'category': 'bigfm'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_scoped_to_user_and_hierarchy(self, api_client, staff_user, admin_user):
        make_preference(staff_user, 'rpr1', 'a')
        make_preference(staff_user, 'rpr1:survey', 'b', is_default=True)
        make_preference(staff_user, None, 'c')
        make_preference(staff_user, 'bigfm', 'd')
        make_preference(admin_user, 'rpr1', 'e')
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/api/preferences/', {'category': 'rpr1:survey:form1'})

        names = [p['preference_name'] for p in response.data['preferences']]
        assert names[0] == 'b'
        assert sorted(names) == ['a', 'b', 'c']

    def test_list_without_category_returns_only_own(self, api_client, staff_user, admin_user):
        make_preference(staff_user, 'rpr1', 'a')
        make_preference(admin_user, None, 'global-of-admin')
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/api/preferences/')

        assert [p['preference_name'] for p in response.data['preferences']] == ['a']

    def test_show_and_load(self, api_client, staff_user):
        preference = make_preference(staff_user, 'rpr1', visible_columns=['email'])
        api_client.force_authenticate(user=staff_user)

        response = api_client.get(f'/api/preferences/{preference.pk}')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['preference']['id'] == preference.pk

        response = api_client.post(f'/api/preferences/{preference.pk}/load')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['preference']['visible_columns'] == ['email']

    def test_foreign_preference_is_forbidden(self, api_client, staff_user, admin_user):
        preference = make_preference(admin_user, 'rpr1')
        api_client.force_authenticate(user=staff_user)

        assert api_client.get(f'/api/preferences/{preference.pk}').status_code == status.HTTP_403_FORBIDDEN
        assert api_client.post(f'/api/preferences/{preference.pk}/load').status_code == status.HTTP_403_FORBIDDEN
        assert api_client.put(
            f'/api/preferences/{preference.pk}', {'is_default': True}, format='json'
        ).status_code == status.HTTP_403_FORBIDDEN
        assert api_client.delete(f'/api/preferences/{preference.pk}').status_code == status.HTTP_403_FORBIDDEN
        assert UserTablePreference.objects.filter(pk=preference.pk).exists()

    def test_missing_preference_is_404(self, api_client, staff_user):
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/api/preferences/999')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update_and_delete(self, api_client, staff_user):
        preference = make_preference(staff_user, 'rpr1', visible_columns=['email'])
        api_client.force_authenticate(user=staff_user)

        response = api_client.put(
            f'/api/preferences/{preference.pk}',
            {'visible_columns': ['phone'], 'is_default': True},
            format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['preference']['visible_columns'] == ['phone']
        assert response.data['preference']['is_default'] is True

        response = api_client.delete(f'/api/preferences/{preference.pk}')
        assert response.status_code == status.HTTP_200_OK
        assert not UserTablePreference.objects.exists()
