"""
Tests for Contact Submissions
"""
import pytest
from datetime import timedelta
from unittest import mock

from django.db import DatabaseError
from django.utils import timezone
from rest_framework import status

from contact.field_detection import detect_available_fields, detect_field_type, get_field_label
from contact.form_defaults import FALLBACK_FIELDS, get_defaults_for_form, get_defaults_for_type
from contact.models import ContactRead, ContactSubmission, FieldNotification
from contact.services import FieldNotificationService, SubmissionIntakeService
from contact.tasks import purge_expired_field_notifications


def minutes_ago(minutes):
    return timezone.now() - timedelta(minutes=minutes)


@pytest.mark.django_db
class TestContactIntake:
    """Test the public intake endpoint."""

    def test_submit_valid_payload(self, api_client):
        """Any JSON object is stored verbatim."""
        payload = {
            'webform_id': 'gewinnspiel-2024',
            'submission_form': 'contest',
            'lname': 'Muster',
            'fname': 'Max',
            'email': 'max@example.com',
            'newsletter': True,
            'answers': {'q1': 'b'},
        }

        response = api_client.post('/contact/bigfm', payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] is True
        submission = ContactSubmission.objects.get(pk=response.data['submission_id'])
        assert submission.data == payload
        assert list(submission.ordered_data) == list(payload)
        assert submission.category == 'bigfm'
        assert submission.webform_id == 'gewinnspiel-2024'
        assert submission.submission_form == 'contest'

    def test_station_defaults_to_category(self, api_client):
        response = api_client.post('/contact/rpr1', {'email': 'a@b.de'}, format='json')

        submission = ContactSubmission.objects.get(pk=response.data['submission_id'])
        assert submission.station == 'rpr1'
        assert submission.webform_id is None

    def test_explicit_station_label_is_kept(self, api_client):
        response = api_client.post('/contact/rpr1', {'station': 'RPR1 Pfalz'}, format='json')

        submission = ContactSubmission.objects.get(pk=response.data['submission_id'])
        assert submission.station == 'RPR1 Pfalz'

    def test_records_client_ip(self, api_client):
        response = api_client.post(
            '/contact/bigfm',
            {'email': 'a@b.de'},
            format='json',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1'
        )

        submission = ContactSubmission.objects.get(pk=response.data['submission_id'])
        assert submission.ip_address == '203.0.113.7'

    def test_unknown_station_returns_404(self, api_client):
        response = api_client.post('/contact/antenne', {'email': 'a@b.de'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert ContactSubmission.objects.count() == 0

    def test_non_object_body_returns_422(self, api_client):
        response = api_client.post('/contact/bigfm', [1, 2, 3], format='json')

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.data['success'] is False
        assert ContactSubmission.objects.count() == 0

    def test_non_string_system_key_returns_422(self, api_client):
        response = api_client.post('/contact/bigfm', {'webform_id': 42}, format='json')

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert 'webform_id' in response.data['errors']

    def test_persistence_failure_returns_500_without_detail(self, api_client):
        with mock.patch.object(
            SubmissionIntakeService, 'submit', side_effect=DatabaseError('disk full')
        ):
            response = api_client.post('/contact/bigfm', {'email': 'a@b.de'}, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['success'] is False
        assert 'error' not in response.data

    def test_persistence_failure_exposes_detail_in_debug(self, api_client, settings):
        settings.DEBUG = True
        with mock.patch.object(
            SubmissionIntakeService, 'submit', side_effect=DatabaseError('disk full')
        ):
            response = api_client.post('/contact/bigfm', {'email': 'a@b.de'}, format='json')

        assert response.data['error'] == 'disk full'

    def test_no_authentication_required(self, api_client):
        response = api_client.post('/contact/rockfm', {'fname': 'Ann'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED


@pytest.mark.django_db
class TestNewFieldNotifications:
    """Test detection of keys a form has never received."""

    def test_first_submission_flags_nothing(self):
        _, new_fields = SubmissionIntakeService.submit('bigfm', {'webform_id': 'w1', 'email': 'a@b.de'})

        assert new_fields == []
        assert FieldNotification.objects.count() == 0

    def test_new_key_is_flagged(self, make_submission):
        make_submission({'webform_id': 'w1', 'email': 'a@b.de'}, created_at=minutes_ago(5))

        _, new_fields = SubmissionIntakeService.submit(
            'bigfm', {'webform_id': 'w1', 'email': 'c@d.de', 'phone': '0621'}
        )

        assert new_fields == ['phone']
        assert FieldNotificationService.get_new_fields('w1') == ['phone']

    def test_new_fields_are_merged_and_expiry_extended(self, make_submission):
        make_submission({'webform_id': 'w1', 'email': 'a@b.de'}, created_at=minutes_ago(5))
        SubmissionIntakeService.submit('bigfm', {'webform_id': 'w1', 'phone': '1'})
        first_expiry = FieldNotification.objects.get(webform_id='w1').expires_at

        SubmissionIntakeService.submit('bigfm', {'webform_id': 'w1', 'city': 'Mannheim'})

        notification = FieldNotification.objects.get(webform_id='w1')
        assert notification.new_fields == ['phone', 'city']
        assert notification.expires_at >= first_expiry

    def test_expired_notification_is_ignored_and_restarted(self, make_submission):
        make_submission({'webform_id': 'w1', 'email': 'a@b.de'}, created_at=minutes_ago(5))
        FieldNotification.objects.create(
            webform_id='w1', new_fields=['old'], expires_at=timezone.now() - timedelta(hours=1)
        )

        assert FieldNotificationService.get_new_fields('w1') == []

        SubmissionIntakeService.submit('bigfm', {'webform_id': 'w1', 'phone': '1'})

        assert FieldNotificationService.get_new_fields('w1') == ['phone']

    def test_clear_new_fields_endpoint(self, api_client, staff_user):
        FieldNotification.objects.create(
            webform_id='w1', new_fields=['phone'], expires_at=timezone.now() + timedelta(hours=1)
        )
        api_client.force_authenticate(user=staff_user)

        response = api_client.delete('/forms/w1/new-fields')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['cleared'] is True
        assert FieldNotification.objects.count() == 0

    def test_purge_task_removes_only_expired(self):
        FieldNotification.objects.create(
            webform_id='old', new_fields=['a'], expires_at=timezone.now() - timedelta(minutes=1)
        )
        FieldNotification.objects.create(
            webform_id='fresh', new_fields=['b'], expires_at=timezone.now() + timedelta(hours=1)
        )

        assert purge_expired_field_notifications() == 1
        assert list(FieldNotification.objects.values_list('webform_id', flat=True)) == ['fresh']

    def test_deleting_last_submission_drops_notification(self, make_submission):
        submission = make_submission({'webform_id': 'w1', 'email': 'a@b.de'})
        FieldNotification.objects.create(
            webform_id='w1', new_fields=['email'], expires_at=timezone.now() + timedelta(hours=1)
        )

        submission.delete()

        assert FieldNotification.objects.count() == 0


class TestFieldTypeDetection:
    """Test primitive type inference for payload values."""

    @pytest.mark.parametrize('value,expected', [
        ('2024-05-01', 'date'),
        ('2024-05-01T10:00:00', 'date'),
        ('hello', 'string'),
        (True, 'boolean'),
        (False, 'boolean'),
        (42, 'integer'),
        (4.2, 'float'),
        ([1, 2], 'object'),
        ({'a': 1}, 'object'),
        (None, 'string'),
    ])
    def test_detect_field_type(self, value, expected):
        assert detect_field_type(value) == expected

    def test_known_labels(self):
        assert get_field_label('fname') == 'First Name'
        assert get_field_label('zip') == 'ZIP Code'
        assert get_field_label('bday') == 'Birthday'

    def test_label_fallback_title_cases_key(self):
        assert get_field_label('favorite_song') == 'Favorite Song'
        assert get_field_label('favorite-song') == 'Favorite Song'
        assert get_field_label('favoriteSong') == 'Favorite Song'


@pytest.mark.django_db
class TestFieldDetection:
    """Test available field detection per scope."""

    def test_no_scope_returns_empty_list(self, make_submission):
        make_submission({'webform_id': 'w1', 'email': 'a@b.de'})

        assert detect_available_fields() == []

    def test_form_scope_excludes_system_keys_and_sorts_by_label(self, make_submission):
        make_submission({
            'webform_id': 'w1',
            'submission_form': 'quiz',
            'station': 'bigfm',
            'category': 'bigfm',
            'zip': '68159',
            'email': 'a@b.de',
            'age': 30,
        })

        fields = detect_available_fields(webform_id='w1')

        assert fields == [
            {'key': 'age', 'type': 'integer', 'label': 'Age'},
            {'key': 'email', 'type': 'string', 'label': 'Email'},
            {'key': 'zip', 'type': 'string', 'label': 'ZIP Code'},
        ]

    def test_first_seen_type_wins(self, make_submission):
        make_submission({'webform_id': 'w1', 'age': 'thirty'}, created_at=minutes_ago(10))
        make_submission({'webform_id': 'w1', 'age': 30}, created_at=minutes_ago(1))

        fields = detect_available_fields(webform_id='w1')

        assert fields == [{'key': 'age', 'type': 'integer', 'label': 'Age'}]

    def test_form_scope_ignores_other_forms(self, make_submission):
        make_submission({'webform_id': 'w1', 'email': 'a@b.de'})
        make_submission({'webform_id': 'w2', 'phone': '0621'})

        keys = [field['key'] for field in detect_available_fields(webform_id='w1')]

        assert keys == ['email']

    def test_type_scope_spans_forms_of_one_station(self, make_submission):
        make_submission({'webform_id': 'w1', 'submission_form': 'quiz', 'email': 'a@b.de'})
        make_submission({'webform_id': 'w2', 'submission_form': 'quiz', 'phone': '0621'})
        make_submission({'webform_id': 'w3', 'submission_form': 'quiz', 'city': 'Köln'}, category='rpr1')

        keys = [f['key'] for f in detect_available_fields(submission_form='quiz', station='bigfm')]

        assert keys == ['email', 'phone']

    def test_station_scope(self, make_submission):
        make_submission({'email': 'a@b.de'}, category='rockfm')
        make_submission({'phone': '0621'}, category='bigfm')

        keys = [f['key'] for f in detect_available_fields(station='rockfm')]

        assert keys == ['email']


@pytest.mark.django_db
class TestSmartDefaults:
    """Test default column resolution."""

    def test_fallback_without_data_or_config(self):
        assert get_defaults_for_form('missing-form') == ['fname', 'lname', 'email', 'message_long']
        assert FALLBACK_FIELDS == ['fname', 'lname', 'email', 'message_long']

    def test_type_config_wins(self, settings, make_submission):
        settings.FORM_TYPE_DEFAULTS = {
            'quiz': {'list_view': ['answer', 'email'], 'detail_view': ['answer', 'email', 'phone']},
        }
        make_submission({'webform_id': 'w1', 'submission_form': 'quiz', 'city': 'Mainz'})

        assert get_defaults_for_form('w1', 'quiz') == ['answer', 'email']
        assert get_defaults_for_form('w1', 'quiz', view_type='detail') == ['answer', 'email', 'phone']

    def test_latest_submission_first_four_keys(self, make_submission):
        make_submission({'webform_id': 'w1', 'phone': '1'}, created_at=minutes_ago(10))
        make_submission({
            'webform_id': 'w1',
            'submission_form': 'quiz',
            'email': 'a@b.de',
            'fname': 'Ann',
            'lname': 'Lee',
            'city': 'Mainz',
            'zip': '55116',
        }, created_at=minutes_ago(1))

        assert get_defaults_for_form('w1', 'quiz', 'bigfm') == ['email', 'fname', 'lname', 'city']

    def test_frequency_analysis_for_empty_form(self, make_submission):
        for index in range(5):
            data = {'webform_id': f'w{index}', 'submission_form': 'quiz', 'answer': 'a'}
            if index < 4:
                data['email'] = 'a@b.de'
            if index < 3:
                data['phone'] = '1'
            make_submission(data, created_at=minutes_ago(index + 1))

        assert get_defaults_for_type('quiz', station='bigfm') == ['answer', 'email']
        assert get_defaults_for_form('new-form', 'quiz', 'bigfm') == ['answer', 'email']

    def test_frequency_analysis_limited_to_eight(self, make_submission):
        data = {'submission_form': 'quiz'}
        data.update({f'field_{i}': i for i in range(12)})
        make_submission(data)

        assert len(get_defaults_for_type('quiz', station='bigfm')) == 8

    def test_missing_webform_id_skips_form_layout(self, make_submission):
        make_submission({'plz': '68159', 'song': 'x', 'wish': 'y', 'dj': 'z'})

        assert get_defaults_for_form(None, view_type='detail') == FALLBACK_FIELDS
        assert get_defaults_for_form('', station='bigfm') == FALLBACK_FIELDS

    def test_unknown_view_type_is_rejected(self):
        with pytest.raises(ValueError):
            get_defaults_for_form('w1', view_type='grid')


@pytest.mark.django_db
class TestContactMessages:
    """Test the staff submission endpoints."""

    def test_list_requires_authentication(self, api_client):
        response = api_client.get('/contact-messages')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_list_paginated_newest_first(self, api_client, staff_user, make_submission):
        for index in range(17):
            make_submission({'email': f'user{index}@example.com'}, created_at=minutes_ago(index))
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/contact-messages')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 17
        assert len(response.data['results']) == 15
        assert response.data['results'][0]['data']['email'] == 'user0@example.com'

    def test_list_filters_category_and_search(self, api_client, staff_user, make_submission):
        make_submission({'fname': 'Anna', 'email': 'anna@example.com'}, category='bigfm')
        make_submission({'fname': 'Anna', 'email': 'anna@rpr1.de'}, category='rpr1')
        make_submission({'fname': 'Bert'}, category='rpr1')
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/contact-messages', {'category': 'rpr1', 'search': 'anna'})

        assert response.data['count'] == 1
        assert response.data['results'][0]['data']['email'] == 'anna@rpr1.de'

    def test_detail_marks_read_once(self, api_client, staff_user, make_submission):
        submission = make_submission({'webform_id': 'w1', 'email': 'a@b.de'})
        api_client.force_authenticate(user=staff_user)

        api_client.get(f'/contact-messages/{submission.pk}')
        response = api_client.get(f'/contact-messages/{submission.pk}')

        assert response.status_code == status.HTTP_200_OK
        assert ContactRead.objects.filter(submission=submission, user=staff_user).count() == 1
        assert response.data['submission']['is_read'] is True
        assert response.data['submission']['reads'][0]['user_email'] == 'editor@test.com'
        assert response.data['fields'] == [{'key': 'email', 'type': 'string', 'label': 'Email'}]
        assert response.data['type_fields'] == []
        assert response.data['station_fields'] == [{'key': 'email', 'type': 'string', 'label': 'Email'}]
        assert response.data['new_fields'] == []
        assert response.data['default_fields'] == ['email']

    def test_detail_type_and_station_fields(self, api_client, staff_user, make_submission):
        make_submission({'webform_id': 'w2', 'submission_form': 'quiz', 'answer': 'b'}, created_at=minutes_ago(5))
        make_submission({'webform_id': 'w3', 'phone': '1'}, created_at=minutes_ago(5))
        make_submission({'webform_id': 'w4', 'city': 'Mainz'}, category='rpr1')
        submission = make_submission({'webform_id': 'w1', 'submission_form': 'quiz', 'email': 'a@b.de'})
        api_client.force_authenticate(user=staff_user)

        response = api_client.get(f'/contact-messages/{submission.pk}')

        assert [f['key'] for f in response.data['fields']] == ['email']
        assert [f['key'] for f in response.data['type_fields']] == ['answer', 'email']
        assert [f['key'] for f in response.data['station_fields']] == ['answer', 'email', 'phone']

    def test_detail_defaults_ignore_other_formless_submissions(self, api_client, staff_user, make_submission):
        submission = make_submission(
            {'email': 'a@b.de', 'message_long': 'Hallo'}, category='rpr1', created_at=minutes_ago(10)
        )
        make_submission({'plz': '68159', 'song': 'x', 'wish': 'y', 'dj': 'z'}, category='bigfm')
        api_client.force_authenticate(user=staff_user)

        response = api_client.get(f'/contact-messages/{submission.pk}')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['fields'] == []
        assert response.data['default_fields'] == ['fname', 'lname', 'email', 'message_long']

    def test_detail_returns_payload_unchanged(self, api_client, staff_user, make_submission):
        payload = {'zeta': 1, 'alpha': 'x', 'nested': {'b': [1, 2]}, 'flag': False}
        submission = make_submission(payload)
        api_client.force_authenticate(user=staff_user)

        response = api_client.get(f'/contact-messages/{submission.pk}')

        assert response.data['submission']['data'] == payload
        assert list(response.data['submission']['data']) == ['zeta', 'alpha', 'nested', 'flag']

    def test_detail_missing_returns_404(self, api_client, staff_user):
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/contact-messages/999')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_toggle_read(self, api_client, staff_user, make_submission):
        submission = make_submission({'email': 'a@b.de'})
        api_client.force_authenticate(user=staff_user)
        url = f'/contact-messages/{submission.pk}/toggle-read'

        response = api_client.post(url)
        assert response.data['is_read'] is True
        assert len(response.data['reads']) == 1
        assert ContactRead.objects.count() == 1

        response = api_client.post(url)
        assert response.data['is_read'] is False
        assert response.data['reads'] == []
        assert ContactRead.objects.count() == 0

    def test_read_marks_are_per_user(self, api_client, staff_user, admin_user, make_submission):
        submission = make_submission({'email': 'a@b.de'})
        submission.mark_as_read_by(admin_user)
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/contact-messages', {'status': 'unread'})

        assert response.data['count'] == 1
        assert response.data['results'][0]['is_read'] is False

    def test_user_cannot_delete(self, api_client, staff_user, make_submission):
        submission = make_submission({'email': 'a@b.de'})
        api_client.force_authenticate(user=staff_user)

        response = api_client.delete(f'/contact-messages/{submission.pk}')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert ContactSubmission.objects.filter(pk=submission.pk).exists()

    def test_admin_can_delete(self, api_client, admin_user, make_submission):
        submission = make_submission({'email': 'a@b.de'})
        submission.mark_as_read_by(admin_user)
        api_client.force_authenticate(user=admin_user)

        response = api_client.delete(f'/contact-messages/{submission.pk}')

        assert response.status_code == status.HTTP_200_OK
        assert not ContactSubmission.objects.filter(pk=submission.pk).exists()
        assert ContactRead.objects.count() == 0


@pytest.mark.django_db
class TestFormSubmissions:
    """Test the per-form table endpoint."""

    def test_unknown_form_returns_404(self, api_client, staff_user):
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/forms/nope')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_form_metadata(self, api_client, staff_user, make_submission):
        make_submission({'webform_id': 'w1', 'submission_form': 'quiz', 'email': 'a@b.de'})
        make_submission({'webform_id': 'w2', 'email': 'other@b.de', 'phone': '1'})
        make_submission({'webform_id': 'w3', 'city': 'Mainz'}, category='rpr1')
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/forms/w1')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['form']['submission_form'] == 'quiz'
        assert response.data['form']['station'] == 'bigfm'
        assert response.data['fields'] == [{'key': 'email', 'type': 'string', 'label': 'Email'}]
        assert response.data['type_fields'] == [{'key': 'email', 'type': 'string', 'label': 'Email'}]
        assert [f['key'] for f in response.data['station_fields']] == ['email', 'phone']
        assert response.data['default_fields'] == ['email']

    def test_form_without_type_has_no_type_fields(self, api_client, staff_user, make_submission):
        make_submission({'webform_id': 'w1', 'email': 'a@b.de'})
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/forms/w1')

        assert response.data['type_fields'] == []
        assert [f['key'] for f in response.data['station_fields']] == ['email']

    def test_sort_ascending(self, api_client, staff_user, make_submission):
        make_submission({'webform_id': 'w1', 'n': 'old'}, created_at=minutes_ago(10))
        make_submission({'webform_id': 'w1', 'n': 'new'}, created_at=minutes_ago(1))
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/forms/w1', {'sort_column': 'created_at', 'sort_direction': 'asc'})

        assert [row['data']['n'] for row in response.data['results']] == ['old', 'new']

    def test_unknown_sort_column_falls_back_to_created_at(self, api_client, staff_user, make_submission):
        make_submission({'webform_id': 'w1', 'n': 'old'}, created_at=minutes_ago(10))
        make_submission({'webform_id': 'w1', 'n': 'new'}, created_at=minutes_ago(1))
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/forms/w1', {'sort_column': 'data; DROP TABLE', 'sort_direction': 'sideways'})

        assert response.status_code == status.HTTP_200_OK
        assert [row['data']['n'] for row in response.data['results']] == ['new', 'old']


@pytest.mark.django_db
class TestStationDashboard:
    """Test the station overview."""

    def test_lists_every_station(self, api_client, staff_user, make_submission):
        make_submission({'webform_id': 'w1', 'submission_form': 'quiz'}, category='bigfm')
        make_submission({'webform_id': 'w1', 'submission_form': 'quiz'}, category='bigfm')
        make_submission({'webform_id': 'w2', 'submission_form': 'contest'}, category='bigfm')
        make_submission({'email': 'no-form@b.de'}, category='rpr1')
        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/dashboard/forms')

        assert response.status_code == status.HTTP_200_OK
        stations = {station['key']: station for station in response.data['stations']}
        assert set(stations) == {'bigfm', 'rpr1', 'regenbogen', 'rockfm', 'bigkarriere'}
        assert stations['bigfm']['total'] == 3
        assert {f['webform_id']: f['count'] for f in stations['bigfm']['forms']} == {'w1': 2, 'w2': 1}
        assert stations['rpr1']['total'] == 1
        assert stations['rpr1']['forms'] == []
        assert stations['rockfm']['forms'] == []
