"""
End-to-end flow: a station form posts submissions, staff review them in
the dashboard and save column preferences for the form.
"""
import pytest
from rest_framework import status

from contact.models import ContactRead, ContactSubmission


pytestmark = pytest.mark.django_db


class TestIntakeToDashboard:
    """Submissions posted publicly show up with metadata for staff."""

    def test_full_review_cycle(self, api_client, staff_user, admin_user):
        first = {
            'webform_id': 'sommer-gewinnspiel',
            'submission_form': 'gewinnspiel',
            'fname': 'Lena',
            'lname': 'Schmidt',
            'email': 'lena@example.com',
            'zip': '68159',
        }
        response = api_client.post('/contact/bigfm', first, format='json')
        assert response.status_code == status.HTTP_201_CREATED

        second = dict(first, fname='Jonas', email='jonas@example.com', lieblingssong='Atemlos')
        response = api_client.post('/contact/bigfm', second, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        latest_id = response.data['submission_id']

        api_client.force_authenticate(user=staff_user)

        response = api_client.get('/forms/sommer-gewinnspiel')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
        assert response.data['new_fields'] == ['lieblingssong']
        assert [f['key'] for f in response.data['fields']] == [
            'email', 'fname', 'lname', 'lieblingssong', 'zip'
        ]
        assert response.data['default_fields'] == ['fname', 'lname', 'email', 'zip']
        assert all(row['is_read'] is False for row in response.data['results'])

        response = api_client.get(f'/contact-messages/{latest_id}')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['submission']['data'] == second
        assert response.data['new_fields'] == ['lieblingssong']

        response = api_client.get('/contact-messages', {'status': 'unread'})
        assert response.data['count'] == 1

        response = api_client.delete('/forms/sommer-gewinnspiel/new-fields')
        assert response.status_code == status.HTTP_200_OK
        response = api_client.get('/forms/sommer-gewinnspiel')
        assert response.data['new_fields'] == []

        response = api_client.post('/api/preferences/', {
            'category': 'bigfm',
            'preference_name': 'list-view-columns',
            'visible_columns': ['email', 'zip'],
            'is_default': True,
        }, format='json')
        assert response.status_code == status.HTTP_201_CREATED

        response = api_client.get('/api/preferences/inherited', {
            'category': 'bigfm:gewinnspiel:sommer-gewinnspiel',
        })
        assert response.data['inherited_from'] == 'bigfm'
        assert response.data['preference']['visible_columns'] == ['email', 'zip']

        api_client.force_authenticate(user=admin_user)
        response = api_client.delete(f'/contact-messages/{latest_id}')
        assert response.status_code == status.HTTP_200_OK
        assert ContactSubmission.objects.count() == 1
        assert ContactRead.objects.count() == 0
