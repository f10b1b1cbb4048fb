"""
Tests for accounts: login, roles and user management
"""
import pytest
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from rest_framework import status

from accounts.models import User


@pytest.mark.django_db
class TestAuthentication:
    """Test JWT login and the current user endpoint."""

    def test_login_returns_tokens_and_dashboard(self, api_client, admin_user):
        response = api_client.post(
            '/api/auth/login/',
            {'username': 'admin', 'password': 'testpass123'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert 'refresh' in response.data
        assert response.data['user']['role'] == 'ADMIN'
        assert response.data['user']['dashboard'] == 'admin.dashboard'

    def test_login_wrong_password(self, api_client, admin_user):
        response = api_client.post(
            '/api/auth/login/',
            {'username': 'admin', 'password': 'wrong'},
            format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_deactivated_user_cannot_login(self, api_client, staff_user):
        staff_user.deactivate()

        response = api_client.post(
            '/api/auth/login/',
            {'username': 'editor', 'password': 'testpass123'},
            format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_bearer_token_grants_access(self, api_client, staff_user):
        login = api_client.post(
            '/api/auth/login/',
            {'username': 'editor', 'password': 'testpass123'},
            format='json'
        )
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

        response = api_client.get('/api/auth/me/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == 'editor@test.com'
        assert response.data['dashboard'] == 'user.dashboard'

    @pytest.mark.parametrize('role,route', [
        ('SUPERADMIN', 'superadmin.dashboard'),
        ('ADMIN', 'admin.dashboard'),
        ('USER', 'user.dashboard'),
    ])
    def test_dashboard_route_per_role(self, role, route):
        assert User(role=role).dashboard_route == route


@pytest.mark.django_db
class TestUserManagement:
    """Test super admin user management."""

    def test_only_superadmin_can_list(self, api_client, admin_user):
        api_client.force_authenticate(user=admin_user)

        response = api_client.get('/api/admin/users/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_filters_status(self, api_client, superadmin, staff_user, admin_user):
        staff_user.deactivate()
        api_client.force_authenticate(user=superadmin)

        active = api_client.get('/api/admin/users/')
        deleted = api_client.get('/api/admin/users/', {'status': 'deleted'})

        assert {u['email'] for u in active.data['results']} == {'superadmin@test.com', 'admin@test.com'}
        assert [u['email'] for u in deleted.data['results']] == ['editor@test.com']

    def test_create_user(self, api_client, superadmin):
        api_client.force_authenticate(user=superadmin)

        response = api_client.post('/api/admin/users/', {
            'username': 'newbie',
            'email': 'newbie@test.com',
            'password': 'A-strong-pass-2024',
            'role': 'USER',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        user = User.objects.get(username='newbie')
        assert user.check_password('A-strong-pass-2024')
        assert user.role == 'USER'

    def test_create_requires_password(self, api_client, superadmin):
        api_client.force_authenticate(user=superadmin)

        response = api_client.post('/api/admin/users/', {
            'username': 'newbie',
            'email': 'newbie@test.com',
            'role': 'USER',
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_deactivate_and_restore(self, api_client, superadmin, staff_user):
        api_client.force_authenticate(user=superadmin)

        response = api_client.delete(f'/api/admin/users/{staff_user.pk}/')
        assert response.status_code == status.HTTP_200_OK
        staff_user.refresh_from_db()
        assert staff_user.is_active is False
        assert staff_user.deactivated_at is not None

        response = api_client.post(f'/api/admin/users/{staff_user.pk}/restore/')
        assert response.status_code == status.HTTP_200_OK
        staff_user.refresh_from_db()
        assert staff_user.is_active is True
        assert staff_user.deactivated_at is None

    def test_cannot_deactivate_self(self, api_client, superadmin):
        api_client.force_authenticate(user=superadmin)

        response = api_client.delete(f'/api/admin/users/{superadmin.pk}/')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_force_delete(self, api_client, superadmin, staff_user):
        api_client.force_authenticate(user=superadmin)

        response = api_client.delete(f'/api/admin/users/{staff_user.pk}/force-delete/')

        assert response.status_code == status.HTTP_200_OK
        assert not User.objects.filter(pk=staff_user.pk).exists()


@pytest.mark.django_db
class TestUserStatusCommand:
    """Test the user_status management command."""

    def test_deactivate(self, staff_user):
        out = StringIO()

        call_command('user_status', 'editor@test.com', 'deactivate', stdout=out)

        staff_user.refresh_from_db()
        assert staff_user.is_active is False
        assert 'has been deactivated' in out.getvalue()

    def test_activate(self, staff_user):
        staff_user.deactivate()
        out = StringIO()

        call_command('user_status', 'EDITOR@test.com', 'activate', stdout=out)

        staff_user.refresh_from_db()
        assert staff_user.is_active is True
        assert 'has been activated' in out.getvalue()

    def test_already_active(self, staff_user):
        out = StringIO()

        call_command('user_status', 'editor@test.com', 'activate', stdout=out)

        assert 'already active' in out.getvalue()

    def test_unknown_user(self, db):
        with pytest.raises(CommandError):
            call_command('user_status', 'ghost@test.com', 'deactivate')
