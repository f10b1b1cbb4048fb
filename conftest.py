"""
Shared pytest fixtures.
"""
import pytest
from django.core.cache import cache
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear cache before and after each test to prevent pollution."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """API client for making requests."""
    return APIClient()


@pytest.fixture
def create_user(db, django_user_model):
    def _create(username, role, **extra):
        return django_user_model.objects.create_user(
            username=username,
            email=f'{username}@test.com',
            password='testpass123',
            role=role,
            **extra
        )
    return _create


@pytest.fixture
def superadmin(create_user):
    return create_user('superadmin', 'SUPERADMIN', first_name='Super', last_name='Admin')


@pytest.fixture
def admin_user(create_user):
    return create_user('admin', 'ADMIN', first_name='Station', last_name='Admin')


@pytest.fixture
def staff_user(create_user):
    return create_user('editor', 'USER', first_name='Eva', last_name='Editor')


@pytest.fixture
def make_submission(db):
    """Factory storing a submission the way the intake endpoint does."""
    from contact.models import ContactSubmission

    def _make(data, category='bigfm', created_at=None, **extra):
        fields = {
            'category': category,
            'webform_id': data.get('webform_id'),
            'submission_form': data.get('submission_form'),
            'station': data.get('station') or category,
            'data': data,
            'field_order': list(data.keys()),
        }
        fields.update(extra)
        if created_at is not None:
            fields['created_at'] = created_at
        return ContactSubmission.objects.create(**fields)
    return _make
