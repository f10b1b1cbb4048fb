"""
Contact URL Configuration
"""
from django.urls import path
from .views import (
    ClearNewFieldsView,
    ContactIntakeView,
    ContactMessageDetailView,
    ContactMessageListView,
    FormSubmissionsView,
    StationDashboardView,
    ToggleReadView,
)

app_name = 'contact'

urlpatterns = [
    # Public intake (no auth required)
    path('contact/<slug:station>', ContactIntakeView.as_view(), name='intake'),

    # Dashboard (auth required)
    path('contact-messages', ContactMessageListView.as_view(), name='list'),
    path('contact-messages/<int:pk>', ContactMessageDetailView.as_view(), name='detail'),
    path('contact-messages/<int:pk>/toggle-read', ToggleReadView.as_view(), name='toggle-read'),
    path('forms/<str:webform_id>', FormSubmissionsView.as_view(), name='form-detail'),
    path('forms/<str:webform_id>/new-fields', ClearNewFieldsView.as_view(), name='clear-new-fields'),
    path('dashboard/forms', StationDashboardView.as_view(), name='dashboard-forms'),
]
