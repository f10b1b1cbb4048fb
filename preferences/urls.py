"""
Table Preference URL Configuration
"""
from django.urls import path
from .views import (
    InheritedPreferenceView,
    PreferenceDetailView,
    PreferenceListCreateView,
    PreferenceLoadView,
)

app_name = 'preferences'

urlpatterns = [
    path('', PreferenceListCreateView.as_view(), name='list'),
    path('inherited', InheritedPreferenceView.as_view(), name='inherited'),
    path('<int:pk>', PreferenceDetailView.as_view(), name='detail'),
    path('<int:pk>/load', PreferenceLoadView.as_view(), name='load'),
]
