"""
Admin URL Configuration (user management)
"""
from rest_framework.routers import DefaultRouter

from .user_management_views import AdminUserViewSet

app_name = 'accounts_admin'

router = DefaultRouter()
router.register('users', AdminUserViewSet, basename='user')

urlpatterns = router.urls
