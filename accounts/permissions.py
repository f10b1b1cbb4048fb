"""
Role-based permissions shared by the dashboard apps.
"""
from rest_framework import permissions


STAFF_ROLES = ['SUPERADMIN', 'ADMIN', 'USER']
ADMIN_ROLES = ['SUPERADMIN', 'ADMIN']


class IsStaffMember(permissions.BasePermission):
    """
    Any active dashboard account may browse and triage submissions.
    """

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role in STAFF_ROLES
        )


class IsContactAdmin(permissions.BasePermission):
    """
    Destructive actions on submissions are limited to administrators.
    """

    message = 'Only administrators can delete submissions.'

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role in ADMIN_ROLES
        )


class IsSuperAdmin(permissions.BasePermission):
    """
    User management is reserved for super administrators.
    """

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role == 'SUPERADMIN'
        )
