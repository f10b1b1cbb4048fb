from rest_framework import permissions


class IsPreferenceOwner(permissions.BasePermission):
    """
    Preferences are private to the user who saved them.
    """

    message = 'Unauthorized'

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id
