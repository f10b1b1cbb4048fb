"""
User Management Admin Views

Super administrator endpoints for:
- Listing users with search, role and status filters
- Creating and editing accounts
- Deactivating and restoring accounts
- Permanent deletion
"""
import logging

from django.db.models import Q
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import User
from .permissions import IsSuperAdmin
from .serializers import UserSerializer, UserWriteSerializer

logger = logging.getLogger(__name__)


class AdminUserViewSet(viewsets.ModelViewSet):
    """
    /api/admin/users/

    Query Params (list):
    - search: Search by username, name, email
    - role: Filter by role
    - status: active (default), deleted, all
    """
    permission_classes = [IsSuperAdmin]

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return UserWriteSerializer
        return UserSerializer

    def get_queryset(self):
        queryset = User.objects.all()

        if self.action != 'list':
            return queryset

        params = self.request.query_params

        user_status = params.get('status', 'active')
        if user_status == 'deleted':
            queryset = queryset.filter(is_active=False)
        elif user_status != 'all':
            queryset = queryset.filter(is_active=True)

        role = params.get('role')
        if role:
            queryset = queryset.filter(role=role)

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(username__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search) |
                Q(email__icontains=search)
            )

        return queryset.order_by('-created_at')

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"User {user.email} created by {request.user.email}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        user = self.get_object()
        serializer = self.get_serializer(user, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data)

    def destroy(self, request, *args, **kwargs):
        """Deactivate (soft delete) an account."""
        user = self.get_object()

        if user.pk == request.user.pk:
            return Response(
                {'error': 'You cannot delete your own account.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        user.deactivate()
        logger.info(f"User {user.email} deactivated by {request.user.email}")
        return Response({'message': 'User deactivated successfully.'})

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        user = self.get_object()
        user.restore()
        return Response({
            'message': 'User restored successfully.',
            'user': UserSerializer(user).data,
        })

    @action(detail=True, methods=['delete'], url_path='force-delete')
    def force_delete(self, request, pk=None):
        user = self.get_object()

        if user.pk == request.user.pk:
            return Response(
                {'error': 'You cannot permanently delete your own account.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        email = user.email
        user.delete()
        logger.info(f"User {email} permanently deleted by {request.user.email}")
        return Response({'message': 'User permanently deleted.'})
