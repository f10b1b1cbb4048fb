"""
Table Preference Views

GET    /api/preferences/              list the current user's preferences
POST   /api/preferences/              save (update or create)
GET    /api/preferences/inherited     resolve through the scope hierarchy
GET    /api/preferences/<id>          show
PUT    /api/preferences/<id>          update
DELETE /api/preferences/<id>          delete
POST   /api/preferences/<id>/load     load into the current view
"""
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .hierarchy import DEFAULT_PREFERENCE_NAME, hierarchy_q, resolve_inherited_preference
from .models import UserTablePreference
from .permissions import IsPreferenceOwner
from .serializers import PreferenceUpdateSerializer, PreferenceWriteSerializer, UserTablePreferenceSerializer
from .services import PreferenceService


class PreferenceListCreateView(APIView):
    """
    List or save the current user's preferences.

    Query Parameters (GET):
    - preference_name: only preferences of this kind
    - category: this scope plus the scopes it inherits from
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        queryset = UserTablePreference.objects.filter(user=request.user)

        if preference_name := request.query_params.get('preference_name'):
            queryset = queryset.filter(preference_name=preference_name)

        if category := request.query_params.get('category'):
            queryset = queryset.filter(hierarchy_q(category))

        queryset = queryset.order_by('-is_default', '-created_at', '-id')
        return Response({
            'success': True,
            'preferences': UserTablePreferenceSerializer(queryset, many=True).data
        })

    def post(self, request):
        serializer = PreferenceWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'success': False, 'error': 'Validation failed', 'fields': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        data = dict(serializer.validated_data)
        preference, created = PreferenceService.save_preference(
            request.user,
            data.pop('preference_name'),
            category=data.pop('category', None),
            **data
        )
        return Response(
            {
                'success': True,
                'message': 'Preference saved successfully',
                'preference': UserTablePreferenceSerializer(preference).data
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class InheritedPreferenceView(APIView):
    """
    Preference applying to a category.

    GET /api/preferences/inherited?category=rpr1:survey:form123

    ``inherited_from`` names the scope the preference was found at.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        preference, level = resolve_inherited_preference(
            request.user,
            request.query_params.get('category'),
            request.query_params.get('preference_name') or DEFAULT_PREFERENCE_NAME,
        )
        return Response({
            'success': True,
            'preference': UserTablePreferenceSerializer(preference).data if preference else None,
            'inherited_from': level,
        })


class PreferenceObjectMixin:
    """Looks a preference up by id; 404 when missing, 403 when not owned."""

    permission_classes = [IsAuthenticated, IsPreferenceOwner]
    queryset = UserTablePreference.objects.all()
    serializer_class = UserTablePreferenceSerializer


class PreferenceDetailView(PreferenceObjectMixin, generics.RetrieveUpdateDestroyAPIView):
    """Show, update or delete one preference."""

    http_method_names = ['get', 'put', 'delete', 'head', 'options']

    def retrieve(self, request, *args, **kwargs):
        preference = self.get_object()
        return Response({'success': True, 'preference': self.get_serializer(preference).data})

    def update(self, request, *args, **kwargs):
        preference = self.get_object()

        serializer = PreferenceUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'success': False, 'error': 'Validation failed', 'fields': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            preference = PreferenceService.update_preference(preference, **serializer.validated_data)
        except ValueError as exc:
            return Response({'success': False, 'message': str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'success': True,
            'message': 'Preference updated successfully',
            'preference': self.get_serializer(preference).data
        })

    def destroy(self, request, *args, **kwargs):
        PreferenceService.delete_preference(self.get_object())
        return Response({'success': True, 'message': 'Preference deleted successfully'})


class PreferenceLoadView(PreferenceObjectMixin, generics.GenericAPIView):
    """
    Load a preference into the current view.

    POST /api/preferences/<id>/load
    """

    def post(self, request, pk):
        preference = self.get_object()
        return Response({'success': True, 'preference': self.get_serializer(preference).data})
