"""
Contact Submission Views

Public intake endpoint plus the staff dashboard API for browsing,
filtering and triaging station form submissions.
"""
import logging

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Count, Max
from django.shortcuts import get_object_or_404
from rest_framework import generics, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsContactAdmin, IsStaffMember

from .field_detection import detect_available_fields
from .filters import ContactSubmissionFilter
from .form_defaults import get_defaults_for_form
from .models import ContactRead, ContactSubmission
from .pagination import SubmissionPagination, sort_submissions
from .query_filters import read_by_user_expression
from .serializers import (
    ContactPayloadSerializer,
    ContactReadSerializer,
    ContactSubmissionDetailSerializer,
    ContactSubmissionListSerializer,
)
from .services import FieldNotificationService, SubmissionIntakeService

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Client IP, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def server_error(message, exc):
    """500 response; the exception text is only exposed in debug mode."""
    body = {'success': False, 'message': message}
    if settings.DEBUG:
        body['error'] = str(exc)
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class ContactIntakeView(APIView):
    """
    Public endpoint for station form submissions.

    POST /contact/<station>

    Accepts any JSON object. No authentication required.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, station):
        """Store a form submission."""
        stations = getattr(settings, 'CONTACT_STATIONS', {})
        if station not in stations:
            return Response(
                {'success': False, 'message': f"Unknown station '{station}'"},
                status=status.HTTP_404_NOT_FOUND
            )

        data = request.data.dict() if hasattr(request.data, 'dict') else request.data
        serializer = ContactPayloadSerializer(data=data)
        if not serializer.is_valid():
            return Response(
                {
                    'success': False,
                    'message': 'Validation failed',
                    'errors': serializer.errors
                },
                status=status.HTTP_422_UNPROCESSABLE_ENTITY
            )

        try:
            submission, _ = SubmissionIntakeService.submit(
                category=station,
                payload=serializer.payload,
                ip_address=get_client_ip(request),
            )
        except DatabaseError as exc:
            logger.exception(f"Failed to store {station} contact submission")
            return server_error('Failed to submit form', exc)

        return Response(
            {
                'success': True,
                'message': 'Form submitted successfully',
                'submission_id': submission.pk
            },
            status=status.HTTP_201_CREATED
        )


class SubmissionQuerysetMixin:
    """Submissions annotated with the current user's read state."""

    def get_queryset(self):
        return ContactSubmission.objects.annotate(
            is_read=read_by_user_expression(self.request.user)
        )


class ContactMessageListView(SubmissionQuerysetMixin, generics.ListAPIView):
    """
    List all submissions.

    GET /contact-messages

    Query Parameters:
    - search, category, status (all, read, unread) and the other
      submission filters
    - sort_column / sort_direction
    - page: Page number (15 per page)
    """

    permission_classes = [IsStaffMember]
    serializer_class = ContactSubmissionListSerializer
    filterset_class = ContactSubmissionFilter
    pagination_class = SubmissionPagination

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        return sort_submissions(queryset, self.request.query_params)


class ContactMessageDetailView(SubmissionQuerysetMixin, generics.RetrieveDestroyAPIView):
    """
    Single submission.

    GET /contact-messages/<id>     marks it read and adds field metadata
    DELETE /contact-messages/<id>  administrators only
    """

    serializer_class = ContactSubmissionDetailSerializer

    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [IsContactAdmin()]
        return [IsStaffMember()]

    def get_queryset(self):
        return super().get_queryset().prefetch_related('reads__user')

    def retrieve(self, request, *args, **kwargs):
        submission = self.get_object()
        submission.mark_as_read_by(request.user)

        # Reload so the new read mark is included
        submission = self.get_queryset().get(pk=submission.pk)

        fields = []
        if submission.webform_id:
            fields = detect_available_fields(webform_id=submission.webform_id)

        type_fields = []
        if submission.submission_form and submission.station:
            type_fields = detect_available_fields(
                submission_form=submission.submission_form,
                station=submission.station,
            )

        return Response({
            'submission': self.get_serializer(submission).data,
            'fields': fields,
            'type_fields': type_fields,
            'station_fields': detect_available_fields(station=submission.station),
            'new_fields': FieldNotificationService.get_new_fields(submission.webform_id),
            'default_fields': get_defaults_for_form(
                submission.webform_id,
                submission.submission_form,
                submission.station,
                view_type='detail',
            ),
        })

    def destroy(self, request, *args, **kwargs):
        submission = self.get_object()
        submission_id = submission.pk

        try:
            submission.delete()
        except DatabaseError as exc:
            logger.exception(f"Failed to delete contact submission #{submission_id}")
            return server_error('Failed to delete submission', exc)

        logger.info(f"Contact submission #{submission_id} deleted by {request.user.email}")
        return Response(
            {'success': True, 'message': 'Submission deleted successfully'},
            status=status.HTTP_200_OK
        )


class ToggleReadView(APIView):
    """
    Flip the current user's read mark.

    POST /contact-messages/<id>/toggle-read
    """

    permission_classes = [IsStaffMember]

    def post(self, request, pk):
        submission = get_object_or_404(ContactSubmission, pk=pk)

        deleted, _ = ContactRead.objects.filter(submission=submission, user=request.user).delete()
        if not deleted:
            submission.mark_as_read_by(request.user)

        reads = submission.reads.select_related('user')
        return Response({
            'success': True,
            'is_read': not deleted,
            'reads': ContactReadSerializer(reads, many=True).data,
        })


class FormSubmissionsView(SubmissionQuerysetMixin, generics.ListAPIView):
    """
    Submissions of one webform with field metadata.

    GET /forms/<webform_id>

    Accepts every submission filter plus sort_column / sort_direction.
    Returns 404 when the form never received a submission.
    """

    permission_classes = [IsStaffMember]
    serializer_class = ContactSubmissionListSerializer
    filterset_class = ContactSubmissionFilter
    pagination_class = SubmissionPagination

    def get_queryset(self):
        return super().get_queryset().filter(webform_id=self.kwargs['webform_id'])

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        return sort_submissions(queryset, self.request.query_params)

    def list(self, request, *args, **kwargs):
        webform_id = self.kwargs['webform_id']
        latest = (
            ContactSubmission.objects
            .filter(webform_id=webform_id)
            .order_by('-created_at')
            .first()
        )
        if latest is None:
            return Response(
                {'success': False, 'message': 'Form not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        type_fields = []
        if latest.submission_form and latest.station:
            type_fields = detect_available_fields(
                submission_form=latest.submission_form,
                station=latest.station,
            )

        response = super().list(request, *args, **kwargs)
        response.data.update({
            'form': {
                'webform_id': webform_id,
                'submission_form': latest.submission_form,
                'station': latest.station,
                'category': latest.category,
            },
            'fields': detect_available_fields(webform_id=webform_id),
            'type_fields': type_fields,
            'station_fields': detect_available_fields(station=latest.station),
            'new_fields': FieldNotificationService.get_new_fields(webform_id),
            'default_fields': get_defaults_for_form(
                webform_id,
                latest.submission_form,
                latest.station,
                view_type='list',
            ),
        })
        return response


class ClearNewFieldsView(APIView):
    """
    Acknowledge a form's new fields.

    DELETE /forms/<webform_id>/new-fields
    """

    permission_classes = [IsStaffMember]

    def delete(self, request, webform_id):
        cleared = FieldNotificationService.clear_new_fields(webform_id)
        return Response({'success': True, 'cleared': cleared})


class StationDashboardView(APIView):
    """
    Every configured station with its webforms.

    GET /dashboard/forms

    Stations without submissions are listed with an empty form list.
    """

    permission_classes = [IsStaffMember]

    def get(self, request):
        forms = (
            ContactSubmission.objects
            .exclude(webform_id__isnull=True)
            .exclude(webform_id='')
            .values('category', 'webform_id', 'submission_form')
            .annotate(count=Count('id'), latest_at=Max('created_at'))
            .order_by('category', '-latest_at')
        )

        forms_by_station = {}
        for form in forms:
            forms_by_station.setdefault(form['category'], []).append({
                'webform_id': form['webform_id'],
                'submission_form': form['submission_form'],
                'count': form['count'],
                'latest_at': form['latest_at'],
            })

        totals = dict(
            ContactSubmission.objects
            .values_list('category')
            .annotate(total=Count('id'))
            .order_by()
        )

        stations = [
            {
                'key': key,
                'name': name,
                'total': totals.get(key, 0),
                'forms': forms_by_station.get(key, []),
            }
            for key, name in getattr(settings, 'CONTACT_STATIONS', {}).items()
        ]
        return Response({'stations': stations})
