from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

SORTABLE_COLUMNS = ('created_at', 'id', 'category', 'station', 'webform_id', 'submission_form')
DEFAULT_SORT_COLUMN = 'created_at'


class SubmissionPagination(PageNumberPagination):
    """Fixed size pages for submission tables."""
    page_size = getattr(settings, 'SUBMISSIONS_PAGE_SIZE', 15)

    def get_paginated_response(self, data):
        return Response({
            'count': self.page.paginator.count,
            'total_pages': self.page.paginator.num_pages,
            'current_page': self.page.number,
            'page_size': self.page_size,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'results': data,
        })


def sort_submissions(queryset, params):
    """
    Order by ``sort_column`` / ``sort_direction``.

    Unknown columns fall back to created_at; anything but ``asc`` sorts
    descending. ``id`` breaks ties so pages stay stable.
    """
    column = params.get('sort_column', DEFAULT_SORT_COLUMN)
    if column not in SORTABLE_COLUMNS:
        column = DEFAULT_SORT_COLUMN

    direction = params.get('sort_direction', 'desc')
    prefix = '' if str(direction).lower() == 'asc' else '-'

    ordering = [f'{prefix}{column}']
    if column != 'id':
        ordering.append(f'{prefix}id')
    return queryset.order_by(*ordering)
