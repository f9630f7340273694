"""
Page math and navigation links for collection endpoints.

PageWindow is pure: it only needs the requested page, the page size and
the total count. The DRF pagination class below feeds it a count query
followed by a window query; the two are not taken from one snapshot.
"""
import math
import re
from dataclasses import dataclass

from rest_framework.pagination import BasePagination
from rest_framework.response import Response
from rest_framework.settings import api_settings

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def parse_page(raw):
    """
    Read the `page` query parameter.

    Takes the leading integer of the value; missing, unparsable or zero
    gives 1 and negatives are clamped to 1. There is no upper clamp.
    """
    match = _LEADING_INT.match(raw or '')
    page = int(match.group(1)) if match else 0
    return page if page >= 1 else 1


@dataclass(frozen=True)
class PageWindow:
    page: int
    page_size: int
    total_count: int

    @property
    def offset(self):
        return (self.page - 1) * self.page_size

    @property
    def last_page(self):
        return math.ceil(self.total_count / self.page_size)

    def links(self, path):
        links = {}
        if self.page < self.last_page:
            links['nextPage'] = f"{path}?page={self.page + 1}"
            links['lastPage'] = f"{path}?page={self.last_page}"
        if self.page > 1:
            links['prevPage'] = f"{path}?page={self.page - 1}"
            links['firstPage'] = f"{path}?page=1"
        return links


class AssignmentSubmissionPagination(BasePagination):
    """
    Fixed-size page-number pagination with relative navigation links.

    A page past the end yields an empty window rather than a 404.
    """
    page_size = api_settings.PAGE_SIZE or 10
    page_query_param = 'page'
    results_key = 'submissions'

    def paginate_queryset(self, queryset, request, view=None):
        self.window = PageWindow(
            page=parse_page(request.query_params.get(self.page_query_param)),
            page_size=self.page_size,
            total_count=queryset.count(),
        )
        self.path = request.path
        start = self.window.offset
        if start >= self.window.total_count:
            # Past the end: no window query
            return []
        return list(queryset[start:start + self.page_size])

    def get_paginated_response(self, data):
        return Response({
            self.results_key: data,
            'pageNumber': self.window.page,
            'totalPages': self.window.last_page,
            'pageSize': self.window.page_size,
            'totalCount': self.window.total_count,
            'links': self.window.links(self.path),
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                self.results_key: schema,
                'pageNumber': {'type': 'integer'},
                'totalPages': {'type': 'integer'},
                'pageSize': {'type': 'integer'},
                'totalCount': {'type': 'integer'},
                'links': {
                    'type': 'object',
                    'properties': {
                        name: {'type': 'string'}
                        for name in ('nextPage', 'lastPage', 'prevPage', 'firstPage')
                    },
                },
            },
        }
