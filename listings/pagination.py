"""
Pagination for the admin API.

The admin panel pages through lists with ?page=N&limit=M and expects
{data, total, page, limit, totalPages} in every list response.
"""

import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class AdminPagination(PageNumberPagination):
    """
    Page-number pagination with the admin panel's envelope.

    Usage:
        GET /api/admin/imports/                → first 20 results
        GET /api/admin/imports/?page=2&limit=50 → results 51-100
    """
    page_size = 20
    page_size_query_param = 'limit'
    max_page_size = 1000

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return Response({
            'data': data,
            'total': total,
            'page': self.page.number,
            'limit': limit,
            'totalPages': math.ceil(total / limit) if limit else 0,
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'data': schema,
                'total': {'type': 'integer'},
                'page': {'type': 'integer'},
                'limit': {'type': 'integer'},
                'totalPages': {'type': 'integer'},
            },
        }
