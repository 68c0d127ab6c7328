"""
Audit log endpoints (read-only).
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets

from .filters import AuditLogFilter
from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API endpoint for browsing the admin audit trail.

    Supports:
    - Paginated listing, newest first
    - Filtering by admin (?userId=) and action (?actionType=)
    """
    queryset = AuditLog.objects.select_related('admin')
    serializer_class = AuditLogSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = AuditLogFilter
