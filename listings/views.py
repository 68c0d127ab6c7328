"""
Views for the listings app.

This module defines the admin API viewsets for projects, developers and
banks. Deletes are soft deletes; every destructive or restoring action is
written to the audit log.
"""

import logging

from django.http import HttpResponse
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from audit.utils import record_audit_log

from .exports import (
    DIRECTORY_EXPORT_COLUMNS,
    PROJECT_EXPORT_COLUMNS,
    project_export_rows,
    rows_to_csv,
)
from .models import Bank, Developer, Project
from .serializers import BankSerializer, DeveloperSerializer, ProjectSerializer

logger = logging.getLogger(__name__)


def _csv_response(content, filename):
    response = HttpResponse(content, content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename={filename}'
    return response


# =============================================================================
# SHARED SOFT DELETE BEHAVIOUR
# =============================================================================

class SoftDeleteViewSetMixin:
    """
    Soft delete / restore for viewsets over SoftDeleteModel subclasses.

    Deleted rows are hidden from listings unless ?include_deleted=true.
    Subclasses set ``audit_target`` (e.g. 'project') for audit log codes.
    """
    audit_target = None
    lookup_value_regex = '[0-9]+'

    def get_queryset(self):
        queryset = super().get_queryset()
        include_deleted = self.request.query_params.get('include_deleted', '').lower() == 'true'
        if self.action in ('list', 'export') and not include_deleted:
            queryset = queryset.alive()
        return queryset

    def perform_destroy(self, instance):
        instance.soft_delete()
        record_audit_log(self.request, f'{self.audit_target}_delete', self.audit_target, instance.pk)
        logger.info(f"Soft-deleted {self.audit_target} {instance.pk}")

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        instance = self.get_object()
        instance.restore()
        record_audit_log(request, f'{self.audit_target}_restore', self.audit_target, instance.pk)
        return Response({'message': f'{self.audit_target.capitalize()} restored'}, status=status.HTTP_200_OK)


# =============================================================================
# PROJECT VIEWSET
# =============================================================================

class ProjectViewSet(SoftDeleteViewSetMixin,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.DestroyModelMixin,
                     viewsets.GenericViewSet):
    """
    Admin endpoint for projects.

    Supports:
    - List (search by name, ?include_deleted=true to show soft-deleted rows)
    - Retrieve
    - Soft delete and restore
    - CSV export of live projects

    Projects are created through CSV import, not through this endpoint.
    """
    queryset = Project.objects.select_related('developer', 'city', 'district').prefetch_related('banks')
    serializer_class = ProjectSerializer
    filter_backends = [filters.SearchFilter]
    search_fields = ['name', 'address']
    audit_target = 'project'

    @action(detail=False, methods=['get'])
    def export(self, request):
        projects = self.get_queryset().order_by('name')
        content = rows_to_csv(project_export_rows(projects), PROJECT_EXPORT_COLUMNS)
        return _csv_response(content, 'projects.csv')


# =============================================================================
# DIRECTORY VIEWSETS
# =============================================================================

class DirectoryViewSet(SoftDeleteViewSetMixin, viewsets.ModelViewSet):
    """
    Full CRUD for developer and bank directories.
    Create and update calls are audited with the submitted payload.
    """
    filter_backends = [filters.SearchFilter]
    search_fields = ['name']
    export_filename = None

    def perform_create(self, serializer):
        instance = serializer.save()
        record_audit_log(
            self.request, f'{self.audit_target}_create', self.audit_target, instance.pk,
            {'name': instance.name}
        )

    def perform_update(self, serializer):
        instance = serializer.save()
        record_audit_log(
            self.request, f'{self.audit_target}_update', self.audit_target, instance.pk,
            dict(serializer.validated_data)
        )

    @action(detail=False, methods=['get'])
    def export(self, request):
        rows = self.get_queryset().order_by('name').values(*DIRECTORY_EXPORT_COLUMNS)
        return _csv_response(rows_to_csv(rows, DIRECTORY_EXPORT_COLUMNS), self.export_filename)


class DeveloperViewSet(DirectoryViewSet):
    queryset = Developer.objects.all()
    serializer_class = DeveloperSerializer
    audit_target = 'developer'
    export_filename = 'developers.csv'


class BankViewSet(DirectoryViewSet):
    queryset = Bank.objects.all()
    serializer_class = BankSerializer
    audit_target = 'bank'
    export_filename = 'banks.csv'
