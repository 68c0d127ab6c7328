"""
Import endpoints for the realty admin API.

Uploads create an ImportJob and hand the file to a Celery worker; the client
polls the job and may undo it once it has completed.
"""

import logging

from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.utils import record_audit_log

from .exceptions import UndoError
from .filters import ImportJobFilter
from .models import ImportJob
from .serializers import CSVUploadSerializer, ImportJobErrorSerializer, ImportJobSerializer
from .services import ImportOutcome, create_sample_csv, undo_import
from .tasks import process_import_job

logger = logging.getLogger(__name__)

UUID_REGEX = '[0-9a-fA-F-]{36}'


def _first_error(errors):
    for messages in errors.values():
        if messages:
            return str(messages[0])
    return 'Invalid request'


# =============================================================================
# UPLOAD
# =============================================================================

class CSVImportView(APIView):
    """
    Start a CSV import.

    Request:
        POST /api/admin/{projects|developers|banks}/import
        Content-Type: multipart/form-data
        Body: file (CSV file, at most IMPORT_MAX_FILE_SIZE bytes)

    Response (202):
        {"importJobId": "<uuid>", "message": "Import started"}

    Error Response:
        {"message": "No file uploaded" | "Only CSV files are allowed" |
                    "File too large" | "Failed to start import"}
    """

    entity_type = ImportJob.ENTITY_PROJECTS

    def post(self, request):
        serializer = CSVUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'message': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)

        uploaded_file = serializer.validated_data['file']
        content = uploaded_file.read().decode('utf-8-sig', errors='replace')

        job = ImportJob.objects.create(
            filename=uploaded_file.name,
            entity_type=self.entity_type,
            status=ImportJob.STATUS_PROCESSING,
            created_by_admin=request.user if request.user.is_authenticated else None,
        )
        record_audit_log(
            request, 'csv_import_start', 'import_job', job.id,
            {'filename': job.filename, 'entityType': job.entity_type}
        )
        logger.info(f"Import {job.id} created for {job.filename} ({job.entity_type}, {uploaded_file.size} bytes)")

        try:
            process_import_job.delay(str(job.id), content)
        except Exception as e:
            logger.exception(f"Failed to dispatch import {job.id}: {str(e)}")
            job.refresh_from_db()
            if job.is_processing:
                job.mark_as_failed(ImportOutcome(), f"Failed to start import: {str(e)}")
            return Response({'message': 'Failed to start import'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(
            {'importJobId': str(job.id), 'message': 'Import started'},
            status=status.HTTP_202_ACCEPTED
        )


class ProjectImportView(CSVImportView):
    entity_type = ImportJob.ENTITY_PROJECTS


class DeveloperImportView(CSVImportView):
    entity_type = ImportJob.ENTITY_DEVELOPERS


class BankImportView(CSVImportView):
    entity_type = ImportJob.ENTITY_BANKS


# =============================================================================
# IMPORT HISTORY
# =============================================================================

class ImportJobViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Import history for the admin panel.

    Supports:
    - List (filters: search on filename, entityType, status)
    - Retrieve a single job
    - Row errors of a job
    - Undo of a completed job
    """
    queryset = ImportJob.objects.all()
    serializer_class = ImportJobSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ImportJobFilter
    lookup_value_regex = UUID_REGEX

    def _get_job(self, pk):
        try:
            return ImportJob.objects.filter(pk=pk).first()
        except ValidationError:
            return None

    def retrieve(self, request, pk=None):
        job = self._get_job(pk)
        if job is None:
            return Response({'message': 'Import job not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(job).data)

    @action(detail=True, methods=['get'])
    def errors(self, request, pk=None):
        job = self._get_job(pk)
        if job is None:
            return Response({'message': 'Import job not found'}, status=status.HTTP_404_NOT_FOUND)
        serializer = ImportJobErrorSerializer(job.errors.order_by('row_number', 'id'), many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def undo(self, request, pk=None):
        try:
            result = undo_import(pk)
        except UndoError as e:
            return Response({'message': str(e)}, status=e.status_code)

        record_audit_log(
            request, 'csv_import_undo', 'import_job', pk,
            {'undoneCount': result.undone_count, 'failedCount': result.failed_count}
        )
        return Response({
            'message': 'Import undone',
            'undoneCount': result.undone_count,
            'failedCount': result.failed_count,
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def template(self, request):
        entity_type = request.query_params.get('entityType', ImportJob.ENTITY_PROJECTS)
        if entity_type not in dict(ImportJob.ENTITY_TYPE_CHOICES):
            return Response({'message': f'Unknown entity type: {entity_type}'}, status=status.HTTP_400_BAD_REQUEST)

        response = HttpResponse(create_sample_csv(entity_type), content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename={entity_type}_import_template.csv'
        return response
