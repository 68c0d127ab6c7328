# ===== IMPORTS SERIALIZERS =====
"""
Serializers for Import Management API endpoints.
Handles ImportJob and ImportJobError serialization for the admin panel
(camelCase keys) and upload validation.
"""

from django.conf import settings
from rest_framework import serializers

from .models import ImportJob, ImportJobError


# =============================================================================
# IMPORT JOB SERIALIZERS
# =============================================================================

class ImportJobSerializer(serializers.ModelSerializer):
    """
    Ledger entry as the admin panel polls it.
    Read-only: jobs only change through the executor and undo.
    """

    id = serializers.CharField(read_only=True)
    entityType = serializers.CharField(source='entity_type', read_only=True)
    totalRows = serializers.IntegerField(source='total_rows', read_only=True)
    insertedCount = serializers.IntegerField(source='inserted_count', read_only=True)
    updatedCount = serializers.IntegerField(source='updated_count', read_only=True)
    failedCount = serializers.IntegerField(source='failed_count', read_only=True)
    createdRecordIds = serializers.JSONField(source='created_record_ids', read_only=True)
    errorMessage = serializers.CharField(source='error_message', read_only=True)
    createdByAdminId = serializers.PrimaryKeyRelatedField(source='created_by_admin', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    completedAt = serializers.DateTimeField(source='completed_at', read_only=True)
    undoneAt = serializers.DateTimeField(source='undone_at', read_only=True)

    class Meta:
        model = ImportJob
        fields = [
            'id',
            'filename',
            'entityType',
            'status',
            'totalRows',
            'insertedCount',
            'updatedCount',
            'failedCount',
            'createdRecordIds',
            'errorMessage',
            'createdByAdminId',
            'createdAt',
            'completedAt',
            'undoneAt',
        ]
        read_only_fields = fields


class ImportJobErrorSerializer(serializers.ModelSerializer):
    importJobId = serializers.CharField(source='import_job_id', read_only=True)
    rowNumber = serializers.IntegerField(source='row_number', read_only=True)
    errorMessage = serializers.CharField(source='error_message', read_only=True)
    rawRowJson = serializers.JSONField(source='raw_row_json', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = ImportJobError
        fields = ['id', 'importJobId', 'rowNumber', 'errorMessage', 'rawRowJson', 'createdAt']
        read_only_fields = fields


# =============================================================================
# UPLOAD VALIDATION
# =============================================================================

class CSVUploadSerializer(serializers.Serializer):
    """
    Validates the multipart ``file`` field of an import request.
    An empty file is accepted; the executor fails it for having no header.
    """

    file = serializers.FileField(
        allow_empty_file=True,
        error_messages={
            'required': 'No file uploaded',
            'null': 'No file uploaded',
            'invalid': 'No file uploaded',
        },
    )

    def validate_file(self, file):
        name = (file.name or '').lower()
        content_type = (getattr(file, 'content_type', '') or '').split(';')[0].strip().lower()
        if not name.endswith('.csv') and content_type != 'text/csv':
            raise serializers.ValidationError('Only CSV files are allowed')

        max_size = getattr(settings, 'IMPORT_MAX_FILE_SIZE', 10 * 1024 * 1024)
        if file.size > max_size:
            raise serializers.ValidationError('File too large')

        return file
