# ===== IMPORTS APP ADMIN CONFIGURATION =====
"""
Django Admin interface for import management

Admin Features:
- Import job monitoring with status badges and progress
- Row errors shown inline on each job
- Undo of completed imports
- Import log export as CSV
"""

import csv

from django.contrib import admin, messages
from django.http import HttpResponse
from django.utils import timezone
from django.utils.html import format_html

from audit.utils import record_audit_log

from .exceptions import UndoError
from .models import ImportJob, ImportJobError
from .services import undo_import


# =============================================================================
# INLINE ADMIN CLASSES
# =============================================================================

class ImportJobErrorInline(admin.TabularInline):
    model = ImportJobError
    extra = 0
    can_delete = False
    fields = ['row_number', 'error_message', 'raw_row_json', 'created_at']
    readonly_fields = fields
    ordering = ['row_number', 'id']

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# IMPORT JOB ADMIN
# =============================================================================

@admin.register(ImportJob)
class ImportJobAdmin(admin.ModelAdmin):
    """
    Admin interface for ImportJob model
    Jobs are read-only here; the only state change offered is undo.
    """

    list_display = [
        'filename',
        'entity_type',
        'status_badge',
        'total_rows',
        'inserted_count',
        'failed_count',
        'created_by_admin',
        'created_at',
        'processing_time_display',
    ]

    list_filter = [
        'status',
        'entity_type',
        ('created_at', admin.DateFieldListFilter),
    ]

    search_fields = ['filename', 'error_message']

    ordering = ['-created_at']

    list_per_page = 25

    readonly_fields = [
        'id',
        'filename',
        'entity_type',
        'status',
        'created_by_admin',
        'total_rows',
        'inserted_count',
        'updated_count',
        'failed_count',
        'created_record_ids',
        'error_message',
        'created_at',
        'updated_at',
        'started_at',
        'completed_at',
        'undone_at',
        'processing_time_display',
    ]

    fieldsets = [
        ('Import Information', {
            'fields': ['id', 'filename', 'entity_type', 'created_by_admin']
        }),
        ('Processing Status', {
            'fields': [
                'status',
                'total_rows',
                'inserted_count',
                'updated_count',
                'failed_count',
                'error_message',
            ]
        }),
        ('Timing Information', {
            'fields': ['created_at', 'updated_at', 'started_at', 'completed_at', 'undone_at', 'processing_time_display']
        }),
        ('Created Records', {
            'fields': ['created_record_ids'],
            'classes': ['collapse']
        }),
    ]

    inlines = [ImportJobErrorInline]

    actions = ['undo_selected_imports', 'export_import_log']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # =============================================================================
    # CUSTOM DISPLAY METHODS
    # =============================================================================

    def status_badge(self, obj):
        """Display status as colored badge"""
        status_colors = {
            'pending': '#ffc107',
            'processing': '#007bff',
            'completed': '#28a745',
            'failed': '#dc3545',
            'undone': '#6c757d',
        }

        color = status_colors.get(obj.status, '#6c757d')
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; border-radius: 3px; font-size: 11px; font-weight: bold;">{}</span>',
            color,
            obj.status.upper()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    def processing_time_display(self, obj):
        duration = obj.processing_duration
        if duration is None:
            return '-'
        seconds = duration.total_seconds()
        if seconds < 60:
            return f'{seconds:.1f}s'
        return f'{int(seconds // 60)}m {int(seconds % 60)}s'
    processing_time_display.short_description = 'Processing Time'

    # =============================================================================
    # ADMIN ACTIONS
    # =============================================================================

    def undo_selected_imports(self, request, queryset):
        """Soft-delete the records of each selected completed import"""
        for job in queryset:
            try:
                result = undo_import(job.id)
            except UndoError as e:
                self.message_user(request, f'{job.filename}: {e}', level=messages.WARNING)
                continue

            record_audit_log(
                request, 'csv_import_undo', 'import_job', job.id,
                {'undoneCount': result.undone_count, 'failedCount': result.failed_count}
            )
            self.message_user(
                request,
                f'{job.filename}: {result.undone_count} record(s) deleted, {result.failed_count} failed.'
            )
    undo_selected_imports.short_description = 'Undo selected imports'

    def export_import_log(self, request, queryset):
        """Export import log as CSV"""
        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="import_log_{timezone.now().strftime("%Y%m%d")}.csv"'

        writer = csv.writer(response)
        writer.writerow([
            'Import ID', 'File Name', 'Entity Type', 'Status', 'Total Rows',
            'Inserted', 'Failed', 'Created At', 'Undone At'
        ])

        for job in queryset:
            writer.writerow([
                job.id,
                job.filename,
                job.entity_type,
                job.status,
                job.total_rows,
                job.inserted_count,
                job.failed_count,
                job.created_at.strftime('%Y-%m-%d %H:%M:%S'),
                job.undone_at.strftime('%Y-%m-%d %H:%M:%S') if job.undone_at else '',
            ])

        return response
    export_import_log.short_description = 'Export import log as CSV'

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('created_by_admin')
