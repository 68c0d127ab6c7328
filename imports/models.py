# ===== IMPORTS MODELS =====
"""
Import tracking models for the realty CSV bulk import pipeline.

ImportJob is the ledger of one import attempt: its status, counters and the
ids of every record it created (the sole input to undo). ImportJobError is
the append-only per-row error log of a job.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class ImportJob(models.Model):
    """
    Ledger entry for one CSV import.

    Business Rules:
    - Created with status "processing" before any row is read
    - Only the executor mutates it while processing, only undo afterwards
    - inserted_count + failed_count == total_rows once processing ends
    - created_record_ids has exactly inserted_count entries
    - undone_at is set if and only if status is "undone"
    - Never deleted
    """

    # =============================================================================
    # CHOICES
    # =============================================================================

    ENTITY_PROJECTS = 'projects'
    ENTITY_DEVELOPERS = 'developers'
    ENTITY_BANKS = 'banks'

    ENTITY_TYPE_CHOICES = [
        (ENTITY_PROJECTS, 'Projects'),
        (ENTITY_DEVELOPERS, 'Developers'),
        (ENTITY_BANKS, 'Banks'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_UNDONE = 'undone'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
        (STATUS_UNDONE, 'Undone'),
    ]

    # =============================================================================
    # IDENTITY AND TRACKING
    # =============================================================================

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    filename = models.CharField(max_length=255)
    entity_type = models.CharField(
        max_length=20,
        choices=ENTITY_TYPE_CHOICES,
        default=ENTITY_PROJECTS,
        db_index=True,
        help_text="Which importer ran"
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PROCESSING,
        db_index=True,
    )
    created_by_admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='import_jobs',
        help_text="Admin who uploaded the file"
    )

    # =============================================================================
    # PROCESSING METRICS
    # =============================================================================

    total_rows = models.PositiveIntegerField(default=0)
    inserted_count = models.PositiveIntegerField(default=0)
    updated_count = models.PositiveIntegerField(
        default=0,
        help_text="Always 0: the importer only inserts"
    )
    failed_count = models.PositiveIntegerField(default=0)
    created_record_ids = models.JSONField(
        default=list,
        blank=True,
        help_text="Ids created by this job, in file order"
    )
    error_message = models.TextField(
        blank=True,
        help_text="Job-level failure cause"
    )

    # =============================================================================
    # TIMESTAMPS
    # =============================================================================

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    started_at = models.DateTimeField(
        blank=True,
        null=True,
        help_text="Set once, when a worker claims the job"
    )
    completed_at = models.DateTimeField(blank=True, null=True)
    undone_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'import_jobs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='import_jobs_status_8f2c1d_idx'),
            models.Index(fields=['entity_type', '-created_at'], name='import_jobs_entity_5b7e90_idx'),
        ]

    def __str__(self):
        return f"Import {self.id} - {self.filename} ({self.status})"

    # =============================================================================
    # PROPERTIES AND METHODS
    # =============================================================================

    @property
    def is_processing(self):
        return self.status == self.STATUS_PROCESSING

    @property
    def is_completed(self):
        return self.status == self.STATUS_COMPLETED

    @property
    def is_undone(self):
        return self.status == self.STATUS_UNDONE or self.undone_at is not None

    @property
    def processing_duration(self):
        """Get processing duration if available."""
        if self.completed_at:
            return self.completed_at - self.created_at
        return None

    def claim(self):
        """
        Mark the run as started by the current worker.

        Returns False when the job is no longer processing or an earlier
        delivery of the same task already claimed it.
        """
        now = timezone.now()
        claimed = ImportJob.objects.filter(
            pk=self.pk,
            status=self.STATUS_PROCESSING,
            started_at__isnull=True,
        ).update(started_at=now, updated_at=now)
        if claimed:
            self.started_at = now
        return bool(claimed)

    def record_total(self, total_rows):
        """Publish the parsed row count while rows are still being processed."""
        self.total_rows = total_rows
        self.save(update_fields=['total_rows', 'updated_at'])

    def record_progress(self, outcome):
        """Flush running counters so pollers see progress."""
        self.inserted_count = outcome.inserted_count
        self.failed_count = outcome.failed_count
        self.created_record_ids = list(outcome.created_ids)
        self.save(update_fields=['inserted_count', 'failed_count', 'created_record_ids', 'updated_at'])

    def mark_as_completed(self, outcome):
        """Finalize a run whose CSV structure parsed, whatever the row failures."""
        self._apply_outcome(outcome)
        self.failed_count = outcome.failed_count
        # A slow run may finish after the orphan sweep failed it
        self.error_message = ''
        self.status = self.STATUS_COMPLETED
        self.completed_at = timezone.now()
        self._save_final()

    def mark_as_failed(self, outcome, error_message):
        """Finalize a run aborted by a structural or pipeline error."""
        self._apply_outcome(outcome)
        self.failed_count = max(self.total_rows - self.inserted_count, 0)
        self.status = self.STATUS_FAILED
        self.error_message = error_message
        self.completed_at = timezone.now()
        self._save_final()

    def mark_as_undone(self):
        self.status = self.STATUS_UNDONE
        self.undone_at = timezone.now()
        self.save(update_fields=['status', 'undone_at', 'updated_at'])

    def _apply_outcome(self, outcome):
        self.total_rows = outcome.total_rows
        self.inserted_count = outcome.inserted_count
        self.updated_count = 0
        self.created_record_ids = list(outcome.created_ids)

    def _save_final(self):
        self.save(update_fields=[
            'status', 'total_rows', 'inserted_count', 'updated_count', 'failed_count',
            'created_record_ids', 'error_message', 'completed_at', 'updated_at',
        ])


# =============================================================================
# IMPORT ERROR TRACKING
# =============================================================================

class ImportJobError(models.Model):
    """
    One failed row of an import job.

    row_number is the physical line in the uploaded file (header is line 1).
    raw_row_json keeps the parsed row verbatim for inspection and re-upload.
    """

    import_job = models.ForeignKey(
        ImportJob,
        on_delete=models.CASCADE,
        related_name='errors'
    )
    row_number = models.PositiveIntegerField()
    error_message = models.TextField()
    raw_row_json = models.JSONField(default=dict, help_text="Original row data that caused error")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'import_job_errors'
        ordering = ['row_number', 'id']

    def __str__(self):
        return f"Row {self.row_number}: {self.error_message}"
