# ===== IMPORTS SERVICES - CSV PROCESSING BUSINESS LOGIC =====
"""
CSV Processing Services for the Realty Import System

This module implements the import core: it parses an uploaded CSV, runs every
row through the validators and inserts the resulting records, one savepoint
per row, recording failures on the job instead of stopping. It also holds the
undo engine that soft-deletes what a completed job created.

Key Services:
- CSV parsing with structural checks
- Row import for projects, developers and banks
- ImportJob finalization and progress flushing
- Undo of completed imports
- Recovery of jobs orphaned by a worker crash
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from listings.models import Bank, Developer, Project, ProjectBank

from .exceptions import (
    CSVStructureError,
    ImportAlreadyUndone,
    ImportJobNotFound,
    ImportNotUndoable,
    NothingToUndo,
)
from .models import ImportJob, ImportJobError
from .resolver import ReferenceTables, build_reference_tables, normalize_name
from .validators import normalize_bank_row, normalize_developer_row, normalize_project_row

logger = logging.getLogger(__name__)

ORPHANED_IMPORT_MESSAGE = 'Import interrupted before completion'

PROJECT_COLUMNS = [
    'name', 'developer', 'city', 'district', 'latitude', 'longitude', 'address',
    'short_description', 'description', 'price_from', 'currency', 'completion_date',
    'cover_image_url', 'banks',
]
DIRECTORY_COLUMNS = ['name', 'logo_url', 'description']

IMPORT_COLUMNS = {
    ImportJob.ENTITY_PROJECTS: PROJECT_COLUMNS,
    ImportJob.ENTITY_DEVELOPERS: DIRECTORY_COLUMNS,
    ImportJob.ENTITY_BANKS: DIRECTORY_COLUMNS,
}

ENTITY_MODELS = {
    ImportJob.ENTITY_PROJECTS: Project,
    ImportJob.ENTITY_DEVELOPERS: Developer,
    ImportJob.ENTITY_BANKS: Bank,
}


# =============================================================================
# CSV PARSING
# =============================================================================

def parse_csv_content(content: str) -> List[Dict[str, str]]:
    """
    Parse CSV content into one dict per data row.

    The first non-empty record is the header. Empty lines are skipped,
    headers and values are trimmed and a leading UTF-8 BOM is ignored.

    Args:
        content: Decoded CSV text

    Returns:
        List of rows keyed by header name, in file order

    Raises:
        CSVStructureError: no header, a record whose length differs from
            the header, NUL bytes or any other csv.Error
    """
    if content.startswith('\ufeff'):
        content = content[1:]
    if '\x00' in content:
        raise CSVStructureError("Failed to parse CSV content: file contains NUL bytes")

    reader = csv.reader(io.StringIO(content, newline=''))
    header = None
    rows = []

    try:
        for record in reader:
            if not record or (len(record) == 1 and not record[0].strip()):
                continue

            values = [value.strip() for value in record]
            if header is None:
                header = values
                continue

            if len(values) != len(header):
                raise CSVStructureError(f"Invalid record length on row {reader.line_num}")
            rows.append(dict(zip(header, values)))
    except csv.Error as e:
        raise CSVStructureError(f"Failed to parse CSV content: {str(e)}")

    if header is None:
        raise CSVStructureError("CSV file has no header row")

    logger.info(f"Parsed {len(rows)} rows from CSV")
    return rows


# =============================================================================
# EXECUTION OUTCOME
# =============================================================================

@dataclass
class RowFailure:
    row_number: int
    error_message: str
    raw_row: Dict[str, str]


@dataclass
class ImportOutcome:
    """Result of one run, accumulated row by row in file order."""

    total_rows: int = 0
    created_ids: List[int] = field(default_factory=list)
    failures: List[RowFailure] = field(default_factory=list)

    @property
    def inserted_count(self):
        return len(self.created_ids)

    @property
    def failed_count(self):
        return len(self.failures)


# =============================================================================
# CSV PROCESSING SERVICE
# =============================================================================

class CSVImportService:
    """
    Primary service class for processing CSV imports.

    Runs one ImportJob from parsed file to terminal status. The job must
    already exist in status "processing"; this service is its only writer
    until finalization.
    """

    def __init__(self, import_job: ImportJob):
        """
        Initialize CSV import service with an import job

        Args:
            import_job: ImportJob instance to track processing
        """
        self.import_job = import_job
        self.progress_interval = getattr(settings, 'IMPORT_PROGRESS_INTERVAL', 25)
        self.row_importers = {
            ImportJob.ENTITY_PROJECTS: self._import_project_row,
            ImportJob.ENTITY_DEVELOPERS: self._import_developer_row,
            ImportJob.ENTITY_BANKS: self._import_bank_row,
        }

    def process_csv_content(self, content: str) -> ImportOutcome:
        """
        Process CSV content and finalize the job.

        Row failures are recorded and never stop the run; the job completes.
        Structural or unexpected errors mark the job failed with whatever
        was inserted before the error kept in created_record_ids.

        Args:
            content: Decoded CSV text

        Returns:
            ImportOutcome of the run
        """
        job = self.import_job
        outcome = ImportOutcome()
        logger.info(f"Starting CSV processing for import {job.id} ({job.entity_type}, {job.filename})")

        try:
            rows = parse_csv_content(content)
            outcome.total_rows = len(rows)
            job.record_total(outcome.total_rows)

            tables = build_reference_tables()
            self._process_rows(rows, tables, outcome)

        except Exception as e:
            logger.exception(f"CSV processing failed for import {job.id}: {str(e)}")
            job.mark_as_failed(outcome, str(e))
            return outcome

        job.mark_as_completed(outcome)
        logger.info(
            f"Import {job.id} completed: {outcome.total_rows} rows, "
            f"{outcome.inserted_count} inserted, {outcome.failed_count} failed"
        )
        return outcome

    def _process_rows(self, rows: List[Dict[str, str]], tables: ReferenceTables,
                      outcome: ImportOutcome) -> None:
        import_row = self.row_importers[self.import_job.entity_type]

        for index, row in enumerate(rows):
            row_number = index + 2
            try:
                with transaction.atomic():
                    record_id = import_row(row, tables, row_number)
            except Exception as e:
                self._record_failure(outcome, RowFailure(row_number, str(e), row))
            else:
                outcome.created_ids.append(record_id)

            if (index + 1) % self.progress_interval == 0:
                self.import_job.record_progress(outcome)

    def _record_failure(self, outcome: ImportOutcome, failure: RowFailure) -> None:
        outcome.failures.append(failure)
        ImportJobError.objects.create(
            import_job=self.import_job,
            row_number=failure.row_number,
            error_message=failure.error_message,
            raw_row_json=failure.raw_row,
        )
        logger.warning(f"Import {self.import_job.id} row {failure.row_number}: {failure.error_message}")

    # =============================================================================
    # ROW IMPORTERS
    # =============================================================================

    def _import_project_row(self, row: Dict[str, str], tables: ReferenceTables, row_number: int) -> int:
        payload = normalize_project_row(row, tables)
        project = Project.objects.create(**payload.fields)

        # Links only after the project row exists
        for bank in payload.banks:
            ProjectBank.objects.create(project=project, bank=bank)

        for bank_name in payload.missing_banks:
            logger.warning(f"Import {self.import_job.id} row {row_number}: bank not found: {bank_name}")

        return project.id

    def _import_developer_row(self, row: Dict[str, str], tables: ReferenceTables, row_number: int) -> int:
        developer = Developer.objects.create(**normalize_developer_row(row, tables))
        tables.developers[normalize_name(developer.name)] = developer
        return developer.id

    def _import_bank_row(self, row: Dict[str, str], tables: ReferenceTables, row_number: int) -> int:
        bank = Bank.objects.create(**normalize_bank_row(row, tables))
        tables.banks[normalize_name(bank.name)] = bank
        return bank.id


# =============================================================================
# UNDO ENGINE
# =============================================================================

@dataclass
class UndoResult:
    import_job: ImportJob
    undone_ids: List[int] = field(default_factory=list)
    failed_ids: List[int] = field(default_factory=list)

    @property
    def undone_count(self):
        return len(self.undone_ids)

    @property
    def failed_count(self):
        return len(self.failed_ids)


def undo_import(job_id) -> UndoResult:
    """
    Soft-delete every record a completed import created.

    The job row stays locked for the whole run so two undo requests, or an
    undo racing finalization, cannot both pass the precondition checks.
    A record that cannot be soft-deleted is logged and reported in
    failed_ids; the job is marked undone regardless.

    Args:
        job_id: ImportJob id (UUID or its string form)

    Returns:
        UndoResult with reverted and failed ids

    Raises:
        ImportJobNotFound, ImportAlreadyUndone, NothingToUndo,
        ImportNotUndoable: precondition failures, checked in that order
    """
    with transaction.atomic():
        try:
            job = ImportJob.objects.select_for_update().get(pk=job_id)
        except (ImportJob.DoesNotExist, ValidationError, ValueError):
            raise ImportJobNotFound()

        if job.is_undone:
            raise ImportAlreadyUndone()
        if not job.created_record_ids:
            raise NothingToUndo()
        if not job.is_completed:
            raise ImportNotUndoable()

        model = ENTITY_MODELS[job.entity_type]
        result = UndoResult(import_job=job)

        for record_id in job.created_record_ids:
            try:
                with transaction.atomic():
                    model.objects.get(pk=record_id).soft_delete()
            except Exception as e:
                logger.error(f"Undo of import {job.id}: failed to delete {job.entity_type} {record_id}: {str(e)}")
                result.failed_ids.append(record_id)
            else:
                result.undone_ids.append(record_id)

        job.mark_as_undone()

    logger.info(
        f"Import {job.id} undone: {result.undone_count} records deleted, "
        f"{result.failed_count} failed"
    )
    return result


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def process_csv_import(import_job: ImportJob, content: str) -> ImportOutcome:
    """
    Convenience function to process CSV import

    Args:
        import_job: ImportJob instance
        content: CSV file content as string

    Returns:
        ImportOutcome of the run
    """
    service = CSVImportService(import_job)
    return service.process_csv_content(content)


def fail_orphaned_imports(older_than: Optional[int] = None) -> int:
    """
    Fail jobs left in "processing" by a worker that died mid-run.

    A job counts as orphaned when it has not been written for older_than
    seconds (IMPORT_ORPHAN_AFTER_SECONDS by default). Counters flushed
    before the crash are kept.

    Returns:
        Number of jobs marked failed
    """
    if older_than is None:
        older_than = getattr(settings, 'IMPORT_ORPHAN_AFTER_SECONDS', 3600)
    cutoff = timezone.now() - timedelta(seconds=older_than)

    stale_jobs = ImportJob.objects.filter(
        status=ImportJob.STATUS_PROCESSING,
        updated_at__lt=cutoff,
    )

    failed = 0
    for job in stale_jobs:
        fail_interrupted_import(job)
        failed += 1

    return failed


def fail_interrupted_import(job: ImportJob) -> None:
    """
    Fail a job whose run stopped before finalizing.

    Keeps the counters and created ids last flushed by record_progress.
    """
    outcome = ImportOutcome(
        total_rows=job.total_rows,
        created_ids=list(job.created_record_ids or []),
    )
    job.mark_as_failed(outcome, ORPHANED_IMPORT_MESSAGE)
    logger.warning(f"Import {job.id} marked failed: {ORPHANED_IMPORT_MESSAGE}")


def create_sample_csv(entity_type: str = ImportJob.ENTITY_PROJECTS) -> str:
    """
    Create sample CSV content for templates

    Returns:
        Sample CSV content as string
    """
    if entity_type == ImportJob.ENTITY_PROJECTS:
        sample_data: List[Dict[str, Any]] = [
            {
                'name': 'Riverside Residences',
                'developer': 'Acme Development',
                'city': 'Yerevan',
                'district': 'Kentron',
                'latitude': '40.177200',
                'longitude': '44.503490',
                'address': '12 Northern Avenue',
                'short_description': 'Riverside apartments in the city centre',
                'description': 'Fourteen storey residential complex with underground parking.',
                'price_from': '$85,000',
                'currency': 'USD',
                'completion_date': '2026-12-31',
                'cover_image_url': 'https://example.com/images/riverside.jpg',
                'banks': 'Ameriabank, Ardshinbank',
            },
            {
                'name': 'Garden Towers',
                'developer': 'Acme Development',
                'city': 'Yerevan',
                'district': 'Arabkir',
                'latitude': '',
                'longitude': '',
                'address': '',
                'short_description': 'Family apartments near the park',
                'description': '',
                'price_from': '120000',
                'currency': '',
                'completion_date': '06/30/2027',
                'cover_image_url': '',
                'banks': '',
            },
        ]
    else:
        sample_data = [
            {
                'name': 'Acme Development' if entity_type == ImportJob.ENTITY_DEVELOPERS else 'Ameriabank',
                'logo_url': 'https://example.com/logos/logo.png',
                'description': 'Short description shown on the directory page',
            },
        ]

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=IMPORT_COLUMNS[entity_type])
    writer.writeheader()
    writer.writerows(sample_data)
    return output.getvalue()
