# ===== IMPORTS APP TEST SUITE =====
"""
Test suite for imports app functionality

Test Coverage:
- CSV parsing and structural failures
- Row validation and reference resolution
- Import executor: row isolation, finalization, progress
- Undo engine: preconditions, partial failure, single shot
- Celery task and orphan recovery
- Management commands
- Admin API endpoints for upload, history, errors, undo and templates
"""

import csv
import io
import os
import tempfile
import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from listings.models import Bank, City, Developer, District, Project, ProjectBank

from .exceptions import (
    CSVStructureError,
    ImportAlreadyUndone,
    ImportJobNotFound,
    ImportNotUndoable,
    NothingToUndo,
    RowValidationError,
)
from .models import ImportJob, ImportJobError
from .resolver import build_reference_tables
from .services import (
    ORPHANED_IMPORT_MESSAGE,
    PROJECT_COLUMNS,
    CSVImportService,
    create_sample_csv,
    fail_interrupted_import,
    fail_orphaned_imports,
    parse_csv_content,
    process_csv_import,
    undo_import,
)
from .tasks import process_import_job, recover_orphaned_imports
from .validators import (
    normalize_developer_row,
    normalize_project_row,
    parse_completion_date,
    parse_price,
)

User = get_user_model()

MISSING_FIELDS_MESSAGE = 'Missing required fields: name, developer, city, district'


def make_csv(rows, columns=PROJECT_COLUMNS):
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns)
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue()


def project_row(name, **overrides):
    row = {
        'name': name,
        'developer': 'Acme Development',
        'city': 'Yerevan',
        'district': 'Kentron',
    }
    row.update(overrides)
    return row


class ReferenceDataMixin:
    """Cities, districts, a developer and banks shared by the suites below."""

    def create_reference_data(self):
        self.yerevan = City.objects.create(name='Yerevan')
        self.gyumri = City.objects.create(name='Gyumri')
        self.kentron = District.objects.create(city=self.yerevan, name='Kentron')
        self.arabkir = District.objects.create(city=self.yerevan, name='Arabkir')
        self.ani = District.objects.create(city=self.gyumri, name='Ani')
        self.developer = Developer.objects.create(name='Acme Development')
        self.ameriabank = Bank.objects.create(name='Ameriabank')
        self.ardshinbank = Bank.objects.create(name='Ardshinbank')
        self.inecobank = Bank.objects.create(name='Inecobank')

    def run_import(self, content, entity_type=ImportJob.ENTITY_PROJECTS, filename='upload.csv'):
        job = ImportJob.objects.create(filename=filename, entity_type=entity_type)
        process_csv_import(job, content)
        job.refresh_from_db()
        return job


# =============================================================================
# CSV PARSING TESTS
# =============================================================================

class ParseCSVContentTest(TestCase):

    def test_trims_headers_and_values(self):
        rows = parse_csv_content(' name , city \n  Riverside ,  Yerevan \n')
        self.assertEqual(rows, [{'name': 'Riverside', 'city': 'Yerevan'}])

    def test_skips_empty_lines_and_bom(self):
        rows = parse_csv_content('\ufeffname,city\n\nA,Yerevan\n\n\nB,Gyumri\n')
        self.assertEqual([row['name'] for row in rows], ['A', 'B'])

    def test_quoted_values_keep_commas(self):
        rows = parse_csv_content('name,banks\n"Tower","Ameriabank, Ardshinbank"\n')
        self.assertEqual(rows[0]['banks'], 'Ameriabank, Ardshinbank')

    def test_header_only_gives_no_rows(self):
        self.assertEqual(parse_csv_content('name,city\n'), [])

    def test_record_length_mismatch(self):
        with self.assertRaises(CSVStructureError) as ctx:
            parse_csv_content('name,city\nA,B\nC\n')
        self.assertEqual(str(ctx.exception), 'Invalid record length on row 3')

    def test_missing_header(self):
        with self.assertRaises(CSVStructureError):
            parse_csv_content('')
        with self.assertRaises(CSVStructureError):
            parse_csv_content('\n\n')

    def test_nul_bytes_rejected(self):
        with self.assertRaises(CSVStructureError):
            parse_csv_content('name,city\nA\x00,B\n')


# =============================================================================
# VALIDATOR TESTS
# =============================================================================

class ValidatorTest(ReferenceDataMixin, TestCase):

    def setUp(self):
        self.create_reference_data()
        self.tables = build_reference_tables()

    def assertRowRejected(self, row, message):
        with self.assertRaises(RowValidationError) as ctx:
            normalize_project_row(row, self.tables)
        self.assertEqual(str(ctx.exception), message)

    def test_valid_row_resolves_references(self):
        payload = normalize_project_row(
            project_row('Riverside', developer='acme development', city='YEREVAN', district='kentron'),
            self.tables
        )
        self.assertEqual(payload.fields['developer'], self.developer)
        self.assertEqual(payload.fields['city'], self.yerevan)
        self.assertEqual(payload.fields['district'], self.kentron)
        self.assertEqual(payload.fields['currency'], 'USD')
        self.assertIsNone(payload.fields['address'])

    def test_missing_required_fields(self):
        self.assertRowRejected(project_row(''), MISSING_FIELDS_MESSAGE)
        self.assertRowRejected(project_row('Riverside', district=''), MISSING_FIELDS_MESSAGE)

    def test_unknown_references(self):
        self.assertRowRejected(project_row('A', developer='Nobody'), 'Developer not found: Nobody')
        self.assertRowRejected(project_row('A', city='Atlantis'), 'City not found: Atlantis')
        self.assertRowRejected(project_row('A', district='Nowhere'), 'District not found: Nowhere')

    def test_district_from_other_city_is_rejected(self):
        self.assertRowRejected(
            project_row('A', city='Yerevan', district='Ani'),
            'District Ani does not belong to city Yerevan'
        )

    def test_district_name_shared_by_two_cities(self):
        gyumri_kentron = District.objects.create(city=self.gyumri, name='Kentron')
        tables = build_reference_tables()

        payload = normalize_project_row(project_row('A', city='Gyumri', district='Kentron'), tables)
        self.assertEqual(payload.fields['district'], gyumri_kentron)
        payload = normalize_project_row(project_row('B', city='Yerevan', district='Kentron'), tables)
        self.assertEqual(payload.fields['district'], self.kentron)

    def test_soft_deleted_developer_is_not_found(self):
        self.developer.soft_delete()
        tables = build_reference_tables()
        with self.assertRaises(RowValidationError):
            normalize_project_row(project_row('A'), tables)

    def test_completion_date_formats(self):
        self.assertEqual(parse_completion_date('2025-06-01'), date(2025, 6, 1))
        self.assertEqual(parse_completion_date('06/01/2025'), parse_completion_date('2025-06-01'))
        self.assertIsNone(parse_completion_date(''))
        with self.assertRaises(RowValidationError) as ctx:
            parse_completion_date('not-a-date')
        self.assertEqual(str(ctx.exception), 'Invalid completion date format: not-a-date')

    def test_price_normalization(self):
        self.assertEqual(parse_price('$1,500,000'), 1500000)
        self.assertIsNone(parse_price('N/A'))
        self.assertIsNone(parse_price(''))
        self.assertEqual(parse_price('1250.5'), 1251)
        self.assertEqual(parse_price('99.49 USD'), 99)

    def test_price_beyond_decimal_precision(self):
        self.assertEqual(parse_price('1' * 18), int('1' * 18))
        self.assertIsNone(parse_price('$' + '1' * 30))
        self.assertIsNone(parse_price('9223372036854775808'))
        self.assertEqual(parse_price('9223372036854775807'), 9223372036854775807)

        payload = normalize_project_row(project_row('A', price_from='$' + '9' * 40), self.tables)
        self.assertIsNone(payload.fields['price_from'])

    def test_lone_coordinate_is_range_checked(self):
        self.assertRowRejected(project_row('A', latitude='-91'), 'Invalid latitude: -91')

        payload = normalize_project_row(project_row('A', longitude='44.5'), self.tables)
        self.assertIsNone(payload.fields['latitude'])
        self.assertEqual(payload.fields['longitude'], Decimal('44.500000'))

    def test_coordinate_bounds(self):
        self.assertRowRejected(project_row('A', latitude='95'), 'Invalid latitude: 95')
        self.assertRowRejected(project_row('A', longitude='-181'), 'Invalid longitude: -181')
        self.assertRowRejected(project_row('A', latitude='north'), 'Invalid latitude: north')

        payload = normalize_project_row(project_row('A', latitude='40.758', longitude='-73.9855'), self.tables)
        self.assertEqual(payload.fields['latitude'], Decimal('40.758000'))
        self.assertEqual(payload.fields['longitude'], Decimal('-73.985500'))

        payload = normalize_project_row(project_row('A'), self.tables)
        self.assertIsNone(payload.fields['latitude'])
        self.assertIsNone(payload.fields['longitude'])

    def test_invalid_date_in_row(self):
        self.assertRowRejected(
            project_row('A', completion_date='31.12.2025'),
            'Invalid completion date format: 31.12.2025'
        )

    def test_bank_list_resolution(self):
        payload = normalize_project_row(
            project_row('A', banks='Ameriabank, Unknown Bank, ameriabank,,Inecobank'),
            self.tables
        )
        self.assertEqual(payload.banks, [self.ameriabank, self.inecobank])
        self.assertEqual(payload.missing_banks, ['Unknown Bank'])

    def test_currency(self):
        payload = normalize_project_row(project_row('A', currency='amd'), self.tables)
        self.assertEqual(payload.fields['currency'], 'AMD')
        self.assertRowRejected(project_row('A', currency='dollars'), 'Invalid currency: dollars')

    def test_developer_row(self):
        fields = normalize_developer_row({'name': 'Skyline', 'logo_url': '', 'description': 'Towers'}, self.tables)
        self.assertEqual(fields, {'name': 'Skyline', 'logo_url': None, 'description': 'Towers'})

        with self.assertRaises(RowValidationError) as ctx:
            normalize_developer_row({'name': 'acme development'}, self.tables)
        self.assertEqual(str(ctx.exception), 'Developer already exists: acme development')

        with self.assertRaises(RowValidationError) as ctx:
            normalize_developer_row({'name': ''}, self.tables)
        self.assertEqual(str(ctx.exception), 'Missing required field: name')


# =============================================================================
# IMPORT EXECUTOR TESTS
# =============================================================================

class CSVImportServiceTest(ReferenceDataMixin, TestCase):

    def setUp(self):
        self.create_reference_data()

    def test_all_rows_valid_with_banks(self):
        content = make_csv([
            project_row('Riverside', banks='Ameriabank'),
            project_row('Garden Towers', district='Arabkir', banks='Ardshinbank, Inecobank'),
            project_row('Hilltop', banks=''),
        ])
        job = self.run_import(content)

        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.total_rows, 3)
        self.assertEqual(job.inserted_count, 3)
        self.assertEqual(job.failed_count, 0)
        self.assertEqual(job.updated_count, 0)
        self.assertIsNotNone(job.completed_at)
        self.assertEqual(job.error_message, '')

        projects = [Project.objects.get(pk=pk) for pk in job.created_record_ids]
        self.assertEqual([p.name for p in projects], ['Riverside', 'Garden Towers', 'Hilltop'])
        self.assertEqual(set(projects[0].banks.all()), {self.ameriabank})
        self.assertEqual(set(projects[1].banks.all()), {self.ardshinbank, self.inecobank})
        self.assertEqual(projects[2].banks.count(), 0)

    def test_row_isolation(self):
        rows = [project_row(f'Project {i}') for i in range(10)]
        rows[4]['name'] = ''
        job = self.run_import(make_csv(rows))

        self.assertEqual(job.inserted_count, 9)
        self.assertEqual(job.failed_count, 1)
        self.assertEqual(job.inserted_count + job.failed_count, job.total_rows)
        self.assertEqual(len(job.created_record_ids), 9)

        error = ImportJobError.objects.get(import_job=job)
        self.assertEqual(error.row_number, 6)
        self.assertEqual(error.error_message, MISSING_FIELDS_MESSAGE)
        self.assertEqual(error.raw_row_json['developer'], 'Acme Development')
        self.assertEqual(error.raw_row_json['name'], '')

    def test_missing_developer_on_second_row(self):
        content = make_csv([
            project_row('A'),
            project_row('B', developer=''),
            project_row('C'),
        ])
        job = self.run_import(content)

        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.inserted_count, 2)
        errors = list(job.errors.all())
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].row_number, 3)
        self.assertEqual(errors[0].error_message, MISSING_FIELDS_MESSAGE)

    def test_counts_add_up_with_mixed_failures(self):
        content = make_csv([
            project_row('A', latitude='95'),
            project_row('B', completion_date='soon'),
            project_row('C', city='Gyumri'),
            project_row('D', price_from='N/A'),
            project_row('E', developer='Nobody'),
        ])
        job = self.run_import(content)

        self.assertEqual(job.total_rows, 5)
        self.assertEqual(job.inserted_count, 1)
        self.assertEqual(job.failed_count, 4)
        self.assertEqual(list(job.errors.values_list('row_number', flat=True)), [2, 3, 4, 6])
        self.assertIsNone(Project.objects.get(pk=job.created_record_ids[0]).price_from)

    def test_unknown_bank_only_warns(self):
        content = make_csv([project_row('A', banks='Ameriabank, Ghost Bank')])
        with self.assertLogs('imports.services', level='WARNING') as logs:
            job = self.run_import(content)

        self.assertEqual(job.inserted_count, 1)
        self.assertEqual(job.failed_count, 0)
        self.assertTrue(any('Ghost Bank' in line for line in logs.output))
        project = Project.objects.get(pk=job.created_record_ids[0])
        self.assertEqual(list(project.banks.all()), [self.ameriabank])

    def test_structural_failure_marks_job_failed(self):
        job = self.run_import('name,developer,city,district\nA,Acme Development,Yerevan\n')

        self.assertEqual(job.status, ImportJob.STATUS_FAILED)
        self.assertEqual(job.error_message, 'Invalid record length on row 2')
        self.assertEqual(job.inserted_count, 0)
        self.assertEqual(job.failed_count, 0)
        self.assertIsNotNone(job.completed_at)
        self.assertEqual(Project.objects.count(), 0)

    def test_empty_file_fails(self):
        job = self.run_import('')
        self.assertEqual(job.status, ImportJob.STATUS_FAILED)
        self.assertEqual(job.error_message, 'CSV file has no header row')

    def test_header_only_completes_with_no_rows(self):
        job = self.run_import(make_csv([]))
        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.total_rows, 0)

    def test_pipeline_error_keeps_inserted_records(self):
        content = make_csv([project_row('A'), project_row('')])
        with patch.object(CSVImportService, '_record_failure', side_effect=RuntimeError('database went away')):
            job = self.run_import(content)

        self.assertEqual(job.status, ImportJob.STATUS_FAILED)
        self.assertEqual(job.error_message, 'database went away')
        self.assertEqual(job.total_rows, 2)
        self.assertEqual(job.inserted_count, 1)
        self.assertEqual(job.failed_count, 1)
        self.assertEqual(len(job.created_record_ids), 1)

    @override_settings(IMPORT_PROGRESS_INTERVAL=2)
    def test_progress_flushed_every_interval(self):
        content = make_csv([project_row(f'P{i}') for i in range(5)])
        with patch.object(ImportJob, 'record_progress', autospec=True) as mock_progress:
            job = self.run_import(content)

        self.assertEqual(mock_progress.call_count, 2)
        self.assertEqual(job.inserted_count, 5)

    def test_developer_import(self):
        content = make_csv(
            [
                {'name': 'Skyline', 'logo_url': 'https://example.com/s.png', 'description': 'Towers'},
                {'name': 'skyline'},
                {'name': ''},
                {'name': 'Acme Development'},
            ],
            columns=['name', 'logo_url', 'description']
        )
        job = self.run_import(content, entity_type=ImportJob.ENTITY_DEVELOPERS)

        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.inserted_count, 1)
        self.assertEqual(job.failed_count, 3)
        skyline = Developer.objects.get(pk=job.created_record_ids[0])
        self.assertEqual(skyline.logo_url, 'https://example.com/s.png')
        self.assertEqual(
            list(job.errors.values_list('error_message', flat=True)),
            [
                'Developer already exists: skyline',
                'Missing required field: name',
                'Developer already exists: Acme Development',
            ]
        )

    def test_bank_import(self):
        content = make_csv([{'name': 'Converse Bank'}, {'name': 'Ameriabank'}], columns=['name', 'logo_url', 'description'])
        job = self.run_import(content, entity_type=ImportJob.ENTITY_BANKS)

        self.assertEqual(job.inserted_count, 1)
        self.assertEqual(Bank.objects.get(pk=job.created_record_ids[0]).name, 'Converse Bank')
        self.assertEqual(job.errors.get().error_message, 'Bank already exists: Ameriabank')

    def test_sample_csv_imports_cleanly(self):
        job = self.run_import(create_sample_csv())
        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.inserted_count, 2)


# =============================================================================
# UNDO ENGINE TESTS
# =============================================================================

class UndoImportTest(ReferenceDataMixin, TestCase):

    def setUp(self):
        self.create_reference_data()
        self.job = self.run_import(make_csv([
            project_row('Riverside', banks='Ameriabank'),
            project_row('Garden Towers', banks='Ardshinbank'),
            project_row('Hilltop'),
            project_row(''),
        ]))

    def test_undo_soft_deletes_created_records(self):
        result = undo_import(self.job.id)
        self.job.refresh_from_db()

        self.assertEqual(result.undone_count, 3)
        self.assertEqual(result.failed_count, 0)
        self.assertEqual(self.job.status, ImportJob.STATUS_UNDONE)
        self.assertIsNotNone(self.job.undone_at)
        for project in Project.objects.filter(pk__in=self.job.created_record_ids):
            self.assertIsNotNone(project.deleted_at)

        # Bank links and error rows are kept
        self.assertEqual(ProjectBank.objects.count(), 2)
        self.assertEqual(self.job.errors.count(), 1)

    def test_undo_is_single_shot(self):
        undo_import(str(self.job.id))
        with self.assertRaises(ImportAlreadyUndone) as ctx:
            undo_import(str(self.job.id))
        self.assertEqual(str(ctx.exception), 'Import has already been undone')

    def test_unknown_job(self):
        with self.assertRaises(ImportJobNotFound) as ctx:
            undo_import(uuid.uuid4())
        self.assertEqual(str(ctx.exception), 'Import job not found')
        with self.assertRaises(ImportJobNotFound):
            undo_import('not-a-uuid')

    def test_nothing_to_undo(self):
        empty_job = self.run_import(make_csv([project_row('')]))
        with self.assertRaises(NothingToUndo) as ctx:
            undo_import(empty_job.id)
        self.assertEqual(str(ctx.exception), 'No records to undo for this import')

    def test_failed_job_is_not_undoable(self):
        ImportJob.objects.filter(pk=self.job.pk).update(status=ImportJob.STATUS_FAILED)
        with self.assertRaises(ImportNotUndoable):
            undo_import(self.job.id)
        self.assertFalse(Project.objects.deleted().exists())

    def test_partial_failure_still_marks_undone(self):
        ids = self.job.created_record_ids + [999999]
        ImportJob.objects.filter(pk=self.job.pk).update(created_record_ids=ids)

        with self.assertLogs('imports.services', level='ERROR'):
            result = undo_import(self.job.id)
        self.job.refresh_from_db()

        self.assertEqual(result.undone_count, 3)
        self.assertEqual(result.failed_ids, [999999])
        self.assertEqual(self.job.status, ImportJob.STATUS_UNDONE)

    def test_already_deleted_record_counts_as_undone(self):
        Project.objects.get(pk=self.job.created_record_ids[0]).soft_delete()
        result = undo_import(self.job.id)
        self.assertEqual(result.undone_count, 3)

    def test_undo_developer_import(self):
        job = self.run_import(
            make_csv([{'name': 'Skyline'}, {'name': 'Horizon'}], columns=['name', 'logo_url', 'description']),
            entity_type=ImportJob.ENTITY_DEVELOPERS
        )
        undo_import(job.id)
        self.assertEqual(Developer.objects.deleted().count(), 2)
        self.assertFalse(Developer.objects.get(pk=self.developer.pk).is_deleted)


# =============================================================================
# TASK AND ORPHAN RECOVERY TESTS
# =============================================================================

class ImportTaskTest(ReferenceDataMixin, TestCase):

    def setUp(self):
        self.create_reference_data()

    def test_task_processes_job(self):
        job = ImportJob.objects.create(filename='a.csv')
        result = process_import_job(str(job.id), make_csv([project_row('A')]))

        job.refresh_from_db()
        self.assertEqual(result, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.inserted_count, 1)

    @patch('imports.tasks.process_csv_import')
    def test_task_skips_finished_job(self, mock_process):
        job = ImportJob.objects.create(filename='a.csv', status=ImportJob.STATUS_FAILED)
        result = process_import_job(str(job.id), make_csv([project_row('A')]))

        self.assertEqual(result, ImportJob.STATUS_FAILED)
        mock_process.assert_not_called()

    def test_task_skips_missing_job(self):
        self.assertEqual(process_import_job(str(uuid.uuid4()), ''), 'missing')

    def make_stale_job(self, **fields):
        job = ImportJob.objects.create(filename='stale.csv', **fields)
        ImportJob.objects.filter(pk=job.pk).update(updated_at=timezone.now() - timedelta(hours=2))
        return job

    def test_fail_orphaned_imports(self):
        stale = self.make_stale_job(total_rows=10, created_record_ids=[1, 2])
        fresh = ImportJob.objects.create(filename='fresh.csv')
        done = self.make_stale_job(status=ImportJob.STATUS_COMPLETED)

        self.assertEqual(fail_orphaned_imports(), 1)

        stale.refresh_from_db()
        self.assertEqual(stale.status, ImportJob.STATUS_FAILED)
        self.assertEqual(stale.error_message, ORPHANED_IMPORT_MESSAGE)
        self.assertEqual(stale.inserted_count, 2)
        self.assertEqual(stale.failed_count, 8)
        self.assertIsNotNone(stale.completed_at)

        fresh.refresh_from_db()
        done.refresh_from_db()
        self.assertEqual(fresh.status, ImportJob.STATUS_PROCESSING)
        self.assertEqual(done.status, ImportJob.STATUS_COMPLETED)

    def test_worker_ready_recovers_orphans(self):
        stale = self.make_stale_job()
        recover_orphaned_imports(sender=None)
        stale.refresh_from_db()
        self.assertEqual(stale.status, ImportJob.STATUS_FAILED)

    def test_orphaned_job_is_then_skipped_by_task(self):
        stale = self.make_stale_job()
        fail_orphaned_imports()
        process_import_job(str(stale.id), make_csv([project_row('A')]))
        self.assertEqual(Project.objects.count(), 0)

    @override_settings(IMPORT_PROGRESS_INTERVAL=1)
    def test_redelivered_task_does_not_rerun_import(self):
        job = ImportJob.objects.create(filename='a.csv')
        content = make_csv([project_row(f'P{i}') for i in range(4)])
        import_project_row = CSVImportService._import_project_row

        def worker_lost_on_third_row(service, row, tables, row_number):
            if row_number == 4:
                raise SystemExit('worker lost')
            return import_project_row(service, row, tables, row_number)

        with patch.object(CSVImportService, '_import_project_row', autospec=True,
                          side_effect=worker_lost_on_third_row):
            with self.assertRaises(SystemExit):
                process_import_job(str(job.id), content)

        job.refresh_from_db()
        self.assertEqual(job.status, ImportJob.STATUS_PROCESSING)
        self.assertIsNotNone(job.started_at)
        self.assertEqual(len(job.created_record_ids), 2)

        result = process_import_job(str(job.id), content)

        job.refresh_from_db()
        self.assertEqual(result, ImportJob.STATUS_FAILED)
        self.assertEqual(job.error_message, ORPHANED_IMPORT_MESSAGE)
        self.assertEqual(Project.objects.count(), 2)
        self.assertEqual(
            sorted(job.created_record_ids),
            sorted(Project.objects.values_list('id', flat=True))
        )
        self.assertEqual(job.inserted_count, 2)
        self.assertEqual(job.failed_count, 2)

    def test_claim_only_once(self):
        job = ImportJob.objects.create(filename='a.csv')
        self.assertTrue(job.claim())
        self.assertFalse(ImportJob.objects.get(pk=job.pk).claim())

        finished = ImportJob.objects.create(filename='b.csv', status=ImportJob.STATUS_COMPLETED)
        self.assertFalse(finished.claim())

    def test_slow_run_finishing_after_sweep_completes_cleanly(self):
        job = ImportJob.objects.create(filename='slow.csv')
        fail_interrupted_import(ImportJob.objects.get(pk=job.pk))

        process_csv_import(job, make_csv([project_row('A')]))

        job.refresh_from_db()
        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.error_message, '')
        self.assertEqual(job.inserted_count, 1)


# =============================================================================
# MANAGEMENT COMMAND TESTS
# =============================================================================

class ManagementCommandTest(ReferenceDataMixin, TestCase):

    def setUp(self):
        self.create_reference_data()

    def write_csv(self, content):
        handle = tempfile.NamedTemporaryFile('w', suffix='.csv', delete=False, encoding='utf-8')
        handle.write(content)
        handle.close()
        self.addCleanup(os.unlink, handle.name)
        return handle.name

    def test_import_csv_command(self):
        path = self.write_csv(make_csv([project_row('A'), project_row('')]))
        out = io.StringIO()
        call_command('import_csv', path, stdout=out)

        job = ImportJob.objects.get()
        self.assertEqual(job.filename, os.path.basename(path))
        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.inserted_count, 1)
        self.assertIn('IMPORT COMPLETE', out.getvalue())
        self.assertIn(MISSING_FIELDS_MESSAGE, out.getvalue())

    def test_import_csv_command_entity_type(self):
        path = self.write_csv(make_csv([{'name': 'Converse Bank'}], columns=['name', 'logo_url', 'description']))
        call_command('import_csv', path, entity_type='banks', stdout=io.StringIO())
        self.assertEqual(ImportJob.objects.get().entity_type, ImportJob.ENTITY_BANKS)
        self.assertTrue(Bank.objects.filter(name='Converse Bank').exists())

    def test_import_csv_missing_file(self):
        with self.assertRaises(CommandError):
            call_command('import_csv', '/nonexistent/file.csv')

    def test_undo_import_command(self):
        job = self.run_import(make_csv([project_row('A')]))
        out = io.StringIO()
        call_command('undo_import', str(job.id), stdout=out)

        job.refresh_from_db()
        self.assertEqual(job.status, ImportJob.STATUS_UNDONE)
        self.assertIn('1 record(s) deleted', out.getvalue())

        with self.assertRaises(CommandError):
            call_command('undo_import', str(job.id))

    def test_fail_orphaned_imports_command(self):
        ImportJob.objects.create(filename='stuck.csv')
        out = io.StringIO()
        call_command('fail_orphaned_imports', older_than=-1, stdout=out)
        self.assertEqual(ImportJob.objects.get().status, ImportJob.STATUS_FAILED)
        self.assertIn('Marked 1 orphaned import(s) as failed', out.getvalue())


# =============================================================================
# API TESTS
# =============================================================================

class ImportAPITestCase(ReferenceDataMixin, APITestCase):
    """Base class for import API tests"""

    def setUp(self):
        self.create_reference_data()
        self.admin = User.objects.create_user(
            username='admin',
            email='admin@example.com',
            password='testpass123',
            is_staff=True
        )
        self.client.force_authenticate(user=self.admin)

    def upload(self, content, filename='projects.csv', content_type='text/csv', url_name='project-import'):
        upload = SimpleUploadedFile(filename, content.encode('utf-8'), content_type=content_type)
        return self.client.post(reverse(url_name), {'file': upload}, format='multipart')


class CSVUploadViewTest(ImportAPITestCase):

    @patch('imports.views.process_import_job')
    def test_upload_creates_job_and_dispatches(self, mock_task):
        content = make_csv([project_row('A')])
        response = self.upload(content)

        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED)
        job = ImportJob.objects.get(pk=response.data['importJobId'])
        self.assertEqual(job.status, ImportJob.STATUS_PROCESSING)
        self.assertEqual(job.entity_type, ImportJob.ENTITY_PROJECTS)
        self.assertEqual(job.created_by_admin, self.admin)
        self.assertEqual(job.filename, 'projects.csv')
        self.assertIn('message', response.data)
        mock_task.delay.assert_called_once_with(str(job.id), content)

        audit = AuditLog.objects.get(action_type='csv_import_start')
        self.assertEqual(audit.target_id, str(job.id))
        self.assertEqual(audit.metadata_json['filename'], 'projects.csv')

    @patch('imports.views.process_import_job')
    def test_upload_runs_import_to_completion(self, mock_task):
        mock_task.delay.side_effect = lambda job_id, content: process_import_job(job_id, content)
        response = self.upload(make_csv([project_row('A', banks='Ameriabank'), project_row('B')]))

        job = ImportJob.objects.get(pk=response.data['importJobId'])
        self.assertEqual(job.status, ImportJob.STATUS_COMPLETED)
        self.assertEqual(job.inserted_count, 2)

    @patch('imports.views.process_import_job')
    def test_directory_upload_urls(self, mock_task):
        content = make_csv([{'name': 'Skyline'}], columns=['name', 'logo_url', 'description'])
        response = self.upload(content, filename='developers.csv', url_name='developer-import')
        self.assertEqual(ImportJob.objects.get(pk=response.data['importJobId']).entity_type, 'developers')

        response = self.upload(content, filename='banks.csv', url_name='bank-import')
        self.assertEqual(ImportJob.objects.get(pk=response.data['importJobId']).entity_type, 'banks')

    def test_no_file(self):
        response = self.client.post(reverse('project-import'), {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No file uploaded')

    def test_wrong_file_type(self):
        response = self.upload('hello', filename='notes.txt', content_type='text/plain')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Only CSV files are allowed')
        self.assertFalse(ImportJob.objects.exists())

    @override_settings(IMPORT_MAX_FILE_SIZE=10)
    def test_file_too_large(self):
        response = self.upload(make_csv([project_row('A')]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'File too large')

    @patch('imports.views.process_import_job')
    def test_dispatch_failure(self, mock_task):
        mock_task.delay.side_effect = OSError('broker unreachable')
        response = self.upload(make_csv([project_row('A')]))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['message'], 'Failed to start import')
        job = ImportJob.objects.get()
        self.assertEqual(job.status, ImportJob.STATUS_FAILED)

    def test_requires_staff(self):
        user = User.objects.create_user(username='viewer', password='testpass123')
        self.client.force_authenticate(user=user)
        response = self.upload(make_csv([project_row('A')]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('import-job-list'))
        self.assertIn(response.status_code, [status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN])


class ImportJobViewSetTest(ImportAPITestCase):

    def setUp(self):
        super().setUp()
        self.job = self.run_import(
            make_csv([project_row('A'), project_row(''), project_row('B', developer='Nobody')]),
            filename='spring_projects.csv'
        )
        self.bank_job = self.run_import(
            make_csv([{'name': 'Converse Bank'}], columns=['name', 'logo_url', 'description']),
            entity_type=ImportJob.ENTITY_BANKS,
            filename='banks.csv'
        )

    def test_list_envelope(self):
        response = self.client.get(reverse('import-job-list'), {'limit': 1})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['limit'], 1)
        self.assertEqual(response.data['page'], 1)
        self.assertEqual(response.data['totalPages'], 2)
        self.assertEqual(len(response.data['data']), 1)

    def test_list_filters(self):
        response = self.client.get(reverse('import-job-list'), {'entityType': 'banks'})
        self.assertEqual([row['id'] for row in response.data['data']], [str(self.bank_job.id)])

        response = self.client.get(reverse('import-job-list'), {'search': 'SPRING'})
        self.assertEqual([row['id'] for row in response.data['data']], [str(self.job.id)])

        response = self.client.get(reverse('import-job-list'), {'status': 'undone'})
        self.assertEqual(response.data['total'], 0)

    def test_retrieve(self):
        response = self.client.get(reverse('import-job-detail', kwargs={'pk': self.job.id}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], str(self.job.id))
        self.assertEqual(response.data['entityType'], 'projects')
        self.assertEqual(response.data['status'], 'completed')
        self.assertEqual(response.data['totalRows'], 3)
        self.assertEqual(response.data['insertedCount'], 1)
        self.assertEqual(response.data['failedCount'], 2)
        self.assertEqual(response.data['updatedCount'], 0)
        self.assertEqual(response.data['createdRecordIds'], self.job.created_record_ids)
        self.assertIsNone(response.data['undoneAt'])

    def test_retrieve_unknown(self):
        response = self.client.get(reverse('import-job-detail', kwargs={'pk': uuid.uuid4()}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Import job not found')

    def test_errors(self):
        response = self.client.get(reverse('import-job-errors', kwargs={'pk': self.job.id}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['rowNumber'] for row in response.data], [3, 4])
        self.assertEqual(response.data[0]['errorMessage'], MISSING_FIELDS_MESSAGE)
        self.assertEqual(response.data[1]['errorMessage'], 'Developer not found: Nobody')
        self.assertEqual(response.data[1]['rawRowJson']['developer'], 'Nobody')
        self.assertEqual(response.data[0]['importJobId'], str(self.job.id))

    def test_undo(self):
        url = reverse('import-job-undo', kwargs={'pk': self.job.id})
        response = self.client.post(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['undoneCount'], 1)
        self.assertEqual(response.data['failedCount'], 0)
        self.assertIn('message', response.data)
        self.assertTrue(AuditLog.objects.filter(action_type='csv_import_undo', target_id=str(self.job.id)).exists())

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Import has already been undone')

    def test_undo_preconditions(self):
        response = self.client.post(reverse('import-job-undo', kwargs={'pk': uuid.uuid4()}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Import job not found')

        empty_job = self.run_import(make_csv([project_row('')]))
        response = self.client.post(reverse('import-job-undo', kwargs={'pk': empty_job.id}))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No records to undo for this import')

        ImportJob.objects.filter(pk=self.bank_job.pk).update(status=ImportJob.STATUS_PROCESSING)
        response = self.client.post(reverse('import-job-undo', kwargs={'pk': self.bank_job.id}))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Only completed imports can be undone')

    def test_template(self):
        response = self.client.get(reverse('import-job-template'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertEqual(response.content.decode().splitlines()[0], ','.join(PROJECT_COLUMNS))

        response = self.client.get(reverse('import-job-template'), {'entityType': 'banks'})
        self.assertEqual(response.content.decode().splitlines()[0], 'name,logo_url,description')

        response = self.client.get(reverse('import-job-template'), {'entityType': 'tenants'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
