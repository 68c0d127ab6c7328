"""
CSV import from the command line.

Creates an ImportJob exactly like an upload does, then runs the executor in
this process instead of on a worker.

Usage:
    python manage.py import_csv projects.csv
    python manage.py import_csv developers.csv --entity-type developers
"""

import os

from django.core.management.base import BaseCommand, CommandError

from imports.models import ImportJob
from imports.services import process_csv_import


class Command(BaseCommand):
    help = 'Import a projects, developers or banks CSV file and record it as an import job'

    def add_arguments(self, parser):
        parser.add_argument('csv_file', type=str, help='Path to CSV file')
        parser.add_argument(
            '--entity-type',
            default=ImportJob.ENTITY_PROJECTS,
            choices=[choice for choice, _ in ImportJob.ENTITY_TYPE_CHOICES],
            help='What the rows describe (default: projects)',
        )

    def handle(self, *args, **options):
        csv_file = options['csv_file']
        entity_type = options['entity_type']

        if not os.path.exists(csv_file):
            raise CommandError(f"CSV file not found: {csv_file}")

        with open(csv_file, 'rb') as handle:
            content = handle.read().decode('utf-8-sig', errors='replace')

        self.stdout.write(f"\nReading CSV: {csv_file} ({entity_type})")

        job = ImportJob.objects.create(
            filename=os.path.basename(csv_file),
            entity_type=entity_type,
            status=ImportJob.STATUS_PROCESSING,
        )
        outcome = process_csv_import(job, content)
        job.refresh_from_db()

        self._print_summary(job, outcome)

    def _print_summary(self, job, outcome):
        self.stdout.write("\n" + "=" * 70)
        if job.is_completed:
            self.stdout.write(self.style.SUCCESS("IMPORT COMPLETE"))
        else:
            self.stdout.write(self.style.ERROR("IMPORT FAILED"))
            self.stdout.write(self.style.ERROR(f"Error: {job.error_message}"))

        self.stdout.write("=" * 70)
        self.stdout.write(f"Import job: {job.id}")
        self.stdout.write(f"Rows: {job.total_rows}")
        self.stdout.write(f"Inserted: {job.inserted_count}")
        self.stdout.write(f"Failed: {job.failed_count}")

        if outcome.failures:
            self.stdout.write(self.style.WARNING(f"\nRow errors: {len(outcome.failures)}"))
            for failure in outcome.failures[:5]:
                self.stdout.write(f"  - Row {failure.row_number}: {failure.error_message}")
            if len(outcome.failures) > 5:
                self.stdout.write(f"  ... and {len(outcome.failures) - 5} more")
        self.stdout.write("=" * 70)
