from django.core.management.base import BaseCommand, CommandError

from imports.exceptions import UndoError
from imports.services import undo_import


class Command(BaseCommand):
    """Undo a completed import: soft-delete every record it created."""

    help = 'Undo a completed CSV import by job id'

    def add_arguments(self, parser):
        parser.add_argument('job_id', type=str, help='ImportJob id (UUID)')

    def handle(self, *args, **options):
        try:
            result = undo_import(options['job_id'])
        except UndoError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f"Import {result.import_job.id} undone: {result.undone_count} record(s) deleted"
        ))
        if result.failed_ids:
            self.stdout.write(self.style.WARNING(
                f"Could not delete {result.failed_count} record(s): "
                f"{', '.join(str(record_id) for record_id in result.failed_ids)}"
            ))
