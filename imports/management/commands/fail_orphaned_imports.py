from django.conf import settings
from django.core.management.base import BaseCommand

from imports.services import fail_orphaned_imports


class Command(BaseCommand):
    help = 'Mark imports stuck in "processing" as failed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--older-than',
            type=int,
            default=settings.IMPORT_ORPHAN_AFTER_SECONDS,
            help='Seconds without progress before a job counts as orphaned',
        )

    def handle(self, *args, **options):
        failed = fail_orphaned_imports(options['older_than'])
        self.stdout.write(self.style.SUCCESS(f"Marked {failed} orphaned import(s) as failed"))
