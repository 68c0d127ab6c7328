# ===== IMPORTS APP CONFIGURATION =====
"""
Django App Configuration for Imports

The imports app runs CSV bulk imports into the listings tables, keeps the
ImportJob ledger and reverses completed imports on request.
"""

from django.apps import AppConfig


class ImportsConfig(AppConfig):
    """
    Configuration class for the Imports Django app

    This app manages data ingestion workflows:
    - CSV upload and background processing
    - ImportJob ledger and per-row error log
    - Undo of completed imports
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'imports'
    verbose_name = 'Data Import Management'

    def ready(self):
        # Registers the worker_ready orphan recovery handler
        from . import tasks  # noqa: F401
