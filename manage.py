#!/usr/bin/env python
"""
Django's command-line utility for administrative tasks.

Realty Back Office Management Script
====================================

Usage Examples:
===============

Development:
  python manage.py runserver                    # Start development server
  python manage.py migrate                      # Apply migrations
  python manage.py createsuperuser              # Create admin user
  python manage.py test                         # Run tests

Background Worker:
  celery -A realty worker -l info               # Run import tasks (needs REDIS_URL)

Import Commands:
  python manage.py import_csv <file> [--entity-type projects|developers|banks]
  python manage.py undo_import <job_id>
  python manage.py fail_orphaned_imports [--older-than SECONDS]
"""

import os
import sys


def main():
    """Run administrative tasks."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'realty.settings')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        error_msg = (
            "Couldn't import Django. This usually means:\n"
            "  1. Django is not installed - run: pip install -e .\n"
            "  2. Virtual environment is not activated\n\n"
            f"Current Python path: {sys.executable}\n"
            f"DJANGO_SETTINGS_MODULE: {os.environ.get('DJANGO_SETTINGS_MODULE', 'Not set')}\n"
        )
        raise ImportError(error_msg) from exc

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
