"""
Realty back office Django project.

Loads the Celery app on Django start so that @shared_task uses it.
"""

from .celery import app as celery_app

__all__ = ('celery_app',)
