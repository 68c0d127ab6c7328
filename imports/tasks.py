"""
Celery tasks for the imports app.
"""
import logging

from celery import shared_task
from celery.signals import worker_ready

from .models import ImportJob
from .services import fail_interrupted_import, fail_orphaned_imports, process_csv_import

logger = logging.getLogger(__name__)


# Acked on receipt: a worker lost mid-run leaves the job to orphan recovery
@shared_task(name='imports.process_import_job', acks_late=False)
def process_import_job(job_id: str, content: str) -> str:
    """
    Run the executor for one ledger row.

    Returns the job's final status. A job that is gone or no longer
    processing (already finalized, or failed by orphan recovery) is left
    untouched. A job an earlier delivery already started is failed, never
    run a second time.
    """
    job = ImportJob.objects.filter(pk=job_id).first()
    if job is None:
        logger.warning(f"Import {job_id} not found, skipping")
        return 'missing'
    if not job.is_processing:
        logger.warning(f"Import {job_id} is {job.status}, skipping")
        return job.status

    if not job.claim():
        logger.error(f"Import {job_id} was already started by an earlier delivery")
        job.refresh_from_db()
        if job.is_processing:
            fail_interrupted_import(job)
        return job.status

    process_csv_import(job, content)
    return job.status


@shared_task(name='imports.fail_orphaned_imports')
def fail_orphaned_imports_task(older_than: int = None) -> int:
    return fail_orphaned_imports(older_than)


@worker_ready.connect
def recover_orphaned_imports(sender=None, **kwargs):
    # Jobs a dead worker left in "processing" would otherwise never finish
    failed = fail_orphaned_imports()
    if failed:
        logger.warning(f"Marked {failed} orphaned imports as failed on worker start")
