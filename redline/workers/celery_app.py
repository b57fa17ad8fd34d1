"""
Celery Application Configuration

Comparisons run on a dedicated queue so long PDF jobs never sit behind other
work. Start a worker for it with::

    celery -A redline.workers.celery_app worker -Q comparisons --concurrency 2

Each comparison holds two parsed PDFs in memory, so workers take one task at a
time, acknowledge it only when done and are recycled after a bounded number of
tasks.
"""

from celery import Celery
from celery.signals import task_postrun, task_prerun

from redline.core.config import get_settings
from redline.core.logging import bind_log_context, clear_log_context, configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

settings = get_settings()

celery_app = Celery(
    "redline",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["redline.workers.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_default_queue=settings.celery_queue,
    task_routes={"compare_documents": {"queue": settings.celery_queue}},
    task_time_limit=settings.celery_task_timeout,
    task_soft_time_limit=max(settings.celery_task_timeout - 60, 30),
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=settings.celery_max_tasks_per_child,
    result_expires=settings.celery_result_expires,
    result_extended=True,
)


@task_prerun.connect
def bind_task_log_context(task_id=None, task=None, **kwargs):
    """Tag every event logged by a task with its id and name."""
    clear_log_context()
    bind_log_context(task_id=task_id, task_name=task.name if task is not None else None)


@task_postrun.connect
def clear_task_log_context(**kwargs):
    clear_log_context()


logger.info(
    "celery_app_configured",
    broker=settings.celery_broker_url,
    queue=settings.celery_queue,
    time_limit=settings.celery_task_timeout,
    result_expires=settings.celery_result_expires
)
