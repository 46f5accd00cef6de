"""Celery application instance.

Start the worker::

    celery -A pos_backend.app.workers.celery_app worker --loglevel=info

Only needed when ``LEDGER_POST_ASYNC`` is on; otherwise ledger postings run
inline right after the invoice commits.
"""

from __future__ import annotations

from celery import Celery

from pos_backend.app.core.config import settings

celery = Celery(
    "pos_backend",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

celery.autodiscover_tasks(["pos_backend.app.workers.tasks"], related_name="ledger")
