"""Celery application; Redis is both the broker and the result backend.

Workers run as a separate process from the API server, so Open Library
lookups and metadata repairs never block request handlers.

Task states a client sees at ``GET /api/tasks/{task_id}``:
  PENDING   dispatched, not yet picked up (or unknown id)
  STARTED   a worker is running it (task_track_started=True)
  SUCCESS   finished; the return value is the task result
  FAILURE   raised after exhausting its retries
  RETRY     waiting for the next attempt
"""

from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "shelfwise",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.infrastructure.tasks.library_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    result_expires=86400,           # results live in Redis for 24 h
    task_acks_late=True,            # ack after the task finishes so a crash re-queues it
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    # Picked up only when a beat process runs (celery -A ... beat).
    beat_schedule={
        "repair-book-metadata-nightly": {
            "task": "library.repair_book_metadata",
            "schedule": crontab(hour=3, minute=0),
        },
    },
)
