"""Celery task wrappers for library background work.

Each task is a thin synchronous wrapper around the async coroutine defined in
``app.services.background_tasks``.  ``asyncio.run()`` is safe here because each
worker process runs independently of the API server's event loop.

Retry policy (per task):
  - max_retries=3   : up to 3 additional attempts on failure
  - countdown=60    : wait 60 s before each retry (absorbs network blips)
"""

import asyncio
import logging

from app.infrastructure.tasks.celery_app import celery_app
from app.services.background_tasks import backfill_book_cover_task, repair_book_metadata_task

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="covers.backfill_book_cover", max_retries=3)
def backfill_book_cover(self, book_id: str) -> bool:
    """Celery task: fetch an Open Library cover for a newly added book."""
    try:
        return asyncio.run(backfill_book_cover_task(book_id))
    except Exception as exc:
        logger.warning(
            "backfill_book_cover failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=60)


@celery_app.task(bind=True, name="library.repair_book_metadata", max_retries=3)
def repair_book_metadata(self) -> dict:
    """Celery task: fix or remove books with blank titles and authors."""
    try:
        return asyncio.run(repair_book_metadata_task())
    except Exception as exc:
        logger.warning(
            "repair_book_metadata failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=60)
