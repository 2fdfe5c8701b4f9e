"""Task status API route.

Lets clients poll a background job started by another request, such as the
cover lookup whose id comes back in the ``X-Task-ID`` header of
``POST /api/books``.

  GET /api/tasks/{task_id}

``status`` is Celery's task state (PENDING, STARTED, RETRY, SUCCESS,
FAILURE); ``result`` is filled on success and ``error`` on failure.
"""

import logging

from celery.result import AsyncResult
from fastapi import APIRouter

from app.api.schemas import TaskStatusResponse
from app.infrastructure.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(task_id: str) -> TaskStatusResponse:
    result = AsyncResult(task_id, app=celery_app)
    state = result.state
    logger.debug("Task %s state: %s", task_id, state)

    return TaskStatusResponse(
        task_id=task_id,
        status=state,
        result=result.result if state == "SUCCESS" else None,
        error=str(result.result) if state == "FAILURE" else None,
    )
