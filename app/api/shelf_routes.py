"""Custom shelf API routes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.schemas import ShelfRequest, ShelfResponse
from app.core.dependencies import get_shelf_service
from app.domain.exceptions import ShelfConflictError
from app.domain.services import IShelfService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shelves", tags=["shelves"])


@router.get("", response_model=list[ShelfResponse])
async def list_shelves(
    shelf_service: Annotated[IShelfService, Depends(get_shelf_service)],
) -> list[ShelfResponse]:
    """Custom shelves, oldest first, with the number of books on each."""
    shelves = await shelf_service.list_shelves()
    return [ShelfResponse.model_validate(s) for s in shelves]


@router.post("", response_model=ShelfResponse, status_code=status.HTTP_201_CREATED)
async def create_shelf(
    payload: ShelfRequest,
    shelf_service: Annotated[IShelfService, Depends(get_shelf_service)],
) -> ShelfResponse:
    try:
        shelf = await shelf_service.create_shelf(payload.name)
    except ShelfConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ShelfResponse.model_validate(shelf)


@router.put("/{shelf_id}", response_model=ShelfResponse)
async def rename_shelf(
    shelf_id: UUID,
    payload: ShelfRequest,
    shelf_service: Annotated[IShelfService, Depends(get_shelf_service)],
) -> ShelfResponse:
    try:
        shelf = await shelf_service.rename_shelf(shelf_id, payload.name)
    except ShelfConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not shelf:
        raise HTTPException(status_code=404, detail="Shelf not found")
    return ShelfResponse.model_validate(shelf)


@router.delete("/{shelf_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shelf(
    shelf_id: UUID,
    shelf_service: Annotated[IShelfService, Depends(get_shelf_service)],
):
    """Delete a shelf; its books stay in the library without a shelf."""
    if not await shelf_service.delete_shelf(shelf_id):
        raise HTTPException(status_code=404, detail="Shelf not found")
