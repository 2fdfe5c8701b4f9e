"""Custom shelf service."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from app.domain.entities import Shelf
from app.domain.exceptions import ShelfConflictError
from app.domain.repositories import IShelfRepository
from app.domain.services import IShelfService
from app.domain.transitions import require_text

logger = logging.getLogger(__name__)

DUPLICATE_SHELF = "A shelf with this name already exists"


class ShelfService(IShelfService):

    def __init__(self, shelf_repository: IShelfRepository):
        self.shelf_repository = shelf_repository

    async def list_shelves(self) -> list[Shelf]:
        return await self.shelf_repository.list_all()

    async def create_shelf(self, name: str) -> Shelf:
        name = require_text(name, "shelf name")
        if await self.shelf_repository.get_by_name(name):
            raise ShelfConflictError(DUPLICATE_SHELF)
        shelf = await self.shelf_repository.create(
            Shelf(id=uuid4(), name=name, created_at=datetime.utcnow())
        )
        logger.info("Shelf created: %s '%s'", shelf.id, shelf.name)
        return shelf

    async def rename_shelf(self, shelf_id: UUID, name: str) -> Optional[Shelf]:
        name = require_text(name, "shelf name")
        existing = await self.shelf_repository.get_by_name(name)
        if existing and existing.id != shelf_id:
            raise ShelfConflictError(DUPLICATE_SHELF)
        shelf = await self.shelf_repository.rename(shelf_id, name)
        if shelf:
            logger.info("Shelf renamed: %s -> '%s'", shelf_id, name)
        return shelf

    async def delete_shelf(self, shelf_id: UUID) -> bool:
        """Delete a custom shelf; its books stay in the library, unshelved."""
        deleted = await self.shelf_repository.delete(shelf_id)
        if deleted:
            logger.info("Shelf deleted: %s", shelf_id)
        return deleted
