from typing import Dict, Any, List, Optional
import logging

from ..core.exceptions import NotFoundError, StoreUnavailableError, ConflictError
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS
from ..models.database_models import ActorContext, Floor, FloorCreate
from .activity_log_service import activity_log_service

logger = logging.getLogger(__name__)


class FloorService:
    def __init__(self):
        self.db = database_service
        self.activity_log = activity_log_service

    async def get_floor(self, floor_id: str) -> Dict[str, Any]:
        success, floor, error = await self.db.get_document(COLLECTIONS['floors'], str(floor_id))
        if not success:
            raise StoreUnavailableError(f"Failed to load floor {floor_id}: {error}")
        if not floor:
            raise NotFoundError(f"Floor {floor_id} not found")
        return floor

    async def list_floors(self) -> List[Dict[str, Any]]:
        success, floors, error = await self.db.query_documents(
            COLLECTIONS['floors'],
            order_by=[('number', 'asc')]
        )
        if not success:
            raise StoreUnavailableError(f"Failed to load floors: {error}")
        return floors

    async def add_floor(self, actor: Optional[ActorContext], data: FloorCreate) -> Dict[str, Any]:
        """Create floors/{number}; the number doubles as the document key."""
        floor_id = str(data.number)

        success, existing, error = await self.db.get_document(COLLECTIONS['floors'], floor_id)
        if not success:
            raise StoreUnavailableError(f"Failed to check floor {floor_id}: {error}")
        if existing:
            raise ConflictError(f"Floor {data.number} already exists")

        floor = Floor(number=data.number, name=data.name)
        payload = floor.model_dump(by_alias=True, exclude={'id', 'created_at'})
        payload['createdAt'] = self.db.server_timestamp()

        success, _, error = await self.db.create_document(
            COLLECTIONS['floors'],
            payload,
            document_id=floor_id
        )
        if not success:
            raise StoreUnavailableError(f"Failed to add floor {data.number}: {error}")

        logger.info(f"[Floors] Added floor {floor_id}")
        suffix = f" - {data.name}" if data.name else ""
        await self.activity_log.log_activity(actor, 'add_floor', f"Added floor {data.number}{suffix}")

        return {**payload, 'id': floor_id, 'createdAt': None}

    async def count_rooms_on_floor(self, floor: Dict[str, Any]) -> int:
        """
        Rooms referencing this floor.

        Rooms usually store the floor as a string, but older documents hold
        the number itself, so both forms are checked.
        """
        number = floor.get('number')
        candidates = {floor.get('_doc_id') or floor.get('id')}
        if number is not None:
            candidates.update({str(number), number})

        total = 0
        for value in candidates:
            if value is None:
                continue
            success, rooms, error = await self.db.query_documents(
                COLLECTIONS['rooms'],
                [('floor', '==', value)]
            )
            if not success:
                raise StoreUnavailableError(f"Failed to check rooms on floor {number}: {error}")
            total += len(rooms)
        return total

    async def remove_floor(self, actor: Optional[ActorContext], floor_id: str) -> None:
        floor = await self.get_floor(floor_id)

        if await self.count_rooms_on_floor(floor):
            raise ConflictError("Cannot delete floor that has rooms. Please delete all rooms first.")

        success, error = await self.db.delete_document(COLLECTIONS['floors'], str(floor_id))
        if not success:
            raise StoreUnavailableError(f"Failed to delete floor {floor_id}: {error}")

        logger.info(f"[Floors] Deleted floor {floor_id}")
        await self.activity_log.log_activity(actor, 'delete_floor', f"Deleted floor {floor.get('number', floor_id)}")


floor_service = FloorService()
