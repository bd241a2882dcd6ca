from typing import Dict, Any, List, Optional
import logging

from ..core.exceptions import NotFoundError, StoreUnavailableError
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS, room_subcollection
from ..models.database_models import ActorContext, Equipment, EquipmentCreate
from .activity_log_service import activity_log_service

logger = logging.getLogger(__name__)


class EquipmentService:
    def __init__(self):
        self.db = database_service
        self.activity_log = activity_log_service

    async def _require_room(self, room_id: str) -> Dict[str, Any]:
        success, room, error = await self.db.get_document(COLLECTIONS['rooms'], room_id)
        if not success:
            raise StoreUnavailableError(f"Failed to load room {room_id}: {error}")
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        return room

    async def add_equipment(self, actor: Optional[ActorContext], room_id: str, data: EquipmentCreate) -> Dict[str, Any]:
        """Add an entry to rooms/{room_id}/equipment with the room's floor copied onto it"""
        room = await self._require_room(room_id)

        equipment = Equipment(
            name=data.name,
            quantity=data.quantity,
            condition=data.condition,
            status=data.status,
            notes=data.notes,
            room_id=room_id,
            floor=room.get('floor'),
        )
        payload = equipment.model_dump(by_alias=True, mode='json', exclude={'id', 'added_at'})
        payload['addedAt'] = self.db.server_timestamp()

        success, equipment_id, error = await self.db.create_document(
            room_subcollection(room_id, 'equipment'),
            payload
        )
        if not success:
            raise StoreUnavailableError(f"Failed to add equipment to room {room_id}: {error}")

        logger.info(f"[Equipment] Added {data.quantity} x {data.name} to room {room_id}")
        await self.activity_log.log_activity(actor, 'add', f"Added equipment {data.name} to room {room_id}")

        return {**payload, 'id': equipment_id, 'addedAt': None}

    async def list_equipment(self, room_id: str) -> List[Dict[str, Any]]:
        await self._require_room(room_id)

        success, items, error = await self.db.query_documents(room_subcollection(room_id, 'equipment'))
        if not success:
            raise StoreUnavailableError(f"Failed to load equipment for room {room_id}: {error}")
        return items

    async def delete_equipment(self, actor: Optional[ActorContext], room_id: str, equipment_id: str) -> None:
        path = room_subcollection(room_id, 'equipment')

        success, item, error = await self.db.get_document(path, equipment_id)
        if not success:
            raise StoreUnavailableError(f"Failed to load equipment {equipment_id}: {error}")
        if not item:
            raise NotFoundError(f"Equipment {equipment_id} not found in room {room_id}")

        success, error = await self.db.delete_document(path, equipment_id)
        if not success:
            raise StoreUnavailableError(f"Failed to delete equipment {equipment_id}: {error}")

        logger.info(f"[Equipment] Deleted {equipment_id} from room {room_id}")
        await self.activity_log.log_activity(
            actor, 'delete_equipment', f"Deleted equipment {equipment_id} from Room {room_id}"
        )


equipment_service = EquipmentService()
