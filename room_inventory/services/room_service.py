from typing import Dict, Any, List, Optional
import asyncio
import logging
import re

from ..core.exceptions import NotFoundError, StoreUnavailableError, ConflictError
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS, ROOM_SUBCOLLECTIONS, room_subcollection
from ..models.database_models import ActorContext, Room, RoomCreate, RoomUpdate
from .activity_log_service import activity_log_service
from .dashboard_service import sort_floor_keys
from .floor_service import floor_service

logger = logging.getLogger(__name__)


def room_number_key(room: Dict[str, Any]):
    """Natural order for room numbers: '2' < '10' < '10A'."""
    number = str(room.get('number') or '')
    return [(0, int(part), '') if part.isdigit() else (1, 0, part.lower())
            for part in re.split(r'(\d+)', number) if part]


class RoomService:
    def __init__(self):
        self.db = database_service
        self.activity_log = activity_log_service
        self.floors = floor_service

    async def get_room(self, room_id: str) -> Dict[str, Any]:
        success, room, error = await self.db.get_document(COLLECTIONS['rooms'], room_id)
        if not success:
            raise StoreUnavailableError(f"Failed to load room {room_id}: {error}")
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        return room

    async def list_rooms(self) -> List[Dict[str, Any]]:
        success, rooms, error = await self.db.query_documents(COLLECTIONS['rooms'])
        if not success:
            raise StoreUnavailableError(f"Failed to load rooms: {error}")
        return rooms

    async def list_rooms_for_floor(self, floor: str) -> List[Dict[str, Any]]:
        success, rooms, error = await self.db.query_documents(
            COLLECTIONS['rooms'],
            [('floor', '==', str(floor))]
        )
        if not success:
            raise StoreUnavailableError(f"Failed to load rooms for floor {floor}: {error}")
        return sorted(rooms, key=room_number_key)

    async def rooms_by_floor(self) -> Dict[Any, List[Dict[str, Any]]]:
        """All rooms grouped by their floor value as stored, floors and rooms in numeric order."""
        grouped: Dict[Any, List[Dict[str, Any]]] = {}
        for room in await self.list_rooms():
            grouped.setdefault(room.get('floor'), []).append(room)
        return {floor: sorted(grouped[floor], key=room_number_key) for floor in sort_floor_keys(grouped)}

    async def find_rooms_numbered(self, floor: Any, number: str, exclude_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Rooms on `floor` with this room number.

        Older room documents hold the floor as a number, so a numeric floor is
        matched in both its string and integer form.
        """
        candidates = [str(floor)]
        if str(floor).isdigit():
            candidates.append(int(floor))

        matches = []
        for value in candidates:
            success, rooms, error = await self.db.query_documents(
                COLLECTIONS['rooms'],
                [('floor', '==', value), ('number', '==', number)]
            )
            if not success:
                raise StoreUnavailableError(f"Failed to check existing rooms: {error}")
            matches.extend(r for r in rooms if (r.get('_doc_id') or r.get('id')) != exclude_id)
        return matches

    async def add_room(self, actor: Optional[ActorContext], data: RoomCreate) -> Dict[str, Any]:
        await self.floors.get_floor(data.floor)

        room_id = f"{data.floor}-{data.number}"
        success, existing_room, error = await self.db.get_document(COLLECTIONS['rooms'], room_id)
        if not success:
            raise StoreUnavailableError(f"Failed to check room {room_id}: {error}")
        if existing_room or await self.find_rooms_numbered(data.floor, data.number):
            raise ConflictError("A room with this number already exists on this floor!")

        room = Room(id=room_id, floor=data.floor, number=data.number, name=data.name)
        payload = room.model_dump(by_alias=True, exclude={'last_modified'})
        payload['lastModified'] = self.db.server_timestamp()

        success, _, error = await self.db.create_document(
            COLLECTIONS['rooms'],
            payload,
            document_id=room_id
        )
        if not success:
            raise StoreUnavailableError(f"Failed to add room {room_id}: {error}")

        logger.info(f"[Rooms] Added room {room_id}")
        await self.activity_log.log_activity(
            actor, 'add_room', f"Added room {data.name} ({data.number}) on Floor {data.floor}"
        )
        return {**payload, 'lastModified': None}

    async def update_room(self, actor: Optional[ActorContext], room_id: str, data: RoomUpdate) -> Dict[str, Any]:
        room = await self.get_room(room_id)

        changes = data.model_dump(exclude_none=True)
        if not changes:
            return room
        if 'number' in changes and changes['number'] != room.get('number'):
            if await self.find_rooms_numbered(room.get('floor'), changes['number'], exclude_id=room_id):
                raise ConflictError("A room with this number already exists on this floor!")
        changes['lastModified'] = self.db.server_timestamp()

        success, error = await self.db.update_document(COLLECTIONS['rooms'], room_id, changes)
        if not success:
            raise StoreUnavailableError(f"Failed to update room {room_id}: {error}")

        number = changes.get('number', room.get('number'))
        await self.activity_log.log_activity(actor, 'update', f"Updated details for room {number}")
        return {**room, **changes, 'lastModified': None}

    async def delete_room(self, actor: Optional[ActorContext], room_id: str) -> None:
        """
        Delete a room together with its subcollections.

        Child deletions run concurrently and are awaited together. If any of
        them fails the room document is kept and a single batch-level error
        is raised; children already deleted stay deleted.
        """
        room = await self.get_room(room_id)

        deletions = []
        for name in ROOM_SUBCOLLECTIONS:
            path = room_subcollection(room_id, name)
            success, child_ids, error = await self.db.list_document_ids(path)
            if not success:
                raise StoreUnavailableError(f"Failed to list {name} of room {room_id}: {error}")
            deletions.extend(self.db.delete_document(path, child_id) for child_id in child_ids)

        results = await asyncio.gather(*deletions, return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException) or not r[0]]
        if failures:
            logger.error(f"[Rooms] {len(failures)} of {len(results)} child deletions failed for room {room_id}")
            raise StoreUnavailableError(f"Failed to delete room {room_id}: some deletions may have failed")

        success, error = await self.db.delete_document(COLLECTIONS['rooms'], room_id)
        if not success:
            raise StoreUnavailableError(f"Failed to delete room {room_id}: {error}")

        logger.info(f"[Rooms] Deleted room {room_id} and {len(results)} child documents")
        await self.activity_log.log_activity(
            actor, 'delete', f"Deleted room {room.get('number', room_id)} and all associated records"
        )


room_service = RoomService()
