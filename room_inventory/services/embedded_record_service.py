"""
Embedded Record Service - maintenance and replacement needs stored on a room

Records live in ordered arrays on the room document ('maintenance' and
'replacements'). Every change reads the room, edits the array in memory and
writes the whole array back through a version-checked update, retrying when
another writer bumped 'records_version' in between.

Records can be addressed by position (legacy) or by their stable 'recordId'.
A position is only meaningful against the array it was read from: after a
removal every later record shifts down by one.
"""

from typing import Dict, Any, List, Optional, Callable, Union
from datetime import datetime, timezone
import logging
import uuid

from ..core.config import settings
from ..core.exceptions import NotFoundError, InvalidIndexError, StoreUnavailableError, ConflictError
from ..database.database_service import database_service, VERSION_CONFLICT, DOCUMENT_NOT_FOUND
from ..database.collections import COLLECTIONS
from ..models.database_models import (
    ActorContext,
    MaintenanceRecordCreate,
    ReplacementRecordCreate,
    RecordKind,
)
from .activity_log_service import activity_log_service

logger = logging.getLogger(__name__)

RecordCreate = Union[MaintenanceRecordCreate, ReplacementRecordCreate]


def new_record_id() -> str:
    return uuid.uuid4().hex[:12]


class EmbeddedRecordService:
    def __init__(self, field: str, kind: RecordKind):
        self.db = database_service
        self.activity_log = activity_log_service
        self.field = field
        self.kind = kind

    @property
    def label(self) -> str:
        return self.kind.value

    async def _load_room(self, room_id: str) -> Dict[str, Any]:
        success, room, error = await self.db.get_document(COLLECTIONS['rooms'], room_id)
        if not success:
            raise StoreUnavailableError(f"Failed to load room {room_id}: {error}")
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        return room

    async def _mutate(self, room_id: str, change: Callable[[List[Dict[str, Any]]], Any]) -> Any:
        """
        Apply `change` to a fresh copy of the room's array and write it back.

        `change` edits the list in place and returns the value handed back to
        the caller; it is re-run against a re-read array after a conflict.
        """
        attempts = max(1, settings.RECORD_WRITE_RETRIES)

        for attempt in range(1, attempts + 1):
            room = await self._load_room(room_id)
            records = [dict(record) for record in room.get(self.field) or []]
            result = change(records)

            success, error = await self.db.update_document_if_version(
                COLLECTIONS['rooms'],
                room_id,
                {self.field: records, 'lastModified': self.db.server_timestamp()},
                expected_version=room.get('records_version') or 0,
            )
            if success:
                return result
            if error == VERSION_CONFLICT:
                logger.info(f"[Records] {self.label} write on room {room_id} lost a race (attempt {attempt}/{attempts})")
                continue
            if error == DOCUMENT_NOT_FOUND:
                raise NotFoundError(f"Room {room_id} not found")
            raise StoreUnavailableError(f"Failed to update {self.label} records for room {room_id}: {error}")

        raise ConflictError(
            f"Room {room_id} {self.label} records kept changing; gave up after {attempts} attempts"
        )

    def _check_index(self, records: List[Dict[str, Any]], index: int) -> None:
        if index < 0 or index >= len(records):
            raise InvalidIndexError(index, len(records), self.label)

    def _position_of(self, records: List[Dict[str, Any]], record_id: str, room_id: str) -> int:
        for position, record in enumerate(records):
            if record.get('recordId') == record_id:
                return position
        raise NotFoundError(f"{self.label.capitalize()} record {record_id} not found in room {room_id}")

    @staticmethod
    def _mark_resolved(record: Dict[str, Any]) -> Dict[str, Any]:
        # Already resolved records are accepted and get a fresh resolvedAt
        record['resolved'] = True
        record['resolvedAt'] = datetime.now(timezone.utc)
        return dict(record)

    async def _log_change(self, actor: Optional[ActorContext], action: str, room_id: str, record: Dict[str, Any]) -> None:
        verb = 'Resolved' if action == 'resolve' else 'Deleted'
        await self.activity_log.log_activity(actor, action, {
            'type': self.label,
            'details': f"{verb} {self.label} record for {record.get('equipmentName')} in room {room_id}",
            'references': {
                'roomId': room_id,
                'recordId': record.get('recordId'),
                'equipmentName': record.get('equipmentName'),
            }
        })

    async def list_records(self, room_id: str) -> List[Dict[str, Any]]:
        """Records in stored order, each tagged with its current index."""
        room = await self._load_room(room_id)
        return [
            {**record, 'index': position}
            for position, record in enumerate(room.get(self.field) or [])
        ]

    async def append(self, actor: Optional[ActorContext], room_id: str, data: RecordCreate) -> Dict[str, Any]:
        record = {
            'recordId': new_record_id(),
            'equipmentName': data.equipment_name,
            'quantity': data.quantity,
            'status': data.status.value,
            'description': data.description,
            'createdAt': datetime.now(timezone.utc),
            'resolved': False,
            'equipmentId': data.equipment_id or None,
        }

        def change(records):
            records.append(record)
            return dict(record)

        created = await self._mutate(room_id, change)
        logger.info(f"[Records] Added {self.label} record {record['recordId']} to room {room_id}")

        await self.activity_log.log_activity(actor, f"Added {self.label.capitalize()} Need", {
            'type': self.label,
            'details': f"Added {self.label} need for {data.equipment_name} in room {room_id}",
            'references': {
                'roomId': room_id,
                'equipmentName': data.equipment_name,
                'quantity': data.quantity,
                'status': data.status.value,
                'reason': data.description,
            }
        })
        return created

    async def resolve(self, actor: Optional[ActorContext], room_id: str, index: int) -> Dict[str, Any]:
        def change(records):
            self._check_index(records, index)
            return self._mark_resolved(records[index])

        resolved = await self._mutate(room_id, change)
        await self._log_change(actor, 'resolve', room_id, resolved)
        return resolved

    async def remove(self, actor: Optional[ActorContext], room_id: str, index: int) -> Dict[str, Any]:
        def change(records):
            self._check_index(records, index)
            return records.pop(index)

        removed = await self._mutate(room_id, change)
        await self._log_change(actor, 'delete', room_id, removed)
        return removed

    async def resolve_by_id(self, actor: Optional[ActorContext], room_id: str, record_id: str) -> Dict[str, Any]:
        def change(records):
            return self._mark_resolved(records[self._position_of(records, record_id, room_id)])

        resolved = await self._mutate(room_id, change)
        await self._log_change(actor, 'resolve', room_id, resolved)
        return resolved

    async def remove_by_id(self, actor: Optional[ActorContext], room_id: str, record_id: str) -> Dict[str, Any]:
        def change(records):
            return records.pop(self._position_of(records, record_id, room_id))

        removed = await self._mutate(room_id, change)
        await self._log_change(actor, 'delete', room_id, removed)
        return removed


maintenance_record_service = EmbeddedRecordService('maintenance', RecordKind.MAINTENANCE)
replacement_record_service = EmbeddedRecordService('replacements', RecordKind.REPLACEMENT)

RECORD_SERVICES = {
    'maintenance': maintenance_record_service,
    'replacements': replacement_record_service,
}
