"""
Dashboard Service - institution and per-floor rollups

Stats are recomputed from a full snapshot on every call: all rooms, then each
room's equipment subcollection. Nothing is cached or maintained
incrementally, which is fine for tens of rooms and will need maintained
counters well before thousands of documents.
"""

from typing import Dict, Any, List, Iterable
import logging

from ..core.exceptions import StoreUnavailableError
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS, room_subcollection
from ..models.database_models import DashboardStats, FloorStats, RoomSummary

logger = logging.getLogger(__name__)


def count_open(records: Any) -> int:
    """Records whose 'resolved' flag is falsy."""
    if not isinstance(records, list):
        return 0
    return sum(1 for record in records if isinstance(record, dict) and not record.get('resolved'))


def as_quantity(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        logger.warning(f"[Dashboard] Ignoring non-numeric equipment quantity {value!r}")
        return 0


def floor_sort_key(floor: Any):
    """Numeric floors first in numeric order, then anything else by text."""
    try:
        return (0, float(floor), str(floor))
    except (TypeError, ValueError):
        return (1, 0.0, str(floor))


def sort_floor_keys(floors: Iterable[Any]) -> List[Any]:
    return sorted(floors, key=floor_sort_key)


class DashboardService:
    def __init__(self):
        self.db = database_service

    async def room_equipment_total(self, room_id: str) -> int:
        """Sum of quantities in the room's equipment subcollection that name this room as owner."""
        success, items, error = await self.db.query_documents(room_subcollection(room_id, 'equipment'))
        if not success:
            raise StoreUnavailableError(f"Failed to load equipment for room {room_id}: {error}")
        return sum(as_quantity(item.get('quantity')) for item in items if item.get('roomId') == room_id)

    async def compute_stats(self) -> DashboardStats:
        success, rooms, error = await self.db.query_documents(COLLECTIONS['rooms'])
        if not success:
            raise StoreUnavailableError(f"Failed to load rooms: {error}")

        stats = DashboardStats()
        # Floor values are used exactly as stored, so "1" and 1 are different floors
        floors: Dict[Any, FloorStats] = {}

        for room in rooms:
            room_id = room.get('_doc_id') or room.get('id')
            floor_stat = floors.setdefault(room.get('floor'), FloorStats())

            equipment = await self.room_equipment_total(room_id)
            maintenance = count_open(room.get('maintenance'))
            replacement = count_open(room.get('replacements'))

            floor_stat.total_rooms += 1
            floor_stat.total_equipment += equipment
            floor_stat.need_maintenance += maintenance
            floor_stat.need_replacement += replacement
            floor_stat.rooms.append(RoomSummary(
                id=room_id,
                name=room.get('name'),
                equipment=equipment,
                maintenance=maintenance,
                replacement=replacement,
            ))

            stats.total_rooms += 1
            stats.total_equipment += equipment
            stats.total_maintenance_open += maintenance
            stats.total_replacement_open += replacement

        stats.per_floor = {floor: floors[floor] for floor in sort_floor_keys(floors)}
        logger.info(
            f"[Dashboard] {stats.total_rooms} rooms on {len(floors)} floors, "
            f"{stats.total_equipment} equipment, {stats.total_maintenance_open} open maintenance, "
            f"{stats.total_replacement_open} open replacement"
        )
        return stats


dashboard_service = DashboardService()
