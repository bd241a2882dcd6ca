from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any, Type
import logging

from ..auth.dependencies import get_current_user, get_current_actor
from ..core.exceptions import InventoryError
from ..models.database_models import ActorContext, MaintenanceRecordCreate, ReplacementRecordCreate
from ..services.embedded_record_service import EmbeddedRecordService, RECORD_SERVICES

logger = logging.getLogger(__name__)


def build_record_router(service: EmbeddedRecordService, create_model: Type) -> APIRouter:
    """Routes for one of a room's record arrays, e.g. /rooms/{room_id}/maintenance"""
    router = APIRouter(
        prefix=f"/rooms/{{room_id}}/{service.field}",
        tags=[f"{service.label.capitalize()} Records"],
        responses={404: {"description": "Not found"}}
    )

    async def _run(description: str, call):
        try:
            return await call
        except (HTTPException, InventoryError):
            raise
        except Exception as e:
            logger.error(f"Error {description}: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    @router.get("/", response_model=Dict[str, Any])
    async def list_records(room_id: str, current_user: dict = Depends(get_current_user)):
        records = await _run(f"listing {service.label} records for room {room_id}", service.list_records(room_id))
        return {"success": True, "data": records, "count": len(records)}

    @router.post("/", response_model=Dict[str, Any], status_code=201)
    async def add_record(room_id: str, payload: create_model, actor: ActorContext = Depends(get_current_actor)):
        record = await _run(f"adding {service.label} record to room {room_id}", service.append(actor, room_id, payload))
        return {"success": True, "message": f"{service.label.capitalize()} need recorded successfully", "data": record}

    @router.post("/{index}/resolve", response_model=Dict[str, Any])
    async def resolve_record(room_id: str, index: int, actor: ActorContext = Depends(get_current_actor)):
        record = await _run(f"resolving {service.label} record {index} in room {room_id}", service.resolve(actor, room_id, index))
        return {"success": True, "message": f"{service.label.capitalize()} record marked as resolved", "data": record}

    @router.delete("/{index}", response_model=Dict[str, Any])
    async def delete_record(room_id: str, index: int, actor: ActorContext = Depends(get_current_actor)):
        record = await _run(f"deleting {service.label} record {index} in room {room_id}", service.remove(actor, room_id, index))
        return {"success": True, "message": f"{service.label.capitalize()} record deleted successfully", "data": record}

    @router.post("/by-id/{record_id}/resolve", response_model=Dict[str, Any])
    async def resolve_record_by_id(room_id: str, record_id: str, actor: ActorContext = Depends(get_current_actor)):
        record = await _run(f"resolving {service.label} record {record_id} in room {room_id}", service.resolve_by_id(actor, room_id, record_id))
        return {"success": True, "message": f"{service.label.capitalize()} record marked as resolved", "data": record}

    @router.delete("/by-id/{record_id}", response_model=Dict[str, Any])
    async def delete_record_by_id(room_id: str, record_id: str, actor: ActorContext = Depends(get_current_actor)):
        record = await _run(f"deleting {service.label} record {record_id} in room {room_id}", service.remove_by_id(actor, room_id, record_id))
        return {"success": True, "message": f"{service.label.capitalize()} record deleted successfully", "data": record}

    return router


maintenance_router = build_record_router(RECORD_SERVICES['maintenance'], MaintenanceRecordCreate)
replacement_router = build_record_router(RECORD_SERVICES['replacements'], ReplacementRecordCreate)
