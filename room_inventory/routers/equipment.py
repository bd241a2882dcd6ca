from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any
import logging

from ..auth.dependencies import get_current_user, get_current_actor
from ..core.exceptions import InventoryError
from ..models.database_models import ActorContext, EquipmentCreate
from ..services.equipment_service import equipment_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rooms/{room_id}/equipment",
    tags=["Equipment"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=Dict[str, Any])
async def list_equipment(room_id: str, current_user: dict = Depends(get_current_user)):
    try:
        items = await equipment_service.list_equipment(room_id)
        return {"success": True, "data": items, "count": len(items)}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error listing equipment for room {room_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/", response_model=Dict[str, Any], status_code=201)
async def add_equipment(room_id: str, payload: EquipmentCreate, actor: ActorContext = Depends(get_current_actor)):
    try:
        item = await equipment_service.add_equipment(actor, room_id, payload)
        return {"success": True, "message": "Equipment added", "equipment_id": item["id"], "data": item}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error adding equipment to room {room_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{equipment_id}", response_model=Dict[str, Any])
async def delete_equipment(room_id: str, equipment_id: str, actor: ActorContext = Depends(get_current_actor)):
    try:
        await equipment_service.delete_equipment(actor, room_id, equipment_id)
        return {"success": True, "message": "Equipment deleted successfully"}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error deleting equipment {equipment_id} from room {room_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
