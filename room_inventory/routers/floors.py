from fastapi import APIRouter, HTTPException, Depends, Path
from typing import Dict, Any
import logging

from ..auth.dependencies import get_current_user, require_admin
from ..core.exceptions import InventoryError
from ..models.database_models import ActorContext, FloorCreate
from ..services.floor_service import floor_service
from ..services.room_service import room_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/floors",
    tags=["Floors"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=Dict[str, Any])
async def list_floors(current_user: dict = Depends(get_current_user)):
    """All floors ordered by number"""
    try:
        floors = await floor_service.list_floors()
        return {"success": True, "data": floors, "count": len(floors)}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error listing floors: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/", response_model=Dict[str, Any], status_code=201)
async def add_floor(payload: FloorCreate, actor: ActorContext = Depends(require_admin)):
    """Create a floor (Admin only)"""
    try:
        floor = await floor_service.add_floor(actor, payload)
        return {"success": True, "message": "Floor added successfully!", "data": floor}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error adding floor: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{floor_id}", response_model=Dict[str, Any])
async def remove_floor(
    floor_id: str = Path(..., description="Floor number"),
    actor: ActorContext = Depends(require_admin)
):
    """Delete an empty floor (Admin only)"""
    try:
        await floor_service.remove_floor(actor, floor_id)
        return {"success": True, "message": "Floor deleted successfully"}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error deleting floor {floor_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{floor_id}/rooms", response_model=Dict[str, Any])
async def list_rooms_for_floor(floor_id: str, current_user: dict = Depends(get_current_user)):
    try:
        rooms = await room_service.list_rooms_for_floor(floor_id)
        return {"success": True, "data": rooms, "count": len(rooms)}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error listing rooms for floor {floor_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
