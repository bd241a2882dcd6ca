from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any
import logging

from ..auth.dependencies import get_current_user, get_current_actor
from ..core.exceptions import InventoryError
from ..models.database_models import ActorContext, RoomCreate, RoomUpdate
from ..services.room_service import room_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rooms",
    tags=["Rooms"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=Dict[str, Any])
async def list_rooms(current_user: dict = Depends(get_current_user)):
    try:
        rooms = await room_service.list_rooms()
        return {"success": True, "data": rooms, "count": len(rooms)}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error listing rooms: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/by-floor", response_model=Dict[str, Any])
async def rooms_by_floor(current_user: dict = Depends(get_current_user)):
    """Rooms grouped per floor, each group in room-number order"""
    try:
        grouped = await room_service.rooms_by_floor()
        data = [{"floor": floor, "rooms": rooms} for floor, rooms in grouped.items()]
        return {"success": True, "data": data, "count": len(data)}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error grouping rooms by floor: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/", response_model=Dict[str, Any], status_code=201)
async def add_room(payload: RoomCreate, actor: ActorContext = Depends(get_current_actor)):
    try:
        room = await room_service.add_room(actor, payload)
        return {"success": True, "message": "Room added successfully", "room_id": room["id"], "data": room}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error adding room: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{room_id}", response_model=Dict[str, Any])
async def get_room(room_id: str, current_user: dict = Depends(get_current_user)):
    try:
        room = await room_service.get_room(room_id)
        return {"success": True, "data": room}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error fetching room {room_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{room_id}", response_model=Dict[str, Any])
async def update_room(room_id: str, payload: RoomUpdate, actor: ActorContext = Depends(get_current_actor)):
    try:
        room = await room_service.update_room(actor, room_id, payload)
        return {"success": True, "message": "Room updated", "data": room}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error updating room {room_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{room_id}", response_model=Dict[str, Any])
async def delete_room(room_id: str, actor: ActorContext = Depends(get_current_actor)):
    """Delete a room and everything stored under it"""
    try:
        await room_service.delete_room(actor, room_id)
        return {"success": True, "message": f"Room {room_id} has been successfully deleted."}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error deleting room {room_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
