from fastapi import APIRouter, HTTPException, Depends
import logging

from ..auth.dependencies import get_current_user
from ..core.exceptions import InventoryError
from ..services.dashboard_service import dashboard_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def get_dashboard_stats(current_user: dict = Depends(get_current_user)):
    """Totals for the dashboard cards plus one summary per floor"""
    try:
        stats = await dashboard_service.compute_stats()
        # A list keeps display order and the floor value's type, which JSON object keys would not
        floors = [
            {"floor": floor, **floor_stats.model_dump()}
            for floor, floor_stats in stats.per_floor.items()
        ]
        return {
            "success": True,
            "data": {
                "total_rooms": stats.total_rooms,
                "total_equipment": stats.total_equipment,
                "total_maintenance_open": stats.total_maintenance_open,
                "total_replacement_open": stats.total_replacement_open,
                "floors": floors,
            }
        }
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error getting dashboard stats: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get dashboard stats: {str(e)}")
