from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional
import logging

from ..auth.dependencies import get_current_user
from ..core.exceptions import InventoryError
from ..models.database_models import ActivityLogFilters
from ..services.activity_log_service import activity_log_service, format_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/activity-logs",
    tags=["Activity Log"],
)


@router.get("/", response_model=Dict[str, Any])
async def list_activity_logs(
    type: Optional[str] = Query(None, description="Action tag, or 'all'"),
    role: Optional[str] = Query(None, description="User role, or 'all'"),
    search: Optional[str] = Query(None, description="Text to find in details, user name or email"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user)
):
    """Activity entries matching every filter, newest first"""
    try:
        filters = ActivityLogFilters(type=type, role=role, search_text=search)
        result = await activity_log_service.query_page(filters, page=page, page_size=page_size)
        for entry in result["items"]:
            entry["timeAgo"] = format_timestamp(entry.get("timestamp"))
        return {"success": True, "data": result.pop("items"), **result}
    except (HTTPException, InventoryError):
        raise
    except Exception as e:
        logger.error(f"Error loading activity logs: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
