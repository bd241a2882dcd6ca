from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


# ──────────────────────────────────────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────────────────────────────────────

class EquipmentCondition(str, Enum):
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class EquipmentStatus(str, Enum):
    AVAILABLE = "Available"
    IN_USE = "In Use"
    UNDER_MAINTENANCE = "Under Maintenance"
    OUT_OF_SERVICE = "Out of Service"


class MaintenanceStatus(str, Enum):
    NEEDS_REPAIR = "Needs Repair"
    NOT_WORKING = "Not Working"
    DAMAGED = "Damaged"
    REGULAR_MAINTENANCE = "Regular Maintenance"


class ReplacementStatus(str, Enum):
    BEYOND_REPAIR = "Beyond Repair"
    OBSOLETE = "Obsolete"
    END_OF_LIFE = "End of Life"
    MISSING = "Missing"


class RecordKind(str, Enum):
    MAINTENANCE = "maintenance"
    REPLACEMENT = "replacement"


# ──────────────────────────────────────────────────────────────────────────────
# Stored documents
# ──────────────────────────────────────────────────────────────────────────────

class Floor(BaseModel):
    id: Optional[str] = None
    number: int
    name: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class Room(BaseModel):
    id: str
    floor: Any  # stored as given; see DESIGN.md on floor key types
    number: str
    name: Optional[str] = None
    equipment: List[Dict[str, Any]] = Field(default_factory=list)
    maintenance: List[Dict[str, Any]] = Field(default_factory=list)
    replacements: List[Dict[str, Any]] = Field(default_factory=list)
    records_version: int = 0
    last_modified: Optional[datetime] = Field(default=None, alias="lastModified")

    model_config = ConfigDict(populate_by_name=True)


class Equipment(BaseModel):
    id: Optional[str] = None
    name: str
    quantity: int
    condition: EquipmentCondition = EquipmentCondition.GOOD
    status: EquipmentStatus = EquipmentStatus.AVAILABLE
    notes: str = ""
    room_id: str = Field(alias="roomId")
    floor: Any = None
    added_at: Optional[datetime] = Field(default=None, alias="addedAt")

    model_config = ConfigDict(populate_by_name=True)


class ActivityLogEntry(BaseModel):
    id: Optional[str] = None
    user_id: str = Field(alias="userId")
    user_name: Optional[str] = Field(default=None, alias="userName")
    email: Optional[str] = None
    role: str = ""
    action: str
    details: Optional[str] = None
    type: str = "general"
    references: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None
    device_info: Dict[str, Any] = Field(default_factory=dict, alias="deviceInfo")

    model_config = ConfigDict(populate_by_name=True)


# ──────────────────────────────────────────────────────────────────────────────
# Session
# ──────────────────────────────────────────────────────────────────────────────

class ActorContext(BaseModel):
    """The signed-in user a mutating call acts on behalf of."""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    username: Optional[str] = None
    role: str = ""
    device_info: Dict[str, Any] = Field(default_factory=dict)

    @property
    def user_name(self) -> Optional[str]:
        # profile username, then auth display name, then account email
        return self.username or self.display_name or self.email


# ──────────────────────────────────────────────────────────────────────────────
# Request payloads
# ──────────────────────────────────────────────────────────────────────────────

class FloorCreate(BaseModel):
    number: int = Field(..., ge=0, description="Floor number, also the document key")
    name: Optional[str] = None


class RoomCreate(BaseModel):
    floor: str = Field(..., min_length=1, description="Floor number as shown in the floor select")
    number: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    @field_validator("floor", "number", "name", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, int):
            v = str(v)
        return v.strip() if isinstance(v, str) else v


class RoomUpdate(BaseModel):
    number: Optional[str] = None
    name: Optional[str] = None


class EquipmentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    condition: EquipmentCondition = EquipmentCondition.GOOD
    status: EquipmentStatus = EquipmentStatus.AVAILABLE
    notes: str = ""


class MaintenanceRecordCreate(BaseModel):
    equipment_name: str = Field(..., min_length=1, alias="equipmentName")
    quantity: int = Field(..., ge=1)
    status: MaintenanceStatus
    description: str = ""
    equipment_id: Optional[str] = Field(default=None, alias="equipmentId")

    model_config = ConfigDict(populate_by_name=True)


class ReplacementRecordCreate(BaseModel):
    equipment_name: str = Field(..., min_length=1, alias="equipmentName")
    quantity: int = Field(..., ge=1)
    status: ReplacementStatus
    description: str = ""
    equipment_id: Optional[str] = Field(default=None, alias="equipmentId")

    model_config = ConfigDict(populate_by_name=True)


class ActivityLogFilters(BaseModel):
    type: Optional[str] = None
    role: Optional[str] = None
    search_text: Optional[str] = None


# ──────────────────────────────────────────────────────────────────────────────
# Dashboard rollups
# ──────────────────────────────────────────────────────────────────────────────

class RoomSummary(BaseModel):
    id: str
    name: Optional[str] = None
    equipment: int = 0
    maintenance: int = 0
    replacement: int = 0


class FloorStats(BaseModel):
    total_rooms: int = 0
    total_equipment: int = 0
    need_maintenance: int = 0
    need_replacement: int = 0
    rooms: List[RoomSummary] = Field(default_factory=list)


class DashboardStats(BaseModel):
    total_rooms: int = 0
    total_equipment: int = 0
    total_maintenance_open: int = 0
    total_replacement_open: int = 0
    # Keyed by the room's floor value exactly as stored, in numeric display order
    per_floor: Dict[Any, FloorStats] = Field(default_factory=dict)
