"""Room domain schemas - Pydantic models for validation"""

from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_operating_window


class RoomCreate(BaseModel):
    """Schema for creating a meeting room"""

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    coverPhotoUrl: Optional[str] = None
    hourlyRate: float = Field(default=0.0, ge=0)
    capacity: int = Field(default=1, ge=1)
    openTime: time
    closeTime: time
    amenities: Optional[list[str]] = None
    floor: Optional[str] = None
    roomNumber: Optional[str] = None
    notes: Optional[str] = None
    isActive: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Room name cannot be blank")
        return v

    @model_validator(mode="after")
    def check_operating_window(self):
        validate_operating_window(self.openTime, self.closeTime)
        return self


class RoomUpdate(BaseModel):
    """Schema for updating a meeting room; omitted fields are left unchanged"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    coverPhotoUrl: Optional[str] = None
    hourlyRate: Optional[float] = Field(default=None, ge=0)
    capacity: Optional[int] = Field(default=None, ge=1)
    openTime: Optional[time] = None
    closeTime: Optional[time] = None
    amenities: Optional[list[str]] = None
    floor: Optional[str] = None
    roomNumber: Optional[str] = None
    notes: Optional[str] = None
    isActive: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Room name cannot be blank")
        return v

    @model_validator(mode="after")
    def check_operating_window(self):
        # Only checkable here when both ends are supplied; the service checks the merged window
        validate_operating_window(self.openTime, self.closeTime)
        return self


class RoomResponse(BaseModel):
    """Schema for room response"""

    id: int
    name: str
    description: Optional[str] = None
    coverPhotoUrl: Optional[str] = None
    hourlyRate: float
    capacity: int
    openTime: str
    closeTime: str
    amenities: list[str] = []
    floor: Optional[str] = None
    roomNumber: Optional[str] = None
    notes: Optional[str] = None
    isActive: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_room(cls, room) -> "RoomResponse":
        return cls(
            id=room.id,
            name=room.name,
            description=room.description,
            coverPhotoUrl=room.cover_photo_url,
            hourlyRate=room.hourly_rate,
            capacity=room.capacity,
            openTime=room.open_time.strftime("%H:%M"),
            closeTime=room.close_time.strftime("%H:%M"),
            amenities=room.amenities or [],
            floor=room.floor,
            roomNumber=room.room_number,
            notes=room.notes,
            isActive=room.is_active,
            createdAt=room.created_at,
        )
