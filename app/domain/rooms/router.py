"""Room router - FastAPI endpoints for the meeting room catalog"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.activity_logger import get_admin_actor, log_admin_activity
from .schemas import RoomCreate, RoomResponse, RoomUpdate
from .service import RoomService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meeting-rooms", tags=["Meeting Rooms"])
admin_router = APIRouter(prefix="/admin/meeting-rooms", tags=["Meeting Rooms Admin"])


def get_room_service(db: Session = Depends(get_db)) -> RoomService:
    """Dependency injection for RoomService"""
    return RoomService(db)


@router.get("", response_model=list[RoomResponse])
async def list_active_rooms(service: RoomService = Depends(get_room_service)):
    """Rooms open for booking"""
    return [RoomResponse.from_room(room) for room in service.get_rooms(active_only=True)]


@admin_router.get("", response_model=list[RoomResponse])
async def list_rooms(
    include_inactive: bool = Query(True, alias="includeInactive"),
    service: RoomService = Depends(get_room_service),
):
    rooms = service.get_rooms(active_only=not include_inactive)
    return [RoomResponse.from_room(room) for room in rooms]


@admin_router.get("/{room_id}", response_model=RoomResponse)
async def get_room(room_id: int, service: RoomService = Depends(get_room_service)):
    return RoomResponse.from_room(service.get_room(room_id))


@admin_router.post("", response_model=RoomResponse, status_code=201)
async def create_room(
    data: RoomCreate,
    request: Request,
    service: RoomService = Depends(get_room_service),
    actor: str = Depends(get_admin_actor),
):
    room = service.create_room(data)
    log_admin_activity(
        service.db,
        actor,
        "MEETING_ROOM_CREATE",
        f"Created meeting room {room.name}",
        reference_id=room.id,
        reference_type="MEETING_ROOM",
        request=request,
    )
    return RoomResponse.from_room(room)


@admin_router.patch("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: int,
    data: RoomUpdate,
    request: Request,
    service: RoomService = Depends(get_room_service),
    actor: str = Depends(get_admin_actor),
):
    room = service.update_room(room_id, data)
    log_admin_activity(
        service.db,
        actor,
        "MEETING_ROOM_UPDATE",
        f"Updated meeting room {room.name}",
        reference_id=room.id,
        reference_type="MEETING_ROOM",
        details=data.model_dump(mode="json", exclude_none=True),
        request=request,
    )
    return RoomResponse.from_room(room)


@admin_router.delete("/{room_id}")
async def delete_room(
    room_id: int,
    request: Request,
    service: RoomService = Depends(get_room_service),
    actor: str = Depends(get_admin_actor),
):
    """Delete a room; refused while PENDING or CONFIRMED bookings exist, deactivated if it has history"""
    room = service.get_room(room_id)
    name = room.name
    deleted = service.delete_room(room_id)
    log_admin_activity(
        service.db,
        actor,
        "MEETING_ROOM_DELETE" if deleted else "MEETING_ROOM_DEACTIVATE",
        f"{'Deleted' if deleted else 'Deactivated'} meeting room {name}",
        reference_id=room_id,
        reference_type="MEETING_ROOM",
        request=request,
    )
    if deleted:
        return {"success": True, "deleted": True, "message": "Meeting room deleted"}
    return {
        "success": True,
        "deleted": False,
        "message": "Meeting room has past bookings and was deactivated instead",
    }
