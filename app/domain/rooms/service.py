"""Room service - Business logic for meeting room administration"""

import logging

from sqlalchemy.orm import Session

from ...models_booking import MeetingRoom
from ...shared.validators import validate_operating_window
from ..scheduling.errors import (
    DuplicateRoomName,
    InvalidDeleteState,
    InvalidOperatingWindow,
    RoomNotFound,
)
from .repository import RoomRepository
from .schemas import RoomCreate, RoomUpdate

logger = logging.getLogger(__name__)


class RoomService:
    """Service layer for meeting room business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RoomRepository()

    def get_rooms(self, active_only: bool = False) -> list[MeetingRoom]:
        return self.repo.get_rooms(self.db, active_only=active_only)

    def get_room(self, room_id: int) -> MeetingRoom:
        room = self.repo.get_room(self.db, room_id)
        if not room:
            raise RoomNotFound(f"Meeting room {room_id} not found")
        return room

    def create_room(self, data: RoomCreate) -> MeetingRoom:
        """Create a room; names are unique across the catalog"""
        if self.repo.get_room_by_name(self.db, data.name):
            raise DuplicateRoomName(f"A meeting room named '{data.name}' already exists")

        room = self.repo.create_room(
            self.db,
            name=data.name,
            description=data.description,
            cover_photo_url=data.coverPhotoUrl,
            hourly_rate=data.hourlyRate,
            capacity=data.capacity,
            open_time=data.openTime,
            close_time=data.closeTime,
            amenities=data.amenities,
            floor=data.floor,
            room_number=data.roomNumber,
            notes=data.notes,
            is_active=data.isActive,
        )
        logger.info(f"✅ Meeting room created: {room.id} ({room.name})")
        return room

    def update_room(self, room_id: int, data: RoomUpdate) -> MeetingRoom:
        room = self.get_room(room_id)

        if data.name is not None and data.name != room.name:
            existing = self.repo.get_room_by_name(self.db, data.name)
            if existing and existing.id != room.id:
                raise DuplicateRoomName(f"A meeting room named '{data.name}' already exists")

        open_time = data.openTime if data.openTime is not None else room.open_time
        close_time = data.closeTime if data.closeTime is not None else room.close_time
        try:
            validate_operating_window(open_time, close_time)
        except ValueError as e:
            raise InvalidOperatingWindow(str(e)) from e

        room = self.repo.update_room(
            self.db,
            room,
            name=data.name,
            description=data.description,
            cover_photo_url=data.coverPhotoUrl,
            hourly_rate=data.hourlyRate,
            capacity=data.capacity,
            open_time=data.openTime,
            close_time=data.closeTime,
            amenities=data.amenities,
            floor=data.floor,
            room_number=data.roomNumber,
            notes=data.notes,
            is_active=data.isActive,
        )
        logger.info(f"✅ Meeting room updated: {room.id} ({room.name})")
        return room

    def delete_room(self, room_id: int) -> bool:
        """
        Remove a room from the catalog.

        Refused while PENDING or CONFIRMED bookings still hold it. A room with
        any other booking history is deactivated instead, so those records are
        kept. Returns True when the row was actually deleted.
        """
        room = self.get_room(room_id)
        open_bookings = self.repo.count_open_bookings(self.db, room.id)
        if open_bookings:
            logger.warning(f"⚠️ Refusing to delete room {room.id}: {open_bookings} open booking(s)")
            raise InvalidDeleteState(
                f"Cannot delete room with {open_bookings} active booking(s). "
                "Cancel or complete them first."
            )

        history = self.repo.count_bookings(self.db, room.id)
        if history:
            self.repo.update_room(self.db, room, is_active=False)
            logger.info(f"📦 Meeting room {room_id} deactivated: {history} past booking(s) kept")
            return False

        self.repo.delete_room(self.db, room)
        logger.info(f"🗑️ Meeting room deleted: {room_id}")
        return True
