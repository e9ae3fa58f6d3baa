"""Room repository - Database operations for meeting rooms"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_booking import MeetingRoom, Reservation, ReservationStatus


class RoomRepository:
    """Repository for meeting room database operations"""

    @staticmethod
    def get_room(db: Session, room_id: int) -> Optional[MeetingRoom]:
        """Get a room by ID"""
        return db.query(MeetingRoom).filter(MeetingRoom.id == room_id).first()

    @staticmethod
    def get_room_by_name(db: Session, name: str) -> Optional[MeetingRoom]:
        return db.query(MeetingRoom).filter(MeetingRoom.name == name).first()

    @staticmethod
    def get_rooms(db: Session, active_only: bool = False) -> list[MeetingRoom]:
        """Get all rooms, optionally only the active ones"""
        query = db.query(MeetingRoom)
        if active_only:
            query = query.filter(MeetingRoom.is_active.is_(True))
        return query.order_by(MeetingRoom.name).all()

    @staticmethod
    def create_room(db: Session, **room_data) -> MeetingRoom:
        room = MeetingRoom(**room_data)
        db.add(room)
        db.commit()
        db.refresh(room)
        return room

    @staticmethod
    def update_room(db: Session, room: MeetingRoom, **updates) -> MeetingRoom:
        """Update a room with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(room, key):
                setattr(room, key, value)

        db.commit()
        db.refresh(room)
        return room

    @staticmethod
    def delete_room(db: Session, room: MeetingRoom) -> None:
        db.delete(room)
        db.commit()

    @staticmethod
    def count_open_bookings(db: Session, room_id: int) -> int:
        """PENDING or CONFIRMED bookings still holding the room"""
        return (
            db.query(Reservation)
            .filter(
                Reservation.room_id == room_id,
                Reservation.status.in_(
                    [ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value]
                ),
            )
            .count()
        )

    @staticmethod
    def count_bookings(db: Session, room_id: int) -> int:
        """Every booking on the room, whatever its status"""
        return db.query(Reservation).filter(Reservation.room_id == room_id).count()
