"""Service for managing rooms and student membership."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from quiz_room.core.errors import AlreadyMember, RoomNotFound
from quiz_room.core.models import Room


class RoomManager:
    """Manages faculty rooms and the students who joined them."""

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}

    def create_room(self, name: str, faculty_id: str, created_at: datetime) -> Room:
        """Create an empty room owned by ``faculty_id``."""
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Room name must not be empty.")
        room = Room(
            id=uuid4().hex,
            name=cleaned,
            faculty_id=faculty_id,
            created_at=created_at,
        )
        self._rooms[room.id] = room
        return room

    def get_room(self, room_id: str) -> Room:
        room = self._rooms.get(room_id.strip())
        if room is None:
            raise RoomNotFound("Room not found. Please check the room code.")
        return room

    def register_student(self, room_id: str, student_id: str) -> Room:
        """Add a student to a room by its join code."""
        room = self.get_room(room_id)
        if student_id in room.student_ids:
            raise AlreadyMember("You are already a member of this room.")
        room.student_ids.append(student_id)
        return room

    def get_faculty_rooms(self, faculty_id: str) -> list[Room]:
        return sorted(
            (room for room in self._rooms.values() if room.faculty_id == faculty_id),
            key=lambda r: r.created_at,
        )

    def get_rooms(self, room_ids: set[str] | frozenset[str]) -> list[Room]:
        return sorted(
            (room for room in self._rooms.values() if room.id in room_ids),
            key=lambda r: r.created_at,
        )
