"""User profiles and uploaded documents."""

from __future__ import annotations

from quiz_room.core.errors import UserNotFound
from quiz_room.core.models import Document, Role, UserProfile


class UserDirectory:
    """Profiles keyed by user id, with the rooms each user belongs to."""

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}

    def register(self, user_id: str, display_name: str, role: Role) -> UserProfile:
        cleaned_id = user_id.strip()
        cleaned_name = display_name.strip()
        if not cleaned_id:
            raise ValueError("User id must not be empty.")
        if not cleaned_name:
            raise ValueError("Display name must not be empty.")
        existing = self._profiles.get(cleaned_id)
        room_ids = existing.room_ids if existing else ()
        profile = UserProfile(
            user_id=cleaned_id,
            display_name=cleaned_name,
            role=role,
            room_ids=room_ids,
        )
        self._profiles[cleaned_id] = profile
        return profile

    def get(self, user_id: str) -> UserProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            raise UserNotFound(f"User {user_id} not found.")
        return profile

    def find_display_name(self, user_id: str) -> str | None:
        profile = self._profiles.get(user_id)
        return profile.display_name if profile else None

    def add_room(self, user_id: str, room_id: str) -> UserProfile:
        profile = self.get(user_id)
        if room_id in profile.room_ids:
            return profile
        updated = UserProfile(
            user_id=profile.user_id,
            display_name=profile.display_name,
            role=profile.role,
            room_ids=profile.room_ids + (room_id,),
        )
        self._profiles[user_id] = updated
        return updated


class DocumentRepository:
    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    def add_document(self, document: Document) -> None:
        if not document.title.strip():
            raise ValueError("Document title must not be empty.")
        self._documents[document.id] = document

    def link_quiz(self, document_id: str, quiz_id: str) -> Document:
        document = self._documents[document_id]
        linked = Document(
            id=document.id,
            title=document.title,
            owner_id=document.owner_id,
            room_id=document.room_id,
            storage_location=document.storage_location,
            created_at=document.created_at,
            linked_quiz_id=quiz_id,
        )
        self._documents[document_id] = linked
        return linked

    def list_room_documents(self, room_id: str) -> list[Document]:
        return sorted(
            (d for d in self._documents.values() if d.room_id == room_id),
            key=lambda d: d.created_at,
        )
