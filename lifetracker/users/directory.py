"""UserDirectory — resolves a user id to contact details."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lifetracker.documents import DocumentStore
from lifetracker.errors import UserNotFound

logger = logging.getLogger(__name__)

COLLECTION = "users"


@dataclass(frozen=True)
class UserRecord:
    uid: str
    email: str
    display_name: str = ""


class UserDirectory:
    """Identity capability backed by ``users/<uid>`` documents.

    Singleton accessed via ``UserDirectory.get()``.
    """

    _instance: UserDirectory | None = None

    def __init__(self, documents: DocumentStore | None = None) -> None:
        self._documents = documents or DocumentStore.get()

    @classmethod
    def get(cls) -> UserDirectory:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        cls._instance = None

    async def get_user_by_id(self, user_id: str) -> UserRecord:
        """Return the user's record. Raises UserNotFound if there is none."""
        if not user_id:
            raise UserNotFound(user_id)
        doc = await self._documents.get(f"{COLLECTION}/{user_id}")
        if not isinstance(doc, dict):
            raise UserNotFound(user_id)
        return UserRecord(
            uid=user_id,
            email=doc.get("email") or "",
            display_name=doc.get("displayName") or "",
        )

    async def upsert_user(self, user_id: str, email: str, display_name: str = "") -> UserRecord:
        """Create or replace a user's contact details."""
        await self._documents.update(
            f"{COLLECTION}/{user_id}", {"email": email, "displayName": display_name}
        )
        logger.info("Stored user record for %s", user_id)
        return UserRecord(uid=user_id, email=email, display_name=display_name)
