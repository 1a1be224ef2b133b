"""
User profile operations backing the /users and /auth endpoints.
"""

from typing import Any

from automeet.core.database import BaseCollection
from automeet.core.exceptions import InvalidRequest, NotFound
from automeet.core.logging import get_logger
from automeet.core.models import Document
from automeet.core.timestamps import utc_now_iso

log = get_logger(__name__)

PROTECTED_FIELDS = {"user_id", "id", "auth_uid", "created_at"}


def _check_counters(profile: dict[str, Any]) -> None:
    past_meetings = profile.get("past_meetings")
    past_attended = profile.get("past_attended")
    if isinstance(past_meetings, int) and isinstance(past_attended, int):
        if past_attended > past_meetings:
            raise InvalidRequest("past_attended cannot exceed past_meetings")


def _present(doc: Document) -> dict[str, Any]:
    return {**doc.data, "user_id": doc.id}


class UserService:
    """CRUD over user profiles plus lookup by external identity."""

    def __init__(self, users: BaseCollection):
        self.users = users

    async def create(self, profile: dict[str, Any]) -> dict[str, Any]:
        """
        Store a new profile. The store assigns ``user_id``, which is also
        written into the document; counters default to 0.
        """
        now = utc_now_iso()
        user = {
            "name": profile.get("name"),
            "company": profile.get("company"),
            "email": profile.get("email") or "",
            "role": profile.get("role"),
            "auth_uid": profile.get("auth_uid"),
            "past_meetings": profile.get("past_meetings") or 0,
            "past_attended": profile.get("past_attended") or 0,
            "created_at": now,
            "updated_at": now,
        }
        _check_counters(user)

        user_id = await self.users.add(user)
        await self.users.update(user_id, {"user_id": user_id})
        log.info("user_created", user_id=user_id, linked=bool(user["auth_uid"]))
        return {"user_id": user_id, **user}

    async def list_all(self) -> list[dict[str, Any]]:
        return [_present(doc) for doc in await self.users.list_all()]

    async def get(self, user_id: str) -> dict[str, Any]:
        doc = await self.users.get(user_id)
        if doc is None:
            raise NotFound("User not found")
        return _present(doc)

    async def update(self, user_id: str, changes: dict[str, Any]) -> dict[str, str]:
        """Apply a partial update; identity and creation fields are ignored."""
        existing = await self.users.get(user_id)
        if existing is None:
            raise NotFound("User not found")

        update = {k: v for k, v in changes.items() if k not in PROTECTED_FIELDS}
        _check_counters({**existing.data, **update})
        update["updated_at"] = utc_now_iso()

        await self.users.update(user_id, update)
        log.info("user_updated", user_id=user_id, fields=sorted(update))
        return {"message": "User updated successfully"}

    async def delete(self, user_id: str) -> dict[str, str]:
        if not await self.users.delete(user_id):
            raise NotFound("User not found")
        log.info("user_deleted", user_id=user_id)
        return {"message": "User deleted successfully"}

    async def find_by_auth_uid(self, auth_uid: str) -> dict[str, Any] | None:
        """Profile linked to an external identity, if any."""
        matches = await self.users.where("auth_uid", "==", auth_uid)
        return _present(matches[0]) if matches else None

    async def signup(self, auth_uid: str, email: str | None, profile: dict[str, Any]) -> dict[str, Any]:
        """
        Create the profile for a newly authenticated identity.

        Raises:
            InvalidRequest: If the identity already has a profile
        """
        if await self.find_by_auth_uid(auth_uid) is not None:
            raise InvalidRequest("User profile already exists")
        return await self.create({**profile, "auth_uid": auth_uid, "email": email or ""})

    async def profile_for(self, auth_uid: str) -> dict[str, Any]:
        """
        Raises:
            NotFound: If the identity has no profile yet
        """
        user = await self.find_by_auth_uid(auth_uid)
        if user is None:
            raise NotFound("User profile not found. Please complete signup.")
        return user
