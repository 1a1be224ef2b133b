"""
Participant detail resolution.

Joins stored participant entries against the user collection to build
display records. The joined records are returned to callers and used for
notifications but never written back.
"""

import asyncio
from typing import Any, Iterable

from automeet.core.database import BaseCollection
from automeet.core.logging import get_logger
from automeet.core.models import UNKNOWN, ParticipantEntry, PopulatedParticipant

log = get_logger(__name__)

MISSING_USER_NAME = "Unknown User"
ERROR_USER_NAME = "Error Loading User"


class ParticipantResolver:
    """Builds PopulatedParticipant records from stored entries."""

    def __init__(self, users: BaseCollection):
        self.users = users

    async def resolve(self, entries: Iterable[Any]) -> list[PopulatedParticipant]:
        """
        Resolve entries to full participant records.

        Entries without a user id are dropped. Lookups run concurrently and
        the output keeps input order. A missing user or a failed lookup yields
        a placeholder rather than failing the batch.

        Args:
            entries: ParticipantEntry objects or raw stored participant dicts

        Returns:
            One PopulatedParticipant per valid entry
        """
        valid = [
            entry
            for entry in (
                raw if isinstance(raw, ParticipantEntry) else ParticipantEntry.from_raw(raw)
                for raw in entries
            )
            if entry is not None
        ]

        if not valid:
            log.warning("no_valid_participants")
            return []

        return list(await asyncio.gather(*(self._resolve_one(entry) for entry in valid)))

    async def _resolve_one(self, entry: ParticipantEntry) -> PopulatedParticipant:
        try:
            doc = await self.users.get(entry.user_id)
        except Exception as e:
            log.error("participant_lookup_failed", user_id=entry.user_id, error=str(e))
            return PopulatedParticipant.placeholder(entry, ERROR_USER_NAME)

        if doc is None:
            log.warning("participant_user_not_found", user_id=entry.user_id)
            return PopulatedParticipant.placeholder(entry, MISSING_USER_NAME)

        data = doc.data
        return PopulatedParticipant(
            user_id=entry.user_id,
            name=data.get("name") or UNKNOWN,
            email=data.get("email") or "",
            company=data.get("company") or UNKNOWN,
            role=data.get("role") or UNKNOWN,
            predicted_attendance_probability=entry.predicted_attendance_probability,
        )
