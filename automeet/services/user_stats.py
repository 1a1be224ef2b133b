"""
Attendance history lookup for prediction features.
"""

import asyncio
import math
from typing import Any

from automeet.core.database import BaseCollection
from automeet.core.exceptions import NotFound
from automeet.core.logging import get_logger
from automeet.core.models import UNKNOWN, UserStats
from automeet.core.timestamps import utc_now_iso

log = get_logger(__name__)


def _is_count(value: Any) -> bool:
    # JSON stores may hand back whole numbers as floats
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def _count_history(user_id: str, past_meetings: list[dict[str, Any]]) -> tuple[int, int]:
    """Count meetings the user was invited to and the ones they attended."""
    invited = attended = 0
    for meeting in past_meetings:
        participants = meeting.get("participants") or []
        if not any(isinstance(p, dict) and p.get("user_id") == user_id for p in participants):
            continue
        invited += 1
        for record in meeting.get("attendance_records") or []:
            if isinstance(record, dict) and record.get("user_id") == user_id:
                if record.get("attended"):
                    attended += 1
                break
    return invited, attended


class UserStatsService:
    """Resolves company, role and attendance counters for participants."""

    def __init__(self, users: BaseCollection, meetings: BaseCollection):
        self.users = users
        self.meetings = meetings

    async def get_stats(self, user_id: str) -> UserStats:
        """
        Load a user's prediction features.

        Stored ``past_meetings``/``past_attended`` counters are used when both
        are non-negative numbers; otherwise they are counted from meetings that already
        ended.

        Raises:
            NotFound: If the user does not exist
        """
        doc = await self.users.get(user_id)
        if doc is None:
            raise NotFound(f"User with ID {user_id} not found")

        data = doc.data
        if _is_count(data.get("past_meetings")) and _is_count(data.get("past_attended")):
            past_meetings = int(data["past_meetings"])
            past_attended = int(data["past_attended"])
        else:
            ended = await self.meetings.where("end_time", "<", utc_now_iso())
            past_meetings, past_attended = _count_history(user_id, [m.data for m in ended])
            log.debug(
                "user_stats_computed_from_history",
                user_id=user_id,
                past_meetings=past_meetings,
                past_attended=past_attended,
            )

        return UserStats(
            user_id=user_id,
            company=data.get("company") or UNKNOWN,
            role=data.get("role") or UNKNOWN,
            past_meetings=past_meetings,
            past_attended=past_attended,
        )

    async def get_batch_stats(self, user_ids: list[str]) -> list[UserStats]:
        """
        Load stats for many users concurrently, in input order.

        A failed lookup is logged and replaced with empty history so one
        bad reference never blocks scheduling.
        """

        async def _safe(user_id: str) -> UserStats:
            try:
                return await self.get_stats(user_id)
            except Exception as e:
                log.warning("user_stats_unavailable", user_id=user_id, error=str(e))
                return UserStats(user_id=user_id)

        return list(await asyncio.gather(*(_safe(user_id) for user_id in user_ids)))
