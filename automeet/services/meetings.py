"""
Meeting workflow orchestration.

Sequences attendance prediction, user probability mirroring, persistence,
participant resolution and notification around meeting create/update.

Only the meeting write itself is allowed to fail a request. Prediction,
stats lookups, probability mirroring and notifications degrade with a log
line instead.
"""

import asyncio
from typing import Any

from automeet.core.database import BaseCollection
from automeet.core.exceptions import (
    InvalidRequest,
    NotFound,
    PredictionUnavailable,
    UpstreamWriteFailure,
)
from automeet.core.logging import get_logger
from automeet.core.models import (
    Document,
    MeetingSummary,
    NotificationKind,
    ParticipantEntry,
)
from automeet.core.timestamps import normalize_timestamp, utc_now_iso
from automeet.services.attendance import (
    AttendancePredictorClient,
    build_attendance_input,
    fallback_predictions,
    time_of_day,
)
from automeet.services.notifications import NotificationDispatcher
from automeet.services.participants import ParticipantResolver
from automeet.services.user_stats import UserStatsService

log = get_logger(__name__)

IMMUTABLE_FIELDS = {"meeting_id", "id", "created_at"}
TIME_FIELDS = ("start_time", "end_time")


def _normalize_time(field: str, value: Any) -> str:
    try:
        return normalize_timestamp(value)
    except (TypeError, ValueError) as e:
        raise InvalidRequest(f"Invalid {field}: {value!r}") from e


def _normalize_participants(raw: Any) -> list[ParticipantEntry]:
    """Normalize incoming participants, dropping entries without a user id."""
    if not isinstance(raw, list):
        raise InvalidRequest("participants must be a list")

    entries = [ParticipantEntry.from_raw(item) for item in raw]
    valid = [entry for entry in entries if entry is not None]
    if len(valid) != len(entries):
        log.warning("participants_dropped", dropped=len(entries) - len(valid))
    return valid


class MeetingWorkflow:
    """Create, update, read and delete meetings."""

    def __init__(
        self,
        meetings: BaseCollection,
        users: BaseCollection,
        predictor: AttendancePredictorClient,
        dispatcher: NotificationDispatcher,
        stats: UserStatsService | None = None,
        resolver: ParticipantResolver | None = None,
    ):
        self.meetings = meetings
        self.users = users
        self.predictor = predictor
        self.dispatcher = dispatcher
        self.stats = stats or UserStatsService(users, meetings)
        self.resolver = resolver or ParticipantResolver(users)

    async def create(self, request: dict[str, Any]) -> dict[str, Any]:
        """
        Create a meeting with predicted attendance for each participant.

        Args:
            request: creator_id, meeting_type, importance, start_time,
                end_time, agenda, optional meeting_link, and participants
                (a non-empty list of user ids)

        Returns:
            The stored meeting with ``meeting_id`` and populated participants

        Raises:
            InvalidRequest: Empty participants or unparseable times
            UpstreamWriteFailure: The meeting could not be stored
        """
        raw_participants = request.get("participants")
        if not isinstance(raw_participants, list) or not raw_participants:
            raise InvalidRequest("Participants array is required and cannot be empty")

        participant_ids = [entry.user_id for entry in _normalize_participants(raw_participants)]
        if not participant_ids:
            raise InvalidRequest("Participants array contains no valid user ids")

        start_time = _normalize_time("start_time", request.get("start_time"))
        end_time = _normalize_time("end_time", request.get("end_time"))
        try:
            bucket = time_of_day(request.get("start_time"))
        except ValueError as e:
            raise InvalidRequest(f"Invalid start_time: {e}") from e
        meeting_type = request.get("meeting_type") or ""
        importance = request.get("importance")

        stats = await self.stats.get_batch_stats(participant_ids)
        inputs = [build_attendance_input(s, meeting_type, bucket, importance) for s in stats]

        try:
            predictions = await self.predictor.predict(inputs)
        except PredictionUnavailable as e:
            log.warning("prediction_fallback", reason=str(e), participants=len(inputs))
            predictions = fallback_predictions(inputs)

        # The predictor echoes no identity, so pairing is positional
        entries = [
            ParticipantEntry(user_id=user_id, predicted_attendance_probability=prediction.probability)
            for user_id, prediction in zip(participant_ids, predictions)
        ]

        await self._mirror_probabilities(entries)

        now = utc_now_iso()
        meeting = {
            "creator_id": request.get("creator_id"),
            "meeting_type": meeting_type,
            "importance": importance,
            "start_time": start_time,
            "end_time": end_time,
            "agenda": request.get("agenda") or "",
            "meeting_link": request.get("meeting_link"),
            "participants": [entry.to_dict() for entry in entries],
            "created_at": now,
            "updated_at": now,
        }

        try:
            meeting_id = await self.meetings.add(meeting)
        except Exception as e:
            log.error("meeting_create_failed", error=str(e))
            raise UpstreamWriteFailure(f"Failed to store meeting: {e}") from e

        log.info(
            "meeting_created",
            meeting_id=meeting_id,
            participants=len(entries),
            time_of_day=bucket.value,
        )

        populated = await self.resolver.resolve(entries)
        summary = MeetingSummary.from_meeting(
            meeting_id, meeting, await self._creator_name(meeting["creator_id"])
        )
        self.dispatcher.notify_in_background(populated, summary, NotificationKind.NEW)

        return {
            "meeting_id": meeting_id,
            **meeting,
            "participants": [p.to_dict() for p in populated],
        }

    async def update(self, meeting_id: str, changes: dict[str, Any]) -> dict[str, str]:
        """
        Apply a partial update and notify participants on reschedule.

        Participants may be given as bare user ids (probability 0.5) or as
        objects carrying ``user_id``/``id`` and an optional probability.

        Raises:
            NotFound: The meeting does not exist
            InvalidRequest: Malformed participants or times
            UpstreamWriteFailure: The update could not be stored
        """
        existing = await self.meetings.get(meeting_id)
        if existing is None:
            raise NotFound("Meeting not found")

        update = {k: v for k, v in changes.items() if k not in IMMUTABLE_FIELDS}

        rescheduled = False
        for field in TIME_FIELDS:
            if field in update:
                update[field] = _normalize_time(field, update[field])
                if update[field] != existing.data.get(field):
                    rescheduled = True

        participants_changed = False
        if "participants" in update:
            entries = _normalize_participants(update["participants"])
            update["participants"] = [entry.to_dict() for entry in entries]

            previous_ids = [
                p.get("user_id")
                for p in existing.data.get("participants") or []
                if isinstance(p, dict)
            ]
            participants_changed = [entry.user_id for entry in entries] != previous_ids
            await self._mirror_probabilities(entries)

        update["updated_at"] = utc_now_iso()

        try:
            await self.meetings.update(meeting_id, update)
        except Exception as e:
            log.error("meeting_update_failed", meeting_id=meeting_id, error=str(e))
            raise UpstreamWriteFailure(f"Failed to update meeting: {e}") from e

        log.info(
            "meeting_updated",
            meeting_id=meeting_id,
            rescheduled=rescheduled,
            participants_changed=participants_changed,
        )

        if rescheduled or participants_changed:
            self.dispatcher.run_in_background(
                self._notify_rescheduled(meeting_id),
                name=f"notify-rescheduled-{meeting_id}",
            )

        return {"message": "Meeting updated successfully"}

    async def get(self, meeting_id: str) -> dict[str, Any]:
        """Load one meeting with populated participants."""
        doc = await self.meetings.get(meeting_id)
        if doc is None:
            raise NotFound("Meeting not found")
        return await self._present(doc)

    async def list_all(self) -> list[dict[str, Any]]:
        """Load every meeting with populated participants."""
        docs = await self.meetings.list_all()
        return list(await asyncio.gather(*(self._present(doc) for doc in docs)))

    async def delete(self, meeting_id: str) -> dict[str, str]:
        try:
            deleted = await self.meetings.delete(meeting_id)
        except Exception as e:
            log.error("meeting_delete_failed", meeting_id=meeting_id, error=str(e))
            raise UpstreamWriteFailure(f"Failed to delete meeting: {e}") from e

        if not deleted:
            raise NotFound("Meeting not found")

        log.info("meeting_deleted", meeting_id=meeting_id)
        return {"message": "Meeting deleted successfully"}

    async def _present(self, doc: Document) -> dict[str, Any]:
        meeting = {"meeting_id": doc.id, **doc.data}
        if isinstance(doc.data.get("participants"), list):
            populated = await self.resolver.resolve(doc.data["participants"])
            meeting["participants"] = [p.to_dict() for p in populated]
        return meeting

    async def _mirror_probabilities(self, entries: list[ParticipantEntry]) -> None:
        """Copy each participant's probability onto their user record."""

        async def _mirror(entry: ParticipantEntry) -> None:
            try:
                await self.users.update(
                    entry.user_id,
                    {
                        "predicted_attendance_probability": entry.predicted_attendance_probability,
                        "updated_at": utc_now_iso(),
                    },
                )
                log.debug(
                    "user_probability_updated",
                    user_id=entry.user_id,
                    probability=round(entry.predicted_attendance_probability, 2),
                )
            except Exception as e:
                log.warning("user_probability_update_failed", user_id=entry.user_id, error=str(e))

        await asyncio.gather(*(_mirror(entry) for entry in entries))

    async def _creator_name(self, creator_id: Any) -> str | None:
        if not creator_id or not isinstance(creator_id, str):
            return None
        try:
            doc = await self.users.get(creator_id)
        except Exception as e:
            log.warning("creator_lookup_failed", creator_id=creator_id, error=str(e))
            return None
        return (doc.data.get("name") or None) if doc else None

    async def _notify_rescheduled(self, meeting_id: str) -> None:
        """Reload the stored meeting and email its participants. Runs detached from the request."""
        try:
            doc = await self.meetings.get(meeting_id)
            if doc is None:
                log.warning("reschedule_notification_skipped", meeting_id=meeting_id, reason="meeting_gone")
                return
            populated = await self.resolver.resolve(doc.data.get("participants") or [])
            summary = MeetingSummary.from_meeting(
                meeting_id, doc.data, await self._creator_name(doc.data.get("creator_id"))
            )
            await self.dispatcher.notify(populated, summary, NotificationKind.RESCHEDULED)
        except Exception as e:
            log.error("reschedule_notification_failed", meeting_id=meeting_id, error=str(e))
