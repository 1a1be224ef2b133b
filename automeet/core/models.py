"""
Data models for meeting scheduling.

Uses dataclasses for clean, typed data structures. Only users and meetings
are persisted (as plain dicts); everything here is either a view over
those documents or transient pipeline state.
"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

DEFAULT_PROBABILITY = 0.5
UNKNOWN = "Unknown"


class TimeOfDay(str, Enum):
    """Bucket of the meeting start hour fed to the predictor."""

    MORNING = "morning"  # [5, 12)
    AFTERNOON = "afternoon"  # [12, 17)
    EVENING = "evening"


class NotificationKind(str, Enum):
    """Which email template a notification batch uses."""

    NEW = "new"
    RESCHEDULED = "rescheduled"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class Document:
    """A stored document and its key."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ParticipantEntry:
    """The only participant shape that is persisted on a meeting."""

    user_id: str
    predicted_attendance_probability: float = DEFAULT_PROBABILITY

    @classmethod
    def from_raw(cls, raw: Any) -> "ParticipantEntry | None":
        """
        Normalize a participant given either as a bare id or as an object.

        Objects may carry the id under ``user_id`` or ``id``. A missing or
        non-numeric probability defaults to 0.5.

        Returns:
            The normalized entry, or None when no user id can be resolved.
        """
        if isinstance(raw, str):
            user_id = raw.strip()
            return cls(user_id=user_id) if user_id else None

        if not isinstance(raw, dict):
            return None

        user_id = raw.get("user_id") or raw.get("id")
        if not isinstance(user_id, str) or not user_id.strip():
            return None

        probability = raw.get("predicted_attendance_probability")
        if not _is_number(probability):
            probability = DEFAULT_PROBABILITY

        return cls(user_id=user_id.strip(), predicted_attendance_probability=float(probability))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class UserStats:
    """Attendance history and profile fields used as model features."""

    user_id: str
    company: str = UNKNOWN
    role: str = UNKNOWN
    past_meetings: int = 0
    past_attended: int = 0


@dataclass
class AttendanceInput:
    """Per-participant feature record sent to the attendance predictor."""

    company: str
    role: str
    meeting_type: str
    time_of_day: TimeOfDay
    past_meetings: int
    past_attended: int
    attendance_rate: float
    importance: float

    def to_record(self) -> dict[str, Any]:
        """Convert to the predictor's JSON record."""
        record = asdict(self)
        record["time_of_day"] = self.time_of_day.value
        return record


@dataclass
class Prediction:
    """Attendance prediction for one participant."""

    probability: float
    prediction: int

    @classmethod
    def from_response(cls, data: Any) -> "Prediction | None":
        """
        Build a Prediction from a predictor response body.

        Returns None unless ``probability`` is a finite number in [0, 1]. A missing
        or out-of-range ``prediction`` is derived from the probability.
        """
        if not isinstance(data, dict) or not _is_number(data.get("probability")):
            return None

        probability = float(data["probability"])
        if not math.isfinite(probability) or not 0 <= probability <= 1:
            return None
        prediction = data.get("prediction")
        if prediction not in (0, 1) or isinstance(prediction, bool):
            prediction = 1 if probability >= 0.5 else 0

        return cls(probability=probability, prediction=int(prediction))


@dataclass
class PopulatedParticipant:
    """Participant entry joined with the user's profile, for responses only."""

    user_id: str
    name: str
    email: str
    company: str
    role: str
    predicted_attendance_probability: float

    @classmethod
    def placeholder(cls, entry: ParticipantEntry, name: str) -> "PopulatedParticipant":
        """Stand-in for a participant whose user could not be loaded."""
        return cls(
            user_id=entry.user_id,
            name=name,
            email="",
            company=UNKNOWN,
            role=UNKNOWN,
            predicted_attendance_probability=entry.predicted_attendance_probability,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MeetingSummary:
    """The meeting fields rendered into notification emails."""

    meeting_id: str
    meeting_type: str
    importance: Any
    start_time: str
    end_time: str
    agenda: str
    meeting_link: str | None = None
    creator_name: str | None = None

    @classmethod
    def from_meeting(
        cls,
        meeting_id: str,
        meeting: dict[str, Any],
        creator_name: str | None = None,
    ) -> "MeetingSummary":
        return cls(
            meeting_id=meeting_id,
            meeting_type=meeting.get("meeting_type") or "",
            importance=meeting.get("importance"),
            start_time=meeting.get("start_time") or "",
            end_time=meeting.get("end_time") or "",
            agenda=meeting.get("agenda") or "",
            meeting_link=meeting.get("meeting_link") or None,
            creator_name=creator_name,
        )


@dataclass
class NotificationReport:
    """Outcome counts for one notification batch."""

    kind: NotificationKind
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.sent + self.skipped + self.failed
