"""Core modules for meeting scheduling."""

from .logging import configure_logging, get_logger
from .exceptions import (
    AutoMeetError,
    InvalidRequest,
    NotFound,
    Unauthorized,
    PredictionUnavailable,
    UpstreamWriteFailure,
    NotificationFailure,
)
from .models import (
    Document,
    ParticipantEntry,
    UserStats,
    AttendanceInput,
    Prediction,
    PopulatedParticipant,
    MeetingSummary,
    NotificationKind,
    NotificationReport,
    TimeOfDay,
)
from .database import BaseCollection, Database

__all__ = [
    "configure_logging",
    "get_logger",
    "AutoMeetError",
    "InvalidRequest",
    "NotFound",
    "Unauthorized",
    "PredictionUnavailable",
    "UpstreamWriteFailure",
    "NotificationFailure",
    "Document",
    "ParticipantEntry",
    "UserStats",
    "AttendanceInput",
    "Prediction",
    "PopulatedParticipant",
    "MeetingSummary",
    "NotificationKind",
    "NotificationReport",
    "TimeOfDay",
    "BaseCollection",
    "Database",
]
