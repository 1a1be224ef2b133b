"""
Domain exceptions.

Each exception that can reach an API caller carries the HTTP status it
maps to; the remaining ones are recovered inside the pipeline.
"""


class AutoMeetError(Exception):
    """Base class for all AutoMeet errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(AutoMeetError):
    """Missing or malformed required fields."""

    status_code = 400


class NotFound(AutoMeetError):
    """Referenced meeting or user does not exist."""

    status_code = 404


class Unauthorized(AutoMeetError):
    """Missing or invalid bearer token."""

    status_code = 401


class PredictionUnavailable(AutoMeetError):
    """The attendance predictor failed; callers fall back to a heuristic."""


class UpstreamWriteFailure(AutoMeetError):
    """The document store rejected a write."""


class NotificationFailure(AutoMeetError):
    """A single notification send failed. Logged, never surfaced."""
