"""
Attendance predictor client for the remote ML scoring service.

The scorer accepts one feature record per call, so a batch is scored with
sequential requests. The results list lines up with the inputs by index:
the scorer's response carries no participant identity, so position is the
only way to pair a prediction with a participant.
"""

from typing import Any

import httpx

from automeet.config import settings
from automeet.core.exceptions import PredictionUnavailable
from automeet.core.logging import get_logger
from automeet.core.models import AttendanceInput, Prediction, TimeOfDay, UserStats
from automeet.core.timestamps import local_hour

log = get_logger(__name__)


def time_of_day(start_time: Any) -> TimeOfDay:
    """Bucket the local start hour into morning [5,12), afternoon [12,17), else evening."""
    hour = local_hour(start_time)
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


def attendance_rate(past_attended: int, past_meetings: int) -> float:
    """Share of past meetings attended; 0 when there is no history."""
    if past_meetings == 0:
        return 0.0
    return past_attended / past_meetings


def build_attendance_input(
    stats: UserStats,
    meeting_type: str,
    bucket: TimeOfDay,
    importance: Any,
) -> AttendanceInput:
    """Assemble the feature record for one participant."""
    return AttendanceInput(
        company=stats.company,
        role=stats.role,
        meeting_type=meeting_type,
        time_of_day=bucket,
        past_meetings=stats.past_meetings,
        past_attended=stats.past_attended,
        attendance_rate=attendance_rate(stats.past_attended, stats.past_meetings),
        importance=importance,
    )


def fallback_predictions(inputs: list[AttendanceInput]) -> list[Prediction]:
    """
    Heuristic scores used when the predictor is unavailable.

    probability = max(0.5, attendance_rate); prediction = attendance_rate >= 0.5.
    """
    return [
        Prediction(
            probability=max(0.5, item.attendance_rate),
            prediction=1 if item.attendance_rate >= 0.5 else 0,
        )
        for item in inputs
    ]


class AttendancePredictorClient:
    """HTTP client for the remote attendance predictor."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url or settings.predictor_url
        self.timeout = timeout or settings.predictor_timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    async def predict(self, inputs: list[AttendanceInput]) -> list[Prediction]:
        """
        Score every input, one request at a time.

        Args:
            inputs: Feature records, one per participant

        Returns:
            One Prediction per input, in input order

        Raises:
            PredictionUnavailable: If any call fails or returns a body
                without a numeric probability. No partial results.
        """
        log.info("prediction_batch_starting", count=len(inputs), url=self.url)
        predictions: list[Prediction] = []

        for index, item in enumerate(inputs):
            try:
                response = await self._client.post(self.url, json={"record": item.to_record()})
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                log.error(
                    "predictor_http_error",
                    index=index,
                    status=e.response.status_code,
                    error=str(e),
                )
                raise PredictionUnavailable(f"Predictor service error: {e}") from e
            except httpx.RequestError as e:
                log.error("predictor_request_error", index=index, error=str(e))
                raise PredictionUnavailable(f"Failed to reach predictor service: {e}") from e
            except ValueError as e:
                log.error("predictor_invalid_json", index=index, error=str(e))
                raise PredictionUnavailable("Predictor returned a non-JSON body") from e

            prediction = Prediction.from_response(data)
            if prediction is None:
                log.error("predictor_malformed_response", index=index, body=data)
                raise PredictionUnavailable("Predictor response has no probability in [0, 1]")

            predictions.append(prediction)

        log.info("prediction_batch_complete", count=len(predictions))
        return predictions

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
