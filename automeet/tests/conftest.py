"""
Shared pytest fixtures for automeet tests.
"""

import asyncio
import copy
import operator
from typing import Any

import pytest

from automeet.core.database import BaseCollection, new_document_id
from automeet.core.exceptions import NotFound, NotificationFailure, PredictionUnavailable
from automeet.core.models import AttendanceInput, Document, Prediction
from automeet.services.mail import NotificationTransport
from automeet.services.meetings import MeetingWorkflow
from automeet.services.notifications import NotificationDispatcher
from automeet.services.users import UserService

COMPARISONS = {
    "==": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class MemoryCollection(BaseCollection):
    """In-memory document collection. Operations named in ``failing`` raise."""

    def __init__(self, name: str, docs: dict[str, dict[str, Any]] | None = None):
        self.name = name
        self.docs = copy.deepcopy(docs or {})
        self.failing: set[str] = set()

    def _check(self, op: str) -> None:
        if op in self.failing:
            raise RuntimeError(f"{self.name}.{op} unavailable")

    async def get(self, doc_id: str) -> Document | None:
        self._check("get")
        if doc_id not in self.docs:
            return None
        return Document(id=doc_id, data=copy.deepcopy(self.docs[doc_id]))

    async def add(self, data: dict[str, Any]) -> str:
        self._check("add")
        doc_id = new_document_id()
        self.docs[doc_id] = copy.deepcopy(data)
        return doc_id

    async def update(self, doc_id: str, fields: dict[str, Any]) -> None:
        self._check("update")
        if doc_id not in self.docs:
            raise NotFound(f"No document {doc_id} in {self.name}")
        self.docs[doc_id].update(copy.deepcopy(fields))

    async def delete(self, doc_id: str) -> bool:
        self._check("delete")
        return self.docs.pop(doc_id, None) is not None

    async def list_all(self) -> list[Document]:
        self._check("list_all")
        return [Document(id=k, data=copy.deepcopy(v)) for k, v in self.docs.items()]

    async def where(self, field: str, op: str, value: Any) -> list[Document]:
        self._check("where")
        compare = COMPARISONS[op]
        return [
            Document(id=k, data=copy.deepcopy(v))
            for k, v in self.docs.items()
            if field in v and v[field] is not None and compare(v[field], value)
        ]


class FakeTransport(NotificationTransport):
    """Records sends; addresses in ``fail_for`` are rejected. Sends block on ``gate`` if one is assigned."""

    name = "fake"

    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[dict[str, str]] = []
        self.fail_for = fail_for or set()
        self.closed = False
        self.gate: asyncio.Event | None = None

    async def send(self, to: str, subject: str, html: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if to in self.fail_for:
            raise NotificationFailure(f"rejected {to}")
        self.sent.append({"to": to, "subject": subject, "html": html})

    async def close(self) -> None:
        self.closed = True

    @property
    def recipients(self) -> list[str]:
        return sorted(message["to"] for message in self.sent)


class FakePredictor:
    """Returns fixed probabilities in call order, or raises when unavailable."""

    def __init__(self, probabilities: list[float] | None = None, available: bool = True):
        self.probabilities = probabilities or []
        self.available = available
        self.calls: list[list[AttendanceInput]] = []

    async def predict(self, inputs: list[AttendanceInput]) -> list[Prediction]:
        self.calls.append(inputs)
        if not self.available:
            raise PredictionUnavailable("predictor down")
        return [
            Prediction(probability=p, prediction=1 if p >= 0.5 else 0)
            for p in self.probabilities[: len(inputs)]
        ]

    async def close(self) -> None:
        pass


@pytest.fixture
def sample_users() -> dict[str, dict[str, Any]]:
    """Three users: one with counters, one without, one with a placeholder email."""
    return {
        "u1": {
            "user_id": "u1",
            "name": "Alice Nguyen",
            "company": "Acme",
            "role": "Engineer",
            "email": "alice@acme.io",
            "past_meetings": 10,
            "past_attended": 8,
        },
        "u2": {
            "user_id": "u2",
            "name": "Bob Tran",
            "company": "Acme",
            "role": "Manager",
            "email": "bob@acme.io",
        },
        "u3": {
            "user_id": "u3",
            "name": "Carol Le",
            "company": "",
            "role": "Designer",
            "email": "test@test.com",
            "past_meetings": 4,
            "past_attended": 1,
        },
    }


@pytest.fixture
def users(sample_users) -> MemoryCollection:
    return MemoryCollection("users", sample_users)


@pytest.fixture
def meetings() -> MemoryCollection:
    return MemoryCollection("meetings")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def dispatcher(transport) -> NotificationDispatcher:
    return NotificationDispatcher(transport)


@pytest.fixture
def predictor() -> FakePredictor:
    return FakePredictor([0.7, 0.3, 0.9])


@pytest.fixture
def workflow(meetings, users, predictor, dispatcher) -> MeetingWorkflow:
    return MeetingWorkflow(meetings, users, predictor, dispatcher)


@pytest.fixture
def user_service(users) -> UserService:
    return UserService(users)


@pytest.fixture
def meeting_request() -> dict[str, Any]:
    """A valid create request for a morning meeting with u1 and u2."""
    return {
        "creator_id": "u1",
        "meeting_type": "standup",
        "importance": 7,
        "start_time": "2030-03-04T09:30:00Z",
        "end_time": "2030-03-04T10:00:00Z",
        "agenda": "Sprint planning",
        "meeting_link": "https://meet.example.net/abc",
        "participants": ["u1", "u2"],
    }


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock settings for testing."""
    monkeypatch.setenv("DATABASE_PASSWORD", "test-db-password")
    monkeypatch.setenv("SENDGRID_API_KEY", "")
    monkeypatch.setenv("SMTP_USER", "mailer@automeet.test")
    monkeypatch.setenv("AUTH_JWT_SECRET", "test-secret")
    monkeypatch.setenv("TIMEZONE", "UTC")
