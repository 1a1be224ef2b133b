"""Unit tests for notification rendering and dispatch."""

import asyncio

import pytest

from automeet.core.models import MeetingSummary, NotificationKind, PopulatedParticipant
from automeet.services.mail import NotificationTransport
from automeet.services.notifications import (
    NotificationDispatcher,
    build_subject,
    format_date,
    render_email,
)


def _participant(user_id: str, email: str, name: str = "Alice") -> PopulatedParticipant:
    return PopulatedParticipant(
        user_id=user_id,
        name=name,
        email=email,
        company="Acme",
        role="Engineer",
        predicted_attendance_probability=0.7,
    )


class RendezvousTransport(NotificationTransport):
    """Each send waits until every other recipient's send has started."""

    name = "rendezvous"

    def __init__(self, recipients: list[str]):
        self.started = {to: asyncio.Event() for to in recipients}
        self.sent: list[str] = []

    async def send(self, to: str, subject: str, html: str) -> None:
        self.started[to].set()
        for other, event in self.started.items():
            if other != to:
                await asyncio.wait_for(event.wait(), timeout=1)
        self.sent.append(to)

    async def close(self) -> None:
        pass


@pytest.fixture
def summary() -> MeetingSummary:
    return MeetingSummary(
        meeting_id="m1",
        meeting_type="standup",
        importance=7,
        start_time="2030-03-04T09:30:00.000Z",
        end_time="2030-03-04T10:00:00.000Z",
        agenda="Sprint planning",
        meeting_link="https://meet.example.net/abc",
        creator_name="Alice Nguyen",
    )


class TestRendering:
    """Tests for email subject and body rendering."""

    def test_subjects(self, summary):
        assert build_subject(NotificationKind.NEW, summary) == "New Meeting: Sprint planning"
        assert build_subject(NotificationKind.RESCHEDULED, summary) == "Meeting Rescheduled: Sprint planning"

    def test_format_date(self):
        assert format_date("2030-03-04T09:30:00.000Z") == "Monday, March 4, 2030, 09:30 AM UTC"

    def test_format_date_passes_through_garbage(self):
        assert format_date("next tuesday") == "next tuesday"

    def test_new_meeting_body(self, summary):
        body = render_email(NotificationKind.NEW, "Bob", summary)
        assert "New Meeting Scheduled" in body
        assert "Hello Bob," in body
        assert "#4CAF50" in body
        assert "Organized by:" in body
        assert 'href="https://meet.example.net/abc"' in body
        assert "7/10" in body

    def test_rescheduled_body(self, summary):
        body = render_email(NotificationKind.RESCHEDULED, "Bob", summary)
        assert "Meeting Rescheduled" in body
        assert "#FF9800" in body
        assert "New Start Time:" in body

    def test_optional_sections_omitted(self, summary):
        summary.meeting_link = None
        summary.creator_name = None
        body = render_email(NotificationKind.NEW, "Bob", summary)
        assert "Join Meeting" not in body
        assert "Organized by:" not in body

    def test_values_are_escaped(self, summary):
        summary.agenda = "<script>alert(1)</script>"
        body = render_email(NotificationKind.NEW, "Bob & Co", summary)
        assert "<script>" not in body
        assert "Bob &amp; Co" in body


class TestNotificationDispatcher:
    """Tests for NotificationDispatcher."""

    @pytest.mark.asyncio
    async def test_sends_to_deliverable_only(self, summary, transport):
        participants = [
            _participant("u1", "alice@acme.io"),
            _participant("u2", ""),
            _participant("u3", "test@test.com"),
            _participant("u4", " dana@acme.io "),
        ]

        report = await NotificationDispatcher(transport).notify(participants, summary, NotificationKind.NEW)

        assert transport.recipients == ["alice@acme.io", "dana@acme.io"]
        assert (report.sent, report.skipped, report.failed) == (2, 2, 0)
        assert transport.sent[0]["subject"] == "New Meeting: Sprint planning"

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_others(self, summary, transport):
        transport.fail_for = {"alice@acme.io"}
        participants = [_participant("u1", "alice@acme.io"), _participant("u2", "bob@acme.io")]

        report = await NotificationDispatcher(transport).notify(
            participants, summary, NotificationKind.RESCHEDULED
        )

        assert transport.recipients == ["bob@acme.io"]
        assert (report.sent, report.failed) == (1, 1)

    @pytest.mark.asyncio
    async def test_sends_overlap(self, summary):
        transport = RendezvousTransport(["alice@acme.io", "bob@acme.io"])
        participants = [_participant("u1", "alice@acme.io"), _participant("u2", "bob@acme.io")]

        report = await NotificationDispatcher(transport).notify(participants, summary, NotificationKind.NEW)

        assert (report.sent, report.failed) == (2, 0)
        assert sorted(transport.sent) == ["alice@acme.io", "bob@acme.io"]

    @pytest.mark.asyncio
    async def test_background_batch_and_drain(self, summary, transport):
        dispatcher = NotificationDispatcher(transport)

        task = dispatcher.notify_in_background(
            [_participant("u1", "alice@acme.io")], summary, NotificationKind.NEW
        )
        assert dispatcher.pending == 1

        await dispatcher.drain()

        assert task.done()
        assert dispatcher.pending == 0
        assert transport.recipients == ["alice@acme.io"]

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self, dispatcher):
        await dispatcher.drain()
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_run_in_background_is_tracked(self, dispatcher):
        release = asyncio.Event()

        async def work():
            await release.wait()

        dispatcher.run_in_background(work(), name="notify-test")
        assert dispatcher.pending == 1

        release.set()
        await dispatcher.drain()
        assert dispatcher.pending == 0
