"""
Meeting notification emails.

Renders per-participant HTML for new and rescheduled meetings and sends it
through the injected transport. Delivery is best-effort: a failed send is
logged against its recipient and never reaches the caller.
"""

import asyncio
import html
from dataclasses import dataclass
from typing import Any, Coroutine

from automeet.core.logging import get_logger
from automeet.core.models import (
    MeetingSummary,
    NotificationKind,
    NotificationReport,
    PopulatedParticipant,
)
from automeet.core.timestamps import get_timezone, parse_timestamp
from automeet.services.email_validation import is_valid_email
from automeet.services.mail import NotificationTransport

log = get_logger(__name__)


@dataclass(frozen=True)
class TemplateStyle:
    heading: str
    subject_prefix: str
    color: str
    intro: str
    time_label: str
    closing: str


TEMPLATES = {
    NotificationKind.NEW: TemplateStyle(
        heading="New Meeting Scheduled",
        subject_prefix="New Meeting",
        color="#4CAF50",
        intro="<p>You have been invited to a new meeting.</p>",
        time_label="",
        closing="Please make sure to mark your calendar.",
    ),
    NotificationKind.RESCHEDULED: TemplateStyle(
        heading="Meeting Rescheduled",
        subject_prefix="Meeting Rescheduled",
        color="#FF9800",
        intro=(
            '<div class="warning"><strong>Important:</strong> '
            "A meeting you're invited to has been rescheduled.</div>"
        ),
        time_label="New ",
        closing="Please update your calendar accordingly.",
    ),
}


def format_date(value: str) -> str:
    """Human-readable date in the configured timezone, e.g. 'Monday, March 2, 2026, 09:30 AM UTC'."""
    try:
        dt = parse_timestamp(value).astimezone(get_timezone())
    except (TypeError, ValueError):
        return value or ""
    return f"{dt:%A, %B} {dt.day}, {dt:%Y, %I:%M %p %Z}"


def build_subject(kind: NotificationKind, meeting: MeetingSummary) -> str:
    return f"{TEMPLATES[kind].subject_prefix}: {meeting.agenda}"


def render_email(
    kind: NotificationKind,
    participant_name: str,
    meeting: MeetingSummary,
) -> str:
    """Render the HTML body for one participant."""
    style = TEMPLATES[kind]
    esc = html.escape

    organizer = (
        f'<div class="detail-row"><span class="label">Organized by:</span> '
        f"{esc(meeting.creator_name)}</div>"
        if meeting.creator_name
        else ""
    )
    join_button = (
        f'<a href="{esc(meeting.meeting_link, quote=True)}" class="button">Join Meeting</a>'
        if meeting.meeting_link
        else ""
    )

    return f"""<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background-color: {style.color}; color: white; padding: 20px; text-align: center; }}
    .content {{ background-color: #f9f9f9; padding: 20px; border: 1px solid #ddd; }}
    .meeting-details {{ background-color: white; padding: 15px; margin: 15px 0; border-left: 4px solid {style.color}; }}
    .detail-row {{ margin: 10px 0; }}
    .label {{ font-weight: bold; color: #555; }}
    .button {{ display: inline-block; padding: 12px 24px; margin: 20px 0; background-color: {style.color}; color: white; text-decoration: none; border-radius: 4px; }}
    .warning {{ background-color: #fff3cd; padding: 10px; border-left: 4px solid {style.color}; margin: 15px 0; }}
    .footer {{ text-align: center; margin-top: 20px; font-size: 12px; color: #777; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>{style.heading}</h1></div>
    <div class="content">
      <p>Hello {esc(participant_name)},</p>
      {style.intro}
      <div class="meeting-details">
        <div class="detail-row"><span class="label">Meeting Type:</span> {esc(meeting.meeting_type)}</div>
        <div class="detail-row"><span class="label">Agenda:</span> {esc(meeting.agenda)}</div>
        <div class="detail-row"><span class="label">{style.time_label}Start Time:</span> {esc(format_date(meeting.start_time))}</div>
        <div class="detail-row"><span class="label">{style.time_label}End Time:</span> {esc(format_date(meeting.end_time))}</div>
        <div class="detail-row"><span class="label">Importance:</span> {esc(str(meeting.importance))}/10</div>
        {organizer}
      </div>
      {join_button}
      <p>{style.closing}</p>
    </div>
    <div class="footer">
      <p>This is an automated message from AutoMeet. Please do not reply to this email.</p>
    </div>
  </div>
</body>
</html>
"""


class NotificationDispatcher:
    """Sends meeting notifications to every deliverable participant."""

    def __init__(self, transport: NotificationTransport):
        self.transport = transport
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of background batches still running."""
        return len(self._tasks)

    async def notify(
        self,
        participants: list[PopulatedParticipant],
        meeting: MeetingSummary,
        kind: NotificationKind,
    ) -> NotificationReport:
        """
        Email all participants with a deliverable address.

        Participants without an email, or with one that fails
        is_valid_email, are skipped. Sends run concurrently and each failure
        is logged per recipient.

        Returns:
            Counts of sent, skipped and failed messages
        """
        report = NotificationReport(kind=kind)
        eligible: list[PopulatedParticipant] = []

        for participant in participants:
            if not participant.email:
                log.warning(
                    "notification_skipped",
                    reason="missing_email",
                    user_id=participant.user_id,
                    name=participant.name,
                )
                report.skipped += 1
            elif not is_valid_email(participant.email):
                log.warning(
                    "notification_skipped",
                    reason="invalid_email",
                    user_id=participant.user_id,
                    email=participant.email,
                )
                report.skipped += 1
            else:
                eligible.append(participant)

        log.info(
            "notification_batch_starting",
            kind=kind.value,
            meeting_id=meeting.meeting_id,
            transport=self.transport.name,
            total=len(participants),
            eligible=len(eligible),
            skipped=report.skipped,
        )

        results = await asyncio.gather(
            *(self._send_one(participant, meeting, kind) for participant in eligible)
        )
        report.sent = sum(1 for ok in results if ok)
        report.failed = len(results) - report.sent

        log.info(
            "notification_batch_complete",
            kind=kind.value,
            meeting_id=meeting.meeting_id,
            sent=report.sent,
            skipped=report.skipped,
            failed=report.failed,
        )
        return report

    async def _send_one(
        self,
        participant: PopulatedParticipant,
        meeting: MeetingSummary,
        kind: NotificationKind,
    ) -> bool:
        email = participant.email.strip()
        try:
            body = render_email(kind, participant.name, meeting)
            await self.transport.send(email, build_subject(kind, meeting), body)
        except Exception as e:
            log.error(
                "notification_send_failed",
                kind=kind.value,
                meeting_id=meeting.meeting_id,
                user_id=participant.user_id,
                email=email,
                error=str(e),
            )
            return False

        log.info(
            "notification_sent",
            kind=kind.value,
            meeting_id=meeting.meeting_id,
            user_id=participant.user_id,
            email=email,
        )
        return True

    def notify_in_background(
        self,
        participants: list[PopulatedParticipant],
        meeting: MeetingSummary,
        kind: NotificationKind,
    ) -> asyncio.Task:
        """
        Start a notification batch without waiting for it.

        The task is tracked until it finishes so drain() can wait for it;
        its errors are logged inside the task.
        """
        return self.run_in_background(
            self._notify_detached(participants, meeting, kind),
            name=f"notify-{kind.value}-{meeting.meeting_id}",
        )

    def run_in_background(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """Schedule work that ends in a notification batch and track it for drain()."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _notify_detached(
        self,
        participants: list[PopulatedParticipant],
        meeting: MeetingSummary,
        kind: NotificationKind,
    ) -> NotificationReport | None:
        try:
            return await self.notify(participants, meeting, kind)
        except Exception as e:
            log.error(
                "notification_batch_failed",
                kind=kind.value,
                meeting_id=meeting.meeting_id,
                error=str(e),
            )
            return None

    async def drain(self) -> None:
        """Wait for every in-flight background batch."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
