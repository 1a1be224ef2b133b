"""
Data maintenance commands.

cleanup-meetings repairs meetings whose stored participants are not in the
``{user_id, predicted_attendance_probability}`` shape, deleting the ones that
cannot be repaired. audit-emails reports which user addresses are
deliverable.

Run: python -m automeet.maintenance cleanup-meetings --dry-run
"""

import argparse
import asyncio
from typing import Any

from automeet.core.database import BaseCollection, Database
from automeet.core.logging import configure_logging, get_logger
from automeet.core.models import Document, ParticipantEntry
from automeet.core.timestamps import utc_now_iso
from automeet.services.email_validation import is_valid_email

log = get_logger(__name__)


def _is_clean(participant: Any) -> bool:
    user_id = participant.get("user_id") if isinstance(participant, dict) else None
    return isinstance(user_id, str) and bool(user_id.strip())


class MeetingCleanup:
    """Repairs or deletes meetings with malformed participant lists."""

    def __init__(self, meetings: BaseCollection, users: BaseCollection, dry_run: bool = False):
        self.meetings = meetings
        self.users = users
        self.dry_run = dry_run
        self.stats = {"total": 0, "valid": 0, "fixed": 0, "deleted": 0, "errors": 0}

    async def run(self) -> dict[str, int]:
        docs = await self.meetings.list_all()
        self.stats["total"] = len(docs)
        log.info("cleanup_starting", meetings=len(docs), dry_run=self.dry_run)

        for doc in docs:
            try:
                await self._check(doc)
            except Exception as e:
                log.error("cleanup_meeting_failed", meeting_id=doc.id, error=str(e))
                self.stats["errors"] += 1

        return self.stats

    async def _check(self, doc: Document) -> None:
        participants = doc.data.get("participants")

        if not isinstance(participants, list):
            await self._delete(doc, reason="no_participants_array")
            return

        if all(_is_clean(p) for p in participants):
            self.stats["valid"] += 1
            return

        entries = [ParticipantEntry.from_raw(p) for p in participants]
        if all(entry is not None for entry in entries):
            existing = [entry for entry in entries if await self._user_exists(entry.user_id)]
            if not existing:
                await self._delete(doc, reason="no_existing_participants")
                return
            await self._fix(doc, existing, reason="rebuilt_entries")
            return

        creator_id = doc.data.get("creator_id")
        if isinstance(creator_id, str) and creator_id and await self._user_exists(creator_id):
            await self._fix(doc, [ParticipantEntry(user_id=creator_id)], reason="creator_only")
            return

        await self._delete(doc, reason="unrecoverable")

    async def _user_exists(self, user_id: str) -> bool:
        return await self.users.get(user_id) is not None

    async def _fix(self, doc: Document, entries: list[ParticipantEntry], reason: str) -> None:
        log.info(
            "meeting_fixed",
            meeting_id=doc.id,
            reason=reason,
            participants=len(entries),
            dry_run=self.dry_run,
        )
        if not self.dry_run:
            await self.meetings.update(
                doc.id,
                {"participants": [e.to_dict() for e in entries], "updated_at": utc_now_iso()},
            )
        self.stats["fixed"] += 1

    async def _delete(self, doc: Document, reason: str) -> None:
        log.info(
            "meeting_deleted",
            meeting_id=doc.id,
            agenda=doc.data.get("agenda"),
            reason=reason,
            dry_run=self.dry_run,
        )
        if not self.dry_run:
            await self.meetings.delete(doc.id)
        self.stats["deleted"] += 1


async def audit_user_emails(users: BaseCollection) -> list[dict[str, Any]]:
    """List every user's email and whether notifications can reach it."""
    report = []
    for doc in await users.list_all():
        email = doc.data.get("email") or ""
        entry = {
            "user_id": doc.id,
            "name": doc.data.get("name") or "",
            "email": email,
            "deliverable": is_valid_email(email),
        }
        log.info("user_email_checked", **entry)
        report.append(entry)

    log.info(
        "email_audit_summary",
        users=len(report),
        deliverable=sum(1 for r in report if r["deliverable"]),
    )
    return report


async def _run(args: argparse.Namespace) -> None:
    db = Database()
    users = db.collection("users")

    if args.command == "cleanup-meetings":
        stats = await MeetingCleanup(db.collection("meetings"), users, dry_run=args.dry_run).run()
        log.info("cleanup_summary", dry_run=args.dry_run, **stats)
    else:
        await audit_user_emails(users)


def main():
    """CLI entry point for maintenance commands."""
    parser = argparse.ArgumentParser(description="AutoMeet data maintenance")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    cleanup = subparsers.add_parser(
        "cleanup-meetings",
        help="Repair or delete meetings with malformed participants",
    )
    cleanup.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )
    subparsers.add_parser("audit-emails", help="Report deliverability of user emails")

    args = parser.parse_args()
    configure_logging(log_level=args.log_level, json_output=False)
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
