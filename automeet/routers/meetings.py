"""
Meeting endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from automeet.dependencies import get_workflow
from automeet.services.meetings import MeetingWorkflow

router = APIRouter(prefix="/meetings", tags=["meetings"])


class MeetingCreate(BaseModel):
    creator_id: str | None = None
    meeting_type: str = ""
    importance: Any = None
    start_time: str | int | None = None
    end_time: str | int | None = None
    agenda: str = ""
    meeting_link: str | None = None
    participants: list[str | dict[str, Any]] = []


class MeetingUpdate(BaseModel):
    """Partial update; unknown fields are stored as given."""

    model_config = ConfigDict(extra="allow")

    meeting_type: str | None = None
    importance: Any = None
    start_time: str | int | None = None
    end_time: str | int | None = None
    agenda: str | None = None
    meeting_link: str | None = None
    participants: list[str | dict[str, Any]] | None = None


@router.post("", status_code=201)
async def create_meeting(
    body: MeetingCreate,
    workflow: MeetingWorkflow = Depends(get_workflow),
):
    """
    Schedule a meeting.

    Predicts attendance for each participant, stores the meeting, and emails
    participants in the background.
    """
    return await workflow.create(body.model_dump())


@router.get("")
async def list_meetings(workflow: MeetingWorkflow = Depends(get_workflow)):
    return await workflow.list_all()


@router.get("/{meeting_id}")
async def get_meeting(meeting_id: str, workflow: MeetingWorkflow = Depends(get_workflow)):
    return await workflow.get(meeting_id)


@router.put("/{meeting_id}")
async def update_meeting(
    meeting_id: str,
    body: MeetingUpdate,
    workflow: MeetingWorkflow = Depends(get_workflow),
):
    """Apply a partial update. Changed times or participants trigger reschedule emails."""
    return await workflow.update(meeting_id, body.model_dump(exclude_unset=True))


@router.delete("/{meeting_id}")
async def delete_meeting(meeting_id: str, workflow: MeetingWorkflow = Depends(get_workflow)):
    return await workflow.delete(meeting_id)
