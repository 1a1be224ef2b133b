"""
User profile endpoints.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from automeet.dependencies import get_user_service
from automeet.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


class UserCreate(BaseModel):
    name: str
    company: str = ""
    email: str = ""
    role: str = ""
    auth_uid: str | None = None
    past_meetings: int = Field(default=0, ge=0)
    past_attended: int = Field(default=0, ge=0)


class UserUpdate(BaseModel):
    """Partial update; ``user_id``, ``auth_uid`` and ``created_at`` are ignored."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    company: str | None = None
    email: str | None = None
    role: str | None = None
    past_meetings: int | None = Field(default=None, ge=0)
    past_attended: int | None = Field(default=None, ge=0)


@router.post("", status_code=201)
async def create_user(body: UserCreate, users: UserService = Depends(get_user_service)):
    return await users.create(body.model_dump())


@router.get("")
async def list_users(users: UserService = Depends(get_user_service)):
    return await users.list_all()


@router.get("/{user_id}")
async def get_user(user_id: str, users: UserService = Depends(get_user_service)):
    return await users.get(user_id)


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: UserUpdate,
    users: UserService = Depends(get_user_service),
):
    return await users.update(user_id, body.model_dump(exclude_unset=True))


@router.delete("/{user_id}")
async def delete_user(user_id: str, users: UserService = Depends(get_user_service)):
    return await users.delete(user_id)
