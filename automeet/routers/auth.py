"""
Profile endpoints for callers authenticated by an external identity provider.

The client signs in with the provider first, then presents the provider's
ID token here as a bearer token.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from automeet.core.logging import get_logger
from automeet.dependencies import get_identity, get_user_service
from automeet.services.identity import Identity
from automeet.services.users import UserService

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    name: str
    company: str = ""
    role: str = ""
    past_meetings: int = Field(default=0, ge=0)
    past_attended: int = Field(default=0, ge=0)


@router.post("/signup", status_code=201)
async def signup(
    body: SignupRequest,
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    """Create the profile for the authenticated identity."""
    user = await users.signup(identity.subject_id, identity.email, body.model_dump())
    log.info("signup_complete", user_id=user["user_id"])
    return {"message": "User profile created successfully", "user": user}


@router.post("/login")
async def login(
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    user = await users.profile_for(identity.subject_id)
    log.info("login", user_id=user["user_id"])
    return {"message": "Login successful", "user": user}


@router.get("/me")
async def me(
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    return await users.profile_for(identity.subject_id)
