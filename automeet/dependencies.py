"""
FastAPI dependencies.

Services are built once in the application lifespan and stored on
``app.state``; these getters hand them to the routers and are the seams
tests override.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from automeet.core.exceptions import Unauthorized
from automeet.services.identity import Identity, JWTIdentityVerifier
from automeet.services.meetings import MeetingWorkflow
from automeet.services.users import UserService

security = HTTPBearer(auto_error=False)


def get_workflow(request: Request) -> MeetingWorkflow:
    return request.app.state.workflow


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_verifier(request: Request) -> JWTIdentityVerifier:
    return request.app.state.verifier


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    verifier: JWTIdentityVerifier = Depends(get_verifier),
) -> Identity:
    """Authenticated caller from the ``Authorization: Bearer`` header."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Unauthorized: No token provided")
    return await verifier.verify(credentials.credentials)
