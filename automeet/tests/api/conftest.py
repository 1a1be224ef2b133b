"""
Fixtures for endpoint tests.

The application lifespan is not run; services are injected through
dependency overrides over the in-memory collections.
"""

import time

import jwt
import pytest
from fastapi.testclient import TestClient

from automeet.config import Settings
from automeet.dependencies import get_user_service, get_verifier, get_workflow
from automeet.main import app
from automeet.services.identity import JWTIdentityVerifier

AUTH_SECRET = "api-test-secret"


def bearer(subject: str, email: str | None = None) -> dict[str, str]:
    """Authorization header carrying a signed token for ``subject``."""
    now = int(time.time())
    claims = {"sub": subject, "iat": now, "exp": now + 300}
    if email:
        claims["email"] = email
    return {"Authorization": f"Bearer {jwt.encode(claims, AUTH_SECRET, algorithm='HS256')}"}


@pytest.fixture
def client(workflow, user_service):
    verifier = JWTIdentityVerifier(Settings(auth_jwt_secret=AUTH_SECRET))
    app.dependency_overrides[get_workflow] = lambda: workflow
    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_verifier] = lambda: verifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return bearer
