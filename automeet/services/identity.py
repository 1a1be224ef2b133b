"""
Bearer token verification.

Identity tokens are JWTs issued by an external provider. By default they are
RS256-signed and checked against the provider's published JWKS (Firebase
securetoken); setting AUTH_JWT_SECRET switches to HS256 with a shared secret.
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import jwt

from automeet.config import Settings, settings
from automeet.core.exceptions import Unauthorized
from automeet.core.logging import get_logger

log = get_logger(__name__)


@dataclass
class Identity:
    """The authenticated caller."""

    subject_id: str
    email: str | None = None


class JWTIdentityVerifier:
    """Verifies bearer tokens and extracts the caller's identity."""

    def __init__(self, config: Settings | None = None):
        self.config = config or settings
        self._jwks_client: jwt.PyJWKClient | None = None
        if not self.config.auth_jwt_secret:
            self._jwks_client = jwt.PyJWKClient(self.config.auth_jwks_url)

    async def _decode(self, token: str) -> dict[str, Any]:
        options = {"verify_aud": bool(self.config.auth_audience)}

        if self.config.auth_jwt_secret:
            return jwt.decode(
                token,
                key=self.config.auth_jwt_secret,
                algorithms=["HS256"],
                audience=self.config.auth_audience,
                issuer=self.config.auth_issuer,
                options=options,
            )

        # Key lookup may fetch the JWKS over the network
        signing_key = await asyncio.to_thread(self._jwks_client.get_signing_key_from_jwt, token)
        return jwt.decode(
            token,
            key=signing_key.key,
            algorithms=["RS256"],
            audience=self.config.auth_audience,
            issuer=self.config.auth_issuer,
            options=options,
        )

    async def verify(self, token: str) -> Identity:
        """
        Verify a token's signature, expiry, and configured audience/issuer.

        Raises:
            Unauthorized: If the token is missing, invalid, or has no subject
        """
        if not token:
            raise Unauthorized("Unauthorized: No token provided")

        try:
            claims = await self._decode(token)
        except jwt.ExpiredSignatureError as e:
            log.warning("token_expired")
            raise Unauthorized("Unauthorized: Token has expired") from e
        except (jwt.InvalidTokenError, jwt.PyJWKClientError) as e:
            log.warning("token_invalid", error=str(e))
            raise Unauthorized("Unauthorized: Invalid token") from e

        subject_id = claims.get("sub") or claims.get("user_id")
        if not subject_id:
            log.warning("token_missing_subject")
            raise Unauthorized("Unauthorized: Invalid token")

        return Identity(subject_id=str(subject_id), email=claims.get("email") or None)
