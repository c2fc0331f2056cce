"""
Long-lived refresh tokens with single-session rotation.

Every refresh token carries a random session id (`jti`). Exactly one id per
user is active: it is stored on the user record and overwritten each time a
refresh token is issued, so any earlier token stops validating the moment a
newer one exists. Logout clears the stored id.

Lifecycle of a session id: absent -> active -> superseded | expired | cleared.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional

from user_auth.claims import ClaimsCodec
from user_auth.errors import (
    CustomClaimError,
    MalformedTokenError,
    SessionMismatchError,
    UserNotFoundError,
)
from user_auth.reference import OpaqueReference
from user_auth.store import UserStore

logger = logging.getLogger(__name__)

TOKEN_TYPE = "refresh"
SESSION_ID_BYTES = 16


def generate_session_id() -> str:
    """128 random bits as 32 hex characters."""
    return secrets.token_hex(SESSION_ID_BYTES)


@dataclass(frozen=True)
class RefreshToken:
    token: str
    claims: Dict[str, Any]
    service: "RefreshTokenService" = field(repr=False, compare=False)
    user: Optional[Any] = field(default=None, repr=False, compare=False)

    @property
    def expires(self) -> int:
        return int(self.claims["exp"])

    @property
    def session_id(self) -> str:
        return self.claims["jti"]

    @property
    def user_id(self) -> str:
        return self.service.reference.unwrap(self.claims.get("sub"))

    def resolve_user(self):
        if self.user is not None:
            return self.user
        user = self.service.users.get(self.user_id)
        if user is None:
            raise UserNotFoundError(f"User {self.user_id} not found")
        return user


class RefreshTokenService:
    def __init__(self, codec: ClaimsCodec, reference: OpaqueReference, users: UserStore, lifetime: timedelta):
        self.codec = codec
        self.reference = reference
        self.users = users
        self.lifetime = lifetime

    def issue(self, user_id: str) -> RefreshToken:
        """
        Mint a refresh token and make it the user's only valid one.

        The store write is what revokes every refresh token issued before.
        """
        session_id = generate_session_id()
        now = self.codec.now()
        claims = {
            "sub": self.reference.wrap(user_id),
            "jti": session_id,
            "iat": now,
            "exp": now + int(self.lifetime.total_seconds()),
            "type": TOKEN_TYPE,
        }
        token = self.codec.encode(claims)
        self.users.remember(user_id, session_id)
        logger.debug("Issued refresh session for user %s", user_id)
        return RefreshToken(token=token, claims=claims, service=self)

    def parse(self, token: str) -> RefreshToken:
        """
        Validate a presented refresh token against the stored session id.

        Raises MalformedTokenError, ExpiredError, OpaqueReferenceError,
        UserNotFoundError or SessionMismatchError.
        """
        resolved = {}

        def verify_session(jti, claims) -> bool:
            user_id = self.reference.unwrap(claims.get("sub"))
            user = self.users.get(user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} not found")
            resolved["user"] = user
            return jti is not None and user.refresh_session_id is not None and user.refresh_session_id == jti

        try:
            claims = self.codec.decode(
                token,
                verifiers={"type": _is_refresh, "jti": verify_session},
            )
        except CustomClaimError as exc:
            if exc.claim != "jti":
                raise MalformedTokenError("Wrong token type") from exc
            user = resolved["user"]
            raise SessionMismatchError(session_cleared=user.refresh_session_id is None) from exc

        return RefreshToken(token=token, claims=claims, service=self, user=resolved["user"])


def _is_refresh(value, claims) -> bool:
    return value == TOKEN_TYPE
