"""
Token lifecycle engine.

- ClaimsCodec: signed claims via PyJWT
- OpaqueReference: keyed, reversible user references
- AccessTokenService / RefreshTokenService: issue and parse tokens
- AuthFlow: login, refresh (rotate on use) and logout
"""
from __future__ import annotations

import time
from typing import Callable

from user_auth.access_token import AccessToken, AccessTokenService
from user_auth.claims import ClaimsCodec
from user_auth.errors import (
    AuthError,
    CustomClaimError,
    DecodeError,
    ExpiredError,
    InvalidCredentialsError,
    LogoutError,
    MalformedTokenError,
    OpaqueReferenceError,
    SessionMismatchError,
    TokenError,
    UserNotFoundError,
)
from user_auth.flow import AuthFlow, LogoutResult, SessionTokens
from user_auth.reference import OpaqueReference
from user_auth.refresh_token import RefreshToken, RefreshTokenService, generate_session_id
from user_auth.settings import TokenSettings
from user_auth.store import UserStore


def build_auth_flow(settings: TokenSettings, users: UserStore, clock: Callable[[], float] = time.time) -> AuthFlow:
    """Wire codec, reference and token services around a user store."""
    codec = ClaimsCodec(settings.secret, settings.algorithm, clock=clock, leeway=settings.leeway)
    reference = OpaqueReference(settings.reference_secret or settings.secret)
    return AuthFlow(
        users=users,
        access_tokens=AccessTokenService(codec, reference, users, settings.access_lifetime),
        refresh_tokens=RefreshTokenService(codec, reference, users, settings.refresh_lifetime),
    )


__all__ = [
    "AccessToken",
    "AccessTokenService",
    "AuthError",
    "AuthFlow",
    "ClaimsCodec",
    "CustomClaimError",
    "DecodeError",
    "ExpiredError",
    "InvalidCredentialsError",
    "LogoutError",
    "LogoutResult",
    "MalformedTokenError",
    "OpaqueReference",
    "OpaqueReferenceError",
    "RefreshToken",
    "RefreshTokenService",
    "SessionMismatchError",
    "SessionTokens",
    "TokenError",
    "TokenSettings",
    "UserNotFoundError",
    "UserStore",
    "build_auth_flow",
    "generate_session_id",
]
