"""
Error taxonomy of the token layer.

AuthError
├── TokenError
│   └── DecodeError
│       ├── MalformedTokenError
│       │   └── OpaqueReferenceError
│       ├── ExpiredError
│       └── CustomClaimError
│           └── SessionMismatchError
├── UserNotFoundError
├── InvalidCredentialsError
└── LogoutError
"""
from __future__ import annotations


class AuthError(Exception):
    """Base class for every authentication failure raised by user_auth."""


class TokenError(AuthError):
    pass


class DecodeError(TokenError):
    """A presented token could not be turned back into trusted claims."""


class MalformedTokenError(DecodeError):
    """Bad signature, bad structure or a missing mandatory claim."""


class OpaqueReferenceError(MalformedTokenError):
    """The opaque subject of a token could not be unwrapped."""


class ExpiredError(DecodeError):
    pass


class CustomClaimError(DecodeError):
    def __init__(self, claim: str, message: str | None = None):
        super().__init__(message or f"Claim '{claim}' failed verification")
        self.claim = claim


class SessionMismatchError(CustomClaimError):
    """
    The refresh token's jti no longer matches the user's stored session id.

    `session_cleared` is True when the stored id is null (the user logged
    out), False when a newer login/refresh superseded the token.
    """

    def __init__(self, session_cleared: bool = False):
        super().__init__("jti", "Invalid jti for refresh token")
        self.session_cleared = session_cleared


class UserNotFoundError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    """
    Raised for an unknown e-mail, an inactive account and a wrong password
    alike. `reason` is for logs only and must never reach the caller.
    """

    def __init__(self, reason: str = "invalid_credentials"):
        super().__init__("Invalid credentials")
        self.reason = reason


class LogoutError(AuthError):
    """The stored session id could not be confirmed as cleared."""
