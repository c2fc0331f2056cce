"""
Login / refresh / logout orchestration.

Per user the flow moves LoggedOut -> LoggedIn (access + refresh pair) ->
LoggedOut. The only state it writes is the user's refresh session id.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from user_auth.access_token import AccessToken, AccessTokenService
from user_auth.errors import InvalidCredentialsError, LogoutError, SessionMismatchError
from user_auth.refresh_token import RefreshToken, RefreshTokenService
from user_auth.store import UserStore

logger = logging.getLogger(__name__)


class LogoutResult(enum.Enum):
    LOGGED_OUT = "logged_out"
    ALREADY_LOGGED_OUT = "already_logged_out"


@dataclass(frozen=True)
class SessionTokens:
    access: AccessToken
    refresh: RefreshToken
    user: Any

    @property
    def expires(self) -> int:
        return self.access.expires

    @property
    def refresh_expires(self) -> int:
        return self.refresh.expires


class AuthFlow:
    def __init__(self, users: UserStore, access_tokens: AccessTokenService, refresh_tokens: RefreshTokenService):
        self.users = users
        self.access_tokens = access_tokens
        self.refresh_tokens = refresh_tokens

    def login(self, email: str, password: str) -> SessionTokens:
        user = self.users.find_active_by_email(email) if email else None
        if user is None:
            logger.warning("Login rejected: no active account for the given e-mail")
            raise InvalidCredentialsError("unknown_or_inactive_email")
        if not password or not user.authenticate(password):
            logger.warning("Login rejected for user %s: wrong password", user.id)
            raise InvalidCredentialsError("wrong_password")

        tokens = self._issue_pair(user)
        logger.info("User %s logged in", user.id)
        return tokens

    def refresh(self, token: str, clear_credential: Optional[Callable[[], None]] = None) -> SessionTokens:
        """
        Rotate a refresh token into a fresh access/refresh pair.

        A SessionMismatchError means the token was superseded or replayed: the
        caller's stored credential is cleared before the error is re-raised.
        """
        try:
            presented = self.refresh_tokens.parse(token)
        except SessionMismatchError as exc:
            if clear_credential is not None:
                clear_credential()
            logger.warning(
                "Refresh with a stale session id (session %s); possible token replay",
                "cleared" if exc.session_cleared else "superseded",
            )
            raise

        user = presented.resolve_user()
        tokens = self._issue_pair(user)
        logger.info("Rotated refresh session for user %s", user.id)
        return tokens

    def logout(self, token: Optional[str]) -> LogoutResult:
        if not token:
            return LogoutResult.ALREADY_LOGGED_OUT
        try:
            presented = self.refresh_tokens.parse(token)
        except SessionMismatchError as exc:
            if exc.session_cleared:
                return LogoutResult.ALREADY_LOGGED_OUT
            raise

        user = presented.resolve_user()
        if not self.users.forget(user.id):
            logger.error("Could not clear refresh session for user %s", user.id)
            raise LogoutError("Could not delete session")
        logger.info("User %s logged out", user.id)
        return LogoutResult.LOGGED_OUT

    def current_user(self, token: str):
        """Resolve the user behind an access token string."""
        return self.access_tokens.parse(token).resolve_user()

    def _issue_pair(self, user) -> SessionTokens:
        refresh = self.refresh_tokens.issue(user.id)
        access = self.access_tokens.issue(user.id)
        return SessionTokens(access=access, refresh=refresh, user=user)
