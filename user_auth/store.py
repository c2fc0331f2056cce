from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class UserStore(ABC):
    """
    The user-record collaborator the token layer talks to.

    A user object must expose `id`, `activated`, `refresh_session_id` and
    `authenticate(password) -> bool`.
    """

    @abstractmethod
    def get(self, user_id: str) -> Optional[Any]:
        """Return the user with this id, or None."""

    @abstractmethod
    def find_active_by_email(self, email: str) -> Optional[Any]:
        """Return the activated user owning this e-mail, or None."""

    @abstractmethod
    def remember(self, user_id: str, session_id: str) -> None:
        """
        Overwrite the user's refresh session id in a single write.
        Raises UserNotFoundError if the user does not exist.
        """

    @abstractmethod
    def forget(self, user_id: str) -> bool:
        """Clear the refresh session id; True only if the clear is persisted."""
