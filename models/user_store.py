"""
SQLAlchemy-backed user store for the token layer.

The refresh session id is written with a single-row UPDATE so concurrent
refreshes resolve as last-writer-wins.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update

from models.db_storage import DBStorage
from models.user import User
from user_auth.errors import UserNotFoundError
from user_auth.store import UserStore


class DBUserStore(UserStore):
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def get(self, user_id: str) -> Optional[User]:
        # reload so the stored session id is compared as persisted, not as cached
        return self.storage.get_session().get(User, user_id, populate_existing=True)

    def find_active_by_email(self, email: str) -> Optional[User]:
        session = self.storage.get_session()
        return (
            session.query(User)
            .filter(User.email == email.strip().lower(), User.activated.is_(True))
            .first()
        )

    def remember(self, user_id: str, session_id: str) -> None:
        self._write_session_id(user_id, session_id)

    def forget(self, user_id: str) -> bool:
        self._write_session_id(user_id, None)
        session = self.storage.get_session()
        stored = session.scalar(select(User.refresh_session_id).where(User.id == user_id))
        return stored is None

    def _write_session_id(self, user_id: str, session_id: Optional[str]) -> None:
        session = self.storage.get_session()
        result = session.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_session_id=session_id)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            session.rollback()
            raise UserNotFoundError(f"User {user_id} not found")
        self.storage.save()
        # bulk UPDATE bypasses the identity map; reload any instance already handed out
        session.get(User, user_id, populate_existing=True)
