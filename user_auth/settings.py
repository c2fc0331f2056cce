from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping


@dataclass(frozen=True)
class TokenSettings:
    secret: str
    algorithm: str = "HS256"
    access_lifetime: timedelta = timedelta(minutes=30)
    refresh_lifetime: timedelta = timedelta(hours=24)
    reference_secret: str | None = None
    leeway: int = 0

    @property
    def access_seconds(self) -> int:
        return int(self.access_lifetime.total_seconds())

    @property
    def refresh_seconds(self) -> int:
        return int(self.refresh_lifetime.total_seconds())

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSettings":
        """Build settings from a Flask-style config mapping."""
        return cls(
            secret=config["JWT_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_lifetime=config.get("ACCESS_TOKEN_EXPIRES", timedelta(minutes=30)),
            refresh_lifetime=config.get("REFRESH_TOKEN_EXPIRES", timedelta(hours=24)),
            reference_secret=config.get("USER_REFERENCE_SECRET") or None,
            leeway=int(config.get("JWT_LEEWAY_SECONDS", 0)),
        )
