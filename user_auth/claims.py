"""
Signed claims encoding/decoding via PyJWT.

Expiration is checked here against an injectable clock instead of PyJWT's own
wall-clock check, so that token lifetimes can be evaluated deterministically.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Mapping

import jwt

from user_auth.errors import CustomClaimError, ExpiredError, MalformedTokenError

Verifier = Callable[[Any, Dict[str, Any]], bool]


class ClaimsCodec:
    def __init__(
        self,
        key: str,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
        leeway: int = 0,
    ):
        self.key = key
        self.algorithm = algorithm
        self.clock = clock
        self.leeway = leeway

    def now(self) -> int:
        return int(self.clock())

    def encode(self, claims: Mapping[str, Any]) -> str:
        """Sign `claims` and return the compact token string."""
        return jwt.encode(dict(claims), self.key, algorithm=self.algorithm)

    def decode(self, token: str, verifiers: Mapping[str, Verifier] | None = None) -> Dict[str, Any]:
        """
        Verify signature and expiration, then run the custom verifiers in order.

        Raises MalformedTokenError, ExpiredError or CustomClaimError. Exceptions
        raised by a verifier itself propagate unchanged.
        """
        if not token or not isinstance(token, str):
            raise MalformedTokenError("Token is empty")
        try:
            claims = jwt.decode(
                token,
                self.key,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp"]},
            )
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError(f"Invalid token: {exc}") from exc

        try:
            exp = int(claims["exp"])
        except (TypeError, ValueError) as exc:
            raise MalformedTokenError("Expiration claim must be an integer") from exc

        if self.clock() >= exp + self.leeway:
            raise ExpiredError("Token expired")

        for claim, verify in (verifiers or {}).items():
            if not verify(claims.get(claim), claims):
                raise CustomClaimError(claim)
        return claims
