"""
Short-lived, stateless access tokens.

Validity is signature + expiration only: there is deliberately no server-side
lookup when an access token is parsed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Mapping

from user_auth.claims import ClaimsCodec
from user_auth.errors import CustomClaimError, MalformedTokenError, UserNotFoundError
from user_auth.reference import OpaqueReference
from user_auth.store import UserStore

TOKEN_TYPE = "access"
RESERVED_CLAIMS = frozenset({"sub", "exp", "iat", "type", "jti"})


@dataclass(frozen=True)
class AccessToken:
    token: str
    claims: Dict[str, Any]
    service: "AccessTokenService" = field(repr=False, compare=False)

    @property
    def expires(self) -> int:
        return int(self.claims["exp"])

    @property
    def subject(self) -> str:
        return self.claims["sub"]

    @property
    def user_id(self) -> str:
        return self.service.reference.unwrap(self.subject)

    def resolve_user(self):
        return self.service.resolve_user(self)


class AccessTokenService:
    def __init__(self, codec: ClaimsCodec, reference: OpaqueReference, users: UserStore, lifetime: timedelta):
        self.codec = codec
        self.reference = reference
        self.users = users
        self.lifetime = lifetime

    def issue(
        self,
        user_id: str,
        extra_claims: Mapping[str, Any] | None = None,
        lifetime: timedelta | None = None,
    ) -> AccessToken:
        now = self.codec.now()
        seconds = int((lifetime or self.lifetime).total_seconds())
        claims = {k: v for k, v in (extra_claims or {}).items() if k not in RESERVED_CLAIMS}
        claims.update(
            {
                "sub": self.reference.wrap(user_id),
                "iat": now,
                "exp": now + seconds,
                "type": TOKEN_TYPE,
            }
        )
        return AccessToken(token=self.codec.encode(claims), claims=claims, service=self)

    def parse(self, token: str) -> AccessToken:
        try:
            claims = self.codec.decode(token, verifiers={"type": _is_access})
        except CustomClaimError as exc:
            raise MalformedTokenError("Wrong token type") from exc
        return AccessToken(token=token, claims=claims, service=self)

    def resolve_user(self, access_token: AccessToken):
        user_id = access_token.user_id
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user


def _is_access(value, claims) -> bool:
    return value == TOKEN_TYPE
