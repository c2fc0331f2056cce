"""
Opaque user references.

The raw user id never appears in a token payload. It is sealed with AES-SIV,
a deterministic authenticated cipher: the same id always maps to the same
reference, distinct ids never collide, and a reference cannot be forged or
enumerated without the key.
"""
from __future__ import annotations

import base64
import binascii

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESSIV
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from user_auth.errors import OpaqueReferenceError

HKDF_INFO = b"user_auth.opaque-reference.v1"


def derive_reference_key(secret: str | bytes) -> bytes:
    """Derive a 512-bit AES-SIV key from an arbitrary secret."""
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    hkdf = HKDF(algorithm=hashes.SHA256(), length=64, salt=None, info=HKDF_INFO)
    return hkdf.derive(secret)


class OpaqueReference:
    def __init__(self, secret: str | bytes):
        self._cipher = AESSIV(derive_reference_key(secret))

    def wrap(self, raw_id) -> str:
        data = str(raw_id).encode("utf-8")
        if not data:
            raise ValueError("Cannot wrap an empty identifier")
        sealed = self._cipher.encrypt(data, None)
        return base64.urlsafe_b64encode(sealed).rstrip(b"=").decode("ascii")

    def unwrap(self, value) -> str:
        if not isinstance(value, str) or not value:
            raise OpaqueReferenceError("Missing subject")
        try:
            sealed = base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
            return self._cipher.decrypt(sealed, None).decode("utf-8")
        except (binascii.Error, ValueError, InvalidTag, UnicodeError) as exc:
            raise OpaqueReferenceError("Invalid subject") from exc
