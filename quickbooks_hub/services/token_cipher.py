"""Encryption of the token columns stored at rest.

Tokens are sealed with a Fernet key derived from the current secret. Secrets
listed as previous stay readable so that rows written before a rotation keep
decrypting until the next refresh rewrites them under the current key.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable, Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from quickbooks_hub.core.config import QuickBooksSettings


def _fernet_for(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class TokenCipherService:
    """Seal and unseal QuickBooks tokens; the first key encrypts, every key decrypts."""

    def __init__(self, *, secret: str, previous_secrets: Iterable[str] = ()) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        keys = [_fernet_for(secret)]
        keys.extend(_fernet_for(old) for old in previous_secrets if old and old != secret)
        self._fernet = MultiFernet(keys)

    @classmethod
    def from_settings(cls, settings: QuickBooksSettings) -> "TokenCipherService":
        return cls(
            secret=settings.encryption_secret,
            previous_secrets=settings.token_encryption_previous_secrets,
        )

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Return the plaintext; raises ``ValueError`` when no known key opens it."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError("Stored token is not readable with any configured key.") from exc
        return plaintext.decode("utf-8")

    def try_decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        if not ciphertext:
            return None
        try:
            return self.decrypt(ciphertext)
        except ValueError:
            return None


__all__ = ["TokenCipherService"]
