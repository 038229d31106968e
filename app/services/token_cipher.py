"""Symmetric encryption for access-token pairs stored at rest."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


class TokenDecryptionError(ValueError):
    """Stored ciphertext could not be decrypted with the configured secret."""


class TokenCipherService:
    """Encrypt and decrypt credential strings using a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise TokenDecryptionError(
                "Failed to decrypt stored credential; was the encryption secret rotated?"
            ) from exc
        return plaintext.decode("utf-8")

    def encrypt_pair(self, token: str, token_secret: str) -> tuple[str, str]:
        """Encrypt an OAuth token and its secret independently."""
        return self.encrypt(token), self.encrypt(token_secret)

    def decrypt_pair(self, token_encrypted: str, secret_encrypted: str) -> tuple[str, str]:
        return self.decrypt(token_encrypted), self.decrypt(secret_encrypted)


__all__ = ["TokenCipherService", "TokenDecryptionError"]
