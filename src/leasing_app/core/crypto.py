"""AES-256-GCM encryption for agreement metadata at rest."""

from __future__ import annotations

import base64
import json
import os
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from leasing_app.core.errors import ConfigurationError

NONCE_SIZE = 12
KEY_SIZE = 32


@dataclass
class MetadataCipher:
    """Encrypts JSON-serializable metadata; the agreement id is bound as associated data."""

    key: bytes

    @classmethod
    def from_base64_key(cls, key_b64: str) -> "MetadataCipher":
        try:
            key = base64.urlsafe_b64decode(key_b64.encode("utf-8"))
        except ValueError as error:
            raise ConfigurationError("Encryption key is not valid base64.") from error
        if len(key) != KEY_SIZE:
            raise ConfigurationError("Encryption key must decode to 32 bytes for AES-256.")
        return cls(key=key)

    @staticmethod
    def generate_base64_key() -> str:
        """Generate a base64-encoded 32-byte key."""
        return base64.urlsafe_b64encode(os.urandom(KEY_SIZE)).decode("utf-8")

    def encrypt(self, metadata: dict[str, Any], agreement_id: str) -> bytes:
        """Return nonce+ciphertext for the metadata JSON."""
        nonce = os.urandom(NONCE_SIZE)
        plain = json.dumps(metadata, sort_keys=True).encode("utf-8")
        return nonce + AESGCM(self.key).encrypt(nonce, plain, agreement_id.encode("utf-8"))

    def decrypt(self, encrypted: bytes, agreement_id: str) -> dict[str, Any]:
        """Decrypt nonce+ciphertext back into the metadata mapping."""
        nonce, cipher_text = encrypted[:NONCE_SIZE], encrypted[NONCE_SIZE:]
        try:
            plain = AESGCM(self.key).decrypt(nonce, cipher_text, agreement_id.encode("utf-8"))
        except InvalidTag as error:
            raise ConfigurationError(
                f"Metadata for {agreement_id} cannot be decrypted with the configured key."
            ) from error
        return json.loads(plain.decode("utf-8"))
