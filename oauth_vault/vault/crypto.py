"""
Vault Crypto Core — Key derivation, blob encryption/decryption, and serialization.

Key derivation, in priority order:
- Dedicated secret: SHA-256(ENCRYPTION_KEY) → 32-byte key
- Session secret:   scrypt(SESSION_SECRET, "email-automator-credentials-v1") → 32-byte key

Blob format (base64 text, single file):
    [ciphertext][nonce 12B][GCM tag 16B]

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit, generated inside ``encrypt_blob`` on every call.
"""
import os
import base64
import binascii
import logging
from typing import Any, Optional

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..conf import DEFAULT_SESSION_SECRET
from ..exceptions import DecryptError

logger = logging.getLogger("oauth_vault.vault")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
KEY_LENGTH = 32  # AES-256

# The version tag in the salt keeps old blobs from being silently
# reinterpreted if the derivation ever changes.
KDF_SALT = b"email-automator-credentials-v1"
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def hash_key(secret: str) -> bytes:
    """Derive a key from a high-entropy secret with SHA-256."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(secret.encode("utf-8"))
    return digest.finalize()


def stretch_key(secret: str) -> bytes:
    """Derive a key from a low-entropy secret with scrypt and the fixed salt."""
    kdf = Scrypt(
        salt=KDF_SALT,
        length=KEY_LENGTH,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
    )
    return kdf.derive(secret.encode("utf-8"))


def derive_key(
    encryption_key: Optional[str] = None,
    session_secret: Optional[str] = None,
) -> bytes:
    """Derive the 32-byte vault key from the operator secrets.

    Args:
        encryption_key: Dedicated high-entropy secret (preferred).
        session_secret: Lower-entropy session secret (fallback).

    Returns:
        32-byte derived key.
    """
    if encryption_key:
        return hash_key(encryption_key)
    if not session_secret:
        logger.warning(
            "No ENCRYPTION_KEY or SESSION_SECRET set; deriving vault key "
            "from the development default"
        )
        session_secret = DEFAULT_SESSION_SECRET
    return stretch_key(session_secret)


# ---------------------------------------------------------------------------
# Blob encryption
# ---------------------------------------------------------------------------

def encrypt_blob(plaintext: bytes, key: bytes) -> str:
    """Encrypt plaintext into a base64 blob.

    Format: base64([ciphertext][nonce 12B][tag 16B])

    Args:
        plaintext: Data to encrypt.
        key: 32-byte AES key.

    Returns:
        Base64-encoded blob string.
    """
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(key).encrypt(nonce, plaintext, None)
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return base64.b64encode(ciphertext + nonce + tag).decode("ascii")


def decrypt_blob(blob: str, key: bytes) -> bytes:
    """Decrypt a base64 blob produced by ``encrypt_blob``.

    Args:
        blob: Base64 text in format [ciphertext][nonce 12B][tag 16B].
        key: 32-byte AES key.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        DecryptError: If the blob is malformed, tampered with, or was
            written under a different key.
    """
    try:
        data = base64.b64decode(blob.strip(), validate=True)
    except (binascii.Error, ValueError) as err:
        raise DecryptError("Vault blob is not valid base64") from err
    _min = NONCE_SIZE + TAG_SIZE
    if len(data) < _min:
        raise DecryptError(
            f"Vault blob too short: {len(data)} bytes (minimum {_min})"
        )
    tag = data[-TAG_SIZE:]
    nonce = data[-(TAG_SIZE + NONCE_SIZE):-TAG_SIZE]
    ciphertext = data[:-(TAG_SIZE + NONCE_SIZE)]
    try:
        return AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as err:
        raise DecryptError(
            "Vault blob failed authentication (tampered or wrong key)"
        ) from err


class SecretCipher:
    """Owns the derived vault key; the only holder of raw key bytes."""

    __slots__ = ("_key",)

    def __init__(self, key: bytes):
        if len(key) != KEY_LENGTH:
            raise ValueError(
                f"Vault key must be exactly {KEY_LENGTH} bytes, got {len(key)}"
            )
        self._key = key

    def __repr__(self) -> str:
        return "<SecretCipher aes-256-gcm>"

    @classmethod
    def from_secrets(
        cls,
        encryption_key: Optional[str] = None,
        session_secret: Optional[str] = None,
    ) -> "SecretCipher":
        return cls(derive_key(encryption_key, session_secret))

    @classmethod
    def from_config(cls, config: Any) -> "SecretCipher":
        """Build a cipher from a ``VaultConfig``."""
        return cls.from_secrets(config.encryption_key, config.session_secret)

    def encrypt(self, plaintext: bytes) -> str:
        return encrypt_blob(plaintext, self._key)

    def decrypt(self, blob: str) -> bytes:
        return decrypt_blob(blob, self._key)


# ---------------------------------------------------------------------------
# Record serialization
# ---------------------------------------------------------------------------

def serialize_record(record: dict) -> bytes:
    """Serialize a credentials record to bytes for encryption."""
    return orjson.dumps(record)


def deserialize_record(data: bytes) -> dict:
    """Deserialize bytes produced by ``serialize_record``.

    Raises:
        DecryptError: If the plaintext is not a JSON object.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise DecryptError("Vault plaintext is not valid JSON") from err
    if not isinstance(parsed, dict):
        raise DecryptError("Vault plaintext is not a JSON object")
    return parsed
