"""
Vault Key Rotation — Re-encryption of the vault file under a new operator secret.

Changing ``ENCRYPTION_KEY`` or ``SESSION_SECRET`` makes the existing vault
unreadable. Rotating first decrypts with the old secret and rewrites the
file under the new one, atomically. The operation is idempotent: a file
already readable with the new secret is left as is.

Security Note:
    Plaintext exists in memory only while the record is re-encrypted.
    Never log plaintext or ciphertext values.
"""
import logging
from pathlib import Path
from typing import Union

from ..exceptions import DecryptError
from .crypto import SecretCipher
from .store import read_blob, write_blob

logger = logging.getLogger("oauth_vault.vault")


def rotate_operator_secret(
    path: Union[str, Path],
    old_cipher: SecretCipher,
    new_cipher: SecretCipher,
) -> dict:
    """Re-encrypt the vault file from ``old_cipher`` to ``new_cipher``.

    Args:
        path: Vault file location.
        old_cipher: Cipher derived from the current operator secret.
        new_cipher: Cipher derived from the replacement secret.

    Returns:
        Stats dict with keys: rotated (bool), path (str).

    Returns ``{"rotated": False}`` without writing when the old secret
    cannot open the file but the new one can (rotation already done).

    Raises:
        FileNotFoundError: If there is no vault file at ``path``.
        DecryptError: If neither the old nor the new cipher can open the file.
    """
    path = Path(path)
    blob = read_blob(path)
    if blob is None:
        raise FileNotFoundError(f"No vault file at {path}")

    logger.info("Starting vault key rotation for %s", path)
    try:
        plaintext = old_cipher.decrypt(blob)
    except DecryptError:
        # already rotated
        new_cipher.decrypt(blob)
        logger.info("Vault %s already under the new secret; skipped", path)
        return {"rotated": False, "path": str(path)}

    write_blob(path, new_cipher.encrypt(plaintext))
    logger.info("Vault key rotation complete for %s", path)
    return {"rotated": True, "path": str(path)}
