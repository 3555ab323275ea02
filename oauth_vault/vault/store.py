"""
CredentialVault — Encrypted single-record store for provider credentials.

Provides the public API for the Credential Vault:
- ``get()`` — cached record, else decrypt the vault file, else None
- ``set(candidate)`` — validate, encrypt and atomically persist a record
- ``is_configured()`` / ``default_blocks()`` — convenience queries
- ``subscribe(callback)`` — change listeners (identity client invalidation)
- ``reload()`` — drop the cache so the next ``get`` re-reads the file

Write ordering is validate → encrypt → write → cache → notify. A failed
write leaves both the previous file and the cache untouched.

Security Note:
    Never log credential values. Only log the file path and outcome.
"""
import os
import logging
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..conf import CREDENTIALS_FILE_MODE
from ..exceptions import DecryptError, VaultStorageError
from .crypto import SecretCipher, serialize_record, deserialize_record
from .models import DefaultBlocks, ProviderCredentials

logger = logging.getLogger("oauth_vault.vault")

ChangeListener = Callable[[ProviderCredentials], None]


def write_blob(path: Path, blob: str) -> None:
    """Write a blob to ``path`` atomically with owner-only permissions.

    The blob goes to a temp file in the same directory which then
    replaces the target, so readers see either the old or the new file.
    """
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=directory,
    )
    try:
        with os.fdopen(fd, "w", encoding="ascii") as fp:
            os.fchmod(fp.fileno(), CREDENTIALS_FILE_MODE)
            fp.write(blob)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def read_blob(path: Path) -> Optional[str]:
    """Return the vault file contents, or None if there is no file."""
    try:
        return path.read_text(encoding="ascii")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as err:
        raise DecryptError("Vault file is not a base64 text blob") from err


class CredentialVault:
    """Encrypted vault holding one operator's provider credentials.

    Lookup order for ``get()``: in-memory cache → vault file → None.
    A missing file and an undecryptable file are both reported as None.
    """

    def __init__(
        self,
        cipher: SecretCipher,
        path: Union[str, Path],
    ):
        self._cipher = cipher
        self._path = Path(path)
        self._cache: Optional[ProviderCredentials] = None
        self._lock = threading.Lock()
        self._listeners: list[ChangeListener] = []

    def __repr__(self) -> str:
        return (
            f"<CredentialVault path={str(self._path)!r} "
            f"cached={self._cache is not None}>"
        )

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: Any) -> "CredentialVault":
        """Build a vault from a ``VaultConfig``.

        Args:
            config: Validated vault configuration.

        Returns:
            CredentialVault bound to the configured file and secret.
        """
        return cls(
            cipher=SecretCipher.from_config(config),
            path=config.credentials_file,
        )

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, callback: ChangeListener) -> None:
        """Register a callback invoked after every successful ``set``."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: ChangeListener) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def _notify(self, credentials: ProviderCredentials) -> None:
        for callback in list(self._listeners):
            callback(credentials)

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _load(self) -> Optional[ProviderCredentials]:
        """Read and decrypt the vault file. Returns None if unusable."""
        try:
            blob = read_blob(self._path)
            if blob is None:
                return None
            record = deserialize_record(self._cipher.decrypt(blob))
        except DecryptError as err:
            logger.warning(
                "Vault file %s could not be decrypted: %s", self._path, err,
            )
            return None
        except OSError as err:
            logger.warning(
                "Vault file %s could not be read: %s", self._path, err,
            )
            return None
        credentials = ProviderCredentials.from_record(record)
        if credentials is None:
            logger.warning(
                "Vault file %s holds an incomplete credentials record",
                self._path,
            )
        return credentials

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self) -> Optional[ProviderCredentials]:
        """Return the current credentials record.

        Returns:
            Cached record, else the decrypted vault file, else None.
        """
        if self._cache is not None:
            return self._cache
        credentials = self._load()
        if credentials is not None:
            self._cache = credentials
            logger.debug("Vault loaded from %s", self._path)
        return credentials

    def set(self, candidate: Any) -> ProviderCredentials:
        """Validate, encrypt and persist a credentials record.

        Args:
            candidate: Mapping of credential fields or a ProviderCredentials.

        Returns:
            The validated, stored record.

        Raises:
            ValidationError: If client id or client secret is empty; nothing
                is written.
            VaultStorageError: If the vault file cannot be written; the
                previous file and the cache are unchanged.
        """
        credentials = ProviderCredentials.parse(candidate)
        blob = self._cipher.encrypt(serialize_record(credentials.to_record()))
        with self._lock:
            try:
                write_blob(self._path, blob)
            except OSError as err:
                logger.error(
                    "Vault write to %s failed: %s", self._path, err,
                )
                raise VaultStorageError(
                    f"Could not write vault file {self._path}: {err}"
                ) from err
            self._cache = credentials
        logger.info("Vault credentials updated in %s", self._path)
        self._notify(credentials)
        return credentials

    def is_configured(self) -> bool:
        """True if the vault holds a usable client id and client secret."""
        credentials = self.get()
        return credentials is not None and credentials.is_complete

    def default_blocks(self) -> Optional[DefaultBlocks]:
        """Default content blocks from the vault, or None."""
        credentials = self.get()
        if credentials is None:
            return None
        return credentials.default_blocks

    def reload(self) -> None:
        """Drop the in-memory record; the next ``get`` re-reads the file."""
        with self._lock:
            self._cache = None
        logger.debug("Vault cache cleared for %s", self._path)
