"""
Vault Configuration — Operator secrets and validated runtime settings.

Reads from environment variables:
    ENCRYPTION_KEY   = <dedicated high-entropy secret>   (preferred)
    SESSION_SECRET   = <session secret>                  (fallback, scrypt)
    CREDENTIALS_FILE = <path of the encrypted vault file>
    BASE_URL         = <public base URL of this service>
    APP_ENV          = development | production
    IDENTITY_TIMEOUT = <seconds for identity provider calls>

Security Note:
    Never log secret values. Only log which variable is set.
"""
import os
import base64
import secrets
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..conf import (
    APP_ENV,
    BASE_URL_ENV,
    CREDENTIALS_FILE_ENV,
    DEFAULT_BASE_URL,
    DEFAULT_CREDENTIALS_FILE,
    DEFAULT_IDENTITY_TIMEOUT,
    ENCRYPTION_KEY_ENV,
    IDENTITY_TIMEOUT_ENV,
    MIN_PRODUCTION_SECRET_LENGTH,
    PLACEHOLDER_SECRETS,
    SESSION_SECRET_ENV,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger("oauth_vault.vault")


def generate_master_key() -> str:
    """Generate a random 32-byte secret and return it as base64 string.

    This is a utility for operators to produce an ``ENCRYPTION_KEY``.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    encryption_key: Optional[str] = None
    session_secret: Optional[str] = None
    credentials_file: Path = Field(default=Path(DEFAULT_CREDENTIALS_FILE))
    base_url: str = Field(default=DEFAULT_BASE_URL)
    environment: str = Field(default="development")
    identity_timeout: float = Field(default=DEFAULT_IDENTITY_TIMEOUT, gt=0)

    @field_validator("encryption_key", "session_secret")
    @classmethod
    def empty_as_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty secrets as unset."""
        return v or None

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so callback paths join cleanly."""
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("base_url cannot be empty")
        return v

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return v.strip().lower() or "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def operator_secret(self) -> Optional[str]:
        """The secret the vault key is derived from, if any is configured."""
        return self.encryption_key or self.session_secret

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        return cls(
            encryption_key=os.environ.get(ENCRYPTION_KEY_ENV),
            session_secret=os.environ.get(SESSION_SECRET_ENV),
            credentials_file=os.environ.get(
                CREDENTIALS_FILE_ENV, DEFAULT_CREDENTIALS_FILE
            ),
            base_url=os.environ.get(BASE_URL_ENV, DEFAULT_BASE_URL),
            environment=os.environ.get(APP_ENV, "development"),
            identity_timeout=os.environ.get(
                IDENTITY_TIMEOUT_ENV, DEFAULT_IDENTITY_TIMEOUT
            ),
        )


def validate_environment(config: VaultConfig) -> VaultConfig:
    """Check the operator secret before the vault is used.

    Args:
        config: Loaded vault configuration.

    Returns:
        The same configuration, for chaining.

    Raises:
        ConfigurationError: In production, when neither ENCRYPTION_KEY nor
            SESSION_SECRET is set to at least 16 characters.
    """
    secret = config.operator_secret
    if config.is_production:
        if not secret or len(secret) < MIN_PRODUCTION_SECRET_LENGTH:
            raise ConfigurationError(
                f"Production requires {SESSION_SECRET_ENV} or "
                f"{ENCRYPTION_KEY_ENV} (min {MIN_PRODUCTION_SECRET_LENGTH} chars)"
            )
    elif not secret or secret in PLACEHOLDER_SECRETS:
        logger.warning(
            "Set %s or %s for production use",
            SESSION_SECRET_ENV, ENCRYPTION_KEY_ENV,
        )
    if not config.encryption_key:
        logger.debug(
            "%s not set; vault key derived from %s with scrypt",
            ENCRYPTION_KEY_ENV, SESSION_SECRET_ENV,
        )
    return config
