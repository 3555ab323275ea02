"""Exceptions raised by the credential vault and token lifecycle manager."""


class VaultError(Exception):
    """Base class for every oauth_vault error."""


class ConfigurationError(VaultError, RuntimeError):
    """Process configuration is unusable (e.g. weak secret in production)."""


class NotConfiguredError(VaultError, RuntimeError):
    """Provider credentials are missing; configure credentials first."""


class ValidationError(VaultError, ValueError):
    """A credentials record was rejected before anything was persisted."""


class DecryptError(VaultError, ValueError):
    """An encrypted blob is malformed, tampered with, or under another key."""


class VaultStorageError(VaultError, OSError):
    """The encrypted vault file could not be written."""


class AuthExchangeError(VaultError, RuntimeError):
    """Authorization code redemption failed. Codes are single-use: never retry."""
