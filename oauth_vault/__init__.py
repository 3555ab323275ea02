"""OAuth Vault.

Encrypted provider credential vault and OAuth session token lifecycle.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    ConfigurationError,
    NotConfiguredError,
    ValidationError,
    DecryptError,
    VaultStorageError,
    AuthExchangeError,
)
from .vault import CredentialVault, ProviderCredentials, SecretCipher, VaultConfig
from .settings import ProviderSettings, IdentityCredentials
from .auth import IdentityClientFactory, TokenManager, TokenResult, TokenStatus
from .context import VaultContext

__all__ = [
    "__version__",
    "VaultError",
    "ConfigurationError",
    "NotConfiguredError",
    "ValidationError",
    "DecryptError",
    "VaultStorageError",
    "AuthExchangeError",
    "CredentialVault",
    "ProviderCredentials",
    "SecretCipher",
    "VaultConfig",
    "ProviderSettings",
    "IdentityCredentials",
    "IdentityClientFactory",
    "TokenManager",
    "TokenResult",
    "TokenStatus",
    "VaultContext",
]
