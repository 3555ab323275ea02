"""Credential Vault — Encrypted-at-rest provider credentials.

Security Note (Threat Model):
    Credentials are decrypted in process memory while cached.
    A memory dump of the application process could expose them, as could
    anyone holding both the vault file and the operator secret.
    This is an accepted limitation — mitigation requires HSM/secure
    enclave integration which is out of scope.
"""

from .store import CredentialVault
from .crypto import SecretCipher
from .models import ProviderCredentials, DefaultBlocks
from .key_rotation import rotate_operator_secret
from .config import VaultConfig, validate_environment, generate_master_key

__all__ = [
    "CredentialVault",
    "SecretCipher",
    "ProviderCredentials",
    "DefaultBlocks",
    "rotate_operator_secret",
    "VaultConfig",
    "validate_environment",
    "generate_master_key",
]
