"""
The process-wide credential and token objects, wired together.

One context per process. Request handlers keep a reference to it instead
of reaching for module-level globals.
"""
import logging
from dataclasses import dataclass
from collections.abc import Mapping
from typing import Optional

from .auth.identity import ClientBuilder, IdentityClientFactory
from .auth.tokens import TokenManager
from .settings import ProviderSettings
from .vault.config import VaultConfig, validate_environment
from .vault.store import CredentialVault

logger = logging.getLogger("oauth_vault")


@dataclass
class VaultContext:
    config: VaultConfig
    vault: CredentialVault
    settings: ProviderSettings
    identity: IdentityClientFactory
    tokens: TokenManager

    @classmethod
    def create(
        cls,
        config: VaultConfig,
        environ: Optional[Mapping] = None,
        client_builder: Optional[ClientBuilder] = None,
    ) -> "VaultContext":
        """Wire vault, settings, identity factory and token manager.

        Raises:
            ConfigurationError: If the operator secret is unusable in production.
        """
        validate_environment(config)
        vault = CredentialVault.from_config(config)
        settings = ProviderSettings(vault, environ=environ)
        identity = IdentityClientFactory(
            settings,
            client_builder=client_builder,
            timeout=config.identity_timeout,
        )
        tokens = TokenManager(identity, config.base_url)
        logger.debug("Vault context ready (vault=%s)", config.credentials_file)
        return cls(
            config=config,
            vault=vault,
            settings=settings,
            identity=identity,
            tokens=tokens,
        )

    @classmethod
    def from_env(cls) -> "VaultContext":
        return cls.create(VaultConfig.from_env())
