"""
Environment variables layered over the vault.

Environment values win field by field, not record by record: an
``AZURE_CLIENT_SECRET`` override combines with the vault's client id and
tenant. The merge is recomputed on every call, so environment changes
apply immediately while vault changes need ``CredentialVault.set``.
"""
import os
from dataclasses import dataclass
from collections.abc import Mapping
from typing import Optional

from .conf import (
    AUTHORITY_TEMPLATE,
    AZURE_CLIENT_ID_ENV,
    AZURE_CLIENT_SECRET_ENV,
    AZURE_TENANT_ID_ENV,
    DEFAULT_TENANT,
    LLM_API_KEY_ENV,
)
from .vault.models import DefaultBlocks
from .vault.store import CredentialVault


@dataclass(frozen=True)
class IdentityCredentials:
    """Merged identity provider settings."""

    client_id: str
    client_secret: str
    tenant_id: str
    authority: str

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def __repr__(self) -> str:
        return (
            f"IdentityCredentials(client_id={self.client_id!r}, "
            f"client_secret={'***' if self.client_secret else ''!r}, "
            f"tenant_id={self.tenant_id!r}, authority={self.authority!r})"
        )


def authority_for(tenant_id: str) -> str:
    return AUTHORITY_TEMPLATE.format(tenant=tenant_id or DEFAULT_TENANT)


class ProviderSettings:
    """Current provider configuration: environment overrides vault."""

    def __init__(
        self,
        vault: CredentialVault,
        environ: Optional[Mapping] = None,
    ):
        self._vault = vault
        self._environ = environ

    @property
    def vault(self) -> CredentialVault:
        return self._vault

    def _env(self, name: str) -> str:
        environ = os.environ if self._environ is None else self._environ
        return (environ.get(name) or "").strip()

    def identity(self) -> IdentityCredentials:
        """Merge environment and vault identity settings, field by field."""
        stored = self._vault.get()
        client_id = self._env(AZURE_CLIENT_ID_ENV) or (stored.client_id if stored else "")
        client_secret = self._env(AZURE_CLIENT_SECRET_ENV) or (
            stored.client_secret if stored else ""
        )
        tenant_id = (
            self._env(AZURE_TENANT_ID_ENV)
            or (stored.tenant_id if stored else "")
            or DEFAULT_TENANT
        )
        return IdentityCredentials(
            client_id=client_id,
            client_secret=client_secret,
            tenant_id=tenant_id,
            authority=authority_for(tenant_id),
        )

    def llm_api_key(self) -> str:
        """LLM API key; empty string when unset so LLM features degrade."""
        from_env = self._env(LLM_API_KEY_ENV)
        if from_env:
            return from_env
        stored = self._vault.get()
        return stored.llm_api_key if stored else ""

    def is_auth_configured(self) -> bool:
        """Whether sign-in can be offered at all."""
        return self.identity().is_complete

    def default_blocks(self) -> Optional[DefaultBlocks]:
        return self._vault.default_blocks()
