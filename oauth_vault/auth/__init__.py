"""OAuth session tokens — identity client factory and token lifecycle."""

from .identity import (
    IdentityClient,
    IdentityClientDescriptor,
    IdentityClientFactory,
    IdentityProviderError,
    MsalIdentityClient,
    TokenGrant,
)
from .session import SessionTokenState
from .tokens import TokenManager, TokenResult, TokenStatus

__all__ = [
    "IdentityClient",
    "IdentityClientDescriptor",
    "IdentityClientFactory",
    "IdentityProviderError",
    "MsalIdentityClient",
    "TokenGrant",
    "SessionTokenState",
    "TokenManager",
    "TokenResult",
    "TokenStatus",
]
