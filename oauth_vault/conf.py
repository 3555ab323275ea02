"""
Static settings shared by the vault and the token lifecycle manager.

Only names and defaults live here. Values coming from the environment are
read at call time (see ``oauth_vault.settings``) so overrides take effect
without a restart.
"""

# Operator secrets (key derivation)
ENCRYPTION_KEY_ENV = "ENCRYPTION_KEY"
SESSION_SECRET_ENV = "SESSION_SECRET"
DEFAULT_SESSION_SECRET = "dev-secret"
PLACEHOLDER_SECRETS = frozenset({DEFAULT_SESSION_SECRET, "change-me-in-production"})
MIN_PRODUCTION_SECRET_LENGTH = 16

# Vault file
CREDENTIALS_FILE_ENV = "CREDENTIALS_FILE"
DEFAULT_CREDENTIALS_FILE = ".credentials.enc"
CREDENTIALS_FILE_MODE = 0o600

# Runtime
APP_ENV = "APP_ENV"
BASE_URL_ENV = "BASE_URL"
DEFAULT_BASE_URL = "http://localhost:3000"
IDENTITY_TIMEOUT_ENV = "IDENTITY_TIMEOUT"
DEFAULT_IDENTITY_TIMEOUT = 30.0

# Provider overrides, evaluated on every read
AZURE_CLIENT_ID_ENV = "AZURE_CLIENT_ID"
AZURE_CLIENT_SECRET_ENV = "AZURE_CLIENT_SECRET"
AZURE_TENANT_ID_ENV = "AZURE_TENANT_ID"
LLM_API_KEY_ENV = "OPENAI_API_KEY"

# Identity provider
DEFAULT_TENANT = "common"
AUTHORITY_TEMPLATE = "https://login.microsoftonline.com/{tenant}"
CALLBACK_PATH = "/auth/callback"
OAUTH_SCOPES = (
    "Mail.Read",
    "Mail.ReadWrite",
    "offline_access",
    "openid",
    "profile",
)

# Session keys holding the delegated token pair
SESSION_ACCESS_TOKEN = "access_token"
SESSION_REFRESH_TOKEN = "refresh_token"
SESSION_ACCOUNT = "account"
