"""
Vault record models.

``ProviderCredentials`` is the single record kept in the vault file. It is
always replaced wholesale; there is no partial-field update.
"""
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from ..conf import DEFAULT_TENANT
from ..exceptions import ValidationError


_REQUIRED_LOCS = frozenset({
    "client_id", "clientId", "azureClientId",
    "client_secret", "clientSecret", "azureClientSecret",
})

_NESTED_IDENTITY = {
    "client_id": "clientId",
    "client_secret": "clientSecret",
    "tenant_id": "tenantId",
}


def _trimmed(v: Any) -> str:
    if v is None:
        return ""
    if not isinstance(v, str):
        raise ValueError("must be a string")
    return v.strip()


class DefaultBlocks(BaseModel):
    """Static text fragments stored alongside the credentials."""

    model_config = ConfigDict(frozen=True)

    opener: str = ""
    closing: str = ""
    signature: str = ""

    @field_validator("opener", "closing", "signature", mode="before")
    @classmethod
    def trim(cls, v: Any) -> str:
        return _trimmed(v)


class ProviderCredentials(BaseModel):
    """Identity provider credentials, LLM key and default content blocks.

    A record is valid only when both ``client_id`` and ``client_secret``
    are non-empty after trimming.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    client_id: str = Field(
        validation_alias=AliasChoices("client_id", "clientId", "azureClientId"),
    )
    client_secret: str = Field(
        validation_alias=AliasChoices(
            "client_secret", "clientSecret", "azureClientSecret"
        ),
    )
    tenant_id: str = Field(
        default=DEFAULT_TENANT,
        validation_alias=AliasChoices("tenant_id", "tenantId", "azureTenantId"),
    )
    llm_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("llm_api_key", "llmApiKey", "openaiApiKey"),
    )
    default_blocks: DefaultBlocks = Field(
        default_factory=DefaultBlocks,
        validation_alias=AliasChoices("default_blocks", "defaultBlocks"),
    )

    @model_validator(mode="before")
    @classmethod
    def lift_nested_identity(cls, data: Any) -> Any:
        """Accept the ``azure: {clientId, clientSecret, tenantId}`` record layout.

        Top-level fields win over the nested ones.
        """
        if not isinstance(data, dict) or not isinstance(data.get("azure"), dict):
            return data
        azure = data["azure"]
        data = {k: v for k, v in data.items() if k != "azure"}
        for field_name, nested in _NESTED_IDENTITY.items():
            aliases = cls.model_fields[field_name].validation_alias.choices
            if not any(data.get(alias) for alias in aliases) and azure.get(nested):
                data[field_name] = azure[nested]
        return data

    @model_validator(mode="before")
    @classmethod
    def lift_flat_blocks(cls, data: Any) -> Any:
        """Accept ``opener``/``closing``/``signature`` at the top level."""
        if not isinstance(data, dict):
            return data
        flat = {
            name: data[name]
            for name in ("opener", "closing", "signature")
            if data.get(name)
        }
        if not flat:
            return data
        data = {
            k: v for k, v in data.items()
            if k not in ("opener", "closing", "signature")
        }
        nested = data.get("default_blocks", data.get("defaultBlocks")) or {}
        if isinstance(nested, DefaultBlocks):
            nested = nested.model_dump()
        data["default_blocks"] = {**nested, **flat}
        data.pop("defaultBlocks", None)
        return data

    @field_validator("client_id", "client_secret", "tenant_id", "llm_api_key", mode="before")
    @classmethod
    def trim(cls, v: Any) -> str:
        return _trimmed(v)

    @field_validator("client_id", "client_secret")
    @classmethod
    def required(cls, v: str) -> str:
        if not v:
            raise ValueError("is required")
        return v

    @field_validator("tenant_id")
    @classmethod
    def tenant_or_default(cls, v: str) -> str:
        return v or DEFAULT_TENANT

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def __repr__(self) -> str:
        # secrets stay out of reprs and tracebacks
        return (
            f"<ProviderCredentials client_id={self.client_id!r} "
            f"tenant_id={self.tenant_id!r} "
            f"llm_api_key={'set' if self.llm_api_key else 'unset'}>"
        )

    __str__ = __repr__

    @classmethod
    def parse(cls, candidate: Any) -> "ProviderCredentials":
        """Validate a candidate record.

        Args:
            candidate: Mapping of fields, or an existing record.

        Raises:
            ValidationError: If the candidate is malformed or missing the
                client id or client secret.
        """
        if isinstance(candidate, cls):
            return candidate
        if not isinstance(candidate, dict):
            try:
                candidate = dict(candidate)
            except (TypeError, ValueError) as err:
                raise ValidationError(
                    "Credentials must be a mapping of fields"
                ) from err
        try:
            return cls.model_validate(candidate)
        except PydanticValidationError as err:
            missing = any(
                e["loc"] and e["loc"][0] in _REQUIRED_LOCS
                for e in err.errors()
            )
            if missing:
                raise ValidationError(
                    "Identity provider Client ID and Client Secret are required"
                ) from err
            raise ValidationError(f"Invalid credentials: {err}") from err

    def to_record(self) -> dict:
        """Plain dict for serialization."""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: dict) -> Optional["ProviderCredentials"]:
        """Load a persisted record, or None if it no longer validates."""
        try:
            return cls.model_validate(record)
        except PydanticValidationError:
            return None
