"""Key administration request and response models."""

from pydantic import BaseModel, Field

from hostsecrets.models.secrets import Key


class KeyUpdateRequest(BaseModel):
    """Body of a key create/update request."""

    value: str | None = Field(
        default=None,
        min_length=16,
        description="Key value (generated when omitted)",
    )


class KeyResponse(BaseModel):
    """A single key."""

    name: str = Field(..., description="Key name")
    value: str = Field(..., description="Key value")

    @classmethod
    def from_key(cls, key: Key) -> "KeyResponse":
        return cls(name=key.name, value=key.value)


class KeyListResponse(BaseModel):
    """Keys of one collection."""

    keys: list[KeyResponse] = Field(default_factory=list)

    @classmethod
    def from_keys(cls, keys: list[Key]) -> "KeyListResponse":
        return cls(keys=[KeyResponse.from_key(k) for k in keys])


class PurgeRequest(BaseModel):
    """Names of the functions that currently exist on the host."""

    functions: list[str] = Field(default_factory=list)


class PurgeResponse(BaseModel):
    """Functions whose secrets were removed."""

    purged: list[str] = Field(default_factory=list)
