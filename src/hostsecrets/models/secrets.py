"""
Secret models for host and function keys.

A host holds one master key plus two collections of named keys:
- function keys: valid for every function on the host
- system keys: used by extensions and other internal endpoints

Each function additionally owns its own collection of named keys.
Models are built fresh on every repository read.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

MASTER_KEY_NAME = "master"


class ScriptSecretsType(str, Enum):
    """Selects which secret model a read or write targets."""

    HOST = "host"
    FUNCTION = "function"


class KeyCategory(str, Enum):
    """Kind of credential a stored key represents."""

    MASTER = "master"
    HOST_FUNCTION = "host_function"
    SYSTEM = "system"
    FUNCTION = "function"


class AuthorizationLevel(str, Enum):
    """Access level granted by a presented key."""

    ANONYMOUS = "Anonymous"
    FUNCTION = "Function"
    SYSTEM = "System"
    ADMIN = "Admin"


class Key(BaseModel):
    """A single named credential."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Key name")
    value: str = Field(..., description="Key value")


def _ensure_unique_names(keys: list[Key], collection: str) -> list[Key]:
    seen: set[str] = set()
    for key in keys:
        if key.name in seen:
            raise ValueError(f"Duplicate key name '{key.name}' in {collection}")
        seen.add(key.name)
    return keys


class HostSecrets(BaseModel):
    """
    Host-level secrets.

    Attributes:
        master_key: Top-level admin key (None until provisioned)
        function_keys: Keys valid for all functions on the host
        system_keys: Keys for extension and internal endpoints
    """

    master_key: Key | None = Field(default=None, description="Host master key")
    function_keys: list[Key] = Field(default_factory=list)
    system_keys: list[Key] = Field(default_factory=list)

    @field_validator("function_keys", "system_keys")
    @classmethod
    def unique_names(cls, keys: list[Key], info: ValidationInfo) -> list[Key]:
        return _ensure_unique_names(keys, info.field_name)

    def get_function_key(self, name: str) -> Key | None:
        return next((k for k in self.function_keys if k.name == name), None)

    def get_system_key(self, name: str) -> Key | None:
        return next((k for k in self.system_keys if k.name == name), None)


class FunctionSecrets(BaseModel):
    """Keys scoped to a single function."""

    keys: list[Key] = Field(default_factory=list)

    @field_validator("keys")
    @classmethod
    def unique_names(cls, keys: list[Key]) -> list[Key]:
        return _ensure_unique_names(keys, "function keys")

    def get_key(self, name: str) -> Key | None:
        return next((k for k in self.keys if k.name == name), None)


ScriptSecrets = HostSecrets | FunctionSecrets


class DecodedKey(BaseModel):
    """Result of decoding one stored (name, value) pair."""

    model_config = ConfigDict(frozen=True)

    category: KeyCategory
    key: Key
    function_name: str | None = None


class SentinelMarker(BaseModel):
    """Last-write marker for one secrets scope."""

    scope_path: str
    last_write: datetime
