"""
Models package.

Secret models shared by the repository, the secret manager and the API,
plus RFC 7807 error models.
"""

from hostsecrets.models.errors import ProblemDetail, ValidationErrorDetail
from hostsecrets.models.secrets import (
    MASTER_KEY_NAME,
    AuthorizationLevel,
    DecodedKey,
    FunctionSecrets,
    HostSecrets,
    Key,
    KeyCategory,
    ScriptSecrets,
    ScriptSecretsType,
    SentinelMarker,
)

__all__ = [
    "MASTER_KEY_NAME",
    "AuthorizationLevel",
    "DecodedKey",
    "FunctionSecrets",
    "HostSecrets",
    "Key",
    "KeyCategory",
    "ScriptSecrets",
    "ScriptSecretsType",
    "SentinelMarker",
    # RFC 7807 Error models
    "ProblemDetail",
    "ValidationErrorDetail",
]
