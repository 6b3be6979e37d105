"""
Key-name codec.

Maps the flat (name, value) namespace of a backing store onto typed keys:

    host.master                          -> master key
    host.functions.<keyName>             -> host function key
    host.systemKey.<keyName>             -> host system key
    functions.<functionName>.<keyName>   -> per-function key

The dot is reserved as the segment delimiter. Function names may not
contain it; key names may, since everything after the function segment
is the key name.
"""

from hostsecrets.infrastructure.errors import DecodeSkippedError, InvalidArgumentError
from hostsecrets.models.secrets import (
    MASTER_KEY_NAME,
    DecodedKey,
    Key,
    KeyCategory,
    ScriptSecretsType,
)

DELIMITER = "."
HOST_PREFIX = "host."
MASTER_KEY = "host.master"
HOST_FUNCTION_KEY_PREFIX = "host.functions."
SYSTEM_KEY_PREFIX = "host.systemKey."
FUNCTION_PREFIX = "functions."
# Owns the host sentinel file and the default host set
RESERVED_FUNCTION_NAME = "host"

# Checked in order: most specific first
_PREFIXES: tuple[tuple[str, KeyCategory], ...] = (
    (SYSTEM_KEY_PREFIX, KeyCategory.SYSTEM),
    (HOST_FUNCTION_KEY_PREFIX, KeyCategory.HOST_FUNCTION),
)


def validate_function_name(function_name: str | None) -> str:
    """Reject function names that cannot be encoded."""
    if not function_name:
        raise InvalidArgumentError("Function name is required")
    if DELIMITER in function_name:
        raise InvalidArgumentError(
            f"Function name '{function_name}' must not contain '{DELIMITER}'"
        )
    if function_name.lower() == RESERVED_FUNCTION_NAME:
        raise InvalidArgumentError(f"Function name '{function_name}' is reserved")
    return function_name


def decode(encoded_name: str, value: str) -> DecodedKey:
    """
    Classify a stored pair and strip its prefix.

    Args:
        encoded_name: Name as stored in the backing store
        value: Stored value

    Returns:
        DecodedKey with category, logical key and owning function (if any)

    Raises:
        DecodeSkippedError: If the name matches no known prefix
    """
    if encoded_name == MASTER_KEY:
        return DecodedKey(
            category=KeyCategory.MASTER, key=Key(name=MASTER_KEY_NAME, value=value)
        )

    for prefix, category in _PREFIXES:
        if encoded_name.startswith(prefix):
            name = encoded_name[len(prefix) :]
            if not name:
                raise DecodeSkippedError(encoded_name, "empty key name")
            return DecodedKey(category=category, key=Key(name=name, value=value))

    if encoded_name.startswith(FUNCTION_PREFIX):
        function_name, sep, name = encoded_name[len(FUNCTION_PREFIX) :].partition(
            DELIMITER
        )
        if not function_name or not sep or not name:
            raise DecodeSkippedError(encoded_name, "expected functions.<name>.<key>")
        return DecodedKey(
            category=KeyCategory.FUNCTION,
            key=Key(name=name, value=value),
            function_name=function_name,
        )

    raise DecodeSkippedError(encoded_name)


def encode(key: Key, category: KeyCategory, function_name: str | None = None) -> str:
    """
    Build the stored name for a key.

    Raises:
        InvalidArgumentError: If a function key has no valid function name
    """
    if category is KeyCategory.MASTER:
        return MASTER_KEY
    if category is KeyCategory.SYSTEM:
        return f"{SYSTEM_KEY_PREFIX}{key.name}"
    if category is KeyCategory.HOST_FUNCTION:
        return f"{HOST_FUNCTION_KEY_PREFIX}{key.name}"
    return f"{FUNCTION_PREFIX}{validate_function_name(function_name)}{DELIMITER}{key.name}"


def scope_prefix(secrets_type: ScriptSecretsType, function_name: str | None = None) -> str:
    """Prefix shared by every stored name that belongs to one scope."""
    if secrets_type is ScriptSecretsType.HOST:
        return HOST_PREFIX
    return f"{FUNCTION_PREFIX}{validate_function_name(function_name)}{DELIMITER}"
