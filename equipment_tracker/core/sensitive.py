"""
Values that never leave the service through logs or exports.
"""
from typing import Any

REDACTED = "<redacted>"

# Network-device credentials: camelCase as sent by clients, snake_case as stored
SENSITIVE_FIELDS = frozenset({"password", "wifiPassword", "wifi_password"})

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})


def redact(value: Any) -> Any:
    """Copy of a decoded JSON value with sensitive keys masked at any depth."""
    if isinstance(value, dict):
        return {
            key: REDACTED if key in SENSITIVE_FIELDS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value
