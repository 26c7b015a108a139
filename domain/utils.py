from __future__ import annotations

import re
import urllib.parse
from typing import Any

_SENSITIVE_KEYS = (
    "password",
    "token",
    "secret",
    "key",
    "credential",
    "pin",
    "crn",
    "otp",
    "auth",
    "bearer",
)
_SECRET_PATTERNS = (
    re.compile(r"^[A-Za-z0-9]{32,}$"),
    re.compile(r"^[A-Za-z0-9+/=]{20,}$"),
    re.compile(r"^sk_[a-z]+_[A-Za-z0-9]+$"),
    re.compile(r"^ghp_[A-Za-z0-9]+$"),
)
REDACTED = "***REDACTED***"


def mask_value(value: str | None) -> str:
    """Keep the first three characters of an identifier, star out the rest."""
    if not value or len(value) < 4:
        return "***"
    return value[:3] + "*" * min(len(value) - 3, 5)


def mask_string(value: str | None, visible: int = 4) -> str:
    if not value or len(value) <= visible:
        return "***"
    return value[:visible] + "***"


def sanitize(data: Any) -> Any:
    """Recursively redact sensitive keys and mask secret-looking strings."""
    if isinstance(data, dict):
        cleaned: dict[Any, Any] = {}
        for key, value in data.items():
            if _is_sensitive_key(str(key)):
                cleaned[key] = REDACTED
            else:
                cleaned[key] = sanitize(value)
        return cleaned
    if isinstance(data, (list, tuple)):
        return [sanitize(item) for item in data]
    if isinstance(data, str):
        if data.startswith(("http://", "https://")):
            return sanitize_url(data)
        if _looks_like_secret(data):
            return mask_string(data)
    return data


def sanitize_url(url: str) -> str:
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url
    query = [
        (name, REDACTED if _is_sensitive_key(name) else value)
        for name, value in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query, safe="*")))


def normalize_label(value: str) -> str:
    return " ".join(value.split()).casefold()


def _is_sensitive_key(key: str) -> bool:
    lower = key.lower()
    return any(marker in lower for marker in _SENSITIVE_KEYS)


def _looks_like_secret(value: str) -> bool:
    if len(value) < 8 or value.startswith("http"):
        return False
    return any(pattern.match(value) for pattern in _SECRET_PATTERNS)
