"""Small text helpers."""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

__all__ = ["clamp", "redact_url"]


def clamp(value, max_chars: int) -> str:
    """Coerce ``value`` to ``str`` and cut it to ``max_chars`` characters."""

    text = "" if value is None else str(value)
    return text if len(text) <= max_chars else text[:max_chars]


def redact_url(url: str) -> str:
    """Drop credentials, query string and fragment from ``url``."""

    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, parts.path, "", ""))
