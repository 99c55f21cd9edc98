"""Error taxonomy shared by the pack subsystem, the OpenAI client and the server."""

from __future__ import annotations

__all__ = [
    "LuciusError",
    "SourceUnavailable",
    "ConfigurationMissing",
    "InvalidChatRequest",
    "UpstreamServiceError",
    "UpstreamUnavailable",
    "UpstreamEmptyReply",
]


class LuciusError(Exception):
    """Base class for errors raised by Lucius."""


class SourceUnavailable(LuciusError):
    """One candidate pack source could not produce content.

    Raised inside source readers and converted into a failed read result
    before it leaves the reader.
    """

    def __init__(self, kind, detail: str = "") -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail


class ConfigurationMissing(LuciusError):
    """A required credential or endpoint is not configured."""


class InvalidChatRequest(LuciusError):
    """The inbound chat request could not be understood."""


class UpstreamServiceError(LuciusError):
    """The text-generation service failed to produce a reply."""

    def __init__(self, message: str, *, status: int | None = None, detail: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


class UpstreamUnavailable(UpstreamServiceError):
    """The text-generation service could not be reached."""


class UpstreamEmptyReply(UpstreamServiceError):
    """The service answered but the payload held no usable text."""
