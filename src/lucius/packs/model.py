"""
Value types for layer resolution.

Everything here is frozen: the cache hands the same objects to many concurrent
requests, so nothing downstream of a resolution pass may mutate them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

__all__ = [
    "DEFAULT_EMPTY",
    "SourceKind",
    "ErrorKind",
    "SourceDescriptor",
    "Layer",
    "ReadResult",
    "ResolutionAttempt",
    "ResolvedLayer",
    "CacheEntry",
]

DEFAULT_EMPTY = "default-empty"


class SourceKind(str, Enum):
    REMOTE = "remote"
    LOCAL_FILE = "local-file"
    ENVIRONMENT = "environment"
    LITERAL = "literal-default"


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NOT_FOUND = "not-found"
    NETWORK = "network"
    PERMISSION = "permission"
    MALFORMED = "malformed"
    # The source answered, but with blank content.
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """One candidate origin for a layer's text."""

    kind: SourceKind
    locator: str
    # Seconds; only remote sources honour it.
    timeout: float | None = None


@dataclass(frozen=True, slots=True)
class Layer:
    """A named segment of the composed document and its ordered source chain."""

    name: str
    priority: int
    sources: Tuple[SourceDescriptor, ...] = ()
    title: str = ""


@dataclass(frozen=True, slots=True)
class ReadResult:
    """What a single source reader produced."""

    content: str | None
    revision: str | None = None
    error: ErrorKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.content is not None and self.error is None

    @classmethod
    def failed(cls, error: ErrorKind, detail: str = "") -> "ReadResult":
        return cls(content=None, error=error, detail=detail)


@dataclass(frozen=True, slots=True)
class ResolutionAttempt:
    """Outcome of invoking one source descriptor during a pass."""

    source: SourceDescriptor
    ok: bool
    byte_length: int = 0
    error: ErrorKind | None = None
    revision: str | None = None
    detail: str = ""


@dataclass(frozen=True, slots=True)
class ResolvedLayer:
    """Winning content for a layer.

    ``content`` is never ``None``. When every source failed it is ``""`` and
    ``source_used`` is :data:`DEFAULT_EMPTY`.
    """

    layer: Layer
    content: str
    source_used: str
    resolved_at: str
    attempts: Tuple[ResolutionAttempt, ...] = ()
    revision: str | None = None

    @property
    def name(self) -> str:
        return self.layer.name

    @property
    def priority(self) -> int:
        return self.layer.priority

    @property
    def exhausted(self) -> bool:
        return self.source_used == DEFAULT_EMPTY

    @property
    def byte_length(self) -> int:
        return len(self.content.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One complete resolution pass: the document, its layers and the report."""

    document: str
    layers: Tuple[ResolvedLayer, ...]
    expires_at: float
    created_at: str
    report: dict = field(default_factory=dict, compare=False)
    pass_number: int = 0
