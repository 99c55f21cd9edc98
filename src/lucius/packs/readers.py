"""
Source readers
==============
One reader per :class:`SourceKind`. A reader turns a
:class:`SourceDescriptor` into a :class:`ReadResult` and never raises:

* ``remote``          HTTP GET with a bounded timeout, no retries
* ``local-file``      UTF-8 file read, mtime as revision marker
* ``environment``     process environment variable
* ``literal-default`` the descriptor's locator is the text itself

Failures raised inside ``_read`` as :class:`SourceUnavailable` keep their
classification. Anything else is logged and reported with the reader's
``fallback_error``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import ClassVar, Dict, Mapping, Type

import aiohttp

from lucius.errors import SourceUnavailable

from .model import ErrorKind, ReadResult, SourceDescriptor, SourceKind

logger = logging.getLogger(__name__)

__all__ = [
    "SourceReader",
    "RemoteReader",
    "LocalFileReader",
    "EnvironmentReader",
    "LiteralReader",
    "register",
    "build_readers",
]

DEFAULT_REMOTE_TIMEOUT_S = 5.0


class SourceReader:
    """Base reader: subclasses implement ``_read`` and may raise ``SourceUnavailable``."""

    source_kind: ClassVar[SourceKind]
    fallback_error: ClassVar[ErrorKind] = ErrorKind.MALFORMED

    async def read(self, descriptor: SourceDescriptor) -> ReadResult:
        try:
            return await self._read(descriptor)
        except SourceUnavailable as exc:
            return ReadResult.failed(exc.kind, exc.detail)
        except Exception as exc:
            logger.warning(
                "Unexpected %s reader failure: %s", self.source_kind.value, exc, exc_info=True
            )
            return ReadResult.failed(self.fallback_error, f"{type(exc).__name__}: {exc}")

    async def _read(self, descriptor: SourceDescriptor) -> ReadResult:
        raise NotImplementedError


_REGISTRY: Dict[SourceKind, Type[SourceReader]] = {}


def register(cls: Type[SourceReader]) -> Type[SourceReader]:
    """Decorator that stores the reader class under its ``source_kind``."""
    _REGISTRY[cls.source_kind] = cls
    return cls


def _decode(raw: bytes, charset: str | None = None) -> str:
    try:
        return raw.decode(charset or "utf-8-sig")
    except (UnicodeDecodeError, LookupError) as exc:
        raise SourceUnavailable(ErrorKind.MALFORMED, f"undecodable body: {exc}") from exc


@register
class RemoteReader(SourceReader):
    source_kind = SourceKind.REMOTE
    fallback_error = ErrorKind.NETWORK

    def __init__(self, *, auth_token: str | None = None, default_timeout: float = DEFAULT_REMOTE_TIMEOUT_S) -> None:
        self._auth_token = auth_token
        self.default_timeout = default_timeout if default_timeout and default_timeout > 0 else DEFAULT_REMOTE_TIMEOUT_S

    async def _read(self, descriptor: SourceDescriptor) -> ReadResult:
        seconds = descriptor.timeout
        # aiohttp treats a zero total as "no timeout"
        if seconds is None or seconds <= 0:
            seconds = self.default_timeout
        timeout = aiohttp.ClientTimeout(total=seconds)
        headers = {"Accept": "text/markdown, text/plain;q=0.9, */*;q=0.5"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(descriptor.locator, headers=headers) as resp:
                    status = resp.status
                    if status in (404, 410):
                        raise SourceUnavailable(ErrorKind.NOT_FOUND, f"HTTP {status}")
                    if status in (401, 403):
                        raise SourceUnavailable(ErrorKind.PERMISSION, f"HTTP {status}")
                    if not 200 <= status < 300:
                        raise SourceUnavailable(ErrorKind.NETWORK, f"HTTP {status}")
                    raw = await resp.read()
                    charset = resp.charset
                    revision = resp.headers.get("ETag") or resp.headers.get("Last-Modified")
        except asyncio.TimeoutError as exc:
            raise SourceUnavailable(ErrorKind.TIMEOUT, f"no response within {seconds:g}s") from exc
        except aiohttp.ClientError as exc:
            raise SourceUnavailable(ErrorKind.NETWORK, f"{type(exc).__name__}: {exc}") from exc

        return ReadResult(content=_decode(raw, charset), revision=revision)


@register
class LocalFileReader(SourceReader):
    source_kind = SourceKind.LOCAL_FILE
    fallback_error = ErrorKind.NOT_FOUND

    def __init__(self, *, base_dir: str | Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else None

    def resolve_path(self, locator: str) -> Path:
        path = Path(locator).expanduser()
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path

    async def _read(self, descriptor: SourceDescriptor) -> ReadResult:
        path = self.resolve_path(descriptor.locator)
        try:
            raw = path.read_bytes()
            mtime = path.stat().st_mtime
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise SourceUnavailable(ErrorKind.NOT_FOUND, f"{path.name}: {exc.strerror or exc}") from exc
        except PermissionError as exc:
            raise SourceUnavailable(ErrorKind.PERMISSION, f"{path.name}: {exc.strerror or exc}") from exc

        revision = datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat()
        return ReadResult(content=_decode(raw), revision=revision)


@register
class EnvironmentReader(SourceReader):
    source_kind = SourceKind.ENVIRONMENT
    fallback_error = ErrorKind.NOT_FOUND

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    async def _read(self, descriptor: SourceDescriptor) -> ReadResult:
        environ = os.environ if self._environ is None else self._environ
        value = environ.get(descriptor.locator)
        if value is None:
            raise SourceUnavailable(ErrorKind.NOT_FOUND, f"{descriptor.locator} is not set")
        return ReadResult(content=value)


@register
class LiteralReader(SourceReader):
    source_kind = SourceKind.LITERAL

    async def _read(self, descriptor: SourceDescriptor) -> ReadResult:
        return ReadResult(content=descriptor.locator)


def build_readers(
    *,
    base_dir: str | Path | None = None,
    auth_token: str | None = None,
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT_S,
) -> Dict[SourceKind, SourceReader]:
    """Instantiate one reader per registered kind."""

    readers: Dict[SourceKind, SourceReader] = {}
    for kind, cls in _REGISTRY.items():
        if cls is RemoteReader:
            readers[kind] = RemoteReader(auth_token=auth_token, default_timeout=remote_timeout)
        elif cls is LocalFileReader:
            readers[kind] = LocalFileReader(base_dir=base_dir)
        else:
            readers[kind] = cls()
    return readers
