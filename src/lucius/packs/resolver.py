"""Ordered, short-circuiting resolution of a layer's source chain."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Mapping

from .model import (
    DEFAULT_EMPTY,
    ErrorKind,
    Layer,
    ReadResult,
    ResolutionAttempt,
    ResolvedLayer,
    SourceDescriptor,
    SourceKind,
)
from .readers import SourceReader, build_readers

logger = logging.getLogger(__name__)

__all__ = ["FallbackResolver"]


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FallbackResolver:
    """
    Resolve layers by trying their sources strictly in order.

    The first attempt that is ok and carries non-blank text wins; later
    sources are never touched. Reader failures are recorded on the resolved
    layer and logged, never raised. A chain with no winner resolves to ``""``
    attributed to ``default-empty``.
    """

    def __init__(
        self,
        readers: Mapping[SourceKind, SourceReader] | None = None,
        *,
        timestamp: Callable[[], str] = _utcnow_iso,
    ) -> None:
        self._readers = dict(readers) if readers is not None else build_readers()
        self._timestamp = timestamp

    async def _attempt(self, source: SourceDescriptor) -> tuple[ResolutionAttempt, ReadResult]:
        reader = self._readers.get(source.kind)
        if reader is None:
            result = ReadResult.failed(ErrorKind.MALFORMED, f"no reader for {source.kind.value}")
        else:
            result = await reader.read(source)

        if result.ok and not (result.content or "").strip():
            result = ReadResult(content=None, revision=result.revision, error=ErrorKind.EMPTY)

        attempt = ResolutionAttempt(
            source=source,
            ok=result.ok,
            byte_length=len(result.content.encode("utf-8")) if result.ok else 0,
            error=result.error,
            revision=result.revision,
            detail=result.detail,
        )
        return attempt, result

    async def resolve(self, layer: Layer) -> ResolvedLayer:
        attempts: List[ResolutionAttempt] = []

        for source in layer.sources:
            attempt, result = await self._attempt(source)
            attempts.append(attempt)
            if attempt.ok:
                return ResolvedLayer(
                    layer=layer,
                    content=result.content,
                    source_used=source.kind.value,
                    resolved_at=self._timestamp(),
                    attempts=tuple(attempts),
                    revision=result.revision,
                )
            logger.warning(
                "Layer %s: %s source failed (%s)%s",
                layer.name,
                source.kind.value,
                attempt.error.value if attempt.error else "unknown",
                f": {attempt.detail}" if attempt.detail else "",
            )

        logger.error(
            "Layer %s: all %d sources exhausted; serving placeholder.", layer.name, len(attempts)
        )
        return ResolvedLayer(
            layer=layer,
            content="",
            source_used=DEFAULT_EMPTY,
            resolved_at=self._timestamp(),
            attempts=tuple(attempts),
        )

    async def resolve_all(self, layers: Iterable[Layer]) -> List[ResolvedLayer]:
        """Resolve independent layers concurrently; results keep input order."""

        return list(await asyncio.gather(*(self.resolve(layer) for layer in layers)))
