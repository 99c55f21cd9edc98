"""
TTL cache over the composed document.

A :class:`LayerCache` owns exactly one :class:`CacheEntry` at a time. Reads
inside the TTL window return that entry without any I/O. The first read after
expiry starts a resolution pass; every read that arrives while the pass is in
flight awaits the same pass instead of starting another one (callers wait
rather than receive the stale entry). The new entry replaces the old one in a
single assignment, so readers only ever see a complete entry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, Tuple

from .composer import compose
from .model import CacheEntry, Layer
from .report import build_report
from .resolver import FallbackResolver

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_TTL_S", "LayerCache"]

DEFAULT_TTL_S = 600.0


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LayerCache:
    """Single-flight, TTL-bounded holder of the latest resolution pass."""

    def __init__(
        self,
        layers: Iterable[Layer],
        resolver: FallbackResolver,
        *,
        ttl: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.monotonic,
        timestamp: Callable[[], str] = _utcnow_iso,
    ) -> None:
        self.layers: Tuple[Layer, ...] = tuple(layers)
        names = [layer.name for layer in self.layers]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate layer names: {names}")

        self.ttl = float(ttl)
        self._resolver = resolver
        self._clock = clock
        self._timestamp = timestamp
        self._entry: CacheEntry | None = None
        self._inflight: asyncio.Task | None = None
        self._generation = 0
        self.passes = 0

    def peek(self) -> CacheEntry | None:
        """Current entry, fresh or not. Never triggers I/O."""
        return self._entry

    def is_fresh(self, entry: CacheEntry | None = None) -> bool:
        entry = entry if entry is not None else self._entry
        return entry is not None and self._clock() < entry.expires_at

    def seconds_until_expiry(self) -> float | None:
        if self._entry is None:
            return None
        return self._entry.expires_at - self._clock()

    def invalidate(self) -> None:
        """Force the next :meth:`get_current` call to start a new pass."""
        # A pass already in flight may have read pre-invalidation text.
        self._generation += 1
        entry = self._entry
        if entry is not None and self._clock() < entry.expires_at:
            logger.info("Layer cache invalidated (pass %d)", entry.pass_number)
            # Expired copy keeps the old entry visible to peek().
            self._entry = CacheEntry(
                document=entry.document,
                layers=entry.layers,
                expires_at=float("-inf"),
                created_at=entry.created_at,
                report=entry.report,
                pass_number=entry.pass_number,
            )

    async def get_current(self) -> CacheEntry:
        entry = self._entry
        if entry is not None and self._clock() < entry.expires_at:
            return entry

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
        # Shielded so one cancelled caller does not abort the pass for the rest.
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> CacheEntry:
        try:
            self.passes += 1
            pass_number = self.passes
            generation = self._generation
            started = self._clock()
            resolved = await self._resolver.resolve_all(self.layers)
            document = compose(resolved)
            created_at = self._timestamp()
            report = build_report(resolved, document, generated_at=created_at)
            report["pass_number"] = pass_number

            if generation == self._generation:
                expires_at = self._clock() + self.ttl
            else:
                logger.info("Layer cache invalidated during pass %d; entry stored expired", pass_number)
                expires_at = float("-inf")

            entry = CacheEntry(
                document=document,
                layers=tuple(resolved),
                expires_at=expires_at,
                created_at=created_at,
                report=report,
                pass_number=pass_number,
            )
            self._entry = entry

            exhausted = report["exhausted_layers"]
            logger.info(
                "Resolved %d layers in %.1f ms (pass %d, %d bytes%s)",
                len(resolved),
                (self._clock() - started) * 1000,
                pass_number,
                report["document"]["bytes"],
                f", exhausted: {', '.join(exhausted)}" if exhausted else "",
            )
            return entry
        finally:
            self._inflight = None
