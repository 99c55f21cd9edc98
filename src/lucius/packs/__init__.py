"""
Layered instruction packs.

Layers are resolved through ordered source chains
(:mod:`~lucius.packs.resolver`), composed into one document
(:mod:`~lucius.packs.composer`), described by a redaction-safe report
(:mod:`~lucius.packs.report`) and cached with a TTL
(:mod:`~lucius.packs.cache`).
"""

from __future__ import annotations

from .cache import LayerCache
from .composer import compose
from .layers import build_layers
from .model import (
    DEFAULT_EMPTY,
    CacheEntry,
    ErrorKind,
    Layer,
    ReadResult,
    ResolutionAttempt,
    ResolvedLayer,
    SourceDescriptor,
    SourceKind,
)
from .readers import build_readers
from .report import build_report
from .resolver import FallbackResolver

__all__ = [
    "DEFAULT_EMPTY",
    "CacheEntry",
    "ErrorKind",
    "FallbackResolver",
    "Layer",
    "LayerCache",
    "ReadResult",
    "ResolutionAttempt",
    "ResolvedLayer",
    "SourceDescriptor",
    "SourceKind",
    "build_layer_cache",
    "build_layers",
    "build_readers",
    "build_report",
    "compose",
]


def build_layer_cache(packs_cfg=None) -> LayerCache:
    """Wire readers, resolver and cache from a :class:`~lucius.config.packs.Packs` section."""

    if packs_cfg is None:
        from lucius.config import packs as packs_cfg

    remote_timeout = packs_cfg.REMOTE_TIMEOUT_MS / 1000
    layers = build_layers(
        packs_cfg.LAYERS,
        remote_base_url=packs_cfg.REMOTE_BASE_URL,
        remote_timeout=remote_timeout,
    )
    readers = build_readers(
        base_dir=packs_cfg.LOCAL_DIR,
        auth_token=packs_cfg.AUTH_TOKEN,
        remote_timeout=remote_timeout,
    )
    return LayerCache(layers, FallbackResolver(readers), ttl=packs_cfg.TTL_MS / 1000)
