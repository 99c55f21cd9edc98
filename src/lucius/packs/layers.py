"""Build :class:`Layer` definitions from the ``[lucius.packs]`` config section."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping
from urllib.parse import urlsplit

from .model import Layer, SourceDescriptor, SourceKind

logger = logging.getLogger(__name__)

__all__ = ["build_layer", "build_layers"]


def _remote_url(base_url: str, remote: str) -> str | None:
    if urlsplit(remote).scheme:
        return remote
    if not base_url:
        return None
    return f"{base_url.rstrip('/')}/{remote.lstrip('/')}"


def build_layer(spec: Mapping[str, Any], *, remote_base_url: str = "", remote_timeout: float | None = None) -> Layer:
    """
    Turn one layer table into a :class:`Layer`.

    Source chain order is fixed: remote, local file, environment, literal
    default. Any source that is not configured is left out of the chain.
    """

    name = str(spec.get("name") or "").strip()
    if not name:
        raise ValueError(f"Layer definition without a name: {dict(spec)!r}")

    file_name = str(spec.get("file") or "").strip()
    remote = str(spec.get("remote") or file_name).strip()
    local = str(spec.get("local") or file_name).strip()
    env = str(spec.get("env") or "").strip()
    default = spec.get("default")

    timeout = remote_timeout if remote_timeout is not None and remote_timeout > 0 else None
    if spec.get("timeout_ms") is not None:
        if int(spec["timeout_ms"]) > 0:
            timeout = int(spec["timeout_ms"]) / 1000
        else:
            logger.warning("Layer %s: ignoring non-positive timeout_ms=%s", name, spec["timeout_ms"])

    sources: List[SourceDescriptor] = []
    if remote:
        url = _remote_url(remote_base_url, remote)
        if url:
            sources.append(SourceDescriptor(SourceKind.REMOTE, url, timeout))
    if local:
        sources.append(SourceDescriptor(SourceKind.LOCAL_FILE, local))
    if env:
        sources.append(SourceDescriptor(SourceKind.ENVIRONMENT, env))
    if default:
        sources.append(SourceDescriptor(SourceKind.LITERAL, str(default)))

    if not sources:
        logger.warning("Layer %s has no sources configured; it will always be missing.", name)

    return Layer(
        name=name,
        priority=int(spec.get("priority", 0)),
        sources=tuple(sources),
        title=str(spec.get("title") or ""),
    )


def build_layers(
    specs: Iterable[Mapping[str, Any]], *, remote_base_url: str = "", remote_timeout: float | None = None
) -> List[Layer]:
    return [
        build_layer(spec, remote_base_url=remote_base_url, remote_timeout=remote_timeout)
        for spec in specs
    ]
