"""Merge resolved layers into the single instruction document."""

from __future__ import annotations

from typing import Iterable

from .model import ResolvedLayer

__all__ = ["MISSING_LAYER_TEMPLATE", "compose", "missing_layer_text"]

MISSING_LAYER_TEMPLATE = "(Layer '{name}' is not available on the server.)"
LAYER_SEPARATOR = "\n\n"


def missing_layer_text(name: str) -> str:
    return MISSING_LAYER_TEMPLATE.format(name=name)


def _render(layer: ResolvedLayer) -> str:
    name = layer.name
    title = layer.layer.title.strip()
    header = f"=== LAYER: {name} ({title}) ===" if title else f"=== LAYER: {name} ==="
    body = layer.content.strip() or missing_layer_text(name)
    return f"{header}\n{body}\n=== END LAYER: {name} ==="


def compose(layers: Iterable[ResolvedLayer]) -> str:
    """
    Join ``layers`` in ascending priority (name breaks ties).

    The result depends only on layer contents, titles and priorities, so the
    order in which layers finished resolving has no effect.
    """

    ordered = sorted(layers, key=lambda layer: (layer.priority, layer.name))
    return LAYER_SEPARATOR.join(_render(layer) for layer in ordered)
