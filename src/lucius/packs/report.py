"""
Diagnostic record of a resolution pass.

The record is safe to log or serve from the status endpoint: fetched text is
never included (the document appears only as a byte count and a digest),
locators are redacted and free-text details are capped.
"""

from __future__ import annotations

import hashlib
from typing import Any, Dict, Iterable, List

from lucius.utils import clamp, redact_url

from .model import Layer, ResolutionAttempt, ResolvedLayer, SourceDescriptor, SourceKind

__all__ = ["MAX_DETAIL_CHARS", "build_report", "describe_source", "describe_layers"]

MAX_DETAIL_CHARS = 200


def describe_source(source: SourceDescriptor) -> Dict[str, Any]:
    """Redacted view of a source descriptor."""

    if source.kind is SourceKind.REMOTE:
        locator = redact_url(source.locator)
    elif source.kind is SourceKind.LITERAL:
        locator = f"<literal {len(source.locator)} chars>"
    else:
        locator = source.locator
    out: Dict[str, Any] = {"kind": source.kind.value, "locator": locator}
    if source.kind is SourceKind.REMOTE and source.timeout is not None:
        out["timeout_s"] = source.timeout
    return out


def _attempt_record(attempt: ResolutionAttempt) -> Dict[str, Any]:
    record = describe_source(attempt.source)
    record.update(
        {
            "ok": attempt.ok,
            "bytes": attempt.byte_length,
            "error": attempt.error.value if attempt.error else None,
        }
    )
    if attempt.revision:
        record["revision"] = clamp(attempt.revision, MAX_DETAIL_CHARS)
    if attempt.detail:
        record["detail"] = clamp(attempt.detail, MAX_DETAIL_CHARS)
    return record


def _layer_record(layer: ResolvedLayer) -> Dict[str, Any]:
    failed = [a for a in layer.attempts if not a.ok]
    return {
        "name": layer.name,
        "priority": layer.priority,
        "status": "exhausted" if layer.exhausted else "resolved",
        "source_used": layer.source_used,
        "bytes": layer.byte_length,
        "revision": clamp(layer.revision, MAX_DETAIL_CHARS) if layer.revision else None,
        "resolved_at": layer.resolved_at,
        "failed_attempts": len(failed),
        "attempts": [_attempt_record(a) for a in layer.attempts],
    }


def build_report(layers: Iterable[ResolvedLayer], document: str, *, generated_at: str) -> Dict[str, Any]:
    ordered = sorted(layers, key=lambda layer: (layer.priority, layer.name))
    records: List[Dict[str, Any]] = [_layer_record(layer) for layer in ordered]
    encoded = document.encode("utf-8")
    return {
        "generated_at": generated_at,
        "document": {
            "bytes": len(encoded),
            "sha256": hashlib.sha256(encoded).hexdigest(),
        },
        "exhausted_layers": [r["name"] for r in records if r["status"] == "exhausted"],
        "layers": records,
    }


def describe_layers(layers: Iterable[Layer]) -> List[Dict[str, Any]]:
    """Configured source chains, redacted, for the status view."""

    return [
        {
            "name": layer.name,
            "priority": layer.priority,
            "sources": [describe_source(s) for s in layer.sources],
        }
        for layer in sorted(layers, key=lambda layer: (layer.priority, layer.name))
    ]
