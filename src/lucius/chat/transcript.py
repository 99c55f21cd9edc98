"""
Consent-gated transcript logging.

Records are emitted in the background: a slow or failing sink never delays
or breaks the chat reply. Each record is one JSON line written to the
``lucius.transcript`` logger and, when a path is configured, appended to a
JSONL file.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Set

from lucius.config import transcript as transcript_cfg
from lucius.utils import clamp

logger = logging.getLogger(__name__)
transcript_logger = logging.getLogger("lucius.transcript")

__all__ = ["TranscriptRecord", "TranscriptStore"]


@dataclass(slots=True)
class TranscriptRecord:
    ts: str
    sessionId: str | None
    page: str | None
    model: str | None
    user: str
    reply: str


class TranscriptStore:
    """Append-only sink for consented chat exchanges."""

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        user_max_chars: int | None = None,
        reply_max_chars: int | None = None,
    ) -> None:
        if path is None:
            path = transcript_cfg.PATH or None
        self.path = Path(path) if path else None
        self.user_max_chars = user_max_chars or transcript_cfg.USER_MAX_CHARS
        self.reply_max_chars = reply_max_chars or transcript_cfg.REPLY_MAX_CHARS
        self._pending: Set[asyncio.Task] = set()

    def build_record(
        self,
        *,
        session_id: str | None,
        user_text: str,
        reply_text: str,
        page: str | None = None,
        model: str | None = None,
    ) -> TranscriptRecord:
        return TranscriptRecord(
            ts=datetime.now(timezone.utc).isoformat(),
            sessionId=session_id or None,
            page=page or None,
            model=model,
            user=clamp(user_text, self.user_max_chars),
            reply=clamp(reply_text, self.reply_max_chars),
        )

    def record(self, **kwargs) -> asyncio.Task | None:
        """Schedule a record for emission and return immediately."""
        try:
            rec = self.build_record(**kwargs)
            task = asyncio.get_running_loop().create_task(self._emit(rec))
        except Exception as exc:
            logger.warning("Transcript logging failed: %s", exc)
            return None
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _emit(self, rec: TranscriptRecord) -> None:
        try:
            line = json.dumps(asdict(rec), ensure_ascii=False)
            transcript_logger.info("LUCIUS_TRANSCRIPT %s", line)
            if self.path is not None:
                await asyncio.to_thread(self._append, line)
        except Exception as exc:
            logger.warning("Transcript logging failed: %s", exc)

    def _append(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    async def drain(self) -> None:
        """Wait for pending records; used on shutdown."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
