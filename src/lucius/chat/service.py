"""
Chat request handling: parse the widget payload, fetch the composed document,
ask the model, and hand consented exchanges to the transcript store.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from lucius.clients.oai import TextGenerator
from lucius.config import core
from lucius.errors import InvalidChatRequest, UpstreamServiceError
from lucius.packs import LayerCache
from lucius.utils import clamp

from .transcript import TranscriptStore

logger = logging.getLogger(__name__)

__all__ = ["ChatRequest", "ChatReply", "ChatService", "parse_chat_request", "extract_user_message"]

_USER_ROLES = {"user", "human", ""}


@dataclass(slots=True)
class ChatRequest:
    message: str
    session_id: str = ""
    consent_to_log: bool = False
    page: str = ""


@dataclass(slots=True)
class ChatReply:
    reply: str
    model: str
    pass_number: int


def extract_user_message(body: Any) -> str:
    """
    Pull the user's text out of the common widget payload shapes.

    Checks ``message``, ``input`` and ``text`` first, then the last user-ish
    entry of ``messages``, then a raw string body.
    """
    if isinstance(body, str):
        return body.strip()
    if not isinstance(body, dict):
        return ""

    for key in ("message", "input", "text"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    messages = body.get("messages")
    if isinstance(messages, list):
        for entry in reversed(messages):
            if not isinstance(entry, dict):
                continue
            role = str(entry.get("role") or "").lower()
            content = next(
                (entry[k] for k in ("content", "text", "message") if entry.get(k) is not None),
                None,
            )
            if role in _USER_ROLES and isinstance(content, str) and content.strip():
                return content.strip()

    return ""


def parse_chat_request(body: Any) -> ChatRequest:
    """Validate and clamp an inbound payload. Raises :class:`InvalidChatRequest`."""

    message = clamp(extract_user_message(body), core.MESSAGE_MAX_CHARS).strip()
    if not message:
        raise InvalidChatRequest('Missing user message. Send { "message": "..." }.')

    fields: Dict[str, Any] = body if isinstance(body, dict) else {}
    return ChatRequest(
        message=message,
        session_id=clamp(fields.get("sessionId") or "", core.SESSION_ID_MAX_CHARS).strip(),
        consent_to_log=fields.get("consentToLog") is True,
        page=clamp(fields.get("page") or "", core.PAGE_MAX_CHARS).strip(),
    )


class ChatService:
    """One chat turn: composed document + user message -> reply."""

    def __init__(
        self,
        cache: LayerCache,
        generator: TextGenerator,
        transcripts: TranscriptStore | None = None,
    ) -> None:
        self.cache = cache
        self.generator = generator
        self.transcripts = transcripts
        self.last_upstream_error: Dict[str, Any] | None = None

    async def respond(self, request: ChatRequest) -> ChatReply:
        entry = await self.cache.get_current()

        try:
            reply = await self.generator.generate(entry.document, request.message)
        except UpstreamServiceError as exc:
            self.last_upstream_error = {
                "at": datetime.now(timezone.utc).isoformat(),
                "type": type(exc).__name__,
                "status": exc.status,
                "detail": clamp(exc.detail, 300),
            }
            raise

        if request.consent_to_log and self.transcripts is not None:
            self.transcripts.record(
                session_id=request.session_id,
                user_text=request.message,
                reply_text=reply,
                page=request.page,
                model=self.generator.model,
            )

        return ChatReply(reply=reply, model=self.generator.model, pass_number=entry.pass_number)
