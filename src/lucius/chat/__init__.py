"""Chat turn handling and consented transcript logging."""

from .service import ChatReply, ChatRequest, ChatService, parse_chat_request
from .transcript import TranscriptStore

__all__ = ["ChatReply", "ChatRequest", "ChatService", "TranscriptStore", "parse_chat_request"]
