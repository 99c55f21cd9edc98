"""Helpers for interacting with the OpenAI API"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Tuple

import openai
from openai import AsyncOpenAI

from lucius.config import core
from lucius.errors import (
    ConfigurationMissing,
    UpstreamEmptyReply,
    UpstreamServiceError,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

__all__ = ["TextGenerator", "extract_text", "EXTRACTION_STRATEGIES"]

# ==============================================
# Reply extraction
# ==============================================

_TEXT_BLOCK_TYPES = {"output_text", "text"}


def _text_blocks(blocks: Any) -> str:
    if not isinstance(blocks, list):
        return ""
    parts = [
        b["text"]
        for b in blocks
        if isinstance(b, dict) and b.get("type") in _TEXT_BLOCK_TYPES and isinstance(b.get("text"), str)
    ]
    return "\n".join(parts)


def _flat_output_text(payload: dict) -> str:
    value = payload.get("output_text")
    return value if isinstance(value, str) else ""


def _output_message_blocks(payload: dict) -> str:
    for item in payload.get("output") or []:
        if isinstance(item, dict) and item.get("type") == "message":
            text = _text_blocks(item.get("content"))
            if text.strip():
                return text
    return ""


def _chat_choice_content(payload: dict) -> str:
    choices = payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    if isinstance(content, str):
        return content
    return _text_blocks(content)


# Tried in order; the first non-blank result wins.
EXTRACTION_STRATEGIES: List[Tuple[str, Callable[[dict], str]]] = [
    ("output_text", _flat_output_text),
    ("output_blocks", _output_message_blocks),
    ("chat_choices", _chat_choice_content),
]


def extract_text(response: Any) -> str:
    """
    Normalize a Responses or Chat Completions payload into plain text.

    Accepts SDK model objects or plain dicts. Raises
    :class:`UpstreamEmptyReply` when no strategy finds usable text.
    """
    dump = getattr(response, "model_dump", None)
    payload = dump() if callable(dump) else response
    if not isinstance(payload, dict):
        raise UpstreamEmptyReply("Unexpected response payload", detail=type(response).__name__)

    for name, strategy in EXTRACTION_STRATEGIES:
        text = strategy(payload).strip()
        if text:
            logger.debug("Extracted reply via %s strategy", name)
            return text

    raise UpstreamEmptyReply(
        "Model response contained no text",
        detail=f"keys={sorted(payload)[:10]}",
    )


# ==============================================
# Text generation
# ==============================================

class TextGenerator:
    """
    Send the composed document and a user message to OpenAI.

    ``api_style`` selects the Responses API (``developer`` + ``user`` input)
    or Chat Completions (``system`` + ``user`` messages).
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        api_style: str | None = None,
        api_key: str | None = None,
        api_base: str | None = None,
        reasoning_effort: str | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self.model = model or core.OPENAI_MODEL
        self.api_style = api_style or core.OPENAI_API_STYLE
        self._api_key = api_key if api_key is not None else core.OPENAI_API_KEY
        self._api_base = api_base or core.OPENAI_API_BASE
        self.reasoning_effort = reasoning_effort if reasoning_effort is not None else core.OPENAI_REASONING_EFFORT
        self.temperature = temperature if temperature is not None else core.OPENAI_TEMPERATURE
        self.timeout = timeout if timeout is not None else core.OPENAI_TIMEOUT_S

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise ConfigurationMissing("OPENAI_API_KEY is not set; the chat endpoint cannot call OpenAI.")
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=f"{self._api_base.rstrip('/')}/v1",
                timeout=self.timeout,
            )
        return self._client

    async def _call(self, client: AsyncOpenAI, developer_text: str, user_text: str):
        if self.api_style == "chat":
            return await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": developer_text},
                    {"role": "user", "content": user_text},
                ],
                temperature=self.temperature,
            )

        kwargs: dict[str, Any] = {
            "model": self.model,
            "input": [
                {"role": "developer", "content": developer_text},
                {"role": "user", "content": user_text},
            ],
        }
        if self.reasoning_effort:
            kwargs["reasoning"] = {"effort": self.reasoning_effort}
        return await client.responses.create(**kwargs)

    async def generate(self, developer_text: str, user_text: str) -> str:
        """Return the model's reply text."""
        client = self._get_client()
        try:
            response = await self._call(client, developer_text, user_text)
        except openai.APIStatusError as exc:
            raise UpstreamServiceError(
                "OpenAI returned an error status",
                status=exc.status_code,
                detail=str(exc),
            ) from exc
        except (openai.APIConnectionError, openai.APITimeoutError) as exc:
            raise UpstreamUnavailable("OpenAI could not be reached", detail=str(exc)) from exc

        return extract_text(response)
