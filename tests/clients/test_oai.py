import types

import httpx
import openai
import pytest

from lucius.clients.oai import TextGenerator, extract_text
from lucius.errors import (
    ConfigurationMissing,
    UpstreamEmptyReply,
    UpstreamServiceError,
    UpstreamUnavailable,
)


class _Dumpable:
    def __init__(self, payload):
        self._payload = payload

    def model_dump(self):
        return self._payload


class _FakeOpenAI:
    """Stands in for AsyncOpenAI; records the last request."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.responses = types.SimpleNamespace(create=self._create)
        self.chat = types.SimpleNamespace(completions=types.SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


# ---------------------------------------------------------------- extraction


def test_extracts_flat_output_text():
    assert extract_text({"output_text": "  Hello there.  "}) == "Hello there."


def test_extracts_output_message_blocks():
    payload = {
        "output": [
            {"type": "reasoning", "summary": []},
            {
                "type": "message",
                "content": [
                    {"type": "output_text", "text": "Line one"},
                    {"type": "refusal", "refusal": "nope"},
                    {"type": "text", "text": "Line two"},
                ],
            },
        ]
    }

    assert extract_text(_Dumpable(payload)) == "Line one\nLine two"


def test_extracts_chat_choice_content():
    payload = {"choices": [{"message": {"role": "assistant", "content": "From chat."}}]}

    assert extract_text(payload) == "From chat."


def test_flat_text_wins_over_blocks():
    payload = {
        "output_text": "flat",
        "output": [{"type": "message", "content": [{"type": "output_text", "text": "blocks"}]}],
    }

    assert extract_text(payload) == "flat"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"output_text": "   "},
        {"output": [{"type": "message", "content": []}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": "plain string"}]},
        {"choices": [{"message": ["not", "a", "dict"]}]},
        ["not", "a", "dict"],
    ],
)
def test_no_usable_text_is_an_empty_reply(payload):
    with pytest.raises(UpstreamEmptyReply):
        extract_text(payload)


# ---------------------------------------------------------------- generator


@pytest.mark.asyncio
async def test_responses_style_sends_developer_and_user_input():
    client = _FakeOpenAI(response=_Dumpable({"output_text": "Hi!"}))
    gen = TextGenerator(client=client, model="m1", api_style="responses", reasoning_effort="low")

    reply = await gen.generate("DOC", "hello")

    assert reply == "Hi!"
    (call,) = client.calls
    assert call["model"] == "m1"
    assert call["input"] == [
        {"role": "developer", "content": "DOC"},
        {"role": "user", "content": "hello"},
    ]
    assert call["reasoning"] == {"effort": "low"}


@pytest.mark.asyncio
async def test_chat_style_sends_system_message_and_temperature():
    client = _FakeOpenAI(response={"choices": [{"message": {"content": "ok"}}]})
    gen = TextGenerator(client=client, model="m2", api_style="chat", temperature=0.3)

    assert await gen.generate("DOC", "hello") == "ok"
    (call,) = client.calls
    assert call["messages"][0] == {"role": "system", "content": "DOC"}
    assert call["temperature"] == 0.3


@pytest.mark.asyncio
async def test_status_error_keeps_upstream_status():
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    error = openai.APIStatusError(
        "rate limited", response=httpx.Response(429, request=request), body=None
    )
    gen = TextGenerator(client=_FakeOpenAI(error=error), model="m")

    with pytest.raises(UpstreamServiceError) as excinfo:
        await gen.generate("DOC", "hello")

    assert excinfo.value.status == 429
    assert not isinstance(excinfo.value, UpstreamUnavailable)


@pytest.mark.asyncio
async def test_connection_error_is_unavailable():
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    gen = TextGenerator(client=_FakeOpenAI(error=openai.APIConnectionError(request=request)), model="m")

    with pytest.raises(UpstreamUnavailable):
        await gen.generate("DOC", "hello")


@pytest.mark.asyncio
async def test_reachable_but_empty_is_distinct_from_unreachable():
    gen = TextGenerator(client=_FakeOpenAI(response={"output": []}), model="m")

    with pytest.raises(UpstreamEmptyReply) as excinfo:
        await gen.generate("DOC", "hello")

    assert not isinstance(excinfo.value, UpstreamUnavailable)


@pytest.mark.asyncio
async def test_missing_api_key_is_a_configuration_error():
    gen = TextGenerator(api_key="", model="m")

    with pytest.raises(ConfigurationMissing):
        await gen.generate("DOC", "hello")
