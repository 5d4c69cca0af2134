"""HTTP outcome mapping of the chat-completions adapter."""

import json

import httpx
import pytest

from casegen.core.profiles import TaskProfile
from casegen.core.types import CompletionPayload
from casegen.exceptions import UpstreamError, UpstreamThrottled, UpstreamTimeout
from casegen.pipeline.adapters import ChatCompletionsAdapter, CompletionAdapter
from casegen.pipeline.adapters.chat_completions import parse_retry_after

PAYLOAD = CompletionPayload(
    model="test-model",
    system="sys",
    user="usr",
    temperature=0.3,
    max_tokens=100,
    top_p=0.9,
    frequency_penalty=0.0,
    presence_penalty=0.0,
    profile=TaskProfile.SCENARIO,
)


def _adapter(handler) -> ChatCompletionsAdapter:
    return ChatCompletionsAdapter(
        api_key="secret-key",
        base_url="https://llm.example/v1",
        timeout_s=5,
        transport=httpx.MockTransport(handler),
    )


def _reply(content, status=200):
    return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})


@pytest.mark.asyncio
async def test_successful_reply_returns_content():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return _reply('{"ok": true}')

    adapter = _adapter(handler)
    try:
        assert await adapter.complete(PAYLOAD) == '{"ok": true}'
    finally:
        await adapter.aclose()

    assert seen["url"] == "https://llm.example/v1/chat/completions"
    assert seen["auth"] == "Bearer secret-key"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["messages"][0] == {"role": "system", "content": "sys"}


@pytest.mark.asyncio
async def test_429_maps_to_throttled_with_retry_after():
    adapter = _adapter(lambda request: httpx.Response(429, headers={"Retry-After": "12"}))

    with pytest.raises(UpstreamThrottled) as exc_info:
        await adapter.complete(PAYLOAD)
    await adapter.aclose()

    assert exc_info.value.retry_after_s == 12.0


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 500, 503])
async def test_other_errors_map_to_upstream_error(status):
    adapter = _adapter(lambda request: httpx.Response(status, text="detail"))

    with pytest.raises(UpstreamError) as exc_info:
        await adapter.complete(PAYLOAD)
    await adapter.aclose()

    assert exc_info.value.status == status
    assert not isinstance(exc_info.value, UpstreamTimeout)
    assert "detail" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_timeout_maps_to_upstream_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    adapter = _adapter(handler)
    with pytest.raises(UpstreamTimeout):
        await adapter.complete(PAYLOAD)
    await adapter.aclose()


@pytest.mark.asyncio
async def test_transport_failure_maps_to_status_none():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    adapter = _adapter(handler)
    with pytest.raises(UpstreamError) as exc_info:
        await adapter.complete(PAYLOAD)
    await adapter.aclose()

    assert exc_info.value.status is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": {}}]}),
        httpx.Response(200, json={"choices": [{"message": {"content": None}}]}),
    ],
)
async def test_malformed_envelope_maps_to_upstream_error(response):
    adapter = _adapter(lambda request: response)

    with pytest.raises(UpstreamError) as exc_info:
        await adapter.complete(PAYLOAD)
    await adapter.aclose()

    assert exc_info.value.status == 200


@pytest.mark.unit
def test_adapter_satisfies_protocol():
    adapter = _adapter(lambda request: _reply("{}"))

    assert isinstance(adapter, CompletionAdapter)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("header", "expected"),
    [(None, None), ("", None), ("30", 30.0), ("-5", 0.0), ("soon", None)],
)
def test_parse_retry_after(header, expected):
    assert parse_retry_after(header) == expected


@pytest.mark.unit
def test_parse_retry_after_http_date_in_past_is_zero():
    assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0
