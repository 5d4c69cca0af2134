"""HTTP adapter for an OpenAI-compatible chat-completions endpoint."""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
import logging
from typing import TYPE_CHECKING, Any

import httpx

from casegen.exceptions import UpstreamError, UpstreamThrottled, UpstreamTimeout

if TYPE_CHECKING:
    from casegen.core.types import CompletionPayload

log = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "chat/completions"


def parse_retry_after(value: str | None) -> float | None:
    """Seconds from a Retry-After header (delta-seconds or HTTP-date)."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max(0.0, (when - datetime.now(UTC)).total_seconds())


class ChatCompletionsAdapter:
    """Posts payloads to `{base_url}/chat/completions` with a bearer credential.

    Outcome mapping:
        429 -> UpstreamThrottled (Retry-After honoured when present)
        other non-2xx -> UpstreamError(status)
        transport timeout -> UpstreamTimeout
        other transport failure -> UpstreamError(status=None)
        reply without choices[0].message.content -> UpstreamError(status)
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_s: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            transport=transport,
        )
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, payload: CompletionPayload) -> str:
        body = payload.to_request_body()
        try:
            response = await self._client.post(
                CHAT_COMPLETIONS_PATH, json=body, headers=self._headers
            )
        except httpx.TimeoutException as e:
            log.warning("Completion request timed out: %s", type(e).__name__)
            raise UpstreamTimeout() from e
        except httpx.HTTPError as e:
            log.warning("Completion request failed in transport: %s", type(e).__name__)
            raise UpstreamError(None) from e

        status = response.status_code
        if status == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            log.warning("Completion service throttled the request (retry_after=%s)", retry_after)
            raise UpstreamThrottled(retry_after_s=retry_after)
        if not response.is_success:
            log.warning("Completion service returned status %d", status)
            raise UpstreamError(status)

        return self._reply_text(response)

    def _reply_text(self, response: httpx.Response) -> str:
        try:
            envelope: Any = response.json()
            content = envelope["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            log.warning("Malformed completion envelope (status %d)", response.status_code)
            raise UpstreamError(response.status_code) from e
        if not isinstance(content, str):
            log.warning("Completion envelope has no text content")
            raise UpstreamError(response.status_code)
        return content

    async def aclose(self) -> None:
        await self._client.aclose()
