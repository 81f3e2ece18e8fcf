"""GroupMe bot API client (posting only) with tenacity retries."""

from __future__ import annotations

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

GROUPME_API_URL = "https://api.groupme.com/v3"

_TRANSIENT_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.PoolTimeout,
    httpx.ReadError,
    httpx.WriteError,
)


def _is_transient(exc: BaseException) -> bool:
    """Network errors, 5xx and 429 are retried; other HTTP errors are not."""
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status == 429
    return False


# Default retry: 4 attempts, exponential backoff 1–10s, retry on transient errors
DEFAULT_RETRY = retry(
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)


class GroupMeClient:
    """Async client for the GroupMe bots API.

    Bot post endpoint: POST /bots/post
    Body: { bot_id, text }
    Response: 202 Accepted, empty body.
    """

    def __init__(
        self,
        base_url: str = GROUPME_API_URL,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @DEFAULT_RETRY
    async def post_bot_message(self, bot_id: str, text: str) -> None:
        """Post text to the group the bot belongs to. Raises httpx errors on failure."""
        url = f"{self._base_url}/bots/post"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(url, json={"bot_id": bot_id, "text": text})
            resp.raise_for_status()
