"""Discord delivery over the REST API using httpx."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger

from wungus.config import DISCORD_API_BASE
from wungus.delivery.sink import DeliveryError

if TYPE_CHECKING:
    from wungus.config import Settings


# Message flag: do not render link previews for this message.
SUPPRESS_EMBEDS = 1 << 2

RECOVERABLE_STATUS = {429, 500, 502, 503, 504}

# Recoverable network error patterns
RECOVERABLE_ERRORS = {
    "Timed out",
    "Connection reset",
    "Connection refused",
    "Connection aborted",
    "Network is unreachable",
    "Host is unreachable",
    "Name or service not known",
    "Temporary failure in name resolution",
}


def _is_recoverable_error(err: Exception) -> bool:
    """Check if error is recoverable (rate limit, server or network) and worth retrying."""
    if isinstance(err, httpx.HTTPStatusError):
        return err.response.status_code in RECOVERABLE_STATUS
    if isinstance(err, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    err_str = str(err).lower()
    return any(pattern.lower() in err_str for pattern in RECOVERABLE_ERRORS)


def _retry_delay(err: Exception, base_delay: float, attempt: int) -> float:
    """Backoff for the next attempt; honours Discord's ``retry_after`` on 429."""
    if isinstance(err, httpx.HTTPStatusError) and err.response.status_code == 429:
        try:
            retry_after = err.response.json().get("retry_after")
        except ValueError:
            retry_after = None
        if isinstance(retry_after, (int, float)):
            return float(retry_after)
    return base_delay * (2 ** attempt)


async def _post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str],
    payload: dict[str, Any] | None = None,
    retries: int = 3,
    base_delay: float = 1.0,
) -> httpx.Response:
    """POST with retry logic and exponential backoff."""
    retries = max(1, retries)
    last_error: Exception | None = None
    for attempt in range(retries):
        try:
            response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            last_error = e
            if not _is_recoverable_error(e) or attempt == retries - 1:
                raise DeliveryError(f"POST {url} failed: {e}") from e
            delay = _retry_delay(e, base_delay, attempt)
            logger.warning(f"Discord send failed (attempt {attempt + 1}/{retries}), retrying in {delay}s: {e}")
            await asyncio.sleep(delay)

    raise DeliveryError(f"POST {url} failed: {last_error}") from last_error


class DiscordSink:
    """
    Send segments to one Discord channel as a reply chain.

    The first segment replies to *reply_to* (when given), each following
    segment replies to the one before it, so a long answer reads as a thread
    under the question.
    """

    def __init__(
        self,
        channel_id: str,
        token: str,
        *,
        reply_to: str | None = None,
        api_base: str = DISCORD_API_BASE,
        retries: int = 3,
        base_delay: float = 1.0,
        typing_interval: float = 5.0,
        suppress_embeds: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("Discord bot token not configured")
        self.channel_id = channel_id
        self.api_base = api_base.rstrip("/")
        self.retries = retries
        self.base_delay = base_delay
        self.typing_interval = typing_interval
        self.suppress_embeds = suppress_embeds
        self.sent_ids: list[str] = []
        self._token = token
        self._last_message_id = reply_to
        self._client = client or httpx.AsyncClient(timeout=15)
        self._owns_client = client is None
        self._typing_task: asyncio.Task | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        channel_id: str,
        *,
        reply_to: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> DiscordSink:
        return cls(
            channel_id,
            settings.discord_token or "",
            reply_to=reply_to,
            api_base=settings.discord_api_base,
            retries=settings.send_retries,
            base_delay=settings.retry_base_delay,
            typing_interval=settings.typing_interval,
            suppress_embeds=settings.suppress_embeds,
            client=client,
        )

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bot {self._token}", "Content-Type": "application/json"}

    def _url(self, path: str) -> str:
        return f"{self.api_base}/channels/{self.channel_id}/{path}"

    async def send(self, segment: str) -> None:
        """Post *segment* as the next message of the reply chain."""
        if not segment.strip():
            logger.debug(f"Skipping blank segment for channel {self.channel_id}")
            return

        payload: dict[str, Any] = {"content": segment}
        if self.suppress_embeds:
            payload["flags"] = SUPPRESS_EMBEDS
        if self._last_message_id:
            payload["message_reference"] = {
                "message_id": self._last_message_id,
                "fail_if_not_exists": False,
            }

        response = await _post_with_retry(
            self._client,
            self._url("messages"),
            headers=self._headers,
            payload=payload,
            retries=self.retries,
            base_delay=self.base_delay,
        )
        message_id = response.json().get("id")
        if message_id:
            self._last_message_id = message_id
            self.sent_ids.append(message_id)

    async def start_typing(self) -> None:
        """Start sending the typing indicator until :meth:`stop_typing`."""
        # Cancel any existing typing task for this channel
        await self.stop_typing()
        self._typing_task = asyncio.create_task(self._typing_loop())

    async def stop_typing(self) -> None:
        task = self._typing_task
        self._typing_task = None
        if task and not task.done():
            task.cancel()

    async def _typing_loop(self) -> None:
        """Repeatedly trigger typing; Discord expires each one after ~10s."""
        try:
            while True:
                response = await self._client.post(self._url("typing"), headers=self._headers)
                response.raise_for_status()
                await asyncio.sleep(self.typing_interval)
        except asyncio.CancelledError:
            pass
        except httpx.HTTPError as e:
            logger.debug(f"Typing indicator stopped for {self.channel_id}: {e}")

    async def aclose(self) -> None:
        await self.stop_typing()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> DiscordSink:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
