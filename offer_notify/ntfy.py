"""
ntfy notification client.

Publishes notifications to an ntfy topic over HTTP, using
basic authentication and ntfy's header-based message fields.
"""

import asyncio
import base64
import logging

import aiohttp

from offer_notify.config import NtfyConfig
from offer_notify.exceptions import NotifyError
from offer_notify.models import Notification

logger = logging.getLogger(__name__)


def encode_header_value(value: str) -> str:
    """
    Make a header value safe for HTTP transport.

    Non-ASCII values are sent as an RFC 2047 encoded word, which
    ntfy decodes server-side.

    Parameters
    ----------
    value : str
        Raw header value.

    Returns
    -------
    str
        The value itself if ASCII, otherwise its encoded-word form.
    """
    value = " ".join(value.splitlines())
    value = "".join(ch for ch in value if ch.isprintable())
    if value.isascii():
        return value
    encoded = base64.b64encode(value.encode("utf-8")).decode("ascii")
    return f"=?UTF-8?B?{encoded}?="


class NtfyNotifier:
    """
    ntfy notification client.

    Sends one POST request per notification to the configured topic.
    A single attempt is made; failures are raised as NotifyError.
    """

    def __init__(self, config: NtfyConfig, timeout: int = 30):
        """
        Initialize the ntfy notifier.

        Parameters
        ----------
        config : NtfyConfig
            ntfy configuration with topic URL and credentials.
        timeout : int
            HTTP request timeout in seconds.
        """
        self.config = config
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    def _build_auth(self) -> aiohttp.BasicAuth | None:
        if not self.config.username and not self.config.password:
            return None
        return aiohttp.BasicAuth(self.config.username, self.config.password)

    def _build_headers(self, notification: Notification) -> dict[str, str]:
        headers = {"Title": encode_header_value(notification.title)}
        if notification.link is not None:
            if notification.link.isprintable():
                headers["Click"] = notification.link
            else:
                logger.warning(
                    "Dropping click target with control characters: %r",
                    notification.link[:100],
                )
        return headers

    async def send(self, notification: Notification) -> None:
        """
        Publish a notification to the ntfy topic.

        Parameters
        ----------
        notification : Notification
            The notification to publish.

        Raises
        ------
        NotifyError
            If the request fails or ntfy does not answer with HTTP 200.
        """
        session = await self._get_session()

        try:
            async with session.post(
                self.config.topic_url,
                data=notification.body.encode("utf-8"),
                headers=self._build_headers(notification),
                auth=self._build_auth(),
            ) as response:
                if response.status != 200:
                    raise NotifyError(
                        f"failed to send notification: {response.status} {response.reason}"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError: aiohttp rejects malformed URLs and header values
            raise NotifyError(f"failed to send notification: {e}") from e

        logger.info("Sent notification for: %s", notification.title[:50])

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
            logger.debug("ntfy HTTP session closed")

    async def __aenter__(self) -> "NtfyNotifier":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
