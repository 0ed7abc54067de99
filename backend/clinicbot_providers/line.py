from __future__ import annotations

import logging
from typing import Any

import httpx

from clinicbot_core.errors import DispatchError, UpstreamError

from .ai import provider_error_message

logger = logging.getLogger(__name__)


class LineMessagingClient:
    """Thin client for the two LINE Messaging API calls the bot makes."""

    def __init__(
        self,
        *,
        access_token: str,
        api_base: str = "https://api.line.me/v2/bot",
        data_api_base: str = "https://api-data.line.me/v2/bot",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.api_base = api_base.rstrip("/")
        self.data_api_base = data_api_base.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds, connect=5.0),
            transport=self.transport,
        )

    async def reply(self, reply_token: str, messages: list[dict[str, Any]]) -> None:
        if not self.access_token:
            raise DispatchError("LINE channel access token is not configured.")
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.api_base}/message/reply",
                    headers=self._headers(),
                    json={"replyToken": reply_token, "messages": messages},
                )
        except httpx.HTTPError as exc:
            raise DispatchError(f"Reply request failed: {exc}") from exc
        if response.status_code >= 400:
            raise DispatchError(f"Reply rejected ({response.status_code}): {provider_error_message(response)}")

    async def get_content(self, message_id: str) -> bytes:
        if not self.access_token:
            raise UpstreamError("LINE channel access token is not configured.")
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.data_api_base}/message/{message_id}/content",
                    headers={"Authorization": f"Bearer {self.access_token}"},
                )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Content download failed: {exc}") from exc
        if response.status_code >= 400:
            raise UpstreamError(f"Content download rejected ({response.status_code})")
        if not response.content:
            raise UpstreamError("Content download returned no bytes")
        logger.debug("Downloaded %d bytes for message %s", len(response.content), message_id)
        return response.content
