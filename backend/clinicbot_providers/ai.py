from __future__ import annotations

import logging
from typing import Any

import httpx

from clinicbot_core.errors import UpstreamError

logger = logging.getLogger(__name__)


def provider_error_message(response: httpx.Response) -> str:
    message = response.text.strip()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {response.status_code}"


def coerce_completion_text(response_json: dict[str, Any]) -> str:
    choices = response_json.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                text_value = item.get("text")
                if isinstance(text_value, str):
                    parts.append(text_value)
        return "\n".join(parts)
    return ""


def coerce_anthropic_text(response_json: dict[str, Any]) -> str:
    content = response_json.get("content")
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for item in content:
        if not isinstance(item, dict) or item.get("type") != "text":
            continue
        text_value = item.get("text")
        if isinstance(text_value, str) and text_value.strip():
            parts.append(text_value.strip())
    return "\n".join(parts).strip()


async def _post_json(
    *,
    provider: str,
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None,
) -> dict[str, Any]:
    logger.debug("%s request to %s", provider, url)
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=8.0),
            transport=transport,
        ) as client:
            response = await client.post(url, headers=headers, json=payload)
    except httpx.TimeoutException as exc:
        raise UpstreamError(f"{provider} timed out") from exc
    except httpx.HTTPError as exc:
        raise UpstreamError(f"{provider} request failed: {exc}") from exc
    if response.status_code >= 400:
        raise UpstreamError(f"{provider} returned {response.status_code}: {provider_error_message(response)}")
    try:
        body = response.json()
    except ValueError as exc:
        raise UpstreamError(f"{provider} returned a non-JSON body") from exc
    if not isinstance(body, dict):
        raise UpstreamError(f"{provider} returned an unexpected payload")
    return body


class OpenAIChatBackend:
    """OpenAI-compatible ``/chat/completions`` client. Also used for vision."""

    name = "openai"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 25.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def complete(self, messages: list[dict[str, Any]], *, temperature: float | None = None) -> str:
        if not self.api_key:
            raise UpstreamError("OpenAI API key is not configured.")
        payload: dict[str, Any] = {"model": self.model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        body = await _post_json(
            provider=self.name,
            url=f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            payload=payload,
            timeout_seconds=self.timeout_seconds,
            transport=self.transport,
        )
        text = coerce_completion_text(body).strip()
        if not text:
            raise UpstreamError(f"{self.name} returned an empty completion")
        return text


class AnthropicChatBackend:
    name = "anthropic"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://api.anthropic.com/v1",
        api_version: str = "2023-06-01",
        max_tokens: int = 700,
        timeout_seconds: float = 25.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def complete(self, messages: list[dict[str, Any]], *, temperature: float | None = None) -> str:
        if not self.api_key:
            raise UpstreamError("Anthropic API key is not configured.")
        system_parts = [str(m.get("content") or "") for m in messages if m.get("role") == "system"]
        turns = [
            {"role": m["role"], "content": m.get("content") or ""}
            for m in messages
            if m.get("role") in {"user", "assistant"}
        ]
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": turns,
        }
        if system_parts:
            payload["system"] = "\n\n".join(part for part in system_parts if part)
        if temperature is not None:
            payload["temperature"] = temperature
        body = await _post_json(
            provider=self.name,
            url=f"{self.base_url}/messages",
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": self.api_version,
                "Content-Type": "application/json",
            },
            payload=payload,
            timeout_seconds=self.timeout_seconds,
            transport=self.transport,
        )
        text = coerce_anthropic_text(body)
        if not text:
            raise UpstreamError(f"{self.name} returned an empty completion")
        return text
