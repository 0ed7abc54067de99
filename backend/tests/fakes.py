from __future__ import annotations

import asyncio
from typing import Any


class FakeChatBackend:
    def __init__(
        self,
        name: str = "fake",
        replies: list[str] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.replies = list(replies or ["Thanks for sharing!"])
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def complete(self, messages: list[dict[str, Any]], *, temperature: float | None = None) -> str:
        self.calls.append({"messages": messages, "temperature": temperature})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.replies[min(len(self.calls), len(self.replies)) - 1]


class FakeLineClient:
    def __init__(
        self,
        content: bytes = b"\xff\xd8\xff\xe0fake-jpeg-bytes",
        reply_error: Exception | None = None,
        content_error: Exception | None = None,
    ) -> None:
        self.content = content
        self.reply_error = reply_error
        self.content_error = content_error
        self.replies: list[dict[str, Any]] = []
        self.content_requests: list[str] = []

    async def reply(self, reply_token: str, messages: list[dict[str, Any]]) -> None:
        self.replies.append({"replyToken": reply_token, "messages": messages})
        if self.reply_error is not None:
            raise self.reply_error

    async def get_content(self, message_id: str) -> bytes:
        self.content_requests.append(message_id)
        if self.content_error is not None:
            raise self.content_error
        return self.content


def message_event(
    message_id: str,
    *,
    text: str | None = "hello",
    user_id: str | None = "U-alice",
    reply_token: str | None = None,
    message_type: str = "text",
) -> dict[str, Any]:
    message: dict[str, Any] = {"id": message_id, "type": message_type}
    if text is not None and message_type == "text":
        message["text"] = text
    event: dict[str, Any] = {
        "type": "message",
        "message": message,
        "replyToken": reply_token or f"reply-{message_id}",
    }
    if user_id is not None:
        event["source"] = {"type": "user", "userId": user_id}
    return event

