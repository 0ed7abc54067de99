from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# LINE accepts at most five message objects per reply.
MAX_REPLY_MESSAGES = 5


@dataclass(frozen=True)
class InboundEvent:
    kind: str
    event_id: str | None
    user_id: str | None
    reply_token: str | None
    text: str = ""
    message_type: str = ""


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class OrchestratorResult:
    messages: list[dict[str, Any]] = field(default_factory=list)
    mutated: bool = False


def text_message(text: str) -> dict[str, str]:
    return {"type": "text", "text": text}


def clamp_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if len(messages) <= MAX_REPLY_MESSAGES:
        return messages
    # Charts come first; keep the trailing text reply.
    return messages[: MAX_REPLY_MESSAGES - 1] + messages[-1:]


def parse_event(raw: dict[str, Any]) -> InboundEvent | None:
    if raw.get("type") != "message":
        logger.info("Ignoring non-message webhook event type=%s", raw.get("type"))
        return None
    message = raw.get("message") if isinstance(raw.get("message"), dict) else {}
    source = raw.get("source") if isinstance(raw.get("source"), dict) else {}
    message_type = str(message.get("type") or "")
    event_id = message.get("id")
    text = message.get("text") if isinstance(message.get("text"), str) else ""
    if message_type == "text":
        kind = "text"
    elif message_type == "image":
        kind = "image"
    else:
        kind = "other"
    return InboundEvent(
        kind=kind,
        event_id=str(event_id) if event_id else None,
        user_id=source.get("userId") if isinstance(source.get("userId"), str) else None,
        reply_token=raw.get("replyToken") if isinstance(raw.get("replyToken"), str) else None,
        text=text,
        message_type=message_type,
    )


def parse_events(raw_events: list[Any]) -> list[InboundEvent]:
    events: list[InboundEvent] = []
    for raw in raw_events:
        if not isinstance(raw, dict):
            logger.warning("Dropping malformed webhook event: %r", type(raw).__name__)
            continue
        event = parse_event(raw)
        if event is not None:
            events.append(event)
    return events
