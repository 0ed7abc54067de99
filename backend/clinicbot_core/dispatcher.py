from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Protocol

from .errors import DispatchError
from .models import clamp_messages

logger = logging.getLogger(__name__)


class ReplyClient(Protocol):
    async def reply(self, reply_token: str, messages: list[dict[str, Any]]) -> None: ...


class ReplyDispatcher:
    """Sends the final message set for an event, once per reply token.

    Failures of any kind are logged and swallowed: a reply token expires long
    before a retry could help, and one undeliverable reply must not stop the
    batch.
    """

    def __init__(self, client: ReplyClient, max_tracked_tokens: int = 10_000) -> None:
        self.client = client
        self.max_tracked_tokens = max(1, max_tracked_tokens)
        self._used_tokens: OrderedDict[str, None] = OrderedDict()

    def _claim(self, reply_token: str) -> bool:
        if reply_token in self._used_tokens:
            return False
        self._used_tokens[reply_token] = None
        while len(self._used_tokens) > self.max_tracked_tokens:
            self._used_tokens.popitem(last=False)
        return True

    async def send(self, reply_token: str | None, messages: list[dict[str, Any]]) -> bool:
        if not reply_token:
            logger.warning("No reply token on event; reply dropped")
            return False
        if not messages:
            logger.warning("Empty message set for reply token %s...; nothing sent", reply_token[:8])
            return False
        if not self._claim(reply_token):
            logger.warning("Reply token %s... already used; refusing second reply", reply_token[:8])
            return False
        messages = clamp_messages(messages)
        try:
            await self.client.reply(reply_token, messages)
        except DispatchError as exc:
            logger.warning("Reply delivery failed: %s", exc)
            return False
        except Exception:
            logger.exception("Unexpected error delivering reply for token %s...", reply_token[:8])
            return False
        logger.info("Reply sent (%d messages) for token %s...", len(messages), reply_token[:8])
        return True
