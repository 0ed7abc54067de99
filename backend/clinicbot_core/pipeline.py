from __future__ import annotations

import logging
from typing import Any

from memory import PatientRecord, PatientRecordStore, StorageError

from .dedup import EventDeduplicator
from .dispatcher import ReplyDispatcher
from .models import InboundEvent, text_message
from .orchestrator import FALLBACK_REPLY, ConversationOrchestrator

logger = logging.getLogger(__name__)


class EventPipeline:
    """Runs authenticated webhook events one after another.

    Per event: dedup, then load/orchestrate/save under the user's lock, then a
    single reply. A failing event is logged and never affects its siblings.
    """

    def __init__(
        self,
        *,
        dedup: EventDeduplicator,
        store: PatientRecordStore,
        orchestrator: ConversationOrchestrator,
        dispatcher: ReplyDispatcher,
    ) -> None:
        self.dedup = dedup
        self.store = store
        self.orchestrator = orchestrator
        self.dispatcher = dispatcher

    async def process_batch(self, events: list[InboundEvent]) -> None:
        for event in events:
            try:
                await self.process_event(event)
            except Exception:
                logger.exception("Unhandled failure processing event %s", event.event_id)

    async def process_event(self, event: InboundEvent) -> bool:
        if not self.dedup.should_process(event.event_id):
            return False
        try:
            messages = await self._build_reply(event)
        except Exception:
            logger.exception("Reply generation failed for event %s", event.event_id)
            messages = [text_message(FALLBACK_REPLY)]
        return await self.dispatcher.send(event.reply_token, messages)

    async def _build_reply(self, event: InboundEvent) -> list[dict[str, Any]]:
        if not event.user_id:
            logger.warning("Event %s has no user id; replying without a record", event.event_id)
            result = await self.orchestrator.handle(event, PatientRecord())
            return result.messages

        async with self.store.lock(event.user_id):
            persist = True
            try:
                record = await self.store.load(event.user_id)
            except StorageError as exc:
                logger.warning("Record load failed, continuing without persistence: %s", exc)
                record = PatientRecord()
                persist = False

            result = await self.orchestrator.handle(event, record)

            if persist and result.mutated:
                try:
                    await self.store.save(event.user_id, record)
                except StorageError as exc:
                    logger.warning("Record save failed: %s", exc)
        return result.messages
