from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Callable

logger = logging.getLogger(__name__)


class EventDeduplicator:
    """Seen-before cache for webhook message ids.

    Ids are remembered for ``ttl_seconds`` and at most ``max_entries`` are
    kept (oldest first out). LINE redelivers within minutes, so a bounded
    window keeps the at-most-once guarantee where it matters.

    ``should_process`` never awaits, so on a single event loop the check and
    the insert cannot interleave with another delivery of the same id.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max(1, int(max_entries))
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._seen: OrderedDict[str, float] = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, event_id: object) -> bool:
        if not isinstance(event_id, str):
            return False
        self._expire(self._clock())
        return event_id in self._seen

    def should_process(self, event_id: str | None) -> bool:
        if not event_id or not str(event_id).strip():
            logger.warning("Skipping webhook event without a message id")
            return False
        key = str(event_id)
        now = self._clock()
        self._expire(now)
        if key in self._seen:
            logger.debug("Duplicate event %s skipped", key)
            return False
        self._seen[key] = now
        while len(self._seen) > self.max_entries:
            self._seen.popitem(last=False)
        return True

    def _expire(self, now: float) -> None:
        if self.ttl_seconds <= 0:
            return
        cutoff = now - self.ttl_seconds
        while self._seen:
            oldest_id, seen_at = next(iter(self._seen.items()))
            if seen_at > cutoff:
                break
            del self._seen[oldest_id]
