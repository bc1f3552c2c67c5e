"""Collection change notifications for the in-process document store.

Provides a pub/sub mechanism keyed by collection path so that ``listen``
callers (and the SSE chat stream built on top of them) see writes in real time.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

logger = logging.getLogger(__name__)


@dataclass
class StoreEvent:
    """Event data for a document change."""

    event_type: str  # "added", "modified", "removed"
    path: str  # collection path
    doc_id: str
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


class CollectionEventManager:
    """Manages subscriptions and event publishing per collection path."""

    def __init__(self) -> None:
        # Map collection path -> set of asyncio.Queue for each subscriber
        self._subscribers: dict[str, set[asyncio.Queue[StoreEvent]]] = defaultdict(set)
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def subscription(self, path: str) -> AsyncIterator[asyncio.Queue[StoreEvent]]:
        """Register a queue for ``path`` for the lifetime of the context.

        Registration happens before the body runs, so a caller can take an
        initial snapshot without missing writes that land in between.
        """
        queue: asyncio.Queue[StoreEvent] = asyncio.Queue()

        async with self._lock:
            self._subscribers[path].add(queue)
            logger.info(
                f"New subscriber for {path}. Total: {len(self._subscribers[path])}"
            )

        try:
            yield queue
        finally:
            async with self._lock:
                self._subscribers[path].discard(queue)
                logger.info(
                    f"Subscriber removed for {path}. "
                    f"Remaining: {len(self._subscribers[path])}"
                )
                if not self._subscribers[path]:
                    del self._subscribers[path]

    async def publish(self, path: str, event_type: str, doc_id: str) -> int:
        """Publish an event to all subscribers of a collection path.

        Returns:
            Number of subscribers notified
        """
        event = StoreEvent(event_type=event_type, path=path, doc_id=doc_id)

        async with self._lock:
            subscribers = self._subscribers.get(path, set()).copy()

        if not subscribers:
            logger.debug(f"No subscribers for {path}")
            return 0

        notified = 0
        for queue in subscribers:
            try:
                queue.put_nowait(event)
                notified += 1
            except asyncio.QueueFull:
                logger.warning(f"Queue full for subscriber of {path}")

        logger.debug(f"Published {event_type} to {notified} subscribers for {path}")
        return notified

    def get_subscriber_count(self, path: str) -> int:
        """Get the number of active subscribers for a collection path."""
        return len(self._subscribers.get(path, set()))
