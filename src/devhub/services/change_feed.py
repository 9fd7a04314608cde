"""In-process publish/subscribe of row change events.

Services publish an event after a mutation commits; subscribers watch one
table filtered on a single foreign-key value (for example the comments of one
post) and receive each ``(op, row_id)`` at most once.

Publishing is thread-safe: service code runs in FastAPI's worker threads while
subscribers consume from the event loop that created them.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections import OrderedDict
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

OP_INSERT = "INSERT"
OP_UPDATE = "UPDATE"
OP_DELETE = "DELETE"

_SEEN_LIMIT = 1024


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    op: str
    row_id: str
    keys: Mapping[str, str] = field(default_factory=dict)
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def identity(self) -> tuple[str, str]:
        return (self.op, self.row_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "op": self.op,
            "row_id": self.row_id,
            "keys": dict(self.keys),
            "payload": dict(self.payload),
        }


def format_sse(event: ChangeEvent) -> str:
    """Format an event as a Server-Sent Events message."""
    data = json.dumps(event.to_dict(), default=str)
    return f"event: {event.table}\nid: {event.op}:{event.row_id}\ndata: {data}\n\n"


def format_heartbeat() -> str:
    return f": heartbeat {datetime.now(UTC).isoformat()}\n\n"


class FeedSubscription:
    """One subscriber's filtered, de-duplicated view of the feed."""

    def __init__(
        self,
        feed: ChangeFeed,
        table: str,
        key: str,
        value: str,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._feed = feed
        self.table = table
        self.key = key
        self.value = value
        self._loop = loop
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue()
        self._seen: OrderedDict[tuple[str, str], None] = OrderedDict()
        self._seen_lock = threading.Lock()
        self.closed = False

    def matches(self, event: ChangeEvent) -> bool:
        return event.table == self.table and event.keys.get(self.key) == self.value

    def deliver(self, event: ChangeEvent) -> bool:
        """Queue an event unless this subscription has already seen it."""
        with self._seen_lock:
            if self.closed or event.identity in self._seen:
                return False
            self._seen[event.identity] = None
            while len(self._seen) > _SEEN_LIMIT:
                self._seen.popitem(last=False)
        self._put(event)
        return True

    def _put(self, item: ChangeEvent | None) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # The owning loop has already shut down.
            logger.debug("Dropping change event for closed loop")

    async def get(self, timeout: float | None = None) -> ChangeEvent | None:
        """Wait for the next event; ``None`` on timeout or once closed."""
        if self.closed and self._queue.empty():
            return None
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except TimeoutError:
            return None

    def close(self) -> None:
        with self._seen_lock:
            if self.closed:
                return
            self.closed = True
        self._feed._remove(self)
        self._put(None)

    def __enter__(self) -> FeedSubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event


class ChangeFeed:
    """Fan change events out to matching subscriptions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[FeedSubscription] = []
        self.closed = False

    def subscribe(self, table: str, key: str, value: str) -> FeedSubscription:
        """Subscribe from inside a running event loop."""
        if self.closed:
            raise RuntimeError("Change feed is closed")
        subscription = FeedSubscription(self, table, key, value, asyncio.get_running_loop())
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s where %s=%s", table, key, value)
        return subscription

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to every matching subscription; return how many received it."""
        with self._lock:
            targets = [sub for sub in self._subscriptions if sub.matches(event)]
        return sum(1 for sub in targets if sub.deliver(event))

    def _remove(self, subscription: FeedSubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def close(self) -> None:
        self.closed = True
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.close()


async def stream(
    subscription: FeedSubscription,
    heartbeat_seconds: float,
    is_disconnected: Any = None,
) -> AsyncIterator[str]:
    """Yield SSE frames for a subscription, with keepalive comments while idle."""
    try:
        while not subscription.closed:
            if is_disconnected is not None and await is_disconnected():
                break
            event = await subscription.get(timeout=heartbeat_seconds)
            if event is None:
                if subscription.closed:
                    break
                yield format_heartbeat()
                continue
            yield format_sse(event)
    finally:
        subscription.close()


_FEED: ChangeFeed | None = None


def get_change_feed() -> ChangeFeed:
    """Return the process-wide change feed, creating it on first use."""
    global _FEED
    if _FEED is None or _FEED.closed:
        _FEED = ChangeFeed()
    return _FEED


def publish(event: ChangeEvent) -> int:
    return get_change_feed().publish(event)
