"""Change notifier backends used to fan out mutations to subscribed viewers.

Publishing is fire-and-forget: a transport failure is logged and counted but
never propagated into the mutation that produced the event. Viewers reconcile
by re-fetching on reconnect, so a dropped event only delays a refresh.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict, deque
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lessonhub.core.config import Settings, get_settings
from lessonhub.core.database import after_commit, get_db_session
from lessonhub.core.metrics import record_change_event
from lessonhub.shared.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ChangeEvent:
    topic: str
    event: str
    payload: dict[str, Any]
    published_at: datetime = field(default_factory=utc_now)

    def to_message(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "event": self.event,
            "payload": self.payload,
            "published_at": self.published_at.isoformat(),
        }


class ChangeNotifier(Protocol):
    """Common contract for notifier backends."""

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        """Publish one event to subscribers of ``topic``."""


class NoopChangeNotifier:
    """Notifier that drops every event."""

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        return None


class InMemoryChangeNotifier:
    """Single-process fan-out with per-subscriber queues."""

    def __init__(self, *, history_size: int = 1000, queue_size: int = 100) -> None:
        self.history: deque[ChangeEvent] = deque(maxlen=history_size)
        self._queue_size = queue_size
        self._subscribers: dict[str, set[asyncio.Queue[ChangeEvent]]] = defaultdict(set)

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        change = ChangeEvent(topic=topic, event=event, payload=payload)
        self.history.append(change)
        for queue in list(self._subscribers.get(topic, ())):
            try:
                queue.put_nowait(change)
            except asyncio.QueueFull:
                logger.warning("Dropping %s for slow subscriber on %s", event, topic)
                record_change_event("dropped")
        record_change_event("published")

    @asynccontextmanager
    async def subscribe(self, topic: str) -> AsyncIterator[asyncio.Queue[ChangeEvent]]:
        """Receive events for ``topic`` while the context is open."""
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers[topic].add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(topic)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[topic]

    def events_for(self, topic: str) -> list[ChangeEvent]:
        return [change for change in self.history if change.topic == topic]


class RedisChangeNotifier:
    """Redis pub/sub notifier shared across app instances."""

    def __init__(self, *, redis_url: str, namespace: str) -> None:
        self._redis_url = redis_url
        self._namespace = namespace
        self._init_lock = asyncio.Lock()
        self._client: Any | None = None

    def _channel(self, topic: str) -> str:
        return f"{self._namespace}:{topic}"

    async def _ensure_initialized(self) -> None:
        if self._client is not None:
            return

        async with self._init_lock:
            if self._client is None:
                from redis.asyncio import from_url

                self._client = from_url(
                    self._redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        change = ChangeEvent(topic=topic, event=event, payload=payload)
        channel = self._channel(topic)
        try:
            await self._ensure_initialized()
            receivers = await self._client.publish(channel, json.dumps(change.to_message(), default=str))
        except Exception:
            logger.warning("Failed to publish %s to %s", event, channel, exc_info=True)
            record_change_event("failed")
            return
        logger.debug("Published %s to %s (subscribers: %s)", event, channel, receivers)
        record_change_event("published")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class DeferredChangeNotifier:
    """Queue events for one unit of work and publish them after commit."""

    def __init__(self, notifier: ChangeNotifier) -> None:
        self.notifier = notifier
        self.pending: list[ChangeEvent] = []

    async def publish(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        self.pending.append(ChangeEvent(topic=topic, event=event, payload=payload))

    async def flush(self) -> int:
        """Hand queued events to the transport; return how many were delivered."""
        pending, self.pending = self.pending, []
        delivered = 0
        for change in pending:
            try:
                await self.notifier.publish(change.topic, change.event, change.payload)
            except Exception:
                logger.warning("Change notifier failed for %s on %s", change.event, change.topic, exc_info=True)
                record_change_event("failed")
                continue
            delivered += 1
        return delivered

    def discard(self) -> None:
        self.pending.clear()


_change_notifier: ChangeNotifier | None = None
_change_notifier_signature: tuple[str, str | None, str] | None = None


def _build_change_notifier(settings: Settings) -> ChangeNotifier:
    if settings.realtime_backend == "redis":
        return RedisChangeNotifier(
            redis_url=settings.redis_url or "",
            namespace=settings.realtime_redis_namespace,
        )
    if settings.realtime_backend == "noop":
        return NoopChangeNotifier()
    return InMemoryChangeNotifier()


def get_change_notifier() -> ChangeNotifier:
    """Return shared notifier instance for configured backend."""
    global _change_notifier, _change_notifier_signature
    settings = get_settings()
    signature = (
        settings.realtime_backend,
        settings.redis_url,
        settings.realtime_redis_namespace,
    )
    if _change_notifier is None or _change_notifier_signature != signature:
        _change_notifier = _build_change_notifier(settings)
        _change_notifier_signature = signature
    return _change_notifier


async def close_change_notifier() -> None:
    """Release transport resources on shutdown."""
    global _change_notifier, _change_notifier_signature
    close: Callable[[], Any] | None = getattr(_change_notifier, "close", None)
    if close is not None:
        await close()
    _change_notifier = None
    _change_notifier_signature = None


async def get_request_notifier(
    session: AsyncSession = Depends(get_db_session),
) -> DeferredChangeNotifier:
    """Dependency provider: per-request notifier flushed after commit."""
    deferred = DeferredChangeNotifier(get_change_notifier())
    after_commit(session, deferred.flush)
    return deferred
