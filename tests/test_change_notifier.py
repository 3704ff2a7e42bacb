from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest

from lessonhub.core.database import after_commit, discard_after_commit, run_after_commit
from lessonhub.modules.realtime import service as realtime_module
from lessonhub.modules.realtime import topics
from lessonhub.modules.realtime.service import (
    DeferredChangeNotifier,
    InMemoryChangeNotifier,
    NoopChangeNotifier,
    RedisChangeNotifier,
)


class FailingNotifier:
    def __init__(self, fail_on: str) -> None:
        self.fail_on = fail_on
        self.delivered: list[tuple[str, str]] = []

    async def publish(self, topic: str, event: str, payload: dict) -> None:
        if event == self.fail_on:
            raise ConnectionError("transport down")
        self.delivered.append((topic, event))


class FakeRedisClient:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.published: list[tuple[str, str]] = []
        self.closed = False

    async def publish(self, channel: str, message: str) -> int:
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.published.append((channel, message))
        return 1

    async def aclose(self) -> None:
        self.closed = True


def test_topic_names_follow_contract() -> None:
    teacher_id = "11111111-1111-1111-1111-111111111111"

    assert topics.user_topic(teacher_id) == f"user:{teacher_id}"
    assert topics.teacher_bookings_topic(teacher_id) == f"teacher-bookings:{teacher_id}"
    assert topics.student_bookings_topic(teacher_id) == f"student-bookings:{teacher_id}"
    assert topics.availability_topics(teacher_id) == (
        f"teacher-availability:{teacher_id}",
        f"availability-for-teacher:{teacher_id}",
    )


@pytest.mark.asyncio
async def test_in_memory_notifier_fans_out_to_topic_subscribers() -> None:
    notifier = InMemoryChangeNotifier()

    async with notifier.subscribe("user:a") as queue_a, notifier.subscribe("user:b") as queue_b:
        await notifier.publish("user:a", "booking-status-changed", {"id": "1"})
        change = await asyncio.wait_for(queue_a.get(), timeout=1)

        assert change.event == "booking-status-changed"
        assert change.payload == {"id": "1"}
        assert queue_b.empty()

    await notifier.publish("user:a", "booking-updated", {})
    assert [item.event for item in notifier.events_for("user:a")] == [
        "booking-status-changed",
        "booking-updated",
    ]


@pytest.mark.asyncio
async def test_in_memory_notifier_drops_events_for_full_queue() -> None:
    notifier = InMemoryChangeNotifier(queue_size=1)

    async with notifier.subscribe("t") as queue:
        await notifier.publish("t", "first", {})
        await notifier.publish("t", "second", {})

        assert queue.qsize() == 1
        assert (await queue.get()).event == "first"
    assert len(notifier.history) == 2


@pytest.mark.asyncio
async def test_deferred_notifier_publishes_only_on_flush() -> None:
    inner = InMemoryChangeNotifier()
    deferred = DeferredChangeNotifier(inner)

    await deferred.publish("t", "booking-updated", {"n": 1})
    await deferred.publish("t", "booking-deleted", {"n": 2})
    assert len(inner.history) == 0

    delivered = await deferred.flush()

    assert delivered == 2
    assert [item.event for item in inner.history] == ["booking-updated", "booking-deleted"]
    assert deferred.pending == []
    assert await deferred.flush() == 0


@pytest.mark.asyncio
async def test_deferred_flush_survives_transport_failure() -> None:
    inner = FailingNotifier(fail_on="booking-status-changed")
    deferred = DeferredChangeNotifier(inner)

    await deferred.publish("user:s", "booking-status-changed", {})
    await deferred.publish("teacher-bookings:t", "booking-updated", {})

    delivered = await deferred.flush()

    assert delivered == 1
    assert inner.delivered == [("teacher-bookings:t", "booking-updated")]


@pytest.mark.asyncio
async def test_deferred_discard_drops_queued_events() -> None:
    inner = InMemoryChangeNotifier()
    deferred = DeferredChangeNotifier(inner)
    await deferred.publish("t", "booking-updated", {})

    deferred.discard()

    assert await deferred.flush() == 0
    assert len(inner.history) == 0


@pytest.mark.asyncio
async def test_after_commit_callbacks_run_once_and_can_be_discarded() -> None:
    session = SimpleNamespace(info={})
    inner = InMemoryChangeNotifier()
    deferred = DeferredChangeNotifier(inner)
    after_commit(session, deferred.flush)
    await deferred.publish("t", "booking-updated", {})

    await run_after_commit(session)
    await run_after_commit(session)
    assert len(inner.history) == 1

    rolled_back = DeferredChangeNotifier(inner)
    after_commit(session, rolled_back.flush)
    await rolled_back.publish("t", "booking-deleted", {})
    discard_after_commit(session)
    await run_after_commit(session)
    assert len(inner.history) == 1


@pytest.mark.asyncio
async def test_after_commit_failure_does_not_stop_other_callbacks() -> None:
    session = SimpleNamespace(info={})
    calls: list[str] = []

    async def _broken() -> None:
        raise RuntimeError("boom")

    async def _ok() -> None:
        calls.append("ok")

    after_commit(session, _broken)
    after_commit(session, _ok)
    await run_after_commit(session)

    assert calls == ["ok"]


@pytest.mark.asyncio
async def test_redis_notifier_publishes_json_envelope_on_namespaced_channel() -> None:
    notifier = RedisChangeNotifier(redis_url="redis://redis:6379/0", namespace="lessonhub_test")
    client = FakeRedisClient()
    notifier._client = client

    await notifier.publish("user:42", "booking-cancelled", {"id": "b1"})

    channel, message = client.published[0]
    envelope = json.loads(message)
    assert channel == "lessonhub_test:user:42"
    assert envelope["topic"] == "user:42"
    assert envelope["event"] == "booking-cancelled"
    assert envelope["payload"] == {"id": "b1"}
    assert "published_at" in envelope

    await notifier.close()
    assert client.closed is True


@pytest.mark.asyncio
async def test_redis_notifier_swallows_transport_errors() -> None:
    notifier = RedisChangeNotifier(redis_url="redis://redis:6379/0", namespace="lessonhub_test")
    notifier._client = FakeRedisClient(fail=True)

    await notifier.publish("user:42", "booking-cancelled", {})


@pytest.mark.asyncio
async def test_noop_notifier_accepts_everything() -> None:
    assert await NoopChangeNotifier().publish("t", "e", {}) is None


def test_get_change_notifier_uses_redis_backend_when_configured(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    settings = SimpleNamespace(
        realtime_backend="redis",
        redis_url="redis://redis:6379/0",
        realtime_redis_namespace="realtime_test",
    )
    monkeypatch.setattr(realtime_module, "get_settings", lambda: settings)
    monkeypatch.setattr(realtime_module, "_change_notifier", None)
    monkeypatch.setattr(realtime_module, "_change_notifier_signature", None)

    notifier = realtime_module.get_change_notifier()

    assert isinstance(notifier, RedisChangeNotifier)
    assert notifier._channel("x") == "realtime_test:x"


def test_get_change_notifier_reuses_instance_until_signature_changes(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    state = {"backend": "memory"}

    def _settings() -> SimpleNamespace:
        return SimpleNamespace(
            realtime_backend=state["backend"],
            redis_url=None,
            realtime_redis_namespace="lessonhub",
        )

    monkeypatch.setattr(realtime_module, "get_settings", _settings)
    monkeypatch.setattr(realtime_module, "_change_notifier", None)
    monkeypatch.setattr(realtime_module, "_change_notifier_signature", None)

    first = realtime_module.get_change_notifier()
    second = realtime_module.get_change_notifier()
    state["backend"] = "noop"
    third = realtime_module.get_change_notifier()

    assert first is second
    assert isinstance(first, InMemoryChangeNotifier)
    assert isinstance(third, NoopChangeNotifier)
