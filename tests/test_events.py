"""Tests for the event bus and resize notifications."""

import logging

from src.lssview.interaction.events import EventBus, EventType, ResizeNotifier


class TestEventBus:
    def test_emit_reaches_subscribers(self):
        bus = EventBus(name="test")
        received = []
        bus.subscribe(EventType.SNAPSHOT_LOADED, received.append)

        bus.emit(EventType.SNAPSHOT_LOADED, source="test", vertex_count=3)

        assert len(received) == 1
        assert received[0].data == {"vertex_count": 3}
        assert received[0].source == "test"

    def test_priority_order(self):
        bus = EventBus()
        order = []
        bus.subscribe(EventType.CAMERA_RESET, lambda e: order.append("low"), priority=0)
        bus.subscribe(EventType.CAMERA_RESET, lambda e: order.append("high"), priority=10)
        bus.subscribe(EventType.CAMERA_RESET, lambda e: order.append("low2"), priority=0)

        bus.emit(EventType.CAMERA_RESET)

        assert order == ["high", "low", "low2"]

    def test_release_removes_callback_once(self):
        bus = EventBus()
        received = []
        subscription = bus.subscribe(EventType.LOAD_FAILED, received.append)

        assert subscription.release() is True
        assert subscription.release() is False
        bus.emit(EventType.LOAD_FAILED, error="boom")

        assert received == []
        assert not bus.has_subscribers(EventType.LOAD_FAILED)

    def test_handler_error_does_not_stop_others(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("handler failed")

        bus.subscribe(EventType.LOAD_STARTED, broken, priority=1)
        bus.subscribe(EventType.LOAD_STARTED, received.append)

        with caplog.at_level(logging.ERROR):
            bus.emit(EventType.LOAD_STARTED)

        assert len(received) == 1
        assert any("handler failed" in r.message for r in caplog.records)

    def test_handler_may_release_itself(self):
        bus = EventBus()
        calls = []
        holder = {}

        def once(event):
            calls.append(event)
            holder["sub"].release()

        holder["sub"] = bus.subscribe(EventType.CAMERA_RESET, once)
        bus.emit(EventType.CAMERA_RESET)
        bus.emit(EventType.CAMERA_RESET)

        assert len(calls) == 1

    def test_history_is_bounded(self):
        bus = EventBus(max_history=3)
        for _ in range(5):
            bus.emit(EventType.CAMERA_RESET)
        bus.emit(EventType.LOAD_STARTED)

        assert len(bus.get_history()) == 3
        assert len(bus.get_history(EventType.LOAD_STARTED)) == 1
        assert bus.get_history(limit=1)[0].type is EventType.LOAD_STARTED

    def test_clear_subscribers(self):
        bus = EventBus()
        bus.subscribe(EventType.CAMERA_RESET, lambda e: None)
        bus.subscribe(EventType.LOAD_STARTED, lambda e: None)

        bus.clear_subscribers(EventType.CAMERA_RESET)
        assert not bus.has_subscribers(EventType.CAMERA_RESET)
        assert bus.has_subscribers(EventType.LOAD_STARTED)

        bus.clear_subscribers()
        assert not bus.has_subscribers(EventType.LOAD_STARTED)


class TestResizeNotifier:
    def test_notify_and_release(self):
        notifier = ResizeNotifier()
        sizes = []
        subscription = notifier.subscribe(lambda w, h: sizes.append((w, h)))

        notifier.notify(800, 600)
        assert sizes == [(800, 600)]
        assert notifier.size == (800, 600)
        assert notifier.subscriber_count == 1

        subscription.release()
        notifier.notify(1024, 768)

        assert sizes == [(800, 600)]
        assert notifier.subscriber_count == 0
        assert notifier.size == (1024, 768)

    def test_independent_notifiers(self):
        first, second = ResizeNotifier(), ResizeNotifier()
        sizes = []
        first.subscribe(lambda w, h: sizes.append((w, h)))

        second.notify(10, 10)

        assert sizes == []
