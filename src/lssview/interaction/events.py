"""
Event bus system for decoupling the viewer session from its UI.

Each viewer session owns its own bus; nothing is shared between sessions.
Subscribing returns a ``Subscription`` handle whose ``release()`` removes the
callback, so teardown can drop every registration it made.
"""
import logging
from collections.abc import Callable
from typing import Any
from dataclasses import dataclass, field
from enum import Enum, auto

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Standard event types for the viewer."""

    # Load lifecycle
    LOAD_STARTED = auto()
    SNAPSHOT_LOADED = auto()  # {"vertex_count", "kept_count", "annotation_count", "size_bytes"}
    LOAD_FAILED = auto()  # {"error": str}

    # Camera events
    CAMERA_RESET = auto()
    AUTOROTATE_TOGGLED = auto()  # {"enabled": bool}

    # Display events
    POINT_SIZE_CHANGED = auto()
    BACKGROUND_TOGGLED = auto()

    # Viewport events
    VIEWPORT_RESIZED = auto()  # {"width": int, "height": int}

    # Viewer lifecycle
    VIEWER_CREATED = auto()
    VIEWER_DESTROYED = auto()


@dataclass
class Event:
    """Event data container."""
    type: EventType | str
    data: dict[str, Any]
    source: str | None = None


@dataclass
class Subscription:
    """Handle for one registered callback."""

    bus: "EventBus"
    event_type: EventType | str
    callback: Callable[[Event], None]
    active: bool = field(default=True)

    def release(self) -> bool:
        """Remove the callback; calling again is a no-op returning False."""
        if not self.active:
            return False
        self.active = False
        return self.bus.unsubscribe(self.event_type, self.callback)


class EventBus:
    """
    Simple event bus for pub/sub pattern.

    Allows components to emit events and subscribe to them without
    direct coupling.
    """

    def __init__(self, name: str = "default", max_history: int = 100):
        """
        Initialize event bus.

        Parameters
        ----------
        name : str
            Name of this event bus instance
        max_history : int
            Number of emitted events kept for inspection
        """
        self.name = name
        self._subscribers: dict[EventType | str, list[tuple[int, Callable]]] = {}
        self._event_history: list[Event] = []
        self._max_history = max_history
        logger.debug(f"Created EventBus: {name}")

    def subscribe(
        self,
        event_type: EventType | str,
        callback: Callable[[Event], None],
        priority: int = 0
    ) -> Subscription:
        """
        Subscribe to an event type.

        Parameters
        ----------
        event_type : EventType | str
            Event type to subscribe to
        callback : Callable[[Event], None]
            Function to call when event is emitted
        priority : int
            Priority for callback execution (higher = earlier)

        Returns
        -------
        Subscription
            Handle that removes the callback on ``release()``
        """
        callbacks = self._subscribers.setdefault(event_type, [])

        # Insert by priority (higher priority first, stable within a priority)
        index = len(callbacks)
        for i, (existing_priority, _) in enumerate(callbacks):
            if priority > existing_priority:
                index = i
                break
        callbacks.insert(index, (priority, callback))

        logger.debug(
            f"[{self.name}] Subscribed to {event_type}: "
            f"{getattr(callback, '__name__', repr(callback))} (priority={priority})"
        )
        return Subscription(bus=self, event_type=event_type, callback=callback)

    def unsubscribe(
        self,
        event_type: EventType | str,
        callback: Callable[[Event], None]
    ) -> bool:
        """Remove ``callback``; returns True if it was registered."""
        callbacks = self._subscribers.get(event_type)
        if not callbacks:
            return False

        for i, (_, cb) in enumerate(callbacks):
            if cb == callback:
                del callbacks[i]
                logger.debug(f"[{self.name}] Unsubscribed from {event_type}")
                return True
        return False

    def emit(
        self,
        event_type: EventType | str,
        source: str | None = None,
        **data
    ) -> None:
        """
        Emit an event.

        Handler exceptions are logged and do not stop the remaining handlers.

        Parameters
        ----------
        event_type : EventType | str
            Type of event to emit
        source : str | None
            Component emitting the event
        **data
            Event data as keyword arguments
        """
        event = Event(type=event_type, data=data, source=source)

        self._event_history.append(event)
        if len(self._event_history) > self._max_history:
            self._event_history.pop(0)

        # Snapshot so handlers may release their own subscription
        subscribers = list(self._subscribers.get(event_type, ()))
        if not subscribers:
            logger.debug(
                f"[{self.name}] Emitted {event_type} from {source or 'unknown'} "
                f"(no subscribers)"
            )
            return

        logger.debug(
            f"[{self.name}] Emitting {event_type} from {source or 'unknown'} "
            f"to {len(subscribers)} subscribers"
        )
        for _, callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    f"[{self.name}] Error in event handler "
                    f"{getattr(callback, '__name__', repr(callback))} for {event_type}: {e}",
                    exc_info=True
                )

    def clear_subscribers(self, event_type: (EventType | str) | None = None) -> None:
        """Clear subscribers for one event type, or all of them."""
        if event_type is None:
            self._subscribers.clear()
            logger.debug(f"[{self.name}] Cleared all subscribers")
        elif event_type in self._subscribers:
            del self._subscribers[event_type]
            logger.debug(f"[{self.name}] Cleared subscribers for {event_type}")

    def get_history(
        self,
        event_type: (EventType | str) | None = None,
        limit: int | None = None
    ) -> list[Event]:
        """Get event history (most recent last), optionally filtered."""
        history = self._event_history

        if event_type is not None:
            history = [e for e in history if e.type == event_type]

        if limit is not None:
            history = history[-limit:]

        return history

    def has_subscribers(self, event_type: EventType | str) -> bool:
        """Check if an event type has any subscribers."""
        return bool(self._subscribers.get(event_type))


class ResizeNotifier:
    """
    Viewport size source with explicit registration handles.

    ``notify()`` records the size and fans it out to subscribers as
    ``(width, height)``; ``subscribe()`` returns a Subscription to release
    on teardown.
    """

    def __init__(self, bus: EventBus | None = None):
        self._bus = bus or EventBus(name="resize")
        self.size: tuple[int, int] | None = None

    def subscribe(self, callback: Callable[[int, int], None]) -> Subscription:
        def _on_resize(event: Event) -> None:
            callback(event.data["width"], event.data["height"])

        _on_resize.__name__ = getattr(callback, "__name__", "resize_callback")
        return self._bus.subscribe(EventType.VIEWPORT_RESIZED, _on_resize)

    def notify(self, width: int, height: int, source: str | None = None) -> None:
        self.size = (int(width), int(height))
        self._bus.emit(EventType.VIEWPORT_RESIZED, source=source, width=int(width), height=int(height))

    @property
    def subscriber_count(self) -> int:
        return len(self._bus._subscribers.get(EventType.VIEWPORT_RESIZED, ()))


__all__ = [
    "EventBus",
    "Event",
    "EventType",
    "ResizeNotifier",
    "Subscription",
]
