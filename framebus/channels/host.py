"""In-process host environment: browsing contexts sharing one callback queue.

This is the reference integration for the channel and event-sink
interfaces. Each `BrowsingContext` behaves like a window: `post_message`
queues delivery on the shared `Host`, and `events` is its local event
target. Nothing runs until `Host.run_pending()` drains the queue.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from framebus.bus.events import ALLOW_ANY_ORIGIN, NULL_ORIGIN, InboundMessage, LocalEvent
from framebus.bus.frames import MessageBus
from framebus.channels.base import ChannelPrimitive, EventHandler, EventSink, MessageHandler

if TYPE_CHECKING:
    from framebus.config.schema import BusConfig

DEFAULT_RUN_LIMIT = 10_000


def _same_origin(a: str, b: str) -> bool:
    return a.strip().rstrip("/").lower() == b.strip().rstrip("/").lower()


class Host:
    """Single-threaded FIFO of callbacks, standing in for an event loop."""

    def __init__(self):
        self._queue: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.append((callback, args))

    def run_pending(self, limit: int = DEFAULT_RUN_LIMIT) -> int:
        """
        Run queued callbacks, including ones queued while running.

        Args:
            limit: Stop after this many callbacks, e.g. when two contexts
                relay a namespace to each other forever.

        Returns:
            Number of callbacks run.
        """
        processed = 0
        while self._queue and processed < limit:
            callback, args = self._queue.popleft()
            processed += 1
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Unhandled error in host callback: {e}")

        if self._queue:
            logger.warning(f"Host stopped after {processed} callbacks, {len(self._queue)} still pending")
        return processed

    def create_context(self, origin: str, *, name: str | None = None) -> "BrowsingContext":
        """Create a top-level context."""
        return BrowsingContext(self, origin, name=name)


class LocalEventTarget(EventSink):
    """Synchronous named-event fan-out for one context."""

    def __init__(self):
        self._listeners: dict[str, list[EventHandler]] = {}

    def subscribe(self, name: str, handler: EventHandler) -> None:
        listeners = self._listeners.setdefault(name, [])
        if handler not in listeners:
            listeners.append(handler)

    def unsubscribe(self, name: str, handler: EventHandler) -> None:
        listeners = self._listeners.get(name)
        if not listeners or handler not in listeners:
            return
        listeners.remove(handler)
        if not listeners:
            self._listeners.pop(name, None)

    def dispatch(self, event: LocalEvent) -> None:
        for handler in list(self._listeners.get(event.type, ())):
            # removed by an earlier listener during this dispatch
            if handler not in self._listeners.get(event.type, ()):
                continue
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in listener for '{event.type}': {e}")

    def listener_count(self, name: str | None = None) -> int:
        if name is not None:
            return len(self._listeners.get(name, ()))
        return sum(len(listeners) for listeners in self._listeners.values())


class BrowsingContext:
    """An isolated context that can send and receive string messages."""

    def __init__(
        self,
        host: Host,
        origin: str,
        *,
        name: str | None = None,
        parent: "BrowsingContext | None" = None,
    ):
        self.host = host
        self.origin = origin
        self.name = name or origin
        self.parent = parent
        self.frames: list[BrowsingContext] = []
        self.events = LocalEventTarget()
        self.closed = False
        self._message_listeners: list[MessageHandler] = []

    def post_message(
        self,
        payload: str,
        target_origin: str = ALLOW_ANY_ORIGIN,
        source: "BrowsingContext | None" = None,
    ) -> None:
        """
        Queue a string message for delivery to this context.

        Messages to a closed context, or whose `target_origin` does not match
        this context's origin, are dropped.

        Raises:
            TypeError: If `payload` is not a string.
        """
        if not isinstance(payload, str):
            raise TypeError(f"payload must be str, got {type(payload).__name__}")

        if self.closed:
            logger.debug(f"Dropped message to closed context {self.name}")
            return
        if target_origin != ALLOW_ANY_ORIGIN and not _same_origin(target_origin, self.origin):
            logger.debug(f"Dropped message for {target_origin} at {self.name} ({self.origin})")
            return

        sender_origin = source.origin if source is not None else NULL_ORIGIN
        message = InboundMessage(data=payload, origin=sender_origin, source=source)
        self.host.call_soon(self._deliver, message)

    def add_message_listener(self, handler: MessageHandler) -> None:
        if handler not in self._message_listeners:
            self._message_listeners.append(handler)

    def remove_message_listener(self, handler: MessageHandler) -> None:
        if handler in self._message_listeners:
            self._message_listeners.remove(handler)

    @property
    def message_listener_count(self) -> int:
        return len(self._message_listeners)

    def embed(self, origin: str, *, name: str | None = None, sandboxed: bool = False) -> "FrameElement":
        """
        Embed a child frame.

        Args:
            origin: Origin of the framed document.
            name: Optional display name.
            sandboxed: Give the child an opaque ("null") origin.

        Returns:
            The frame element; its `content_window` is the child context.
        """
        child = BrowsingContext(
            self.host,
            NULL_ORIGIN if sandboxed else origin,
            name=name or origin,
            parent=self,
        )
        self.frames.append(child)
        return FrameElement(child)

    def close(self) -> None:
        self.closed = True
        self._message_listeners.clear()
        for child in list(self.frames):
            child.close()

    def _deliver(self, message: InboundMessage) -> None:
        if self.closed:
            return
        for handler in list(self._message_listeners):
            if handler not in self._message_listeners:
                continue
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Error in message listener of {self.name}: {e}")

    def __repr__(self) -> str:
        return f"<BrowsingContext {self.name} origin={self.origin}>"


@dataclass(eq=False)
class FrameElement:
    """Embedding-side handle of a child frame."""

    content_window: BrowsingContext

    def remove(self) -> None:
        window = self.content_window
        window.close()
        if window.parent is not None and window in window.parent.frames:
            window.parent.frames.remove(window)


class WindowChannel(ChannelPrimitive):
    """Channel primitive bound to one `BrowsingContext`."""

    def __init__(self, context: BrowsingContext):
        self.context = context

    @property
    def origin(self) -> str:
        return self.context.origin

    def send(self, target: Any, payload: str, target_origin: str) -> None:
        window = getattr(target, "content_window", target)
        window.post_message(payload, target_origin, source=self.context)

    def subscribe(self, handler: MessageHandler) -> None:
        self.context.add_message_listener(handler)

    def unsubscribe(self, handler: MessageHandler) -> None:
        self.context.remove_message_listener(handler)


def create_bus(context: BrowsingContext, config: "BusConfig | None" = None) -> MessageBus:
    """Build a bus that sends from and listens on `context`."""
    channel = WindowChannel(context)
    if config is None:
        return MessageBus(channel, context.events)
    return MessageBus.from_config(config, channel, context.events)
