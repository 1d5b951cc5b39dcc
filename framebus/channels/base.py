"""Capability interfaces the bus needs from its host environment."""

from abc import ABC, abstractmethod
from typing import Any, Callable

from framebus.bus.events import InboundMessage, LocalEvent

MessageHandler = Callable[[InboundMessage], None]
EventHandler = Callable[[LocalEvent], None]


class ChannelPrimitive(ABC):
    """
    One-way, string-only, origin-tagged delivery between contexts.

    Implementations wrap whatever the host offers (a window's postMessage,
    a websocket bridge, an in-process queue). The bus holds at most one
    subscription at a time.
    """

    @property
    @abstractmethod
    def origin(self) -> str:
        """Origin of the context this channel belongs to."""
        pass

    @abstractmethod
    def send(self, target: Any, payload: str, target_origin: str) -> None:
        """
        Deliver a payload to another context.

        Fire-and-forget: no return value and no delivery confirmation.

        Args:
            target: Context handle to deliver to.
            payload: The serialized envelope.
            target_origin: Origin the target must have for delivery, or "*".
        """
        pass

    @abstractmethod
    def subscribe(self, handler: MessageHandler) -> None:
        """Start notifying `handler` of inbound messages."""
        pass

    @abstractmethod
    def unsubscribe(self, handler: MessageHandler) -> None:
        """Stop notifying `handler`. Unknown handlers are ignored."""
        pass


class EventSink(ABC):
    """In-context publish/subscribe used to fan out validated messages."""

    @abstractmethod
    def dispatch(self, event: LocalEvent) -> None:
        """Synchronously call every current subscriber of `event.type`."""
        pass

    @abstractmethod
    def subscribe(self, name: str, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, name: str, handler: EventHandler) -> None:
        pass
