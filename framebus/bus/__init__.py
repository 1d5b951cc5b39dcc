"""Message bus module for namespaced messaging between isolated contexts."""

from framebus.bus.events import Envelope, InboundMessage, LocalEvent
from framebus.bus.frames import MessageBus, Subscription

__all__ = ["MessageBus", "Subscription", "Envelope", "InboundMessage", "LocalEvent"]
