"""Channel primitives and local event sinks."""

from framebus.channels.base import ChannelPrimitive, EventSink
from framebus.channels.host import (
    BrowsingContext,
    FrameElement,
    Host,
    LocalEventTarget,
    WindowChannel,
    create_bus,
)

__all__ = [
    "ChannelPrimitive",
    "EventSink",
    "Host",
    "BrowsingContext",
    "FrameElement",
    "LocalEventTarget",
    "WindowChannel",
    "create_bus",
]
