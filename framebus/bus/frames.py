"""Cross-context message bus over an origin-tagged string channel.

Example:
    # parent document
    bus.listen("dfp")
    bus.receive_once("init.dfp", on_init)

    # embedded frame
    bus.send(parent, "init.dfp", {"slot": "top"})
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable

from loguru import logger
from pydantic import ValidationError

from framebus.bus.events import (
    ALLOW_ANY_ORIGIN,
    DEFAULT_NAMESPACE,
    DEFAULT_SEND_OPTIONS,
    NULL_ORIGIN,
    Envelope,
    InboundMessage,
    LocalEvent,
    RejectReason,
    Verdict,
)
from framebus.bus.matching import NamespaceSet, OriginAllowList, normalize_namespace, qualify

if TYPE_CHECKING:
    from framebus.channels.base import ChannelPrimitive, EventSink
    from framebus.config.schema import BusConfig


def _sent_by(source: Any, sender: Any) -> bool:
    if sender is None:
        return False
    return source is sender or getattr(source, "content_window", None) is sender


class Subscription:
    """Handle for one local listener registered through `MessageBus.receive`."""

    def __init__(self, sink: "EventSink", event_type: str, listener: Callable[..., None]):
        self.type = event_type
        self._sink = sink
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def off(self) -> None:
        """Remove the listener. Calling it again does nothing."""
        if not self._active:
            return
        self._active = False
        self._sink.unsubscribe(self.type, self._listener)

    def __repr__(self) -> str:
        state = "active" if self._active else "off"
        return f"<Subscription {self.type!r} {state}>"


class MessageBus:
    """
    Namespaced pub/sub between isolated contexts.

    Outbound messages are wrapped in an `Envelope` and pushed through the
    channel primitive. Inbound messages are accepted only from trusted
    origins and only for registered namespaces, optionally relayed to proxy
    targets, then re-emitted on the local event sink under their type.
    """

    def __init__(
        self,
        channel: "ChannelPrimitive",
        sink: "EventSink",
        *,
        default_namespace: str = DEFAULT_NAMESPACE,
        allowed_origins: Iterable[str] = (ALLOW_ANY_ORIGIN,),
        default_options: dict[str, Any] | None = None,
    ):
        self.channel = channel
        self.sink = sink
        self._origins = OriginAllowList(allowed_origins)
        self._namespaces = NamespaceSet(default_namespace)
        self._default_options = dict(DEFAULT_SEND_OPTIONS)
        self._default_options.update(default_options or {})
        self._proxies: dict[str, list[Any]] = {}
        self._listening = False
        self._handler = self._on_message

    @classmethod
    def from_config(
        cls,
        config: "BusConfig",
        channel: "ChannelPrimitive",
        sink: "EventSink",
    ) -> "MessageBus":
        bus = cls(
            channel,
            sink,
            default_namespace=config.default_namespace,
            allowed_origins=config.allowed_origins,
            default_options={"targetOrigin": config.target_origin},
        )
        for namespace in config.namespaces:
            bus.listen(namespace)
        return bus

    @property
    def listening(self) -> bool:
        return self._listening

    @property
    def origins(self) -> tuple[str, ...]:
        return tuple(self._origins)

    @property
    def namespaces(self) -> tuple[str, ...]:
        """Routable namespaces, default first."""
        return tuple(self._namespaces)

    @property
    def proxies(self) -> dict[str, list[Any]]:
        return {name: list(targets) for name, targets in self._proxies.items()}

    def send(
        self,
        target: Any,
        message_type: str,
        data: Any = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        """
        Send a message to another context.

        Args:
            target: Context to deliver the message to.
            message_type: Message type; the default namespace is appended
                when it has none.
            data: JSON-serializable payload.
            options: Delivery options. `targetOrigin` restricts which origin
                the target must have; defaults to "*".
        """
        message_type = qualify(message_type, self._namespaces.default)
        merged = dict(options or {})
        for key, value in self._default_options.items():
            merged.setdefault(key, value)

        payload = Envelope(type=message_type, data=data, options=merged).to_wire()
        self.channel.send(target, payload, merged["targetOrigin"])

    def receive(
        self,
        message_type: str,
        callback: Callable[..., None],
        *,
        source: Any = None,
        context: Any = None,
    ) -> Subscription:
        """
        Listen for messages of one type.

        Args:
            message_type: Message type; the default namespace is appended
                when it has none.
            callback: Called with the `LocalEvent`.
            source: Only accept messages sent by this context, or by the
                `content_window` of this frame element.
            context: Passed to `callback` as its first argument when given;
                without it `callback(event)` is called and the bus is not bound.

        Returns:
            The subscription; call `off()` to stop receiving.
        """
        if not callable(callback):
            raise TypeError("callback must be callable")

        event_type = qualify(message_type, self._namespaces.default)

        def scoped(event: LocalEvent) -> None:
            if source is not None and not _sent_by(source, event.source):
                return
            if context is None:
                callback(event)
            else:
                callback(context, event)

        self.sink.subscribe(event_type, scoped)
        return Subscription(self.sink, event_type, scoped)

    def receive_once(
        self,
        message_type: str,
        callback: Callable[..., None] | None = None,
        *,
        source: Any = None,
        context: Any = None,
    ) -> Subscription:
        """Like `receive`, but delivers at most one message."""

        def once(*args: Any) -> None:
            subscription.off()
            if callback is not None:
                callback(*args)

        subscription = self.receive(message_type, once, source=source, context=context)
        return subscription

    def listen(self, namespace: str) -> None:
        """Route inbound messages whose type ends in `.namespace`."""
        if self._namespaces.add(namespace):
            logger.debug(f"Listening on namespace '{normalize_namespace(namespace)}'")

        if not self._listening:
            self.channel.subscribe(self._handler)
            self._listening = True

    def stop_listening(self, namespace: str | None = None) -> None:
        """
        Stop routing a namespace, or every namespace when none is given.

        The channel subscription is dropped once no registered namespace is
        left.
        """
        if namespace is None:
            self._namespaces.clear()
            logger.debug("Stopped listening on all namespaces")
        elif self._namespaces.discard(namespace):
            logger.debug(f"Stopped listening on namespace '{normalize_namespace(namespace)}'")
        else:
            return

        if not self._namespaces.registered and self._listening:
            self.channel.unsubscribe(self._handler)
            self._listening = False

    def add_origin(self, origin: str) -> None:
        self._origins.add(origin)
        logger.debug(f"Allowed origins: {list(self._origins)}")

    def remove_origin(self, origin: str) -> None:
        if self._origins.remove(origin):
            logger.debug(f"Allowed origins: {list(self._origins)}")

    def proxy(self, namespace: str, targets: Any) -> None:
        """
        Relay inbound messages of a namespace to other contexts.

        Args:
            namespace: Namespace to relay.
            targets: A context or a list of contexts. Repeated calls append.
        """
        if not isinstance(targets, (list, tuple)):
            targets = [targets]

        name = normalize_namespace(namespace)
        self.listen(name)
        self._proxies.setdefault(name, []).extend(targets)
        logger.debug(f"Proxying namespace '{name}' to {len(self._proxies[name])} target(s)")

    def _trusted(self, origin: str) -> bool:
        return origin == self.channel.origin or origin == NULL_ORIGIN or self._origins.matches(origin)

    def _screen(self, message: InboundMessage) -> Verdict:
        if not self._trusted(message.origin):
            return Verdict.reject(RejectReason.ORIGIN)

        if not isinstance(message.data, (str, bytes, bytearray)):
            return Verdict.reject(RejectReason.MALFORMED)
        try:
            envelope = Envelope.from_wire(message.data)
        except ValidationError:
            return Verdict.reject(RejectReason.MALFORMED)

        namespace = self._namespaces.match(envelope.type)
        if namespace is None:
            return Verdict.reject(RejectReason.NAMESPACE)

        return Verdict(envelope=envelope, namespace=namespace)

    def _on_message(self, message: InboundMessage) -> None:
        verdict = self._screen(message)
        if not verdict.accepted:
            return

        envelope = verdict.envelope
        for target in list(self._proxies.get(verdict.namespace, ())):
            try:
                self.send(target, envelope.type, envelope.data, envelope.options)
            except Exception as e:
                logger.warning(f"Failed to proxy '{envelope.type}' to {target!r}: {e}")

        try:
            self.sink.dispatch(LocalEvent(type=envelope.type, detail=envelope.data, source=message.source))
        except Exception as e:
            logger.error(f"Error dispatching '{envelope.type}': {e}")

    def __repr__(self) -> str:
        return (
            f"<MessageBus listening={self._listening} "
            f"namespaces={list(self._namespaces)} origins={list(self._origins)}>"
        )
