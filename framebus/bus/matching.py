"""Origin allow-list and namespace set with lazily compiled predicates."""

from __future__ import annotations

import re
from typing import Callable, Iterable, Iterator

from framebus.bus.events import ALLOW_ANY_ORIGIN, DEFAULT_NAMESPACE

_QUALIFIED_TYPE = re.compile(r"\..+$")
_HTTP_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def qualify(message_type: str, default_namespace: str = DEFAULT_NAMESPACE) -> str:
    """Append the default namespace to a bare message type."""
    if _QUALIFIED_TYPE.search(message_type):
        return message_type
    return f"{message_type}.{default_namespace}"


def is_wildcard(origin: str) -> bool:
    return "*" in origin


def normalize_namespace(namespace: str) -> str:
    name = str(namespace or "").strip().lstrip(".")
    if not name:
        raise ValueError("namespace must be a non-empty string")
    return name


def _origin_pattern(origin: str) -> str:
    text = origin.strip().rstrip("/")
    if _HTTP_SCHEME.match(text):
        return "https?://" + re.escape(_HTTP_SCHEME.sub("", text))
    if "://" in text:
        return re.escape(text)
    return "https?://" + re.escape(text)


def _never(_: str) -> bool:
    return False


def _always(_: str) -> bool:
    return True


class OriginAllowList:
    """Ordered set of trusted sender origins.

    Holds either the wildcard alone or concrete origins only. Concrete
    entries match both ``http`` and ``https`` and compare case-insensitively,
    so ``ads.example`` and ``http://ads.example`` allow the same senders.
    """

    def __init__(self, origins: Iterable[str] = (ALLOW_ANY_ORIGIN,)):
        self._origins: list[str] = []
        self._predicate: Callable[[str], bool] = _never
        for origin in origins:
            self.add(origin)

    def add(self, origin: str) -> None:
        if is_wildcard(origin):
            self._origins = [ALLOW_ANY_ORIGIN]
        elif origin not in self._origins:
            if ALLOW_ANY_ORIGIN in self._origins:
                self._origins.remove(ALLOW_ANY_ORIGIN)
            self._origins.append(origin)
        self._compile()

    def remove(self, origin: str) -> bool:
        if origin not in self._origins:
            return False
        self._origins.remove(origin)
        self._compile()
        return True

    def matches(self, origin: str) -> bool:
        if not isinstance(origin, str):
            return False
        return bool(self._predicate(origin))

    @property
    def allows_any(self) -> bool:
        return ALLOW_ANY_ORIGIN in self._origins

    def _compile(self) -> None:
        if self.allows_any:
            self._predicate = _always
        elif not self._origins:
            self._predicate = _never
        else:
            alternatives = "|".join(_origin_pattern(origin) for origin in self._origins)
            self._predicate = re.compile(f"(?:{alternatives})", re.IGNORECASE).fullmatch

    def __contains__(self, origin: object) -> bool:
        return origin in self._origins

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._origins))

    def __len__(self) -> int:
        return len(self._origins)

    def __repr__(self) -> str:
        return f"OriginAllowList({self._origins!r})"


class NamespaceSet:
    """Namespaces a message type may end in to be routed.

    The default namespace is always routable. Only explicitly registered
    names count towards ``registered``, which decides whether the bus keeps
    its inbound channel subscription.
    """

    def __init__(self, default: str = DEFAULT_NAMESPACE, names: Iterable[str] = ()):
        self.default = normalize_namespace(default)
        self._registered: list[str] = []
        self._pattern: re.Pattern[str] | None = None
        self._compile()
        for name in names:
            self.add(name)

    @property
    def registered(self) -> tuple[str, ...]:
        return tuple(self._registered)

    def add(self, namespace: str) -> bool:
        name = normalize_namespace(namespace)
        if name in self._registered:
            return False
        self._registered.append(name)
        self._compile()
        return True

    def discard(self, namespace: str) -> bool:
        name = str(namespace or "").strip().lstrip(".")
        if not name or name not in self._registered:
            return False
        self._registered.remove(name)
        self._compile()
        return True

    def clear(self) -> None:
        self._registered.clear()
        self._compile()

    def match(self, message_type: object) -> str | None:
        """Return the namespace ``message_type`` is routed under, if any."""
        if not isinstance(message_type, str) or self._pattern is None:
            return None
        found = self._pattern.search(message_type)
        return found.group(1) if found else None

    def _compile(self) -> None:
        # leftmost match wins, so the longest dotted namespace is reported
        alternatives = "|".join(re.escape(name) for name in self)
        self._pattern = re.compile(rf"\.({alternatives})\Z")

    def __contains__(self, namespace: object) -> bool:
        return namespace == self.default or namespace in self._registered

    def __iter__(self) -> Iterator[str]:
        yield self.default
        for name in list(self._registered):
            if name != self.default:
                yield name

    def __len__(self) -> int:
        return len(tuple(iter(self)))

    def __repr__(self) -> str:
        return f"NamespaceSet(default={self.default!r}, registered={self._registered!r})"
