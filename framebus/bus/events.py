"""Wire envelope and local event types carried by the frame bus."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_NAMESPACE = "postMessage"
ALLOW_ANY_ORIGIN = "*"
NULL_ORIGIN = "null"  # opaque origin reported by sandboxed frames and file:// pages
DEFAULT_SEND_OPTIONS: dict[str, Any] = {
    "targetOrigin": "*",
}


class Envelope(BaseModel):
    """The `{type, data, options}` unit serialized as one string on the wire."""

    type: str
    data: Any = None
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("options", mode="before")
    def _options_default(cls, v: Any):
        # senders may post `"options": null`
        return {} if v is None else v

    def to_wire(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_wire(cls, raw: str | bytes) -> "Envelope":
        """Parse a raw channel payload.

        Raises:
            pydantic.ValidationError: If the payload is not JSON or does not
                have the envelope shape.
        """
        return cls.model_validate_json(raw)


@dataclass(slots=True)
class InboundMessage:
    """One raw notification delivered by a channel primitive.

    Attributes:
        data: The payload exactly as it came off the channel.
        origin: Origin of the sending context, e.g. ``https://ads.example``.
        source: Handle of the sending context.
    """

    data: Any
    origin: str
    source: Any = None


@dataclass(slots=True)
class LocalEvent:
    """A validated message fanned out to in-context listeners."""

    type: str
    detail: Any = None
    source: Any = None


class RejectReason(str, Enum):
    ORIGIN = "origin"
    MALFORMED = "malformed"
    NAMESPACE = "namespace"


@dataclass(slots=True)
class Verdict:
    """Outcome of screening an inbound message."""

    envelope: Envelope | None = None
    namespace: str | None = None
    reason: RejectReason | None = None

    @property
    def accepted(self) -> bool:
        return self.reason is None and self.envelope is not None

    @classmethod
    def reject(cls, reason: RejectReason) -> "Verdict":
        return cls(reason=reason)
