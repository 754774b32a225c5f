"""Message envelope: the five body shapes exchanged with the service.

The wire body is the active variant's fields flattened into one JSON
object. There is no discriminator key, so decoding infers the variant from
which fields are jointly present, checked in a fixed order:

    v + client_id           -> Handshake
    cmd + nonce + data      -> IncomingCommand
    cmd + nonce + args      -> OutgoingCommand
    code + message          -> CriticalError
    anything else           -> Empty

Incoming and outgoing commands share ``cmd``/``nonce``; ``data`` is only
ever present on replies from the service, so it is checked first. Unknown
keys are ignored.

Example (handshake):
    {"v": 1, "client_id": "123456"}

Example (outgoing command):
    {"cmd": "SET_ACTIVITY", "nonce": 42, "args": {"pid": 1234}}

Example (incoming command):
    {"cmd": "DISPATCH", "nonce": null, "data": {...}, "evt": "READY"}
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import MalformedBody, UnknownEventTag
from .events import EventKind

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT32_MAX = 2**32 - 1


class WireMessage(BaseModel):
    """Base for all body shapes.

    Fields use their Python names in code and their wire names as aliases.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # Wire keys dropped from the body when their value is None
    omit_when_none: ClassVar[frozenset[str]] = frozenset()

    def to_wire(self) -> dict[str, Any]:
        """Flatten this message into its wire JSON object."""
        body = self.model_dump(by_alias=True, mode="json")
        for key in self.omit_when_none:
            if body.get(key) is None:
                body.pop(key, None)
        return body


class Handshake(WireMessage):
    """Opening message sent by the client on connect."""

    protocol_version: int = Field(alias="v", ge=0, le=255)
    client_id: str


class OutgoingCommand(WireMessage):
    """A command issued by the client (set/clear presence, subscribe, ...)."""

    omit_when_none: ClassVar[frozenset[str]] = frozenset({"evt"})

    command: str = Field(alias="cmd")
    nonce: int = Field(ge=INT64_MIN, le=INT64_MAX)
    arguments: Any = Field(alias="args")
    event_tag: str | None = Field(default=None, alias="evt")


class IncomingCommand(WireMessage):
    """A reply or push from the service.

    ``event_tag`` identifies the named event this command represents; replies
    to plain commands usually carry no tag.
    """

    omit_when_none: ClassVar[frozenset[str]] = frozenset({"args"})

    command: str = Field(alias="cmd")
    nonce: int = Field(ge=INT64_MIN, le=INT64_MAX)
    arguments: Any = Field(default=None, alias="args")
    data: Any
    event_tag: EventKind | None = Field(default=None, alias="evt")

    @field_validator("nonce", mode="before")
    @classmethod
    def _null_nonce(cls, value: Any) -> Any:
        # Server-initiated dispatches send "nonce": null
        return 0 if value is None else value


class CriticalError(WireMessage):
    """Fatal error reported by the service."""

    code: int = Field(ge=0, le=UINT32_MAX)
    message: str


class Empty(WireMessage):
    """Body with no fields (close notice, keepalive ping/pong)."""


Message = Handshake | OutgoingCommand | IncomingCommand | CriticalError | Empty

# Ordered field-presence guards; the first match wins
_SHAPES: tuple[tuple[frozenset[str], type[WireMessage]], ...] = (
    (frozenset({"v", "client_id"}), Handshake),
    (frozenset({"cmd", "nonce", "data"}), IncomingCommand),
    (frozenset({"cmd", "nonce", "args"}), OutgoingCommand),
    (frozenset({"code", "message"}), CriticalError),
)


def classify(body: dict[str, Any]) -> type[WireMessage]:
    """Return the message type a wire object decodes to."""
    for required, model in _SHAPES:
        if required.issubset(body):
            return model
    return Empty


def to_wire(message: WireMessage) -> dict[str, Any]:
    """Flatten a message into its wire JSON object."""
    return message.to_wire()


def from_wire(body: Any) -> Message:
    """Decode a parsed JSON value into a message.

    Raises:
        UnknownEventTag: If an incoming command names an unknown event
        MalformedBody: If the value is not an object or its fields are invalid
    """
    if not isinstance(body, dict):
        raise MalformedBody(f"Expected a JSON object, got {type(body).__name__}")

    model = classify(body)
    try:
        return model.model_validate(body)  # type: ignore[return-value]
    except ValidationError as e:
        if model is IncomingCommand and _has_bad_event_tag(e):
            raise UnknownEventTag(str(body.get("evt"))) from e
        raise MalformedBody(f"Invalid {model.__name__} body: {e}") from e


def _has_bad_event_tag(error: ValidationError) -> bool:
    return any(detail["loc"] == ("evt",) for detail in error.errors())
