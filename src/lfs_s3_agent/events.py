"""
Wire protocol messages.

Git LFS talks to a custom transfer agent with one JSON object per line.
Inbound lines decode into a closed set of event models selected by their
``event`` field; anything else becomes an UnknownEvent. Outbound transfer
results are always a CompleteEvent built through its success/failure
constructors.
"""
from __future__ import annotations

import json
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import WIRE_ERROR_CODE, ProtocolError

__all__ = [
    "TransferAction",
    "InitEvent",
    "UploadEvent",
    "DownloadEvent",
    "TerminateEvent",
    "UnknownEvent",
    "InvalidEvent",
    "ErrorInfo",
    "CompleteEvent",
    "Event",
    "TransferEvent",
    "decode_event",
    "encode_message",
    "INIT_ACK",
]


class _Inbound(BaseModel):
    """Inbound messages are immutable and tolerate fields we do not use."""
    model_config = ConfigDict(frozen=True, extra="ignore")


class TransferAction(_Inbound):
    """Where the object lives, as told by the LFS server (may be empty for standalone agents)."""
    href: Optional[str] = None
    header: Optional[Dict[str, str]] = None


class InitEvent(_Inbound):
    """Capabilities Git LFS may use; the agent is not bound by concurrency hints."""
    event: Literal["init"]
    operation: Literal["upload", "download"]
    remote: str = ""
    concurrent: bool = False
    concurrenttransfers: int = Field(default=1, ge=0)


class UploadEvent(_Inbound):
    event: Literal["upload"]
    oid: str = Field(min_length=1)
    size: int = Field(ge=0)
    path: str = Field(min_length=1, description="Local source file")
    action: Optional[TransferAction] = None


class DownloadEvent(_Inbound):
    event: Literal["download"]
    oid: str = Field(min_length=1)
    size: int = Field(ge=0)
    action: Optional[TransferAction] = None


class TerminateEvent(_Inbound):
    event: Literal["terminate"]


Event = Annotated[
    Union[InitEvent, UploadEvent, DownloadEvent, TerminateEvent],
    Field(discriminator="event"),
]

TransferEvent = Union[UploadEvent, DownloadEvent]

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(Event)
_KNOWN_EVENTS = frozenset({"init", "upload", "download", "terminate"})


class UnknownEvent(_Inbound):
    """A JSON object whose ``event`` value is not part of the protocol."""
    event: Optional[Any] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class InvalidEvent(_Inbound):
    """A known event kind whose fields failed validation."""
    event: str
    oid: Optional[str] = None
    message: str


class ErrorInfo(BaseModel):
    code: int = WIRE_ERROR_CODE
    message: str


class CompleteEvent(BaseModel):
    """
    Result of one transfer.

    Exactly one of success or failure holds: on success ``error`` is absent
    from the serialized form, since its mere presence signals failure.
    """
    model_config = ConfigDict(frozen=True)

    event: Literal["complete"] = "complete"
    oid: str
    path: Optional[str] = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def success(cls, oid: str, path: Optional[str] = None) -> CompleteEvent:
        return cls(oid=oid, path=path)

    @classmethod
    def failure(cls, oid: str, message: str) -> CompleteEvent:
        return cls(oid=oid, error=ErrorInfo(code=WIRE_ERROR_CODE, message=message))

    @property
    def ok(self) -> bool:
        return self.error is None


# Git LFS waits for an empty object after init
INIT_ACK: Dict[str, Any] = {}


def decode_event(line: str) -> Union[InitEvent, UploadEvent, DownloadEvent, TerminateEvent, UnknownEvent, InvalidEvent]:
    """
    Decode one protocol line.

    Args:
        line: A single line of input (without the trailing newline)

    Returns:
        The matching event model, UnknownEvent for an unrecognized ``event``
        value, or InvalidEvent when a known kind fails validation

    Raises:
        ProtocolError: If the line is not a JSON object
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Malformed protocol line: {e}") from e

    if not isinstance(payload, dict):
        raise ProtocolError(f"Protocol line is not a JSON object: {line[:80]!r}")

    kind = payload.get("event")
    if not isinstance(kind, str) or kind not in _KNOWN_EVENTS:
        return UnknownEvent(event=kind, raw=payload)

    try:
        return _EVENT_ADAPTER.validate_python(payload)
    except ValidationError as e:
        oid = payload.get("oid")
        return InvalidEvent(
            event=kind,
            oid=oid if isinstance(oid, str) and oid else None,
            message=f"Invalid {kind} event: {_summarize(e)}",
        )


def encode_message(message: Union[BaseModel, Dict[str, Any]]) -> str:
    """Serialize an outbound message to a single JSON line (no newline)."""
    if isinstance(message, BaseModel):
        return message.model_dump_json(exclude_none=True)
    return json.dumps(message, separators=(",", ":"))


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"][1:] or item["loc"])
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)
