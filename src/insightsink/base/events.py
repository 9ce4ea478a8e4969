"""Event types delivered by the tracing stream.

This module defines the immutable event record the sink consumes, together
with its schema and the severity and opcode enumerations of the tracing
infrastructure.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional, Tuple, Union

from insightsink.base.timestamps import format_timestamp

KEYWORDS_NONE = 0
KEYWORDS_ALL = 0xFFFFFFFFFFFFFFFF


class EventLevel(IntEnum):
    """Severity of a trace event.

    Values follow the tracing infrastructure, where lower numbers are more
    severe and ``LOG_ALWAYS`` means "no level filter".
    """
    LOG_ALWAYS = 0
    CRITICAL = 1
    ERROR = 2
    WARNING = 3
    INFORMATIONAL = 4
    VERBOSE = 5

    def __str__(self) -> str:
        return _LEVEL_LABELS[self]


_LEVEL_LABELS = {
    EventLevel.LOG_ALWAYS: "LogAlways",
    EventLevel.CRITICAL: "Critical",
    EventLevel.ERROR: "Error",
    EventLevel.WARNING: "Warning",
    EventLevel.INFORMATIONAL: "Informational",
    EventLevel.VERBOSE: "Verbose",
}


class EventOpcode(IntEnum):
    """Well-known opcodes attached to trace events."""
    INFO = 0
    START = 1
    STOP = 2
    DATA_COLLECTION_START = 3
    DATA_COLLECTION_STOP = 4
    EXTENSION = 5
    REPLY = 6
    RESUME = 7
    SUSPEND = 8
    SEND = 9
    RECEIVE = 240

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


Level = Union[EventLevel, int]


@dataclass(frozen=True)
class EventSchema:
    """Static description of an event, shared by every instance of it.

    Attributes:
        provider_id: Identifier of the event provider.
        event_id: Numeric event identifier within the provider.
        level: Event severity. May be a raw integer outside ``EventLevel``.
        keywords: 64-bit keyword mask.
        opcode: Event opcode.
        task: Task number (0 means no task).
        version: Event version.
        event_name: Human-readable event name.
        payload: Ordered payload field names.
        provider_name: Optional provider name.
        task_name: Optional task name.
        opcode_name: Optional opcode name.
        keywords_description: Optional keyword description.
    """
    provider_id: Optional[uuid.UUID] = None
    event_id: int = 0
    level: Level = EventLevel.LOG_ALWAYS
    keywords: int = KEYWORDS_NONE
    opcode: Union[EventOpcode, int] = EventOpcode.INFO
    task: int = 0
    version: int = 0
    event_name: str = ""
    payload: Tuple[str, ...] = ()
    provider_name: Optional[str] = None
    task_name: Optional[str] = None
    opcode_name: Optional[str] = None
    keywords_description: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", _coerce(EventLevel, self.level))
        object.__setattr__(self, "opcode", _coerce(EventOpcode, self.opcode))
        object.__setattr__(self, "payload", tuple(self.payload))


def _coerce(enum_type: Any, value: Any) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class EventEntry:
    """A single trace record pushed by the event stream.

    Attributes:
        provider_id: Identifier of the provider that wrote the event.
        event_id: Numeric event identifier.
        schema: Schema describing the event.
        payload: Ordered payload values, parallel to ``schema.payload``.
        formatted_message: Message already rendered by the provider.
        timestamp: Time the event was written. Naive values are read as UTC.
        process_id: Id of the writing process.
        thread_id: Id of the writing thread.
        activity_id: Activity the event belongs to.
        related_activity_id: Parent activity, if any.

    Example:
        >>> schema = EventSchema(level=EventLevel.WARNING, payload=("disk",))
        >>> entry = EventEntry(schema=schema, payload=("C:",), formatted_message="disk low")
        >>> entry.level
        <EventLevel.WARNING: 3>
    """
    schema: EventSchema = field(default_factory=EventSchema)
    payload: Tuple[Any, ...] = ()
    formatted_message: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    provider_id: Optional[uuid.UUID] = None
    event_id: Optional[int] = None
    process_id: int = 0
    thread_id: int = 0
    activity_id: Optional[uuid.UUID] = None
    related_activity_id: Optional[uuid.UUID] = None

    def __post_init__(self) -> None:
        # Identity falls back to the schema when not given explicitly.
        if self.provider_id is None:
            object.__setattr__(self, "provider_id", self.schema.provider_id)
        if self.event_id is None:
            object.__setattr__(self, "event_id", self.schema.event_id)
        object.__setattr__(self, "payload", tuple(self.payload))

    @property
    def level(self) -> Level:
        return self.schema.level

    def get_formatted_timestamp(self, fmt: str) -> str:
        """Render the event timestamp with a .NET-style custom pattern."""
        return format_timestamp(self.timestamp, fmt)
