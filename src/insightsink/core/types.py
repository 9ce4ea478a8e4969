"""Type definitions for sink configuration and severity dispatch.

This module defines the Pydantic settings model for a sink, the destination
message types, and the table mapping event severity to a destination send.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from insightsink.base.events import EventLevel, Level
from insightsink.base.formatters import DEFAULT_MESSAGE_PATTERN
from insightsink.base.timestamps import DEFAULT_TIME_FORMAT


class SinkConfigurationError(Exception):
    """Raised when sink settings cannot be validated.

    Attributes:
        field_errors: Validation errors reported by Pydantic.
    """

    def __init__(self, message: str, *, field_errors: Optional[list] = None) -> None:
        super().__init__(message)
        self.field_errors = field_errors or []


class SinkSettings(BaseModel):
    """Settings for an event sink.

    Blank or missing values fall back to their defaults.

    Attributes:
        instance_name: Name of the destination logger to resolve. Empty means
            the registry default.
        message_pattern: Pattern for the one-line message.
        time_format: Pattern used to render ``%timestamp%`` and the details
            ``Timestamp`` line.
    """
    model_config = ConfigDict(frozen=True)

    instance_name: str = ""
    message_pattern: str = DEFAULT_MESSAGE_PATTERN
    time_format: str = DEFAULT_TIME_FORMAT

    @field_validator("instance_name", mode="before")
    @classmethod
    def _default_instance_name(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("message_pattern", mode="before")
    @classmethod
    def _default_message_pattern(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_MESSAGE_PATTERN
        return value

    @field_validator("time_format", mode="before")
    @classmethod
    def _default_time_format(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_TIME_FORMAT
        return value

    @classmethod
    def from_args(
        cls,
        instance_name: Optional[str] = None,
        message_pattern: Optional[str] = None,
        time_format: Optional[str] = None,
    ) -> "SinkSettings":
        """Build settings from optional constructor arguments.

        Raises:
            SinkConfigurationError: If a value has the wrong type.
        """
        try:
            return cls(
                instance_name=instance_name,
                message_pattern=message_pattern,
                time_format=time_format,
            )
        except ValidationError as exc:
            raise SinkConfigurationError(
                f"Invalid sink settings: {exc}", field_errors=exc.errors()
            ) from exc


class MessageType(str, Enum):
    """Send operations exposed by a destination logger."""
    SEND_INFORMATION = "send_information"
    SEND_WARNING = "send_warning"
    SEND_ERROR = "send_error"
    SEND_FATAL = "send_fatal"
    SEND_VERBOSE = "send_verbose"
    SEND_MESSAGE = "send_message"


@dataclass(frozen=True)
class DispatchRule:
    """Where an event of a given severity goes.

    Attributes:
        message_type: Destination send operation.
        include_details: Whether the details block is attached.
    """
    message_type: MessageType
    include_details: bool


DISPATCH_TABLE: Dict[EventLevel, DispatchRule] = {
    EventLevel.INFORMATIONAL: DispatchRule(MessageType.SEND_INFORMATION, False),
    EventLevel.WARNING: DispatchRule(MessageType.SEND_WARNING, False),
    EventLevel.ERROR: DispatchRule(MessageType.SEND_ERROR, True),
    EventLevel.CRITICAL: DispatchRule(MessageType.SEND_FATAL, True),
    EventLevel.VERBOSE: DispatchRule(MessageType.SEND_VERBOSE, True),
}

FALLBACK_RULE = DispatchRule(MessageType.SEND_MESSAGE, False)


def resolve_dispatch_rule(level: Level) -> DispatchRule:
    """Return the dispatch rule for a severity, or the generic fallback."""
    return DISPATCH_TABLE.get(level, FALLBACK_RULE)
