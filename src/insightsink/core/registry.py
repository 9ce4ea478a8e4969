"""Destination loggers and the registry that resolves them by name.

A destination logger exposes six severity-tagged send operations. The
registry maps instance names to destinations and always holds a default.
"""

import logging
import threading
from typing import Dict, List, Optional, Protocol, runtime_checkable

from insightsink.core.types import MessageType

DEFAULT_DESTINATION_NAME = "insight"


@runtime_checkable
class DestinationLogger(Protocol):
    """Protocol for loggers the sink writes to.

    Every send operation accepts the one-line message and an optional details
    block. Implementations must be safe to call from several threads.
    """
    def send_information(self, message: str, details: Optional[str] = None) -> None: ...

    def send_warning(self, message: str, details: Optional[str] = None) -> None: ...

    def send_error(self, message: str, details: Optional[str] = None) -> None: ...

    def send_fatal(self, message: str, details: Optional[str] = None) -> None: ...

    def send_verbose(self, message: str, details: Optional[str] = None) -> None: ...

    def send_message(self, message: str, details: Optional[str] = None) -> None: ...


def send(
    destination: DestinationLogger,
    message_type: MessageType,
    message: str,
    details: Optional[str] = None,
) -> None:
    """Invoke the send operation named by ``message_type`` on ``destination``."""
    getattr(destination, message_type.value)(message, details)


_LOGGING_LEVELS = {
    MessageType.SEND_INFORMATION: logging.INFO,
    MessageType.SEND_WARNING: logging.WARNING,
    MessageType.SEND_ERROR: logging.ERROR,
    MessageType.SEND_FATAL: logging.CRITICAL,
    MessageType.SEND_VERBOSE: logging.DEBUG,
    MessageType.SEND_MESSAGE: logging.INFO,
}


class LoggingDestination:
    """Destination that writes to a standard library logger.

    The details block, when present, follows the message on its own lines and
    is also attached to the record as ``record.details``.

    Args:
        name: Instance name. Also the logger name unless ``logger`` is given.
        logger: Optional logger to write to.
    """

    def __init__(self, name: str, logger: Optional[logging.Logger] = None) -> None:
        self.name = name
        self.logger = logger or logging.getLogger(name)

    def send(self, message_type: MessageType, message: str, details: Optional[str] = None) -> None:
        level = _LOGGING_LEVELS[message_type]
        extra = {"details": details, "message_type": message_type.value}
        if details:
            self.logger.log(level, "%s\n%s", message, details.rstrip("\r\n"), extra=extra)
        else:
            self.logger.log(level, "%s", message, extra=extra)

    def send_information(self, message: str, details: Optional[str] = None) -> None:
        self.send(MessageType.SEND_INFORMATION, message, details)

    def send_warning(self, message: str, details: Optional[str] = None) -> None:
        self.send(MessageType.SEND_WARNING, message, details)

    def send_error(self, message: str, details: Optional[str] = None) -> None:
        self.send(MessageType.SEND_ERROR, message, details)

    def send_fatal(self, message: str, details: Optional[str] = None) -> None:
        self.send(MessageType.SEND_FATAL, message, details)

    def send_verbose(self, message: str, details: Optional[str] = None) -> None:
        self.send(MessageType.SEND_VERBOSE, message, details)

    def send_message(self, message: str, details: Optional[str] = None) -> None:
        self.send(MessageType.SEND_MESSAGE, message, details)

    def __repr__(self) -> str:
        return f"LoggingDestination(name={self.name!r})"


class LoggerRegistry:
    """Name-to-destination registry with a guaranteed default.

    Args:
        default: Destination returned when a name is not registered. A
            ``LoggingDestination`` named ``insight`` is created if omitted.

    Example:
        >>> registry = LoggerRegistry()
        >>> registry.register("audit", LoggingDestination("audit"))
        >>> registry.get("audit").name
        'audit'
        >>> registry.get("missing") is None
        True
    """

    def __init__(self, default: Optional[DestinationLogger] = None) -> None:
        self._default: DestinationLogger = (
            default if default is not None else LoggingDestination(DEFAULT_DESTINATION_NAME)
        )
        self._instances: Dict[str, DestinationLogger] = {}
        self._lock = threading.Lock()

    @property
    def default(self) -> DestinationLogger:
        return self._default

    @default.setter
    def default(self, destination: DestinationLogger) -> None:
        if destination is None:
            raise ValueError("Default destination cannot be None")
        self._default = destination

    def get(self, name: Optional[str]) -> Optional[DestinationLogger]:
        """Return the destination registered under ``name``, if any."""
        if not name:
            return None
        with self._lock:
            return self._instances.get(name)

    def resolve(self, name: Optional[str]) -> DestinationLogger:
        """Return the destination for ``name``, falling back to the default."""
        destination = self.get(name)
        return destination if destination is not None else self._default

    def register(self, name: str, destination: DestinationLogger) -> None:
        if not name:
            raise ValueError("Destination name cannot be empty")
        with self._lock:
            self._instances[name] = destination

    def unregister(self, name: str) -> Optional[DestinationLogger]:
        with self._lock:
            return self._instances.pop(name, None)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._instances)


_default_registry = LoggerRegistry()


def get_default_registry() -> LoggerRegistry:
    """Get the process-wide destination registry."""
    return _default_registry


def set_default_registry(registry: LoggerRegistry) -> None:
    """Replace the process-wide destination registry.

    Args:
        registry: Registry to use as the default.
    """
    global _default_registry
    _default_registry = registry
