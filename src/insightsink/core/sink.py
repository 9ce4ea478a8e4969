"""Event sink that forwards trace events to a destination logger.

The sink formats each event into a one-line message (and, for the more
severe levels, a details block), picks the destination send operation from
the event severity, and keeps its destination up to date when the
configuration manager reports a change.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from insightsink.base.events import EventEntry
from insightsink.base.formatters import DetailsFormatter, MessageFormatter
from insightsink.core.config import ConfigurationManager, get_default_configuration
from insightsink.core.diagnostics import DiagnosticChannel, get_default_diagnostics, report_fault
from insightsink.core.registry import DestinationLogger, LoggerRegistry, get_default_registry, send
from insightsink.core.types import FALLBACK_RULE, SinkSettings, resolve_dispatch_rule


@dataclass(frozen=True)
class _DestinationSnapshot:
    destination: DestinationLogger
    instance_name: str


class EventSink:
    """Observer of an event stream that writes to a destination logger.

    The sink registers with the configuration manager on construction and
    resolves its destination once. Every configuration change re-resolves the
    destination by instance name, falling back to the registry default.
    Faults raised while handling an event or a configuration change are
    reported to the diagnostic channel and never propagate.

    Use the sink as a context manager, or call ``close()``, to unregister from
    configuration changes. Completion of the upstream stream closes it too.

    Args:
        instance_name: Destination logger name. Empty resolves to the default.
        message_pattern: Message pattern. Blank means ``%message%``.
        time_format: Timestamp pattern. Blank means
            ``yyyy-MM-ddTHH:mm:ss.fffffffZ``.
        registry: Destination registry. Uses the default registry if omitted.
        configuration: Configuration manager. Uses the default if omitted.
        diagnostics: Diagnostic channel. Uses the default if omitted.

    Raises:
        SinkConfigurationError: If the string settings are not strings.

    Example:
        >>> with EventSink("audit", "%level%: %message%") as sink:
        ...     stream.subscribe(sink)
    """

    def __init__(
        self,
        instance_name: Optional[str] = None,
        message_pattern: Optional[str] = None,
        time_format: Optional[str] = None,
        *,
        registry: Optional[LoggerRegistry] = None,
        configuration: Optional[ConfigurationManager] = None,
        diagnostics: Optional[DiagnosticChannel] = None,
    ) -> None:
        self.settings = SinkSettings.from_args(instance_name, message_pattern, time_format)
        self.registry = registry if registry is not None else get_default_registry()
        self.configuration = configuration if configuration is not None else get_default_configuration()
        self.diagnostics = diagnostics if diagnostics is not None else get_default_diagnostics()
        self.message_formatter = MessageFormatter(
            self.settings.message_pattern, time_format=self.settings.time_format
        )
        self.details_formatter = DetailsFormatter(time_format=self.settings.time_format)
        self._lock = threading.Lock()
        self._disposed = False
        self._snapshot: Optional[_DestinationSnapshot] = None
        self._registration = self.configuration.register(self.on_config_change)
        self.on_config_change()

    @property
    def instance_name(self) -> str:
        return self.settings.instance_name

    @property
    def message_pattern(self) -> str:
        return self.settings.message_pattern

    @property
    def time_format(self) -> str:
        return self.settings.time_format

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def destination(self) -> Optional[DestinationLogger]:
        snapshot = self._snapshot
        return snapshot.destination if snapshot is not None else None

    def on_config_change(self) -> None:
        """Re-resolve the destination logger.

        On failure the previous destination is kept and the fault is reported.
        """
        try:
            with self._lock:
                destination = self.registry.resolve(self.instance_name)
                # Single rebind; readers see either the old or the new snapshot.
                self._snapshot = _DestinationSnapshot(destination, self.instance_name)
        except Exception as exc:
            self.on_error(exc)

    def on_next(self, entry: Optional[EventEntry]) -> None:
        """Format and forward one event. ``None`` is ignored."""
        if entry is None:
            return
        try:
            rule = resolve_dispatch_rule(entry.schema.level)
            if rule is FALLBACK_RULE:
                logging.getLogger("insightsink.sink").debug(
                    "Unmapped event level %s; using %s", entry.schema.level, rule.message_type.value
                )
            details = self.details_formatter.format(entry) if rule.include_details else None
            message = self.message_formatter.format(entry)
            snapshot = self._snapshot
            if snapshot is None:
                raise RuntimeError(f"No destination resolved for instance {self.instance_name!r}")
            send(snapshot.destination, rule.message_type, message, details)
        except Exception as exc:
            self.on_error(exc)

    def on_error(self, error: BaseException) -> None:
        """Report a fault to the diagnostic channel."""
        report_fault(self.diagnostics, error)

    def on_completed(self) -> None:
        self.close()

    def close(self) -> None:
        """Unregister from configuration changes. Safe to call repeatedly.

        In-flight sends are not interrupted.
        """
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self.configuration.unregister(self._registration)

    dispose = close

    def __enter__(self) -> "EventSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"EventSink(instance_name={self.instance_name!r}, "
            f"message_pattern={self.message_pattern!r}, disposed={self._disposed})"
        )
