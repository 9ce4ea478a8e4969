"""Push-based event streams and the entry points that attach a sink to them.

``EventStream`` delivers events to subscribed observers. The
``ObservableEventListener`` adds per-provider enablement in front of it, the
way a tracing session enables providers at a level and keyword mask.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Union

from insightsink.base.events import KEYWORDS_ALL, KEYWORDS_NONE, EventEntry, EventLevel
from insightsink.core.config import ConfigurationManager
from insightsink.core.diagnostics import DiagnosticChannel
from insightsink.core.registry import LoggerRegistry
from insightsink.core.sink import EventSink

ProviderKey = Union[uuid.UUID, str]


class EventObserver(Protocol):
    """Receiving end of an event stream."""
    def on_next(self, entry: Optional[EventEntry]) -> None: ...

    def on_error(self, error: BaseException) -> None: ...

    def on_completed(self) -> None: ...


class Subscription:
    """Handle that detaches an observer from a stream when closed."""

    def __init__(self, stream: "EventStream", observer: EventObserver) -> None:
        self._stream = stream
        self._observer = observer
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stream._remove(self._observer)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class EventStream:
    """Push-based sequence of events.

    Observer failures are logged and do not stop delivery to the remaining
    observers. After ``complete()`` new subscribers are completed immediately.
    """

    def __init__(self) -> None:
        self._observers: List[EventObserver] = []
        self._completed = False
        self._lock = threading.Lock()

    @property
    def completed(self) -> bool:
        return self._completed

    def subscribe(self, observer: EventObserver) -> Subscription:
        subscription = Subscription(self, observer)
        with self._lock:
            completed = self._completed
            if not completed:
                self._observers.append(observer)
        if completed:
            subscription.close()
            observer.on_completed()
        return subscription

    def publish(self, entry: Optional[EventEntry]) -> None:
        for observer in self._snapshot():
            try:
                observer.on_next(entry)
            except Exception:
                _logger().exception("Observer %r failed on event", observer)

    def error(self, error: BaseException) -> None:
        for observer in self._snapshot():
            try:
                observer.on_error(error)
            except Exception:
                _logger().exception("Observer %r failed on error notification", observer)

    def complete(self) -> None:
        with self._lock:
            if self._completed:
                return
            self._completed = True
            observers = list(self._observers)
            self._observers.clear()
        for observer in observers:
            try:
                observer.on_completed()
            except Exception:
                _logger().exception("Observer %r failed on completion", observer)

    def _snapshot(self) -> List[EventObserver]:
        with self._lock:
            return list(self._observers)

    def _remove(self, observer: EventObserver) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)


@dataclass(frozen=True)
class _ProviderFilter:
    level: EventLevel
    keywords: int


class ObservableEventListener(EventStream):
    """Event stream fed by ``write_event`` for enabled providers only.

    Providers are keyed by provider id or provider name. An entry passes when
    its level is within the enabled level (``LOG_ALWAYS`` enables every level,
    and ``LOG_ALWAYS`` entries always pass) and its keywords overlap the
    enabled mask (entries without keywords always pass).

    Closing the listener completes the stream, which closes attached sinks.

    Example:
        >>> listener = ObservableEventListener()
        >>> listener.enable_events("MyCompany-App", EventLevel.WARNING)
        >>> listener.write_event(entry)
    """

    def __init__(self) -> None:
        super().__init__()
        self._providers: Dict[ProviderKey, _ProviderFilter] = {}

    def enable_events(
        self,
        provider: ProviderKey,
        level: EventLevel = EventLevel.LOG_ALWAYS,
        keywords: int = KEYWORDS_ALL,
    ) -> None:
        with self._lock:
            self._providers[provider] = _ProviderFilter(EventLevel(level), keywords)

    def disable_events(self, provider: ProviderKey) -> None:
        with self._lock:
            self._providers.pop(provider, None)

    def is_enabled(self, entry: EventEntry) -> bool:
        with self._lock:
            provider_filter = self._providers.get(entry.provider_id)
            if provider_filter is None and entry.schema.provider_name:
                provider_filter = self._providers.get(entry.schema.provider_name)
        if provider_filter is None:
            return False
        return _level_passes(provider_filter.level, entry.level) and _keywords_pass(
            provider_filter.keywords, entry.schema.keywords
        )

    def write_event(self, entry: Optional[EventEntry]) -> bool:
        """Publish ``entry`` if its provider is enabled.

        Returns:
            True if the entry was published.
        """
        if entry is None or not self.is_enabled(entry):
            return False
        self.publish(entry)
        return True

    def close(self) -> None:
        self.complete()

    def __enter__(self) -> "ObservableEventListener":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _level_passes(enabled: EventLevel, level: int) -> bool:
    if enabled == EventLevel.LOG_ALWAYS or level == EventLevel.LOG_ALWAYS:
        return True
    return int(level) <= int(enabled)


def _keywords_pass(enabled: int, keywords: int) -> bool:
    if enabled == KEYWORDS_ALL or keywords == KEYWORDS_NONE:
        return True
    return bool(enabled & keywords)


class SinkSubscription:
    """A sink bundled with its stream subscription.

    Closing detaches the sink from the stream, then closes the sink.

    Attributes:
        subscription: Subscription of the sink to the stream.
        sink: The attached sink.
    """

    def __init__(self, subscription: Subscription, sink: EventSink) -> None:
        self.subscription = subscription
        self.sink = sink

    def close(self) -> None:
        self.subscription.close()
        self.sink.close()

    def __enter__(self) -> "SinkSubscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def log_to_insight(
    event_stream: EventStream,
    instance_name: Optional[str] = None,
    message_pattern: Optional[str] = None,
    time_format: Optional[str] = None,
    *,
    registry: Optional[LoggerRegistry] = None,
    configuration: Optional[ConfigurationManager] = None,
    diagnostics: Optional[DiagnosticChannel] = None,
) -> SinkSubscription:
    """Attach a new ``EventSink`` to ``event_stream``.

    Args:
        event_stream: Stream to subscribe to.
        instance_name: Destination logger name.
        message_pattern: Message pattern.
        time_format: Timestamp pattern.
        registry: Optional destination registry.
        configuration: Optional configuration manager.
        diagnostics: Optional diagnostic channel.

    Returns:
        Handle owning both the subscription and the sink.
    """
    sink = EventSink(
        instance_name,
        message_pattern,
        time_format,
        registry=registry,
        configuration=configuration,
        diagnostics=diagnostics,
    )
    subscription = event_stream.subscribe(sink)
    return SinkSubscription(subscription, sink)


def create_listener(
    instance_name: Optional[str] = None,
    message_pattern: Optional[str] = None,
    time_format: Optional[str] = None,
    *,
    registry: Optional[LoggerRegistry] = None,
    configuration: Optional[ConfigurationManager] = None,
    diagnostics: Optional[DiagnosticChannel] = None,
) -> ObservableEventListener:
    """Create a listener with a sink already attached.

    Closing the returned listener completes its stream and closes the sink.
    """
    listener = ObservableEventListener()
    log_to_insight(
        listener,
        instance_name,
        message_pattern,
        time_format,
        registry=registry,
        configuration=configuration,
        diagnostics=diagnostics,
    )
    return listener


def _logger() -> logging.Logger:
    return logging.getLogger("insightsink.listener")
