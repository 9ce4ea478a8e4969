"""Tests for EventSink dispatch, resolution and lifecycle."""

import threading
from datetime import datetime, timezone

import pytest

from insightsink.base.events import EventEntry, EventLevel, EventSchema
from insightsink.base.formatters import DetailsFormatter
from insightsink.core.config import ConfigurationManager
from insightsink.core.registry import LoggerRegistry
from insightsink.core.sink import EventSink
from insightsink.core.types import SinkConfigurationError

STAMP = datetime(2024, 5, 17, 13, 45, 30, tzinfo=timezone.utc)


class RecordingDestination:
    """Destination that records every send."""

    def __init__(self, name="recording"):
        self.name = name
        self.calls = []

    def _record(self, operation, message, details):
        self.calls.append((operation, message, details))

    def send_information(self, message, details=None):
        self._record("send_information", message, details)

    def send_warning(self, message, details=None):
        self._record("send_warning", message, details)

    def send_error(self, message, details=None):
        self._record("send_error", message, details)

    def send_fatal(self, message, details=None):
        self._record("send_fatal", message, details)

    def send_verbose(self, message, details=None):
        self._record("send_verbose", message, details)

    def send_message(self, message, details=None):
        self._record("send_message", message, details)


class FailingDestination(RecordingDestination):
    def send_warning(self, message, details=None):
        raise IOError("destination offline")


class RecordingDiagnostics:
    def __init__(self):
        self.faults = []

    def custom_sink_unhandled_fault(self, fault):
        self.faults.append(fault)


class CountingConfiguration(ConfigurationManager):
    def __init__(self):
        super().__init__()
        self.unregister_calls = 0

    def unregister(self, handle):
        self.unregister_calls += 1
        return super().unregister(handle)


class ExplodingRegistry(LoggerRegistry):
    def __init__(self, default):
        super().__init__(default)
        self.explode = False

    def resolve(self, name):
        if self.explode:
            raise LookupError("registry unavailable")
        return super().resolve(name)


def make_entry(level=EventLevel.WARNING, message="disk low"):
    schema = EventSchema(event_id=3, level=level, event_name="Disk")
    return EventEntry(schema=schema, formatted_message=message, timestamp=STAMP)


def make_sink(*args, destination=None, **kwargs):
    if destination is None:
        destination = RecordingDestination()
    registry = kwargs.pop("registry", None)
    if registry is None:
        registry = LoggerRegistry(destination)
    configuration = kwargs.pop("configuration", None)
    if configuration is None:
        configuration = ConfigurationManager()
    diagnostics = RecordingDiagnostics()
    sink = EventSink(
        *args,
        registry=registry,
        configuration=configuration,
        diagnostics=diagnostics,
        **kwargs,
    )
    return sink, destination, diagnostics


@pytest.mark.parametrize(
    "level, operation",
    [
        (EventLevel.INFORMATIONAL, "send_information"),
        (EventLevel.WARNING, "send_warning"),
    ],
)
def test_plain_levels_send_without_details(level, operation):
    sink, destination, _ = make_sink()
    sink.on_next(make_entry(level))
    assert destination.calls == [(operation, "disk low", None)]


@pytest.mark.parametrize(
    "level, operation",
    [
        (EventLevel.ERROR, "send_error"),
        (EventLevel.CRITICAL, "send_fatal"),
        (EventLevel.VERBOSE, "send_verbose"),
    ],
)
def test_severe_levels_attach_details(level, operation):
    sink, destination, _ = make_sink()
    entry = make_entry(level)
    sink.on_next(entry)
    expected = DetailsFormatter(time_format=sink.time_format).format(entry)
    assert destination.calls == [(operation, "disk low", expected)]


@pytest.mark.parametrize("level", [EventLevel.LOG_ALWAYS, 17])
def test_unmapped_levels_use_generic_send(level):
    sink, destination, _ = make_sink()
    sink.on_next(make_entry(level))
    assert destination.calls == [("send_message", "disk low", None)]


def test_pattern_example():
    sink, destination, _ = make_sink(None, "%level%: %message%")
    sink.on_next(make_entry(EventLevel.WARNING, "disk low"))
    assert destination.calls == [("send_warning", "Warning: disk low", None)]


def test_none_event_is_ignored():
    sink, destination, diagnostics = make_sink()
    sink.on_next(None)
    assert destination.calls == []
    assert diagnostics.faults == []


def test_blank_settings_use_defaults():
    sink, _, _ = make_sink("", "   ", "")
    assert sink.instance_name == ""
    assert sink.message_pattern == "%message%"
    assert sink.time_format == "yyyy-MM-ddTHH:mm:ss.fffffffZ"


def test_invalid_settings_raise():
    with pytest.raises(SinkConfigurationError):
        make_sink(None, 123)


def test_unknown_instance_resolves_to_default_without_fault():
    sink, destination, diagnostics = make_sink("does-not-exist")
    assert sink.destination is destination
    assert diagnostics.faults == []


def test_named_instance_is_resolved():
    named = RecordingDestination("audit")
    registry = LoggerRegistry(RecordingDestination("default"))
    registry.register("audit", named)
    sink, _, _ = make_sink("audit", registry=registry)
    sink.on_next(make_entry())
    assert sink.destination is named
    assert named.calls == [("send_warning", "disk low", None)]


def test_config_change_swaps_destination():
    configuration = ConfigurationManager()
    registry = LoggerRegistry(RecordingDestination("default"))
    sink, _, _ = make_sink("audit", registry=registry, configuration=configuration)
    replacement = RecordingDestination("audit")
    registry.register("audit", replacement)

    configuration.notify()
    sink.on_next(make_entry())

    assert sink.destination is replacement
    assert replacement.calls == [("send_warning", "disk low", None)]


def test_resolution_failure_keeps_previous_destination():
    original = RecordingDestination()
    registry = ExplodingRegistry(original)
    configuration = ConfigurationManager()
    sink, _, diagnostics = make_sink(registry=registry, configuration=configuration)

    registry.explode = True
    configuration.notify()

    assert sink.destination is original
    assert len(diagnostics.faults) == 1
    assert "registry unavailable" in diagnostics.faults[0]


def test_send_failure_is_reported_not_raised():
    sink, _, diagnostics = make_sink(destination=FailingDestination())
    sink.on_next(make_entry(EventLevel.WARNING))
    assert len(diagnostics.faults) == 1
    assert "destination offline" in diagnostics.faults[0]


def test_upstream_error_is_reported():
    sink, destination, diagnostics = make_sink()
    sink.on_error(ValueError("upstream broke"))
    assert destination.calls == []
    assert "upstream broke" in diagnostics.faults[0]
    assert not sink.disposed


def test_dispose_twice_unregisters_once():
    configuration = CountingConfiguration()
    sink, _, _ = make_sink(configuration=configuration)
    assert len(configuration) == 1

    sink.close()
    sink.dispose()

    assert sink.disposed
    assert configuration.unregister_calls == 1
    assert len(configuration) == 0


def test_completion_disposes():
    configuration = CountingConfiguration()
    sink, _, _ = make_sink(configuration=configuration)
    sink.on_completed()
    sink.close()
    assert sink.disposed
    assert configuration.unregister_calls == 1


def test_context_manager_disposes():
    configuration = ConfigurationManager()
    with make_sink(configuration=configuration)[0] as sink:
        assert not sink.disposed
    assert sink.disposed
    assert len(configuration) == 0


def test_disposed_sink_ignores_config_changes():
    configuration = ConfigurationManager()
    registry = LoggerRegistry(RecordingDestination("default"))
    sink, _, _ = make_sink("audit", registry=registry, configuration=configuration)
    before = sink.destination
    sink.close()

    registry.register("audit", RecordingDestination("audit"))
    configuration.notify()

    assert sink.destination is before


def test_concurrent_config_changes_and_sends():
    configuration = ConfigurationManager()
    sink, destination, diagnostics = make_sink(configuration=configuration)

    def churn():
        for _ in range(200):
            configuration.notify()

    threads = [threading.Thread(target=churn) for _ in range(4)]
    for thread in threads:
        thread.start()
    for _ in range(200):
        sink.on_next(make_entry())
    for thread in threads:
        thread.join()

    assert len(destination.calls) == 200
    assert diagnostics.faults == []
