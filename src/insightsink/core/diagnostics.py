"""Diagnostic channel for faults raised inside a sink.

Faults are rendered to a string and reported fire-and-forget. Reporting
never raises back into the caller.
"""

import logging
import traceback
from typing import Protocol

FAULT_TAG = "custom sink unhandled fault"


class DiagnosticChannel(Protocol):
    """Protocol for receivers of rendered sink faults."""
    def custom_sink_unhandled_fault(self, fault: str) -> None:
        ...


class SinkDiagnostics:
    """Default channel; writes faults to the ``insightsink.diagnostics`` logger."""

    def __init__(self, logger_name: str = "insightsink.diagnostics") -> None:
        self.logger_name = logger_name

    def custom_sink_unhandled_fault(self, fault: str) -> None:
        try:
            logging.getLogger(self.logger_name).error(
                "%s: %s", FAULT_TAG, fault, extra={"fault_tag": FAULT_TAG}
            )
        except Exception:
            # Reporting must not fail the event pipeline.
            pass


def render_fault(error: BaseException) -> str:
    """Render an exception with its traceback, like the runtime's string form."""
    return "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip()


def report_fault(channel: DiagnosticChannel, error: BaseException) -> None:
    """Render ``error`` and hand it to ``channel``, swallowing any failure."""
    try:
        channel.custom_sink_unhandled_fault(render_fault(error))
    except Exception:
        pass


_default_diagnostics: DiagnosticChannel = SinkDiagnostics()


def get_default_diagnostics() -> DiagnosticChannel:
    """Get the process-wide diagnostic channel."""
    return _default_diagnostics


def set_default_diagnostics(channel: DiagnosticChannel) -> None:
    global _default_diagnostics
    _default_diagnostics = channel
