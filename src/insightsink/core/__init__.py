from insightsink.core.config import (
    ConfigurationManager,
    RegistrationHandle,
    get_default_configuration,
    set_default_configuration,
)
from insightsink.core.diagnostics import (
    DiagnosticChannel,
    SinkDiagnostics,
    get_default_diagnostics,
    set_default_diagnostics,
)
from insightsink.core.listener import (
    EventObserver,
    EventStream,
    ObservableEventListener,
    SinkSubscription,
    Subscription,
    create_listener,
    log_to_insight,
)
from insightsink.core.registry import (
    DestinationLogger,
    LoggerRegistry,
    LoggingDestination,
    get_default_registry,
    set_default_registry,
)
from insightsink.core.sink import EventSink
from insightsink.core.types import (
    DISPATCH_TABLE,
    FALLBACK_RULE,
    DispatchRule,
    MessageType,
    SinkConfigurationError,
    SinkSettings,
    resolve_dispatch_rule,
)

__all__ = [
    # Sink
    "EventSink",
    # Streams and entry points
    "EventObserver",
    "EventStream",
    "ObservableEventListener",
    "Subscription",
    "SinkSubscription",
    "log_to_insight",
    "create_listener",
    # Destinations
    "DestinationLogger",
    "LoggingDestination",
    "LoggerRegistry",
    "get_default_registry",
    "set_default_registry",
    # Configuration changes
    "ConfigurationManager",
    "RegistrationHandle",
    "get_default_configuration",
    "set_default_configuration",
    # Diagnostics
    "DiagnosticChannel",
    "SinkDiagnostics",
    "get_default_diagnostics",
    "set_default_diagnostics",
    # Types
    "SinkSettings",
    "SinkConfigurationError",
    "MessageType",
    "DispatchRule",
    "DISPATCH_TABLE",
    "FALLBACK_RULE",
    "resolve_dispatch_rule",
]
