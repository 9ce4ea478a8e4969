"""Configuration-change notifications.

Sinks register a callback with a ``ConfigurationManager`` and unregister it
on disposal. Calling ``notify()`` invokes every registered callback with no
arguments, which makes each sink re-resolve its destination logger.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List

import uuid_utils as uuid

ConfigChangeCallback = Callable[[], None]


@dataclass(frozen=True)
class RegistrationHandle:
    """Opaque token returned by ``ConfigurationManager.register``.

    Attributes:
        registration_id: Time-ordered unique identifier.
    """
    registration_id: str


class ConfigurationManager:
    """Observer registry for configuration-change callbacks.

    Callbacks run synchronously on the thread calling ``notify()``. The set of
    callbacks is snapshotted first, so a callback may unregister itself or
    others while being notified. A callback that raises is logged and the
    remaining callbacks still run.

    Example:
        >>> manager = ConfigurationManager()
        >>> handle = manager.register(lambda: print("changed"))
        >>> manager.notify()
        changed
        >>> manager.unregister(handle)
        True
    """

    def __init__(self) -> None:
        self._callbacks: Dict[str, ConfigChangeCallback] = {}
        self._lock = threading.Lock()

    def register(self, callback: ConfigChangeCallback) -> RegistrationHandle:
        handle = RegistrationHandle(_new_registration_id())
        with self._lock:
            self._callbacks[handle.registration_id] = callback
        return handle

    def unregister(self, handle: RegistrationHandle) -> bool:
        """Remove a callback.

        Returns:
            True if the handle was registered, False otherwise.
        """
        with self._lock:
            return self._callbacks.pop(handle.registration_id, None) is not None

    def notify(self) -> None:
        with self._lock:
            callbacks: List[ConfigChangeCallback] = list(self._callbacks.values())
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logging.getLogger("insightsink.config").exception(
                    "Configuration change callback failed"
                )

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)


def _new_registration_id() -> str:
    return uuid.uuid7().hex


_default_configuration = ConfigurationManager()


def get_default_configuration() -> ConfigurationManager:
    """Get the process-wide configuration manager."""
    return _default_configuration


def set_default_configuration(manager: ConfigurationManager) -> None:
    """Replace the process-wide configuration manager.

    Args:
        manager: Manager to use as the default.
    """
    global _default_configuration
    _default_configuration = manager
