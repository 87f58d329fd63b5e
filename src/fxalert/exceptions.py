"""Custom exceptions for the currency monitor.

All monitor-level exceptions live here to avoid circular imports
between the rates, state, notify and check cycle modules.
"""


class MonitorError(Exception):
    """Base exception for all monitor errors."""


class FetchError(MonitorError):
    """Raised when the current exchange rate cannot be retrieved or parsed.

    ``last_error`` holds the underlying failure of the final attempt.
    """

    def __init__(self, message: str, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class ConfigError(MonitorError):
    """Raised when the persisted state file is unreadable or malformed."""


class CheckError(MonitorError):
    """Raised when a check cycle cannot complete."""


class NotificationError(MonitorError):
    """Raised by a notifier when native delivery fails."""
