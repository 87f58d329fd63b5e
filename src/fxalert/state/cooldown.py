"""Notification cooldown rule.

After a sell alert has gone out, further alerts are held back until the
cooldown window has fully elapsed. The window is a setting of its own and
is deliberately not derived from the check interval.
"""

from datetime import datetime, timedelta

from fxalert.models import Configuration

DEFAULT_COOLDOWN = timedelta(hours=2)


class CooldownPolicy:
    """Decides whether a new notification may be sent.

    Args:
        cooldown_seconds: Minimum time between two notifications.
    """

    def __init__(self, cooldown_seconds: float = DEFAULT_COOLDOWN.total_seconds()) -> None:
        self._cooldown = timedelta(seconds=cooldown_seconds)

    @property
    def cooldown(self) -> timedelta:
        return self._cooldown

    def should_notify(self, config: Configuration, now: datetime) -> bool:
        """True if never notified, or the last notification is older than the window."""
        if config.last_notification_at is None:
            return True
        return config.last_notification_at < now - self._cooldown
