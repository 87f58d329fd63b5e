"""Notification layer -- native desktop alerts with console fallback."""

from fxalert.notify.dispatcher import AlertDispatcher
from fxalert.notify.notifier import ConsoleNotifier, MacNotifier, Notifier

__all__ = ["AlertDispatcher", "ConsoleNotifier", "MacNotifier", "Notifier"]
