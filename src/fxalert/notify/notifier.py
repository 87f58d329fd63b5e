"""Notifier interface and its two implementations.

MacNotifier shows a desktop notification through ``osascript``;
ConsoleNotifier prints a framed block to stdout. Notifiers raise
NotificationError on failure; turning failures into a fallback is the
dispatcher's job.
"""

import asyncio
import sys
from abc import ABC, abstractmethod
from typing import TextIO

from fxalert.exceptions import NotificationError

_RULE_WIDTH = 60


class Notifier(ABC):
    """Abstract base class for notification channels."""

    channel: str = ""

    @abstractmethod
    async def notify(self, title: str, message: str, sound: str) -> None:
        """Deliver a notification or raise NotificationError."""
        ...


def _applescript_quote(text: str) -> str:
    """Escape text for use inside an AppleScript string literal."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


class MacNotifier(Notifier):
    """macOS notification center via ``osascript -e 'display notification ...'``.

    Args:
        timeout_seconds: Upper bound on the osascript run; the process is
            killed when exceeded.
    """

    channel = "native"

    def __init__(self, timeout_seconds: float = 10.0) -> None:
        self._timeout = timeout_seconds

    async def notify(self, title: str, message: str, sound: str) -> None:
        script = (
            f'display notification "{_applescript_quote(message)}" '
            f'with title "{_applescript_quote(title)}" '
            f'sound name "{_applescript_quote(sound)}"'
        )

        try:
            proc = await asyncio.create_subprocess_exec(
                "osascript",
                "-e",
                script,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise NotificationError(f"Failed to spawn osascript: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise NotificationError(
                f"osascript timed out after {self._timeout:g}s"
            ) from e

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() if stderr else ""
            raise NotificationError(
                f"osascript failed with code {proc.returncode}: {detail}"
            )


class ConsoleNotifier(Notifier):
    """Prints the notification as a framed block."""

    channel = "console"

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    async def notify(self, title: str, message: str, sound: str) -> None:
        stream = self._stream or sys.stdout
        block = "\n".join(
            [
                "",
                "=" * _RULE_WIDTH,
                f"🔔 {title}",
                "-" * _RULE_WIDTH,
                message,
                "=" * _RULE_WIDTH,
                "",
            ]
        )
        try:
            print(block, file=stream, flush=True)
        except (OSError, ValueError) as e:
            raise NotificationError(f"console write failed: {e}") from e
