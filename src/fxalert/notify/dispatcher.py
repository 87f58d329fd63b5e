"""Best-effort alert dispatch with a console fallback.

The dispatcher never raises: a lost notification is acceptable, a crashed
monitor is not. Native delivery is picked at dispatch time from the
running platform; anything that goes wrong on the native path is logged
and the alert is printed to the console instead.
"""

import sys
from decimal import Decimal

from fxalert.config import NotifierSettings
from fxalert.exceptions import NotificationError
from fxalert.logging import get_logger
from fxalert.models import DeliveryResult
from fxalert.notify.notifier import ConsoleNotifier, MacNotifier, Notifier
from fxalert.rates.market import format_rate, format_threshold

logger = get_logger(__name__)

NATIVE_PLATFORM = "darwin"


class AlertDispatcher:
    """Delivers alerts through the native notifier, falling back to console.

    Args:
        settings: Native toggle and notifier timeout.
        native: Native notifier (defaults to MacNotifier).
        console: Fallback notifier (defaults to ConsoleNotifier).
        platform: Platform override; ``sys.platform`` is read on every
            dispatch when omitted.
    """

    def __init__(
        self,
        settings: NotifierSettings,
        native: Notifier | None = None,
        console: Notifier | None = None,
        platform: str | None = None,
    ) -> None:
        self._settings = settings
        self._native = native or MacNotifier(timeout_seconds=settings.timeout_seconds)
        self._console = console or ConsoleNotifier()
        self._platform = platform

    def _native_unavailable_reason(self) -> str | None:
        if not self._settings.native_enabled:
            return "native notifications disabled"
        platform = self._platform or sys.platform
        if platform != NATIVE_PLATFORM:
            return f"native notifications not supported on {platform}"
        return None

    async def dispatch(self, title: str, message: str, sound: str = "Glass") -> DeliveryResult:
        """Deliver one alert. Always returns; failures only show up in logs."""
        reason = self._native_unavailable_reason()

        if reason is None:
            try:
                await self._native.notify(title, message, sound)
                logger.info("notification_sent", title=title, channel=self._native.channel)
                return DeliveryResult(title=title, channel=self._native.channel)
            except NotificationError as e:
                reason = str(e)
                logger.error("notification_failed", title=title, error=reason)
            except Exception as e:
                reason = str(e) or type(e).__name__
                logger.error(
                    "notification_failed", title=title, error=reason, exc_info=True
                )
        else:
            logger.debug("native_notification_skipped", reason=reason)

        try:
            await self._console.notify(title, message, sound)
        except Exception as e:
            logger.error("console_notification_failed", title=title, error=str(e))

        return DeliveryResult(
            title=title, channel=self._console.channel, fallback_reason=reason
        )

    async def send_startup_notification(self, threshold: Decimal) -> DeliveryResult:
        return await self.dispatch(
            "🚀 Currency Monitor Started",
            f"Monitoring USD-BRL rate. Target: ≥{format_threshold(threshold)} BRL",
            sound="Hero",
        )

    async def send_sell_alert(self, ask: Decimal, threshold: Decimal) -> DeliveryResult:
        return await self.dispatch(
            "💰 USD Sell Alert",
            f"Current ask rate: {format_rate(ask)} BRL "
            f"(target: ≥{format_threshold(threshold)})",
            sound="Glass",
        )

    async def send_error_alert(self, reason: str) -> DeliveryResult:
        return await self.dispatch(
            "⚠️ Currency Monitor Error",
            f"Failed to check rates: {reason}",
            sound="Basso",
        )
