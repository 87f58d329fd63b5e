"""JSON-file persistence for the alert configuration.

A single pretty-printed JSON document holds the threshold and the
bookkeeping timestamps. The store owns the in-memory Configuration: every
mutation is applied in memory first and then flushed to disk. A failed
write is logged and the in-memory copy stays authoritative for the rest of
the process lifetime.

There is no locking; a single process is assumed to own the file.
"""

import json
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path

from fxalert.exceptions import ConfigError
from fxalert.logging import get_logger
from fxalert.models import Configuration

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConfigStore:
    """Loads, mutates and persists the single Configuration instance.

    The state file is read once on construction.

    Args:
        path: Location of the JSON state file.
        now: Clock returning an aware datetime (injectable for tests).
    """

    def __init__(
        self,
        path: str | Path,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._path = Path(path)
        self._now = now
        self._config: Configuration | None = self.load()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Configuration | None:
        """Read the state file; None if it is missing or cannot be parsed."""
        if not self._path.exists():
            return None

        try:
            config = _parse_config(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ConfigError) as e:
            logger.error("config_load_failed", path=str(self._path), error=str(e))
            return None

        logger.info("config_loaded", threshold=str(config.threshold))
        return config

    def get_config(self) -> Configuration | None:
        return self._config

    def get_threshold(self) -> Decimal | None:
        return self._config.threshold if self._config is not None else None

    def set_threshold(self, threshold: Decimal) -> None:
        """Create the configuration or update its threshold, then persist.

        Raises:
            ValueError: If threshold is not a positive finite number.
        """
        if not threshold.is_finite() or threshold <= 0:
            raise ValueError("threshold must be a positive number")

        if self._config is not None:
            self._config.threshold = threshold
        else:
            self._config = Configuration(threshold=threshold, created_at=self._now())

        self._save()
        logger.info("threshold_set", threshold=str(threshold))

    def mark_checked(self) -> None:
        """Record a completed check. No-op while unconfigured."""
        if self._config is None:
            return
        self._config.last_check_at = self._now()
        self._save()

    def mark_notified(self) -> None:
        """Record a dispatched sell notification. No-op while unconfigured."""
        if self._config is None:
            return
        self._config.last_notification_at = self._now()
        self._save()

    def next_scheduled_time(self) -> datetime:
        """Next half-hour boundary (:00 or :30) after now, in local time.

        Used for display only; the scheduler keeps its own timer.
        """
        now = self._now().astimezone()
        if now.minute < 30:
            return now.replace(minute=30, second=0, microsecond=0)
        return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)

    def _save(self) -> None:
        if self._config is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._config.to_dict(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error("config_save_failed", path=str(self._path), error=str(e))


def _parse_config(raw: str) -> Configuration:
    """Parse the on-disk JSON shape into a Configuration."""
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ConfigError(f"state file is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("state file must contain a JSON object")

    return Configuration(
        threshold=_parse_threshold(data.get("threshold")),
        created_at=_parse_timestamp(data, "created", required=True),
        last_check_at=_parse_timestamp(data, "lastCheck"),
        last_notification_at=_parse_timestamp(data, "lastNotification"),
    )


def _parse_threshold(value: object) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConfigError(f"invalid threshold: {value!r}")
    try:
        threshold = Decimal(str(value))
    except InvalidOperation as e:
        raise ConfigError(f"invalid threshold: {value!r}") from e
    if not threshold.is_finite() or threshold <= 0:
        raise ConfigError(f"threshold must be positive: {value!r}")
    return threshold


def _parse_timestamp(data: dict, key: str, required: bool = False) -> datetime | None:
    value = data.get(key)
    if value is None:
        if required:
            raise ConfigError(f"missing '{key}' timestamp")
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError as e:
        raise ConfigError(f"invalid '{key}' timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
