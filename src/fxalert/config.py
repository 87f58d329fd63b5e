"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class RateSourceSettings(BaseSettings):
    """Upstream quote endpoint and fetch retry policy."""

    model_config = SettingsConfigDict(env_prefix="RATES_")

    url: str = "https://economia.awesomeapi.com.br/json/last/USD-BRL"
    timeout_seconds: float = 10.0  # per attempt
    max_attempts: int = 3
    backoff_base_seconds: float = 1.0  # sleeps base * 2**attempt between attempts


class MonitorSettings(BaseSettings):
    """Check cadence, notification cooldown and state file location.

    The cooldown and the check interval are independent knobs; neither is
    derived from the other.
    """

    model_config = SettingsConfigDict(env_prefix="MONITOR_")

    state_file: str = "config.json"
    check_interval_seconds: int = 30 * 60
    notification_cooldown_seconds: int = 2 * 60 * 60


class NotifierSettings(BaseSettings):
    """Desktop notification delivery."""

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    native_enabled: bool = True
    timeout_seconds: float = 10.0


class ServerSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 3000


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    rates: RateSourceSettings = RateSourceSettings()
    monitor: MonitorSettings = MonitorSettings()
    notifier: NotifierSettings = NotifierSettings()
    server: ServerSettings = ServerSettings()
