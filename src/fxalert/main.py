"""Entry point for the currency monitor.

Wires all components together, applies the CLI threshold, and serves the
HTTP API with uvicorn. The scheduler runs as a background task inside the
same event loop, managed by FastAPI's lifespan context manager.

Component wiring order (in _build_components):
1. ConfigStore (persisted threshold and timestamps)
2. RateFetcher (upstream quote with retry)
3. AlertDispatcher (native notification with console fallback)
4. CooldownPolicy (notification spacing)
5. CheckCycle (fetch, evaluate, notify, persist)
6. CheckScheduler (timer trigger)
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from fxalert.check_cycle import CheckCycle
from fxalert.cli import resolve_threshold
from fxalert.config import AppSettings
from fxalert.exceptions import CheckError
from fxalert.logging import get_logger, setup_logging
from fxalert.notify.dispatcher import AlertDispatcher
from fxalert.rates.fetcher import RateFetcher
from fxalert.rates.market import format_rate
from fxalert.scheduler import CheckScheduler
from fxalert.state.cooldown import CooldownPolicy
from fxalert.state.store import ConfigStore

logger = get_logger("fxalert.main")


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all monitor components from settings.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    store = ConfigStore(settings.monitor.state_file)
    fetcher = RateFetcher(settings.rates)
    dispatcher = AlertDispatcher(settings.notifier)
    cooldown = CooldownPolicy(settings.monitor.notification_cooldown_seconds)
    check_cycle = CheckCycle(store, fetcher, dispatcher, cooldown)
    scheduler = CheckScheduler(
        check_cycle, interval_seconds=settings.monitor.check_interval_seconds
    )

    return {
        "store": store,
        "fetcher": fetcher,
        "dispatcher": dispatcher,
        "cooldown": cooldown,
        "check_cycle": check_cycle,
        "scheduler": scheduler,
    }


async def _log_initial_status(check_cycle: CheckCycle) -> None:
    """Report the current rate once at startup; failure is only a warning."""
    try:
        status = await check_cycle.get_status()
    except CheckError as e:
        logger.warning("initial_status_check_failed", error=str(e))
        return

    logger.info(
        "initial_status",
        current_rate=format_rate(status.current_rate),
        position="above" if status.above_target else "below",
        next_check=status.next_check,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the scheduler for as long as the HTTP server is up.

    On startup: starts the scheduler and kicks off the initial status check.
    On shutdown: cancels a still-running status check, stops the scheduler.
    """
    scheduler: CheckScheduler = app.state.scheduler

    await scheduler.start()
    status_task = asyncio.create_task(_log_initial_status(app.state.check_cycle))

    yield

    if not status_task.done():
        status_task.cancel()
        try:
            await status_task
        except asyncio.CancelledError:
            pass

    await scheduler.stop()
    logger.info("currency_monitor_stopped")


async def run(settings: AppSettings, components: dict[str, Any]) -> None:
    """Send the startup notification and serve the API until shutdown."""
    from fxalert.server.app import create_app

    threshold = components["store"].get_threshold()
    await components["dispatcher"].send_startup_notification(threshold)

    app = create_app(
        components["store"], components["check_cycle"], lifespan=lifespan
    )
    app.state.scheduler = components["scheduler"]

    logger.info(
        "starting_server",
        host=settings.server.host,
        port=settings.server.port,
        threshold=str(threshold),
        interval_seconds=settings.monitor.check_interval_seconds,
    )

    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main(argv: list[str] | None = None) -> None:
    """Synchronous entry point."""
    settings = AppSettings()
    setup_logging(settings.log_level)

    try:
        components = _build_components(settings)
        resolve_threshold(sys.argv[1:] if argv is None else argv, components["store"])
        asyncio.run(run(settings, components))
    except Exception as e:
        logger.critical("monitor_start_failed", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
