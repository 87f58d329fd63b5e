"""Structured logging for the monitor, uvicorn and httpx.

All three log through the stdlib root logger with one structlog
ProcessorFormatter, so a single renderer decides the output format:

- Records from plain stdlib loggers (uvicorn, httpx) run through the same
  pre-chain as ours, so they carry a level, logger name and timestamp too.
- httpx, httpcore and uvicorn.access log one line per request at INFO; they
  are capped at WARNING unless the configured level is already higher.
- JSON output keeps non-ASCII text as is (quote names such as
  "Dólar Americano/Real Brasileiro", the emoji in alert titles).

LOG_FORMAT=json selects JSON lines; anything else uses the console renderer.
"""

import logging
import os

import structlog

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def _build_handler(log_format: str) -> logging.Handler:
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format),
        ],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging through one handler on the root logger.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
    """
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(_build_handler(os.environ.get("LOG_FORMAT", "console").lower()))
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
