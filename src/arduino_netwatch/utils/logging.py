"""Process-wide structlog setup."""

import logging

import structlog

from ..config import LoggingConfig


def setup_logging(logging_config: LoggingConfig) -> None:
    """Configure stdlib logging and structlog from the logging section of the config."""
    level = getattr(logging, logging_config.level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logging_config.file:
        handlers.append(logging.FileHandler(logging_config.file, encoding="utf-8"))

    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)
    # aiohttp access/client logs are noisy at DEBUG
    logging.getLogger("aiohttp").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=True) if logging_config.format.lower() == "console"
            else structlog.processors.JSONRenderer(sort_keys=True)
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.get_logger(__name__).debug("Logging configured.", logging_level=logging_config.level, logging_format=logging_config.format)
