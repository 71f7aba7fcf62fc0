# awesome_discount/core/logging_config.py
import logging
import sys

import structlog


def setup_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structlog + standaard logging.
    Logs gaan als JSON naar stdout; json_logs=False geeft leesbare console output.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, str(level).upper(), logging.INFO),
    )

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Globale logger die je overal kunt importeren
logger = structlog.get_logger("awesome_discount")
