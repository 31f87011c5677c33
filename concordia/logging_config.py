"""
Structlog setup for the concordia command line.

Library modules only call structlog.get_logger("concordia.<module>"); the
CLI calls configure() once. Events go to stderr so reports on stdout can be
piped. The requested level applies to the ``concordia`` logger tree, while
everything else stays at WARNING.
"""
import logging
import sys
from typing import Optional

import structlog

LOGGER_NAME = "concordia"


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure(log_level: str = "INFO", json_output: Optional[bool] = None) -> None:
    """
    Route structlog and stdlib logging through one stderr handler.

    Args:
        log_level: Level name for concordia.* loggers (unknown names mean INFO)
        json_output: JSON lines instead of console text; defaults to JSON
            whenever stderr is not a terminal (cron, batch runs)
    """
    if json_output is None:
        json_output = not sys.stderr.isatty()

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
        foreign_pre_chain=pre_chain,
    ))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAME).setLevel(
        getattr(logging, log_level.upper(), logging.INFO)
    )
    # warnings.warn() output lands in the same stream
    logging.captureWarnings(True)
