"""structlog setup for applications using simpledto.

The library only emits records (stdlib ``logging`` loggers under
``simpledto.*`` and a few structlog events); it never configures handlers on
import. Applications that want the library's debug output call
:func:`configure_logging` or :func:`configure_from_config`.

Output goes to stderr, either console-formatted or as JSON lines.
"""

from __future__ import annotations

import logging
import sys

import structlog

from simpledto.config.models import LoggingConfig

LOGGER_NAME = "simpledto"


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib records through one stderr handler.

    Args:
        verbose: Let ``simpledto`` DEBUG records through. Other libraries
            stay at WARNING either way.
        log_json: Render JSON lines instead of console output.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if verbose else logging.WARNING)


def configure_from_config(config: LoggingConfig) -> None:
    """Apply the ``[logging]`` settings section."""
    configure_logging(verbose=config.verbose, log_json=config.log_json)
