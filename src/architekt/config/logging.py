"""structlog setup for processes embedding architekt.

Engine modules log through ``logging.getLogger(__name__)``; a
ProcessorFormatter on the root handler renders those records and native
structlog events (telemetry spans) the same way: a console renderer for
humans, or one JSON object per line when ``log_json`` is set.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

import structlog

from architekt.services.telemetry import disable_telemetry, enable_telemetry

if TYPE_CHECKING:
    from architekt.config.settings import ArchitektSettings

ENGINE_LOGGER = "architekt"


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route engine and structlog output to *stream* (default stderr).

    Args:
        verbose: DEBUG for the ``architekt`` logger and span telemetry on.
            Otherwise WARNING and telemetry off.
        log_json: JSON lines instead of console output.
        stream: Destination; mainly for embedding and tests.

    Calling it again replaces the previous handler.
    """
    target = stream or sys.stderr
    pre_chain = _pre_chain()

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=target.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(target)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger(ENGINE_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)

    if verbose:
        enable_telemetry()
    else:
        disable_telemetry()


def configure_from_settings(settings: ArchitektSettings, stream: TextIO | None = None) -> None:
    """Apply the ``verbose`` / ``log_json`` flags of *settings*."""
    configure_logging(verbose=settings.verbose, log_json=settings.log_json, stream=stream)
