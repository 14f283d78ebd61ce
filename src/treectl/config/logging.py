"""structlog setup for the CLI.

Everything goes to stderr so stdout carries only the rendered result. The
console renderer is used by default; ``--log-json`` switches to one JSON
object per line. stdlib loggers share the same processor chain, so a line
from ``treectl.services.engine`` and one from the notifier look alike.

``TreeService.run`` binds ``tree=<source>`` in structlog's context vars for
the duration of a run; :func:`structlog.contextvars.merge_contextvars` puts
it on every line logged while that tree executes.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

TREECTL_LOGGER = "treectl"


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib logging to a single stderr handler.

    Args:
        verbose: Let DEBUG and INFO through for ``treectl.*`` loggers; that
            includes ``sms.sent``/``email.sent`` and per-event lines.
            Otherwise only warnings (failed deliveries, aborted loops) show.
        log_json: JSON lines instead of the console renderer.

    Safe to call repeatedly; the root handler is replaced, not stacked.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
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

    logging.getLogger(TREECTL_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
