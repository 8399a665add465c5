"""structlog setup for the kvinput CLI.

Every record, whether from structlog or from the stdlib loggers used by
the editor core, is rendered by one ProcessorFormatter on stderr:
console lines by default, JSON lines under ``--log-json``.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

LOGGER_NAME = "kvinput"


def level_for(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the CLI verbosity flags to a level for the ``kvinput`` logger.

    ``--verbose`` wins over ``--quiet``; the editor's debug lines (rejected
    input, gap normalization, commit scheduling) only show under it.
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool, stream: IO[str]) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer(sort_keys=False)
    isatty = getattr(stream, "isatty", None)
    return structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty()))


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Install the kvinput handler on the root logger.

    Safe to call repeatedly: previous root handlers are replaced, never
    stacked. Returns the installed handler.
    """
    target = stream if stream is not None else sys.stderr
    pre_chain = _pre_chain()

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
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json, target),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    # Third-party noise stays at WARNING regardless of -v.
    root.setLevel(logging.WARNING)
    logging.getLogger(LOGGER_NAME).setLevel(level_for(verbose=verbose, quiet=quiet))
    return handler
