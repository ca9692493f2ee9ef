"""Structured logging configuration for procov.

The coverage engine reports dropped or unmatched records as structlog
events carrying keyword context such as the definition key and element id.
Code embedding procov may log through the plain stdlib ``logging`` API,
so both are funnelled into one pipeline:

    structlog logger -> shared processors -> wrap_for_formatter
        -> stdlib root logger -> ProcessorFormatter -> stderr
    stdlib logger -> root logger -> ProcessorFormatter (foreign_pre_chain)
        -> stderr

Output goes to stderr so that ``procov snapshot`` and ``procov summary``
can write their tables to stdout undisturbed. ``configure_logging`` is
called once by the CLI callback; library users may call it themselves or
leave logging unconfigured.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Strip ProcessorFormatter bookkeeping before rendering.

    ProcessorFormatter puts ``_record`` and ``_from_structlog`` on every
    event dict it formats, whichever API produced the record. Both keys are
    always present at this point, so they are deleted outright. Leaving
    them in would dump a LogRecord repr into every JSON line.
    """
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging for procov.

    Args:
        json_output: If True, emit one JSON object per line (for CI logs).
            If False, use the coloured console renderer.
        level: Log level name (DEBUG, INFO, WARNING, ERROR). Warnings about
            dropped coverage records are emitted at WARNING.
    """
    log_level = getattr(logging, level.upper())

    # Run for structlog events before hand-off and for stdlib records
    # inside the formatter.
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    # Run once per record inside the handler; the renderer must be last.
    if json_output:
        final_processors: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    # structlog hands its event dict to stdlib unrendered;
    # ProcessorFormatter picks it up from the LogRecord.
    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure logging, so loggers must not be cached
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            # Plain stdlib records never went through shared_processors
            foreign_pre_chain=shared_processors,
        )
    )

    # Replace rather than append, so repeated calls do not duplicate lines
    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a procov module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound structlog logger. Its output follows whatever
        ``configure_logging`` last set up.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
