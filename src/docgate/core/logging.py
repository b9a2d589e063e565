# src/docgate/core/logging.py
"""Structured logging configuration for docgate.

configure_logging() is called once from the CLI callback with the
command-line flags, then again by configure_logging_from_settings() once
the settings file has been read. Secret-bearing event keys (signatures,
the signed payload, tokens) are masked before rendering.

Architecture:
    This module configures BOTH structlog and stdlib logging to emit
    consistent output (JSON or console). ProcessorFormatter routes stdlib
    log records (httpx, dynaconf) through structlog's processor chain, so
    third-party records share the same format as docgate's own.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.stdlib import ProcessorFormatter

if TYPE_CHECKING:
    from docgate.core.config import LoggingSettings

# Third-party loggers that emit per-request connection details at DEBUG.
# Kept at WARNING even when docgate runs in DEBUG mode.
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "httpcore.connection",
    "httpcore.http11",
)

# Event keys whose values carry key material, signatures or the signed
# payload. Their values never reach a log sink.
_REDACTED_KEYS: frozenset[str] = frozenset(
    {"auth_token", "authorization", "private_key", "product_document", "signature", "signing_key"}
)
_REDACTED = "<redacted>"


def _redact_submission_secrets(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask values of known secret-bearing keys (case-insensitive)."""
    for key in event_dict:
        if key.lower() in _REDACTED_KEYS:
            event_dict[key] = _REDACTED
    return event_dict


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove internal structlog fields from output.

    ProcessorFormatter always adds _record and _from_structlog when
    processing log records. They are guaranteed present, so a KeyError
    here means the processor chain was wired wrong.
    """
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging for docgate.

    Args:
        json_output: If True, output JSON. If False, human-readable.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = getattr(logging, level.upper())

    # Shared processors applied to ALL log records (structlog and stdlib)
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _redact_submission_secrets,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

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

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Must stay False so tests can reconfigure logging
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            # stdlib-only records skip the structlog chain, so run it here
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)

    # Never make noisy loggers less restrictive than the root level.
    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound structlog logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def configure_logging_from_settings(
    settings: "LoggingSettings",
    *,
    force_debug: bool = False,
    force_json: bool = False,
) -> None:
    """Apply the ``logging`` section of docgate settings.

    Command-line flags win over the file: ``force_debug`` pins the level
    to DEBUG and ``force_json`` turns JSON output on.
    """
    configure_logging(
        json_output=force_json or settings.json_output,
        level="DEBUG" if force_debug else settings.level,
    )
