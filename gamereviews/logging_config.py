"""
Structured logging configuration for the Game Reviews API.

Log events are emitted through structlog with:
- JSON rendering for production, console rendering for development
- Request id propagation via contextvars
- Optional redaction of e-mail addresses
"""

import logging
import re
from typing import Any, Dict, Optional

import structlog

SERVICE_NAME = "gamereviews"

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

# Never rewritten by the redaction processor
SAFE_FIELD_NAMES = {"event", "timestamp", "level", "service", "request_id"}


def redact_emails(value: Any, parent_key: Optional[str] = None) -> Any:
    """
    Recursively replace e-mail addresses found in log values.

    Args:
        value: Value to scrub (dict, list, str or anything else)
        parent_key: Key the value is stored under

    Returns:
        Value with addresses replaced by ``[EMAIL_REDACTED]``
    """
    if isinstance(value, dict):
        return {k: redact_emails(v, k) for k, v in value.items()}
    if isinstance(value, list):
        return [redact_emails(item, parent_key) for item in value]
    if isinstance(value, str):
        if parent_key and parent_key.lower() in SAFE_FIELD_NAMES:
            return value
        return EMAIL_PATTERN.sub("[EMAIL_REDACTED]", value)
    return value


def add_app_context(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Stamp every event with the service name."""
    event_dict["service"] = SERVICE_NAME
    return event_dict


def add_email_redaction(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Processor wrapper around :func:`redact_emails`."""
    return redact_emails(event_dict)


def configure_structlog(
    level: str = "INFO", json_logs: bool = True, redact: bool = False
) -> None:
    """
    Configure structlog for the application.

    Args:
        level: Minimum level name, e.g. ``"INFO"``
        json_logs: Render JSON lines when true, colored console output otherwise
        redact: Replace e-mail addresses in emitted events
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_app_context,
    ]
    if redact:
        processors.append(add_email_redaction)
    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Optional logger name (defaults to calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
