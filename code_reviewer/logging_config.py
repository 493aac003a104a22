"""
Structured Logging Configuration

This module sets up structured logging using structlog.
Logs are formatted as JSON in production for easy parsing by log aggregators.

Design Decisions:
- Use structlog for structured, contextual logging
- JSON format in production, colored console in development
- Never log sensitive data (keys, passwords, tokens)
- Never log submitted source code in full
"""

import logging
import sys
from typing import Any, Dict

import structlog
from structlog.types import EventDict, WrappedLogger

from code_reviewer import __version__
from code_reviewer.config import get_settings

SENSITIVE_KEYS = {
    "token", "api_key", "apikey", "secret", "password",
    "authorization", "credential", "credentials", "bearer"
}

SECRET_PREFIXES = ("sk-", "sk_", "Bearer ")

MAX_VALUE_LENGTH = 500


def is_sensitive_key(key: str) -> bool:
    """
    True if a key names a secret.

    Matches a sensitive name exactly or as the last ``_``-separated part,
    so ``openai_api_key`` and ``access_token`` match but ``prompt_tokens``
    does not.
    """
    normalized = key.lower().replace("-", "_")
    return any(
        normalized == sensitive or normalized.endswith(f"_{sensitive}")
        for sensitive in SENSITIVE_KEYS
    )


def filter_sensitive_data(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Processor that redacts secrets from log entries.

    Values are redacted when their key names a secret, or when the value
    itself looks like an API key.
    """

    def redact(d: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in d.items():
            if is_sensitive_key(str(key)):
                result[key] = "[REDACTED]"
            elif isinstance(value, dict):
                result[key] = redact(value)
            elif isinstance(value, str) and value.startswith(SECRET_PREFIXES):
                result[key] = "[REDACTED]"
            else:
                result[key] = value
        return result

    return redact(event_dict)


def truncate_long_values(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Shorten long string values so code payloads don't flood the logs."""
    for key, value in event_dict.items():
        if key == "event" or not isinstance(value, str):
            continue
        if len(value) > MAX_VALUE_LENGTH:
            event_dict[key] = f"{value[:MAX_VALUE_LENGTH]}... ({len(value)} chars)"
    return event_dict


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add application context to every log entry."""
    event_dict["app"] = "ai-code-reviewer"
    event_dict["version"] = __version__
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    This function should be called once at application startup.
    It configures both structlog and the standard logging library.
    """
    settings = get_settings()

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_app_context,
        filter_sensitive_data,
        truncate_long_values,
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if settings.log_json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    # Replace rather than stack handlers when the app is created twice
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level))

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    if not settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance with the given name.

    Usage:
        logger = get_logger(__name__)
        logger.info("Review saved", review_id=12, mode="security")
    """
    return structlog.get_logger(name)
