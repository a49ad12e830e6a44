"""
AuthCore - Structured Logging

structlog configuration shared by the services and the HTTP layer.

- ISO timestamps and log level on every entry
- Request correlation id carried through contextvars
- Password and token fields redacted before rendering
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_REDACTED_KEYS = ("password", "secret", "token", "authorization")


def get_correlation_id() -> Optional[str]:
    """Get the correlation id of the current request, if any."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set or generate the correlation id for the current context."""
    cid = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def _add_correlation_id(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    cid = get_correlation_id()
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def _redact_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Mask credential-bearing fields.

    Keeps the first and last two characters so log lines can still be
    correlated by an operator holding the full value.
    """
    for key in list(event_dict.keys()):
        lower_key = key.lower()
        if lower_key.endswith("_id"):
            continue
        if any(marker in lower_key for marker in _REDACTED_KEYS):
            value = event_dict[key]
            if isinstance(value, str) and len(value) > 4:
                event_dict[key] = value[:2] + "***" + value[-2:]
            elif isinstance(value, str):
                event_dict[key] = "***"
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog processors.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_output: JSON lines if True, colored console output otherwise
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_correlation_id,
        _redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str):
    """Get a structlog logger bound to a module name."""
    return structlog.get_logger(name)
