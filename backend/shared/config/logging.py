"""
Centralized structured logging for the backend and the print agent.
Uses Python's standard logging with JSON formatting for production.

Correlation IDs from the REST API are attached to every record emitted
while a request is being handled.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs logs in a format easily parseable by log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            log_data["request_id"] = request_id

        if hasattr(record, "extra_data") and record.extra_data:
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if settings.debug:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter for development.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self._use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET) if self._use_colors else ""
        reset = self.RESET if self._use_colors else ""
        dim = self.DIM if self._use_colors else ""
        timestamp = datetime.now().strftime("%H:%M:%S")

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            request_id_str = f"{dim}[{request_id[:8]}]{reset} "
        else:
            request_id_str = ""

        message = (
            f"{color}[{timestamp}] {record.levelname:8}{reset} "
            f"{request_id_str}{record.name}: {record.getMessage()}"
        )

        if hasattr(record, "extra_data") and record.extra_data:
            data_str = " | ".join(f"{k}={v}" for k, v in record.extra_data.items())
            message += f" ({data_str})"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class StructuredLogger(logging.Logger):
    """
    Custom logger that supports structured data.

    Keyword arguments passed to the level methods are collected into
    ``record.extra_data`` instead of being rejected by ``logging.Logger``.
    """

    def _log_with_data(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        **kwargs: Any,
    ) -> None:
        """Log with optional structured data."""
        if not self.isEnabledFor(level):
            return
        if extra is None:
            extra = {}
        extra["extra_data"] = kwargs if kwargs else None
        super()._log(level, msg, args, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs.pop("exc_info", None)
        self._log_with_data(logging.ERROR, msg, args, exc_info=True, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


# Set custom logger class
logging.setLoggerClass(StructuredLogger)


def setup_logging(log_file: str | None = None) -> None:
    """
    Configure logging for the application.
    Call this once at process startup (REST API lifespan or agent CLI).

    Args:
        log_file: Optional path of an extra plain-text log file. Used by the
            print agent when it runs as a background service.
    """
    # Import here to avoid circular imports
    from shared.infrastructure.correlation import CorrelationIdFilter

    log_level = logging.DEBUG if settings.debug else logging.INFO

    if settings.environment == "production":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = DevelopmentFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.addFilter(CorrelationIdFilter())
        file_handler.setFormatter(DevelopmentFormatter(use_colors=False))
        root.addHandler(file_handler)

    # Reduce noise from third-party libraries. uvicorn.access stays at
    # WARNING so stream URLs carrying ?token= never reach the logs.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("usb").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from shared.config.logging import get_logger
        logger = get_logger(__name__)

        logger.info("Order created", order_id=12, theater_id=3)
        logger.error("Failed to print receipt", order_id=12, exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore


def mask_username(username: str | None) -> str:
    """
    Mask a login name for logging.

    Converts "counter01" to "co***". Agents log in with shared counter
    accounts whose names are effectively credentials.
    """
    if not username:
        return "<no-user>"
    if len(username) <= 2:
        return username[0] + "***"
    return f"{username[:2]}***"


# Pre-configured loggers for common modules
rest_api_logger = get_logger("rest_api")
pos_agent_logger = get_logger("pos_agent")

security_audit_logger = get_logger("security.audit")


def audit_stream_connection(
    event_type: str,
    theater_id: str,
    subject: str | None = None,
    reason: str | None = None,
    **extra: Any,
) -> None:
    """
    Log event stream connection security events.

    Args:
        event_type: CONNECT, DISCONNECT, AUTH_FAILED, FORBIDDEN, DROPPED...
        theater_id: Theater the subscription targets.
        subject: Authenticated subject (user id), if known.
        reason: Reason for the event (especially for failures).
        **extra: Additional context data.
    """
    security_audit_logger.info(
        f"STREAM_AUDIT: {event_type}",
        event_type=event_type,
        theater_id=theater_id,
        subject=subject,
        reason=reason,
        **extra,
    )


def audit_auth_event(
    event_type: str,
    user_id: int | str | None = None,
    username: str | None = None,
    success: bool = True,
    reason: str | None = None,
    ip_address: str | None = None,
    **extra: Any,
) -> None:
    """
    Log authentication security events (LOGIN, LOGIN_FAILED...).
    Usernames are masked automatically.
    """
    log_level = logging.INFO if success else logging.WARNING

    security_audit_logger._log_with_data(
        log_level,
        f"AUTH_AUDIT: {event_type}",
        args=(),
        event_type=event_type,
        user_id=user_id,
        username=mask_username(username) if username else None,
        success=success,
        reason=reason,
        ip_address=ip_address,
        **extra,
    )
