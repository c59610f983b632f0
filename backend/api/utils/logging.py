"""
Structured logging utilities for the HR admin API.

JSON logs in production, readable lines in development. Every record made
while a request is running carries its correlation id and, once the tenant
is resolved, the organization slug and acting user id.
"""

import logging
import json
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
tenant: ContextVar[Optional[Dict[str, Any]]] = ContextVar('tenant', default=None)

_STANDARD_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName'
}


def get_correlation_id() -> str:
    """Get current correlation ID or generate a new one."""
    cid = correlation_id.get()
    if cid is None:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    correlation_id.set(cid)
    tenant.set(None)


def set_tenant(organization: str, user_id: int, support_mode: bool = False) -> None:
    """Attach the resolved organization and acting user to later log records."""
    tenant.set({"organization": organization, "user_id": user_id, "support_mode": support_mode})


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2024-01-22T12:00:00.000Z",
        "level": "INFO",
        "logger": "hr-admin.status-sync",
        "message": "Application #12: Applied -> Interview Scheduled",
        "correlation_id": "abc12345",
        "tenant": {"organization": "acme", "user_id": 7, "support_mode": false},
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = correlation_id.get()
        if cid:
            log_data["correlation_id"] = cid
        current_tenant = tenant.get()
        if current_tenant:
            log_data["tenant"] = current_tenant

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extras = {
            k: v for k, v in record.__dict__.items()
            if k not in _STANDARD_ATTRS and not k.startswith('_')
        }
        if extras:
            log_data["extra"] = extras

        return json.dumps(log_data, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Output format:
    2024-01-22 12:00:00 [INFO] hr-admin.auth: Superadmin created [abc12345 acme#7]
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        color = self.COLORS.get(record.levelname, '')
        level = f"{color}[{record.levelname}]{self.RESET}" if color else f"[{record.levelname}]"

        tags = []
        cid = correlation_id.get()
        if cid:
            tags.append(cid)
        current_tenant = tenant.get()
        if current_tenant:
            tags.append(f"{current_tenant['organization']}#{current_tenant['user_id']}")
        tag_part = f" [{' '.join(tags)}]" if tags else ""

        message = f"{timestamp} {level} {record.name}: {record.getMessage()}{tag_part}"

        if record.exc_info:
            message += '\n' + self.formatException(record.exc_info)

        return message


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True for production, False for development)
        log_file: Optional file path to write logs to
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter() if json_format else PrettyFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())  # Always JSON for files
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    for noisy_logger in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "passlib"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def log_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """Log an HTTP request with standard fields."""
    logging.getLogger("hr-admin.request").info(
        f"{method} {path} {status_code}",
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2)
        }
    )


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an unexpected error with context."""
    logging.getLogger("hr-admin.error").error(
        str(error),
        exc_info=error,
        extra={"context": context} if context else {}
    )
