"""
Logging Configuration for the Marketplace Admin API.

Provides structured logging with:
- JSON formatting for production
- Human-readable formatting for development
- An audit logger for administrative role and permission changes
"""

import logging
import json
import sys
from datetime import datetime
from typing import Optional, Dict, Any, Iterable
from pathlib import Path
from contextvars import ContextVar

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs logs as JSON objects for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        user_id = user_id_var.get()
        if user_id:
            log_data["user_id"] = user_id

        if hasattr(record, 'extra_data'):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ReadableFormatter(logging.Formatter):
    """
    Human-readable log formatter for development.
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m',
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']

        timestamp = datetime.now().strftime('%H:%M:%S.%f')[:-3]
        level = f"{color}{record.levelname:8s}{reset}"

        message = f"{timestamp} {level} [{record.name}] {record.getMessage()}"

        request_id = request_id_var.get()
        if request_id:
            message += f" [req={request_id[:8]}]"

        if hasattr(record, 'extra_data') and record.extra_data:
            extras = ' | '.join(f"{k}={v}" for k, v in record.extra_data.items())
            message += f" | {extras}"

        return message


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that includes context in all log messages.
    """

    def process(self, msg: str, kwargs: Dict) -> tuple:
        extra = kwargs.get('extra', {})

        if 'extra_data' not in extra:
            extra['extra_data'] = {}
        extra['extra_data'].update(self.extra)

        user_id = user_id_var.get()
        if user_id:
            extra['extra_data'].setdefault('user_id', user_id)

        kwargs['extra'] = extra
        return msg, kwargs


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON formatted logs
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = JsonFormatter() if json_output else ReadableFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JsonFormatter())  # Always JSON for files
        root_logger.addHandler(file_handler)

    # Set levels for noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str, **extra) -> ContextLogger:
    """
    Get a context-aware logger.

    Args:
        name: Logger name (typically __name__)
        **extra: Additional context to include in all logs
    """
    return ContextLogger(logging.getLogger(name), extra)


def _values(items: Optional[Iterable]) -> Optional[list]:
    if items is None:
        return None
    return [getattr(item, "value", item) for item in items]


class AdminAuditLogger:
    """
    Logger for administrative changes.

    Every role or permission mutation is written at INFO with the acting
    user, the target user and the new value.
    """

    def __init__(self, name: str = "admin.audit"):
        self.logger = get_logger(name)

    def _log(self, level: int, message: str, **data: Any) -> None:
        self.logger.log(level, message, extra={'extra_data': data})

    def role_changed(self, actor_id: str, target_id: str, admin_role) -> None:
        self._log(
            logging.INFO, "Admin role updated",
            actor=actor_id, target=target_id, admin_role=getattr(admin_role, "value", admin_role),
        )

    def permissions_replaced(self, actor_id: str, target_id: str, permissions: Iterable) -> None:
        self._log(
            logging.INFO, "Explicit permissions replaced",
            actor=actor_id, target=target_id, permissions=_values(permissions),
        )

    def promoted(self, actor_id: str, target_id: str, admin_role) -> None:
        self._log(
            logging.INFO, "User promoted to admin",
            actor=actor_id, target=target_id, admin_role=getattr(admin_role, "value", admin_role),
        )

    def revoked(self, actor_id: str, target_id: str) -> None:
        self._log(logging.INFO, "Admin access revoked", actor=actor_id, target=target_id)

    def status_updated(self, actor_id: str, target_id: str, changes: Dict[str, Any]) -> None:
        self._log(logging.INFO, "User status updated", actor=actor_id, target=target_id, **changes)

    def denied(self, actor_id: str, action: str, reason: str) -> None:
        self._log(logging.WARNING, f"Denied {action}", actor=actor_id, reason=reason)
