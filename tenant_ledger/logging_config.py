"""
Structured Logging Configuration Module

Provides JSON-formatted structured logging for ledger and statement operations.
Every record is tagged with the tenant active in the current context, if any.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional

from .tenancy import get_current_tenant


TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] tenant=%(tenant_id)s %(message)s"


class TenantContextFilter(logging.Filter):
    """Attach the current tenant id to records that don't already carry one"""

    def filter(self, record):
        if getattr(record, 'tenant_id', None) is None:
            record.tenant_id = get_current_tenant()
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "tenant_id": getattr(record, 'tenant_id', None),
            "job_id": getattr(record, 'job_id', None),
            "account_id": getattr(record, 'account_id', None),
            "action": getattr(record, 'action', None),
            "thread": record.threadName,
            "extra": getattr(record, 'extra', None)
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "tenant_ledger",
                  fmt: str = "json", log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Name of the root application logger
        fmt: "json" for one JSON object per line, "text" for human-readable lines
        log_file: Optional file path; logs go to stderr when omitted

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    if fmt == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JSONFormatter())
    handler.addFilter(TenantContextFilter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    return logger


def get_logger(name: str = "tenant_ledger") -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, tenant_id: Optional[str] = None,
               job_id: Optional[str] = None, account_id: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log an action with structured data.

    Fields left as None are omitted from the record, so the tenant falls back
    to whatever the current context holds.
    """
    fields = {
        "action": action,
        "tenant_id": tenant_id,
        "job_id": job_id,
        "account_id": account_id,
        "extra": extra,
    }
    logger.log(
        getattr(logging, level.upper()),
        message,
        extra={k: v for k, v in fields.items() if v is not None}
    )
