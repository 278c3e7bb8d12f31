"""
Logging for AUTOFLOW

Every log line of one automation run can be tied together through a
correlation id kept in a ContextVar:
- API requests use the X-Request-ID header (or a fresh UUID)
- Worker runs use the Celery task id

The engine logs node-level fields (node_id, node_type, index, branch_taken)
through `extra=`; the JSON formatter keeps them under "context" so log
pipelines can filter a run by node.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar
import os

# Correlation id of the API request or worker run being handled
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

# LogRecord attributes that are not run fields
_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName',
])


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, for workers and deployed APIs.

    Keys: timestamp, level, logger, message, request_id (when a run or
    request is active), exception, and context (node/run fields from extra=).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        run_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        if run_fields:
            log_data["context"] = run_fields

        # Step outputs and configs may hold non-JSON values
        return json.dumps(log_data, ensure_ascii=True, default=str)


class StandardFormatter(logging.Formatter):
    """
    Plain text for local development and preview runs.

    Format: [TIMESTAMP] LEVEL - logger - message (request_id=...)
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{timestamp}] {record.levelname:8s} - {record.name} - {record.getMessage()}"

        request_id = request_id_var.get()
        if request_id:
            line += f" (request_id={request_id})"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Configure the root logger for the API process or a worker.

    Args:
        level: Log level name
        json_logs: JSON lines (workers, production) instead of plain text
        log_file: Also write to this file

    LOG_LEVEL, JSON_LOGS and LOG_FILE in the environment take precedence,
    so a deployed worker can be switched to DEBUG without code changes.
    """
    level = os.getenv("LOG_LEVEL", level).upper()
    json_logs = os.getenv("JSON_LOGS", "true" if json_logs else "false").lower() == "true"
    log_file = os.getenv("LOG_FILE", log_file)

    numeric_level = getattr(logging, level, logging.INFO)
    formatter = JSONFormatter() if json_logs else StandardFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"level": level, "json_logs": json_logs, "log_file": log_file or "none"}
    )


def set_request_id(request_id: str) -> None:
    """Tag subsequent log lines with this request or task id."""
    request_id_var.set(request_id)


def clear_request_id() -> None:
    """Drop the id at the end of a request or task so it cannot leak."""
    request_id_var.set(None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()
