"""
Structured logging utilities with JSON formatting and context injection.

This module provides structured logging capabilities with:
- JSON formatted log output for machine-readable logs
- Context injection (session_id, operation_id, file_path) via LoggerAdapter
- Helpers for session transitions and per-operation outcomes
"""

import logging
import json
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, MutableMapping
from logging import LogRecord


# Context fields promoted to the top level of each JSON record
CONTEXT_FIELDS = ("session_id", "operation_id", "file_path", "source")

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName",
})


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    
    Outputs log records as JSON with standard fields:
    - timestamp: ISO 8601 formatted timestamp
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - session_id / operation_id / file_path / source when present
    - context: Any other extra fields
    - error: Error details when exception info is attached
    """
    
    def format(self, record: LogRecord) -> str:
        """
        Format log record as JSON.
        
        Args:
            record: Log record to format
            
        Returns:
            JSON formatted log string
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        
        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and key not in CONTEXT_FIELDS
        }
        if extra_fields:
            log_data["context"] = extra_fields
        
        if record.exc_info:
            log_data["error"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stack_trace": "".join(traceback.format_exception(*record.exc_info))
            }
        
        log_data["source_location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName
        }
        
        # default=str keeps enums and datetimes from breaking serialization
        return json.dumps(log_data, default=str)


class LogContext:
    """
    Context manager for adding temporary context to logs.
    
    Usage:
        with LogContext(logger, session_id="abc", operation_id="def"):
            logger.info("Applying operation")
    """
    
    def __init__(self, logger: logging.LoggerAdapter, **context: Any):
        self.logger = logger
        self.context = context
        self.old_extra = None
    
    def __enter__(self) -> logging.LoggerAdapter:
        self.old_extra = self.logger.extra.copy() if self.logger.extra else {}
        self.logger.extra.update(self.context)
        return self.logger
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.old_extra is not None:
            self.logger.extra = self.old_extra


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that injects context fields into all log records.
    """
    
    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})
    
    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        """
        Process log message and inject context.
        
        Call-site ``extra`` wins over adapter context for the same key.
        """
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs
    
    def with_context(self, **context: Any) -> "ContextLoggerAdapter":
        """
        Create a new logger adapter with additional context.
        
        Args:
            **context: Additional context fields
            
        Returns:
            New logger adapter with merged context
        """
        new_extra = self.extra.copy()
        new_extra.update(context)
        return ContextLoggerAdapter(self.logger, new_extra)


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the engine's host process.
    
    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    formatter = JSONFormatter()
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> ContextLoggerAdapter:
    """
    Get a context-aware logger for a module.
    
    Example:
        logger = get_logger(__name__, session_id="abc")
        logger.info("Session created")
    """
    base_logger = logging.getLogger(name)
    return ContextLoggerAdapter(base_logger, context)


def log_session_transition(
    logger: logging.LoggerAdapter,
    session_id: str,
    from_status: str,
    to_status: str
) -> None:
    """
    Log a session status transition.
    
    Args:
        logger: Logger to use
        session_id: Session ID
        from_status: Previous status value
        to_status: New status value
    """
    logger.info(
        f"Session status {from_status} -> {to_status}",
        extra={
            "session_id": session_id,
            "from_status": from_status,
            "to_status": to_status,
        }
    )


def log_operation_outcome(
    logger: logging.LoggerAdapter,
    session_id: str,
    operation_id: str,
    file_path: str,
    action: str,
    status: str,
    error: Optional[str] = None
) -> None:
    """
    Log the outcome of applying or reverting one operation.
    
    Args:
        logger: Logger to use
        session_id: Session ID
        operation_id: Operation ID
        file_path: Path the operation targets
        action: 'apply' or 'revert'
        status: Resulting operation status value
        error: Error message if the operation failed
    """
    extra = {
        "session_id": session_id,
        "operation_id": operation_id,
        "file_path": file_path,
        "action": action,
        "status": status,
    }
    
    if error is not None:
        extra["error"] = error
        logger.error(f"Operation {action} failed: {file_path}", extra=extra)
    else:
        logger.info(f"Operation {action}: {file_path} -> {status}", extra=extra)


def log_error_with_context(
    logger: logging.LoggerAdapter,
    message: str,
    error: Exception,
    **context: Any
) -> None:
    """
    Log error with full stack trace and context.
    """
    context.setdefault("error_type", type(error).__name__)
    logger.error(
        message,
        extra=context,
        exc_info=error
    )
