"""
Utility modules for the multi-file edit session engine.
"""

from multiedit.utils.logging import (
    get_logger,
    setup_logging,
    LogContext,
    log_session_transition,
    log_operation_outcome,
    log_error_with_context,
)
from multiedit.utils.metrics import (
    SessionMetricsCollector,
    track_store_call,
    emit_metric,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "log_session_transition",
    "log_operation_outcome",
    "log_error_with_context",
    "SessionMetricsCollector",
    "track_store_call",
    "emit_metric",
]
