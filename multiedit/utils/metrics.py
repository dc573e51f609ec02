"""
Metrics collection and emission for apply/revert runs.

This module provides metrics tracking for:
- Run duration
- Applied / failed / skipped operation counts
- Content store call counts and latency
"""

import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager

from multiedit.utils.logging import get_logger

logger = get_logger(__name__)


class SessionMetricsCollector:
    """
    Collects metrics during a single apply or revert run of a session.
    """
    
    def __init__(self, session_id: str, action: str):
        """
        Initialize metrics collector.
        
        Args:
            session_id: Session ID
            action: 'apply' or 'revert'
        """
        self.session_id = session_id
        self.action = action
        
        # Timing metrics
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None
        
        # Operation metrics
        self.succeeded: int = 0
        self.failed: int = 0
        self.skipped: int = 0
        
        # Content store metrics
        self.store_calls: Dict[str, int] = {}
        self.store_latencies: Dict[str, list[float]] = {}
        
        self.status: str = "running"
    
    def start(self) -> None:
        """Mark run start."""
        self.start_time = datetime.now(timezone.utc)
        self.status = "running"
        logger.debug(
            f"Metrics collection started for {self.action} of session {self.session_id}",
            extra={"session_id": self.session_id, "action": self.action}
        )
    
    def complete(self, status: str) -> None:
        """
        Mark run completion.
        
        Args:
            status: Final session status value
        """
        self.end_time = datetime.now(timezone.utc)
        self.status = status
        
        if self.start_time:
            duration = (self.end_time - self.start_time).total_seconds()
            self.duration_ms = int(duration * 1000)
        
        logger.info(
            f"Session {self.action} finished with status {status}",
            extra={
                "session_id": self.session_id,
                "action": self.action,
                "status": status,
                "duration_ms": self.duration_ms,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "skipped": self.skipped,
            }
        )
    
    def record_outcome(self, outcome: str) -> None:
        """
        Record one operation outcome.
        
        Args:
            outcome: 'succeeded', 'failed' or 'skipped'
        """
        if outcome == "succeeded":
            self.succeeded += 1
        elif outcome == "failed":
            self.failed += 1
        elif outcome == "skipped":
            self.skipped += 1
        else:
            raise ValueError(f"Unknown outcome: {outcome}")
    
    def record_store_call(self, call: str, duration_ms: float) -> None:
        """
        Record a content store call and its latency.
        
        Args:
            call: Store method name ('read', 'write', 'delete', 'rename', 'exists')
            duration_ms: Call duration in milliseconds
        """
        self.store_calls[call] = self.store_calls.get(call, 0) + 1
        self.store_latencies.setdefault(call, []).append(duration_ms)
    
    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.
        """
        summary = {
            "session_id": self.session_id,
            "action": self.action,
            "status": self.status,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "store_calls": self.store_calls,
        }
        
        if self.store_latencies:
            latency_stats = {}
            for call, latencies in self.store_latencies.items():
                if latencies:
                    latency_stats[call] = {
                        "count": len(latencies),
                        "min_ms": round(min(latencies), 2),
                        "max_ms": round(max(latencies), 2),
                        "avg_ms": round(sum(latencies) / len(latencies), 2),
                    }
            summary["store_latencies"] = latency_stats
        
        return summary


@asynccontextmanager
async def track_store_call(
    metrics_collector: Optional[SessionMetricsCollector],
    call: str,
    path: str
):
    """
    Context manager to track content store call timing.
    
    Usage:
        async with track_store_call(metrics, "write", path):
            await store.write(path, content)
    """
    start_time = time.perf_counter()
    error = None
    
    try:
        yield
    except Exception as e:
        error = e
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        
        if metrics_collector:
            metrics_collector.record_store_call(call, duration_ms)
        
        extra = {"call": call, "file_path": path, "duration_ms": round(duration_ms, 2)}
        if error is not None:
            extra["error"] = str(error)
            logger.warning(f"Content store {call} failed: {path}", extra=extra)
        else:
            logger.debug(f"Content store {call}: {path}", extra=extra)


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric.
    
    Metrics are written to the structured log; a host process can forward
    them to its monitoring system.
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
