"""Data models for the multi-file edit session engine."""

from .conflict import ConflictResolution, ConflictResolutionType, EditConflict
from .file_change import FileChange, FileChangeType
from .hunk import DiffHunk, FileRange
from .operation import EditOperation, EditOperationStatus
from .result import ApplyOptions, DiffOptions, EditSessionResult, OperationError
from .session import (
    ACTIVE_SESSION_STATUSES,
    EditSession,
    EditSessionStatus,
    SessionChangeEvent,
    SessionChangeType,
)

__all__ = [
    # Hunk models
    "FileRange",
    "DiffHunk",
    # File change models
    "FileChangeType",
    "FileChange",
    # Operation models
    "EditOperationStatus",
    "EditOperation",
    # Session models
    "ACTIVE_SESSION_STATUSES",
    "EditSessionStatus",
    "EditSession",
    "SessionChangeType",
    "SessionChangeEvent",
    # Conflict models
    "ConflictResolutionType",
    "ConflictResolution",
    "EditConflict",
    # Apply/revert models
    "ApplyOptions",
    "DiffOptions",
    "OperationError",
    "EditSessionResult",
]
