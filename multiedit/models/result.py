"""Apply/revert option and result models."""

from typing import List, Optional

from pydantic import BaseModel

from .session import EditSession


class ApplyOptions(BaseModel):
    """Options for applying a session. Unset fields fall back to settings."""

    create_backup: Optional[bool] = None
    stop_on_error: Optional[bool] = None
    save_after_apply: Optional[bool] = None


class DiffOptions(BaseModel):
    """Options for rendering a diff."""

    ignore_whitespace: bool = False
    ignore_case: bool = False


class OperationError(BaseModel):
    """Error captured for a single operation during apply or revert."""

    operation_id: Optional[str] = None  # None for session-level failures such as backups
    error: str


class EditSessionResult(BaseModel):
    """Result of applying or reverting a session."""

    session: EditSession
    success: bool = True
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    errors: List[OperationError] = []
