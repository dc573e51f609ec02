"""Edit operation data models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .file_change import FileChange


class EditOperationStatus(str, Enum):
    """Lifecycle status of a single edit operation."""

    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"  # user choice, never attempted
    FAILED = "failed"  # attempted and raised
    REVERTED = "reverted"
    CONFLICT = "conflict"


class EditOperation(BaseModel):
    """One file-level change within a session, with its own status."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    change: FileChange
    status: EditOperationStatus = EditOperationStatus.PENDING
    description: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    applied_at: Optional[datetime] = None
    source: str
