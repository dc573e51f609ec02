"""Edit session data models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .operation import EditOperation


class EditSessionStatus(str, Enum):
    """Lifecycle status of an edit session."""

    BUILDING = "building"
    PENDING_REVIEW = "pending_review"
    APPLYING = "applying"
    COMPLETED = "completed"
    PARTIALLY_COMPLETED = "partially_completed"
    CANCELLED = "cancelled"
    REVERTED = "reverted"


ACTIVE_SESSION_STATUSES = frozenset({
    EditSessionStatus.BUILDING,
    EditSessionStatus.PENDING_REVIEW,
    EditSessionStatus.APPLYING,
})


class EditSession(BaseModel):
    """Batch of proposed file changes with one overall lifecycle."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: Optional[str] = None
    operations: List[EditOperation] = []
    status: EditSessionStatus = EditSessionStatus.BUILDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    source: str
    metadata: Dict[str, Any] = {}

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_SESSION_STATUSES

    def find_operation(self, operation_id: str) -> Optional[EditOperation]:
        for operation in self.operations:
            if operation.id == operation_id:
                return operation
        return None


class SessionChangeType(str, Enum):
    """Kind of change reported to session subscribers."""

    CREATED = "created"
    UPDATED = "updated"
    OPERATION_ADDED = "operation-added"
    OPERATION_UPDATED = "operation-updated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionChangeEvent(BaseModel):
    """Notification emitted after each mutating engine call."""

    session: EditSession
    change_type: SessionChangeType
    operation: Optional[EditOperation] = None
