"""Conflict data models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from .operation import EditOperation


class ConflictResolutionType(str, Enum):
    """Ways a detected conflict can be resolved."""

    KEEP_OURS = "keep-ours"  # apply the session's content, overwriting disk
    KEEP_THEIRS = "keep-theirs"  # discard the operation, keep disk content
    MANUAL = "manual"  # resolved outside the engine


class ConflictResolution(BaseModel):
    """A resolution offered for a conflict."""

    type: ConflictResolutionType
    description: str
    result_content: Optional[str] = None


class EditConflict(BaseModel):
    """Divergence between recorded original content and current content."""

    operation: EditOperation
    description: str
    disk_content: Optional[str] = None  # None when the file no longer exists
    expected_content: Optional[str] = None
    resolutions: List[ConflictResolution] = []
