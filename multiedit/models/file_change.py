"""File change data models."""

import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .hunk import DiffHunk


class FileChangeType(str, Enum):
    """Type of file-level change."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"


# Field names that must / must not be set for each change type
_REQUIRED = {
    FileChangeType.CREATE: ("new_content",),
    FileChangeType.MODIFY: ("original_content", "new_content"),
    FileChangeType.DELETE: ("original_content",),
    FileChangeType.RENAME: ("new_file_path",),
}

_FORBIDDEN = {
    FileChangeType.CREATE: ("original_content", "hunks", "new_file_path"),
    FileChangeType.MODIFY: ("new_file_path",),
    FileChangeType.DELETE: ("new_content", "hunks", "new_file_path"),
    FileChangeType.RENAME: ("hunks",),
}


class FileChange(BaseModel):
    """A single proposed change to one file."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: FileChangeType
    file_path: str
    new_file_path: Optional[str] = None  # rename target
    original_content: Optional[str] = None
    new_content: Optional[str] = None
    hunks: Optional[List[DiffHunk]] = None  # modify only
    language_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_fields_for_type(self) -> "FileChange":
        missing = [name for name in _REQUIRED[self.type] if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.type.value} change requires: {', '.join(missing)}")

        unexpected = [name for name in _FORBIDDEN[self.type] if getattr(self, name) is not None]
        if unexpected:
            raise ValueError(f"{self.type.value} change must not set: {', '.join(unexpected)}")

        return self

    @property
    def touched_paths(self) -> List[str]:
        """Paths read or written when this change is applied or reverted."""
        if self.new_file_path:
            return [self.file_path, self.new_file_path]
        return [self.file_path]

    def find_hunk(self, hunk_id: str) -> Optional[DiffHunk]:
        for hunk in self.hunks or []:
            if hunk.id == hunk_id:
                return hunk
        return None
