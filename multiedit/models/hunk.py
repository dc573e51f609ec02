"""Diff hunk data models."""

import uuid
from typing import List

from pydantic import BaseModel, Field, model_validator


class FileRange(BaseModel):
    """Range of text in a file (1-indexed lines and columns)."""

    start_line: int
    start_column: int = 1
    end_line: int
    end_column: int = 1

    @property
    def line_count(self) -> int:
        # A pure insertion is expressed as end_line == start_line - 1
        return self.end_line - self.start_line + 1


class DiffHunk(BaseModel):
    """Contiguous edit within a modified file that can be accepted on its own."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    original_range: FileRange
    new_range: FileRange
    removed_lines: List[str] = []
    added_lines: List[str] = []
    context_before: List[str] = []  # display only
    context_after: List[str] = []  # display only
    accepted: bool = True

    @model_validator(mode="after")
    def _check_ranges(self) -> "DiffHunk":
        if self.original_range.start_line < 1:
            raise ValueError("original_range.start_line must be >= 1")
        if self.original_range.line_count != len(self.removed_lines):
            raise ValueError(
                f"original_range spans {self.original_range.line_count} lines "
                f"but hunk removes {len(self.removed_lines)}"
            )
        return self
