"""
Hunk merge engine.

Produces file content containing only the accepted hunks of a modify change,
and derives hunks for changes submitted without them.
"""

from difflib import SequenceMatcher
from typing import List, Sequence

from multiedit.models.hunk import DiffHunk, FileRange

WHOLE_FILE = "whole_file"
LINE = "line"
HUNK_STRATEGIES = (WHOLE_FILE, LINE)


def merge_accepted_hunks(original: str, hunks: Sequence[DiffHunk]) -> str:
    """
    Apply the accepted hunks to ``original`` and return the result.
    
    Hunks are spliced from the bottom of the file up so that line numbers of
    the hunks still to be applied stay valid. Overlapping hunks are not
    detected; callers must not pass them.
    """
    accepted = [hunk for hunk in hunks if hunk.accepted]
    if not accepted:
        return original

    lines = original.split("\n")
    for hunk in sorted(accepted, key=lambda h: h.original_range.start_line, reverse=True):
        start = hunk.original_range.start_line - 1
        end = hunk.original_range.end_line
        lines[start:end] = hunk.added_lines

    return "\n".join(lines)


def derive_hunks(
    original: str,
    modified: str,
    strategy: str = WHOLE_FILE,
    context_lines: int = 3,
) -> List[DiffHunk]:
    """
    Derive reviewable hunks describing the change from ``original`` to ``modified``.
    
    Args:
        original: Content before the change
        modified: Content after the change
        strategy: 'whole_file' for a single replace-everything hunk, 'line' for
            one hunk per changed line block
        context_lines: Display context kept around each 'line' hunk
    
    Raises:
        ValueError: If the strategy is unknown
    """
    if strategy == WHOLE_FILE:
        return [_whole_file_hunk(original, modified)]
    if strategy == LINE:
        return _line_hunks(original, modified, context_lines)
    raise ValueError(f"Unknown hunk strategy: {strategy}. Expected one of {HUNK_STRATEGIES}")


def _whole_file_hunk(original: str, modified: str) -> DiffHunk:
    original_lines = original.split("\n")
    modified_lines = modified.split("\n")

    return DiffHunk(
        original_range=_span(1, original_lines),
        new_range=_span(1, modified_lines),
        removed_lines=original_lines,
        added_lines=modified_lines,
    )


def _line_hunks(original: str, modified: str, context_lines: int) -> List[DiffHunk]:
    original_lines = original.split("\n")
    modified_lines = modified.split("\n")
    matcher = SequenceMatcher(None, original_lines, modified_lines, autojunk=False)
    hunks = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue

        hunks.append(
            DiffHunk(
                original_range=_span(i1 + 1, original_lines[i1:i2]),
                new_range=_span(j1 + 1, modified_lines[j1:j2]),
                removed_lines=original_lines[i1:i2],
                added_lines=modified_lines[j1:j2],
                context_before=original_lines[max(0, i1 - context_lines):i1],
                context_after=original_lines[i2:i2 + context_lines],
            )
        )

    return hunks


def _span(start_line: int, lines: List[str]) -> FileRange:
    # Empty blocks (pure insertions/deletions) end one line before they start
    last = lines[-1] if lines else ""
    return FileRange(
        start_line=start_line,
        start_column=1,
        end_line=start_line + len(lines) - 1,
        end_column=len(last) + 1,
    )
