"""
Unified-diff style rendering of file changes for display.

Rendering never affects operation status or applied content.
"""

from typing import List, Optional

from multiedit.models.file_change import FileChange, FileChangeType
from multiedit.models.result import DiffOptions


def render_diff(change: FileChange, options: Optional[DiffOptions] = None) -> str:
    """
    Render a change as unified-diff style text.
    
    Modify changes are shown as one synthetic hunk covering the whole file.
    """
    if change.type == FileChangeType.CREATE:
        return format_new_file_diff(change.file_path, change.new_content or "")
    
    if change.type == FileChangeType.DELETE:
        return format_delete_file_diff(change.file_path, change.original_content or "")
    
    if change.type == FileChangeType.RENAME:
        return format_rename_diff(change.file_path, change.new_file_path or "")
    
    return format_modify_diff(
        change.file_path,
        change.original_content or "",
        change.new_content or "",
        options or DiffOptions(),
    )


def format_new_file_diff(file_path: str, content: str) -> str:
    lines = content.split("\n")
    result = [
        "--- /dev/null",
        f"+++ b/{file_path}",
        f"@@ -0,0 +1,{len(lines)} @@",
    ]
    result.extend(f"+{line}" for line in lines)
    return "\n".join(result)


def format_delete_file_diff(file_path: str, content: str) -> str:
    lines = content.split("\n")
    result = [
        f"--- a/{file_path}",
        "+++ /dev/null",
        f"@@ -1,{len(lines)} +0,0 @@",
    ]
    result.extend(f"-{line}" for line in lines)
    return "\n".join(result)


def format_rename_diff(old_path: str, new_path: str) -> str:
    return "\n".join([
        f"diff --git a/{old_path} b/{new_path}",
        "similarity index 100%",
        f"rename from {old_path}",
        f"rename to {new_path}",
    ])


def format_modify_diff(
    file_path: str,
    original: str,
    modified: str,
    options: DiffOptions
) -> str:
    original_lines = original.split("\n")
    modified_lines = modified.split("\n")
    
    lines: List[str] = [
        f"--- a/{file_path}",
        f"+++ b/{file_path}",
    ]
    
    if _normalize(original, options) == _normalize(modified, options):
        # Nothing to show once ignored differences are discounted
        return "\n".join(lines)
    
    lines.append(f"@@ -1,{len(original_lines)} +1,{len(modified_lines)} @@")
    lines.extend(f"-{line}" for line in original_lines)
    lines.extend(f"+{line}" for line in modified_lines)
    return "\n".join(lines)


def _normalize(text: str, options: DiffOptions) -> str:
    if options.ignore_whitespace:
        text = "".join(text.split())
    if options.ignore_case:
        text = text.lower()
    return text
