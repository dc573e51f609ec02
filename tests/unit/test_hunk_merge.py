"""
Unit tests for the hunk merge engine and hunk derivation.
"""

import pytest

from multiedit.models import DiffHunk, FileRange
from multiedit.services.hunk_merge import derive_hunks, merge_accepted_hunks


def make_hunk(start, removed, added, accepted=True):
    """Build a hunk replacing ``removed`` lines starting at ``start``."""
    return DiffHunk(
        original_range=FileRange(start_line=start, end_line=start + len(removed) - 1),
        new_range=FileRange(start_line=start, end_line=start + len(added) - 1),
        removed_lines=removed,
        added_lines=added,
        accepted=accepted,
    )


class TestMergeAcceptedHunks:
    """Test merging accepted hunks into original content."""
    
    def test_empty_hunk_list_returns_original(self):
        """Test merging nothing is a no-op."""
        original = "a\nb\nc\n"
        
        assert merge_accepted_hunks(original, []) == original
    
    def test_all_rejected_returns_original(self):
        """Test rejected hunks are ignored entirely."""
        original = "a\nb\nc"
        hunks = [
            make_hunk(1, ["a"], ["A"], accepted=False),
            make_hunk(3, ["c"], ["C"], accepted=False),
        ]
        
        assert merge_accepted_hunks(original, hunks) == original
    
    def test_whole_file_hunk_yields_new_content(self):
        """Test a single accepted whole-file hunk reproduces the new content."""
        original = "line one\nline two"
        modified = "first\nsecond\nthird\n"
        hunks = derive_hunks(original, modified)
        
        assert merge_accepted_hunks(original, hunks) == modified
    
    def test_hunks_applied_bottom_up(self):
        """Test hunks given in ascending order still splice correctly."""
        original = "1\n2\n3\n4\n5"
        hunks = [
            make_hunk(2, ["2"], ["two", "two-b"]),
            make_hunk(4, ["4"], []),
        ]
        
        assert merge_accepted_hunks(original, hunks) == "1\ntwo\ntwo-b\n3\n5"
    
    def test_only_accepted_hunks_applied(self):
        """Test mixed acceptance keeps rejected regions as in the original."""
        original = "1\n2\n3\n4\n5"
        hunks = [
            make_hunk(1, ["1"], ["one"], accepted=False),
            make_hunk(5, ["5"], ["five"]),
        ]
        
        assert merge_accepted_hunks(original, hunks) == "1\n2\n3\n4\nfive"


class TestDeriveHunks:
    """Test hunk derivation strategies."""
    
    def test_whole_file_strategy_spans_everything(self):
        """Test the baseline produces one hunk covering both sides."""
        hunks = derive_hunks("a\nb\nc", "x\ny")
        
        assert len(hunks) == 1
        hunk = hunks[0]
        assert hunk.original_range.start_line == 1
        assert hunk.original_range.end_line == 3
        assert hunk.new_range.end_line == 2
        assert hunk.original_range.end_column == 2
        assert hunk.removed_lines == ["a", "b", "c"]
        assert hunk.added_lines == ["x", "y"]
        assert hunk.accepted is True
    
    def test_line_strategy_splits_changed_blocks(self):
        """Test the line strategy yields one hunk per changed block."""
        original = "a\nb\nc\nd"
        modified = "a\nB\nc\nd\ne"
        
        hunks = derive_hunks(original, modified, strategy="line", context_lines=1)
        
        assert len(hunks) == 2
        assert hunks[0].removed_lines == ["b"]
        assert hunks[0].added_lines == ["B"]
        assert hunks[0].context_before == ["a"]
        assert hunks[0].context_after == ["c"]
        assert hunks[1].removed_lines == []
        assert hunks[1].added_lines == ["e"]
        assert hunks[1].original_range.line_count == 0
    
    def test_line_hunks_merge_back_to_modified(self):
        """Test accepting every line hunk reproduces the modified content."""
        original = "def f():\n    return 1\n\nprint(f())\n"
        modified = "def f():\n    return 2\n\n\nprint(f())\nprint('done')\n"
        
        hunks = derive_hunks(original, modified, strategy="line")
        
        assert merge_accepted_hunks(original, hunks) == modified
    
    def test_rejecting_one_line_hunk(self):
        """Test rejecting one line hunk leaves that region unchanged."""
        original = "a\nb\nc\nd"
        modified = "a\nB\nc\nd\ne"
        hunks = derive_hunks(original, modified, strategy="line")
        hunks[1].accepted = False
        
        assert merge_accepted_hunks(original, hunks) == "a\nB\nc\nd"
    
    def test_line_strategy_identical_content(self):
        """Test identical content has no line hunks."""
        assert derive_hunks("same\n", "same\n", strategy="line") == []
    
    def test_unknown_strategy(self):
        """Test unknown strategies are rejected."""
        with pytest.raises(ValueError) as exc_info:
            derive_hunks("a", "b", strategy="myers")
        
        assert "Unknown hunk strategy" in str(exc_info.value)
