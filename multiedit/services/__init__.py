"""Session engine services package."""

from multiedit.services.backup import BackupManager
from multiedit.services.conflict_detector import ConflictDetector
from multiedit.services.content_store import (
    ContentStore,
    ContentStoreError,
    InMemoryContentStore,
    LocalFileContentStore,
)
from multiedit.services.diff_renderer import render_diff
from multiedit.services.events import SessionEventEmitter
from multiedit.services.hooks import ApplyHook
from multiedit.services.hunk_merge import derive_hunks, merge_accepted_hunks
from multiedit.services.path_locks import PathLockRegistry
from multiedit.services.session_engine import MultiEditSessionEngine, get_session_engine
from multiedit.services.session_store import SessionStore

__all__ = [
    'BackupManager',
    'ConflictDetector',
    'ContentStore',
    'ContentStoreError',
    'InMemoryContentStore',
    'LocalFileContentStore',
    'render_diff',
    'SessionEventEmitter',
    'ApplyHook',
    'derive_hunks',
    'merge_accepted_hunks',
    'PathLockRegistry',
    'MultiEditSessionEngine',
    'get_session_engine',
    'SessionStore',
]
