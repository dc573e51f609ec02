"""
Multi-file edit session engine.

Lets an automated agent propose a batch of file changes, lets a reviewer
accept them hunk by hunk, applies only the accepted parts through a content
store, detects on-disk divergence and reverts applied batches.
"""

from multiedit.errors import (
    InvalidSessionStateError,
    SessionEngineError,
    SessionNotFoundError,
)
from multiedit.services.content_store import (
    ContentStore,
    ContentStoreError,
    InMemoryContentStore,
    LocalFileContentStore,
)
from multiedit.services.session_engine import MultiEditSessionEngine, get_session_engine

__version__ = "0.1.0"

__all__ = [
    "InvalidSessionStateError",
    "SessionEngineError",
    "SessionNotFoundError",
    "ContentStore",
    "ContentStoreError",
    "InMemoryContentStore",
    "LocalFileContentStore",
    "MultiEditSessionEngine",
    "get_session_engine",
]
