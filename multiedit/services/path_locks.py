"""
Per-path locks serializing applies and reverts that touch the same files.
"""

import asyncio
import posixpath
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List


def normalize_path(path: str) -> str:
    """Normalize a workspace path so equivalent spellings share one lock."""
    return posixpath.normpath(path.replace("\\", "/"))


class PathLockRegistry:
    """One asyncio lock per normalized path, created on first use."""
    
    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
    
    def lock_for(self, path: str) -> asyncio.Lock:
        key = normalize_path(path)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock
    
    def is_locked(self, path: str) -> bool:
        lock = self._locks.get(normalize_path(path))
        return lock is not None and lock.locked()
    
    @asynccontextmanager
    async def hold(self, paths: Iterable[str]) -> AsyncIterator[List[str]]:
        """
        Hold the locks of all given paths for the duration of the block.
        
        Locks are acquired in sorted order so two holders with overlapping
        path sets cannot deadlock.
        """
        keys = sorted({normalize_path(path) for path in paths})
        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self.lock_for(key))
            yield keys
