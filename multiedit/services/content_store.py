"""
Content store contract and backends.

The session engine reads and writes file content only through a
``ContentStore``. It never needs to know how a backend locates or persists
bytes.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional, Union


logger = logging.getLogger(__name__)


class ContentStoreError(Exception):
    """Raised when a content store operation fails."""
    pass


class ContentStore(ABC):
    """
    Asynchronous file content store consumed by the session engine.
    
    ``read`` returns None for a missing file instead of raising. ``write``
    creates parent containers as needed.
    """
    
    @abstractmethod
    async def read(self, path: str) -> Optional[str]:
        """Return the content at ``path``, or None if it does not exist."""
    
    @abstractmethod
    async def write(self, path: str, content: str) -> None:
        """Write ``content`` to ``path``, creating it if needed."""
    
    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete the file at ``path``."""
    
    @abstractmethod
    async def rename(self, old_path: str, new_path: str) -> None:
        """Move the file at ``old_path`` to ``new_path``."""
    
    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return whether a file exists at ``path``."""
    
    async def flush(self, paths: Iterable[str]) -> None:
        """
        Make earlier writes to ``paths`` durable.
        
        Backends whose writes are durable on return need not override this.
        """
        return None


class InMemoryContentStore(ContentStore):
    """
    Content store backed by a dictionary of path -> content.
    
    Useful for previews and tests; nothing is persisted.
    """
    
    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(files or {})
    
    async def read(self, path: str) -> Optional[str]:
        return self.files.get(path)
    
    async def write(self, path: str, content: str) -> None:
        self.files[path] = content
    
    async def delete(self, path: str) -> None:
        if path not in self.files:
            raise ContentStoreError(f"Cannot delete missing file: {path}")
        del self.files[path]
    
    async def rename(self, old_path: str, new_path: str) -> None:
        if old_path not in self.files:
            raise ContentStoreError(f"Cannot rename missing file: {old_path}")
        if new_path in self.files:
            raise ContentStoreError(f"Rename target already exists: {new_path}")
        self.files[new_path] = self.files.pop(old_path)
    
    async def exists(self, path: str) -> bool:
        return path in self.files


class LocalFileContentStore(ContentStore):
    """
    Content store rooted at a workspace directory on the local filesystem.
    
    Relative paths resolve against the workspace root. Absolute paths are
    accepted when they lie inside the root. Blocking filesystem calls run in
    a worker thread so the event loop is not stalled.
    """
    
    def __init__(self, root: Optional[Union[str, Path]] = None, encoding: str = "utf-8"):
        """
        Initialize the store.
        
        Args:
            root: Workspace root. If None, will load from settings.
            encoding: Text encoding used for reads and writes
        """
        if root is None:
            from multiedit.config import settings
            if not settings.workspace_root:
                raise ContentStoreError(
                    "No workspace root given and MULTIEDIT_WORKSPACE_ROOT is not set"
                )
            root = settings.workspace_root
        
        self.root = Path(root).resolve()
        self.encoding = encoding
    
    def resolve(self, path: str) -> Path:
        """
        Resolve a workspace path to a location under the root.
        
        Raises:
            ContentStoreError: If the path escapes the workspace root
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        resolved = candidate.resolve()
        
        if resolved != self.root and self.root not in resolved.parents:
            raise ContentStoreError(f"Path escapes workspace root: {path}")
        
        return resolved
    
    async def read(self, path: str) -> Optional[str]:
        target = self.resolve(path)
        return await asyncio.to_thread(self._read, target)
    
    async def write(self, path: str, content: str) -> None:
        target = self.resolve(path)
        await asyncio.to_thread(self._write, target, content)
    
    async def delete(self, path: str) -> None:
        target = self.resolve(path)
        await asyncio.to_thread(self._delete, target)
    
    async def rename(self, old_path: str, new_path: str) -> None:
        source = self.resolve(old_path)
        target = self.resolve(new_path)
        await asyncio.to_thread(self._rename, source, target)
    
    async def exists(self, path: str) -> bool:
        target = self.resolve(path)
        return await asyncio.to_thread(target.is_file)
    
    async def flush(self, paths: Iterable[str]) -> None:
        targets = [self.resolve(path) for path in paths]
        await asyncio.to_thread(self._fsync, targets)
    
    def _read(self, target: Path) -> Optional[str]:
        if not target.is_file():
            return None
        try:
            # newline="" keeps line endings byte-for-byte
            with open(target, "r", encoding=self.encoding, newline="") as f:
                return f.read()
        except OSError as e:
            raise ContentStoreError(f"Failed to read {target}: {e}") from e
    
    def _write(self, target: Path, content: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
        except OSError as e:
            raise ContentStoreError(f"Failed to write {target}: {e}") from e
        logger.debug(f"Wrote {len(content)} characters to {target}")
    
    def _delete(self, target: Path) -> None:
        try:
            target.unlink()
        except FileNotFoundError as e:
            raise ContentStoreError(f"Cannot delete missing file: {target}") from e
        except OSError as e:
            raise ContentStoreError(f"Failed to delete {target}: {e}") from e
    
    def _rename(self, source: Path, target: Path) -> None:
        if not source.is_file():
            raise ContentStoreError(f"Cannot rename missing file: {source}")
        if target.exists():
            raise ContentStoreError(f"Rename target already exists: {target}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            source.rename(target)
        except OSError as e:
            raise ContentStoreError(f"Failed to rename {source} to {target}: {e}") from e
    
    def _fsync(self, targets: Iterable[Path]) -> None:
        for target in targets:
            if not target.is_file():
                continue
            try:
                fd = os.open(target, os.O_RDONLY)
                try:
                    os.fsync(fd)
                finally:
                    os.close(fd)
            except OSError as e:
                raise ContentStoreError(f"Failed to flush {target}: {e}") from e
