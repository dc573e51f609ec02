"""
Unit tests for the backup manager.
"""

import pytest

from multiedit.models import (
    EditOperation,
    EditOperationStatus,
    EditSession,
    FileChange,
    FileChangeType,
)
from multiedit.services.backup import BackupManager
from multiedit.services.content_store import InMemoryContentStore


def operation(change: FileChange) -> EditOperation:
    return EditOperation(change=change, source="agent")


@pytest.fixture
def session():
    return EditSession(
        title="Backups",
        source="agent",
        operations=[
            operation(FileChange(type=FileChangeType.CREATE, file_path="new.txt", new_content="n")),
            operation(FileChange(
                type=FileChangeType.MODIFY, file_path="mod.txt",
                original_content="m0", new_content="m1",
            )),
            operation(FileChange(type=FileChangeType.DELETE, file_path="del.txt", original_content="d0")),
            operation(FileChange(type=FileChangeType.DELETE, file_path="gone.txt", original_content="g0")),
            operation(FileChange(type=FileChangeType.RENAME, file_path="ren.txt", new_file_path="r2.txt")),
        ],
    )


@pytest.fixture
def store():
    return InMemoryContentStore({
        "mod.txt": "m-disk",
        "del.txt": "d-disk",
        "ren.txt": "r",
        "new.txt": "already here",
    })


class TestBackupManager:
    """Test snapshotting and discarding backups."""
    
    @pytest.mark.asyncio
    async def test_snapshot_modify_and_delete_only(self, session, store):
        """Test only existing modify/delete targets are backed up."""
        manager = BackupManager()
        
        count = await manager.snapshot(session, store)
        
        assert count == 2
        assert sorted(manager.paths(session.id)) == ["del.txt", "mod.txt"]
        assert manager.get(session.id, "mod.txt") == "m-disk"
        assert manager.get(session.id, "del.txt") == "d-disk"
        assert manager.get(session.id, "new.txt") is None
        assert manager.get(session.id, "gone.txt") is None
    
    @pytest.mark.asyncio
    async def test_snapshot_keeps_first_backup(self, session, store):
        """Test a later snapshot never replaces content already backed up."""
        manager = BackupManager()
        await manager.snapshot(session, store)
        
        await store.write("mod.txt", "changed again")
        count = await manager.snapshot(session, store)
        
        assert count == 0
        assert manager.get(session.id, "mod.txt") == "m-disk"
    
    @pytest.mark.asyncio
    async def test_snapshot_adds_new_paths(self, session, store):
        """Test a later snapshot still backs up paths not yet covered."""
        manager = BackupManager()
        await manager.snapshot(session, store)
        
        await store.write("gone.txt", "back again")
        count = await manager.snapshot(session, store)
        
        assert count == 1
        assert manager.get(session.id, "gone.txt") == "back again"
        assert manager.get(session.id, "mod.txt") == "m-disk"
    
    @pytest.mark.asyncio
    async def test_snapshot_skips_operations_not_pending(self, session, store):
        """Test operations that are no longer pending are not backed up."""
        session.operations[1].status = EditOperationStatus.APPLIED
        session.operations[2].status = EditOperationStatus.REJECTED
        manager = BackupManager()
        
        count = await manager.snapshot(session, store)
        
        assert count == 0
        assert manager.paths(session.id) == []
    
    @pytest.mark.asyncio
    async def test_discard(self, session, store):
        """Test discarding removes every backup of the session."""
        manager = BackupManager()
        await manager.snapshot(session, store)
        
        manager.discard(session.id)
        
        assert not manager.has_backup(session.id)
        assert manager.get(session.id, "mod.txt") is None
        # Discarding twice is harmless
        manager.discard(session.id)
    
    @pytest.mark.asyncio
    async def test_empty_content_is_backed_up(self, store):
        """Test an empty file is a backup, not a missing one."""
        await store.write("empty.txt", "")
        session = EditSession(
            title="Empty",
            source="agent",
            operations=[operation(FileChange(
                type=FileChangeType.MODIFY, file_path="empty.txt",
                original_content="", new_content="x",
            ))],
        )
        manager = BackupManager()
        
        await manager.snapshot(session, store)
        
        assert manager.get(session.id, "empty.txt") == ""
