"""
Backup manager for pre-apply content snapshots.

Snapshots are keyed by session id, then by file path, and are consumed by
revert.
"""

import logging
from typing import Dict, List, Optional

from multiedit.models.file_change import FileChangeType
from multiedit.models.operation import EditOperationStatus
from multiedit.models.session import EditSession
from multiedit.services.content_store import ContentStore


logger = logging.getLogger(__name__)

# Change types whose application can destroy existing content
BACKED_UP_TYPES = (FileChangeType.MODIFY, FileChangeType.DELETE)


class BackupManager:
    """In-memory store of pre-apply file content per session."""
    
    def __init__(self):
        self._backups: Dict[str, Dict[str, str]] = {}
    
    async def snapshot(self, session: EditSession, store: ContentStore) -> int:
        """
        Snapshot current content for every pending modify/delete operation.
        
        Files that do not exist are skipped. Paths that already have a backup
        for the session keep it, so re-applying a session never replaces the
        content captured before its first apply.
        
        Returns:
            Number of files newly backed up
        """
        backup_map = self._backups.setdefault(session.id, {})
        added = 0
        
        for operation in session.operations:
            change = operation.change
            if operation.status != EditOperationStatus.PENDING:
                continue
            if change.type not in BACKED_UP_TYPES or change.file_path in backup_map:
                continue
            
            content = await store.read(change.file_path)
            if content is not None:
                backup_map[change.file_path] = content
                added += 1
        
        logger.info(f"Backed up {added} files for session {session.id}")
        return added
    
    def get(self, session_id: str, path: str) -> Optional[str]:
        return self._backups.get(session_id, {}).get(path)
    
    def has_backup(self, session_id: str) -> bool:
        return session_id in self._backups
    
    def paths(self, session_id: str) -> List[str]:
        return list(self._backups.get(session_id, {}))
    
    def discard(self, session_id: str) -> None:
        if self._backups.pop(session_id, None) is not None:
            logger.debug(f"Discarded backups for session {session_id}")
