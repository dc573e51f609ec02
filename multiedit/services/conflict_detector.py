"""
Conflict detection between recorded original content and current content.
"""

import logging
from typing import Iterable, List, Optional

from multiedit.models.conflict import (
    ConflictResolution,
    ConflictResolutionType,
    EditConflict,
)
from multiedit.models.file_change import FileChangeType
from multiedit.models.operation import EditOperation
from multiedit.services.content_store import ContentStore


logger = logging.getLogger(__name__)

# Only these change types record the content they expect to find
CHECKED_TYPES = (FileChangeType.MODIFY, FileChangeType.DELETE)


class ConflictDetector:
    """Flags operations whose target file diverged since the change was proposed."""
    
    def __init__(self, store: ContentStore):
        self.store = store
    
    async def detect(self, operation: EditOperation) -> Optional[EditConflict]:
        """
        Compare the store's current content with the change's original content.
        
        Args:
            operation: Operation to check
        
        Returns:
            Conflict record, or None if the file is unchanged or the change
            type records no original content
        """
        change = operation.change
        if change.type not in CHECKED_TYPES:
            return None
        
        disk_content = await self.store.read(change.file_path)
        if disk_content == change.original_content:
            return None
        
        if disk_content is None:
            description = f"File {change.file_path} no longer exists"
        else:
            description = f"File {change.file_path} has been modified since the edit was created"
        
        logger.info(
            f"Conflict detected for operation {operation.id}: {description}",
            extra={"operation_id": operation.id, "file_path": change.file_path}
        )
        
        return EditConflict(
            operation=operation.model_copy(deep=True),
            description=description,
            disk_content=disk_content,
            expected_content=change.original_content,
            resolutions=self._resolutions(operation, disk_content),
        )
    
    async def detect_all(self, operations: Iterable[EditOperation]) -> List[EditConflict]:
        """Check operations in order and return the conflicts found."""
        conflicts = []
        for operation in operations:
            conflict = await self.detect(operation)
            if conflict is not None:
                conflicts.append(conflict)
        return conflicts
    
    def _resolutions(
        self,
        operation: EditOperation,
        disk_content: Optional[str]
    ) -> List[ConflictResolution]:
        return [
            ConflictResolution(
                type=ConflictResolutionType.KEEP_OURS,
                description="Apply our changes, overwriting disk changes",
                result_content=operation.change.new_content,
            ),
            ConflictResolution(
                type=ConflictResolutionType.KEEP_THEIRS,
                description="Keep disk changes, discard our changes",
                result_content=disk_content,
            ),
            ConflictResolution(
                type=ConflictResolutionType.MANUAL,
                description="Manually resolve the conflict",
            ),
        ]
