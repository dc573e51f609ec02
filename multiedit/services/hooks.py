"""
Extension points called around each operation during apply.
"""

from multiedit.models.operation import EditOperation


class ApplyHook:
    """
    Base class for apply hooks.
    
    Subclasses override either method. Hooks receive snapshots of the
    operation; changing them has no effect on the session.
    """
    
    async def on_before_apply(self, operation: EditOperation) -> bool:
        """
        Called before a pending operation is applied.
        
        Returns:
            False to skip the operation for this apply; it stays pending
        """
        return True
    
    async def on_after_apply(self, operation: EditOperation, success: bool) -> None:
        """
        Called after an operation was attempted.
        
        Args:
            operation: Operation snapshot with its resulting status
            success: Whether the operation was applied
        """
        return None
