"""
Multi-file edit session engine.

Owns sessions of proposed file changes and applies the accepted parts of
them through a content store. Handles:
- operation admission and hunk-level review state
- conflict detection against current content
- apply with optional backups, and best-effort revert
- session change notification
"""

from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from multiedit.config import Settings, settings as default_settings
from multiedit.errors import InvalidSessionStateError
from multiedit.models.conflict import ConflictResolutionType, EditConflict
from multiedit.models.file_change import FileChange, FileChangeType
from multiedit.models.operation import EditOperation, EditOperationStatus
from multiedit.models.result import (
    ApplyOptions,
    DiffOptions,
    EditSessionResult,
    OperationError,
)
from multiedit.models.session import (
    EditSession,
    EditSessionStatus,
    SessionChangeEvent,
    SessionChangeType,
)
from multiedit.services.backup import BackupManager
from multiedit.services.conflict_detector import ConflictDetector
from multiedit.services.content_store import ContentStore, LocalFileContentStore
from multiedit.services.diff_renderer import render_diff
from multiedit.services.events import SessionEventEmitter, SessionListener
from multiedit.services.hooks import ApplyHook
from multiedit.services.hunk_merge import derive_hunks, merge_accepted_hunks
from multiedit.services.path_locks import PathLockRegistry
from multiedit.services.session_store import SessionStore
from multiedit.utils.logging import (
    get_logger,
    log_error_with_context,
    log_operation_outcome,
    log_session_transition,
    setup_logging,
)
from multiedit.utils.metrics import SessionMetricsCollector, emit_metric, track_store_call

logger = get_logger(__name__)

# Sessions that still accept new operations
OPEN_STATUSES = (EditSessionStatus.BUILDING, EditSessionStatus.PENDING_REVIEW)

# Sessions that can no longer be cancelled
UNCANCELLABLE_STATUSES = (
    EditSessionStatus.APPLYING,
    EditSessionStatus.COMPLETED,
    EditSessionStatus.PARTIALLY_COMPLETED,
    EditSessionStatus.REVERTED,
)

# Sessions that can no longer be applied
UNAPPLIABLE_STATUSES = (EditSessionStatus.CANCELLED, EditSessionStatus.REVERTED)

# Operations still awaiting apply, and therefore checked for conflicts
UNAPPLIED_STATUSES = (EditOperationStatus.PENDING, EditOperationStatus.CONFLICT)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__


class MultiEditSessionEngine:
    """
    Session engine for reviewing and applying multi-file edits.

    All mutation goes through the engine's methods. Accessors and events
    hand out deep copies, so callers never hold references into engine state.
    Within one apply or revert, operations are processed strictly in order.
    """

    def __init__(
        self,
        content_store: ContentStore,
        session_store: Optional[SessionStore] = None,
        backup_manager: Optional[BackupManager] = None,
        settings: Optional[Settings] = None,
        hooks: Optional[Iterable[ApplyHook]] = None,
        path_locks: Optional[PathLockRegistry] = None
    ):
        """
        Initialize the engine.

        Args:
            content_store: Store used for every file read and write
            session_store: Session arena. A fresh one is created if None.
            backup_manager: Backup store. A fresh one is created if None.
            settings: Engine settings. Module settings are used if None.
            hooks: Apply hooks called around each operation
            path_locks: Lock registry; share one between engines that use
                the same content store
        """
        self.content_store = content_store
        self.sessions = session_store if session_store is not None else SessionStore()
        self.backups = backup_manager if backup_manager is not None else BackupManager()
        self.settings = settings or default_settings
        self.hooks: List[ApplyHook] = list(hooks or [])
        self.path_locks = path_locks if path_locks is not None else PathLockRegistry()
        self.conflict_detector = ConflictDetector(content_store)
        self.events = SessionEventEmitter()

    # ------------------------------------------------------------------
    # Subscriptions and accessors
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Subscribe to session change events.

        Returns:
            Callable that unsubscribes the listener
        """
        return self.events.subscribe(listener)

    def add_hook(self, hook: ApplyHook) -> None:
        self.hooks.append(hook)

    def get_session(self, session_id: str) -> Optional[EditSession]:
        """Return a snapshot of the session, or None if unknown."""
        session = self.sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def get_active_sessions(self) -> List[EditSession]:
        """Return snapshots of sessions that are building, in review or applying."""
        return [s.model_copy(deep=True) for s in self.sessions.values() if s.is_active]

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def create_session(
        self,
        title: str,
        source: str,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> EditSession:
        """
        Create a new session in the Building state.

        Args:
            title: Human-readable title
            source: Who proposed the changes (e.g. an agent run id)
            description: Optional description of the overall change
            metadata: Optional free-form metadata

        Returns:
            Snapshot of the new session
        """
        session = EditSession(
            title=title,
            source=source,
            description=description,
            metadata=metadata or {},
        )
        self.sessions.add(session)

        logger.info(
            f"Created session {session.id}: {title}",
            extra={"session_id": session.id, "source": source}
        )
        self._fire(session, SessionChangeType.CREATED)
        return session.model_copy(deep=True)

    def add_operation(
        self,
        session_id: str,
        change: FileChange,
        description: Optional[str] = None
    ) -> EditOperation:
        """
        Add a change to a session as a new pending operation.

        Modify changes without hunks get hunks derived with the configured
        strategy. The session moves to PendingReview.

        Raises:
            SessionNotFoundError: If the session id is unknown
            InvalidSessionStateError: If the session no longer accepts operations
        """
        session = self.sessions.require(session_id)

        if session.status not in OPEN_STATUSES:
            raise InvalidSessionStateError(
                f"Cannot add operations to session in status: {session.status.value}"
            )

        change = change.model_copy(deep=True)
        if change.type == FileChangeType.MODIFY and change.hunks is None:
            change.hunks = derive_hunks(
                change.original_content,
                change.new_content,
                strategy=self.settings.hunk_strategy,
                context_lines=self.settings.diff_context_lines,
            )

        operation = EditOperation(
            change=change,
            description=description,
            source=session.source,
        )
        session.operations.append(operation)
        self._set_status(session, EditSessionStatus.PENDING_REVIEW)

        logger.debug(
            f"Added {change.type.value} operation for {change.file_path}",
            extra={"session_id": session.id, "operation_id": operation.id, "file_path": change.file_path}
        )
        self._fire(session, SessionChangeType.OPERATION_ADDED, operation)
        return operation.model_copy(deep=True)

    def remove_operation(self, session_id: str, operation_id: str) -> None:
        """Remove an operation. Unknown ids are ignored."""
        session = self.sessions.get(session_id)
        if not session:
            return

        operation = session.find_operation(operation_id)
        if operation:
            session.operations.remove(operation)
            self._fire(session, SessionChangeType.UPDATED)

    def update_operation_status(
        self,
        session_id: str,
        operation_id: str,
        status: EditOperationStatus
    ) -> None:
        """Set an operation's status. Unknown ids are ignored."""
        session = self.sessions.get(session_id)
        if not session:
            return

        operation = session.find_operation(operation_id)
        if operation:
            operation.status = EditOperationStatus(status)
            if operation.status == EditOperationStatus.APPLIED:
                operation.applied_at = _now()
            self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)

    def set_hunk_accepted(
        self,
        session_id: str,
        operation_id: str,
        hunk_id: str,
        accepted: bool
    ) -> None:
        """Accept or reject one hunk of a modify operation. Unknown ids are ignored."""
        session = self.sessions.get(session_id)
        if not session:
            return

        operation = session.find_operation(operation_id)
        hunk = operation.change.find_hunk(hunk_id) if operation else None
        if hunk:
            hunk.accepted = accepted
            self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)

    def remove_session(self, session_id: str) -> None:
        """
        Drop a session and its backups from the engine.

        Raises:
            SessionNotFoundError: If the session id is unknown
            InvalidSessionStateError: If the session is being applied
        """
        session = self.sessions.require(session_id)
        self._ensure_not_applying(session)
        self.sessions.remove(session_id)
        self.backups.discard(session_id)

    # ------------------------------------------------------------------
    # Conflicts
    # ------------------------------------------------------------------

    async def check_conflicts(self, session_id: str) -> List[EditConflict]:
        """
        Compare recorded original content against the content store.

        Pending or conflicting modify/delete operations whose file diverged
        move to Conflict; conflicting operations whose file matches again
        return to Pending.

        Raises:
            SessionNotFoundError: If the session id is unknown
        """
        session = self.sessions.require(session_id)
        conflicts = []

        for operation in list(session.operations):
            if operation.status not in UNAPPLIED_STATUSES:
                continue

            conflict = await self.conflict_detector.detect(operation)

            if conflict is None:
                if operation.status == EditOperationStatus.CONFLICT:
                    operation.status = EditOperationStatus.PENDING
                    self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)
                continue

            if operation.status != EditOperationStatus.CONFLICT:
                operation.status = EditOperationStatus.CONFLICT
                self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)
            conflict.operation = operation.model_copy(deep=True)
            conflicts.append(conflict)

        if conflicts:
            logger.warning(
                f"Session {session.id} has {len(conflicts)} conflicting operations",
                extra={"session_id": session.id}
            )
        return conflicts

    async def preview(self, session_id: str) -> EditSession:
        """
        Refresh conflict state and return a snapshot of the session.

        Raises:
            SessionNotFoundError: If the session id is unknown
        """
        await self.check_conflicts(session_id)
        return self.sessions.require(session_id).model_copy(deep=True)

    def resolve_conflict(
        self,
        session_id: str,
        operation_id: str,
        resolution: Union[ConflictResolutionType, str]
    ) -> EditOperation:
        """
        Record the chosen resolution for a conflicting operation.

        keep-ours returns the operation to Pending so the next apply
        overwrites the file; keep-theirs rejects it; manual leaves it in
        Conflict until the caller sets a status after resolving it.

        Raises:
            SessionNotFoundError: If the session id is unknown
            InvalidSessionStateError: If the operation is unknown or not in conflict
        """
        session = self.sessions.require(session_id)
        resolution = ConflictResolutionType(resolution)

        operation = session.find_operation(operation_id)
        if operation is None:
            raise InvalidSessionStateError(f"Operation not found: {operation_id}")
        if operation.status != EditOperationStatus.CONFLICT:
            raise InvalidSessionStateError(
                f"Operation {operation_id} is not in conflict (status: {operation.status.value})"
            )

        if resolution == ConflictResolutionType.KEEP_OURS:
            operation.status = EditOperationStatus.PENDING
        elif resolution == ConflictResolutionType.KEEP_THEIRS:
            operation.status = EditOperationStatus.REJECTED

        logger.info(
            f"Conflict on {operation.change.file_path} resolved with {resolution.value}",
            extra={"session_id": session.id, "operation_id": operation.id}
        )
        self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)
        return operation.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Apply / revert / cancel
    # ------------------------------------------------------------------

    async def apply(
        self,
        session_id: str,
        options: Optional[ApplyOptions] = None
    ) -> EditSessionResult:
        """
        Apply every pending operation of a session, in order.

        Per-operation failures are recorded on the operation and in the
        result; they are never raised.

        Args:
            session_id: Session to apply
            options: Apply options; unset fields fall back to settings

        Returns:
            Aggregate result with a snapshot of the session

        Raises:
            SessionNotFoundError: If the session id is unknown
            InvalidSessionStateError: If the session is being applied, or was
                cancelled or reverted
        """
        session = self.sessions.require(session_id)
        self._ensure_not_applying(session)
        if session.status in UNAPPLIABLE_STATUSES:
            raise InvalidSessionStateError(
                f"Cannot apply session in status: {session.status.value}"
            )

        options = options or ApplyOptions()
        create_backup = self._resolve(options.create_backup, self.settings.create_backup)
        stop_on_error = self._resolve(options.stop_on_error, self.settings.stop_on_error)
        save_after_apply = self._resolve(options.save_after_apply, self.settings.save_after_apply)

        self._set_status(session, EditSessionStatus.APPLYING)
        self._fire(session, SessionChangeType.UPDATED)

        result = EditSessionResult(session=session.model_copy())
        metrics = SessionMetricsCollector(session.id, "apply")
        metrics.start()
        written: List[str] = []
        aborted = False
        finished = False

        try:
            async with self._hold_paths(session):
                if create_backup:
                    aborted = not await self._create_backups(session, result)

                for operation in ([] if aborted else session.operations):
                    if operation.status == EditOperationStatus.REJECTED:
                        result.skipped_count += 1
                        metrics.record_outcome("skipped")
                        continue

                    if operation.status != EditOperationStatus.PENDING:
                        continue

                    try:
                        if not await self._run_before_hooks(operation):
                            result.skipped_count += 1
                            metrics.record_outcome("skipped")
                            continue

                        await self._apply_operation(operation, metrics)

                    except Exception as e:
                        self._record_apply_failure(session, operation, e, result, metrics)
                        await self._run_after_hooks(operation, False)
                        if stop_on_error:
                            break
                        continue

                    operation.status = EditOperationStatus.APPLIED
                    operation.applied_at = _now()
                    operation.error = None
                    result.success_count += 1
                    metrics.record_outcome("succeeded")
                    written.extend(self._written_paths(operation.change))

                    log_operation_outcome(
                        logger, session.id, operation.id, operation.change.file_path,
                        action="apply", status=operation.status.value
                    )
                    self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)
                    await self._run_after_hooks(operation, True)

                if save_after_apply and written:
                    await self._flush(session, written)

                finished = True

        finally:
            if aborted:
                final_status = EditSessionStatus.CANCELLED
            elif not finished:
                # Interrupted (e.g. task cancellation); later operations never ran
                if result.success_count > 0:
                    final_status = EditSessionStatus.PARTIALLY_COMPLETED
                else:
                    final_status = EditSessionStatus.CANCELLED
            elif result.failed_count == 0 and result.skipped_count == 0:
                final_status = EditSessionStatus.COMPLETED
            elif result.success_count > 0:
                final_status = EditSessionStatus.PARTIALLY_COMPLETED
            else:
                final_status = EditSessionStatus.CANCELLED

            self._set_status(session, final_status)
            session.completed_at = _now()
            metrics.complete(final_status.value)
            self._fire(session, SessionChangeType.COMPLETED)

        emit_metric("session.apply.failed_operations", result.failed_count, session_id=session.id)
        result.success = not aborted and result.failed_count == 0
        result.session = session.model_copy(deep=True)
        return result

    async def revert(self, session_id: str) -> EditSessionResult:
        """
        Undo every applied operation of a session, last applied first.

        Revert is best effort: a failing operation is recorded and the
        remaining operations are still reverted. Backups for the session are
        discarded afterwards.

        Raises:
            SessionNotFoundError: If the session id is unknown
            InvalidSessionStateError: If the session is being applied
        """
        session = self.sessions.require(session_id)
        self._ensure_not_applying(session)

        result = EditSessionResult(session=session.model_copy())
        metrics = SessionMetricsCollector(session.id, "revert")
        metrics.start()

        applied = [op for op in session.operations if op.status == EditOperationStatus.APPLIED]

        async with self._hold_paths(session):
            for operation in reversed(applied):
                try:
                    await self._revert_operation(session.id, operation, metrics)
                except Exception as e:
                    message = _error_message(e)
                    operation.error = message
                    result.failed_count += 1
                    result.errors.append(OperationError(operation_id=operation.id, error=message))
                    metrics.record_outcome("failed")
                    log_operation_outcome(
                        logger, session.id, operation.id, operation.change.file_path,
                        action="revert", status=operation.status.value, error=message
                    )
                    continue

                operation.status = EditOperationStatus.REVERTED
                result.success_count += 1
                metrics.record_outcome("succeeded")
                log_operation_outcome(
                    logger, session.id, operation.id, operation.change.file_path,
                    action="revert", status=operation.status.value
                )
                self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)

        self._set_status(session, EditSessionStatus.REVERTED)
        self.backups.discard(session.id)
        metrics.complete(session.status.value)

        result.success = result.failed_count == 0
        result.session = session.model_copy(deep=True)
        self._fire(session, SessionChangeType.UPDATED)
        return result

    def cancel(self, session_id: str) -> None:
        """
        Cancel a session without touching files or operations.

        Cancelling an already cancelled session does nothing.

        Raises:
            SessionNotFoundError: If the session id is unknown
            InvalidSessionStateError: If the session is applying or was
                already applied or reverted
        """
        session = self.sessions.require(session_id)

        if session.status == EditSessionStatus.CANCELLED:
            return
        if session.status in UNCANCELLABLE_STATUSES:
            raise InvalidSessionStateError(
                f"Cannot cancel session in status: {session.status.value}"
            )

        self._set_status(session, EditSessionStatus.CANCELLED)
        session.completed_at = _now()
        self._fire(session, SessionChangeType.CANCELLED)

    def generate_diff(
        self,
        operation: EditOperation,
        options: Optional[DiffOptions] = None
    ) -> str:
        """Render an operation's change as unified-diff style text for display."""
        return render_diff(operation.change, options)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _apply_operation(
        self,
        operation: EditOperation,
        metrics: SessionMetricsCollector
    ) -> None:
        change = operation.change

        if change.type == FileChangeType.CREATE:
            await self._write(change.file_path, change.new_content, metrics)

        elif change.type == FileChangeType.MODIFY:
            if change.hunks:
                content = merge_accepted_hunks(change.original_content, change.hunks)
            else:
                content = change.new_content
            await self._write(change.file_path, content, metrics)

        elif change.type == FileChangeType.DELETE:
            async with track_store_call(metrics, "delete", change.file_path):
                await self.content_store.delete(change.file_path)

        elif change.type == FileChangeType.RENAME:
            async with track_store_call(metrics, "rename", change.file_path):
                await self.content_store.rename(change.file_path, change.new_file_path)

    async def _revert_operation(
        self,
        session_id: str,
        operation: EditOperation,
        metrics: SessionMetricsCollector
    ) -> None:
        change = operation.change

        if change.type == FileChangeType.CREATE:
            async with track_store_call(metrics, "exists", change.file_path):
                exists = await self.content_store.exists(change.file_path)
            if exists:
                async with track_store_call(metrics, "delete", change.file_path):
                    await self.content_store.delete(change.file_path)

        elif change.type in (FileChangeType.MODIFY, FileChangeType.DELETE):
            content = self.backups.get(session_id, change.file_path)
            if content is None:
                content = change.original_content
            await self._write(change.file_path, content, metrics)

        elif change.type == FileChangeType.RENAME:
            async with track_store_call(metrics, "rename", change.new_file_path):
                await self.content_store.rename(change.new_file_path, change.file_path)

    async def _create_backups(self, session: EditSession, result: EditSessionResult) -> bool:
        try:
            await self.backups.snapshot(session, self.content_store)
        except Exception as e:
            # Without backups revert cannot restore content, so nothing is applied
            message = f"Backup failed: {_error_message(e)}"
            result.errors.append(OperationError(operation_id=None, error=message))
            log_error_with_context(logger, message, e, session_id=session.id)
            return False
        return True

    async def _write(self, path: str, content: str, metrics: SessionMetricsCollector) -> None:
        async with track_store_call(metrics, "write", path):
            await self.content_store.write(path, content)

    async def _flush(self, session: EditSession, paths: List[str]) -> None:
        try:
            await self.content_store.flush(paths)
        except Exception as e:
            # Content is already written; durability failures are reported only
            log_error_with_context(
                logger, f"Failed to flush files for session {session.id}", e,
                session_id=session.id
            )

    def _record_apply_failure(
        self,
        session: EditSession,
        operation: EditOperation,
        error: Exception,
        result: EditSessionResult,
        metrics: SessionMetricsCollector
    ) -> None:
        message = _error_message(error)
        operation.status = EditOperationStatus.FAILED
        operation.error = message
        result.failed_count += 1
        result.errors.append(OperationError(operation_id=operation.id, error=message))
        metrics.record_outcome("failed")

        log_operation_outcome(
            logger, session.id, operation.id, operation.change.file_path,
            action="apply", status=operation.status.value, error=message
        )
        self._fire(session, SessionChangeType.OPERATION_UPDATED, operation)

    async def _run_before_hooks(self, operation: EditOperation) -> bool:
        for hook in self.hooks:
            if not await hook.on_before_apply(operation.model_copy(deep=True)):
                logger.info(
                    f"Apply of {operation.change.file_path} skipped by {type(hook).__name__}",
                    extra={"operation_id": operation.id}
                )
                return False
        return True

    async def _run_after_hooks(self, operation: EditOperation, success: bool) -> None:
        for hook in self.hooks:
            try:
                await hook.on_after_apply(operation.model_copy(deep=True), success)
            except Exception as e:
                log_error_with_context(
                    logger, f"Apply hook {type(hook).__name__} failed", e,
                    operation_id=operation.id
                )

    def _hold_paths(self, session: EditSession):
        if not self.settings.lock_paths:
            return nullcontext()
        paths = [path for op in session.operations for path in op.change.touched_paths]
        return self.path_locks.hold(paths)

    @staticmethod
    def _written_paths(change: FileChange) -> List[str]:
        if change.type in (FileChangeType.CREATE, FileChangeType.MODIFY):
            return [change.file_path]
        if change.type == FileChangeType.RENAME:
            return [change.new_file_path]
        return []

    @staticmethod
    def _resolve(value: Optional[bool], default: bool) -> bool:
        return default if value is None else value

    def _ensure_not_applying(self, session: EditSession) -> None:
        if session.status == EditSessionStatus.APPLYING:
            raise InvalidSessionStateError(f"Session {session.id} is currently being applied")

    def _set_status(self, session: EditSession, status: EditSessionStatus) -> None:
        if session.status != status:
            log_session_transition(logger, session.id, session.status.value, status.value)
            session.status = status

    def _fire(
        self,
        session: EditSession,
        change_type: SessionChangeType,
        operation: Optional[EditOperation] = None
    ) -> None:
        self.events.emit(
            SessionChangeEvent(
                session=session.model_copy(deep=True),
                change_type=change_type,
                operation=operation.model_copy(deep=True) if operation else None,
            )
        )


def get_session_engine(
    content_store: Optional[ContentStore] = None,
    settings: Optional[Settings] = None,
    configure_logging: bool = False
) -> MultiEditSessionEngine:
    """
    Create a session engine.

    Args:
        content_store: Store to use. If None, a LocalFileContentStore rooted
            at the configured workspace root is created.
        settings: Engine settings. Module settings are used if None.
        configure_logging: Install structured JSON logging at the configured
            log level. Hosts that manage logging themselves leave this off.

    Returns:
        MultiEditSessionEngine instance
    """
    settings = settings or default_settings
    if configure_logging:
        setup_logging(settings.log_level)
    if content_store is None:
        content_store = LocalFileContentStore(settings.workspace_root)
    return MultiEditSessionEngine(content_store, settings=settings)
