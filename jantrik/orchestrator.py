"""
Main Orchestrator for Jantrik

This module ties together all the components and defines the
operations the UI can trigger on a collection:
1. Add amount (validate -> apply -> persist)
2. Search / view (read-only projection)
3. Export (snapshot -> full range -> .xlsx)
4. Reset (clear storage -> zero-filled snapshot)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The UI never touches storage directly
- Every write is persisted before the UI sees the new snapshot
- Unreadable stored data falls back to a fresh collection with a warning
- Each operation runs at most once at a time per collection
"""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from jantrik.activity import ActivityLogger
from jantrik.config import get_settings
from jantrik.models.collection import (
    AddAmountResult,
    CollectionSnapshot,
    CollectionType,
    CollectionView,
    ExportDocument,
    OperationKind,
    OperationState,
    get_collection_config,
)
from jantrik.queries import build_collection_view, search_entries
from jantrik.services.export import CollectionExcelExporter, ExportError
from jantrik.services.storage import (
    CollectionStorageInterface,
    CorruptedDataError,
    InMemoryCollectionStorage,
    JsonFileCollectionStorage,
    StorageError,
)
from jantrik.validation import ValidationError, apply_amount


logger = structlog.get_logger(__name__)


class OperationInProgressError(Exception):
    """The same operation is already running for this collection."""

    def __init__(self, collection_type: CollectionType, kind: OperationKind):
        super().__init__(f"{kind.value} already in progress for {collection_type.value}")
        self.collection_type = collection_type
        self.kind = kind


class OperationGuard:
    """
    Per-collection, per-operation state machine.

        idle -> pending -> idle   (success)
                        -> error  (failure)

    Starting an operation that is pending raises OperationInProgressError.
    This stands in for disabling a button while its action runs.
    """

    def __init__(self):
        self._states: dict[tuple[CollectionType, OperationKind], OperationState] = {}

    def state(
        self,
        collection_type: CollectionType,
        kind: OperationKind,
    ) -> OperationState:
        return self._states.get((collection_type, kind), OperationState.IDLE)

    def is_pending(self, collection_type: CollectionType, kind: OperationKind) -> bool:
        return self.state(collection_type, kind) == OperationState.PENDING

    @contextmanager
    def run(
        self,
        collection_type: CollectionType,
        kind: OperationKind,
    ) -> Iterator[None]:
        key = (collection_type, kind)
        if self._states.get(key) == OperationState.PENDING:
            raise OperationInProgressError(collection_type, kind)

        self._states[key] = OperationState.PENDING
        try:
            yield
        except BaseException:
            self._states[key] = OperationState.ERROR
            raise
        self._states[key] = OperationState.IDLE


class CollectionFlow:
    """
    Orchestrates every operation on the collections.

    Holds the current snapshot of each collection in memory, restored
    from storage on first use and replaced after every successful write.
    """

    def __init__(
        self,
        storage: CollectionStorageInterface,
        exporter: Optional[CollectionExcelExporter] = None,
        activity_logger: Optional[ActivityLogger] = None,
        guard: Optional[OperationGuard] = None,
    ):
        self._storage = storage
        self._exporter = exporter or CollectionExcelExporter()
        self._activity = activity_logger or ActivityLogger()
        self._guard = guard or OperationGuard()
        self._current: dict[CollectionType, CollectionSnapshot] = {}
        self._warnings: dict[CollectionType, str] = {}

    @property
    def storage(self) -> CollectionStorageInterface:
        return self._storage

    def operation_state(
        self,
        collection_type: CollectionType | str,
        kind: OperationKind,
    ) -> OperationState:
        return self._guard.state(CollectionType(collection_type), kind)

    def storage_warning(self, collection_type: CollectionType | str) -> Optional[str]:
        """Message to show if the stored data had to be discarded on load."""
        return self._warnings.get(CollectionType(collection_type))

    def dismiss_storage_warning(self, collection_type: CollectionType | str) -> None:
        self._warnings.pop(CollectionType(collection_type), None)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load_snapshot(
        self,
        collection_type: CollectionType | str,
        refresh: bool = False,
    ) -> CollectionSnapshot:
        """
        Current snapshot of a collection.

        Restored from storage on first call (or when `refresh` is set).
        Missing storage gives a zero-filled snapshot. Unreadable storage
        also gives a zero-filled snapshot, plus a storage warning.
        """
        collection_type = CollectionType(collection_type)
        if not refresh and collection_type in self._current:
            return self._current[collection_type]

        config = get_collection_config(collection_type)
        try:
            stored = await self._storage.load(collection_type)
            snapshot = self._conform(stored, collection_type)
        except CorruptedDataError as e:
            key = self._storage.storage_key(collection_type)
            self._activity.log_storage_corrupted(
                collection=collection_type.value,
                key=key,
                error_message=str(e),
            )
            self._warnings[collection_type] = (
                f"Saved data for the {config.title} could not be read and was "
                f"ignored. Starting from an empty collection."
            )
            stored = None
            snapshot = CollectionSnapshot.initial(config)
        else:
            self._activity.log_collection_loaded(
                collection=collection_type.value,
                restored=stored is not None,
                active_count=snapshot.active_count,
            )

        self._current[collection_type] = snapshot
        return snapshot

    def _conform(
        self,
        stored: Optional[CollectionSnapshot],
        collection_type: CollectionType,
    ) -> CollectionSnapshot:
        """Fill gaps with zeros; reject keys that are not in range."""
        config = get_collection_config(collection_type)
        if stored is None:
            return CollectionSnapshot.initial(config)

        valid_keys = config.keys()
        unknown = set(stored.entries) - set(valid_keys)
        if unknown:
            sample = ", ".join(sorted(unknown)[:5])
            raise CorruptedDataError(
                f"Stored {collection_type.value} collection has keys outside "
                f"{config.subtitle}: {sample}"
            )
        if len(stored) == len(valid_keys):
            return stored
        return CollectionSnapshot(
            entries={key: stored.get(key) for key in valid_keys}
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def add_amount(
        self,
        collection_type: CollectionType | str,
        number_input: str | int | float,
        amount_input: str | int | float,
        correlation_id: Optional[UUID] = None,
    ) -> AddAmountResult:
        """
        Add an amount to a number and persist the result.

        Raises:
            ValidationError: Invalid number or amount; nothing is changed
            OperationInProgressError: A submit is already running
            StorageError: The new snapshot could not be saved
        """
        collection_type = CollectionType(collection_type)
        config = get_collection_config(collection_type)

        with self._guarded(collection_type, OperationKind.SUBMIT):
            snapshot = await self.load_snapshot(collection_type)
            try:
                result = apply_amount(snapshot, number_input, amount_input, config)
            except ValidationError as e:
                self._activity.log_validation_failed(
                    collection=collection_type.value,
                    field=e.field,
                    message=e.message,
                    raw_value=e.raw_value,
                    correlation_id=correlation_id,
                )
                raise

            try:
                await self._storage.save(collection_type, result.snapshot)
            except StorageError as e:
                self._log_storage_failure(collection_type, "save", e, correlation_id)
                raise
            self._current[collection_type] = result.snapshot

        self._activity.log_amount_added(
            collection=collection_type.value,
            number=result.number,
            amount=result.amount_added,
            new_total=result.new_total,
            correlation_id=correlation_id,
        )
        return result

    async def search_collection(
        self,
        collection_type: CollectionType | str,
        substring: str = "",
    ) -> list[tuple[str, float]]:
        """Active (number, amount) pairs containing `substring`, ordered by number."""
        snapshot = await self.load_snapshot(collection_type)
        return search_entries(snapshot, substring)

    async def view_collection(
        self,
        collection_type: CollectionType | str,
        search_term: str = "",
    ) -> CollectionView:
        """Everything the collection page displays."""
        collection_type = CollectionType(collection_type)
        snapshot = await self.load_snapshot(collection_type)
        return build_collection_view(
            snapshot, get_collection_config(collection_type), search_term
        )

    async def export_collection(
        self,
        collection_type: CollectionType | str,
        exported_at: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ExportDocument:
        """
        Render the collection as an .xlsx document.

        Read-only: the current snapshot and storage are left as they are.

        Raises:
            ExportError: Nothing to export or the workbook failed to build
            OperationInProgressError: An export is already running
        """
        collection_type = CollectionType(collection_type)
        config = get_collection_config(collection_type)

        with self._guarded(collection_type, OperationKind.EXPORT):
            snapshot = await self.load_snapshot(collection_type)
            try:
                document = await asyncio.to_thread(
                    self._exporter.export,
                    snapshot.active_entries(),
                    config,
                    exported_at,
                )
            except ExportError as e:
                self._activity.log_export_failed(
                    collection=collection_type.value,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                raise

        self._activity.log_collection_exported(
            collection=collection_type.value,
            filename=document.filename,
            number_count=document.number_count,
            total_amount=document.total_amount,
            correlation_id=correlation_id,
        )
        return document

    async def reset_collection(
        self,
        collection_type: CollectionType | str,
        correlation_id: Optional[UUID] = None,
    ) -> CollectionSnapshot:
        """
        Delete everything stored for a collection.

        The caller is responsible for asking the user first; this cannot
        be undone.

        Returns:
            The new, zero-filled snapshot
        """
        collection_type = CollectionType(collection_type)
        config = get_collection_config(collection_type)

        with self._guarded(collection_type, OperationKind.RESET):
            previous = await self.load_snapshot(collection_type)
            try:
                await self._storage.clear(collection_type)
            except StorageError as e:
                self._log_storage_failure(collection_type, "clear", e, correlation_id)
                raise
            fresh = CollectionSnapshot.initial(config)
            self._current[collection_type] = fresh
            self._warnings.pop(collection_type, None)

        self._activity.log_collection_reset(
            collection=collection_type.value,
            cleared_count=previous.active_count,
            cleared_total=previous.total_amount,
            correlation_id=correlation_id,
        )
        return fresh

    def _log_storage_failure(
        self,
        collection_type: CollectionType,
        action: str,
        error: Exception,
        correlation_id: Optional[UUID],
    ) -> None:
        self._activity.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={
                "action": action,
                "key": self._storage.storage_key(collection_type),
            },
            collection=collection_type.value,
            correlation_id=correlation_id,
        )

    @contextmanager
    def _guarded(
        self,
        collection_type: CollectionType,
        kind: OperationKind,
    ) -> Iterator[None]:
        try:
            with self._guard.run(collection_type, kind):
                yield
        except OperationInProgressError:
            self._activity.log_operation_rejected(
                collection=collection_type.value,
                operation=kind.value,
            )
            raise


def create_storage(use_storage: bool = True) -> CollectionStorageInterface:
    """Storage backend selected by settings (memory when use_storage is False)."""
    settings = get_settings().storage
    if not use_storage or settings.backend == "memory":
        return InMemoryCollectionStorage(key_prefix=settings.key_prefix)
    return JsonFileCollectionStorage(
        data_dir=settings.data_dir,
        key_prefix=settings.key_prefix,
    )


def create_app_components(use_storage: bool = True) -> CollectionFlow:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to the configured backend.
                    Set to False to keep everything in memory.
    """
    try:
        storage = create_storage(use_storage)
    except Exception as e:
        # Storage not configured - continue without it
        logger.warning("storage_not_configured", error=str(e))
        storage = InMemoryCollectionStorage()

    return CollectionFlow(
        storage=storage,
        exporter=CollectionExcelExporter(),
        activity_logger=ActivityLogger(),
    )
