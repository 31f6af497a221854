"""Tests for the collection flow."""

import json
from datetime import datetime

import pytest

from jantrik.activity import ActivityLogger
from jantrik.models.collection import (
    CollectionSnapshot,
    CollectionType,
    OperationKind,
    OperationState,
    get_collection_config,
)
from jantrik.orchestrator import (
    CollectionFlow,
    OperationGuard,
    OperationInProgressError,
    create_app_components,
)
from jantrik.services.export import ExportError
from jantrik.services.storage import (
    InMemoryCollectionStorage,
    JsonFileCollectionStorage,
    StorageError,
)
from jantrik.validation import ValidationError


class FailingWriteStorage(InMemoryCollectionStorage):
    """Reads fine, refuses every write."""

    async def _write(self, key: str, value: str) -> None:
        raise StorageError("quota exceeded")


class FailingDeleteStorage(InMemoryCollectionStorage):
    """Refuses to delete anything."""

    async def _delete(self, key: str) -> None:
        raise StorageError("permission denied")


def stored_entries(storage: InMemoryCollectionStorage, key: str) -> dict:
    return json.loads(storage.raw_values[key])


class TestLoadSnapshot:
    """Tests for restoring collections."""

    @pytest.mark.asyncio
    async def test_fresh_collection_is_zero_filled(self, flow):
        snapshot = await flow.load_snapshot(CollectionType.THREE_UP)
        assert len(snapshot) == 1000
        assert snapshot.active_count == 0
        assert flow.storage_warning("3up") is None

    @pytest.mark.asyncio
    async def test_restores_saved_amounts(self, recording_logger, exporter):
        storage = InMemoryCollectionStorage(initial={"jantrik-down": json.dumps({"05": 12.5})})
        flow = CollectionFlow(storage, exporter, ActivityLogger(logger=recording_logger))

        snapshot = await flow.load_snapshot("down")
        assert snapshot.get("05") == 12.5
        assert len(snapshot) == 100
        assert "collection_loaded" in recording_logger.event_types()

    @pytest.mark.asyncio
    async def test_corrupted_storage_falls_back_with_warning(self, recording_logger, exporter):
        """Test unreadable storage gives an empty collection and a warning."""
        storage = InMemoryCollectionStorage(initial={"jantrik-down": "{broken"})
        flow = CollectionFlow(storage, exporter, ActivityLogger(logger=recording_logger))

        snapshot = await flow.load_snapshot("down")
        assert snapshot == CollectionSnapshot.initial(get_collection_config("down"))
        assert "could not be read" in flow.storage_warning("down")
        assert "storage_corrupted" in recording_logger.event_types()

        flow.dismiss_storage_warning("down")
        assert flow.storage_warning("down") is None

    @pytest.mark.asyncio
    async def test_oversized_stored_amount_falls_back(self, exporter, recording_logger):
        """Test an integer too large for a float is treated as corruption."""
        payload = '{"05": ' + "9" * 400 + "}"
        storage = InMemoryCollectionStorage(initial={"jantrik-down": payload})
        flow = CollectionFlow(storage, exporter, ActivityLogger(logger=recording_logger))

        snapshot = await flow.load_snapshot("down")
        assert snapshot.active_count == 0
        assert flow.storage_warning("down") is not None
        assert "storage_corrupted" in recording_logger.event_types()

    @pytest.mark.asyncio
    async def test_undecodable_file_falls_back(self, tmp_path, exporter, recording_logger):
        (tmp_path / "jantrik-down.json").write_bytes(b'{"05": 1.0, "\xff\xfe": 2}')
        storage = JsonFileCollectionStorage(data_dir=tmp_path, key_prefix="jantrik")
        flow = CollectionFlow(storage, exporter, ActivityLogger(logger=recording_logger))

        snapshot = await flow.load_snapshot("down")
        assert snapshot == CollectionSnapshot.initial(get_collection_config("down"))
        assert flow.storage_warning("down") is not None

    @pytest.mark.asyncio
    async def test_out_of_range_keys_count_as_corrupted(self, exporter, recording_logger):
        storage = InMemoryCollectionStorage(initial={"jantrik-down": json.dumps({"500": 1.0})})
        flow = CollectionFlow(storage, exporter, ActivityLogger(logger=recording_logger))

        snapshot = await flow.load_snapshot("down")
        assert snapshot.active_count == 0
        assert flow.storage_warning("down") is not None

    @pytest.mark.asyncio
    async def test_cached_until_refresh(self, flow, memory_storage):
        await flow.load_snapshot("down")
        await memory_storage.save("down", CollectionSnapshot(entries={"01": 7.0}))

        assert (await flow.load_snapshot("down")).get("01") == 0
        assert (await flow.load_snapshot("down", refresh=True)).get("01") == 7.0


class TestAddAmount:
    """Tests for the add flow."""

    @pytest.mark.asyncio
    async def test_accumulate_scenario(self, flow, memory_storage):
        """Test (5, 10.0) then (5, 2.5) leaves '05' at 12.5 in memory and in storage."""
        first = await flow.add_amount("down", "5", "10")
        second = await flow.add_amount("down", 5, 2.5)

        assert first.new_total == 10.0
        assert second.new_total == 12.5
        assert second.success_message == "Successfully added 2.5 to number 05"
        assert second.detail_message == "New total: 12.5"

        snapshot = await flow.load_snapshot("down")
        assert snapshot.active_entries() == {"05": 12.5}

        persisted = stored_entries(memory_storage, "jantrik-down")
        assert len(persisted) == 100
        assert persisted["05"] == 12.5
        assert sum(persisted.values()) == 12.5

    @pytest.mark.asyncio
    async def test_collections_are_independent(self, flow, memory_storage):
        await flow.add_amount("3up", "7", "1")
        assert (await flow.load_snapshot("down")).active_count == 0
        assert "jantrik-down" not in memory_storage.raw_values
        assert stored_entries(memory_storage, "jantrik-3up")["007"] == 1.0

    @pytest.mark.asyncio
    async def test_validation_failure_changes_nothing(self, flow, memory_storage, recording_logger):
        """Test a rejected add leaves snapshot and storage alone and logs a warning."""
        await flow.add_amount("down", "5", "10")
        before_snapshot = await flow.load_snapshot("down")
        before_raw = memory_storage.raw_values

        with pytest.raises(ValidationError) as exc_info:
            await flow.add_amount("down", "100", "10")
        assert exc_info.value.field == "number"

        with pytest.raises(ValidationError):
            await flow.add_amount("down", "5", "0")

        assert await flow.load_snapshot("down") == before_snapshot
        assert memory_storage.raw_values == before_raw

        level, _, kwargs = recording_logger.calls[-1]
        assert level == "warning"
        assert kwargs["event_type"] == "validation_failed"
        assert flow.operation_state("down", OperationKind.SUBMIT) == OperationState.ERROR

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_previous_snapshot(self, exporter, recording_logger):
        flow = CollectionFlow(FailingWriteStorage(), exporter, ActivityLogger(logger=recording_logger))
        with pytest.raises(StorageError):
            await flow.add_amount("down", "5", "10")
        assert (await flow.load_snapshot("down")).active_count == 0

    @pytest.mark.asyncio
    async def test_storage_failure_is_logged(self, exporter, recording_logger):
        flow = CollectionFlow(FailingWriteStorage(), exporter, ActivityLogger(logger=recording_logger))
        with pytest.raises(StorageError):
            await flow.add_amount("down", "5", "10")

        level, _, kwargs = recording_logger.calls[-1]
        assert level == "error"
        assert kwargs["event_type"] == "system_error"
        assert kwargs["error_message"] == "quota exceeded"
        assert kwargs["details"] == {"action": "save", "key": "jantrik-down"}
        assert flow.operation_state("down", OperationKind.SUBMIT) == OperationState.ERROR

    @pytest.mark.asyncio
    async def test_total_overflow_leaves_storage_alone(self, flow, memory_storage):
        await flow.add_amount("down", "5", "1e308")
        before_raw = memory_storage.raw_values

        with pytest.raises(ValidationError):
            await flow.add_amount("down", "5", "1e308")
        assert memory_storage.raw_values == before_raw
        assert (await flow.load_snapshot("down")).get("05") == 1e308

    @pytest.mark.asyncio
    async def test_success_is_logged(self, flow, recording_logger):
        await flow.add_amount("down", "5", "10")
        level, event, kwargs = recording_logger.calls[-1]
        assert (level, event) == ("info", "activity_event")
        assert kwargs["event_type"] == "amount_added"
        assert kwargs["details"]["number"] == "05"
        assert flow.operation_state("down", OperationKind.SUBMIT) == OperationState.IDLE


class TestSearchAndView:
    """Tests for read-only projections."""

    @pytest.mark.asyncio
    async def test_search_collection(self, flow):
        await flow.add_amount("down", "5", "12.5")
        await flow.add_amount("down", "15", "3")
        await flow.add_amount("down", "40", "1")

        assert await flow.search_collection("down", "5") == [("05", 12.5), ("15", 3.0)]
        assert await flow.search_collection("down") == [
            ("05", 12.5), ("15", 3.0), ("40", 1.0),
        ]

    @pytest.mark.asyncio
    async def test_view_collection(self, flow):
        await flow.add_amount("down", "5", "12.5")
        view = await flow.view_collection("down", "9")
        assert view.entries == []
        assert view.active_count == 1
        assert view.total_amount == 12.5
        assert view.available_count == 100


class TestExportCollection:
    """Tests for the export flow."""

    @pytest.mark.asyncio
    async def test_export_is_read_only(self, flow, memory_storage):
        await flow.add_amount("down", "5", "12.5")
        before_snapshot = await flow.load_snapshot("down")
        before_raw = memory_storage.raw_values

        document = await flow.export_collection(
            "down", exported_at=datetime(2026, 10, 19, 9, 0, 0)
        )

        assert document.filename == "down-collection-2026-10-19.xlsx"
        assert document.number_count == 100
        assert document.total_amount == 12.5
        assert await flow.load_snapshot("down") == before_snapshot
        assert memory_storage.raw_values == before_raw

    @pytest.mark.asyncio
    async def test_export_empty_collection(self, flow, recording_logger):
        """Test an untouched collection still exports every number."""
        document = await flow.export_collection("down")
        assert document.number_count == 100
        assert document.total_amount == 0
        assert recording_logger.event_types()[-1] == "collection_exported"

    @pytest.mark.asyncio
    async def test_export_failure_is_logged(self, flow, exporter, recording_logger, monkeypatch):
        def broken_render(*args, **kwargs):
            raise RuntimeError("out of memory")

        monkeypatch.setattr(exporter, "render", broken_render)
        with pytest.raises(ExportError):
            await flow.export_collection("down")

        level, _, kwargs = recording_logger.calls[-1]
        assert level == "error"
        assert kwargs["event_type"] == "export_failed"
        assert flow.operation_state("down", OperationKind.EXPORT) == OperationState.ERROR


class TestResetCollection:
    """Tests for the reset flow."""

    @pytest.mark.asyncio
    async def test_reset_removes_stored_value(self, flow, memory_storage, recording_logger):
        """Test reset deletes the key and restores the zero-filled snapshot."""
        await flow.add_amount("down", "5", "10")
        await flow.add_amount("down", "6", "20")

        fresh = await flow.reset_collection("down")

        assert "jantrik-down" not in memory_storage.raw_values
        assert fresh == CollectionSnapshot.initial(get_collection_config("down"))
        assert await flow.load_snapshot("down") == fresh

        _, _, kwargs = recording_logger.calls[-1]
        assert kwargs["event_type"] == "collection_reset"
        assert kwargs["details"]["cleared_count"] == 2
        assert kwargs["details"]["cleared_total"] == 30.0

    @pytest.mark.asyncio
    async def test_clear_failure_keeps_snapshot_and_is_logged(self, exporter, recording_logger):
        storage = FailingDeleteStorage()
        flow = CollectionFlow(storage, exporter, ActivityLogger(logger=recording_logger))
        await flow.add_amount("down", "5", "10")

        with pytest.raises(StorageError):
            await flow.reset_collection("down")

        assert (await flow.load_snapshot("down")).get("05") == 10.0
        _, _, kwargs = recording_logger.calls[-1]
        assert kwargs["event_type"] == "system_error"
        assert kwargs["details"]["action"] == "clear"

    @pytest.mark.asyncio
    async def test_reset_leaves_other_collection(self, flow, memory_storage):
        await flow.add_amount("3up", "1", "5")
        await flow.add_amount("down", "1", "5")
        await flow.reset_collection("down")

        assert "jantrik-3up" in memory_storage.raw_values
        assert (await flow.load_snapshot("3up")).get("001") == 5.0

    @pytest.mark.asyncio
    async def test_reset_clears_storage_warning(self, exporter, recording_logger):
        storage = InMemoryCollectionStorage(initial={"jantrik-3up": "[]"})
        flow = CollectionFlow(storage, exporter, ActivityLogger(logger=recording_logger))
        await flow.load_snapshot("3up")
        assert flow.storage_warning("3up") is not None

        await flow.reset_collection("3up")
        assert flow.storage_warning("3up") is None
        assert storage.raw_values == {}


class TestOperationGuard:
    """Tests for the in-flight guard."""

    def test_transitions(self):
        guard = OperationGuard()
        down, submit = CollectionType.DOWN, OperationKind.SUBMIT
        assert guard.state(down, submit) == OperationState.IDLE

        with guard.run(down, submit):
            assert guard.is_pending(down, submit)
        assert guard.state(down, submit) == OperationState.IDLE

        with pytest.raises(RuntimeError):
            with guard.run(down, submit):
                raise RuntimeError("boom")
        assert guard.state(down, submit) == OperationState.ERROR

        # error is not terminal
        with guard.run(down, submit):
            pass
        assert guard.state(down, submit) == OperationState.IDLE

    def test_pending_rejects_second_start(self):
        guard = OperationGuard()
        with guard.run(CollectionType.DOWN, OperationKind.EXPORT):
            with pytest.raises(OperationInProgressError):
                with guard.run(CollectionType.DOWN, OperationKind.EXPORT):
                    pass
            # other kinds and collections are unaffected
            with guard.run(CollectionType.DOWN, OperationKind.SUBMIT):
                pass
            with guard.run(CollectionType.THREE_UP, OperationKind.EXPORT):
                pass

    @pytest.mark.asyncio
    async def test_flow_rejects_while_pending(self, memory_storage, exporter, recording_logger):
        """Test a second submit while one is pending is rejected and logged."""
        guard = OperationGuard()
        flow = CollectionFlow(
            memory_storage, exporter, ActivityLogger(logger=recording_logger), guard=guard
        )

        with guard.run(CollectionType.DOWN, OperationKind.SUBMIT):
            with pytest.raises(OperationInProgressError):
                await flow.add_amount("down", "5", "10")

        assert "operation_rejected" in recording_logger.event_types()
        assert (await flow.load_snapshot("down")).active_count == 0


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_in_memory_when_storage_disabled(self):
        flow = create_app_components(use_storage=False)
        assert isinstance(flow.storage, InMemoryCollectionStorage)
