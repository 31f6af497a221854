"""Shared fixtures."""

import pytest

from jantrik.activity import ActivityLogger
from jantrik.config import ExportSettings
from jantrik.models.collection import (
    CollectionConfig,
    CollectionSnapshot,
    CollectionType,
    get_collection_config,
)
from jantrik.orchestrator import CollectionFlow
from jantrik.services.export import CollectionExcelExporter
from jantrik.services.storage import InMemoryCollectionStorage


class RecordingLogger:
    """Stands in for a structlog logger and keeps every call."""

    def __init__(self):
        self.calls: list[tuple[str, str, dict]] = []

    def _record(self, level, event, **kwargs):
        self.calls.append((level, event, kwargs))

    def debug(self, event, **kwargs):
        self._record("debug", event, **kwargs)

    def info(self, event, **kwargs):
        self._record("info", event, **kwargs)

    def warning(self, event, **kwargs):
        self._record("warning", event, **kwargs)

    def error(self, event, **kwargs):
        self._record("error", event, **kwargs)

    def event_types(self) -> list[str]:
        return [kwargs["event_type"] for _, _, kwargs in self.calls]


@pytest.fixture
def down_config() -> CollectionConfig:
    return get_collection_config(CollectionType.DOWN)


@pytest.fixture
def three_up_config() -> CollectionConfig:
    return get_collection_config(CollectionType.THREE_UP)


@pytest.fixture
def single_digit_config() -> CollectionConfig:
    """Range 0-9, width 1."""
    return CollectionConfig(
        collection_type=CollectionType.DOWN,
        title="Single Digit",
        min_number=0,
        max_number=9,
        number_length=1,
    )


@pytest.fixture
def down_snapshot(down_config) -> CollectionSnapshot:
    return CollectionSnapshot.initial(down_config)


@pytest.fixture
def export_settings() -> ExportSettings:
    return ExportSettings()


@pytest.fixture
def exporter(export_settings) -> CollectionExcelExporter:
    return CollectionExcelExporter(export_settings)


@pytest.fixture
def memory_storage() -> InMemoryCollectionStorage:
    return InMemoryCollectionStorage()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def flow(memory_storage, exporter, recording_logger) -> CollectionFlow:
    return CollectionFlow(
        storage=memory_storage,
        exporter=exporter,
        activity_logger=ActivityLogger(logger=recording_logger),
    )
