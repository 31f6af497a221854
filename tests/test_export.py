"""Tests for the Excel export."""

import io
from datetime import datetime

import pytest
from openpyxl import load_workbook

from jantrik.config import ExportSettings
from jantrik.models.collection import XLSX_MIME_TYPE, CollectionConfig, CollectionType
from jantrik.services.export import (
    SHEET_TITLE,
    CollectionExcelExporter,
    ExportError,
    export_filename,
    grid_position,
    merge_full_range,
)


EXPORTED_AT = datetime(2026, 10, 19, 14, 30, 5)


def open_sheet(document):
    workbook = load_workbook(io.BytesIO(document.content))
    return workbook[SHEET_TITLE]


def grid_pairs(sheet, header_row: int = 7, column_count: int = 10) -> dict[str, float]:
    """Every (number, amount) pair found below the header."""
    pairs = {}
    for row in sheet.iter_rows(min_row=header_row + 1, max_col=column_count * 2, values_only=True):
        for group in range(column_count):
            number, amount = row[group * 2], row[group * 2 + 1]
            if number is not None:
                pairs[number] = amount
    return pairs


class TestGridPosition:
    """Tests for the column-major layout."""

    def test_fills_down_before_across(self):
        """Test 100 numbers over 10 groups: 0-9 in group 0, 10-19 in group 1."""
        assert grid_position(0, 100, 10) == (0, 0)
        assert grid_position(9, 100, 10) == (9, 0)
        assert grid_position(10, 100, 10) == (0, 1)
        assert grid_position(15, 100, 10) == (5, 1)
        assert grid_position(99, 100, 10) == (9, 9)

    def test_three_up_layout(self):
        """Test 1000 numbers give 100 rows per group."""
        assert grid_position(100, 1000, 10) == (0, 1)
        assert grid_position(999, 1000, 10) == (99, 9)

    def test_uneven_total(self):
        """Test rows = ceil(total / groups)."""
        assert grid_position(2, 23, 10) == (2, 0)
        assert grid_position(3, 23, 10) == (0, 1)
        assert grid_position(22, 23, 10) == (1, 7)

    def test_positions_are_unique(self):
        positions = {grid_position(i, 1000, 10) for i in range(1000)}
        assert len(positions) == 1000


class TestMergeFullRange:
    """Tests for filling the range with zeros."""

    def test_covers_every_number(self, down_config):
        merged = merge_full_range({"05": 12.5}, down_config)
        assert len(merged) == 100
        assert merged["05"] == 12.5
        assert merged["06"] == 0

    def test_empty_input_is_all_zeros(self, single_digit_config):
        merged = merge_full_range({}, single_digit_config)
        assert merged == {str(i): 0 for i in range(10)}


class TestCollectionExcelExporter:
    """Tests for the rendered workbook."""

    def test_empty_active_set_exports_full_range(self, exporter, single_digit_config):
        """Test range 0-9, nothing active: 10 pairs, all zero, total 0."""
        document = exporter.export({}, single_digit_config, exported_at=EXPORTED_AT)

        assert document.number_count == 10
        assert document.total_amount == 0

        sheet = open_sheet(document)
        pairs = grid_pairs(sheet)
        assert sorted(pairs) == [str(i) for i in range(10)]
        assert all(amount == 0 for amount in pairs.values())
        assert sheet["W5"].value == 0

    def test_pair_count_matches_range(self, exporter, three_up_config):
        document = exporter.export({"123": 5.0}, three_up_config, exported_at=EXPORTED_AT)
        pairs = grid_pairs(open_sheet(document))
        assert len(pairs) == 1000
        assert pairs["123"] == 5.0
        assert document.number_count == 1000

    def test_amount_lands_in_column_major_cell(self, exporter, down_config):
        """Test '15' sits in row offset 5 of group 1 (cells C13/D13)."""
        document = exporter.export({"15": 3.0}, down_config, exported_at=EXPORTED_AT)
        sheet = open_sheet(document)
        assert sheet["C13"].value == "15"
        assert sheet["D13"].value == 3.0
        assert sheet["A8"].value == "00"
        assert sheet["A17"].value == "09"
        assert sheet["C8"].value == "10"
        assert sheet["S17"].value == "99"

    def test_header_row(self, exporter, down_config):
        sheet = open_sheet(exporter.export({}, down_config, exported_at=EXPORTED_AT))
        assert sheet["A7"].value == "00"
        assert sheet["B7"].value == "ST"
        assert sheet["S7"].value == "09"
        assert sheet["T7"].value == "ST"
        assert sheet["A7"].font.b

    def test_summary_block(self, exporter, down_config):
        """Test the summary sits at column V with date, time, count and total."""
        document = exporter.export(
            {"05": 12.5, "15": 3.0}, down_config, exported_at=EXPORTED_AT
        )
        sheet = open_sheet(document)
        assert sheet["V1"].value == "Collection Export Summary"
        assert sheet["V2"].value == "Export Date:"
        assert sheet["W2"].value == "2026-10-19"
        assert sheet["W3"].value == "14:30:05"
        assert sheet["V4"].value == "Total Numbers:"
        assert sheet["W4"].value == 100
        assert sheet["V5"].value == "Total Amount:"
        assert sheet["W5"].value == 15.5
        assert document.total_amount == 15.5

    def test_cell_styles(self, exporter, down_config):
        """Test numbers are red, amounts black, both centered and bordered."""
        sheet = open_sheet(exporter.export({"00": 1.0}, down_config, exported_at=EXPORTED_AT))
        number_cell, amount_cell = sheet["A8"], sheet["B8"]
        assert number_cell.font.color.rgb == "FFFF0000"
        assert amount_cell.font.color.rgb == "FF000000"
        assert number_cell.font.sz == 18
        assert number_cell.alignment.horizontal == "center"
        assert amount_cell.border.left.style == "thin"
        assert sheet.column_dimensions["A"].width == 10

    def test_document_metadata(self, exporter, down_config):
        document = exporter.export({}, down_config, exported_at=EXPORTED_AT)
        assert document.filename == "down-collection-2026-10-19.xlsx"
        assert document.mime_type == XLSX_MIME_TYPE
        assert document.collection_type == CollectionType.DOWN
        assert document.exported_at == EXPORTED_AT

    def test_input_is_not_modified(self, exporter, down_config):
        entries = {"05": 12.5}
        exporter.export(entries, down_config, exported_at=EXPORTED_AT)
        assert entries == {"05": 12.5}

    def test_empty_range_raises(self, exporter):
        """Test an empty range has nothing to export."""
        empty = CollectionConfig(
            collection_type=CollectionType.DOWN,
            title="Empty",
            min_number=5,
            max_number=4,
            number_length=2,
        )
        with pytest.raises(ExportError, match="No data available to export"):
            exporter.export({}, empty, exported_at=EXPORTED_AT)

    def test_render_failure_is_wrapped(self, exporter, down_config, monkeypatch):
        def broken_render(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(exporter, "render", broken_render)
        with pytest.raises(ExportError, match="disk full"):
            exporter.export({}, down_config, exported_at=EXPORTED_AT)

    def test_column_count_setting(self, down_config):
        exporter = CollectionExcelExporter(ExportSettings(column_count=5))
        sheet = open_sheet(exporter.export({}, down_config, exported_at=EXPORTED_AT))
        # 100 numbers / 5 groups = 20 rows per group
        assert sheet["A27"].value == "19"
        assert sheet["C8"].value == "20"
        assert len(grid_pairs(sheet, column_count=5)) == 100


def test_export_filename():
    assert export_filename("3up", EXPORTED_AT) == "3up-collection-2026-10-19.xlsx"
