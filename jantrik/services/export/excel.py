"""
Excel Export

Renders a collection into a single-sheet .xlsx workbook:
- A summary block off to the right (date, time, count, total)
- A grid of (number, amount) cell pairs covering EVERY number in range

GRID LAYOUT:
Numbers run down a column group first, then move to the next group.
With 100 numbers and 10 groups the first group holds 00-09, the second
10-19 and so on:

    row 8:  00 | amt   10 | amt   20 | amt ...
    row 9:  01 | amt   11 | amt   21 | amt ...

Number i lands on row offset (i mod rows) in group (i div rows), where
rows = ceil(total / groups).

The exporter only reads what it is given. It never sees the live
snapshot or the storage layer.
"""

import io
import math
from collections.abc import Mapping
from datetime import datetime
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.utils import get_column_letter

from jantrik.config import ExportSettings, get_settings
from jantrik.models.collection import CollectionConfig, ExportDocument
from jantrik.numbers import generate_numbers


SHEET_TITLE = "Collection Data"
SUMMARY_TITLE = "Collection Export Summary"
AMOUNT_HEADER = "ST"


class ExportColors:
    """Font colours of the grid cells (ARGB)."""
    NUMBER = "FFFF0000"  # red
    AMOUNT = "FF000000"  # black


class ExportStyles:
    """Pre-defined cell styles for consistent formatting."""

    @staticmethod
    def thin_border() -> Border:
        side = Side(style="thin")
        return Border(left=side, right=side, top=side, bottom=side)

    @staticmethod
    def centered() -> Alignment:
        return Alignment(horizontal="center", vertical="center")

    @staticmethod
    def header_font(size: int) -> Font:
        return Font(bold=True, size=size)

    @staticmethod
    def number_font(size: int) -> Font:
        return Font(color=ExportColors.NUMBER, size=size)

    @staticmethod
    def amount_font(size: int) -> Font:
        return Font(color=ExportColors.AMOUNT, size=size)


def grid_position(index: int, total: int, column_count: int) -> tuple[int, int]:
    """
    (row_offset, column_group) of the index-th number in range.

    Fills down each column group before moving to the next.
    """
    rows = math.ceil(total / column_count)
    return index % rows, index // rows


def merge_full_range(
    entries: Mapping[str, float],
    config: CollectionConfig,
) -> dict[str, float]:
    """Every key in range, with amounts from `entries` where present."""
    merged = generate_numbers(config.min_number, config.max_number, config.number_length)
    for number, amount in entries.items():
        merged[number] = amount
    return merged


def export_filename(collection_type: str, exported_at: datetime) -> str:
    return f"{collection_type}-collection-{exported_at.date().isoformat()}.xlsx"


class CollectionExcelExporter:
    """
    Builds the export workbook for one collection.

    Callers pass the active entries; the exporter fills in zeros for the
    rest of the range itself.
    """

    def __init__(self, settings: Optional[ExportSettings] = None):
        self._settings = settings or get_settings().export

    def export(
        self,
        entries: Mapping[str, float],
        config: CollectionConfig,
        exported_at: Optional[datetime] = None,
    ) -> ExportDocument:
        """
        Render `entries` over the full range of `config`.

        Raises:
            ExportError: If there is nothing to export or rendering fails
        """
        exported_at = exported_at or datetime.now()
        data = merge_full_range(entries, config)

        if not data:
            raise ExportError("No data available to export")

        try:
            content = self.render(data, config, exported_at)
        except ExportError:
            raise
        except Exception as e:
            raise ExportError(f"Failed to build spreadsheet: {e}") from e

        return ExportDocument(
            filename=export_filename(config.collection_type.value, exported_at),
            content=content,
            number_count=len(data),
            total_amount=sum(data.values()),
            exported_at=exported_at,
            collection_type=config.collection_type,
        )

    def render(
        self,
        data: Mapping[str, float],
        config: CollectionConfig,
        exported_at: datetime,
    ) -> bytes:
        """Workbook bytes for an already merged full-range mapping."""
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE

        self._write_summary(sheet, data, exported_at)
        self._write_header(sheet, config)
        self._write_grid(sheet, data, config)

        for column in range(1, self._settings.column_count * 2 + 1):
            sheet.column_dimensions[get_column_letter(column)].width = self._settings.column_width

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    def _write_summary(self, sheet, data: Mapping[str, float], exported_at: datetime) -> None:
        start = self._settings.summary_start_column
        size = self._settings.summary_font_size
        summary = [
            (SUMMARY_TITLE, None),
            ("Export Date:", exported_at.strftime("%Y-%m-%d")),
            ("Export Time:", exported_at.strftime("%H:%M:%S")),
            ("Total Numbers:", len(data)),
            ("Total Amount:", sum(data.values())),
        ]
        for row, (label, value) in enumerate(summary, start=1):
            label_cell = sheet.cell(row=row, column=start, value=label)
            label_cell.font = Font(bold=True, size=size)
            value_cell = sheet.cell(row=row, column=start + 1, value=value)
            value_cell.font = Font(size=size)

    def _write_header(self, sheet, config: CollectionConfig) -> None:
        row = self._settings.header_row
        font = ExportStyles.header_font(self._settings.grid_font_size)
        for group in range(self._settings.column_count):
            number_cell = sheet.cell(
                row=row, column=group * 2 + 1, value=config.key_for(group)
            )
            amount_cell = sheet.cell(row=row, column=group * 2 + 2, value=AMOUNT_HEADER)
            for cell in (number_cell, amount_cell):
                cell.font = font
                cell.alignment = ExportStyles.centered()
                cell.border = ExportStyles.thin_border()

    def _write_grid(self, sheet, data: Mapping[str, float], config: CollectionConfig) -> None:
        size = self._settings.grid_font_size
        first_row = self._settings.header_row + 1
        total = config.available_count

        for index in range(total):
            row_offset, group = grid_position(index, total, self._settings.column_count)
            key = config.key_for(config.min_number + index)
            row = first_row + row_offset

            number_cell = sheet.cell(row=row, column=group * 2 + 1, value=key)
            amount_cell = sheet.cell(row=row, column=group * 2 + 2, value=data.get(key, 0))

            number_cell.font = ExportStyles.number_font(size)
            amount_cell.font = ExportStyles.amount_font(size)
            for cell in (number_cell, amount_cell):
                cell.alignment = ExportStyles.centered()
                cell.border = ExportStyles.thin_border()


class ExportError(Exception):
    """Export could not produce a document."""
    pass
