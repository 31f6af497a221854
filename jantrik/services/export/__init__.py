"""Spreadsheet export package."""

from jantrik.services.export.excel import (
    SHEET_TITLE,
    CollectionExcelExporter,
    ExportError,
    export_filename,
    grid_position,
    merge_full_range,
)

__all__ = [
    "SHEET_TITLE",
    "CollectionExcelExporter",
    "ExportError",
    "export_filename",
    "grid_position",
    "merge_full_range",
]
