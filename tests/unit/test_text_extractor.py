"""Unit tests for the text extraction adapter."""

import io
import json

import pytest
from openpyxl import Workbook

from menu_import_service.errors import FileParseError, UnsupportedFormatError
from menu_import_service.extraction.text_extractor import (
    MAX_TEXT_LENGTH,
    TABLE_SEPARATOR,
    extract_text,
)
from menu_import_service.models.import_models import FileType


def _workbook_bytes(sheets: dict[str, list[list[object]]]) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        sheet = workbook.create_sheet(name)
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.mark.unit
class TestSpreadsheetExtraction:
    """Tests for xlsx extraction."""

    def test_renders_each_sheet_under_header(self) -> None:
        """Test that every sheet becomes a comma-delimited block."""
        data = _workbook_bytes(
            {
                "Mains": [["Name", "Price"], ["Burger", 12.5], ["Salad", 9]],
                "Drinks": [["Name", "Price"], ["Cola", 3]],
            }
        )

        result = extract_text(data, FileType.XLSX)

        assert "## Sheet: Mains" in result.text
        assert "## Sheet: Drinks" in result.text
        assert "Burger,12.5" in result.text
        assert "Cola,3" in result.text
        assert result.text.index("## Sheet: Mains") < result.text.index("## Sheet: Drinks")

    def test_metadata_counts_data_rows(self) -> None:
        """Test that row_count excludes header rows and sheet names are listed."""
        data = _workbook_bytes(
            {
                "Mains": [["Name", "Price"], ["Burger", 12], ["Salad", 9]],
                "Drinks": [["Name", "Price"], ["Cola", 3]],
            }
        )

        result = extract_text(data, "xlsx")

        assert result.metadata["row_count"] == 3
        assert result.metadata["sheet_names"] == ["Mains", "Drinks"]
        assert result.truncated is False

    def test_malformed_spreadsheet_raises(self) -> None:
        """Test that non-xlsx bytes raise FileParseError."""
        with pytest.raises(FileParseError):
            extract_text(b"definitely not a zip archive", FileType.XLSX)


@pytest.mark.unit
class TestCsvExtraction:
    """Tests for delimited text extraction."""

    def test_renders_header_separator_and_rows(self) -> None:
        """Test the header / separator / rows layout."""
        data = b"name,price,category\nMargherita,12.00,Pizza\nTiramisu,7.00,Desserts\n"

        result = extract_text(data, FileType.CSV)

        lines = result.text.split("\n")
        assert lines[0] == "name | price | category"
        assert lines[1] == TABLE_SEPARATOR
        assert lines[2] == "Margherita | 12.00 | Pizza"
        assert lines[3] == "Tiramisu | 7.00 | Desserts"
        assert result.metadata == {"row_count": 2, "headers": ["name", "price", "category"]}

    def test_missing_cells_render_empty(self) -> None:
        """Test that short rows do not shift columns."""
        data = b"name,price,description\nCola,3\nWater,2,Still\n"

        result = extract_text(data, FileType.CSV)

        assert result.text.split("\n")[2] == "Cola | 3 | "

    def test_strips_byte_order_mark(self) -> None:
        """Test that a UTF-8 BOM does not end up in the first header."""
        data = "\ufeffname,price\nCola,3\n".encode()

        result = extract_text(data, FileType.CSV)

        assert result.metadata["headers"] == ["name", "price"]


@pytest.mark.unit
class TestStructuredAndFreeText:
    """Tests for json, md and txt extraction."""

    def test_json_is_pretty_printed(self) -> None:
        """Test that JSON is re-serialized with two-space indentation."""
        data = json.dumps({"menu": [{"name": "Crème brûlée", "price": 650}]}).encode()

        result = extract_text(data, FileType.JSON)

        assert result.text == json.dumps(
            {"menu": [{"name": "Crème brûlée", "price": 650}]}, indent=2, ensure_ascii=False
        )
        assert "Crème brûlée" in result.text

    def test_malformed_json_raises(self) -> None:
        """Test that invalid JSON raises FileParseError."""
        with pytest.raises(FileParseError):
            extract_text(b'{"menu": [', FileType.JSON)

    @pytest.mark.parametrize("file_type", [FileType.TXT, FileType.MD])
    def test_free_text_is_trimmed(self, file_type: FileType) -> None:
        """Test that free-form text is decoded and trimmed."""
        result = extract_text(b"\n\n  # Menu\nPizza 12\n  \n", file_type)

        assert result.text == "# Menu\nPizza 12"
        assert result.metadata == {}


@pytest.mark.unit
class TestLimitsAndFormats:
    """Tests for truncation and unknown formats."""

    def test_unknown_format_raises(self) -> None:
        """Test that an undeclared format raises UnsupportedFormatError."""
        with pytest.raises(UnsupportedFormatError, match="pdf"):
            extract_text(b"%PDF-1.4", "pdf")

    def test_long_text_is_truncated(self) -> None:
        """Test that text above the limit is cut and flagged."""
        data = ("x" * (MAX_TEXT_LENGTH + 500)).encode()

        result = extract_text(data, FileType.TXT)

        assert len(result.text) == MAX_TEXT_LENGTH
        assert result.truncated is True
        assert result.metadata["truncated"] is True

    def test_text_at_limit_is_untouched(self) -> None:
        """Test that text exactly at the limit is not flagged."""
        data = ("y" * MAX_TEXT_LENGTH).encode()

        result = extract_text(data, FileType.TXT)

        assert len(result.text) == MAX_TEXT_LENGTH
        assert result.truncated is False
        assert "truncated" not in result.metadata
