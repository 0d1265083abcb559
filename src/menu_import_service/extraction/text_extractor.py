"""Text extraction from uploaded menu files.

Normalizes the raw bytes of a declared format into plain text suitable for
the AI extraction step. Output is capped at MAX_TEXT_LENGTH characters so
that unbounded text is never forwarded to the AI service.
"""

import csv
import io
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from openpyxl import load_workbook

from menu_import_service.errors import FileParseError, UnsupportedFormatError
from menu_import_service.models.import_models import FileType

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 200_000

TABLE_SEPARATOR = "-" * 50


@dataclass(frozen=True)
class TextExtractionResult:
    """Result of text extraction from a file.

    Attributes:
        text: Extracted plain text, at most MAX_TEXT_LENGTH characters
        metadata: Format-specific details (row_count, headers, sheet_names, truncated)
    """

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def truncated(self) -> bool:
        return bool(self.metadata.get("truncated", False))


def extract_text(data: bytes, file_type: FileType | str) -> TextExtractionResult:
    """Extract text content from a file of the declared format.

    Args:
        data: Raw file bytes
        file_type: Declared format of the bytes

    Returns:
        TextExtractionResult with text truncated to MAX_TEXT_LENGTH

    Raises:
        UnsupportedFormatError: If the declared format is unknown
        FileParseError: If the bytes are malformed for the declared format
    """
    try:
        declared = FileType(file_type)
    except ValueError:
        raise UnsupportedFormatError(str(file_type)) from None

    if declared == FileType.XLSX:
        result = _extract_from_spreadsheet(data)
    elif declared == FileType.CSV:
        result = _extract_from_csv(data)
    elif declared == FileType.JSON:
        result = _extract_from_json(data)
    else:
        result = _extract_from_text(data)

    if len(result.text) > MAX_TEXT_LENGTH:
        logger.warning(
            "Menu text truncated due to size limit",
            extra={"original_length": len(result.text), "max_length": MAX_TEXT_LENGTH},
        )
        result = TextExtractionResult(
            text=result.text[:MAX_TEXT_LENGTH],
            metadata={**result.metadata, "truncated": True},
        )

    return result


def _decode(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


def _extract_from_spreadsheet(data: bytes) -> TextExtractionResult:
    """Render every sheet as a comma-delimited block under a sheet-name header."""
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise FileParseError(f"Failed to read spreadsheet: {e}") from e

    blocks: list[str] = []
    sheet_names = list(workbook.sheetnames)
    total_rows = 0

    try:
        for sheet_name in sheet_names:
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            non_empty_rows = 0

            for row in workbook[sheet_name].iter_rows(values_only=True):
                values = ["" if value is None else str(value) for value in row]
                writer.writerow(values)
                if any(values):
                    non_empty_rows += 1

            # first non-empty row is the header
            total_rows += max(non_empty_rows - 1, 0)
            blocks.append(f"## Sheet: {sheet_name}\n{buffer.getvalue()}\n")
    finally:
        workbook.close()

    return TextExtractionResult(
        text="\n".join(blocks).strip(),
        metadata={"row_count": total_rows, "sheet_names": sheet_names},
    )


def _extract_from_csv(data: bytes) -> TextExtractionResult:
    """Render delimited rows as a header / separator / rows table."""
    try:
        reader = csv.DictReader(io.StringIO(_decode(data)))
        headers = [header for header in (reader.fieldnames or []) if header is not None]
        rows = list(reader)
    except csv.Error as e:
        raise FileParseError(f"Failed to read CSV: {e}") from e

    lines = [" | ".join(headers), TABLE_SEPARATOR]
    for row in rows:
        lines.append(" | ".join(row.get(header) or "" for header in headers))

    return TextExtractionResult(
        text="\n".join(lines).strip(),
        metadata={"row_count": len(rows), "headers": headers},
    )


def _extract_from_json(data: bytes) -> TextExtractionResult:
    """Pretty print structured data for readability."""
    try:
        parsed = json.loads(_decode(data))
    except json.JSONDecodeError as e:
        raise FileParseError(f"Failed to read JSON: {e}") from e

    return TextExtractionResult(text=json.dumps(parsed, indent=2, ensure_ascii=False))


def _extract_from_text(data: bytes) -> TextExtractionResult:
    return TextExtractionResult(text=_decode(data).strip())
