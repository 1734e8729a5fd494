"""Structural parsing of uploaded entries CSV files."""
import csv
import logging
from io import StringIO
from typing import NamedTuple

from habit_tracker.errors import CsvFormatError
from habit_tracker.schemas.entry_import import CsvEntryRecord

REQUIRED_COLUMNS = ("habit_id", "date")
OPTIONAL_COLUMNS = ("notes",)

logger = logging.getLogger(__name__)


class CsvEntryRow(NamedTuple):
    """A raw data row keyed by normalised column name."""

    line_number: int
    values: dict


def parse_entry_rows(content: bytes) -> list[CsvEntryRow]:
    """
    Parse raw upload bytes into data rows, in file order.

    The header must name ``habit_id`` and ``date`` (case-insensitive);
    ``notes`` is optional and unknown columns are ignored. Field values are
    not validated here, see ``CsvEntryRecord.from_row``.

    Args:
        content: Raw file bytes (UTF-8, optional BOM)

    Returns:
        List of rows, blank lines skipped

    Raises:
        CsvFormatError: if the payload is not a CSV file of the expected shape
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvFormatError(f"File is not valid UTF-8 text: {e}") from e

    reader = csv.reader(StringIO(text, newline=""), strict=True)
    try:
        header = next(reader, None)
        if not header or not any(name.strip() for name in header):
            raise CsvFormatError("CSV file is missing a header row")

        columns = [name.strip().lower() for name in header]
        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise CsvFormatError(
                f"CSV header is missing required column(s): {', '.join(missing)}"
            )
        for name in REQUIRED_COLUMNS + OPTIONAL_COLUMNS:
            if columns.count(name) > 1:
                raise CsvFormatError(f"CSV header repeats column '{name}'")

        wanted = {
            index: name
            for index, name in enumerate(columns)
            if name in REQUIRED_COLUMNS + OPTIONAL_COLUMNS
        }

        rows = []
        for fields in reader:
            if not fields:
                continue
            if len(fields) != len(columns):
                raise CsvFormatError(
                    f"Line {reader.line_num}: expected {len(columns)} fields, found {len(fields)}"
                )
            values = {name: fields[index] for index, name in wanted.items()}
            rows.append(CsvEntryRow(line_number=reader.line_num, values=values))
    except csv.Error as e:
        raise CsvFormatError(f"Line {reader.line_num}: {e}") from e

    logger.debug(f"Parsed {len(rows)} CSV rows with columns {columns}")
    return rows


def parse_entry_records(content: bytes) -> list[CsvEntryRecord]:
    """
    Parse raw upload bytes into typed entry records, in file order.

    Every row is converted before any is imported, so a row that cannot be
    mapped (bad date, empty habit id) rejects the whole file.

    Raises:
        CsvFormatError: if the payload or any row has the wrong shape
    """
    return [CsvEntryRecord.from_row(row) for row in parse_entry_rows(content)]
