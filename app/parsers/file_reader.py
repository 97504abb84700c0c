"""
app/parsers/file_reader.py

Streamed CSV / XLSX readers producing a header row and dict rows.
"""

from __future__ import annotations

import csv
import io
import zipfile
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, BinaryIO, Iterable

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

_XLSX_MAGIC = b"PK\x03\x04"
_EXCEL_SUFFIXES = (".xlsx", ".xlsm")


class FileReadError(ValueError):
    """
    Raised when an import file cannot be read as CSV or XLSX.
    """


@dataclass
class ImportSheet:
    """
    Header row plus a lazy iterator over data rows.

    Rows are keyed by header; when a header repeats, its first column wins.
    Rows whose cells are all blank are skipped.
    """

    headers: list[str]
    rows: Iterator[dict[str, str]]
    source_format: str


def read_import_file(
    source: bytes | BinaryIO,
    *,
    filename: str | None = None,
    max_bytes: int | None = None,
) -> ImportSheet:
    """
    Open ``source`` as XLSX (by extension or zip signature) or CSV.
    """

    raw_stream = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    raw_stream.seek(0, io.SEEK_END)
    size = raw_stream.tell()
    raw_stream.seek(0)

    if size == 0:
        raise FileReadError("File is empty.")
    if max_bytes is not None and size > max_bytes:
        raise FileReadError(f"File is {size} bytes; the limit is {max_bytes} bytes.")

    signature = raw_stream.read(len(_XLSX_MAGIC))
    raw_stream.seek(0)
    lowered = (filename or "").strip().lower()
    if lowered.endswith(_EXCEL_SUFFIXES) or signature == _XLSX_MAGIC:
        return _read_xlsx(raw_stream)
    return _read_csv(raw_stream)


def _read_csv(raw_stream: BinaryIO) -> ImportSheet:
    text_stream = io.TextIOWrapper(raw_stream, encoding="utf-8-sig", newline="")
    reader = csv.reader(text_stream)
    try:
        header_row = next(reader, None)
    except UnicodeDecodeError as exc:
        _release(text_stream)
        raise FileReadError("CSV must be UTF-8 encoded.") from exc
    except csv.Error as exc:
        _release(text_stream)
        raise FileReadError(f"Invalid CSV format: {exc}") from exc

    if not header_row or not any(cell.strip() for cell in header_row):
        _release(text_stream)
        raise FileReadError("File header row is missing.")

    headers = list(header_row)

    def _rows() -> Iterator[dict[str, str]]:
        try:
            yield from _rows_from_cells(headers, reader)
        except UnicodeDecodeError as exc:
            raise FileReadError("CSV must be UTF-8 encoded.") from exc
        except csv.Error as exc:
            raise FileReadError(f"Invalid CSV format: {exc}") from exc
        finally:
            _release(text_stream)

    return ImportSheet(headers=headers, rows=_rows(), source_format="csv")


def _release(text_stream: io.TextIOWrapper) -> None:
    # The caller's binary stream stays open after the wrapper is dropped.
    try:
        text_stream.detach()
    except ValueError:
        pass


def _read_xlsx(raw_stream: BinaryIO) -> ImportSheet:
    try:
        workbook = load_workbook(raw_stream, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise FileReadError(f"Invalid Excel file: {exc}") from exc

    if not workbook.sheetnames:
        workbook.close()
        raise FileReadError("Excel file contains no sheets.")

    sheet = workbook[workbook.sheetnames[0]]
    value_rows = sheet.iter_rows(values_only=True)
    header_cells = next(value_rows, None)
    if header_cells is None or not any(_cell_text(cell) for cell in header_cells):
        workbook.close()
        raise FileReadError("File header row is missing.")

    headers = [_cell_text(cell) for cell in header_cells]

    def _rows() -> Iterator[dict[str, str]]:
        try:
            yield from _rows_from_cells(
                headers,
                ([_cell_text(cell) for cell in cells] for cells in value_rows),
            )
        finally:
            workbook.close()

    return ImportSheet(headers=headers, rows=_rows(), source_format="xlsx")


def _rows_from_cells(
    headers: list[str],
    cell_rows: Iterable[list[str]],
) -> Iterator[dict[str, str]]:
    for cells in cell_rows:
        if not any(cell.strip() for cell in cells):
            continue
        row: dict[str, str] = {}
        for index, header in enumerate(headers):
            if not header.strip() or header in row:
                continue
            row[header] = cells[index] if index < len(cells) else ""
        yield row


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time.min:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
