"""Conversion of habit-sheet CSV exports into vane documents.

An export has one row per habit. The ``HABIT`` column holds the title and
every column whose header is a date such as ``01 Jan 2021`` holds ``TRUE``
when the habit was done that day.
"""
from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Iterator, Mapping, Optional
from uuid import uuid4

from vane_api.errors import CsvImportError
from vane_api.schemas import ImportedVane, LogEntry

TITLE_COLUMN = "HABIT"
DAY_COLUMN_FORMAT = "%d %b %Y"
DONE_VALUE = "TRUE"


def new_key() -> str:
    return uuid4().hex


def parse_column_day(name: str) -> Optional[date]:
    try:
        return datetime.strptime(name.strip(), DAY_COLUMN_FORMAT).date()
    except ValueError:
        return None


def transform_row(row: Mapping[str, Optional[str]], now: datetime | None = None) -> ImportedVane:
    timestamp = now or datetime.now(timezone.utc)
    fields: dict[str, str] = {}
    log: list[LogEntry] = []
    for column, value in row.items():
        name = (column or "").strip()
        if not name or value is None or value == "":
            continue
        day = parse_column_day(name)
        if day is None:
            fields[name] = value
            continue
        if value == DONE_VALUE:
            log.append(LogEntry(key=new_key(), timestamp=timestamp, day=day))
    return ImportedVane(title=fields.get(TITLE_COLUMN), log=log, fields=fields)


def decode_upload(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvImportError("CSV is not valid UTF-8") from exc


def read_csv_rows(text: str) -> Iterator[dict[str, str]]:
    """Yield header-keyed rows, rejecting rows that don't match the header."""
    reader = csv.reader(io.StringIO(text), skipinitialspace=True, strict=True)
    try:
        header = next(reader, None)
        if not header or not any(column.strip() for column in header):
            raise CsvImportError("CSV has no header row")
        for line in reader:
            if not line:
                continue
            if len(line) != len(header):
                raise CsvImportError(
                    f"CSV row {reader.line_num} has {len(line)} columns, expected {len(header)}"
                )
            yield dict(zip(header, line))
    except csv.Error as exc:
        raise CsvImportError(f"CSV is not valid: {exc}") from exc
