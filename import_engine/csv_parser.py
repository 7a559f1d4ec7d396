"""
import_engine.csv_parser - Low-level CSV reading into RawRecords.

Responsibilities:
  • UTF-8 decoding with BOM removal (undecodable input is an error)
  • Header whitespace stripping, duplicate/empty header detection
  • Blank-line skipping, ragged-row and bad-quoting detection
  • Truncated reads for the upload preview, with the same rules
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping, Optional


class CsvParseError(ValueError):
    """The file cannot be read as a CSV table.  Message is the first problem found."""


@dataclass(frozen=True)
class RawRecord:
    """One data row, untyped.  ``row`` is its 1-based position among data rows."""

    row: int
    values: Mapping[str, str]

    def __getitem__(self, column: str) -> str:
        return self.values[column]

    def __contains__(self, column: object) -> bool:
        return column in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def get(self, column: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(column, default)

    def items(self):
        return self.values.items()

    def to_dict(self) -> dict[str, str]:
        return dict(self.values)


@dataclass(frozen=True)
class ParseResult:
    columns: tuple[str, ...]
    records: tuple[RawRecord, ...]

    def __len__(self) -> int:
        return len(self.records)


def parse_csv(raw: str | bytes, *, limit: Optional[int] = None) -> ParseResult:
    """
    Parse a whole upload (or only its first *limit* data rows).

    Raises CsvParseError on empty input, undecodable bytes, a bad
    header, malformed quoting or a row whose field count differs
    from the header.
    """
    text = _decode(raw)
    if not text.strip():
        raise CsvParseError("CSV file is empty")

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    records: list[RawRecord] = []
    header: list[str] | None = None

    try:
        for fields in reader:
            if not fields:
                continue                                # blank line
            if header is None:
                header = _clean_header(fields)
                continue
            if limit is not None and len(records) >= limit:
                break
            if len(fields) != len(header):
                raise CsvParseError(
                    f"Row {len(records) + 1} (line {reader.line_num}): expected "
                    f"{len(header)} fields but found {len(fields)}"
                )
            records.append(RawRecord(
                row=len(records) + 1,
                values=MappingProxyType(dict(zip(header, fields))),
            ))
    except csv.Error as exc:
        raise CsvParseError(f"Line {reader.line_num}: {exc}") from exc

    if header is None:
        raise CsvParseError("CSV has no header row")
    return ParseResult(columns=tuple(header), records=tuple(records))


def preview_csv(raw: str | bytes, rows: int = 3) -> ParseResult:
    """First *rows* data rows, parsed exactly as the full import would."""
    return parse_csv(raw, limit=rows)


def _clean_header(fields: list[str]) -> list[str]:
    header = [h.strip() for h in fields]
    seen: set[str] = set()
    for idx, name in enumerate(header, start=1):
        if not name:
            raise CsvParseError(f"Header column {idx} has no name")
        if name in seen:
            raise CsvParseError(f"Duplicate column {name!r} in header")
        seen.add(name)
    return header


def _decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        try:
            # utf-8-sig strips a leading BOM
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CsvParseError(
                f"CSV must be UTF-8 encoded (invalid byte at position {exc.start})"
            ) from exc
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw
