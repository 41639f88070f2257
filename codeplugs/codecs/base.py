"""Shared plumbing for the dialect codecs.

A codec only ever sees a :class:`RawTable` (header row plus data rows).
Column lookups go through :class:`HeaderIndex`, which resolves a
canonical field name to the first matching header from an ordered
alias tuple, so each dialect is described by tables rather than by
branching code.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..exceptions import MalformedFileError
from ..models.records import RowError

Source = Union[str, bytes, IO[str], IO[bytes]]
AliasTable = Mapping[str, Tuple[str, ...]]


@dataclass(slots=True)
class RawTable:
    header: List[str]
    rows: List[List[str]] = field(default_factory=list)
    # 1-based source line of each data row, parallel to ``rows``
    lines: List[int] = field(default_factory=list)

    def numbered(self) -> Iterator[Tuple[int, List[str]]]:
        for i, row in enumerate(self.rows):
            line = self.lines[i] if i < len(self.lines) else i + 2
            yield line, row


@dataclass
class Decoded:
    """Decode result: records plus the rows that had to be skipped.

    Unpacks as ``records, errors = codec.decode(table)``.
    """

    records: List[Any] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    def __iter__(self):
        return iter((self.records, self.errors))

    def skip(self, line: int, message: str) -> None:
        self.errors.append(RowError(line, message))


def read_text(source: Source) -> str:
    if hasattr(source, "read"):
        try:
            data = source.read()  # type: ignore[union-attr]
        except (OSError, ValueError) as exc:
            raise MalformedFileError(f"unreadable stream: {exc}") from exc
    else:
        data = source
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            data = data.decode("latin-1")
    return data.lstrip("\ufeff")


def read_table(source: Source) -> RawTable:
    """Parse CSV text/bytes/stream. The first non-blank row is the header."""
    text = read_text(source)
    reader = csv.reader(io.StringIO(text))
    header: Optional[List[str]] = None
    rows: List[List[str]] = []
    lines: List[int] = []
    try:
        for record in reader:
            if not any(cell.strip() for cell in record):
                continue
            if header is None:
                header = [cell.strip() for cell in record]
                continue
            rows.append(record)
            lines.append(reader.line_num)
    except csv.Error as exc:
        raise MalformedFileError(f"CSV parse error near line {reader.line_num}: {exc}") from exc
    if header is None:
        raise MalformedFileError("missing header row")
    return RawTable(header=header, rows=rows, lines=lines)


def write_table(table: RawTable, quote_all: bool = False, crlf: bool = False) -> str:
    buf = io.StringIO()
    writer = csv.writer(
        buf,
        quoting=csv.QUOTE_ALL if quote_all else csv.QUOTE_MINIMAL,
        lineterminator="\r\n" if crlf else "\n",
    )
    writer.writerow(table.header)
    writer.writerows(table.rows)
    return buf.getvalue()


class HeaderIndex:
    """Resolve canonical field names to column positions via alias tables."""

    def __init__(self, header: Sequence[str], aliases: AliasTable, casefold: bool = False) -> None:
        self._casefold = casefold
        self._aliases = aliases
        positions: Dict[str, int] = {}
        for i, name in enumerate(header):
            positions.setdefault(self._key(name), i)
        self._positions = positions

    def _key(self, name: str) -> str:
        name = name.strip()
        return name.lower() if self._casefold else name

    def column(self, field_name: str) -> Optional[int]:
        for alias in self._aliases.get(field_name, ()):
            pos = self._positions.get(self._key(alias))
            if pos is not None:
                return pos
        return None

    def has(self, field_name: str) -> bool:
        return self.column(field_name) is not None

    def get(self, row: Sequence[str], field_name: str, default: str = "") -> str:
        pos = self.column(field_name)
        if pos is None or pos >= len(row):
            return default
        return row[pos].strip()


def signature_score(header: Iterable[str], signature: Iterable[str]) -> float:
    """Fraction of ``signature`` columns present in ``header`` (case-insensitive)."""
    present = {h.strip().lower() for h in header}
    wanted = [s.lower() for s in signature]
    if not wanted:
        return 0.0
    return sum(1 for s in wanted if s in present) / len(wanted)


@dataclass(frozen=True)
class Layout:
    """Fixed output header plus per-column defaults for an encoder."""

    header: Tuple[str, ...]
    defaults: Mapping[str, str] = field(default_factory=dict)

    def row(self, values: Mapping[str, object]) -> List[str]:
        out: List[str] = []
        for column in self.header:
            value = values.get(column)
            if value is None or value == "":
                value = self.defaults.get(column, "")
            out.append(str(value))
        return out

    def table(self, rows: Iterable[Mapping[str, object]]) -> RawTable:
        return RawTable(header=list(self.header), rows=[self.row(r) for r in rows])


def split_members(value: str) -> List[str]:
    """Split a pipe-delimited member list, dropping blanks."""
    return [part.strip() for part in (value or "").split("|") if part.strip()]


def format_frequency(value: float, decimals: int = 5) -> str:
    return f"{value:.{decimals}f}"


def decode_collections(table: RawTable, aliases: AliasTable, factory: Callable[..., Any]) -> Decoded:
    """Decode ``name`` + pipe-delimited ``members`` rows (zones, scan lists...)."""
    index = HeaderIndex(table.header, aliases)
    result = Decoded()
    for line, row in table.numbered():
        name = index.get(row, "name")
        if not name:
            result.skip(line, "missing name")
            continue
        result.records.append(factory(name=name, members=split_members(index.get(row, "members"))))
    return result


__all__ = [
    "RawTable",
    "Decoded",
    "HeaderIndex",
    "Layout",
    "read_table",
    "read_text",
    "write_table",
    "signature_score",
    "split_members",
    "format_frequency",
    "decode_collections",
]
