"""DMR-ID directory feed (RadioID ``user.csv``) and ID allow-lists.

The directory feed is import-only. Headers are matched case-insensitively
against several aliases per field, and an optional allow-list (usually
built from a Brandmeister "last heard" export) restricts which IDs are
admitted.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from typing import AbstractSet, Optional, Set

from ..exceptions import MalformedFileError
from ..models.records import DirectoryContact
from ..normalizers import parse_int
from .base import AliasTable, Decoded, HeaderIndex, RawTable, Source, read_table, read_text

logger = logging.getLogger(__name__)

DIRECTORY_FIELDS = {
    "dmr_id": ("radio_id", "radio id", "id", "dmr id", "dmrid"),
    "callsign": ("callsign", "call sign", "call"),
    "first_name": ("first_name", "first name", "firstname"),
    "last_name": ("last_name", "last name", "lastname"),
    "name": ("name",),
    "city": ("city",),
    "state": ("state", "province"),
    "country": ("country",),
    "remarks": ("remarks", "remark"),
}

LAST_HEARD_FIELDS = {
    "dmr_id": ("sending id", "radio id", "id"),
}


def decode_directory_table(
    table: RawTable,
    aliases: AliasTable = DIRECTORY_FIELDS,
    allow_ids: Optional[AbstractSet[int]] = None,
    casefold: bool = True,
) -> Decoded:
    """Decode directory rows; rows outside ``allow_ids`` are dropped silently."""
    index = HeaderIndex(table.header, aliases, casefold=casefold)
    if not index.has("dmr_id"):
        raise MalformedFileError("directory file has no ID column")
    result = Decoded()
    for line, row in table.numbered():
        dmr_id = parse_int(index.get(row, "dmr_id"))
        if dmr_id is None or dmr_id <= 0:
            result.skip(line, f"invalid DMR ID {index.get(row, 'dmr_id')!r}")
            continue
        if allow_ids is not None and dmr_id not in allow_ids:
            continue
        callsign = index.get(row, "callsign")
        name = " ".join(
            part for part in (index.get(row, "first_name"), index.get(row, "last_name")) if part
        )
        result.records.append(
            DirectoryContact(
                dmr_id=dmr_id,
                callsign=callsign,
                name=name or index.get(row, "name") or callsign,
                city=index.get(row, "city"),
                state=index.get(row, "state"),
                country=index.get(row, "country"),
                remarks=index.get(row, "remarks"),
            )
        )
    return result


class RadioIDCodec:
    name = "radioid"
    signature = ("radio_id", "callsign", "first_name", "last_name")

    def decode(self, table: RawTable, allow_ids: Optional[AbstractSet[int]] = None) -> Decoded:
        result = decode_directory_table(table, DIRECTORY_FIELDS, allow_ids)
        logger.debug(
            "directory decode: %d contacts, %d skipped", len(result.records), len(result.errors)
        )
        return result


def parse_last_heard(table: RawTable) -> Set[int]:
    """Collect IDs from a Brandmeister "last heard" export."""
    index = HeaderIndex(table.header, LAST_HEARD_FIELDS, casefold=True)
    column = index.column("dmr_id")
    ids: Set[int] = set()
    for _, row in table.numbered():
        pos = 0 if column is None else column
        if pos >= len(row):
            continue
        value = parse_int(row[pos])
        if value is not None and value > 0:
            ids.add(value)
    return ids


def _id_column(header) -> Optional[int]:
    for i, name in enumerate(header):
        lowered = name.strip().lower()
        if "radio id" in lowered or "dmr id" in lowered or lowered == "id":
            return i
    return None


def _scan_text(text: str) -> Set[int]:
    ids: Set[int] = set()
    for line in text.splitlines():
        for token in re.split(r"[,;\s]+", line):
            value = parse_int(token)
            if value is not None and value > 0:
                ids.add(value)
                break
    return ids


def load_filter_list(source: Source) -> Set[int]:
    """Load an allow-list of DMR IDs.

    Accepts a CSV with an ID column (``Radio ID``, ``DMR ID`` or ``ID``), a
    header-less CSV whose first column holds IDs, or plain text with one ID
    per line.
    """
    text = read_text(source)
    try:
        rows = [r for r in csv.reader(io.StringIO(text)) if any(c.strip() for c in r)]
    except csv.Error:
        logger.debug("filter list is not valid CSV; scanning as text")
        return _scan_text(text)
    if not rows:
        return set()

    column = _id_column(rows[0])
    start = 1
    if column is None:
        first = parse_int(rows[0][0]) if rows[0] else None
        if first is None or first <= 0:
            return _scan_text(text)
        column, start = 0, 0

    ids: Set[int] = set()
    for row in rows[start:]:
        if column < len(row):
            value = parse_int(row[column])
            if value is not None and value > 0:
                ids.add(value)
    return ids


def load_last_heard(source: Source) -> Set[int]:
    return parse_last_heard(read_table(source))


__all__ = [
    "RadioIDCodec",
    "DIRECTORY_FIELDS",
    "decode_directory_table",
    "parse_last_heard",
    "load_last_heard",
    "load_filter_list",
]
