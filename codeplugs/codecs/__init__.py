"""Dialect registry, header sniffing and archive member tables."""

from __future__ import annotations

import logging
import posixpath
from typing import Dict, Iterable, Optional, Sequence

from ..exceptions import MalformedFileError, UnknownDialectError
from ..models.enums import EntityKind
from .anytone import AnyToneCodec
from .base import Decoded, RawTable, read_table, signature_score, write_table
from .chirp import ChirpCodec
from .dm32uv import DM32UVCodec
from .generic import GenericCodec
from .radioid import RadioIDCodec, load_filter_list, load_last_heard

logger = logging.getLogger(__name__)

CODECS = {
    codec.name: codec
    for codec in (GenericCodec(), ChirpCodec(), AnyToneCodec(), DM32UVCodec(), RadioIDCodec())
}

# Dialects that describe channel tables, in sniffing preference order
CHANNEL_DIALECTS = ("at890", "dm32uv", "generic", "chirp")
ARCHIVE_DIALECTS = ("at890", "dm32uv")

# Import format that picks the dialect from the header or member names
AUTO = "auto"

SNIFF_THRESHOLD = 0.75

# Member names are matched case-sensitively; iteration order is irrelevant,
# the orchestrator sorts members by EntityKind.
ARCHIVE_LAYOUTS: Dict[str, Dict[str, EntityKind]] = {
    "dm32uv": {
        "digital_contacts.csv": EntityKind.DIRECTORY,
        "talkgroups.csv": EntityKind.TALKGROUPS,
        "channels.csv": EntityKind.CHANNELS,
        "zones.csv": EntityKind.ZONES,
        "scan_lists.csv": EntityKind.SCAN_LISTS,
        "roaming_channels.csv": EntityKind.ROAMING_CHANNELS,
        "roaming_zones.csv": EntityKind.ROAMING_ZONES,
    },
    "at890": {
        "DMRDigitalContactList.CSV": EntityKind.DIRECTORY,
        "DMRTalkGroups.CSV": EntityKind.TALKGROUPS,
        "Channel.CSV": EntityKind.CHANNELS,
        "DMRZone.CSV": EntityKind.ZONES,
        "ScanList.CSV": EntityKind.SCAN_LISTS,
        "RoamChannel.CSV": EntityKind.ROAMING_CHANNELS,
        "RoamZone.CSV": EntityKind.ROAMING_ZONES,
    },
}


def get_codec(name: str):
    try:
        return CODECS[(name or "").strip().lower()]
    except KeyError:
        raise UnknownDialectError(name) from None


def archive_layout(dialect: str) -> Dict[str, EntityKind]:
    layout = ARCHIVE_LAYOUTS.get(get_codec(dialect).name)
    if layout is None:
        raise UnknownDialectError(dialect)
    return layout


def member_name(dialect: str, kind: EntityKind) -> str:
    for member, member_kind in archive_layout(dialect).items():
        if member_kind == kind:
            return member
    raise KeyError(f"{dialect} archive has no {kind} member")


def sniff(header: Sequence[str]) -> str:
    """Name the channel dialect whose signature best matches ``header``."""
    best: Optional[str] = None
    best_score = 0.0
    for name in CHANNEL_DIALECTS:
        score = signature_score(header, CODECS[name].signature)
        if score > best_score:
            best, best_score = name, score
    if best is None or best_score < SNIFF_THRESHOLD:
        raise MalformedFileError("header does not match any known channel dialect")
    logger.debug("sniffed %s (score %.2f)", best, best_score)
    return best


def sniff_archive(names: Iterable[str]) -> str:
    """Name the archive dialect whose member table matches ``names``."""
    bases = {posixpath.basename(name) for name in names}
    for dialect in ARCHIVE_DIALECTS:
        if bases & ARCHIVE_LAYOUTS[dialect].keys():
            return dialect
    raise MalformedFileError("archive has no members of a known dialect")


def _prefers_chirp(header: Sequence[str]) -> bool:
    chirp = signature_score(header, CODECS["chirp"].signature)
    return chirp == 1.0 and chirp > signature_score(header, CODECS["generic"].signature)


def decode_channels(dialect: str, table: RawTable) -> Decoded:
    """Decode a channel table, letting a generic import fall back to CHIRP.

    The fallback only happens when the header carries the full CHIRP
    signature. A generic file with data rows that yields no channels and
    does not look like CHIRP is rejected instead of imported as empty.
    """
    codec = get_codec(dialect)
    if codec.name == "generic" and _prefers_chirp(table.header):
        logger.info("generic import: header matches CHIRP, decoding as chirp")
        return CODECS["chirp"].decode(table)
    result = codec.decode(table)
    if codec.name == "generic" and table.rows and not result.records:
        raise MalformedFileError("no channel rows recognised in generic CSV")
    return result


__all__ = [
    "CODECS",
    "CHANNEL_DIALECTS",
    "ARCHIVE_DIALECTS",
    "ARCHIVE_LAYOUTS",
    "Decoded",
    "RawTable",
    "get_codec",
    "archive_layout",
    "member_name",
    "AUTO",
    "sniff",
    "sniff_archive",
    "decode_channels",
    "read_table",
    "write_table",
    "load_filter_list",
    "load_last_heard",
]
