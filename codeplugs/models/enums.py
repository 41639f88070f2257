"""Enumerations shared by the canonical model and the dialect codecs."""

from __future__ import annotations

from enum import Enum
from typing import Set


class _StrEnum(str, Enum):
    """Enum subclass that compares/serialises as its value."""

    def __str__(self) -> str:  # pragma: no cover - trivial
        return str(self.value)

    @classmethod
    def values(cls) -> Set[str]:
        return {member.value for member in cls}

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls.values()


class ChannelType(_StrEnum):
    ANALOG = "Analog"
    DMR = "Digital (DMR)"
    FUSION = "Digital (Fusion)"
    DSTAR = "Digital (D-Star)"
    NXDN = "Digital (NXDN)"
    P25 = "Digital (P25)"
    MIXED = "Mixed"


class Protocol(_StrEnum):
    FM = "FM"
    AM = "AM"
    DMR = "DMR"
    FUSION = "Fusion"
    DSTAR = "D-Star"
    NXDN = "NXDN"
    P25 = "P25"


class SquelchType(_StrEnum):
    NONE = "None"
    TONE = "Tone"
    TSQL = "TSQL"
    DCS = "DCS"
    CROSS = "Cross"


class Power(_StrEnum):
    HIGH = "High"
    MID = "Mid"
    LOW = "Low"


class ContactType(_StrEnum):
    GROUP = "Group"
    PRIVATE = "Private"
    ALL_CALL = "AllCall"


class EntityKind(_StrEnum):
    """Entity carried by one file of a codeplug archive.

    Declaration order is the dependency order used for archive import.
    """

    DIRECTORY = "directory"
    TALKGROUPS = "talkgroups"
    CHANNELS = "channels"
    ZONES = "zones"
    SCAN_LISTS = "scan_lists"
    ROAMING_CHANNELS = "roaming_channels"
    ROAMING_ZONES = "roaming_zones"


__all__ = [
    "ChannelType",
    "Protocol",
    "SquelchType",
    "Power",
    "ContactType",
    "EntityKind",
]
