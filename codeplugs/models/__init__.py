"""Canonical codeplug model: enums, record dataclasses and ORM tables."""

from .enums import ChannelType, ContactType, EntityKind, Power, Protocol, SquelchType
from .records import (
    Channel,
    Contact,
    DirectoryContact,
    RoamingChannel,
    RoamingZone,
    RowError,
    ScanList,
    Zone,
)

__all__ = [
    "ChannelType",
    "ContactType",
    "EntityKind",
    "Power",
    "Protocol",
    "SquelchType",
    "Channel",
    "Contact",
    "DirectoryContact",
    "RoamingChannel",
    "RoamingZone",
    "RowError",
    "ScanList",
    "Zone",
]
