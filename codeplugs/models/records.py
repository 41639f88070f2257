"""Dataclasses for the canonical codeplug model.

Codecs decode into and encode from these records; the repository maps
them onto ORM rows with :meth:`to_row` / :meth:`from_row`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from ..exceptions import ValidationError
from .enums import ChannelType, ContactType, Power, Protocol, SquelchType

_DIGITAL_TYPES = {
    ChannelType.DMR,
    ChannelType.FUSION,
    ChannelType.DSTAR,
    ChannelType.NXDN,
    ChannelType.P25,
    ChannelType.MIXED,
}

_ENUM_FIELDS = {
    "channel_type": ChannelType,
    "protocol": Protocol,
    "power": Power,
    "squelch_type": SquelchType,
    "call_type": ContactType,
}


def _from_mapping(cls, row: Mapping[str, object]):
    kwargs = {}
    for f in fields(cls):
        if f.name not in row:
            continue
        value = row[f.name]
        enum_cls = _ENUM_FIELDS.get(f.name)
        if enum_cls is not None and value is not None and not isinstance(value, enum_cls):
            value = enum_cls(value)
        kwargs[f.name] = value
    return cls(**kwargs)


def _to_mapping(obj, exclude: tuple[str, ...] = ()) -> Dict[str, object]:
    out: Dict[str, object] = {}
    for f in fields(obj):
        if f.name in exclude:
            continue
        value = getattr(obj, f.name)
        if f.name in _ENUM_FIELDS and value is not None:
            value = value.value
        out[f.name] = value
    return out


@dataclass(slots=True)
class Channel:
    name: str = ""
    rx_frequency: float = 0.0
    tx_frequency: float = 0.0
    mode: str = "FM"
    channel_type: ChannelType = ChannelType.ANALOG
    protocol: Protocol = Protocol.FM
    bandwidth: str = "25"
    power: Power = Power.HIGH
    squelch_type: SquelchType = SquelchType.NONE
    rx_tone: str = ""
    tx_tone: str = ""
    rx_dcs: str = ""
    tx_dcs: str = ""
    color_code: int = 0
    time_slot: int = 0
    tx_contact: str = ""
    rx_group: str = ""
    scan_list: str = ""
    contact_id: Optional[int] = None
    sort_order: int = 0
    skip: bool = False
    notes: str = ""
    # Vendor flags carried through AnyTone / DM-32UV round trips
    squelch_level: int = 3
    tx_permit: str = "Always"
    talkaround: bool = False
    work_alone: bool = False
    forbid_tx: bool = False
    forbid_talkaround: bool = False
    aprs_report_type: str = "Off"
    aprs_receive: bool = False
    auto_scan: bool = False
    lone_work: bool = False
    emergency_indicator: bool = False
    emergency_ack: bool = False
    direct_dual_mode: bool = False
    private_confirm: bool = False
    short_data_confirm: bool = False
    id: Optional[int] = None

    @property
    def is_digital(self) -> bool:
        return self.channel_type in _DIGITAL_TYPES or self.protocol == Protocol.DMR

    def problems(self) -> List[str]:
        """Return a list of invariant violations (empty when valid)."""
        errors: List[str] = []
        if not ChannelType.has_value(str(self.channel_type)):
            errors.append(f"invalid channel type: {self.channel_type!r}")
        if not Protocol.has_value(str(self.protocol)):
            errors.append(f"invalid protocol: {self.protocol!r}")
        if self.protocol == Protocol.DMR and not 1 <= int(self.color_code or 0) <= 15:
            errors.append(
                f"{self.name or 'channel'}: DMR color code must be 1-15, got {self.color_code}"
            )
        return errors

    def validate(self) -> None:
        errors = self.problems()
        if errors:
            raise ValidationError(errors)

    def to_row(self) -> Dict[str, object]:
        return _to_mapping(self)

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "Channel":
        return _from_mapping(cls, row)


@dataclass(slots=True)
class Contact:
    """Talkgroup, private call or all-call address."""

    name: str = ""
    dmr_id: int = 0
    call_type: ContactType = ContactType.GROUP
    id: Optional[int] = None

    @property
    def is_placeholder(self) -> bool:
        return self.dmr_id < 0

    def problems(self, allow_placeholder: bool = False) -> List[str]:
        errors: List[str] = []
        if not ContactType.has_value(str(self.call_type)):
            errors.append(f"invalid call type: {self.call_type!r}")
        if self.dmr_id <= 0 and not (allow_placeholder and self.dmr_id < 0):
            errors.append(f"{self.name or 'contact'}: DMR ID must be positive")
        return errors

    def validate(self, allow_placeholder: bool = False) -> None:
        errors = self.problems(allow_placeholder)
        if errors:
            raise ValidationError(errors)

    def to_row(self) -> Dict[str, object]:
        return _to_mapping(self)

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "Contact":
        return _from_mapping(cls, row)


@dataclass(slots=True)
class DirectoryContact:
    """One operator from the public DMR-ID directory."""

    dmr_id: int
    callsign: str = ""
    name: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    remarks: str = ""
    deleted_at: Optional[datetime] = None
    id: Optional[int] = None

    def to_row(self) -> Dict[str, object]:
        return _to_mapping(self)

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "DirectoryContact":
        return _from_mapping(cls, row)


@dataclass(slots=True)
class Zone:
    """Named, ordered channel group. ``members`` holds channel names."""

    name: str
    members: List[str] = field(default_factory=list)
    id: Optional[int] = None


@dataclass(slots=True)
class ScanList:
    name: str
    members: List[str] = field(default_factory=list)
    id: Optional[int] = None


@dataclass(slots=True)
class RoamingChannel:
    name: str = ""
    rx_frequency: float = 0.0
    tx_frequency: float = 0.0
    color_code: int = 1
    time_slot: int = 1
    id: Optional[int] = None

    def to_row(self) -> Dict[str, object]:
        return _to_mapping(self)

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "RoamingChannel":
        return _from_mapping(cls, row)


@dataclass(slots=True)
class RoamingZone:
    name: str
    members: List[str] = field(default_factory=list)
    id: Optional[int] = None


@dataclass(slots=True)
class RowError:
    """A CSV row that could not be imported.

    ``line`` is the 1-based source line (the header is line 1), or 0 when
    the problem was found after decoding, e.g. by validation.
    """

    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}" if self.line else self.message


__all__ = [
    "Channel",
    "Contact",
    "DirectoryContact",
    "Zone",
    "ScanList",
    "RoamingChannel",
    "RoamingZone",
    "RowError",
]
