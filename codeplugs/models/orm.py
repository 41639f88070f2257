"""SQLAlchemy ORM tables for the codeplug store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class ChannelRow(Base):
    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, index=True, default="")
    rx_frequency: Mapped[float] = mapped_column(Float, default=0.0)
    tx_frequency: Mapped[float] = mapped_column(Float, default=0.0)
    mode: Mapped[str] = mapped_column(String, default="FM")
    channel_type: Mapped[str] = mapped_column(String, default="Analog")
    protocol: Mapped[str] = mapped_column(String, default="FM")
    bandwidth: Mapped[str] = mapped_column(String, default="25")
    power: Mapped[str] = mapped_column(String, default="High")
    squelch_type: Mapped[str] = mapped_column(String, default="None")
    rx_tone: Mapped[str] = mapped_column(String, default="")
    tx_tone: Mapped[str] = mapped_column(String, default="")
    rx_dcs: Mapped[str] = mapped_column(String, default="")
    tx_dcs: Mapped[str] = mapped_column(String, default="")
    color_code: Mapped[int] = mapped_column(Integer, default=0)
    time_slot: Mapped[int] = mapped_column(Integer, default=0)
    tx_contact: Mapped[str] = mapped_column(String, default="")
    rx_group: Mapped[str] = mapped_column(String, default="")
    scan_list: Mapped[str] = mapped_column(String, default="")
    contact_id: Mapped[int | None] = mapped_column(
        ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, index=True)
    skip: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[str] = mapped_column(Text, default="")
    squelch_level: Mapped[int] = mapped_column(Integer, default=3)
    tx_permit: Mapped[str] = mapped_column(String, default="Always")
    talkaround: Mapped[bool] = mapped_column(Boolean, default=False)
    work_alone: Mapped[bool] = mapped_column(Boolean, default=False)
    forbid_tx: Mapped[bool] = mapped_column(Boolean, default=False)
    forbid_talkaround: Mapped[bool] = mapped_column(Boolean, default=False)
    aprs_report_type: Mapped[str] = mapped_column(String, default="Off")
    aprs_receive: Mapped[bool] = mapped_column(Boolean, default=False)
    auto_scan: Mapped[bool] = mapped_column(Boolean, default=False)
    lone_work: Mapped[bool] = mapped_column(Boolean, default=False)
    emergency_indicator: Mapped[bool] = mapped_column(Boolean, default=False)
    emergency_ack: Mapped[bool] = mapped_column(Boolean, default=False)
    direct_dual_mode: Mapped[bool] = mapped_column(Boolean, default=False)
    private_confirm: Mapped[bool] = mapped_column(Boolean, default=False)
    short_data_confirm: Mapped[bool] = mapped_column(Boolean, default=False)

    contact = relationship("ContactRow", lazy="joined")


class ContactRow(Base):
    __tablename__ = "contacts"
    __table_args__ = (UniqueConstraint("dmr_id", "call_type", name="uq_contact_id_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, index=True, default="")
    dmr_id: Mapped[int] = mapped_column(Integer, nullable=False)
    call_type: Mapped[str] = mapped_column(String, default="Group")


class DirectoryContactRow(Base):
    __tablename__ = "directory_contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dmr_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    callsign: Mapped[str] = mapped_column(String, index=True, default="")
    name: Mapped[str] = mapped_column(String, default="")
    city: Mapped[str] = mapped_column(String, default="")
    state: Mapped[str] = mapped_column(String, default="")
    country: Mapped[str] = mapped_column(String, default="")
    remarks: Mapped[str] = mapped_column(String, default="")
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)


# ------------------------------------------------------------------
# Ordered collections
# ------------------------------------------------------------------


class ZoneRow(Base):
    __tablename__ = "zones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)


class ZoneChannelRow(Base):
    __tablename__ = "zone_channels"

    zone_id: Mapped[int] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE"), primary_key=True
    )
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)


class ScanListRow(Base):
    __tablename__ = "scan_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)


class ScanListChannelRow(Base):
    __tablename__ = "scan_list_channels"

    scan_list_id: Mapped[int] = mapped_column(
        ForeignKey("scan_lists.id", ondelete="CASCADE"), primary_key=True
    )
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)


class RoamingChannelRow(Base):
    __tablename__ = "roaming_channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, index=True, default="")
    rx_frequency: Mapped[float] = mapped_column(Float, default=0.0)
    tx_frequency: Mapped[float] = mapped_column(Float, default=0.0)
    color_code: Mapped[int] = mapped_column(Integer, default=1)
    time_slot: Mapped[int] = mapped_column(Integer, default=1)


class RoamingZoneRow(Base):
    __tablename__ = "roaming_zones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)


class RoamingZoneChannelRow(Base):
    __tablename__ = "roaming_zone_channels"

    roaming_zone_id: Mapped[int] = mapped_column(
        ForeignKey("roaming_zones.id", ondelete="CASCADE"), primary_key=True
    )
    roaming_channel_id: Mapped[int] = mapped_column(
        ForeignKey("roaming_channels.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)


# ------------------------------------------------------------------
# Filter lists
# ------------------------------------------------------------------


class ContactListRow(Base):
    __tablename__ = "contact_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    entries = relationship(
        "ContactListEntryRow",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ContactListEntryRow(Base):
    __tablename__ = "contact_list_entries"
    __table_args__ = (UniqueConstraint("list_id", "dmr_id", name="uq_list_entry"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    list_id: Mapped[int] = mapped_column(
        ForeignKey("contact_lists.id", ondelete="CASCADE"), index=True
    )
    dmr_id: Mapped[int] = mapped_column(Integer, nullable=False)


__all__ = [
    "Base",
    "ChannelRow",
    "ContactRow",
    "DirectoryContactRow",
    "ZoneRow",
    "ZoneChannelRow",
    "ScanListRow",
    "ScanListChannelRow",
    "RoamingChannelRow",
    "RoamingZoneRow",
    "RoamingZoneChannelRow",
    "ContactListRow",
    "ContactListEntryRow",
]
