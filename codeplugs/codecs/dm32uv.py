"""Baofeng DM-32UV CPS CSV set (one file per entity).

Files use different labels for the same concept (``RX Frequency[MHz]``
in ``channels.csv``, ``RX Frequency`` in ``roaming_channels.csv``, and
``Receive Frequency`` in older exports), so every decode table lists all
of them.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from ..models.enums import ChannelType, ContactType, Power, Protocol, SquelchType
from ..models.records import Channel, Contact, DirectoryContact, RoamingChannel, RoamingZone, ScanList, Zone
from ..normalizers import (
    classify_mode,
    format_bool,
    format_dcs,
    normalize_bandwidth,
    parse_bool,
    parse_frequency,
    parse_int,
    parse_power,
    parse_time_slot,
    parse_tone,
    reconcile_squelch,
)
from .base import Decoded, HeaderIndex, Layout, RawTable, decode_collections, format_frequency
from .generic import parse_call_type
from .radioid import decode_directory_table

logger = logging.getLogger(__name__)

_FREQ_RX = ("RX Frequency[MHz]", "RX Frequency", "Receive Frequency")
_FREQ_TX = ("TX Frequency[MHz]", "TX Frequency", "Transmit Frequency")

CHANNEL_LAYOUT = Layout(
    header=(
        "No.", "Channel Name", "Channel Type", "RX Frequency[MHz]", "TX Frequency[MHz]",
        "Power", "Band Width", "Scan List", "TX Admit", "Emergency System",
        "Squelch Level", "APRS Report Type", "Forbid TX", "APRS Receive",
        "Forbid Talkaround", "Auto Scan", "Lone Work", "Emergency Indicator",
        "Emergency ACK", "Analog APRS PTT Mode", "Digital APRS PTT Mode", "TX Contact",
        "RX Group List", "Color Code", "Time Slot", "Encryption", "Encryption ID",
        "APRS Report Channel", "Direct Dual Mode", "Private Confirm",
        "Short Data Confirm", "DMR ID", "CTC/DCS Decode", "CTC/DCS Encode", "Scramble",
        "RX Squelch Mode", "Signaling Type", "PTT ID", "VOX Function", "PTT ID Display",
    ),
    defaults={
        "Power": "High",
        "Band Width": "12.5KHz",
        "Scan List": "None",
        "TX Admit": "Allow TX",
        "Emergency System": "None",
        "Squelch Level": "3",
        "APRS Report Type": "Off",
        "Analog APRS PTT Mode": "0",
        "Digital APRS PTT Mode": "0",
        "TX Contact": "None",
        "RX Group List": "None",
        "Color Code": "1",
        "Time Slot": "Slot 1",
        "Encryption": "0",
        "Encryption ID": "None",
        "APRS Report Channel": "1",
        "DMR ID": "None",
        "CTC/DCS Decode": "None",
        "CTC/DCS Encode": "None",
        "Scramble": "None",
        "RX Squelch Mode": "Carrier/CTC",
        "Signaling Type": "None",
        "PTT ID": "OFF",
        "VOX Function": "0",
        "PTT ID Display": "0",
    },
)

CHANNEL_FIELDS = {
    "name": ("Channel Name", "Name"),
    "rx_frequency": _FREQ_RX,
    "tx_frequency": _FREQ_TX,
    "channel_type": ("Channel Type",),
    "power": ("Power",),
    "bandwidth": ("Band Width",),
    "scan_list": ("Scan List",),
    "tx_permit": ("TX Admit",),
    "squelch_level": ("Squelch Level",),
    "aprs_report_type": ("APRS Report Type",),
    "forbid_tx": ("Forbid TX",),
    "aprs_receive": ("APRS Receive",),
    "forbid_talkaround": ("Forbid Talkaround",),
    "auto_scan": ("Auto Scan",),
    "lone_work": ("Lone Work",),
    "emergency_indicator": ("Emergency Indicator",),
    "emergency_ack": ("Emergency ACK",),
    "tx_contact": ("TX Contact",),
    "rx_group": ("RX Group List",),
    "color_code": ("Color Code",),
    "time_slot": ("Time Slot",),
    "direct_dual_mode": ("Direct Dual Mode",),
    "private_confirm": ("Private Confirm",),
    "short_data_confirm": ("Short Data Confirm",),
    "rx_squelch": ("CTC/DCS Decode",),
    "tx_squelch": ("CTC/DCS Encode",),
}

_FLAG_COLUMNS = {
    "forbid_tx": "Forbid TX",
    "aprs_receive": "APRS Receive",
    "forbid_talkaround": "Forbid Talkaround",
    "auto_scan": "Auto Scan",
    "lone_work": "Lone Work",
    "emergency_indicator": "Emergency Indicator",
    "emergency_ack": "Emergency ACK",
    "direct_dual_mode": "Direct Dual Mode",
    "private_confirm": "Private Confirm",
    "short_data_confirm": "Short Data Confirm",
}

TALKGROUP_LAYOUT = Layout(header=("No.", "Name", "ID", "Type"), defaults={"Type": "Group Call"})
TALKGROUP_FIELDS = {
    "name": ("Name",),
    "dmr_id": ("ID", "Radio ID"),
    "call_type": ("Type", "Call Type"),
}

ZONE_LAYOUT = Layout(header=("No.", "Zone Name", "Channel Members"))
ZONE_FIELDS = {
    "name": ("Zone Name", "Name"),
    "members": ("Channel Members", "Channel Member", "Zone Channel Member"),
}

SCAN_LIST_LAYOUT = Layout(header=("No.", "Scan List Name", "Channel Members"))
SCAN_LIST_FIELDS = {
    "name": ("Scan List Name", "Name"),
    "members": ("Channel Members", "Scan Channel Member"),
}

DIGITAL_CONTACT_LAYOUT = Layout(
    header=(
        "No.", "ID", "Repeater", "Name", "City", "Province", "Country", "Remark", "Type",
        "Alert Call",
    ),
    defaults={"Type": "Private Call", "Alert Call": "0"},
)
DIGITAL_CONTACT_FIELDS = {
    "dmr_id": ("id", "radio id"),
    "callsign": ("repeater", "callsign"),
    "name": ("name",),
    "city": ("city",),
    "state": ("province", "state"),
    "country": ("country",),
    "remarks": ("remark", "remarks"),
}

ROAMING_CHANNEL_LAYOUT = Layout(
    header=("No.", "Channel Name", "RX Frequency", "TX Frequency", "Color Code", "Time Slot"),
    defaults={"Color Code": "1", "Time Slot": "Slot 1"},
)
ROAMING_CHANNEL_FIELDS = {
    "name": ("Channel Name", "Name"),
    "rx_frequency": _FREQ_RX,
    "tx_frequency": _FREQ_TX,
    "color_code": ("Color Code",),
    "time_slot": ("Time Slot", "Slot"),
}

ROAMING_ZONE_LAYOUT = Layout(header=("No.", "Zone Name", "Channel Members"))
ROAMING_ZONE_FIELDS = {
    "name": ("Zone Name", "Name"),
    "members": ("Channel Members", "Roaming Channel Member"),
}

_POWER_WORDS = {"middle": Power.MID, "medium": Power.MID}
_TX_ADMITS = {"Allow TX", "Channel Free", "Color Code Idle", "Color Code Free"}
_CALL_TYPE_OUT = {
    ContactType.GROUP: "Group Call",
    ContactType.PRIVATE: "Private Call",
    ContactType.ALL_CALL: "All Call",
}


def _none_value(value: str) -> str:
    return "" if value.strip().lower() in ("none", "off") else value


def _join_members(names, channels: Optional[Mapping[str, Channel]]) -> str:
    if channels is not None:
        names = [name for name in names if name in channels]
    return "|".join(names)


def _encode_tone_pair(channel: Channel):
    kind = channel.squelch_type
    if kind == SquelchType.TSQL:
        return channel.rx_tone, channel.tx_tone
    if kind == SquelchType.TONE:
        return "", channel.tx_tone
    if kind == SquelchType.DCS:
        return format_dcs(channel.rx_dcs or channel.tx_dcs), format_dcs(channel.tx_dcs or channel.rx_dcs)
    if kind == SquelchType.CROSS:
        return channel.rx_tone or format_dcs(channel.rx_dcs), channel.tx_tone or format_dcs(channel.tx_dcs)
    return "", ""


class DM32UVCodec:
    """Baofeng DM-32UV CPS CSV files."""

    name = "dm32uv"
    signature = ("No.", "Channel Name", "Channel Type", "RX Frequency[MHz]", "TX Frequency[MHz]")
    write_options = {"quote_all": False, "crlf": False}

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def decode(self, table: RawTable) -> Decoded:
        index = HeaderIndex(table.header, CHANNEL_FIELDS)
        result = Decoded()
        for line, row in table.numbered():
            name = index.get(row, "name")
            rx = parse_frequency(index.get(row, "rx_frequency"))
            if not name or rx is None:
                result.skip(line, "channel needs a name and a receive frequency")
                continue
            tx = parse_frequency(index.get(row, "tx_frequency"))
            channel = Channel(name=name, rx_frequency=rx, tx_frequency=rx if tx is None else tx)
            digital = index.get(row, "channel_type").lower() == "digital"
            classify_mode("dmr" if digital else "analog").apply(channel)
            channel.bandwidth = normalize_bandwidth(index.get(row, "bandwidth"), channel.bandwidth)
            power_word = index.get(row, "power")
            channel.power = _POWER_WORDS.get(power_word.lower()) or parse_power(power_word)

            rx_kind, rx_value = parse_tone(index.get(row, "rx_squelch"))
            tx_kind, tx_value = parse_tone(index.get(row, "tx_squelch"))
            reconcile_squelch(
                rx_tone=rx_value if rx_kind == "tone" else "",
                tx_tone=tx_value if tx_kind == "tone" else "",
                rx_dcs=rx_value if rx_kind == "dcs" else "",
                tx_dcs=tx_value if tx_kind == "dcs" else "",
            ).apply(channel)

            channel.scan_list = _none_value(index.get(row, "scan_list"))
            channel.tx_contact = _none_value(index.get(row, "tx_contact"))
            channel.rx_group = _none_value(index.get(row, "rx_group"))
            channel.tx_permit = index.get(row, "tx_permit") or "Allow TX"
            channel.aprs_report_type = index.get(row, "aprs_report_type") or "Off"
            level = parse_int(index.get(row, "squelch_level"))
            if level is not None:
                channel.squelch_level = level
            if digital:
                channel.color_code = parse_int(index.get(row, "color_code")) or 0
                channel.time_slot = parse_time_slot(index.get(row, "time_slot")) or 1
            for attr in _FLAG_COLUMNS:
                setattr(channel, attr, parse_bool(index.get(row, attr)))
            result.records.append(channel)
        logger.debug("dm32uv decode: %d channels, %d skipped", len(result.records), len(result.errors))
        return result

    def encode(self, channels: Iterable[Channel]) -> RawTable:
        rows = []
        for i, channel in enumerate(channels, start=1):
            digital = channel.protocol == Protocol.DMR or channel.channel_type == ChannelType.MIXED
            decode_tone, encode_tone = _encode_tone_pair(channel)
            values = {
                "No.": i,
                "Channel Name": channel.name,
                "Channel Type": "Digital" if digital else "Analog",
                "RX Frequency[MHz]": format_frequency(channel.rx_frequency),
                "TX Frequency[MHz]": format_frequency(channel.tx_frequency),
                "Power": str(channel.power),
                "Band Width": f"{channel.bandwidth}KHz" if channel.bandwidth else "",
                "Scan List": channel.scan_list,
                "TX Admit": channel.tx_permit if channel.tx_permit in _TX_ADMITS else "Allow TX",
                "Squelch Level": channel.squelch_level,
                "APRS Report Type": channel.aprs_report_type,
                "TX Contact": channel.tx_contact,
                "RX Group List": channel.rx_group,
                "CTC/DCS Decode": decode_tone,
                "CTC/DCS Encode": encode_tone,
            }
            if digital:
                values["Color Code"] = channel.color_code
                values["Time Slot"] = f"Slot {channel.time_slot or 1}"
            for attr, column in _FLAG_COLUMNS.items():
                values[column] = format_bool(getattr(channel, attr))
            rows.append(values)
        return CHANNEL_LAYOUT.table(rows)

    # ------------------------------------------------------------------
    # Talkgroups / digital contacts
    # ------------------------------------------------------------------

    def decode_talkgroups(self, table: RawTable) -> Decoded:
        index = HeaderIndex(table.header, TALKGROUP_FIELDS)
        result = Decoded()
        for line, row in table.numbered():
            name = index.get(row, "name")
            dmr_id = parse_int(index.get(row, "dmr_id"))
            if not name or dmr_id is None or dmr_id <= 0:
                result.skip(line, "talkgroup needs a name and a positive ID")
                continue
            result.records.append(
                Contact(name=name, dmr_id=dmr_id, call_type=parse_call_type(index.get(row, "call_type")))
            )
        return result

    def encode_talkgroups(self, contacts: Iterable[Contact]) -> RawTable:
        return TALKGROUP_LAYOUT.table(
            {"No.": i, "Name": c.name, "ID": c.dmr_id, "Type": _CALL_TYPE_OUT.get(c.call_type)}
            for i, c in enumerate(contacts, start=1)
        )

    def decode_directory(self, table: RawTable) -> Decoded:
        return decode_directory_table(table, DIGITAL_CONTACT_FIELDS)

    def encode_directory(self, contacts: Iterable[DirectoryContact]) -> RawTable:
        return DIGITAL_CONTACT_LAYOUT.table(
            {
                "No.": i,
                "ID": c.dmr_id,
                "Repeater": c.callsign,
                "Name": c.name,
                "City": c.city,
                "Province": c.state,
                "Country": c.country,
                "Remark": c.remarks,
            }
            for i, c in enumerate(contacts, start=1)
        )

    # ------------------------------------------------------------------
    # Zones / scan lists / roaming
    # ------------------------------------------------------------------

    def decode_zones(self, table: RawTable) -> Decoded:
        return decode_collections(table, ZONE_FIELDS, Zone)

    def encode_zones(self, zones: Iterable[Zone], channels: Optional[Mapping[str, Channel]] = None) -> RawTable:
        return ZONE_LAYOUT.table(
            {"No.": i, "Zone Name": z.name, "Channel Members": _join_members(z.members, channels)}
            for i, z in enumerate(zones, start=1)
        )

    def decode_scan_lists(self, table: RawTable) -> Decoded:
        return decode_collections(table, SCAN_LIST_FIELDS, ScanList)

    def encode_scan_lists(
        self, scan_lists: Iterable[ScanList], channels: Optional[Mapping[str, Channel]] = None
    ) -> RawTable:
        return SCAN_LIST_LAYOUT.table(
            {"No.": i, "Scan List Name": s.name, "Channel Members": _join_members(s.members, channels)}
            for i, s in enumerate(scan_lists, start=1)
        )

    def decode_roaming_channels(self, table: RawTable) -> Decoded:
        index = HeaderIndex(table.header, ROAMING_CHANNEL_FIELDS)
        result = Decoded()
        for line, row in table.numbered():
            name = index.get(row, "name")
            rx = parse_frequency(index.get(row, "rx_frequency"))
            if not name or rx is None:
                result.skip(line, "roaming channel needs a name and a receive frequency")
                continue
            tx = parse_frequency(index.get(row, "tx_frequency"))
            result.records.append(
                RoamingChannel(
                    name=name,
                    rx_frequency=rx,
                    tx_frequency=rx if tx is None else tx,
                    color_code=parse_int(index.get(row, "color_code")) or 1,
                    time_slot=parse_time_slot(index.get(row, "time_slot")) or 1,
                )
            )
        return result

    def encode_roaming_channels(self, channels: Iterable[RoamingChannel]) -> RawTable:
        return ROAMING_CHANNEL_LAYOUT.table(
            {
                "No.": i,
                "Channel Name": c.name,
                "RX Frequency": format_frequency(c.rx_frequency),
                "TX Frequency": format_frequency(c.tx_frequency),
                "Color Code": c.color_code,
                "Time Slot": f"Slot {c.time_slot or 1}",
            }
            for i, c in enumerate(channels, start=1)
        )

    def decode_roaming_zones(self, table: RawTable) -> Decoded:
        return decode_collections(table, ROAMING_ZONE_FIELDS, RoamingZone)

    def encode_roaming_zones(self, zones: Iterable[RoamingZone]) -> RawTable:
        return ROAMING_ZONE_LAYOUT.table(
            {"No.": i, "Zone Name": z.name, "Channel Members": "|".join(z.members)}
            for i, z in enumerate(zones, start=1)
        )


__all__ = ["DM32UVCodec"]
