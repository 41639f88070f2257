"""Generic channel CSV (DB25-D layout) and generic talkgroup CSV."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..models.enums import ContactType, Protocol, SquelchType
from ..models.records import Channel, Contact
from ..normalizers import (
    classify_mode,
    format_dcs,
    normalize_bandwidth,
    parse_bool,
    parse_frequency,
    parse_int,
    parse_power,
    parse_time_slot,
    parse_tone,
    reconcile_squelch,
    resolve_tx_frequency,
)
from .base import Decoded, HeaderIndex, Layout, RawTable, format_frequency
from .chirp import decode_chirp_squelch

logger = logging.getLogger(__name__)

CHANNEL_FIELDS = {
    "name": ("CH Name", "Name", "Channel Name", "Callsign"),
    "rx_frequency": ("RX Freq", "Frequency", "RX Frequency", "Receive Frequency"),
    "tx_frequency": ("TX Freq", "Input Freq", "TX Frequency", "Transmit Frequency"),
    "duplex": ("Duplex",),
    "offset": ("Offset",),
    "mode": ("CH mode", "Mode"),
    "bandwidth": ("Bandwidth", "Band Width"),
    "power": ("Power",),
    "color_code": ("RX CC", "Color Code", "CC"),
    "time_slot": ("RX TS", "Time Slot", "Slot", "TS"),
    "rx_group": ("RX Group", "RX Group List"),
    "tx_contact": ("Contacts", "Contact", "TX Contact", "Talkgroup"),
    "rx_squelch": ("RX QT/DQT", "RX Tone"),
    "tx_squelch": ("TX QT/DQT", "TX Tone"),
    "tone_mode": ("Tone",),
    "skip": ("Skip",),
    "notes": ("Comment", "Notes"),
}

TALKGROUP_FIELDS = {
    "name": ("Name", "Talkgroup", "Contact Name"),
    "dmr_id": ("ID", "DMRID", "DMR ID", "Radio ID"),
    "call_type": ("Type", "Call Type"),
}

DB25D_LAYOUT = Layout(
    header=(
        "Z-4", "CH mode", "CH Name", "RX Freq", "TX Freq", "Power", "RX Only",
        "Alarm ACK", "Prompt", "PCT", "RX TS", "TX TS", "RX CC", "TX CC",
        "Msg Type", "TX Policy", "RX Group", "Encryption List", "Scan List",
        "Contacts", "EAS", "Relay Monitor", "Relay mode", "Bandwidth",
        "RX QT/DQT", "TX QT/DQT", "APRS",
    ),
    defaults={
        "Power": "High",
        "RX Only": "Off",
        "Alarm ACK": "Off",
        "Prompt": "Off",
        "PCT": "Patcs",
        "RX TS": "Slot 1",
        "TX TS": "Slot 1",
        "RX CC": "1",
        "TX CC": "1",
        "Msg Type": "Unconfirmed Data",
        "TX Policy": "Polite to CC",
        "RX Group": "None",
        "Encryption List": "Off",
        "Scan List": "Off",
        "Contacts": "None",
        "EAS": "Off",
        "Relay Monitor": "Off",
        "Relay mode": "Off",
        "Bandwidth": "12.5",
        "RX QT/DQT": "Off",
        "TX QT/DQT": "Off",
        "APRS": "Off",
    },
)

TALKGROUP_LAYOUT = Layout(header=("Name", "ID", "Type"))

_CALL_TYPE_WORDS = {
    "private": ContactType.PRIVATE,
    "private call": ContactType.PRIVATE,
    "all": ContactType.ALL_CALL,
    "all call": ContactType.ALL_CALL,
    "allcall": ContactType.ALL_CALL,
}


def parse_call_type(value: Optional[str]) -> ContactType:
    """Vendor call-type wording to :class:`ContactType` (Group by default)."""
    return _CALL_TYPE_WORDS.get(str(value or "").strip().lower(), ContactType.GROUP)


def _decode_squelch_columns(index: HeaderIndex, row: Sequence[str]):
    rx_kind, rx_value = parse_tone(index.get(row, "rx_squelch"))
    tx_kind, tx_value = parse_tone(index.get(row, "tx_squelch"))
    return reconcile_squelch(
        rx_tone=rx_value if rx_kind == "tone" else "",
        tx_tone=tx_value if tx_kind == "tone" else "",
        rx_dcs=rx_value if rx_kind == "dcs" else "",
        tx_dcs=tx_value if tx_kind == "dcs" else "",
    )


def _encode_squelch(channel: Channel):
    kind = channel.squelch_type
    if kind == SquelchType.TSQL:
        return channel.rx_tone, channel.tx_tone
    if kind == SquelchType.TONE:
        return "", channel.tx_tone
    if kind == SquelchType.DCS:
        return format_dcs(channel.rx_dcs or channel.tx_dcs), format_dcs(channel.tx_dcs or channel.rx_dcs)
    if kind == SquelchType.CROSS:
        rx = channel.rx_tone or format_dcs(channel.rx_dcs)
        tx = channel.tx_tone or format_dcs(channel.tx_dcs)
        return rx, tx
    return "", ""


class GenericCodec:
    """Generic/DB25-D channel CSV, plus the generic talkgroup list."""

    name = "generic"
    signature = ("CH Name", "RX Freq", "TX Freq", "CH mode")

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def decode(self, table: RawTable) -> Decoded:
        index = HeaderIndex(table.header, CHANNEL_FIELDS)
        result = Decoded()
        for line, row in table.numbered():
            name = index.get(row, "name")
            if not name:
                result.skip(line, "missing channel name")
                continue
            rx = parse_frequency(index.get(row, "rx_frequency"))
            if rx is None:
                result.skip(line, f"{name}: missing or invalid receive frequency")
                continue

            channel = Channel(name=name, rx_frequency=rx)
            classify_mode(index.get(row, "mode")).apply(channel)
            channel.bandwidth = normalize_bandwidth(index.get(row, "bandwidth"), channel.bandwidth)

            tx = parse_frequency(index.get(row, "tx_frequency"))
            if tx is None:
                offset = parse_frequency(index.get(row, "offset"))
                tx = resolve_tx_frequency(rx, index.get(row, "duplex"), offset)
            channel.tx_frequency = tx

            channel.power = parse_power(index.get(row, "power"))
            channel.color_code = parse_int(index.get(row, "color_code")) or 0
            channel.time_slot = parse_time_slot(index.get(row, "time_slot"))
            channel.tx_contact = _none_to_blank(index.get(row, "tx_contact"))
            channel.rx_group = _none_to_blank(index.get(row, "rx_group"))
            channel.skip = parse_bool(index.get(row, "skip"))
            channel.notes = index.get(row, "notes")

            if index.has("tone_mode"):
                squelch = decode_chirp_squelch(table.header, row)
            else:
                squelch = _decode_squelch_columns(index, row)
            squelch.apply(channel)
            result.records.append(channel)
        logger.debug("generic decode: %d channels, %d skipped", len(result.records), len(result.errors))
        return result

    def encode(self, channels: Iterable[Channel]) -> RawTable:
        rows = []
        for i, channel in enumerate(channels, start=1):
            digital = channel.protocol == Protocol.DMR
            rx_squelch, tx_squelch = _encode_squelch(channel)
            values = {
                "Z-4": i,
                "CH mode": "Digital" if digital else "Analog",
                "CH Name": channel.name,
                "RX Freq": format_frequency(channel.rx_frequency),
                "TX Freq": format_frequency(channel.tx_frequency),
                "Power": str(channel.power),
                "Bandwidth": channel.bandwidth,
                "RX QT/DQT": rx_squelch,
                "TX QT/DQT": tx_squelch,
            }
            if digital:
                slot = f"Slot {channel.time_slot or 1}"
                values.update(
                    {
                        "RX TS": slot,
                        "TX TS": slot,
                        "RX CC": channel.color_code,
                        "TX CC": channel.color_code,
                        "RX Group": channel.rx_group,
                        "Contacts": channel.tx_contact,
                    }
                )
            rows.append(values)
        return DB25D_LAYOUT.table(rows)

    # ------------------------------------------------------------------
    # Talkgroups
    # ------------------------------------------------------------------

    def decode_talkgroups(self, table: RawTable) -> Decoded:
        index = HeaderIndex(table.header, TALKGROUP_FIELDS, casefold=True)
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
            {"Name": c.name, "ID": c.dmr_id, "Type": str(c.call_type)} for c in contacts
        )


def _none_to_blank(value: str) -> str:
    return "" if value.strip().lower() in ("none", "off") else value


__all__ = [
    "GenericCodec",
    "CHANNEL_FIELDS",
    "TALKGROUP_FIELDS",
    "DB25D_LAYOUT",
    "parse_call_type",
]
