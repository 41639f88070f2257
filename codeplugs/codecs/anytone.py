"""AnyTone AT-D890 CSV export set.

The CPS expects every field double-quoted and CRLF line endings, so
tables from this codec must be written with
``write_table(table, quote_all=True, crlf=True)`` (see :data:`WRITE_OPTIONS`).
Zone and scan-list members are single pipe-delimited name lists; zones
also repeat their first two members as the A/B VFO channels.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

from ..models.enums import ChannelType, ContactType, Power, Protocol, SquelchType
from ..models.records import Channel, Contact, DirectoryContact, RoamingChannel, RoamingZone, ScanList, Zone
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
)
from .base import Decoded, HeaderIndex, Layout, RawTable, decode_collections, format_frequency
from .generic import parse_call_type
from .radioid import decode_directory_table

logger = logging.getLogger(__name__)

WRITE_OPTIONS = {"quote_all": True, "crlf": True}

CHANNEL_HEADER = (
    "No.", "Channel Name", "Receive Frequency", "Transmit Frequency", "Channel Type",
    "Transmit Power", "Band Width", "CTCSS/DCS Decode", "CTCSS/DCS Encode",
    "Contact/Talk Group", "Contact/Talk Group Call Type", "Contact/Talk Group TG/DMR ID",
    "Radio ID", "Busy Lock/TX Permit", "Squelch Mode", "Optional Signal", "DTMF ID",
    "2Tone ID", "5Tone ID", "PTT ID", "RX Color Code", "Slot", "Scan List",
    "Receive Group List", "PTT Prohibit", "Reverse", "Digital Duplex", "Slot Suit",
    "AES Digital Encryption", "Digital Encryption", "Call Confirmation",
    "Talk Around(Simplex)", "Work Alone", "Custom CTCSS", "2TONE Decode", "Ranging",
    "Idle TX", "APRS RX", "Analog APRS PTT Mode", "Digital APRS PTT Mode",
    "APRS Report Type", "Digital APRS Report Channel", "Correct Frequency[Hz]",
    "SMS Confirmation", "Exclude channel from roaming", "DMR MODE", "DataACK Disable",
    "R5toneBot", "R5ToneEot", "Auto Scan", "Ana APRS Mute", "Send Talker Alias DMR/NX",
    "AnaAprsTxPath", "ARC4", "ex_emg_kind", "Rpga_Mdc", "DisturEn", "DisturFreq",
    "dmr_crc_ignore", "compand", "tx_talkalaes", "dup_call", "tx_int", "BtRxState",
    "idle_tx", "nxdn_wn", "NxdnRpga", "nxdnSqCon", "NxdnTxBusy", "NxDnPttId", "EnRan",
    "DeRan", "NxdnEncry", "NxdnGroupId", "NxdnIdNum", "NxdnStateNum", "txcc",
)

_OFF_COLUMNS = (
    "Busy Lock/TX Permit", "Optional Signal", "PTT ID", "PTT Prohibit", "Reverse",
    "Digital Duplex", "Slot Suit", "Digital Encryption", "Call Confirmation",
    "Talk Around(Simplex)", "Work Alone", "Ranging", "Idle TX", "APRS RX",
    "Analog APRS PTT Mode", "Digital APRS PTT Mode", "APRS Report Type",
    "SMS Confirmation",
)

_CHANNEL_DEFAULTS: Dict[str, str] = {column: "0" for column in CHANNEL_HEADER[33:]}
_CHANNEL_DEFAULTS.update({column: "Off" for column in _OFF_COLUMNS})
_CHANNEL_DEFAULTS.update(
    {
        "Transmit Power": "High",
        "Band Width": "12.5K",
        "CTCSS/DCS Decode": "Off",
        "CTCSS/DCS Encode": "Off",
        "Contact/Talk Group": "None",
        "Contact/Talk Group Call Type": "Group Call",
        "Contact/Talk Group TG/DMR ID": "1",
        "Squelch Mode": "Carrier",
        "DTMF ID": "1",
        "2Tone ID": "1",
        "5Tone ID": "1",
        "RX Color Code": "1",
        "Slot": "1",
        "Scan List": "None",
        "Receive Group List": "None",
        "AES Digital Encryption": "Normal Encryption",
        "Custom CTCSS": "251.1",
        "Digital APRS Report Channel": "1",
        "txcc": "1",
    }
)

CHANNEL_LAYOUT = Layout(header=CHANNEL_HEADER, defaults=_CHANNEL_DEFAULTS)

CHANNEL_FIELDS = {
    "name": ("Channel Name",),
    "rx_frequency": ("Receive Frequency", "RX Frequency"),
    "tx_frequency": ("Transmit Frequency", "TX Frequency"),
    "channel_type": ("Channel Type",),
    "power": ("Transmit Power", "Power"),
    "bandwidth": ("Band Width",),
    "rx_squelch": ("CTCSS/DCS Decode",),
    "tx_squelch": ("CTCSS/DCS Encode",),
    "tx_contact": ("Contact/Talk Group", "Contact"),
    "tx_permit": ("Busy Lock/TX Permit",),
    "color_code": ("RX Color Code", "Color Code"),
    "time_slot": ("Slot",),
    "scan_list": ("Scan List",),
    "rx_group": ("Receive Group List",),
    "talkaround": ("Talk Around(Simplex)",),
    "work_alone": ("Work Alone",),
    "auto_scan": ("Auto Scan",),
    "aprs_receive": ("APRS RX",),
}

TALKGROUP_LAYOUT = Layout(
    header=("No.", "Radio ID", "Name", "Call Type", "Call Alert"),
    defaults={"Call Type": "Group Call", "Call Alert": "None"},
)
TALKGROUP_FIELDS = {
    "dmr_id": ("Radio ID", "ID"),
    "name": ("Name",),
    "call_type": ("Call Type",),
}

ZONE_LAYOUT = Layout(
    header=(
        "No.", "Zone Name", "Zone Channel Member", "Zone Channel Member RX Frequency",
        "Zone Channel Member TX Frequency", "A Channel", "A Channel RX Frequency",
        "A Channel TX Frequency", "B Channel", "B Channel RX Frequency",
        "B Channel TX Frequency", "Zone Hide ",
    ),
    defaults={"Zone Hide ": "0"},
)
ZONE_FIELDS = {"name": ("Zone Name", "Name"), "members": ("Zone Channel Member",)}

SCAN_LIST_LAYOUT = Layout(
    header=(
        "No.", "Scan List Name", "Scan Channel Member", "Scan Channel Member RX Frequency",
        "Scan Channel Member TX Frequency", "Scan Mode", "Priority Channel Select",
        "Priority Channel 1", "Priority Channel 1 RX Frequency",
        "Priority Channel 1 TX Frequency", "Priority Channel 2",
        "Priority Channel 2 RX Frequency", "Priority Channel 2 TX Frequency",
        "Revert Channel", "Look Back Time A[s]", "Look Back Time B[s]",
        "Dropout Delay Time[s]", "Dwell Time[s]",
    ),
    defaults={
        "Scan Mode": "Off",
        "Priority Channel Select": "Off",
        "Priority Channel 1": "Off",
        "Priority Channel 2": "Off",
        "Revert Channel": "Selected",
        "Look Back Time A[s]": "2.0",
        "Look Back Time B[s]": "3.0",
        "Dropout Delay Time[s]": "3.1",
        "Dwell Time[s]": "3.1",
    },
)
SCAN_LIST_FIELDS = {"name": ("Scan List Name", "Name"), "members": ("Scan Channel Member",)}

DIGITAL_CONTACT_LAYOUT = Layout(
    header=(
        "No.", "Radio ID", "Callsign", "Name", "City", "State", "Country", "Remarks",
        "Call Type", "Call Alert",
    ),
    defaults={"Call Type": "Private Call", "Call Alert": "None"},
)

ROAMING_CHANNEL_LAYOUT = Layout(
    header=("No.", "Receive Frequency", "Transmit Frequency", "Color Code", "Slot", "Name"),
    defaults={"Color Code": "1", "Slot": "Slot1"},
)
ROAMING_CHANNEL_FIELDS = {
    "name": ("Name", "Channel Name"),
    "rx_frequency": ("Receive Frequency", "RX Frequency"),
    "tx_frequency": ("Transmit Frequency", "TX Frequency"),
    "color_code": ("Color Code",),
    "time_slot": ("Slot", "Time Slot"),
}

ROAMING_ZONE_LAYOUT = Layout(header=("No.", "Name", "Roaming Channel Member"))
ROAMING_ZONE_FIELDS = {"name": ("Name", "Zone Name"), "members": ("Roaming Channel Member",)}

_CHANNEL_TYPES = {
    "d-digital": ChannelType.DMR,
    "a-analog": ChannelType.ANALOG,
    "d+a tx d": ChannelType.MIXED,
    "a+d tx a": ChannelType.MIXED,
}

_POWER_WORDS = {"turbo": Power.HIGH, "middle": Power.MID}
_TX_PERMITS = {"Always", "ChannelFree", "Same Color Code", "Different Color Code", "Off"}
_POWER_OUT = {Power.HIGH: "High", Power.MID: "Middle", Power.LOW: "Low"}

_CALL_TYPE_OUT = {
    ContactType.GROUP: "Group Call",
    ContactType.PRIVATE: "Private Call",
    ContactType.ALL_CALL: "All Call",
}


def _on_off(value: bool) -> str:
    return "On" if value else "Off"


def _blank_none(value: str) -> str:
    return "" if value.strip().lower() in ("none", "off") else value


def _encode_tone_pair(channel: Channel):
    kind = channel.squelch_type
    if kind == SquelchType.TSQL:
        return channel.rx_tone, channel.tx_tone
    if kind == SquelchType.TONE:
        return "", channel.tx_tone
    if kind in (SquelchType.DCS, SquelchType.CROSS):
        rx = channel.rx_tone or format_dcs(channel.rx_dcs or (channel.tx_dcs if kind == SquelchType.DCS else ""))
        tx = channel.tx_tone or format_dcs(channel.tx_dcs or (channel.rx_dcs if kind == SquelchType.DCS else ""))
        return rx, tx
    return "", ""


class AnyToneCodec:
    """AnyTone AT-D890UV CPS CSV files."""

    name = "at890"
    signature = ("No.", "Channel Name", "Receive Frequency", "Transmit Frequency", "Channel Type")
    write_options = WRITE_OPTIONS

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

            channel_type = _CHANNEL_TYPES.get(index.get(row, "channel_type").lower(), ChannelType.ANALOG)
            mode_token = "analog" if channel_type == ChannelType.ANALOG else (
                "mixed" if channel_type == ChannelType.MIXED else "dmr"
            )
            classify_mode(mode_token).apply(channel)
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

            channel.tx_contact = _blank_none(index.get(row, "tx_contact"))
            channel.rx_group = _blank_none(index.get(row, "rx_group"))
            channel.scan_list = _blank_none(index.get(row, "scan_list"))
            channel.tx_permit = index.get(row, "tx_permit") or "Always"
            if channel.protocol == Protocol.DMR:
                channel.color_code = parse_int(index.get(row, "color_code")) or 0
                channel.time_slot = parse_time_slot(index.get(row, "time_slot")) or 1
            channel.talkaround = parse_bool(index.get(row, "talkaround"))
            channel.work_alone = parse_bool(index.get(row, "work_alone"))
            channel.auto_scan = parse_bool(index.get(row, "auto_scan"))
            channel.aprs_receive = parse_bool(index.get(row, "aprs_receive"))
            result.records.append(channel)
        logger.debug("at890 decode: %d channels, %d skipped", len(result.records), len(result.errors))
        return result

    def encode(self, channels: Iterable[Channel], contacts: Optional[Mapping[str, Contact]] = None) -> RawTable:
        """Encode channels; ``contacts`` maps talkgroup name to Contact for the ID columns."""
        contacts = contacts or {}
        rows = []
        for i, channel in enumerate(channels, start=1):
            digital = channel.protocol == Protocol.DMR
            if channel.channel_type == ChannelType.MIXED:
                channel_type = "D+A TX D"
            else:
                channel_type = "D-Digital" if digital else "A-Analog"
            decode_tone, encode_tone = _encode_tone_pair(channel)
            values = {
                "No.": i,
                "Channel Name": channel.name,
                "Receive Frequency": format_frequency(channel.rx_frequency),
                "Transmit Frequency": format_frequency(channel.tx_frequency),
                "Channel Type": channel_type,
                "Transmit Power": _POWER_OUT.get(channel.power, "High"),
                "Band Width": f"{channel.bandwidth}K" if channel.bandwidth else "",
                "CTCSS/DCS Decode": decode_tone,
                "CTCSS/DCS Encode": encode_tone,
                "Contact/Talk Group": channel.tx_contact,
                "Radio ID": "1" if digital else "",
                "Busy Lock/TX Permit": channel.tx_permit if channel.tx_permit in _TX_PERMITS else "Always",
                "Squelch Mode": "CTCSS/DCS" if decode_tone else "Carrier",
                "Scan List": channel.scan_list,
                "Receive Group List": channel.rx_group,
                "Talk Around(Simplex)": _on_off(channel.talkaround),
                "Work Alone": _on_off(channel.work_alone),
                "APRS RX": _on_off(channel.aprs_receive),
                "Auto Scan": "1" if channel.auto_scan else "0",
            }
            if digital:
                values["RX Color Code"] = channel.color_code
                values["Slot"] = channel.time_slot or 1
            contact = contacts.get(channel.tx_contact)
            if contact is not None:
                values["Contact/Talk Group Call Type"] = _CALL_TYPE_OUT.get(contact.call_type, "Group Call")
                values["Contact/Talk Group TG/DMR ID"] = contact.dmr_id
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
            {
                "No.": i,
                "Radio ID": c.dmr_id,
                "Name": c.name,
                "Call Type": _CALL_TYPE_OUT.get(c.call_type),
            }
            for i, c in enumerate(contacts, start=1)
        )

    def decode_directory(self, table: RawTable) -> Decoded:
        return decode_directory_table(table)

    def encode_directory(self, contacts: Iterable[DirectoryContact]) -> RawTable:
        return DIGITAL_CONTACT_LAYOUT.table(
            {
                "No.": i,
                "Radio ID": c.dmr_id,
                "Callsign": c.callsign,
                "Name": c.name,
                "City": c.city,
                "State": c.state,
                "Country": c.country,
                "Remarks": c.remarks,
            }
            for i, c in enumerate(contacts, start=1)
        )

    # ------------------------------------------------------------------
    # Zones / scan lists
    # ------------------------------------------------------------------

    def decode_zones(self, table: RawTable) -> Decoded:
        return decode_collections(table, ZONE_FIELDS, Zone)

    def encode_zones(self, zones: Iterable[Zone], channels: Mapping[str, Channel]) -> RawTable:
        """``channels`` maps channel name to Channel for the frequency columns."""
        rows = []
        for i, zone in enumerate(zones, start=1):
            members = [channels[name] for name in zone.members if name in channels]
            values = {
                "No.": i,
                "Zone Name": zone.name,
                "Zone Channel Member": "|".join(c.name for c in members),
                "Zone Channel Member RX Frequency": "|".join(
                    format_frequency(c.rx_frequency) for c in members
                ),
                "Zone Channel Member TX Frequency": "|".join(
                    format_frequency(c.tx_frequency) for c in members
                ),
            }
            if members:
                a_channel = members[0]
                b_channel = members[1] if len(members) > 1 else members[0]
                values.update(
                    {
                        "A Channel": a_channel.name,
                        "A Channel RX Frequency": format_frequency(a_channel.rx_frequency),
                        "A Channel TX Frequency": format_frequency(a_channel.tx_frequency),
                        "B Channel": b_channel.name,
                        "B Channel RX Frequency": format_frequency(b_channel.rx_frequency),
                        "B Channel TX Frequency": format_frequency(b_channel.tx_frequency),
                    }
                )
            rows.append(values)
        return ZONE_LAYOUT.table(rows)

    def decode_scan_lists(self, table: RawTable) -> Decoded:
        return decode_collections(table, SCAN_LIST_FIELDS, ScanList)

    def encode_scan_lists(self, scan_lists: Iterable[ScanList], channels: Mapping[str, Channel]) -> RawTable:
        rows = []
        for i, scan_list in enumerate(scan_lists, start=1):
            members = [channels[name] for name in scan_list.members if name in channels]
            rows.append(
                {
                    "No.": i,
                    "Scan List Name": scan_list.name,
                    "Scan Channel Member": "|".join(c.name for c in members),
                    "Scan Channel Member RX Frequency": "|".join(
                        format_frequency(c.rx_frequency) for c in members
                    ),
                    "Scan Channel Member TX Frequency": "|".join(
                        format_frequency(c.tx_frequency) for c in members
                    ),
                }
            )
        return SCAN_LIST_LAYOUT.table(rows)

    # ------------------------------------------------------------------
    # Roaming
    # ------------------------------------------------------------------

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
                "Receive Frequency": format_frequency(c.rx_frequency),
                "Transmit Frequency": format_frequency(c.tx_frequency),
                "Color Code": c.color_code,
                "Slot": f"Slot{c.time_slot or 1}",
                "Name": c.name,
            }
            for i, c in enumerate(channels, start=1)
        )

    def decode_roaming_zones(self, table: RawTable) -> Decoded:
        return decode_collections(table, ROAMING_ZONE_FIELDS, RoamingZone)

    def encode_roaming_zones(self, zones: Iterable[RoamingZone]) -> RawTable:
        return ROAMING_ZONE_LAYOUT.table(
            {"No.": i, "Name": z.name, "Roaming Channel Member": "|".join(z.members)}
            for i, z in enumerate(zones, start=1)
        )


__all__ = ["AnyToneCodec", "CHANNEL_HEADER", "WRITE_OPTIONS"]
