"""CHIRP-style channel CSV.

CHIRP describes squelch with a four-way column group: the ``Tone`` mode
tag, ``rToneFreq`` (transmit tone), ``cToneFreq`` (tone squelch),
``DtcsCode``/``RxDtcsCode`` with a two-letter ``DtcsPolarity``, and a
``CrossMode`` descriptor for asymmetric setups. CHIRP has no notion of
zones or talkgroups, and DMR channels are not exported.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..models.enums import Protocol, SquelchType
from ..models.records import Channel
from ..normalizers import (
    Squelch,
    classify_mode,
    normalize_dcs,
    parse_frequency,
    parse_power,
    power_to_watts,
    reconcile_squelch,
    resolve_tx_frequency,
    split_duplex,
)
from .base import Decoded, HeaderIndex, Layout, RawTable, format_frequency

logger = logging.getLogger(__name__)

CHIRP_FIELDS = {
    "location": ("Location",),
    "name": ("Name",),
    "frequency": ("Frequency",),
    "duplex": ("Duplex",),
    "offset": ("Offset",),
    "tone_mode": ("Tone",),
    "r_tone": ("rToneFreq",),
    "c_tone": ("cToneFreq",),
    "dtcs": ("DtcsCode",),
    "rx_dtcs": ("RxDtcsCode",),
    "dtcs_polarity": ("DtcsPolarity",),
    "cross_mode": ("CrossMode",),
    "mode": ("Mode",),
    "power": ("Power",),
    "comment": ("Comment",),
}

CHIRP_LAYOUT = Layout(
    header=(
        "Location", "Name", "Frequency", "Duplex", "Offset", "Tone",
        "rToneFreq", "cToneFreq", "DtcsCode", "DtcsPolarity", "RxDtcsCode",
        "CrossMode", "Mode", "TStep", "Skip", "Power", "Comment", "URCALL",
        "RPT1CALL", "RPT2CALL", "DVCODE",
    ),
    defaults={
        "Offset": "0.000000",
        "rToneFreq": "88.5",
        "cToneFreq": "88.5",
        "DtcsCode": "023",
        "DtcsPolarity": "NN",
        "RxDtcsCode": "023",
        "CrossMode": "Tone->Tone",
        "Mode": "FM",
        "TStep": "5.00",
        "Power": "50W",
    },
)

_EXPORTABLE = {Protocol.FM, Protocol.AM, Protocol.DSTAR, Protocol.FUSION}


def _dcs_with_polarity(code: str, polarity: str) -> str:
    if not code.strip():
        return ""
    return normalize_dcs(code.strip() + ("I" if polarity.upper() == "R" else "N"))


def decode_chirp_squelch(header: Sequence[str], row: Sequence[str]) -> Squelch:
    """Reconcile the CHIRP tone column group of one row."""
    index = HeaderIndex(header, CHIRP_FIELDS)
    tag = index.get(row, "tone_mode") or "None"
    r_tone = index.get(row, "r_tone")
    c_tone = index.get(row, "c_tone")
    dtcs = index.get(row, "dtcs")
    rx_dtcs = index.get(row, "rx_dtcs") or dtcs
    polarity = (index.get(row, "dtcs_polarity") or "NN").upper()
    tx_pol = polarity[:1] or "N"
    rx_pol = polarity[1:2] or tx_pol

    lowered = tag.lower()
    if lowered == "tone":
        return reconcile_squelch(mode=tag, tx_tone=r_tone)
    if lowered == "tsql":
        return reconcile_squelch(mode=tag, rx_tone=c_tone, tx_tone=c_tone)
    if lowered == "dtcs":
        return reconcile_squelch(
            mode=tag,
            rx_dcs=_dcs_with_polarity(dtcs, rx_pol),
            tx_dcs=_dcs_with_polarity(dtcs, tx_pol),
        )
    if lowered == "cross":
        return reconcile_squelch(
            mode=tag,
            rx_tone=c_tone,
            tx_tone=r_tone,
            rx_dcs=_dcs_with_polarity(rx_dtcs, rx_pol),
            tx_dcs=_dcs_with_polarity(dtcs, tx_pol),
            cross_mode=index.get(row, "cross_mode"),
        )
    return Squelch()


def _chirp_mode(channel: Channel) -> str:
    if channel.protocol == Protocol.AM:
        return "AM"
    if channel.protocol == Protocol.DSTAR:
        return "DV"
    if channel.protocol == Protocol.FUSION:
        return "DN"
    return "NFM" if channel.bandwidth == "12.5" else "FM"


def _split_dcs(code: str):
    normalized = normalize_dcs(code)
    if not normalized:
        return "", "N"
    return normalized[:3], "R" if normalized[3] == "I" else "N"


def _encode_squelch(channel: Channel) -> dict:
    kind = channel.squelch_type
    if kind == SquelchType.TONE and channel.tx_tone:
        return {"Tone": "Tone", "rToneFreq": channel.tx_tone}
    if kind == SquelchType.TSQL and channel.rx_tone:
        tx = channel.tx_tone
        if tx == channel.rx_tone:
            return {"Tone": "TSQL", "cToneFreq": channel.rx_tone}
        # receive-only tone squelch is "->Tone"
        return {
            "Tone": "Cross",
            "CrossMode": "Tone->Tone" if tx else "->Tone",
            "rToneFreq": tx,
            "cToneFreq": channel.rx_tone,
        }
    if kind == SquelchType.DCS and (channel.tx_dcs or channel.rx_dcs):
        tx_code, tx_pol = _split_dcs(channel.tx_dcs or channel.rx_dcs)
        rx_code, rx_pol = _split_dcs(channel.rx_dcs or channel.tx_dcs)
        values = {
            "DtcsCode": tx_code,
            "RxDtcsCode": rx_code,
            "DtcsPolarity": tx_pol + rx_pol,
        }
        if tx_code == rx_code:
            values["Tone"] = "DTCS"
        else:
            values.update({"Tone": "Cross", "CrossMode": "DTCS->DTCS"})
        return values
    if kind == SquelchType.CROSS:
        tx_side = "Tone" if channel.tx_tone else ("DTCS" if channel.tx_dcs else "")
        rx_side = "Tone" if channel.rx_tone else ("DTCS" if channel.rx_dcs else "")
        tx_code, tx_pol = _split_dcs(channel.tx_dcs)
        rx_code, rx_pol = _split_dcs(channel.rx_dcs)
        return {
            "Tone": "Cross",
            "CrossMode": f"{tx_side}->{rx_side}",
            "rToneFreq": channel.tx_tone,
            "cToneFreq": channel.rx_tone,
            "DtcsCode": tx_code,
            "RxDtcsCode": rx_code,
            "DtcsPolarity": tx_pol + rx_pol,
        }
    return {"Tone": ""}


class ChirpCodec:
    name = "chirp"
    signature = ("Location", "Frequency", "Duplex", "Tone")

    def decode(self, table: RawTable) -> Decoded:
        index = HeaderIndex(table.header, CHIRP_FIELDS)
        result = Decoded()
        for line, row in table.numbered():
            rx = parse_frequency(index.get(row, "frequency"))
            if rx is None:
                result.skip(line, "missing or invalid frequency")
                continue
            offset = parse_frequency(index.get(row, "offset"))
            channel = Channel(
                name=index.get(row, "name") or format_frequency(rx, 4),
                rx_frequency=rx,
                tx_frequency=resolve_tx_frequency(rx, index.get(row, "duplex"), offset),
                power=parse_power(index.get(row, "power")),
                notes=index.get(row, "comment"),
            )
            classify_mode(index.get(row, "mode")).apply(channel)
            decode_chirp_squelch(table.header, row).apply(channel)
            result.records.append(channel)
        logger.debug("chirp decode: %d channels, %d skipped", len(result.records), len(result.errors))
        return result

    def encode(self, channels: Iterable[Channel]) -> RawTable:
        rows = []
        location = 0
        for channel in channels:
            if channel.protocol not in _EXPORTABLE:
                continue
            location += 1
            duplex, offset = split_duplex(channel.rx_frequency, channel.tx_frequency)
            values = {
                "Location": location,
                "Name": channel.name,
                "Frequency": format_frequency(channel.rx_frequency, 6),
                "Duplex": duplex,
                "Offset": format_frequency(offset, 6),
                "Mode": _chirp_mode(channel),
                "Power": power_to_watts(channel.power),
                "Comment": channel.notes,
            }
            values.update(_encode_squelch(channel))
            rows.append(values)
        return CHIRP_LAYOUT.table(rows)


__all__ = ["ChirpCodec", "CHIRP_FIELDS", "CHIRP_LAYOUT", "decode_chirp_squelch"]
