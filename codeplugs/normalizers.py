"""Value normalizers shared by every dialect codec.

Small pure helpers: frequency rounding and duplex resolution, tone and
DCS parsing, squelch reconciliation, power mapping and mode
classification.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .models.enums import ChannelType, Power, Protocol, SquelchType
from .models.records import Channel

FREQUENCY_DECIMALS = 6
DUPLEX_TOLERANCE = 1e-6

_TRUE_VALUES = {"1", "true", "yes", "on", "y"}
_NONE_TOKENS = {"", "off", "none", "no", "n/a"}


# ------------------------------------------------------------------
# Scalars
# ------------------------------------------------------------------


def parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        number = parse_float(text)
        if number is not None and number.is_integer():
            return int(number)
        return None


def parse_bool(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in _TRUE_VALUES


def format_bool(value: bool) -> str:
    return "1" if value else "0"


def parse_time_slot(value: Optional[str]) -> int:
    """Parse ``"Slot 2"``, ``"Slot1"``, ``"TS2"`` or ``"2"`` to 1/2 (0 if unknown)."""
    match = re.search(r"\d+", str(value or ""))
    if not match:
        return 0
    slot = int(match.group())
    return slot if slot in (1, 2) else 0


# ------------------------------------------------------------------
# Frequencies
# ------------------------------------------------------------------


def round_frequency(value: float) -> float:
    """Round a frequency in MHz to six decimals to drop float artifacts."""
    return round(float(value), FREQUENCY_DECIMALS)


def parse_frequency(value: Optional[str]) -> Optional[float]:
    text = str(value or "").strip()
    if text.lower().endswith("mhz"):
        text = text[:-3].strip()
    number = parse_float(text)
    if number is None:
        return None
    return round_frequency(number)


def resolve_tx_frequency(rx: float, duplex: Optional[str], offset: Optional[float]) -> float:
    """Apply a duplex direction and offset to a receive frequency."""
    direction = (duplex or "").strip().lower()
    shift = offset or 0.0
    if direction == "+":
        tx = rx + shift
    elif direction in ("-", "−"):
        tx = rx - shift
    elif direction == "split" and shift:
        tx = shift
    else:
        tx = rx
    return round_frequency(tx)


def split_duplex(rx: float, tx: float) -> Tuple[str, float]:
    """Inverse of :func:`resolve_tx_frequency`: return ``(duplex, offset)``."""
    diff = round_frequency(tx - rx)
    if abs(diff) < DUPLEX_TOLERANCE:
        return "", 0.0
    if diff > 0:
        return "+", diff
    return "-", -diff


# ------------------------------------------------------------------
# Tones
# ------------------------------------------------------------------


def parse_ctcss(value: Optional[str]) -> Optional[float]:
    """Parse a CTCSS tone value to float Hz."""
    text = str(value or "").strip()
    if text.lower().endswith("hz"):
        text = text[:-2].strip()
    tone = parse_float(text)
    if tone is None or not 33.0 <= tone <= 300.0:
        return None
    return tone


def normalize_ctcss(value: Optional[str]) -> str:
    """Return a tone as ``"88.5"``, or ``""`` when absent or unparsable."""
    tone = parse_ctcss(value)
    return f"{tone:.1f}" if tone is not None else ""


_DCS_RE = re.compile(r"^D?(\d{1,3})([NIR])?$", re.IGNORECASE)


def normalize_dcs(value: Optional[str]) -> str:
    """Return a DCS code as ``"023N"`` / ``"023I"``, or ``""``."""
    text = str(value or "").strip().upper().replace(" ", "")
    match = _DCS_RE.match(text)
    if not match:
        return ""
    polarity = (match.group(2) or "N").upper()
    if polarity == "R":
        polarity = "I"
    return f"{int(match.group(1)):03d}{polarity}"


def format_dcs(code: str, prefix: str = "D") -> str:
    """Render a canonical DCS code with a vendor prefix (``"D023N"``)."""
    normalized = normalize_dcs(code)
    return f"{prefix}{normalized}" if normalized else ""


def parse_tone(value: Optional[str]) -> Tuple[str, str]:
    """Classify a combined CTCSS/DCS column value.

    Returns ``("tone", "88.5")``, ``("dcs", "023N")`` or ``("", "")``.
    A value is DCS only when it begins with the letter ``D``.
    """
    text = str(value or "").strip()
    if text.lower() in _NONE_TOKENS:
        return "", ""
    if text[:1].upper() == "D":
        code = normalize_dcs(text)
        return ("dcs", code) if code else ("", "")
    tone = normalize_ctcss(text)
    return ("tone", tone) if tone else ("", "")


# ------------------------------------------------------------------
# Squelch reconciliation
# ------------------------------------------------------------------


@dataclass(slots=True)
class Squelch:
    squelch_type: SquelchType = SquelchType.NONE
    rx_tone: str = ""
    tx_tone: str = ""
    rx_dcs: str = ""
    tx_dcs: str = ""

    def apply(self, channel: Channel) -> Channel:
        channel.squelch_type = self.squelch_type
        channel.rx_tone = self.rx_tone
        channel.tx_tone = self.tx_tone
        channel.rx_dcs = self.rx_dcs
        channel.tx_dcs = self.tx_dcs
        return channel

    @classmethod
    def of(cls, channel: Channel) -> "Squelch":
        return cls(
            squelch_type=channel.squelch_type,
            rx_tone=channel.rx_tone,
            tx_tone=channel.tx_tone,
            rx_dcs=channel.rx_dcs,
            tx_dcs=channel.tx_dcs,
        )


def split_cross_mode(cross_mode: Optional[str]) -> Tuple[str, str]:
    """Split ``"Tone->DTCS"`` into ``("tone", "dcs")`` as (TX side, RX side)."""
    text = (cross_mode or "").replace("→", "->").strip()
    if "->" not in text:
        return "", ""
    tx_side, rx_side = text.split("->", 1)

    def kind(side: str) -> str:
        side = side.strip().lower()
        if side == "tone":
            return "tone"
        if side in ("dtcs", "dcs"):
            return "dcs"
        return ""

    return kind(tx_side), kind(rx_side)


def reconcile_squelch(
    mode: Optional[str] = "",
    rx_tone: Optional[str] = "",
    tx_tone: Optional[str] = "",
    rx_dcs: Optional[str] = "",
    tx_dcs: Optional[str] = "",
    cross_mode: Optional[str] = "",
) -> Squelch:
    """Reduce whatever squelch fields a dialect supplies to one squelch mode.

    ``mode`` is the dialect's tone-mode tag when it has one (``Tone``,
    ``TSQL``, ``DTCS``, ``Cross``, ``None``); an empty tag lets the
    candidates alone decide. Priority: RX tone -> TSQL, TX tone -> Tone,
    any DCS -> DCS (symmetric fill), otherwise None.
    """
    rx_t = normalize_ctcss(rx_tone)
    tx_t = normalize_ctcss(tx_tone)
    rx_d = normalize_dcs(rx_dcs)
    tx_d = normalize_dcs(tx_dcs)

    tag = (mode or "").strip().lower()
    if tag in ("none", "off"):
        return Squelch()
    if tag == "cross":
        tx_kind, rx_kind = split_cross_mode(cross_mode)
        tx_t = tx_t if tx_kind == "tone" else ""
        tx_d = tx_d if tx_kind == "dcs" else ""
        rx_t = rx_t if rx_kind == "tone" else ""
        rx_d = rx_d if rx_kind == "dcs" else ""
    elif tag == "tone":
        rx_t, rx_d, tx_d = "", "", ""
    elif tag == "tsql":
        rx_d, tx_d = "", ""
    elif tag in ("dtcs", "dcs"):
        rx_t, tx_t = "", ""

    if rx_t:
        return Squelch(SquelchType.TSQL, rx_tone=rx_t, tx_tone=tx_t)
    if tx_t:
        return Squelch(SquelchType.TONE, tx_tone=tx_t)
    if rx_d or tx_d:
        return Squelch(SquelchType.DCS, rx_dcs=rx_d or tx_d, tx_dcs=tx_d or rx_d)
    return Squelch()


# ------------------------------------------------------------------
# Power
# ------------------------------------------------------------------

POWER_WATTS = {Power.HIGH: "50W", Power.MID: "25W", Power.LOW: "5W"}


def parse_power(value: Optional[str]) -> Power:
    """Map a wattage or level name to a qualitative power level."""
    text = str(value or "").strip()
    for level in Power:
        if text.lower() == level.value.lower():
            return level
    number = text[:-1] if text.lower().endswith("w") else text
    watts = parse_float(number)
    if watts is None:
        return Power.HIGH
    if watts > 25:
        return Power.HIGH
    if watts > 5:
        return Power.MID
    return Power.LOW


def power_to_watts(power: Power | str) -> str:
    level = power if isinstance(power, Power) else parse_power(power)
    return POWER_WATTS[level]


# ------------------------------------------------------------------
# Mode / bandwidth
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModeInfo:
    mode: str
    channel_type: ChannelType
    protocol: Protocol
    bandwidth: str

    def apply(self, channel: Channel) -> Channel:
        channel.mode = self.mode
        channel.channel_type = self.channel_type
        channel.protocol = self.protocol
        channel.bandwidth = self.bandwidth
        return channel


_ANALOG_FM = ModeInfo("FM", ChannelType.ANALOG, Protocol.FM, "25")
_DMR = ModeInfo("DMR", ChannelType.DMR, Protocol.DMR, "12.5")
_FUSION = ModeInfo("DN", ChannelType.FUSION, Protocol.FUSION, "12.5")
_DSTAR = ModeInfo("DV", ChannelType.DSTAR, Protocol.DSTAR, "12.5")

_MODE_TABLE = {
    "": _ANALOG_FM,
    "fm": _ANALOG_FM,
    "analog": _ANALOG_FM,
    "nfm": ModeInfo("FM", ChannelType.ANALOG, Protocol.FM, "12.5"),
    "am": ModeInfo("AM", ChannelType.ANALOG, Protocol.AM, "25"),
    "dmr": _DMR,
    "digital": _DMR,
    "dn": _FUSION,
    "fusion": _FUSION,
    "c4fm": _FUSION,
    "ysf": _FUSION,
    "dv": _DSTAR,
    "dstar": _DSTAR,
    "d-star": _DSTAR,
    "nxdn": ModeInfo("NXDN", ChannelType.NXDN, Protocol.NXDN, "12.5"),
    "p25": ModeInfo("P25", ChannelType.P25, Protocol.P25, "12.5"),
    "mixed": ModeInfo("DMR", ChannelType.MIXED, Protocol.DMR, "12.5"),
}


def classify_mode(token: Optional[str]) -> ModeInfo:
    """Map a mode token to (mode, type, protocol, default bandwidth)."""
    return _MODE_TABLE.get(str(token or "").strip().lower(), _ANALOG_FM)


def normalize_bandwidth(value: Optional[str], default: str = "") -> str:
    """Normalise ``"12.5KHz"`` / ``"25K"`` / ``"12.5"`` to ``"12.5"`` / ``"25"``."""
    text = str(value or "").strip().lower()
    for suffix in ("khz", "k"):
        if text.endswith(suffix):
            text = text[: -len(suffix)].strip()
            break
    number = parse_float(text)
    if number is None or number <= 0:
        return default
    return str(int(number)) if number.is_integer() else f"{number:g}"


def fix_bandwidth(channel: Channel) -> bool:
    """Set the conventional bandwidth for the channel type; return True if changed."""
    target = "25" if channel.channel_type == ChannelType.ANALOG else "12.5"
    if channel.bandwidth == target:
        return False
    channel.bandwidth = target
    return True


__all__ = [
    "Squelch",
    "ModeInfo",
    "POWER_WATTS",
    "parse_float",
    "parse_int",
    "parse_bool",
    "format_bool",
    "parse_time_slot",
    "round_frequency",
    "parse_frequency",
    "resolve_tx_frequency",
    "split_duplex",
    "parse_ctcss",
    "normalize_ctcss",
    "normalize_dcs",
    "format_dcs",
    "parse_tone",
    "split_cross_mode",
    "reconcile_squelch",
    "parse_power",
    "power_to_watts",
    "classify_mode",
    "normalize_bandwidth",
    "fix_bandwidth",
]
