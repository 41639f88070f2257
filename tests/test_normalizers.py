import itertools

import pytest

from codeplugs.models.enums import ChannelType, Power, Protocol, SquelchType
from codeplugs.models.records import Channel
from codeplugs.normalizers import (
    classify_mode,
    fix_bandwidth,
    normalize_bandwidth,
    normalize_ctcss,
    normalize_dcs,
    parse_power,
    parse_time_slot,
    parse_tone,
    power_to_watts,
    reconcile_squelch,
    resolve_tx_frequency,
    round_frequency,
    split_duplex,
)


@pytest.mark.parametrize(
    "raw, expected",
    [("50W", Power.HIGH), ("10W", Power.MID), ("3W", Power.LOW), ("", Power.HIGH)],
)
def test_power_mapping(raw, expected):
    assert parse_power(raw) == expected


def test_power_boundaries_and_names():
    assert parse_power("25W") == Power.MID
    assert parse_power("5") == Power.LOW
    assert parse_power("Mid") == Power.MID
    assert parse_power("low") == Power.LOW
    assert parse_power("turbo") == Power.HIGH
    assert power_to_watts(Power.HIGH) == "50W"
    assert power_to_watts("Mid") == "25W"
    assert power_to_watts(Power.LOW) == "5W"


def test_duplex_resolution_rounds():
    assert resolve_tx_frequency(146.52, "+", 0.6) == 147.12
    assert resolve_tx_frequency(147.12, "-", 0.6) == 146.52
    assert resolve_tx_frequency(442.1, "−", 5.0) == 437.1
    assert resolve_tx_frequency(146.52, "", 0.6) == 146.52
    assert resolve_tx_frequency(146.52, "off", 0.6) == 146.52
    assert resolve_tx_frequency(146.52, "split", 147.0) == 147.0


def test_split_duplex_inverts_resolution():
    assert split_duplex(146.52, 147.12) == ("+", 0.6)
    assert split_duplex(147.12, 146.52) == ("-", 0.6)
    assert split_duplex(146.52, 146.52) == ("", 0.0)


def test_rounding_is_idempotent():
    value = round_frequency(146.52 + 0.6)
    assert round_frequency(value) == value


def test_tsql_example():
    squelch = reconcile_squelch(rx_tone="88.5", tx_tone="107.2")
    assert squelch.squelch_type == SquelchType.TSQL
    assert squelch.rx_tone == "88.5"
    assert squelch.tx_tone == "107.2"


def test_tsql_rx_only_leaves_tx_empty():
    squelch = reconcile_squelch(rx_tone="100")
    assert squelch.squelch_type == SquelchType.TSQL
    assert squelch.rx_tone == "100.0"
    assert squelch.tx_tone == ""


def test_dcs_is_symmetric_when_one_side_missing():
    squelch = reconcile_squelch(tx_dcs="D23")
    assert squelch.squelch_type == SquelchType.DCS
    assert squelch.rx_dcs == squelch.tx_dcs == "023N"


def test_squelch_reconciliation_is_total():
    allowed = {SquelchType.NONE, SquelchType.TONE, SquelchType.TSQL, SquelchType.DCS}
    for rx_t, tx_t, rx_d, tx_d in itertools.product(("", "88.5"), ("", "100.0"), ("", "023N"), ("", "754I")):
        squelch = reconcile_squelch(rx_tone=rx_t, tx_tone=tx_t, rx_dcs=rx_d, tx_dcs=tx_d)
        assert squelch.squelch_type in allowed
        if rx_t:
            assert squelch.squelch_type == SquelchType.TSQL
        elif tx_t:
            assert squelch.squelch_type == SquelchType.TONE
        elif rx_d or tx_d:
            assert squelch.squelch_type == SquelchType.DCS
        else:
            assert squelch.squelch_type == SquelchType.NONE


def test_cross_mode_decomposes_before_reconciling():
    squelch = reconcile_squelch(
        mode="Cross", rx_tone="88.5", tx_tone="100.0", rx_dcs="023N", tx_dcs="023N",
        cross_mode="DTCS->DTCS",
    )
    assert squelch.squelch_type == SquelchType.DCS
    assert squelch.rx_tone == ""

    squelch = reconcile_squelch(mode="Cross", tx_tone="100.0", rx_dcs="023N", cross_mode="Tone->Tone")
    assert squelch.squelch_type == SquelchType.TONE
    assert squelch.tx_tone == "100.0"


def test_mode_tag_none_wins():
    assert reconcile_squelch(mode="None", rx_tone="88.5").squelch_type == SquelchType.NONE


def test_tone_and_dcs_normalisation():
    assert normalize_ctcss("88.50") == "88.5"
    assert normalize_ctcss("Off") == ""
    assert normalize_dcs("D23") == "023N"
    assert normalize_dcs("D023I") == "023I"
    assert normalize_dcs("754R") == "754I"
    assert normalize_dcs("garbage") == ""
    assert parse_tone("D023N") == ("dcs", "023N")
    assert parse_tone("67") == ("tone", "67.0")
    assert parse_tone("Off") == ("", "")


def test_mode_classification():
    nfm = classify_mode("NFM")
    fm = classify_mode("FM")
    assert nfm.mode == fm.mode == "FM"
    assert (nfm.bandwidth, fm.bandwidth) == ("12.5", "25")
    assert classify_mode("DMR").protocol == Protocol.DMR
    assert classify_mode("DV").channel_type == ChannelType.DSTAR
    assert classify_mode("C4FM").protocol == Protocol.FUSION
    assert classify_mode("P25").protocol == Protocol.P25
    unknown = classify_mode("weird")
    assert (unknown.channel_type, unknown.protocol, unknown.bandwidth) == (ChannelType.ANALOG, Protocol.FM, "25")


def test_bandwidth_helpers():
    assert normalize_bandwidth("12.5KHz") == "12.5"
    assert normalize_bandwidth("25K") == "25"
    assert normalize_bandwidth("", "25") == "25"

    analog = Channel(name="A", bandwidth="12.5")
    digital = Channel(name="D", channel_type=ChannelType.DMR, protocol=Protocol.DMR, bandwidth="25")
    assert fix_bandwidth(analog) and analog.bandwidth == "25"
    assert fix_bandwidth(digital) and digital.bandwidth == "12.5"
    assert not fix_bandwidth(analog)


def test_time_slot():
    assert parse_time_slot("Slot 2") == 2
    assert parse_time_slot("TS1") == 1
    assert parse_time_slot("3") == 0
    assert parse_time_slot("") == 0
