from codeplugs.codecs import read_table, write_table
from codeplugs.codecs.anytone import CHANNEL_HEADER, WRITE_OPTIONS, AnyToneCodec
from codeplugs.models.enums import ChannelType, ContactType, Power, Protocol, SquelchType
from codeplugs.models.records import Channel, Contact, DirectoryContact, RoamingChannel, RoamingZone, ScanList, Zone


def _dmr(name, rx, tx, cc=1, slot=1, contact=""):
    return Channel(
        name=name, rx_frequency=rx, tx_frequency=tx, mode="DMR", channel_type=ChannelType.DMR,
        protocol=Protocol.DMR, bandwidth="12.5", color_code=cc, time_slot=slot, tx_contact=contact,
    )


def test_channels_written_quoted_with_crlf():
    codec = AnyToneCodec()
    text = write_table(codec.encode([Channel(name="Simplex", rx_frequency=146.52, tx_frequency=146.52)]),
                       **WRITE_OPTIONS)
    lines = text.split("\r\n")
    assert lines[0].startswith('"No.","Channel Name","Receive Frequency"')
    assert lines[1].startswith('"1","Simplex","146.52000","146.52000","A-Analog"')
    assert lines[0].count(",") == len(CHANNEL_HEADER) - 1
    assert "\n" not in text.replace("\r\n", "")


def test_channel_round_trip():
    originals = [
        Channel(name="Rptr", rx_frequency=146.94, tx_frequency=146.34, squelch_type=SquelchType.TSQL,
                rx_tone="88.5", tx_tone="88.5", power=Power.MID, bandwidth="25", talkaround=True),
        Channel(name="Tone", rx_frequency=147.0, tx_frequency=147.6, squelch_type=SquelchType.TONE,
                tx_tone="100.0", power=Power.LOW, bandwidth="25"),
        Channel(name="DCS", rx_frequency=440.1, tx_frequency=445.1, squelch_type=SquelchType.DCS,
                rx_dcs="023N", tx_dcs="023N", bandwidth="12.5"),
        _dmr("TG91", 442.0, 447.0, cc=3, slot=2, contact="Worldwide"),
    ]
    codec = AnyToneCodec()
    contacts = {"Worldwide": Contact(name="Worldwide", dmr_id=91)}
    table = codec.encode(originals, contacts)
    row = dict(zip(table.header, table.rows[3]))
    assert row["Contact/Talk Group TG/DMR ID"] == "91"
    assert row["Contact/Talk Group Call Type"] == "Group Call"
    assert row["Transmit Power"] == "High"

    decoded, errors = codec.decode(read_table(write_table(table, **WRITE_OPTIONS)))
    assert not errors
    for original, back in zip(originals, decoded):
        assert back.name == original.name
        assert back.tx_frequency == original.tx_frequency
        assert back.squelch_type == original.squelch_type
        assert (back.rx_tone, back.tx_tone) == (original.rx_tone, original.tx_tone)
        assert (back.rx_dcs, back.tx_dcs) == (original.rx_dcs, original.tx_dcs)
        assert back.power == original.power
        assert back.bandwidth == original.bandwidth
    assert decoded[0].talkaround
    dmr = decoded[3]
    assert dmr.protocol == Protocol.DMR
    assert (dmr.color_code, dmr.time_slot, dmr.tx_contact) == (3, 2, "Worldwide")


def test_receive_only_tone_squelch_keeps_encode_off():
    codec = AnyToneCodec()
    original = Channel(name="Listen", rx_frequency=162.55, tx_frequency=162.55,
                       squelch_type=SquelchType.TSQL, rx_tone="88.5", bandwidth="25")
    table = codec.encode([original])
    row = dict(zip(table.header, table.rows[0]))
    assert (row["CTCSS/DCS Decode"], row["CTCSS/DCS Encode"]) == ("88.5", "Off")

    decoded, errors = codec.decode(read_table(write_table(table, **WRITE_OPTIONS)))
    assert not errors
    assert decoded[0].squelch_type == SquelchType.TSQL
    assert (decoded[0].rx_tone, decoded[0].tx_tone) == ("88.5", "")


def test_single_member_zone_repeats_member_as_a_and_b():
    channels = {"Only": Channel(name="Only", rx_frequency=146.52, tx_frequency=146.52)}
    table = AnyToneCodec().encode_zones([Zone(name="Z", members=["Only", "Missing"])], channels)
    row = dict(zip(table.header, table.rows[0]))
    assert row["Zone Channel Member"] == "Only"
    assert row["A Channel"] == row["B Channel"] == "Only"
    assert row["Zone Hide "] == "0"


def test_zone_and_scan_list_round_trip():
    codec = AnyToneCodec()
    channels = {
        name: Channel(name=name, rx_frequency=146.0 + i, tx_frequency=146.0 + i)
        for i, name in enumerate(["A", "B", "C"])
    }
    zones, _ = codec.decode_zones(read_table(write_table(
        codec.encode_zones([Zone(name="Local", members=["C", "A", "B"])], channels), **WRITE_OPTIONS
    )))
    assert [(z.name, z.members) for z in zones] == [("Local", ["C", "A", "B"])]

    scans, _ = codec.decode_scan_lists(read_table(write_table(
        codec.encode_scan_lists([ScanList(name="Scan", members=["B", "A"])], channels), **WRITE_OPTIONS
    )))
    assert [(s.name, s.members) for s in scans] == [("Scan", ["B", "A"])]


def test_talkgroups_directory_and_roaming():
    codec = AnyToneCodec()
    tgs, _ = codec.decode_talkgroups(read_table(write_table(codec.encode_talkgroups([
        Contact(name="Worldwide", dmr_id=91),
        Contact(name="Bob", dmr_id=3100001, call_type=ContactType.PRIVATE),
    ]))))
    assert [(c.name, c.dmr_id, c.call_type) for c in tgs] == [
        ("Worldwide", 91, ContactType.GROUP),
        ("Bob", 3100001, ContactType.PRIVATE),
    ]

    directory, _ = codec.decode_directory(read_table(write_table(codec.encode_directory([
        DirectoryContact(dmr_id=3100001, callsign="N0CALL", name="Bob Smith", city="Town", country="USA"),
    ]))))
    assert (directory[0].dmr_id, directory[0].callsign, directory[0].name) == (3100001, "N0CALL", "Bob Smith")

    roaming, _ = codec.decode_roaming_channels(read_table(write_table(codec.encode_roaming_channels([
        RoamingChannel(name="R1", rx_frequency=439.5, tx_frequency=430.5, color_code=2, time_slot=2),
    ]))))
    assert (roaming[0].name, roaming[0].tx_frequency, roaming[0].color_code, roaming[0].time_slot) == (
        "R1", 430.5, 2, 2,
    )

    zones, _ = codec.decode_roaming_zones(read_table(write_table(
        codec.encode_roaming_zones([RoamingZone(name="RZ", members=["R1"])])
    )))
    assert zones[0].members == ["R1"]
