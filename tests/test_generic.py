from codeplugs.codecs import read_table, write_table
from codeplugs.codecs.generic import DB25D_LAYOUT, GenericCodec
from codeplugs.models.enums import ContactType, Power, Protocol, SquelchType
from codeplugs.models.records import Channel, Contact

DB25D = """Z-4,CH mode,CH Name,RX Freq,TX Freq,Power,RX TS,RX CC,Contacts,Bandwidth,RX QT/DQT,TX QT/DQT
1,Analog,W1AW Rptr,146.94000,146.34000,High,,,None,25,88.5,88.5
2,Digital,BM TG91,442.00000,447.00000,Low,Slot 2,3,Worldwide,12.5,Off,Off
3,Analog,,146.52000,146.52000,High,,,,25,,
4,Analog,Bad Freq,abc,146.52000,High,,,,25,,
5,Analog,Tone Only,147.00000,147.60000,Mid,,,,25,Off,100.0
6,Analog,DCS Rptr,440.10000,445.10000,High,,,,25,D023N,D023N
"""


def test_decode_db25d_rows():
    channels, errors = GenericCodec().decode(read_table(DB25D))
    assert [c.name for c in channels] == ["W1AW Rptr", "BM TG91", "Tone Only", "DCS Rptr"]
    assert [e.line for e in errors] == [4, 5]

    rptr, tg91, tone, dcs = channels
    assert rptr.squelch_type == SquelchType.TSQL
    assert rptr.rx_tone == rptr.tx_tone == "88.5"
    assert rptr.tx_frequency == 146.34

    assert tg91.protocol == Protocol.DMR
    assert (tg91.color_code, tg91.time_slot) == (3, 2)
    assert tg91.tx_contact == "Worldwide"
    assert tg91.power == Power.LOW

    assert tone.squelch_type == SquelchType.TONE
    assert tone.tx_tone == "100.0"
    assert dcs.squelch_type == SquelchType.DCS
    assert dcs.rx_dcs == dcs.tx_dcs == "023N"


def test_unknown_columns_ignored_and_bad_fields_degrade():
    text = "Name,Frequency,Offset,Duplex,Mystery,Color Code\nSimplex,146.52,,,,x\nRptr,146.94,0.6,-,zzz,\n"
    channels, errors = GenericCodec().decode(read_table(text))
    assert not errors
    assert channels[0].color_code == 0
    assert channels[1].tx_frequency == 146.34


def test_round_trip_keeps_tracked_fields():
    originals = [
        Channel(name="Analog", rx_frequency=146.94, tx_frequency=146.34, squelch_type=SquelchType.TSQL,
                rx_tone="88.5", tx_tone="88.5", power=Power.MID, bandwidth="25"),
        Channel(name="Digital", rx_frequency=442.0, tx_frequency=447.0, mode="DMR",
                protocol=Protocol.DMR, color_code=7, time_slot=2, bandwidth="12.5", tx_contact="TAC 1"),
        Channel(name="DCS", rx_frequency=440.1, tx_frequency=445.1, squelch_type=SquelchType.DCS,
                rx_dcs="023N", tx_dcs="023N", bandwidth="25"),
    ]
    codec = GenericCodec()
    text = write_table(codec.encode(originals))
    decoded, errors = codec.decode(read_table(text))
    assert not errors
    for original, back in zip(originals, decoded):
        assert back.name == original.name
        assert back.rx_frequency == original.rx_frequency
        assert back.tx_frequency == original.tx_frequency
        assert back.squelch_type == original.squelch_type
        assert (back.rx_tone, back.tx_tone) == (original.rx_tone, original.tx_tone)
        assert (back.rx_dcs, back.tx_dcs) == (original.rx_dcs, original.tx_dcs)
        assert back.power == original.power
        assert back.bandwidth == original.bandwidth
    assert (decoded[1].color_code, decoded[1].time_slot, decoded[1].tx_contact) == (7, 2, "TAC 1")


def test_encode_writes_every_column_with_defaults():
    table = GenericCodec().encode([Channel(name="Only", rx_frequency=146.52, tx_frequency=146.52)])
    assert table.header == list(DB25D_LAYOUT.header)
    row = dict(zip(table.header, table.rows[0]))
    assert row["TX Policy"] == "Polite to CC"
    assert row["RX QT/DQT"] == "Off"
    assert row["Contacts"] == "None"


def test_talkgroups():
    codec = GenericCodec()
    contacts, errors = codec.decode_talkgroups(
        read_table("Talkgroup,DMRID,Type\nWorldwide,91,Group\nBob,3100001,Private\nBroken,x,Group\n")
    )
    assert [(c.name, c.dmr_id, c.call_type) for c in contacts] == [
        ("Worldwide", 91, ContactType.GROUP),
        ("Bob", 3100001, ContactType.PRIVATE),
    ]
    assert len(errors) == 1

    table = codec.encode_talkgroups([Contact(name="TAC 1", dmr_id=8951)])
    assert table.rows == [["TAC 1", "8951", "Group"]]
