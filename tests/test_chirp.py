from codeplugs.codecs import read_table, write_table
from codeplugs.codecs.chirp import CHIRP_LAYOUT, ChirpCodec
from codeplugs.models.enums import Power, Protocol, SquelchType
from codeplugs.models.records import Channel

CHIRP = """Location,Name,Frequency,Duplex,Offset,Tone,rToneFreq,cToneFreq,DtcsCode,DtcsPolarity,RxDtcsCode,CrossMode,Mode,TStep,Skip,Power,Comment
0,W1AW,146.940000,-,0.600000,Tone,88.5,88.5,023,NN,023,Tone->Tone,FM,5.00,,50W,club
1,TSQL,147.000000,+,0.600000,TSQL,88.5,100.0,023,NN,023,Tone->Tone,NFM,5.00,,5W,
2,DCS,440.100000,+,5.000000,DTCS,88.5,88.5,411,RN,411,Tone->Tone,FM,5.00,,25W,
3,Cross,446.000000,,0.000000,Cross,88.5,88.5,023,NN,754,Tone->DTCS,FM,5.00,,50W,
4,,162.550000,,0.000000,,88.5,88.5,023,NN,023,Tone->Tone,FM,5.00,,,
5,Broken,,,,,,,,,,,,,,,
"""


def test_decode_tone_modes():
    channels, errors = ChirpCodec().decode(read_table(CHIRP))
    assert [e.line for e in errors] == [7]
    w1aw, tsql, dcs, cross, unnamed = channels

    assert w1aw.squelch_type == SquelchType.TONE
    assert w1aw.tx_tone == "88.5" and w1aw.rx_tone == ""
    assert w1aw.tx_frequency == 146.34
    assert w1aw.notes == "club"

    assert tsql.squelch_type == SquelchType.TSQL
    assert tsql.rx_tone == tsql.tx_tone == "100.0"
    assert tsql.bandwidth == "12.5"
    assert tsql.power == Power.LOW

    assert dcs.squelch_type == SquelchType.DCS
    assert dcs.tx_dcs == "411I" and dcs.rx_dcs == "411N"
    assert dcs.power == Power.MID

    assert cross.squelch_type == SquelchType.TONE
    assert cross.tx_tone == "88.5"

    assert unnamed.name == "162.5500"
    assert unnamed.squelch_type == SquelchType.NONE


def test_round_trip():
    originals = [
        Channel(name="Tone", rx_frequency=146.94, tx_frequency=146.34, squelch_type=SquelchType.TONE,
                tx_tone="88.5", power=Power.HIGH, bandwidth="25"),
        Channel(name="Split TSQL", rx_frequency=147.0, tx_frequency=147.6, squelch_type=SquelchType.TSQL,
                rx_tone="100.0", tx_tone="123.0", power=Power.LOW, bandwidth="12.5"),
        Channel(name="DCS", rx_frequency=440.1, tx_frequency=445.1, squelch_type=SquelchType.DCS,
                rx_dcs="023N", tx_dcs="023N", power=Power.MID, bandwidth="25"),
        Channel(name="Plain", rx_frequency=146.52, tx_frequency=146.52, bandwidth="25"),
    ]
    codec = ChirpCodec()
    decoded, errors = codec.decode(read_table(write_table(codec.encode(originals))))
    assert not errors
    assert len(decoded) == len(originals)
    for original, back in zip(originals, decoded):
        assert back.name == original.name
        assert back.tx_frequency == original.tx_frequency
        assert back.squelch_type == original.squelch_type
        assert (back.rx_tone, back.tx_tone) == (original.rx_tone, original.tx_tone)
        assert (back.rx_dcs, back.tx_dcs) == (original.rx_dcs, original.tx_dcs)
        assert back.power == original.power
        assert back.bandwidth == original.bandwidth


def test_receive_only_tone_uses_cross_without_transmit_tone():
    text = CHIRP.splitlines()[0] + "\n0,Listen,162.550000,,0.000000,Cross,100.0,88.5,023,NN,023,->Tone,FM,5.00,,,\n"
    [listen], errors = ChirpCodec().decode(read_table(text))
    assert not errors
    assert listen.squelch_type == SquelchType.TSQL
    assert (listen.rx_tone, listen.tx_tone) == ("88.5", "")

    table = ChirpCodec().encode([listen])
    row = dict(zip(table.header, table.rows[0]))
    assert (row["Tone"], row["CrossMode"], row["cToneFreq"]) == ("Cross", "->Tone", "88.5")
    [back], _ = ChirpCodec().decode(read_table(write_table(table)))
    assert (back.squelch_type, back.rx_tone, back.tx_tone) == (SquelchType.TSQL, "88.5", "")


def test_dmr_channels_are_not_exported():
    channels = [
        Channel(name="Analog", rx_frequency=146.52, tx_frequency=146.52),
        Channel(name="DMR", rx_frequency=442.0, tx_frequency=447.0, protocol=Protocol.DMR, color_code=1),
    ]
    table = ChirpCodec().encode(channels)
    assert table.header == list(CHIRP_LAYOUT.header)
    assert [row[1] for row in table.rows] == ["Analog"]
    row = dict(zip(table.header, table.rows[0]))
    assert row["Location"] == "1"
    assert row["TStep"] == "5.00"
    assert row["Power"] == "50W"
