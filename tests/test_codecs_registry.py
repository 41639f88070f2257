import pytest

from codeplugs.codecs import (
    ARCHIVE_LAYOUTS,
    CODECS,
    archive_layout,
    decode_channels,
    get_codec,
    member_name,
    read_table,
    sniff,
    sniff_archive,
)
from codeplugs.codecs.anytone import CHANNEL_HEADER
from codeplugs.codecs.chirp import CHIRP_LAYOUT
from codeplugs.codecs.dm32uv import CHANNEL_LAYOUT as DM32UV_LAYOUT
from codeplugs.codecs.generic import DB25D_LAYOUT
from codeplugs.exceptions import MalformedFileError, UnknownDialectError
from codeplugs.models.enums import EntityKind


def test_registry_names():
    assert set(CODECS) == {"generic", "chirp", "at890", "dm32uv", "radioid"}
    assert get_codec(" AT890 ").name == "at890"
    with pytest.raises(UnknownDialectError):
        get_codec("ft991")


@pytest.mark.parametrize(
    "header, expected",
    [
        (CHANNEL_HEADER, "at890"),
        (DM32UV_LAYOUT.header, "dm32uv"),
        (DB25D_LAYOUT.header, "generic"),
        (CHIRP_LAYOUT.header, "chirp"),
    ],
)
def test_sniff(header, expected):
    assert sniff(list(header)) == expected


def test_sniff_rejects_unknown_header():
    with pytest.raises(MalformedFileError):
        sniff(["foo", "bar"])


def test_sniff_archive_by_member_names():
    assert sniff_archive(["export/channels.csv", "export/zones.csv"]) == "dm32uv"
    assert sniff_archive(["Channel.CSV", "readme.txt"]) == "at890"
    with pytest.raises(MalformedFileError):
        sniff_archive(["Channels.csv"])


def test_archive_members():
    assert archive_layout("DM32UV")["channels.csv"] == EntityKind.CHANNELS
    assert member_name("at890", EntityKind.ZONES) == "DMRZone.CSV"
    assert "Channels.csv" not in ARCHIVE_LAYOUTS["dm32uv"]
    for layout in ARCHIVE_LAYOUTS.values():
        assert sorted(layout.values()) == sorted(EntityKind)
    with pytest.raises(UnknownDialectError):
        archive_layout("chirp")


def test_generic_import_falls_back_to_chirp_on_full_signature():
    text = "Location,Name,Frequency,Duplex,Offset,Tone,rToneFreq,Mode\n0,Rptr,146.94,-,0.6,Tone,100.0,FM\n"
    channels, errors = decode_channels("generic", read_table(text))
    assert not errors
    assert channels[0].name == "Rptr"
    assert channels[0].tx_frequency == 146.34
    assert channels[0].tx_tone == "100.0"


def test_generic_file_with_rows_but_no_channels_is_malformed():
    text = "Location,Callsign,Comment\n1,,nothing here\n"
    with pytest.raises(MalformedFileError):
        decode_channels("generic", read_table(text))


def test_empty_generic_file_is_fine():
    channels, errors = decode_channels("generic", read_table("CH Name,RX Freq\n"))
    assert channels == [] and errors == []
