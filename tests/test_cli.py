import zipfile

import pytest

from codeplugs.__main__ import main
from codeplugs.repository import dispose_engines


@pytest.fixture(autouse=True)
def _data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("CODEPLUGS_DATA_DIR", str(tmp_path))
    yield
    dispose_engines()


def test_import_fix_and_export(tmp_path, capsys):
    source = tmp_path / "channels.csv"
    source.write_text("CH Name,CH mode,RX Freq,TX Freq,Bandwidth,RX CC\nLocal,Analog,146.52,146.52,12.5,\nTG,Digital,442.0,447.0,25,1\n")
    db = tmp_path / "cli.db"
    out = tmp_path / "codeplug.zip"

    assert main(["--db", str(db), "--import", str(source), "--fix-bandwidth", "--export", str(out), "--radio", "at890"]) == 0

    printed = capsys.readouterr().out
    assert "channels.csv: 2 imported" in printed
    assert "Fixed bandwidth on 2 channels" in printed
    with zipfile.ZipFile(out) as archive:
        assert "Channel.CSV" in archive.namelist()


def test_filter_list_needs_name(tmp_path):
    ids = tmp_path / "ids.txt"
    ids.write_text("3100001\n")
    assert main(["--db", str(tmp_path / "cli.db"), "--import-list", str(ids)]) == 2


def test_codeplug_errors_return_one(tmp_path):
    assert main(["--db", str(tmp_path / "cli.db"), "--export", str(tmp_path / "x.zip"), "--zone", "Nowhere"]) == 1


def test_import_into_zone(tmp_path, capsys):
    source = tmp_path / "channels.csv"
    source.write_text("Name,Frequency\nSimplex,146.52\nCalling,446.0\n")
    db = tmp_path / "cli.db"
    out = tmp_path / "codeplug.csv"

    args = ["--db", str(db), "--import", str(source), "--zone", "Local", "--export", str(out), "--radio", "chirp"]
    assert main(args) == 0

    exported = out.read_text()
    assert "Simplex" in exported and "Calling" in exported

    source.write_text("Name,Frequency\nRepeater,147.0\n")
    assert main(args) == 0
    assert "Repeater" in out.read_text()


def test_view_filter_lists(tmp_path, capsys):
    ids = tmp_path / "ids.txt"
    ids.write_text("3100002\n3100001\n")
    db = str(tmp_path / "cli.db")
    assert main(["--db", db, "--import-list", str(ids), "--list-name", "local"]) == 0
    capsys.readouterr()

    assert main(["--db", db, "--view-list", "all"]) == 0
    assert " - local: 2 entries" in capsys.readouterr().out
    assert main(["--db", db, "--view-list", "local"]) == 0
    printed = capsys.readouterr().out
    assert "Total entries: 2" in printed
    assert printed.index("3100001") < printed.index("3100002")
    assert main(["--db", db, "--view-list", "missing"]) == 1
