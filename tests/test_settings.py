from pathlib import Path

from codeplugs.settings import DEFAULT_RADIOID_URL, load_settings


def test_defaults(tmp_path):
    settings = load_settings({"CODEPLUGS_DATA_DIR": str(tmp_path)})
    assert settings.data_dir == tmp_path
    assert settings.db_path == tmp_path / "codeplugs.db"
    assert settings.radioid_url == DEFAULT_RADIOID_URL
    assert (settings.batch_size, settings.timeout, settings.directory_limit) == (1000, 60, 50000)


def test_ini_then_environment(tmp_path):
    (tmp_path / "codeplugs.ini").write_text(
        "[database]\npath = other.db\n\n[directory]\nbatch_size = 250\ntimeout = 5\n\n[export]\ndirectory_limit = 10\n"
    )
    settings = load_settings({"CODEPLUGS_DATA_DIR": str(tmp_path), "CODEPLUGS_TIMEOUT": "30"})
    assert settings.db_path == Path("other.db")
    assert settings.batch_size == 250
    assert settings.timeout == 30
    assert settings.directory_limit == 10


def test_invalid_numbers_fall_back(tmp_path, caplog):
    settings = load_settings(
        {"CODEPLUGS_DATA_DIR": str(tmp_path), "CODEPLUGS_BATCH_SIZE": "lots", "CODEPLUGS_DIRECTORY_LIMIT": "-3"}
    )
    assert settings.batch_size == 1000
    assert settings.directory_limit == 50000
    assert "batch_size" in caplog.text
