from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from codeplugs.api import create_app
from codeplugs.progress import ProgressLog
from codeplugs.repository import dispose_engines, get_engine
from codeplugs.settings import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path, db_path=tmp_path / "codeplugs.db", batch_size=2)


@pytest.fixture
def engine(settings):
    yield get_engine(settings.db_path)
    dispose_engines()


@pytest.fixture
def progress_log():
    return ProgressLog()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
    dispose_engines()
