"""Runtime settings for the codeplug manager.

Values come from built-in defaults, then an optional INI file at
``<data dir>/codeplugs.ini``, then environment variables. The data
directory itself is taken from ``CODEPLUGS_DATA_DIR`` (default ``data``).

Example INI::

    [database]
    path = data/codeplugs.db

    [directory]
    url = https://radioid.net/static/user.csv
    batch_size = 1000
    timeout = 60

    [export]
    directory_limit = 50000
"""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_RADIOID_URL = "https://radioid.net/static/user.csv"
DEFAULT_BATCH_SIZE = 1000
DEFAULT_TIMEOUT = 60
DEFAULT_DIRECTORY_LIMIT = 50000


@dataclass(slots=True)
class Settings:
    data_dir: Path
    db_path: Path
    radioid_url: str = DEFAULT_RADIOID_URL
    batch_size: int = DEFAULT_BATCH_SIZE
    timeout: int = DEFAULT_TIMEOUT
    directory_limit: int = DEFAULT_DIRECTORY_LIMIT


def _positive_int(raw: Optional[str], default: int, key: str) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %d", key, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %d", key, raw, default)
        return default
    return value


def _read_ini(ini_path: Path) -> configparser.ConfigParser:
    cp = configparser.ConfigParser()
    if ini_path.exists():
        try:
            cp.read(ini_path)
        except configparser.Error:
            logger.warning("Unreadable settings file %s; using defaults", ini_path)
            return configparser.ConfigParser()
    return cp


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Resolve settings from the INI file and the environment."""
    env = os.environ if environ is None else environ
    data_dir = Path(env.get("CODEPLUGS_DATA_DIR", "data"))
    cp = _read_ini(data_dir / "codeplugs.ini")

    db_raw = env.get("CODEPLUGS_DB") or cp.get("database", "path", fallback="")
    db_path = Path(db_raw) if db_raw else data_dir / "codeplugs.db"

    url = env.get("CODEPLUGS_RADIOID_URL") or cp.get(
        "directory", "url", fallback=DEFAULT_RADIOID_URL
    )
    batch_size = _positive_int(
        env.get("CODEPLUGS_BATCH_SIZE") or cp.get("directory", "batch_size", fallback=None),
        DEFAULT_BATCH_SIZE,
        "batch_size",
    )
    timeout = _positive_int(
        env.get("CODEPLUGS_TIMEOUT") or cp.get("directory", "timeout", fallback=None),
        DEFAULT_TIMEOUT,
        "timeout",
    )
    limit = _positive_int(
        env.get("CODEPLUGS_DIRECTORY_LIMIT")
        or cp.get("export", "directory_limit", fallback=None),
        DEFAULT_DIRECTORY_LIMIT,
        "directory_limit",
    )
    return Settings(
        data_dir=data_dir,
        db_path=db_path,
        radioid_url=url,
        batch_size=batch_size,
        timeout=timeout,
        directory_limit=limit,
    )


__all__ = ["Settings", "load_settings", "DEFAULT_RADIOID_URL"]
