from __future__ import annotations

import logging
from typing import Optional

import httpx

from .exceptions import MalformedFileError

logger = logging.getLogger(__name__)

USER_AGENT = "codeplugs/0.1 (directory import)"


class DirectoryClient:
    """Thin wrapper around httpx for simpler mocking in tests."""

    def __init__(self, timeout: float = 60.0, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=10.0),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        )

    def fetch(self, url: str) -> bytes:
        """GET ``url`` and return the CSV body."""
        logger.info("downloading directory feed from %s", url)
        try:
            r = self._client.get(url)
            r.raise_for_status()
        except httpx.HTTPError as exc:
            raise MalformedFileError(f"directory download failed: {exc}") from exc
        return r.content

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DirectoryClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
