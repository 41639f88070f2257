"""Custom exceptions for codeplug import, export and editing."""
from __future__ import annotations

from typing import Iterable, List, Optional


class CodeplugError(RuntimeError):
    """Base exception for codeplug operations."""


class ValidationError(CodeplugError):
    """Raised when a record fails its invariants before persistence."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages) or "Validation failed")


class MalformedFileError(CodeplugError):
    """Raised when a file has no usable header or cannot be read."""

    def __init__(self, message: str, member: Optional[str] = None) -> None:
        if member:
            message = f"{member}: {message}"
        super().__init__(message)
        self.member = member


class RenumberError(CodeplugError):
    """Raised when a channel reorder request does not match the stored channels."""


class UnknownDialectError(CodeplugError):
    """Raised when a dialect name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown dialect: {name!r}")
        self.name = name


class ImportCancelled(CodeplugError):
    """Raised when an import is cancelled between archive members."""


class NotFoundError(CodeplugError):
    """Raised when a referenced record does not exist."""


__all__ = [
    "CodeplugError",
    "ValidationError",
    "MalformedFileError",
    "RenumberError",
    "UnknownDialectError",
    "ImportCancelled",
    "NotFoundError",
]
