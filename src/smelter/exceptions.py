"""Custom exceptions for smelter."""

from __future__ import annotations

import errno
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class SmelterError(Exception):
    """Base exception for smelter errors."""
    pass


class StorageUnavailable(SmelterError):
    """Raised when the metadata cache cannot be opened or written."""
    pass


class ReadFailure(SmelterError):
    """Raised when tag metadata cannot be extracted from a file."""

    def __init__(self, path: Union[str, Path], message: str) -> None:
        super().__init__(message)
        self.path = Path(path)
        self.message = message


class ConfigurationFailure(SmelterError):
    """Raised for an unknown operation, a bad destination or a bad config."""
    pass


class FilesystemErrorKind(Enum):
    """Classes of filesystem failure shown to users."""
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    STORAGE_FULL = "storage_full"
    OTHER = "other"


_STORAGE_FULL_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class FilesystemFailure(SmelterError):
    """A create, move, copy or delete that failed for one path.

    The failure keeps its kind, path and attempted operation; the user-facing
    message is only produced by ``str()``.
    """

    def __init__(
        self,
        kind: FilesystemErrorKind,
        path: Union[str, Path],
        operation: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.kind = kind
        self.path = str(path)
        self.operation = operation
        self.cause = cause
        super().__init__(self.render())

    @classmethod
    def from_os_error(
        cls, error: OSError, path: Union[str, Path], operation: str
    ) -> "FilesystemFailure":
        """Classify an ``OSError`` raised while running ``operation`` on ``path``."""
        if isinstance(error, PermissionError):
            kind = FilesystemErrorKind.PERMISSION_DENIED
        elif isinstance(error, FileNotFoundError):
            kind = FilesystemErrorKind.NOT_FOUND
        elif isinstance(error, FileExistsError):
            kind = FilesystemErrorKind.ALREADY_EXISTS
        elif error.errno in _STORAGE_FULL_ERRNOS:
            kind = FilesystemErrorKind.STORAGE_FULL
        else:
            kind = FilesystemErrorKind.OTHER
        return cls(kind, path, operation, error)

    def render(self) -> str:
        if self.kind is FilesystemErrorKind.PERMISSION_DENIED:
            return (
                f"Permission denied: Cannot {self.operation} '{self.path}'. "
                "Try choosing a different folder or check folder permissions."
            )
        if self.kind is FilesystemErrorKind.NOT_FOUND:
            return f"File not found: '{self.path}' may have been moved or deleted."
        if self.kind is FilesystemErrorKind.ALREADY_EXISTS:
            return f"File already exists at destination: '{self.path}'"
        if self.kind is FilesystemErrorKind.STORAGE_FULL:
            return f"Not enough disk space to {self.operation} '{self.path}'."
        if isinstance(self.cause, OSError) and self.cause.strerror:
            detail = self.cause.strerror
        else:
            detail = self.cause or "unknown error"
        return f"Failed to {self.operation} '{self.path}': {detail}"

    def __str__(self) -> str:
        return self.render()
