"""Smelter

Sort audio files into category folders using their tags, with a metadata
cache that skips re-reading unchanged files.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigurationFailure,
    FilesystemErrorKind,
    FilesystemFailure,
    ReadFailure,
    SmelterError,
    StorageUnavailable,
)
from .models import (
    AudioMetadata,
    Config,
    DuplicateInfo,
    FileOperation,
    OrganizeMode,
    OrganizeResult,
    SourceDuplicateFile,
    SourceDuplicateGroup,
)
from .service import SmelterService

__all__ = [
    # Entry point
    "SmelterService",

    # Models
    "AudioMetadata",
    "Config",
    "DuplicateInfo",
    "FileOperation",
    "OrganizeMode",
    "OrganizeResult",
    "SourceDuplicateFile",
    "SourceDuplicateGroup",

    # Errors
    "ConfigurationFailure",
    "FilesystemErrorKind",
    "FilesystemFailure",
    "ReadFailure",
    "SmelterError",
    "StorageUnavailable",
]
