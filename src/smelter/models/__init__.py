"""Data models for smelter."""

from .audio_metadata import (
    AudioMetadata,
    DuplicateInfo,
    FileOperation,
    OrganizeMode,
    OrganizeResult,
    SourceDuplicateFile,
    SourceDuplicateGroup,
)
from .config import Config

__all__ = [
    "AudioMetadata",
    "Config",
    "DuplicateInfo",
    "FileOperation",
    "OrganizeMode",
    "OrganizeResult",
    "SourceDuplicateFile",
    "SourceDuplicateGroup",
]
