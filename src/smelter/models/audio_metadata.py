"""Audio metadata model and the result types of organize operations."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import ConfigurationFailure


class OrganizeMode(Enum):
    """Tag field used to pick a category folder."""
    GENRE = "genre"
    MOOD = "mood"
    OVERRIDE = "override"

    @classmethod
    def parse(cls, value: Union[str, "OrganizeMode"]) -> "OrganizeMode":
        """Parse a mode; anything unrecognised means override-only."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.OVERRIDE


class FileOperation(Enum):
    """How a file reaches its category folder."""
    MOVE = "move"
    COPY = "copy"

    @classmethod
    def parse(cls, value: Union[str, "FileOperation"]) -> "FileOperation":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationFailure(f"Unknown operation: {value}")


@dataclass(frozen=True, slots=True)
class AudioMetadata:
    """Tag metadata of one source file."""

    path: Path
    title: Optional[str] = None
    artist: Optional[str] = None
    genre: Optional[str] = None
    mood: Optional[str] = None
    energy: Optional[str] = None
    bpm: Optional[int] = None
    duration_secs: Optional[float] = None
    category_override: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))
        if self.bpm is not None and self.bpm < 0:
            raise ValueError(f"bpm must be non-negative, got {self.bpm}")
        if self.duration_secs is not None and self.duration_secs < 0:
            raise ValueError(f"duration_secs must be non-negative, got {self.duration_secs}")

    @property
    def filename(self) -> str:
        """Get the filename without path."""
        return self.path.name or "Unknown"

    @property
    def parent_folder(self) -> str:
        """Name of the folder holding the file."""
        return self.path.parent.name or "Unknown"

    def with_override(self, category: Optional[str]) -> "AudioMetadata":
        """Return a copy carrying ``category`` as the category override."""
        return replace(self, category_override=category)

    @classmethod
    def placeholder(cls, path: Union[str, Path]) -> "AudioMetadata":
        """Record for a file whose tags could not be read."""
        return cls(path=Path(path))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "path": str(self.path),
            "filename": self.filename,
            "title": self.title,
            "artist": self.artist,
            "genre": self.genre,
            "mood": self.mood,
            "energy": self.energy,
            "bpm": self.bpm,
            "duration_secs": self.duration_secs,
        }
        if self.category_override is not None:
            data["category_override"] = self.category_override
        return data


@dataclass
class OrganizeResult:
    """Outcome of one organize batch."""
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.error_count + self.skipped_count


@dataclass(frozen=True)
class DuplicateInfo:
    """A source file whose destination already exists on disk."""
    source_path: Path
    source_filename: str
    existing_path: Path
    category: str


@dataclass(frozen=True)
class SourceDuplicateFile:
    path: Path
    folder: str


@dataclass
class SourceDuplicateGroup:
    """Input files that would land on the same name in the same category."""
    filename: str
    category: str
    files: List[SourceDuplicateFile] = field(default_factory=list)
