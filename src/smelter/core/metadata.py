"""Metadata handling for audio files using mutagen."""

from pathlib import Path
from typing import Any, List, Optional, Union

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.id3 import ID3

from ..exceptions import ReadFailure
from ..models.audio_metadata import AudioMetadata

# TXXX descriptions that carry a mood-like label.
MOOD_DESCRIPTION_HINTS = ("mood", "style", "vibe")


class MetadataHandler:
    """Read title, artist, genre, mood, energy and BPM tags with mutagen."""

    @staticmethod
    def extract_metadata(file_path: Union[str, Path]) -> AudioMetadata:
        """Extract metadata from an audio file.

        Raises:
            ReadFailure: If the file cannot be opened or is not a supported
                audio format.
        """
        path = Path(file_path)
        filename = path.name or "Unknown"

        try:
            mutagen_file = MutagenFile(path)
        except (MutagenError, OSError) as e:
            # mutagen wraps open() errors in MutagenError
            cause = MetadataHandler._underlying_os_error(e)
            if isinstance(cause, PermissionError):
                raise ReadFailure(path, f"Permission denied: Cannot read '{filename}'. Check file permissions.")
            if isinstance(cause, FileNotFoundError):
                raise ReadFailure(path, f"File not found: '{filename}' may have been moved or deleted.")
            raise ReadFailure(path, f"Cannot open '{filename}': {e}")

        if mutagen_file is None:
            raise ReadFailure(path, f"Cannot read audio data from '{filename}': unsupported format")

        duration = getattr(getattr(mutagen_file, 'info', None), 'length', None)
        duration_secs = float(duration) if isinstance(duration, (int, float)) and duration >= 0 else None

        tags = getattr(mutagen_file, 'tags', None)
        if isinstance(tags, ID3):
            return MetadataHandler._extract_id3_metadata(path, tags, duration_secs)

        return AudioMetadata(
            path=path,
            title=MetadataHandler._get_single_field(tags, ['title', 'TITLE', '\xa9nam']),
            artist=MetadataHandler._get_single_field(tags, ['artist', 'ARTIST', '\xa9ART']),
            genre=MetadataHandler._get_single_field(tags, ['genre', 'GENRE', '\xa9gen']),
            duration_secs=duration_secs,
        )

    @staticmethod
    def _extract_id3_metadata(path: Path, tags: ID3, duration_secs: Optional[float]) -> AudioMetadata:
        """Extract metadata from ID3v2 frames (MP3, and WAV with an id3 chunk)."""
        return AudioMetadata(
            path=path,
            title=MetadataHandler._first_text(tags, 'TIT2'),
            artist=MetadataHandler._first_text(tags, 'TPE1'),
            genre=MetadataHandler._first_text(tags, 'TCON'),
            mood=MetadataHandler._find_mood(tags),
            # Catalog exports store the energy level in the subtitle frame.
            energy=MetadataHandler._first_text(tags, 'TIT3'),
            bpm=MetadataHandler._parse_bpm(MetadataHandler._first_text(tags, 'TBPM')),
            duration_secs=duration_secs,
        )

    @staticmethod
    def _find_mood(tags: ID3) -> Optional[str]:
        """Pick the mood from the first frame that looks like one.

        Order: content group (TIT1), TMOO, a short comment, a TXXX frame
        described as mood/style/vibe, then TKEY when it is not a musical key.
        """
        mood = MetadataHandler._first_text(tags, 'TIT1') or MetadataHandler._first_text(tags, 'TMOO')
        if mood:
            return mood

        for frame in tags.getall('COMM'):
            comment = MetadataHandler._frame_text(frame)
            if comment and len(comment) < 50 and '.' not in comment:
                return comment

        for frame in tags.getall('TXXX'):
            desc = (getattr(frame, 'desc', '') or '').lower()
            if any(hint in desc for hint in MOOD_DESCRIPTION_HINTS):
                text = MetadataHandler._frame_text(frame)
                if text:
                    return text

        key = MetadataHandler._first_text(tags, 'TKEY')
        if key and '#' not in key and 'm' not in key and len(key) > 3:
            return key

        return None

    @staticmethod
    def _underlying_os_error(error: Exception) -> Optional[OSError]:
        if isinstance(error, OSError):
            return error
        for candidate in (error.__cause__, error.__context__, *error.args):
            if isinstance(candidate, OSError):
                return candidate
        return None

    @staticmethod
    def _parse_bpm(value: Optional[str]) -> Optional[int]:
        if value is None:
            return None
        try:
            bpm = int(value.strip())
        except ValueError:
            return None
        return bpm if bpm >= 0 else None

    @staticmethod
    def _first_text(tags: ID3, frame_id: str) -> Optional[str]:
        for frame in tags.getall(frame_id):
            text = MetadataHandler._frame_text(frame)
            if text:
                return text
        return None

    @staticmethod
    def _frame_text(frame: Any) -> Optional[str]:
        text: List[Any] = list(getattr(frame, 'text', None) or [])
        for value in text:
            value = str(value).strip()
            if value:
                return value
        return None

    @staticmethod
    def _get_single_field(tags: Any, field_names: List[str]) -> Optional[str]:
        """Get first value of a field from a dict-like tag container."""
        if tags is None:
            return None
        for field_name in field_names:
            try:
                value = tags.get(field_name)
            except (KeyError, ValueError, TypeError):
                value = None
            if not value:
                continue
            if isinstance(value, list):
                value = value[0] if value else None
            if value is not None and str(value).strip():
                return str(value).strip()
        return None


def read_audio_metadata(file_path: Union[str, Path]) -> AudioMetadata:
    """Module-level reader used as the default ``MetadataReader``."""
    return MetadataHandler.extract_metadata(file_path)
