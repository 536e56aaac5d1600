"""Tests for metadata extraction."""

import pytest
from pathlib import Path
from unittest.mock import Mock, patch

from mutagen import MutagenError
from mutagen.id3 import COMM, ID3, TBPM, TCON, TIT1, TIT2, TIT3, TKEY, TMOO, TPE1, TXXX

from smelter.core.metadata import MetadataHandler, read_audio_metadata
from smelter.exceptions import ReadFailure


def _id3(*frames):
    tags = ID3()
    for frame in frames:
        tags.add(frame)
    return tags


def _mutagen_file(tags, length=184.5):
    mock_file = Mock()
    mock_file.info = Mock(length=length)
    mock_file.tags = tags
    return mock_file


class TestMetadataHandler:
    """Test metadata extraction functionality."""

    def extract(self, tags, path="/music/ES_Calm_Piano.mp3", length=184.5):
        with patch('smelter.core.metadata.MutagenFile') as mock_file_class:
            mock_file_class.return_value = _mutagen_file(tags, length)
            return MetadataHandler.extract_metadata(Path(path))

    def test_extract_id3_metadata(self):
        """Test the basic ID3 frames."""
        tags = _id3(
            TIT2(encoding=3, text=["Calm Piano"]),
            TPE1(encoding=3, text=["Test Artist"]),
            TCON(encoding=3, text=["Classical"]),
            TIT1(encoding=3, text=["Relaxed, Warm"]),
            TIT3(encoding=3, text=["Low"]),
            TBPM(encoding=3, text=["72"]),
        )

        result = self.extract(tags)

        assert result.path == Path("/music/ES_Calm_Piano.mp3")
        assert result.title == "Calm Piano"
        assert result.artist == "Test Artist"
        assert result.genre == "Classical"
        assert result.mood == "Relaxed, Warm"
        assert result.energy == "Low"
        assert result.bpm == 72
        assert result.duration_secs == 184.5
        assert result.category_override is None

    def test_missing_frames_are_none(self):
        result = self.extract(_id3(TIT2(encoding=3, text=["Only Title"])))

        assert result.title == "Only Title"
        assert result.artist is None
        assert result.genre is None
        assert result.mood is None
        assert result.bpm is None

    def test_no_tags_at_all(self):
        result = self.extract(None, path="/music/explosion_01.wav", length=2.0)

        assert result.title is None
        assert result.mood is None
        assert result.duration_secs == 2.0

    @pytest.mark.parametrize("raw_bpm", ["fast", "", "-5", "12.5"])
    def test_unparseable_bpm_is_dropped(self, raw_bpm):
        result = self.extract(_id3(TBPM(encoding=3, text=[raw_bpm])))
        assert result.bpm is None

    def test_bpm_with_whitespace(self):
        assert self.extract(_id3(TBPM(encoding=3, text=[" 120 "]))).bpm == 120

    def test_vorbis_style_tags(self):
        """Non-ID3 containers only provide title, artist and genre."""
        tags = {'title': ['Night Drive'], 'artist': ['Synth Person'], 'genre': ['Electronic']}

        result = self.extract(tags, path="/music/ES_Night_Drive.flac")

        assert result.title == "Night Drive"
        assert result.artist == "Synth Person"
        assert result.genre == "Electronic"
        assert result.mood is None


class TestMoodExtraction:
    """Mood is taken from the first frame that carries one."""

    def mood_of(self, *frames):
        return MetadataHandler._find_mood(_id3(*frames))

    def test_content_group_wins(self):
        assert self.mood_of(
            TIT1(encoding=3, text=["Dreamy"]),
            TMOO(encoding=3, text=["Dark"]),
            COMM(encoding=3, lang="eng", desc="", text=["Happy"]),
        ) == "Dreamy"

    def test_mood_frame_when_no_content_group(self):
        assert self.mood_of(
            TMOO(encoding=3, text=["Dark"]),
            COMM(encoding=3, lang="eng", desc="", text=["Happy"]),
        ) == "Dark"

    def test_short_comment(self):
        assert self.mood_of(COMM(encoding=3, lang="eng", desc="", text=["Epic"])) == "Epic"

    def test_sentence_comment_is_ignored(self):
        assert self.mood_of(
            COMM(encoding=3, lang="eng", desc="", text=["Downloaded from the catalog."]),
        ) is None

    def test_long_comment_is_ignored(self):
        assert self.mood_of(COMM(encoding=3, lang="eng", desc="", text=["x" * 60])) is None

    @pytest.mark.parametrize("desc", ["MOOD", "Music Style", "vibe"])
    def test_user_text_frame_with_mood_description(self, desc):
        assert self.mood_of(TXXX(encoding=3, desc=desc, text=["Sneaking"])) == "Sneaking"

    def test_user_text_frame_with_other_description(self):
        assert self.mood_of(TXXX(encoding=3, desc="ISRC", text=["SE123"])) is None

    def test_key_frame_used_when_not_a_musical_key(self):
        assert self.mood_of(TKEY(encoding=3, text=["Peaceful"])) == "Peaceful"

    @pytest.mark.parametrize("key", ["C#", "Am", "Ebm", "G"])
    def test_musical_keys_are_rejected(self, key):
        assert self.mood_of(TKEY(encoding=3, text=[key])) is None

    def test_blank_frames_are_skipped(self):
        assert self.mood_of(
            TIT1(encoding=3, text=["   "]),
            TMOO(encoding=3, text=["Hopeful"]),
        ) == "Hopeful"


class TestReadFailures:
    """Test error reporting when a file cannot be read."""

    def test_unsupported_format(self):
        with patch('smelter.core.metadata.MutagenFile', return_value=None):
            with pytest.raises(ReadFailure) as exc_info:
                MetadataHandler.extract_metadata(Path("/music/notes.mp3"))

        assert exc_info.value.path == Path("/music/notes.mp3")
        assert "unsupported format" in exc_info.value.message

    def test_permission_denied(self):
        error = MutagenError(PermissionError(13, "Permission denied"))
        with patch('smelter.core.metadata.MutagenFile', side_effect=error):
            with pytest.raises(ReadFailure) as exc_info:
                MetadataHandler.extract_metadata(Path("/music/ES_Locked.mp3"))

        assert exc_info.value.message == (
            "Permission denied: Cannot read 'ES_Locked.mp3'. Check file permissions."
        )

    def test_corrupt_file(self):
        with patch('smelter.core.metadata.MutagenFile', side_effect=MutagenError("can't sync")):
            with pytest.raises(ReadFailure) as exc_info:
                MetadataHandler.extract_metadata(Path("/music/ES_Broken.mp3"))

        assert exc_info.value.message.startswith("Cannot open 'ES_Broken.mp3'")

    def test_missing_file_on_disk(self, tmp_path):
        with pytest.raises(ReadFailure) as exc_info:
            read_audio_metadata(tmp_path / "ES_Gone.mp3")

        assert "File not found" in exc_info.value.message

    def test_non_audio_file_on_disk(self, tmp_path):
        fake = tmp_path / "ES_Fake.mp3"
        fake.write_bytes(b"this is not audio data at all")

        with pytest.raises(ReadFailure):
            read_audio_metadata(fake)
