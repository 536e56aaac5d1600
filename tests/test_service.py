"""End-to-end tests for SmelterService."""

from pathlib import Path

import pytest

from smelter import Config, FileOperation, SmelterService
from smelter.exceptions import ConfigurationFailure
from smelter.models.audio_metadata import AudioMetadata

MOODS = {
    "ES_Calm_Piano.mp3": "Relaxed, Warm",
    "ES_Storm.mp3": "Dark",
    "ES_Rain.wav": "Relaxed",
}


def fake_reader(path):
    path = Path(path)
    return AudioMetadata(path=path, title=path.stem, genre="Cinematic", mood=MOODS.get(path.name))


@pytest.fixture
def library(tmp_path):
    root = tmp_path / "library"
    (root / "disc1").mkdir(parents=True)
    (root / "disc2").mkdir()
    (root / "disc1" / "ES_Calm_Piano.mp3").write_bytes(b"piano")
    (root / "disc1" / "ES_Storm.mp3").write_bytes(b"storm")
    (root / "disc2" / "ES_Calm_Piano.mp3").write_bytes(b"piano again")
    (root / "disc2" / "ES_Rain.wav").write_bytes(b"rain")
    (root / "disc2" / "explosion_01.wav").write_bytes(b"boom")
    return root


@pytest.fixture
def service(tmp_path):
    with SmelterService(Config.default(cache_dir=tmp_path / "cache"), reader=fake_reader) as service:
        yield service


class TestSmelterService:

    def test_scan_directory_populates_cache(self, service, library):
        records = service.scan_directory(library)

        assert len(records) == 5
        assert service.cache_stats()["total_entries"] == 5

        service.scan([r.path for r in records])
        assert service.cache_stats()["cache_hits"] == 5

    def test_preview(self, service, library):
        preview = service.preview(service.scan_directory(library), "mood")

        assert sorted(preview) == ["Dark", "Relaxed", "SFX"]
        assert preview["Relaxed"] == ["ES_Calm_Piano.mp3", "ES_Calm_Piano.mp3", "ES_Rain.wav"]

    def test_organize_copy(self, service, library, tmp_path):
        target = tmp_path / "sorted"
        records = service.scan_directory(library)

        result = service.organize(records, target, "mood", FileOperation.COPY)

        assert result.success_count == 5
        assert (target / "Relaxed" / "ES_Calm_Piano.mp3").read_bytes() == b"piano"
        assert (target / "Relaxed" / "ES_Calm_Piano_1.mp3").read_bytes() == b"piano again"
        assert (target / "Relaxed" / "ES_Rain.wav").exists()
        assert (target / "Dark" / "ES_Storm.mp3").exists()
        assert (target / "SFX" / "explosion_01.wav").exists()

    def test_duplicates_and_delete(self, service, library, tmp_path):
        target = tmp_path / "sorted"
        (target / "Dark").mkdir(parents=True)
        (target / "Dark" / "ES_Storm.mp3").write_bytes(b"old storm")
        records = service.scan_directory(library)

        groups = service.find_source_duplicates(records, "mood")
        existing = service.find_destination_duplicates(records, target, "mood")

        assert [(g.filename, g.category) for g in groups] == [("ES_Calm_Piano.mp3", "Relaxed")]
        assert [f.folder for f in groups[0].files] == ["disc1", "disc2"]
        assert [d.existing_path for d in existing] == [target / "Dark" / "ES_Storm.mp3"]

        deleted, errors = service.delete_paths([d.existing_path for d in existing])
        assert (deleted, errors) == (1, [])
        assert service.find_destination_duplicates(records, target, "mood") == []

    def test_rescan(self, service, library):
        path = library / "disc1" / "ES_Storm.mp3"
        service.scan([path])

        records = service.rescan([path])

        assert records[0].mood == "Dark"
        assert service.cache_stats()["cache_misses"] == 2

    def test_clear_cache(self, service, library):
        service.scan_directory(library)
        assert service.clear_cache() == 5
        assert service.cache_stats()["total_entries"] == 0

    def test_scan_directory_requires_directory(self, service, library):
        with pytest.raises(ConfigurationFailure):
            service.scan_directory(library / "disc1" / "ES_Storm.mp3")

    def test_cache_disabled(self, tmp_path, library):
        config = Config.default(cache_dir=tmp_path / "cache")
        config.cache.enabled = False

        with SmelterService(config, reader=fake_reader) as service:
            records = service.scan_directory(library)
            assert len(records) == 5
            assert service.clear_cache() == 0

        assert not (tmp_path / "cache").exists()
