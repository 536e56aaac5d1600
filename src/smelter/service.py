"""Operations exposed to the surrounding application.

``SmelterService`` owns one metadata store and one organize engine and is the
only object a front end needs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .core.cache import MetadataStore
from .core.cached_metadata import CachedMetadataHandler, MetadataReader
from .core.categorizer import Categorizer
from .core.metadata import read_audio_metadata
from .core.organizer import OrganizeEngine
from .models.audio_metadata import (
    AudioMetadata,
    DuplicateInfo,
    FileOperation,
    OrganizeMode,
    OrganizeResult,
    SourceDuplicateGroup,
)
from .models.config import Config

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Mode = Union[str, OrganizeMode]


class SmelterService:
    """Scan, preview, organize and deduplicate audio files."""

    def __init__(
        self,
        config: Optional[Config] = None,
        reader: MetadataReader = read_audio_metadata,
        store: Optional[MetadataStore] = None,
    ) -> None:
        self.config = config or Config.default()
        if store is None and self.config.cache.enabled:
            store = MetadataStore(self.config.cache.db_path)
        self.store = store
        self.metadata = CachedMetadataHandler(store, reader, self.config.audio_extensions)
        self.engine = OrganizeEngine(Categorizer.from_config(self.config.categories))
        self._initialized = False

    def __enter__(self) -> "SmelterService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.metadata.initialize()
            self._initialized = True

    def scan(self, paths: Iterable[PathLike]) -> List[AudioMetadata]:
        self._ensure_initialized()
        return self.metadata.scan(paths)

    def scan_directory(self, root: PathLike) -> List[AudioMetadata]:
        self._ensure_initialized()
        return self.metadata.scan_directory(root)

    def rescan(self, paths: Sequence[PathLike]) -> List[AudioMetadata]:
        self._ensure_initialized()
        return self.metadata.rescan(paths)

    def preview(self, files: Iterable[AudioMetadata], mode: Mode) -> Dict[str, List[str]]:
        return self.engine.preview(files, mode)

    def organize(
        self,
        files: Sequence[AudioMetadata],
        destination: PathLike,
        mode: Mode,
        operation: Union[str, FileOperation],
    ) -> OrganizeResult:
        return self.engine.execute(files, Path(destination), mode, operation)

    def clear_cache(self) -> int:
        """Remove every cache entry.

        Raises:
            StorageUnavailable: If the cache cannot be opened or cleared.
        """
        return self.metadata.clear_cache()

    def find_destination_duplicates(
        self, files: Iterable[AudioMetadata], destination: PathLike, mode: Mode
    ) -> List[DuplicateInfo]:
        return self.engine.find_destination_duplicates(files, Path(destination), mode)

    def delete_paths(self, paths: Iterable[PathLike]) -> Tuple[int, List[str]]:
        return self.engine.delete(paths)

    def find_source_duplicates(
        self, files: Iterable[AudioMetadata], mode: Mode
    ) -> List[SourceDuplicateGroup]:
        return self.engine.find_source_duplicates(files, mode)

    def cache_stats(self) -> Dict[str, Any]:
        return self.metadata.get_cache_stats()

    def close(self) -> None:
        if self.store is not None:
            self.store.close()
