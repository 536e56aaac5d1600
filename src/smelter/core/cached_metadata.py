"""Cached metadata handler that wraps the tag reader with the SQLite store.

Scanning is cache first: a file whose mtime and size still match its cache
entry is never opened. Cache failures only cost speed; they never fail a scan.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from ..exceptions import ConfigurationFailure, ReadFailure, StorageUnavailable
from ..models.audio_metadata import AudioMetadata
from .cache import MetadataStore
from .metadata import read_audio_metadata

logger = logging.getLogger(__name__)

MetadataReader = Callable[[Path], AudioMetadata]

DEFAULT_AUDIO_EXTENSIONS = ('.mp3', '.wav')


def find_audio_files(
    directory: Path, extensions: Iterable[str] = DEFAULT_AUDIO_EXTENSIONS
) -> Iterator[Path]:
    """Yield audio files under ``directory``, following symlinks.

    Each real directory is walked once, so symlink cycles terminate. Entries
    are yielded sorted within each directory.
    """
    wanted = {ext.lower() for ext in extensions}
    visited = set()

    def _on_walk_error(err: OSError) -> None:
        logger.warning(f"Skipping unreadable directory {err.filename}: {err.strerror or err}")

    for root, dirs, files in os.walk(directory, onerror=_on_walk_error, followlinks=True):
        real_root = os.path.realpath(root)
        if real_root in visited:
            dirs[:] = []
            continue
        visited.add(real_root)
        dirs.sort()

        for filename in sorted(files):
            if Path(filename).suffix.lower() in wanted:
                yield Path(root) / filename


class CachedMetadataHandler:
    """Metadata handler with SQLite caching support."""

    def __init__(
        self,
        store: Optional[MetadataStore],
        reader: MetadataReader = read_audio_metadata,
        audio_extensions: Sequence[str] = DEFAULT_AUDIO_EXTENSIONS,
    ) -> None:
        """Initialize the cached metadata handler.

        Args:
            store: Metadata cache, or None to always read tags from disk
            reader: Tag reader called on cache misses
            audio_extensions: Extensions picked up by ``scan_directory``
        """
        self.store = store
        self.reader = reader
        self.audio_extensions = tuple(audio_extensions)
        self._cache_hits = 0
        self._cache_misses = 0
        self._cache_available = store is not None

    def initialize(self) -> bool:
        """Prepare the cache store; returns False when running uncached."""
        if self.store is None:
            return False
        try:
            self.store.initialize()
        except StorageUnavailable as e:
            logger.warning(f"Metadata cache unavailable, continuing without it: {e}")
            self._cache_available = False
            return False
        return True

    def extract_metadata(self, file_path: Union[str, Path], use_cache: bool = True) -> AudioMetadata:
        """Extract metadata with caching support.

        Raises:
            ReadFailure: If the tags cannot be read on a cache miss.
        """
        file_path = Path(file_path)

        if use_cache and self._cache_available:
            try:
                cached = self.store.lookup(file_path)
            except StorageUnavailable as e:
                logger.warning(f"Cache lookup failed for {file_path}: {e}")
                cached = None
            if cached is not None:
                self._cache_hits += 1
                logger.debug(f"Cache hit for {file_path}")
                return cached

        self._cache_misses += 1
        logger.debug(f"Cache miss for {file_path}, extracting from file")

        metadata = self.reader(file_path)

        if use_cache and self._cache_available:
            try:
                self.store.put(metadata)
            except StorageUnavailable as e:
                logger.warning(f"Could not cache metadata for {file_path}: {e}")

        return metadata

    def scan(self, paths: Iterable[Union[str, Path]], use_cache: bool = True) -> List[AudioMetadata]:
        """Read metadata for every path, cache first.

        A file whose tags cannot be read is returned as a placeholder record
        so the list always lines up with ``paths``.
        """
        results = []
        for path in paths:
            try:
                results.append(self.extract_metadata(path, use_cache=use_cache))
            except ReadFailure as e:
                logger.warning(f"Error scanning {path}: {e.message}")
                results.append(AudioMetadata.placeholder(path))
        return results

    def scan_directory(self, root: Union[str, Path]) -> List[AudioMetadata]:
        """Recursively scan ``root`` for audio files.

        Unreadable files are skipped with a warning.

        Raises:
            ConfigurationFailure: If ``root`` is not a directory.
        """
        root = Path(root)
        if not root.is_dir():
            raise ConfigurationFailure(f"Not a directory: {root}")

        results = []
        for path in find_audio_files(root, self.audio_extensions):
            try:
                results.append(self.extract_metadata(path))
            except ReadFailure as e:
                logger.warning(f"Error reading {path}: {e.message}")

        logger.info(f"Scanned {len(results)} audio files in {root}")
        return results

    def rescan(self, paths: Sequence[Union[str, Path]]) -> List[AudioMetadata]:
        """Drop cache entries for ``paths`` and read them again."""
        paths = list(paths)
        if self._cache_available:
            try:
                removed = self.store.invalidate(paths)
                logger.debug(f"Invalidated {removed} cache entries before rescan")
            except StorageUnavailable as e:
                logger.warning(f"Cache invalidation failed, reading tags directly: {e}")
                return self.scan(paths, use_cache=False)
        return self.scan(paths)

    def invalidate(self, paths: Iterable[Union[str, Path]]) -> int:
        if self.store is None:
            return 0
        return self.store.invalidate(paths)

    def clear_cache(self) -> int:
        """Clear all cache entries.

        Returns:
            Number of entries removed
        """
        if self.store is None:
            return 0
        count = self.store.clear()
        logger.info(f"Cleared {count} cache entries")
        self._cache_hits = 0
        self._cache_misses = 0
        return count

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache and performance statistics."""
        stats: Dict[str, Any] = self.store.stats() if self.store is not None else {'total_entries': 0}
        lookups = self._cache_hits + self._cache_misses
        stats.update({
            'cache_hits': self._cache_hits,
            'cache_misses': self._cache_misses,
            'hit_rate': self._cache_hits / lookups if lookups > 0 else 0.0,
        })
        return stats
