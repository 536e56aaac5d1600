"""Collision-free destination filenames within one organize batch."""

import logging
from pathlib import Path
from typing import Dict, Tuple

logger = logging.getLogger(__name__)


def split_extension(filename: str) -> Tuple[str, str]:
    """Split ``filename`` into (stem, extension without the dot).

    A name whose only dot is the leading one has no extension.
    """
    stem, dot, ext = filename.rpartition('.')
    if not dot or not stem:
        return filename, ""
    return stem, ext


def numbered_filename(filename: str, counter: int) -> str:
    """Insert ``_{counter}`` before the extension: ``a.mp3`` -> ``a_1.mp3``."""
    stem, ext = split_extension(filename)
    if not ext:
        return f"{stem}_{counter}"
    return f"{stem}_{counter}.{ext}"


class NameResolver:
    """Hand out unique filenames per category folder for one batch.

    The resolver remembers, per category, the last suffix counter used for each
    original filename. Only the first request for a name probes the disk; later
    requests continue from the stored counter. That holds because the organizer
    writes each file right after resolving it, in input order. Two different
    originals that collide after numbering (``a_1.mp3`` requested verbatim
    next to a numbered ``a.mp3``) are not checked against each other.

    Create a new resolver for every batch; it is not shared between batches.
    """

    def __init__(self) -> None:
        self._allocations: Dict[str, Dict[str, int]] = {}

    def resolve(self, destination_folder: Path, filename: str, category: str) -> str:
        """Return a name for ``filename`` that is free in ``destination_folder``."""
        used = self._allocations.setdefault(category, {})

        if filename in used:
            counter = used[filename] + 1
            used[filename] = counter
            return numbered_filename(filename, counter)

        if not (destination_folder / filename).exists():
            used[filename] = 0
            return filename

        counter = 1
        while (destination_folder / numbered_filename(filename, counter)).exists():
            counter += 1
        used[filename] = counter
        resolved = numbered_filename(filename, counter)
        logger.debug(f"{filename} exists in {destination_folder}, using {resolved}")
        return resolved

    def allocated(self, category: str) -> Dict[str, int]:
        """Copy of the counters recorded for ``category``."""
        return dict(self._allocations.get(category, {}))
