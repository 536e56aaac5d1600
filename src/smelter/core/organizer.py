"""Organize audio files into category folders."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..domain.result import Failure, Result, Success
from ..exceptions import ConfigurationFailure, FilesystemFailure, SmelterError
from ..models.audio_metadata import (
    AudioMetadata,
    DuplicateInfo,
    FileOperation,
    OrganizeMode,
    OrganizeResult,
    SourceDuplicateFile,
    SourceDuplicateGroup,
)
from .categorizer import Categorizer
from .naming import NameResolver

logger = logging.getLogger(__name__)

Mode = Union[str, OrganizeMode]


class OrganizeEngine:
    """Plan and carry out moves or copies of audio files into category folders.

    Batch methods never stop on a single file's failure. Every file produces a
    ``Result`` and the batch folds those into an ``OrganizeResult``.
    """

    def __init__(self, categorizer: Optional[Categorizer] = None) -> None:
        self.categorizer = categorizer or Categorizer()

    def preview(self, files: Iterable[AudioMetadata], mode: Mode) -> Dict[str, List[str]]:
        """Map each category folder to the filenames that would land in it."""
        preview: Dict[str, List[str]] = {}
        for file in files:
            category = self.categorizer.folder_for(file, mode)
            preview.setdefault(category, []).append(file.filename)
        return preview

    def find_destination_duplicates(
        self, files: Iterable[AudioMetadata], destination: Path, mode: Mode
    ) -> List[DuplicateInfo]:
        """Find files whose destination path already exists."""
        destination = Path(destination)
        duplicates = []

        for file in files:
            category = self.categorizer.folder_for(file, mode)
            target_path = destination / category / file.filename
            if target_path.exists():
                duplicates.append(DuplicateInfo(
                    source_path=file.path,
                    source_filename=file.filename,
                    existing_path=target_path,
                    category=category,
                ))

        return duplicates

    def find_source_duplicates(
        self, files: Iterable[AudioMetadata], mode: Mode
    ) -> List[SourceDuplicateGroup]:
        """Group input files that share a filename and a category folder.

        Only groups with two or more files are returned, ordered by first
        appearance in ``files``.
        """
        groups: Dict[Tuple[str, str], SourceDuplicateGroup] = {}

        for file in files:
            category = self.categorizer.folder_for(file, mode)
            key = (file.filename, category)
            group = groups.get(key)
            if group is None:
                group = groups[key] = SourceDuplicateGroup(filename=file.filename, category=category)
            group.files.append(SourceDuplicateFile(path=file.path, folder=file.parent_folder))

        return [group for group in groups.values() if len(group.files) > 1]

    def execute(
        self,
        files: Sequence[AudioMetadata],
        destination: Path,
        mode: Mode,
        operation: Union[str, FileOperation],
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> OrganizeResult:
        """Move or copy every file into ``destination/<category>/``.

        Raises:
            FilesystemFailure: If ``destination`` cannot be created. Nothing is
                touched in that case.
        """
        destination = Path(destination)
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemFailure.from_os_error(e, destination, "create output folder")

        result = OrganizeResult()
        resolver = NameResolver()

        for index, file in enumerate(files):
            if should_cancel is not None and should_cancel():
                result.skipped_count += len(files) - index
                logger.info(f"Organize cancelled, skipped {len(files) - index} files")
                break

            outcome = self._organize_file(file, destination, mode, operation, resolver)
            if outcome.is_success():
                result.success_count += 1
                logger.debug(f"{operation_name(operation)} {file.path} -> {outcome.value()}")
            else:
                result.error_count += 1
                result.errors.append(str(outcome.error()))
                logger.error(f"Failed to organize {file.path}: {outcome.error()}")

        logger.info(
            f"Organized into {destination}: {result.success_count} succeeded, "
            f"{result.error_count} failed, {result.skipped_count} skipped"
        )
        return result

    def _organize_file(
        self,
        file: AudioMetadata,
        destination: Path,
        mode: Mode,
        operation: Union[str, FileOperation],
        resolver: NameResolver,
    ) -> Result[Path, SmelterError]:
        category = self.categorizer.folder_for(file, mode)
        category_path = destination / category
        try:
            category_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Failure(FilesystemFailure.from_os_error(e, category, "create folder"))

        try:
            op = FileOperation.parse(operation)
        except ConfigurationFailure as e:
            return Failure(e)

        target = category_path / resolver.resolve(category_path, file.filename, category)

        try:
            if op is FileOperation.MOVE:
                _move_file(file.path, target)
            else:
                shutil.copy2(file.path, target)
        except FilesystemFailure as e:
            return Failure(e)
        except OSError as e:
            return Failure(FilesystemFailure.from_os_error(e, file.path, op.value))

        return Success(target)

    def delete(self, paths: Iterable[Union[str, Path]]) -> Tuple[int, List[str]]:
        """Delete each path, carrying on past failures.

        Returns:
            (number deleted, error messages)
        """
        deleted = 0
        errors: List[str] = []

        for path in paths:
            try:
                os.remove(path)
            except OSError as e:
                errors.append(str(FilesystemFailure.from_os_error(e, path, "delete")))
                continue
            deleted += 1

        logger.info(f"Deleted {deleted} files, {len(errors)} failures")
        return deleted, errors


def _move_file(source: Path, target: Path) -> None:
    """Rename ``source`` to ``target``, copying then deleting across devices.

    When the copy succeeds but the source cannot be removed, the copy stays in
    place and the failure is raised for the caller to report.
    """
    try:
        os.rename(source, target)
        return
    except OSError as e:
        logger.debug(f"Rename of {source} failed ({e}), falling back to copy + delete")

    shutil.copy2(source, target)
    try:
        os.remove(source)
    except OSError as e:
        raise FilesystemFailure.from_os_error(e, source, "remove the original after copying")


def operation_name(operation: Union[str, FileOperation]) -> str:
    return operation.value if isinstance(operation, FileOperation) else str(operation)
