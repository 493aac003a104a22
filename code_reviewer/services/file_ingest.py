"""
File Ingestion Module

Turns dropped files and directory trees into the file set sent for review.

Design Decisions:
- One collector does all bookkeeping (filters, limits, dedup); the walkers
  only feed it paths and lazily-read content
- Excluded directories are pruned during the walk and also rejected by
  path segment, so uploads carrying relative paths are filtered too
- The first occurrence of a path wins; later duplicates are reported
- Oversized and non-UTF-8 files are skipped and reported, never truncated
- A file that cannot be read is skipped; only an unreadable root is an error
"""

import os
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, List, Optional, Set, Tuple

from code_reviewer.config import get_settings
from code_reviewer.logging_config import get_logger
from code_reviewer.models import FileContent, IngestionResult, SkippedFile, SkipReason

logger = get_logger(__name__)


class IngestionError(Exception):
    """Raised when an ingestion source cannot be read at all."""
    pass


def normalize_path(path: str) -> Optional[str]:
    """
    Normalize a relative file path to forward-slash form.

    Returns:
        The normalized path, or None if it is empty or escapes its root
    """
    cleaned = path.replace("\\", "/").strip()
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    cleaned = cleaned.lstrip("/")

    parts = [p for p in cleaned.split("/") if p not in ("", ".")]
    if not parts or ".." in parts:
        return None
    return "/".join(parts)


class FileCollector:
    """
    Accumulates accepted files for one ingestion batch.

    Usage:
        collector = FileCollector()
        collector.add("src/app.py", size, read_bytes)
        result = collector.result()
    """

    def __init__(
        self,
        accepted_extensions: Optional[Iterable[str]] = None,
        excluded_dirs: Optional[Iterable[str]] = None,
        max_file_size: Optional[int] = None,
        max_total_size: Optional[int] = None
    ):
        """Limits and filters default to the configured settings."""
        settings = get_settings()
        self.accepted_extensions: Set[str] = {
            e.lstrip(".").lower()
            for e in (accepted_extensions if accepted_extensions is not None
                      else settings.accepted_extensions_list)
        }
        self.excluded_dirs: Set[str] = set(
            excluded_dirs if excluded_dirs is not None else settings.excluded_dirs_list
        )
        self.max_file_size = max_file_size or settings.max_file_size_bytes
        self.max_total_size = max_total_size or settings.max_total_size_bytes

        self._files: List[FileContent] = []
        self._seen: Set[str] = set()
        self._skipped: List[SkippedFile] = []
        self.total_size = 0

    def is_excluded_dir(self, name: str) -> bool:
        """True if a directory with this name is never ingested."""
        return name in self.excluded_dirs

    def _skip(self, path: str, reason: SkipReason, size: Optional[int] = None) -> bool:
        """Record a rejected file; always returns False."""
        self._skipped.append(SkippedFile(path=path, reason=reason, size=size))
        logger.debug("Skipping file", path=path, reason=reason.value, size=size)
        return False

    def add(self, path: str, size: int, read: Callable[[], bytes]) -> bool:
        """
        Offer one file to the batch.

        Args:
            path: Relative path of the file
            size: File size in bytes
            read: Callable returning the file's bytes; only called once the
                file has passed every cheap check

        Returns:
            True if the file was accepted
        """
        normalized = normalize_path(path)
        if normalized is None:
            return self._skip(path, SkipReason.INVALID_PATH, size)

        parts = normalized.split("/")
        if any(self.is_excluded_dir(d) for d in parts[:-1]):
            return self._skip(normalized, SkipReason.EXCLUDED_DIRECTORY, size)

        suffix = PurePosixPath(parts[-1]).suffix
        if not suffix or suffix[1:].lower() not in self.accepted_extensions:
            return self._skip(normalized, SkipReason.UNSUPPORTED_EXTENSION, size)

        if normalized in self._seen:
            return self._skip(normalized, SkipReason.DUPLICATE, size)

        if size > self.max_file_size:
            return self._skip(normalized, SkipReason.FILE_TOO_LARGE, size)

        if self.total_size + size > self.max_total_size:
            return self._skip(normalized, SkipReason.TOTAL_SIZE_EXCEEDED, size)

        try:
            data = read()
        except OSError as e:
            return self.skip_unreadable(normalized, e, size)

        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError:
            return self._skip(normalized, SkipReason.NOT_UTF8, size)

        self._seen.add(normalized)
        self._files.append(FileContent(path=normalized, content=content))
        self.total_size += size
        return True

    def skip_unreadable(self, path: str, error: OSError, size: Optional[int] = None) -> bool:
        """Record a file whose size or content could not be read."""
        logger.warning("Cannot read file", path=path, error=str(error))
        return self._skip(path, SkipReason.UNREADABLE, size)

    def result(self) -> IngestionResult:
        """Snapshot of the files accepted and skipped so far."""
        return IngestionResult(
            files=list(self._files),
            skipped=list(self._skipped),
            total_size=self.total_size
        )


def get_file_collector() -> FileCollector:
    """FastAPI dependency returning a collector configured from settings."""
    return FileCollector()


def _walk(collector: FileCollector, root: Path, recurse: bool) -> None:
    """Feed every file under ``root`` to the collector in sorted order."""
    for dirpath, dirnames, filenames in os.walk(root):
        # os.walk only descends into what is left in dirnames
        dirnames[:] = sorted(
            d for d in dirnames if recurse and not collector.is_excluded_dir(d)
        )
        rel_dir = Path(dirpath).relative_to(root).as_posix()

        for name in sorted(filenames):
            rel_path = name if rel_dir == "." else f"{rel_dir}/{name}"
            file_path = Path(dirpath) / name
            try:
                size = file_path.stat().st_size
            except OSError as e:
                collector.skip_unreadable(rel_path, e)
                continue
            collector.add(rel_path, size, file_path.read_bytes)


def ingest_directory(
    root: Path,
    allow_directories: bool = True,
    collector: Optional[FileCollector] = None
) -> IngestionResult:
    """
    Walk a local directory tree and collect its reviewable files.

    Paths in the result are relative to ``root``. With
    ``allow_directories=False`` only the files directly inside ``root``
    are considered. Files that cannot be read are reported as skipped.

    Raises:
        IngestionError: If ``root`` is not a readable directory
    """
    root = Path(root)
    if not root.is_dir():
        raise IngestionError(f"Not a directory: {root}")
    try:
        os.listdir(root)
    except OSError as e:
        raise IngestionError(f"Cannot read directory {root}: {e}") from e

    collector = collector or FileCollector()
    _walk(collector, root, recurse=allow_directories)
    result = collector.result()

    logger.info(
        "Ingested directory",
        root=str(root),
        num_files=len(result.files),
        num_skipped=len(result.skipped),
        total_size=result.total_size
    )
    return result


def ingest_upload_files(
    uploads: Iterable[Tuple[str, int, Callable[[], bytes]]],
    allow_directories: bool = True,
    collector: Optional[FileCollector] = None
) -> IngestionResult:
    """
    Collect uploaded files given as (relative path, size, reader) triples.

    The reader is only called for files that pass the path, extension and
    size checks, so rejected uploads are never loaded into memory.

    Browser directory uploads carry the relative path in the file name.
    Without directory support only the base name is kept, matching a plain
    multi-file picker.
    """
    collector = collector or FileCollector()

    for path, size, read in uploads:
        if not allow_directories:
            path = PurePosixPath(path.replace("\\", "/")).name
        collector.add(path, size, read)

    result = collector.result()
    logger.info(
        "Ingested uploads",
        num_files=len(result.files),
        num_skipped=len(result.skipped),
        total_size=result.total_size
    )
    return result


def ingest_uploads(
    uploads: Iterable[Tuple[str, bytes]],
    allow_directories: bool = True,
    collector: Optional[FileCollector] = None
) -> IngestionResult:
    """Collect uploaded files already held in memory as (relative path, bytes) pairs."""
    return ingest_upload_files(
        ((path, len(data), lambda data=data: data) for path, data in uploads),
        allow_directories=allow_directories,
        collector=collector
    )
