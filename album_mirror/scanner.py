"""Local state scanning."""

import logging
import os
from pathlib import Path

from .models import LocalState
from .utils import calculate_md5, format_bytes

logger = logging.getLogger(__name__)


def _raise(error: OSError) -> None:
    raise error


class LocalStateScanner:
    """Builds a path -> fingerprint snapshot of a directory subtree."""

    def __init__(self, sync_root: Path, chunk_size: int = 65536):
        self.sync_root = Path(sync_root)
        self.chunk_size = chunk_size

    def scan(self, directory: Path) -> LocalState:
        """
        Walk a directory below the sync root and fingerprint every file.

        The directory itself is recorded too, so an album directory that
        ends up unused is a deletion candidate like any other.

        Args:
            directory: Absolute directory to walk; may not exist

        Returns:
            LocalState keyed by paths relative to the sync root

        Raises:
            OSError: If any directory cannot be listed or file cannot be read
        """
        state = LocalState()
        directory = Path(directory)
        if not directory.is_dir():
            logger.debug(f"Nothing to scan at {directory}")
            return state

        file_count = 0
        total_size = 0
        for dirpath, _dirnames, filenames in os.walk(directory, onerror=_raise):
            current = Path(dirpath)
            state.record_directory(self._relative(current))
            for filename in filenames:
                file_path = current / filename
                try:
                    fingerprint = calculate_md5(file_path, self.chunk_size)
                except OSError as e:
                    logger.error(f"Error reading {file_path}: {e}")
                    raise
                state.record_file(self._relative(file_path), fingerprint)
                file_count += 1
                total_size += file_path.stat().st_size

        logger.debug(f"Scanned {directory}: {file_count} files, {format_bytes(total_size)}")
        return state

    def _relative(self, path: Path) -> Path:
        try:
            return path.relative_to(self.sync_root)
        except ValueError:
            return path
