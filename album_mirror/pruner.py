"""Removal of local files the catalog no longer has."""

import logging
from pathlib import Path

from .errors import PruneError
from .models import LocalState

logger = logging.getLogger(__name__)


class Pruner:
    """Deletes an album's leftover files, then its leftover directories."""

    def __init__(self, sync_root: Path, delete: bool = True, dry_run: bool = False):
        self.sync_root = Path(sync_root)
        self.delete = delete
        self.dry_run = dry_run

    def prune(self, state: LocalState) -> int:
        """
        Remove everything left in state.

        Files go first across the whole set; directories follow deepest
        first so each one is empty when its removal is attempted.

        Returns:
            Number of files and directories removed (or that would be)

        Raises:
            PruneError: If a file or directory cannot be removed
        """
        if not len(state):
            return 0

        if not self.delete:
            logger.debug(f"Deletion disabled, keeping {len(state)} orphaned entries")
            return 0

        files = sorted(state.files())
        directories = sorted(state.directories(), key=lambda p: (len(p.parts), str(p)), reverse=True)

        for relative in files:
            full_path = self.sync_root / relative
            if self.dry_run:
                logger.info(f"DRY RUN: not removing file {relative}")
                continue
            try:
                full_path.unlink()
            except OSError as e:
                raise PruneError(f"error removing file {full_path}: {e}") from e
            logger.info(f"    removed file {relative}")

        for relative in directories:
            full_path = self.sync_root / relative
            if self.dry_run:
                logger.info(f"DRY RUN: not removing directory {relative}")
                continue
            try:
                full_path.rmdir()
            except OSError as e:
                raise PruneError(f"error removing directory {full_path}: {e}") from e
            logger.info(f"    removed directory {relative}")

        removed = len(files) + len(directories)
        logger.info(f"{'DRY RUN: would remove' if self.dry_run else 'removed'} "
                    f"{removed} files and directories")
        return removed
