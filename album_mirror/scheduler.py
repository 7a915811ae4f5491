"""Bounded parallel reconciliation of many albums."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List

from tqdm import tqdm

from .engine import AlbumReconciler
from .errors import AlbumSyncError
from .models import Album
from .summary import CANCELLED, FAILED, AlbumResult, RunSummary

logger = logging.getLogger(__name__)


class AlbumScheduler:
    """
    Runs one reconciliation task per album on a fixed pool of workers.

    Every album ends with an AlbumResult in the summary, failed ones
    included, so a broken album never hides the outcome of the others. With
    fail_fast, albums that have not started yet once a failure is seen are
    recorded as cancelled instead of being run.
    """

    def __init__(self, reconciler: AlbumReconciler, summary: RunSummary,
                 jobs: int = 1, fail_fast: bool = False):
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.reconciler = reconciler
        self.summary = summary
        self.jobs = jobs
        self.fail_fast = fail_fast
        self._abort = threading.Event()

    def run(self, albums: List[Album], show_progress: bool = False) -> RunSummary:
        """
        Reconcile all albums and return the shared summary.

        Args:
            albums: Albums in catalog order
            show_progress: Whether to show a tqdm progress bar
        """
        logger.info(f"Reconciling {len(albums)} albums with {self.jobs} parallel jobs")

        with tqdm(total=len(albums), desc="Albums", unit="albums", disable=not show_progress) as pbar:
            with ThreadPoolExecutor(max_workers=self.jobs) as executor:
                future_to_album = {
                    executor.submit(self._run_album, album): album
                    for album in albums
                }

                for future in as_completed(future_to_album):
                    result = future.result()
                    self.summary.add_result(result)
                    if result.status == FAILED and self.fail_fast:
                        self._abort.set()
                    pbar.update(1)

        self.summary.finish()

        failed = self.summary.failed
        if failed:
            logger.error(f"{len(failed)} of {len(albums)} albums failed")
        return self.summary

    def _run_album(self, album: Album) -> AlbumResult:
        album_path = str(album.relative_path)
        if self._abort.is_set():
            logger.warning(f"Not processing {album_path}, run aborted after an earlier failure")
            return AlbumResult(album_path=album_path, status=CANCELLED)

        try:
            return self.reconciler.reconcile(album)
        except AlbumSyncError as e:
            error = str(e)
        except Exception as e:
            logger.exception(f"Unexpected error processing album {album_path}")
            error = str(AlbumSyncError(album_path, e))

        logger.error(f"Error processing album {album.url or album_path}: {error}")
        if self.fail_fast:
            self._abort.set()
        return AlbumResult(album_path=album_path, status=FAILED, error=error)
