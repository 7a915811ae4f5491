"""Run-wide counters and per-album outcomes."""

import threading
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .utils import format_bytes

SYNCED = 'synced'
SKIPPED = 'skipped'
FAILED = 'failed'
CANCELLED = 'cancelled'


@dataclass
class AlbumResult:
    """Outcome of reconciling one album."""
    album_path: str
    status: str = SYNCED
    downloaded: int = 0
    bytes_downloaded: int = 0
    unchanged: int = 0
    filtered: int = 0
    removed: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (SYNCED, SKIPPED)


class RunSummary:
    """
    Totals shared by every album task in a run.

    Album tasks run on worker threads, so every mutation goes through the
    lock. Reads of the counters are only meaningful once the run is over.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.file_count = 0
        self.total_bytes = 0
        self.results: List[AlbumResult] = []
        self.started = time.time()
        self.finished: Optional[float] = None
        self._lock = threading.Lock()

    def add_download(self, size: int, files: int = 1) -> None:
        """Count a downloaded (or, in dry-run, would-be downloaded) file."""
        with self._lock:
            self.file_count += files
            self.total_bytes += size

    def add_result(self, result: AlbumResult) -> None:
        with self._lock:
            self.results.append(result)

    def finish(self) -> None:
        self.finished = time.time()

    @property
    def elapsed(self) -> float:
        end = self.finished if self.finished is not None else time.time()
        return end - self.started

    @property
    def failed(self) -> List[AlbumResult]:
        return [r for r in self.results if r.status == FAILED]

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    def describe(self) -> str:
        verb = "Would download" if self.dry_run else "Downloaded"
        return (f"{verb} {self.file_count:,} files ({format_bytes(self.total_bytes)}) "
                f"in {self.elapsed:.1f}s")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dry_run': self.dry_run,
            'files_downloaded': self.file_count,
            'bytes_downloaded': self.total_bytes,
            'bytes_downloaded_human': format_bytes(self.total_bytes),
            'elapsed_seconds': round(self.elapsed, 3),
            'albums': {
                'total': len(self.results),
                'synced': self.count(SYNCED),
                'skipped': self.count(SKIPPED),
                'failed': self.count(FAILED),
                'cancelled': self.count(CANCELLED),
            },
            'results': [asdict(r) for r in self.results],
            'success': self.ok,
        }
