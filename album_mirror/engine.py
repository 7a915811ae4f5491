"""Per-album reconciliation of remote images against local files."""

import logging
from typing import Optional

from .catalog import CatalogClient
from .config import Config
from .downloader import MediaDownloader
from .errors import AlbumSyncError, MirrorError
from .models import Album, Image, LocalState
from .pruner import Pruner
from .scanner import LocalStateScanner
from .summary import SKIPPED, AlbumResult, RunSummary
from .utils import directory_mtime_matches, format_bytes, set_directory_mtime

logger = logging.getLogger(__name__)


class AlbumReconciler:
    """
    Brings one album directory in line with the catalog.

    A reconciler holds no per-album state, so one instance can serve every
    worker thread of a run; the LocalState of each album lives only inside
    reconcile().
    """

    def __init__(
        self,
        config: Config,
        catalog: CatalogClient,
        summary: RunSummary,
        downloader: Optional[MediaDownloader] = None,
    ):
        """
        Initialize reconciler with configuration.

        Args:
            config: Configuration instance
            catalog: Source of album image listings
            summary: Run summary shared by all albums
            downloader: Downloader to use; built from config if omitted
        """
        self.config = config
        self.catalog = catalog
        self.summary = summary
        self.sync_root = config.get_sync_root()
        self.dry_run = config.is_dry_run()
        self.fast = config.is_fast()
        self.include_pictures = config.include_pictures()
        self.include_videos = config.include_videos()

        download_config = config.get_download_config()
        self.scanner = LocalStateScanner(self.sync_root, download_config['chunk_size'])
        self.pruner = Pruner(self.sync_root, delete=config.should_delete(), dry_run=self.dry_run)
        self.downloader = downloader or MediaDownloader(summary, **download_config)

    def reconcile(self, album: Album) -> AlbumResult:
        """
        Reconcile a single album.

        Steps: fast-path timestamp check, local scan, image listing, per-image
        sync, pruning of leftovers, and finally stamping the album directory
        with the album's last-updated time.

        Raises:
            AlbumSyncError: Wrapping whatever failed, with album context
        """
        album_path = str(album.relative_path)
        try:
            return self._reconcile(album)
        except AlbumSyncError:
            raise
        except (MirrorError, OSError) as e:
            raise AlbumSyncError(album_path, e) from e

    def close(self) -> None:
        self.downloader.close()

    def _reconcile(self, album: Album) -> AlbumResult:
        relative = album.relative_path
        full_path = self.sync_root / relative
        updated = album.updated_timestamp()
        result = AlbumResult(album_path=str(relative))

        if self.fast and directory_mtime_matches(full_path, updated):
            logger.info(f"Skipping {relative} [{album.url}], timestamp of {album.last_updated} matches")
            result.status = SKIPPED
            return result

        logger.info(f"Processing {relative} [{album.url}] (updated {album.last_updated})")

        state = self.scanner.scan(full_path)
        images = self.catalog.list_images(album)

        for image in images:
            try:
                self.sync_image(album, image, state, result)
            except (MirrorError, OSError) as e:
                raise AlbumSyncError(str(relative), e, image=f"{image.filename} (id {image.id})") from e

        result.removed = self.pruner.prune(state)

        if not self.dry_run:
            if full_path.is_dir():
                set_directory_mtime(full_path, updated)
            else:
                logger.debug(f"No local directory for {relative}, timestamp not set")

        logger.info(
            f"Finished {relative}: {result.downloaded} downloaded, "
            f"{result.unchanged} unchanged, {result.removed} removed"
        )
        return result

    def sync_image(self, album: Album, image: Image, state: LocalState, result: AlbumResult) -> None:
        """Classify one image and download it if it is new or changed."""
        relative = album.relative_path / image.filename
        local = state.get(relative)

        if image.is_video and not self.include_videos:
            logger.debug(f"    skipping video file {relative}")
            state.mark_present(relative)
            result.filtered += 1
            return
        if not image.is_video and not self.include_pictures:
            logger.debug(f"    skipping picture file {relative}")
            state.mark_present(relative)
            result.filtered += 1
            return

        if not image.is_video and local == image.md5:
            logger.debug(f"    skipping unchanged file {relative}")
            state.mark_present(relative)
            result.unchanged += 1
            return

        if image.is_video and local is not None:
            # Video checksums differ between renditions, so trust the name
            logger.debug(f"    skipping existing video (assuming unchanged) {relative}")
            state.mark_present(relative)
            result.unchanged += 1
            return

        changed = "(file changed)" if local is not None else "(new file)"
        state.mark_present(relative)

        if self.dry_run:
            logger.info(f"    {relative}: dry run, not downloading {changed}")
            self.summary.add_download(image.size)
            result.downloaded += 1
            result.bytes_downloaded += image.size
            return

        url = image.download_url()
        expected_size = None if image.is_video else image.size
        size = self.downloader.download(url, self.sync_root / relative, expected_size)
        logger.info(f"    {relative}: downloaded {format_bytes(size)} {changed}")
        result.downloaded += 1
        result.bytes_downloaded += size
