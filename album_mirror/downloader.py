"""Media downloads with size verification."""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

import requests

from .errors import DownloadError, SizeMismatchError
from .summary import RunSummary
from .utils import ensure_directory, format_bytes

logger = logging.getLogger(__name__)


class MediaDownloader:
    """
    Fetches one URL at a time into the local tree.

    Files are streamed into a ``.part`` sibling and moved over the
    destination only once complete, so a failed download never leaves a
    truncated file under the real name. There are no retries: any failure
    is raised to the caller.
    """

    PART_SUFFIX = ".part"

    def __init__(
        self,
        summary: RunSummary,
        session: Optional[requests.Session] = None,
        timeout: Tuple[int, int] = (10, 300),
        chunk_size: int = 65536,
    ):
        """
        Initialize the downloader.

        Args:
            summary: Run summary that successful downloads are counted in
            session: HTTP session to reuse; one is created if omitted
            timeout: Request timeout (connect, read)
            chunk_size: Download chunk size in bytes
        """
        self.summary = summary
        self.session = session or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def download(self, url: str, destination: Path, expected_size: Optional[int] = None) -> int:
        """
        Download url to destination, replacing any existing file.

        Args:
            url: Resolved source URL
            destination: Absolute destination path
            expected_size: Byte count to verify against; None skips the check

        Returns:
            Number of bytes written

        Raises:
            DownloadError: On transport errors or a non-2xx status
            SizeMismatchError: If expected_size is given and does not match
        """
        destination = Path(destination)
        part_path = destination.with_name(destination.name + self.PART_SUFFIX)

        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise DownloadError(f"error downloading {url}: {e}") from e

        try:
            if not 200 <= response.status_code < 300:
                raise DownloadError(f"unexpected status code downloading {url}: {response.status_code}")

            ensure_directory(destination.parent)
            size = 0
            try:
                with open(part_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            f.write(chunk)
                            size += len(chunk)
                    f.flush()
                    os.fsync(f.fileno())
            except requests.exceptions.RequestException as e:
                part_path.unlink(missing_ok=True)
                raise DownloadError(f"error downloading {url}: {e}") from e
            except OSError:
                part_path.unlink(missing_ok=True)
                raise
        finally:
            response.close()

        if expected_size is not None and size != expected_size:
            part_path.unlink(missing_ok=True)
            raise SizeMismatchError(url, size, expected_size)

        os.replace(part_path, destination)
        self.summary.add_download(size)
        logger.debug(f"Saved {destination} ({format_bytes(size)})")
        return size

    def close(self) -> None:
        self.session.close()
