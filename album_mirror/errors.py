"""Exception hierarchy for album mirroring."""

from typing import Optional


class MirrorError(Exception):
    """Base exception for all mirroring failures."""


class ConfigError(MirrorError):
    """Raised when configuration is missing or invalid."""


class CatalogError(MirrorError):
    """Raised when the remote catalog rejects or fails a request."""


class DataError(MirrorError):
    """Raised when remote data cannot be interpreted."""


class TimestampError(DataError):
    """Raised when an album's last-updated timestamp cannot be parsed."""


class MissingFilenameError(DataError):
    """Raised when an image record carries no filename."""


class UnknownFormatError(DataError):
    """Raised when an image format code is neither a picture nor a video."""


class NoVideoURLError(DataError):
    """Raised when a video offers no non-empty quality tier."""


class DownloadError(MirrorError):
    """Raised when fetching or saving a file fails."""


class SizeMismatchError(DownloadError):
    """Raised when a downloaded picture's byte count differs from the catalog."""

    def __init__(self, url: str, actual: int, expected: int):
        super().__init__(f"downloaded {actual} bytes from {url}, expected {expected}")
        self.url = url
        self.actual = actual
        self.expected = expected


class PruneError(MirrorError):
    """Raised when a leftover file or directory cannot be removed."""


class AlbumSyncError(MirrorError):
    """Wraps any failure with the album (and image) it happened in."""

    def __init__(self, album_path: str, cause: Exception, image: Optional[str] = None):
        self.album_path = album_path
        self.image = image
        self.cause = cause
        if image:
            message = f"{album_path}: image {image}: {cause}"
        else:
            message = f"{album_path}: {cause}"
        super().__init__(message)
