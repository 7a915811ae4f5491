"""Album, image and local-state models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from .errors import (
    DataError,
    MissingFilenameError,
    NoVideoURLError,
    TimestampError,
    UnknownFormatError,
)

# Catalog timestamps are reported in the account's local time
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Highest quality first
VIDEO_TIERS = (1920, 1280, 960, 640, 320)

DIRECTORY = "directory"


class MediaKind(Enum):
    """Kind of media an image record describes."""

    PICTURE = "picture"
    VIDEO = "video"

    @classmethod
    def from_format(cls, format_code: str) -> "MediaKind":
        """
        Classify a catalog format code.

        Args:
            format_code: Format as reported by the catalog, e.g. "JPG"

        Returns:
            The matching media kind

        Raises:
            UnknownFormatError: If the code is not a known picture or video format
        """
        kind = _FORMAT_KINDS.get((format_code or "").upper())
        if kind is None:
            raise UnknownFormatError(f"unknown image format: {format_code!r}")
        return kind


_FORMAT_KINDS = {
    "JPG": MediaKind.PICTURE,
    "PNG": MediaKind.PICTURE,
    "GIF": MediaKind.PICTURE,
    "MP4": MediaKind.VIDEO,
    "AVI": MediaKind.VIDEO,
}


@dataclass(frozen=True)
class Album:
    """A remote album and the place it maps to below the sync root."""

    id: int
    key: str
    title: str
    category: str
    last_updated: str
    subcategory: Optional[str] = None
    url: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Album":
        """Build an album from a catalog record."""
        category = (data.get("Category") or {}).get("Name")
        if not category:
            raise DataError(f"album {data.get('id')} has no category")
        subcategory = (data.get("SubCategory") or {}).get("Name") or None
        return cls(
            id=data.get("id", 0),
            key=data.get("Key", ""),
            title=data.get("Title", ""),
            category=category,
            subcategory=subcategory,
            last_updated=data.get("LastUpdated", ""),
            url=data.get("URL", ""),
        )

    @property
    def relative_path(self) -> Path:
        """Destination directory relative to the sync root."""
        path = Path(self.category)
        if self.subcategory:
            path = path / self.subcategory
        return path / self.title

    def updated_at(self) -> datetime:
        """Parse the last-updated timestamp as a local time."""
        try:
            return datetime.strptime(self.last_updated, TIMESTAMP_FORMAT)
        except (TypeError, ValueError) as e:
            raise TimestampError(f"unable to parse timestamp {self.last_updated!r}: {e}") from e

    def updated_timestamp(self) -> float:
        """Last-updated time as seconds since the epoch."""
        return self.updated_at().timestamp()


@dataclass(frozen=True)
class Image:
    """One picture or video in an album."""

    id: int
    key: str
    filename: str
    format: str
    kind: MediaKind
    size: int = 0
    md5: str = ""
    original_url: str = ""
    video_urls: Tuple[Tuple[int, str], ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data: Dict[str, Any], album: Optional[Album] = None) -> "Image":
        """
        Build an image from a catalog record.

        Args:
            data: Heavy image record from the catalog
            album: Owning album, used for error context

        Raises:
            MissingFilenameError: If the record has no filename
            UnknownFormatError: If the format code is not recognised
        """
        filename = data.get("FileName") or ""
        if not filename:
            where = f" in {album.relative_path}" if album else ""
            raise MissingFilenameError(
                f"image with no filename: id={data.get('id')} key={data.get('Key')}{where}"
            )

        try:
            size = int(data.get("Size") or 0)
        except (TypeError, ValueError) as e:
            raise DataError(
                f"invalid size {data.get('Size')!r} for image {filename} id={data.get('id')}"
            ) from e

        format_code = data.get("Format", "")
        return cls(
            id=data.get("id", 0),
            key=data.get("Key", ""),
            filename=filename,
            format=format_code,
            kind=MediaKind.from_format(format_code),
            size=size,
            md5=(data.get("MD5Sum") or "").lower(),
            original_url=data.get("OriginalURL") or "",
            video_urls=tuple(
                (tier, data.get(f"Video{tier}URL") or "") for tier in VIDEO_TIERS
            ),
        )

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    def download_url(self) -> str:
        """
        Pick the URL to fetch.

        Pictures use the original-resolution URL; videos use the highest
        quality tier that carries a URL.
        """
        if self.is_video:
            for _tier, url in self.video_urls:
                if url:
                    return url
            raise NoVideoURLError(f"no valid url found for video {self.filename}")
        if not self.original_url:
            raise DataError(f"no original url for picture {self.filename}")
        return self.original_url


class LocalState:
    """
    Files and directories observed below an album directory.

    Keys are paths relative to the sync root; values are either DIRECTORY or
    the file's lowercase hex MD5. Entries are removed as remote images claim
    them, so whatever is left afterwards is orphaned locally.
    """

    def __init__(self, entries: Optional[Dict[Path, str]] = None):
        self._entries: Dict[Path, str] = dict(entries or {})

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Path]:
        return iter(self._entries)

    def get(self, path: Path) -> Optional[str]:
        return self._entries.get(Path(path))

    def record_directory(self, path: Path) -> None:
        self._entries[Path(path)] = DIRECTORY

    def record_file(self, path: Path, fingerprint: str) -> None:
        self._entries[Path(path)] = fingerprint.lower()

    def mark_present(self, path: Path) -> None:
        """Drop a path and its ancestor directories from the orphan candidates."""
        path = Path(path)
        self._entries.pop(path, None)
        for parent in path.parents:
            if parent == Path("."):
                break
            if self._entries.get(parent) == DIRECTORY:
                del self._entries[parent]

    def files(self) -> Dict[Path, str]:
        return {p: v for p, v in self._entries.items() if v != DIRECTORY}

    def directories(self) -> Dict[Path, str]:
        return {p: v for p, v in self._entries.items() if v == DIRECTORY}

    def leftovers(self) -> Dict[Path, str]:
        return dict(self._entries)
