"""Utility functions for album mirroring."""

import hashlib
import logging
import os
import stat
from datetime import datetime
from pathlib import Path

import psutil

from .errors import MirrorError

logger = logging.getLogger(__name__)


def calculate_md5(file_path: Path, chunk_size: int = 65536) -> str:
    """
    Calculate the MD5 hash of a file by streaming it.

    Args:
        file_path: Path to file
        chunk_size: Size of chunks to read at a time

    Returns:
        MD5 hash as lowercase hexadecimal string

    Raises:
        OSError: If the file cannot be read
    """
    hasher = hashlib.md5()
    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)
    return hasher.hexdigest()


def format_bytes(bytes_value: int) -> str:
    """
    Format bytes as human-readable string.

    Args:
        bytes_value: Size in bytes

    Returns:
        Formatted string like "1.2GB"
    """
    if bytes_value == 0:
        return "0B"

    units = ['B', 'KB', 'MB', 'GB', 'TB']
    unit_index = 0
    size = float(bytes_value)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    return f"{size:.1f}{units[unit_index]}"


def get_available_space(path: Path) -> int:
    """
    Get available disk space for a path in bytes.

    Walks up to the nearest existing ancestor so a sync root that has not
    been created yet can still be checked.
    """
    path = Path(path).absolute()
    while not path.exists() and path != path.parent:
        path = path.parent
    try:
        return psutil.disk_usage(str(path)).free
    except OSError as e:
        logger.error(f"Failed to get disk space for {path}: {e}")
        return 0


def check_free_space(path: Path, min_free_space_gb: float) -> int:
    """
    Fail when the filesystem holding path has less than the required space.

    Returns:
        Available space in bytes
    """
    available = get_available_space(path)
    if min_free_space_gb <= 0:
        return available
    needed = int(min_free_space_gb * 1024 * 1024 * 1024)
    if available < needed:
        raise MirrorError(
            f"Insufficient space at {path}: {format_bytes(available)} available, "
            f"need at least {format_bytes(needed)}"
        )
    logger.info(f"Space check OK: {format_bytes(available)} available at {path}")
    return available


def ensure_directory(path: Path) -> None:
    """Create a directory and its parents if they are missing."""
    Path(path).mkdir(parents=True, exist_ok=True)


def directory_mtime_matches(path: Path, timestamp: float) -> bool:
    """Whether path is a directory whose modification time equals timestamp."""
    try:
        info = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    return stat.S_ISDIR(info.st_mode) and info.st_mtime == timestamp


def set_directory_mtime(path: Path, timestamp: float) -> None:
    """Set both access and modification time of a directory."""
    os.utime(path, (timestamp, timestamp))


def get_current_timestamp() -> str:
    """Get current timestamp as ISO string."""
    return datetime.now().isoformat()
