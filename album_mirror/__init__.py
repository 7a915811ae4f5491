"""
Album Mirror

One-way mirroring of a remote photo/video album hierarchy onto a local
directory tree: new and changed media are downloaded, unchanged media are
left alone, and local files the catalog no longer has are removed.
"""

__version__ = "1.0.0"

from .config import Config
from .catalog import CatalogClient, SmugMugClient
from .downloader import MediaDownloader
from .engine import AlbumReconciler
from .models import Album, Image, LocalState, MediaKind
from .pruner import Pruner
from .reporter import MirrorReporter
from .scanner import LocalStateScanner
from .scheduler import AlbumScheduler
from .summary import AlbumResult, RunSummary

__all__ = [
    'Config',
    'CatalogClient',
    'SmugMugClient',
    'MediaDownloader',
    'AlbumReconciler',
    'Album',
    'Image',
    'LocalState',
    'MediaKind',
    'Pruner',
    'MirrorReporter',
    'LocalStateScanner',
    'AlbumScheduler',
    'AlbumResult',
    'RunSummary',
]
