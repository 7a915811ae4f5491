"""Shared fixtures for album mirror tests."""

import hashlib
import zlib
from typing import Dict, List

import pytest
import requests
import yaml

from album_mirror.catalog import CatalogClient
from album_mirror.config import Config
from album_mirror.downloader import MediaDownloader
from album_mirror.engine import AlbumReconciler
from album_mirror.models import Album, Image
from album_mirror.summary import RunSummary

ALBUM_UPDATED = '2024-03-01 12:00:00'


def md5_of(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


class FakeResponse:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(self, status_code=200, body=b'', fail_after=None):
        self.status_code = status_code
        self.body = body
        self.fail_after = fail_after
        self.closed = False

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.body), chunk_size):
            if self.fail_after is not None and start >= self.fail_after:
                raise requests.exceptions.ConnectionError("connection reset")
            yield self.body[start:start + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Serves canned responses by URL and records every GET."""

    def __init__(self):
        self.responses: Dict[str, object] = {}
        self.requested: List[str] = []
        self.closed = False

    def add(self, url, body=b'', status_code=200, fail_after=None):
        self.responses[url] = FakeResponse(status_code, body, fail_after)

    def add_error(self, url, error):
        self.responses[url] = error

    def get(self, url, stream=False, timeout=None):
        self.requested.append(url)
        response = self.responses.get(url)
        if response is None:
            return FakeResponse(404)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True


class FakeCatalog(CatalogClient):
    """In-memory catalog."""

    def __init__(self):
        self.albums: List[Album] = []
        self.images: Dict[int, List[Image]] = {}
        self.image_calls: List[int] = []
        self.closed = False

    def add_album(self, album, images):
        self.albums.append(album)
        self.images[album.id] = list(images)

    def list_albums(self, nickname):
        return list(self.albums)

    def list_images(self, album):
        self.image_calls.append(album.id)
        return list(self.images.get(album.id, []))

    def close(self):
        self.closed = True


@pytest.fixture
def sync_root(tmp_path):
    root = tmp_path / 'photos'
    root.mkdir()
    return root


@pytest.fixture
def make_config(tmp_path, sync_root):
    """Factory fixture: write a config file and return a Config for it."""

    def _make(overrides=None):
        config_data = {
            'sync': {
                'root': str(sync_root),
                'dry_run': False,
                'delete': True,
                'fast': False,
                'jobs': 1,
                'fail_fast': False,
            },
            'media': {'pictures': True, 'videos': True},
            'catalog': {'api_key': 'key', 'email': 'me@example.com', 'password': 'secret'},
            'download': {'connect_timeout': 1, 'read_timeout': 1, 'chunk_size': 256},
        }
        for key_path, value in (overrides or {}).items():
            section, key = key_path.split('.')
            config_data.setdefault(section, {})[key] = value

        config_path = tmp_path / 'config.yml'
        with open(config_path, 'w') as f:
            yaml.dump(config_data, f)
        return Config(str(config_path))

    return _make


@pytest.fixture
def sample_config(make_config):
    return make_config()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def http_session():
    return FakeSession()


@pytest.fixture
def album_factory():
    """Factory fixture: build an Album."""
    counter = iter(range(1, 10_000))

    def _album(title='A', category='Family', subcategory=None, last_updated=ALBUM_UPDATED):
        album_id = next(counter)
        return Album(
            id=album_id,
            key=f'k{album_id}',
            title=title,
            category=category,
            subcategory=subcategory,
            last_updated=last_updated,
            url=f'https://example.smugmug.com/{title}',
        )

    return _album


@pytest.fixture
def picture_factory():
    """Factory fixture: build a picture from a catalog-shaped record."""

    def _picture(filename, content=b'', url=None, size=None, md5=None, fmt='JPG'):
        return Image.from_api({
            'id': zlib.crc32(filename.encode()),
            'Key': filename,
            'FileName': filename,
            'Format': fmt,
            'Size': len(content) if size is None else size,
            'MD5Sum': md5_of(content) if md5 is None else md5,
            'OriginalURL': url or f'http://x/{filename}',
        })

    return _picture


@pytest.fixture
def video_factory():
    """Factory fixture: build a video from a catalog-shaped record."""

    def _video(filename, tiers=None, size=0, md5='deadbeef', fmt='MP4'):
        record = {
            'id': zlib.crc32(filename.encode()),
            'Key': filename,
            'FileName': filename,
            'Format': fmt,
            'Size': size,
            'MD5Sum': md5,
        }
        for tier, tier_url in (tiers or {}).items():
            record[f'Video{tier}URL'] = tier_url
        return Image.from_api(record)

    return _video


@pytest.fixture
def make_reconciler(catalog, http_session):
    """Factory fixture: reconciler wired to the fake catalog and HTTP session."""

    def _make(config):
        summary = RunSummary(dry_run=config.is_dry_run())
        downloader = MediaDownloader(summary, session=http_session, chunk_size=256)
        return AlbumReconciler(config, catalog, summary, downloader=downloader)

    return _make
