"""Tests for per-album reconciliation."""

import hashlib
import os

import pytest

from album_mirror.errors import (
    AlbumSyncError,
    DownloadError,
    NoVideoURLError,
    SizeMismatchError,
    TimestampError,
)
from album_mirror.summary import SKIPPED, SYNCED

PICTURE = b'p' * 1000
H1 = hashlib.md5(PICTURE).hexdigest()


def md5_file(path):
    return hashlib.md5(path.read_bytes()).hexdigest()


@pytest.fixture
def album_a(catalog, http_session, album_factory, picture_factory, video_factory):
    """Album "A" with one picture and one video whose top tier is empty."""
    album = album_factory('A')
    picture = picture_factory('p.jpg', PICTURE, url='http://x/p')
    video = video_factory('v.mp4', tiers={1920: '', 1280: 'http://x/v1280', 640: 'http://x/v640'})
    catalog.add_album(album, [picture, video])
    http_session.add('http://x/p', PICTURE)
    http_session.add('http://x/v1280', b'video-1280')
    http_session.add('http://x/v640', b'video-640')
    return album


class TestFreshAlbum:
    """An album with no local state downloads everything."""

    def test_downloads_picture_and_best_available_video_tier(
        self, sample_config, make_reconciler, album_a, sync_root, http_session
    ):
        reconciler = make_reconciler(sample_config)
        result = reconciler.reconcile(album_a)

        album_dir = sync_root / 'Family' / 'A'
        assert result.status == SYNCED
        assert result.downloaded == 2
        assert md5_file(album_dir / 'p.jpg') == H1
        assert (album_dir / 'v.mp4').read_bytes() == b'video-1280'
        assert http_session.requested == ['http://x/p', 'http://x/v1280']
        assert reconciler.summary.file_count == 2
        assert reconciler.summary.total_bytes == 1000 + len(b'video-1280')

    def test_stamps_album_directory_with_last_updated(
        self, sample_config, make_reconciler, album_a, sync_root
    ):
        make_reconciler(sample_config).reconcile(album_a)

        album_dir = sync_root / 'Family' / 'A'
        assert os.stat(album_dir).st_mtime == album_a.updated_timestamp()

    def test_subcategory_is_part_of_destination(
        self, sample_config, make_reconciler, catalog, http_session,
        album_factory, picture_factory, sync_root
    ):
        album = album_factory('Beach', category='Travel', subcategory='2023')
        catalog.add_album(album, [picture_factory('b.jpg', b'beach', url='http://x/b')])
        http_session.add('http://x/b', b'beach')

        make_reconciler(sample_config).reconcile(album)

        assert (sync_root / 'Travel' / '2023' / 'Beach' / 'b.jpg').read_bytes() == b'beach'


class TestIdempotence:
    """A second pass against an unchanged catalog does nothing."""

    def test_second_run_downloads_and_removes_nothing(
        self, sample_config, make_reconciler, album_a, http_session
    ):
        make_reconciler(sample_config).reconcile(album_a)
        requests_after_first = list(http_session.requested)

        second = make_reconciler(sample_config)
        result = second.reconcile(album_a)

        assert result.downloaded == 0
        assert result.removed == 0
        assert result.unchanged == 2
        assert second.summary.file_count == 0
        assert http_session.requested == requests_after_first

    def test_fast_mode_skips_album_without_listing_images(
        self, make_config, make_reconciler, album_a, catalog
    ):
        config = make_config({'sync.fast': True})
        make_reconciler(config).reconcile(album_a)
        assert catalog.image_calls == [album_a.id]

        result = make_reconciler(config).reconcile(album_a)

        assert result.status == SKIPPED
        assert catalog.image_calls == [album_a.id]

    def test_fast_mode_rescans_when_timestamp_differs(
        self, make_config, make_reconciler, album_a, catalog, sync_root
    ):
        config = make_config({'sync.fast': True})
        make_reconciler(config).reconcile(album_a)
        album_dir = sync_root / 'Family' / 'A'
        os.utime(album_dir, (0, 0))

        result = make_reconciler(config).reconcile(album_a)

        assert result.status == SYNCED
        assert catalog.image_calls == [album_a.id, album_a.id]


class TestChangeDetection:

    def test_changed_picture_is_downloaded_again(
        self, sample_config, make_reconciler, album_a, sync_root
    ):
        album_dir = sync_root / 'Family' / 'A'
        album_dir.mkdir(parents=True)
        (album_dir / 'p.jpg').write_bytes(b'stale picture')
        (album_dir / 'v.mp4').write_bytes(b'old video')

        result = make_reconciler(sample_config).reconcile(album_a)

        assert result.downloaded == 1
        assert md5_file(album_dir / 'p.jpg') == H1

    def test_existing_video_is_trusted_regardless_of_content(
        self, sample_config, make_reconciler, album_a, sync_root, http_session
    ):
        album_dir = sync_root / 'Family' / 'A'
        album_dir.mkdir(parents=True)
        (album_dir / 'p.jpg').write_bytes(PICTURE)
        (album_dir / 'v.mp4').write_bytes(b'something else entirely')

        result = make_reconciler(sample_config).reconcile(album_a)

        assert result.downloaded == 0
        assert (album_dir / 'v.mp4').read_bytes() == b'something else entirely'
        assert http_session.requested == []


class TestDeletion:

    def test_orphans_are_removed_files_then_directories(
        self, sample_config, make_reconciler, album_a, sync_root
    ):
        album_dir = sync_root / 'Family' / 'A'
        nested = album_dir / 'old' / 'deeper'
        nested.mkdir(parents=True)
        (album_dir / 'gone.jpg').write_bytes(b'gone')
        (nested / 'also-gone.jpg').write_bytes(b'also gone')

        result = make_reconciler(sample_config).reconcile(album_a)

        assert result.removed == 4  # two files, two directories
        assert not (album_dir / 'gone.jpg').exists()
        assert not (album_dir / 'old').exists()
        assert (album_dir / 'p.jpg').exists()
        assert album_dir.is_dir()

    def test_deletion_disabled_keeps_orphans(
        self, make_config, make_reconciler, album_a, sync_root
    ):
        album_dir = sync_root / 'Family' / 'A'
        album_dir.mkdir(parents=True)
        (album_dir / 'gone.jpg').write_bytes(b'gone')

        result = make_reconciler(make_config({'sync.delete': False})).reconcile(album_a)

        assert result.removed == 0
        assert (album_dir / 'gone.jpg').exists()

    def test_album_emptied_remotely_removes_local_directory(
        self, sample_config, make_reconciler, catalog, album_factory, sync_root
    ):
        album = album_factory('Empty')
        catalog.add_album(album, [])
        album_dir = sync_root / 'Family' / 'Empty'
        album_dir.mkdir(parents=True)
        (album_dir / 'left.jpg').write_bytes(b'left')

        result = make_reconciler(sample_config).reconcile(album)

        assert result.removed == 2
        assert not album_dir.exists()


class TestMediaFilters:

    def test_pictures_disabled_neither_downloads_nor_deletes_pictures(
        self, make_config, make_reconciler, album_a, sync_root, http_session
    ):
        album_dir = sync_root / 'Family' / 'A'
        album_dir.mkdir(parents=True)
        (album_dir / 'p.jpg').write_bytes(b'local copy that differs')

        result = make_reconciler(make_config({'media.pictures': False})).reconcile(album_a)

        assert result.filtered == 1
        assert (album_dir / 'p.jpg').read_bytes() == b'local copy that differs'
        assert http_session.requested == ['http://x/v1280']

    def test_videos_disabled_keeps_existing_video(
        self, make_config, make_reconciler, album_a, sync_root, http_session
    ):
        album_dir = sync_root / 'Family' / 'A'
        album_dir.mkdir(parents=True)
        (album_dir / 'v.mp4').write_bytes(b'old video')

        result = make_reconciler(make_config({'media.videos': False})).reconcile(album_a)

        assert result.filtered == 1
        assert result.removed == 0
        assert (album_dir / 'v.mp4').exists()
        assert http_session.requested == ['http://x/p']


class TestDryRun:

    def test_dry_run_touches_nothing_but_counts_transfers(
        self, make_config, make_reconciler, album_a, sync_root, http_session
    ):
        album_dir = sync_root / 'Family' / 'A'
        album_dir.mkdir(parents=True)
        (album_dir / 'orphan.jpg').write_bytes(b'orphan')
        os.utime(album_dir, (1000, 1000))

        reconciler = make_reconciler(make_config({'sync.dry_run': True}))
        result = reconciler.reconcile(album_a)

        assert http_session.requested == []
        assert sorted(p.name for p in album_dir.iterdir()) == ['orphan.jpg']
        assert os.stat(album_dir).st_mtime == 1000
        assert result.removed == 1
        assert reconciler.summary.file_count == 2
        assert reconciler.summary.total_bytes == 1000  # video reports size 0

    def test_dry_run_counts_video_without_any_tier(
        self, make_config, make_reconciler, catalog, album_factory, video_factory, http_session
    ):
        album = album_factory('Clips')
        catalog.add_album(album, [video_factory('c.mp4', tiers={1920: ''}, size=10)])

        reconciler = make_reconciler(make_config({'sync.dry_run': True}))
        result = reconciler.reconcile(album)

        assert result.downloaded == 1
        assert reconciler.summary.file_count == 1
        assert reconciler.summary.total_bytes == 10
        assert http_session.requested == []


class TestFailures:

    def test_size_mismatch_fails_album_and_leaves_no_file(
        self, sample_config, make_reconciler, catalog, http_session,
        album_factory, picture_factory, sync_root
    ):
        album = album_factory('Short')
        catalog.add_album(album, [picture_factory('s.jpg', size=500, md5='abc', url='http://x/s')])
        http_session.add('http://x/s', b'only-a-few-bytes')

        with pytest.raises(AlbumSyncError) as excinfo:
            make_reconciler(sample_config).reconcile(album)

        assert isinstance(excinfo.value.cause, SizeMismatchError)
        assert 's.jpg' in str(excinfo.value)
        assert not list((sync_root / 'Family' / 'Short').iterdir())

    def test_http_error_status_fails_album(
        self, sample_config, make_reconciler, catalog, http_session,
        album_factory, picture_factory
    ):
        album = album_factory('Forbidden')
        catalog.add_album(album, [picture_factory('f.jpg', b'f', url='http://x/f')])
        http_session.add('http://x/f', status_code=403)

        with pytest.raises(AlbumSyncError) as excinfo:
            make_reconciler(sample_config).reconcile(album)

        assert isinstance(excinfo.value.cause, DownloadError)
        assert '403' in str(excinfo.value)

    def test_video_without_any_tier_fails_live_album(
        self, sample_config, make_reconciler, catalog, album_factory, video_factory
    ):
        album = album_factory('Clips')
        catalog.add_album(album, [video_factory('c.mp4', tiers={1920: '', 320: ''})])
        assert not sample_config.is_dry_run()

        with pytest.raises(AlbumSyncError) as excinfo:
            make_reconciler(sample_config).reconcile(album)

        assert isinstance(excinfo.value.cause, NoVideoURLError)

    def test_malformed_timestamp_fails_album(
        self, sample_config, make_reconciler, catalog, album_factory
    ):
        album = album_factory('Broken', last_updated='yesterday')
        catalog.add_album(album, [])

        with pytest.raises(AlbumSyncError) as excinfo:
            make_reconciler(sample_config).reconcile(album)

        assert isinstance(excinfo.value.cause, TimestampError)
        assert excinfo.value.album_path == 'Family/Broken'
