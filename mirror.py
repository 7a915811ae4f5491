#!/usr/bin/env python3
"""
Album Mirror CLI

Mirrors a SmugMug account's album hierarchy onto a local directory tree,
downloading new and changed media and removing what the catalog no longer has.
"""

import sys
import logging
import click
from pathlib import Path
from typing import Tuple
from colorama import init, Fore, Style

from album_mirror import (
    Config,
    SmugMugClient,
    AlbumReconciler,
    AlbumScheduler,
    MirrorReporter,
    RunSummary,
)
from album_mirror.errors import MirrorError
from album_mirror.utils import check_free_space, directory_mtime_matches

# Initialize colorama for cross-platform colored output
init()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_console_handler = None
_file_handler = None


def setup_logging(level: str = 'INFO', log_dir: Path = None):
    """Set up logging configuration."""
    global _console_handler
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)

    _console_handler = logging.StreamHandler(sys.stdout)
    _console_handler.setFormatter(formatter)
    root_logger.addHandler(_console_handler)

    if log_dir:
        _setup_file_logging(log_dir, formatter, root_logger)

    # Reduce noise from libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def _setup_file_logging(log_dir: Path, formatter: logging.Formatter, root_logger: logging.Logger,
                        log_name: str = 'album_mirror'):
    """Add file handler to root logger."""
    global _file_handler
    log_dir.mkdir(parents=True, exist_ok=True)

    if _file_handler is not None:
        root_logger.removeHandler(_file_handler)

    _file_handler = logging.FileHandler(log_dir / f'{log_name}.log')
    _file_handler.setFormatter(formatter)
    root_logger.addHandler(_file_handler)


def print_header(title: str):
    """Print a formatted header."""
    click.echo(f"\n{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{title.center(60)}{Style.RESET_ALL}")
    click.echo(f"{Fore.CYAN}{'=' * 60}{Style.RESET_ALL}\n")


def print_success(message: str):
    click.echo(f"{Fore.GREEN}OK: {message}{Style.RESET_ALL}")


def print_warning(message: str):
    click.echo(f"{Fore.YELLOW}WARN: {message}{Style.RESET_ALL}")


def print_error(message: str):
    click.echo(f"{Fore.RED}ERROR: {message}{Style.RESET_ALL}")


def print_info(message: str):
    click.echo(f"{Fore.BLUE}INFO: {message}{Style.RESET_ALL}")


def connect(config: Config) -> Tuple[SmugMugClient, str]:
    """Log in to the catalog and return the client and account nickname."""
    catalog_config = config.get_catalog_config()
    client = SmugMugClient(
        catalog_config['api_key'],
        endpoint=catalog_config['endpoint'],
        timeout=catalog_config['timeout'],
    )
    nickname = client.login(catalog_config['email'], catalog_config['password'])
    return client, nickname


def _fail_on_config_errors(config: Config):
    errors = config.validate_config()
    if errors:
        print_error("Configuration validation failed:")
        for error in errors:
            click.echo(f"  - {error}")
        sys.exit(1)


@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--log-level', '-l', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level (overrides config)')
@click.pass_context
def cli(ctx, config, log_level):
    """Album Mirror - one-way sync of remote albums to a local tree."""

    try:
        config_obj = Config(config)
    except Exception as e:
        print_error(f"Failed to load configuration: {e}")
        sys.exit(1)

    setup_logging(log_level or config_obj.get_log_level())

    log_dir = config_obj.get_log_dir()
    if log_dir:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        _setup_file_logging(log_dir, formatter, logging.getLogger(),
                            ctx.invoked_subcommand or 'album_mirror')

    ctx.ensure_object(dict)
    ctx.obj['config'] = config_obj


def credential_options(f):
    """Attach the catalog credential flags to a command."""
    f = click.option('--password', help='Password (default: $PASSWORD)')(f)
    f = click.option('--email', help='Email address (default: $EMAIL)')(f)
    f = click.option('--apikey', help='SmugMug API key (default: $APIKEY)')(f)
    return f


def apply_credentials(config: Config, apikey, email, password):
    config.set_override('catalog.api_key', apikey)
    config.set_override('catalog.email', email)
    config.set_override('catalog.password', password)


@cli.command()
@click.option('--dir', 'sync_dir', help='Target directory (default: sync.root)')
@credential_options
@click.option('--dry-run/--no-dry-run', default=None, help='Dry run, no changes (override config)')
@click.option('--delete/--no-delete', default=None, help='Delete local files not in album')
@click.option('--fast/--no-fast', default=None, help='Skip albums with timestamp match')
@click.option('--pics/--no-pics', default=None, help='Download pictures')
@click.option('--videos/--no-videos', default=None, help='Download videos')
@click.option('--jobs', '-j', type=int, default=None, help='Number of albums to process concurrently')
@click.option('--fail-fast/--no-fail-fast', default=None,
              help='Stop starting new albums after the first failure')
@click.option('--progress', is_flag=True, help='Show an album progress bar')
@click.option('--report', '-r', help='Save JSON report to specific file')
@click.pass_context
def sync(ctx, sync_dir, apikey, email, password, dry_run, delete, fast, pics, videos,
         jobs, fail_fast, progress, report):
    """Mirror every album of the account into the target directory."""

    config = ctx.obj['config']
    config.set_override('sync.root', sync_dir)
    config.set_override('sync.dry_run', dry_run)
    config.set_override('sync.delete', delete)
    config.set_override('sync.fast', fast)
    config.set_override('media.pictures', pics)
    config.set_override('media.videos', videos)
    config.set_override('sync.jobs', jobs)
    config.set_override('sync.fail_fast', fail_fast)
    apply_credentials(config, apikey, email, password)
    _fail_on_config_errors(config)

    print_header("ALBUM MIRROR")

    sync_root = config.get_sync_root()
    if config.is_dry_run():
        print_info("Running in DRY RUN mode - no files will be written or removed")

    catalog = None
    reconciler = None
    try:
        if not config.is_dry_run():
            check_free_space(sync_root, config.get_min_free_space_gb())

        catalog, nickname = connect(config)
        albums = catalog.list_albums(nickname)
        print_info(f"Found {len(albums)} albums, mirroring into {sync_root}")

        summary = RunSummary(dry_run=config.is_dry_run())
        reconciler = AlbumReconciler(config, catalog, summary)
        scheduler = AlbumScheduler(
            reconciler,
            summary,
            jobs=config.get_parallel_jobs(),
            fail_fast=config.is_fail_fast(),
        )
        scheduler.run(albums, show_progress=progress)
    except MirrorError as e:
        print_error(f"Sync failed: {e}")
        sys.exit(1)
    finally:
        if reconciler is not None:
            reconciler.close()
        if catalog is not None:
            catalog.close()

    reporter = MirrorReporter(config)
    click.echo("\n" + reporter.generate_summary_report(summary))
    if report:
        report_file = reporter.save_report(summary, report)
        print_success(f"Report saved: {report_file}")

    if summary.failed:
        print_error(f"{len(summary.failed)} albums failed")
        sys.exit(1)

    print_success(summary.describe())


@cli.command()
@credential_options
@click.pass_context
def albums(ctx, apikey, email, password):
    """List remote albums, their local paths and fast-skip status."""

    config = ctx.obj['config']
    apply_credentials(config, apikey, email, password)
    _fail_on_config_errors(config)

    print_header("REMOTE ALBUMS")

    sync_root = config.get_sync_root()
    catalog = None
    try:
        catalog, nickname = connect(config)
        album_list = catalog.list_albums(nickname)
    except MirrorError as e:
        print_error(f"Listing albums failed: {e}")
        sys.exit(1)
    finally:
        if catalog is not None:
            catalog.close()

    click.echo(f"Target directory: {sync_root}")
    click.echo()
    for album in album_list:
        local_dir = sync_root / album.relative_path
        try:
            current = directory_mtime_matches(local_dir, album.updated_timestamp())
        except MirrorError as e:
            print_warning(f"{album.relative_path}: {e}")
            continue
        if current:
            print_success(f"{album.relative_path} (up to date, {album.last_updated})")
        elif local_dir.exists():
            click.echo(f"  [~] {album.relative_path} (changed, {album.last_updated})")
        else:
            click.echo(f"  [ ] {album.relative_path} (not mirrored yet)")

    click.echo()
    print_info(f"{len(album_list)} albums")


if __name__ == '__main__':
    cli()
