"""Configuration management for album mirroring."""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.smugmug.com/services/api/json/1.2.2/"

DEFAULTS: Dict[str, Any] = {
    'sync': {
        'root': '.',
        'dry_run': False,
        'delete': True,
        'fast': True,
        'jobs': 1,
        'fail_fast': False,
    },
    'media': {
        'pictures': True,
        'videos': True,
    },
    'catalog': {
        'endpoint': DEFAULT_ENDPOINT,
        'timeout': 60,
    },
    'download': {
        'connect_timeout': 10,
        'read_timeout': 300,
        'chunk_size': 65536,
    },
    'safety': {
        'min_free_space_gb': 0,
    },
    'logging': {
        'level': 'INFO',
        'log_dir': None,
    },
}

# Credentials may come from the environment (upper-case name)
CREDENTIAL_KEYS = ('api_key', 'email', 'password')
CREDENTIAL_ENV = {'api_key': 'APIKEY', 'email': 'EMAIL', 'password': 'PASSWORD'}


class Config:
    """Manages configuration for album mirroring from YAML files."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, searches for config files
                and falls back to built-in defaults when none is found.
        """
        self.config_path = config_path or self._find_config_file()
        self.config: Dict[str, Any] = {}
        self.overrides: Dict[str, Any] = {}
        self._load_config()

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations."""
        candidates = [
            Path.cwd() / "config.local.yml",
            Path.cwd() / "config.yml",
            Path(__file__).parent.parent / "config.local.yml",
            Path(__file__).parent.parent / "config.yml",
        ]

        for config_file in candidates:
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return str(config_file.resolve())

        logger.warning("No configuration file found, using defaults")
        return None

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if self.config_path is None:
            return
        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
        except Exception as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            raise

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Command-line overrides win over the file, which wins over the
        built-in defaults.

        Args:
            key_path: Dot-separated path like 'sync.dry_run'
            default: Default value if key not found anywhere

        Returns:
            Configuration value or default
        """
        if key_path in self.overrides:
            return self.overrides[key_path]

        for source in (self.config, DEFAULTS):
            value = _lookup(source, key_path)
            if value is not _MISSING:
                return value
        return default

    def set_override(self, key_path: str, value: Any) -> None:
        """Override a setting for this run; None leaves the setting alone."""
        if value is not None:
            self.overrides[key_path] = value

    def get_sync_root(self) -> Path:
        """Get the absolute local directory albums are mirrored into."""
        return Path(self.get('sync.root', '.')).expanduser().absolute()

    def is_dry_run(self) -> bool:
        return bool(self.get('sync.dry_run', False))

    def should_delete(self) -> bool:
        """Check if local files missing from the catalog should be removed."""
        return bool(self.get('sync.delete', True))

    def is_fast(self) -> bool:
        """Check if albums whose directory timestamp matches should be skipped."""
        return bool(self.get('sync.fast', True))

    def is_fail_fast(self) -> bool:
        return bool(self.get('sync.fail_fast', False))

    def get_parallel_jobs(self) -> int:
        """Get number of albums to reconcile concurrently."""
        return int(self.get('sync.jobs', 1))

    def include_pictures(self) -> bool:
        return bool(self.get('media.pictures', True))

    def include_videos(self) -> bool:
        return bool(self.get('media.videos', True))

    def get_credential(self, name: str) -> str:
        """
        Get a catalog credential.

        Precedence: command-line override, environment variable, config file.
        """
        override = self.overrides.get(f'catalog.{name}')
        if override:
            return override
        env_value = os.environ.get(CREDENTIAL_ENV[name])
        if env_value:
            return env_value
        return self.get(f'catalog.{name}', '') or ''

    def get_catalog_config(self) -> Dict[str, Any]:
        """Get catalog connection settings."""
        return {
            'api_key': self.get_credential('api_key'),
            'email': self.get_credential('email'),
            'password': self.get_credential('password'),
            'endpoint': self.get('catalog.endpoint', DEFAULT_ENDPOINT),
            'timeout': self.get('catalog.timeout', 60),
        }

    def get_download_config(self) -> Dict[str, Any]:
        """Get download timeouts and chunk size."""
        return {
            'timeout': (
                self.get('download.connect_timeout', 10),
                self.get('download.read_timeout', 300),
            ),
            'chunk_size': int(self.get('download.chunk_size', 65536)),
        }

    def get_min_free_space_gb(self) -> float:
        """Get minimum free space requirement in GB."""
        return self.get('safety.min_free_space_gb', 0)

    def get_log_level(self) -> str:
        """Get logging level."""
        return self.get('logging.level', 'INFO')

    def get_log_dir(self) -> Optional[Path]:
        log_dir = self.get('logging.log_dir')
        return Path(log_dir).expanduser() if log_dir else None

    def validate_config(self, require_credentials: bool = True) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of validation error messages
        """
        errors = []

        if require_credentials:
            for name in CREDENTIAL_KEYS:
                if not self.get_credential(name):
                    errors.append(
                        f"Missing catalog credential '{name}' "
                        f"(set catalog.{name} or ${CREDENTIAL_ENV[name]})"
                    )

        root = self.get_sync_root()
        if root.exists() and not root.is_dir():
            errors.append(f"Sync root is not a directory: {root}")

        try:
            parallel_jobs = self.get_parallel_jobs()
        except (TypeError, ValueError):
            errors.append(f"Invalid jobs value: {self.get('sync.jobs')!r}")
        else:
            if parallel_jobs < 1 or parallel_jobs > 32:
                errors.append(f"Invalid jobs value: {parallel_jobs} (must be 1-32)")

        if not self.include_pictures() and not self.include_videos():
            errors.append("Both pictures and videos are disabled, nothing to mirror")

        if self.get_min_free_space_gb() < 0:
            errors.append("safety.min_free_space_gb must not be negative")

        return errors

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"Config(path={self.config_path}, root={self.get_sync_root()})"


_MISSING = object()


def _lookup(source: Dict[str, Any], key_path: str) -> Any:
    value: Any = source
    try:
        for key in key_path.split('.'):
            value = value[key]
    except (KeyError, TypeError):
        return _MISSING
    return value
