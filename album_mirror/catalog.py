"""
Remote album catalog.

The reconciliation core only needs two read-only calls, captured by
CatalogClient. SmugMugClient implements them against the SmugMug 1.2.2
JSON API.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from .config import DEFAULT_ENDPOINT
from .errors import CatalogError
from .models import Album, Image

logger = logging.getLogger(__name__)

# "empty set" is how the API reports an album or account with no entries
EMPTY_SET_CODE = 15


class CatalogClient(ABC):
    """Read-only source of albums and their images."""

    @abstractmethod
    def list_albums(self, nickname: str) -> List[Album]:
        """Return every album of an account, in catalog order."""

    @abstractmethod
    def list_images(self, album: Album) -> List[Image]:
        """Return every image of an album, in catalog order."""

    def close(self) -> None:
        """Release any open connections."""


class SmugMugClient(CatalogClient):
    """
    SmugMug JSON API client.

    Handles login and album/image listing. Does NOT handle downloads
    (see MediaDownloader for that).
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session_id: Optional[str] = None
        self.nickname: Optional[str] = None

    def _call(self, method: str, **params) -> Dict[str, Any]:
        """Invoke an API method and return the decoded response."""
        payload = {'method': method, 'APIKey': self.api_key, **params}
        if self.session_id:
            payload['SessionID'] = self.session_id

        try:
            response = self.session.post(self.endpoint, data=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CatalogError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise CatalogError(f"{method} returned invalid JSON: {e}") from e

        if data.get('stat') != 'ok':
            code = data.get('code')
            if code == EMPTY_SET_CODE:
                return {}
            raise CatalogError(f"{method} failed: {data.get('message', 'unknown error')} (code {code})")
        return data

    def login(self, email: str, password: str) -> str:
        """
        Log in with an email address and password.

        Returns:
            The account nickname albums are listed under
        """
        data = self._call('smugmug.login.withPassword', EmailAddress=email, Password=password)
        login = data.get('Login') or {}
        self.session_id = (login.get('Session') or {}).get('id')
        self.nickname = (login.get('User') or {}).get('NickName')
        if not self.session_id or not self.nickname:
            raise CatalogError("login response did not include a session and nickname")
        logger.info(f"Logged in {email}, NickName is {self.nickname}")
        return self.nickname

    def list_albums(self, nickname: str) -> List[Album]:
        data = self._call('smugmug.albums.get', NickName=nickname, Heavy=1)
        albums = [Album.from_api(record) for record in data.get('Albums', [])]
        logger.debug(f"Catalog returned {len(albums)} albums for {nickname}")
        return albums

    def list_images(self, album: Album) -> List[Image]:
        data = self._call('smugmug.images.get', AlbumID=album.id, AlbumKey=album.key, Heavy=1)
        records = (data.get('Album') or {}).get('Images', [])
        return [Image.from_api(record, album) for record in records]

    def close(self) -> None:
        self.session.close()
