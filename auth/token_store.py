# auth/token_store.py
"""
Shared access-token cache.

Every outbound call reads the current token; a refresh replaces it wholesale
under an exclusive lock. Readers never block each other, and a reader never
sees anything but a complete AccessToken (old or new).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

import requests

from models.responses import AccessToken
from services.errors import TokenRequestError

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """
    Many readers or one writer.

    A writer that is waiting blocks new readers, so a refresh is not starved
    by a steady stream of reads.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class TokenStore:
    def __init__(self, fetch_token: Callable[[], AccessToken]):
        self._fetch_token = fetch_token
        self._token = AccessToken.empty()
        self._lock = ReadWriteLock()
        self.refresh_count = 0

    def read(self) -> AccessToken:
        with self._lock.read_locked():
            return self._token

    def refresh(self, observed: Optional[AccessToken] = None) -> AccessToken:
        """
        Fetch a new token and make it current.

        If `observed` is given and is no longer the current token, another
        caller refreshed while we waited for the lock; that token is returned
        without a network call.

        On failure the previous token stays in place and is returned.
        """
        with self._lock.write_locked():
            if observed is not None and self._token is not observed:
                return self._token

            self.refresh_count += 1
            try:
                self._token = self._fetch_token()
            except (requests.RequestException, TokenRequestError) as e:
                logger.warning("Harmony token refresh failed, keeping previous token: %s", e)
            else:
                logger.info("Harmony access token refreshed (expires_in=%s)", self._token.expires_in)
            return self._token
