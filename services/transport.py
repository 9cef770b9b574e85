# services/transport.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter

from auth.token_store import TokenStore

logger = logging.getLogger(__name__)

BODY_LOG_LIMIT = 1000
REDACTED_PARAMS = ("password",)


def safe_body(body, limit: int = BODY_LOG_LIMIT) -> str:
    """Return a safe, truncated body for diagnostics."""
    try:
        if body is None:
            return ""
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        return str(body)[:limit]
    except Exception:
        return "<unreadable>"


def redact_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [(k, "***" if k in REDACTED_PARAMS else v) for k, v in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit(parts._replace(query=urlencode(query)))


class LoggingAdapter(HTTPAdapter):
    """
    Logs every network attempt, retries included.

    INFO: method, url, status, elapsed. DEBUG adds request and response bodies.
    Credentials (Authorization header, password query value) are never logged.
    """

    def send(self, request, **kwargs):
        started = time.monotonic()
        try:
            response = super().send(request, **kwargs)
        except requests.RequestException as e:
            logger.warning(
                "%s %s failed after %dms: %s",
                request.method, redact_url(request.url), int((time.monotonic() - started) * 1000), e,
            )
            raise
        self._log_exchange(request, response, int((time.monotonic() - started) * 1000))
        return response

    def _log_exchange(self, request: requests.PreparedRequest, response: requests.Response, elapsed_ms: int) -> None:
        url = redact_url(request.url)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "--> %s %s %s\n<-- %s %s (%dms) %s",
                request.method, url, safe_body(request.body),
                response.status_code, response.reason, elapsed_ms, safe_body(response.content),
            )
        else:
            logger.info("%s %s -> %s (%dms)", request.method, url, response.status_code, elapsed_ms)


def is_forbidden(response: requests.Response) -> bool:
    return response.status_code == 403


class AuthenticatingAdapter(LoggingAdapter):
    """
    Attaches the cached bearer token to every request `skip_auth` does not exempt.

    A rejected request triggers one synchronous token refresh and exactly one
    retry; whatever the retry returns goes back to the caller.
    """

    def __init__(
        self,
        token_store: TokenStore,
        *,
        skip_auth: Optional[Callable[[requests.PreparedRequest], bool]] = None,
        is_rejected: Callable[[requests.Response], bool] = is_forbidden,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.token_store = token_store
        self.skip_auth = skip_auth
        self.is_rejected = is_rejected

    @staticmethod
    def _authorize(request: requests.PreparedRequest, access_token: str) -> requests.PreparedRequest:
        authorized = request.copy()
        authorized.headers["Authorization"] = f"Bearer {access_token}"
        return authorized

    def send(self, request, **kwargs):
        if self.skip_auth is not None and self.skip_auth(request):
            return super().send(request, **kwargs)

        token = self.token_store.read()
        response = super().send(self._authorize(request, token.access_token), **kwargs)
        if not self.is_rejected(response):
            return response

        logger.info("Harmony rejected bearer token (HTTP %s), refreshing and retrying once", response.status_code)
        response.close()
        token = self.token_store.refresh(observed=token)
        return super().send(self._authorize(request, token.access_token), **kwargs)


def build_session(token_store: TokenStore, pool_maxsize: Optional[int] = None) -> requests.Session:
    """Session for Harmony API calls: every request carries the cached bearer token."""
    adapter_kwargs = {"pool_maxsize": pool_maxsize} if pool_maxsize else {}
    return _mounted(AuthenticatingAdapter(token_store, **adapter_kwargs))


def build_token_session(pool_maxsize: Optional[int] = None) -> requests.Session:
    """
    Session for the token endpoint only. It has no AuthenticatingAdapter, so a
    token call made while the store is locked for refresh never reads the store.
    """
    adapter_kwargs = {"pool_maxsize": pool_maxsize} if pool_maxsize else {}
    return _mounted(LoggingAdapter(**adapter_kwargs))


def _mounted(adapter: HTTPAdapter) -> requests.Session:
    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
