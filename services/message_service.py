import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Mapping, Union

import requests
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from auth.harmony_oauth import HarmonyOAuthClient
from auth.token_store import TokenStore
from logic.send_outcome import failure, outcome_from_exception, outcome_from_response
from models.requests import SendMailRequest
from models.responses import AccessToken, SendOutcome
from services.config_service import HarmonyCredentials
from services.errors import SerializationError, TransportError
from services.transport import build_session, build_token_session

logger = logging.getLogger(__name__)


class HarmonyClient:
    """
    Sends Real Time Messages (RTM) to Epsilon Harmony.

    Create one client and share it: each instance owns a connection pool, a
    worker pool and the access-token cache. Shutdown is not required.

    Token handling is invisible to callers. The first call goes out with an
    empty bearer token, gets rejected, and the adapter fetches a token and
    retries once.
    """

    def __init__(self, credentials: HarmonyCredentials, *, max_workers: int = 8, timeout: float = 30):
        self.credentials = credentials.validate()
        self.msg_base_url = credentials.msg_base_url.rstrip("/")
        self.timeout = timeout

        self.oauth = HarmonyOAuthClient(
            auth_base_url=credentials.auth_base_url,
            client_id=credentials.client_id,
            client_secret=credentials.client_secret,
            username=credentials.username,
            password=credentials.password,
            timeout=timeout,
        )
        self.token_session = build_token_session()
        self.token_store = TokenStore(lambda: self.oauth.fetch_token(self.token_session))
        self.session = build_session(self.token_store, pool_maxsize=max_workers)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="harmony")

    def send_url(self, message_id: str) -> str:
        return f"{self.msg_base_url}/v3/messages/{message_id}/send/"

    def send_mail(self, campaign: str, request: Union[SendMailRequest, Mapping]) -> "Future[SendOutcome]":
        """
        Send an RTM asynchronously.

        Args:
            campaign: Harmony OUID, sent as the X-OUID header.
            request: SendMailRequest (or a mapping with the same shape).

        Returns:
            Future resolving to SendMailResponse on success or SendFailure.
            The future never completes exceptionally.
        """
        try:
            if not isinstance(request, SendMailRequest):
                request = SendMailRequest.model_validate(request)
            body = request.to_json_bytes()
        except (ValidationError, PydanticSerializationError) as e:
            logger.warning("Invalid Harmony request, not sent: %s", e)
            return _completed(failure(SerializationError(f"Invalid request: {e}")))

        try:
            return self._executor.submit(self._send, campaign, self.send_url(request.id), body)
        except RuntimeError as e:
            # executor refuses work after close()
            logger.warning("Harmony client is closed, not sent: %s", e)
            return _completed(failure(TransportError(f"Client is closed: {e}")))

    def _send(self, campaign: str, url: str, body: bytes) -> SendOutcome:
        try:
            resp = self.session.put(
                url,
                data=body,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json; charset=utf-8",
                    "X-OUID": campaign,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Harmony send to %s failed: %s", url, e)
            return outcome_from_exception(e)
        except Exception as e:
            logger.exception("Unexpected error sending to %s", url)
            return outcome_from_exception(e)

        with resp:
            outcome = outcome_from_response(resp)
        if not outcome.ok:
            logger.warning("Harmony send to %s failed: %s", url, outcome.error_message)
        return outcome

    def current_token(self) -> AccessToken:
        return self.token_store.read()

    def refresh_token(self) -> AccessToken:
        return self.token_store.refresh()

    def close(self) -> None:
        """Release pools. Later send_mail() calls complete with a TransportError failure."""
        self._executor.shutdown(wait=True)
        self.session.close()
        self.token_session.close()


def _completed(outcome: SendOutcome) -> "Future[SendOutcome]":
    done: "Future[SendOutcome]" = Future()
    done.set_result(outcome)
    return done
