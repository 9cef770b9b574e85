# auth/harmony_oauth.py
from __future__ import annotations

from typing import Dict

import requests
from pydantic import ValidationError

from models.responses import AccessToken
from services.errors import TokenRequestError

TOKEN_PATH = "Epsilon/oauth2/access_token"
TOKEN_SCOPE = "cn mail sn givenname uid employeeNumber"


class HarmonyOAuthClient:
    """
    Password-grant token acquisition for Epsilon Harmony.

    - No caching here (see auth.token_store)
    - Caller provides the session; the token call goes out through it untouched
    """

    def __init__(self, *, auth_base_url: str, client_id: str, client_secret: str, username: str, password: str,
                 timeout: float = 30):
        self.auth_base_url = auth_base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.timeout = timeout

    @property
    def token_url(self) -> str:
        return f"{self.auth_base_url}/{TOKEN_PATH}"

    def token_params(self) -> Dict[str, str]:
        return {
            "scope": TOKEN_SCOPE,
            "grant_type": "password",
            "username": self.username,
            "password": self.password,
        }

    def fetch_token(self, session: requests.Session) -> AccessToken:
        resp = session.post(
            self.token_url,
            params=self.token_params(),
            auth=(self.client_id, self.client_secret),
            data=b"",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self.timeout,
        )

        if not resp.ok:
            raise TokenRequestError(
                f"Token endpoint returned HTTP {resp.status_code}", status_code=resp.status_code
            )

        try:
            token = AccessToken.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise TokenRequestError(f"Unreadable token response: {e}", status_code=resp.status_code) from e

        if not token:
            raise TokenRequestError("No access_token in token response", status_code=resp.status_code)
        return token
