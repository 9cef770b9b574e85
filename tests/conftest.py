"""
Shared fixtures for the Harmony client tests.

No test talks to Epsilon: HTTP is either patched at the requests adapter
level or served by a local http.server (see test_message_service.py).
"""

import json
import os
import sys
from datetime import timedelta

import pytest
import requests

# project root on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.config_service import HarmonyCredentials


def make_response(status_code=200, body=None, url="http://harmony.test/", reason=None):
    """Build a requests.Response without a socket behind it."""
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode("utf-8")

    resp = requests.Response()
    resp.status_code = status_code
    resp.reason = reason or ("OK" if status_code < 400 else "Error")
    resp.url = url
    resp.elapsed = timedelta(milliseconds=5)
    resp._content = body or b""
    resp._content_consumed = True
    return resp


@pytest.fixture
def credentials():
    return HarmonyCredentials(
        client_id="client_id",
        client_secret="client_pass",
        username="user_name",
        password="user_pass",
        auth_base_url="http://auth.test",
        msg_base_url="http://harmony.test",
    )


@pytest.fixture
def success_body():
    return {
        "resultCode": "OK",
        "resultSubCode": "",
        "serviceTransactionId": "service_transaction_id",
        "clientRequestId": "client_request_id",
        "messageId": "message_id",
        "deploymentName": "Standard RTM",
        "deploymentId": "deployment_id",
        "deploymentDate": 1456933140000,
        "deploymentExpirationDate": 1457019540000,
    }


@pytest.fixture
def token_body():
    return {
        "expires_in": 59,
        "token_type": "Bearer",
        "refresh_token": "refresh_token",
        "access_token": "access_token",
    }
