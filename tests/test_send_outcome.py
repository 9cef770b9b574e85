"""
Tests for mapping Harmony HTTP results to send outcomes.
"""

import pytest
import requests

from logic.send_outcome import outcome_from_exception, outcome_from_response
from models.responses import SendFailure, SendMailResponse
from services.errors import (
    AuthorizationError,
    RemoteApplicationError,
    SerializationError,
    TransportError,
)

from conftest import make_response


class TestOutcomeFromResponse:

    def test_success(self, success_body):
        outcome = outcome_from_response(make_response(200, success_body))

        assert isinstance(outcome, SendMailResponse)
        assert outcome.resultCode == "OK"
        assert outcome.messageId == "message_id"
        assert outcome.serviceTransactionId == "service_transaction_id"

    def test_unparseable_success_body(self):
        outcome = outcome_from_response(make_response(200, "not json"))

        assert isinstance(outcome, SendFailure)
        assert isinstance(outcome.error, SerializationError)
        assert not outcome.ok

    def test_error_body_first_result_string(self):
        outcome = outcome_from_response(make_response(400, {"errors": [{"resultString": "bad token"}]}))

        assert outcome.error_message == "bad token"
        assert isinstance(outcome.error, RemoteApplicationError)
        assert outcome.error.status_code == 400

    def test_unparseable_error_body_falls_back_to_status(self):
        outcome = outcome_from_response(make_response(500, "<html>oops</html>", reason="Internal Server Error"))

        assert outcome.error_message == "HTTP 500 Internal Server Error"
        assert isinstance(outcome.error, RemoteApplicationError)

    def test_empty_errors_list_falls_back_to_status(self):
        outcome = outcome_from_response(make_response(400, {"errors": []}, reason="Bad Request"))

        assert outcome.error_message == "HTTP 400 Bad Request"

    def test_forbidden_is_authorization_error(self):
        outcome = outcome_from_response(make_response(403, {"errors": [{"resultString": "bad token"}]}))

        assert isinstance(outcome.error, AuthorizationError)
        assert outcome.error_message == "bad token"


class TestOutcomeFromException:

    def test_request_exception_is_transport_error(self):
        outcome = outcome_from_exception(requests.ConnectionError("connection refused"))

        assert isinstance(outcome.error, TransportError)
        assert "connection refused" in outcome.error_message

    def test_harmony_error_is_kept(self):
        error = SerializationError("Invalid request")

        assert outcome_from_exception(error).error is error

    def test_raise_error(self):
        outcome = outcome_from_exception(requests.Timeout("timed out"))

        with pytest.raises(TransportError, match="timed out"):
            outcome.raise_error()
