"""
Tests for the RTM request/response payload models.
"""

import json

import pytest
from pydantic import ValidationError

from models.requests import Attribute, Recipient, SendMailRequest
from models.responses import RESULT_CODE_SUCCESS, AccessToken, ErrorPayload, SendMailResponse


class TestSendMailRequest:

    def test_customer_key_defaults_to_email(self):
        request = SendMailRequest.of("message_id", Recipient.of("user@email.io"))

        body = json.loads(request.to_json_bytes())

        assert body["recipients"][0]["customerKey"] == "user@email.io"
        assert body["recipients"][0]["emailAddress"] == "user@email.io"

    def test_explicit_customer_key_is_kept(self):
        recipient = Recipient.of("user@email.io", customer_key="cust-42")

        assert recipient.customerKey == "cust-42"

    def test_customer_key_default_from_mapping(self):
        request = SendMailRequest.model_validate(
            {"id": "message_id", "recipients": [{"emailAddress": "user@email.io"}]}
        )

        assert request.recipients[0].customerKey == "user@email.io"

    def test_attribute_type_defaults_to_string(self):
        assert Attribute(attributeName="!att_name!", attributeValue="att_value").attributeType == "String"

    def test_none_fields_are_omitted(self):
        """Absent optional fields are left out of the payload, not sent as null."""
        request = SendMailRequest.of("message_id", Recipient.of("user@email.io"))

        body = json.loads(request.to_json_bytes())

        assert "defaultAttributes" not in body
        assert "attributes" not in body["recipients"][0]

    def test_wire_shape(self):
        request = SendMailRequest.of(
            "message_id",
            Recipient.of("user@email.io", Attribute(attributeName="!att_name!", attributeValue="att_value")),
            default_attributes=[Attribute(attributeName="lang", attributeValue="en")],
        )

        body = json.loads(request.to_json_bytes())

        assert body == {
            "id": "message_id",
            "recipients": [{
                "emailAddress": "user@email.io",
                "customerKey": "user@email.io",
                "attributes": [{
                    "attributeName": "!att_name!",
                    "attributeValue": "att_value",
                    "attributeType": "String",
                }],
            }],
            "defaultAttributes": [
                {"attributeName": "lang", "attributeValue": "en", "attributeType": "String"},
            ],
        }

    def test_empty_id_is_rejected(self):
        with pytest.raises(ValidationError):
            SendMailRequest.of("", Recipient.of("user@email.io"))

    def test_more_than_ten_recipients_is_allowed_locally(self):
        """The 10-recipient cap is Harmony's to enforce, not the model's."""
        request = SendMailRequest.of("message_id", *[Recipient.of(f"u{i}@email.io") for i in range(11)])

        assert len(request.recipients) == 11


class TestResponses:

    def test_success_response(self, success_body):
        response = SendMailResponse.model_validate(success_body)

        assert response.resultCode == RESULT_CODE_SUCCESS
        assert response.is_ok
        assert response.ok
        assert response.messageId == "message_id"
        assert response.deploymentDate == 1456933140000

    def test_success_response_ignores_unknown_fields(self, success_body):
        success_body["somethingNew"] = 1

        assert SendMailResponse.model_validate(success_body).messageId == "message_id"

    def test_first_error(self):
        payload = ErrorPayload.model_validate({"errors": [{"resultString": "bad token"}, {"resultString": "other"}]})

        assert payload.first_error() == "bad token"

    def test_first_error_empty(self):
        assert ErrorPayload.model_validate({"errors": []}).first_error() is None

    def test_access_token_is_immutable(self):
        token = AccessToken(access_token="access_token")

        with pytest.raises(ValidationError):
            token.access_token = "other"

    def test_empty_access_token_is_falsy(self):
        assert not AccessToken.empty()
        assert AccessToken(access_token="x")
