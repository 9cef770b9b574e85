from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from services.errors import HarmonyError

RESULT_CODE_SUCCESS = "OK"


class AccessToken(BaseModel):
    """
    Harmony authorization response payload.

    An empty access_token is the "no token yet" value; it is still sent as a
    bearer value so the first call can be rejected and trigger a refresh.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = ""
    token_type: Optional[str] = None
    expires_in: Optional[str] = None  # informational only; never drives refresh
    refresh_token: Optional[str] = None  # not used by Harmony yet

    @field_validator("expires_in", mode="before")
    @classmethod
    def _expires_in_as_text(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @classmethod
    def empty(cls) -> "AccessToken":
        return cls()

    def __bool__(self) -> bool:
        return bool(self.access_token)


class ResultError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resultString: Optional[str] = None


class ErrorPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    errors: List[ResultError]

    def first_error(self) -> Optional[str]:
        if not self.errors:
            return None
        return self.errors[0].resultString


class SendMailResponse(BaseModel):
    """Harmony RTM response: information about the message that was just sent."""

    model_config = ConfigDict(extra="ignore")

    resultCode: Optional[str] = None
    resultSubCode: Optional[str] = None
    resultString: Optional[str] = None
    serviceTransactionId: Optional[str] = None
    clientRequestId: Optional[str] = None
    messageId: Optional[str] = None
    deploymentName: Optional[str] = None
    deploymentId: Optional[str] = None
    deploymentDate: Optional[int] = None  # epoch millis
    deploymentExpirationDate: Optional[int] = None  # epoch millis
    errors: Optional[List[ResultError]] = None

    @property
    def ok(self) -> bool:
        return True

    @property
    def is_ok(self) -> bool:
        return self.resultCode == RESULT_CODE_SUCCESS


@dataclass(frozen=True)
class SendFailure:
    error_message: str
    error: HarmonyError

    @property
    def ok(self) -> bool:
        return False

    def raise_error(self) -> None:
        raise self.error


SendOutcome = Union[SendMailResponse, SendFailure]
