from __future__ import annotations

from typing import Optional

import requests
from pydantic import ValidationError

from models.responses import ErrorPayload, SendFailure, SendMailResponse, SendOutcome
from services.errors import (
    AuthorizationError,
    HarmonyError,
    RemoteApplicationError,
    SerializationError,
    TransportError,
)


def first_error_message(response: requests.Response) -> Optional[str]:
    try:
        return ErrorPayload.model_validate_json(response.content).first_error()
    except (ValueError, ValidationError):
        return None


def outcome_from_response(response: requests.Response) -> SendOutcome:
    if response.ok:
        try:
            return SendMailResponse.model_validate_json(response.content)
        except (ValueError, ValidationError) as e:
            return failure(SerializationError(f"Unreadable Harmony response: {e}"))

    message = first_error_message(response) or f"HTTP {response.status_code} {response.reason or ''}".rstrip()
    if response.status_code == 403:
        return failure(AuthorizationError(message, status_code=response.status_code))
    return failure(RemoteApplicationError(message, status_code=response.status_code))


def outcome_from_exception(exc: Exception) -> SendFailure:
    if isinstance(exc, HarmonyError):
        return failure(exc)
    if isinstance(exc, requests.RequestException):
        return failure(TransportError(str(exc) or exc.__class__.__name__))
    return failure(TransportError(f"{exc.__class__.__name__}: {exc}"))


def failure(error: HarmonyError) -> SendFailure:
    return SendFailure(error_message=str(error), error=error)
