from __future__ import annotations

from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, model_validator

# Harmony rejects RTM requests with more recipients than this.
MAX_RECIPIENTS = 10


class Attribute(BaseModel):
    attributeName: Optional[str] = None
    attributeValue: Optional[str] = None
    attributeType: Optional[str] = "String"


class Recipient(BaseModel):
    emailAddress: str
    customerKey: Optional[str] = None
    attributes: Optional[List[Attribute]] = None

    @model_validator(mode="after")
    def _default_customer_key(self) -> "Recipient":
        if self.customerKey is None:
            self.customerKey = self.emailAddress
        return self

    @classmethod
    def of(cls, email: str, *attributes: Attribute, customer_key: Optional[str] = None) -> "Recipient":
        return cls(
            emailAddress=email,
            customerKey=customer_key,
            attributes=list(attributes) or None,
        )


class SendMailRequest(BaseModel):
    """
    Harmony Real Time Message (RTM) request payload.

    - id: message id, also used in the send URL
    - recipients: up to MAX_RECIPIENTS per request (checked by Harmony)
    - defaultAttributes: used for recipients that carry no attributes
    """

    id: str = Field(min_length=1)
    recipients: List[Recipient] = Field(default_factory=list)
    defaultAttributes: Optional[List[Attribute]] = None

    @classmethod
    def of(
        cls,
        id: str,
        *recipients: Recipient,
        default_attributes: Optional[Iterable[Attribute]] = None,
    ) -> "SendMailRequest":
        return cls(
            id=id,
            recipients=list(recipients),
            defaultAttributes=list(default_attributes) if default_attributes is not None else None,
        )

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode("utf-8")
