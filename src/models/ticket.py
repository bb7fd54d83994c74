"""Ticket models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class TicketType(str, Enum):
    """Direction of travel."""

    OUTBOUND = "outbound"
    RETURN = "return"


class TicketStatus(str, Enum):
    """Ticket lifecycle states. EXPIRED may never go back to ACTIVE."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


# DynamoDB numbers are limited to magnitudes in [1E-130, 9.99E+125].
AMOUNT_MIN = 1e-130
AMOUNT_MAX = 9.99e125


def _storable_amount(value: float) -> float:
    if value < AMOUNT_MIN:
        raise ValueError("amount is too small")
    return value


Amount = Annotated[
    float,
    Field(gt=0, le=AMOUNT_MAX, allow_inf_nan=False, strict=True),
    AfterValidator(_storable_amount),
]


class _CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketCreate(_CamelModel):
    """Inbound payload for POST /tickets. Unknown keys (status, id...) are ignored."""

    user_id: str
    ticket_type: TicketType
    amount: Amount

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("userId must be provided")
        return cleaned


class TicketUpdate(_CamelModel):
    """
    Partial payload for PUT /tickets/{id}.

    Presence is tracked through ``model_fields_set`` so a supplied falsy
    value (``amount: 0``) is validated instead of being mistaken for
    "not sent". Explicit nulls are rejected.
    """

    status: Optional[TicketStatus] = None
    ticket_type: Optional[TicketType] = None
    amount: Optional[Amount] = None

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "TicketUpdate":
        for name in sorted(self.model_fields_set):
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class Ticket(_CamelModel):
    """Stored ticket record."""

    id: str
    user_id: str
    ticket_type: TicketType
    status: TicketStatus = TicketStatus.ACTIVE
    amount: float
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
    # Key of the daily claim written with the ticket; never sent to clients.
    claim_pk: Optional[str] = Field(default=None, exclude=True)

    def to_public(self) -> Dict[str, Any]:
        """JSON-ready camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)
