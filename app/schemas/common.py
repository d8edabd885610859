"""Common Pydantic types and response schemas shared across API domains.

String aliases strip surrounding whitespace and enforce the column size,
so "required" strings are rejected when blank.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, StringConstraints

# === Reusable field types ===

Name100 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Title200 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Title300 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=300)]
Email = Annotated[
    str, StringConstraints(strip_whitespace=True, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, max_length=20)]
Url = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
NonNegativeInt = Annotated[int, Field(ge=0)]
NonNegativeFloat = Annotated[float, Field(ge=0)]

# Money is exact in Python and in the database, and a plain JSON number on the wire
Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]
MoneyOut = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def check_date_range(start: date | None, end: date | None, label: str) -> None:
    """Raise ValueError when both dates are given and start is after end."""
    if start is not None and end is not None and start > end:
        raise ValueError(f"{label} start date must be on or before the end date")


class RequestSchema(BaseModel):
    """Base for request bodies; enum fields are dumped as their plain values."""

    model_config = ConfigDict(use_enum_values=True)


# === Generic responses ===

class MessageResponse(BaseModel):
    """Simple message response, e.g. {"message": "Logout successful"}."""

    message: str


class CountResponse(BaseModel):
    count: int


class ContactRequest(BaseModel):
    """Contact form submission.

    Attributes:
        member_id: Recipient member; the general inbox when omitted
        name: Sender name
        email: Sender email (used as Reply-To)
        phone: Sender phone
        subject: Message subject
        message: Message body
    """

    member_id: UUID | None = None
    name: Name100
    email: Email
    phone: Phone | None = None
    subject: Title200
    message: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=5000)]
