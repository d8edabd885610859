"""Member Pydantic request/response schema definitions."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.common import Email, Name100, Phone, Url, check_date_range


class MemberBase(BaseModel):
    name: Name100
    position: Name100
    email: Email | None = None
    phone: Phone | None = None
    biography: str | None = None
    photo_url: Url | None = None
    hierarchy_level: int = Field(default=0, ge=0)
    tenure_start_date: date | None = None
    tenure_end_date: date | None = None
    is_prominent: bool = False

    @model_validator(mode="after")
    def _tenure_range(self) -> "MemberBase":
        check_date_range(self.tenure_start_date, self.tenure_end_date, "Tenure")
        return self


class MemberCreate(MemberBase):
    """Member creation request schema."""


class MemberUpdate(BaseModel):
    """Member update request schema (partial update)."""

    name: Name100 | None = None
    position: Name100 | None = None
    email: Email | None = None
    phone: Phone | None = None
    biography: str | None = None
    photo_url: Url | None = None
    hierarchy_level: int | None = Field(default=None, ge=0)
    tenure_start_date: date | None = None
    tenure_end_date: date | None = None
    is_active: bool | None = None
    is_prominent: bool | None = None

    @model_validator(mode="after")
    def _tenure_range(self) -> "MemberUpdate":
        check_date_range(self.tenure_start_date, self.tenure_end_date, "Tenure")
        return self


class HierarchyUpdate(BaseModel):
    hierarchy_level: int = Field(ge=0)


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    position: str
    email: str | None
    phone: str | None
    biography: str | None
    photo_url: str | None
    hierarchy_level: int
    tenure_start_date: date | None
    tenure_end_date: date | None
    is_active: bool
    is_prominent: bool
    is_currently_serving: bool
    created_at: datetime
    updated_at: datetime


class MemberStatistics(BaseModel):
    total_active: int
    prominent: int
    currently_serving: int
