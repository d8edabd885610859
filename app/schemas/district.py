"""District Pydantic request/response schema definitions."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from app.schemas.common import Email, Name100, NonNegativeFloat, NonNegativeInt, Phone

DistrictCode = Annotated[str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=1, max_length=10)]


class DistrictCreate(BaseModel):
    """District creation request schema. ``code`` is stored uppercase."""

    name: Name100
    code: DistrictCode
    headquarters: Name100 | None = None
    area_sq_km: NonNegativeFloat | None = None
    population: NonNegativeInt | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    contact_person: Name100 | None = None
    contact_email: Email | None = None
    contact_phone: Phone | None = None
    description: str | None = None


class DistrictUpdate(BaseModel):
    """District update request schema (partial update)."""

    name: Name100 | None = None
    code: DistrictCode | None = None
    headquarters: Name100 | None = None
    area_sq_km: NonNegativeFloat | None = None
    population: NonNegativeInt | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    contact_person: Name100 | None = None
    contact_email: Email | None = None
    contact_phone: Phone | None = None
    description: str | None = None
    is_active: bool | None = None


class DistrictResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    code: str
    headquarters: str | None
    area_sq_km: float | None
    population: int | None
    latitude: float | None
    longitude: float | None
    contact_person: str | None
    contact_email: str | None
    contact_phone: str | None
    description: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class DistrictWithStatistics(DistrictResponse):
    players_count: int = 0
    tournaments_count: int = 0


class DistrictOverview(BaseModel):
    """Association-wide district totals."""

    total_districts: int
    total_players: int
    total_tournaments: int
