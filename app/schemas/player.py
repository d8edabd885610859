"""Player, statistics and achievement Pydantic schema definitions."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.player import AchievementLevel, Gender, PlayerCategory
from app.schemas.common import RequestSchema, Email, Name100, Phone, Title200, Url


# === Player ===

class PlayerCreate(RequestSchema):
    """Player creation request schema."""

    name: Name100
    date_of_birth: date | None = None
    gender: Gender | None = None
    category: PlayerCategory | None = None
    profile_photo_url: Url | None = None
    contact_email: Email | None = None
    contact_phone: Phone | None = None
    address: str | None = None
    is_prominent: bool = False
    district_id: UUID | None = None


class PlayerUpdate(RequestSchema):
    """Player update request schema (partial update)."""

    name: Name100 | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None
    category: PlayerCategory | None = None
    profile_photo_url: Url | None = None
    contact_email: Email | None = None
    contact_phone: Phone | None = None
    address: str | None = None
    is_prominent: bool | None = None
    is_active: bool | None = None
    district_id: UUID | None = None


# === Statistics ===

class StatisticsUpdate(RequestSchema):
    """Partial statistics update; ``win_percentage`` is always recomputed."""

    matches_played: int | None = Field(default=None, ge=0)
    matches_won: int | None = Field(default=None, ge=0)
    tournaments_participated: int | None = Field(default=None, ge=0)
    tournaments_won: int | None = Field(default=None, ge=0)
    current_ranking: int | None = Field(default=None, ge=1)
    total_points: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _won_not_above_played(self) -> "StatisticsUpdate":
        if self.matches_played is not None and self.matches_won is not None and self.matches_won > self.matches_played:
            raise ValueError("matches_won cannot exceed matches_played")
        return self


class StatisticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    matches_played: int
    matches_won: int
    tournaments_participated: int
    tournaments_won: int
    win_percentage: float
    current_ranking: int | None
    best_ranking: int | None
    total_points: int
    last_updated: datetime


# === Achievements ===

class AchievementCreate(RequestSchema):
    title: Title200
    description: str | None = None
    achievement_date: date | None = None
    tournament_id: UUID | None = None
    category: str | None = Field(default=None, max_length=50)
    level: AchievementLevel | None = None
    position: int | None = Field(default=None, ge=1)
    is_verified: bool = False


class AchievementUpdate(RequestSchema):
    title: Title200 | None = None
    description: str | None = None
    achievement_date: date | None = None
    tournament_id: UUID | None = None
    category: str | None = Field(default=None, max_length=50)
    level: AchievementLevel | None = None
    position: int | None = Field(default=None, ge=1)
    is_verified: bool | None = None


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    player_id: UUID
    title: str
    description: str | None
    achievement_date: date | None
    tournament_id: UUID | None
    category: str | None
    level: str | None
    position: int | None
    position_display: str
    is_major: bool
    is_verified: bool
    created_at: datetime


# === Responses ===

class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    date_of_birth: date | None
    gender: str | None
    category: str | None
    profile_photo_url: str | None
    contact_email: str | None
    contact_phone: str | None
    address: str | None
    is_prominent: bool
    is_active: bool
    district_id: UUID | None
    statistics: StatisticsResponse | None = None
    created_at: datetime
    updated_at: datetime


class PlayerDetailResponse(PlayerResponse):
    achievements: list[AchievementResponse] = []


class PlayerSummary(BaseModel):
    total_players: int
    prominent_players: int
    by_category: dict[str, int]
    by_district: dict[str, int]


class RankingResult(BaseModel):
    ranked_players: int
