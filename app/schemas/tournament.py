"""Tournament, registration and bracket Pydantic schema definitions."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.tournament import PaymentStatus, RegistrationStatus, TournamentStatus, TournamentType
from app.schemas.common import Money, MoneyOut, RequestSchema, Title200, check_date_range


class TournamentCreate(RequestSchema):
    """Tournament creation request schema."""

    name: Title200
    description: str | None = None
    start_date: date
    end_date: date
    venue: str | None = Field(default=None, max_length=200)
    registration_start_date: date | None = None
    registration_end_date: date | None = None
    max_participants: int | None = Field(default=None, ge=1)
    entry_fee: Money | None = None
    prize_money: Money | None = None
    status: TournamentStatus = TournamentStatus.UPCOMING
    tournament_type: TournamentType | None = None
    age_category: str | None = Field(default=None, max_length=50)
    gender_category: str | None = Field(default=None, max_length=50)
    is_featured: bool = False
    district_id: UUID | None = None

    @model_validator(mode="after")
    def _date_ranges(self) -> "TournamentCreate":
        check_date_range(self.start_date, self.end_date, "Tournament")
        check_date_range(self.registration_start_date, self.registration_end_date, "Registration")
        return self


class TournamentUpdate(RequestSchema):
    """Tournament update request schema (partial update)."""

    name: Title200 | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    venue: str | None = Field(default=None, max_length=200)
    registration_start_date: date | None = None
    registration_end_date: date | None = None
    max_participants: int | None = Field(default=None, ge=1)
    entry_fee: Money | None = None
    prize_money: Money | None = None
    status: TournamentStatus | None = None
    tournament_type: TournamentType | None = None
    age_category: str | None = Field(default=None, max_length=50)
    gender_category: str | None = Field(default=None, max_length=50)
    is_featured: bool | None = None
    district_id: UUID | None = None


class TournamentStatusUpdate(RequestSchema):
    status: TournamentStatus


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    start_date: date
    end_date: date
    venue: str | None
    registration_start_date: date | None
    registration_end_date: date | None
    max_participants: int | None
    entry_fee: MoneyOut | None
    prize_money: MoneyOut | None
    status: str
    tournament_type: str | None
    age_category: str | None
    gender_category: str | None
    is_featured: bool
    district_id: UUID | None
    duration_in_days: int
    is_registration_open: bool
    current_registration_count: int = 0
    has_available_slots: bool = True
    created_at: datetime
    updated_at: datetime


# === Registrations ===

class RegistrationCreate(RequestSchema):
    player_id: UUID
    notes: str | None = None
    payment_amount: Money | None = None
    payment_reference: str | None = Field(default=None, max_length=100)


class RegistrationStatusUpdate(RequestSchema):
    status: RegistrationStatus
    payment_status: PaymentStatus | None = None


class RegistrationResponse(BaseModel):
    id: UUID
    tournament_id: UUID
    player_id: UUID
    player_name: str | None
    registration_date: datetime
    payment_status: str
    payment_amount: MoneyOut | None
    payment_reference: str | None
    status: str
    notes: str | None


# === Bracket ===

class BracketPlayer(BaseModel):
    player_id: UUID
    name: str


class BracketMatch(BaseModel):
    match_number: int
    player1: BracketPlayer | None
    player2: BracketPlayer | None
    winner: BracketPlayer | None = None
    status: str  # PENDING or WALKOVER


class BracketRound(BaseModel):
    round_number: int
    round_name: str
    matches: list[BracketMatch]


class BracketResponse(BaseModel):
    """Single-elimination bracket; only round 1 is populated."""

    tournament_id: UUID
    tournament_name: str
    total_players: int
    total_rounds: int
    rounds: list[BracketRound]
    generated_at: datetime
