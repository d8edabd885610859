"""Tournament ORM models — tournaments and player registrations.

Tables:
    - tournaments: tournament definitions with registration window
    - tournament_registrations: one row per (tournament, player)
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UtcDateTime
from app.utils.dates import today


class TournamentStatus(str, Enum):
    UPCOMING = "UPCOMING"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TournamentType(str, Enum):
    SINGLES = "SINGLES"
    DOUBLES = "DOUBLES"
    MIXED = "MIXED"
    TEAM = "TEAM"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class RegistrationStatus(str, Enum):
    REGISTERED = "REGISTERED"
    CONFIRMED = "CONFIRMED"
    WITHDRAWN = "WITHDRAWN"
    DISQUALIFIED = "DISQUALIFIED"


# Registrations that occupy a slot
ACTIVE_REGISTRATION_STATUSES: tuple[str, ...] = (
    RegistrationStatus.REGISTERED.value,
    RegistrationStatus.CONFIRMED.value,
)


class Tournament(Base):
    """Tournament model.

    Attributes:
        id: Unique identifier
        name: Tournament name (max 200)
        description: Free text description
        start_date: First day of play
        end_date: Last day of play (>= start_date)
        venue: Venue name
        registration_start_date: Registration window start
        registration_end_date: Registration window end
        max_participants: Slot limit, None = unlimited
        entry_fee: Entry fee, >= 0
        prize_money: Total prize money, >= 0
        status: TournamentStatus value
        tournament_type: SINGLES / DOUBLES / MIXED / TEAM
        age_category: Age bracket label
        gender_category: Gender bracket label
        is_featured: Highlighted on the public site
        district_id: Host district (nullable)
    """

    __tablename__ = "tournaments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    venue: Mapped[str | None] = mapped_column(String(200), nullable=True)
    registration_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    registration_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    entry_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    prize_money: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default=TournamentStatus.UPCOMING.value)
    tournament_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    age_category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    gender_category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    # Host district — SET NULL when the district row is removed
    district_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("districts.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    district = relationship("District", back_populates="tournaments")
    registrations = relationship("TournamentRegistration", back_populates="tournament", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def is_registration_open(self) -> bool:
        """REGISTRATION_OPEN and today inside the window (open ends allowed)."""
        if self.status != TournamentStatus.REGISTRATION_OPEN.value:
            return False
        current = today()
        if self.registration_start_date is not None and current < self.registration_start_date:
            return False
        if self.registration_end_date is not None and current > self.registration_end_date:
            return False
        return True

    @property
    def duration_in_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def slots_available(self, registration_count: int) -> bool:
        return self.max_participants is None or registration_count < self.max_participants


class TournamentRegistration(Base):
    """A player's registration for a tournament."""

    __tablename__ = "tournament_registrations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tournament_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    registration_date: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value)
    payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=RegistrationStatus.REGISTERED.value)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("tournament_id", "player_id", name="uq_tournament_player"),
    )

    # Relationships
    tournament = relationship("Tournament", back_populates="registrations")
    player = relationship("Player")
