"""Player ORM models — profiles, statistics and achievements.

Tables:
    - players: player profiles, optionally linked to a district
    - player_statistics: one-to-one match and ranking statistics
    - achievements: tournament results and honours
"""

import uuid
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UtcDateTime


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class PlayerCategory(str, Enum):
    MEN = "MEN"
    WOMEN = "WOMEN"
    JUNIOR = "JUNIOR"
    SENIOR = "SENIOR"
    VETERANS = "VETERANS"


class AchievementLevel(str, Enum):
    DISTRICT = "DISTRICT"
    STATE = "STATE"
    NATIONAL = "NATIONAL"
    INTERNATIONAL = "INTERNATIONAL"


class Player(Base):
    """Player profile.

    Attributes:
        id: Unique identifier
        name: Full name (max 100)
        date_of_birth: Date of birth
        gender: MALE / FEMALE / OTHER
        category: MEN / WOMEN / JUNIOR / SENIOR / VETERANS
        profile_photo_url: Photo URL
        contact_email: Contact email
        contact_phone: Contact phone
        address: Postal address
        is_prominent: Highlighted on the public site
        is_active: Soft-delete flag
        district_id: Home district (nullable)

    Relationships:
        district: Home district
        statistics: One-to-one statistics row
        achievements: Achievements, newest first
    """

    __tablename__ = "players"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    category: Mapped[str | None] = mapped_column(String(20), nullable=True)
    profile_photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_prominent: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # Home district — SET NULL when the district row is removed
    district_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("districts.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    district = relationship("District", back_populates="players")
    statistics = relationship("PlayerStatistics", back_populates="player", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    achievements = relationship(
        "Achievement",
        back_populates="player",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Achievement.achievement_date.desc()",
    )


class PlayerStatistics(Base):
    """Match and ranking statistics of a player.

    ``win_percentage`` is derived from matches played/won and
    ``best_ranking`` tracks the lowest ranking ever held.
    """

    __tablename__ = "player_statistics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), unique=True, nullable=False)
    matches_played: Mapped[int] = mapped_column(Integer, default=0)
    matches_won: Mapped[int] = mapped_column(Integer, default=0)
    tournaments_participated: Mapped[int] = mapped_column(Integer, default=0)
    tournaments_won: Mapped[int] = mapped_column(Integer, default=0)
    # Percentage 0-100, two decimals
    win_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    current_ranking: Mapped[int | None] = mapped_column(Integer, nullable=True)
    best_ranking: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    last_updated: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    player = relationship("Player", back_populates="statistics")

    def recalculate_win_percentage(self) -> None:
        played = self.matches_played or 0
        if played <= 0:
            self.win_percentage = 0.0
            return
        ratio = Decimal(self.matches_won or 0) * 100 / Decimal(played)
        self.win_percentage = float(ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

    def set_ranking(self, ranking: int | None) -> None:
        self.current_ranking = ranking
        if ranking is not None and (self.best_ranking is None or ranking < self.best_ranking):
            self.best_ranking = ranking

    def touch(self) -> None:
        self.recalculate_win_percentage()
        self.last_updated = datetime.now(timezone.utc)


class Achievement(Base):
    """A player's achievement (placing at a tournament, honour, etc.)."""

    __tablename__ = "achievements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    achievement_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    tournament_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("tournaments.id", ondelete="SET NULL"), nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # Finishing position — 1 = winner; empty for participation
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    player = relationship("Player", back_populates="achievements")

    @property
    def position_display(self) -> str:
        if self.position is None:
            return "Participant"
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(self.position, "th")
        return f"{self.position}{suffix} Place"

    @property
    def is_major(self) -> bool:
        return (
            self.position is not None
            and self.position <= 3
            and self.level in (AchievementLevel.NATIONAL.value, AchievementLevel.INTERNATIONAL.value)
        )
