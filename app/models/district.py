"""District ORM model — administrative districts of the state.

Players and tournaments optionally belong to a district. Districts are
soft-deleted by clearing ``is_active``.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Float, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UtcDateTime


class District(Base):
    """District model.

    Attributes:
        id: Unique identifier
        name: District name (max 100)
        code: Short unique code, stored uppercase (max 10)
        headquarters: Headquarters town
        area_sq_km: Area in square kilometres, >= 0
        population: Population count, >= 0
        latitude: Headquarters latitude
        longitude: Headquarters longitude
        contact_person: District association contact
        contact_email: Contact email
        contact_phone: Contact phone
        description: Free text description
        is_active: Soft-delete flag

    Relationships:
        players: Players registered in this district
        tournaments: Tournaments hosted by this district
    """

    __tablename__ = "districts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # District code — unique, uppercase (e.g. "HYD")
    code: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    headquarters: Mapped[str | None] = mapped_column(String(100), nullable=True)
    area_sq_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    population: Mapped[int | None] = mapped_column(Integer, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    players = relationship("Player", back_populates="district", passive_deletes=True)
    tournaments = relationship("Tournament", back_populates="district", passive_deletes=True)
