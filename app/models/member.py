"""Member ORM model — association office bearers.

Members are ordered by ``hierarchy_level`` (0 = top of the hierarchy)
and then by name. Tenure dates bound the period a member serves.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, UtcDateTime
from app.utils.dates import today


class Member(Base):
    """Association member (office bearer).

    Attributes:
        id: Unique identifier
        name: Full name (max 100)
        position: Office held, e.g. "President" (max 100)
        email: Contact email, unique when present
        phone: Contact phone
        biography: Free text biography
        photo_url: Portrait URL
        hierarchy_level: Ordering within the hierarchy, 0 = highest
        tenure_start_date: First day in office
        tenure_end_date: Last day in office
        is_active: Soft-delete flag
        is_prominent: Highlighted on the public site
    """

    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    biography: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Hierarchy level — 0 is the top (president), larger numbers rank lower
    hierarchy_level: Mapped[int] = mapped_column(Integer, default=0)
    tenure_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    tenure_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_prominent: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    @property
    def is_currently_serving(self) -> bool:
        """Active and today falls within the (open-ended) tenure."""
        if not self.is_active:
            return False
        current = today()
        if self.tenure_start_date is not None and self.tenure_start_date > current:
            return False
        if self.tenure_end_date is not None and self.tenure_end_date < current:
            return False
        return True
