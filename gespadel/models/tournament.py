"""Tournament model."""
from __future__ import annotations

import enum
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gespadel.models.base import Base, new_id
from gespadel.models.player import Gender


class Category(str, enum.Enum):
    """Skill tier, 1ª strongest."""

    FIRST = "1ª"
    SECOND = "2ª"
    THIRD = "3ª"
    FOURTH = "4ª"
    FIFTH = "5ª"


def category_number(category: str) -> int:
    """Numeric prefix of a category label ('3ª' -> 3). Unknown labels sort last."""
    m = re.match(r"\s*(\d+)", category or "")
    return int(m.group(1)) if m else 99


class TournamentStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    IN_PROGRESS = "IN_PROGRESS"
    FINISHED = "FINISHED"


# Linear lifecycle, no cycles
STATUS_ORDER = [
    TournamentStatus.OPEN,
    TournamentStatus.CLOSED,
    TournamentStatus.IN_PROGRESS,
    TournamentStatus.FINISHED,
]


class Tournament(Base):
    """Padel tournament with per-gender category sets."""

    __tablename__ = "tournaments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    club_name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    inscription_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    masculine_categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    feminine_categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)  # 0 = free
    contact_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)
    poster_image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)  # Blob store URL
    rules_pdf_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)  # Blob store URL
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=TournamentStatus.OPEN.value)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    registrations = relationship(
        "Registration", back_populates="tournament", cascade="all, delete-orphan"
    )

    def categories_for(self, gender: str) -> list[str]:
        """Offered categories for a gender; empty for unknown genders."""
        if gender == Gender.MASCULINE:
            return list(self.masculine_categories or [])
        if gender == Gender.FEMININE:
            return list(self.feminine_categories or [])
        return []
