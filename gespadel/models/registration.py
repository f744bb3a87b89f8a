"""Registration model - a player (optionally paired) entered in a tournament category."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gespadel.models.base import Base, new_id


class RegistrationStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class ReferencedPartner:
    """Partner holding a player record."""

    player_id: str


@dataclass(frozen=True)
class UnregisteredPartner:
    """Partner known only by name (and maybe phone); no account is created."""

    name: str
    phone: Optional[str] = None


Partner = Union[ReferencedPartner, UnregisteredPartner]

ACTIVE_PLAYER_INDEX = "uq_registrations_active_player"


class Registration(Base):
    """Player registration for a tournament."""

    __tablename__ = "registrations"
    __table_args__ = (
        CheckConstraint(
            "player2_id IS NULL OR (player2_name IS NULL AND player2_phone IS NULL)",
            name="ck_registrations_partner_variant",
        ),
        # At most one ACTIVE registration per (tournament, player1)
        Index(
            ACTIVE_PLAYER_INDEX,
            "tournament_id",
            "player1_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tournament_id: Mapped[str] = mapped_column(ForeignKey("tournaments.id"), nullable=False, index=True)
    player1_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False, index=True)
    player2_id: Mapped[Optional[str]] = mapped_column(ForeignKey("players.id"), nullable=True, index=True)
    player2_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    player2_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    category: Mapped[str] = mapped_column(String(8), nullable=False)
    gender: Mapped[str] = mapped_column(String(16), nullable=False)
    registration_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RegistrationStatus.ACTIVE.value)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    time_preferences: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)  # [{date, hour}]

    tournament: Mapped["Tournament"] = relationship("Tournament", back_populates="registrations")

    @property
    def is_active(self) -> bool:
        return self.status == RegistrationStatus.ACTIVE

    @property
    def partner(self) -> Optional[Partner]:
        if self.player2_id:
            return ReferencedPartner(self.player2_id)
        if self.player2_name:
            return UnregisteredPartner(self.player2_name, self.player2_phone)
        return None

    @partner.setter
    def partner(self, value: Optional[Partner]) -> None:
        self.player2_id = None
        self.player2_name = None
        self.player2_phone = None
        if isinstance(value, ReferencedPartner):
            self.player2_id = value.player_id
        elif isinstance(value, UnregisteredPartner):
            self.player2_name = value.name
            self.player2_phone = value.phone
        elif value is not None:
            raise TypeError(f"Unsupported partner type: {type(value).__name__}")
