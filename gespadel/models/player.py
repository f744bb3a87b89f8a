"""Player model."""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from gespadel.models.base import Base, new_id


class Role(str, enum.Enum):
    PLAYER = "player"
    ORGANIZER = "organizer"
    ORGANIZER_PLAYER = "organizer_player"


class Gender(str, enum.Enum):
    MASCULINE = "masculine"
    FEMININE = "feminine"


class Player(Base):
    """Registered player or organizer. Partners created on demand have no identity_id until they sign in."""

    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    identity_id: Mapped[Optional[str]] = mapped_column(String(128), unique=True, nullable=True)  # Auth provider uid
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(254), unique=True, nullable=True)  # Lower-cased
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)  # masculine | feminine
    category: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)  # 1ª .. 5ª
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=Role.PLAYER.value)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)  # Blob store URL
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    @property
    def profile_complete(self) -> bool:
        return bool(self.gender and self.category)
