"""Database models."""
from gespadel.models.base import Base, async_session_factory, init_db, new_id
from gespadel.models.player import Gender, Player, Role
from gespadel.models.registration import (
    Partner,
    ReferencedPartner,
    Registration,
    RegistrationStatus,
    UnregisteredPartner,
)
from gespadel.models.tournament import (
    STATUS_ORDER,
    Category,
    Tournament,
    TournamentStatus,
    category_number,
)

__all__ = [
    "Base",
    "Category",
    "Gender",
    "Partner",
    "Player",
    "ReferencedPartner",
    "Registration",
    "RegistrationStatus",
    "Role",
    "STATUS_ORDER",
    "Tournament",
    "TournamentStatus",
    "UnregisteredPartner",
    "async_session_factory",
    "category_number",
    "init_db",
    "new_id",
]
