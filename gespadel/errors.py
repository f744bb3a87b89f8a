"""Domain errors raised by the tournament/registration core.

Every error carries a stable ``kind`` string so adapters (HTTP, notifications)
can classify the outcome without parsing the message.
"""
from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base class for all rejected operations."""

    kind = "domain"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(DomainError):
    """Actor lacks the role required for the attempted mutation."""

    kind = "authorization"

    def __init__(self, action: str, role: Optional[str] = None):
        detail = f"Not allowed to {action}"
        if role:
            detail += f" with role '{role}'"
        super().__init__(detail)
        self.action = action
        self.role = role


class TournamentClosedError(DomainError):
    """Mutation attempted against a tournament that is no longer OPEN."""

    kind = "tournament_closed"

    def __init__(self, tournament_id: str, status: str):
        super().__init__(f"Tournament {tournament_id} is {status}, not OPEN")
        self.tournament_id = tournament_id
        self.status = status


class InvalidCategoryError(DomainError):
    """Requested (gender, category) pair is not offered."""

    kind = "invalid_category"

    def __init__(self, gender: Optional[str], category: Optional[str]):
        super().__init__(f"Category {category!r} is not offered for gender {gender!r}")
        self.gender = gender
        self.category = category


class DuplicateRegistrationError(DomainError):
    kind = "duplicate_registration"

    def __init__(self, tournament_id: str, player_id: str):
        super().__init__(
            f"Player {player_id} already has an active registration for tournament {tournament_id}"
        )
        self.tournament_id = tournament_id
        self.player_id = player_id


class SelfPartnerError(DomainError):
    kind = "self_partner"

    def __init__(self):
        super().__init__("A player cannot register themselves as their own partner")


class IncompletePartnerError(DomainError):
    kind = "incomplete_partner"

    def __init__(self):
        super().__init__("A partner needs a name, or the email of an existing player")


class TooManyPreferencesError(DomainError):
    kind = "too_many_preferences"

    def __init__(self, count: int, maximum: int):
        super().__init__(f"{count} unavailable slots declared, maximum is {maximum}")
        self.count = count
        self.maximum = maximum


class SlotLimitExceededError(DomainError):
    kind = "slot_limit_exceeded"

    def __init__(self, maximum: int):
        super().__init__(f"Cannot select more than {maximum} unavailable slots")
        self.maximum = maximum


class InvalidTransitionError(DomainError):
    """Illegal tournament status transition."""

    kind = "invalid_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move tournament from {current} to {requested}")
        self.current = current
        self.requested = requested


class NotFoundError(DomainError):
    kind = "not_found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(DomainError):
    """Underlying store read/write failed. Never retried by the core."""

    kind = "persistence"

    def __init__(self, operation: str, details: Optional[str] = None):
        message = f"Store failure during {operation}"
        if details:
            message += f": {details}"
        super().__init__(message)
        self.operation = operation


class InvalidTournamentError(DomainError):
    """Tournament fields fail validation on create or edit."""

    kind = "invalid_tournament"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class EmailInUseError(DomainError):
    kind = "email_in_use"

    def __init__(self, email: str):
        super().__init__(f"Email {email} belongs to another player")
        self.email = email
