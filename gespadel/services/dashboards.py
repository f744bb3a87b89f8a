"""Dashboards derived from the live mirrors."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gespadel.models.registration import RegistrationStatus
from gespadel.services.mirror import StoreMirrors


@dataclass
class RegisteredEntry:
    tournament: dict[str, Any]
    registration: dict[str, Any]


@dataclass
class PlayerDashboard:
    registered: list[RegisteredEntry] = field(default_factory=list)
    available: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class TournamentSummary:
    tournament: dict[str, Any]
    active_registrations: int = 0


def _active_registrations(mirrors: StoreMirrors) -> list[dict[str, Any]]:
    return [r for r in mirrors.registrations.all() if r.get("status") == RegistrationStatus.ACTIVE]


def player_dashboard(mirrors: StoreMirrors, player_id: str) -> PlayerDashboard:
    """Tournaments the player is in (as registrant or referenced partner), and the rest.

    The rest are listed whatever their status; callers show it so a CLOSED or
    FINISHED tournament is visible without being joinable.
    """
    mine = {}
    for registration in _active_registrations(mirrors):
        if player_id in (registration.get("player1_id"), registration.get("player2_id")):
            mine.setdefault(registration["tournament_id"], registration)

    dashboard = PlayerDashboard()
    for tournament in mirrors.tournaments.all():
        registration = mine.get(tournament["id"])
        if registration is not None:
            dashboard.registered.append(RegisteredEntry(tournament, registration))
        else:
            dashboard.available.append(tournament)
    return dashboard


def organizer_dashboard(mirrors: StoreMirrors) -> list[TournamentSummary]:
    counts: dict[str, int] = {}
    for registration in _active_registrations(mirrors):
        counts[registration["tournament_id"]] = counts.get(registration["tournament_id"], 0) + 1
    return [TournamentSummary(t, counts.get(t["id"], 0)) for t in mirrors.tournaments.all()]
