"""Tournament lifecycle: create, edit, status transitions and deletion."""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import config
from gespadel.checks import require_organizer
from gespadel.errors import (
    InvalidTournamentError,
    InvalidTransitionError,
    TournamentClosedError,
)
from gespadel.models.tournament import STATUS_ORDER, Tournament, TournamentStatus
from gespadel.repository import Repository, commit
from gespadel.services.categories import category_sort_key

logger = logging.getLogger("gespadel.lifecycle")

TOURNAMENT_FIELDS = frozenset(
    {
        "name",
        "club_name",
        "description",
        "inscription_start_date",
        "start_date",
        "end_date",
        "masculine_categories",
        "feminine_categories",
        "price",
        "contact_phone",
        "contact_email",
        "poster_image",
        "rules_pdf_url",
    }
)
REQUIRED_TEXT = ("name", "club_name")
REQUIRED_DATES = ("inscription_start_date", "start_date", "end_date")


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clean_categories(values: Any, gender: str) -> list[str]:
    result = []
    for value in values or []:
        value = getattr(value, "value", value)
        if value not in config.ENABLED_CATEGORIES:
            raise InvalidTournamentError(f"Category {value!r} ({gender}) is not enabled")
        if value not in result:
            result.append(value)
    return sorted(result, key=category_sort_key)


def validate_tournament_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Check a full set of tournament fields and return them normalized."""
    unknown = set(fields) - TOURNAMENT_FIELDS
    if unknown:
        raise InvalidTournamentError(f"Unknown tournament fields: {', '.join(sorted(unknown))}")

    data = dict(fields)
    for key in REQUIRED_TEXT:
        data[key] = (data.get(key) or "").strip()
        if not data[key]:
            raise InvalidTournamentError(f"{key} is required")
    data["description"] = data.get("description") or ""

    for key in REQUIRED_DATES:
        if not isinstance(data.get(key), datetime):
            raise InvalidTournamentError(f"{key} is required")
        data[key] = _aware(data[key])
    if data["start_date"] > data["end_date"]:
        raise InvalidTournamentError("start_date must not be after end_date")

    price = data.get("price", 0)
    if price is None:
        raise InvalidTournamentError("price is required")
    try:
        data["price"] = float(price)
    except (TypeError, ValueError):
        raise InvalidTournamentError(f"Invalid price: {price!r}")
    if not math.isfinite(data["price"]) or data["price"] < 0:
        raise InvalidTournamentError(f"price must be a finite amount, zero or positive: {price!r}")

    data["masculine_categories"] = _clean_categories(data.get("masculine_categories"), "masculine")
    data["feminine_categories"] = _clean_categories(data.get("feminine_categories"), "feminine")
    if not data["masculine_categories"] and not data["feminine_categories"]:
        raise InvalidTournamentError("At least one category must be offered")
    return data


async def get_tournament(session: AsyncSession, tournament_id: str) -> Tournament:
    return await Repository(session, Tournament).get_or_raise(tournament_id)


async def list_tournaments(session: AsyncSession, status: Optional[str] = None) -> list[Tournament]:
    """All tournaments, latest start first."""
    criteria = [Tournament.status == status] if status else []
    return await Repository(session, Tournament).query(
        *criteria, order_by=(Tournament.start_date.desc(), Tournament.created_at.desc())
    )


async def create_tournament(
    session: AsyncSession,
    fields: dict[str, Any],
    creator_role: Optional[str],
) -> Tournament:
    require_organizer(creator_role, "create tournaments")
    data = validate_tournament_fields(fields)
    tournament = Repository(session, Tournament).create(status=TournamentStatus.OPEN.value, **data)
    await commit(session, "create tournament")
    logger.info("Created tournament %s (%s)", tournament.id, tournament.name)
    return tournament


async def update_tournament(
    session: AsyncSession,
    tournament_id: str,
    fields: dict[str, Any],
    editor_role: Optional[str],
) -> Tournament:
    """Edit fields of an OPEN tournament. Status only moves through transition_status."""
    require_organizer(editor_role, "edit tournaments")
    tournaments = Repository(session, Tournament)
    tournament = await tournaments.get_or_raise(tournament_id)
    if "status" in fields:
        raise InvalidTransitionError(tournament.status, str(fields["status"]))
    if tournament.status != TournamentStatus.OPEN:
        raise TournamentClosedError(tournament.id, tournament.status)

    current = {key: getattr(tournament, key) for key in TOURNAMENT_FIELDS}
    data = validate_tournament_fields({**current, **fields})
    changed = {key: value for key, value in data.items() if key in fields}
    tournaments.update(tournament, **changed)
    await commit(session, "update tournament")
    logger.info("Updated tournament %s fields %s", tournament.id, sorted(changed))
    return tournament


async def transition_status(
    session: AsyncSession,
    tournament_id: str,
    new_status: str,
    editor_role: Optional[str],
) -> Tournament:
    """Advance the tournament exactly one step along OPEN -> CLOSED -> IN_PROGRESS -> FINISHED."""
    require_organizer(editor_role, "change tournament status")
    tournament = await get_tournament(session, tournament_id)
    current = TournamentStatus(tournament.status)
    try:
        requested = TournamentStatus(new_status)
    except ValueError:
        raise InvalidTransitionError(current.value, str(new_status))

    if STATUS_ORDER.index(requested) != STATUS_ORDER.index(current) + 1:
        raise InvalidTransitionError(current.value, requested.value)

    tournament.status = requested.value
    await commit(session, "transition tournament status")
    logger.info("Tournament %s: %s -> %s", tournament.id, current.value, requested.value)
    return tournament


async def delete_tournament(
    session: AsyncSession,
    tournament_id: str,
    editor_role: Optional[str],
) -> None:
    """Delete a tournament and, in the same transaction, all its registrations."""
    require_organizer(editor_role, "delete tournaments")
    tournaments = Repository(session, Tournament)
    tournament = await tournaments.get_or_raise(tournament_id)
    await tournaments.delete(tournament)
    await commit(session, "delete tournament")
    logger.info("Deleted tournament %s", tournament_id)
