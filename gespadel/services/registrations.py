"""Registration engine: register, cancel, list and group registrations."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gespadel.checks import is_organizer
from gespadel.errors import (
    AuthorizationError,
    DuplicateRegistrationError,
    IncompletePartnerError,
    InvalidCategoryError,
    PersistenceError,
    SelfPartnerError,
    TooManyPreferencesError,
    TournamentClosedError,
)
from gespadel.models.base import new_id
from gespadel.models.player import Gender, Player, Role
from gespadel.models.registration import (
    ReferencedPartner,
    Registration,
    RegistrationStatus,
    UnregisteredPartner,
)
from gespadel.models.tournament import Category, Tournament, TournamentStatus
from gespadel.repository import Repository, commit
from gespadel.services.categories import category_sort_key, is_offered
from gespadel.services.identity import normalize_email
from gespadel.services.time_preferences import TimeSlot, slot_limit, unique_slots

logger = logging.getLogger("gespadel.registrations")


@dataclass(frozen=True)
class PartnerSelection:
    """Partner as typed into the registration form."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class RegistrationSelection:
    gender: str
    category: str
    partner: Optional[PartnerSelection] = None
    time_preferences: list[TimeSlot] = field(default_factory=list)


@dataclass
class CategoryGroup:
    """Registrations of one (gender, category) pair, for organizer review."""

    gender: str
    category: str
    registrations: list[Registration] = field(default_factory=list)


def _active(*criteria):
    return (Registration.status == RegistrationStatus.ACTIVE.value, *criteria)


async def _find_active(session: AsyncSession, tournament_id: str, player_id: str) -> Optional[Registration]:
    return await Repository(session, Registration).first(
        *_active(Registration.tournament_id == tournament_id, Registration.player1_id == player_id)
    )


async def register(
    session: AsyncSession,
    tournament_id: str,
    registrant_id: str,
    selection: RegistrationSelection,
    max_slots: Optional[int] = None,
) -> Registration:
    """Register a player (and optional partner) in one offered category.

    Every rejection happens before anything is written. A partner given by email
    is referenced when a player with that email exists, otherwise a minimal
    player record is created in the same transaction. A partner without email
    is stored as free text on the registration. A partner that is neither a
    known email nor named is rejected; an all-blank partner means none.
    """
    tournament = await Repository(session, Tournament).get_or_raise(tournament_id)
    players = Repository(session, Player)
    registrant = await players.get_or_raise(registrant_id)

    if tournament.status != TournamentStatus.OPEN:
        raise TournamentClosedError(tournament.id, tournament.status)
    if not is_offered(tournament, selection.gender, selection.category):
        raise InvalidCategoryError(selection.gender, selection.category)
    if await _find_active(session, tournament.id, registrant.id):
        raise DuplicateRegistrationError(tournament.id, registrant.id)

    partner_in = selection.partner
    if partner_in is not None and not any(
        (value or "").strip() for value in (partner_in.name, partner_in.email, partner_in.phone)
    ):
        partner_in = None
    partner_name = (partner_in.name or "").strip() if partner_in else ""
    partner_email = normalize_email(partner_in.email) if partner_in else None
    partner_player = None
    if partner_email:
        if partner_email == normalize_email(registrant.email):
            raise SelfPartnerError()
        partner_player = await players.first(Player.email == partner_email)
        if partner_player is not None and partner_player.id == registrant.id:
            raise SelfPartnerError()
    if partner_in is not None and partner_player is None and not partner_name:
        raise IncompletePartnerError()

    slots = unique_slots(selection.time_preferences or [])
    limit = slot_limit() if max_slots is None else max_slots
    if len(slots) > limit:
        raise TooManyPreferencesError(len(slots), limit)

    if partner_email and partner_player is None:
        partner_player = players.create(
            id=new_id(),
            name=partner_name,
            email=partner_email,
            phone=partner_in.phone,
            role=Role.PLAYER.value,
        )
        logger.info("Created partner player %s (%s)", partner_player.id, partner_email)

    registration = Repository(session, Registration).create(
        id=new_id(),
        tournament_id=tournament.id,
        player1_id=registrant.id,
        gender=Gender(selection.gender).value,
        category=Category(selection.category).value,
        status=RegistrationStatus.ACTIVE.value,
        registration_date=datetime.now(timezone.utc),
        time_preferences=[slot.to_dict() for slot in slots],
    )
    if partner_player is not None:
        registration.partner = ReferencedPartner(partner_player.id)
    elif partner_in is not None:
        registration.partner = UnregisteredPartner(partner_name, partner_in.phone or None)

    tournament_id, registrant_id = tournament.id, registrant.id
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        # Lost a race against a concurrent submission by the same player
        if await _find_active(session, tournament_id, registrant_id):
            raise DuplicateRegistrationError(tournament_id, registrant_id) from e
        logger.error("Registration write failed for player %s: %s", registrant_id, e)
        raise PersistenceError("register", str(e)) from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Registration write failed for player %s: %s", registrant_id, e)
        raise PersistenceError("register", str(e)) from e

    logger.info(
        "Player %s registered in tournament %s (%s %s) as %s",
        registrant.id,
        tournament.id,
        registration.gender,
        registration.category,
        registration.id,
    )
    return registration


async def cancel(session: AsyncSession, registration_id: str, actor: Player) -> Registration:
    """Soft-cancel a registration. Cancelling twice returns the cancelled record."""
    registrations = Repository(session, Registration)
    registration = await registrations.get_or_raise(registration_id)
    if actor is None or (actor.id != registration.player1_id and not is_organizer(actor.role)):
        raise AuthorizationError("cancel this registration", actor.role if actor else None)
    if not registration.is_active:
        return registration

    tournament = await Repository(session, Tournament).get_or_raise(registration.tournament_id)
    if tournament.status != TournamentStatus.OPEN:
        raise TournamentClosedError(tournament.id, tournament.status)

    registrations.update(
        registration,
        status=RegistrationStatus.CANCELLED.value,
        cancelled_at=datetime.now(timezone.utc),
    )
    await commit(session, "cancel registration")
    logger.info("Registration %s cancelled by %s", registration.id, actor.id)
    return registration


async def list_active_for_tournament(session: AsyncSession, tournament_id: str) -> list[Registration]:
    return await Repository(session, Registration).query(
        *_active(Registration.tournament_id == tournament_id),
        order_by=Registration.registration_date,
    )


async def list_active_for_player(session: AsyncSession, player_id: str) -> list[Registration]:
    """Registrations the player made themselves."""
    return await Repository(session, Registration).query(
        *_active(Registration.player1_id == player_id),
        order_by=Registration.registration_date.desc(),
    )


async def list_active_as_partner(session: AsyncSession, player_id: str) -> list[Registration]:
    """Registrations where someone else entered this player as partner."""
    return await Repository(session, Registration).query(
        *_active(Registration.player2_id == player_id),
        order_by=Registration.registration_date.desc(),
    )


async def count_active(session: AsyncSession, tournament_id: str) -> int:
    return await Repository(session, Registration).count(*_active(Registration.tournament_id == tournament_id))


def group_by_category(tournament: Tournament, registrations: Sequence[Registration]) -> list[CategoryGroup]:
    """Group by (gender, category): masculine first, categories ascending.

    Every offered pair gets a group even when empty. Registrations whose pair is
    no longer offered (tournament edited after they registered) are kept in
    trailing groups rather than dropped.
    """
    groups: dict[tuple[str, str], CategoryGroup] = {}
    for gender in (Gender.MASCULINE.value, Gender.FEMININE.value):
        for category in sorted(tournament.categories_for(gender), key=category_sort_key):
            groups[(gender, category)] = CategoryGroup(gender, category)

    leftovers: dict[tuple[str, str], CategoryGroup] = {}
    for registration in registrations:
        key = (registration.gender, registration.category)
        group = groups.get(key) or leftovers.setdefault(key, CategoryGroup(*key))
        group.registrations.append(registration)

    gender_order = {Gender.MASCULINE.value: 0, Gender.FEMININE.value: 1}
    extra = sorted(
        leftovers.values(),
        key=lambda g: (gender_order.get(g.gender, 2), category_sort_key(g.category)),
    )
    return [*groups.values(), *extra]
