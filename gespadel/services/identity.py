"""Identity resolution: authenticated provider identity -> Player record."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

import config
from gespadel.errors import AuthorizationError, EmailInUseError, InvalidCategoryError
from gespadel.models.player import Gender, Player, Role
from gespadel.models.tournament import Category
from gespadel.repository import Repository, commit

logger = logging.getLogger("gespadel.identity")

DEFAULT_PLAYER_NAME = "Nuevo Jugador"

PROFILE_FIELDS = frozenset({"name", "email", "phone", "gender", "category", "profile_picture"})
PROTECTED_FIELDS = frozenset({"id", "identity_id", "role"})


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """What the identity provider hands us after a successful sign-in."""

    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


def normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    email = email.strip().lower()
    return email or None


def _initial_role(intended_role: Optional[str]) -> str:
    # Sign-in can ask for organizer; organizer_player is only granted by an admin
    if intended_role == Role.ORGANIZER:
        return Role.ORGANIZER.value
    return Role.PLAYER.value


async def get_player(session: AsyncSession, player_id: str) -> Player:
    return await Repository(session, Player).get_or_raise(player_id)


async def find_by_email(session: AsyncSession, email: Optional[str]) -> Optional[Player]:
    email = normalize_email(email)
    if not email:
        return None
    return await Repository(session, Player).first(Player.email == email)


async def resolve_or_create_player(
    session: AsyncSession,
    identity: AuthenticatedIdentity,
    intended_role: Optional[str] = None,
) -> Player:
    """Return the player for this identity, creating (and persisting) one on first sign-in.

    A partner placeholder created during someone else's registration is claimed
    when the identity signs in with the same email, so existing registrations
    keep pointing at the same player id.
    """
    players = Repository(session, Player)
    player = await players.first(Player.identity_id == identity.uid)
    if player:
        return player

    email = normalize_email(identity.email)
    if email:
        existing = await players.first(Player.email == email)
        if existing and existing.identity_id is None:
            players.update(existing, identity_id=identity.uid)
            if not existing.phone and identity.phone:
                existing.phone = identity.phone
            await commit(session, "claim player")
            logger.info("Identity %s claimed player %s (%s)", identity.uid, existing.id, email)
            return existing
        if existing:
            # Email already bound to another identity; keep the new record reachable by uid only
            logger.warning("Email %s already belongs to player %s; creating without email", email, existing.id)
            email = None

    name = (identity.display_name or "").strip() or DEFAULT_PLAYER_NAME
    player = players.create(
        identity_id=identity.uid,
        name=name,
        email=email,
        phone=identity.phone,
        role=_initial_role(intended_role),
    )
    await commit(session, "create player")
    logger.info("Created player %s (%s) with role %s", player.id, name, player.role)
    return player


async def save_profile(
    session: AsyncSession,
    player_id: str,
    changes: dict[str, Any],
    actor_id: Optional[str],
) -> Player:
    """Owner-only profile edit. Role and identity are not editable here."""
    if actor_id != player_id:
        raise AuthorizationError("edit another player's profile")
    for key in changes:
        if key in PROTECTED_FIELDS or key not in PROFILE_FIELDS:
            raise AuthorizationError(f"change '{key}' through profile save")

    players = Repository(session, Player)
    player = await players.get_or_raise(player_id)

    gender = changes.get("gender", player.gender)
    category = changes.get("category", player.category)
    if "gender" in changes and gender is not None and gender not in [g.value for g in Gender]:
        raise InvalidCategoryError(gender, category)
    if "category" in changes and category is not None and category not in config.ENABLED_CATEGORIES:
        raise InvalidCategoryError(gender, category)

    fields = dict(changes)
    if fields.get("gender") is not None:
        fields["gender"] = Gender(fields["gender"]).value
    if fields.get("category") is not None:
        fields["category"] = Category(fields["category"]).value
    if "email" in fields:
        fields["email"] = normalize_email(fields["email"])
        if fields["email"]:
            other = await players.first(Player.email == fields["email"], Player.id != player_id)
            if other:
                raise EmailInUseError(fields["email"])
    if "name" in fields:
        fields["name"] = (fields["name"] or "").strip() or player.name

    players.update(player, **fields)
    await commit(session, "save profile")
    logger.info("Player %s saved profile fields %s", player_id, sorted(fields))
    return player
