"""API routes for tournaments, registrations, players and dashboards."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from gespadel.checks import require_organizer
from gespadel.models import Player, Registration, Tournament
from gespadel.models.base import async_session_factory
from gespadel.models.registration import ReferencedPartner, UnregisteredPartner
from gespadel.services import lifecycle, registrations
from gespadel.services.dashboards import organizer_dashboard, player_dashboard
from gespadel.services.identity import get_player
from gespadel.services.registrations import PartnerSelection, RegistrationSelection
from gespadel.services.time_preferences import TimeSlot, candidate_slots, slot_limit
from gespadel.services.views import View, resolve_view
from web.api.auth_routes import PlayerResponse
from web.api.utils import get_mirrors, player_display_name
from web.auth import get_current_player, require_player

router = APIRouter(prefix="/api", tags=["tournaments"])


# --- Pydantic schemas ---


class TournamentCreate(BaseModel):
    name: str = ""
    club_name: str = ""
    description: str = ""
    # Optional here so a missing date is reported as invalid_tournament
    inscription_start_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    masculine_categories: list[str] = Field(default_factory=list)
    feminine_categories: list[str] = Field(default_factory=list)
    price: float = 0
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    poster_image: Optional[str] = None
    rules_pdf_url: Optional[str] = None


class TournamentUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    club_name: Optional[str] = None
    description: Optional[str] = None
    inscription_start_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    masculine_categories: Optional[list[str]] = None
    feminine_categories: Optional[list[str]] = None
    price: Optional[float] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    poster_image: Optional[str] = None  # null removes the poster
    rules_pdf_url: Optional[str] = None  # null removes the rules PDF


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    club_name: str
    description: str
    inscription_start_date: datetime
    start_date: datetime
    end_date: datetime
    masculine_categories: list[str]
    feminine_categories: list[str]
    price: float
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    poster_image: Optional[str] = None
    rules_pdf_url: Optional[str] = None
    status: str
    active_registrations: Optional[int] = None


class StatusRequest(BaseModel):
    status: str


class PartnerIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class RegistrationCreate(BaseModel):
    gender: str
    category: str
    partner: Optional[PartnerIn] = None
    time_preferences: list[TimeSlot] = Field(default_factory=list)


class PartnerOut(BaseModel):
    type: str  # referenced | unregistered
    player_id: Optional[str] = None
    name: str
    phone: Optional[str] = None


class RegistrationResponse(BaseModel):
    id: str
    tournament_id: str
    player1_id: str
    player1_name: str
    partner: Optional[PartnerOut] = None
    gender: str
    category: str
    status: str
    registration_date: datetime
    cancelled_at: Optional[datetime] = None
    time_preferences: list[dict]


class CategoryGroupResponse(BaseModel):
    gender: str
    category: str
    registrations: list[RegistrationResponse]


def _tournament_out(t: Tournament, active: Optional[int] = None) -> TournamentResponse:
    out = TournamentResponse.model_validate(t)
    out.active_registrations = active
    return out


async def _registration_out(session: AsyncSession, reg: Registration) -> RegistrationResponse:
    player1 = await session.get(Player, reg.player1_id)
    partner_out = None
    partner = reg.partner
    if isinstance(partner, ReferencedPartner):
        p2 = await session.get(Player, partner.player_id)
        partner_out = PartnerOut(
            type="referenced",
            player_id=partner.player_id,
            name=player_display_name(p2),
            phone=p2.phone if p2 else None,
        )
    elif isinstance(partner, UnregisteredPartner):
        partner_out = PartnerOut(type="unregistered", name=partner.name, phone=partner.phone)
    return RegistrationResponse(
        id=reg.id,
        tournament_id=reg.tournament_id,
        player1_id=reg.player1_id,
        player1_name=player_display_name(player1),
        partner=partner_out,
        gender=reg.gender,
        category=reg.category,
        status=reg.status,
        registration_date=reg.registration_date,
        cancelled_at=reg.cancelled_at,
        time_preferences=list(reg.time_preferences or []),
    )


# --- Tournaments ---


@router.get("/tournaments", response_model=list[TournamentResponse])
async def list_tournaments(status: Optional[str] = None):
    """List tournaments, latest start first. Optional ?status=OPEN filter."""
    async with async_session_factory() as session:
        tournaments = await lifecycle.list_tournaments(session, status)
        return [_tournament_out(t) for t in tournaments]


@router.post("/tournaments", response_model=TournamentResponse)
async def create_tournament(body: TournamentCreate, player: Player = Depends(require_player)):
    """Create a tournament (organizers only). Starts OPEN."""
    async with async_session_factory() as session:
        t = await lifecycle.create_tournament(session, body.model_dump(), player.role)
        return _tournament_out(t, 0)


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
async def get_tournament(tournament_id: str):
    async with async_session_factory() as session:
        t = await lifecycle.get_tournament(session, tournament_id)
        return _tournament_out(t, await registrations.count_active(session, t.id))


@router.patch("/tournaments/{tournament_id}", response_model=TournamentResponse)
async def update_tournament(tournament_id: str, body: TournamentUpdate, player: Player = Depends(require_player)):
    """Edit an OPEN tournament. Status changes go through POST /status."""
    async with async_session_factory() as session:
        t = await lifecycle.update_tournament(session, tournament_id, body.model_dump(exclude_unset=True), player.role)
        return _tournament_out(t, await registrations.count_active(session, t.id))


@router.post("/tournaments/{tournament_id}/status", response_model=TournamentResponse)
async def transition_status(tournament_id: str, body: StatusRequest, player: Player = Depends(require_player)):
    """Advance to the next status: OPEN -> CLOSED -> IN_PROGRESS -> FINISHED."""
    async with async_session_factory() as session:
        t = await lifecycle.transition_status(session, tournament_id, body.status, player.role)
        return _tournament_out(t)


@router.delete("/tournaments/{tournament_id}")
async def delete_tournament(tournament_id: str, player: Player = Depends(require_player)):
    """Delete a tournament and all its registrations."""
    async with async_session_factory() as session:
        await lifecycle.delete_tournament(session, tournament_id, player.role)
        return {"ok": True, "deleted": tournament_id}


@router.get("/tournaments/{tournament_id}/slots")
async def list_slots(tournament_id: str):
    """Time slots a registrant may mark as unavailable, and how many they may pick."""
    async with async_session_factory() as session:
        t = await lifecycle.get_tournament(session, tournament_id)
        slots = candidate_slots(t.start_date, t.end_date)
        return {"max_slots": slot_limit(), "slots": [s.to_dict() for s in slots]}


# --- Registrations ---


@router.post("/tournaments/{tournament_id}/registrations", response_model=RegistrationResponse)
async def create_registration(
    tournament_id: str,
    body: RegistrationCreate,
    player: Player = Depends(require_player),
):
    """Register the signed-in player, optionally with a partner."""
    selection = RegistrationSelection(
        gender=body.gender,
        category=body.category,
        partner=PartnerSelection(**body.partner.model_dump()) if body.partner else None,
        time_preferences=list(body.time_preferences),
    )
    async with async_session_factory() as session:
        reg = await registrations.register(session, tournament_id, player.id, selection)
        return await _registration_out(session, reg)


@router.get("/tournaments/{tournament_id}/registrations", response_model=list[CategoryGroupResponse])
async def list_registrations(tournament_id: str, player: Player = Depends(require_player)):
    """Active registrations grouped by gender and category (organizers only)."""
    require_organizer(player.role, "review registrations")
    async with async_session_factory() as session:
        t = await lifecycle.get_tournament(session, tournament_id)
        regs = await registrations.list_active_for_tournament(session, t.id)
        groups = registrations.group_by_category(t, regs)
        return [
            CategoryGroupResponse(
                gender=g.gender,
                category=g.category,
                registrations=[await _registration_out(session, r) for r in g.registrations],
            )
            for g in groups
        ]


@router.post("/registrations/{registration_id}/cancel", response_model=RegistrationResponse)
async def cancel_registration(registration_id: str, player: Player = Depends(require_player)):
    """Cancel a registration (registrant or organizer). Repeating it is harmless."""
    async with async_session_factory() as session:
        reg = await registrations.cancel(session, registration_id, player)
        return await _registration_out(session, reg)


# --- Players ---


@router.get("/players/me/registrations")
async def my_registrations(player: Player = Depends(require_player)):
    """Active registrations the player made, and ones where they were entered as partner."""
    async with async_session_factory() as session:
        own = await registrations.list_active_for_player(session, player.id)
        as_partner = await registrations.list_active_as_partner(session, player.id)
        return {
            "registered": [await _registration_out(session, r) for r in own],
            "as_partner": [await _registration_out(session, r) for r in as_partner],
        }


@router.get("/players/{player_id}", response_model=PlayerResponse)
async def get_player_profile(player_id: str, player: Player = Depends(require_player)):
    async with async_session_factory() as session:
        return PlayerResponse.model_validate(await get_player(session, player_id))


# --- Dashboard ---


@router.get("/dashboard")
async def dashboard(
    preference: Optional[View] = None,
    last: Optional[View] = None,
    player: Optional[Player] = Depends(get_current_player),
):
    """Dashboard for the caller's active view, computed from the live mirrors."""
    view = resolve_view(player, preference, last)
    mirrors = await get_mirrors()
    if view is View.ORGANIZER:
        summaries = organizer_dashboard(mirrors)
        return {
            "view": view.value,
            "tournaments": [
                {**TournamentResponse.model_validate(s.tournament).model_dump(), "active_registrations": s.active_registrations}
                for s in summaries
            ],
        }
    if player is None:
        return {
            "view": view.value,
            "registered": [],
            "available": [TournamentResponse.model_validate(t).model_dump() for t in mirrors.tournaments.all()],
        }
    board = player_dashboard(mirrors, player.id)
    return {
        "view": view.value,
        "registered": [
            {
                "tournament": TournamentResponse.model_validate(e.tournament).model_dump(),
                "registration_id": e.registration["id"],
                "gender": e.registration["gender"],
                "category": e.registration["category"],
            }
            for e in board.registered
        ],
        "available": [TournamentResponse.model_validate(t).model_dump() for t in board.available],
    }
