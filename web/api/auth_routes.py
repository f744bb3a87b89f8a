"""Auth API routes: identity-bridge sign-in, current player, profile save, active view."""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from gespadel.models import Player
from gespadel.models.base import async_session_factory
from gespadel.services.identity import AuthenticatedIdentity, resolve_or_create_player, save_profile
from gespadel.services.views import View, resolve_view
from web.auth import create_access_token, get_current_player, require_identity_bridge, require_player

router = APIRouter(prefix="/api/auth", tags=["auth"])


class IdentityIn(BaseModel):
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class SessionRequest(BaseModel):
    identity: IdentityIn
    intended_role: Optional[Literal["player", "organizer"]] = None


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    category: Optional[str] = None
    role: str
    profile_picture: Optional[str] = None
    profile_complete: bool = False
    created_at: Optional[datetime] = None


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    player: PlayerResponse
    profile_complete: bool


class ProfileUpdate(BaseModel):
    # Extra keys pass through so the service can reject role/identity edits explicitly
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    category: Optional[str] = None
    profile_picture: Optional[str] = None


@router.post("/session", response_model=SessionResponse, dependencies=[Depends(require_identity_bridge)])
async def open_session(body: SessionRequest):
    """Resolve (or create) the player for an authenticated identity and return a JWT."""
    identity = AuthenticatedIdentity(**body.identity.model_dump())
    async with async_session_factory() as session:
        player = await resolve_or_create_player(session, identity, body.intended_role)
    token = create_access_token(player.id, player.role)
    return SessionResponse(
        access_token=token,
        player=PlayerResponse.model_validate(player),
        profile_complete=player.profile_complete,
    )


@router.get("/me", response_model=PlayerResponse)
async def get_me(player: Player = Depends(require_player)):
    """Get current signed-in player."""
    return PlayerResponse.model_validate(player)


@router.get("/me/optional")
async def get_me_optional(player: Optional[Player] = Depends(get_current_player)):
    """Get current player if signed in, else null. For frontend auth check."""
    if not player:
        return None
    return PlayerResponse.model_validate(player)


@router.put("/me", response_model=PlayerResponse)
async def update_me(body: ProfileUpdate, player: Player = Depends(require_player)):
    """Save own profile."""
    async with async_session_factory() as session:
        updated = await save_profile(session, player.id, body.model_dump(exclude_unset=True), player.id)
        return PlayerResponse.model_validate(updated)


@router.get("/view")
async def get_view(
    preference: Optional[View] = None,
    last: Optional[View] = None,
    player: Optional[Player] = Depends(get_current_player),
):
    """Dashboard the caller should see. Hybrid organizer_player picks via ?preference= or ?last=."""
    return {"view": resolve_view(player, preference, last).value}
