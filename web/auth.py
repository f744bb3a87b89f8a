"""Authentication for web API: player JWTs and the identity-bridge secret."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import config
from gespadel.models import Player
from gespadel.models.base import async_session_factory

http_bearer = HTTPBearer(auto_error=False)


def create_access_token(player_id: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=config.JWT_EXPIRE_DAYS)
    payload = {"sub": player_id, "role": role, "exp": expire}
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None


async def get_player_by_id(player_id: str) -> Optional[Player]:
    async with async_session_factory() as session:
        return await session.get(Player, player_id)


async def get_current_player(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    x_auth_token: Optional[str] = Header(None, alias="X-Auth-Token"),
) -> Optional[Player]:
    """Return current player from JWT, or None if not authenticated. Accepts Authorization: Bearer or X-Auth-Token."""
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials
    elif x_auth_token:
        token = x_auth_token
    if not token:
        return None
    payload = decode_token(token)
    if not payload:
        return None
    player_id = payload.get("sub")
    if not player_id:
        return None
    return await get_player_by_id(player_id)


async def require_player(
    player: Optional[Player] = Depends(get_current_player),
) -> Player:
    """Require authenticated player. Raises 401 if not signed in."""
    if not player:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return player


async def require_identity_bridge(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> None:
    """Only the identity provider's backend may open sessions. 503 when no secret is configured."""
    if not config.IDENTITY_BRIDGE_SECRET:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Identity bridge not configured")
    if not credentials or credentials.credentials != config.IDENTITY_BRIDGE_SECRET:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
