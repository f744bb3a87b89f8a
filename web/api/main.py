"""FastAPI GesPadel API - tournaments, registrations and player sessions."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from gespadel.errors import DomainError
from gespadel.models.base import init_db

from web.api.auth_routes import router as auth_router
from web.api.routes import router as api_router
from web.api.utils import close_mirrors

logger = logging.getLogger("gespadel.api")

ERROR_STATUS = {
    "authorization": 403,
    "not_found": 404,
    "tournament_closed": 409,
    "duplicate_registration": 409,
    "invalid_transition": 409,
    "email_in_use": 409,
    "invalid_category": 422,
    "self_partner": 422,
    "incomplete_partner": 422,
    "too_many_preferences": 422,
    "slot_limit_exceeded": 422,
    "invalid_tournament": 422,
    "persistence": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    close_mirrors()


app = FastAPI(title="GesPadel API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router)
app.include_router(auth_router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    status_code = ERROR_STATUS.get(exc.kind, 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"error": exc.kind, "detail": exc.message})


@app.get("/api/health")
async def health():
    return {"status": "ok"}
