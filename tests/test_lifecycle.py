"""Tournament lifecycle: creation rules, edits, status machine and deletion."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from gespadel.errors import (
    AuthorizationError,
    InvalidTournamentError,
    InvalidTransitionError,
    NotFoundError,
    TournamentClosedError,
)
from gespadel.models import Registration, Tournament
from gespadel.services import lifecycle, registrations
from gespadel.services.registrations import RegistrationSelection
from tests.conftest import tournament_fields


@pytest.mark.asyncio
async def test_create_starts_open_with_sorted_categories(session):
    t = await lifecycle.create_tournament(
        session, tournament_fields(masculine_categories=["4ª", "1ª", "4ª"]), "organizer_player"
    )
    assert t.status == "OPEN"
    assert t.masculine_categories == ["1ª", "4ª"]
    assert t.feminine_categories == ["2ª"]


@pytest.mark.asyncio
async def test_create_requires_organizer_role(session):
    with pytest.raises(AuthorizationError):
        await lifecycle.create_tournament(session, tournament_fields(), "player")
    with pytest.raises(AuthorizationError):
        await lifecycle.create_tournament(session, tournament_fields(), None)
    assert (await session.execute(select(Tournament))).scalars().all() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"masculine_categories": [], "feminine_categories": []},
        {"masculine_categories": ["7ª"]},
        {"price": -1},
        {"price": None},
        {"price": float("nan")},
        {"price": float("inf")},
        {"price": "NaN"},
        {"start_date": None},
        {"inscription_start_date": None},
        {"name": "  "},
        {"start_date": datetime(2026, 11, 9, tzinfo=timezone.utc)},
        {"status": "CLOSED"},
    ],
)
async def test_create_rejects_invalid_fields(session, overrides):
    with pytest.raises(InvalidTournamentError):
        await lifecycle.create_tournament(session, tournament_fields(**overrides), "organizer")


@pytest.mark.asyncio
async def test_create_free_tournament(session):
    t = await lifecycle.create_tournament(session, tournament_fields(price=0), "organizer")
    assert t.price == 0


@pytest.mark.asyncio
async def test_update_fields_while_open(session, make_tournament):
    t = await make_tournament(rules_pdf_url="https://files.example.com/rules.pdf")
    updated = await lifecycle.update_tournament(
        session, t.id, {"name": "Open Invierno", "rules_pdf_url": None, "price": 15}, "organizer"
    )
    assert updated.name == "Open Invierno"
    assert updated.rules_pdf_url is None
    assert updated.price == 15
    assert updated.status == "OPEN"


@pytest.mark.asyncio
async def test_update_cannot_change_status(session, make_tournament):
    t = await make_tournament()
    with pytest.raises(InvalidTransitionError):
        await lifecycle.update_tournament(session, t.id, {"status": "CLOSED"}, "organizer")
    assert (await lifecycle.get_tournament(session, t.id)).status == "OPEN"


@pytest.mark.asyncio
async def test_update_rejected_once_closed(session, make_tournament):
    t = await make_tournament()
    await lifecycle.transition_status(session, t.id, "CLOSED", "organizer")
    with pytest.raises(TournamentClosedError):
        await lifecycle.update_tournament(session, t.id, {"name": "Late edit"}, "organizer")


@pytest.mark.asyncio
async def test_update_requires_organizer(session, make_tournament):
    t = await make_tournament()
    with pytest.raises(AuthorizationError):
        await lifecycle.update_tournament(session, t.id, {"name": "x"}, "player")


@pytest.mark.asyncio
async def test_update_validates_like_create(session, make_tournament):
    t = await make_tournament()
    with pytest.raises(InvalidTournamentError):
        await lifecycle.update_tournament(
            session, t.id, {"masculine_categories": [], "feminine_categories": []}, "organizer"
        )


@pytest.mark.asyncio
@pytest.mark.parametrize("price", [None, float("nan"), "NaN"])
async def test_update_rejects_missing_or_non_finite_price(session, make_tournament, price):
    t = await make_tournament(price=20)
    with pytest.raises(InvalidTournamentError):
        await lifecycle.update_tournament(session, t.id, {"price": price}, "organizer")
    assert (await lifecycle.get_tournament(session, t.id)).price == 20


@pytest.mark.asyncio
async def test_status_walks_forward_one_step_at_a_time(session, make_tournament):
    t = await make_tournament()
    seen = [t.status]
    for status in ("CLOSED", "IN_PROGRESS", "FINISHED"):
        t = await lifecycle.transition_status(session, t.id, status, "organizer")
        seen.append(t.status)
    assert seen == ["OPEN", "CLOSED", "IN_PROGRESS", "FINISHED"]


@pytest.mark.asyncio
@pytest.mark.parametrize("requested", ["OPEN", "IN_PROGRESS", "FINISHED", "ARCHIVED"])
async def test_status_rejects_same_skip_and_unknown(session, make_tournament, requested):
    t = await make_tournament()
    with pytest.raises(InvalidTransitionError):
        await lifecycle.transition_status(session, t.id, requested, "organizer")


@pytest.mark.asyncio
async def test_status_never_moves_backward(session, make_tournament):
    t = await make_tournament()
    await lifecycle.transition_status(session, t.id, "CLOSED", "organizer")
    with pytest.raises(InvalidTransitionError):
        await lifecycle.transition_status(session, t.id, "OPEN", "organizer")
    await lifecycle.transition_status(session, t.id, "IN_PROGRESS", "organizer")
    await lifecycle.transition_status(session, t.id, "FINISHED", "organizer")
    with pytest.raises(InvalidTransitionError):
        await lifecycle.transition_status(session, t.id, "FINISHED", "organizer")


@pytest.mark.asyncio
async def test_status_requires_organizer(session, make_tournament):
    t = await make_tournament()
    with pytest.raises(AuthorizationError):
        await lifecycle.transition_status(session, t.id, "CLOSED", "player")


@pytest.mark.asyncio
async def test_delete_cascades_registrations(session, make_tournament, make_player):
    t = await make_tournament()
    keep = await make_tournament(name="Otro torneo")
    ana = await make_player("uid-ana", "Ana", "ana@example.com")
    await registrations.register(session, t.id, ana.id, RegistrationSelection(gender="masculine", category="3ª"))
    await registrations.register(session, keep.id, ana.id, RegistrationSelection(gender="masculine", category="1ª"))

    await lifecycle.delete_tournament(session, t.id, "organizer")

    with pytest.raises(NotFoundError):
        await lifecycle.get_tournament(session, t.id)
    remaining = (await session.execute(select(Registration))).scalars().all()
    assert [r.tournament_id for r in remaining] == [keep.id]


@pytest.mark.asyncio
async def test_delete_requires_organizer(session, make_tournament):
    t = await make_tournament()
    with pytest.raises(AuthorizationError):
        await lifecycle.delete_tournament(session, t.id, "player")


@pytest.mark.asyncio
async def test_list_tournaments_latest_start_first(session, make_tournament):
    early = await make_tournament(
        name="Early",
        start_date=datetime(2026, 5, 1, tzinfo=timezone.utc),
        end_date=datetime(2026, 5, 2, tzinfo=timezone.utc),
    )
    late = await make_tournament(name="Late")
    listed = await lifecycle.list_tournaments(session)
    assert [t.id for t in listed] == [late.id, early.id]

    await lifecycle.transition_status(session, early.id, "CLOSED", "organizer")
    assert [t.id for t in await lifecycle.list_tournaments(session, "OPEN")] == [late.id]
