"""Roster aggregation: bucket every team player by their answer for one event."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.core.outcomes import StorageFault
from rollcall.db.engine import get_session
from rollcall.db.repository import Repository
from rollcall.models.schedule import EventContext, Player, ResponseRecord

logger = logging.getLogger(__name__)


@dataclass
class Roster:
    available: list[str] = field(default_factory=list)
    unavailable: list[str] = field(default_factory=list)
    maybe: list[str] = field(default_factory=list)
    no_response: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.available) + len(self.unavailable) + len(self.maybe) + len(self.no_response)
        )

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "available": self.available,
            "unavailable": self.unavailable,
            "maybe": self.maybe,
            "no_response": self.no_response,
        }


def build_roster(players: Iterable[Player], responses: Iterable[ResponseRecord]) -> Roster:
    """Place each player in exactly one bucket. Names sort case-insensitively."""
    status_by_player = {r.player_id: r.status for r in responses}
    roster = Roster()
    for player in sorted(players, key=lambda p: p.username.lower()):
        status = status_by_player.get(player.id)
        bucket = getattr(roster, status) if status else roster.no_response
        bucket.append(player.username)
    return roster


async def load_roster(engine: AsyncEngine, ctx: EventContext) -> Roster:
    try:
        async with get_session(engine) as session:
            repo = Repository(session)
            players = [
                Player.model_validate(p) for p in await repo.get_players_for_team(ctx.team.id)
            ]
            responses = [
                ResponseRecord.model_validate(r)
                for r in await repo.get_responses_for_event(ctx.event.id)
            ]
    except SQLAlchemyError as exc:
        logger.exception("roster_load_failed event=%s", ctx.event.id)
        raise StorageFault("roster lookup failed") from exc
    return build_roster(players, responses)
