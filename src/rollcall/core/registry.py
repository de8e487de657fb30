"""Player registry: (discord id, team) → persisted player, gated by tier limits.

The unique constraint on ``players(discord_id, team_id)`` is the arbiter for
concurrent first-time resolutions: whoever loses the insert re-reads and gets
the winner's row. The limit check happens before the insert and is therefore
advisory; two racing creations can overshoot the cap by the width of the race.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.config import TierLimits
from rollcall.core.limits import evaluate
from rollcall.core.outcomes import (
    EntityNotFound,
    LimitExceeded,
    PlayerResolved,
    RegistryResult,
    StorageFault,
)
from rollcall.db.engine import get_session
from rollcall.db.repository import Repository
from rollcall.models.schedule import Player

logger = logging.getLogger(__name__)


class PlayerRegistry:
    def __init__(self, engine: AsyncEngine, tier_limits: dict[str, TierLimits]) -> None:
        self.engine = engine
        self.tier_limits = tier_limits

    async def resolve_existing(self, discord_id: str, team_id: str) -> Player | None:
        """Look up a player without ever creating one."""
        try:
            async with get_session(self.engine) as session:
                row = await Repository(session).get_player(discord_id, team_id)
                return Player.model_validate(row) if row else None
        except SQLAlchemyError as exc:
            logger.exception("player_lookup_failed user=%s team=%s", discord_id, team_id)
            raise StorageFault("player lookup failed") from exc

    async def resolve_or_create(
        self, discord_id: str, username: str, team_id: str
    ) -> RegistryResult:
        """Return the player for (discord_id, team_id), creating it if the tier allows.

        An existing player's username is refreshed when it changed.
        """
        try:
            async with get_session(self.engine) as session:
                repo = Repository(session)
                row = await repo.get_player(discord_id, team_id)
                if row is not None:
                    if row.username != username:
                        row.username = username
                        await session.flush()
                    return PlayerResolved(Player.model_validate(row))

                team = await repo.get_team(team_id)
                if team is None:
                    return EntityNotFound("team")

                count = await repo.count_players(team_id)
                verdict = evaluate(team.tier, count, self.tier_limits)
                if not verdict.allowed and verdict.limit is not None:
                    logger.info(
                        "player_limit_reached user=%s team=%s tier=%s limit=%d",
                        discord_id,
                        team_id,
                        verdict.tier,
                        verdict.limit,
                    )
                    return LimitExceeded(
                        tier=verdict.tier, limit=verdict.limit, team_name=team.name
                    )

                row = await repo.create_player(discord_id, username, team_id)
                logger.info(
                    "player_created user=%s team=%s count=%d/%s",
                    discord_id,
                    team_id,
                    count + 1,
                    verdict.limit if verdict.limit is not None else "unbounded",
                )
                return PlayerResolved(Player.model_validate(row), created=True)
        except IntegrityError:
            # Lost a creation race for the same (discord_id, team_id).
            logger.info("player_create_race user=%s team=%s", discord_id, team_id)
            winner = await self.resolve_existing(discord_id, team_id)
            if winner is None:
                # No winner to return: the team itself vanished mid-flight.
                return EntityNotFound("team")
            return PlayerResolved(winner)
        except SQLAlchemyError as exc:
            logger.exception("player_resolve_failed user=%s team=%s", discord_id, team_id)
            raise StorageFault("player resolution failed") from exc
