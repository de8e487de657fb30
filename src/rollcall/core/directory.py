"""Read-only lookups of teams and events.

Nothing here writes or caches; every call opens its own session and returns
detached pydantic snapshots.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.core.outcomes import StorageFault
from rollcall.db.engine import get_session
from rollcall.db.models import EventRow
from rollcall.db.repository import Repository
from rollcall.models.schedule import Event, EventContext, Team

logger = logging.getLogger(__name__)


class TeamDirectory:
    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def teams_for_guild(self, guild_id: str) -> list[Team]:
        try:
            async with get_session(self.engine) as session:
                rows = await Repository(session).get_teams_for_guild(guild_id)
                return [Team.model_validate(r) for r in rows]
        except SQLAlchemyError as exc:
            logger.exception("directory_guild_teams_failed guild=%s", guild_id)
            raise StorageFault("team lookup failed") from exc

    async def teams_where_member_has_role(
        self, role_ids: Iterable[str], guild_id: str
    ) -> list[Team]:
        """Teams of *guild_id* whose linked role is among *role_ids*."""
        held = set(role_ids)
        return [t for t in await self.teams_for_guild(guild_id) if t.role_id and t.role_id in held]

    async def team_by_id(self, team_id: str) -> Team | None:
        try:
            async with get_session(self.engine) as session:
                row = await Repository(session).get_team(team_id)
                return Team.model_validate(row) if row else None
        except SQLAlchemyError as exc:
            logger.exception("directory_team_failed team=%s", team_id)
            raise StorageFault("team lookup failed") from exc

    async def team_by_role(self, guild_id: str, role_id: str) -> Team | None:
        try:
            async with get_session(self.engine) as session:
                row = await Repository(session).get_team_by_role(guild_id, role_id)
                return Team.model_validate(row) if row else None
        except SQLAlchemyError as exc:
            logger.exception("directory_team_by_role_failed guild=%s role=%s", guild_id, role_id)
            raise StorageFault("team lookup failed") from exc

    async def event_by_message_id(self, message_id: str) -> EventContext | None:
        try:
            async with get_session(self.engine) as session:
                repo = Repository(session)
                return await _with_team(repo, await repo.get_event_by_message_id(message_id))
        except SQLAlchemyError as exc:
            logger.exception("directory_event_by_message_failed message=%s", message_id)
            raise StorageFault("event lookup failed") from exc

    async def event_by_id(self, event_id: str) -> EventContext | None:
        try:
            async with get_session(self.engine) as session:
                repo = Repository(session)
                return await _with_team(repo, await repo.get_event(event_id))
        except SQLAlchemyError as exc:
            logger.exception("directory_event_failed event=%s", event_id)
            raise StorageFault("event lookup failed") from exc

    async def recent_events(
        self,
        teams: Iterable[Team],
        limit: int = 10,
        name_contains: str | None = None,
    ) -> list[EventContext]:
        """Newest events across *teams*, each paired with its team."""
        by_id = {t.id: t for t in teams}
        try:
            async with get_session(self.engine) as session:
                rows = await Repository(session).get_recent_events(
                    by_id.keys(), limit=limit, name_contains=name_contains
                )
                return [
                    EventContext(event=Event.model_validate(r), team=by_id[r.team_id])
                    for r in rows
                ]
        except SQLAlchemyError as exc:
            logger.exception("directory_recent_events_failed teams=%s", list(by_id))
            raise StorageFault("event lookup failed") from exc

    async def events_since(self, team_id: str, since: datetime | None) -> list[Event]:
        try:
            async with get_session(self.engine) as session:
                rows = await Repository(session).get_events_since(team_id, since)
                return [Event.model_validate(r) for r in rows]
        except SQLAlchemyError as exc:
            logger.exception("directory_history_failed team=%s", team_id)
            raise StorageFault("event lookup failed") from exc


async def _with_team(repo: Repository, row: EventRow | None) -> EventContext | None:
    if row is None:
        return None
    team = await repo.get_team(row.team_id)
    if team is None:
        return None
    return EventContext(event=Event.model_validate(row), team=Team.model_validate(team))
