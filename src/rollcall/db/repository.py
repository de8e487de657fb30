"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. Every mutation is addressed by a natural key
(team id, (discord id, team id), (player id, event id)) so each write is a
single idempotent statement.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import Select, delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from rollcall.db.models import EventRow, PlayerRow, ResponseRow, TeamRow


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Teams ---

    async def create_team(
        self,
        guild_id: str,
        name: str,
        role_id: str | None = None,
        tier: str = "free",
        created_by: str = "",
    ) -> TeamRow:
        row = TeamRow(
            guild_id=guild_id,
            name=name,
            role_id=role_id,
            tier=tier,
            created_by=created_by,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_team(self, team_id: str) -> TeamRow | None:
        return await self.session.get(TeamRow, team_id)

    async def get_team_by_role(self, guild_id: str, role_id: str) -> TeamRow | None:
        stmt = select(TeamRow).where(TeamRow.guild_id == guild_id, TeamRow.role_id == role_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_teams_for_guild(self, guild_id: str) -> list[TeamRow]:
        """Return the guild's teams, newest first."""
        stmt = (
            select(TeamRow)
            .where(TeamRow.guild_id == guild_id)
            .order_by(TeamRow.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_team(self, team_id: str) -> bool:
        """Delete a team. Players, events and responses go with it (FK cascade)."""
        result = await self.session.execute(delete(TeamRow).where(TeamRow.id == team_id))
        return result.rowcount > 0  # type: ignore[union-attr]

    async def count_players(self, team_id: str) -> int:
        stmt = select(func.count()).select_from(PlayerRow).where(PlayerRow.team_id == team_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count_events(self, team_id: str) -> int:
        stmt = select(func.count()).select_from(EventRow).where(EventRow.team_id == team_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def totals(self) -> dict[str, int]:
        """Row counts across every guild, plus how many teams are on the free tier."""
        counts: dict[str, int] = {}
        tables = (
            ("teams", TeamRow),
            ("players", PlayerRow),
            ("events", EventRow),
            ("responses", ResponseRow),
        )
        for key, model in tables:
            result = await self.session.execute(select(func.count()).select_from(model))
            counts[key] = int(result.scalar_one())
        free = select(func.count()).select_from(TeamRow).where(TeamRow.tier == "free")
        counts["free_teams"] = int((await self.session.execute(free)).scalar_one())
        return counts

    # --- Players ---

    async def get_player(self, discord_id: str, team_id: str) -> PlayerRow | None:
        stmt = select(PlayerRow).where(
            PlayerRow.discord_id == discord_id,
            PlayerRow.team_id == team_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_player(self, discord_id: str, username: str, team_id: str) -> PlayerRow:
        """Insert a player. Raises IntegrityError if (discord_id, team_id) exists."""
        row = PlayerRow(discord_id=discord_id, username=username, team_id=team_id)
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_players_for_team(self, team_id: str) -> list[PlayerRow]:
        stmt = select(PlayerRow).where(PlayerRow.team_id == team_id).order_by(PlayerRow.username)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- Events ---

    async def create_event(
        self,
        team_id: str,
        name: str,
        date: str,
        time: str,
        *,
        game_type: str | None = None,
        notes: str | None = None,
        created_by: str = "",
        message_id: str | None = None,
        channel_id: str | None = None,
    ) -> EventRow:
        row = EventRow(
            team_id=team_id,
            name=name,
            date=date,
            time=time,
            game_type=game_type,
            notes=notes,
            created_by=created_by,
            message_id=message_id,
            channel_id=channel_id,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def attach_event_message(
        self, event_id: str, message_id: str, channel_id: str
    ) -> EventRow | None:
        """Record where the event announcement was posted."""
        row = await self.get_event(event_id)
        if row is None:
            return None
        row.message_id = message_id
        row.channel_id = channel_id
        await self.session.flush()
        return row

    async def get_event(self, event_id: str) -> EventRow | None:
        return await self.session.get(EventRow, event_id)

    async def get_event_by_message_id(self, message_id: str) -> EventRow | None:
        stmt = select(EventRow).where(EventRow.message_id == message_id).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_recent_events(
        self,
        team_ids: Iterable[str],
        limit: int = 10,
        name_contains: str | None = None,
    ) -> list[EventRow]:
        """Most recently created events across *team_ids*.

        ``name_contains`` filters case-insensitively on the event name.
        """
        ids = list(team_ids)
        if not ids:
            return []
        stmt = select(EventRow).where(EventRow.team_id.in_(ids))
        if name_contains:
            stmt = stmt.where(func.lower(EventRow.name).contains(name_contains.lower()))
        stmt = stmt.order_by(EventRow.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_events_since(self, team_id: str, since: datetime | None) -> list[EventRow]:
        stmt = select(EventRow).where(EventRow.team_id == team_id)
        if since is not None:
            stmt = stmt.where(EventRow.created_at >= since)
        stmt = stmt.order_by(EventRow.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_event(self, event_id: str) -> bool:
        result = await self.session.execute(delete(EventRow).where(EventRow.id == event_id))
        return result.rowcount > 0  # type: ignore[union-attr]

    async def delete_events_before(self, tier: str, cutoff: datetime) -> int:
        """Delete events of *tier* teams created before *cutoff*. Returns the count."""
        tier_teams = select(TeamRow.id).where(TeamRow.tier == tier)
        stmt = delete(EventRow).where(
            EventRow.team_id.in_(tier_teams),
            EventRow.created_at < cutoff,
        ).execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[union-attr]

    # --- Responses ---

    async def upsert_response(self, player_id: str, event_id: str, status: str) -> ResponseRow:
        """Insert or overwrite the single response row for (player, event).

        Re-asserting the same status still bumps ``updated_at``.
        """
        now = datetime.now(UTC)
        stmt = sqlite_insert(ResponseRow).values(
            id=str(uuid.uuid4()),
            player_id=player_id,
            event_id=event_id,
            status=status,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ResponseRow.player_id, ResponseRow.event_id],
            set_={"status": stmt.excluded.status, "updated_at": stmt.excluded.updated_at},
        )
        await self.session.execute(stmt)
        result = await self.session.execute(_response_by_key(player_id, event_id))
        return result.scalar_one()

    async def get_response(self, player_id: str, event_id: str) -> ResponseRow | None:
        result = await self.session.execute(_response_by_key(player_id, event_id))
        return result.scalar_one_or_none()

    async def delete_response(self, player_id: str, event_id: str) -> bool:
        stmt = delete(ResponseRow).where(
            ResponseRow.player_id == player_id,
            ResponseRow.event_id == event_id,
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0  # type: ignore[union-attr]

    async def get_responses_for_event(self, event_id: str) -> list[ResponseRow]:
        stmt = select(ResponseRow).where(ResponseRow.event_id == event_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_statuses_for_user(
        self, discord_id: str, event_ids: Iterable[str]
    ) -> dict[str, str]:
        """Map event id → status for one Discord user across their team players."""
        ids = list(event_ids)
        if not ids:
            return {}
        stmt = (
            select(ResponseRow.event_id, ResponseRow.status)
            .join(PlayerRow, PlayerRow.id == ResponseRow.player_id)
            .where(PlayerRow.discord_id == discord_id, ResponseRow.event_id.in_(ids))
        )
        result = await self.session.execute(stmt)
        return {event_id: status for event_id, status in result.all()}


def _response_by_key(player_id: str, event_id: str) -> Select[tuple[ResponseRow]]:
    # populate_existing so an upsert in the same session is visible on the cached row.
    return (
        select(ResponseRow)
        .where(ResponseRow.player_id == player_id, ResponseRow.event_id == event_id)
        .execution_options(populate_existing=True)
    )
