"""SQLAlchemy ORM models for the Rollcall database.

Tables: teams, players, events, responses. A team owns its players and events;
a response is keyed by (player, event) and goes away with either parent.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TeamRow(Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    guild_id: Mapped[str] = mapped_column(String(30), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role_id: Mapped[str | None] = mapped_column(String(30), nullable=True)
    tier: Mapped[str] = mapped_column(String(20), default="free")
    created_by: Mapped[str] = mapped_column(String(30), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    players: Mapped[list[PlayerRow]] = relationship(
        back_populates="team", cascade="all, delete-orphan", passive_deletes=True
    )
    events: Mapped[list[EventRow]] = relationship(
        back_populates="team", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint("guild_id", "role_id", name="uq_team_guild_role"),
        Index("ix_teams_guild_id", "guild_id"),
    )


class PlayerRow(Base):
    """A team-scoped identity for one Discord user."""

    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    discord_id: Mapped[str] = mapped_column(String(30), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    team_id: Mapped[str] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    team: Mapped[TeamRow] = relationship(back_populates="players")

    __table_args__ = (
        UniqueConstraint("discord_id", "team_id", name="uq_player_discord_team"),
        Index("ix_players_team_id", "team_id"),
    )


class EventRow(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_id: Mapped[str] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    date: Mapped[str] = mapped_column(String(50), nullable=False)
    time: Mapped[str] = mapped_column(String(50), nullable=False)
    game_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(30), default="")
    message_id: Mapped[str | None] = mapped_column(String(30), nullable=True)
    channel_id: Mapped[str | None] = mapped_column(String(30), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    team: Mapped[TeamRow] = relationship(back_populates="events")
    responses: Mapped[list[ResponseRow]] = relationship(
        back_populates="event", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_events_team_created", "team_id", "created_at"),
        Index("ix_events_message_id", "message_id"),
    )


class ResponseRow(Base):
    """The current availability verdict of one player for one event."""

    __tablename__ = "responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    player_id: Mapped[str] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    event: Mapped[EventRow] = relationship(back_populates="responses")

    __table_args__ = (
        UniqueConstraint("player_id", "event_id", name="uq_response_player_event"),
        Index("ix_responses_event_id", "event_id"),
    )
