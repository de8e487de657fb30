"""Team, Player, Event and Response snapshots.

Plain pydantic copies of the ORM rows so callers can keep using them after the
session that loaded them has closed.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from rollcall.config import Tier
from rollcall.models.constants import Status


class Team(BaseModel):
    id: str
    guild_id: str
    name: str
    role_id: str | None = None
    tier: Tier = "free"
    created_by: str = ""
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class Player(BaseModel):
    id: str
    discord_id: str
    username: str
    team_id: str

    model_config = {"from_attributes": True}


class Event(BaseModel):
    id: str
    team_id: str
    name: str
    date: str
    time: str
    game_type: str | None = None
    notes: str | None = None
    created_by: str = ""
    message_id: str | None = None
    channel_id: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ResponseRecord(BaseModel):
    player_id: str
    event_id: str
    status: Status
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventContext(BaseModel):
    """An event together with the team that owns it."""

    event: Event
    team: Team
