"""Inbound gateway events and the intents they normalize to.

Three raw channels reach the reconciler: a reaction being added, a reaction
being removed, and a component (button / select menu) interaction. They form a
closed union discriminated on ``kind``.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from rollcall.models.constants import Status


class ReactionAdd(BaseModel):
    kind: Literal["reaction-add"] = "reaction-add"
    actor_id: str
    username: str
    guild_id: str
    channel_id: str
    message_id: str
    emoji: str
    role_ids: frozenset[str] = frozenset()

    model_config = {"frozen": True}


class ReactionRemove(BaseModel):
    kind: Literal["reaction-remove"] = "reaction-remove"
    actor_id: str
    guild_id: str
    channel_id: str
    message_id: str
    emoji: str

    model_config = {"frozen": True}


class ComponentInteraction(BaseModel):
    """A button press carrying a status for a specific event."""

    kind: Literal["component-interaction"] = "component-interaction"
    actor_id: str
    username: str
    guild_id: str
    event_id: str
    status: Status
    role_ids: frozenset[str] = frozenset()

    model_config = {"frozen": True}


InboundEvent = Annotated[
    ReactionAdd | ReactionRemove | ComponentInteraction,
    Field(discriminator="kind"),
]


class EventRef(BaseModel):
    """Points at an event either through its announcement message or its id."""

    message_id: str | None = None
    event_id: str | None = None

    model_config = {"frozen": True}


class StatusAssert(BaseModel):
    discord_id: str
    username: str
    event_ref: EventRef
    status: Status
    role_ids: frozenset[str] = frozenset()
    via_reaction: bool = False
    # Where the triggering reaction lives, so it can be rolled back.
    channel_id: str | None = None
    emoji: str | None = None

    model_config = {"frozen": True}


class StatusRetract(BaseModel):
    discord_id: str
    event_ref: EventRef
    via_reaction: bool = False
    channel_id: str | None = None

    model_config = {"frozen": True}


Intent = StatusAssert | StatusRetract
