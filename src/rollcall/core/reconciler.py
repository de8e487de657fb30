"""Reaction reconciler: every input channel → one status per (player, event).

Availability reaches the bot through reactions being added, reactions being
removed, and button presses. This module folds those into two intents,
``StatusAssert`` and ``StatusRetract``, and applies them to the response
ledger while holding these rules:

* one live status per user per event (other status reactions are stripped);
* only holders of the team's role may answer;
* reaction bursts per (user, message) are debounced, last event wins;
* the player registry (and its tier limit) runs before any ledger write, and a
  rejected reaction is removed so nothing on screen implies success.

Apart from the injected debouncer, the reconciler only remembers the reactions
it removed itself for a short while, so their removal echoes are not read as
the user retracting an answer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

from rollcall.core.debounce import Debouncer
from rollcall.core.directory import TeamDirectory
from rollcall.core.ledger import ResponseLedger
from rollcall.core.outcomes import (
    EntityNotFound,
    Ignored,
    Outcome,
    PlayerResolved,
    RoleNotMember,
    StatusCleared,
    StatusRecorded,
    StorageFault,
    UserError,
)
from rollcall.core.registry import PlayerRegistry
from rollcall.models.constants import STATUS_EMOJIS, status_for_emoji
from rollcall.models.inbound import (
    ComponentInteraction,
    EventRef,
    InboundEvent,
    Intent,
    ReactionAdd,
    ReactionRemove,
    StatusAssert,
    StatusRetract,
)
from rollcall.models.schedule import EventContext

logger = logging.getLogger(__name__)

# Seconds a bot-made removal is remembered while waiting for its gateway echo.
OWN_REMOVAL_TTL = 30.0


class PresentationSink(Protocol):
    """Outbound calls the reconciler makes toward the chat surface.

    ``notify`` and ``remove_reaction`` are fire-and-forget: implementations log
    and swallow delivery failures.
    """

    async def notify(self, user_id: str, error: UserError) -> None: ...

    async def remove_reaction(
        self, channel_id: str, message_id: str, user_id: str, emoji: str
    ) -> None: ...

    async def status_emojis(self, channel_id: str, message_id: str, user_id: str) -> set[str]:
        """Status emojis *user_id* currently has on the message."""
        ...


def normalize(event: InboundEvent) -> Intent | None:
    """Turn a raw inbound event into an intent, or None when it carries no status."""
    if isinstance(event, ReactionAdd):
        status = status_for_emoji(event.emoji)
        if status is None:
            return None
        return StatusAssert(
            discord_id=event.actor_id,
            username=event.username,
            event_ref=EventRef(message_id=event.message_id),
            status=status,
            role_ids=event.role_ids,
            via_reaction=True,
            channel_id=event.channel_id,
            emoji=event.emoji,
        )
    if isinstance(event, ReactionRemove):
        if status_for_emoji(event.emoji) is None:
            return None
        return StatusRetract(
            discord_id=event.actor_id,
            event_ref=EventRef(message_id=event.message_id),
            via_reaction=True,
            channel_id=event.channel_id,
        )
    if isinstance(event, ComponentInteraction):
        return StatusAssert(
            discord_id=event.actor_id,
            username=event.username,
            event_ref=EventRef(event_id=event.event_id),
            status=event.status,
            role_ids=event.role_ids,
        )
    raise TypeError(f"unsupported inbound event: {type(event).__name__}")


class Reconciler:
    def __init__(
        self,
        directory: TeamDirectory,
        registry: PlayerRegistry,
        ledger: ResponseLedger,
        sink: PresentationSink,
        debouncer: Debouncer,
    ) -> None:
        self.directory = directory
        self.registry = registry
        self.ledger = ledger
        self.sink = sink
        self.debouncer = debouncer
        # (user, message, emoji) -> monotonic time the bot removed that reaction
        self._own_removals: dict[tuple[str, str, str], float] = {}

    # --- Entry points ---

    def submit_reaction(self, event: ReactionAdd | ReactionRemove) -> asyncio.Task[None] | None:
        """Queue a reaction event behind the debouncer.

        Reactions that are not status emojis are dropped here so they cannot
        supersede a pending status change for the same user and message.
        """
        intent = normalize(event)
        if intent is None or self._is_removal_echo(event):
            return None
        key = (event.actor_id, event.message_id)
        return self.debouncer.schedule(key, lambda: self._process_reaction(intent))

    async def handle(self, event: InboundEvent) -> Outcome:
        """Normalize and apply an event immediately (no debouncing)."""
        intent = normalize(event)
        if intent is None:
            return Ignored("not a status emoji")
        if isinstance(event, ReactionAdd | ReactionRemove) and self._is_removal_echo(event):
            return Ignored("removal made by the bot")
        return await self.apply(intent)

    async def apply(self, intent: Intent) -> Outcome:
        if isinstance(intent, StatusAssert):
            return await self.apply_assert(intent)
        return await self.apply_retract(intent)

    # --- Transitions ---

    async def apply_assert(self, intent: StatusAssert) -> Outcome:
        ctx = await self._resolve(intent.event_ref)
        if ctx is None:
            if intent.via_reaction:
                return Ignored("not an event message")
            return EntityNotFound("event")

        team = ctx.team
        if not team.role_id or team.role_id not in intent.role_ids:
            logger.info(
                "status_assert_rejected user=%s event=%s reason=role team=%s",
                intent.discord_id,
                ctx.event.id,
                team.id,
            )
            return await self._reject(intent, RoleNotMember(team))

        resolved = await self.registry.resolve_or_create(
            intent.discord_id, intent.username, team.id
        )
        if not isinstance(resolved, PlayerResolved):
            logger.info(
                "status_assert_rejected user=%s event=%s reason=%s",
                intent.discord_id,
                ctx.event.id,
                type(resolved).__name__,
            )
            return await self._reject(intent, resolved)

        if intent.via_reaction:
            await self._strip_other_reactions(intent)

        recorded = await self.ledger.set_status(resolved.player.id, ctx.event.id, intent.status)
        if isinstance(recorded, EntityNotFound):
            logger.info(
                "status_assert_rejected user=%s event=%s reason=%s_deleted",
                intent.discord_id,
                ctx.event.id,
                recorded.what,
            )
            return await self._reject(intent, recorded)
        logger.info(
            "status_recorded user=%s event=%s status=%s via=%s",
            intent.discord_id,
            ctx.event.id,
            intent.status,
            "reaction" if intent.via_reaction else "component",
        )
        return StatusRecorded(
            event=ctx.event, team=team, player=resolved.player, status=intent.status
        )

    async def apply_retract(self, intent: StatusRetract) -> Outcome:
        ctx = await self._resolve(intent.event_ref)
        if ctx is None:
            if intent.via_reaction:
                return Ignored("not an event message")
            return EntityNotFound("event")

        if intent.via_reaction and intent.channel_id and intent.event_ref.message_id:
            remaining = await self.sink.status_emojis(
                intent.channel_id, intent.event_ref.message_id, intent.discord_id
            )
            if remaining:
                # Still marked with another status; this removal was a swap.
                return Ignored("another status reaction remains")

        player = await self.registry.resolve_existing(intent.discord_id, ctx.team.id)
        if player is None:
            return StatusCleared(event=ctx.event, team=ctx.team, removed=False)

        removed = await self.ledger.clear_status(player.id, ctx.event.id)
        logger.info(
            "status_cleared user=%s event=%s removed=%s", intent.discord_id, ctx.event.id, removed
        )
        return StatusCleared(event=ctx.event, team=ctx.team, removed=removed)

    # --- Internals ---

    def _is_removal_echo(self, event: ReactionAdd | ReactionRemove) -> bool:
        """True for the gateway echo of a reaction the reconciler removed itself.

        Each remembered removal matches at most one echo. The user adding that
        emoji again forgets it, so their own later removal still counts.
        """
        key = (event.actor_id, event.message_id, event.emoji)
        if isinstance(event, ReactionAdd):
            self._own_removals.pop(key, None)
            return False
        cutoff = time.monotonic() - OWN_REMOVAL_TTL
        for stale in [k for k, at in self._own_removals.items() if at < cutoff]:
            del self._own_removals[stale]
        return self._own_removals.pop(key, None) is not None

    async def _resolve(self, ref: EventRef) -> EventContext | None:
        if ref.event_id is not None:
            return await self.directory.event_by_id(ref.event_id)
        if ref.message_id is not None:
            return await self.directory.event_by_message_id(ref.message_id)
        return None

    async def _reject(self, intent: StatusAssert, error: UserError) -> UserError:
        """Undo the visible trace of a refused reaction and explain privately.

        Component flows render the error on their own surface, so only the
        reaction channel is handled here.
        """
        if intent.via_reaction:
            await self._remove_trigger(intent)
            await self.sink.notify(intent.discord_id, error)
        return error

    async def _remove_trigger(self, intent: StatusAssert) -> None:
        if intent.channel_id and intent.event_ref.message_id and intent.emoji:
            self._own_removals[
                (intent.discord_id, intent.event_ref.message_id, intent.emoji)
            ] = time.monotonic()
            await self.sink.remove_reaction(
                intent.channel_id, intent.event_ref.message_id, intent.discord_id, intent.emoji
            )

    async def _strip_other_reactions(self, intent: StatusAssert) -> None:
        if not (intent.channel_id and intent.event_ref.message_id):
            return
        keep = STATUS_EMOJIS[intent.status]
        await asyncio.gather(
            *(
                self.sink.remove_reaction(
                    intent.channel_id, intent.event_ref.message_id, intent.discord_id, emoji
                )
                for emoji in STATUS_EMOJIS.values()
                if emoji != keep
            )
        )

    async def _process_reaction(self, intent: Intent) -> None:
        try:
            await self.apply(intent)
        except StorageFault:
            # Already logged with context where it was raised; the user can react again.
            logger.warning(
                "reaction_dropped user=%s ref=%s", intent.discord_id, intent.event_ref
            )
