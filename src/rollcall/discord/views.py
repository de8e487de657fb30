"""Discord UI views for the /availability flow.

EventSelectView: pick one of your upcoming events.
StatusButtonsView: Available/Unavailable/Maybe for the chosen event.

Both views belong to the member who ran the command. They share one collector
window: the buttons only get the time the select menu had left.
"""

from __future__ import annotations

import contextlib
import logging
import time
from typing import TYPE_CHECKING

import discord

from rollcall.core.outcomes import StatusRecorded, StorageFault
from rollcall.discord.embeds import (
    build_error_embed,
    build_status_prompt_embed,
    build_status_recorded_embed,
    build_user_error_embed,
)
from rollcall.discord.helpers import member_role_ids
from rollcall.models.constants import NO_RESPONSE_MARK, STATUS_EMOJIS, STATUS_LABELS, Status
from rollcall.models.inbound import ComponentInteraction

if TYPE_CHECKING:
    from rollcall.core.reconciler import Reconciler
    from rollcall.models.schedule import EventContext

logger = logging.getLogger(__name__)

# Discord allows at most 25 options per select menu.
MAX_SELECT_OPTIONS = 25


class _OwnedView(discord.ui.View):
    """A view only its invoker may press, cleared when the collector times out."""

    def __init__(self, *, original_user_id: int, timeout: float) -> None:
        super().__init__(timeout=timeout)
        self.original_user_id = original_user_id
        self.deadline = time.monotonic() + timeout
        self.interaction: discord.Interaction | None = None

    async def _check_user(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.original_user_id:
            await interaction.response.send_message(
                "Only the member who opened this menu can use it.",
                ephemeral=True,
            )
            return False
        return True

    async def on_timeout(self) -> None:
        self.clear_items()
        if self.interaction is None:
            return
        with contextlib.suppress(discord.NotFound, discord.HTTPException):
            await self.interaction.edit_original_response(view=self)


class EventSelectView(_OwnedView):
    """Select menu of the member's upcoming events, marked with their current answer."""

    def __init__(
        self,
        *,
        original_user_id: int,
        username: str,
        guild_id: str,
        events: list[EventContext],
        statuses: dict[str, Status],
        reconciler: Reconciler,
        timeout: float = 300,
    ) -> None:
        super().__init__(original_user_id=original_user_id, timeout=timeout)
        self.username = username
        self.guild_id = guild_id
        self.reconciler = reconciler
        self.events = {ctx.event.id: ctx for ctx in events[:MAX_SELECT_OPTIONS]}

        multi_team = len({ctx.team.id for ctx in self.events.values()}) > 1
        options = []
        for ctx in self.events.values():
            label = ctx.event.name
            if multi_team:
                label = f"{label} ({ctx.team.name})"
            status = statuses.get(ctx.event.id)
            options.append(
                discord.SelectOption(
                    label=label[:100],
                    value=ctx.event.id,
                    description=f"{ctx.event.date} at {ctx.event.time}"[:100],
                    emoji=STATUS_EMOJIS[status] if status else NO_RESPONSE_MARK,
                )
            )
        self.select: discord.ui.Select = discord.ui.Select(
            placeholder="Choose an event...",
            options=options,
            min_values=1,
            max_values=1,
        )
        self.select.callback = self.on_select  # type: ignore[method-assign]
        self.add_item(self.select)

    async def on_select(self, interaction: discord.Interaction) -> None:
        if not await self._check_user(interaction):
            return
        ctx = self.events.get(self.select.values[0])
        if ctx is None:
            await interaction.response.edit_message(
                embed=build_error_embed("Event Not Found", "This event no longer exists."),
                view=None,
            )
            return
        buttons = StatusButtonsView(
            original_user_id=self.original_user_id,
            username=self.username,
            guild_id=self.guild_id,
            ctx=ctx,
            reconciler=self.reconciler,
            # Whatever is left of the collector window, at least a second.
            timeout=max(self.deadline - time.monotonic(), 1.0),
        )
        buttons.interaction = self.interaction
        self.stop()
        await interaction.response.edit_message(embed=build_status_prompt_embed(ctx), view=buttons)


class StatusButtonsView(_OwnedView):
    """Three status buttons; a press goes through the reconciler like any reaction."""

    def __init__(
        self,
        *,
        original_user_id: int,
        username: str,
        guild_id: str,
        ctx: EventContext,
        reconciler: Reconciler,
        timeout: float = 300,
    ) -> None:
        super().__init__(original_user_id=original_user_id, timeout=timeout)
        self.username = username
        self.guild_id = guild_id
        self.ctx = ctx
        self.reconciler = reconciler

    async def _answer(self, interaction: discord.Interaction, status: Status) -> None:
        if not await self._check_user(interaction):
            return
        event = ComponentInteraction(
            actor_id=str(interaction.user.id),
            username=self.username,
            guild_id=self.guild_id,
            event_id=self.ctx.event.id,
            status=status,
            # Roles held at the moment of the press.
            role_ids=member_role_ids(interaction.user),
        )
        try:
            outcome = await self.reconciler.handle(event)
        except StorageFault:
            logger.warning(
                "availability_button_failed user=%s event=%s", event.actor_id, event.event_id
            )
            await interaction.response.edit_message(
                embed=build_error_embed(
                    "Something Went Wrong",
                    "Your availability could not be saved right now. Please try again.",
                ),
                view=None,
            )
            self.stop()
            return

        if isinstance(outcome, StatusRecorded):
            embed = build_status_recorded_embed(outcome.event, outcome.team, outcome.status)
        else:
            embed = build_user_error_embed(outcome)  # type: ignore[arg-type]
        self.stop()
        await interaction.response.edit_message(embed=embed, view=None)

    @discord.ui.button(
        label=STATUS_LABELS["available"],
        style=discord.ButtonStyle.green,
        emoji=STATUS_EMOJIS["available"],
    )
    async def available(
        self,
        interaction: discord.Interaction,
        button: discord.ui.Button,  # noqa: ARG002
    ) -> None:
        await self._answer(interaction, "available")

    @discord.ui.button(
        label=STATUS_LABELS["unavailable"],
        style=discord.ButtonStyle.red,
        emoji=STATUS_EMOJIS["unavailable"],
    )
    async def unavailable(
        self,
        interaction: discord.Interaction,
        button: discord.ui.Button,  # noqa: ARG002
    ) -> None:
        await self._answer(interaction, "unavailable")

    @discord.ui.button(
        label=STATUS_LABELS["maybe"],
        style=discord.ButtonStyle.gray,
        emoji=STATUS_EMOJIS["maybe"],
    )
    async def maybe(
        self,
        interaction: discord.Interaction,
        button: discord.ui.Button,  # noqa: ARG002
    ) -> None:
        await self._answer(interaction, "maybe")
