"""Discord bot for Rollcall.

Runs alongside FastAPI using the same event loop. Raw reaction events are
handed to the reconciler through the debouncer; slash commands manage teams and
events, open the availability menu and render rosters.

The bot is optional: if DISCORD_BOT_TOKEN is not set, nothing starts.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import discord
from discord import Intents, app_commands
from discord.ext import commands
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.core.debounce import Debouncer
from rollcall.core.directory import TeamDirectory
from rollcall.core.ledger import ResponseLedger
from rollcall.core.outcomes import EntityNotFound, LimitExceeded, PlayerResolved, StorageFault
from rollcall.core.reconciler import Reconciler
from rollcall.core.registry import PlayerRegistry
from rollcall.core.roster import load_roster
from rollcall.core.validation import (
    MIN_NAME_LENGTH,
    is_valid_date,
    is_valid_name,
    is_valid_time,
    sanitize_input,
)
from rollcall.discord.embeds import (
    build_availability_menu_embed,
    build_error_embed,
    build_event_embed,
    build_history_embed,
    build_info_embed,
    build_limit_warning_embed,
    build_roster_embed,
    build_success_embed,
    build_team_list_embed,
)
from rollcall.discord.helpers import can_manage_server, db_session, is_admin, member_role_ids
from rollcall.discord.sink import DiscordSink
from rollcall.discord.views import EventSelectView
from rollcall.models.constants import GAMES, STATUS_EMOJIS
from rollcall.models.inbound import ReactionAdd, ReactionRemove
from rollcall.models.schedule import Event, Team

if TYPE_CHECKING:
    from rollcall.config import Settings

logger = logging.getLogger(__name__)

ROSTER_EVENT_LIMIT = 3

STORAGE_ERROR_TEXT = "Something went wrong talking to the database. Please try again."


class RollcallBot(commands.Bot):
    """The Rollcall Discord bot.

    Owns the reconciliation pipeline (directory, registry, ledger, debouncer)
    and exposes it through reactions, the /availability menu and slash
    commands.
    """

    def __init__(self, settings: Settings, engine: AsyncEngine) -> None:
        intents = Intents.default()
        intents.members = True  # Role membership for /sync and reaction payloads

        super().__init__(
            command_prefix="!",
            intents=intents,
            description="Rollcall -- esports team scheduling and availability.",
        )
        self.settings = settings
        self.engine = engine
        self.tier_limits = settings.tier_limits()
        self.directory = TeamDirectory(engine)
        self.registry = PlayerRegistry(engine, self.tier_limits)
        self.ledger = ResponseLedger(engine)
        self.started_at = time.monotonic()
        self.debouncer = Debouncer(settings.reaction_debounce_seconds)
        self.reconciler = Reconciler(
            directory=self.directory,
            registry=self.registry,
            ledger=self.ledger,
            sink=DiscordSink(self),
            debouncer=self.debouncer,
        )
        self._setup_commands()

    def _setup_commands(self) -> None:
        """Register slash commands on the bot's command tree."""

        @self.tree.command(name="ping", description="Check that the bot is alive")
        async def ping_command(interaction: discord.Interaction) -> None:
            await self._handle_ping(interaction)

        @self.tree.command(name="info", description="Show Rollcall statistics and uptime")
        async def info_command(interaction: discord.Interaction) -> None:
            await self._handle_info(interaction)

        @self.tree.command(name="availability", description="Mark your availability for events")
        async def availability_command(interaction: discord.Interaction) -> None:
            await self._handle_availability(interaction)

        @self.tree.command(name="roster", description="Show who is available for recent events")
        @app_commands.describe(event="Filter events by name")
        async def roster_command(interaction: discord.Interaction, event: str = "") -> None:
            await self._handle_roster(interaction, event)

        @self.tree.command(name="history", description="List past events for a team")
        @app_commands.describe(team="Which team (defaults to yours)")
        async def history_command(interaction: discord.Interaction, team: str = "") -> None:
            await self._handle_history(interaction, team)

        @history_command.autocomplete("team")
        async def _history_team_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return await self._autocomplete_teams(interaction, current)

        @self.tree.command(name="sync", description="Register team role members as players")
        @app_commands.describe(team="Only sync this team")
        async def sync_command(interaction: discord.Interaction, team: str = "") -> None:
            await self._handle_sync(interaction, team)

        @sync_command.autocomplete("team")
        async def _sync_team_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return await self._autocomplete_teams(interaction, current)

        team_group = app_commands.Group(name="team", description="Manage teams")

        @team_group.command(name="create", description="Create a team linked to a role")
        @app_commands.describe(name="Team name", role="Members with this role are the team")
        async def team_create_command(
            interaction: discord.Interaction,
            name: str,
            role: discord.Role,
        ) -> None:
            await self._handle_team_create(interaction, name, role)

        @team_group.command(name="list", description="List this server's teams")
        async def team_list_command(interaction: discord.Interaction) -> None:
            await self._handle_team_list(interaction)

        @team_group.command(name="delete", description="Delete a team and all of its events")
        @app_commands.describe(team="The team to delete")
        async def team_delete_command(interaction: discord.Interaction, team: str) -> None:
            await self._handle_team_delete(interaction, team)

        @team_delete_command.autocomplete("team")
        async def _team_delete_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return await self._autocomplete_teams(interaction, current)

        self.tree.add_command(team_group)

        event_group = app_commands.Group(name="event", description="Manage events")

        @event_group.command(name="create", description="Post an event players can react to")
        @app_commands.describe(
            name="Event name",
            date='Date, e.g. "Feb 15" or "2025-02-15"',
            time='Time, e.g. "7PM EST"',
            game="Game being played",
            notes="Anything players should know",
            team="Which team (defaults to yours)",
        )
        @app_commands.choices(game=[app_commands.Choice(name=g, value=g) for g in GAMES])
        async def event_create_command(
            interaction: discord.Interaction,
            name: str,
            date: str,
            time: str,
            game: app_commands.Choice[str] | None = None,
            notes: str = "",
            team: str = "",
        ) -> None:
            await self._handle_event_create(
                interaction, name, date, time, game.value if game else "", notes, team
            )

        @event_create_command.autocomplete("team")
        async def _event_team_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return await self._autocomplete_teams(interaction, current)

        @event_group.command(name="delete", description="Delete an event")
        @app_commands.describe(event="The event to delete")
        async def event_delete_command(interaction: discord.Interaction, event: str) -> None:
            await self._handle_event_delete(interaction, event)

        @event_delete_command.autocomplete("event")
        async def _event_autocomplete(
            interaction: discord.Interaction,
            current: str,
        ) -> list[app_commands.Choice[str]]:
            return await self._autocomplete_events(interaction, current)

        self.tree.add_command(event_group)

    async def setup_hook(self) -> None:
        """Called when the bot is ready to start. Syncs slash commands."""
        if self.settings.discord_guild_id:
            guild = discord.Object(id=int(self.settings.discord_guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info("discord_commands_synced guild_id=%s", self.settings.discord_guild_id)
        else:
            await self.tree.sync()
            logger.info("discord_commands_synced globally")

    async def on_ready(self) -> None:
        user = self.user
        name = user.name if user else "unknown"
        logger.info("discord_bot_ready user=%s guilds=%d", name, len(self.guilds))

    # --- Raw reaction events ---

    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        """Feed an added reaction to the reconciler (debounced per user and message)."""
        if payload.guild_id is None:
            return
        member = payload.member
        if member is None or member.bot:
            return
        event = ReactionAdd(
            actor_id=str(payload.user_id),
            username=member.display_name,
            guild_id=str(payload.guild_id),
            channel_id=str(payload.channel_id),
            message_id=str(payload.message_id),
            emoji=str(payload.emoji),
            role_ids=member_role_ids(member),
        )
        self.reconciler.submit_reaction(event)

    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        """Feed a removed reaction to the reconciler. Removal payloads carry no member."""
        if payload.guild_id is None:
            return
        if self.user is not None and payload.user_id == self.user.id:
            return
        user = self.get_user(payload.user_id)
        if user is not None and user.bot:
            return
        event = ReactionRemove(
            actor_id=str(payload.user_id),
            guild_id=str(payload.guild_id),
            channel_id=str(payload.channel_id),
            message_id=str(payload.message_id),
            emoji=str(payload.emoji),
        )
        self.reconciler.submit_reaction(event)

    # --- Slash command handlers ---

    async def _handle_ping(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(
            f"🏓 Pong! ({self._latency_ms()}ms)", ephemeral=True
        )

    def _latency_ms(self) -> int:
        return round(self.latency * 1000) if math.isfinite(self.latency) else 0

    async def _handle_info(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer()
        try:
            async with db_session(self.engine) as repo:
                totals = await repo.totals()
        except SQLAlchemyError:
            logger.exception("info_totals_failed")
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return
        embed = build_info_embed(
            totals,
            uptime_seconds=time.monotonic() - self.started_at,
            latency_ms=self._latency_ms(),
            guild_count=len(self.guilds),
        )
        await interaction.followup.send(embed=embed)

    async def _require_guild(self, interaction: discord.Interaction) -> str | None:
        if interaction.guild_id is None:
            await interaction.response.send_message(
                "This command only works inside a server.", ephemeral=True
            )
            return None
        return str(interaction.guild_id)

    async def _send_error(
        self, interaction: discord.Interaction, title: str, description: str
    ) -> None:
        embed = build_error_embed(title, description)
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)

    async def _handle_availability(self, interaction: discord.Interaction) -> None:
        """Handle /availability: select menu of the member's events, then status buttons."""
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        user = interaction.user
        role_ids = member_role_ids(user)
        try:
            teams = await self.directory.teams_where_member_has_role(role_ids, guild_id)
            if not teams:
                await self._send_error(
                    interaction,
                    "No Team Found",
                    "You don't have any team roles. Ask a coach to give you your team's role.",
                )
                return
            events = await self.directory.recent_events(teams, limit=25)
            if not events:
                await self._send_error(
                    interaction, "No Events", "Your teams have no events scheduled."
                )
                return
            async with db_session(self.engine) as repo:
                statuses = await repo.get_statuses_for_user(
                    str(user.id), [ctx.event.id for ctx in events]
                )
        except (StorageFault, SQLAlchemyError):
            logger.exception("availability_menu_failed user=%s", user.id)
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return

        view = EventSelectView(
            original_user_id=user.id,
            username=user.display_name,
            guild_id=guild_id,
            events=events,
            statuses=statuses,  # type: ignore[arg-type]
            reconciler=self.reconciler,
            timeout=self.settings.rollcall_collector_timeout,
        )
        view.interaction = interaction
        await interaction.response.send_message(
            embed=build_availability_menu_embed(), view=view, ephemeral=True
        )

    async def _handle_roster(self, interaction: discord.Interaction, name_filter: str) -> None:
        """Handle /roster: one roster embed per recent event of the member's teams."""
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        await interaction.response.defer()
        try:
            teams = await self.directory.teams_where_member_has_role(
                member_role_ids(interaction.user), guild_id
            )
            if not teams and can_manage_server(interaction.user):
                teams = await self.directory.teams_for_guild(guild_id)
            if not teams:
                await self._send_error(
                    interaction, "No Team Found", "You are not on any team in this server."
                )
                return
            events = await self.directory.recent_events(
                teams, limit=ROSTER_EVENT_LIMIT, name_contains=sanitize_input(name_filter) or None
            )
            if not events:
                await self._send_error(interaction, "No Events", "No matching events found.")
                return
            embeds = [
                build_roster_embed(ctx, await load_roster(self.engine, ctx)) for ctx in events
            ]
        except StorageFault:
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return
        await interaction.followup.send(embeds=embeds)

    async def _resolve_team_arg(
        self, interaction: discord.Interaction, guild_id: str, team_id: str
    ) -> Team | None:
        """The team named by an autocomplete value, or the member's only team.

        Sends the error reply itself and returns None when no team fits.
        """
        if team_id:
            team = await self.directory.team_by_id(team_id)
            if team is None or team.guild_id != guild_id:
                await self._send_error(interaction, "Team Not Found", "That team doesn't exist.")
                return None
            return team
        teams = await self.directory.teams_where_member_has_role(
            member_role_ids(interaction.user), guild_id
        )
        if not teams:
            await self._send_error(
                interaction, "No Team Found", "You don't have any team roles in this server."
            )
            return None
        if len(teams) > 1:
            names = ", ".join(t.name for t in teams)
            await self._send_error(
                interaction,
                "Multiple Teams",
                f"You're on several teams ({names}). Pick one with the `team` option.",
            )
            return None
        return teams[0]

    async def _handle_history(self, interaction: discord.Interaction, team_id: str) -> None:
        """Handle /history: events inside the team tier's history window."""
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        try:
            team = await self._resolve_team_arg(interaction, guild_id, team_id)
            if team is None:
                return
            limits = self.tier_limits.get(team.tier, self.tier_limits["free"])
            since = None
            if limits.history_days is not None:
                since = datetime.now(UTC) - timedelta(days=limits.history_days)
            events = await self.directory.events_since(team.id, since)
        except StorageFault:
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return
        embed = build_history_embed(team, events, limits.history_days)
        await interaction.response.send_message(embed=embed, ephemeral=True)

    async def _handle_team_create(
        self, interaction: discord.Interaction, name: str, role: discord.Role
    ) -> None:
        """Handle /team create: a new team linked to one role of this server."""
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        if not can_manage_server(interaction.user):
            await self._send_error(
                interaction,
                "Permission Denied",
                "You need Manage Server or Administrator to create teams.",
            )
            return
        name = sanitize_input(name, max_length=50)
        if not is_valid_name(name):
            await self._send_error(
                interaction,
                "Invalid Name",
                f"Team names need at least {MIN_NAME_LENGTH} characters.",
            )
            return

        role_id = str(role.id)
        try:
            async with db_session(self.engine) as repo:
                existing = await repo.get_team_by_role(guild_id, role_id)
                if existing is not None:
                    await self._send_error(
                        interaction,
                        "Role Already Linked",
                        f"{role.mention} already belongs to **{existing.name}**.",
                    )
                    return
                row = await repo.create_team(
                    guild_id, name, role_id=role_id, created_by=str(interaction.user.id)
                )
                team = Team.model_validate(row)
        except IntegrityError:
            # Another /team create linked the same role first.
            await self._send_error(
                interaction, "Role Already Linked", f"{role.mention} already belongs to a team."
            )
            return
        except SQLAlchemyError:
            logger.exception("team_create_failed guild=%s role=%s", guild_id, role_id)
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return

        logger.info("team_created guild=%s team=%s role=%s", guild_id, team.id, role_id)
        limit = self.tier_limits[team.tier].max_players
        cap = f"up to {limit} players" if limit is not None else "unlimited players"
        await interaction.response.send_message(
            embed=build_success_embed(
                "Team Created",
                f"**{team.name}** is linked to {role.mention}.\n\n"
                f"Tier: {team.tier} ({cap}). Create an event with `/event create`.",
            )
        )

    async def _handle_team_list(self, interaction: discord.Interaction) -> None:
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        try:
            async with db_session(self.engine) as repo:
                teams = [
                    {
                        "name": row.name,
                        "role_id": row.role_id,
                        "tier": row.tier,
                        "player_count": await repo.count_players(row.id),
                        "event_count": await repo.count_events(row.id),
                    }
                    for row in await repo.get_teams_for_guild(guild_id)
                ]
        except SQLAlchemyError:
            logger.exception("team_list_failed guild=%s", guild_id)
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return
        await interaction.response.send_message(embed=build_team_list_embed(teams))

    async def _handle_team_delete(self, interaction: discord.Interaction, team_id: str) -> None:
        """Handle /team delete. Players, events and responses go with the team."""
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        if not can_manage_server(interaction.user):
            await self._send_error(
                interaction,
                "Permission Denied",
                "You need Manage Server or Administrator to delete teams.",
            )
            return
        try:
            async with db_session(self.engine) as repo:
                row = await repo.get_team(team_id)
                if row is None or row.guild_id != guild_id:
                    await self._send_error(
                        interaction, "Team Not Found", "That team doesn't exist."
                    )
                    return
                name = row.name
                await repo.delete_team(team_id)
        except SQLAlchemyError:
            logger.exception("team_delete_failed team=%s", team_id)
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return
        logger.info("team_deleted guild=%s team=%s", guild_id, team_id)
        await interaction.response.send_message(
            embed=build_success_embed(
                "Team Deleted", f"**{name}** and all of its events were deleted."
            )
        )

    async def _handle_event_create(
        self,
        interaction: discord.Interaction,
        name: str,
        date: str,
        time: str,
        game: str,
        notes: str,
        team_id: str,
    ) -> None:
        """Handle /event create: store the event, post its embed, seed the reactions."""
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        name = sanitize_input(name)
        date = sanitize_input(date, max_length=50)
        time = sanitize_input(time, max_length=50)
        notes = sanitize_input(notes, max_length=500)
        if not is_valid_name(name):
            await self._send_error(
                interaction,
                "Invalid Name",
                f"Event names need at least {MIN_NAME_LENGTH} characters.",
            )
            return
        if not is_valid_date(date):
            await self._send_error(
                interaction, "Invalid Date", 'Use a date like "Feb 15" or "2025-02-15".'
            )
            return
        if not is_valid_time(time):
            await self._send_error(interaction, "Invalid Time", 'Use a time like "7PM EST".')
            return

        try:
            team = await self._resolve_team_arg(interaction, guild_id, team_id)
            if team is None:
                return
            role_ids = member_role_ids(interaction.user)
            if team.role_id not in role_ids and not can_manage_server(interaction.user):
                await self._send_error(
                    interaction,
                    "Permission Denied",
                    f"Only members of **{team.name}** can create its events.",
                )
                return
            async with db_session(self.engine) as repo:
                row = await repo.create_event(
                    team.id,
                    name,
                    date,
                    time,
                    game_type=game or None,
                    notes=notes or None,
                    created_by=str(interaction.user.id),
                )
                event = Event.model_validate(row)
                player_count = await repo.count_players(team.id)
        except StorageFault:
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return
        except SQLAlchemyError:
            logger.exception("event_create_failed team=%s", team_id)
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return

        await interaction.response.send_message(embed=build_event_embed(event))
        message = await interaction.original_response()
        for emoji in STATUS_EMOJIS.values():
            try:
                await message.add_reaction(emoji)
            except discord.HTTPException as exc:
                logger.warning(
                    "event_reaction_seed_failed event=%s emoji=%s err=%s", event.id, emoji, exc
                )

        try:
            async with db_session(self.engine) as repo:
                await repo.attach_event_message(event.id, str(message.id), str(message.channel.id))
        except SQLAlchemyError:
            logger.exception("event_message_attach_failed event=%s", event.id)
            await self._send_error(
                interaction,
                "Reactions Not Linked",
                "The event was saved but reactions on this message won't be counted. "
                "Use `/availability` instead.",
            )
            return

        logger.info("event_created team=%s event=%s message=%s", team.id, event.id, message.id)
        warning = build_limit_warning_embed(player_count, self.tier_limits[team.tier].max_players)
        if warning is not None:
            await interaction.followup.send(embed=warning, ephemeral=True)

    async def _handle_event_delete(self, interaction: discord.Interaction, event_id: str) -> None:
        """Handle /event delete: remove the row, then try to remove the announcement."""
        guild_id = await self._require_guild(interaction)
        if guild_id is None:
            return
        try:
            ctx = await self.directory.event_by_id(event_id)
            if ctx is None or ctx.team.guild_id != guild_id:
                await self._send_error(interaction, "Event Not Found", "That event doesn't exist.")
                return
            is_creator = ctx.event.created_by == str(interaction.user.id)
            if not is_creator and not can_manage_server(interaction.user):
                await self._send_error(
                    interaction,
                    "Permission Denied",
                    "Only the event's creator or a server manager can delete it.",
                )
                return
            async with db_session(self.engine) as repo:
                await repo.delete_event(event_id)
        except StorageFault:
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return
        except SQLAlchemyError:
            logger.exception("event_delete_failed event=%s", event_id)
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return

        event = ctx.event
        if event.channel_id and event.message_id:
            channel = self.get_partial_messageable(int(event.channel_id))
            with contextlib.suppress(discord.NotFound, discord.Forbidden, discord.HTTPException):
                await channel.get_partial_message(int(event.message_id)).delete()
        logger.info("event_deleted event=%s by=%s", event_id, interaction.user.id)
        await interaction.response.send_message(
            embed=build_success_embed("Event Deleted", f"**{event.name}** was deleted."),
            ephemeral=True,
        )

    async def _handle_sync(self, interaction: discord.Interaction, team_id: str) -> None:
        """Handle /sync: register role holders as players, respecting tier limits."""
        guild = interaction.guild
        if guild is None:
            await interaction.response.send_message(
                "This command only works inside a server.", ephemeral=True
            )
            return
        if not is_admin(interaction.user):
            await self._send_error(
                interaction, "Permission Denied", "Only administrators can sync players."
            )
            return
        await interaction.response.defer(ephemeral=True)

        added = existing = skipped = 0
        try:
            if team_id:
                team = await self.directory.team_by_id(team_id)
                teams = [team] if team is not None and team.guild_id == str(guild.id) else []
            else:
                teams = await self.directory.teams_for_guild(str(guild.id))
            for team in teams:
                role = guild.get_role(int(team.role_id)) if team.role_id else None
                if role is None:
                    continue
                for member in role.members:
                    if member.bot:
                        continue
                    result = await self.registry.resolve_or_create(
                        str(member.id), member.display_name, team.id
                    )
                    if isinstance(result, PlayerResolved):
                        if result.created:
                            added += 1
                        else:
                            existing += 1
                    elif isinstance(result, LimitExceeded):
                        skipped += 1
                    elif isinstance(result, EntityNotFound):
                        break
        except StorageFault:
            await self._send_error(interaction, "Something Went Wrong", STORAGE_ERROR_TEXT)
            return

        logger.info(
            "players_synced guild=%s added=%d existing=%d skipped=%d",
            guild.id,
            added,
            existing,
            skipped,
        )
        lines = [f"✅ Added: {added}", f"👥 Already registered: {existing}"]
        if skipped:
            lines.append(f"⚠️ Skipped (player limit reached): {skipped}")
        await interaction.followup.send(
            embed=build_success_embed("Players Synced", "\n".join(lines)), ephemeral=True
        )

    # --- Autocomplete ---

    async def _autocomplete_teams(
        self,
        interaction: discord.Interaction,
        current: str,
    ) -> list[app_commands.Choice[str]]:
        if interaction.guild_id is None:
            return []
        try:
            teams = await self.directory.teams_for_guild(str(interaction.guild_id))
        except StorageFault:
            return []
        needle = current.lower()
        return [
            app_commands.Choice(name=t.name[:100], value=t.id)
            for t in teams
            if needle in t.name.lower()
        ][:25]

    async def _autocomplete_events(
        self,
        interaction: discord.Interaction,
        current: str,
    ) -> list[app_commands.Choice[str]]:
        if interaction.guild_id is None:
            return []
        try:
            teams = await self.directory.teams_for_guild(str(interaction.guild_id))
            events = await self.directory.recent_events(
                teams, limit=25, name_contains=current or None
            )
        except StorageFault:
            return []
        return [
            app_commands.Choice(
                name=f"{ctx.event.name} ({ctx.event.date}, {ctx.team.name})"[:100],
                value=ctx.event.id,
            )
            for ctx in events
        ]

    async def close(self) -> None:
        """Clean shutdown: drop pending reactions and close the bot."""
        await self.debouncer.close()
        await super().close()


def is_discord_enabled(settings: Settings) -> bool:
    """Check whether Discord integration should be started.

    Returns True only when discord_enabled is True and a token is set.
    """
    return bool(settings.discord_enabled and settings.discord_bot_token)


async def start_discord_bot(settings: Settings, engine: AsyncEngine) -> RollcallBot:
    """Create and start the Discord bot in the current event loop.

    Returns the bot instance so the caller can stop it during shutdown.
    The bot runs as a background task; this function returns immediately
    after starting it.
    """
    bot = RollcallBot(settings=settings, engine=engine)

    async def _run_bot() -> None:
        try:
            await bot.start(settings.discord_bot_token)
        except asyncio.CancelledError:
            logger.info("discord_bot_cancelled")
        except Exception:  # Last-resort handler; bot.start can raise connection and auth errors
            logger.exception("discord_bot_error")
        finally:
            if not bot.is_closed():
                await bot.close()

    asyncio.create_task(_run_bot(), name="discord-bot")
    logger.info("discord_bot_started")
    return bot
