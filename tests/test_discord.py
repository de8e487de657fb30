"""Tests for Discord bot integration: embeds, sink, views, reaction routing and commands."""

import time
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import discord
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.config import Settings
from rollcall.core.outcomes import (
    EntityNotFound,
    LimitExceeded,
    RoleNotMember,
    StatusRecorded,
    StorageFault,
)
from rollcall.core.roster import Roster
from rollcall.db.engine import get_session
from rollcall.db.repository import Repository
from rollcall.discord.bot import RollcallBot, is_discord_enabled
from rollcall.discord.embeds import (
    build_event_embed,
    build_info_embed,
    build_limit_warning_embed,
    build_roster_embed,
    build_team_list_embed,
    build_user_error_embed,
    format_uptime,
)
from rollcall.discord.helpers import can_manage_server, member_role_ids
from rollcall.discord.sink import DiscordSink
from rollcall.discord.views import EventSelectView, StatusButtonsView
from rollcall.models.inbound import ComponentInteraction, ReactionAdd, ReactionRemove
from rollcall.models.schedule import Event, EventContext, Player, Team

ROLE_ID = 555


def make_interaction(**overrides) -> AsyncMock:
    """Build a fully-configured Discord interaction mock."""
    interaction = AsyncMock(spec=discord.Interaction)
    interaction.response = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=overrides.get("done", False))
    interaction.followup = AsyncMock()
    interaction.guild_id = overrides.get("guild_id", 1)
    interaction.guild = overrides.get("guild")
    interaction.user = MagicMock(spec=discord.Member)
    interaction.user.id = overrides.get("user_id", 12345)
    interaction.user.display_name = overrides.get("display_name", "TestPlayer")
    interaction.user.roles = [MagicMock(id=r) for r in overrides.get("role_ids", [ROLE_ID])]
    interaction.user.guild_permissions = MagicMock(
        administrator=overrides.get("admin", False),
        manage_guild=overrides.get("manage_guild", False),
    )
    interaction.user.send = AsyncMock()
    interaction.channel = AsyncMock()
    return interaction


def http_error(cls: type[discord.HTTPException], status: int = 403) -> discord.HTTPException:
    return cls(MagicMock(status=status, reason="nope"), "nope")


def _team(**kw) -> Team:
    defaults = {"id": "t1", "guild_id": "1", "name": "Night Owls", "role_id": str(ROLE_ID)}
    defaults.update(kw)
    return Team(**defaults)


def _event(**kw) -> Event:
    defaults = {"id": "e1", "team_id": "t1", "name": "Scrim", "date": "Feb 15", "time": "7PM"}
    defaults.update(kw)
    return Event(**defaults)


async def _seed(engine: AsyncEngine, players: int = 0) -> dict[str, str]:
    async with get_session(engine) as session:
        repo = Repository(session)
        team = await repo.create_team("1", "Night Owls", role_id=str(ROLE_ID))
        for i in range(players):
            await repo.create_player(f"p{i}", f"player{i}", team.id)
        event = await repo.create_event(team.id, "Scrim vs Foxes", "Feb 15", "7PM")
        await repo.attach_event_message(event.id, "777", "888")
        return {"team": team.id, "event": event.id}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings_discord_enabled() -> Settings:
    """Settings with Discord enabled."""
    return Settings(
        rollcall_env="development",
        database_url="sqlite+aiosqlite:///:memory:",
        discord_bot_token="test-token-not-real",
        discord_guild_id="987654321",
        discord_enabled=True,
        rollcall_reaction_debounce_ms=0,
    )


@pytest.fixture
def bot(settings_discord_enabled: Settings, engine: AsyncEngine) -> RollcallBot:
    return RollcallBot(settings=settings_discord_enabled, engine=engine)


# ---------------------------------------------------------------------------
# Enablement and helpers
# ---------------------------------------------------------------------------


class TestEnablement:
    def test_disabled_by_default(self, settings: Settings) -> None:
        assert is_discord_enabled(settings) is False

    def test_enabled_with_token(self, settings_discord_enabled: Settings) -> None:
        assert is_discord_enabled(settings_discord_enabled) is True

    def test_enabled_flag_without_token(self) -> None:
        assert is_discord_enabled(Settings(discord_enabled=True)) is False


class TestHelpers:
    def test_member_role_ids(self) -> None:
        member = MagicMock(roles=[MagicMock(id=1), MagicMock(id=22)])
        assert member_role_ids(member) == frozenset({"1", "22"})

    def test_plain_user_has_no_roles(self) -> None:
        assert member_role_ids(None) == frozenset()

    def test_manage_server(self) -> None:
        perms = MagicMock(administrator=False, manage_guild=True)
        assert can_manage_server(MagicMock(guild_permissions=perms))
        perms = MagicMock(administrator=False, manage_guild=False)
        assert not can_manage_server(MagicMock(guild_permissions=perms))
        assert not can_manage_server(None)


# ---------------------------------------------------------------------------
# Embeds
# ---------------------------------------------------------------------------


class TestEmbeds:
    def test_event_embed(self) -> None:
        embed = build_event_embed(_event(game_type="Valorant", notes="Bring snacks"))
        assert "Scrim" in embed.title
        names = [f.name for f in embed.fields]
        assert any("Game" in n for n in names)
        assert any("Notes" in n for n in names)
        assert "✅" in embed.footer.text

    def test_roster_embed_sections(self) -> None:
        roster = Roster(available=["amy", "bob"], no_response=["cy"])
        embed = build_roster_embed(EventContext(event=_event(), team=_team()), roster)
        assert len(embed.fields) == 2
        assert "(2)" in embed.fields[0].name
        assert "Night Owls" in embed.footer.text

    def test_roster_embed_truncates_long_lists(self) -> None:
        roster = Roster(available=[f"player-with-a-long-name-{i}" for i in range(100)])
        embed = build_roster_embed(EventContext(event=_event(), team=_team()), roster)
        assert len(embed.fields[0].value) <= 1024

    def test_user_error_embeds(self) -> None:
        limit = build_user_error_embed(LimitExceeded(tier="free", limit=15, team_name="Owls"))
        assert "15" in limit.description
        role = build_user_error_embed(RoleNotMember(_team()))
        assert "Night Owls" in role.description
        missing = build_user_error_embed(EntityNotFound("event"))
        assert "Event" in missing.title

    def test_user_error_rejects_other_values(self) -> None:
        with pytest.raises(TypeError):
            build_user_error_embed("not an error")  # type: ignore[arg-type]

    def test_limit_warning(self) -> None:
        assert build_limit_warning_embed(3, 15) is None
        assert build_limit_warning_embed(3, None) is None
        assert "2 player slots" in build_limit_warning_embed(13, 15).description
        assert "Limit" in build_limit_warning_embed(15, 15).title

    def test_team_list(self) -> None:
        empty = build_team_list_embed([])
        assert "No teams" in empty.description
        listed = build_team_list_embed(
            [
                {
                    "name": "Night Owls",
                    "role_id": "555",
                    "tier": "free",
                    "player_count": 4,
                    "event_count": 2,
                }
            ]
        )
        assert listed.fields[0].name == "Night Owls"
        assert "<@&555>" in listed.fields[0].value

    def test_format_uptime(self) -> None:
        assert format_uptime(59) == "0m"
        assert format_uptime(3700) == "1h 1m"
        assert format_uptime(90061) == "1d 1h 1m"

    def test_info_embed(self) -> None:
        totals = {"teams": 3, "free_teams": 2, "players": 1200, "events": 7, "responses": 40}
        embed = build_info_embed(totals, uptime_seconds=3700, latency_ms=42, guild_count=2)
        stats, system = embed.fields
        assert "**Teams:** 3 (2 free, 1 paid)" in stats.value
        assert "**Players:** 1,200" in stats.value
        assert "1h 1m" in system.value
        assert "42ms" in system.value


# ---------------------------------------------------------------------------
# Presentation sink
# ---------------------------------------------------------------------------


def _reaction(emoji: str, user_ids: list[int]) -> MagicMock:
    reaction = MagicMock()
    reaction.emoji = emoji

    async def users():
        for uid in user_ids:
            yield MagicMock(id=uid)

    reaction.users = users
    return reaction


class TestDiscordSink:
    async def test_notify_sends_dm(self) -> None:
        client = MagicMock()
        user = MagicMock()
        user.send = AsyncMock()
        client.get_user.return_value = user
        await DiscordSink(client).notify("42", EntityNotFound("event"))
        user.send.assert_called_once()
        assert isinstance(user.send.call_args.kwargs["embed"], discord.Embed)

    async def test_notify_closed_dms_swallowed(self) -> None:
        client = MagicMock()
        user = MagicMock()
        user.send = AsyncMock(side_effect=http_error(discord.Forbidden))
        client.get_user.return_value = user
        await DiscordSink(client).notify("42", EntityNotFound("event"))

    async def test_remove_reaction(self) -> None:
        client = MagicMock()
        message = MagicMock()
        message.remove_reaction = AsyncMock()
        client.get_partial_messageable.return_value.get_partial_message.return_value = message
        await DiscordSink(client).remove_reaction("888", "777", "42", "❌")
        emoji, member = message.remove_reaction.call_args.args
        assert emoji == "❌"
        assert member.id == 42

    async def test_remove_reaction_failure_swallowed(self) -> None:
        client = MagicMock()
        message = MagicMock()
        message.remove_reaction = AsyncMock(side_effect=http_error(discord.HTTPException, 500))
        client.get_partial_messageable.return_value.get_partial_message.return_value = message
        await DiscordSink(client).remove_reaction("888", "777", "42", "❌")

    async def test_status_emojis(self) -> None:
        client = MagicMock()
        fetched = MagicMock()
        fetched.reactions = [
            _reaction("✅", [1, 42]),
            _reaction("❌", [7]),
            _reaction("🔥", [42]),
        ]
        partial = MagicMock()
        partial.fetch = AsyncMock(return_value=fetched)
        client.get_partial_messageable.return_value.get_partial_message.return_value = partial
        assert await DiscordSink(client).status_emojis("888", "777", "42") == {"✅"}

    async def test_status_emojis_missing_message(self) -> None:
        client = MagicMock()
        partial = MagicMock()
        partial.fetch = AsyncMock(side_effect=http_error(discord.NotFound, 404))
        client.get_partial_messageable.return_value.get_partial_message.return_value = partial
        assert await DiscordSink(client).status_emojis("888", "777", "42") == set()


# ---------------------------------------------------------------------------
# Raw reaction routing
# ---------------------------------------------------------------------------


def _payload(**kw) -> MagicMock:
    payload = MagicMock(spec=discord.RawReactionActionEvent)
    payload.guild_id = kw.get("guild_id", 1)
    payload.channel_id = 888
    payload.message_id = 777
    payload.user_id = kw.get("user_id", 42)
    payload.emoji = discord.PartialEmoji(name=kw.get("emoji", "✅"))
    payload.member = kw.get("member")
    return payload


class TestReactionRouting:
    async def test_add_is_submitted(self, bot: RollcallBot) -> None:
        bot.reconciler.submit_reaction = MagicMock()
        member = MagicMock(bot=False, display_name="owl", roles=[MagicMock(id=ROLE_ID)])
        await bot.on_raw_reaction_add(_payload(member=member))
        bot.reconciler.submit_reaction.assert_called_once_with(
            ReactionAdd(
                actor_id="42",
                username="owl",
                guild_id="1",
                channel_id="888",
                message_id="777",
                emoji="✅",
                role_ids=frozenset({str(ROLE_ID)}),
            )
        )

    async def test_bot_reactions_ignored(self, bot: RollcallBot) -> None:
        bot.reconciler.submit_reaction = MagicMock()
        member = MagicMock(bot=True, display_name="rollcall", roles=[])
        await bot.on_raw_reaction_add(_payload(member=member))
        bot.reconciler.submit_reaction.assert_not_called()

    async def test_dm_reactions_ignored(self, bot: RollcallBot) -> None:
        bot.reconciler.submit_reaction = MagicMock()
        await bot.on_raw_reaction_add(_payload(guild_id=None, member=None))
        await bot.on_raw_reaction_remove(_payload(guild_id=None))
        bot.reconciler.submit_reaction.assert_not_called()

    async def test_remove_is_submitted(self, bot: RollcallBot) -> None:
        bot.reconciler.submit_reaction = MagicMock()
        await bot.on_raw_reaction_remove(_payload(emoji="❌"))
        bot.reconciler.submit_reaction.assert_called_once_with(
            ReactionRemove(
                actor_id="42",
                guild_id="1",
                channel_id="888",
                message_id="777",
                emoji="❌",
            )
        )

    async def test_close_drains_debouncer(self, bot: RollcallBot) -> None:
        bot.debouncer.close = AsyncMock()
        with patch("discord.ext.commands.Bot.close", new=AsyncMock()):
            await bot.close()
        bot.debouncer.close.assert_awaited_once()


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def _recorded() -> StatusRecorded:
    return StatusRecorded(
        event=_event(),
        team=_team(),
        player=Player(id="p1", discord_id="12345", username="TestPlayer", team_id="t1"),
        status="available",
    )


def _buttons(reconciler: MagicMock) -> StatusButtonsView:
    return StatusButtonsView(
        original_user_id=12345,
        username="TestPlayer",
        guild_id="1",
        ctx=EventContext(event=_event(), team=_team()),
        reconciler=reconciler,
    )


class TestStatusButtonsView:
    async def test_press_goes_through_reconciler(self) -> None:
        reconciler = MagicMock()
        reconciler.handle = AsyncMock(return_value=_recorded())
        view = _buttons(reconciler)
        interaction = make_interaction()
        await view.available.callback(interaction)
        reconciler.handle.assert_awaited_once_with(
            ComponentInteraction(
                actor_id="12345",
                username="TestPlayer",
                guild_id="1",
                event_id="e1",
                status="available",
                role_ids=frozenset({str(ROLE_ID)}),
            )
        )
        embed = interaction.response.edit_message.call_args.kwargs["embed"]
        assert "Updated" in embed.title

    async def test_limit_rendered_in_place(self) -> None:
        reconciler = MagicMock()
        reconciler.handle = AsyncMock(return_value=LimitExceeded(tier="free", limit=15))
        view = _buttons(reconciler)
        interaction = make_interaction()
        await view.maybe.callback(interaction)
        embed = interaction.response.edit_message.call_args.kwargs["embed"]
        assert "Limit" in embed.title
        interaction.user.send.assert_not_called()

    async def test_storage_fault_reports_generic_error(self) -> None:
        reconciler = MagicMock()
        reconciler.handle = AsyncMock(side_effect=StorageFault("down"))
        view = _buttons(reconciler)
        interaction = make_interaction()
        await view.unavailable.callback(interaction)
        embed = interaction.response.edit_message.call_args.kwargs["embed"]
        assert "Wrong" in embed.title

    async def test_other_user_refused(self) -> None:
        reconciler = MagicMock()
        reconciler.handle = AsyncMock()
        view = _buttons(reconciler)
        interaction = make_interaction(user_id=999)
        await view.available.callback(interaction)
        reconciler.handle.assert_not_called()
        assert interaction.response.send_message.call_args.kwargs["ephemeral"] is True

    async def test_timeout_clears_components(self) -> None:
        view = _buttons(MagicMock())
        view.interaction = make_interaction()
        await view.on_timeout()
        assert view.children == []
        view.interaction.edit_original_response.assert_awaited_once()

    async def test_press_uses_roles_held_at_press_time(self) -> None:
        reconciler = MagicMock()
        reconciler.handle = AsyncMock(return_value=RoleNotMember(_team()))
        view = _buttons(reconciler)
        interaction = make_interaction(role_ids=[])
        await view.available.callback(interaction)
        event = reconciler.handle.call_args.args[0]
        assert event.role_ids == frozenset()
        embed = interaction.response.edit_message.call_args.kwargs["embed"]
        assert "Night Owls" in embed.description


class TestEventSelectView:
    def _view(self, events: list[EventContext], statuses: dict) -> EventSelectView:
        return EventSelectView(
            original_user_id=12345,
            username="TestPlayer",
            guild_id="1",
            events=events,
            statuses=statuses,
            reconciler=MagicMock(),
            timeout=60,
        )

    async def test_options_marked_with_status(self) -> None:
        events = [
            EventContext(event=_event(id="e1", name="Scrim"), team=_team()),
            EventContext(event=_event(id="e2", name="Finals"), team=_team()),
        ]
        view = self._view(events, {"e1": "available"})
        emojis = [str(o.emoji) for o in view.select.options]
        assert emojis == ["✅", "⬜"]
        assert view.timeout == 60

    async def test_team_suffix_for_multi_team_members(self) -> None:
        events = [
            EventContext(event=_event(id="e1"), team=_team(id="t1", name="Owls")),
            EventContext(event=_event(id="e2", team_id="t2"), team=_team(id="t2", name="Larks")),
        ]
        view = self._view(events, {})
        labels = [o.label for o in view.select.options]
        assert labels == ["Scrim (Owls)", "Scrim (Larks)"]

    async def test_select_opens_buttons(self) -> None:
        view = self._view([EventContext(event=_event(), team=_team())], {})
        interaction = make_interaction()
        with patch.object(
            discord.ui.Select, "values", new_callable=PropertyMock, return_value=["e1"]
        ):
            await view.on_select(interaction)
        kwargs = interaction.response.edit_message.call_args.kwargs
        assert isinstance(kwargs["view"], StatusButtonsView)
        assert "Scrim" in kwargs["embed"].title

    async def test_buttons_inherit_remaining_window(self) -> None:
        view = self._view([EventContext(event=_event(), team=_team())], {})
        view.deadline = time.monotonic() + 5
        interaction = make_interaction()
        with patch.object(
            discord.ui.Select, "values", new_callable=PropertyMock, return_value=["e1"]
        ):
            await view.on_select(interaction)
        buttons = interaction.response.edit_message.call_args.kwargs["view"]
        assert 1.0 <= buttons.timeout <= 5


# ---------------------------------------------------------------------------
# Slash command handlers
# ---------------------------------------------------------------------------


class TestTeamCommands:
    async def test_create_team(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        interaction = make_interaction(manage_guild=True)
        role = MagicMock(id=ROLE_ID, mention=f"<@&{ROLE_ID}>")
        await bot._handle_team_create(interaction, "Night Owls", role)
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Team Created" in embed.title
        async with get_session(engine) as session:
            team = await Repository(session).get_team_by_role("1", str(ROLE_ID))
        assert team is not None
        assert team.name == "Night Owls"
        assert team.created_by == "12345"

    async def test_create_requires_permission(
        self, bot: RollcallBot, engine: AsyncEngine
    ) -> None:
        interaction = make_interaction()
        await bot._handle_team_create(interaction, "Night Owls", MagicMock(id=ROLE_ID))
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Permission" in embed.title
        async with get_session(engine) as session:
            assert await Repository(session).get_teams_for_guild("1") == []

    async def test_role_already_linked(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine)
        interaction = make_interaction(admin=True)
        role = MagicMock(id=ROLE_ID, mention=f"<@&{ROLE_ID}>")
        await bot._handle_team_create(interaction, "Copycats", role)
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Already Linked" in embed.title

    async def test_short_name_rejected(self, bot: RollcallBot) -> None:
        interaction = make_interaction(admin=True)
        await bot._handle_team_create(interaction, "ab", MagicMock(id=ROLE_ID))
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Invalid Name" in embed.title

    async def test_list_teams(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine, players=2)
        interaction = make_interaction()
        await bot._handle_team_list(interaction)
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert embed.fields[0].name == "Night Owls"
        assert "Players: 2" in embed.fields[0].value

    async def test_delete_team(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        ids = await _seed(engine)
        interaction = make_interaction(admin=True)
        await bot._handle_team_delete(interaction, ids["team"])
        async with get_session(engine) as session:
            repo = Repository(session)
            assert await repo.get_team(ids["team"]) is None
            assert await repo.get_event(ids["event"]) is None


class TestEventCommands:
    async def test_create_event_posts_and_links(
        self, bot: RollcallBot, engine: AsyncEngine
    ) -> None:
        ids = await _seed(engine, players=13)
        interaction = make_interaction()
        message = MagicMock(id=999)
        message.channel.id = 111
        message.add_reaction = AsyncMock()
        interaction.original_response = AsyncMock(return_value=message)

        await bot._handle_event_create(interaction, "Finals Night", "Mar 1", "8PM", "", "", "")

        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Finals Night" in embed.title
        assert [c.args[0] for c in message.add_reaction.call_args_list] == ["✅", "❌", "❓"]
        async with get_session(engine) as session:
            row = await Repository(session).get_event_by_message_id("999")
        assert row is not None
        assert row.team_id == ids["team"]
        assert row.channel_id == "111"
        # 13 of 15 slots used: the coach is warned privately.
        warning = interaction.followup.send.call_args.kwargs
        assert warning["ephemeral"] is True
        assert "Approaching" in warning["embed"].title

    async def test_reaction_seed_failure_not_fatal(
        self, bot: RollcallBot, engine: AsyncEngine
    ) -> None:
        await _seed(engine)
        interaction = make_interaction()
        message = MagicMock(id=999)
        message.channel.id = 111
        message.add_reaction = AsyncMock(side_effect=http_error(discord.Forbidden))
        interaction.original_response = AsyncMock(return_value=message)
        await bot._handle_event_create(interaction, "Finals Night", "Mar 1", "8PM", "", "", "")
        async with get_session(engine) as session:
            assert await Repository(session).get_event_by_message_id("999") is not None

    async def test_invalid_date(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine)
        interaction = make_interaction()
        await bot._handle_event_create(interaction, "Finals Night", "soon", "8PM", "", "", "")
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Invalid Date" in embed.title

    async def test_needs_team_role(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine)
        interaction = make_interaction(role_ids=[])
        await bot._handle_event_create(interaction, "Finals Night", "Mar 1", "8PM", "", "", "")
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "No Team" in embed.title

    async def test_delete_event(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        ids = await _seed(engine)
        interaction = make_interaction(manage_guild=True)
        partial = MagicMock()
        partial.delete = AsyncMock()
        bot.get_partial_messageable = MagicMock()
        bot.get_partial_messageable.return_value.get_partial_message.return_value = partial
        await bot._handle_event_delete(interaction, ids["event"])
        partial.delete.assert_awaited_once()
        async with get_session(engine) as session:
            assert await Repository(session).get_event(ids["event"]) is None


class TestMemberCommands:
    async def test_availability_opens_menu(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine)
        interaction = make_interaction()
        await bot._handle_availability(interaction)
        kwargs = interaction.response.send_message.call_args.kwargs
        assert kwargs["ephemeral"] is True
        assert isinstance(kwargs["view"], EventSelectView)
        assert [o.label for o in kwargs["view"].select.options] == ["Scrim vs Foxes"]

    async def test_availability_without_team(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine)
        interaction = make_interaction(role_ids=[])
        await bot._handle_availability(interaction)
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "No Team" in embed.title

    async def test_roster(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine, players=2)
        interaction = make_interaction()
        await bot._handle_roster(interaction, "")
        interaction.response.defer.assert_awaited_once()
        embeds = interaction.followup.send.call_args.kwargs["embeds"]
        assert len(embeds) == 1
        assert "Scrim vs Foxes" in embeds[0].title

    async def test_history(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine)
        interaction = make_interaction()
        await bot._handle_history(interaction, "")
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "last 30 days" in embed.description

    async def test_sync_registers_role_members(
        self, bot: RollcallBot, engine: AsyncEngine
    ) -> None:
        ids = await _seed(engine, players=14)
        members = [
            MagicMock(id=1, display_name="one", bot=False),
            MagicMock(id=2, display_name="two", bot=False),
            MagicMock(id=3, display_name="robot", bot=True),
        ]
        guild = MagicMock(id=1)
        guild.get_role.return_value = MagicMock(members=members)
        interaction = make_interaction(admin=True, guild=guild)
        await bot._handle_sync(interaction, "")
        description = interaction.followup.send.call_args.kwargs["embed"].description
        assert "Added: 1" in description
        assert "Skipped (player limit reached): 1" in description
        async with get_session(engine) as session:
            assert await Repository(session).count_players(ids["team"]) == 15

    async def test_sync_admin_only(self, bot: RollcallBot) -> None:
        interaction = make_interaction(manage_guild=True, guild=MagicMock(id=1))
        await bot._handle_sync(interaction, "")
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert "Permission" in embed.title

    async def test_ping(self, bot: RollcallBot) -> None:
        interaction = make_interaction()
        with patch.object(RollcallBot, "latency", new_callable=PropertyMock, return_value=0.05):
            await bot._handle_ping(interaction)
        assert "50ms" in interaction.response.send_message.call_args.args[0]

    async def test_info(self, bot: RollcallBot, engine: AsyncEngine) -> None:
        await _seed(engine, players=2)
        interaction = make_interaction()
        with patch.object(RollcallBot, "latency", new_callable=PropertyMock, return_value=0.05):
            await bot._handle_info(interaction)
        interaction.response.defer.assert_awaited_once()
        embed = interaction.followup.send.call_args.kwargs["embed"]
        assert "**Teams:** 1 (1 free, 0 paid)" in embed.fields[0].value
        assert "**Players:** 2" in embed.fields[0].value
        assert "50ms" in embed.fields[1].value
