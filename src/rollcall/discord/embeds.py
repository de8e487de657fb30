"""Discord embed builders for Rollcall.

Each builder takes domain data and returns a styled embed ready to send.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from rollcall.core.limits import limit_warning_level, remaining_slots
from rollcall.core.outcomes import EntityNotFound, LimitExceeded, RoleNotMember
from rollcall.models.constants import (
    COLOR_ERROR,
    COLOR_PRIMARY,
    COLOR_SUCCESS,
    COLOR_WARNING,
    NO_RESPONSE_MARK,
    STATUS_EMOJIS,
    STATUS_LABELS,
    Status,
)

if TYPE_CHECKING:
    from rollcall.core.outcomes import UserError
    from rollcall.core.roster import Roster
    from rollcall.models.schedule import Event, EventContext, Team

FOOTER = "Rollcall"

# Discord caps an embed field value at 1024 characters.
_FIELD_LIMIT = 1024


def build_success_embed(title: str, description: str) -> discord.Embed:
    embed = discord.Embed(title=f"✅ {title}", description=description, color=COLOR_SUCCESS)
    embed.timestamp = discord.utils.utcnow()
    return embed


def build_error_embed(title: str, description: str) -> discord.Embed:
    embed = discord.Embed(title=f"❌ {title}", description=description, color=COLOR_ERROR)
    embed.timestamp = discord.utils.utcnow()
    return embed


def build_warning_embed(title: str, description: str) -> discord.Embed:
    embed = discord.Embed(title=f"⚠️ {title}", description=description, color=COLOR_WARNING)
    embed.timestamp = discord.utils.utcnow()
    return embed


def build_event_embed(event: Event) -> discord.Embed:
    """The announcement players react to."""
    embed = discord.Embed(
        title=f"📅 {event.name}",
        description="React below to mark your availability",
        color=COLOR_PRIMARY,
    )
    embed.add_field(name="📅 Date", value=event.date, inline=True)
    embed.add_field(name="🕐 Time", value=event.time, inline=True)
    if event.game_type:
        embed.add_field(name="🎮 Game", value=event.game_type, inline=True)
    if event.notes:
        embed.add_field(name="📝 Notes", value=event.notes[:_FIELD_LIMIT], inline=False)
    legend = " | ".join(f"{STATUS_EMOJIS[s]} ({STATUS_LABELS[s]})" for s in STATUS_EMOJIS)
    embed.set_footer(text=f"React with {legend}")
    embed.timestamp = discord.utils.utcnow()
    return embed


def _bullet_list(names: list[str]) -> str:
    value = "\n".join(f"• {n}" for n in names) or "None"
    if len(value) > _FIELD_LIMIT:
        value = value[: _FIELD_LIMIT - 4] + "\n..."
    return value


def build_roster_embed(ctx: EventContext, roster: Roster) -> discord.Embed:
    """Roster for one event: a field per non-empty status bucket."""
    event = ctx.event
    embed = discord.Embed(
        title=f"📋 ROSTER: {event.name}",
        description=f"📅 {event.date} at {event.time}",
        color=COLOR_PRIMARY,
    )
    sections = (
        (f"{STATUS_EMOJIS['available']} AVAILABLE", roster.available),
        (f"{STATUS_EMOJIS['unavailable']} UNAVAILABLE", roster.unavailable),
        (f"{STATUS_EMOJIS['maybe']} MAYBE", roster.maybe),
        ("👥 NO RESPONSE", roster.no_response),
    )
    for label, names in sections:
        if names:
            embed.add_field(name=f"{label} ({len(names)})", value=_bullet_list(names), inline=False)
    if roster.total == 0:
        embed.add_field(name="Players", value="Nobody has answered yet.", inline=False)
    embed.set_footer(text=f"Team: {ctx.team.name}")
    return embed


def build_availability_menu_embed() -> discord.Embed:
    legend = " | ".join(f"{STATUS_EMOJIS[s]} {STATUS_LABELS[s]}" for s in STATUS_EMOJIS)
    embed = discord.Embed(
        title="📋 Mark Your Availability",
        description=f"Select an event below.\n\n{legend} | {NO_RESPONSE_MARK} No Response",
        color=COLOR_PRIMARY,
    )
    embed.set_footer(text="Tip: You can also react to the event message!")
    return embed


def build_status_prompt_embed(ctx: EventContext) -> discord.Embed:
    event = ctx.event
    lines = [f"📅 {event.date}", f"🕐 {event.time}"]
    if event.game_type:
        lines.append(f"🎮 {event.game_type}")
    lines.append(f"\n🏆 Team: {ctx.team.name}")
    embed = discord.Embed(
        title=f"Mark Availability: {event.name}",
        description="\n".join(lines),
        color=COLOR_PRIMARY,
    )
    embed.set_footer(text="Click a button")
    return embed


def build_status_recorded_embed(event: Event, team: Team, status: Status) -> discord.Embed:
    embed = discord.Embed(
        title="✅ Availability Updated!",
        description=(
            f"You've been marked as **{STATUS_EMOJIS[status]} {STATUS_LABELS[status]}** for:\n\n"
            f"**{event.name}**\n"
            f"📅 {event.date} at {event.time}\n"
            f"🏆 Team: {team.name}"
        ),
        color=COLOR_SUCCESS,
    )
    return embed


def build_user_error_embed(error: UserError) -> discord.Embed:
    """Private explanation for a refused status change."""
    if isinstance(error, LimitExceeded):
        team = f"**{error.team_name}**" if error.team_name else "This team"
        return build_error_embed(
            "Team at Player Limit",
            f"{team} is at the {error.tier} tier limit of {error.limit} players.\n\n"
            "Ask a team admin to upgrade, or wait for a slot to open up.",
        )
    if isinstance(error, RoleNotMember):
        return build_error_embed(
            "Missing Team Role",
            f"You don't have the required role for **{error.team.name}**.\n\n"
            "Only members with the team role can mark availability for this event.",
        )
    if isinstance(error, EntityNotFound):
        return build_error_embed(
            f"{error.what.capitalize()} Not Found",
            f"This {error.what} no longer exists.",
        )
    raise TypeError(f"unsupported error: {type(error).__name__}")


def build_limit_warning_embed(player_count: int, limit: int | None) -> discord.Embed | None:
    """Warning for coaches when a team is at or near its player cap, else None."""
    level = limit_warning_level(player_count, limit)
    if level == "reached":
        return build_warning_embed(
            "Team at Player Limit",
            f"Your team is at the free tier limit of {limit} players.\n\n"
            "The event will be created, but new members won't be able to mark availability.",
        )
    if level == "approaching":
        remaining = remaining_slots(player_count, limit)
        plural = "" if remaining == 1 else "s"
        return build_warning_embed(
            "Approaching Player Limit",
            f"You have {remaining} player slot{plural} remaining ({player_count}/{limit}).",
        )
    return None


def build_team_list_embed(teams: list[dict[str, object]]) -> discord.Embed:
    """Teams in this server.

    Args:
        teams: Dicts with 'name', 'role_id', 'tier', 'player_count', 'event_count'.
    """
    embed = discord.Embed(title="🏆 Teams", color=COLOR_PRIMARY)
    if not teams:
        embed.description = "No teams have been created yet.\n\nCreate one with `/team create`!"
        embed.set_footer(text=FOOTER)
        return embed
    for t in teams:
        role = f"<@&{t['role_id']}>" if t.get("role_id") else "No role linked"
        embed.add_field(
            name=str(t["name"]),
            value=(
                f"👥 Role: {role}\n"
                f"📊 Players: {t['player_count']} | Events: {t['event_count']}\n"
                f"💎 Tier: {t['tier']}"
            ),
            inline=False,
        )
    embed.set_footer(text=FOOTER)
    return embed


def build_history_embed(
    team: Team, events: list[Event], history_days: int | None
) -> discord.Embed:
    window = f"last {history_days} days" if history_days is not None else "all time"
    embed = discord.Embed(
        title=f"📜 Event History: {team.name}",
        description=f"Showing {window}.",
        color=COLOR_PRIMARY,
    )
    if not events:
        embed.add_field(name="Events", value="No events in this window.", inline=False)
    else:
        lines = [f"**{e.name}** · {e.date} at {e.time}" for e in events[:25]]
        value = "\n".join(lines)
        if len(value) > _FIELD_LIMIT:
            value = value[: _FIELD_LIMIT - 4] + "\n..."
        embed.add_field(name=f"Events ({len(events)})", value=value, inline=False)
    embed.set_footer(text=FOOTER)
    return embed


def format_uptime(seconds: float) -> str:
    """``3d 4h 5m``, dropping leading zero units (minutes always shown)."""
    total = int(seconds)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def build_info_embed(
    totals: dict[str, int], uptime_seconds: float, latency_ms: int, guild_count: int
) -> discord.Embed:
    """Bot-wide statistics for /info."""
    embed = discord.Embed(
        title="🏆 Rollcall - Esports Team Scheduling",
        description=(
            "Track player availability, schedule events and read rosters for "
            "every team in your server."
        ),
        color=COLOR_PRIMARY,
    )
    paid = totals["teams"] - totals["free_teams"]
    embed.add_field(
        name="📊 Statistics",
        value=(
            f"🏆 **Teams:** {totals['teams']} ({totals['free_teams']} free, {paid} paid)\n"
            f"📅 **Events:** {totals['events']:,}\n"
            f"👥 **Players:** {totals['players']:,}\n"
            f"✅ **Responses:** {totals['responses']:,}"
        ),
        inline=False,
    )
    embed.add_field(
        name="⚡ System",
        value=(
            f"⏱️ **Uptime:** {format_uptime(uptime_seconds)}\n"
            f"📡 **Latency:** {latency_ms}ms\n"
            f"📊 **Servers:** {guild_count}"
        ),
        inline=False,
    )
    embed.set_footer(text=FOOTER)
    return embed
