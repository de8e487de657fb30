"""Constants shared by the reconciler and the Discord surface."""

from __future__ import annotations

from typing import Literal

Status = Literal["available", "unavailable", "maybe"]

STATUSES: tuple[Status, ...] = ("available", "unavailable", "maybe")

# Status reactions placed on every event announcement.
STATUS_EMOJIS: dict[Status, str] = {
    "available": "✅",
    "unavailable": "❌",
    "maybe": "❓",
}

EMOJI_STATUSES: dict[str, Status] = {emoji: status for status, emoji in STATUS_EMOJIS.items()}

STATUS_LABELS: dict[Status, str] = {
    "available": "Available",
    "unavailable": "Unavailable",
    "maybe": "Maybe",
}

NO_RESPONSE_MARK = "⬜"

# Embed colors
COLOR_PRIMARY = 0x5865F2
COLOR_SUCCESS = 0x57F287
COLOR_WARNING = 0xFEE75C
COLOR_ERROR = 0xED4245

GAMES: tuple[str, ...] = (
    "Valorant",
    "League of Legends",
    "CS2",
    "Rocket League",
    "Dota 2",
    "Overwatch 2",
    "Rainbow Six Siege",
    "Apex Legends",
    "Fortnite",
    "Other",
)


def status_for_emoji(emoji: str) -> Status | None:
    """Map a reaction emoji to a status, ignoring a trailing variation selector."""
    return EMOJI_STATUSES.get(emoji) or EMOJI_STATUSES.get(emoji.rstrip("\ufe0f"))
