"""Presentation sink backed by a discord.py client.

Everything here is best effort: a user with closed DMs, a deleted message or a
missing permission is logged and swallowed so reconciliation carries on.
"""

from __future__ import annotations

import logging

import discord

from rollcall.core.outcomes import UserError
from rollcall.discord.embeds import build_user_error_embed
from rollcall.models.constants import EMOJI_STATUSES

logger = logging.getLogger(__name__)


class DiscordSink:
    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def notify(self, user_id: str, error: UserError) -> None:
        """DM the user why their reaction was refused."""
        try:
            user = self.client.get_user(int(user_id)) or await self.client.fetch_user(int(user_id))
            await user.send(embed=build_user_error_embed(error))
        except (discord.Forbidden, discord.HTTPException) as exc:
            logger.info("notify_dm_failed user=%s err=%s", user_id, exc)

    async def remove_reaction(
        self, channel_id: str, message_id: str, user_id: str, emoji: str
    ) -> None:
        try:
            message = self._partial_message(channel_id, message_id)
            await message.remove_reaction(emoji, discord.Object(id=int(user_id)))
        except (discord.Forbidden, discord.NotFound, discord.HTTPException) as exc:
            logger.info(
                "remove_reaction_failed user=%s message=%s emoji=%s err=%s",
                user_id,
                message_id,
                emoji,
                exc,
            )

    async def status_emojis(self, channel_id: str, message_id: str, user_id: str) -> set[str]:
        """Status emojis the user still has on the message (empty if unknown)."""
        held: set[str] = set()
        try:
            message = await self._partial_message(channel_id, message_id).fetch()
            for reaction in message.reactions:
                emoji = str(reaction.emoji)
                if emoji not in EMOJI_STATUSES:
                    continue
                async for user in reaction.users():
                    if str(user.id) == user_id:
                        held.add(emoji)
                        break
        except (discord.Forbidden, discord.NotFound, discord.HTTPException) as exc:
            logger.info("status_emojis_failed user=%s message=%s err=%s", user_id, message_id, exc)
        return held

    def _partial_message(self, channel_id: str, message_id: str) -> discord.PartialMessage:
        channel = self.client.get_partial_messageable(int(channel_id))
        return channel.get_partial_message(int(message_id))
