"""Discord bot helpers: DB session context and member permission checks."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import discord
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.db.engine import get_session
from rollcall.db.repository import Repository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def db_session(
    engine: AsyncEngine,
) -> AsyncGenerator[Repository, None]:
    """Yield a Repository bound to a fresh async session."""
    async with get_session(engine) as session:
        yield Repository(session)


def member_role_ids(member: discord.abc.User | None) -> frozenset[str]:
    """Role ids held by *member*, as strings. Plain users (DMs) hold none."""
    roles = getattr(member, "roles", None) or []
    return frozenset(str(role.id) for role in roles)


def can_manage_server(member: discord.abc.User | None) -> bool:
    """True for members with Manage Server or Administrator."""
    perms = getattr(member, "guild_permissions", None)
    if perms is None:
        return False
    return bool(perms.administrator or perms.manage_guild)


def is_admin(member: discord.abc.User | None) -> bool:
    perms = getattr(member, "guild_permissions", None)
    return bool(perms is not None and perms.administrator)
