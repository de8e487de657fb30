"""Result values returned by the registry and the reconciler.

User errors (limit reached, missing role, vanished entity) are returned as
values so the Discord layer can branch on them when rendering. Storage failures
are system errors and are raised as ``StorageFault``.
"""

from __future__ import annotations

from dataclasses import dataclass

from rollcall.models.constants import Status
from rollcall.models.schedule import Event, Player, Team


class StorageFault(Exception):
    """The storage engine failed. The operation was not applied."""


@dataclass(frozen=True)
class LimitExceeded:
    tier: str
    limit: int
    team_name: str = ""


@dataclass(frozen=True)
class RoleNotMember:
    team: Team


@dataclass(frozen=True)
class EntityNotFound:
    what: str  # "team", "event" or "player"


@dataclass(frozen=True)
class PlayerResolved:
    player: Player
    created: bool = False


@dataclass(frozen=True)
class StatusRecorded:
    event: Event
    team: Team
    player: Player
    status: Status


@dataclass(frozen=True)
class StatusCleared:
    event: Event
    team: Team
    removed: bool  # False when nothing was stored


@dataclass(frozen=True)
class Ignored:
    """Input that does not concern any event (foreign message, unknown emoji)."""

    reason: str


RegistryResult = PlayerResolved | LimitExceeded | EntityNotFound

UserError = LimitExceeded | RoleNotMember | EntityNotFound

Outcome = StatusRecorded | StatusCleared | Ignored | UserError
