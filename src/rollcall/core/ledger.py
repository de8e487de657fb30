"""Response ledger: at most one status row per (player, event).

Each call is one statement in its own session, so a failure can never leave a
half-applied change behind.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from rollcall.core.outcomes import EntityNotFound, StorageFault
from rollcall.db.engine import get_session
from rollcall.db.repository import Repository
from rollcall.models.constants import Status
from rollcall.models.schedule import ResponseRecord

logger = logging.getLogger(__name__)


class ResponseLedger:
    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def set_status(
        self, player_id: str, event_id: str, status: Status
    ) -> ResponseRecord | EntityNotFound:
        """Upsert the player's status for the event.

        Returns ``EntityNotFound`` when the player or the event was deleted after
        the caller resolved it (the foreign key refuses the row).
        """
        try:
            async with get_session(self.engine) as session:
                row = await Repository(session).upsert_response(player_id, event_id, status)
                return ResponseRecord.model_validate(row)
        except IntegrityError:
            missing = await self._missing_parent(player_id, event_id)
            logger.info(
                "response_upsert_orphaned player=%s event=%s missing=%s",
                player_id,
                event_id,
                missing,
            )
            return EntityNotFound(missing)
        except SQLAlchemyError as exc:
            logger.exception(
                "response_upsert_failed player=%s event=%s status=%s", player_id, event_id, status
            )
            raise StorageFault("response upsert failed") from exc

    async def clear_status(self, player_id: str, event_id: str) -> bool:
        """Delete the player's response. Returns False when nothing was stored."""
        try:
            async with get_session(self.engine) as session:
                return await Repository(session).delete_response(player_id, event_id)
        except SQLAlchemyError as exc:
            logger.exception("response_delete_failed player=%s event=%s", player_id, event_id)
            raise StorageFault("response delete failed") from exc

    async def status_for(self, player_id: str, event_id: str) -> Status | None:
        try:
            async with get_session(self.engine) as session:
                row = await Repository(session).get_response(player_id, event_id)
                return row.status if row else None  # type: ignore[return-value]
        except SQLAlchemyError as exc:
            logger.exception("response_lookup_failed player=%s event=%s", player_id, event_id)
            raise StorageFault("response lookup failed") from exc

    async def _missing_parent(self, player_id: str, event_id: str) -> str:
        try:
            async with get_session(self.engine) as session:
                event = await Repository(session).get_event(event_id)
        except SQLAlchemyError as exc:
            logger.exception("response_parent_lookup_failed event=%s", event_id)
            raise StorageFault("response parent lookup failed") from exc
        return "event" if event is None else "player"
