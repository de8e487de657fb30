"""Read-only team and roster API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from rollcall.api.deps import EngineDep, RepoDep
from rollcall.core.directory import TeamDirectory
from rollcall.core.outcomes import StorageFault
from rollcall.core.roster import load_roster

router = APIRouter(prefix="/api", tags=["teams"])


@router.get("/teams")
async def list_teams(guild_id: str, repo: RepoDep) -> dict:
    """List a guild's teams with player and event counts."""
    teams = await repo.get_teams_for_guild(guild_id)
    return {
        "data": [
            {
                "id": t.id,
                "name": t.name,
                "role_id": t.role_id,
                "tier": t.tier,
                "player_count": await repo.count_players(t.id),
                "event_count": await repo.count_events(t.id),
            }
            for t in teams
        ],
    }


@router.get("/events/{event_id}/roster")
async def get_event_roster(event_id: str, engine: EngineDep) -> dict:
    """Roster for one event, bucketed by status."""
    try:
        ctx = await TeamDirectory(engine).event_by_id(event_id)
        if ctx is None:
            raise HTTPException(404, "Event not found")
        roster = await load_roster(engine, ctx)
    except StorageFault as exc:
        raise HTTPException(503, "Storage unavailable") from exc
    return {
        "data": {
            "event": {
                "id": ctx.event.id,
                "name": ctx.event.name,
                "date": ctx.event.date,
                "time": ctx.event.time,
                "team_id": ctx.team.id,
                "team_name": ctx.team.name,
            },
            "roster": roster.to_dict(),
            "total": roster.total,
        },
    }
