"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings

Tier = Literal["free", "starter", "pro", "enterprise"]

TIERS: tuple[Tier, ...] = ("free", "starter", "pro", "enterprise")


class TierLimits(BaseModel):
    """Per-tier caps. ``None`` means unbounded."""

    max_players: int | None = None
    history_days: int | None = None

    model_config = {"frozen": True}


class Settings(BaseSettings):
    """Rollcall configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Discord
    discord_bot_token: str = ""
    discord_guild_id: str = ""
    discord_enabled: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///rollcall.db"

    # Environment
    rollcall_env: str = "development"

    # Tier limits
    rollcall_free_max_players: int = 15
    rollcall_free_history_days: int = 30

    # Reconciliation
    rollcall_reaction_debounce_ms: int = 300
    rollcall_collector_timeout: int = 300  # seconds an interactive menu stays live

    # Retention sweep
    rollcall_cleanup_interval_hours: int = 24

    # Logging
    rollcall_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_limits(self) -> Settings:
        if self.rollcall_free_max_players < 1:
            raise ValueError("ROLLCALL_FREE_MAX_PLAYERS must be at least 1")
        if self.rollcall_reaction_debounce_ms < 0:
            raise ValueError("ROLLCALL_REACTION_DEBOUNCE_MS cannot be negative")
        return self

    @model_validator(mode="after")
    def _require_token_in_production(self) -> Settings:
        """A production deploy with Discord switched on must carry a token."""
        if (
            self.rollcall_env == "production"
            and self.discord_enabled
            and not self.discord_bot_token
        ):
            raise ValueError("DISCORD_BOT_TOKEN must be set when DISCORD_ENABLED is true")
        return self

    @property
    def reaction_debounce_seconds(self) -> float:
        return self.rollcall_reaction_debounce_ms / 1000

    def tier_limits(self) -> dict[str, TierLimits]:
        """Return the tier name → limits mapping consumed by the limit evaluator.

        Only the free tier is capped. Paid tiers keep every event and accept
        any number of players.
        """
        return {
            "free": TierLimits(
                max_players=self.rollcall_free_max_players,
                history_days=self.rollcall_free_history_days,
            ),
            "starter": TierLimits(),
            "pro": TierLimits(),
            "enterprise": TierLimits(),
        }
