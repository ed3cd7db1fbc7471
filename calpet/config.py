from __future__ import annotations

import logging
import os
from datetime import timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


class Settings:
    """Environment-driven configuration for the bot host."""

    def __init__(self) -> None:
        self.db_path: Path = Path(
            os.environ.get("CALPET_DB_PATH", "pet_store.sqlite")
        ).expanduser()
        self.health_dir: Path = Path(
            os.environ.get("CALPET_HEALTH_DIR", "health_samples")
        ).expanduser()
        self.timezone_name: str = os.environ.get("CALPET_TIMEZONE", "Asia/Tokyo")
        self.toilet_chance: float = float(os.environ.get("CALPET_TOILET_CHANCE", "0.2"))
        self.log_level: str = os.environ.get("CALPET_LOG_LEVEL", "INFO").upper()
        self.discord_token: str | None = os.environ.get("DISCORD_TOKEN")
        guild_id = os.environ.get("GUILD_ID")
        self.guild_id: int | None = int(guild_id) if guild_id else None

    @property
    def tz(self) -> tzinfo:
        try:
            return ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, falling back to UTC", self.timezone_name)
            return timezone.utc


settings = Settings()
