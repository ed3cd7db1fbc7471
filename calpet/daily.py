"""Calendar-day boundary: day keys and the reset of day-scoped fields."""

from __future__ import annotations

from datetime import datetime, time, tzinfo
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pet import PetState


def day_key(timestamp: datetime, tz: tzinfo) -> str:
    """Format ``timestamp`` as the ``YYYYMMDD`` date it falls on in ``tz``."""
    return timestamp.astimezone(tz).strftime("%Y%m%d")


def start_of_day(timestamp: datetime, tz: tzinfo) -> datetime:
    local = timestamp.astimezone(tz)
    return datetime.combine(local.date(), time.min, tzinfo=tz)


def is_new_day(state: PetState, now: datetime, tz: tzinfo) -> bool:
    return state.last_day_key != day_key(now, tz)


def ensure_daily_reset(state: PetState, now: datetime, tz: tzinfo) -> bool:
    """Reset the day-scoped fields once per calendar day.

    Returns True when a reset happened. Calling it again on the same day is a
    no-op, so every action may call it first. Display-path readers must not.
    """
    if not is_new_day(state, now, tz):
        return False

    state.bath_accelerated_uses_today = 0
    state.toilet_flag_at = None
    state.toilet_last_raised_at = None
    state.egg_instant_hatch_used_today = False

    # The level carries over; only a missing decay baseline is seeded.
    if state.satisfaction_last_updated_at is None:
        state.satisfaction_last_updated_at = now

    midnight = start_of_day(now, tz)
    if state.last_synced_at is not None and state.last_synced_at < midnight:
        state.last_synced_at = midnight

    state.last_day_key = day_key(now, tz)
    return True
