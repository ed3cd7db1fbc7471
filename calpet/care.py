from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import TYPE_CHECKING, NamedTuple

from .daily import ensure_daily_reset

if TYPE_CHECKING:
    from .pet import PetState

BATH_COOLDOWN = timedelta(hours=8)
BATH_ACCELERANT_SHIFT = timedelta(hours=4)
BATH_ACCELERANT_DAILY_LIMIT = 2

TOILET_MIN_INTERVAL = timedelta(hours=1)
TOILET_BONUS_WINDOW = timedelta(hours=1)


class BathStatus(NamedTuple):
    available: bool
    remaining_seconds: float


class ToiletResult(NamedTuple):
    resolved: bool
    within_bonus_window: bool


# Bath


def can_bath(state: PetState, now: datetime) -> BathStatus:
    if state.bath_last_at is None:
        return BathStatus(True, 0.0)
    remaining = BATH_COOLDOWN - (now - state.bath_last_at)
    if remaining <= timedelta(0):
        return BathStatus(True, 0.0)
    return BathStatus(False, remaining.total_seconds())


def mark_bath_done(state: PetState, now: datetime, tz: tzinfo) -> None:
    ensure_daily_reset(state, now, tz)
    state.bath_last_at = now


def can_use_accelerant(state: PetState, now: datetime) -> tuple[bool, str | None]:
    if state.bath_accelerated_uses_today >= BATH_ACCELERANT_DAILY_LIMIT:
        return False, f"Bath boost limit reached for today ({BATH_ACCELERANT_DAILY_LIMIT})."
    if can_bath(state, now).available:
        return False, "Bath is already available."
    return True, None


def apply_accelerant(state: PetState, now: datetime, tz: tzinfo) -> bool:
    """Shift the cooldown window back instead of clearing it outright."""
    ensure_daily_reset(state, now, tz)
    allowed, _ = can_use_accelerant(state, now)
    if not allowed or state.bath_last_at is None:
        return False
    state.bath_accelerated_uses_today += 1
    state.bath_last_at = state.bath_last_at - BATH_ACCELERANT_SHIFT
    return True


# Toilet


def can_raise_flag(state: PetState, now: datetime) -> bool:
    if state.toilet_flag_at is not None:
        return False
    last = state.toilet_last_raised_at
    if last is not None and now - last < TOILET_MIN_INTERVAL:
        return False
    return True


def raise_flag(state: PetState, now: datetime, tz: tzinfo) -> bool:
    ensure_daily_reset(state, now, tz)
    if not can_raise_flag(state, now):
        return False
    state.toilet_flag_at = now
    state.toilet_last_raised_at = now
    return True


def resolve(state: PetState, now: datetime, tz: tzinfo) -> ToiletResult:
    ensure_daily_reset(state, now, tz)
    flag_at = state.toilet_flag_at
    if flag_at is None:
        return ToiletResult(False, False)
    within = now - flag_at <= TOILET_BONUS_WINDOW
    state.toilet_flag_at = None
    return ToiletResult(True, within)
