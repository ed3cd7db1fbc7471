"""Satisfaction meter.

The level drops by one for every full two hours since its baseline timestamp.
Decay is computed lazily: the read-side helpers never write anything back, and
``apply_decay`` is the single place where the decayed value is committed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import TYPE_CHECKING, NamedTuple

from .daily import ensure_daily_reset

if TYPE_CHECKING:
    from .pet import PetState

SATISFACTION_MAX = 3
DECAY_UNIT = timedelta(hours=2)

FULL_REASON = "Satisfaction is already full."


class SatisfactionSnapshot(NamedTuple):
    level: int
    effective_last_updated_at: datetime | None


class FeedResult(NamedTuple):
    did_feed: bool
    before: int
    after: int
    reason: str | None = None


def _clamp(level: int) -> int:
    return max(0, min(SATISFACTION_MAX, level))


def compute_satisfaction(state: PetState, now: datetime) -> SatisfactionSnapshot:
    current = _clamp(state.satisfaction_level)
    last = state.satisfaction_last_updated_at
    if last is None:
        return SatisfactionSnapshot(current, None)

    elapsed = now - last
    if elapsed <= timedelta(0):
        return SatisfactionSnapshot(current, last)

    steps = elapsed // DECAY_UNIT
    if steps <= 0:
        return SatisfactionSnapshot(current, last)

    # Advance the baseline by whole units only so partial progress is kept.
    return SatisfactionSnapshot(_clamp(current - steps), last + steps * DECAY_UNIT)


def current_satisfaction(state: PetState, now: datetime) -> int:
    return compute_satisfaction(state, now).level


def can_feed(state: PetState, now: datetime) -> tuple[bool, str | None]:
    if current_satisfaction(state, now) >= SATISFACTION_MAX:
        return False, FULL_REASON
    return True, None


def apply_decay(state: PetState, now: datetime, tz: tzinfo) -> int:
    ensure_daily_reset(state, now, tz)

    if state.satisfaction_last_updated_at is None:
        state.satisfaction_last_updated_at = now
        state.satisfaction_level = _clamp(state.satisfaction_level)
        return state.satisfaction_level

    snapshot = compute_satisfaction(state, now)
    state.satisfaction_level = snapshot.level
    if snapshot.effective_last_updated_at is not None:
        state.satisfaction_last_updated_at = snapshot.effective_last_updated_at
    return state.satisfaction_level


def feed(state: PetState, now: datetime, tz: tzinfo) -> FeedResult:
    apply_decay(state, now, tz)

    before = state.satisfaction_level
    if before >= SATISFACTION_MAX:
        return FeedResult(False, before, before, FULL_REASON)

    after = _clamp(before + 1)
    state.satisfaction_level = after
    # Feeding restarts the clock from now, not from the last decay tick.
    state.satisfaction_last_updated_at = now
    return FeedResult(True, before, after)
