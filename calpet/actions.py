"""Care actions as the player triggers them.

Each action checks the relevant state machine, commits it, and grants the
affinity reward for that kind of care.
"""

from __future__ import annotations

import random
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, NamedTuple

from . import care, satisfaction
from .affinity import AffinityResult, add_affinity
from .catalog import CARE_REWARDS, food_by_id
from .daily import ensure_daily_reset
from .inventory import consume_food, food_count

if TYPE_CHECKING:
    from .pet import PetState

TOILET_FLAG_CHANCE = 0.2


class CareOutcome(NamedTuple):
    success: bool
    reason: str | None = None
    affinity: AffinityResult | None = None
    detail: str | None = None


def format_remaining(seconds: float) -> str:
    minutes = int(seconds + 59) // 60
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"


def give_food(state: PetState, food_id: str, now: datetime, tz: tzinfo) -> CareOutcome:
    ensure_daily_reset(state, now, tz)
    food = food_by_id(food_id)
    if food is None:
        return CareOutcome(False, "Pick a food first.")
    allowed, reason = satisfaction.can_feed(state, now)
    if not allowed:
        return CareOutcome(False, reason)
    if food_count(state, food_id) <= 0:
        return CareOutcome(False, f"You don't have any {food.name}.")

    result = satisfaction.feed(state, now, tz)
    if not result.did_feed:
        return CareOutcome(False, result.reason)
    consume_food(state, food_id, 1)
    gained = add_affinity(state, CARE_REWARDS["feed"])
    return CareOutcome(True, None, gained, food.name)


def take_bath(state: PetState, now: datetime, tz: tzinfo) -> CareOutcome:
    ensure_daily_reset(state, now, tz)
    status = care.can_bath(state, now)
    if not status.available:
        return CareOutcome(False, f"Bath cooldown: {format_remaining(status.remaining_seconds)} left.")
    care.mark_bath_done(state, now, tz)
    return CareOutcome(True, None, add_affinity(state, CARE_REWARDS["bath"]))


def boost_bath(state: PetState, now: datetime, tz: tzinfo) -> CareOutcome:
    ensure_daily_reset(state, now, tz)
    allowed, reason = care.can_use_accelerant(state, now)
    if not allowed or not care.apply_accelerant(state, now, tz):
        return CareOutcome(False, reason)
    status = care.can_bath(state, now)
    if status.available:
        return CareOutcome(True, detail="ready")
    return CareOutcome(True, detail=format_remaining(status.remaining_seconds))


def maybe_raise_toilet_flag(
    state: PetState,
    now: datetime,
    tz: tzinfo,
    rng: random.Random | None = None,
    chance: float = TOILET_FLAG_CHANCE,
) -> bool:
    ensure_daily_reset(state, now, tz)
    if not care.can_raise_flag(state, now):
        return False
    rng = rng or random.Random()
    if rng.random() >= chance:
        return False
    return care.raise_flag(state, now, tz)


def tend_toilet(
    state: PetState,
    now: datetime,
    tz: tzinfo,
    rng: random.Random | None = None,
    chance: float = TOILET_FLAG_CHANCE,
) -> CareOutcome:
    ensure_daily_reset(state, now, tz)
    if not state.has_toilet_request():
        if maybe_raise_toilet_flag(state, now, tz, rng, chance):
            return CareOutcome(True, detail="raised")
        return CareOutcome(False, "No toilet request right now.")

    result = care.resolve(state, now, tz)
    if not result.resolved:
        return CareOutcome(False, "No toilet request right now.")
    key = "toilet_bonus" if result.within_bonus_window else "toilet"
    return CareOutcome(True, None, add_affinity(state, CARE_REWARDS[key]), key)


def pet_pet(state: PetState) -> CareOutcome:
    return CareOutcome(True, None, add_affinity(state, CARE_REWARDS["pet"]))
