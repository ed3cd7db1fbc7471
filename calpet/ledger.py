from __future__ import annotations

from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, NamedTuple

from .daily import day_key

if TYPE_CHECKING:
    from .health import SyncResult
    from .pet import PetState


class SpendResult(NamedTuple):
    success: bool
    reason: str | None = None


class CacheUpdateResult(NamedTuple):
    steps_to_use: int
    energy_to_use: int
    did_update_steps: bool
    did_update_energy: bool


def deposit_pending(state: PetState, delta: int) -> int:
    amount = max(0, delta)
    state.pending_energy += amount
    return amount


def drain_pending_to_wallet(state: PetState) -> int:
    """Move all pending energy into the wallet and return the amount moved."""
    delta = max(0, state.pending_energy)
    if delta == 0:
        return 0
    state.wallet_energy += delta
    state.pending_energy = 0
    return delta


def spend(state: PetState, amount: int) -> SpendResult:
    if amount <= 0:
        return SpendResult(False, "Amount must be positive.")
    if state.wallet_energy < amount:
        return SpendResult(False, f"Not enough kcal (need {amount}).")
    state.wallet_energy -= amount
    return SpendResult(True)


def update_today_cache(
    state: PetState,
    fetched_steps: int,
    fetched_energy: int,
    now: datetime,
    tz: tzinfo,
) -> CacheUpdateResult:
    """Store today's totals, keeping a positive cached value over a fresh zero."""
    today = day_key(now, tz)
    if state.cached_day_key != today:
        state.cached_today_steps = 0
        state.cached_today_energy = 0
        state.cached_day_key = today

    fetched_steps = max(0, fetched_steps)
    fetched_energy = max(0, fetched_energy)
    protect_steps = fetched_steps == 0 and state.cached_today_steps > 0
    protect_energy = fetched_energy == 0 and state.cached_today_energy > 0

    if not protect_steps:
        state.cached_today_steps = fetched_steps
    if not protect_energy:
        state.cached_today_energy = fetched_energy

    return CacheUpdateResult(
        steps_to_use=state.cached_today_steps,
        energy_to_use=state.cached_today_energy,
        did_update_steps=not protect_steps,
        did_update_energy=not protect_energy,
    )


def apply_sync(state: PetState, result: SyncResult, now: datetime, tz: tzinfo) -> int:
    """Fold one health sync into the state and return the energy deposited."""
    state.last_synced_at = result.new_watermark
    update_today_cache(state, result.today_steps, result.today_energy, now, tz)
    return deposit_pending(state, result.delta_energy)


def set_daily_goal(state: PetState, goal: int) -> bool:
    if goal <= 0:
        return False
    state.daily_goal_energy = goal
    return True


def goal_progress(state: PetState) -> float:
    # Above 1.0 the ring starts a second lap.
    if state.daily_goal_energy <= 0:
        return 0.0
    return state.cached_today_energy / state.daily_goal_energy
