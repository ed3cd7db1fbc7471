"""Background upkeep for every stored pet.

One tick loads, updates and saves each pet without yielding to the event
loop, and hands back the reminders to send. Sending happens afterwards, so a
command that runs while a DM is in flight never has its write overwritten.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, NamedTuple

from . import actions, care, ledger, satisfaction
from .daily import ensure_daily_reset

if TYPE_CHECKING:
    from .health import HealthProvider
    from .pet import PetState
    from .pet_store import PetStore

logger = logging.getLogger(__name__)

TOILET_MESSAGE = "🚽 Your pet needs the toilet! Tend to it within an hour for a bonus."
HUNGRY_MESSAGE = "🥣 Your pet is hungry."
BATH_MESSAGE = "🛁 Bath time is available again."


class Reminder(NamedTuple):
    owner_id: int
    message: str


def sync_energy(pet: PetState, provider: HealthProvider, now: datetime, tz: tzinfo) -> int:
    try:
        result = provider.sync_delta(pet.owner_id, pet.last_synced_at, now)
    except Exception:
        logger.exception("Health sync failed for owner %s", pet.owner_id)
        return 0
    deposited = ledger.apply_sync(pet, result, now, tz)
    if deposited:
        logger.info("Owner %s earned %s kcal", pet.owner_id, deposited)
    return deposited


def run_care_tick(
    store: PetStore,
    provider: HealthProvider,
    now: datetime,
    previous_tick: datetime,
    tz: tzinfo,
    rng: random.Random | None = None,
    toilet_chance: float = actions.TOILET_FLAG_CHANCE,
) -> list[Reminder]:
    reminders: list[Reminder] = []
    for pet in store.list_all():
        ensure_daily_reset(pet, now, tz)
        sync_energy(pet, provider, now, tz)
        level_before = satisfaction.current_satisfaction(pet, previous_tick)
        level_after = satisfaction.apply_decay(pet, now, tz)
        raised = actions.maybe_raise_toilet_flag(pet, now, tz, rng, toilet_chance)
        store.save(pet)

        if raised and pet.notify_toilet:
            reminders.append(Reminder(pet.owner_id, TOILET_MESSAGE))
        if level_before > 0 and level_after == 0 and pet.notify_feed:
            reminders.append(Reminder(pet.owner_id, HUNGRY_MESSAGE))
        if pet.notify_bath and pet.bath_last_at is not None:
            ready_at = pet.bath_last_at + care.BATH_COOLDOWN
            if previous_tick < ready_at <= now:
                reminders.append(Reminder(pet.owner_id, BATH_MESSAGE))
    return reminders
