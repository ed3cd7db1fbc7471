"""Daily food shop and the egg/hatch economy.

The shop offers six distinct foods per calendar day, each with a single unit
of stock. Eggs are bought with affinity cards and hatch into a pet the owner
does not have yet.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, tzinfo
from typing import TYPE_CHECKING, NamedTuple

from . import ledger
from .catalog import FOOD_CATALOG, food_by_id, pet_by_id, pet_ids
from .daily import day_key, ensure_daily_reset
from .inventory import add_food
from .pet import ShopItem

if TYPE_CHECKING:
    from .pet import PetState

SHOP_SIZE = 6
SHOP_REROLL_DAILY_LIMIT = 2
EGG_CARD_COST = 1
EGG_HATCH_DELAY = timedelta(hours=6)


class ShopResult(NamedTuple):
    success: bool
    reason: str | None = None
    item: ShopItem | None = None


class HatchResult(NamedTuple):
    success: bool
    reason: str | None = None
    pet_id: str | None = None
    completed: bool = False


class PetRow(NamedTuple):
    id: str
    name: str
    is_current: bool


def draw_daily_items(rng: random.Random) -> list[ShopItem]:
    picked = rng.sample(FOOD_CATALOG, SHOP_SIZE)
    return [ShopItem(id=entry.id, name=entry.name, price=entry.price_energy, stock=1) for entry in picked]


def ensure_daily_shop(
    state: PetState,
    now: datetime,
    tz: tzinfo,
    rng: random.Random | None = None,
) -> bool:
    """Draw a fresh lineup when the day changed or none was stored yet."""
    rng = rng or random.Random()
    today = day_key(now, tz)
    if state.shop_day_key != today:
        state.shop_day_key = today
        state.shop_rerolls_today = 0
        state.shop_items = draw_daily_items(rng)
        return True
    if not state.shop_items:
        state.shop_items = draw_daily_items(rng)
        return True
    return False


def open_shop(
    state: PetState,
    now: datetime,
    tz: tzinfo,
    rng: random.Random | None = None,
) -> list[ShopItem]:
    ensure_daily_reset(state, now, tz)
    ensure_daily_shop(state, now, tz, rng)
    ledger.drain_pending_to_wallet(state)
    return list(state.shop_items or [])


def buy_food(
    state: PetState,
    item_id: str,
    now: datetime,
    tz: tzinfo,
    rng: random.Random | None = None,
) -> ShopResult:
    items = open_shop(state, now, tz, rng)
    item = next((candidate for candidate in items if candidate.id == item_id), None)
    if item is None:
        return ShopResult(False, "That item is not in today's shop.")
    if item.stock <= 0:
        return ShopResult(False, "Sold out.", item)
    if state.wallet_energy < item.price:
        return ShopResult(False, f"Not enough kcal (need {item.price}).", item)
    if food_by_id(item.id) is None:
        return ShopResult(False, "Unknown item.", item)

    spent = ledger.spend(state, item.price)
    if not spent.success:
        return ShopResult(False, spent.reason, item)
    add_food(state, item.id, 1)
    # Stock is binary in the daily shop: one purchase empties the slot.
    item.stock = 0
    return ShopResult(True, None, item)


def reroll_shop(
    state: PetState,
    now: datetime,
    tz: tzinfo,
    rng: random.Random | None = None,
) -> ShopResult:
    rng = rng or random.Random()
    ensure_daily_reset(state, now, tz)
    ensure_daily_shop(state, now, tz, rng)
    if state.shop_rerolls_today >= SHOP_REROLL_DAILY_LIMIT:
        return ShopResult(False, f"Shop reset limit reached for today ({SHOP_REROLL_DAILY_LIMIT}).")
    state.shop_rerolls_today += 1
    state.shop_items = draw_daily_items(rng)
    return ShopResult(True)


def _unowned_pet_ids(state: PetState) -> list[str]:
    owned = set(state.owned_pet_ids)
    return [pet_id for pet_id in pet_ids() if pet_id not in owned]


def buy_egg(state: PetState, now: datetime, tz: tzinfo) -> ShopResult:
    ensure_daily_reset(state, now, tz)

    if not _unowned_pet_ids(state):
        return ShopResult(False, "Every pet has already been collected.")
    if state.egg_owned:
        return ShopResult(False, "You already have an egg.")
    if state.affinity_card_count < EGG_CARD_COST:
        return ShopResult(False, f"Not enough affinity cards (need {EGG_CARD_COST}).")

    state.affinity_card_count -= EGG_CARD_COST
    state.egg_owned = True
    state.egg_hatch_at = now + EGG_HATCH_DELAY
    return ShopResult(True)


def instant_hatch(state: PetState, now: datetime, tz: tzinfo) -> ShopResult:
    ensure_daily_reset(state, now, tz)
    if not state.egg_owned:
        return ShopResult(False, "You don't have an egg.")
    if state.egg_instant_hatch_used_today:
        return ShopResult(False, "Instant hatch was already used today.")
    state.egg_instant_hatch_used_today = True
    state.egg_hatch_at = now
    return ShopResult(True)


def hatch_egg(state: PetState, now: datetime, rng: random.Random | None = None) -> HatchResult:
    if not state.egg_owned:
        return HatchResult(False, "You don't have an egg.")
    if state.egg_hatch_at is None or now < state.egg_hatch_at:
        return HatchResult(False, "The egg is not ready to hatch yet.")

    rng = rng or random.Random()
    state.ensure_initial_pets()
    candidates = _unowned_pet_ids(state)
    state.egg_owned = False
    state.egg_hatch_at = None

    if not candidates:
        return HatchResult(True, None, None, completed=True)

    new_id = rng.choice(candidates)
    state.owned_pet_ids.append(new_id)
    state.current_pet_id = new_id
    return HatchResult(True, None, new_id)


def pet_rows(state: PetState) -> list[PetRow]:
    rows = []
    for pet_id in state.owned_pet_ids:
        entry = pet_by_id(pet_id)
        rows.append(PetRow(pet_id, entry.name if entry else pet_id, pet_id == state.current_pet_id))
    return rows
