import random
from dataclasses import asdict
from datetime import timedelta

import pytest

from calpet.catalog import PET_CATALOG, food_by_id
from calpet.inventory import food_count
from calpet.pet import ShopItem
from calpet.shop import (
    EGG_HATCH_DELAY,
    SHOP_SIZE,
    buy_egg,
    buy_food,
    draw_daily_items,
    ensure_daily_shop,
    hatch_egg,
    instant_hatch,
    open_shop,
    pet_rows,
    reroll_shop,
)


@pytest.fixture
def rng():
    return random.Random(1234)


def test_draw_is_six_unique_catalog_items(rng):
    items = draw_daily_items(rng)
    assert len(items) == SHOP_SIZE
    assert len({item.id for item in items}) == SHOP_SIZE
    for item in items:
        entry = food_by_id(item.id)
        assert entry is not None
        assert item.price == entry.price_energy
        assert item.stock == 1


def test_draw_is_deterministic_for_a_seed():
    first = [item.id for item in draw_daily_items(random.Random(99))]
    second = [item.id for item in draw_daily_items(random.Random(99))]
    assert first == second


def test_shop_drawn_once_per_day(pet, now, tz, rng):
    assert ensure_daily_shop(pet, now, tz, rng)
    lineup = [item.id for item in pet.shop_items]
    assert not ensure_daily_shop(pet, now + timedelta(hours=2), tz, rng)
    assert [item.id for item in pet.shop_items] == lineup


def test_new_day_redraws_and_resets_rerolls(pet, now, tz, rng):
    ensure_daily_shop(pet, now, tz, rng)
    pet.shop_rerolls_today = 2
    pet.shop_items[0].stock = 0
    assert ensure_daily_shop(pet, now + timedelta(days=1), tz, rng)
    assert pet.shop_rerolls_today == 0
    assert pet.shop_day_key == "20260211"
    assert all(item.stock == 1 for item in pet.shop_items)


def test_buy_food_marks_item_sold_out(pet, now, tz, rng):
    pet.wallet_energy = 5000
    item = open_shop(pet, now, tz, rng)[0]

    result = buy_food(pet, item.id, now, tz, rng)
    assert result.success
    assert pet.wallet_energy == 5000 - item.price
    assert food_count(pet, item.id) == 1
    assert pet.shop_items[0].stock == 0

    again = buy_food(pet, item.id, now, tz, rng)
    assert not again.success
    assert again.reason == "Sold out."
    assert pet.wallet_energy == 5000 - item.price
    assert food_count(pet, item.id) == 1


def test_buy_food_settles_pending_first(pet, now, tz, rng):
    pet.pending_energy = 1000
    item = open_shop(pet, now, tz, rng)[0]
    assert buy_food(pet, item.id, now, tz, rng).success
    assert pet.pending_energy == 0
    assert pet.wallet_energy == 1000 - item.price


def test_buy_food_insufficient_wallet(pet, now, tz, rng):
    item = open_shop(pet, now, tz, rng)[0]
    result = buy_food(pet, item.id, now, tz, rng)
    assert not result.success
    assert "Not enough kcal" in result.reason
    assert pet.shop_items[0].stock == 1
    assert pet.owned_food_counts == {}


def test_buy_food_not_in_lineup(pet, now, tz, rng):
    pet.wallet_energy = 5000
    result = buy_food(pet, "not-a-food", now, tz, rng)
    assert not result.success
    assert pet.wallet_energy == 5000


def test_buy_food_unknown_catalog_id(pet, now, tz, rng):
    ensure_daily_shop(pet, now, tz, rng)
    pet.shop_items = [ShopItem(id="mystery", name="Mystery", price=10, stock=1)]
    pet.wallet_energy = 5000
    result = buy_food(pet, "mystery", now, tz, rng)
    assert not result.success
    assert result.reason == "Unknown item."
    assert pet.wallet_energy == 5000
    assert pet.shop_items[0].stock == 1


def test_reroll_is_capped(pet, now, tz, rng):
    pet.wallet_energy = 5000
    item = open_shop(pet, now, tz, rng)[0]
    buy_food(pet, item.id, now, tz, rng)

    assert reroll_shop(pet, now, tz, rng).success
    assert all(entry.stock == 1 for entry in pet.shop_items)
    assert reroll_shop(pet, now, tz, rng).success
    result = reroll_shop(pet, now, tz, rng)
    assert not result.success
    assert "limit" in result.reason
    assert pet.shop_rerolls_today == 2


def test_buy_egg_requires_card(pet, now, tz):
    result = buy_egg(pet, now, tz)
    assert not result.success
    assert "card" in result.reason
    assert not pet.egg_owned

    pet.affinity_card_count = 2
    assert buy_egg(pet, now, tz).success
    assert pet.egg_owned
    assert pet.egg_hatch_at == now + EGG_HATCH_DELAY
    assert pet.affinity_card_count == 1

    second = buy_egg(pet, now, tz)
    assert not second.success
    assert pet.affinity_card_count == 1


def test_buy_egg_refused_when_collection_complete(pet, now, tz):
    pet.owned_pet_ids = [entry.id for entry in PET_CATALOG]
    pet.affinity_card_count = 1
    assert not buy_egg(pet, now, tz).success
    assert pet.affinity_card_count == 1


def test_instant_hatch_once_per_day(pet, now, tz):
    assert not instant_hatch(pet, now, tz).success

    pet.affinity_card_count = 1
    buy_egg(pet, now, tz)
    later = now + timedelta(minutes=10)
    assert instant_hatch(pet, later, tz).success
    assert pet.egg_hatch_at == later
    assert not instant_hatch(pet, later, tz).success

    tomorrow = now + timedelta(days=1)
    assert instant_hatch(pet, tomorrow, tz).success


def test_hatch_waits_for_timer(pet, now, tz, rng):
    pet.affinity_card_count = 1
    buy_egg(pet, now, tz)
    result = hatch_egg(pet, now + timedelta(hours=5, minutes=59), rng)
    assert not result.success
    assert pet.egg_owned


def test_hatch_adds_unowned_pet(pet, now, tz, rng):
    pet.affinity_card_count = 1
    buy_egg(pet, now, tz)
    result = hatch_egg(pet, now + EGG_HATCH_DELAY, rng)
    assert result.success
    assert not result.completed
    assert result.pet_id != "pet_000"
    assert pet.owned_pet_ids == ["pet_000", result.pet_id]
    assert pet.current_pet_id == result.pet_id
    assert not pet.egg_owned
    assert pet.egg_hatch_at is None


def test_hatch_with_complete_collection(pet, now, rng):
    pet.owned_pet_ids = [entry.id for entry in PET_CATALOG]
    pet.egg_owned = True
    pet.egg_hatch_at = now
    result = hatch_egg(pet, now, rng)
    assert result.success
    assert result.completed
    assert result.pet_id is None
    assert len(pet.owned_pet_ids) == len(PET_CATALOG)
    assert not pet.egg_owned
    assert pet.egg_hatch_at is None


def test_hatch_without_egg(pet, now, rng):
    assert not hatch_egg(pet, now, rng).success


def test_pet_rows(pet):
    pet.owned_pet_ids = ["pet_000", "pet_003"]
    pet.current_pet_id = "pet_003"
    rows = pet_rows(pet)
    assert [(row.id, row.is_current) for row in rows] == [("pet_000", False), ("pet_003", True)]
    assert rows[1].name == "Kicchiri"


def test_failed_egg_purchase_leaves_state_alone(pet, now, tz):
    pet.owned_pet_ids = []
    before = asdict(pet)
    assert not buy_egg(pet, now, tz).success
    assert asdict(pet) == before
