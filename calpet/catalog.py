from __future__ import annotations

from typing import NamedTuple


class FoodEntry(NamedTuple):
    id: str
    name: str
    price_energy: int


class PetEntry(NamedTuple):
    id: str
    name: str
    personality: str


FOOD_CATALOG: tuple[FoodEntry, ...] = (
    FoodEntry("onigiri", "Onigiri", 190),
    FoodEntry("gyuudon", "Gyudon", 650),
    FoodEntry("karaage", "Karaage", 450),
    FoodEntry("sandowitch", "Sandwich", 380),
    FoodEntry("nabe", "Hot Pot", 500),
    FoodEntry("barger", "Hamburger", 490),
    FoodEntry("ra-men", "Ramen", 480),
    FoodEntry("sute-ki", "Steak", 550),
    FoodEntry("pizza", "Pizza", 640),
    FoodEntry("cake", "Cake", 480),
    FoodEntry("poteti", "Potato Chips", 325),
    FoodEntry("icecream", "Soft Serve", 250),
    FoodEntry("coffee", "Coffee", 8),
    FoodEntry("coke", "Cola", 160),
    FoodEntry("carry", "Curry Rice", 750),
    FoodEntry("sarad", "Salad", 150),
    FoodEntry("yo-guruto", "Yogurt", 56),
    FoodEntry("pan", "Bread", 150),
    FoodEntry("beer", "Beer", 135),
)

PET_CATALOG: tuple[PetEntry, ...] = (
    PetEntry("pet_000", "Hajime", "genki"),
    PetEntry("pet_001", "Mofumofu", "ottori"),
    PetEntry("pet_002", "Tsuntsun", "tsundere"),
    PetEntry("pet_003", "Kicchiri", "majime"),
    PetEntry("pet_004", "Usappo", "genki"),
    PetEntry("pet_005", "Kumaron", "ottori"),
)

STARTER_PET_ID = "pet_000"

# Affinity points granted by each care action.
CARE_REWARDS = {
    "feed": 10,
    "bath": 15,
    "toilet_bonus": 20,
    "toilet": 10,
    "pet": 5,
}

_FOOD_BY_ID = {entry.id: entry for entry in FOOD_CATALOG}
_PET_BY_ID = {entry.id: entry for entry in PET_CATALOG}


def food_by_id(food_id: str) -> FoodEntry | None:
    return _FOOD_BY_ID.get(food_id)


def pet_by_id(pet_id: str) -> PetEntry | None:
    return _PET_BY_ID.get(pet_id)


def food_ids() -> list[str]:
    return [entry.id for entry in FOOD_CATALOG]


def pet_ids() -> list[str]:
    return [entry.id for entry in PET_CATALOG]
