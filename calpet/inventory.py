from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from .catalog import FOOD_CATALOG, FoodEntry

if TYPE_CHECKING:
    from .pet import PetState


def food_count(state: PetState, food_id: str) -> int:
    return max(0, state.owned_food_counts.get(food_id, 0))


def add_food(state: PetState, food_id: str, count: int = 1) -> bool:
    add = max(0, count)
    if add == 0:
        return False
    state.owned_food_counts[food_id] = food_count(state, food_id) + add
    return True


def consume_food(state: PetState, food_id: str, count: int = 1) -> bool:
    use = max(0, count)
    if use == 0:
        return False
    current = food_count(state, food_id)
    if current < use:
        return False
    remaining = current - use
    if remaining <= 0:
        state.owned_food_counts.pop(food_id, None)
    else:
        state.owned_food_counts[food_id] = remaining
    return True


def first_owned_food_id(state: PetState, ids: Iterable[str]) -> str | None:
    for food_id in ids:
        if food_count(state, food_id) > 0:
            return food_id
    return None


def owned_foods(state: PetState) -> list[tuple[FoodEntry, int]]:
    return [
        (entry, food_count(state, entry.id))
        for entry in FOOD_CATALOG
        if food_count(state, entry.id) > 0
    ]
