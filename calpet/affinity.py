from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from .pet import PetState

AFFINITY_MAX = 100


class AffinityResult(NamedTuple):
    before: int
    after: int
    cards_gained: int
    did_wrap: bool
    did_reach_max: bool


def add_affinity(state: PetState, points: int, max_meter: int = AFFINITY_MAX) -> AffinityResult:
    """Add points to the meter, turning every full lap into one reward card."""
    if max_meter <= 0:
        raise ValueError("max_meter must be positive")
    before = state.affinity_point
    total = before + max(0, points)
    did_reach_max = before < max_meter <= total

    if total >= max_meter:
        cards = total // max_meter
        state.affinity_card_count += cards
        state.affinity_point = total % max_meter
        return AffinityResult(before, state.affinity_point, cards, True, did_reach_max)

    state.affinity_point = total
    return AffinityResult(before, total, 0, False, did_reach_max)
