import random
from datetime import datetime, timedelta, timezone

from calpet import actions, ledger, shop
from calpet.catalog import CARE_REWARDS
from calpet.pet import PetState

TZ = timezone(timedelta(hours=9))


def simulate(days: int, kcal_per_day: int, seed: int = 7) -> PetState:
    rng = random.Random(seed)
    start = datetime(2026, 2, 1, 8, 0, tzinfo=TZ)
    pet = PetState.create(owner_id=1, now=start, tz=TZ)
    for day in range(days):
        morning = start + timedelta(days=day)
        ledger.deposit_pending(pet, kcal_per_day)
        items = shop.open_shop(pet, morning, TZ, rng)
        for item in sorted(items, key=lambda candidate: candidate.price):
            shop.buy_food(pet, item.id, morning, TZ, rng)
        for hour in (0, 4, 8, 12):
            now = morning + timedelta(hours=hour)
            for food_id in list(pet.owned_food_counts):
                if actions.give_food(pet, food_id, now, TZ).success:
                    break
            actions.take_bath(pet, now, TZ)
            actions.tend_toilet(pet, now, TZ, rng)
            actions.tend_toilet(pet, now + timedelta(minutes=30), TZ, rng)
        if pet.affinity_card_count and not pet.egg_owned:
            shop.buy_egg(pet, morning, TZ)
        if pet.egg_owned:
            shop.instant_hatch(pet, morning + timedelta(hours=13), TZ)
            shop.hatch_egg(pet, morning + timedelta(hours=13), rng)
    return pet


def main() -> None:
    print(f"rewards: {CARE_REWARDS}")
    for days in (1, 3, 7, 14):
        pet = simulate(days, kcal_per_day=2000)
        print(
            f"day {days}: wallet={pet.wallet_energy} cards={pet.affinity_card_count} "
            f"affinity={pet.affinity_point} pets={len(pet.owned_pet_ids)}"
        )


if __name__ == "__main__":
    main()
