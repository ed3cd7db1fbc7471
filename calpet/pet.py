from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo

from .catalog import STARTER_PET_ID
from .daily import day_key

NOTIFICATION_KINDS = ("feed", "bath", "toilet")


@dataclass
class ShopItem:
    id: str
    name: str
    price: int
    stock: int = 1


@dataclass
class PetState:
    owner_id: int
    wallet_energy: int = 0
    pending_energy: int = 0
    last_synced_at: datetime | None = None
    daily_goal_energy: int = 0
    last_day_key: str = ""
    cached_today_steps: int = 0
    cached_today_energy: int = 0
    cached_day_key: str = ""
    affinity_point: int = 0
    affinity_card_count: int = 0
    satisfaction_level: int = 3
    satisfaction_last_updated_at: datetime | None = None
    bath_last_at: datetime | None = None
    bath_accelerated_uses_today: int = 0
    toilet_flag_at: datetime | None = None
    toilet_last_raised_at: datetime | None = None
    egg_owned: bool = False
    egg_hatch_at: datetime | None = None
    egg_instant_hatch_used_today: bool = False
    shop_day_key: str = ""
    shop_items: list[ShopItem] | None = None
    shop_rerolls_today: int = 0
    current_pet_id: str = STARTER_PET_ID
    owned_pet_ids: list[str] = field(default_factory=list)
    owned_food_counts: dict[str, int] = field(default_factory=dict)
    notify_feed: bool = True
    notify_bath: bool = True
    notify_toilet: bool = True

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)

    @classmethod
    def create(cls, owner_id: int, now: datetime, tz: tzinfo) -> PetState:
        today = day_key(now, tz)
        pet = cls(owner_id=owner_id, last_day_key=today, shop_day_key=today)
        pet.ensure_initial_pets()
        return pet

    def ensure_initial_pets(self) -> bool:
        if self.owned_pet_ids:
            return False
        self.owned_pet_ids = [STARTER_PET_ID]
        self.current_pet_id = STARTER_PET_ID
        return True

    def has_toilet_request(self) -> bool:
        return self.toilet_flag_at is not None

    def set_notification(self, kind: str, enabled: bool) -> None:
        if kind not in NOTIFICATION_KINDS:
            raise ValueError(f"notification kind must be one of {', '.join(NOTIFICATION_KINDS)}")
        setattr(self, f"notify_{kind}", enabled)
