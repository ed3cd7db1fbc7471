from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

from .pet import PetState, ShopItem

logger = logging.getLogger(__name__)

# Column name -> definition, in record order. Used both for CREATE TABLE and
# for adding columns to databases written by older versions.
PET_COLUMNS = {
    "wallet_energy": "INTEGER NOT NULL DEFAULT 0",
    "pending_energy": "INTEGER NOT NULL DEFAULT 0",
    "last_synced_at": "TEXT",
    "daily_goal_energy": "INTEGER NOT NULL DEFAULT 0",
    "last_day_key": "TEXT NOT NULL DEFAULT ''",
    "cached_today_steps": "INTEGER NOT NULL DEFAULT 0",
    "cached_today_energy": "INTEGER NOT NULL DEFAULT 0",
    "cached_day_key": "TEXT NOT NULL DEFAULT ''",
    "affinity_point": "INTEGER NOT NULL DEFAULT 0",
    "affinity_card_count": "INTEGER NOT NULL DEFAULT 0",
    "satisfaction_level": "INTEGER NOT NULL DEFAULT 3",
    "satisfaction_last_updated_at": "TEXT",
    "bath_last_at": "TEXT",
    "bath_accelerated_uses_today": "INTEGER NOT NULL DEFAULT 0",
    "toilet_flag_at": "TEXT",
    "toilet_last_raised_at": "TEXT",
    "egg_owned": "INTEGER NOT NULL DEFAULT 0",
    "egg_hatch_at": "TEXT",
    "egg_instant_hatch_used_today": "INTEGER NOT NULL DEFAULT 0",
    "shop_day_key": "TEXT NOT NULL DEFAULT ''",
    "shop_items": "TEXT",
    "shop_rerolls_today": "INTEGER NOT NULL DEFAULT 0",
    "current_pet_id": "TEXT NOT NULL DEFAULT 'pet_000'",
    "owned_pet_ids": "TEXT",
    "owned_food_counts": "TEXT",
    "notify_feed": "INTEGER NOT NULL DEFAULT 1",
    "notify_bath": "INTEGER NOT NULL DEFAULT 1",
    "notify_toilet": "INTEGER NOT NULL DEFAULT 1",
}

DATETIME_FIELDS = (
    "last_synced_at",
    "satisfaction_last_updated_at",
    "bath_last_at",
    "toilet_flag_at",
    "toilet_last_raised_at",
    "egg_hatch_at",
)
BOOL_FIELDS = (
    "egg_owned",
    "egg_instant_hatch_used_today",
    "notify_feed",
    "notify_bath",
    "notify_toilet",
)


class PetStore:
    def __init__(self, db_path: str | Path = "pet_store.sqlite", tz: tzinfo = timezone.utc) -> None:
        self.db_path = Path(db_path)
        self.tz = tz
        self.connection = sqlite3.connect(self.db_path)
        self.connection.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        columns = ",\n".join(f"{name} {definition}" for name, definition in PET_COLUMNS.items())
        cursor = self.connection.cursor()
        cursor.execute(
            f"""
            CREATE TABLE IF NOT EXISTS pets (
                owner_id INTEGER PRIMARY KEY,
                {columns}
            )
            """
        )
        self.connection.commit()
        self._ensure_pet_columns()

    def _ensure_pet_columns(self) -> None:
        cursor = self.connection.cursor()
        cursor.execute("PRAGMA table_info(pets)")
        existing = {row["name"] for row in cursor.fetchall()}
        for column, definition in PET_COLUMNS.items():
            if column not in existing:
                logger.info("Adding missing column pets.%s", column)
                cursor.execute(f"ALTER TABLE pets ADD COLUMN {column} {definition}")
        self.connection.commit()

    def get(self, owner_id: int) -> PetState | None:
        cursor = self.connection.cursor()
        cursor.execute("SELECT * FROM pets WHERE owner_id = ?", (owner_id,))
        row = cursor.fetchone()
        return self._row_to_pet(row) if row else None

    def get_or_create(self, owner_id: int, now: datetime | None = None) -> PetState:
        pet = self.get(owner_id)
        if pet is not None:
            if pet.ensure_initial_pets():
                self.save(pet)
            return pet

        pet = PetState.create(owner_id, now or PetState.now(), self.tz)
        self.save(pet)
        logger.info("Created pet record for owner %s", owner_id)
        return pet

    def save(self, pet: PetState) -> None:
        values = self._pet_to_values(pet)
        names = ["owner_id", *PET_COLUMNS]
        placeholders = ", ".join("?" for _ in names)
        updates = ",\n".join(f"{name}=excluded.{name}" for name in PET_COLUMNS)
        cursor = self.connection.cursor()
        cursor.execute(
            f"""
            INSERT INTO pets ({", ".join(names)})
            VALUES ({placeholders})
            ON CONFLICT(owner_id) DO UPDATE SET
                {updates}
            """,
            [pet.owner_id, *(values[name] for name in PET_COLUMNS)],
        )
        self.connection.commit()

    def list_all(self) -> list[PetState]:
        cursor = self.connection.cursor()
        cursor.execute("SELECT * FROM pets ORDER BY owner_id")
        rows = cursor.fetchall()
        return [self._row_to_pet(row) for row in rows]

    def close(self) -> None:
        self.connection.close()

    def _pet_to_values(self, pet: PetState) -> dict[str, Any]:
        values: dict[str, Any] = {name: getattr(pet, name) for name in PET_COLUMNS}
        for name in DATETIME_FIELDS:
            value = values[name]
            values[name] = value.isoformat() if value else None
        for name in BOOL_FIELDS:
            values[name] = 1 if values[name] else 0
        values["shop_items"] = (
            json.dumps([vars(item) for item in pet.shop_items], ensure_ascii=False)
            if pet.shop_items is not None
            else None
        )
        values["owned_pet_ids"] = json.dumps(pet.owned_pet_ids)
        positive_counts = {key: count for key, count in pet.owned_food_counts.items() if count > 0}
        values["owned_food_counts"] = json.dumps(positive_counts, ensure_ascii=False)
        return values

    def _row_to_pet(self, row: sqlite3.Row) -> PetState:
        data: dict[str, Any] = {name: row[name] for name in PET_COLUMNS}
        for name in DATETIME_FIELDS:
            data[name] = self._parse_datetime(data[name])
        for name in BOOL_FIELDS:
            data[name] = bool(data[name])
        data["shop_items"] = self._decode_shop_items(data["shop_items"])
        data["owned_pet_ids"] = self._decode_pet_ids(data["owned_pet_ids"])
        data["owned_food_counts"] = self._decode_food_counts(data["owned_food_counts"])
        return PetState(owner_id=row["owner_id"], **data)

    @staticmethod
    def _parse_datetime(value: str | None) -> datetime | None:
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            logger.warning("Ignoring malformed timestamp %r", value)
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    @staticmethod
    def _load_json(value: str | None) -> Any:
        if not value:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt JSON blob %r", value[:80])
            return None

    def _decode_shop_items(self, value: str | None) -> list[ShopItem] | None:
        raw = self._load_json(value)
        if not isinstance(raw, list):
            return None
        try:
            return [
                ShopItem(
                    id=str(entry["id"]),
                    name=str(entry["name"]),
                    price=int(entry["price"]),
                    stock=int(entry["stock"]),
                )
                for entry in raw
            ]
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed shop lineup")
            return None

    def _decode_pet_ids(self, value: str | None) -> list[str]:
        raw = self._load_json(value)
        if not isinstance(raw, list):
            return []
        ids: list[str] = []
        for pet_id in raw:
            if isinstance(pet_id, str) and pet_id not in ids:
                ids.append(pet_id)
        return ids

    def _decode_food_counts(self, value: str | None) -> dict[str, int]:
        raw = self._load_json(value)
        if not isinstance(raw, dict):
            return {}
        return {
            str(key): count
            for key, count in raw.items()
            if isinstance(count, int) and not isinstance(count, bool) and count > 0
        }
