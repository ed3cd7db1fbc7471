"""Health-data collaborator.

Samples are uploaded by the phone companion as JSON files, one directory per
owner. A sync sums active and basal energy recorded since the watermark,
never looking further back than the start of the current day.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import List, Literal, NamedTuple, Protocol
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError, field_validator

from .daily import start_of_day

logger = logging.getLogger(__name__)


class StepSample(BaseModel):
    start: datetime
    end: datetime
    count: int = Field(..., ge=0)

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class EnergySample(BaseModel):
    start: datetime
    end: datetime
    kcal: float = Field(..., ge=0)
    kind: Literal["active", "basal"] = "active"

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SampleUpload(BaseModel):
    device_id: str = "unknown"
    steps: List[StepSample] = []
    energy: List[EnergySample] = []


class SyncResult(NamedTuple):
    delta_energy: int
    new_watermark: datetime | None
    today_steps: int
    today_energy: int


class HealthProvider(Protocol):
    def sync_delta(self, owner_id: int, since: datetime | None, now: datetime) -> SyncResult:
        ...


class UnavailableProvider:
    """Provider used when no health source is configured."""

    def sync_delta(self, owner_id: int, since: datetime | None, now: datetime) -> SyncResult:
        return SyncResult(0, since, 0, 0)


class SampleFileProvider:
    def __init__(self, root: str | Path, tz: tzinfo) -> None:
        self.root = Path(root)
        self.tz = tz

    def owner_dir(self, owner_id: int) -> Path:
        return self.root / str(owner_id)

    def load_uploads(self, owner_id: int) -> list[SampleUpload]:
        directory = self.owner_dir(owner_id)
        if not directory.is_dir():
            return []
        uploads: list[SampleUpload] = []
        for path in sorted(directory.glob("*.json")):
            try:
                uploads.append(SampleUpload.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, ValidationError) as exc:
                logger.warning("Skipping unreadable sample file %s: %s", path, exc)
        return uploads

    def sync_delta(self, owner_id: int, since: datetime | None, now: datetime) -> SyncResult:
        try:
            uploads = self.load_uploads(owner_id)
        except OSError as exc:
            logger.warning("Health samples unavailable for %s: %s", owner_id, exc)
            return SyncResult(0, since, 0, 0)
        if not uploads:
            return SyncResult(0, since, 0, 0)

        day_start = start_of_day(now, self.tz)
        window_start = day_start if since is None or since < day_start else since

        # Deltas are floor differences of today's running total, so fractional
        # kcal carry into the next sync instead of being dropped.
        today_kcal: list[float] = []
        before_window: list[float] = []
        today_steps = 0
        for upload in uploads:
            for sample in upload.energy:
                if day_start <= sample.start < now:
                    today_kcal.append(sample.kcal)
                    if sample.start < window_start:
                        before_window.append(sample.kcal)
            for sample in upload.steps:
                if day_start <= sample.start < now:
                    today_steps += sample.count

        today_energy = int(math.fsum(today_kcal))
        delta = today_energy - int(math.fsum(before_window))
        return SyncResult(max(0, delta), now, today_steps, today_energy)


def write_upload(root: str | Path, owner_id: int, upload: SampleUpload) -> Path:
    directory = Path(root) / str(owner_id)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{uuid4()}.json"
    payload = json.loads(upload.model_dump_json())
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path
