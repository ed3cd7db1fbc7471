from datetime import datetime, timedelta, timezone

import pytest

from calpet.pet import PetState


@pytest.fixture
def tz():
    return timezone(timedelta(hours=9))


@pytest.fixture
def now(tz):
    return datetime(2026, 2, 10, 12, 0, tzinfo=tz)


@pytest.fixture
def pet(now, tz):
    return PetState.create(owner_id=42, now=now, tz=tz)
