from dataclasses import asdict
from datetime import timedelta

import pytest

from calpet.satisfaction import (
    SATISFACTION_MAX,
    apply_decay,
    can_feed,
    compute_satisfaction,
    current_satisfaction,
    feed,
)


def test_without_baseline_level_is_unchanged(pet, now):
    pet.satisfaction_level = 2
    snapshot = compute_satisfaction(pet, now + timedelta(hours=9))
    assert snapshot.level == 2
    assert snapshot.effective_last_updated_at is None


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (timedelta(0), 3),
        (timedelta(hours=1, minutes=59), 3),
        (timedelta(hours=2), 2),
        (timedelta(hours=4), 1),
        (timedelta(hours=6), 0),
        (timedelta(hours=10), 0),
    ],
)
def test_decays_one_level_per_two_hours(pet, now, elapsed, expected):
    pet.satisfaction_last_updated_at = now
    assert current_satisfaction(pet, now + elapsed) == expected


def test_partial_progress_is_kept_in_baseline(pet, now):
    pet.satisfaction_last_updated_at = now
    snapshot = compute_satisfaction(pet, now + timedelta(hours=5))
    assert snapshot.level == 1
    assert snapshot.effective_last_updated_at == now + timedelta(hours=4)


def test_reading_does_not_mutate(pet, now):
    pet.satisfaction_last_updated_at = now
    before = asdict(pet)
    current_satisfaction(pet, now + timedelta(days=3))
    can_feed(pet, now + timedelta(days=3))
    assert asdict(pet) == before


def test_decay_is_monotonic(pet, now):
    pet.satisfaction_last_updated_at = now
    levels = [current_satisfaction(pet, now + timedelta(minutes=17 * step)) for step in range(40)]
    assert levels == sorted(levels, reverse=True)


def test_can_feed_only_below_max(pet, now):
    pet.satisfaction_last_updated_at = now
    allowed, reason = can_feed(pet, now)
    assert not allowed
    assert reason
    assert can_feed(pet, now + timedelta(hours=2)) == (True, None)


def test_first_apply_decay_only_seeds_baseline(pet, now, tz):
    assert apply_decay(pet, now, tz) == SATISFACTION_MAX
    assert pet.satisfaction_last_updated_at == now


def test_apply_decay_commits_level_and_baseline(pet, now, tz):
    pet.satisfaction_last_updated_at = now
    assert apply_decay(pet, now + timedelta(hours=5), tz) == 1
    assert pet.satisfaction_level == 1
    assert pet.satisfaction_last_updated_at == now + timedelta(hours=4)
    # Committing twice at the same instant changes nothing.
    assert apply_decay(pet, now + timedelta(hours=5), tz) == 1
    assert pet.satisfaction_last_updated_at == now + timedelta(hours=4)


def test_feed_increments_and_restarts_clock(pet, now, tz):
    pet.satisfaction_level = 1
    pet.satisfaction_last_updated_at = now
    fed_at = now + timedelta(hours=1)

    result = feed(pet, fed_at, tz)
    assert result.did_feed
    assert (result.before, result.after) == (1, 2)
    assert pet.satisfaction_last_updated_at == fed_at
    assert current_satisfaction(pet, fed_at) == 2
    assert current_satisfaction(pet, fed_at + timedelta(hours=1, minutes=59)) == 2
    assert current_satisfaction(pet, fed_at + timedelta(hours=2)) == 1


def test_feed_accounts_for_decay_first(pet, now, tz):
    pet.satisfaction_last_updated_at = now
    result = feed(pet, now + timedelta(hours=4, minutes=30), tz)
    assert (result.before, result.after) == (1, 2)


def test_feed_at_max_fails(pet, now, tz):
    pet.satisfaction_last_updated_at = now
    result = feed(pet, now, tz)
    assert not result.did_feed
    assert result.before == result.after == SATISFACTION_MAX
    assert result.reason
    assert pet.satisfaction_last_updated_at == now


def test_three_feeds_from_empty(pet, now, tz):
    pet.satisfaction_level = 0
    pet.satisfaction_last_updated_at = now
    results = [feed(pet, now + timedelta(minutes=minute), tz) for minute in (0, 1, 2, 3)]
    assert [result.did_feed for result in results] == [True, True, True, False]
    assert pet.satisfaction_level == SATISFACTION_MAX
