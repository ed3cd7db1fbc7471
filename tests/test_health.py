from datetime import timedelta

import pytest
from pydantic import ValidationError

from calpet.health import (
    EnergySample,
    SampleFileProvider,
    SampleUpload,
    StepSample,
    SyncResult,
    UnavailableProvider,
    write_upload,
)


def energy(start, kcal, kind="active"):
    return EnergySample(start=start, end=start + timedelta(minutes=10), kcal=kcal, kind=kind)


def steps(start, count):
    return StepSample(start=start, end=start + timedelta(minutes=10), count=count)


@pytest.fixture
def provider(tmp_path, tz):
    return SampleFileProvider(tmp_path, tz)


def test_first_sync_counts_today_only(tmp_path, provider, now):
    write_upload(
        tmp_path,
        42,
        SampleUpload(
            device_id="phone",
            energy=[
                energy(now - timedelta(days=1), 500),
                energy(now - timedelta(hours=3), 120),
                energy(now - timedelta(hours=1), 80, kind="basal"),
            ],
            steps=[steps(now - timedelta(days=1), 9000), steps(now - timedelta(hours=2), 1500)],
        ),
    )

    result = provider.sync_delta(42, None, now)
    assert result == SyncResult(200, now, 1500, 200)


def test_sync_counts_since_watermark(tmp_path, provider, now):
    write_upload(
        tmp_path,
        42,
        SampleUpload(energy=[energy(now - timedelta(hours=3), 120), energy(now - timedelta(minutes=30), 45)]),
    )

    result = provider.sync_delta(42, now - timedelta(hours=1), now)
    assert result.delta_energy == 45
    assert result.today_energy == 165
    assert result.new_watermark == now


def test_resync_at_watermark_is_empty(tmp_path, provider, now):
    write_upload(tmp_path, 42, SampleUpload(energy=[energy(now - timedelta(hours=2), 300)]))
    first = provider.sync_delta(42, None, now)
    assert first.delta_energy == 300
    second = provider.sync_delta(42, first.new_watermark, now)
    assert second.delta_energy == 0
    assert second.today_energy == 300


def test_future_samples_are_ignored(tmp_path, provider, now):
    write_upload(tmp_path, 42, SampleUpload(energy=[energy(now + timedelta(minutes=5), 90)]))
    assert provider.sync_delta(42, None, now).delta_energy == 0


def test_missing_directory_keeps_watermark(provider, now):
    since = now - timedelta(hours=4)
    assert provider.sync_delta(7, since, now) == SyncResult(0, since, 0, 0)


def test_corrupt_file_is_skipped(tmp_path, provider, now):
    write_upload(tmp_path, 42, SampleUpload(energy=[energy(now - timedelta(hours=2), 60)]))
    (tmp_path / "42" / "broken.json").write_text("{not json", encoding="utf-8")
    assert provider.sync_delta(42, None, now).delta_energy == 60


def test_naive_timestamps_are_utc():
    sample = EnergySample.model_validate({"start": "2026-02-10T00:00:00", "end": "2026-02-10T00:10:00", "kcal": 3})
    assert sample.start.utcoffset() == timedelta(0)


def test_negative_readings_are_rejected(now):
    with pytest.raises(ValidationError):
        EnergySample(start=now, end=now, kcal=-1)
    with pytest.raises(ValidationError):
        StepSample(start=now, end=now, count=-5)


def test_unavailable_provider(now):
    since = now - timedelta(hours=1)
    assert UnavailableProvider().sync_delta(1, since, now) == SyncResult(0, since, 0, 0)


def test_fractional_kcal_carry_across_frequent_syncs(tmp_path, provider, now):
    start = now - timedelta(hours=1)
    write_upload(
        tmp_path,
        42,
        SampleUpload(energy=[energy(start + timedelta(minutes=i), 0.9, kind="basal") for i in range(60)]),
    )

    watermark = None
    deposited = 0
    for minute in range(1, 61):
        result = provider.sync_delta(42, watermark, start + timedelta(minutes=minute))
        deposited += result.delta_energy
        watermark = result.new_watermark

    assert result.today_energy >= 53
    assert deposited == result.today_energy
