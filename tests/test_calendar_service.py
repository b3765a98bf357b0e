from datetime import datetime, timedelta, timezone

from services.calendar_service import day_bounds, ensure_utc, is_expired

IST = 330


def test_day_bounds_uses_local_civil_day():
    # 20:00Z = 01:30 IST the next day
    bounds = day_bounds(datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc), IST)

    assert bounds.start == datetime(2024, 3, 1, 18, 30, tzinfo=timezone.utc)
    assert bounds.end == datetime(2024, 3, 2, 18, 29, 59, 999000, tzinfo=timezone.utc)


def test_day_bounds_end_is_stable_within_one_day():
    morning = datetime(2024, 3, 1, 18, 30, tzinfo=timezone.utc)   # 00:00 IST
    night = datetime(2024, 3, 2, 18, 29, 59, tzinfo=timezone.utc)  # 23:59:59 IST

    assert day_bounds(morning, IST).end == day_bounds(night, IST).end
    assert day_bounds(morning, IST).start == day_bounds(night, IST).start


def test_day_bounds_changes_after_midnight():
    before = datetime(2024, 3, 1, 18, 29, 59, tzinfo=timezone.utc)
    after = datetime(2024, 3, 1, 18, 30, 0, tzinfo=timezone.utc)

    assert day_bounds(after, IST).end - day_bounds(before, IST).end == timedelta(days=1)


def test_day_bounds_treats_naive_as_utc():
    naive = datetime(2024, 3, 1, 12, 0)
    aware = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    assert day_bounds(naive, IST) == day_bounds(aware, IST)


def test_day_bounds_negative_offset():
    # 03:00Z = 22:00 on Feb 29 at UTC-5
    bounds = day_bounds(datetime(2024, 3, 1, 3, 0, tzinfo=timezone.utc), -300)

    assert bounds.start == datetime(2024, 2, 29, 5, 0, tzinfo=timezone.utc)
    assert bounds.end == datetime(2024, 3, 1, 4, 59, 59, 999000, tzinfo=timezone.utc)


def test_is_expired():
    end = datetime(2024, 3, 1, 18, 29, 59, 999000, tzinfo=timezone.utc)

    assert is_expired(None, end)
    assert not is_expired(end, end)
    assert is_expired(end, end + timedelta(milliseconds=1))
    # SQLite 讀回來的是 naive
    assert not is_expired(end.replace(tzinfo=None), end - timedelta(hours=1))


def test_ensure_utc_converts_other_offsets():
    ist = timezone(timedelta(minutes=IST))
    value = datetime(2024, 3, 2, 0, 0, tzinfo=ist)

    assert ensure_utc(value) == datetime(2024, 3, 1, 18, 30, tzinfo=timezone.utc)
    assert ensure_utc(value).tzinfo == timezone.utc
