"""Tests for datetime utilities."""

from datetime import date, datetime, timedelta, timezone

from recipe_hub.utils.datetime_utils import to_storage_utc, to_utc, utc_now, years_between


def test_utc_now_is_aware():
    assert utc_now().tzinfo is timezone.utc


def test_to_utc_attaches_zone_to_naive():
    assert to_utc(datetime(2024, 1, 1, 10)) == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert to_utc(None) is None


def test_to_storage_utc_converts_offsets():
    plus8 = timezone(timedelta(hours=8))
    stored = to_storage_utc(datetime(2024, 1, 1, 10, tzinfo=plus8))
    assert stored == datetime(2024, 1, 1, 2, 0)
    assert stored.tzinfo is None


def test_to_storage_utc_keeps_naive_and_none():
    assert to_storage_utc(datetime(2024, 1, 1, 10)) == datetime(2024, 1, 1, 10)
    assert to_storage_utc(None) is None


def test_years_between():
    assert years_between(date(2000, 5, 20), date(2020, 5, 19)) == 19
    assert years_between(date(2000, 5, 20), date(2020, 5, 20)) == 20
