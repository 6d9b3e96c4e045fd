"""Weekly availability validation and storage"""

from datetime import date

import pytest
from conftest import MONDAY, SUNDAY, ProviderFactory, week

from booking_platform.domain.availability.service import (
    AvailabilityStore,
    parse_week,
    weekday_name,
)
from booking_platform.shared.exceptions import ValidationError


def test_weekday_name():
    assert weekday_name(MONDAY) == "Monday"
    assert weekday_name(SUNDAY) == "Sunday"
    assert weekday_name(date(2030, 1, 12)) == "Saturday"


def test_parse_week_sorts_ranges():
    parsed = parse_week(week(Monday=[("14:00", "17:00"), ("09:00", "12:00")]))
    monday = parsed[1]
    assert monday.is_open
    assert [r.start for r in monday.time_ranges] == [540, 840]
    assert monday.describe_ranges() == "09:00 - 12:00, 14:00 - 17:00"


def test_parse_week_requires_seven_days():
    with pytest.raises(ValidationError, match="exactly 7 days"):
        parse_week(week()[:6])


def test_parse_week_requires_canonical_order():
    days = week()
    days[0], days[1] = days[1], days[0]
    with pytest.raises(ValidationError, match="ordered Sunday through Saturday"):
        parse_week(days)


def test_open_day_needs_ranges():
    days = week()
    days[1]["isOpen"] = True
    with pytest.raises(ValidationError, match="no time ranges"):
        parse_week(days)


def test_range_must_end_after_start():
    with pytest.raises(ValidationError, match="end time must be after start time"):
        parse_week(week(Monday=[("12:00", "09:00")]))


def test_bad_time_format_rejected():
    with pytest.raises(ValidationError):
        parse_week(week(Monday=[("9am", "12:00")]))


def test_unsaved_week_is_closed(db):
    provider = ProviderFactory()
    store = AvailabilityStore(db)
    days = store.get_windows(provider.id)
    assert len(days) == 7
    assert not any(day.is_open for day in days)
    assert not store.get_day(provider.id, MONDAY).bookable


def test_set_windows_replaces_whole_week(db):
    provider = ProviderFactory()
    store = AvailabilityStore(db)
    store.set_windows(provider.id, week(Monday=[("09:00", "12:00")]))
    store.set_windows(provider.id, week(Tuesday=[("10:00", "11:00")]))

    assert not store.get_day(provider.id, MONDAY).is_open
    tuesday = store.get_day(provider.id, date(2030, 1, 8))
    assert tuesday.is_open
    assert tuesday.describe_ranges() == "10:00 - 11:00"


def test_invalid_week_leaves_stored_week_untouched(db):
    provider = ProviderFactory()
    store = AvailabilityStore(db)
    store.set_windows(provider.id, week(Monday=[("09:00", "12:00")]))

    with pytest.raises(ValidationError):
        store.set_windows(provider.id, week(Monday=[("12:00", "09:00")]))

    assert store.get_day(provider.id, MONDAY).describe_ranges() == "09:00 - 12:00"
