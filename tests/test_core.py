"""
Tests for slot generation, overlap detection and the availability calculator.
"""

from datetime import datetime

import pytest

from barberbook.core import (
    CLOSED_MESSAGE,
    BookedInterval,
    ShopAvailabilityConfig,
    day_of_week,
    generate_slots,
    get_available_slots,
    intervals_overlap,
    overlaps,
    to_minutes,
)

from conftest import MONDAY, SUNDAY


def at(hhmm: str, day=MONDAY) -> datetime:
    hour, minute = map(int, hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute)


class TestGenerateSlots:
    """Tests for generate_slots."""

    def test_full_day_default_step(self):
        slots = generate_slots("09:00", "18:00", 30)

        assert len(slots) == 18
        assert slots[0] == "09:00"
        assert slots[-1] == "17:30"

    def test_slots_stay_inside_opening_hours(self):
        for open_time, close_time, step in [
            ("09:00", "18:00", 30),
            ("08:15", "12:40", 25),
            ("00:00", "23:59", 7),
            ("10:00", "10:45", 60),
        ]:
            for slot in generate_slots(open_time, close_time, step):
                assert to_minutes(open_time) <= to_minutes(slot) < to_minutes(close_time)

    def test_open_equals_close_yields_nothing(self):
        assert generate_slots("09:00", "09:00", 30) == []

    def test_open_after_close_yields_nothing(self):
        assert generate_slots("18:00", "09:00", 30) == []

    def test_step_larger_than_window(self):
        assert generate_slots("09:00", "09:45", 60) == ["09:00"]
        assert generate_slots("09:00", "09:45", 60, duration_minutes=30) == ["09:00"]
        assert generate_slots("09:00", "09:45", 60, duration_minutes=60) == []

    def test_duration_filter_respects_closing_time(self):
        slots = generate_slots("09:00", "18:00", 30, duration_minutes=60)

        assert slots[-1] == "17:00"
        assert "17:30" not in slots

    def test_invalid_step_raises(self):
        with pytest.raises(ValueError):
            generate_slots("09:00", "18:00", 0)

    def test_is_deterministic(self):
        assert generate_slots("09:00", "18:00", 15) == generate_slots("09:00", "18:00", 15)


class TestOverlaps:
    """Tests for the half-open overlap predicate."""

    def test_candidate_starting_when_booking_ends_is_free(self):
        booked = [BookedInterval(start=at("10:00"), duration_minutes=30)]
        assert not overlaps(at("10:30"), 30, booked)

    def test_candidate_ending_when_booking_starts_is_free(self):
        booked = [BookedInterval(start=at("09:30"), duration_minutes=30)]
        assert not overlaps(at("09:00"), 30, booked)

    def test_partial_overlap_is_rejected(self):
        booked = [BookedInterval(start=at("10:00"), duration_minutes=60)]
        assert overlaps(at("10:15"), 30, booked)
        assert overlaps(at("09:45"), 30, booked)

    def test_enclosing_candidate_is_rejected(self):
        booked = [BookedInterval(start=at("10:15"), duration_minutes=15)]
        assert overlaps(at("10:00"), 60, booked)

    def test_symmetric(self):
        pairs = [
            (("09:00", 30), ("09:30", 30)),
            (("10:00", 60), ("10:15", 30)),
            (("11:00", 15), ("10:00", 90)),
            (("12:00", 45), ("14:00", 30)),
        ]
        for (s1, d1), (s2, d2) in pairs:
            a = (at(s1), BookedInterval(at(s1), d1).end)
            b = (at(s2), BookedInterval(at(s2), d2).end)
            assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)
            assert overlaps(at(s1), d1, [BookedInterval(at(s2), d2)]) == overlaps(
                at(s2), d2, [BookedInterval(at(s1), d1)]
            )

    def test_missing_duration_falls_back_to_default(self):
        booked = [BookedInterval(start=at("10:00"), duration_minutes=None)]
        assert overlaps(at("10:15"), 10, booked)
        assert not overlaps(at("10:30"), 30, booked)

    def test_zero_duration_is_not_zero_width(self):
        booked = [BookedInterval(start=at("10:00"), duration_minutes=0)]
        assert booked[0].end == at("10:30")

    def test_no_bookings(self):
        assert not overlaps(at("10:00"), 30, [])


class TestAvailability:
    """Tests for get_available_slots."""

    def test_empty_day_has_eighteen_slots(self, shop_config):
        result = get_available_slots(shop_config, MONDAY, 30, [])

        assert result.total_slots == 18
        assert result.available == 18
        assert result.slots[0] == "09:00"
        assert result.slots[-1] == "17:30"
        assert result.message is None

    def test_45_minute_booking_blocks_two_slots(self, shop_config):
        booked = [BookedInterval(start=at("12:00"), duration_minutes=45)]

        result = get_available_slots(shop_config, MONDAY, 30, booked)

        assert "12:00" not in result.slots
        assert "12:30" not in result.slots
        assert "11:30" in result.slots
        assert "13:00" in result.slots
        assert result.total_slots == 18
        assert result.available == 16

    def test_cancelled_booking_does_not_block(self, shop_config):
        booked = [BookedInterval(start=at("14:00"), duration_minutes=30, cancelled=True)]

        result = get_available_slots(shop_config, MONDAY, 30, booked)

        assert "14:00" in result.slots
        assert result.available == 18

    def test_closed_day(self, shop_config):
        booked = [BookedInterval(start=at("10:00", SUNDAY), duration_minutes=30)]

        result = get_available_slots(shop_config, SUNDAY, 30, booked)

        assert result.slots == []
        assert result.total_slots == 0
        assert result.available == 0
        assert result.message == CLOSED_MESSAGE
        assert result.closed

    def test_no_working_days(self):
        config = ShopAvailabilityConfig(working_days=frozenset(), open_time="09:00", close_time="18:00")
        assert get_available_slots(config, MONDAY, 30, []).closed

    def test_long_service_cannot_cross_closing_time(self, shop_config):
        result = get_available_slots(shop_config, MONDAY, 90, [])

        assert result.slots[-1] == "16:30"
        assert result.total_slots == 18

    def test_duration_longer_than_a_day_has_no_slots(self, shop_config):
        result = get_available_slots(shop_config, MONDAY, 10**10, [])

        assert result.slots == []
        assert result.total_slots == 18

    def test_results_are_chronological(self, shop_config):
        booked = [
            BookedInterval(start=at("15:00"), duration_minutes=60),
            BookedInterval(start=at("09:30"), duration_minutes=30),
        ]
        result = get_available_slots(shop_config, MONDAY, 30, booked)

        assert result.slots == sorted(result.slots)

    def test_custom_step(self, shop_config):
        result = get_available_slots(shop_config, MONDAY, 30, [], step_minutes=60)
        assert result.slots[:3] == ["09:00", "10:00", "11:00"]


def test_day_of_week_starts_on_sunday():
    assert day_of_week(SUNDAY) == 0
    assert day_of_week(MONDAY) == 1
