"""Tests for calendar-day arithmetic."""

from datetime import date, datetime, timedelta, timezone

from parish.core.clock import Clock, day_of, days_between


EASTERN = timezone(timedelta(hours=-5))


class TestDayOf:
    def test_truncates_time_of_day(self):
        assert day_of(datetime(2025, 1, 15, 23, 59, tzinfo=timezone.utc), timezone.utc) == date(2025, 1, 15)

    def test_converts_aware_timestamp_to_policy_zone(self):
        # 23:30 in UTC-5 is already the next day in UTC
        late_evening = datetime(2025, 1, 15, 23, 30, tzinfo=EASTERN)
        assert day_of(late_evening, timezone.utc) == date(2025, 1, 16)
        assert day_of(late_evening, EASTERN) == date(2025, 1, 15)

    def test_naive_timestamp_taken_as_wall_clock(self):
        assert day_of(datetime(2025, 1, 15, 23, 30), timezone.utc) == date(2025, 1, 15)


class TestDaysBetween:
    def test_same_day(self):
        assert days_between(date(2025, 1, 15), date(2025, 1, 15)) == 0

    def test_is_absolute(self):
        assert days_between(date(2025, 1, 15), date(2025, 1, 22)) == 7
        assert days_between(date(2025, 1, 22), date(2025, 1, 15)) == 7

    def test_crosses_year_boundary(self):
        assert days_between(date(2024, 12, 31), date(2025, 1, 1)) == 1

    def test_leap_year(self):
        assert days_between(date(2024, 1, 1), date(2025, 1, 1)) == 366


class TestClock:
    def test_today_follows_now_source(self, clock, now):
        assert clock.today() == date(2025, 1, 15)
        now.advance(hours=15)
        assert clock.today() == date(2025, 1, 16)

    def test_today_uses_configured_zone(self):
        instant = datetime(2025, 1, 16, 3, 0, tzinfo=timezone.utc)
        assert Clock(tz=EASTERN, now_fn=lambda: instant).today() == date(2025, 1, 15)
        assert Clock(tz=timezone.utc, now_fn=lambda: instant).today() == date(2025, 1, 16)

    def test_now_is_always_aware(self):
        clock = Clock(tz=timezone.utc, now_fn=lambda: datetime(2025, 1, 15, 9, 0))
        assert clock.now().tzinfo is not None
        assert Clock().now().tzinfo is not None

    def test_from_name_empty_is_local(self):
        assert Clock.from_name("").tz is None
