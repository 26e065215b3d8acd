"""Calendar arithmetic across the Europe/Berlin DST transitions."""

from datetime import date, datetime, timedelta, timezone

import pytest

from barber_series.dates import add_days_local, format_date_local, parse_date_noon, to_date
from barber_series.errors import InvalidDateError

from tests.conftest import BERLIN


class TestFormatDateLocal:
    def test_renders_zero_padded_calendar_day(self):
        assert format_date_local(date(2026, 9, 5), BERLIN) == "2026-09-05"

    def test_naive_datetime_is_shop_wall_clock(self):
        assert format_date_local(datetime(2026, 1, 15, 23, 59, 59), BERLIN) == "2026-01-15"
        assert format_date_local(datetime(2026, 1, 15, 0, 0, 0), BERLIN) == "2026-01-15"

    def test_aware_datetime_uses_local_not_utc_day(self):
        # 23:30 UTC is already 00:30 the next day in Berlin
        late_utc = datetime(2026, 1, 14, 23, 30, tzinfo=timezone.utc)
        assert format_date_local(late_utc, BERLIN) == "2026-01-15"


class TestParseDateNoon:
    def test_anchors_at_local_noon(self):
        noon = parse_date_noon("2026-03-29", BERLIN)
        assert (noon.year, noon.month, noon.day, noon.hour, noon.minute) == (2026, 3, 29, 12, 0)
        assert noon.tzinfo is BERLIN

    @pytest.mark.parametrize(
        "value",
        ["2026-01-01", "2026-03-28", "2026-03-29", "2026-03-30", "2026-10-24", "2026-10-25", "2027-03-28"],
    )
    def test_format_returns_the_parsed_day(self, value):
        assert format_date_local(parse_date_noon(value, BERLIN), BERLIN) == value

    @pytest.mark.parametrize("value", ["2026-02-30", "not a date", ""])
    def test_rejects_malformed_input(self, value):
        with pytest.raises(InvalidDateError):
            parse_date_noon(value, BERLIN)

    def test_invalid_date_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_date_noon("2026-13-01", BERLIN)


class TestAddDaysLocal:
    def test_spring_forward_advances_exactly_one_day(self):
        before = parse_date_noon("2024-03-30", BERLIN)
        after = add_days_local(before, 1, BERLIN)

        assert format_date_local(after, BERLIN) == "2024-03-31"
        # CET -> CEST: only 23 real hours lie between the two noons
        assert before.utcoffset() == timedelta(hours=1)
        assert after.utcoffset() == timedelta(hours=2)

    def test_fall_back_advances_exactly_one_day(self):
        before = parse_date_noon("2024-10-26", BERLIN)
        after = add_days_local(before, 1, BERLIN)

        assert format_date_local(after, BERLIN) == "2024-10-27"
        assert after.utcoffset() == timedelta(hours=1)

    def test_negative_days(self):
        result = add_days_local(parse_date_noon("2024-04-01", BERLIN), -2, BERLIN)
        assert format_date_local(result, BERLIN) == "2024-03-30"

    def test_weekly_steps_over_spring_transition(self):
        current = parse_date_noon("2026-03-14", BERLIN)
        seen = []
        for _ in range(6):
            seen.append(format_date_local(current, BERLIN))
            current = add_days_local(current, 7, BERLIN)

        assert seen == ["2026-03-14", "2026-03-21", "2026-03-28", "2026-04-04", "2026-04-11", "2026-04-18"]

    def test_weekly_steps_over_autumn_transition(self):
        current = parse_date_noon("2026-10-11", BERLIN)
        seen = []
        for _ in range(6):
            seen.append(format_date_local(current, BERLIN))
            current = add_days_local(current, 7, BERLIN)

        assert seen == ["2026-10-11", "2026-10-18", "2026-10-25", "2026-11-01", "2026-11-08", "2026-11-15"]

    def test_fifty_two_weeks_keep_the_weekday(self):
        for start in ["2026-01-05", "2026-03-29", "2026-06-15", "2026-10-25", "2026-12-28"]:
            begin = parse_date_noon(start, BERLIN)
            end = add_days_local(begin, 364, BERLIN)
            assert end.weekday() == begin.weekday()
            assert end.hour == 12

    def test_utc_input_near_midnight_uses_local_day(self):
        # 2024-03-30 23:30 UTC is 2024-03-31 00:30 CET
        late_utc = datetime(2024, 3, 30, 23, 30, tzinfo=timezone.utc)
        assert format_date_local(add_days_local(late_utc, 1, BERLIN), BERLIN) == "2024-04-01"


def test_to_date_accepts_strings_dates_and_datetimes():
    assert to_date("2024-01-01", BERLIN) == date(2024, 1, 1)
    assert to_date(date(2024, 1, 1), BERLIN) == date(2024, 1, 1)
    assert to_date(datetime(2024, 1, 1, 9, 0), BERLIN) == date(2024, 1, 1)

    with pytest.raises(InvalidDateError):
        to_date(20240101, BERLIN)
