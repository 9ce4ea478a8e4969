from datetime import datetime, timedelta, timezone

from insightsink.base.timestamps import DEFAULT_TIME_FORMAT, format_timestamp

STAMP = datetime(2024, 3, 5, 7, 8, 9, 120000, tzinfo=timezone.utc)


def test_default_format_uses_seven_fraction_digits():
    assert format_timestamp(STAMP, DEFAULT_TIME_FORMAT) == "2024-03-05T07:08:09.1200000Z"


def test_naive_timestamp_treated_as_utc():
    naive = STAMP.replace(tzinfo=None)
    assert format_timestamp(naive, "HH:mm K") == "07:08 Z"


def test_short_and_long_components():
    assert format_timestamp(STAMP, "d/M/yy h:m:s") == "5/3/24 7:8:9"
    assert format_timestamp(STAMP, "ddd, dd MMM yyyy") == "Tue, 05 Mar 2024"
    assert format_timestamp(STAMP, "dddd MMMM") == "Tuesday March"


def test_twelve_hour_clock():
    evening = STAMP.replace(hour=19)
    assert format_timestamp(evening, "hh:mm tt") == "07:08 PM"
    assert format_timestamp(STAMP.replace(hour=0), "h t") == "12 A"


def test_trimmed_fraction_drops_trailing_zeros():
    assert format_timestamp(STAMP, "ss.FFFFFFF") == "09.12"
    assert format_timestamp(STAMP.replace(microsecond=0), "ss.FFF") == "09"


def test_offsets():
    plus_two = STAMP.replace(tzinfo=timezone(timedelta(hours=2, minutes=30)))
    assert format_timestamp(plus_two, "zzz") == "+02:30"
    assert format_timestamp(plus_two, "zz") == "+02"
    assert format_timestamp(plus_two, "K") == "+02:30"


def test_literals_and_escapes():
    assert format_timestamp(STAMP, "'year' yyyy") == "year 2024"
    assert format_timestamp(STAMP, '"at" HH\\h') == "at 07h"
    assert format_timestamp(STAMP, "%d") == "5"
