from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from nfe_insights.analysis import dates


def test_parse_iso_string():
    assert dates.parse("2024-03-15") == date(2024, 3, 15)


def test_parse_day_first_string():
    assert dates.parse("25/12/2023") == date(2023, 12, 25)


def test_parse_excel_serial():
    assert dates.parse(45000) == date(2023, 3, 15)
    assert dates.parse(45000.75) == date(2023, 3, 15)


def test_parse_datetime_and_timestamp():
    assert dates.parse(datetime(2024, 1, 2, 13, 45)) == date(2024, 1, 2)
    assert dates.parse(pd.Timestamp("2024-01-02 08:00")) == date(2024, 1, 2)
    assert dates.parse(date(2024, 1, 2)) == date(2024, 1, 2)


@pytest.mark.parametrize("raw", [None, "", "   ", "not a date", float("nan"), pd.NaT, True, -5, [], {}])
def test_parse_malformed_returns_none(raw):
    assert dates.parse(raw) is None


def test_to_comparable_number_orders_dates():
    earlier = dates.to_comparable_number(date(2023, 12, 31))
    later = dates.to_comparable_number(date(2024, 1, 1))
    assert earlier == 20231231
    assert later == 20240101
    assert earlier < later
    assert dates.to_comparable_number(None) is None


def test_bucket_key_is_zero_padded():
    assert dates.bucket_key(date(2024, 3, 9)) == "03-2024"
    assert dates.bucket_key(date(2024, 11, 30)) == "11-2024"


def test_month_sort_key_is_chronological():
    keys = ["02-2024", "12-2023", "01-2024", "bogus"]
    assert sorted(keys, key=dates.month_sort_key) == ["bogus", "12-2023", "01-2024", "02-2024"]


def test_month_start():
    assert dates.month_start("03-2024") == date(2024, 3, 1)
    assert dates.month_start("3-2024") == date(2024, 3, 1)
    assert dates.month_start("13-2024") is None
    assert dates.month_start("") is None
