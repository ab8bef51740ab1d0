from datetime import date, timedelta

import pytest

from services.date_rules import (
    FREQUENCIES,
    advance_one_period,
    compute_next_occurrence,
    month_bounds,
    validate_frequency,
)
from utils.errors import InvalidFrequency

TODAYS = [date(2024, 3, 10), date(2024, 2, 29), date(2023, 12, 31), date(2024, 1, 1)]
PAST_ANCHORS = [date(2023, 1, 15), date(2020, 2, 29), date(2022, 8, 31), date(2023, 12, 30)]


@pytest.mark.parametrize("frequency", FREQUENCIES)
def test_future_anchor_is_returned_unchanged(frequency):
    assert compute_next_occurrence(frequency, date(2024, 5, 20), date(2024, 3, 10)) == date(2024, 5, 20)


@pytest.mark.parametrize("frequency", FREQUENCIES)
def test_anchor_equal_to_today_is_returned_unchanged(frequency):
    today = date(2024, 3, 13)
    assert compute_next_occurrence(frequency, today, today) == today


@pytest.mark.parametrize("frequency", FREQUENCIES)
def test_past_anchor_never_yields_a_date_before_today(frequency):
    for today in TODAYS:
        for anchor in PAST_ANCHORS:
            if anchor < today:
                assert compute_next_occurrence(frequency, anchor, today) >= today


@pytest.mark.parametrize("frequency", FREQUENCIES)
def test_same_inputs_give_same_output(frequency):
    args = (frequency, date(2023, 1, 31), date(2024, 3, 10))
    assert compute_next_occurrence(*args) == compute_next_occurrence(*args)


def test_daily_rolls_to_today():
    assert compute_next_occurrence("daily", date(2024, 1, 1), date(2024, 3, 10)) == date(2024, 3, 10)


def test_weekly_same_weekday_defers_a_full_week():
    wednesday = date(2024, 3, 6)
    later_wednesday = date(2024, 3, 13)
    assert wednesday.weekday() == later_wednesday.weekday() == 2

    assert compute_next_occurrence("weekly", wednesday, later_wednesday) == date(2024, 3, 20)


def test_weekly_lands_on_the_anchor_weekday():
    wednesday = date(2024, 3, 6)
    friday = date(2024, 3, 15)
    result = compute_next_occurrence("weekly", wednesday, friday)
    assert result == date(2024, 3, 20)
    assert result.weekday() == wednesday.weekday()
    assert 0 < (result - friday).days <= 7


def test_monthly_same_day_in_current_month():
    assert compute_next_occurrence("monthly", date(2023, 1, 15), date(2024, 3, 10)) == date(2024, 3, 15)


def test_monthly_day_already_passed_moves_to_next_month():
    assert compute_next_occurrence("monthly", date(2023, 1, 15), date(2024, 3, 20)) == date(2024, 4, 15)


def test_monthly_due_today_stays_today():
    assert compute_next_occurrence("monthly", date(2023, 1, 15), date(2024, 3, 15)) == date(2024, 3, 15)


def test_monthly_rolls_over_the_year_end():
    assert compute_next_occurrence("monthly", date(2023, 1, 15), date(2024, 12, 20)) == date(2025, 1, 15)


def test_monthly_clamps_to_short_month():
    assert compute_next_occurrence("monthly", date(2024, 1, 31), date(2024, 4, 10)) == date(2024, 4, 30)
    assert compute_next_occurrence("monthly", date(2022, 1, 31), date(2023, 2, 10)) == date(2023, 2, 28)


def test_yearly_this_year_or_next():
    anchor = date(2020, 6, 1)
    assert compute_next_occurrence("yearly", anchor, date(2024, 3, 10)) == date(2024, 6, 1)
    assert compute_next_occurrence("yearly", anchor, date(2024, 7, 1)) == date(2025, 6, 1)


def test_yearly_leap_day_clamps_in_common_years():
    anchor = date(2020, 2, 29)
    assert compute_next_occurrence("yearly", anchor, date(2023, 1, 10)) == date(2023, 2, 28)
    assert compute_next_occurrence("yearly", anchor, date(2023, 3, 1)) == date(2024, 2, 29)


@pytest.mark.parametrize("bad", ["fortnightly", "", "Monthly", None])
def test_unknown_frequency_is_rejected(bad):
    with pytest.raises(InvalidFrequency):
        compute_next_occurrence(bad, date(2024, 1, 1), date(2024, 3, 1))
    with pytest.raises(InvalidFrequency):
        advance_one_period(bad, date(2024, 1, 1))


def test_invalid_frequency_is_a_value_error():
    with pytest.raises(ValueError):
        validate_frequency("hourly")


def test_advance_daily_and_weekly():
    assert advance_one_period("daily", date(2024, 2, 28)) == date(2024, 2, 29)
    assert advance_one_period("weekly", date(2024, 12, 28)) == date(2025, 1, 4)


def test_weekly_advance_is_always_seven_days():
    start = date(2024, 1, 1)
    for offset in range(0, 366, 11):
        current = start + timedelta(days=offset)
        assert advance_one_period("weekly", current) - current == timedelta(days=7)


def test_monthly_advance_lands_in_next_calendar_month():
    current = date(2024, 1, 1)
    while current.year == 2024:
        nxt = advance_one_period("monthly", current)
        expected_month = current.month % 12 + 1
        assert nxt.month == expected_month
        assert nxt.year == current.year + (1 if current.month == 12 else 0)
        current += timedelta(days=1)


def test_monthly_advance_without_anchor_clamps():
    assert advance_one_period("monthly", date(2024, 1, 31)) == date(2024, 2, 29)
    assert advance_one_period("monthly", date(2024, 3, 15)) == date(2024, 4, 15)


def test_monthly_advance_with_anchor_restores_the_day():
    anchor = date(2024, 1, 31)
    feb = advance_one_period("monthly", anchor, anchor=anchor)
    mar = advance_one_period("monthly", feb, anchor=anchor)
    apr = advance_one_period("monthly", mar, anchor=anchor)
    assert (feb, mar, apr) == (date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30))


def test_yearly_advance_with_leap_anchor():
    anchor = date(2024, 2, 29)
    assert advance_one_period("yearly", anchor) == date(2025, 2, 28)
    assert advance_one_period("yearly", date(2027, 2, 28), anchor=anchor) == date(2028, 2, 29)


def test_advance_ignores_today():
    # A long-overdue occurrence still moves by exactly one period.
    assert advance_one_period("monthly", date(2020, 5, 10)) == date(2020, 6, 10)


def test_month_bounds():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))
