from datetime import date, datetime

import pytest

from eventbooking.services.deadlines import (
    calculate_deadlines,
    format_deadline_status,
    get_days_until_deadline,
    is_deadline_passed,
)

TODAY = date(2025, 6, 1)


def test_deadlines_from_event_date():
    deadlines = calculate_deadlines(date(2025, 12, 25))
    assert deadlines["downpayment_deadline"] == date(2025, 11, 25)
    assert deadlines["final_payment_deadline"] == date(2025, 12, 25)


@pytest.mark.parametrize(
    "event_date, expected",
    [
        (date(2025, 3, 31), date(2025, 2, 28)),
        (date(2024, 3, 31), date(2024, 2, 29)),
        (date(2025, 5, 31), date(2025, 4, 30)),
        (date(2025, 1, 15), date(2024, 12, 15)),
    ],
)
def test_downpayment_deadline_clamps_to_month_end(event_date, expected):
    assert calculate_deadlines(event_date)["downpayment_deadline"] == expected


def test_time_of_day_and_strings_are_normalized():
    from_datetime = calculate_deadlines(datetime(2025, 12, 25, 18, 30))
    from_string = calculate_deadlines("2025-12-25")
    assert from_datetime == from_string == calculate_deadlines(date(2025, 12, 25))


def test_calculate_deadlines_is_repeatable():
    assert calculate_deadlines(date(2025, 8, 31)) == calculate_deadlines(date(2025, 8, 31))


def test_days_until_deadline():
    assert get_days_until_deadline(date(2025, 6, 11), TODAY) == 10
    assert get_days_until_deadline(date(2025, 5, 30), TODAY) == -2


@pytest.mark.parametrize(
    "deadline, status, days, label",
    [
        (date(2025, 6, 8), "due-soon", 7, "Due in 7 days"),
        (date(2025, 6, 9), "upcoming", 8, "Due in 8 days"),
        (date(2025, 6, 1), "due-soon", 0, "Due in 0 days"),
        (date(2025, 6, 2), "due-soon", 1, "Due in 1 day"),
        (date(2025, 5, 31), "overdue", 1, "1 day overdue"),
        (date(2025, 5, 20), "overdue", 12, "12 days overdue"),
    ],
)
def test_format_deadline_status(deadline, status, days, label):
    assert format_deadline_status(deadline, TODAY) == {"status": status, "days": days, "label": label}


def test_is_deadline_passed():
    assert is_deadline_passed(date(2025, 5, 31), TODAY)
    assert not is_deadline_passed(TODAY, TODAY)


def test_rejects_unsupported_values():
    with pytest.raises(TypeError):
        calculate_deadlines(20251225)
