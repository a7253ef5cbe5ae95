from datetime import date

import pytest

from budget_api.exceptions import BadRequestError
from budget_api.utils.date_utils import (
    add_months,
    format_date_label,
    get_month_end_date,
    month_bounds,
    month_label,
    months_between,
    parse_transaction_date,
    planning_window_end,
    with_day_clamped,
)


class TestMonthMath:

    def test_month_end_handles_leap_years(self):
        assert get_month_end_date(date(2024, 2, 10)) == date(2024, 2, 29)
        assert get_month_end_date(date(2025, 2, 10)) == date(2025, 2, 28)

    def test_month_bounds(self):
        assert month_bounds(2025, 4) == (date(2025, 4, 1), date(2025, 4, 30))

    def test_add_months_clamps_day(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2025, 1, 31), 2) == date(2025, 3, 31)

    def test_add_months_crosses_year_both_ways(self):
        assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)
        assert add_months(date(2025, 1, 15), -1) == date(2024, 12, 15)

    def test_with_day_clamped(self):
        assert with_day_clamped(2025, 4, 31) == date(2025, 4, 30)

    def test_planning_window_end(self):
        assert planning_window_end(2025, 1) == date(2025, 1, 31)
        assert planning_window_end(2025, 11, 3) == date(2026, 2, 28)

    def test_months_between(self):
        assert months_between(date(2025, 1, 1), date(2025, 3, 31)) == 2
        assert months_between(date(2025, 1, 1), date(2024, 12, 1)) == -1


class TestParseTransactionDate:

    def test_plain_date(self):
        assert parse_transaction_date("2025-03-09") == date(2025, 3, 9)

    def test_iso_datetime_keeps_date_part(self):
        assert parse_transaction_date("2025-03-09T23:59:00.000Z") == date(2025, 3, 9)

    def test_empty_means_today(self):
        assert parse_transaction_date(None) == date.today()
        assert parse_transaction_date("") == date.today()

    @pytest.mark.parametrize("value", ["03/09/2025", "2025-3-9", "2025-02-30", "yesterday"])
    def test_rejects_bad_input(self, value):
        with pytest.raises(BadRequestError) as exc_info:
            parse_transaction_date(value)
        assert exc_info.value.status_code == 400
        assert "Expected YYYY-MM-DD format" in exc_info.value.detail


class TestLabels:

    def test_month_label(self):
        assert month_label(2025, 1) == "January 2025"

    def test_format_date_label(self):
        value = date(2025, 3, 5)
        assert format_date_label(value, "MMM dd") == "Mar 05"
        assert format_date_label(value) == "Mar 05, 2025"
        assert format_date_label(value, "yyyy-MM-dd") == "2025-03-05"
        assert format_date_label(value, "MMM yyyy") == "Mar 2025"

    def test_format_date_label_unknown_format(self):
        with pytest.raises(ValueError):
            format_date_label(date(2025, 3, 5), "dd/MM")
