from datetime import date

from budget_api.models import IncomeSource
from budget_api.services.income_service import (
    count_bi_weekly_pay_dates,
    monthly_equivalent,
    total_monthly_income,
)


def source(frequency, amount=1000, start=date(2025, 1, 3), end=None):
    return IncomeSource(id="s", user_id="u", name="Job", amount=amount, frequency=frequency,
                        start_date=start, end_date=end, is_active=True)


class TestBiWeeklyCount:

    def test_three_paycheck_month(self):
        assert count_bi_weekly_pay_dates(date(2025, 1, 3), None, 2025, 1) == 3

    def test_two_paycheck_month(self):
        assert count_bi_weekly_pay_dates(date(2025, 1, 3), None, 2025, 2) == 2

    def test_end_date_cuts_off(self):
        assert count_bi_weekly_pay_dates(date(2025, 1, 3), date(2025, 1, 20), 2025, 1) == 2

    def test_start_after_month(self):
        assert count_bi_weekly_pay_dates(date(2025, 3, 1), None, 2025, 1) == 0


class TestMonthlyEquivalent:

    def test_weekly_is_annualised(self):
        assert round(monthly_equivalent(source("weekly", 1200), 2025, 1), 2) == 5200.0

    def test_bi_weekly_counts_actual_paychecks(self):
        assert monthly_equivalent(source("bi-weekly"), 2025, 1) == 3000
        assert monthly_equivalent(source("bi-weekly"), 2025, 2) == 2000

    def test_monthly_is_face_value(self):
        assert monthly_equivalent(source("monthly", 4200), 2025, 6) == 4200

    def test_total_is_rounded(self):
        sources = [source("weekly", 1000), source("monthly", 100)]
        assert total_monthly_income(sources, 2025, 1) == 4433.33
