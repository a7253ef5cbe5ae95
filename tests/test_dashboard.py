from datetime import date

from budget_api.services.dashboard_service import spending_series


class TestSpendingSeries:

    def test_twelve_months_oldest_first(self):
        series = spending_series({(2025, 3): 100.456, (2024, 4): 20}, date(2025, 3, 15))
        assert len(series) == 12
        assert series[0] == {"month": "Apr", "amount": 20.0}
        assert series[-1] == {"month": "Mar", "amount": 100.46}

    def test_missing_months_are_zero(self):
        series = spending_series({}, date(2025, 1, 1))
        assert [point["amount"] for point in series] == [0.0] * 12
        assert series[0]["month"] == "Feb"
