# =============================================================================
# tests/test_premium.py - Premium Subscription State Tests
# =============================================================================

from datetime import datetime, timedelta

from intellecta.payments.premium import add_months, premium_status, has_active_premium

NOW = datetime(2026, 1, 31, 12, 0, 0)


class TestAddMonths:

    def test_clamps_to_month_end(self):
        assert add_months(NOW, 1) == datetime(2026, 2, 28, 12, 0, 0)

    def test_leap_year(self):
        assert add_months(datetime(2028, 1, 31), 1) == datetime(2028, 2, 29)

    def test_crosses_year(self):
        assert add_months(datetime(2026, 11, 15), 12) == datetime(2027, 11, 15)
        assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)


class TestPremiumStatus:

    def test_active(self):
        user = {"is_premium": True, "premium_expiry_date": NOW + timedelta(days=10, hours=1)}
        status = premium_status(user, now=NOW)
        assert status["is_premium"] is True
        assert status["is_expired"] is False
        assert status["days_until_expiry"] == 11

    def test_expired(self):
        user = {"is_premium": True, "premium_expiry_date": NOW - timedelta(seconds=1)}
        status = premium_status(user, now=NOW)
        assert status["is_premium"] is False
        assert status["is_expired"] is True
        assert status["days_until_expiry"] is None

    def test_never_subscribed(self):
        status = premium_status({"is_premium": False, "premium_expiry_date": None}, now=NOW)
        assert status == {
            "is_premium": False,
            "premium_expiry_date": None,
            "is_expired": False,
            "days_until_expiry": None,
        }

    def test_flag_without_expiry_is_not_premium(self):
        assert has_active_premium({"is_premium": True}, now=NOW) is False
