"""Tests for PortfolioValuationService."""

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from fintrack.services.portfolio import PortfolioValuationService, StatsPoint

RATES = {"EUR": Decimal("1"), "USD": Decimal("2")}
T0 = datetime(2024, 3, 1, 12, 0)


def account(id, balance, currency="EUR"):
    return SimpleNamespace(id=id, balance=Decimal(balance), currency=currency)


def update(id, account_id, previous, new, at):
    return SimpleNamespace(
        id=id,
        account_id=account_id,
        previous_balance=Decimal(previous),
        new_balance=Decimal(new),
        updated_at=at,
    )


@pytest.fixture
def clock():
    # Overrides the shared clock: valuation only needs a fixed "now"
    return lambda: T0 + timedelta(minutes=10)


@pytest.fixture
def valuation(clock):
    return PortfolioValuationService(clock=clock)


class TestCurrentTotal:
    """Tests for current_total()."""

    def test_sums_converted_balances(self, valuation):
        accounts = [account(1, "100"), account(2, "50", "USD")]

        assert valuation.current_total(accounts, RATES) == Decimal("125")

    def test_skips_accounts_without_rate(self, valuation):
        accounts = [account(1, "100"), account(2, "999", "CHF")]

        assert valuation.current_total(accounts, RATES) == Decimal("100")

    def test_empty(self, valuation):
        assert valuation.current_total([], RATES) == Decimal("0")


class TestBuildSeries:
    """Tests for build_series()."""

    def test_brokerage_in_usd(self, valuation):
        """Balance 0 -> 100 -> 250 USD at USD=2 gives 50 then 125."""
        accounts = [account(1, "250", "USD")]
        updates = [
            update(1, 1, "0", "100", T0 + timedelta(minutes=9)),
            update(2, 1, "100", "250", T0 + timedelta(minutes=9, seconds=30)),
        ]

        points = valuation.build_series(accounts, updates, RATES)

        assert [p.total for p in points] == [Decimal("50"), Decimal("125")]

    def test_unordered_input_is_replayed_chronologically(self, valuation):
        accounts = [account(1, "30")]
        updates = [
            update(3, 1, "20", "30", T0 + timedelta(minutes=3)),
            update(1, 1, "0", "10", T0 + timedelta(minutes=1)),
            update(2, 1, "10", "20", T0 + timedelta(minutes=2)),
        ]

        points = valuation.build_series(accounts, updates, RATES)

        times = [p.time for p in points]
        assert times == sorted(times)
        assert [p.total for p in points][:3] == [Decimal("10"), Decimal("20"), Decimal("30")]

    def test_equal_timestamps_order_by_id(self, valuation):
        accounts = [account(1, "5")]
        at = T0 + timedelta(minutes=9, seconds=45)
        updates = [update(2, 1, "9", "5", at), update(1, 1, "0", "9", at)]

        points = valuation.build_series(accounts, updates, RATES)

        assert [p.total for p in points] == [Decimal("9"), Decimal("5")]

    def test_accounts_without_history_count_at_current_value(self, valuation):
        accounts = [account(1, "100"), account(2, "40")]
        updates = [update(1, 1, "0", "100", T0 + timedelta(minutes=9, seconds=50))]

        points = valuation.build_series(accounts, updates, RATES)

        assert [p.total for p in points] == [Decimal("140")]

    def test_no_updates_gives_single_current_point(self, valuation, clock):
        points = valuation.build_series([account(1, "70")], [], RATES)

        assert points == [StatsPoint(clock(), Decimal("70"))]

    def test_no_accounts_gives_empty_series(self, valuation):
        assert valuation.build_series([], [], RATES) == []

    def test_tail_point_when_total_drifted(self, valuation, clock):
        """Untracked changes since the last update show up as a final "now" point."""
        accounts = [account(1, "150")]
        updates = [update(1, 1, "0", "100", T0 + timedelta(minutes=9, seconds=50))]

        points = valuation.build_series(accounts, updates, RATES)

        assert points[-1] == StatsPoint(clock(), Decimal("150"))
        assert len(points) == 2

    def test_tail_point_when_last_point_is_old(self, valuation, clock):
        accounts = [account(1, "100")]
        updates = [update(1, 1, "0", "100", T0)]

        points = valuation.build_series(accounts, updates, RATES)

        assert points == [StatsPoint(T0, Decimal("100")), StatsPoint(clock(), Decimal("100"))]

    def test_no_tail_when_recent_and_matching(self, valuation):
        accounts = [account(1, "100")]
        updates = [update(1, 1, "0", "100", T0 + timedelta(minutes=9, seconds=30))]

        assert len(valuation.build_series(accounts, updates, RATES)) == 1

    def test_update_without_rate_is_skipped(self, valuation):
        accounts = [account(1, "100"), account(2, "5", "CHF")]
        updates = [
            update(1, 2, "0", "5", T0 + timedelta(minutes=9, seconds=10)),
            update(2, 1, "0", "100", T0 + timedelta(minutes=9, seconds=20)),
        ]

        points = valuation.build_series(accounts, updates, RATES)

        assert [p.total for p in points] == [Decimal("100")]

    def test_update_of_unknown_account_is_skipped(self, valuation):
        accounts = [account(1, "100")]
        updates = [
            update(1, 99, "0", "1000", T0 + timedelta(minutes=9, seconds=10)),
            update(2, 1, "0", "100", T0 + timedelta(minutes=9, seconds=20)),
        ]

        points = valuation.build_series(accounts, updates, RATES)

        assert [p.total for p in points] == [Decimal("100")]

    def test_reference_currency(self, clock):
        valuation = PortfolioValuationService(reference_currency="usd", clock=clock)

        assert valuation.current_total([account(1, "10")], RATES) == Decimal("20")


class TestFilterRange:
    """Tests for filter_range()."""

    def test_keeps_points_in_window(self):
        points = [StatsPoint(T0, Decimal("1")), StatsPoint(T0 + timedelta(days=1), Decimal("2"))]

        assert PortfolioValuationService.filter_range(points, T0) == points

    def test_restamps_last_dropped_point_at_cutoff(self):
        points = [
            StatsPoint(T0, Decimal("1")),
            StatsPoint(T0 + timedelta(days=1), Decimal("2")),
            StatsPoint(T0 + timedelta(days=5), Decimal("3")),
        ]
        since = T0 + timedelta(days=3)

        filtered = PortfolioValuationService.filter_range(points, since)

        assert filtered == [StatsPoint(since, Decimal("2")), points[2]]

    def test_empty(self):
        assert PortfolioValuationService.filter_range([], T0) == []
