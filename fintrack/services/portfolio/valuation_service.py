"""Portfolio valuation - current total and historical series in the reference currency.

The series is rebuilt from the balance audit trail. Replay is best-effort:
accounts without audit history contribute their current balance to every
point, and updates whose currency has no rate are skipped.
"""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Protocol

from fintrack.constants import BALANCE_EPSILON, Currency
from fintrack.services.currency.conversion import Converted, convert
from fintrack.services.portfolio.valuation_types import StatsPoint

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS = timedelta(minutes=1)


class AccountLike(Protocol):
    id: int | None
    balance: Decimal
    currency: str


class BalanceUpdateLike(Protocol):
    id: int | None
    account_id: int
    previous_balance: Decimal
    new_balance: Decimal
    updated_at: datetime


class PortfolioValuationService:
    """Calculates current and historical portfolio totals.

    Pure computation over already-loaded accounts, updates and rates; the
    same inputs always give the same series (apart from the "now" tail).
    """

    def __init__(
        self,
        reference_currency: str = Currency.EUR,
        freshness: timedelta = DEFAULT_FRESHNESS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.reference_currency = reference_currency.upper()
        self._freshness = freshness
        self._clock = clock

    def _to_reference(
        self, amount: Decimal, currency: str, rates: Mapping[str, Decimal]
    ) -> Decimal | None:
        result = convert(amount, currency, self.reference_currency, rates)
        if isinstance(result, Converted):
            return result.value
        logger.warning(f"Missing rate for {result.currency}, skipping conversion")
        return None

    def current_balances(
        self, accounts: Iterable[AccountLike], rates: Mapping[str, Decimal]
    ) -> dict[int, Decimal]:
        """Each account's current balance in the reference currency.

        Accounts without an id or without a usable rate are left out.
        """
        balances: dict[int, Decimal] = {}
        for account in accounts:
            if account.id is None:
                continue
            converted = self._to_reference(account.balance, account.currency, rates)
            if converted is None:
                continue
            logger.debug(
                f"Converted {account.balance} {account.currency} -> "
                f"{converted} {self.reference_currency}"
            )
            balances[account.id] = converted
        return balances

    def current_total(
        self, accounts: Iterable[AccountLike], rates: Mapping[str, Decimal]
    ) -> Decimal:
        """Sum of all convertible account balances in the reference currency."""
        return sum(self.current_balances(accounts, rates).values(), Decimal("0"))

    def build_series(
        self,
        accounts: Sequence[AccountLike],
        updates: Iterable[BalanceUpdateLike],
        rates: Mapping[str, Decimal],
    ) -> list[StatsPoint]:
        """
        Replay the audit trail into an ascending series of portfolio totals.

        Args:
            accounts: Current accounts
            updates: Every balance update, in any order
            rates: Units per 1 EUR

        Returns:
            Points in non-decreasing time order, ending at (about) the live total
        """
        now = self._clock()
        account_currencies = {
            account.id: account.currency.upper() for account in accounts if account.id is not None
        }
        current = self.current_balances(accounts, rates)
        current_total = sum(current.values(), Decimal("0"))

        ordered = sorted(updates, key=lambda u: (u.updated_at, u.id if u.id is not None else 0))

        tracked: dict[int, Decimal] = {}
        points: list[StatsPoint] = []
        for update in ordered:
            currency = account_currencies.get(update.account_id)
            if currency is None:
                logger.debug(f"Skipping update {update.id} of unknown account {update.account_id}")
                continue

            previous_value = self._to_reference(update.previous_balance, currency, rates)
            new_value = self._to_reference(update.new_balance, currency, rates)
            if previous_value is None or new_value is None:
                continue

            tracked.setdefault(update.account_id, previous_value)
            tracked[update.account_id] = new_value
            points.append(StatsPoint(update.updated_at, self._running_total(tracked, current)))

        if not points:
            if current:
                points.append(StatsPoint(now, current_total))
            return points

        last = points[-1]
        if (
            abs(last.total - current_total) > BALANCE_EPSILON
            or abs(now - last.time) > self._freshness
        ):
            points.append(StatsPoint(max(now, last.time), current_total))

        return points

    @staticmethod
    def _running_total(tracked: Mapping[int, Decimal], current: Mapping[int, Decimal]) -> Decimal:
        """Tracked balances plus the current balance of accounts not yet replayed."""
        total = sum(tracked.values(), Decimal("0"))
        for account_id, value in current.items():
            if account_id not in tracked:
                total += value
        return total

    @staticmethod
    def filter_range(points: Sequence[StatsPoint], since: datetime) -> list[StatsPoint]:
        """
        Keep points at or after ``since``.

        If earlier points are dropped, the latest of them is moved to ``since``
        so the window opens with the value in force at that moment.
        """
        kept = [point for point in points if point.time >= since]
        dropped = [point for point in points if point.time < since]
        if dropped:
            kept.insert(0, StatsPoint(since, dropped[-1].total))
        return kept
