"""Interactive recomputation of the current portfolio total.

Several triggers (account edits, explicit refresh, periodic refresh) can start
recomputations that overlap. Each one takes a generation number and only
commits its result while it is still the newest generation; superseded
results are dropped silently.

Stored rates are shown first. If they are stale, a refresh follows and its
result replaces the displayed total; a failed refresh keeps the stored-rate
total. Only when there are no stored rates at all does a failed refresh turn
into a visible error.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from decimal import Decimal

from fintrack.constants import Events
from fintrack.services.currency.exceptions import RateFetchError
from fintrack.services.currency.rates_service import CurrencyRatesService
from fintrack.services.events import Event, EventBus
from fintrack.services.portfolio.valuation_service import AccountLike, PortfolioValuationService
from fintrack.services.portfolio.valuation_types import TotalState, TotalStatus

logger = logging.getLogger(__name__)

RATES_UNAVAILABLE = "Could not refresh exchange rates."


class TotalCalculator:
    """Holds the displayed total and recomputes it on demand."""

    def __init__(
        self,
        rates_service: CurrencyRatesService,
        valuation: PortfolioValuationService | None = None,
        events: EventBus | None = None,
    ) -> None:
        self._rates_service = rates_service
        self._valuation = valuation or PortfolioValuationService()
        self._events = events
        self._generation = 0
        self._state = TotalState(status=TotalStatus.IDLE)
        self._background: set[asyncio.Task] = set()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> TotalState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def _commit(self, generation: int, state: TotalState) -> bool:
        """Apply ``state`` if ``generation`` is still the newest one."""
        if generation != self._generation:
            logger.debug(
                f"Discarding result of generation {generation}; "
                f"generation {self._generation} is newer"
            )
            return False
        self._state = replace(state, generation=generation)
        if self._events is not None:
            self._events.publish(Events.TOTAL_CHANGED, self._state)
        return True

    def _compute(self, accounts: Iterable[AccountLike], rates: Mapping[str, Decimal]) -> Decimal:
        return self._valuation.current_total(accounts, rates)

    async def recompute(self, accounts: Iterable[AccountLike]) -> TotalState | None:
        """
        Recompute the total for ``accounts``.

        Returns:
            The committed state, or None if a newer generation superseded this one
        """
        accounts = list(accounts)
        self._generation += 1
        generation = self._generation
        logger.info(
            f"Calculating {self._valuation.reference_currency} total for "
            f"{len(accounts)} accounts (generation {generation})"
        )

        if not accounts:
            self._commit(generation, TotalState(status=TotalStatus.DONE, total=Decimal("0")))
            return self._current_or_none(generation)

        self._commit(
            generation,
            TotalState(status=TotalStatus.LOADING, total=self._state.total),
        )

        stored = await asyncio.to_thread(self._rates_service.load_stored_rates)
        if generation != self._generation:
            return None

        if stored is not None:
            total = self._compute(accounts, stored)
            self._commit(
                generation,
                TotalState(
                    status=TotalStatus.DONE,
                    total=total,
                    rates_fetched_at=self._rates_service.last_fetched_at,
                ),
            )
            if self._rates_service.is_cache_stale:
                self._track(
                    asyncio.get_running_loop().create_task(
                        self._refresh_in_background(generation, accounts)
                    )
                )
            return self._current_or_none(generation)

        self._commit(generation, TotalState(status=TotalStatus.REFRESHING))
        try:
            rates = await asyncio.to_thread(self._rates_service.fetch_rates)
        except RateFetchError as e:
            logger.error(f"Error while refreshing exchange rates: {e}")
            self._commit(
                generation,
                TotalState(status=TotalStatus.FAILED, error=RATES_UNAVAILABLE),
            )
            return self._current_or_none(generation)

        total = self._compute(accounts, rates)
        self._commit(
            generation,
            TotalState(
                status=TotalStatus.DONE,
                total=total,
                rates_fetched_at=self._rates_service.last_fetched_at,
            ),
        )
        logger.info(f"Total calculation complete (generation {generation}): {total}")
        return self._current_or_none(generation)

    async def _refresh_in_background(self, generation: int, accounts: list[AccountLike]) -> None:
        """Refresh stale rates while the stored-rate total stays on display."""
        try:
            rates = await asyncio.to_thread(self._rates_service.fetch_rates)
        except RateFetchError as e:
            logger.warning(f"Background rate refresh failed, keeping stored-rate total: {e}")
            return

        fetched_at = self._rates_service.last_fetched_at
        total = self._compute(accounts, rates)
        shown = self._state
        if shown.total == total and shown.rates_fetched_at == fetched_at:
            return
        self._commit(
            generation,
            TotalState(status=TotalStatus.DONE, total=total, rates_fetched_at=fetched_at),
        )

    def _current_or_none(self, generation: int) -> TotalState | None:
        if generation != self._generation:
            return None
        return self._state

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Event loop used for changes published from worker threads."""
        self._loop = loop

    def handle_accounts_changed(self, event: Event) -> None:
        """Event bus handler: schedule a recomputation for the new account list.

        Changes published from a worker thread are handed to the attached
        loop. Without any loop the change is ignored; the next explicit
        refresh picks it up.
        """
        accounts = list(event.payload or [])
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if self._loop is None or self._loop.is_closed():
                logger.debug("No event loop; skipping automatic total recomputation")
                return
            self._loop.call_soon_threadsafe(self._schedule, accounts)
            return
        self._schedule(accounts)

    def _schedule(self, accounts: list[AccountLike]) -> None:
        self._track(asyncio.get_running_loop().create_task(self.recompute(accounts)))

    def _track(self, task: asyncio.Task) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def wait_idle(self) -> None:
        """Wait for scheduled recomputations and background refreshes."""
        # Let callbacks handed over from other threads create their tasks
        await asyncio.sleep(0)
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
