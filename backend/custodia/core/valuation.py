from typing import Optional

from custodia.core.interfaces import PriceFeed
from custodia.core.oracle import PriceOracleGateway
from custodia.core.state import LedgerState
from custodia.errors import AggregateCapExceededError


class ValuationTracker:
    """
    Values native amounts in the common 8-decimal unit and guards the
    aggregate liability cap.

    Liability grows on native deposits and shrinks on native withdrawals,
    each valued at the price current at that moment, so it is floored at
    zero rather than allowed to go negative when the price has moved.
    """

    def __init__(
        self,
        state: LedgerState,
        oracle: PriceOracleGateway,
        native_feed: PriceFeed,
        native_unit_scale: int,
        aggregate_cap: Optional[int] = None,
    ) -> None:
        self._state = state
        self._oracle = oracle
        self._native_feed = native_feed
        self._native_unit_scale = native_unit_scale
        self._aggregate_cap = aggregate_cap

    @property
    def liability(self) -> int:
        return self._state.aggregate_liability

    @property
    def cap_enabled(self) -> bool:
        return self._aggregate_cap is not None

    def native_to_valuation(self, amount: int) -> int:
        """Value a native amount at the current price, truncating toward zero."""
        price = self._oracle.read_price(self._native_feed)
        return amount * price // self._native_unit_scale

    def ensure_within_cap(self, delta: int) -> None:
        """Raise AggregateCapExceededError if adding delta would breach the cap."""
        if not self.cap_enabled:
            return
        attempted = self._state.aggregate_liability + delta
        if attempted > self._aggregate_cap:
            raise AggregateCapExceededError(attempted=attempted, cap=self._aggregate_cap)

    def increase(self, delta: int) -> None:
        self._state.set_liability(self._state.aggregate_liability + delta)

    def decrease(self, delta: int) -> None:
        self._state.set_liability(max(0, self._state.aggregate_liability - delta))
