import logging
import time
from typing import Callable

from custodia.config import DEFAULT_MAX_ORACLE_DELAY
from custodia.core.interfaces import PriceFeed
from custodia.errors import InvalidParameterError, InvalidPriceError
from custodia.models.oracle import OracleReading

logger = logging.getLogger(__name__)


class PriceOracleGateway:
    """
    Reads and validates prices from external feeds.

    Every call reads the feed afresh; nothing is cached and no fallback
    price is ever substituted. A reading is rejected when:
    - the answer is not strictly positive
    - the answered-in round is older than the round id
    - the last update lies in the future
    - the last update is older than ``max_oracle_delay`` seconds
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        max_oracle_delay: int = DEFAULT_MAX_ORACLE_DELAY,
    ) -> None:
        self._clock = clock
        self._max_oracle_delay = max_oracle_delay

    @property
    def max_oracle_delay(self) -> int:
        return self._max_oracle_delay

    def set_max_oracle_delay(self, seconds: int) -> int:
        """Set the staleness window. Returns the previous value."""
        if seconds <= 0:
            raise InvalidParameterError(f"Oracle delay must be positive, got {seconds}")
        old = self._max_oracle_delay
        self._max_oracle_delay = seconds
        return old

    def read(self, feed: PriceFeed) -> OracleReading:
        """Read the feed and return a validated reading."""
        try:
            latest = feed.latest_round()
        except Exception as e:
            logger.error(f"Price feed read failed: {e}")
            raise InvalidPriceError(f"feed unavailable: {e}") from e

        if latest.answer <= 0:
            raise InvalidPriceError(f"non-positive answer {latest.answer}")

        if latest.answered_in_round < latest.round_id:
            raise InvalidPriceError(
                f"stale round: answered in {latest.answered_in_round}, "
                f"round {latest.round_id}"
            )

        age = int(self._clock()) - latest.updated_at
        if age < 0:
            raise InvalidPriceError(
                f"timestamp in the future: updated at {latest.updated_at}"
            )
        if age > self._max_oracle_delay:
            raise InvalidPriceError(
                f"price is {age}s old, max delay {self._max_oracle_delay}s"
            )

        return OracleReading(
            price=latest.answer,
            updated_at=latest.updated_at,
            round_consistency_ok=True,
        )

    def read_price(self, feed: PriceFeed) -> int:
        """Read a validated 8-decimal price from the feed."""
        return self.read(feed).price
