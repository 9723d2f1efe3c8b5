from dataclasses import dataclass

# Prices are fixed point with 8 decimal places
PRICE_DECIMALS = 8
PRICE_SCALE = 10**PRICE_DECIMALS


@dataclass(frozen=True)
class FeedRound:
    """
    Raw round data as reported by a price feed.

    Mirrors the aggregator "latest round" tuple: the answer is the price
    in 8-decimal fixed point, timestamps are unix seconds.
    """

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@dataclass(frozen=True)
class OracleReading:
    """A validated price reading. Read fresh on every use, never stored."""

    price: int
    updated_at: int
    round_consistency_ok: bool
