"""
In-memory collaborators for tests and local runs.

Each mock accepts an optional hook that runs during an outbound transfer,
standing in for code executed by the recipient.
"""

import logging
import time
from typing import Callable, Optional

from custodia.models.oracle import FeedRound

logger = logging.getLogger(__name__)

TransferHook = Callable[[str, int], None]


class MockToken:
    """
    Mock token with balances and allowances held in memory.

    ``custodian`` is the address whose holdings ``transfer`` spends.
    """

    def __init__(self, custodian: str) -> None:
        self._custodian = custodian
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self.fail_transfers = False
        self.on_transfer: Optional[TransferHook] = None

    def mint(self, holder: str, amount: int) -> None:
        self._balances[holder] = self._balances.get(holder, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self._allowances[(owner, spender)] = amount

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def _move(self, sender: str, to: str, amount: int) -> bool:
        if self.fail_transfers or self.balance_of(sender) < amount:
            return False
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[to] = self.balance_of(to) + amount
        return True

    def transfer(self, to: str, amount: int) -> bool:
        """Mock transfer from the custodian."""
        ok = self._move(self._custodian, to, amount)
        logger.info(f"Mock token transfer: {self._custodian} -> {to} {amount} ok={ok}")
        if ok and self.on_transfer is not None:
            self.on_transfer(to, amount)
        return ok

    def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        """Mock pull by the custodian against owner's allowance."""
        allowed = self.allowance(owner, self._custodian)
        if allowed < amount:
            return False
        ok = self._move(owner, to, amount)
        if ok:
            self._allowances[(owner, self._custodian)] = allowed - amount
        logger.info(f"Mock token transfer_from: {owner} -> {to} {amount} ok={ok}")
        return ok


class MockNativeTransport:
    """
    Mock native transport recording every successful send.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, int]] = []
        self.fail_sends = False
        self.on_send: Optional[TransferHook] = None

    def send(self, to: str, amount: int) -> bool:
        """Mock push transfer. Runs the recipient hook before reporting success."""
        if self.fail_sends:
            logger.info(f"Mock native send refused: {to} {amount}")
            return False
        if self.on_send is not None:
            self.on_send(to, amount)
        self.sent.append((to, amount))
        logger.info(f"Mock native send: {to} {amount}")
        return True


class MockPriceFeed:
    """
    Settable price feed reporting a single latest round.

    Each ``set_price`` starts a new round stamped with the current time.
    """

    def __init__(
        self,
        answer: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._round = FeedRound(
            round_id=1,
            answer=answer,
            started_at=int(clock()),
            updated_at=int(clock()),
            answered_in_round=1,
        )

    def set_price(self, answer: int) -> None:
        now = int(self._clock())
        round_id = self._round.round_id + 1
        self._round = FeedRound(
            round_id=round_id,
            answer=answer,
            started_at=now,
            updated_at=now,
            answered_in_round=round_id,
        )

    def set_round(self, round: FeedRound) -> None:
        """Report arbitrary round data, including stale or inconsistent rounds."""
        self._round = round

    def latest_round(self) -> FeedRound:
        return self._round
