import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from custodia.models.balance import Account, AssetKind

logger = logging.getLogger(__name__)


class LedgerState:
    """
    All mutable state of one ledger instance.

    Holds per-user accounts, the global deposit/withdrawal counters, the
    aggregate liability and the native pool (everything the custodian
    holds of the native asset, which is not the same as the sum of user
    balances).

    Mutations made inside ``transaction()`` are journaled. If the block
    raises, the journal is replayed in reverse so the state is exactly what
    it was when the transaction began. The state is owned by a single
    logical thread; it is not safe to share across threads.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._deposit_count = 0
        self._withdrawal_count = 0
        self._aggregate_liability = 0
        self._native_pool = 0
        self._journal: Optional[list[Callable[[], None]]] = None

    # -- Reads --------------------------------------------------------------

    @property
    def deposit_count(self) -> int:
        return self._deposit_count

    @property
    def withdrawal_count(self) -> int:
        return self._withdrawal_count

    @property
    def aggregate_liability(self) -> int:
        return self._aggregate_liability

    @property
    def native_pool(self) -> int:
        return self._native_pool

    @property
    def in_transaction(self) -> bool:
        return self._journal is not None

    def get(self, address: str) -> Optional[Account]:
        """Get an account by address, or None if not found."""
        return self._accounts.get(address)

    def balance_of(self, kind: AssetKind, address: str) -> int:
        """Tracked balance of a user for an asset kind."""
        account = self.get(address)
        if account is None:
            return 0
        return account.get_balance(kind).amount

    # -- Journaled mutations ------------------------------------------------

    def _record(self, undo: Callable[[], None]) -> None:
        if self._journal is not None:
            self._journal.append(undo)

    def _get_or_create(self, address: str) -> Account:
        account = self._accounts.get(address)
        if account is None:
            account = Account(address=address)
            self._accounts[address] = account
            self._record(lambda: self._accounts.pop(address, None))
        return account

    def credit(self, kind: AssetKind, address: str, amount: int) -> None:
        """Increase a user's balance. Creates the account on first credit."""
        balance = self._get_or_create(address).get_balance(kind)
        balance.credit(amount)
        self._record(lambda: setattr(balance, "amount", balance.amount - amount))

    def debit(self, kind: AssetKind, address: str, amount: int) -> None:
        """
        Decrease a user's balance.
        Raises InsufficientBalanceError without mutating if it cannot be covered.
        """
        balance = self._get_or_create(address).get_balance(kind)
        balance.debit(amount)
        self._record(lambda: setattr(balance, "amount", balance.amount + amount))

    def increment_deposits(self) -> None:
        self._deposit_count += 1
        self._record(lambda: setattr(self, "_deposit_count", self._deposit_count - 1))

    def increment_withdrawals(self) -> None:
        self._withdrawal_count += 1
        self._record(lambda: setattr(self, "_withdrawal_count", self._withdrawal_count - 1))

    def set_liability(self, value: int) -> None:
        old = self._aggregate_liability
        self._aggregate_liability = value
        self._record(lambda: setattr(self, "_aggregate_liability", old))

    def add_to_pool(self, amount: int) -> None:
        """Native value entering the custodian's holdings."""
        self._native_pool += amount
        self._record(lambda: setattr(self, "_native_pool", self._native_pool - amount))

    def remove_from_pool(self, amount: int) -> None:
        """Native value leaving the custodian's holdings."""
        if amount > self._native_pool:
            raise ValueError(
                f"Native pool cannot cover {amount}: holds {self._native_pool}"
            )
        self._native_pool -= amount
        self._record(lambda: setattr(self, "_native_pool", self._native_pool + amount))

    # -- Transactions -------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Apply the enclosed mutations as one unit.

        Not reentrant: the access gate guarantees a single operation at a
        time. Mutations made by unguarded calls during the block (such as
        value sent back by a transfer recipient) are part of the unit.
        """
        if self._journal is not None:
            raise RuntimeError("Ledger transaction already in progress")

        self._journal = []
        try:
            yield
        except BaseException:
            journal = self._journal
            self._journal = None
            for undo in reversed(journal):
                undo()
            logger.debug(f"Rolled back {len(journal)} ledger mutations")
            raise
        else:
            self._journal = None
