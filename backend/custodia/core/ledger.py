import logging
from typing import NamedTuple, Optional

from custodia.config import BankConfig
from custodia.core.access import AccessGate
from custodia.core.custody import AssetCustody
from custodia.core.events import EventBus
from custodia.core.state import LedgerState
from custodia.core.valuation import ValuationTracker
from custodia.errors import (
    CapExceededError,
    DepositCapReachedError,
    InsufficientBalanceError,
    ZeroAmountError,
    ZeroDepositError,
)
from custodia.models.balance import AssetKind
from custodia.models.event import EventType, Notification

logger = logging.getLogger(__name__)


class BankStats(NamedTuple):
    """Global operation counters."""

    deposit_count: int
    withdrawal_count: int


class Ledger:
    """
    Per-user balances of both asset kinds, with cap enforcement.

    Each operation validates first, then mutates state, then performs the
    external transfer, then bumps counters, all inside one state
    transaction: a failure at any step (including the transfer) leaves the
    ledger exactly as it was. Token deposits are the exception to the
    ordering: the pull happens before the credit, because custody must
    precede the credit for pull-based assets.
    """

    def __init__(
        self,
        config: BankConfig,
        state: LedgerState,
        gate: AccessGate,
        valuation: ValuationTracker,
        custody: AssetCustody,
        events: EventBus,
    ) -> None:
        self._config = config
        self._state = state
        self._gate = gate
        self._valuation = valuation
        self._custody = custody
        self._events = events

    def _check_deposit(self, amount: int) -> None:
        if amount == 0:
            raise ZeroDepositError()
        if amount < 0:
            raise ValueError(f"Amount must be non-negative, got {amount}")
        if self._state.deposit_count + 1 > self._config.deposit_count_cap:
            raise DepositCapReachedError(
                count=self._state.deposit_count,
                cap=self._config.deposit_count_cap,
            )

    def _token_cap(self) -> Optional[int]:
        if self._config.token_cap_enabled:
            return self._config.token_withdraw_cap
        return None

    def _check_withdrawal(
        self, kind: AssetKind, caller: str, amount: int, cap: Optional[int]
    ) -> None:
        if amount == 0:
            raise ZeroAmountError()
        if amount < 0:
            raise ValueError(f"Amount must be non-negative, got {amount}")
        if cap is not None and amount > cap:
            raise CapExceededError(requested=amount, cap=cap)
        balance = self._state.balance_of(kind, caller)
        if amount > balance:
            raise InsufficientBalanceError(have=balance, need=amount)

    # -- Native -------------------------------------------------------------

    def deposit_native(self, caller: str, amount: int) -> None:
        """
        Credit native value sent by the caller.

        Raises ZeroDepositError, DepositCapReachedError,
        AggregateCapExceededError or InvalidPriceError.
        """
        with self._gate.guarded(), self._state.transaction():
            self._check_deposit(amount)
            delta = self._valuation.native_to_valuation(amount)
            self._valuation.ensure_within_cap(delta)

            self._valuation.increase(delta)
            self._state.credit(AssetKind.NATIVE, caller, amount)
            self._custody.receive_native(amount)
            self._state.increment_deposits()

        logger.info(f"Native deposit: {caller} +{amount} (valuation +{delta})")
        self._events.emit(Notification(EventType.DEPOSIT, caller, amount))

    def withdraw_native(self, caller: str, amount: int) -> None:
        """
        Send native value back to the caller.

        Raises ZeroAmountError, CapExceededError, InsufficientBalanceError,
        InvalidPriceError or TransferFailedError.
        """
        with self._gate.guarded(), self._state.transaction():
            self._check_withdrawal(
                AssetKind.NATIVE, caller, amount, self._config.native_withdraw_cap
            )
            delta = self._valuation.native_to_valuation(amount)

            self._valuation.decrease(delta)
            self._state.debit(AssetKind.NATIVE, caller, amount)
            self._custody.push_native(caller, amount)
            self._state.increment_withdrawals()

        logger.info(f"Native withdrawal: {caller} -{amount} (valuation -{delta})")
        self._events.emit(Notification(EventType.WITHDRAWAL, caller, amount))

    # -- Token --------------------------------------------------------------

    def deposit_token(self, caller: str, amount: int) -> None:
        """
        Pull tokens from the caller and credit them.

        Raises ZeroDepositError, DepositCapReachedError or
        TransferFailedError (including InsufficientAllowanceError).
        """
        with self._gate.guarded(), self._state.transaction():
            self._check_deposit(amount)

            self._custody.pull_token(caller, amount)
            self._state.credit(AssetKind.TOKEN, caller, amount)
            self._state.increment_deposits()

        logger.info(f"Token deposit: {caller} +{amount}")
        self._events.emit(Notification(EventType.TOKEN_DEPOSIT, caller, amount))

    def withdraw_token(self, caller: str, amount: int) -> None:
        """
        Send tokens back to the caller.

        Raises ZeroAmountError, CapExceededError (when the token cap is
        enabled), InsufficientBalanceError or TransferFailedError.
        """
        with self._gate.guarded(), self._state.transaction():
            self._check_withdrawal(
                AssetKind.TOKEN, caller, amount, self._token_cap()
            )

            self._state.debit(AssetKind.TOKEN, caller, amount)
            self._custody.push_token(caller, amount)
            self._state.increment_withdrawals()

        logger.info(f"Token withdrawal: {caller} -{amount}")
        self._events.emit(Notification(EventType.TOKEN_WITHDRAWAL, caller, amount))

    # -- Reads --------------------------------------------------------------

    def bank_stats(self) -> BankStats:
        return BankStats(
            deposit_count=self._state.deposit_count,
            withdrawal_count=self._state.withdrawal_count,
        )

    def balance_of(self, kind: AssetKind, user: str) -> int:
        return self._state.balance_of(kind, user)
