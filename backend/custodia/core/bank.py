import logging
import time
from typing import Callable

from custodia.config import BankConfig
from custodia.core.access import AccessGate
from custodia.core.custody import AssetCustody
from custodia.core.events import EventBus, Listener
from custodia.core.interfaces import NativeTransport, PriceFeed, TokenCollaborator
from custodia.core.ledger import BankStats, Ledger
from custodia.core.oracle import PriceOracleGateway
from custodia.core.state import LedgerState
from custodia.core.swap import SwapEngine
from custodia.core.valuation import ValuationTracker
from custodia.models.balance import AssetKind
from custodia.models.event import EventType, Notification

logger = logging.getLogger(__name__)


class Bank:
    """
    A custodial ledger instance.

    Owns the state and every component working on it, and exposes the
    public operations. The collaborators (token, native transport and the
    two price feeds) are fixed at construction.
    """

    def __init__(
        self,
        config: BankConfig,
        token: TokenCollaborator,
        native_transport: NativeTransport,
        native_feed: PriceFeed,
        token_feed: PriceFeed,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._state = LedgerState()
        self._events = EventBus()
        self._gate = AccessGate(owner=config.owner)
        self._oracle = PriceOracleGateway(
            clock=clock,
            max_oracle_delay=config.max_oracle_delay,
        )
        self._custody = AssetCustody(
            state=self._state,
            token=token,
            native=native_transport,
            custodian_address=config.custodian_address,
        )
        self._valuation = ValuationTracker(
            state=self._state,
            oracle=self._oracle,
            native_feed=native_feed,
            native_unit_scale=config.native_unit_scale,
            aggregate_cap=(
                config.aggregate_valuation_cap if config.aggregate_cap_enabled else None
            ),
        )
        self._ledger = Ledger(
            config=config,
            state=self._state,
            gate=self._gate,
            valuation=self._valuation,
            custody=self._custody,
            events=self._events,
        )
        self._swaps = SwapEngine(
            state=self._state,
            gate=self._gate,
            oracle=self._oracle,
            native_feed=native_feed,
            token_feed=token_feed,
            custody=self._custody,
            events=self._events,
            token_unit_scale=config.token_unit_scale,
        )

        logger.info(
            f"Bank initialized: owner={config.owner} "
            f"custodian={config.custodian_address} "
            f"native_cap={config.native_withdraw_cap} "
            f"deposit_cap={config.deposit_count_cap}"
        )

    @property
    def config(self) -> BankConfig:
        return self._config

    # -- Ledger -------------------------------------------------------------

    def deposit_native(self, caller: str, amount: int) -> None:
        self._ledger.deposit_native(caller, amount)

    def withdraw_native(self, caller: str, amount: int) -> None:
        self._ledger.withdraw_native(caller, amount)

    def deposit_token(self, caller: str, amount: int) -> None:
        self._ledger.deposit_token(caller, amount)

    def withdraw_token(self, caller: str, amount: int) -> None:
        self._ledger.withdraw_token(caller, amount)

    def receive_native(self, sender: str, amount: int) -> None:
        """
        Accept unsolicited native value into the shared pool.

        No ledger credit is made. Not guarded: a transfer recipient may
        return value while a guarded operation is in flight.
        """
        if amount < 0:
            raise ValueError(f"Amount must be non-negative, got {amount}")
        self._custody.receive_native(amount)
        logger.info(f"Received {amount} native from {sender} into pool")

    # -- Swaps --------------------------------------------------------------

    def swap_native_for_token(self, caller: str, native_in: int) -> int:
        return self._swaps.swap_native_for_token(caller, native_in)

    def swap_token_for_native(self, caller: str, token_in: int) -> int:
        return self._swaps.swap_token_for_native(caller, token_in)

    # -- Owner --------------------------------------------------------------

    def pause(self, caller: str) -> None:
        self._gate.pause(caller)
        self._events.emit(Notification(EventType.PAUSED, caller))

    def unpause(self, caller: str) -> None:
        self._gate.unpause(caller)
        self._events.emit(Notification(EventType.UNPAUSED, caller))

    def set_max_oracle_delay(self, caller: str, seconds: int) -> None:
        """Adjust the oracle staleness window. Owner only."""
        self._gate.require_owner(caller)
        old = self._oracle.set_max_oracle_delay(seconds)
        logger.info(f"Max oracle delay updated: {old}s -> {seconds}s")
        self._events.emit(
            Notification(EventType.ORACLE_DELAY_UPDATED, caller, old, seconds)
        )

    # -- Observers ----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a notification listener. Returns an unsubscribe function."""
        return self._events.subscribe(listener)

    # -- Reads --------------------------------------------------------------

    def bank_stats(self) -> BankStats:
        return self._ledger.bank_stats()

    def balance_of(self, kind: AssetKind, user: str) -> int:
        return self._ledger.balance_of(kind, user)

    @property
    def native_pool(self) -> int:
        return self._custody.native_pool

    def token_pool(self) -> int:
        return self._custody.token_pool()

    @property
    def aggregate_liability(self) -> int:
        return self._valuation.liability

    @property
    def max_oracle_delay(self) -> int:
        return self._oracle.max_oracle_delay

    @property
    def owner(self) -> str:
        return self._gate.owner

    @property
    def paused(self) -> bool:
        return self._gate.paused

    @property
    def locked(self) -> bool:
        return self._gate.locked
