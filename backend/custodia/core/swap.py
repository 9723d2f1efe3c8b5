import logging

from custodia.core.access import AccessGate
from custodia.core.custody import AssetCustody
from custodia.core.events import EventBus
from custodia.core.interfaces import PriceFeed
from custodia.core.oracle import PriceOracleGateway
from custodia.core.state import LedgerState
from custodia.errors import (
    InsufficientLiquidityError,
    TransferFailedError,
    ZeroAmountError,
)
from custodia.models.event import EventType, Notification

logger = logging.getLogger(__name__)


def quote_native_for_token(
    native_in: int,
    native_price: int,
    token_price: int,
    token_unit_scale: int = 1,
) -> int:
    """Tokens paid for ``native_in``, truncated toward zero."""
    return native_in * native_price * token_unit_scale // token_price


def quote_token_for_native(
    token_in: int,
    native_price: int,
    token_price: int,
    token_unit_scale: int = 1,
) -> int:
    """Native paid for ``token_in``, truncated toward zero."""
    return token_in * token_price // (native_price * token_unit_scale)


class SwapEngine:
    """
    Oracle-priced exchange between the native asset and the token.

    Swaps trade against the shared pool: the custodian's total holdings
    of each asset, which also back user balances. They never touch the
    per-user ledger. Each swap reads both prices fresh, independently of
    any other read.
    """

    def __init__(
        self,
        state: LedgerState,
        gate: AccessGate,
        oracle: PriceOracleGateway,
        native_feed: PriceFeed,
        token_feed: PriceFeed,
        custody: AssetCustody,
        events: EventBus,
        token_unit_scale: int = 1,
    ) -> None:
        self._state = state
        self._gate = gate
        self._oracle = oracle
        self._native_feed = native_feed
        self._token_feed = token_feed
        self._custody = custody
        self._events = events
        self._token_unit_scale = token_unit_scale

    def _prices(self) -> tuple[int, int]:
        native_price = self._oracle.read_price(self._native_feed)
        token_price = self._oracle.read_price(self._token_feed)
        return native_price, token_price

    def swap_native_for_token(self, caller: str, native_in: int) -> int:
        """
        Exchange native value sent by the caller for tokens from the pool.

        Returns the token amount paid out. Raises ZeroAmountError,
        InvalidPriceError, InsufficientLiquidityError or TransferFailedError.
        """
        with self._gate.guarded(), self._state.transaction():
            if native_in == 0:
                raise ZeroAmountError()
            if native_in < 0:
                raise ValueError(f"Amount must be non-negative, got {native_in}")

            native_price, token_price = self._prices()
            token_out = quote_native_for_token(
                native_in, native_price, token_price, self._token_unit_scale
            )

            available = self._custody.token_pool()
            if token_out > available:
                raise InsufficientLiquidityError(available=available, needed=token_out)

            self._custody.receive_native(native_in)
            self._custody.push_token(caller, token_out)

        logger.info(
            f"Swap native->token: {caller} {native_in} -> {token_out} "
            f"(prices {native_price}/{token_price})"
        )
        self._events.emit(
            Notification(EventType.SWAP_NATIVE_TO_TOKEN, caller, native_in, token_out)
        )
        return token_out

    def swap_token_for_native(self, caller: str, token_in: int) -> int:
        """
        Exchange the caller's tokens for native value from the pool.

        Returns the native amount paid out. Raises ZeroAmountError,
        InvalidPriceError, InsufficientLiquidityError or TransferFailedError.
        If the native payout fails, the pulled tokens are returned to the
        caller before the error propagates.
        """
        with self._gate.guarded(), self._state.transaction():
            if token_in == 0:
                raise ZeroAmountError()
            if token_in < 0:
                raise ValueError(f"Amount must be non-negative, got {token_in}")

            native_price, token_price = self._prices()
            native_out = quote_token_for_native(
                token_in, native_price, token_price, self._token_unit_scale
            )

            available = self._custody.native_pool
            if native_out > available:
                raise InsufficientLiquidityError(available=available, needed=native_out)

            self._custody.pull_token(caller, token_in)
            try:
                self._custody.push_native(caller, native_out)
            except TransferFailedError:
                self._refund_tokens(caller, token_in)
                raise

        logger.info(
            f"Swap token->native: {caller} {token_in} -> {native_out} "
            f"(prices {native_price}/{token_price})"
        )
        self._events.emit(
            Notification(EventType.SWAP_TOKEN_TO_NATIVE, caller, token_in, native_out)
        )
        return native_out

    def _refund_tokens(self, caller: str, amount: int) -> None:
        try:
            self._custody.push_token(caller, amount)
            logger.warning(f"Refunded {amount} token to {caller} after failed payout")
        except TransferFailedError as e:
            # Tokens stay in the pool; needs manual reconciliation
            logger.error(f"Refund of {amount} token to {caller} failed: {e}")
