import logging

from custodia.core.interfaces import NativeTransport, TokenCollaborator
from custodia.core.state import LedgerState
from custodia.errors import InsufficientAllowanceError, TransferFailedError

logger = logging.getLogger(__name__)


class AssetCustody:
    """
    Moves assets in and out of the custodian.

    Wraps the token collaborator and the native transport so that every
    failed or refused transfer surfaces as TransferFailedError. Native
    holdings are tracked in the ledger state; token holdings are whatever
    the token reports for the custodian address.
    """

    def __init__(
        self,
        state: LedgerState,
        token: TokenCollaborator,
        native: NativeTransport,
        custodian_address: str,
    ) -> None:
        self._state = state
        self._token = token
        self._native = native
        self._custodian = custodian_address

    @property
    def custodian_address(self) -> str:
        return self._custodian

    @property
    def native_pool(self) -> int:
        return self._state.native_pool

    def token_pool(self) -> int:
        """Current token holdings of the custodian."""
        return self._token.balance_of(self._custodian)

    def receive_native(self, amount: int) -> None:
        """Book native value that has arrived at the custodian."""
        self._state.add_to_pool(amount)

    def push_native(self, to: str, amount: int) -> None:
        """Send native from the pool. The pool is reduced before the call."""
        try:
            self._state.remove_from_pool(amount)
        except ValueError as e:
            raise TransferFailedError("native", to, amount, str(e)) from e

        try:
            ok = self._native.send(to, amount)
        except Exception as e:
            logger.error(f"Native transfer to {to} raised: {e}")
            raise TransferFailedError("native", to, amount, str(e)) from e

        if not ok:
            raise TransferFailedError("native", to, amount, "transport reported failure")

    def push_token(self, to: str, amount: int) -> None:
        """Send tokens held by the custodian."""
        try:
            ok = self._token.transfer(to, amount)
        except Exception as e:
            logger.error(f"Token transfer to {to} raised: {e}")
            raise TransferFailedError("token", to, amount, str(e)) from e

        if not ok:
            raise TransferFailedError("token", to, amount, "token reported failure")

    def pull_token(self, owner: str, amount: int) -> None:
        """Pull tokens from owner into custody using the owner's allowance."""
        allowed = self._token.allowance(owner, self._custodian)
        if allowed < amount:
            raise InsufficientAllowanceError(
                owner=owner,
                spender=self._custodian,
                have=allowed,
                need=amount,
            )

        try:
            ok = self._token.transfer_from(owner, self._custodian, amount)
        except Exception as e:
            logger.error(f"Token pull from {owner} raised: {e}")
            raise TransferFailedError("token", self._custodian, amount, str(e)) from e

        if not ok:
            raise TransferFailedError(
                "token", self._custodian, amount, "token reported failure"
            )
