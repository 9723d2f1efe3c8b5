"""Native asset transport through its Stellar Asset Contract."""

import logging

from custodia.blockchain.token import SorobanToken

logger = logging.getLogger(__name__)


class TokenNativeTransport:
    """
    Pushes the native asset using the native Stellar Asset Contract.

    On Stellar the native asset is exposed through a token contract, so a
    native send is a token transfer out of the custodian's account.
    """

    def __init__(self, native_contract: SorobanToken) -> None:
        self._native = native_contract

    def send(self, to: str, amount: int) -> bool:
        logger.info(f"Sending {amount} native to {to}")
        return self._native.transfer(to, amount)
