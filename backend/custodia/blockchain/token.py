"""Token collaborator backed by a Soroban token contract."""

import logging

from stellar_sdk import Keypair, scval

from custodia.blockchain.client import SorobanClient

logger = logging.getLogger(__name__)


class SorobanToken:
    """
    Token contract following the Soroban token interface (SEP-41).

    Transfers out of custody and pulls against allowances are signed by
    the custodian keypair. Failed submissions are reported as ``False``
    rather than raised, so the ledger sees a plain unsuccessful transfer.
    """

    def __init__(
        self,
        client: SorobanClient,
        contract_id: str,
        custodian_keypair: Keypair,
    ) -> None:
        self._client = client
        self._contract_id = contract_id
        self._custodian = custodian_keypair

    @property
    def contract_id(self) -> str:
        return self._contract_id

    def balance_of(self, holder: str) -> int:
        result = self._client.read(
            self._custodian.public_key,
            self._contract_id,
            "balance",
            [scval.to_address(holder)],
        )
        return scval.from_int128(result)

    def allowance(self, owner: str, spender: str) -> int:
        result = self._client.read(
            self._custodian.public_key,
            self._contract_id,
            "allowance",
            [scval.to_address(owner), scval.to_address(spender)],
        )
        return scval.from_int128(result)

    def transfer(self, to: str, amount: int) -> bool:
        """Transfer from the custodian to ``to``."""
        return self._submit(
            "transfer",
            [
                scval.to_address(self._custodian.public_key),  # from
                scval.to_address(to),
                scval.to_int128(amount),
            ],
        )

    def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        """Pull from ``owner`` with the custodian as spender."""
        return self._submit(
            "transfer_from",
            [
                scval.to_address(self._custodian.public_key),  # spender
                scval.to_address(owner),
                scval.to_address(to),
                scval.to_int128(amount),
            ],
        )

    def _submit(self, function_name: str, parameters: list) -> bool:
        try:
            tx_hash = self._client.invoke(
                self._custodian,
                self._contract_id,
                function_name,
                parameters,
            )
        except (RuntimeError, TimeoutError) as e:
            logger.error(f"Token {function_name} on {self._contract_id} failed: {e}")
            return False

        logger.info(f"Token {function_name} submitted: {tx_hash}")
        return True
