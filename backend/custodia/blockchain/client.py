"""Soroban RPC client for interacting with Stellar network."""

import logging
import time
from typing import Any, Optional

from stellar_sdk import Keypair, Network, SorobanServer, TransactionBuilder
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.soroban_rpc import (
    EventFilter,
    EventFilterType,
    GetTransactionStatus,
    SendTransactionStatus,
)

logger = logging.getLogger(__name__)

# Testnet configuration
TESTNET_RPC_URL = "https://soroban-testnet.stellar.org"
TESTNET_PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE

# Seconds to wait for a submitted transaction to confirm
CONFIRMATION_TIMEOUT = 60


class SorobanClient:
    """
    Client for interacting with Soroban smart contracts.

    Handles RPC communication, read-only contract calls (by simulation),
    signed contract invocations and event fetching.
    """

    def __init__(
        self,
        rpc_url: str = TESTNET_RPC_URL,
        network_passphrase: str = TESTNET_PASSPHRASE,
        base_fee: int = 100,
    ) -> None:
        self._rpc_url = rpc_url
        self._network_passphrase = network_passphrase
        self._base_fee = base_fee
        self._server = SorobanServer(rpc_url)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    def get_latest_ledger(self) -> int:
        """Get the latest ledger sequence number."""
        response = self._server.get_latest_ledger()
        return response.sequence

    def get_events(
        self,
        start_ledger: int,
        contract_id: str,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """
        Fetch contract events from the Soroban RPC.

        Args:
            start_ledger: Ledger to start fetching from
            contract_id: Contract whose events to return
            limit: Maximum number of events to return

        Returns:
            List of event dictionaries
        """
        filters = [
            EventFilter(
                event_type=EventFilterType.CONTRACT,
                contract_ids=[contract_id],
            )
        ]

        response = self._server.get_events(
            start_ledger=start_ledger,
            filters=filters,
            limit=limit,
        )

        events = []
        for event in response.events:
            events.append({
                "id": event.id,
                "contract_id": event.contract_id,
                "ledger": event.ledger,
                "topic": event.topic,
                "value": event.value,
                "tx_hash": event.transaction_hash,
            })

        return events

    def _build_call(
        self,
        source_public_key: str,
        contract_id: str,
        function_name: str,
        parameters: list[stellar_xdr.SCVal],
    ):
        account = self._server.load_account(source_public_key)
        builder = TransactionBuilder(
            source_account=account,
            network_passphrase=self._network_passphrase,
            base_fee=self._base_fee,
        )
        builder.append_invoke_contract_function_op(
            contract_id=contract_id,
            function_name=function_name,
            parameters=parameters,
        )
        builder.set_timeout(30)
        return builder.build()

    def read(
        self,
        source_public_key: str,
        contract_id: str,
        function_name: str,
        parameters: Optional[list[stellar_xdr.SCVal]] = None,
    ) -> stellar_xdr.SCVal:
        """
        Call a read-only contract function by simulation.

        Returns:
            The function's return value
        """
        tx = self._build_call(source_public_key, contract_id, function_name, parameters or [])
        sim_response = self._server.simulate_transaction(tx)

        if sim_response.error:
            raise RuntimeError(f"Simulation of {function_name} failed: {sim_response.error}")
        if not sim_response.results:
            raise RuntimeError(f"Simulation of {function_name} returned no result")

        return stellar_xdr.SCVal.from_xdr(sim_response.results[0].xdr)

    def invoke(
        self,
        signer: Keypair,
        contract_id: str,
        function_name: str,
        parameters: list[stellar_xdr.SCVal],
    ) -> str:
        """
        Invoke a contract function and wait for confirmation.

        Returns:
            Transaction hash

        Raises:
            RuntimeError if simulation, submission or execution fails
            TimeoutError if the transaction does not confirm in time
        """
        tx = self._build_call(signer.public_key, contract_id, function_name, parameters)

        # Simulate to get resource estimates
        sim_response = self._server.simulate_transaction(tx)
        if sim_response.error:
            raise RuntimeError(f"Simulation failed: {sim_response.error}")

        tx = self._server.prepare_transaction(tx, sim_response)
        tx.sign(signer)

        response = self._server.send_transaction(tx)
        if response.status == SendTransactionStatus.ERROR:
            raise RuntimeError(f"Transaction failed: {response.error_result_xdr}")

        tx_hash = response.hash

        for _ in range(CONFIRMATION_TIMEOUT):
            result = self._server.get_transaction(tx_hash)
            if result.status == GetTransactionStatus.SUCCESS:
                logger.info(f"{function_name} confirmed: {tx_hash}")
                return tx_hash
            elif result.status == GetTransactionStatus.FAILED:
                raise RuntimeError(f"{function_name} failed: {tx_hash}")
            time.sleep(1)

        raise TimeoutError(
            f"{function_name} {tx_hash} did not confirm after {CONFIRMATION_TIMEOUT}s"
        )
