"""Listener for native value arriving at the custodian contract."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

from custodia.blockchain.client import SorobanClient
from custodia.models.message import Message

logger = logging.getLogger(__name__)

# Event topics (symbols) emitted by the custodian contract
DEPOSIT_TOPIC = "deposit"
SWAP_TOPIC = "swap"

# Max events fetched per poll
EVENT_PAGE_SIZE = 100


def decode_native_event(event: dict[str, Any]) -> Optional[dict[str, Any]]:
    """
    Decode a native deposit or swap event from raw Soroban event data.

    Expected event structure (from contract):
    - topic[0]: "deposit" or "swap" (symbol)
    - topic[1]: user address
    - value: amount (i128)

    Returns:
        Decoded event data or None if not a native deposit/swap event
    """
    try:
        topics = event.get("topic", [])
        if len(topics) < 2:
            return None

        topic0 = stellar_xdr.SCVal.from_xdr(topics[0])
        if topic0.type.name != "SCV_SYMBOL":
            return None
        kind = scval.from_symbol(topic0)
        if kind not in (DEPOSIT_TOPIC, SWAP_TOPIC):
            return None

        topic1 = stellar_xdr.SCVal.from_xdr(topics[1])
        if topic1.type.name != "SCV_ADDRESS":
            return None
        user_address = scval.from_address(topic1).address

        value = stellar_xdr.SCVal.from_xdr(event["value"])
        if value.type.name != "SCV_I128":
            return None
        amount = scval.from_int128(value)

        return {
            "kind": kind,
            "user_address": user_address,
            "amount": str(amount),
            "ledger": event["ledger"],
            "tx_hash": event["tx_hash"],
        }

    except Exception as e:
        logger.warning(f"Failed to decode event: {e}", exc_info=True)
        return None


def event_to_message(data: dict[str, Any]) -> Message:
    """Turn decoded event data into a ledger message."""
    if data["kind"] == SWAP_TOPIC:
        factory = Message.create_native_swap
    else:
        factory = Message.create_native_deposit
    return factory(
        user_address=data["user_address"],
        amount=data["amount"],
        ledger=data["ledger"],
        tx_hash=data["tx_hash"],
    )


class NativeEventListener:
    """
    Listens for native deposit and swap events on the custodian contract.

    Polls the Soroban RPC for new events and creates Message objects for
    processing by the MessageHandler.
    """

    def __init__(
        self,
        client: SorobanClient,
        contract_id: str,
        on_message: Callable[[Message], Awaitable[None]],
        poll_interval: float = 5.0,
        start_ledger: Optional[int] = None,
    ) -> None:
        """
        Initialize the event listener.

        Args:
            client: SorobanClient for RPC communication
            contract_id: Custodian contract emitting the events
            on_message: Async callback to enqueue messages
            poll_interval: Seconds between polls
            start_ledger: Ledger to start listening from (defaults to latest)
        """
        self._client = client
        self._contract_id = contract_id
        self._on_message = on_message
        self._poll_interval = poll_interval
        self._start_ledger = start_ledger
        self._running = False
        self._processed_events: set[str] = set()
        self._current_ledger: Optional[int] = None

    @property
    def current_ledger(self) -> Optional[int]:
        return self._current_ledger

    async def start(self) -> None:
        """Start the event listener loop."""
        self._running = True

        if self._start_ledger is not None:
            self._current_ledger = self._start_ledger
        else:
            self._current_ledger = self._client.get_latest_ledger()

        logger.info(
            f"NativeEventListener started from ledger {self._current_ledger}"
        )

        while self._running:
            try:
                await self._poll_events()
                await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Error polling events: {e}")
                await asyncio.sleep(self._poll_interval)

        logger.info("NativeEventListener stopped")

    async def stop(self) -> None:
        """Stop the event listener loop."""
        self._running = False

    async def _poll_events(self) -> None:
        """Poll for new native deposit and swap events."""
        if self._current_ledger is None:
            return

        events = self._client.get_events(
            start_ledger=self._current_ledger,
            contract_id=self._contract_id,
            limit=EVENT_PAGE_SIZE,
        )

        for event in events:
            event_id = event["id"]

            if event_id in self._processed_events:
                continue

            data = decode_native_event(event)
            if data is None:
                continue

            logger.info(
                f"Native {data['kind']} event: {data['user_address']} "
                f"+{data['amount']}"
            )

            await self._on_message(event_to_message(data))
            self._processed_events.add(event_id)

            if event["ledger"] >= self._current_ledger:
                self._current_ledger = event["ledger"] + 1

        if len(events) >= EVENT_PAGE_SIZE:
            # Full page: the last ledger seen may hold more events
            self._current_ledger = events[-1]["ledger"]
            logger.debug(f"Event page full, resuming at ledger {self._current_ledger}")
        else:
            latest = self._client.get_latest_ledger()
            if latest > self._current_ledger:
                self._current_ledger = latest

        # Prune old processed events (keep last 5000)
        if len(self._processed_events) > 10000:
            sorted_events = sorted(self._processed_events)
            self._processed_events = set(sorted_events[-5000:])
