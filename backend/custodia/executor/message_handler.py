import asyncio
import logging
from typing import Optional

from custodia.core.bank import Bank
from custodia.core.interfaces import NativeTransport
from custodia.errors import LedgerError
from custodia.models.message import Message, MessageStatus, MessageType
from custodia.queues.message_queue import MessageQueue
from custodia.storage.message_store import MessageStore

logger = logging.getLogger(__name__)


def parse_amount(raw: object) -> int:
    """Parse an amount in smallest units. Rejects fractions and negatives."""
    text = str(raw).strip()
    if not text.isdigit():
        raise ValueError(f"Amount must be a non-negative integer, got {raw!r}")
    return int(text)


class MessageHandler:
    """
    Main processing loop for ledger messages.

    Applies deposits, withdrawals and swaps to the bank strictly one at a
    time, so requests arriving concurrently over HTTP never overlap inside
    the ledger. Rejected messages that carried native value (deposits and
    swaps observed on-chain) are bounced back to the sender.
    """

    def __init__(
        self,
        message_queue: MessageQueue,
        bank: Bank,
        message_store: MessageStore,
        refund_transport: Optional[NativeTransport] = None,
    ) -> None:
        self._messages_in = message_queue
        self._bank = bank
        self._messages = message_store
        self._refunds = refund_transport
        self._running = False

    async def start(self) -> None:
        """Start the handler loop."""
        self._running = True
        logger.info("MessageHandler started")

        while self._running:
            try:
                message = await self._messages_in.get(timeout=1.0)
                if message is not None:
                    try:
                        await self._process_message(message)
                    finally:
                        self._messages_in.task_done()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Error processing message: {e}")

        logger.info("MessageHandler stopped")

    async def stop(self) -> None:
        """Stop the handler loop."""
        self._running = False

    async def _process_message(self, message: Message) -> None:
        """Process a single message."""
        message.status = MessageStatus.PROCESSING
        self._messages.update(message)

        try:
            amount = parse_amount(message.payload.get("amount"))
        except ValueError as e:
            message.reject(f"Invalid amount: {e}")
        else:
            try:
                amount_out = self._apply(message, amount)
                message.accept(amount_out)
                logger.info(
                    f"Message {message.id} accepted: {message.type.value} "
                    f"{message.user_address} {amount}"
                )
            except LedgerError as e:
                logger.info(f"Message {message.id} rejected: {e}")
                message.reject(str(e), error_code=e.code)
            except Exception as e:
                logger.exception(f"Error processing message {message.id}: {e}")
                message.reject(str(e))

        if message.status == MessageStatus.REJECTED and message.type.carries_native:
            self._bounce(message)

        self._messages.update(message)

    def _apply(self, message: Message, amount: int) -> Optional[int]:
        """Apply a message to the bank. Returns the swap output, if any."""
        user = message.user_address

        if message.type == MessageType.DEPOSIT_NATIVE:
            self._bank.deposit_native(user, amount)
        elif message.type == MessageType.DEPOSIT_TOKEN:
            self._bank.deposit_token(user, amount)
        elif message.type == MessageType.WITHDRAW_NATIVE:
            self._bank.withdraw_native(user, amount)
        elif message.type == MessageType.WITHDRAW_TOKEN:
            self._bank.withdraw_token(user, amount)
        elif message.type == MessageType.SWAP_NATIVE_FOR_TOKEN:
            return self._bank.swap_native_for_token(user, amount)
        elif message.type == MessageType.SWAP_TOKEN_FOR_NATIVE:
            return self._bank.swap_token_for_native(user, amount)
        else:
            raise ValueError(f"Unknown message type: {message.type}")
        return None

    def _bounce(self, message: Message) -> None:
        """Return native value that arrived with a rejected message."""
        try:
            amount = parse_amount(message.payload.get("amount"))
        except ValueError:
            logger.error(f"Cannot bounce message {message.id}: invalid amount")
            return

        if amount == 0:
            return
        if self._refunds is None:
            logger.error(
                f"No refund transport: {amount} native from {message.user_address} "
                f"(message {message.id}) needs manual refund"
            )
            return

        try:
            ok = self._refunds.send(message.user_address, amount)
        except Exception as e:
            logger.exception(f"Bounce transport raised: {e}")
            ok = False

        if ok:
            message.payload["bounced"] = True
            logger.info(f"Bounced {amount} native to {message.user_address}")
        else:
            logger.error(
                f"Bounce of {amount} native to {message.user_address} failed "
                f"(message {message.id})"
            )
