from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
import uuid


class MessageType(Enum):
    """Types of ledger operation requests."""

    DEPOSIT_NATIVE = "deposit_native"  # From blockchain event listener
    DEPOSIT_TOKEN = "deposit_token"
    WITHDRAW_NATIVE = "withdraw_native"
    WITHDRAW_TOKEN = "withdraw_token"
    SWAP_NATIVE_FOR_TOKEN = "swap_native_for_token"  # From blockchain event listener
    SWAP_TOKEN_FOR_NATIVE = "swap_token_for_native"

    @property
    def carries_native(self) -> bool:
        """Whether native value arrived with the request and must bounce on rejection."""
        return self in (MessageType.DEPOSIT_NATIVE, MessageType.SWAP_NATIVE_FOR_TOKEN)


class MessageStatus(Enum):
    """Processing status of a message."""

    PENDING = "pending"  # Waiting in queue
    PROCESSING = "processing"  # Currently being processed
    ACCEPTED = "accepted"  # Successfully processed
    REJECTED = "rejected"  # Failed validation/processing


@dataclass
class Message:
    """
    A queued ledger operation.

    User requests (token deposits, withdrawals, token swaps) and
    blockchain events (native deposits and native swaps) are all
    represented as messages and applied one at a time.
    """

    id: str
    type: MessageType
    user_address: str
    payload: dict[str, Any]
    status: MessageStatus = MessageStatus.PENDING
    rejection_reason: Optional[str] = None
    error_code: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    processed_at: Optional[datetime] = None

    # Set after processing for swap messages
    amount_out: Optional[int] = None

    @staticmethod
    def create(
        type: MessageType,
        user_address: str,
        amount: str,
        **extra: Any,
    ) -> "Message":
        """Create a message with a generated ID."""
        return Message(
            id=str(uuid.uuid4()),
            type=type,
            user_address=user_address,
            payload={"amount": amount, **extra},
        )

    @staticmethod
    def create_native_deposit(
        user_address: str,
        amount: str,
        ledger: int,
        tx_hash: str,
    ) -> "Message":
        """Create a native deposit message from a blockchain event."""
        return Message.create(
            MessageType.DEPOSIT_NATIVE,
            user_address,
            amount,
            ledger=ledger,
            tx_hash=tx_hash,
        )

    @staticmethod
    def create_native_swap(
        user_address: str,
        amount: str,
        ledger: int,
        tx_hash: str,
    ) -> "Message":
        """Create a native-for-token swap message from a blockchain event."""
        return Message.create(
            MessageType.SWAP_NATIVE_FOR_TOKEN,
            user_address,
            amount,
            ledger=ledger,
            tx_hash=tx_hash,
        )

    @staticmethod
    def create_token_deposit(user_address: str, amount: str) -> "Message":
        """Create a token deposit message."""
        return Message.create(MessageType.DEPOSIT_TOKEN, user_address, amount)

    @staticmethod
    def create_withdraw(user_address: str, asset: str, amount: str) -> "Message":
        """Create a withdrawal message for the given asset ("native" or "token")."""
        if asset == "native":
            type = MessageType.WITHDRAW_NATIVE
        elif asset == "token":
            type = MessageType.WITHDRAW_TOKEN
        else:
            raise ValueError(f"Invalid asset: {asset}")
        return Message.create(type, user_address, amount)

    @staticmethod
    def create_token_swap(user_address: str, amount: str) -> "Message":
        """Create a token-for-native swap message."""
        return Message.create(MessageType.SWAP_TOKEN_FOR_NATIVE, user_address, amount)

    def accept(self, amount_out: Optional[int] = None) -> None:
        """Mark message as accepted."""
        self.status = MessageStatus.ACCEPTED
        self.amount_out = amount_out
        self.processed_at = datetime.now(timezone.utc)

    def reject(self, reason: str, error_code: Optional[str] = None) -> None:
        """Mark message as rejected with a reason."""
        self.status = MessageStatus.REJECTED
        self.rejection_reason = reason
        self.error_code = error_code
        self.processed_at = datetime.now(timezone.utc)
